"""
Sprite Manager - Loads and caches avatar frames and the world background.

Handles:
- Lazy, idempotent preloading of every frame of every avatar definition
- Non-blocking image loads with a readiness flag checked at draw time
- Image sources given as data URLs, http(s) URLs or local file paths
"""

import asyncio
import base64
import io
import urllib.parse
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Set, Tuple

import aiohttp
import pygame

from ..constants import AVATAR_DIRECTIONS
from ..logging_config import get_logger
from ..protocol import AvatarDefinition, Facing

logger = get_logger(__name__)

SourceReader = Callable[[str], Awaitable[bytes]]
SurfaceDecoder = Callable[[bytes, str], pygame.Surface]


# =============================================================================
# IMAGE HANDLES
# =============================================================================

class ImageHandle:
    """
    A single image that may still be loading.

    Renderers check ``complete`` and skip the image until it is ready.
    """

    def __init__(self, source: str):
        self.source = source
        self.surface: Optional[pygame.Surface] = None
        self.complete = False
        self.failed = False

    def mark_loaded(self, surface: pygame.Surface) -> None:
        self.surface = surface
        self.complete = True

    def mark_failed(self) -> None:
        self.failed = True

    def __repr__(self) -> str:
        state = "complete" if self.complete else "failed" if self.failed else "loading"
        return f"ImageHandle({self.source[:40]!r}, {state})"


AvatarImageSet = Dict[str, List[ImageHandle]]


def decode_surface(data: bytes, source: str) -> pygame.Surface:
    """Decode image bytes into a pygame surface."""
    if source.startswith("data:"):
        # data:image/png;base64,... -> "image.png"
        mime = source[5:].split(";", 1)[0].split(",", 1)[0]
        namehint = f"image.{mime.rsplit('/', 1)[-1]}" if "/" in mime else ""
    else:
        namehint = Path(urllib.parse.urlparse(source).path).name
    surface = pygame.image.load(io.BytesIO(data), namehint)
    # convert_alpha needs a display mode; leave the surface as-is without one
    if pygame.display.get_init() and pygame.display.get_surface() is not None:
        surface = surface.convert_alpha()
    return surface


def decode_data_url(source: str) -> bytes:
    """Extract the payload of a ``data:`` URL."""
    header, sep, payload = source.partition(",")
    if not sep:
        raise ValueError("data URL has no payload separator")
    if header.endswith(";base64"):
        return base64.b64decode(payload)
    return urllib.parse.unquote_to_bytes(payload)


# =============================================================================
# SPRITE MANAGER
# =============================================================================

class SpriteManager:
    """
    Manages avatar image loading and caching.

    Provides pygame surfaces for rendering once their loads complete.
    """

    def __init__(
        self,
        base_path: Optional[Path] = None,
        reader: Optional[SourceReader] = None,
        decoder: Optional[SurfaceDecoder] = None,
    ):
        self.base_path = base_path or Path.cwd()
        self.http_session: Optional[aiohttp.ClientSession] = None
        self._reader = reader or self._read_source
        self._decoder = decoder or decode_surface

        # avatar id -> direction -> frame handles
        self._avatar_images: Dict[str, AvatarImageSet] = {}

        # In-flight loads (kept referenced until done)
        self._pending_loads: Set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Preloading
    # -------------------------------------------------------------------------

    def has_avatar(self, avatar_id: str) -> bool:
        return avatar_id in self._avatar_images

    def preload_avatars(self, avatars: Mapping[str, AvatarDefinition]) -> List[str]:
        """
        Start loading every frame of every avatar not cached yet.

        Avatars already cached are skipped by id, so repeated calls are cheap.

        Returns:
            Ids of avatars that got a new cache entry.
        """
        added = []
        for avatar in avatars.values():
            if self.has_avatar(avatar.name):
                continue

            image_set: AvatarImageSet = {}
            for direction in AVATAR_DIRECTIONS:
                sources = getattr(avatar.frames, direction)
                image_set[direction] = [self._start_load(source) for source in sources]

            self._avatar_images[avatar.name] = image_set
            added.append(avatar.name)

        if added:
            logger.debug(f"Preloading avatars: {', '.join(added)}")
        return added

    def get_avatar_images(self, avatar_id: str) -> Optional[AvatarImageSet]:
        return self._avatar_images.get(avatar_id)

    def get_frame(self, avatar_id: str, facing: str, frame_index: int = 0) -> Tuple[Optional[ImageHandle], bool]:
        """
        Resolve the frame to draw for a player.

        West uses the east frames mirrored horizontally.

        Returns:
            (handle, mirrored). handle is None for an unknown avatar,
            direction or frame index.
        """
        try:
            facing = Facing(facing)
        except ValueError:
            return (None, False)

        mirrored = facing == Facing.WEST
        direction = Facing.EAST.value if mirrored else facing.value

        image_set = self._avatar_images.get(avatar_id)
        if image_set is None:
            return (None, mirrored)

        frames = image_set.get(direction, [])
        if frame_index < 0 or frame_index >= len(frames):
            return (None, mirrored)

        return (frames[frame_index], mirrored)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load_image(self, source: str, on_loaded: Optional[Callable[[ImageHandle], None]] = None) -> ImageHandle:
        """Start loading a standalone image such as the world background."""
        return self._start_load(source, on_loaded)

    def _start_load(self, source: str, on_loaded: Optional[Callable[[ImageHandle], None]] = None) -> ImageHandle:
        handle = ImageHandle(source)
        task = asyncio.ensure_future(self._load(handle, on_loaded))
        self._pending_loads.add(task)
        task.add_done_callback(self._pending_loads.discard)
        return handle

    async def _load(self, handle: ImageHandle, on_loaded: Optional[Callable[[ImageHandle], None]]) -> None:
        try:
            data = await self._reader(handle.source)
            surface = self._decoder(data, handle.source)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Failed to load image {handle.source[:60]!r}: {e}")
            handle.mark_failed()
            return

        handle.mark_loaded(surface)
        if on_loaded:
            on_loaded(handle)

    async def _read_source(self, source: str) -> bytes:
        """Fetch the raw bytes behind an image source."""
        if source.startswith("data:"):
            return decode_data_url(source)

        if source.startswith(("http://", "https://")):
            session = await self._get_session()
            async with session.get(source) as response:
                if response.status != 200:
                    raise IOError(f"HTTP {response.status}")
                return await response.read()

        path = Path(source)
        if not path.is_absolute():
            path = self.base_path / path
        with open(path, "rb") as f:
            return f.read()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self.http_session is None or self.http_session.closed:
            self.http_session = aiohttp.ClientSession()
        return self.http_session

    async def wait_for_pending(self) -> None:
        """
        Wait until every in-flight load has finished.

        The client never awaits this; it checks handle readiness at draw time.
        Headless callers that need every requested image settled before
        rendering a frame await it instead.
        """
        while self._pending_loads:
            await asyncio.gather(*list(self._pending_loads), return_exceptions=True)

    async def close(self) -> None:
        """Cancel in-flight loads and close the HTTP session."""
        for task in list(self._pending_loads):
            task.cancel()
        if self._pending_loads:
            await asyncio.gather(*list(self._pending_loads), return_exceptions=True)
        self._pending_loads.clear()

        if self.http_session and not self.http_session.closed:
            await self.http_session.close()
