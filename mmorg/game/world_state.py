"""
Client-side world state.

Local mirror of the server's player registry and avatar definitions.
Mutated only by the protocol reconciler; everything else reads it.
"""

from typing import Dict, Mapping, Optional

from ..constants import DEPARTED_ID_LIMIT
from ..logging_config import get_logger
from ..protocol import AvatarDefinition, Player

logger = get_logger(__name__)


class WorldState:
    """
    Reconciled players and avatars for the current session.

    Player records are replaced wholesale on every update; nothing outside
    this class keeps a reference to them.
    """

    def __init__(self, departed_id_limit: int = DEPARTED_ID_LIMIT):
        self.players: Dict[str, Player] = {}
        self.avatars: Dict[str, AvatarDefinition] = {}
        self.local_player_id: Optional[str] = None

        # Ids removed by player_left, so late movement updates can't resurrect them.
        # Insertion ordered; the oldest ids are forgotten past the limit.
        self._departed_ids: Dict[str, None] = {}
        self.departed_id_limit = departed_id_limit

    @property
    def local_player(self) -> Optional[Player]:
        """The local player's current record, if we have joined."""
        if self.local_player_id is None:
            return None
        return self.players.get(self.local_player_id)

    @property
    def has_joined(self) -> bool:
        return self.local_player_id is not None

    def replace(
        self,
        local_player_id: str,
        players: Mapping[str, Player],
        avatars: Mapping[str, AvatarDefinition],
    ) -> None:
        """Replace the whole world with a join acknowledgment's snapshot."""
        self.local_player_id = local_player_id
        self.players = dict(players)
        self.avatars = dict(avatars)
        self._departed_ids.clear()

    def upsert_player(self, player: Player) -> None:
        """Insert or overwrite a single player record."""
        self._departed_ids.pop(player.id, None)
        self.players[player.id] = player

    def add_avatar(self, avatar: AvatarDefinition) -> None:
        """Insert or overwrite an avatar definition by name."""
        self.avatars[avatar.name] = avatar

    def merge_players(self, players: Mapping[str, Player]) -> int:
        """
        Merge updated player records, last write wins per id.

        Entries for players that already left are dropped.

        Returns:
            Number of records applied.
        """
        applied = 0
        for player_id, player in players.items():
            if self.is_departed(player_id):
                logger.debug(f"Ignoring update for departed player {player_id}")
                continue
            self.players[player_id] = player
            applied += 1
        return applied

    def remove_player(self, player_id: str) -> bool:
        """
        Remove a player record. Unknown ids are a no-op and are not remembered.

        Returns:
            True if a record was removed.
        """
        if self.players.pop(player_id, None) is None:
            return False

        self._departed_ids[player_id] = None
        while len(self._departed_ids) > self.departed_id_limit:
            del self._departed_ids[next(iter(self._departed_ids))]
        return True

    def is_departed(self, player_id: str) -> bool:
        return player_id in self._departed_ids

