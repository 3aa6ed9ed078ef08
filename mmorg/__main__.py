"""Command line entry point: ``python -m mmorg``."""

import argparse
import asyncio
from pathlib import Path
from typing import List, Optional

from .client import main as client_main
from .config import reload_config
from .logging_config import setup_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mmorg", description="MMORG viewport client")
    parser.add_argument("--config", type=Path, help="Path to a client_config.yml")
    parser.add_argument("--server", help="WebSocket URL of the game server")
    parser.add_argument("--username", help="Name to join the world with")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    config = reload_config(args.config)
    if args.server:
        config.server.url = args.server
    if args.username:
        config.player.username = args.username
    if args.log_level:
        config.debug.log_level = args.log_level

    setup_logging(config.debug.log_level)
    asyncio.run(client_main(config))


if __name__ == "__main__":
    main()
