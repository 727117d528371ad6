"""CLI entry point."""

import argparse
import asyncio
import os
from typing import Optional, Sequence

from cli.repl import repl_loop
from common.config import TransferConfig
from common.constants import DEFAULT_CONFIG_PATH
from common.exceptions import ConfigError
from common.logging_config import setup_all_logging


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chunkrelay",
        description="Send large files in chunks over a size-limited channel.",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to config JSON file")
    parser.add_argument("--channel", help="Channel directory (overrides config)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for CLI."""
    args = build_arg_parser().parse_args(argv)
    log_level = 'DEBUG' if args.debug else os.getenv('LOG_LEVEL', 'INFO')

    logger = setup_all_logging(log_level=log_level)

    if args.debug:
        logger.info("Debug logging enabled")

    overrides = {"channel_dir": args.channel} if args.channel else {}
    try:
        config = TransferConfig(args.config, **overrides)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    logger.info("CLI starting...")
    try:
        asyncio.run(repl_loop(config))
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        logger.info("CLI exiting")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
