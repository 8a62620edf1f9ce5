#!/usr/bin/env python3
"""Main entry point for gurka-bot."""

from __future__ import annotations

import json
import logging
import logging.config
import os
import sys
from pathlib import Path

from gurka_bot.domain.shared.messages import ErrorMessages, LogTemplates

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"


def setup_logging(log_level: str = "INFO", config_path: Path = _LOGGING_CONFIG_PATH) -> None:
    resolved_level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        with open(config_path) as f:
            config = json.load(f)
        logging.config.dictConfig(config)
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        logging.basicConfig(
            level=resolved_level,
            format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.warning("Could not load %s, falling back to basic config", config_path)

    logging.getLogger().setLevel(resolved_level)


def ensure_state_dir(state_file: str | Path) -> bool:
    """Create the directory holding the session state file and check it is writable."""
    logger = logging.getLogger(__name__)
    directory = Path(state_file).parent
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(LogTemplates.STATE_DIR_UNUSABLE, directory, e)
        return False

    if not os.access(directory, os.W_OK | os.X_OK):
        logger.error(LogTemplates.STATE_DIR_UNUSABLE, directory, "not writable")
        return False

    logger.info(LogTemplates.STATE_DIR_READY, directory)
    return True


def main() -> int:
    from gurka_bot.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)

    logger = logging.getLogger(__name__)

    token_value = settings.discord.token.get_secret_value()
    if not token_value:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    if settings.persistence.enabled and not ensure_state_dir(settings.persistence.state_file):
        return 1

    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))

    from gurka_bot.config.container import create_container
    from gurka_bot.infrastructure.discord.bot import create_bot

    container = create_container(settings)
    bot = create_bot(container, settings)

    try:
        logger.info(LogTemplates.BOT_STARTING_RUN)
        bot.run_with_graceful_shutdown(token_value)
        logger.info(LogTemplates.BOT_STOPPED)
        return 0
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
        return 0
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
