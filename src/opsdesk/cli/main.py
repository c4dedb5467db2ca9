# src/opsdesk/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then either:
- runs one command given on the command line (`opsdesk task 42`), or
- starts the interactive console loop.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from ..api.client import ApiClient
from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_command, run_console_loop
from ..errors import RemoteFailure
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(settings, argv: list[str]) -> int:
    async with ApiClient.from_settings(settings) as api:
        state = create_initial_state(settings=settings, api=api)

        if getattr(settings, "load_status_refs", False):
            try:
                await state.tasks.load_statuses()
            except RemoteFailure:
                logger.warning("Could not load task status references; sending status names.", exc_info=True)
            try:
                await state.orders.load_statuses()
            except RemoteFailure:
                logger.warning("Could not load order status references; sending status names.", exc_info=True)

        if argv:
            line = " ".join(argv)
            if not line.startswith("/"):
                line = "/" + line
            print(await run_command(state, line))
            return 0

        if settings.console_enabled:
            await run_console_loop(state)
        else:
            logger.info("Console disabled and no command given. Nothing to do.")
        return 0


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(
        log_dir=getattr(settings, "data_dir", ".local/opsdesk"),
        app_name=getattr(settings, "app_name", "opsdesk"),
        console_level=console_level,
    )

    logger.debug("Starting %s...", getattr(settings, "app_name", "opsdesk"))

    try:
        return asyncio.run(_run(settings, list(sys.argv[1:] if argv is None else argv)))
    except KeyboardInterrupt:
        return 130
    finally:
        logger.debug("Bye.")


if __name__ == "__main__":
    raise SystemExit(main())
