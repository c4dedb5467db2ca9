# src/opsdesk/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..errors import WorkflowError, friendly_error_message

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


async def run_command(state: AppState, line: str) -> str:
    """Run one command line and return what should be shown to the user."""
    try:
        reply = await command_registry.handle(state, line, emit=_print_ts)
    except WorkflowError as e:
        # Rejected operations leave every draft and remote record as it was.
        logger.info("Command rejected: %s (%s)", line, e.__class__.__name__)
        return f"[{e.__class__.__name__}] {friendly_error_message(e)}"
    except (IndexError, ValueError) as e:
        return f"Invalid input: {e}"
    if reply is None:
        return "Commands start with '/'. Use /help to list them."
    return reply


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (user=%s role=%s).", state.actor.user_id, state.actor.role.value)
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await run_command(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        _print_ts(reply)

    logger.info("Console connector finished.")
