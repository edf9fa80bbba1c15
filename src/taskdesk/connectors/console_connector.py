# src/taskdesk/connectors/console_connector.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.render import due_banner
from ..core.state import AppState
from ..tasks.derive import due_counts

logger = logging.getLogger(__name__)

PROMPT = "taskdesk> "


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def emit(text: str) -> None:
    """Immediate user-visible feedback for long operations (LLM, sync)."""
    _print_ts(text)


def handle_line(state: AppState, line: str, out: Callable[[str], None] = emit) -> str | None:
    """
    One console turn. Plain text is treated as "/add <text>".

    Returns the reply (also passed to `out`), or None for blank input.
    """
    line = line.strip()
    if not line:
        return None
    if not line.startswith("/"):
        line = f"/add {line}"

    try:
        reply = command_registry.handle(state, line, emit=out)
    except Exception:
        logger.exception("Command handler crashed: %s", line.split()[0])
        reply = "Internal error while handling the command (details in the log file)."

    if reply is not None:
        out(reply)
    return reply


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("Type a task description to add it, or /help for commands. /exit to quit.")

    banner = due_banner(due_counts(state.task_store.tasks, state.task_store.today()))
    if banner:
        _print_ts(banner)

    while True:
        try:
            user_input = input(PROMPT).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        handle_line(state, user_input)

    logger.info("Console connector finished.")
