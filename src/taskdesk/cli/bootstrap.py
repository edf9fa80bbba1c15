# src/taskdesk/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (LLM / storage / store / sync).
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..config import get_settings
from ..connectors.local_io import BrowserLinkOpener, FileClipboard
from ..core.ports import LLMClient
from ..core.preferences import Preferences
from ..core.state import AppState
from ..llm.client import OpenRouterLLMClient
from ..llm.offline import OfflineLLMClient
from ..storage.local_storage import LocalStorage
from ..sync.dispatcher import SyncDispatcher
from ..sync.transport import HttpSyncTransport
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.storage_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, emit: Callable[[str], None] | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    llm_client: LLMClient
    try:
        llm_client = OpenRouterLLMClient(settings)
    except RuntimeError:
        logger.warning("No LLM API key configured; using the offline extractor.")
        llm_client = OfflineLLMClient()

    storage = LocalStorage(settings.storage_path)
    store = TaskStore(storage)
    preferences = Preferences(
        storage,
        endpoint_host=settings.endpoint_host,
        default_sheet_url=settings.default_sheet_url,
        default_endpoint_url=settings.sync_endpoint_url,
        default_calendar_id=settings.calendar_id,
    )
    dispatcher = SyncDispatcher(
        store,
        preferences,
        HttpSyncTransport(timeout=settings.sync_timeout),
        FileClipboard(settings.data_dir / "clipboard.tsv", emit=emit),
        BrowserLinkOpener(emit=emit),
    )

    return AppState(
        settings=settings,
        llm=llm_client,
        task_store=store,
        preferences=preferences,
        dispatcher=dispatcher,
    )
