# src/taskdesk/sync/dispatcher.py

from __future__ import annotations

"""
Sync dispatcher.

Pushes tasks to the external spreadsheet / calendar:
- with a configured endpoint: one fire-and-forget POST (sheet rows or a calendar event),
- without one: clipboard text + spreadsheet link, or a pre-filled calendar link.

On success the matching synced_* flag is written back through the TaskStore.
No retries: the user re-runs the command.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from ..core.ports import Clipboard, LinkOpener, SyncTransport
from ..core.preferences import Preferences
from ..errors import MissingTargetDateError, TaskdeskError
from ..tasks.task_models import Task
from ..tasks.task_store import TaskStore
from .formatting import calendar_payload, calendar_template_url, clipboard_text, sheet_payload

logger = logging.getLogger(__name__)


class SyncMode(str, Enum):
    ENDPOINT = "endpoint"
    CLIPBOARD = "clipboard"
    LINK = "link"
    SKIPPED = "skipped"


@dataclass(slots=True, frozen=True)
class SyncOutcome:
    mode: SyncMode
    count: int
    opened_url: str | None = None


class SyncDispatcher:
    def __init__(
        self,
        store: TaskStore,
        preferences: Preferences,
        transport: SyncTransport,
        clipboard: Clipboard,
        opener: LinkOpener,
    ) -> None:
        self._store = store
        self._prefs = preferences
        self._transport = transport
        self._clipboard = clipboard
        self._opener = opener

    async def sync_sheet(self, tasks: Sequence[Task], *, silent: bool = False) -> SyncOutcome:
        """
        Push rows to the spreadsheet.

        silent=True is the auto-sync-after-create path: it never raises, never falls
        back to the clipboard, and leaves synced_sheet False on failure so a later
        manual sync can pick the task up.
        """
        if not tasks:
            return SyncOutcome(SyncMode.SKIPPED, 0)

        ids = [t.id for t in tasks]
        url = self._prefs.sync_endpoint_url

        if url:
            try:
                self._prefs.validate_endpoint(url)
                await self._transport.send(url, sheet_payload(tasks))
            except TaskdeskError:
                if not silent:
                    raise
                logger.info("Silent sheet sync failed for %d task(s); left unsynced.", len(ids), exc_info=True)
                return SyncOutcome(SyncMode.SKIPPED, 0)

            self._store.mark_synced(ids, sheet=True)
            logger.info("Sheet sync sent for %d task(s).", len(ids))
            return SyncOutcome(SyncMode.ENDPOINT, len(ids))

        if silent:
            return SyncOutcome(SyncMode.SKIPPED, 0)

        self._clipboard.copy(clipboard_text(tasks))
        self._store.mark_synced(ids, sheet=True)

        sheet_url = self._prefs.sheet_url
        if sheet_url:
            self._opener.open(sheet_url)
        logger.info("Sheet rows copied to clipboard for %d task(s).", len(ids))
        return SyncOutcome(SyncMode.CLIPBOARD, len(ids), opened_url=sheet_url or None)

    async def sync_calendar(self, task: Task) -> SyncOutcome:
        if not task.target_date:
            raise MissingTargetDateError("Set a target date before adding the task to the calendar.")

        url = self._prefs.sync_endpoint_url
        if url:
            self._prefs.validate_endpoint(url)
            await self._transport.send(url, calendar_payload(task))
            self._store.mark_synced([task.id], calendar=True)
            logger.info("Calendar event request sent task=%s", task.task_number)
            return SyncOutcome(SyncMode.ENDPOINT, 1)

        link = calendar_template_url(task, calendar_id=self._prefs.calendar_id)
        self._opener.open(link)
        self._store.mark_synced([task.id], calendar=True)
        return SyncOutcome(SyncMode.LINK, 1, opened_url=link)


def export_targets(store: TaskStore, view: Sequence[Task]) -> list[Task]:
    """Bulk export set: the selection if anything is selected, else the current view."""
    selected = store.selected_tasks()
    return selected if selected else list(view)
