# src/taskdesk/connectors/local_io.py

from __future__ import annotations

import logging
import webbrowser
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)


class FileClipboard:
    """
    Clipboard stand-in for a terminal: the text is written to a file and announced
    through `emit`, so it can be pasted into the spreadsheet from there.
    """

    def __init__(self, path: str | Path, emit: Callable[[str], None] | None = None) -> None:
        self._path = Path(path)
        self._emit = emit

    def copy(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(text + "\n", "utf-8")
        logger.debug("Clipboard text written to %s (%d chars)", self._path, len(text))
        if self._emit is not None:
            self._emit(f"Rows copied to {self._path} (tab-separated, paste into the sheet):\n{text}")


class BrowserLinkOpener:
    def __init__(self, emit: Callable[[str], None] | None = None) -> None:
        self._emit = emit

    def open(self, url: str) -> None:
        opened = False
        try:
            opened = webbrowser.open_new_tab(url)
        except webbrowser.Error:
            logger.debug("webbrowser failed for %s", url, exc_info=True)
        if not opened and self._emit is not None:
            self._emit(f"Open this link: {url}")
