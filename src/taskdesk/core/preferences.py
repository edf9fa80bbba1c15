# src/taskdesk/core/preferences.py

from __future__ import annotations

import logging

from ..errors import EndpointConfigError
from .ports import KeyValueStorage

logger = logging.getLogger(__name__)

SYNC_ENDPOINT_KEY = "syncEndpointUrl"
SHEET_URL_KEY = "sheetUrl"
CALENDAR_ID_KEY = "calendarId"


class Preferences:
    """
    User-editable configuration persisted one key per value.

    Environment settings only seed the initial values; once the user changes
    something here, storage wins.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        endpoint_host: str,
        default_sheet_url: str = "",
        default_endpoint_url: str = "",
        default_calendar_id: str = "",
    ) -> None:
        self._storage = storage
        self._endpoint_host = endpoint_host

        if storage.get(SHEET_URL_KEY) is None:
            storage.set(SHEET_URL_KEY, default_sheet_url)
        if default_endpoint_url and storage.get(SYNC_ENDPOINT_KEY) is None:
            storage.set(SYNC_ENDPOINT_KEY, default_endpoint_url)
        if default_calendar_id and storage.get(CALENDAR_ID_KEY) is None:
            storage.set(CALENDAR_ID_KEY, default_calendar_id)

    @property
    def endpoint_host(self) -> str:
        return self._endpoint_host

    @property
    def sync_endpoint_url(self) -> str:
        return (self._storage.get(SYNC_ENDPOINT_KEY) or "").strip()

    @sync_endpoint_url.setter
    def sync_endpoint_url(self, url: str) -> None:
        self._storage.set(SYNC_ENDPOINT_KEY, (url or "").strip())
        logger.info("Sync endpoint %s", "updated" if url else "cleared")

    @property
    def sheet_url(self) -> str:
        return (self._storage.get(SHEET_URL_KEY) or "").strip()

    @sheet_url.setter
    def sheet_url(self, url: str) -> None:
        self._storage.set(SHEET_URL_KEY, (url or "").strip())

    @property
    def calendar_id(self) -> str:
        return (self._storage.get(CALENDAR_ID_KEY) or "").strip()

    @calendar_id.setter
    def calendar_id(self, value: str) -> None:
        self._storage.set(CALENDAR_ID_KEY, (value or "").strip())

    def validate_endpoint(self, url: str) -> str:
        """Cheap sanity check before any network call: the URL must mention the script host."""
        if self._endpoint_host not in url:
            raise EndpointConfigError(
                f"Sync endpoint URL does not look like a {self._endpoint_host} address. Check /config."
            )
        return url
