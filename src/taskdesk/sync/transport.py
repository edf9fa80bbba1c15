# src/taskdesk/sync/transport.py

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..errors import SyncTransportError

logger = logging.getLogger(__name__)


class HttpSyncTransport:
    """
    POST a sync payload to the user's deployed script.

    The script reads a form field named "payload" holding the JSON document. The
    response is not inspected: success means "the request went out".

    A fresh AsyncClient is opened per send because each console command runs in its
    own event loop.
    """

    def __init__(self, *, timeout: float = 15.0) -> None:
        self._timeout = httpx.Timeout(timeout, connect=min(5.0, timeout))

    async def send(self, url: str, payload: dict[str, Any]) -> None:
        body = {"payload": json.dumps(payload, ensure_ascii=False)}
        logger.debug("Sync POST action=%s url=%s", payload.get("action"), url)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                await client.post(url, data=body)
        except httpx.HTTPError as e:
            logger.info("Sync POST failed (%s)", e.__class__.__name__)
            raise SyncTransportError("Sync request could not be sent. Check your network connection.") from e
