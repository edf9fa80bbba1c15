# tests/test_transport.py

from __future__ import annotations

import json
from urllib.parse import parse_qs

import httpx
import pytest
from respx import MockRouter

from taskdesk.errors import SyncTransportError
from taskdesk.sync.transport import HttpSyncTransport

from .conftest import ENDPOINT


@pytest.mark.asyncio
async def test_send_posts_payload_form_field(respx_mock: MockRouter) -> None:
    route = respx_mock.post(ENDPOINT).mock(return_value=httpx.Response(200, text="ok"))

    await HttpSyncTransport().send(ENDPOINT, {"action": "sheet", "rows": [["1018-1", "Liao"]]})

    assert route.call_count == 1
    request = route.calls.last.request
    form = parse_qs(request.content.decode())
    assert json.loads(form["payload"][0]) == {"action": "sheet", "rows": [["1018-1", "Liao"]]}


@pytest.mark.asyncio
async def test_error_status_is_not_inspected(respx_mock: MockRouter) -> None:
    respx_mock.post(ENDPOINT).mock(return_value=httpx.Response(500))
    await HttpSyncTransport().send(ENDPOINT, {"action": "calendar"})


@pytest.mark.asyncio
async def test_connection_error_maps_to_sync_error(respx_mock: MockRouter) -> None:
    respx_mock.post(ENDPOINT).mock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(SyncTransportError):
        await HttpSyncTransport().send(ENDPOINT, {"action": "sheet", "rows": []})
