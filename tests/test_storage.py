# tests/test_storage.py

from __future__ import annotations

import json

import pytest

from taskdesk.core.preferences import SHEET_URL_KEY, Preferences
from taskdesk.errors import EndpointConfigError
from taskdesk.storage.local_storage import LocalStorage

from .conftest import ENDPOINT
from .fakes import MemoryStorage


def test_local_storage_persists_across_instances(tmp_path) -> None:
    path = tmp_path / "data" / "storage.json"
    s = LocalStorage(path)
    s.set("tasks", "[]")
    s.set("sheetUrl", "https://sheet.example/1")
    s.remove("sheetUrl")

    assert json.loads(path.read_text("utf-8")) == {"tasks": "[]"}
    assert not path.with_suffix(".tmp").exists()

    again = LocalStorage(path)
    assert again.get("tasks") == "[]"
    assert again.get("sheetUrl") is None
    assert again.keys() == ["tasks"]
    assert again.path == path


def test_local_storage_survives_corrupt_file(tmp_path) -> None:
    path = tmp_path / "storage.json"
    path.write_text("{broken", "utf-8")
    assert LocalStorage(path).keys() == []

    path.write_text("[1, 2]", "utf-8")
    assert LocalStorage(path).keys() == []


def test_preferences_seed_defaults_once() -> None:
    storage = MemoryStorage()
    prefs = Preferences(storage, endpoint_host="script.google.com", default_sheet_url="https://sheet.example/1")
    assert prefs.sheet_url == "https://sheet.example/1"
    assert prefs.sync_endpoint_url == ""

    prefs.sheet_url = ""
    again = Preferences(storage, endpoint_host="script.google.com", default_sheet_url="https://sheet.example/1")
    assert storage.data[SHEET_URL_KEY] == ""
    assert again.sheet_url == ""


def test_preferences_seed_endpoint_and_calendar() -> None:
    prefs = Preferences(
        MemoryStorage(),
        endpoint_host="script.google.com",
        default_endpoint_url=ENDPOINT,
        default_calendar_id="team@example.com",
    )
    assert prefs.sync_endpoint_url == ENDPOINT
    assert prefs.calendar_id == "team@example.com"


def test_validate_endpoint_host(preferences) -> None:
    assert preferences.validate_endpoint(ENDPOINT) == ENDPOINT
    with pytest.raises(EndpointConfigError):
        preferences.validate_endpoint("https://evil.example.com/exec")
