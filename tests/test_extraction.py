# tests/test_extraction.py

from __future__ import annotations

import json

import pytest

from taskdesk.errors import ExtractionError
from taskdesk.llm.extraction import build_system_prompt, extract_task, parse_extraction
from taskdesk.llm.offline import OfflineLLMClient
from taskdesk.tasks.task_models import Priority

from .conftest import TODAY
from .fakes import FakeLLMClient


def test_parse_fenced_reply_with_prose() -> None:
    reply = (
        "Sure, here it is:\n```json\n"
        '{"content": "Publish drawings", "system": "HVAC", "assignee": "Liao", '
        '"targetDate": "2026-10-19T00:00:00", "priority": "HIGH", "tags": ["cad", "cad"]}\n```'
    )
    result = parse_extraction(reply)
    assert result is not None
    assert result.content == "Publish drawings"
    assert result.system == "HVAC"
    assert result.assignee == "Liao"
    assert result.target_date == "2026-10-19"
    assert result.priority == Priority.HIGH
    assert result.tags == ("cad",)
    assert result.should_sync_sheet is True


def test_parse_without_content_or_json_gives_none() -> None:
    assert parse_extraction("I could not find a task.") is None
    assert parse_extraction('{"content": "  ", "system": "HVAC"}') is None
    assert parse_extraction("") is None


def test_parse_drops_bad_dates_and_leaves_priority_unset() -> None:
    result = parse_extraction('{"content": "x", "targetDate": "next week"}')
    assert result is not None
    assert result.target_date is None
    assert result.priority is None


def test_system_prompt_mentions_today_and_options() -> None:
    prompt = build_system_prompt(TODAY)
    assert "2026-10-18" in prompt
    assert "Low-voltage" in prompt
    assert "To-do" in prompt


def test_extract_task_sends_text_as_user_message() -> None:
    llm = FakeLLMClient(next_text=json.dumps({"content": "Call vendor"}))
    result = extract_task(llm, "call the vendor tomorrow", today=TODAY)
    assert result is not None and result.content == "Call vendor"
    messages, system_prompt = llm.calls[0]
    assert messages == [{"role": "user", "content": "call the vendor tomorrow"}]
    assert "2026-10-18" in system_prompt


def test_llm_failure_becomes_extraction_error() -> None:
    llm = FakeLLMClient(error=RuntimeError("boom"))
    with pytest.raises(ExtractionError):
        extract_task(llm, "anything", today=TODAY)


def test_offline_client_echoes_text() -> None:
    result = extract_task(OfflineLLMClient(), "  Check fire dampers  ", today=TODAY)
    assert result is not None
    assert result.content == "Check fire dampers"
    assert result.tags == ("offline",)
