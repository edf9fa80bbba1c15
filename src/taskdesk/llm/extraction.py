# src/taskdesk/llm/extraction.py

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from ..core.ports import LLMClient
from ..errors import ExtractionError
from ..tasks.task_models import SYSTEM_OPTIONS, TASK_CATEGORIES, Priority, normalize_tags
from .client import friendly_llm_error_message

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """You are a project management secretary keeping a construction/project task log.
Extract the fields of ONE task from the user's log entry.

Today is {today}. Resolve relative dates ("tomorrow", "next Friday") against it.

Reply with a single JSON object and nothing else:
{{
  "content": string,            // the core description of the work (required)
  "system": string,             // one of: {systems}; infer from context (CCTV -> Low-voltage)
  "category": string,           // one of: {categories}
  "assigner": string,           // who assigned the work; "" if it is the user
  "assignee": string,           // who is responsible; "" if not stated
  "targetDate": string|null,    // due date as YYYY-MM-DD
  "priority": "low"|"medium"|"high",
  "tags": [string],             // extra keywords
  "shouldSyncCalendar": boolean,// true if a specific date is mentioned
  "shouldSyncSheet": boolean    // always true
}}

Examples:
Entry: "Sun asks Liao to clean up and publish the HVAC drawings, due tomorrow"
JSON: {{"content": "Clean up and publish drawings", "system": "HVAC", "category": "Drawing",
        "assigner": "Sun", "assignee": "Liao", "targetDate": "<tomorrow>", "priority": "medium",
        "tags": [], "shouldSyncCalendar": true, "shouldSyncSheet": true}}
Entry: "Submit the CCTV ECN form for the electrical room"
JSON: {{"content": "Submit CCTV ECN form", "system": "Electrical", "category": "Report",
        "assigner": "", "assignee": "", "targetDate": null, "priority": "medium",
        "tags": ["CCTV"], "shouldSyncCalendar": false, "shouldSyncSheet": true}}
"""


@dataclass(frozen=True, slots=True)
class ExtractedTask:
    content: str
    system: str = ""
    category: str = ""
    assigner: str = ""
    assignee: str = ""
    target_date: str | None = None
    priority: Priority | None = None
    tags: tuple[str, ...] = ()
    should_sync_calendar: bool = False
    should_sync_sheet: bool = True


def build_system_prompt(today: date) -> str:
    return EXTRACTION_PROMPT.format(
        today=today.isoformat(),
        systems=", ".join(SYSTEM_OPTIONS),
        categories=", ".join(TASK_CATEGORIES),
    )


def _first_json_object(text: str) -> dict[str, Any] | None:
    """Find the first decodable JSON object in a reply (tolerates code fences and prose)."""
    decoder = json.JSONDecoder()
    idx = text.find("{")
    while idx != -1:
        try:
            obj, _ = decoder.raw_decode(text, idx)
        except ValueError:
            idx = text.find("{", idx + 1)
            continue
        if isinstance(obj, dict):
            return obj
        idx = text.find("{", idx + 1)
    return None


def _clean_date(raw: Any) -> str | None:
    if not raw:
        return None
    s = str(raw).strip()[:10]
    try:
        return date.fromisoformat(s).isoformat()
    except ValueError:
        logger.debug("Dropping unparseable targetDate from LLM: %r", raw)
        return None


def parse_extraction(reply: str) -> ExtractedTask | None:
    data = _first_json_object(reply or "")
    if data is None:
        return None

    content = str(data.get("content") or "").strip()
    if not content:
        return None

    raw_priority = data.get("priority")
    tags = data.get("tags")
    return ExtractedTask(
        content=content,
        system=str(data.get("system") or "").strip(),
        category=str(data.get("category") or "").strip(),
        assigner=str(data.get("assigner") or "").strip(),
        assignee=str(data.get("assignee") or "").strip(),
        target_date=_clean_date(data.get("targetDate")),
        priority=Priority.from_raw(raw_priority) if raw_priority else None,
        tags=normalize_tags(tags if isinstance(tags, list) else []),
        should_sync_calendar=bool(data.get("shouldSyncCalendar", False)),
        should_sync_sheet=bool(data.get("shouldSyncSheet", True)),
    )


def extract_task(llm: LLMClient, text: str, *, today: date) -> ExtractedTask | None:
    """
    Ask the LLM to structure a free-text entry.

    Returns None when the reply has no usable task (nothing to create).
    Raises ExtractionError when the LLM call itself fails.
    """
    try:
        reply = "".join(llm.stream_chat([{"role": "user", "content": text}], build_system_prompt(today)))
    except Exception as e:
        logger.warning("LLM extraction failed: %s", e.__class__.__name__, exc_info=True)
        raise ExtractionError(friendly_llm_error_message(e)) from e

    result = parse_extraction(reply)
    if result is None:
        logger.info("LLM reply had no usable task (len=%d)", len(reply))
    return result
