# src/taskdesk/llm/offline.py

from __future__ import annotations

import json
from collections.abc import Iterable

from ..core.ports import ChatMessage


class OfflineLLMClient:
    """
    Offline deterministic LLM client used when no external API is configured.

    Echoes the user's text back as the task content with default fields, so the
    whole create -> list -> sync flow works without network access.
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        user_text = ""
        for m in reversed(messages):
            if m["role"] == "user":
                user_text = m["content"]
                break

        yield json.dumps(
            {
                "content": user_text.strip(),
                "system": "",
                "category": "",
                "assigner": "",
                "assignee": "",
                "targetDate": None,
                "priority": "medium",
                "tags": ["offline"],
                "shouldSyncCalendar": False,
                "shouldSyncSheet": True,
            },
            ensure_ascii=False,
        )
