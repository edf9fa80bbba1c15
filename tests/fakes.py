# tests/fakes.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from taskdesk.core.ports import ChatMessage
from taskdesk.errors import SyncTransportError


class FakeLLMClient:
    """
    Deterministic LLM client for unit tests.

    - Captures calls for assertions
    - Yields a predefined text as a single chunk, or raises `error`
    """

    def __init__(self, next_text: str = "{}", error: Exception | None = None) -> None:
        self.next_text = next_text
        self.error = error
        self.calls: list[tuple[list[ChatMessage], str]] = []

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        self.calls.append((messages, system_prompt))
        if self.error is not None:
            raise self.error
        yield self.next_text


class MemoryStorage:
    """In-memory KeyValueStorage."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(data or {})
        self.writes = 0

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value
        self.writes += 1

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


@dataclass(slots=True)
class SentPayload:
    url: str
    payload: dict[str, Any]


@dataclass(slots=True)
class FakeTransport:
    sent: list[SentPayload] = field(default_factory=list)
    fail: bool = False

    async def send(self, url: str, payload: dict[str, Any]) -> None:
        if self.fail:
            raise SyncTransportError("network down")
        self.sent.append(SentPayload(url=url, payload=payload))


@dataclass(slots=True)
class FakeClipboard:
    copied: list[str] = field(default_factory=list)

    def copy(self, text: str) -> None:
        self.copied.append(text)


@dataclass(slots=True)
class FakeOpener:
    opened: list[str] = field(default_factory=list)

    def open(self, url: str) -> None:
        self.opened.append(url)
