# src/taskdesk/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The store, the sync dispatcher and the creation flow depend on these Protocols
rather than on concrete implementations, so storage / LLM / transport stay
swappable and tests can plug in fakes.
"""

from typing import Any, Iterable, Protocol

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class KeyValueStorage(Protocol):
    """
    String key -> string value, like browser local storage.

    Values are JSON text; callers encode/decode.
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...


class SyncTransport(Protocol):
    """
    Fire-and-forget delivery of a sync payload to the user's endpoint.

    Raises SyncTransportError on network failure; the response is never inspected.
    """

    async def send(self, url: str, payload: dict[str, Any]) -> None: ...


class Clipboard(Protocol):
    def copy(self, text: str) -> None: ...


class LinkOpener(Protocol):
    def open(self, url: str) -> None: ...
