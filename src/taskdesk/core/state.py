# src/taskdesk/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..sync.dispatcher import SyncDispatcher
from ..tasks.derive import ViewParams
from ..tasks.task_store import TaskStore
from .ports import LLMClient
from .preferences import Preferences


@dataclass
class AppState:
    """Everything a connector needs, wired once in cli.bootstrap."""

    settings: Any
    llm: LLMClient
    task_store: TaskStore
    preferences: Preferences
    dispatcher: SyncDispatcher

    # Current list view (search / filters / sort).
    view: ViewParams = field(default_factory=ViewParams)
