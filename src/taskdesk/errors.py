# src/taskdesk/errors.py

"""
Error taxonomy.

None of these are fatal: the store and the console stay usable after any of them.
Connectors turn them into one-line user messages.
"""

from __future__ import annotations


class TaskdeskError(Exception):
    """Base class for expected, user-facing failures."""


class ExtractionError(TaskdeskError):
    """LLM extraction failed (network/auth) or the reply could not be understood."""


class ImportFormatError(TaskdeskError):
    """Imported data is not a JSON list of tasks."""


class SyncTransportError(TaskdeskError):
    """Network error while sending a sync payload."""


class EndpointConfigError(TaskdeskError):
    """The configured sync endpoint does not look like the expected script host."""


class MissingTargetDateError(TaskdeskError):
    """Calendar sync needs a target date."""


class TaskNotFoundError(TaskdeskError):
    def __init__(self, ref: str) -> None:
        super().__init__(f"No task matches {ref!r}.")
        self.ref = ref
