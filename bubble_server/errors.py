"""Exception types raised by the BubbleLife store."""
from __future__ import annotations


class BubbleError(Exception):
    """Base class for store errors."""


class DuplicateIdError(BubbleError):
    """Raised when an entity is added under an id its collection already holds."""

    def __init__(self, key: str, entity_id: object) -> None:
        super().__init__(f"{key}: id {entity_id} already exists")
        self.key = key
        self.entity_id = entity_id


class CorruptBlobError(BubbleError):
    """A persisted blob could not be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Corrupt '{key}' blob: {reason}")
        self.key = key
        self.reason = reason


class PersistenceError(BubbleError):
    """Writing a blob to the preference store failed.

    Raised into the error channel of the store, never into the mutation
    that caused the write.
    """

    def __init__(self, key: str, cause: BaseException) -> None:
        super().__init__(f"Failed to persist '{key}': {cause}")
        self.key = key
        self.cause = cause
