"""
Error taxonomy for the recipe store.

StorageError and FormatError are raised by the low-level JSON helpers and absorbed by
the document stores (empty document on read, False on write). UpstreamError reaches the
caller of get_or_fetch; ValueError is raised for caller mistakes such as a favorite record
without an identifier. Absence is never an error: lookups return None/False.
"""

from __future__ import annotations

from typing import Any


class StoreError(Exception):
    """Base class for recipe store errors.

    Attributes:
        message: Human-readable error message.
        context: Structured context for logging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class StorageError(StoreError):
    """The backing file could not be read or written."""


class FormatError(StoreError):
    """The backing file exists but does not hold the expected document shape."""


class UpstreamError(StoreError):
    """The fetch function passed to get_or_fetch failed.

    The original exception is chained as __cause__. Nothing is written to the cache.
    """

    def __init__(self, key: str, message: str = "upstream fetch failed") -> None:
        super().__init__(message, {"key": key})
        self.key = key
