from __future__ import annotations

from typing import Callable, Protocol, TypeVar

D = TypeVar("D")
R = TypeVar("R")


class DocumentStore(Protocol[D]):
    """
    Minimal DB-friendly interface: a single JSON-like document persisted under a key.
    """

    def load(self) -> D:
        """Load and return the full document (never None)."""
        ...

    def save(self, doc: D) -> bool:
        """Persist the full document atomically. Returns False if the write failed."""
        ...

    def ensure(self) -> bool:
        """Create the empty document if nothing is stored yet."""
        ...

    def update(self, fn: Callable[[D], tuple[D | None, R]]) -> tuple[R, bool]:
        """
        Run load -> fn -> save as one exclusive unit.

        fn returns (new_doc, result); new_doc=None skips the write.
        Returns (result, saved) where saved is False only when a write was attempted and failed.
        """
        ...

