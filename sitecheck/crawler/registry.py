"""Thread-safe uniqueness registries shared by the crawl tasks of one run."""

from __future__ import annotations

from threading import Lock
from typing import Iterator


class DedupSet:
    """A hash set whose check-and-insert is a single atomic step.

    Concurrent tasks call :meth:`add` and only the first caller for a given
    key gets ``True`` back, so exactly one task ever "owns" each URL.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._items: set[str] = set()

    def add(self, key: str) -> bool:
        """Register *key*; return ``True`` if it was not already present."""
        with self._lock:
            if key in self._items:
                return False
            self._items.add(key)
            return True

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(sorted(self._items))


class Registries:
    """The two registries a run needs: visited pages and discovered links."""

    def __init__(self) -> None:
        self.pages = DedupSet()
        self.links = DedupSet()
