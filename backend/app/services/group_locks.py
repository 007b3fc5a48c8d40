"""Per-group mutual exclusion for read-modify-write on group records.

Routes run in FastAPI's thread pool and the expiry jobs run in worker
threads too, so every mutation of a group's membership or expiry state
happens while holding that group's lock.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class GroupLockRegistry:
    """Hands out one lock per group name.

    An entry lives only while some thread holds or waits on it, so names
    that are never held again (deleted groups, made-up names) leave nothing
    behind.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    def is_held(self, group_name: str) -> bool:
        with self._guard:
            entry = self._entries.get(group_name)
            return entry is not None and entry.lock.locked()

    @contextmanager
    def hold(self, *group_names: str) -> Iterator[None]:
        """Hold the locks of every named group.

        Locks are taken in sorted order so two multi-group holds (renames)
        can never wait on each other.
        """
        names = sorted(set(group_names))
        with self._guard:
            entries = []
            for name in names:
                entry = self._entries.get(name)
                if entry is None:
                    entry = self._entries[name] = _Entry()
                entry.holders += 1
                entries.append(entry)

        acquired = []
        try:
            for entry in entries:
                entry.lock.acquire()
                acquired.append(entry)
            yield
        finally:
            for entry in reversed(acquired):
                entry.lock.release()
            with self._guard:
                for name, entry in zip(names, entries):
                    entry.holders -= 1
                    if entry.holders == 0:
                        del self._entries[name]


group_locks = GroupLockRegistry()
