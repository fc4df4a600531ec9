# archdoc/document_locks.py

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List


class DocumentLockRegistry:
    """
    Process-local registry of per-document locks.

    - One re-entrant lock per project_id, created on first use.
    - Writers to the same document inside this process are serialized;
      writers to different documents never wait on each other.
    - Cross-process safety comes from the version check in the store, not from here.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}

    def lock_for(self, project_id: str) -> threading.RLock:
        key = str(project_id)
        with self._lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def held(self, project_id: str) -> Iterator[None]:
        lock = self.lock_for(project_id)
        with lock:
            yield

    def forget(self, project_id: str) -> None:
        with self._lock:
            self._locks.pop(str(project_id), None)

    def snapshot(self) -> List[str]:
        """
        Return the project ids that currently have a lock.
        """
        with self._lock:
            return list(self._locks)


# Global, process-local singleton
DOCUMENT_LOCKS = DocumentLockRegistry()
