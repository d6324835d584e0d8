import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class SessionRecord:
    """A pending conversational continuation for one author in one chat."""

    author_id: int
    chat_id: int
    state_id: int
    data: str = ""


class SessionStoreError(Exception):
    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"session store {operation} failed: {message}")


class SessionStore(ABC):
    """Keyed storage of SessionRecords by (author_id, chat_id).

    Implementations must be safe for concurrent use from request threads
    and raise SessionStoreError when the backing storage is unavailable.
    """

    @abstractmethod
    def set(self, author_id: int, chat_id: int, state_id: int, data: str = "") -> None:
        """Insert or replace the session for (author_id, chat_id)."""

    @abstractmethod
    def get(self, author_id: int, chat_id: int) -> Optional[SessionRecord]:
        """Return the current session, or None when there is none."""

    @abstractmethod
    def delete(self, author_id: int, chat_id: int) -> None:
        """Remove the session; deleting a missing key is a no-op."""

    def take(self, author_id: int, chat_id: int) -> Optional[SessionRecord]:
        """Return the current session and delete it.

        The record is gone before the caller sees it. Backends that can do
        both in one step override this so concurrent callers never receive
        the same record twice.
        """
        record = self.get(author_id, chat_id)
        if record is not None:
            self.delete(author_id, chat_id)
        return record


class ReadWriteLock:
    """Many concurrent readers or a single writer; writers are not starved."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class MemorySessionStore(SessionStore):
    """Process-local session store guarded by one reader/writer lock."""

    def __init__(self):
        self._sessions: dict[tuple[int, int], SessionRecord] = {}
        self._lock = ReadWriteLock()

    def set(self, author_id: int, chat_id: int, state_id: int, data: str = "") -> None:
        record = SessionRecord(author_id=author_id, chat_id=chat_id, state_id=state_id, data=data)
        with self._lock.write_locked():
            self._sessions[(author_id, chat_id)] = record

    def get(self, author_id: int, chat_id: int) -> Optional[SessionRecord]:
        with self._lock.read_locked():
            return self._sessions.get((author_id, chat_id))

    def delete(self, author_id: int, chat_id: int) -> None:
        with self._lock.write_locked():
            self._sessions.pop((author_id, chat_id), None)

    def take(self, author_id: int, chat_id: int) -> Optional[SessionRecord]:
        with self._lock.write_locked():
            return self._sessions.pop((author_id, chat_id), None)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._sessions)
