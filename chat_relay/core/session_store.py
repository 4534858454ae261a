from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(Role.ASSISTANT, content)

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class Session:
    user_id: str
    messages: list[Message] = field(default_factory=list)
    last_activity_at: float = 0.0


class _Entry:
    __slots__ = ("session", "lock", "removed")

    def __init__(self, session: Session) -> None:
        self.session = session
        self.lock = Lock()
        self.removed = False


class SessionStore:
    """In-memory conversation sessions keyed by user id.

    The mapping is guarded by a store-level lock; each session has its own
    lock that serialises its mutations. Sweeping takes the per-session lock
    before removal so a session is never dropped mid-update. Callers only
    ever receive copies of the stored state.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._sessions: dict[str, _Entry] = {}
        self._lock = Lock()

    def _entry(self, user_id: str) -> _Entry:
        with self._lock:
            entry = self._sessions.get(user_id)
            if entry is None:
                entry = _Entry(Session(user_id=user_id, last_activity_at=self._clock()))
                self._sessions[user_id] = entry
            return entry

    def _locked_entry(self, user_id: str) -> _Entry:
        # a sweep may remove the entry between lookup and lock; retry on a fresh one
        while True:
            entry = self._entry(user_id)
            entry.lock.acquire()
            if not entry.removed:
                return entry
            entry.lock.release()

    def get_or_create(self, user_id: str) -> Session:
        entry = self._locked_entry(user_id)
        try:
            return _copy(entry.session)
        finally:
            entry.lock.release()

    def append_message(self, user_id: str, message: Message) -> int:
        entry = self._locked_entry(user_id)
        try:
            entry.session.messages.append(message)
            entry.session.last_activity_at = self._clock()
            return len(entry.session.messages) - 1
        finally:
            entry.lock.release()

    def recent_history(self, user_id: str, n: int, end: Optional[int] = None) -> list[Message]:
        if n <= 0:
            return []
        with self._lock:
            entry = self._sessions.get(user_id)
        if entry is None:
            return []
        with entry.lock:
            messages = entry.session.messages
            stop = len(messages) if end is None else max(0, min(end, len(messages)))
            return list(messages[max(0, stop - n) : stop])

    def message_count(self, user_id: str) -> int:
        with self._lock:
            entry = self._sessions.get(user_id)
        if entry is None:
            return 0
        with entry.lock:
            return len(entry.session.messages)

    def sweep_expired(self, ttl: float) -> int:
        cutoff = self._clock() - ttl
        with self._lock:
            candidates = list(self._sessions.items())
        removed = 0
        for user_id, entry in candidates:
            with entry.lock:
                if entry.removed or entry.session.last_activity_at >= cutoff:
                    continue
                with self._lock:
                    if self._sessions.get(user_id) is entry:
                        del self._sessions[user_id]
                entry.removed = True
                removed += 1
        if removed:
            logger.info("session sweep removed=%s remaining=%s", removed, len(self))
        return removed

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def _copy(session: Session) -> Session:
    return Session(
        user_id=session.user_id,
        messages=list(session.messages),
        last_activity_at=session.last_activity_at,
    )
