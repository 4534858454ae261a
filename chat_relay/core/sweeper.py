import asyncio
import logging
from typing import Optional

from chat_relay.core.metrics import metrics
from chat_relay.core.session_store import SessionStore

logger = logging.getLogger(__name__)


class SessionSweeper:
    """Background task that evicts idle sessions every ``interval`` seconds."""

    def __init__(self, store: SessionStore, ttl_sec: float, interval_sec: Optional[float] = None) -> None:
        self._store = store
        self._ttl = max(0.0, ttl_sec)
        self._interval = max(0.01, interval_sec if interval_sec is not None else ttl_sec)
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._sweep_loop())
            logger.info("session sweeper started ttl_sec=%s interval_sec=%s", self._ttl, self._interval)

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        self._task = None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("session sweeper stopped")

    def sweep_once(self) -> int:
        removed = self._store.sweep_expired(self._ttl)
        if removed:
            metrics.inc("chat_sessions_swept_total", value=removed)
        return removed

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.sweep_once()
            except Exception:
                logger.exception("session sweep failed")
