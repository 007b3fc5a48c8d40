"""Background scheduler driving the expiry jobs on a fixed cadence."""
import asyncio
import logging
from typing import Awaitable, Callable

from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from app.services import expiry_service

logger = logging.getLogger(__name__)


class ExpiryScheduler:
    """Runs the countdown tick and the expired-group sweep as two asyncio tasks.

    Each invocation opens its own session from ``session_factory`` and runs in
    the thread pool. Failures are logged and the loop keeps its cadence until
    ``stop()``. ``run_tick_job`` / ``run_sweep_job`` run a single invocation
    synchronously, which is how tests simulate the passage of minutes.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        tick_seconds: float = 60.0,
        sweep_seconds: float = 60.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.session_factory = session_factory
        self.tick_seconds = tick_seconds
        self.sweep_seconds = sweep_seconds
        self._sleep = sleep
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def run_tick_job(self) -> list[str]:
        return self._run(expiry_service.tick_countdowns)

    def run_sweep_job(self) -> list[str]:
        return self._run(expiry_service.sweep_expired_groups)

    def _run(self, job: Callable[[Session], list[str]]) -> list[str]:
        db = self.session_factory()
        try:
            return job(db)
        finally:
            db.close()

    async def _loop(self, name: str, period: float, job: Callable[[], list[str]]) -> None:
        logger.info("Expiry job '%s' scheduled every %.1fs", name, period)
        while True:
            await self._sleep(period)
            try:
                await run_in_threadpool(job)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Expiry job '%s' failed", name)

    def start(self) -> None:
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._loop("tick", self.tick_seconds, self.run_tick_job)),
            asyncio.create_task(self._loop("sweep", self.sweep_seconds, self.run_sweep_job)),
        ]

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        logger.info("Expiry scheduler stopped")
