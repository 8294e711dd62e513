"""Autonomous suggestion generation schedule."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Set

logger = logging.getLogger(__name__)


class AutoGenerationScheduler:
    """Runs a coroutine on a fixed interval until stopped.

    Stopping only prevents future runs; a run already in progress is
    allowed to finish.
    """

    def __init__(
        self,
        job: Callable[[], Awaitable[Any]],
        interval: float = 300.0,
        name: str = "auto-generation",
    ):
        self.job = job
        self.interval = interval
        self.name = name
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._draining: Set[asyncio.Task] = set()
        self.runs = 0
        self.last_run_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

    def start(self) -> None:
        """Start the schedule, restarting it if it is already running.

        Must be called from within a running event loop.
        """
        loop = asyncio.get_running_loop()
        if self.is_running():
            logger.info(f"Restarting {self.name} schedule")
            self.stop()

        stop_event = asyncio.Event()
        self._stop_event = stop_event
        self._task = loop.create_task(self._loop(stop_event), name=self.name)
        logger.info(f"⏰ {self.name} scheduled every {self.interval:.0f}s")

    def stop(self) -> None:
        """Prevent further runs without interrupting one in progress."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._task is not None and not self._task.done():
            # Keep a reference until an in-flight run finishes
            self._draining.add(self._task)
            self._task.add_done_callback(self._draining.discard)
        self._stop_event = None
        self._task = None
        logger.info(f"🛑 {self.name} stopped")

    async def shutdown(self) -> None:
        """Stop and wait for an in-flight run to finish."""
        self.stop()
        if self._draining:
            await asyncio.gather(*list(self._draining), return_exceptions=True)

    def is_running(self) -> bool:
        return (
            self._task is not None
            and not self._task.done()
            and self._stop_event is not None
            and not self._stop_event.is_set()
        )

    def status(self) -> Dict[str, Any]:
        return {
            "running": self.is_running(),
            "interval_seconds": self.interval,
            "runs": self.runs,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_error": self.last_error,
        }

    async def _loop(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
                break
            except asyncio.TimeoutError:
                pass
            await self.run_once()

    async def run_once(self) -> None:
        """Run the job once, logging rather than propagating failures."""
        self.runs += 1
        self.last_run_at = datetime.now(timezone.utc)
        try:
            logger.info(f"Running scheduled {self.name}...")
            await self.job()
            self.last_error = None
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Scheduled {self.name} failed: {e}")
