"""Periodic sweep of expired verification challenges.

Runs ``VerificationManager.sweep_expired`` on a fixed interval in its own task,
independent of message traffic. Handles lifecycle (start/shutdown) and keeps
one failed sweep from stopping the next.
"""

from __future__ import annotations

import asyncio

from groupwarden.datatypes.verification_datatypes import SweepReport
from groupwarden.util.logger import get_logger
from groupwarden.verification.verification_manager import VerificationManager

logger = get_logger("expiry_sweeper")


class ExpirySweeper:
    """
    Background task that removes participants whose challenge expired.

    Args:
        manager: The verification state machine to sweep.
        interval: Seconds between sweeps.
    """

    def __init__(self, manager: VerificationManager, interval: float = 60.0) -> None:
        self._manager = manager
        self._interval = interval
        self._task: asyncio.Task | None = None
        self.last_report: SweepReport | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> SweepReport | None:
        """Run a single sweep; errors are logged and yield None."""
        try:
            report = await self._manager.sweep_expired()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("[SWEEPER] Unexpected error during sweep: %s", exc)
            return None
        self.last_report = report
        return report

    async def _run_loop(self) -> None:
        """Infinite loop: sweep, sleep, repeat."""
        logger.info("[SWEEPER] Starting expiry sweeps (interval=%.1fs)", self._interval)
        try:
            while True:
                await self.sweep_once()
                await asyncio.sleep(self._interval)
        except asyncio.CancelledError:
            logger.info("[SWEEPER] Expiry sweeps cancelled")
            raise

    def start(self) -> None:
        """Start the background task if not already running."""
        if self.is_running:
            logger.warning("[SWEEPER] Sweep task already running")
            return
        self._task = asyncio.create_task(self._run_loop(), name="groupwarden-expiry-sweeper")

    async def shutdown(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("[SWEEPER] Sweeper shutdown complete")
