"""Background worker running counter reconciliation on a fixed delay."""

import asyncio
from typing import Optional

import logfire

from imguru.domain.service import ReconciliationReport, ReconciliationService


class ReconciliationWorker:
    """Runs ReconciliationService.reconcile periodically.

    Passes never overlap: a pass requested while another is running is
    skipped. The delay is measured from the end of one pass to the start
    of the next.
    """

    def __init__(
        self,
        reconciliation_service: ReconciliationService,
        interval_seconds: float,
        flush_on_shutdown: bool = True,
    ) -> None:
        """Initialize the worker.

        Args:
            reconciliation_service: Service performing one pass
            interval_seconds: Delay between passes
            flush_on_shutdown: Run a final pass in stop()
        """
        self.reconciliation_service = reconciliation_service
        self.interval_seconds = interval_seconds
        self.flush_on_shutdown = flush_on_shutdown
        self.running = False
        self.task: Optional[asyncio.Task] = None
        self._pass_lock = asyncio.Lock()

    async def start(self) -> None:
        """Start the periodic loop."""
        if self.running:
            logfire.warn("Reconciliation worker already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._run_scheduler())
        logfire.info(
            "Reconciliation worker started", interval_seconds=self.interval_seconds
        )

    async def stop(self) -> None:
        """Stop the loop, optionally draining the buffer one last time."""
        if not self.running:
            return

        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None

        if self.flush_on_shutdown:
            try:
                await self.run_once()
            except Exception as e:
                logfire.exception(
                    "Final reconciliation pass crashed",
                    error=str(e),
                    error_type=type(e).__name__,
                )

        logfire.info("Reconciliation worker stopped")

    async def run_once(self) -> Optional[ReconciliationReport]:
        """Run one pass unless one is already in progress.

        Returns:
            The pass report, or None if the pass was skipped
        """
        if self._pass_lock.locked():
            logfire.warn("Reconciliation pass still running, tick skipped")
            return None

        async with self._pass_lock:
            return await self.reconciliation_service.reconcile()

    async def _run_scheduler(self) -> None:
        while self.running:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logfire.exception(
                    "Reconciliation pass crashed", error=str(e), error_type=type(e).__name__
                )
