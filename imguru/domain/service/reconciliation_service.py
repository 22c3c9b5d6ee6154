"""Reconciliation of buffered counters into the durable store.

One pass scans every outer key in the buffer and, for each metric in scope,
writes the buffered running total into the durable store as an absolute
value, then clears the entry.

Clearing uses compare-and-delete against the value just written. If reads
raised the entry in the meantime it is kept, and since it is an absolute
total the next pass writes the larger value. No increment is lost to the
gap between reading and clearing.

Keys are independent: a failed or slow durable write leaves that entry in
the buffer for the next pass and moves on. A buffer outage skips the pass
(or stops it where it is) without touching the durable store.
"""

import asyncio
from enum import Enum

import logfire
from pydantic import BaseModel

from imguru.domain.error import (
    BufferUnavailableError,
    DurableWriteError,
    MalformedBufferKeyError,
)
from imguru.domain.repository import CounterBuffer, CounterRepository
from imguru.domain.value import CounterKey

from .base import Service


class KeyOutcome(str, Enum):
    """Result of reconciling one counter key."""

    FLUSHED = "flushed"  # Written and cleared
    RETAINED = "retained"  # Written, entry grew meanwhile and was kept
    DISCARDED = "discarded"  # Entity no longer exists, entry cleared
    SKIPPED = "skipped"  # Nothing buffered for this metric


class ReconciliationReport(BaseModel):
    """Summary of one reconciliation pass."""

    scanned: int = 0
    flushed: int = 0
    retained: int = 0
    discarded: int = 0
    skipped: int = 0
    failed: int = 0
    malformed: int = 0
    buffer_unavailable: bool = False

    def record(self, outcome: KeyOutcome) -> None:
        """Count a per-key outcome."""
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)


class ReconciliationService(Service):
    """Drains the counter buffer into the durable store."""

    def __init__(
        self,
        counter_buffer: CounterBuffer,
        counter_repository: CounterRepository,
        metrics: list[str],
        operation_timeout_seconds: float,
    ) -> None:
        """Initialize reconciliation service.

        Args:
            counter_buffer: Buffer store holding pending totals
            counter_repository: Durable store receiving them
            metrics: Metric names in scope
            operation_timeout_seconds: Timeout for reconciling a single key
        """
        self.counter_buffer = counter_buffer
        self.counter_repository = counter_repository
        self.metrics = metrics
        self.operation_timeout_seconds = operation_timeout_seconds

    async def reconcile(self) -> ReconciliationReport:
        """Run one reconciliation pass.

        Returns:
            Report of what happened to each scanned key
        """
        report = ReconciliationReport()

        with logfire.span("reconciliation.reconcile", metrics=self.metrics):
            try:
                raw_keys = await self.counter_buffer.scan_keys()
            except BufferUnavailableError as e:
                logfire.warn(
                    "Counter buffer unavailable, reconciliation pass skipped",
                    error=str(e),
                )
                report.buffer_unavailable = True
                return report

            for raw_key in raw_keys:
                try:
                    keys = [
                        CounterKey.from_buffer_key(raw_key, metric)
                        for metric in self.metrics
                    ]
                except MalformedBufferKeyError as e:
                    logfire.warn("Skipping malformed counter key", key=raw_key, error=str(e))
                    report.malformed += 1
                    continue

                for key in keys:
                    report.scanned += 1
                    try:
                        outcome = await asyncio.wait_for(
                            self._reconcile_key(key),
                            timeout=self.operation_timeout_seconds,
                        )
                    except BufferUnavailableError as e:
                        logfire.warn(
                            "Counter buffer lost mid-pass, stopping reconciliation",
                            key=str(key),
                            error=str(e),
                        )
                        report.buffer_unavailable = True
                        return report
                    except MalformedBufferKeyError as e:
                        logfire.warn("Skipping malformed counter value", key=str(key), error=str(e))
                        report.malformed += 1
                        continue
                    except DurableWriteError as e:
                        logfire.error(
                            "Durable counter write failed, entry kept for retry",
                            key=str(key),
                            error=str(e),
                        )
                        report.failed += 1
                        continue
                    except asyncio.TimeoutError:
                        logfire.error(
                            "Counter reconciliation timed out, entry kept for retry",
                            key=str(key),
                            timeout_seconds=self.operation_timeout_seconds,
                        )
                        report.failed += 1
                        continue

                    report.record(outcome)

            logfire.info("Reconciliation pass complete", **report.model_dump())
            return report

    async def _reconcile_key(self, key: CounterKey) -> KeyOutcome:
        value = await self.counter_buffer.get(key)
        if value is None:
            return KeyOutcome.SKIPPED

        written = await self.counter_repository.set_count(
            key.entity_kind, key.entity_id, key.metric, value
        )
        if not written:
            await self.counter_buffer.delete(key)
            logfire.warn(
                "Counted entity no longer exists, buffered count discarded",
                key=str(key),
                value=value,
            )
            return KeyOutcome.DISCARDED

        if await self.counter_buffer.delete_if_equals(key, value):
            logfire.debug("Counter flushed", key=str(key), value=value)
            return KeyOutcome.FLUSHED

        logfire.debug("Counter grew during flush, kept for next pass", key=str(key), value=value)
        return KeyOutcome.RETAINED
