"""Domain services."""

from .base import Service
from .counter_buffer_service import CounterBufferService
from .reconciliation_service import (
    KeyOutcome,
    ReconciliationReport,
    ReconciliationService,
)

__all__ = [
    "CounterBufferService",
    "KeyOutcome",
    "ReconciliationReport",
    "ReconciliationService",
    "Service",
]
