"""Application service: the reminder sweep.

Finds every due reminder and fires each one in its own unit of work, so a
failure on one reminder rolls back only that reminder.  Sweeps are
serialised: a second call waits until the running one has finished.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime

from crm.application.clock import Clock, utcnow
from crm.domain.repository.unit_of_work import UnitOfWorkFactory
from crm.domain.service.notification_emitter import NotificationEmitter
from crm.domain.service.reminder_scheduler import OUTCOME_CANCELLED, ReminderScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepFailure:
    reminder_id: int
    error: str


@dataclass(frozen=True)
class SweepResult:
    total: int
    processed: int
    cancelled: int
    failed: int
    failures: list[SweepFailure] = field(default_factory=list)


class SweepDriver:

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utcnow) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._lock = threading.Lock()

    def run_sweep(self, now: datetime | None = None) -> SweepResult:
        with self._lock:
            return self._sweep(now or self._clock())

    def _sweep(self, now: datetime) -> SweepResult:
        with self._uow_factory() as uow:
            due_ids = [r.id for r in uow.reminders.find_due(now)]

        logger.info("Reminder sweep at %s: %d due", now.isoformat(), len(due_ids))

        processed = cancelled = 0
        failures: list[SweepFailure] = []
        for reminder_id in due_ids:
            try:
                with self._uow_factory() as uow:
                    scheduler = ReminderScheduler(
                        uow.reminders,
                        uow.calculations,
                        NotificationEmitter(uow.notifications),
                    )
                    fired = scheduler.fire(reminder_id, now)
                    uow.commit()
            except Exception as exc:
                logger.exception("Reminder #%s failed during sweep", reminder_id)
                failures.append(SweepFailure(reminder_id=reminder_id, error=str(exc)))
                continue

            if fired.outcome == OUTCOME_CANCELLED:
                cancelled += 1
            else:
                processed += 1

        summary = SweepResult(
            total=len(due_ids),
            processed=processed,
            cancelled=cancelled,
            failed=len(failures),
            failures=failures,
        )
        logger.info(
            "Reminder sweep done: %d total, %d processed, %d cancelled, %d failed",
            summary.total,
            summary.processed,
            summary.cancelled,
            summary.failed,
        )
        return summary
