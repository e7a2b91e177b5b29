"""Domain service: Reminder Scheduler.

Owns the whole lifecycle of follow-up reminders: arming the first one when
a proposal goes out, firing and re-arming due reminders, and retiring them
once the proposal is resolved.  No other component changes a reminder's
status.

The scheduler works on the repositories of the caller's unit of work; it
never commits.  How often ``fire`` is called is decided elsewhere (see the
sweep driver).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from crm.domain.exceptions import EntityNotFoundError, ValidationError
from crm.domain.model.calculation import Calculation
from crm.domain.model.reminder import (
    DEFAULT_FREQUENCY_DAYS,
    DEFAULT_MAX_REMINDERS,
    Reminder,
    ReminderKind,
)
from crm.domain.model.value_objects import RelatedRef, RelatedType
from crm.domain.repository.calculation_repository import CalculationRepository
from crm.domain.repository.reminder_repository import ReminderRepository
from crm.domain.service.notification_emitter import (
    NotificationEmitter,
    ReminderContext,
)

logger = logging.getLogger(__name__)

OUTCOME_PROCESSED = "processed"
OUTCOME_CANCELLED = "cancelled"
REASON_MAX_REACHED = "max_reached"


@dataclass(frozen=True)
class FireResult:
    reminder_id: int
    outcome: str
    sent_count: int
    next_reminder_date: datetime | None = None
    reason: str | None = None


class ReminderScheduler:

    def __init__(
        self,
        reminder_repo: ReminderRepository,
        calculation_repo: CalculationRepository,
        emitter: NotificationEmitter,
    ) -> None:
        self._reminder_repo = reminder_repo
        self._calculation_repo = calculation_repo
        self._emitter = emitter

    # --- Arming ---------------------------------------------------------------

    def arm_follow_up(
        self,
        calculation: Calculation,
        owner_id: str,
        now: datetime,
        frequency_days: int = DEFAULT_FREQUENCY_DAYS,
        max_reminders: int = DEFAULT_MAX_REMINDERS,
    ) -> Reminder:
        """Create the first follow-up reminder for a sent proposal."""
        if calculation.id is None:
            raise ValidationError("Calculation must be saved before reminders are armed")

        related = RelatedRef.calculation(calculation.id)
        if self._reminder_repo.find_pending_for(related):
            raise ValidationError(
                f"Conflict: calculation '{calculation.name}' already has an active reminder"
            )

        client_name = calculation.client_name or "client"
        reminder = Reminder.create(
            owner_id=owner_id,
            related=related,
            kind=ReminderKind.FOLLOW_UP,
            title=f'Follow up with {client_name} on proposal "{calculation.name}"',
            description=(
                f'Proposal "{calculation.name}" was sent to {client_name}. '
                f"Contact the client to confirm its status."
            ),
            now=now,
            frequency_days=frequency_days,
            max_reminders=max_reminders,
        )
        self._reminder_repo.save(reminder)

        calculation.mark_sent(now=now, next_reminder=reminder.scheduled_date)
        self._calculation_repo.save(calculation)

        logger.info(
            "Follow-up reminder #%s armed for calculation #%s, first at %s",
            reminder.id,
            calculation.id,
            reminder.scheduled_date.isoformat(),
        )
        return reminder

    def create(
        self,
        owner_id: str,
        related: RelatedRef,
        kind: ReminderKind,
        title: str,
        now: datetime,
        description: str = "",
        scheduled_date: datetime | None = None,
        frequency_days: int = DEFAULT_FREQUENCY_DAYS,
        max_reminders: int = DEFAULT_MAX_REMINDERS,
    ) -> Reminder:
        """Create a reminder by hand; it fires first at *scheduled_date*
        (default: one frequency from now)."""
        if scheduled_date is not None and scheduled_date < now:
            raise ValidationError("Scheduled date cannot be in the past")

        reminder = Reminder.create(
            owner_id=owner_id,
            related=related,
            kind=kind,
            title=title,
            description=description,
            now=now,
            frequency_days=frequency_days,
            max_reminders=max_reminders,
            scheduled_date=scheduled_date,
        )
        calculation = None
        if related.kind is RelatedType.CALCULATION:
            if not related.id.isdigit():
                raise ValidationError(f"Invalid calculation id '{related.id}'")
            calculation = self._calculation_repo.get_by_id(int(related.id))
            if calculation is None:
                raise EntityNotFoundError(f"Calculation #{related.id} not found")
        self._reminder_repo.save(reminder)
        self._mirror(calculation)

        logger.info(
            "%s reminder #%s created for %s by %s, first at %s",
            kind.value,
            reminder.id,
            related,
            owner_id,
            reminder.scheduled_date.isoformat(),
        )
        return reminder

    def update(
        self,
        reminder_id: int,
        user_id: str,
        now: datetime,
        scheduled_date: datetime | None = None,
        title: str | None = None,
        description: str | None = None,
        frequency_days: int | None = None,
        max_reminders: int | None = None,
    ) -> Reminder:
        """Owner reschedules or edits a pending reminder."""
        reminder = self._owned(reminder_id, user_id)
        reminder.update(
            now,
            scheduled_date=scheduled_date,
            title=title,
            description=description,
            frequency_days=frequency_days,
            max_reminders=max_reminders,
        )
        self._reminder_repo.save(reminder)
        self._mirror(self._related_calculation(reminder, required=False))
        logger.info(
            "Reminder #%s updated by %s, next at %s",
            reminder_id,
            user_id,
            reminder.scheduled_date.isoformat(),
        )
        return reminder

    # --- Firing ---------------------------------------------------------------

    def fire(self, reminder_id: int, now: datetime) -> FireResult:
        """Deliver one due reminder and re-arm or retire it."""
        reminder = self._reminder_repo.get_by_id(reminder_id)
        if reminder is None:
            raise EntityNotFoundError(f"Reminder #{reminder_id} not found")
        if not reminder.is_due(now):
            raise ValidationError(
                f"Reminder #{reminder_id} is not due "
                f"(status {reminder.status.value}, scheduled {reminder.scheduled_date.isoformat()})"
            )

        calculation = self._related_calculation(reminder)

        if reminder.cap_reached:
            reminder.cancel()
            self._reminder_repo.save(reminder)
            self._mirror(calculation)
            logger.info(
                "Reminder #%s cancelled: %d of %d already sent",
                reminder_id,
                reminder.sent_count,
                reminder.max_reminders,
            )
            return FireResult(
                reminder_id=reminder_id,
                outcome=OUTCOME_CANCELLED,
                sent_count=reminder.sent_count,
                reason=REASON_MAX_REACHED,
            )

        occurrence = reminder.record_firing()
        next_date = reminder.next_date(now)
        context = ReminderContext(
            client_name=calculation.client_name if calculation else None,
            calculation_name=calculation.name if calculation else None,
        )
        self._emitter.emit(reminder, occurrence, context, now=now)

        if reminder.sent_count < reminder.max_reminders:
            reminder.rearm(next_date)
            scheduled = next_date
        else:
            reminder.complete()
            scheduled = None
        self._reminder_repo.save(reminder)
        self._mirror(calculation)

        logger.info(
            "Reminder #%s fired (%d/%d), next: %s",
            reminder_id,
            reminder.sent_count,
            reminder.max_reminders,
            scheduled.isoformat() if scheduled else "none",
        )
        return FireResult(
            reminder_id=reminder_id,
            outcome=OUTCOME_PROCESSED,
            sent_count=reminder.sent_count,
            next_reminder_date=scheduled,
        )

    # --- Retiring -------------------------------------------------------------

    def retire_all(self, related: RelatedRef) -> int:
        """Cancel every PENDING reminder for *related*.  Safe to repeat."""
        pending = self._reminder_repo.find_pending_for(related)
        for reminder in pending:
            reminder.cancel()
            self._reminder_repo.save(reminder)

        if related.kind is RelatedType.CALCULATION:
            calculation = self._calculation_repo.get_by_id(int(related.id))
            if calculation is not None and (
                calculation.reminder_active or calculation.next_reminder_date
            ):
                calculation.deactivate_reminders()
                self._calculation_repo.save(calculation)

        if pending:
            logger.info("Retired %d reminder(s) for %s", len(pending), related)
        return len(pending)

    def cancel(self, reminder_id: int, user_id: str) -> Reminder:
        """Owner cancels a single reminder."""
        reminder = self._owned(reminder_id, user_id)
        reminder.cancel()
        self._reminder_repo.save(reminder)
        self._mirror(self._related_calculation(reminder, required=False))
        logger.info("Reminder #%s cancelled by %s", reminder_id, user_id)
        return reminder

    def complete(self, reminder_id: int, user_id: str) -> Reminder:
        """Owner marks a reminder as done."""
        reminder = self._owned(reminder_id, user_id)
        reminder.complete()
        self._reminder_repo.save(reminder)
        self._mirror(self._related_calculation(reminder, required=False))
        logger.info("Reminder #%s completed by %s", reminder_id, user_id)
        return reminder

    # --- Internal helpers -----------------------------------------------------

    def _owned(self, reminder_id: int, user_id: str) -> Reminder:
        reminder = self._reminder_repo.get_by_id(reminder_id)
        if reminder is None or reminder.owner_id != user_id:
            raise EntityNotFoundError(f"Reminder #{reminder_id} not found or access denied")
        return reminder

    def _related_calculation(self, reminder: Reminder, required: bool = True) -> Calculation | None:
        if reminder.related.kind is not RelatedType.CALCULATION:
            return None
        calculation = self._calculation_repo.get_by_id(int(reminder.related.id))
        if calculation is None and required:
            raise EntityNotFoundError(
                f"Calculation #{reminder.related.id} for reminder #{reminder.id} not found"
            )
        return calculation

    def _mirror(self, calculation: Calculation | None) -> None:
        """Copy the earliest pending reminder date onto the calculation."""
        if calculation is None:
            return
        pending = self._reminder_repo.find_pending_for(RelatedRef.calculation(calculation.id))
        calculation.schedule_next_reminder(min((r.scheduled_date for r in pending), default=None))
        self._calculation_repo.save(calculation)
