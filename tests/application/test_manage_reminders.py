"""Integration tests for a manager's reminder list and manual actions."""

from datetime import datetime, timedelta, timezone

import pytest

from crm.application.manage_reminders import (
    CancelReminderHandler,
    CompleteReminderHandler,
    CreateReminderHandler,
    ListRemindersHandler,
    ReminderStatsHandler,
    UpdateReminderHandler,
)
from crm.domain.exceptions import EntityNotFoundError, ValidationError
from crm.domain.model.reminder import Reminder, ReminderKind, ReminderStatus
from crm.domain.model.value_objects import RelatedRef
from tests.fakes import FakeClock, FakeUnitOfWork

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _setup():
    uow = FakeUnitOfWork()
    for days, owner in ((2, "manager-1"), (1, "manager-1"), (1, "manager-2")):
        uow.reminders.save(
            Reminder.create(
                owner_id=owner,
                related=RelatedRef.order(1),
                kind=ReminderKind.CALL_CLIENT,
                title=f"Call in {days} day(s)",
                now=NOW,
                frequency_days=days,
            )
        )
    return uow


class TestListReminders:

    def test_own_reminders_by_date(self):
        uow = _setup()
        page = ListRemindersHandler(uow).handle("manager-1")
        assert [r.title for r in page.items] == ["Call in 1 day(s)", "Call in 2 day(s)"]
        assert page.total == 2

    def test_status_filter(self):
        uow = _setup()
        CancelReminderHandler(uow).handle(1, "manager-1")
        page = ListRemindersHandler(uow).handle("manager-1", status="cancelled")
        assert [r.id for r in page.items] == [1]

    def test_unknown_status(self):
        uow = _setup()
        with pytest.raises(ValidationError, match="Unknown reminder status"):
            ListRemindersHandler(uow).handle("manager-1", status="LOST")


class TestManualActions:

    def test_complete(self):
        uow = _setup()
        dto = CompleteReminderHandler(uow).handle(2, "manager-1")
        assert dto.status == "COMPLETED"
        assert uow.reminders.get_by_id(2).status == ReminderStatus.COMPLETED

    def test_cannot_touch_someone_elses_reminder(self):
        uow = _setup()
        with pytest.raises(EntityNotFoundError):
            CancelReminderHandler(uow).handle(3, "manager-1")
        assert uow.reminders.get_by_id(3).status == ReminderStatus.PENDING

    def test_completed_reminder_cannot_be_cancelled(self):
        uow = _setup()
        CompleteReminderHandler(uow).handle(1, "manager-1")
        with pytest.raises(ValidationError, match="already completed"):
            CancelReminderHandler(uow).handle(1, "manager-1")
        assert uow.reminders.find_due(NOW + timedelta(days=5))[0].id == 2


class TestCreateAndReschedule:

    def test_create_for_an_order(self):
        uow = _setup()
        dto = CreateReminderHandler(uow, FakeClock(NOW)).handle(
            "manager-1",
            "order",
            "12",
            "send_documents",
            "Send the invoice",
            scheduled_date=NOW + timedelta(hours=2),
            max_reminders=2,
        )
        stored = uow.reminders.get_by_id(dto.id)
        assert stored.kind == ReminderKind.SEND_DOCUMENTS
        assert stored.related == RelatedRef.order(12)
        assert stored.max_reminders == 2
        assert dto.related == "ORDER:12"

    @pytest.mark.parametrize(
        "related_type, kind, message",
        [
            ("PLANET", "CUSTOM", "Unknown related type"),
            ("ORDER", "DANCE", "Unknown reminder kind"),
        ],
    )
    def test_create_rejects_unknown_names(self, related_type, kind, message):
        uow = _setup()
        with pytest.raises(ValidationError, match=message):
            CreateReminderHandler(uow, FakeClock(NOW)).handle(
                "manager-1", related_type, "1", kind, "Title"
            )

    def test_reschedule_moves_due_date(self):
        uow = _setup()
        later = NOW + timedelta(days=9)
        dto = UpdateReminderHandler(uow, FakeClock(NOW)).handle(
            1, "manager-1", scheduled_date=later, title="Call Acme"
        )
        assert dto.title == "Call Acme"
        assert uow.reminders.get_by_id(1).scheduled_date == later
        assert [r.id for r in uow.reminders.find_due(NOW + timedelta(days=5))] == [2, 3]

    def test_reschedule_needs_a_change(self):
        uow = _setup()
        with pytest.raises(ValidationError, match="Nothing to update"):
            UpdateReminderHandler(uow, FakeClock(NOW)).handle(1, "manager-1")


class TestReminderStats:

    def test_counts_overdue_and_upcoming(self):
        uow = _setup()
        CancelReminderHandler(uow).handle(2, "manager-1")
        uow.reminders.save(
            Reminder.create(
                owner_id="manager-1",
                related=RelatedRef.order(2),
                kind=ReminderKind.CUSTOM,
                title="Long ago",
                now=NOW - timedelta(days=10),
                frequency_days=1,
            )
        )

        stats = ReminderStatsHandler(uow, FakeClock(NOW)).handle("manager-1")

        assert (stats.total, stats.pending, stats.overdue) == (3, 2, 1)
        assert stats.by_kind["CALL_CLIENT"] == 1
        assert stats.by_kind["CUSTOM"] == 1
        assert stats.by_kind["FOLLOW_UP"] == 0
        assert [r.title for r in stats.upcoming] == ["Call in 2 day(s)"]
