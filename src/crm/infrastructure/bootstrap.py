"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from crm.application.notification_inbox import NotificationInbox
from crm.application.request_transition import RequestTransitionHandler
from crm.application.run_sweep import SweepDriver
from crm.domain.repository.unit_of_work import UnitOfWorkFactory
from crm.infrastructure.config import Settings
from crm.infrastructure.persistence.json_store import JsonStore
from crm.infrastructure.persistence.json_unit_of_work import JsonUnitOfWork
from crm.infrastructure.scheduling.daily_scheduler import (
    DailySweepScheduler,
    ScheduledJob,
)


def unit_of_work_factory(settings: Settings) -> UnitOfWorkFactory:
    store = JsonStore(settings.store_path)
    return lambda: JsonUnitOfWork(store)


def request_transition_handler(settings: Settings) -> RequestTransitionHandler:
    return RequestTransitionHandler(
        unit_of_work_factory(settings),
        follow_up_days=settings.follow_up_days,
        max_reminders=settings.max_reminders,
    )


def sweep_driver(settings: Settings) -> SweepDriver:
    return SweepDriver(unit_of_work_factory(settings))


def notification_inbox(settings: Settings) -> NotificationInbox:
    return NotificationInbox(unit_of_work_factory(settings))


def daily_scheduler(settings: Settings) -> DailySweepScheduler:
    driver = sweep_driver(settings)
    inbox = notification_inbox(settings)
    return DailySweepScheduler(
        [
            ScheduledJob("reminder-sweep", driver.run_sweep, settings.sweep_times),
            ScheduledJob("notification-purge", inbox.purge, (settings.purge_time,)),
        ],
        timezone=settings.timezone,
    )
