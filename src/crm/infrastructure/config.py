"""Runtime settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import time, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from crm.domain.exceptions import ValidationError
from crm.domain.model.reminder import DEFAULT_FREQUENCY_DAYS, DEFAULT_MAX_REMINDERS

DEFAULT_SWEEP_TIMES = "09:00,13:00,17:00"
DEFAULT_PURGE_TIME = "02:00"

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


def parse_time(value: str) -> time:
    """Parse ``HH:MM`` into a ``datetime.time``."""
    try:
        hours, minutes = value.strip().split(":")
        return time(int(hours), int(minutes))
    except ValueError as exc:
        raise ValidationError(f"Invalid time '{value}', expected HH:MM") from exc


def parse_times(value: str) -> tuple[time, ...]:
    times = sorted({parse_time(part) for part in value.split(",") if part.strip()})
    if not times:
        raise ValidationError("At least one sweep time is required")
    return tuple(times)


def parse_timezone(value: str | None) -> tzinfo | None:
    """An IANA zone name such as ``Europe/Moscow``; empty means local time."""
    if not value or not value.strip():
        return None
    try:
        return ZoneInfo(value.strip())
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f"Unknown time zone '{value}'") from exc


def _positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer, got '{raw}'") from exc
    if value <= 0:
        raise ValidationError(f"{name} must be positive")
    return value


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    sweep_times: tuple[time, ...] = field(default_factory=lambda: parse_times(DEFAULT_SWEEP_TIMES))
    purge_time: time = field(default_factory=lambda: parse_time(DEFAULT_PURGE_TIME))
    timezone: tzinfo | None = None
    log_level: str = "WARNING"
    follow_up_days: int = DEFAULT_FREQUENCY_DAYS
    max_reminders: int = DEFAULT_MAX_REMINDERS

    @property
    def store_path(self) -> Path:
        return self.data_dir / "crm.json"

    @staticmethod
    def from_env(environ: dict[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        return Settings(
            data_dir=Path(env.get("CRM_DATA_DIR", str(DEFAULT_DATA_DIR))),
            sweep_times=parse_times(env.get("CRM_SWEEP_TIMES", DEFAULT_SWEEP_TIMES)),
            purge_time=parse_time(env.get("CRM_PURGE_TIME", DEFAULT_PURGE_TIME)),
            timezone=parse_timezone(env.get("CRM_TIMEZONE")),
            log_level=env.get("CRM_LOG_LEVEL", "WARNING").upper(),
            follow_up_days=_positive_int(
                "CRM_FOLLOW_UP_DAYS", env.get("CRM_FOLLOW_UP_DAYS", str(DEFAULT_FREQUENCY_DAYS))
            ),
            max_reminders=_positive_int(
                "CRM_MAX_REMINDERS", env.get("CRM_MAX_REMINDERS", str(DEFAULT_MAX_REMINDERS))
            ),
        )
