"""Tests for environment-driven settings."""

from datetime import time
from pathlib import Path

import pytest

from crm.domain.exceptions import ValidationError
from crm.infrastructure.config import Settings, parse_time, parse_times


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.sweep_times == (time(9), time(13), time(17))
        assert settings.purge_time == time(2)
        assert settings.follow_up_days == 3
        assert settings.max_reminders == 10
        assert settings.log_level == "WARNING"

    def test_overrides(self, tmp_path):
        settings = Settings.from_env(
            {
                "CRM_DATA_DIR": str(tmp_path),
                "CRM_SWEEP_TIMES": "18:30, 08:00",
                "CRM_PURGE_TIME": "03:15",
                "CRM_LOG_LEVEL": "debug",
                "CRM_FOLLOW_UP_DAYS": "5",
                "CRM_MAX_REMINDERS": "4",
            }
        )
        assert settings.store_path == Path(tmp_path) / "crm.json"
        assert settings.sweep_times == (time(8), time(18, 30))
        assert settings.purge_time == time(3, 15)
        assert settings.log_level == "DEBUG"
        assert (settings.follow_up_days, settings.max_reminders) == (5, 4)

    def test_time_zone(self):
        assert Settings.from_env({}).timezone is None
        settings = Settings.from_env({"CRM_TIMEZONE": "Europe/Moscow"})
        assert settings.timezone.key == "Europe/Moscow"

    def test_unknown_time_zone_rejected(self):
        with pytest.raises(ValidationError, match="Unknown time zone"):
            Settings.from_env({"CRM_TIMEZONE": "Mars/Olympus"})

    def test_non_positive_follow_up_rejected(self):
        with pytest.raises(ValidationError, match="CRM_FOLLOW_UP_DAYS must be positive"):
            Settings.from_env({"CRM_FOLLOW_UP_DAYS": "0"})


class TestParseTime:

    @pytest.mark.parametrize("value", ["9", "25:00", "noon"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError, match="expected HH:MM"):
            parse_time(value)

    def test_empty_list_rejected(self):
        with pytest.raises(ValidationError, match="At least one"):
            parse_times(" , ")
