"""Unit tests for the Calculation aggregate and its metrics."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from crm.domain.exceptions import ValidationError
from crm.domain.model.calculation import (
    Calculation,
    CalculationStatus,
    CostBreakdown,
    ProfitabilityMetrics,
)

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _make_calculation(**costs) -> Calculation:
    return Calculation(
        id=1,
        name="Oxygen 40L",
        client_id="c-1",
        client_name="Acme",
        owner_id="manager-1",
        costs=CostBreakdown.from_mapping(costs),
    )


class TestCostBreakdown:

    def test_from_mapping_coerces_strings(self):
        costs = CostBreakdown.from_mapping({"gas_cost": "100.5", "quantity": 2})
        assert costs.gas_cost == Decimal("100.5")
        assert costs.quantity == Decimal("2")
        assert costs.vat_percent == Decimal("12")

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError, match="Unknown cost fields: fuel"):
            CostBreakdown.from_mapping({"fuel": "1"})

    def test_negative_cost_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            CostBreakdown.from_mapping({"gas_cost": "-1"})


class TestProfitabilityMetrics:

    def test_compute(self):
        metrics = ProfitabilityMetrics.compute(
            CostBreakdown.from_mapping(
                {"gas_cost": "600", "logistics_cost": "400", "price_per_unit": "150", "quantity": "10"}
            )
        )
        assert metrics.total_cost == Decimal("1000.00")
        assert metrics.total_sale_amount == Decimal("1500.00")
        assert metrics.gross_profit == Decimal("500.00")
        assert metrics.vat_amount == Decimal("60.00")
        assert metrics.income_tax_amount == Decimal("100.00")
        assert metrics.net_profit == Decimal("340.00")
        assert metrics.profitability_percent == Decimal("34.00")

    def test_zero_cost_gives_zero_percent(self):
        metrics = ProfitabilityMetrics.compute(CostBreakdown())
        assert metrics.profitability_percent == Decimal("0.00")


class TestCalculationLifecycle:

    def test_mark_sent_sets_reminder_fields(self):
        calc = _make_calculation()
        calc.mark_sent(now=NOW, next_reminder=NOW + timedelta(days=3))
        assert calc.status == CalculationStatus.SENT
        assert calc.sent_date == NOW
        assert calc.reminder_active is True
        assert calc.next_reminder_date == NOW + timedelta(days=3)

    def test_schedule_none_clears_flag(self):
        calc = _make_calculation()
        calc.mark_sent(now=NOW, next_reminder=NOW)
        calc.schedule_next_reminder(None)
        assert calc.reminder_active is False
        assert calc.next_reminder_date is None

    def test_resolve_requires_sent(self):
        calc = _make_calculation()
        with pytest.raises(ValidationError, match="has not been sent"):
            calc.resolve(accepted=True)

    def test_resolve_clears_reminders(self):
        calc = _make_calculation()
        calc.mark_sent(now=NOW, next_reminder=NOW)
        calc.resolve(accepted=False)
        assert calc.status == CalculationStatus.REJECTED
        assert calc.reminder_active is False

    def test_reopen_only_from_rejected(self):
        calc = _make_calculation()
        with pytest.raises(ValidationError, match="Only rejected"):
            calc.reopen()
        calc.mark_sent(now=NOW, next_reminder=NOW)
        calc.resolve(accepted=False)
        calc.reopen()
        assert calc.status == CalculationStatus.DRAFT
        assert calc.sent_date is None
