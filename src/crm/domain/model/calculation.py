"""Calculation aggregate: a priced commercial proposal.

A calculation holds the cost breakdown behind a proposal and tracks
whether follow-up reminders are currently running for it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from crm.domain.exceptions import ValidationError

_HUNDRED = Decimal("100")
_CENT = Decimal("0.01")


class CalculationStatus(Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class CostBreakdown:
    """Inputs of a calculation.  All amounts are non-negative."""

    gas_cost: Decimal = Decimal("0")
    cylinder_cost: Decimal = Decimal("0")
    preparation_cost: Decimal = Decimal("0")
    logistics_cost: Decimal = Decimal("0")
    workers_cost: Decimal = Decimal("0")
    kickbacks_cost: Decimal = Decimal("0")
    price_per_unit: Decimal = Decimal("0")
    quantity: Decimal = Decimal("0")
    vat_percent: Decimal = Decimal("12")
    income_tax_percent: Decimal = Decimal("20")

    def __post_init__(self) -> None:
        for name, value in self.as_dict().items():
            if not isinstance(value, Decimal):
                raise ValidationError(f"{name} must be a Decimal")
            if value < 0:
                raise ValidationError(f"{name} cannot be negative")

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "gas_cost": self.gas_cost,
            "cylinder_cost": self.cylinder_cost,
            "preparation_cost": self.preparation_cost,
            "logistics_cost": self.logistics_cost,
            "workers_cost": self.workers_cost,
            "kickbacks_cost": self.kickbacks_cost,
            "price_per_unit": self.price_per_unit,
            "quantity": self.quantity,
            "vat_percent": self.vat_percent,
            "income_tax_percent": self.income_tax_percent,
        }

    @staticmethod
    def from_mapping(data: dict) -> CostBreakdown:
        """Build from loosely typed input (CLI options, stored JSON)."""
        known = CostBreakdown.__dataclass_fields__
        unknown = set(data) - set(known)
        if unknown:
            raise ValidationError(f"Unknown cost fields: {', '.join(sorted(unknown))}")
        try:
            values = {k: Decimal(str(v)) for k, v in data.items() if v is not None}
        except ArithmeticError as exc:
            raise ValidationError(f"Invalid cost value: {exc}") from exc
        return CostBreakdown(**values)


@dataclass(frozen=True)
class ProfitabilityMetrics:
    total_cost: Decimal
    total_sale_amount: Decimal
    gross_profit: Decimal
    vat_amount: Decimal
    income_tax_amount: Decimal
    net_profit: Decimal
    profitability_percent: Decimal

    @staticmethod
    def compute(costs: CostBreakdown) -> ProfitabilityMetrics:
        total_cost = (
            costs.gas_cost
            + costs.cylinder_cost
            + costs.preparation_cost
            + costs.logistics_cost
            + costs.workers_cost
            + costs.kickbacks_cost
        )
        total_sale = costs.price_per_unit * costs.quantity
        gross = total_sale - total_cost
        vat = gross * costs.vat_percent / _HUNDRED
        income_tax = gross * costs.income_tax_percent / _HUNDRED
        net = gross - vat - income_tax
        percent = net / total_cost * _HUNDRED if total_cost > 0 else Decimal("0")
        return ProfitabilityMetrics(
            total_cost=total_cost.quantize(_CENT),
            total_sale_amount=total_sale.quantize(_CENT),
            gross_profit=gross.quantize(_CENT),
            vat_amount=vat.quantize(_CENT),
            income_tax_amount=income_tax.quantize(_CENT),
            net_profit=net.quantize(_CENT),
            profitability_percent=percent.quantize(_CENT),
        )


@dataclass
class Calculation:
    """Aggregate root for proposals.

    Invariant: ``reminder_active`` is only true while the status is SENT.
    Whether a PENDING reminder exists is maintained by the reminder
    scheduler, which is the only caller of the reminder-flag methods.
    """

    id: int | None
    name: str
    client_id: str
    client_name: str
    owner_id: str
    costs: CostBreakdown
    order_id: int | None = None
    status: CalculationStatus = CalculationStatus.DRAFT
    sent_date: datetime | None = None
    reminder_active: bool = False
    next_reminder_date: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def metrics(self) -> ProfitabilityMetrics:
        return ProfitabilityMetrics.compute(self.costs)

    # --- Reminder bookkeeping -------------------------------------------------

    def mark_sent(self, now: datetime, next_reminder: datetime) -> None:
        if self.status not in (CalculationStatus.DRAFT, CalculationStatus.SENT):
            raise ValidationError(
                f"Calculation '{self.name}' is {self.status.value} and cannot be sent"
            )
        self.status = CalculationStatus.SENT
        self.sent_date = now
        self.reminder_active = True
        self.next_reminder_date = next_reminder

    def schedule_next_reminder(self, when: datetime | None) -> None:
        """Mirror the pending reminder's date, or clear it when none is left."""
        self.next_reminder_date = when
        self.reminder_active = when is not None and self.status == CalculationStatus.SENT

    def deactivate_reminders(self) -> None:
        self.reminder_active = False
        self.next_reminder_date = None

    # --- Resolution -----------------------------------------------------------

    def resolve(self, accepted: bool) -> None:
        if self.status != CalculationStatus.SENT:
            raise ValidationError(
                f"Calculation '{self.name}' has not been sent (status {self.status.value})"
            )
        self.status = CalculationStatus.ACCEPTED if accepted else CalculationStatus.REJECTED
        self.deactivate_reminders()

    def reopen(self) -> None:
        """Return a rejected proposal to draft so it can be revised and resent."""
        if self.status != CalculationStatus.REJECTED:
            raise ValidationError(
                f"Only rejected calculations can be reopened (status {self.status.value})"
            )
        self.status = CalculationStatus.DRAFT
        self.sent_date = None
        self.deactivate_reminders()
