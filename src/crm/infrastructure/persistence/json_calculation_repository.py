"""JSON-document implementation of CalculationRepository."""

from __future__ import annotations

from datetime import datetime

from crm.domain.model.calculation import Calculation, CalculationStatus, CostBreakdown
from crm.domain.repository.calculation_repository import CalculationRepository
from crm.infrastructure.persistence.json_store import JsonCollection


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class JsonCalculationRepository(JsonCollection, CalculationRepository):

    def __init__(self, document: dict) -> None:
        super().__init__(document, "calculations")

    def get_by_id(self, calculation_id: int) -> Calculation | None:
        raw = self._find("id", calculation_id)
        return self._to_domain(raw) if raw is not None else None

    def save(self, calculation: Calculation) -> None:
        if calculation.id is None:
            calculation.id = self._next_id()
        self._upsert("id", self._to_raw(calculation))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(calculation: Calculation) -> dict:
        metrics = calculation.metrics
        return {
            "id": calculation.id,
            "name": calculation.name,
            "client_id": calculation.client_id,
            "client_name": calculation.client_name,
            "owner_id": calculation.owner_id,
            "order_id": calculation.order_id,
            "status": calculation.status.value,
            "sent_date": calculation.sent_date.isoformat() if calculation.sent_date else None,
            "reminder_active": calculation.reminder_active,
            "next_reminder_date": (
                calculation.next_reminder_date.isoformat()
                if calculation.next_reminder_date
                else None
            ),
            "created_at": calculation.created_at.isoformat(),
            "costs": {k: str(v) for k, v in calculation.costs.as_dict().items()},
            # Stored for readers of the raw file; recomputed on load.
            "metrics": {k: str(v) for k, v in vars(metrics).items()},
        }

    @staticmethod
    def _to_domain(raw: dict) -> Calculation:
        return Calculation(
            id=raw["id"],
            name=raw["name"],
            client_id=raw["client_id"],
            client_name=raw.get("client_name", ""),
            owner_id=raw["owner_id"],
            costs=CostBreakdown.from_mapping(raw["costs"]),
            order_id=raw.get("order_id"),
            status=CalculationStatus(raw["status"]),
            sent_date=_dt(raw.get("sent_date")),
            reminder_active=raw.get("reminder_active", False),
            next_reminder_date=_dt(raw.get("next_reminder_date")),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )
