"""Abstract repository for Calculation aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from crm.domain.model.calculation import Calculation


class CalculationRepository(ABC):

    @abstractmethod
    def get_by_id(self, calculation_id: int) -> Calculation | None:
        """Return a calculation by its ID, or None if not found."""

    @abstractmethod
    def save(self, calculation: Calculation) -> None:
        """Persist a new or updated calculation, assigning an ID if needed."""
