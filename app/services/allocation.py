# app/services/allocation.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from app.services.numeric import safe_div


class AllocationMethod(str, Enum):
    BY_WEIGHT = "BY_WEIGHT"
    BY_FOB_VALUE = "BY_FOB_VALUE"
    BY_QUANTITY = "BY_QUANTITY"


@dataclass(frozen=True)
class Measures:
    """Bases de rateio: peso (kg), valor FOB (moeda estrangeira) e quantidade."""

    weight_kg: float = 0.0
    fob_foreign: float = 0.0
    quantity: float = 0.0

    def select(self, method: AllocationMethod) -> float:
        if method is AllocationMethod.BY_WEIGHT:
            return self.weight_kg
        if method is AllocationMethod.BY_FOB_VALUE:
            return self.fob_foreign
        return self.quantity


def allocate(
    total: float,
    method: AllocationMethod,
    item: Measures,
    shipment: Measures,
) -> float:
    """
    Parcela de `total` que cabe ao item pelo método escolhido.

    Serve tanto para frete quanto para outras despesas aduaneiras.
    Denominador zero (ex.: remessa sem peso) resulta em 0.
    """
    share = safe_div(item.select(method), shipment.select(method))
    return share * total
