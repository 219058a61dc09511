# app/services/landed_cost.py

"""
Motor de custo de importação (landed cost).

Fluxo único e sem estado:
    (configuração, itens) -> recompute -> (itens calculados, totais)

Ordem fixa por item:
    produto (FX) -> rateio do frete -> II -> rateio de outras despesas
    -> ICMS "por dentro" (gross-up) -> custos unitários
"""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from app.services.allocation import AllocationMethod, Measures, allocate
from app.services.numeric import safe_div, safe_number

logger = logging.getLogger(__name__)


class FreightCurrency(str, Enum):
    LOCAL = "LOCAL"
    FOREIGN = "FOREIGN"


@dataclass(frozen=True)
class ShipmentConfiguration:
    fx_rate: float = 5.20
    duty_rate: float = 0.60
    vat_rate: float = 0.17
    freight_total: float = 0.0
    freight_currency: FreightCurrency = FreightCurrency.FOREIGN
    other_fees_total: float = 0.0
    freight_allocation_method: AllocationMethod = AllocationMethod.BY_WEIGHT
    fees_allocation_method: AllocationMethod = AllocationMethod.BY_QUANTITY

    @property
    def freight_total_local(self) -> float:
        if self.freight_currency is FreightCurrency.FOREIGN:
            return self.freight_total * self.fx_rate
        return self.freight_total


DEFAULT_CONFIGURATION = ShipmentConfiguration()


def new_item_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class LineItem:
    id: str
    description: str = ""
    quantity: float = 1
    unit_price_foreign: float = 0.0
    unit_weight_kg: float = 0.0

    @property
    def measures(self) -> Measures:
        return Measures(
            weight_kg=self.quantity * self.unit_weight_kg,
            fob_foreign=self.quantity * self.unit_price_foreign,
            quantity=self.quantity,
        )


@dataclass(frozen=True)
class CalculatedItem:
    # entradas
    id: str
    description: str
    quantity: float
    unit_price_foreign: float
    unit_weight_kg: float

    # calculados
    total_weight_kg: float
    total_fob_foreign: float
    product_cost_local: float
    allocated_freight: float
    product_plus_freight: float
    duty_base: float
    duty_amount: float
    allocated_fees: float
    vat_base: float
    vat_amount: float
    total_with_taxes: float
    unit_cost_ex_tax: float
    unit_cost_inc_tax: float


@dataclass(frozen=True)
class ShipmentTotals:
    total_items: float = 0.0
    total_product_cost: float = 0.0
    total_freight: float = 0.0
    total_product_plus_freight: float = 0.0
    total_duty: float = 0.0
    total_vat: float = 0.0
    total_other_fees: float = 0.0
    grand_total: float = 0.0
    total_weight_kg: float = 0.0
    total_fob_foreign: float = 0.0
    price_per_kg_foreign: float = 0.0
    import_multiplier: float = 0.0


@dataclass(frozen=True)
class SimulationResult:
    items: tuple[CalculatedItem, ...] = ()
    totals: ShipmentTotals = field(default_factory=ShipmentTotals)


# =============================================================================
# DEFAULTS (aplicados uma única vez, na entrada do recompute)
# =============================================================================

def _field(raw: Mapping[str, Any], name: str, default: float) -> float:
    # ausente -> default documentado; presente mas inválido -> 0
    value = raw.get(name)
    if value is None:
        return default
    return safe_number(value)


def _method(value: Any, default: AllocationMethod) -> AllocationMethod:
    if isinstance(value, AllocationMethod):
        return value
    if isinstance(value, str):
        try:
            return AllocationMethod(value.strip().upper())
        except ValueError:
            pass
    return default


def _currency(value: Any, default: FreightCurrency) -> FreightCurrency:
    if isinstance(value, FreightCurrency):
        return value
    if isinstance(value, str):
        try:
            return FreightCurrency(value.strip().upper())
        except ValueError:
            pass
    return default


def resolve_configuration(
    raw: ShipmentConfiguration | Mapping[str, Any] | None,
) -> ShipmentConfiguration:
    """Monta uma configuração completa a partir de entrada parcial ou malformada."""
    d = DEFAULT_CONFIGURATION

    if raw is None:
        return d

    if isinstance(raw, ShipmentConfiguration):
        raw = {
            "fx_rate": raw.fx_rate,
            "duty_rate": raw.duty_rate,
            "vat_rate": raw.vat_rate,
            "freight_total": raw.freight_total,
            "freight_currency": raw.freight_currency,
            "other_fees_total": raw.other_fees_total,
            "freight_allocation_method": raw.freight_allocation_method,
            "fees_allocation_method": raw.fees_allocation_method,
        }

    return ShipmentConfiguration(
        fx_rate=_field(raw, "fx_rate", d.fx_rate),
        duty_rate=_field(raw, "duty_rate", d.duty_rate),
        vat_rate=_field(raw, "vat_rate", d.vat_rate),
        freight_total=_field(raw, "freight_total", d.freight_total),
        freight_currency=_currency(raw.get("freight_currency"), d.freight_currency),
        other_fees_total=_field(raw, "other_fees_total", d.other_fees_total),
        freight_allocation_method=_method(
            raw.get("freight_allocation_method"), d.freight_allocation_method
        ),
        fees_allocation_method=_method(
            raw.get("fees_allocation_method"), d.fees_allocation_method
        ),
    )


def _quantity(value: Any) -> float:
    q = safe_number(value)
    return int(q) if q.is_integer() else q


def resolve_items(raw_items: Iterable[LineItem | Mapping[str, Any]] | None) -> tuple[LineItem, ...]:
    items: list[LineItem] = []

    for index, raw in enumerate(raw_items or ()):
        if isinstance(raw, LineItem):
            raw = {
                "id": raw.id,
                "description": raw.description,
                "quantity": raw.quantity,
                "unit_price_foreign": raw.unit_price_foreign,
                "unit_weight_kg": raw.unit_weight_kg,
            }

        # sem id (ex.: payload antigo): posição na lista, para manter o resultado determinístico
        item_id = raw.get("id") or str(index + 1)
        items.append(
            LineItem(
                id=str(item_id),
                description=str(raw.get("description") or ""),
                quantity=_quantity(raw.get("quantity")),
                unit_price_foreign=safe_number(raw.get("unit_price_foreign")),
                unit_weight_kg=safe_number(raw.get("unit_weight_kg")),
            )
        )

    return tuple(items)


# =============================================================================
# CÁLCULO POR ITEM
# =============================================================================

def gross_up_vat(base: float, rate: float) -> tuple[float, float]:
    """
    ICMS "por dentro": resolve vat = rate × (base + vat).

    Retorna (base de cálculo, valor do imposto). rate >= 1 cai no safe_div e zera.
    """
    vat_base = safe_div(base, 1 - rate)
    return vat_base, vat_base * rate


def shipment_measures(items: Iterable[LineItem]) -> Measures:
    weight = fob = quantity = 0.0
    for item in items:
        m = item.measures
        weight += m.weight_kg
        fob += m.fob_foreign
        quantity += m.quantity
    return Measures(weight_kg=weight, fob_foreign=fob, quantity=quantity)


def calculate_item(
    item: LineItem,
    config: ShipmentConfiguration,
    shipment: Measures,
) -> CalculatedItem:
    measures = item.measures

    product_cost_local = measures.fob_foreign * config.fx_rate

    allocated_freight = allocate(
        config.freight_total_local,
        config.freight_allocation_method,
        measures,
        shipment,
    )
    product_plus_freight = product_cost_local + allocated_freight

    duty_base = product_plus_freight
    duty_amount = duty_base * config.duty_rate

    allocated_fees = allocate(
        config.other_fees_total,
        config.fees_allocation_method,
        measures,
        shipment,
    )

    # outras despesas ficam fora da base do ICMS (comportamento da planilha original)
    vat_base, vat_amount = gross_up_vat(product_plus_freight + duty_amount, config.vat_rate)

    total_with_taxes = product_plus_freight + duty_amount + vat_amount + allocated_fees

    return CalculatedItem(
        id=item.id,
        description=item.description,
        quantity=item.quantity,
        unit_price_foreign=item.unit_price_foreign,
        unit_weight_kg=item.unit_weight_kg,
        total_weight_kg=measures.weight_kg,
        total_fob_foreign=measures.fob_foreign,
        product_cost_local=product_cost_local,
        allocated_freight=allocated_freight,
        product_plus_freight=product_plus_freight,
        duty_base=duty_base,
        duty_amount=duty_amount,
        allocated_fees=allocated_fees,
        vat_base=vat_base,
        vat_amount=vat_amount,
        total_with_taxes=total_with_taxes,
        unit_cost_ex_tax=safe_div(product_plus_freight + allocated_fees, item.quantity),
        unit_cost_inc_tax=safe_div(total_with_taxes, item.quantity),
    )


# =============================================================================
# TOTAIS
# =============================================================================

def aggregate_totals(
    config: ShipmentConfiguration,
    items: Iterable[CalculatedItem],
) -> ShipmentTotals:
    total_items = 0.0
    product_cost = freight = product_plus_freight = duty = vat = 0.0
    weight = fob = 0.0

    for it in items:
        total_items += it.quantity
        product_cost += it.product_cost_local
        freight += it.allocated_freight
        product_plus_freight += it.product_plus_freight
        duty += it.duty_amount
        vat += it.vat_amount
        weight += it.total_weight_kg
        fob += it.total_fob_foreign

    # outras despesas entram uma vez só, pelo valor da configuração
    grand_total = product_plus_freight + duty + vat + config.other_fees_total

    return ShipmentTotals(
        total_items=total_items,
        total_product_cost=product_cost,
        total_freight=freight,
        total_product_plus_freight=product_plus_freight,
        total_duty=duty,
        total_vat=vat,
        total_other_fees=config.other_fees_total,
        grand_total=grand_total,
        total_weight_kg=weight,
        total_fob_foreign=fob,
        price_per_kg_foreign=safe_div(config.freight_total, weight),
        import_multiplier=safe_div(grand_total, fob * config.fx_rate),
    )


# =============================================================================
# ORQUESTRAÇÃO
# =============================================================================

def recompute(
    configuration: ShipmentConfiguration | Mapping[str, Any] | None,
    items: Iterable[LineItem | Mapping[str, Any]] | None,
) -> SimulationResult:
    """
    Recalcula a simulação inteira. Função pura: mesma entrada, mesma saída.
    """
    config = resolve_configuration(configuration)
    line_items = resolve_items(items)
    return _recompute_resolved(config, line_items)


def _recompute_resolved(
    config: ShipmentConfiguration,
    line_items: tuple[LineItem, ...],
) -> SimulationResult:
    shipment = shipment_measures(line_items)
    calculated = tuple(calculate_item(item, config, shipment) for item in line_items)
    totals = aggregate_totals(config, calculated)

    logger.debug(
        "recompute: %d itens, total=%.4f, multiplicador=%.4f",
        len(calculated),
        totals.grand_total,
        totals.import_multiplier,
    )
    return SimulationResult(items=calculated, totals=totals)


class RecomputeCache:
    """
    Cache LRU explícito para simulações grandes.

    A chave é a própria entrada normalizada (dataclasses congeladas), então
    qualquer mudança em configuração ou itens gera uma chave nova.
    """

    def __init__(self, maxsize: int = 128) -> None:
        self.maxsize = maxsize
        self.hits = 0
        self.misses = 0
        self._entries: "OrderedDict[tuple, SimulationResult]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def recompute(
        self,
        configuration: ShipmentConfiguration | Mapping[str, Any] | None,
        items: Iterable[LineItem | Mapping[str, Any]] | None,
    ) -> SimulationResult:
        config = resolve_configuration(configuration)
        line_items = resolve_items(items)
        key = (config, line_items)

        cached: Optional[SimulationResult] = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            self._entries.move_to_end(key)
            return cached

        self.misses += 1
        result = _recompute_resolved(config, line_items)
        self._entries[key] = result
        if len(self._entries) > self.maxsize:
            self._entries.popitem(last=False)
        return result

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0
