# app/schemas/simulation.py

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.services.allocation import AllocationMethod
from app.services.landed_cost import FreightCurrency, new_item_id
from app.services.validation import IssueKind


class ShipmentConfigurationIn(BaseModel):
    # "NaN"/"Infinity" são recusados (422) em vez de virarem 0 no cálculo
    model_config = ConfigDict(allow_inf_nan=False)

    fx_rate: float = 5.20               # BRL por USD
    duty_rate: float = 0.60             # II (fração)
    vat_rate: float = 0.17              # ICMS (fração)
    freight_total: float = 0.0
    freight_currency: FreightCurrency = FreightCurrency.FOREIGN
    other_fees_total: float = 0.0       # BRL
    freight_allocation_method: AllocationMethod = AllocationMethod.BY_WEIGHT
    fees_allocation_method: AllocationMethod = AllocationMethod.BY_QUANTITY


class LineItemIn(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    # gerado uma vez e mantido enquanto o item existir na simulação
    id: str = Field(default_factory=new_item_id, max_length=64)
    description: str = ""
    quantity: float = 1
    unit_price_foreign: float = 0.0
    unit_weight_kg: float = 0.0


class CalculatedItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    description: str
    quantity: float
    unit_price_foreign: float
    unit_weight_kg: float

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


class ShipmentTotalsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_items: float
    total_product_cost: float
    total_freight: float
    total_product_plus_freight: float
    total_duty: float
    total_vat: float
    total_other_fees: float
    grand_total: float
    total_weight_kg: float
    total_fob_foreign: float
    price_per_kg_foreign: float
    import_multiplier: float


class ValidationIssueOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    field: str
    message: str
    kind: IssueKind


class CalculateRequest(BaseModel):
    configuration: ShipmentConfigurationIn = Field(default_factory=ShipmentConfigurationIn)
    items: List[LineItemIn] = Field(default_factory=list)


class SimulationResultOut(BaseModel):
    items: List[CalculatedItemOut] = Field(default_factory=list)
    totals: ShipmentTotalsOut
    issues: List[ValidationIssueOut] = Field(default_factory=list)

    # sem erros bloqueantes -> pode salvar/exportar
    can_save: bool = True


class SimulationCreate(BaseModel):
    name: str = "Nova Simulação"
    supplier_name: Optional[str] = None
    notes: Optional[str] = None

    configuration: ShipmentConfigurationIn = Field(default_factory=ShipmentConfigurationIn)
    items: List[LineItemIn] = Field(default_factory=list)


class SimulationUpdate(BaseModel):
    name: Optional[str] = None
    supplier_name: Optional[str] = None
    notes: Optional[str] = None

    configuration: Optional[ShipmentConfigurationIn] = None
    items: Optional[List[LineItemIn]] = None


class SimulationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    supplier_name: Optional[str] = None
    notes: Optional[str] = None

    configuration: ShipmentConfigurationIn
    items: List[LineItemIn]

    created_at: datetime
    updated_at: datetime


class ExchangeRateOut(BaseModel):
    pair: str = "USD-BRL"
    rate: Decimal
