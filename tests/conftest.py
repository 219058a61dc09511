"""
Shared fixtures.

The app is pointed at an in-memory SQLite database before anything under
`app` is imported, so tests never touch a real file.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, SessionLocal, engine
from app.services.allocation import AllocationMethod
from app.services.landed_cost import FreightCurrency, LineItem, ShipmentConfiguration
from main import app


# =============================================================================
# ENGINE FIXTURES
# =============================================================================

@pytest.fixture
def single_item_config() -> ShipmentConfiguration:
    """
    Reference scenario configuration:
    - FX 5.20, II 60%, ICMS 17%
    - freight 100 BRL allocated by weight, no other fees
    """
    return ShipmentConfiguration(
        fx_rate=5.20,
        duty_rate=0.60,
        vat_rate=0.17,
        freight_total=100.0,
        freight_currency=FreightCurrency.LOCAL,
        other_fees_total=0.0,
        freight_allocation_method=AllocationMethod.BY_WEIGHT,
        fees_allocation_method=AllocationMethod.BY_QUANTITY,
    )


@pytest.fixture
def single_item() -> LineItem:
    """10 units at US$ 5.00, 1 kg each."""
    return LineItem(
        id="a",
        description="Garrafa térmica",
        quantity=10,
        unit_price_foreign=5.00,
        unit_weight_kg=1.0,
    )


@pytest.fixture
def mixed_items() -> list[LineItem]:
    """Three items with different weight, value and quantity profiles."""
    return [
        LineItem(id="a", description="Garrafa", quantity=10, unit_price_foreign=5.00, unit_weight_kg=1.0),
        LineItem(id="b", description="Tampa", quantity=250, unit_price_foreign=0.37, unit_weight_kg=0.045),
        LineItem(id="c", description="Kit presente", quantity=3, unit_price_foreign=41.90, unit_weight_kg=2.75),
    ]


# =============================================================================
# API FIXTURES
# =============================================================================

@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db) -> TestClient:
    return TestClient(app)


@pytest.fixture
def simulation_payload() -> dict:
    return {
        "name": "Pedido fornecedor Ningbo",
        "supplier_name": "Ningbo Houseware Co.",
        "notes": "Cotação de março",
        "configuration": {
            "fx_rate": 5.20,
            "duty_rate": 0.60,
            "vat_rate": 0.17,
            "freight_total": 100.0,
            "freight_currency": "LOCAL",
            "other_fees_total": 0.0,
            "freight_allocation_method": "BY_WEIGHT",
            "fees_allocation_method": "BY_QUANTITY",
        },
        "items": [
            {
                "description": "Garrafa térmica",
                "quantity": 10,
                "unit_price_foreign": 5.00,
                "unit_weight_kg": 1.0,
            }
        ],
    }
