from __future__ import annotations

import logging
import secrets
import string
from datetime import datetime
from typing import List, Tuple

from sqlalchemy.orm import Session

from app.models.import_simulation import ImportSimulation
from app.schemas.simulation import SimulationCreate, SimulationUpdate
from app.services.landed_cost import SimulationResult, recompute
from app.services.validation import (
    SimulationValidationError,
    ValidationIssue,
    blocking_issues,
    validate_simulation,
)

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8
RECENT_LIMIT = 30


def generate_simulation_code(db: Session) -> str:
    """Código curto de 8 caracteres (A-Z, 0-9), único na tabela."""
    while True:
        code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
        exists = db.query(ImportSimulation.id).filter(ImportSimulation.code == code).first()
        if exists is None:
            return code


def _ensure_valid(name: str, configuration: dict, items: list) -> None:
    issues = validate_simulation(configuration, items, name=name, require_name=True)
    errors = blocking_issues(issues)
    if errors:
        raise SimulationValidationError(errors)


def list_simulations(db: Session, limit: int = RECENT_LIMIT) -> List[ImportSimulation]:
    return (
        db.query(ImportSimulation)
        .order_by(ImportSimulation.updated_at.desc(), ImportSimulation.id.desc())
        .limit(limit)
        .all()
    )


def get_simulation(db: Session, simulation_id: int) -> ImportSimulation:
    simulation = db.query(ImportSimulation).filter(ImportSimulation.id == simulation_id).first()
    if simulation is None:
        raise ValueError("Simulation not found")
    return simulation


def create_simulation(db: Session, payload: SimulationCreate) -> ImportSimulation:
    configuration = payload.configuration.model_dump(mode="json")
    items = [item.model_dump(mode="json") for item in payload.items]
    _ensure_valid(payload.name, configuration, items)

    simulation = ImportSimulation(
        code=generate_simulation_code(db),
        name=payload.name,
        supplier_name=payload.supplier_name,
        notes=payload.notes,
        configuration=configuration,
        items=items,
    )
    db.add(simulation)
    db.commit()
    db.refresh(simulation)

    logger.info("Simulação %s criada (%d itens)", simulation.code, len(items))
    return simulation


def update_simulation(db: Session, simulation_id: int, payload: SimulationUpdate) -> ImportSimulation:
    simulation = get_simulation(db, simulation_id)

    data = payload.model_dump(mode="json", exclude_unset=True, exclude={"configuration", "items"})

    # configuração parcial é mesclada com a salva; itens substituem a lista inteira
    configuration = dict(simulation.configuration or {})
    if payload.configuration is not None:
        configuration.update(payload.configuration.model_dump(mode="json", exclude_unset=True))

    if payload.items is not None:
        items = [item.model_dump(mode="json") for item in payload.items]
    else:
        items = list(simulation.items or [])

    name = data["name"] if "name" in data else simulation.name
    _ensure_valid(name, configuration, items)

    for field in ("name", "supplier_name", "notes"):
        if field in data:
            setattr(simulation, field, data[field])
    simulation.configuration = configuration
    simulation.items = items
    simulation.updated_at = datetime.utcnow()

    db.add(simulation)
    db.commit()
    db.refresh(simulation)

    logger.info("Simulação %s atualizada", simulation.code)
    return simulation


def delete_simulation(db: Session, simulation_id: int) -> None:
    simulation = get_simulation(db, simulation_id)
    db.delete(simulation)
    db.commit()
    logger.info("Simulação %s excluída", simulation.code)


def duplicate_simulation(db: Session, simulation_id: int) -> ImportSimulation:
    original = get_simulation(db, simulation_id)

    copy = ImportSimulation(
        code=generate_simulation_code(db),
        name=f"{original.name} (Cópia)"[:255],
        supplier_name=original.supplier_name,
        notes=original.notes,
        configuration=dict(original.configuration or {}),
        items=[dict(item) for item in (original.items or [])],
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)

    logger.info("Simulação %s duplicada como %s", original.code, copy.code)
    return copy


def calculate_simulation(simulation: ImportSimulation) -> Tuple[SimulationResult, List[ValidationIssue]]:
    """Recalcula a partir das entradas salvas; nada calculado é persistido."""
    result = recompute(simulation.configuration, simulation.items)
    issues = validate_simulation(simulation.configuration, simulation.items, name=simulation.name)
    return result, issues
