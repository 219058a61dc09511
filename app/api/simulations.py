# app/api/simulations.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.simulation import (
    CalculateRequest,
    CalculatedItemOut,
    ShipmentTotalsOut,
    SimulationCreate,
    SimulationOut,
    SimulationResultOut,
    SimulationUpdate,
    ValidationIssueOut,
)
from app.services.export import export_csv
from app.services.landed_cost import RecomputeCache, SimulationResult
from app.services.simulations import (
    calculate_simulation,
    create_simulation,
    delete_simulation,
    duplicate_simulation,
    get_simulation,
    list_simulations,
    update_simulation,
)
from app.services.validation import (
    SimulationValidationError,
    ValidationIssue,
    blocking_issues,
    validate_simulation,
)


router = APIRouter(prefix="/simulations/import", tags=["import simulations"])

# o cálculo ao vivo é chamado a cada edição da tela, quase sempre com a mesma entrada
calculation_cache = RecomputeCache(maxsize=256)


def _raise_for(exc: ValueError) -> None:
    if isinstance(exc, SimulationValidationError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=[ValidationIssueOut.model_validate(i).model_dump() for i in exc.issues],
        )
    if "not found" in str(exc).lower():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Simulação não encontrada.",
        )
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _result_out(result: SimulationResult, issues: List[ValidationIssue]) -> SimulationResultOut:
    return SimulationResultOut(
        items=[CalculatedItemOut.model_validate(item) for item in result.items],
        totals=ShipmentTotalsOut.model_validate(result.totals),
        issues=[ValidationIssueOut.model_validate(i) for i in issues],
        can_save=not blocking_issues(issues),
    )


@router.get("", response_model=List[SimulationOut])
def list_import_simulations(db: Session = Depends(get_db)):
    """
    Últimas 30 simulações, da modificada mais recentemente para a mais antiga.
    """
    return list_simulations(db)


@router.post("", response_model=SimulationOut, status_code=status.HTTP_201_CREATED)
def create_import_simulation(payload: SimulationCreate, db: Session = Depends(get_db)):
    try:
        return create_simulation(db, payload)
    except ValueError as e:
        _raise_for(e)


@router.post("/calculate", response_model=SimulationResultOut)
def calculate_import(payload: CalculateRequest):
    """
    Cálculo sem persistência: recebe configuração + produtos e devolve
    os itens calculados, os totais e os avisos de validação.
    """
    configuration = payload.configuration.model_dump()
    items = [item.model_dump() for item in payload.items]

    result = calculation_cache.recompute(configuration, items)
    issues = validate_simulation(configuration, items)
    return _result_out(result, issues)


@router.get("/{simulation_id}", response_model=SimulationOut)
def get_import_simulation(simulation_id: int, db: Session = Depends(get_db)):
    try:
        return get_simulation(db, simulation_id)
    except ValueError as e:
        _raise_for(e)


@router.put("/{simulation_id}", response_model=SimulationOut)
def update_import_simulation(
    simulation_id: int,
    payload: SimulationUpdate,
    db: Session = Depends(get_db),
):
    try:
        return update_simulation(db, simulation_id, payload)
    except ValueError as e:
        _raise_for(e)


@router.delete("/{simulation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_import_simulation(simulation_id: int, db: Session = Depends(get_db)):
    try:
        delete_simulation(db, simulation_id)
    except ValueError as e:
        _raise_for(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{simulation_id}/duplicate",
    response_model=SimulationOut,
    status_code=status.HTTP_201_CREATED,
)
def duplicate_import_simulation(simulation_id: int, db: Session = Depends(get_db)):
    try:
        return duplicate_simulation(db, simulation_id)
    except ValueError as e:
        _raise_for(e)


@router.get("/{simulation_id}/result", response_model=SimulationResultOut)
def get_import_simulation_result(simulation_id: int, db: Session = Depends(get_db)):
    """
    Recalcula a simulação salva (campos calculados nunca são persistidos).
    """
    try:
        simulation = get_simulation(db, simulation_id)
    except ValueError as e:
        _raise_for(e)

    result, issues = calculate_simulation(simulation)
    return _result_out(result, issues)


@router.get("/{simulation_id}/export.csv")
def export_import_simulation_csv(simulation_id: int, db: Session = Depends(get_db)):
    try:
        simulation = get_simulation(db, simulation_id)
    except ValueError as e:
        _raise_for(e)

    result, issues = calculate_simulation(simulation)
    if blocking_issues(issues):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=[ValidationIssueOut.model_validate(i).model_dump() for i in blocking_issues(issues)],
        )

    filename = f"simulacao_{simulation.code}.csv"
    return Response(
        content=export_csv(result),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
