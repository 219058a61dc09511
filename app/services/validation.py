# app/services/validation.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Literal, Mapping, Optional

from app.services.landed_cost import (
    LineItem,
    ShipmentConfiguration,
    resolve_configuration,
    resolve_items,
)

IssueKind = Literal[
    "required",        # campo obrigatório ausente
    "range",           # valor fora do intervalo aceito
    "format",          # formato inválido (ex.: texto longo demais)
    "performance",     # aviso: simulação pesada
    "accuracy",        # aviso: valor suspeito, provável erro de digitação
    "recommendation",  # aviso: tecnicamente válido, mas vale revisar
]

BLOCKING_KINDS = frozenset({"required", "range", "format"})

MAX_FX_RATE = 100.0
HIGH_FX_RATE = 10.0
MAX_TEXT_LENGTH = 255
MAX_RECOMMENDED_ITEMS = 100
HEAVY_ITEM_KG = 1000.0


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str
    kind: IssueKind

    @property
    def blocking(self) -> bool:
        return self.kind in BLOCKING_KINDS


class SimulationValidationError(ValueError):
    def __init__(self, issues: List[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__("; ".join(f"{i.field}: {i.message}" for i in issues))


def _check_configuration(config: ShipmentConfiguration) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []

    if config.fx_rate <= 0 or config.fx_rate > MAX_FX_RATE:
        issues.append(ValidationIssue(
            "configuration.fx_rate",
            f"Taxa de câmbio deve ser maior que 0 e no máximo {MAX_FX_RATE:.0f}.",
            "range",
        ))
    elif config.fx_rate > HIGH_FX_RATE:
        issues.append(ValidationIssue(
            "configuration.fx_rate",
            "Taxa de câmbio muito alta; confira se o valor está correto.",
            "accuracy",
        ))

    if not 0 <= config.duty_rate <= 1:
        issues.append(ValidationIssue(
            "configuration.duty_rate",
            "Alíquota de II deve estar entre 0% e 100%.",
            "range",
        ))

    # 100% zera o gross-up do ICMS (divisão por zero)
    if not 0 <= config.vat_rate < 1:
        issues.append(ValidationIssue(
            "configuration.vat_rate",
            "Alíquota de ICMS deve ser maior ou igual a 0% e menor que 100%.",
            "range",
        ))

    if config.freight_total < 0:
        issues.append(ValidationIssue(
            "configuration.freight_total",
            "Frete internacional não pode ser negativo.",
            "range",
        ))

    if config.other_fees_total < 0:
        issues.append(ValidationIssue(
            "configuration.other_fees_total",
            "Outras despesas aduaneiras não podem ser negativas.",
            "range",
        ))

    return issues


def _check_item(index: int, item: LineItem) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    prefix = f"items[{index}]"

    if item.quantity < 0:
        issues.append(ValidationIssue(f"{prefix}.quantity", "Quantidade não pode ser negativa.", "range"))
    elif not float(item.quantity).is_integer():
        issues.append(ValidationIssue(f"{prefix}.quantity", "Quantidade deve ser um número inteiro.", "range"))
    elif item.quantity == 0:
        issues.append(ValidationIssue(
            f"{prefix}.quantity",
            "Item com quantidade zero não entra no custo.",
            "recommendation",
        ))

    if item.unit_price_foreign < 0:
        issues.append(ValidationIssue(f"{prefix}.unit_price_foreign", "Valor unitário não pode ser negativo.", "range"))

    if item.unit_weight_kg < 0:
        issues.append(ValidationIssue(f"{prefix}.unit_weight_kg", "Peso unitário não pode ser negativo.", "range"))
    elif item.quantity * item.unit_weight_kg > HEAVY_ITEM_KG:
        issues.append(ValidationIssue(
            f"{prefix}.unit_weight_kg",
            f"Item com mais de {HEAVY_ITEM_KG:.0f} kg; confira peso unitário e quantidade.",
            "recommendation",
        ))

    if len(item.description) > MAX_TEXT_LENGTH:
        issues.append(ValidationIssue(
            f"{prefix}.description",
            f"Descrição deve ter no máximo {MAX_TEXT_LENGTH} caracteres.",
            "format",
        ))
    elif not item.description.strip():
        issues.append(ValidationIssue(
            f"{prefix}.description",
            "Item sem descrição; dificulta a leitura do relatório.",
            "recommendation",
        ))

    return issues


def validate_simulation(
    configuration: ShipmentConfiguration | Mapping[str, Any] | None,
    items: Iterable[LineItem | Mapping[str, Any]] | None,
    *,
    name: Optional[str] = None,
    require_name: bool = False,
) -> List[ValidationIssue]:
    """
    Lista erros e avisos da simulação. Não altera nem bloqueia o cálculo:
    quem decide o que fazer com erros bloqueantes é o chamador (salvar/exportar).
    """
    config = resolve_configuration(configuration)
    line_items = resolve_items(items)
    issues: List[ValidationIssue] = []

    if require_name and not (name or "").strip():
        issues.append(ValidationIssue("name", "Nome da simulação é obrigatório.", "required"))
    elif name and len(name) > MAX_TEXT_LENGTH:
        issues.append(ValidationIssue(
            "name",
            f"Nome deve ter no máximo {MAX_TEXT_LENGTH} caracteres.",
            "format",
        ))

    issues.extend(_check_configuration(config))

    if not line_items:
        issues.append(ValidationIssue("items", "Adicione pelo menos um produto.", "required"))
    elif len(line_items) > MAX_RECOMMENDED_ITEMS:
        issues.append(ValidationIssue(
            "items",
            f"Mais de {MAX_RECOMMENDED_ITEMS} produtos; a simulação pode ficar lenta.",
            "performance",
        ))

    for index, item in enumerate(line_items):
        issues.extend(_check_item(index, item))

    return issues


def blocking_issues(issues: Iterable[ValidationIssue]) -> List[ValidationIssue]:
    return [i for i in issues if i.blocking]
