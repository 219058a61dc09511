# app/services/export.py

from __future__ import annotations

import csv
import io

from app.services.landed_cost import SimulationResult

ITEM_COLUMNS = [
    ("Produto", "description", None),
    ("Qtd", "quantity", 0),
    ("Valor Unit. USD", "unit_price_foreign", 2),
    ("Peso Unit. kg", "unit_weight_kg", 3),
    ("Peso Total kg", "total_weight_kg", 3),
    ("Custo Produto BRL", "product_cost_local", 2),
    ("Frete BRL", "allocated_freight", 2),
    ("Produto + Frete BRL", "product_plus_freight", 2),
    ("II BRL", "duty_amount", 2),
    ("Outras Despesas BRL", "allocated_fees", 2),
    ("Base ICMS BRL", "vat_base", 2),
    ("ICMS BRL", "vat_amount", 2),
    ("Total c/ Impostos BRL", "total_with_taxes", 2),
    ("Custo Unit. s/ Imp. BRL", "unit_cost_ex_tax", 2),
    ("Custo Unit. c/ Imp. BRL", "unit_cost_inc_tax", 2),
]

TOTAL_ROWS = [
    ("Total de Itens", "total_items", 0),
    ("Custo Produto", "total_product_cost", 2),
    ("Produto + Frete", "total_product_plus_freight", 2),
    ("Total II", "total_duty", 2),
    ("Total ICMS", "total_vat", 2),
    ("Outras Despesas", "total_other_fees", 2),
    ("Custo Total", "grand_total", 2),
    ("Peso Total kg", "total_weight_kg", 2),
    ("Preço por kg (frete)", "price_per_kg_foreign", 2),
    ("Multiplicador de Importação", "import_multiplier", 2),
]


def format_br(value: float, decimals: int = 2) -> str:
    """1234.5 -> '1.234,50' (planilha pt-BR)."""
    text = f"{value:,.{decimals}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def export_csv(result: SimulationResult) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", lineterminator="\n")

    writer.writerow([label for label, _, _ in ITEM_COLUMNS])
    for item in result.items:
        row = []
        for _, attr, decimals in ITEM_COLUMNS:
            value = getattr(item, attr)
            row.append(value if decimals is None else format_br(value, decimals))
        writer.writerow(row)

    writer.writerow([])
    for label, attr, decimals in TOTAL_ROWS:
        writer.writerow([label, format_br(getattr(result.totals, attr), decimals)])

    return buffer.getvalue()
