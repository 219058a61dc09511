# app/services/numeric.py

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any


def _parse_text(value: str) -> float | None:
    text = value.strip()
    if not text:
        return None

    # Notação brasileira: "1.234,56" -> 1234.56 (ponto = milhar, vírgula = decimal)
    if "," in text:
        text = text.replace(".", "").replace(",", ".")

    try:
        return float(text)
    except ValueError:
        return None


def safe_number(value: Any, default: float = 0.0) -> float:
    """
    Converte qualquer entrada em float finito.
    None, texto inválido, NaN e infinito viram `default`. Nunca levanta exceção.
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, str):
        number = _parse_text(value)
    elif isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except (ValueError, OverflowError):
            number = None
    else:
        return default

    if number is None or not math.isfinite(number):
        return default
    return number


def safe_div(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide só quando o denominador é positivo; caso contrário retorna `default`."""
    if denominator > 0:
        return numerator / denominator
    return default
