from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class ExchangeRateError(RuntimeError):
    pass


def parse_usd_brl_quote(data: dict) -> Decimal:
    try:
        bid = data["USDBRL"]["bid"]  # string tipo "5.2345"
        rate = Decimal(str(bid))
    except (KeyError, TypeError, InvalidOperation) as exc:
        raise ExchangeRateError("Resposta de cotação inválida.") from exc

    if rate <= 0:
        raise ExchangeRateError("Cotação USD/BRL não positiva.")
    return rate


async def fetch_usd_brl_rate() -> Decimal:
    try:
        async with httpx.AsyncClient(timeout=settings.FX_QUOTE_TIMEOUT) as client:
            r = await client.get(settings.FX_QUOTE_URL)
            r.raise_for_status()
            data = r.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Falha ao buscar cotação USD/BRL: %s", exc)
        raise ExchangeRateError("Não foi possível obter a cotação USD/BRL.") from exc

    return parse_usd_brl_quote(data)
