from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from app.schemas.simulation import ExchangeRateOut
from app.services.exchange import ExchangeRateError, fetch_usd_brl_rate

router = APIRouter(prefix="/exchange-rate", tags=["exchange rate"])


@router.get("/usd-brl", response_model=ExchangeRateOut)
async def get_usd_brl_rate() -> ExchangeRateOut:
    try:
        rate = await fetch_usd_brl_rate()
    except ExchangeRateError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return ExchangeRateOut(rate=rate)
