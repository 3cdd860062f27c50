"""JSON endpoints for price history, alert registration and swap quotes."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pricewatch.exceptions import FeedUnavailable, InvalidRequest, UnsupportedChain
from pricewatch.service import PriceService

log = structlog.get_logger(__name__)

router = APIRouter()


class SetAlertRequest(BaseModel):
    """Body of ``POST /prices/alerts``."""

    chain: str
    target_price: Decimal
    email: str


def _decimal_to_str(obj: Any) -> Any:
    """Recursively convert Decimal values to strings for JSON serialization."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {k: _decimal_to_str(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_decimal_to_str(item) for item in obj]
    return obj


def _error_response(e: UnsupportedChain | InvalidRequest | FeedUnavailable) -> JSONResponse:
    """400 for bad input, 503 when the price source is down."""
    status_code = 503 if isinstance(e, FeedUnavailable) else 400
    return JSONResponse(status_code=status_code, content={"error": str(e)})


def _service(request: Request) -> PriceService:
    return request.app.state.price_service


@router.get("/prices/hourly")
async def get_hourly_prices(request: Request, chain: str = Query(...)) -> JSONResponse:
    """Samples recorded for ``chain`` in the last 24 hours, oldest first."""
    try:
        samples = await _service(request).get_hourly_prices(chain)
    except (UnsupportedChain, InvalidRequest) as e:
        return _error_response(e)

    result = [
        {
            "chain": s.chain,
            "price": s.price,
            "timestamp_ms": s.timestamp_ms,
        }
        for s in samples
    ]
    return JSONResponse(content=_decimal_to_str(result))


@router.post("/prices/alerts")
async def set_price_alert(request: Request, body: SetAlertRequest) -> JSONResponse:
    try:
        alert = await _service(request).set_price_alert(body.chain, body.target_price, body.email)
    except (UnsupportedChain, InvalidRequest) as e:
        log.info("alert_rejected", chain=body.chain, error=str(e))
        return _error_response(e)

    return JSONResponse(
        status_code=201,
        content={"message": "Alert set successfully", "alert_id": alert.id},
    )


@router.get("/prices/swap-rate")
async def get_swap_rate(request: Request, amount: str = Query(...)) -> JSONResponse:
    """Quote ``amount`` ETH in BTC, net of the swap fee."""
    try:
        quote = await _service(request).get_swap_rate(amount)
    except (UnsupportedChain, InvalidRequest, FeedUnavailable) as e:
        log.warning("swap_rate_failed", amount=amount, error=str(e))
        return _error_response(e)

    return JSONResponse(
        content=_decimal_to_str(
            {
                "source_chain": quote.source_chain,
                "target_chain": quote.target_chain,
                "amount_in": quote.amount_in,
                "target_amount": quote.target_amount,
                "fee_in_source": quote.fee_in_source,
                "fee_in_usd": quote.fee_in_usd,
                "source_price_usd": quote.source_price_usd,
                "target_price_usd": quote.target_price_usd,
            }
        )
    )


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    scheduler = getattr(request.app.state, "scheduler", None)
    status = scheduler.get_status() if scheduler is not None else {"running": False}
    return JSONResponse(content=status)
