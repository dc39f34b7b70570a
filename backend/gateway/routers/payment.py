"""Payment intent endpoint (Stripe passthrough)."""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..dependencies import get_payment_processor
from ..payments import PaymentError, PaymentProcessor
from ..utils import error_response

logger = logging.getLogger(__name__)
router = APIRouter()

AMOUNT_INVALID = "'amount' must be a positive integer."


def _parse_amount(payload: Any) -> int:
    amount = payload.get("amount") if isinstance(payload, dict) else None
    # bool is an int subclass; reject it explicitly
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValueError(AMOUNT_INVALID)
    if isinstance(amount, float):
        if not amount.is_integer():
            raise ValueError(AMOUNT_INVALID)
        amount = int(amount)
    if amount <= 0:
        raise ValueError(AMOUNT_INVALID)
    return amount


@router.post("/payment")
async def create_payment_intent(
    request: Request,
    processor: PaymentProcessor = Depends(get_payment_processor),
) -> JSONResponse:
    """Create a payment intent and hand its client secret to the frontend."""
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    try:
        amount = _parse_amount(payload)
    except ValueError as e:
        logger.warning(f"Rejected payment request: {e}")
        return error_response(400, str(e), with_timestamp=False)

    try:
        intent = await asyncio.to_thread(processor.create_intent, amount)
    except PaymentError as e:
        logger.error(f"Payment intent creation failed: {e.error_type}: {e.message}")
        return error_response(e.http_status, e.to_dict())
    except Exception as e:
        logger.error(f"Payment intent creation failed: {e}", exc_info=True)
        return error_response(500, {"type": type(e).__name__, "message": str(e)})

    return JSONResponse(content={"clientSecret": intent.client_secret})
