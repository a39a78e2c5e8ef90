"""
Payment Webhook Endpoints.

Receives payment notifications from the bank transfer provider. Once the
shared secret checks out the reply is always `OK`, so the provider only ever
retries on authentication failure.
"""

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Header
from fastapi.responses import PlainTextResponse

from api.dependencies import get_payment_ledger
from domain.check_result import ErrorKind
from services.payment_ledger import PaymentLedger

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/hooks/sepay-payment",
    response_class=PlainTextResponse,
    summary="Payment Notification Webhook",
    description="Ingest a payment notification. Requires `Authorization: Apikey <key>`."
)
def receive_payment_notification(
    payload: Any = Body(None),
    authorization: Optional[str] = Header(None),
    ledger: PaymentLedger = Depends(get_payment_ledger),
):
    """
    Ingest a payment notification.

    The body is stored verbatim under its `code`. Malformed codes, codes of an
    unsupported service family and duplicate deliveries are acknowledged but
    not stored.
    """
    logger.info("Payment webhook data: %s", json.dumps(payload, default=str))

    result = ledger.ingest(payload, authorization)
    if not result.acknowledged:
        return PlainTextResponse("Unauthorized", status_code=ErrorKind.UNAUTHORIZED.status_code)

    return PlainTextResponse("OK", status_code=200)
