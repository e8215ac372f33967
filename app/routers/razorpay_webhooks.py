"""
Razorpay webhooks: POST /api/payment/webhook
- Validates X-Razorpay-Signature as HMAC-SHA256 of the raw body (webhook secret)
- Logs payment.captured, payment.failed and order.paid; other events are ignored
- Acknowledges with 200 once the signature checks out; never calls the processor
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from app.deps import get_psp_dispatcher
from app.logging_config import get_logger
from app.psp.adapter import PSPProvider
from app.psp.dispatcher import PSPDispatcher

logger = get_logger(__name__)

router = APIRouter(tags=["Razorpay Webhooks"])

SIGNATURE_HEADER = "X-Razorpay-Signature"


def _entity(payload_obj: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = payload_obj.get(key)
    entity = value.get("entity") if isinstance(value, dict) else None
    return entity if isinstance(entity, dict) else {}


def _on_payment_captured(payload_obj: Dict[str, Any]) -> None:
    payment = _entity(payload_obj, "payment")
    logger.info("webhook_payment_captured", payment_id=payment.get("id"), order_id=payment.get("order_id"))


def _on_payment_failed(payload_obj: Dict[str, Any]) -> None:
    payment = _entity(payload_obj, "payment")
    logger.warning(
        "webhook_payment_failed",
        payment_id=payment.get("id"),
        order_id=payment.get("order_id"),
        error_code=payment.get("error_code"),
        error_description=payment.get("error_description"),
    )


def _on_order_paid(payload_obj: Dict[str, Any]) -> None:
    order = _entity(payload_obj, "order")
    logger.info("webhook_order_paid", order_id=order.get("id"))


EVENT_HANDLERS = {
    "payment.captured": _on_payment_captured,
    "payment.failed": _on_payment_failed,
    "order.paid": _on_order_paid,
}


@router.post("/payment/webhook", include_in_schema=True)
async def razorpay_webhook(request: Request, dispatcher: PSPDispatcher = Depends(get_psp_dispatcher)):
    body = await request.body()

    signature: Optional[str] = request.headers.get(SIGNATURE_HEADER)
    if not signature:
        logger.warning("webhook_signature_missing")
        raise HTTPException(status_code=400, detail="Missing webhook signature")

    adapter = dispatcher.get_adapter(PSPProvider.RAZORPAY.value)
    if not adapter.webhooks_configured():
        raise HTTPException(status_code=503, detail="Webhook secret not configured")
    if not adapter.verify_webhook_signature(body, signature):
        logger.warning("webhook_signature_invalid")
        raise HTTPException(status_code=400, detail="Invalid webhook signature")

    try:
        event = json.loads(body.decode())
    except (UnicodeDecodeError, ValueError):
        raise HTTPException(status_code=400, detail="Invalid payload")
    if not isinstance(event, dict):
        raise HTTPException(status_code=400, detail="Invalid payload")

    etype = event.get("event")
    payload_obj = event.get("payload") or {}
    logger.info("webhook_received", webhook_event=etype)

    # a non-string event (list, object) is unhashable and simply unhandled
    handler = EVENT_HANDLERS.get(etype) if isinstance(etype, str) else None
    if handler is None:
        logger.info("webhook_event_unhandled", webhook_event=etype)
    elif isinstance(payload_obj, dict):
        handler(payload_obj)

    return {"success": True, "message": "Webhook received successfully"}
