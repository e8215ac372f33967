"""
Payment endpoints: order creation, signature verification and refunds.
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.deps import get_psp_dispatcher
from app.logging_config import get_logger
from app.psp.dispatcher import PSPDispatcher
from app.psp.errors import ProviderOperationError, RefundError
from app.schemas_pkg import payments as schemas

logger = get_logger(__name__)

router = APIRouter(tags=["Payments"])


def _failure(status_code: int, error: str, message: str) -> JSONResponse:
    body = schemas.ErrorResponse(error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@router.post(
    "/payment/create-order",
    response_model=schemas.OrderResponse,
    status_code=status.HTTP_201_CREATED,
)
@router.post(
    "/create-order",
    response_model=schemas.OrderResponse,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
async def create_order(
    body: schemas.CreateOrderRequest,
    dispatcher: PSPDispatcher = Depends(get_psp_dispatcher),
):
    logger.info("create_order_request", amount=str(body.amount), currency=body.currency, receipt=body.receipt)
    try:
        order = await dispatcher.create_order(
            amount=body.amount,
            currency=body.currency,
            receipt=body.receipt,
            notes=body.notes,
            metadata=body.metadata,
            provider=body.provider,
        )
    except ProviderOperationError as e:
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create payment order", e.message)
    return schemas.OrderResponse(data=schemas.OrderOut.model_validate(order))


@router.post("/payment/verify-signature", response_model=schemas.VerificationResponse)
@router.post("/verify-signature", response_model=schemas.VerificationResponse, include_in_schema=False)
async def verify_signature(
    body: schemas.VerifySignatureRequest,
    dispatcher: PSPDispatcher = Depends(get_psp_dispatcher),
):
    """200 with the fetched payment when the signature holds, 400 otherwise."""
    logger.info("verify_signature_request", payment_id=body.payment_id, order_id=body.order_id)
    result = await dispatcher.verify_payment(
        payment_id=body.payment_id,
        order_id=body.order_id,
        signature=body.signature,
        webhook_data=body.webhook_data,
        provider=body.provider,
    )
    data = schemas.VerificationOut.model_validate(result)
    if result.is_valid:
        return schemas.VerificationResponse(data=data)
    failed = schemas.VerificationResponse(success=False, error="Payment verification failed", data=data)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=failed.model_dump(mode="json"))


@router.post("/payment/refund", response_model=schemas.RefundResponse)
async def refund_payment(
    body: schemas.RefundRequest,
    dispatcher: PSPDispatcher = Depends(get_psp_dispatcher),
):
    logger.info("refund_request", payment_id=body.payment_id, full_refund=body.amount is None)
    try:
        refund = await dispatcher.refund_payment(
            payment_id=body.payment_id,
            amount=body.amount,
            reason=body.reason,
            notes=body.notes,
            provider=body.provider,
        )
    except RefundError as e:
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to process refund", e.message)
    return schemas.RefundResponse(data=schemas.RefundOut.model_validate(refund))
