"""mb_payment REST endpoints — called by the payment and disbursement collaborators.

POST /payments/confirm                — payment succeeded (by bet id or reference)
POST /payments/fail                   — payment failed
GET  /payments/payouts/pending        — won bets awaiting disbursement
POST /payments/payouts/{bet_id}       — report a payout attempt
POST /payments/refunds/{bet_id}       — report a completed refund
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mb_common.database import get_db_session
from src.mb_common.response import ApiResponse, success_response
from src.mb_gateway.auth.dependencies import CurrentUser, require_operator
from src.mb_payment.application.schemas import (
    PaymentCallbackRequest,
    PayoutReportRequest,
    RefundReportRequest,
)
from src.mb_payment.application.service import PaymentApplicationService

router = APIRouter(prefix="/payments", tags=["payments"])

_service = PaymentApplicationService()


@router.post("/confirm")
async def confirm_payment(
    body: PaymentCallbackRequest,
    request: Request,
    operator: Annotated[CurrentUser, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.confirm_payment(db, body)
    return success_response(result.model_dump(), request)


@router.post("/fail")
async def fail_payment(
    body: PaymentCallbackRequest,
    request: Request,
    operator: Annotated[CurrentUser, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.fail_payment(db, body)
    return success_response(result.model_dump(), request)


@router.get("/payouts/pending")
async def list_pending_payouts(
    request: Request,
    operator: Annotated[CurrentUser, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(50, ge=1, le=200),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await _service.list_pending_payouts(db, cursor, limit)
    return success_response(result.model_dump(), request)


@router.post("/payouts/{bet_id}")
async def record_payout(
    bet_id: str,
    body: PayoutReportRequest,
    request: Request,
    operator: Annotated[CurrentUser, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.record_payout(db, bet_id, body.success, body.reference)
    return success_response(result.model_dump(), request)


@router.post("/refunds/{bet_id}")
async def record_refund(
    bet_id: str,
    body: RefundReportRequest,
    request: Request,
    operator: Annotated[CurrentUser, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.record_refund(db, bet_id, body.reference)
    return success_response(result.model_dump(), request)
