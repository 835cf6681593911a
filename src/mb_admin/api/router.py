# src/mb_admin/api/router.py
"""Admin REST API — every route requires the operator role.

POST /admin/markets/{market_id}/settle    — settle (auto / manual / cancel dispatcher)
POST /admin/markets/{market_id}/cancel    — cancel market and refund all bets
POST /admin/markets/{market_id}/suspend   — stop accepting bets
POST /admin/markets/{market_id}/reopen    — resume accepting bets
GET  /admin/markets/{market_id}/outcome   — settlement record for a market
GET  /admin/outcomes/review               — outcomes flagged for manual review
POST /admin/matches/results               — ingest a match result (auto-settles)
POST /admin/bets/{bet_id}/cancel          — cancel any bet before settlement
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mb_admin.application.service import AdminService
from src.mb_bet.application.schemas import CancelBetRequest
from src.mb_common.database import get_db_session
from src.mb_common.response import ApiResponse, success_response
from src.mb_gateway.auth.dependencies import CurrentUser, require_operator
from src.mb_settlement.application.schemas import (
    CancelMarketRequest,
    MatchResultIn,
    SettleMarketRequest,
)
from src.mb_settlement.application.service import get_settlement_service

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()

Operator = Annotated[CurrentUser, Depends(require_operator)]
Db = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("/markets/{market_id}/settle")
async def settle_market(
    market_id: str, body: SettleMarketRequest, request: Request, operator: Operator, db: Db
) -> ApiResponse:
    result = await _service.settle_market(db, market_id, body, operator.id)
    data = result.model_dump() if result else {"market_id": market_id, "settled": False}
    return success_response(data, request)


@router.post("/markets/{market_id}/cancel")
async def cancel_market(
    market_id: str,
    request: Request,
    operator: Operator,
    db: Db,
    body: CancelMarketRequest | None = None,
) -> ApiResponse:
    notes = body.notes if body else None
    result = await _service.cancel_market(db, market_id, notes, operator.id)
    return success_response(result.model_dump() if result else None, request)


@router.post("/markets/{market_id}/suspend")
async def suspend_market(
    market_id: str, request: Request, operator: Operator, db: Db
) -> ApiResponse:
    result = await _service.suspend_market(db, market_id)
    return success_response(result.model_dump(), request)


@router.post("/markets/{market_id}/reopen")
async def reopen_market(
    market_id: str, request: Request, operator: Operator, db: Db
) -> ApiResponse:
    result = await _service.reopen_market(db, market_id)
    return success_response(result.model_dump(), request)


@router.get("/markets/{market_id}/outcome")
async def get_outcome(
    market_id: str, request: Request, operator: Operator, db: Db
) -> ApiResponse:
    result = await get_settlement_service().get_outcome(db, market_id)
    return success_response(result.model_dump() if result else None, request)


@router.get("/outcomes/review")
async def list_outcomes_for_review(
    request: Request,
    operator: Operator,
    db: Db,
    limit: int = Query(50, ge=1, le=200),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await get_settlement_service().list_outcomes_requiring_review(db, cursor, limit)
    return success_response(result.model_dump(), request)


@router.post("/matches/results")
async def ingest_match_result(
    body: MatchResultIn, request: Request, operator: Operator, db: Db
) -> ApiResponse:
    result = await _service.ingest_match_result(db, body, operator.id)
    return success_response(result, request)


@router.post("/bets/{bet_id}/cancel")
async def cancel_bet(
    bet_id: str,
    request: Request,
    operator: Operator,
    db: Db,
    body: CancelBetRequest | None = None,
) -> ApiResponse:
    reason = body.reason if body else "Cancelled by operator"
    result = await _service.cancel_bet(db, bet_id, reason)
    return success_response(result.model_dump(), request)
