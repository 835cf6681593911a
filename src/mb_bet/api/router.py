"""mb_bet REST endpoints (all scoped to the calling user).

POST   /bets                  — place a bet
GET    /bets                  — list own bets with cursor pagination
GET    /bets/stats            — own betting statistics
GET    /bets/{bet_id}         — one bet
POST   /bets/{bet_id}/cancel  — cancel a bet before its market settles
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mb_bet.application.schemas import CancelBetRequest, PlaceBetRequest
from src.mb_bet.application.service import BetApplicationService
from src.mb_common.database import get_db_session
from src.mb_common.response import ApiResponse, success_response
from src.mb_gateway.auth.dependencies import CurrentUser, get_current_user

router = APIRouter(prefix="/bets", tags=["bets"])

_service = BetApplicationService()


@router.post("", status_code=201)
async def place_bet(
    body: PlaceBetRequest,
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.place_bet(db, current_user.id, body)
    return success_response(result.model_dump(), request)


@router.get("")
async def list_bets(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    market_id: str | None = Query(None),
    status: str | None = Query(None, description="pending / active / won / lost / ..."),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await _service.list_user_bets(db, current_user.id, market_id, status, cursor, limit)
    return success_response(result.model_dump(), request)


@router.get("/stats")
async def get_stats(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_user_stats(db, current_user.id)
    return success_response(result.model_dump(), request)


@router.get("/{bet_id}")
async def get_bet(
    bet_id: str,
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_bet(db, bet_id, user_id=current_user.id)
    return success_response(result.model_dump(), request)


@router.post("/{bet_id}/cancel")
async def cancel_bet(
    bet_id: str,
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    body: CancelBetRequest | None = None,
) -> ApiResponse:
    reason = body.reason if body else "Cancelled by user"
    result = await _service.cancel_bet(db, bet_id, reason, user_id=current_user.id)
    return success_response(result.model_dump(), request)
