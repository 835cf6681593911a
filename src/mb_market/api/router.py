"""mb_market REST endpoints.

GET    /markets                          — list with cursor pagination
GET    /markets/{market_id}              — full detail with options and odds
GET    /markets/{market_id}/stats        — pool totals
POST   /markets                          — create market (operator)
POST   /markets/default                  — create canonical 1X2 market (operator)
DELETE /markets/{market_id}              — delete market without bets (operator)
POST   /markets/{market_id}/options      — add option (operator)
PATCH  /markets/options/{option_id}      — edit option without bets (operator)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mb_common.database import get_db_session
from src.mb_common.response import ApiResponse, success_response
from src.mb_gateway.auth.dependencies import CurrentUser, get_current_user, require_operator
from src.mb_market.application.schemas import (
    CreateDefaultMarketRequest,
    CreateMarketRequest,
    OptionIn,
    UpdateOptionRequest,
)
from src.mb_market.application.service import MarketApplicationService

router = APIRouter(prefix="/markets", tags=["markets"])

_service = MarketApplicationService()


@router.get("")
async def list_markets(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    match_id: str | None = Query(None),
    status: str | None = Query(None, description="active / suspended / settled / cancelled"),
    market_type: str | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await _service.list_markets(db, match_id, status, market_type, cursor, limit)
    return success_response(result.model_dump(), request)


@router.get("/{market_id}")
async def get_market(
    market_id: str,
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_market(db, market_id)
    return success_response(result.model_dump(), request)


@router.get("/{market_id}/stats")
async def get_market_stats(
    market_id: str,
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_market_stats(db, market_id)
    return success_response(result.model_dump(), request)


@router.post("", status_code=201)
async def create_market(
    body: CreateMarketRequest,
    request: Request,
    operator: Annotated[CurrentUser, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_market(db, body)
    return success_response(result.model_dump(), request)


@router.post("/default", status_code=201)
async def create_default_market(
    body: CreateDefaultMarketRequest,
    request: Request,
    operator: Annotated[CurrentUser, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_default_market(db, body)
    return success_response(result.model_dump(), request)


@router.delete("/{market_id}")
async def delete_market(
    market_id: str,
    request: Request,
    operator: Annotated[CurrentUser, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    await _service.delete_market(db, market_id)
    return success_response({"market_id": market_id, "deleted": True}, request)


@router.post("/{market_id}/options", status_code=201)
async def add_option(
    market_id: str,
    body: OptionIn,
    request: Request,
    operator: Annotated[CurrentUser, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.add_option(db, market_id, body)
    return success_response(result.model_dump(), request)


@router.patch("/options/{option_id}")
async def update_option(
    option_id: str,
    body: UpdateOptionRequest,
    request: Request,
    operator: Annotated[CurrentUser, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.update_option(db, option_id, body)
    return success_response(result.model_dump(), request)
