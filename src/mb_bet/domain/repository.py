# src/mb_bet/domain/repository.py
"""Repository Protocol for bets — unit tests inject a mock conforming to it."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mb_bet.domain.models import Bet, UserBetStats


class BetRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, bet: Bet) -> None: ...

    async def get_by_id(
        self, db: AsyncSession, bet_id: str, for_update: bool = False
    ) -> Bet | None: ...

    async def get_by_payment_reference(
        self, db: AsyncSession, reference: str, for_update: bool = False
    ) -> Bet | None: ...

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        market_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Bet]: ...

    async def list_unresolved_by_market(self, db: AsyncSession, market_id: str) -> list[Bet]: ...

    async def list_pending_payouts(
        self, db: AsyncSession, cursor_id: str | None, limit: int
    ) -> list[Bet]: ...

    async def update(self, db: AsyncSession, bet: Bet) -> None: ...

    async def get_user_stats(self, db: AsyncSession, user_id: str) -> UserBetStats: ...
