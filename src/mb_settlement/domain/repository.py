# src/mb_settlement/domain/repository.py
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mb_settlement.domain.models import SettlementOutcome


class OutcomeRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, outcome: SettlementOutcome) -> None: ...

    async def get_by_market(
        self, db: AsyncSession, market_id: str
    ) -> SettlementOutcome | None: ...

    async def list_requiring_review(
        self, db: AsyncSession, cursor_id: str | None, limit: int
    ) -> list[SettlementOutcome]: ...
