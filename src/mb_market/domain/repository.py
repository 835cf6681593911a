# src/mb_market/domain/repository.py
"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mb_market.domain.models import BettingMarket, MarketOption, MarketTotals


class MarketRepositoryProtocol(Protocol):
    async def get_market(
        self, db: AsyncSession, market_id: str, lock: str | None = None
    ) -> BettingMarket | None: ...

    async def find_market_by_match(
        self, db: AsyncSession, match_id: str, market_type: str
    ) -> BettingMarket | None: ...

    async def list_markets(
        self,
        db: AsyncSession,
        match_id: str | None,
        status: str | None,
        market_type: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[BettingMarket]: ...

    async def insert_market(self, db: AsyncSession, market: BettingMarket) -> None: ...

    async def update_market_status(
        self,
        db: AsyncSession,
        market_id: str,
        status: str,
        settled_at: datetime | None = None,
    ) -> None: ...

    async def delete_market(self, db: AsyncSession, market_id: str) -> None: ...

    async def list_options(
        self, db: AsyncSession, market_id: str, for_update: bool = False
    ) -> list[MarketOption]: ...

    async def get_option(self, db: AsyncSession, option_id: str) -> MarketOption | None: ...

    async def insert_option(self, db: AsyncSession, option: MarketOption) -> None: ...

    async def update_option(self, db: AsyncSession, option: MarketOption) -> None: ...

    async def increment_option_totals(
        self, db: AsyncSession, option_id: str, stake_delta: int, count_delta: int
    ) -> MarketOption: ...

    async def update_option_odds(
        self, db: AsyncSession, odds_by_option: dict[str, int]
    ) -> None: ...

    async def mark_winning_options(self, db: AsyncSession, option_ids: list[str]) -> None: ...

    async def get_market_totals(self, db: AsyncSession, market_id: str) -> MarketTotals: ...
