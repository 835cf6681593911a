"""HTTP surface: auth, role checks, body validation and error mapping."""

from unittest.mock import AsyncMock, patch

import pytest

from src.mb_bet.application.schemas import UserStatsResponse
from src.mb_bet.domain.models import UserBetStats
from src.mb_common.errors import MarketClosedError


class TestAuth:
    @pytest.mark.asyncio
    async def test_health_is_public(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_bets_require_token(self, client):
        resp = await client.get("/api/v1/bets")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_token_rejected(self, client):
        resp = await client.get(
            "/api/v1/markets", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_user_cannot_reach_admin(self, client, user_headers):
        resp = await client.post(
            "/api/v1/admin/markets/MKT-1/cancel", headers=user_headers
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == 1006

    @pytest.mark.asyncio
    async def test_user_cannot_report_payments(self, client, user_headers):
        resp = await client.post(
            "/api/v1/payments/confirm", json={"bet_id": "b1"}, headers=user_headers
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_user_cannot_create_markets(self, client, user_headers):
        resp = await client.post(
            "/api/v1/markets/default",
            json={"match_id": "MATCH-1", "first_team_name": "Home", "second_team_name": "Away"},
            headers=user_headers,
        )
        assert resp.status_code == 403


class TestValidation:
    @pytest.mark.asyncio
    async def test_zero_stake_rejected(self, client, user_headers):
        resp = await client.post(
            "/api/v1/bets",
            json={"market_id": "MKT-1", "option_id": "A", "stake_cents": 0},
            headers=user_headers,
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_payment_callback_needs_a_key(self, client, operator_headers):
        resp = await client.post("/api/v1/payments/confirm", json={}, headers=operator_headers)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_match_result_needs_teams(self, client, operator_headers):
        resp = await client.post(
            "/api/v1/admin/matches/results",
            json={"match_id": "MATCH-1"},
            headers=operator_headers,
        )
        assert resp.status_code == 422


class TestEnvelope:
    @pytest.mark.asyncio
    async def test_success_wrapped(self, client, user_headers):
        stats = UserStatsResponse.from_domain(UserBetStats(total_bets=2, won_bets=1, lost_bets=1))
        with patch(
            "src.mb_bet.api.router._service.get_user_stats", AsyncMock(return_value=stats)
        ):
            resp = await client.get("/api/v1/bets/stats", headers=user_headers)

        body = resp.json()
        assert resp.status_code == 200
        assert body["code"] == 0
        assert body["data"]["total_bets"] == 2
        assert body["data"]["win_rate"] == 50.0
        assert body["request_id"].startswith("req_")

    @pytest.mark.asyncio
    async def test_app_error_mapped(self, client, user_headers):
        with patch(
            "src.mb_bet.api.router._service.place_bet",
            AsyncMock(side_effect=MarketClosedError("MKT-1")),
        ):
            resp = await client.post(
                "/api/v1/bets",
                json={"market_id": "MKT-1", "option_id": "A", "stake_cents": 1_000},
                headers=user_headers,
            )

        assert resp.status_code == 422
        assert resp.json()["code"] == 3002
        assert resp.json()["data"] is None
