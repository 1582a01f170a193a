"""Tests for the redemption endpoint."""

from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from src.core.redis import RateLimiter
from src.kits.models import Kit
from src.redemption.dependencies import get_redeem_rate_limiter, get_redemption_service
from src.redemption.service import RedemptionFailedError, RedemptionService


@pytest.fixture
def redeem_client(
    client: TestClient, redemption_service: RedemptionService
) -> TestClient:
    app = client.app
    app.dependency_overrides[get_redemption_service] = lambda: redemption_service
    app.dependency_overrides[get_redeem_rate_limiter] = lambda: RateLimiter(
        None, "redeem", limit=5
    )
    return client


class TestRedeemEndpoint:
    """Tests for POST /v1/redeem."""

    def test_requires_login(self, redeem_client: TestClient) -> None:
        response = redeem_client.post("/v1/redeem", json={"code": "ABCD1234"})
        assert response.status_code == 200
        assert response.json() == {
            "success": False,
            "error": "Please log in to redeem codes",
        }

    def test_success_then_reuse(
        self, redeem_client: TestClient, auth_headers: dict[str, str], kit: Kit
    ) -> None:
        first = redeem_client.post(
            "/v1/redeem", json={"code": "ABCD1234"}, headers=auth_headers
        )
        assert first.status_code == 200
        body = first.json()
        assert body["success"] is True
        assert body["kit"]["id"] == str(kit.id)
        assert body["kit"]["name"] == "Robotics Kit"
        assert "Successfully redeemed Robotics Kit!" in body["message"]

        second = redeem_client.post(
            "/v1/redeem", json={"code": "ABCD1234"}, headers=auth_headers
        )
        assert second.status_code == 200
        assert second.json() == {"success": False, "error": "Invalid or expired code"}

    def test_blank_code(
        self, redeem_client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        response = redeem_client.post(
            "/v1/redeem", json={"code": "  "}, headers=auth_headers
        )
        assert response.json() == {
            "success": False,
            "error": "Please enter a valid code",
        }

    def test_rate_limited(
        self, redeem_client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        limiter = Mock()
        limiter.hit = AsyncMock(return_value=False)
        redeem_client.app.dependency_overrides[get_redeem_rate_limiter] = lambda: limiter

        response = redeem_client.post(
            "/v1/redeem", json={"code": "ABCD1234"}, headers=auth_headers
        )
        assert response.status_code == 429

    def test_store_failure_is_500(
        self,
        redeem_client: TestClient,
        redemption_service: RedemptionService,
        auth_headers: dict[str, str],
    ) -> None:
        redemption_service.redeem = AsyncMock(side_effect=RedemptionFailedError())

        response = redeem_client.post(
            "/v1/redeem", json={"code": "ABCD1234"}, headers=auth_headers
        )
        assert response.status_code == 500
        assert response.json()["message"] == "Failed to process code redemption"
