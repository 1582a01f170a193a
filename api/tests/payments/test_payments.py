"""Tests for quotes, the simulated payment provider and checkout."""

from decimal import Decimal
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from src.core.errors import DatabaseError
from src.orders.dependencies import get_order_service
from src.orders.models import Order, OrderStatus
from src.payments.dependencies import get_payment_service
from src.payments.service import PaymentService, QuoteItem, to_cents


class TestQuote:
    """Tests for PaymentService.quote."""

    def test_default_tax_rate(self) -> None:
        quote = PaymentService().quote([QuoteItem(price=Decimal("49.99"))])
        assert quote.subtotal_cents == 4999
        assert quote.tax_cents == 400
        assert quote.total_cents == 5399

    def test_quantities(self) -> None:
        quote = PaymentService().quote(
            [
                QuoteItem(price=Decimal("10.00"), quantity=3),
                QuoteItem(price=Decimal("5.50")),
            ]
        )
        assert quote.subtotal_cents == 3550
        assert quote.tax_cents == 284
        assert quote.total_cents == 3834

    def test_empty_cart(self) -> None:
        quote = PaymentService().quote([])
        assert (quote.subtotal_cents, quote.tax_cents, quote.total_cents) == (0, 0, 0)

    def test_custom_rate(self) -> None:
        quote = PaymentService(tax_rate=0).quote([QuoteItem(price=Decimal("20"))])
        assert quote.total_cents == 2000

    @pytest.mark.parametrize(
        "amount,cents",
        [(Decimal("0.005"), 1), (Decimal("0.004"), 0), (Decimal("12.345"), 1235)],
    )
    def test_to_cents_rounds_half_up(self, amount: Decimal, cents: int) -> None:
        assert to_cents(amount) == cents


class TestSimulatedProvider:
    """Tests for the simulated intents."""

    def test_intent_shape(self) -> None:
        user_id = uuid4()
        intent = PaymentService().create_payment_intent(
            user_id, 5399, metadata={"kit": "a"}
        )
        assert intent.id.startswith("pi_")
        assert intent.client_secret.startswith(f"{intent.id}_secret_")
        assert intent.currency == "usd"
        assert intent.metadata == {"user_id": str(user_id), "kit": "a"}

    def test_refund_id(self) -> None:
        assert PaymentService().refund("pi_123").startswith("re_")


class TestPaymentsEndpoint:
    """Tests for /api/payments."""

    @pytest.fixture
    def payments_client(self, client: TestClient) -> TestClient:
        client.app.dependency_overrides[get_payment_service] = lambda: PaymentService()
        return client

    def test_requires_auth(self, payments_client: TestClient) -> None:
        response = payments_client.post("/api/payments", json={"action": "refund"})
        assert response.status_code == 401

    def test_invalid_action(
        self, payments_client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        response = payments_client.post(
            "/api/payments", json={"action": "charge-twice"}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid action"

    def test_intent_from_items(
        self, payments_client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        response = payments_client.post(
            "/api/payments",
            json={
                "action": "create-payment-intent",
                "items": [{"price": "49.99", "quantity": 1}],
            },
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["amount"] == 5399

    def test_confirm_requires_intent_id(
        self, payments_client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        response = payments_client.post(
            "/api/payments", json={"action": "confirm-payment"}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Payment intent ID required"

    def test_confirm_with_camel_case_intent_id(
        self, payments_client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        response = payments_client.post(
            "/api/payments",
            json={
                "action": "confirm-payment",
                "paymentIntentId": "pi_abc",
                "paymentMethod": "pm_card_visa",
            },
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["payment_intent_id"] == "pi_abc"
        assert response.json()["status"] == "succeeded"

    def test_refund_with_snake_case_intent_id(
        self, payments_client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        response = payments_client.post(
            "/api/payments",
            json={"action": "refund", "payment_intent_id": "pi_abc"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["refund_id"].startswith("re_")

    def test_status_requires_intent_id(
        self, payments_client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        response = payments_client.get("/api/payments", headers=auth_headers)
        assert response.status_code == 400

    def test_status(
        self, payments_client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        response = payments_client.get(
            "/api/payments?paymentIntentId=pi_abc", headers=auth_headers
        )
        assert response.json() == {"status": "succeeded", "amount": 1000}


class TestCheckoutEndpoint:
    """Tests for /v1/checkout."""

    @pytest.fixture
    def order_service(self) -> Mock:
        return Mock()

    @pytest.fixture
    def checkout_client(self, client: TestClient, order_service: Mock) -> TestClient:
        client.app.dependency_overrides[get_order_service] = lambda: order_service
        return client

    @pytest.fixture
    def form(self) -> dict[str, str]:
        return {
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "ada@example.com",
            "card_number": "4242424242424242",
            "address": "1 Circuit Way",
            "city": "London",
            "state": "LDN",
            "zip_code": "N1",
        }

    def test_creates_order(
        self,
        checkout_client: TestClient,
        order_service: Mock,
        auth_headers: dict[str, str],
        form: dict[str, str],
    ) -> None:
        order = Order(
            user_id=uuid4(),
            payment_method="card",
            status=OrderStatus.COMPLETED,
        )
        order_service.create_order = AsyncMock(return_value=order)

        response = checkout_client.post("/v1/checkout", json=form, headers=auth_headers)

        assert response.status_code == 201
        assert response.json() == {"success": True, "order_id": str(order.id)}
        billing = order_service.create_order.await_args.kwargs["billing_address"]
        assert "card_number" not in billing
        assert billing["city"] == "London"

    def test_store_failure(
        self,
        checkout_client: TestClient,
        order_service: Mock,
        auth_headers: dict[str, str],
        form: dict[str, str],
    ) -> None:
        order_service.create_order = AsyncMock(side_effect=DatabaseError("boom"))

        response = checkout_client.post("/v1/checkout", json=form, headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to create order"
