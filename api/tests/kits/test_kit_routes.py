"""Tests for the shop and the admin kit panel endpoints."""

from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from src.auth.dependencies import get_profile_service
from src.auth.models import Profile
from src.auth.permissions import UserRole
from src.auth.schemas import AuthenticatedUser
from src.email.dependencies import get_email_service
from src.entitlements.dependencies import get_entitlement_service
from src.entitlements.models import PaymentMethod, Purchase
from src.kits.dependencies import get_kit_service
from src.kits.models import CodeType, Kit, KitCode
from src.kits.service import KitCodeNotFoundError, KitNotFoundError


@pytest.fixture
def kits() -> list[Kit]:
    return [
        Kit(name="Starter", theme="basics", level=1, price=Decimal("19.00")),
        Kit(name="Robotics", theme="robots", level=2, price=Decimal("59.00")),
    ]


@pytest.fixture
def kit_service(kits: list[Kit]) -> Mock:
    service = Mock()
    service.list_kits = AsyncMock(return_value=kits)
    by_id = {kit.id: kit for kit in kits}
    service.get_kit = AsyncMock(side_effect=by_id.get)
    service.list_codes = AsyncMock(return_value=[])
    return service


@pytest.fixture
def entitlement_service() -> Mock:
    service = Mock()
    service.list_user_kit_ids = AsyncMock(return_value=[])
    service.list_purchases = AsyncMock(return_value=[])
    return service


@pytest.fixture
def profile_service(student: AuthenticatedUser) -> Mock:
    service = Mock()
    service.get_profile = AsyncMock(
        return_value=Profile(id=student.id, email=student.email, role=UserRole.STUDENT)
    )
    return service


@pytest.fixture
def email_service() -> Mock:
    service = Mock()
    service.send_purchase_confirmation = AsyncMock()
    return service


@pytest.fixture
def kit_client(
    client: TestClient,
    kit_service: Mock,
    entitlement_service: Mock,
    profile_service: Mock,
    email_service: Mock,
) -> TestClient:
    overrides = client.app.dependency_overrides
    overrides[get_kit_service] = lambda: kit_service
    overrides[get_entitlement_service] = lambda: entitlement_service
    overrides[get_profile_service] = lambda: profile_service
    overrides[get_email_service] = lambda: email_service
    return client


class TestShop:
    """Tests for /v1/shop."""

    def test_anonymous_listing(self, kit_client: TestClient, kits: list[Kit]) -> None:
        response = kit_client.get("/v1/shop")
        assert response.status_code == 200
        data = response.json()
        assert [k["name"] for k in data["kits"]] == ["Starter", "Robotics"]
        assert data["user_kits"] == []

    def test_owned_kits(
        self,
        kit_client: TestClient,
        entitlement_service: Mock,
        auth_headers: dict[str, str],
        kits: list[Kit],
    ) -> None:
        entitlement_service.list_user_kit_ids = AsyncMock(return_value=[kits[0].id])
        response = kit_client.get("/v1/shop", headers=auth_headers)
        assert response.json()["user_kits"] == [str(kits[0].id)]

    def test_unknown_kit(self, kit_client: TestClient) -> None:
        response = kit_client.get("/v1/shop/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404

    def test_purchase_grants_and_emails(
        self,
        kit_client: TestClient,
        entitlement_service: Mock,
        email_service: Mock,
        student: AuthenticatedUser,
        auth_headers: dict[str, str],
        kits: list[Kit],
    ) -> None:
        entitlement_service.grant_kit_access = AsyncMock(
            return_value=Purchase(
                user_id=student.id,
                kit_id=kits[1].id,
                payment_method=PaymentMethod.ADMIN_GRANT,
            )
        )

        response = kit_client.post(
            "/v1/shop/purchase", json={"kit_id": str(kits[1].id)}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Kit purchased successfully!"
        kwargs = entitlement_service.grant_kit_access.await_args.kwargs
        assert kwargs["payment_method"] == PaymentMethod.ADMIN_GRANT
        email_service.send_purchase_confirmation.assert_awaited_once()

    def test_purchase_email_failure_still_succeeds(
        self,
        kit_client: TestClient,
        entitlement_service: Mock,
        email_service: Mock,
        student: AuthenticatedUser,
        auth_headers: dict[str, str],
        kits: list[Kit],
    ) -> None:
        entitlement_service.grant_kit_access = AsyncMock(
            return_value=Purchase(
                user_id=student.id,
                kit_id=kits[0].id,
                payment_method=PaymentMethod.ADMIN_GRANT,
            )
        )
        email_service.send_purchase_confirmation = AsyncMock(side_effect=Exception("x"))

        response = kit_client.post(
            "/v1/shop/purchase", json={"kit_id": str(kits[0].id)}, headers=auth_headers
        )

        assert response.status_code == 200


class TestAdminKits:
    """Tests for /v1/admin/kits capability checks."""

    def test_requires_auth(self, kit_client: TestClient) -> None:
        assert kit_client.get("/v1/admin/kits").status_code == 401

    def test_student_forbidden(
        self, kit_client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        assert kit_client.get("/v1/admin/kits", headers=auth_headers).status_code == 403

    def test_stored_role_is_authoritative(
        self,
        kit_client: TestClient,
        profile_service: Mock,
        student: AuthenticatedUser,
        auth_headers: dict[str, str],
        kit_service: Mock,
        kits: list[Kit],
    ) -> None:
        """A token issued as student still passes once the profile is admin."""
        profile_service.get_profile = AsyncMock(
            return_value=Profile(id=student.id, email=student.email, role=UserRole.ADMIN)
        )
        kit_service.list_codes = AsyncMock(
            return_value=[
                KitCode(code="ABCD1234", kit_id=kits[0].id, code_type=CodeType.QR)
            ]
        )

        response = kit_client.get("/v1/admin/kits", headers=auth_headers)

        assert response.status_code == 200
        codes = response.json()["codes"]
        assert codes[0]["code"] == "ABCD1234"
        assert codes[0]["kit_name"] == "Starter"


class TestAdminKitActions:
    """Tests for code generation, code deletion and manual grants."""

    @pytest.fixture
    def admin_client(
        self,
        kit_client: TestClient,
        profile_service: Mock,
        student: AuthenticatedUser,
    ) -> TestClient:
        profile_service.get_profile = AsyncMock(
            return_value=Profile(id=student.id, email=student.email, role=UserRole.ADMIN)
        )
        return kit_client

    def test_generate_codes(
        self,
        admin_client: TestClient,
        kit_service: Mock,
        auth_headers: dict[str, str],
        kits: list[Kit],
    ) -> None:
        generated = [
            KitCode(code=f"CODE000{i}", kit_id=kits[0].id, code_type=CodeType.QR)
            for i in range(3)
        ]
        kit_service.generate_codes = AsyncMock(return_value=generated)

        response = admin_client.post(
            f"/v1/admin/kits/{kits[0].id}/codes",
            json={"code_type": "qr", "quantity": 3},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Generated 3 qr codes"
        assert [c["code"] for c in data["codes"]] == ["CODE0000", "CODE0001", "CODE0002"]
        assert all(c["is_used"] is False for c in data["codes"])
        kit_service.generate_codes.assert_awaited_once_with(
            kits[0].id, CodeType.QR, 3, None
        )

    @pytest.mark.parametrize("quantity", [0, 501])
    def test_generate_codes_quantity_bounds(
        self,
        admin_client: TestClient,
        kit_service: Mock,
        auth_headers: dict[str, str],
        kits: list[Kit],
        quantity: int,
    ) -> None:
        kit_service.generate_codes = AsyncMock()
        response = admin_client.post(
            f"/v1/admin/kits/{kits[0].id}/codes",
            json={"code_type": "qr", "quantity": quantity},
            headers=auth_headers,
        )
        assert response.status_code == 422
        kit_service.generate_codes.assert_not_awaited()

    def test_generate_codes_unknown_kit(
        self,
        admin_client: TestClient,
        kit_service: Mock,
        auth_headers: dict[str, str],
    ) -> None:
        kit_service.generate_codes = AsyncMock(side_effect=KitNotFoundError())
        response = admin_client.post(
            "/v1/admin/kits/00000000-0000-0000-0000-000000000000/codes",
            json={"code_type": "access_code", "quantity": 1},
            headers=auth_headers,
        )
        assert response.status_code == 404

    def test_student_cannot_generate_codes(
        self, kit_client: TestClient, auth_headers: dict[str, str], kits: list[Kit]
    ) -> None:
        response = kit_client.post(
            f"/v1/admin/kits/{kits[0].id}/codes",
            json={"code_type": "qr", "quantity": 1},
            headers=auth_headers,
        )
        assert response.status_code == 403

    def test_delete_code(
        self, admin_client: TestClient, kit_service: Mock, auth_headers: dict[str, str]
    ) -> None:
        kit_service.delete_code = AsyncMock()
        response = admin_client.delete(
            "/v1/admin/kits/codes/ABCD1234", headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Code deleted successfully"
        kit_service.delete_code.assert_awaited_once_with("ABCD1234")

    def test_delete_missing_code(
        self, admin_client: TestClient, kit_service: Mock, auth_headers: dict[str, str]
    ) -> None:
        kit_service.delete_code = AsyncMock(side_effect=KitCodeNotFoundError())
        response = admin_client.delete(
            "/v1/admin/kits/codes/ZZZZ9999", headers=auth_headers
        )
        assert response.status_code == 404

    def test_grant_access(
        self,
        admin_client: TestClient,
        entitlement_service: Mock,
        auth_headers: dict[str, str],
        kits: list[Kit],
    ) -> None:
        target = "11111111-1111-1111-1111-111111111111"
        entitlement_service.grant_kit_access = AsyncMock()

        response = admin_client.post(
            "/v1/admin/kits/grant",
            json={"user_id": target, "kit_id": str(kits[1].id)},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Kit access granted successfully"
        kwargs = entitlement_service.grant_kit_access.await_args.kwargs
        assert str(kwargs["user_id"]) == target
        assert kwargs["kit_id"] == kits[1].id
        assert kwargs["payment_method"] == PaymentMethod.ADMIN_GRANT
        assert kwargs["expires_at"] is None

    def test_grant_unknown_kit(
        self,
        admin_client: TestClient,
        entitlement_service: Mock,
        auth_headers: dict[str, str],
    ) -> None:
        entitlement_service.grant_kit_access = AsyncMock()
        response = admin_client.post(
            "/v1/admin/kits/grant",
            json={
                "user_id": "11111111-1111-1111-1111-111111111111",
                "kit_id": "00000000-0000-0000-0000-000000000000",
            },
            headers=auth_headers,
        )
        assert response.status_code == 404
        entitlement_service.grant_kit_access.assert_not_awaited()
