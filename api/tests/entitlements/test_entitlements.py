"""Tests for kit entitlements and the purchase ledger."""

from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, Mock, patch
from uuid import uuid4

import pytest

from src.core.errors import DatabaseError
from src.core.timeutils import utc_now
from src.entitlements.models import (
    PaymentMethod,
    PaymentStatus,
    PermissionType,
    UserPermission,
)
from src.entitlements.service import EntitlementService, merge_expiry


def permission_row(user_id, kit_id, expires_at=None) -> SimpleNamespace:
    return SimpleNamespace(
        user_id=user_id,
        kit_id=kit_id,
        permission_type=PermissionType.COURSE_ACCESS.value,
        expires_at=expires_at,
        granted_at=utc_now(),
    )


class TestMergeExpiry:
    """Tests for merge_expiry."""

    def test_none_wins(self) -> None:
        later = utc_now() + timedelta(days=30)
        assert merge_expiry(None, later) is None
        assert merge_expiry(later, None) is None

    def test_later_expiry_wins(self) -> None:
        sooner = utc_now() + timedelta(days=1)
        later = utc_now() + timedelta(days=30)
        assert merge_expiry(sooner, later) == later
        assert merge_expiry(later, sooner) == later


class TestUserPermission:
    """Tests for permission expiry."""

    def test_no_expiry_is_active(self) -> None:
        permission = UserPermission(user_id=uuid4(), kit_id=uuid4())
        assert permission.is_active() is True

    def test_expired_is_inactive(self) -> None:
        now = utc_now()
        permission = UserPermission(
            user_id=uuid4(), kit_id=uuid4(), expires_at=now - timedelta(seconds=1)
        )
        assert permission.is_active(now) is False


class TestHasKitAccess:
    """Tests for EntitlementService.has_kit_access."""

    @pytest.fixture
    def service(self, mock_session: Mock) -> EntitlementService:
        return EntitlementService(mock_session, "electrofun_test")

    @pytest.mark.asyncio
    async def test_no_permission(
        self, service: EntitlementService, mock_session: Mock
    ) -> None:
        mock_session.aexecute = AsyncMock(return_value=[])
        assert await service.has_kit_access(uuid4(), uuid4()) is False

    @pytest.mark.asyncio
    async def test_active_permission(
        self, service: EntitlementService, mock_session: Mock
    ) -> None:
        user_id, kit_id = uuid4(), uuid4()
        mock_session.aexecute = AsyncMock(
            return_value=[permission_row(user_id, kit_id)]
        )
        assert await service.has_kit_access(user_id, kit_id) is True

    @pytest.mark.asyncio
    async def test_expired_permission_counts_as_absent(
        self, service: EntitlementService, mock_session: Mock
    ) -> None:
        user_id, kit_id = uuid4(), uuid4()
        now = utc_now()
        mock_session.aexecute = AsyncMock(
            return_value=[permission_row(user_id, kit_id, now - timedelta(days=1))]
        )
        assert await service.has_kit_access(user_id, kit_id, now) is False

    @pytest.mark.asyncio
    async def test_list_user_kit_ids_skips_expired(
        self, service: EntitlementService, mock_session: Mock
    ) -> None:
        user_id = uuid4()
        active, expired = uuid4(), uuid4()
        now = utc_now()
        mock_session.aexecute = AsyncMock(
            return_value=[
                permission_row(user_id, active),
                permission_row(user_id, expired, now - timedelta(hours=1)),
            ]
        )
        assert await service.list_user_kit_ids(user_id, now) == [active]


class TestGrantKitAccess:
    """Tests for the atomic grant + ledger write."""

    @pytest.fixture
    def service(self, mock_session: Mock) -> EntitlementService:
        return EntitlementService(mock_session, "electrofun_test")

    @pytest.mark.asyncio
    async def test_permission_and_purchase_in_one_batch(
        self, service: EntitlementService, mock_session: Mock
    ) -> None:
        user_id, kit_id, code_id = uuid4(), uuid4(), uuid4()
        mock_session.aexecute = AsyncMock(return_value=[])

        with patch("src.entitlements.service.BatchStatement") as batch_cls:
            batch = MagicMock()
            batch_cls.return_value = batch
            purchase = await service.grant_kit_access(
                user_id=user_id,
                kit_id=kit_id,
                payment_method=PaymentMethod.CODE_REDEMPTION,
                kit_code_id=code_id,
            )

        assert batch.add.call_count == 2
        permission_params = batch.add.call_args_list[0].args[1]
        assert permission_params[:4] == [
            user_id,
            kit_id,
            PermissionType.COURSE_ACCESS.value,
            None,
        ]
        purchase_params = batch.add.call_args_list[1].args[1]
        assert purchase_params[4] == Decimal("0")
        assert purchase_params[6] == "code_redemption"
        assert purchase_params[7] == "completed"
        assert purchase_params[8] == code_id

        mock_session.aexecute.assert_awaited_with(batch)
        assert purchase.amount == Decimal("0")
        assert purchase.payment_status == PaymentStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_existing_permission_is_only_extended(
        self, service: EntitlementService, mock_session: Mock
    ) -> None:
        """A grant never shortens an open-ended permission."""
        user_id, kit_id = uuid4(), uuid4()
        mock_session.aexecute = AsyncMock(
            return_value=[permission_row(user_id, kit_id, expires_at=None)]
        )

        with patch("src.entitlements.service.BatchStatement") as batch_cls:
            batch = MagicMock()
            batch_cls.return_value = batch
            await service.grant_kit_access(
                user_id=user_id,
                kit_id=kit_id,
                payment_method=PaymentMethod.ADMIN_GRANT,
                expires_at=utc_now() + timedelta(days=7),
            )

        assert batch.add.call_args_list[0].args[1][3] is None

    @pytest.mark.asyncio
    async def test_batch_failure(
        self, service: EntitlementService, mock_session: Mock
    ) -> None:
        mock_session.aexecute = AsyncMock(side_effect=[[], Exception("timeout")])

        with patch("src.entitlements.service.BatchStatement"):
            with pytest.raises(DatabaseError, match="Failed to grant kit access"):
                await service.grant_kit_access(
                    user_id=uuid4(),
                    kit_id=uuid4(),
                    payment_method=PaymentMethod.STRIPE,
                )


def purchase_row(user_id, created_at, amount="0") -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        user_id=user_id,
        kit_id=uuid4(),
        amount=Decimal(amount),
        currency="USD",
        payment_method=PaymentMethod.ADMIN_GRANT.value,
        payment_status=PaymentStatus.COMPLETED.value,
        kit_code_id=None,
        created_at=created_at,
        completed_at=created_at,
    )


class TestPurchaseLedger:
    """Tests for ledger queries."""

    @pytest.fixture
    def service(self, mock_session: Mock) -> EntitlementService:
        return EntitlementService(mock_session, "electrofun_test")

    @pytest.mark.asyncio
    async def test_list_purchases_newest_first(
        self, service: EntitlementService, mock_session: Mock
    ) -> None:
        now = utc_now()
        older = purchase_row(uuid4(), now - timedelta(days=2))
        newer = purchase_row(uuid4(), now)
        mock_session.aexecute = AsyncMock(return_value=[older, newer])

        purchases = await service.list_purchases()

        assert [p.id for p in purchases] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_list_user_purchases(
        self, service: EntitlementService, mock_session: Mock
    ) -> None:
        user_id = uuid4()
        mock_session.aexecute = AsyncMock(
            return_value=[purchase_row(user_id, utc_now(), "49.99")]
        )

        purchases = await service.list_user_purchases(user_id)

        assert len(purchases) == 1
        assert purchases[0].amount == Decimal("49.99")
        assert purchases[0].payment_method == PaymentMethod.ADMIN_GRANT
        assert mock_session.aexecute.call_args.args[1] == [user_id]
