# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Entitlement service layer.

Business logic for:
- Kit access checks (a non-expired course_access permission exists)
- Granting access together with its ledger entry in one logged batch
- Purchase ledger queries
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from cassandra.query import BatchStatement, BatchType

from src.core.errors import DatabaseError
from src.core.logging import get_logger
from src.core.timeutils import utc_now
from src.entitlements.models import (
    PaymentMethod,
    PaymentStatus,
    PermissionType,
    Purchase,
    UserPermission,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


def merge_expiry(current: datetime | None, requested: datetime | None) -> datetime | None:
    """Pick the later of two expiries, where None means no expiry.

    Permissions are only ever extended, never shortened, by a new grant.
    """
    if current is None or requested is None:
        return None
    return max(current, requested)


class EntitlementService:
    """Kit entitlement store and purchase ledger."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra session with aexecute support
            keyspace: Keyspace name for queries
        """
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_permission = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.user_permissions
            WHERE user_id = ? AND kit_id = ? AND permission_type = ?
        """)
        self._list_user_permissions = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.user_permissions WHERE user_id = ?"
        )
        self._upsert_permission = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.user_permissions
            (user_id, kit_id, permission_type, expires_at, granted_at)
            VALUES (?, ?, ?, ?, ?)
        """)
        self._insert_purchase = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.purchases
            (user_id, created_at, id, kit_id, amount, currency, payment_method,
             payment_status, kit_code_id, completed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._list_user_purchases = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.purchases WHERE user_id = ?"
        )
        self._list_purchases = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.purchases"
        )

    # ==========================================================================
    # Access checks
    # ==========================================================================

    async def get_permission(
        self,
        user_id: UUID,
        kit_id: UUID,
        permission_type: PermissionType = PermissionType.COURSE_ACCESS,
    ) -> UserPermission | None:
        """Get the stored permission row, whether or not it has expired."""
        result = await self.session.aexecute(
            self._get_permission, [user_id, kit_id, permission_type.value]
        )
        if not result:
            return None
        return UserPermission.from_row(result[0])

    async def has_kit_access(
        self,
        user_id: UUID,
        kit_id: UUID,
        now: datetime | None = None,
    ) -> bool:
        """Check for a non-expired course_access permission for (user, kit)."""
        permission = await self.get_permission(user_id, kit_id)
        return permission is not None and permission.is_active(now)

    async def list_user_kit_ids(
        self,
        user_id: UUID,
        now: datetime | None = None,
    ) -> list[UUID]:
        """Kit ids the user currently has course access to."""
        result = await self.session.aexecute(self._list_user_permissions, [user_id])
        permissions = [UserPermission.from_row(row) for row in result]
        return [
            p.kit_id
            for p in permissions
            if p.permission_type == PermissionType.COURSE_ACCESS and p.is_active(now)
        ]

    # ==========================================================================
    # Grants
    # ==========================================================================

    async def grant_kit_access(
        self,
        user_id: UUID,
        kit_id: UUID,
        payment_method: PaymentMethod,
        amount: Decimal = Decimal("0"),
        currency: str = "USD",
        kit_code_id: UUID | None = None,
        expires_at: datetime | None = None,
    ) -> Purchase:
        """Grant course access and record the ledger entry atomically.

        The permission upsert and the purchase insert go out as one LOGGED
        batch, so either both rows are written or neither is. An existing
        permission is only extended by the grant.

        Raises:
            DatabaseError: If the batch cannot be written
        """
        now = utc_now()
        existing = await self.get_permission(user_id, kit_id)
        if existing is not None and existing.is_active(now):
            expires_at = merge_expiry(existing.expires_at, expires_at)

        purchase = Purchase(
            user_id=user_id,
            kit_id=kit_id,
            payment_method=payment_method,
            amount=amount,
            currency=currency,
            payment_status=PaymentStatus.COMPLETED,
            kit_code_id=kit_code_id,
            created_at=now,
            completed_at=now,
        )

        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(
            self._upsert_permission,
            [user_id, kit_id, PermissionType.COURSE_ACCESS.value, expires_at, now],
        )
        batch.add(
            self._insert_purchase,
            [
                purchase.user_id,
                purchase.created_at,
                purchase.id,
                purchase.kit_id,
                purchase.amount,
                purchase.currency,
                purchase.payment_method.value,
                purchase.payment_status.value,
                purchase.kit_code_id,
                purchase.completed_at,
            ],
        )

        try:
            await self.session.aexecute(batch)
        except Exception as e:
            logger.exception(
                "database_error_grant_kit_access",
                user_id=str(user_id),
                kit_id=str(kit_id),
                error=str(e),
            )
            raise DatabaseError("Failed to grant kit access", original_error=e) from e

        logger.info(
            "kit_access_granted",
            user_id=str(user_id),
            kit_id=str(kit_id),
            payment_method=payment_method.value,
            purchase_id=str(purchase.id),
        )
        return purchase

    # ==========================================================================
    # Ledger
    # ==========================================================================

    async def list_user_purchases(self, user_id: UUID) -> list[Purchase]:
        """Purchases for a user, newest first."""
        result = await self.session.aexecute(self._list_user_purchases, [user_id])
        return [Purchase.from_row(row) for row in result]

    async def list_purchases(self) -> list[Purchase]:
        """All purchases, newest first."""
        result = await self.session.aexecute(self._list_purchases)
        purchases = [Purchase.from_row(row) for row in result]
        return sorted(purchases, key=lambda p: p.created_at, reverse=True)
