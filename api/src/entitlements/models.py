"""Entitlement and purchase ledger models.

Provides:
- UserPermission entity (user, kit, permission_type -> expiry)
- Purchase entity (append-only ledger)
- Cassandra table definitions
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from src.core.timeutils import ensure_utc_aware, utc_now


if TYPE_CHECKING:
    from cassandra.cluster import Row


class PermissionType(str, Enum):
    """Kinds of kit-level permission."""

    COURSE_ACCESS = "course_access"


class PaymentMethod(str, Enum):
    """How an entitlement was obtained."""

    STRIPE = "stripe"
    CODE_REDEMPTION = "code_redemption"
    ADMIN_GRANT = "admin_grant"


class PaymentStatus(str, Enum):
    """Ledger entry status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Uniqueness per (user, kit, permission_type) comes from the primary key
USER_PERMISSIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.user_permissions (
    user_id UUID,
    kit_id UUID,
    permission_type TEXT,
    expires_at TIMESTAMP,
    granted_at TIMESTAMP,
    PRIMARY KEY ((user_id), kit_id, permission_type)
)
"""

PURCHASES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.purchases (
    user_id UUID,
    created_at TIMESTAMP,
    id UUID,
    kit_id UUID,
    amount DECIMAL,
    currency TEXT,
    payment_method TEXT,
    payment_status TEXT,
    kit_code_id UUID,
    completed_at TIMESTAMP,
    PRIMARY KEY ((user_id), created_at, id)
) WITH CLUSTERING ORDER BY (created_at DESC, id ASC)
"""

ENTITLEMENTS_TABLES_CQL = [
    USER_PERMISSIONS_TABLE_CQL,
    PURCHASES_TABLE_CQL,
]


# ==============================================================================
# Entities
# ==============================================================================


@dataclass
class UserPermission:
    """Kit entitlement for a user; ``expires_at=None`` never expires."""

    user_id: UUID
    kit_id: UUID
    permission_type: PermissionType = PermissionType.COURSE_ACCESS
    expires_at: datetime | None = None
    granted_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_row(cls, row: "Row") -> "UserPermission":
        """Create instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            kit_id=row.kit_id,
            permission_type=PermissionType(row.permission_type),
            expires_at=ensure_utc_aware(row.expires_at),
            granted_at=ensure_utc_aware(row.granted_at) or utc_now(),
        )

    def is_active(self, now: datetime | None = None) -> bool:
        """An expired permission counts as absent."""
        if self.expires_at is None:
            return True
        return self.expires_at > (now or utc_now())


@dataclass
class Purchase:
    """Ledger entry recording how an entitlement was obtained."""

    user_id: UUID
    kit_id: UUID
    payment_method: PaymentMethod
    id: UUID = field(default_factory=uuid4)
    amount: Decimal = Decimal("0")
    currency: str = "USD"
    payment_status: PaymentStatus = PaymentStatus.COMPLETED
    kit_code_id: UUID | None = None
    created_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None

    @classmethod
    def from_row(cls, row: "Row") -> "Purchase":
        """Create instance from Cassandra row."""
        return cls(
            id=row.id,
            user_id=row.user_id,
            kit_id=row.kit_id,
            amount=row.amount if row.amount is not None else Decimal("0"),
            currency=row.currency or "USD",
            payment_method=PaymentMethod(row.payment_method),
            payment_status=PaymentStatus(row.payment_status),
            kit_code_id=row.kit_code_id,
            created_at=ensure_utc_aware(row.created_at) or utc_now(),
            completed_at=ensure_utc_aware(row.completed_at),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "kit_id": self.kit_id,
            "amount": self.amount,
            "currency": self.currency,
            "payment_method": self.payment_method.value,
            "payment_status": self.payment_status.value,
            "kit_code_id": self.kit_code_id,
            "created_at": self.created_at,
            "completed_at": self.completed_at,
        }
