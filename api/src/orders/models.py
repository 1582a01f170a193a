"""Order models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from src.core.timeutils import ensure_utc_aware, utc_now


if TYPE_CHECKING:
    from cassandra.cluster import Row


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Partitioned by user, newest first, for the dashboard's recent orders
ORDERS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.orders (
    user_id UUID,
    created_at TIMESTAMP,
    id UUID,
    status TEXT,
    total_amount DECIMAL,
    payment_method TEXT,
    billing_address MAP<TEXT, TEXT>,
    PRIMARY KEY ((user_id), created_at, id)
) WITH CLUSTERING ORDER BY (created_at DESC, id ASC)
"""

ORDERS_TABLES_CQL = [
    ORDERS_TABLE_CQL,
]


@dataclass
class Order:
    """Checkout order."""

    user_id: UUID
    payment_method: str
    id: UUID = field(default_factory=uuid4)
    status: OrderStatus = OrderStatus.COMPLETED
    total_amount: Decimal = Decimal("0")
    billing_address: dict[str, str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_row(cls, row: "Row") -> "Order":
        """Create instance from Cassandra row."""
        return cls(
            id=row.id,
            user_id=row.user_id,
            status=OrderStatus(row.status) if row.status else OrderStatus.PENDING,
            total_amount=row.total_amount
            if row.total_amount is not None
            else Decimal("0"),
            payment_method=row.payment_method or "",
            billing_address=dict(row.billing_address or {}),
            created_at=ensure_utc_aware(row.created_at) or utc_now(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status.value,
            "total_amount": self.total_amount,
            "payment_method": self.payment_method,
            "billing_address": self.billing_address,
            "created_at": self.created_at,
        }
