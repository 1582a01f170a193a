# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Order service layer."""

from typing import TYPE_CHECKING
from uuid import UUID

from src.core.errors import DatabaseError
from src.core.logging import get_logger

from .models import Order, OrderStatus


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class OrderService:
    """Checkout orders."""

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
        self._insert_order = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.orders
            (user_id, created_at, id, status, total_amount, payment_method, billing_address)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)
        self._list_recent = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.orders WHERE user_id = ? LIMIT ?"
        )

    async def create_order(
        self,
        user_id: UUID,
        payment_method: str,
        billing_address: dict[str, str],
    ) -> Order:
        """Record a completed checkout.

        Payment is simulated, so the order is completed with a zero total.
        """
        order = Order(
            user_id=user_id,
            payment_method=payment_method,
            status=OrderStatus.COMPLETED,
            billing_address=billing_address,
        )
        try:
            await self.session.aexecute(
                self._insert_order,
                [
                    order.user_id,
                    order.created_at,
                    order.id,
                    order.status.value,
                    order.total_amount,
                    order.payment_method,
                    order.billing_address,
                ],
            )
        except Exception as e:
            logger.exception("database_error_create_order", error=str(e))
            raise DatabaseError("Failed to create order", original_error=e) from e

        logger.info("order_created", order_id=str(order.id), user_id=str(user_id))
        return order

    async def list_recent_orders(self, user_id: UUID, limit: int = 5) -> list[Order]:
        """Most recent orders of a user."""
        result = await self.session.aexecute(self._list_recent, [user_id, limit])
        return [Order.from_row(row) for row in result]
