"""Simulated payment provider.

No real processor is called: intents, confirmations and refunds are fabricated
with provider-shaped identifiers so the checkout flow can be exercised end to
end. Quotes are real and computed in cents.
"""

import secrets
import string
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

from src.core.logging import get_logger


logger = get_logger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_LENGTH = 9

# Amount reported for simulated intents whose amount is unknown
SIMULATED_AMOUNT_CENTS = 1000


def _random_id(prefix: str) -> str:
    return prefix + "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


@dataclass
class QuoteItem:
    """Priced cart line."""

    price: Decimal
    quantity: int = 1


@dataclass
class PaymentQuote:
    """Cart totals in cents."""

    subtotal_cents: int
    tax_cents: int
    total_cents: int


@dataclass
class PaymentIntent:
    id: str
    amount: int
    currency: str
    status: str
    client_secret: str
    metadata: dict[str, Any] = field(default_factory=dict)


def to_cents(amount: Decimal) -> int:
    """Round a dollar amount to whole cents."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:
    """Quotes and simulated payment intents."""

    def __init__(self, tax_rate: Decimal | float = Decimal("0.08"), currency: str = "usd"):
        self.tax_rate = Decimal(str(tax_rate))
        self.currency = currency

    def quote(self, items: Iterable[QuoteItem]) -> PaymentQuote:
        """Subtotal, tax and total for the given items, in cents."""
        subtotal = sum((item.price * item.quantity for item in items), Decimal("0"))
        tax = subtotal * self.tax_rate
        return PaymentQuote(
            subtotal_cents=to_cents(subtotal),
            tax_cents=to_cents(tax),
            total_cents=to_cents(subtotal + tax),
        )

    def create_payment_intent(
        self,
        user_id: UUID,
        amount: int,
        currency: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> PaymentIntent:
        intent_id = _random_id("pi_")
        intent = PaymentIntent(
            id=intent_id,
            amount=amount,
            currency=currency or self.currency,
            status="requires_payment_method",
            client_secret=f"{intent_id}_secret_{_random_id('')}",
            metadata={"user_id": str(user_id), **(metadata or {})},
        )
        logger.info("payment_intent_created", payment_intent_id=intent.id, amount=amount)
        return intent

    def confirm_payment(self, payment_intent_id: str) -> str:
        """Confirm an intent; always succeeds."""
        logger.info("payment_confirmed", payment_intent_id=payment_intent_id)
        return "succeeded"

    def refund(self, payment_intent_id: str, amount: int | None = None) -> str:
        """Refund an intent; returns the refund id."""
        refund_id = _random_id("re_")
        logger.info(
            "payment_refunded",
            payment_intent_id=payment_intent_id,
            refund_id=refund_id,
            amount=amount or SIMULATED_AMOUNT_CENTS,
        )
        return refund_id

    def get_status(self, payment_intent_id: str) -> tuple[str, int]:
        """Status and amount of an intent."""
        return "succeeded", SIMULATED_AMOUNT_CENTS
