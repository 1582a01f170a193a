"""Kit code redemption.

A redemption runs the checks in a fixed order and only writes the entitlement
after the code has been claimed:

1. Blank input is rejected.
2. The code must exist and be unused.
3. An expired code is rejected and stays unused.
4. A caller who already owns the kit is rejected before the claim, so the code
   is not consumed.
5. The claim is a conditional update; of several concurrent claims exactly one
   is applied.
6. Permission and ledger entry are written in one logged batch.
7. The confirmation email is best effort.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from src.core.errors import AppError
from src.core.logging import get_logger
from src.core.timeutils import utc_now
from src.entitlements.models import PaymentMethod, Purchase
from src.kits.codes import normalize_code
from src.kits.models import Kit


if TYPE_CHECKING:
    from src.auth.schemas import AuthenticatedUser
    from src.auth.service import ProfileService
    from src.email.service import EmailService
    from src.entitlements.service import EntitlementService
    from src.kits.service import KitService


logger = get_logger(__name__)


# ==============================================================================
# Exceptions
# ==============================================================================


class RedemptionError(AppError):
    """Base redemption error. ``message`` is shown to the user."""

    def __init__(self, message: str, code: str = "redemption_error"):
        super().__init__(message, code)


class EmptyCodeError(RedemptionError):
    def __init__(self):
        super().__init__("Please enter a valid code", "empty_code")


class InvalidCodeError(RedemptionError):
    def __init__(self):
        super().__init__("Invalid or expired code", "invalid_code")


class CodeExpiredError(RedemptionError):
    def __init__(self):
        super().__init__("This code has expired", "code_expired")


class KitAlreadyOwnedError(RedemptionError):
    def __init__(self):
        super().__init__("You already have access to this kit", "kit_already_owned")


class CodeAlreadyUsedError(RedemptionError):
    def __init__(self):
        super().__init__("This code has already been used", "code_already_used")


class RedemptionFailedError(RedemptionError):
    """Unexpected store failure during a redemption."""

    def __init__(self):
        super().__init__("Failed to process code redemption", "redemption_failed")


@dataclass
class RedemptionResult:
    """Successful redemption."""

    kit: Kit
    purchase: Purchase

    @property
    def message(self) -> str:
        return (
            f"Successfully redeemed {self.kit.name}! "
            "You now have access to all courses for this kit."
        )


# ==============================================================================
# Redemption Service
# ==============================================================================


class RedemptionService:
    """Turns a code into course access for the caller."""

    def __init__(
        self,
        kit_service: "KitService",
        entitlement_service: "EntitlementService",
        email_service: "EmailService",
        profile_service: "ProfileService",
    ):
        self.kits = kit_service
        self.entitlements = entitlement_service
        self.email = email_service
        self.profiles = profile_service

    async def redeem(
        self,
        code: str | None,
        user: "AuthenticatedUser",
        now: datetime | None = None,
    ) -> RedemptionResult:
        """Redeem ``code`` for ``user``.

        Raises:
            RedemptionError: One of its subclasses for each rejected case;
                RedemptionFailedError when the store fails.
        """
        code = normalize_code(code or "")
        if not code:
            raise EmptyCodeError

        now = now or utc_now()
        try:
            result = await self._redeem(code, user, now)
        except RedemptionError:
            raise
        except Exception as e:
            logger.exception(
                "redemption_failed",
                user_id=str(user.id),
                error=str(e),
            )
            raise RedemptionFailedError from e

        await self._send_confirmation(result.kit, user)
        return result

    async def _redeem(
        self,
        code: str,
        user: "AuthenticatedUser",
        now: datetime,
    ) -> RedemptionResult:
        kit_code = await self.kits.get_code(code)
        if kit_code is None or kit_code.is_used:
            raise InvalidCodeError

        kit = await self.kits.get_kit(kit_code.kit_id)
        if kit is None:
            raise InvalidCodeError

        if kit_code.is_expired(now):
            logger.info(
                "kit_code_expired",
                redemption_code=code,
                kit_id=str(kit.id),
                user_id=str(user.id),
            )
            raise CodeExpiredError

        if await self.entitlements.has_kit_access(user.id, kit.id, now):
            raise KitAlreadyOwnedError

        if not await self.kits.claim_code(code, user.id, now):
            logger.info(
                "kit_code_claim_lost",
                redemption_code=code,
                user_id=str(user.id),
            )
            raise CodeAlreadyUsedError

        purchase = await self.entitlements.grant_kit_access(
            user_id=user.id,
            kit_id=kit.id,
            payment_method=PaymentMethod.CODE_REDEMPTION,
            kit_code_id=kit_code.id,
        )

        logger.info(
            "kit_code_redeemed",
            redemption_code=code,
            kit_id=str(kit.id),
            user_id=str(user.id),
        )
        return RedemptionResult(kit=kit, purchase=purchase)

    async def _send_confirmation(self, kit: Kit, user: "AuthenticatedUser") -> None:
        try:
            profile = await self.profiles.get_profile(user.id)
            user_name = profile.display_name if profile else user.email
            await self.email.send_code_redemption_confirmation(
                kit, user.email, user_name or "User", user.id
            )
        except Exception as e:
            logger.warning(
                "redemption_email_failed",
                user_id=str(user.id),
                kit_id=str(kit.id),
                error=str(e),
            )
