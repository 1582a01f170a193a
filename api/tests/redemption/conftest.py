"""Fixtures for redemption tests: in-memory kit and entitlement stores."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, Mock
from uuid import UUID

import pytest

from src.entitlements.models import Purchase
from src.kits.models import Kit, KitCode
from src.redemption.service import RedemptionService


class FakeKitStore:
    """In-memory kit and code registry with a compare-and-swap claim."""

    def __init__(self):
        self.kits: dict[UUID, Kit] = {}
        self.codes: dict[str, KitCode] = {}

    async def get_kit(self, kit_id):
        await asyncio.sleep(0)
        return self.kits.get(kit_id)

    async def get_code(self, code):
        await asyncio.sleep(0)
        return self.codes.get(code)

    async def claim_code(self, code, user_id, now=None):
        await asyncio.sleep(0)
        kit_code = self.codes.get(code)
        if kit_code is None or kit_code.is_used:
            return False
        kit_code.is_used = True
        kit_code.used_by = user_id
        kit_code.used_at = now
        return True


class FakeEntitlementStore:
    """In-memory permissions plus purchase ledger."""

    def __init__(self):
        self.permissions: set[tuple[UUID, UUID]] = set()
        self.purchases: list[Purchase] = []

    async def has_kit_access(self, user_id, kit_id, now=None):
        return (user_id, kit_id) in self.permissions

    async def grant_kit_access(
        self, user_id, kit_id, payment_method, kit_code_id=None, **kwargs
    ):
        self.permissions.add((user_id, kit_id))
        purchase = Purchase(
            user_id=user_id,
            kit_id=kit_id,
            payment_method=payment_method,
            kit_code_id=kit_code_id,
        )
        self.purchases.append(purchase)
        return purchase


@pytest.fixture
def kit() -> Kit:
    return Kit(name="Robotics Kit", theme="robotics", level=2, price=Decimal("49.00"))


@pytest.fixture
def kits(kit: Kit) -> FakeKitStore:
    store = FakeKitStore()
    store.kits[kit.id] = kit
    store.codes["ABCD1234"] = KitCode(code="ABCD1234", kit_id=kit.id)
    return store


@pytest.fixture
def entitlements() -> FakeEntitlementStore:
    return FakeEntitlementStore()


@pytest.fixture
def email_service() -> Mock:
    service = Mock()
    service.send_code_redemption_confirmation = AsyncMock(return_value=None)
    return service


@pytest.fixture
def redemption_service(
    kits: FakeKitStore, entitlements: FakeEntitlementStore, email_service: Mock
) -> RedemptionService:
    profiles = Mock()
    profiles.get_profile = AsyncMock(return_value=None)
    return RedemptionService(kits, entitlements, email_service, profiles)

