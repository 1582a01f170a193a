"""Tests for redemption code generation and the kit code registry."""

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from src.core.errors import DatabaseError
from src.core.timeutils import utc_now
from src.kits.codes import CODE_ALPHABET, CODE_LENGTH, generate_code, normalize_code
from src.kits.models import CodeType, Kit, KitCode
from src.kits.service import KitCodeNotFoundError, KitNotFoundError, KitService


def kit_row(kit: Kit) -> SimpleNamespace:
    return SimpleNamespace(**{**kit.to_dict(), "kit_type": kit.kit_type.value})


class LwtResult(list):
    """Result set double carrying the LWT ``was_applied`` flag."""

    def __init__(self, applied: bool, rows: list | None = None):
        super().__init__(rows or [])
        self.was_applied = applied


class TestGenerateCode:
    """Tests for generate_code."""

    def test_length_and_alphabet(self) -> None:
        for _ in range(50):
            code = generate_code()
            assert len(code) == CODE_LENGTH == 8
            assert all(char in CODE_ALPHABET for char in code)

    def test_alphabet_is_uppercase_and_digits(self) -> None:
        assert set(CODE_ALPHABET) == set("ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789")

    def test_codes_are_random(self) -> None:
        codes = {generate_code() for _ in range(200)}
        assert len(codes) > 195

    def test_normalize_trims(self) -> None:
        assert normalize_code("  ABCD1234 \n") == "ABCD1234"
        assert normalize_code(None) == ""


class TestKitCode:
    """Tests for KitCode expiry."""

    def test_without_expiry_never_expires(self) -> None:
        code = KitCode(code="ABCD1234", kit_id=uuid4())
        assert code.is_expired() is False

    def test_expired(self) -> None:
        now = utc_now()
        code = KitCode(code="ABCD1234", kit_id=uuid4(), expires_at=now - timedelta(days=1))
        assert code.is_expired(now) is True

    def test_not_yet_expired(self) -> None:
        now = utc_now()
        code = KitCode(code="ABCD1234", kit_id=uuid4(), expires_at=now + timedelta(days=1))
        assert code.is_expired(now) is False


class TestGenerateCodes:
    """Tests for KitService.generate_codes."""

    @pytest.fixture
    def kit(self) -> Kit:
        return Kit(name="Starter Kit", theme="circuits", level=1)

    @pytest.fixture
    def service(self, mock_session: Mock) -> KitService:
        return KitService(mock_session, "electrofun_test")

    @pytest.mark.asyncio
    async def test_generates_distinct_unused_codes(
        self, service: KitService, mock_session: Mock, kit: Kit
    ) -> None:
        mock_session.aexecute = AsyncMock(
            side_effect=[[kit_row(kit)]] + [LwtResult(True) for _ in range(5)]
        )

        codes = await service.generate_codes(kit.id, CodeType.QR, 5)

        assert len(codes) == 5
        assert len({c.code for c in codes}) == 5
        assert all(not c.is_used and c.used_by is None for c in codes)
        assert all(c.kit_id == kit.id and c.code_type == CodeType.QR for c in codes)

    @pytest.mark.asyncio
    async def test_collision_is_regenerated(
        self, service: KitService, mock_session: Mock, kit: Kit
    ) -> None:
        """An existing code is never overwritten; a new value is tried."""
        mock_session.aexecute = AsyncMock(
            side_effect=[[kit_row(kit)], LwtResult(False), LwtResult(True)]
        )

        codes = await service.generate_codes(kit.id, CodeType.ACCESS_CODE, 1)

        assert len(codes) == 1
        # kit lookup + failed insert + successful insert
        assert mock_session.aexecute.await_count == 3

    @pytest.mark.asyncio
    async def test_unknown_kit(self, service: KitService, mock_session: Mock) -> None:
        mock_session.aexecute = AsyncMock(return_value=[])
        with pytest.raises(KitNotFoundError):
            await service.generate_codes(uuid4(), CodeType.QR, 3)

    @pytest.mark.asyncio
    async def test_store_failure(
        self, service: KitService, mock_session: Mock, kit: Kit
    ) -> None:
        mock_session.aexecute = AsyncMock(
            side_effect=[[kit_row(kit)], Exception("write timeout")]
        )
        with pytest.raises(DatabaseError):
            await service.generate_codes(kit.id, CodeType.QR, 1)


class TestClaimAndDelete:
    """Tests for the single-use claim and code deletion."""

    @pytest.fixture
    def service(self, mock_session: Mock) -> KitService:
        return KitService(mock_session, "electrofun_test")

    @pytest.mark.asyncio
    async def test_claim_applied(self, service: KitService, mock_session: Mock) -> None:
        mock_session.aexecute = AsyncMock(return_value=LwtResult(True))
        assert await service.claim_code("ABCD1234", uuid4()) is True

    @pytest.mark.asyncio
    async def test_claim_lost(self, service: KitService, mock_session: Mock) -> None:
        mock_session.aexecute = AsyncMock(return_value=LwtResult(False))
        assert await service.claim_code("ABCD1234", uuid4()) is False

    @pytest.mark.asyncio
    async def test_delete_missing_code(
        self, service: KitService, mock_session: Mock
    ) -> None:
        mock_session.aexecute = AsyncMock(return_value=LwtResult(False))
        with pytest.raises(KitCodeNotFoundError):
            await service.delete_code("NOPE0000")
