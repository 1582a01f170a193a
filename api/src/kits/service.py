# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Kit catalog service layer.

Business logic for:
- Kit catalog (create, list by level)
- Redemption code generation, lookup and deletion
- The single-use claim of a code
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from src.core.errors import AppError, DatabaseError
from src.core.logging import get_logger
from src.core.timeutils import utc_now
from src.kits.codes import generate_code
from src.kits.models import CodeType, Kit, KitCode, KitType


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)

MAX_CODE_ATTEMPTS = 10


# ==============================================================================
# Exceptions
# ==============================================================================


class KitError(AppError):
    """Base kit error."""

    def __init__(self, message: str, code: str = "kit_error"):
        super().__init__(message, code)


class KitNotFoundError(KitError):
    """Kit not found."""

    def __init__(self, message: str = "Kit not found"):
        super().__init__(message, "kit_not_found")


class KitCodeNotFoundError(KitError):
    """Redemption code not found."""

    def __init__(self, message: str = "Code not found"):
        super().__init__(message, "code_not_found")


# ==============================================================================
# Kit Service
# ==============================================================================


class KitService:
    """Kit catalog and redemption code registry."""

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
        # Kits
        self._insert_kit = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.kits
            (id, name, theme, level, description, price, kit_type, image_url,
             features, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_kit = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.kits WHERE id = ?"
        )
        self._get_kits_by_ids = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.kits WHERE id IN ?"
        )
        self._list_kits = self.session.prepare(f"SELECT * FROM {self.keyspace}.kits")

        # Codes
        self._insert_code = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.kit_codes
            (code, id, kit_id, code_type, is_used, used_by, used_at, expires_at,
             created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)
        self._get_code = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.kit_codes WHERE code = ?"
        )
        self._list_codes = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.kit_codes"
        )
        self._delete_code = self.session.prepare(
            f"DELETE FROM {self.keyspace}.kit_codes WHERE code = ? IF EXISTS"
        )
        # Compare-and-swap: only applied while the code is still unused
        self._claim_code = self.session.prepare(f"""
            UPDATE {self.keyspace}.kit_codes
            SET is_used = true, used_by = ?, used_at = ?
            WHERE code = ?
            IF is_used = false
        """)

    # ==========================================================================
    # Kits
    # ==========================================================================

    async def create_kit(
        self,
        name: str,
        theme: str,
        level: int,
        description: str = "",
        price: Decimal = Decimal("0"),
        kit_type: KitType = KitType.NORMAL,
        image_url: str | None = None,
        features: list[str] | None = None,
    ) -> Kit:
        """Create a kit."""
        now = utc_now()
        kit = Kit(
            name=name,
            theme=theme,
            level=level,
            description=description,
            price=price,
            kit_type=kit_type,
            image_url=image_url,
            features=features or [],
            created_at=now,
            updated_at=now,
        )
        try:
            await self.session.aexecute(
                self._insert_kit,
                [
                    kit.id,
                    kit.name,
                    kit.theme,
                    kit.level,
                    kit.description,
                    kit.price,
                    kit.kit_type.value,
                    kit.image_url,
                    kit.features,
                    kit.created_at,
                    kit.updated_at,
                ],
            )
        except Exception as e:
            logger.exception("database_error_create_kit", error=str(e))
            raise DatabaseError("Failed to create kit", original_error=e) from e

        logger.info("kit_created", kit_id=str(kit.id), level=kit.level)
        return kit

    async def get_kit(self, kit_id: UUID) -> Kit | None:
        """Get kit by id."""
        result = await self.session.aexecute(self._get_kit, [kit_id])
        if not result:
            return None
        return Kit.from_row(result[0])

    async def get_kits(self, kit_ids: Iterable[UUID]) -> dict[UUID, Kit]:
        """Get several kits keyed by id."""
        ids = list(dict.fromkeys(kit_ids))
        if not ids:
            return {}
        result = await self.session.aexecute(self._get_kits_by_ids, [ids])
        return {row.id: Kit.from_row(row) for row in result}

    async def list_kits(self) -> list[Kit]:
        """List all kits ordered by level, then name."""
        result = await self.session.aexecute(self._list_kits)
        kits = [Kit.from_row(row) for row in result]
        return sorted(kits, key=lambda kit: (kit.level, kit.name))

    # ==========================================================================
    # Codes
    # ==========================================================================

    async def generate_codes(
        self,
        kit_id: UUID,
        code_type: CodeType,
        quantity: int,
        expires_at: datetime | None = None,
    ) -> list[KitCode]:
        """Generate ``quantity`` distinct unused codes for a kit.

        Each code is inserted with IF NOT EXISTS; a collision with an existing
        code is regenerated instead of overwriting it.

        Raises:
            KitNotFoundError: If the kit does not exist
        """
        if await self.get_kit(kit_id) is None:
            raise KitNotFoundError

        codes: list[KitCode] = []
        for _ in range(quantity):
            codes.append(await self._insert_unique_code(kit_id, code_type, expires_at))

        logger.info(
            "kit_codes_generated",
            kit_id=str(kit_id),
            code_type=code_type.value,
            quantity=quantity,
        )
        return codes

    async def _insert_unique_code(
        self,
        kit_id: UUID,
        code_type: CodeType,
        expires_at: datetime | None,
    ) -> KitCode:
        for _ in range(MAX_CODE_ATTEMPTS):
            kit_code = KitCode(
                code=generate_code(),
                kit_id=kit_id,
                code_type=code_type,
                expires_at=expires_at,
            )
            try:
                result = await self.session.aexecute(
                    self._insert_code,
                    [
                        kit_code.code,
                        kit_code.id,
                        kit_code.kit_id,
                        kit_code.code_type.value,
                        False,
                        None,
                        None,
                        kit_code.expires_at,
                        kit_code.created_at,
                    ],
                )
            except Exception as e:
                logger.exception("database_error_insert_code", error=str(e))
                raise DatabaseError("Failed to generate codes", original_error=e) from e

            if result.was_applied:
                return kit_code
            logger.debug("kit_code_collision")

        msg = "Unable to generate unique code after multiple attempts"
        raise RuntimeError(msg)

    async def get_code(self, code: str) -> KitCode | None:
        """Get a code by its value."""
        result = await self.session.aexecute(self._get_code, [code])
        if not result:
            return None
        return KitCode.from_row(result[0])

    async def list_codes(self) -> list[KitCode]:
        """List all codes, newest first."""
        result = await self.session.aexecute(self._list_codes)
        codes = [KitCode.from_row(row) for row in result]
        return sorted(codes, key=lambda c: c.created_at, reverse=True)

    async def delete_code(self, code: str) -> None:
        """Delete a code.

        Raises:
            KitCodeNotFoundError: If the code does not exist
        """
        result = await self.session.aexecute(self._delete_code, [code])
        if not result.was_applied:
            raise KitCodeNotFoundError
        logger.info("kit_code_deleted", redemption_code=code)

    async def claim_code(
        self,
        code: str,
        user_id: UUID,
        now: datetime | None = None,
    ) -> bool:
        """Mark an unused code as used by ``user_id``.

        Returns:
            True if this call won the claim, False if the code was already
            used (or deleted) by the time the update ran.
        """
        result = await self.session.aexecute(
            self._claim_code,
            [user_id, now or utc_now(), code],
        )
        return bool(result.was_applied)
