"""Kit catalog models and Cassandra schema.

Provides:
- Kit and KitCode entities
- Cassandra table definitions for kits and redemption codes
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


class KitType(str, Enum):
    """Kit audience."""

    NORMAL = "normal"
    ORGANIZATION = "organization"


class CodeType(str, Enum):
    """How a redemption code is distributed."""

    QR = "qr"  # Printed as a QR code inside the box
    ACCESS_CODE = "access_code"  # Typed in manually


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

KITS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.kits (
    id UUID PRIMARY KEY,
    name TEXT,
    theme TEXT,
    level INT,
    description TEXT,
    price DECIMAL,
    kit_type TEXT,
    image_url TEXT,
    features LIST<TEXT>,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Keyed by the code itself so a claim is a single-partition
# lightweight transaction
KIT_CODES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.kit_codes (
    code TEXT PRIMARY KEY,
    id UUID,
    kit_id UUID,
    code_type TEXT,
    is_used BOOLEAN,
    used_by UUID,
    used_at TIMESTAMP,
    expires_at TIMESTAMP,
    created_at TIMESTAMP
)
"""

KIT_CODES_KIT_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS kit_codes_kit_id_idx ON {keyspace}.kit_codes (kit_id)
"""

KITS_TABLES_CQL = [
    KITS_TABLE_CQL,
    KIT_CODES_TABLE_CQL,
    KIT_CODES_KIT_INDEX_CQL,
]


# ==============================================================================
# Entities
# ==============================================================================


@dataclass
class Kit:
    """A purchasable bundle that unlocks the courses tied to it."""

    name: str
    theme: str
    level: int
    id: UUID = field(default_factory=uuid4)
    description: str = ""
    price: Decimal = Decimal("0")
    kit_type: KitType = KitType.NORMAL
    image_url: str | None = None
    features: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: "Row") -> "Kit":
        """Create instance from Cassandra row."""
        return cls(
            id=row.id,
            name=row.name,
            theme=row.theme or "",
            level=row.level or 0,
            description=row.description or "",
            price=row.price if row.price is not None else Decimal("0"),
            kit_type=KitType(row.kit_type) if row.kit_type else KitType.NORMAL,
            image_url=row.image_url,
            features=list(row.features or []),
            created_at=ensure_utc_aware(row.created_at) or utc_now(),
            updated_at=ensure_utc_aware(row.updated_at),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "theme": self.theme,
            "level": self.level,
            "description": self.description,
            "price": self.price,
            "kit_type": self.kit_type.value,
            "image_url": self.image_url,
            "features": self.features,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class KitCode:
    """Single-use redemption code for a kit.

    Moves from unused to used exactly once, through a conditional update.
    """

    code: str
    kit_id: UUID
    id: UUID = field(default_factory=uuid4)
    code_type: CodeType = CodeType.ACCESS_CODE
    is_used: bool = False
    used_by: UUID | None = None
    used_at: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_row(cls, row: "Row") -> "KitCode":
        """Create instance from Cassandra row."""
        return cls(
            code=row.code,
            id=row.id,
            kit_id=row.kit_id,
            code_type=CodeType(row.code_type) if row.code_type else CodeType.ACCESS_CODE,
            is_used=bool(row.is_used),
            used_by=row.used_by,
            used_at=ensure_utc_aware(row.used_at),
            expires_at=ensure_utc_aware(row.expires_at),
            created_at=ensure_utc_aware(row.created_at) or utc_now(),
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the code has passed its expiry."""
        if self.expires_at is None:
            return False
        return (now or utc_now()) > self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "kit_id": self.kit_id,
            "code_type": self.code_type.value,
            "is_used": self.is_used,
            "used_by": self.used_by,
            "used_at": self.used_at,
            "expires_at": self.expires_at,
            "created_at": self.created_at,
        }
