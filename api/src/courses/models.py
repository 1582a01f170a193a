"""Course models.

Provides:
- OfficialCourse: admin-managed course tied to a kit
- CustomCourse: community course authored by a kit owner
- CourseAccessGrant: allow-list entry for a community course
- Cassandra table definitions
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from src.core.timeutils import ensure_utc_aware, utc_now


if TYPE_CHECKING:
    from cassandra.cluster import Row


def generate_invite_token() -> str:
    """Random 32-character hex invite token."""
    return uuid4().hex


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

OFFICIAL_COURSES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.official_courses (
    id UUID PRIMARY KEY,
    kit_id UUID,
    title TEXT,
    description TEXT,
    theme TEXT,
    level INT,
    estimated_duration INT,
    is_published BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

OFFICIAL_COURSES_KIT_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS official_courses_kit_id_idx
ON {keyspace}.official_courses (kit_id)
"""

CUSTOM_COURSES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.custom_courses (
    id UUID PRIMARY KEY,
    creator_id UUID,
    kit_id UUID,
    title TEXT,
    description TEXT,
    price DECIMAL,
    estimated_duration INT,
    is_public BOOLEAN,
    is_published BOOLEAN,
    invite_token TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

CUSTOM_COURSES_CREATOR_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS custom_courses_creator_id_idx
ON {keyspace}.custom_courses (creator_id)
"""

CUSTOM_COURSES_KIT_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS custom_courses_kit_id_idx
ON {keyspace}.custom_courses (kit_id)
"""

CUSTOM_COURSES_INVITE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS custom_courses_invite_token_idx
ON {keyspace}.custom_courses (invite_token)
"""

# One grant per (course, user)
COURSE_ACCESS_GRANTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_access_grants (
    course_id UUID,
    user_id UUID,
    id UUID,
    granted_by UUID,
    created_at TIMESTAMP,
    joined_at TIMESTAMP,
    PRIMARY KEY ((course_id), user_id)
)
"""

COURSES_TABLES_CQL = [
    OFFICIAL_COURSES_TABLE_CQL,
    OFFICIAL_COURSES_KIT_INDEX_CQL,
    CUSTOM_COURSES_TABLE_CQL,
    CUSTOM_COURSES_CREATOR_INDEX_CQL,
    CUSTOM_COURSES_KIT_INDEX_CQL,
    CUSTOM_COURSES_INVITE_INDEX_CQL,
    COURSE_ACCESS_GRANTS_TABLE_CQL,
]


# ==============================================================================
# Entities
# ==============================================================================


@dataclass
class OfficialCourse:
    """Admin-managed course unlocked by owning its kit."""

    kit_id: UUID
    title: str
    id: UUID = field(default_factory=uuid4)
    description: str = ""
    theme: str = ""
    level: int = 1
    estimated_duration: int | None = None
    is_published: bool = False
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: "Row") -> "OfficialCourse":
        """Create instance from Cassandra row."""
        return cls(
            id=row.id,
            kit_id=row.kit_id,
            title=row.title or "",
            description=row.description or "",
            theme=row.theme or "",
            level=row.level or 0,
            estimated_duration=row.estimated_duration,
            is_published=bool(row.is_published),
            created_at=ensure_utc_aware(row.created_at) or utc_now(),
            updated_at=ensure_utc_aware(row.updated_at),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kit_id": self.kit_id,
            "title": self.title,
            "description": self.description,
            "theme": self.theme,
            "level": self.level,
            "estimated_duration": self.estimated_duration,
            "is_published": self.is_published,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class CustomCourse:
    """Community course. The creator always has access to it."""

    creator_id: UUID
    kit_id: UUID
    title: str
    id: UUID = field(default_factory=uuid4)
    description: str = ""
    price: Decimal = Decimal("0")
    estimated_duration: int | None = None
    is_public: bool = False
    is_published: bool = False
    invite_token: str = field(default_factory=generate_invite_token)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: "Row") -> "CustomCourse":
        """Create instance from Cassandra row."""
        return cls(
            id=row.id,
            creator_id=row.creator_id,
            kit_id=row.kit_id,
            title=row.title or "",
            description=row.description or "",
            price=row.price if row.price is not None else Decimal("0"),
            estimated_duration=row.estimated_duration,
            is_public=bool(row.is_public),
            is_published=bool(row.is_published),
            invite_token=row.invite_token or "",
            created_at=ensure_utc_aware(row.created_at) or utc_now(),
            updated_at=ensure_utc_aware(row.updated_at),
        )

    def is_creator(self, user_id: UUID) -> bool:
        return self.creator_id == user_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "creator_id": self.creator_id,
            "kit_id": self.kit_id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "estimated_duration": self.estimated_duration,
            "is_public": self.is_public,
            "is_published": self.is_published,
            "invite_token": self.invite_token,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class CourseAccessGrant:
    """Allow-list entry; ``joined_at`` is stamped once on first access."""

    course_id: UUID
    user_id: UUID
    granted_by: UUID
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    joined_at: datetime | None = None

    @classmethod
    def from_row(cls, row: "Row") -> "CourseAccessGrant":
        """Create instance from Cassandra row."""
        return cls(
            course_id=row.course_id,
            user_id=row.user_id,
            id=row.id,
            granted_by=row.granted_by,
            created_at=ensure_utc_aware(row.created_at) or utc_now(),
            joined_at=ensure_utc_aware(row.joined_at),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "course_id": self.course_id,
            "user_id": self.user_id,
            "granted_by": self.granted_by,
            "created_at": self.created_at,
            "joined_at": self.joined_at,
        }


@dataclass
class CourseAccess:
    """Outcome of the community course access check."""

    is_creator: bool
    has_access: bool
    grant: CourseAccessGrant | None = None
