"""Database models for user profiles.

Identities come from Google OAuth; the profile row holds the role used for
authorization and the display data shown in the UI.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from src.auth.permissions import UserRole, parse_role
from src.core.timeutils import ensure_utc_aware, utc_now


if TYPE_CHECKING:
    from cassandra.cluster import Row


PROFILES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.profiles (
    id UUID PRIMARY KEY,
    email TEXT,
    full_name TEXT,
    avatar_url TEXT,
    role TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Lookup table enforcing one profile per email (written with IF NOT EXISTS)
PROFILES_BY_EMAIL_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.profiles_by_email (
    email TEXT PRIMARY KEY,
    profile_id UUID
)
"""

AUTH_TABLES_CQL = [
    PROFILES_TABLE_CQL,
    PROFILES_BY_EMAIL_TABLE_CQL,
]


@dataclass
class Profile:
    """User profile.

    Attributes:
        id: User identifier (also the JWT subject)
        email: Lower-cased email address, unique per profile
        full_name: Display name from the identity provider
        avatar_url: Profile picture URL
        role: Authorization role (student or admin)
    """

    email: str
    id: UUID = field(default_factory=uuid4)
    full_name: str | None = None
    avatar_url: str | None = None
    role: UserRole = UserRole.STUDENT
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.email = self.email.strip().lower()

    @classmethod
    def from_row(cls, row: "Row") -> "Profile":
        """Create instance from Cassandra row."""
        return cls(
            id=row.id,
            email=row.email or "",
            full_name=row.full_name,
            avatar_url=row.avatar_url,
            role=parse_role(row.role),
            created_at=ensure_utc_aware(row.created_at) or utc_now(),
            updated_at=ensure_utc_aware(row.updated_at),
        )

    @property
    def display_name(self) -> str:
        """Name to show in messages, falling back to the email."""
        return self.full_name or self.email

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "avatar_url": self.avatar_url,
            "role": self.role.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
