"""Email template and delivery log models.

Provides:
- EmailTemplate entity (stored templates, created from defaults on first use)
- EmailLog entity (one row per send attempt)
- Cassandra table definitions
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from src.core.timeutils import ensure_utc_aware, utc_now


if TYPE_CHECKING:
    from cassandra.cluster import Row


class EmailStatus(str, Enum):
    """Delivery status of a logged email."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


EMAIL_TEMPLATES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.email_templates (
    name TEXT PRIMARY KEY,
    subject TEXT,
    html_content TEXT,
    text_content TEXT,
    variables LIST<TEXT>,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

EMAIL_LOGS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.email_logs (
    id UUID PRIMARY KEY,
    user_id UUID,
    template_name TEXT,
    to_email TEXT,
    subject TEXT,
    content TEXT,
    status TEXT,
    error_message TEXT,
    created_at TIMESTAMP
)
"""

EMAIL_TABLES_CQL = [
    EMAIL_TEMPLATES_TABLE_CQL,
    EMAIL_LOGS_TABLE_CQL,
]


@dataclass
class EmailTemplate:
    """Stored email template; ``{variable}`` tokens are substituted on send."""

    name: str
    subject: str
    html_content: str
    text_content: str
    variables: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: "Row") -> "EmailTemplate":
        """Create instance from Cassandra row."""
        return cls(
            name=row.name,
            subject=row.subject or "",
            html_content=row.html_content or "",
            text_content=row.text_content or "",
            variables=list(row.variables or []),
            created_at=ensure_utc_aware(row.created_at) or utc_now(),
            updated_at=ensure_utc_aware(row.updated_at),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "subject": self.subject,
            "html_content": self.html_content,
            "text_content": self.text_content,
            "variables": self.variables,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class EmailLog:
    """Record of one email send attempt."""

    to_email: str
    subject: str
    template_name: str | None = None
    user_id: UUID | None = None
    content: str = ""
    status: EmailStatus = EmailStatus.PENDING
    error_message: str | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_row(cls, row: "Row") -> "EmailLog":
        """Create instance from Cassandra row."""
        return cls(
            id=row.id,
            user_id=row.user_id,
            template_name=row.template_name,
            to_email=row.to_email or "",
            subject=row.subject or "",
            content=row.content or "",
            status=EmailStatus(row.status) if row.status else EmailStatus.PENDING,
            error_message=row.error_message,
            created_at=ensure_utc_aware(row.created_at) or utc_now(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "template_name": self.template_name,
            "to_email": self.to_email,
            "subject": self.subject,
            "status": self.status.value,
            "error_message": self.error_message,
            "created_at": self.created_at,
        }
