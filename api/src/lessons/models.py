"""Lesson models.

Provides:
- Lesson entity shared by official and custom (community) courses
- LessonVisibility deny-list entries
- Cassandra table definitions
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from src.core.timeutils import ensure_utc_aware, utc_now


if TYPE_CHECKING:
    from cassandra.cluster import Row


# ==============================================================================
# Enums
# ==============================================================================


class CourseType(str, Enum):
    """Which course table a lesson belongs to."""

    OFFICIAL = "official"
    CUSTOM = "custom"


class LessonContentType(str, Enum):
    """How the lesson body is stored."""

    TEXT = "text"
    MARKDOWN = "markdown"
    VIDEO = "video"
    SVELTE = "svelte"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

LESSONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lessons (
    id UUID PRIMARY KEY,
    course_id UUID,
    course_type TEXT,
    title TEXT,
    content TEXT,
    content_type TEXT,
    svelte_component TEXT,
    component_props TEXT,
    order_index INT,
    estimated_duration INT,
    is_published BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

LESSONS_COURSE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS lessons_course_id_idx ON {keyspace}.lessons (course_id)
"""

# Presence of a row hides the lesson for the user; absence means visible
LESSON_USER_VISIBILITY_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lesson_user_visibility (
    lesson_id UUID,
    user_id UUID,
    is_visible BOOLEAN,
    updated_at TIMESTAMP,
    PRIMARY KEY ((lesson_id), user_id)
)
"""

LESSONS_TABLES_CQL = [
    LESSONS_TABLE_CQL,
    LESSONS_COURSE_INDEX_CQL,
    LESSON_USER_VISIBILITY_TABLE_CQL,
]


# ==============================================================================
# Entities
# ==============================================================================


def _load_props(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return value if isinstance(value, dict) else {}


@dataclass
class Lesson:
    """A lesson in an official or custom course, ordered by ``order_index``."""

    course_id: UUID
    course_type: CourseType
    title: str
    id: UUID = field(default_factory=uuid4)
    content: str | None = None
    content_type: LessonContentType = LessonContentType.TEXT
    svelte_component: str | None = None
    component_props: dict[str, Any] = field(default_factory=dict)
    order_index: int = 1
    estimated_duration: int | None = None
    is_published: bool = False
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: "Row") -> "Lesson":
        """Create instance from Cassandra row."""
        return cls(
            id=row.id,
            course_id=row.course_id,
            course_type=CourseType(row.course_type),
            title=row.title or "",
            content=row.content,
            content_type=LessonContentType(row.content_type)
            if row.content_type
            else LessonContentType.TEXT,
            svelte_component=row.svelte_component,
            component_props=_load_props(row.component_props),
            order_index=row.order_index or 0,
            estimated_duration=row.estimated_duration,
            is_published=bool(row.is_published),
            created_at=ensure_utc_aware(row.created_at) or utc_now(),
            updated_at=ensure_utc_aware(row.updated_at),
        )

    def props_json(self) -> str:
        return json.dumps(self.component_props)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "course_id": self.course_id,
            "course_type": self.course_type.value,
            "title": self.title,
            "content": self.content,
            "content_type": self.content_type.value,
            "svelte_component": self.svelte_component,
            "component_props": self.component_props,
            "order_index": self.order_index,
            "estimated_duration": self.estimated_duration,
            "is_published": self.is_published,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class HiddenLesson:
    """Deny-list entry: ``lesson_id`` is hidden from ``user_id``."""

    lesson_id: UUID
    user_id: UUID

    def to_dict(self) -> dict[str, Any]:
        return {"lesson_id": self.lesson_id, "user_id": self.user_id}
