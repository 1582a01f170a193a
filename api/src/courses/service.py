# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Course service layer.

Business logic for:
- Official courses (admin-managed)
- Custom community courses and their invite tokens
- Course access grants and the access check
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from src.core.errors import AppError, DatabaseError
from src.core.logging import get_logger
from src.core.timeutils import utc_now
from src.courses.models import (
    CourseAccess,
    CourseAccessGrant,
    CustomCourse,
    OfficialCourse,
    generate_invite_token,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


# ==============================================================================
# Exceptions
# ==============================================================================


class CourseError(AppError):
    """Base course error."""

    def __init__(self, message: str, code: str = "course_error"):
        super().__init__(message, code)


class CourseNotFoundError(CourseError):
    """Course not found (or not visible to the caller)."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class CourseForbiddenError(CourseError):
    """Caller does not own the course."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, "forbidden")


class CourseAccessDeniedError(CourseError):
    """Course is private and the caller holds no grant."""

    def __init__(self, message: str = "You do not have access to this course"):
        super().__init__(message, "access_denied")


class KitRequiredError(CourseError):
    """Caller must own the course's kit; the client sends them to the shop."""

    def __init__(self, kit_id: UUID):
        super().__init__("You need the kit for this course", "kit_required")
        self.kit_id = kit_id


class KitNotOwnedError(CourseError):
    """Course creation for a kit the caller does not own."""

    def __init__(self, message: str = "You do not have access to the selected kit"):
        super().__init__(message, "kit_not_owned")


class InvalidInviteError(CourseError):
    """Invite token matches no course."""

    def __init__(self, message: str = "Invalid invite link"):
        super().__init__(message, "invalid_invite")


class GranteeNotFoundError(CourseError):
    def __init__(self, message: str = "No account found with that email address"):
        super().__init__(message, "user_not_found")


class SelfGrantError(CourseError):
    def __init__(self, message: str = "You cannot grant access to yourself"):
        super().__init__(message, "self_grant")


# ==============================================================================
# Course Service
# ==============================================================================


class CourseService:
    """Course catalog and community course grants."""

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
        # Official courses
        self._insert_official = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.official_courses
            (id, kit_id, title, description, theme, level, estimated_duration,
             is_published, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_official = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.official_courses WHERE id = ?"
        )
        self._get_officials_by_ids = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.official_courses WHERE id IN ?"
        )
        self._list_official = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.official_courses"
        )
        self._list_official_by_kit = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.official_courses WHERE kit_id = ?"
        )

        # Custom courses
        self._insert_custom = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.custom_courses
            (id, creator_id, kit_id, title, description, price, estimated_duration,
             is_public, is_published, invite_token, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_custom = self.session.prepare(f"""
            UPDATE {self.keyspace}.custom_courses
            SET title = ?, description = ?, price = ?, estimated_duration = ?,
                is_public = ?, is_published = ?, updated_at = ?
            WHERE id = ?
        """)
        self._update_invite_token = self.session.prepare(f"""
            UPDATE {self.keyspace}.custom_courses
            SET invite_token = ?, updated_at = ?
            WHERE id = ?
        """)
        self._get_custom = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.custom_courses WHERE id = ?"
        )
        self._get_customs_by_ids = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.custom_courses WHERE id IN ?"
        )
        self._get_custom_by_token = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.custom_courses WHERE invite_token = ?"
        )
        self._list_custom_by_creator = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.custom_courses WHERE creator_id = ?"
        )
        self._list_custom_by_kit = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.custom_courses WHERE kit_id = ?"
        )

        # Grants
        self._get_grant = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_access_grants
            WHERE course_id = ? AND user_id = ?
        """)
        self._list_grants = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_access_grants WHERE course_id = ?"
        )
        self._insert_grant = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_access_grants
            (course_id, user_id, id, granted_by, created_at, joined_at)
            VALUES (?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)
        self._mark_joined = self.session.prepare(f"""
            UPDATE {self.keyspace}.course_access_grants
            SET joined_at = ?
            WHERE course_id = ? AND user_id = ?
            IF id = ? AND joined_at = null
        """)
        self._delete_grant = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.course_access_grants
            WHERE course_id = ? AND user_id = ?
            IF EXISTS
        """)

    # ==========================================================================
    # Official Courses
    # ==========================================================================

    async def create_official_course(
        self,
        kit_id: UUID,
        title: str,
        description: str = "",
        theme: str = "",
        level: int = 1,
        estimated_duration: int | None = None,
        is_published: bool = False,
    ) -> OfficialCourse:
        """Create an official course."""
        now = utc_now()
        course = OfficialCourse(
            kit_id=kit_id,
            title=title,
            description=description,
            theme=theme,
            level=level,
            estimated_duration=estimated_duration,
            is_published=is_published,
            created_at=now,
            updated_at=now,
        )
        await self.save_official_course(course)
        logger.info("official_course_created", course_id=str(course.id))
        return course

    async def save_official_course(self, course: OfficialCourse) -> None:
        """Write all columns of an official course."""
        try:
            await self.session.aexecute(
                self._insert_official,
                [
                    course.id,
                    course.kit_id,
                    course.title,
                    course.description,
                    course.theme,
                    course.level,
                    course.estimated_duration,
                    course.is_published,
                    course.created_at,
                    course.updated_at,
                ],
            )
        except Exception as e:
            logger.exception("database_error_save_official_course", error=str(e))
            raise DatabaseError("Failed to save course", original_error=e) from e

    async def get_official_course(self, course_id: UUID) -> OfficialCourse | None:
        """Get official course by id."""
        result = await self.session.aexecute(self._get_official, [course_id])
        if not result:
            return None
        return OfficialCourse.from_row(result[0])

    async def get_official_courses(
        self, course_ids: Iterable[UUID]
    ) -> dict[UUID, OfficialCourse]:
        ids = list(dict.fromkeys(course_ids))
        if not ids:
            return {}
        result = await self.session.aexecute(self._get_officials_by_ids, [ids])
        return {row.id: OfficialCourse.from_row(row) for row in result}

    async def list_official_courses(self) -> list[OfficialCourse]:
        """All official courses, by level then title."""
        result = await self.session.aexecute(self._list_official)
        courses = [OfficialCourse.from_row(row) for row in result]
        return sorted(courses, key=lambda c: (c.level, c.title))

    async def list_official_courses_for_kits(
        self,
        kit_ids: Iterable[UUID],
    ) -> list[OfficialCourse]:
        """Published official courses of the given kits, by level."""
        courses: list[OfficialCourse] = []
        for kit_id in dict.fromkeys(kit_ids):
            result = await self.session.aexecute(self._list_official_by_kit, [kit_id])
            courses.extend(OfficialCourse.from_row(row) for row in result)
        published = [c for c in courses if c.is_published]
        return sorted(published, key=lambda c: (c.level, c.title))

    # ==========================================================================
    # Custom Courses
    # ==========================================================================

    async def create_custom_course(
        self,
        creator_id: UUID,
        kit_id: UUID,
        title: str,
        description: str = "",
        price: Decimal = Decimal("0"),
        is_public: bool = False,
        estimated_duration: int | None = None,
    ) -> CustomCourse:
        """Create a draft community course with a fresh invite token."""
        now = utc_now()
        course = CustomCourse(
            creator_id=creator_id,
            kit_id=kit_id,
            title=title,
            description=description,
            price=price,
            is_public=is_public,
            is_published=False,
            estimated_duration=estimated_duration,
            created_at=now,
            updated_at=now,
        )
        try:
            await self.session.aexecute(
                self._insert_custom,
                [
                    course.id,
                    course.creator_id,
                    course.kit_id,
                    course.title,
                    course.description,
                    course.price,
                    course.estimated_duration,
                    course.is_public,
                    course.is_published,
                    course.invite_token,
                    course.created_at,
                    course.updated_at,
                ],
            )
        except Exception as e:
            logger.exception("database_error_create_custom_course", error=str(e))
            raise DatabaseError("Failed to create course", original_error=e) from e

        logger.info(
            "custom_course_created",
            course_id=str(course.id),
            creator_id=str(creator_id),
            kit_id=str(kit_id),
        )
        return course

    async def update_custom_course(
        self,
        course: CustomCourse,
        title: str,
        description: str,
        price: Decimal,
        is_public: bool,
        is_published: bool,
        estimated_duration: int | None,
    ) -> CustomCourse:
        """Update the editable fields of a community course."""
        now = utc_now()
        try:
            await self.session.aexecute(
                self._update_custom,
                [
                    title,
                    description,
                    price,
                    estimated_duration,
                    is_public,
                    is_published,
                    now,
                    course.id,
                ],
            )
        except Exception as e:
            logger.exception("database_error_update_custom_course", error=str(e))
            raise DatabaseError("Failed to update course", original_error=e) from e

        course.title = title
        course.description = description
        course.price = price
        course.estimated_duration = estimated_duration
        course.is_public = is_public
        course.is_published = is_published
        course.updated_at = now
        logger.info("custom_course_updated", course_id=str(course.id))
        return course

    async def regenerate_invite_token(self, course: CustomCourse) -> str:
        """Replace the invite token; the old link stops working."""
        token = generate_invite_token()
        now = utc_now()
        await self.session.aexecute(self._update_invite_token, [token, now, course.id])
        course.invite_token = token
        course.updated_at = now
        logger.info("invite_token_regenerated", course_id=str(course.id))
        return token

    async def get_custom_course(self, course_id: UUID) -> CustomCourse | None:
        """Get community course by id."""
        result = await self.session.aexecute(self._get_custom, [course_id])
        if not result:
            return None
        return CustomCourse.from_row(result[0])

    async def get_custom_courses(
        self, course_ids: Iterable[UUID]
    ) -> dict[UUID, CustomCourse]:
        ids = list(dict.fromkeys(course_ids))
        if not ids:
            return {}
        result = await self.session.aexecute(self._get_customs_by_ids, [ids])
        return {row.id: CustomCourse.from_row(row) for row in result}

    async def get_course_by_invite_token(self, token: str) -> CustomCourse | None:
        """Get the community course an invite token belongs to."""
        if not token:
            return None
        result = await self.session.aexecute(self._get_custom_by_token, [token])
        if not result:
            return None
        return CustomCourse.from_row(result[0])

    async def list_creator_courses(self, creator_id: UUID) -> list[CustomCourse]:
        """Courses authored by a user, newest first."""
        result = await self.session.aexecute(self._list_custom_by_creator, [creator_id])
        courses = [CustomCourse.from_row(row) for row in result]
        return sorted(courses, key=lambda c: c.created_at, reverse=True)

    async def list_public_courses_for_kits(
        self,
        kit_ids: Iterable[UUID],
    ) -> list[CustomCourse]:
        """Published public community courses of the given kits, newest first."""
        courses: list[CustomCourse] = []
        for kit_id in dict.fromkeys(kit_ids):
            result = await self.session.aexecute(self._list_custom_by_kit, [kit_id])
            courses.extend(CustomCourse.from_row(row) for row in result)
        visible = [c for c in courses if c.is_published and c.is_public]
        return sorted(visible, key=lambda c: c.created_at, reverse=True)

    # ==========================================================================
    # Access Grants
    # ==========================================================================

    async def get_grant(self, course_id: UUID, user_id: UUID) -> CourseAccessGrant | None:
        """Get the grant of a user on a course."""
        result = await self.session.aexecute(self._get_grant, [course_id, user_id])
        if not result:
            return None
        return CourseAccessGrant.from_row(result[0])

    async def list_grants(self, course_id: UUID) -> list[CourseAccessGrant]:
        """Grants of a course, oldest first."""
        result = await self.session.aexecute(self._list_grants, [course_id])
        grants = [CourseAccessGrant.from_row(row) for row in result]
        return sorted(grants, key=lambda g: g.created_at)

    async def create_grant(
        self,
        course_id: UUID,
        user_id: UUID,
        granted_by: UUID,
        joined_at: datetime | None = None,
    ) -> bool:
        """Insert a grant unless one exists.

        Returns:
            True if the grant was created, False if the user already had one.
        """
        grant = CourseAccessGrant(
            course_id=course_id,
            user_id=user_id,
            granted_by=granted_by,
            joined_at=joined_at,
        )
        result = await self.session.aexecute(
            self._insert_grant,
            [
                grant.course_id,
                grant.user_id,
                grant.id,
                grant.granted_by,
                grant.created_at,
                grant.joined_at,
            ],
        )
        if result.was_applied:
            logger.info(
                "course_access_granted",
                course_id=str(course_id),
                user_id=str(user_id),
                granted_by=str(granted_by),
            )
        return bool(result.was_applied)

    async def mark_joined(
        self,
        grant: CourseAccessGrant,
        now: datetime | None = None,
    ) -> bool:
        """Stamp ``joined_at`` on ``grant`` unless it is already set.

        The update is conditional on the grant id, so a grant revoked (or
        replaced) since it was read is never stamped or recreated.
        """
        result = await self.session.aexecute(
            self._mark_joined,
            [now or utc_now(), grant.course_id, grant.user_id, grant.id],
        )
        if result.was_applied:
            logger.info(
                "course_joined",
                course_id=str(grant.course_id),
                user_id=str(grant.user_id),
            )
        return bool(result.was_applied)

    async def revoke_grant(self, course_id: UUID, user_id: UUID) -> bool:
        """Delete a grant. Returns False if there was none."""
        result = await self.session.aexecute(self._delete_grant, [course_id, user_id])
        if result.was_applied:
            logger.info(
                "course_access_revoked",
                course_id=str(course_id),
                user_id=str(user_id),
            )
        return bool(result.was_applied)

    async def check_course_access(
        self,
        course: CustomCourse,
        user_id: UUID,
    ) -> CourseAccess:
        """Creator, public course or an explicit grant gives access."""
        is_creator = course.is_creator(user_id)
        grant = None if is_creator else await self.get_grant(course.id, user_id)
        return CourseAccess(
            is_creator=is_creator,
            has_access=is_creator or course.is_public or grant is not None,
            grant=grant,
        )
