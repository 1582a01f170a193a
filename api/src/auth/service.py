# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Profile service layer.

Business logic for:
- Profile lookup by id and email
- Profile creation/refresh after OAuth sign-in
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from src.auth.models import Profile
from src.auth.schemas import GoogleUserInfo
from src.core.errors import DatabaseError
from src.core.logging import get_logger
from src.core.timeutils import utc_now


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class ProfileService:
    """Profile queries and OAuth provisioning."""

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
        self._get_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.profiles WHERE id = ?"
        )
        self._get_by_ids = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.profiles WHERE id IN ?"
        )
        self._get_id_by_email = self.session.prepare(
            f"SELECT profile_id FROM {self.keyspace}.profiles_by_email WHERE email = ?"
        )
        self._claim_email = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.profiles_by_email (email, profile_id)
            VALUES (?, ?)
            IF NOT EXISTS
        """)
        self._insert_profile = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.profiles
            (id, email, full_name, avatar_url, role, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_identity = self.session.prepare(f"""
            UPDATE {self.keyspace}.profiles
            SET full_name = ?, avatar_url = ?, updated_at = ?
            WHERE id = ?
        """)

    async def get_profile(self, user_id: UUID) -> Profile | None:
        """Get profile by id."""
        result = await self.session.aexecute(self._get_by_id, [user_id])
        if not result:
            return None
        return Profile.from_row(result[0])

    async def get_profiles(self, user_ids: Iterable[UUID]) -> dict[UUID, Profile]:
        """Get profiles for several ids, keyed by id."""
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        result = await self.session.aexecute(self._get_by_ids, [ids])
        return {row.id: Profile.from_row(row) for row in result}

    async def get_profile_by_email(self, email: str) -> Profile | None:
        """Get profile by email (case-insensitive)."""
        result = await self.session.aexecute(
            self._get_id_by_email, [email.strip().lower()]
        )
        if not result:
            return None
        return await self.get_profile(result[0].profile_id)

    async def upsert_from_google(self, info: GoogleUserInfo) -> Profile:
        """Create the profile on first sign-in or refresh its display data.

        The email lookup row is claimed with a lightweight transaction so two
        concurrent first sign-ins resolve to the same profile.
        """
        email = info.email.strip().lower()
        now = utc_now()

        try:
            existing = await self.get_profile_by_email(email)
            if existing is not None:
                await self.session.aexecute(
                    self._update_identity,
                    [info.name or existing.full_name, info.picture, now, existing.id],
                )
                existing.full_name = info.name or existing.full_name
                existing.avatar_url = info.picture
                existing.updated_at = now
                return existing

            profile = Profile(
                id=uuid4(),
                email=email,
                full_name=info.name,
                avatar_url=info.picture,
                created_at=now,
                updated_at=now,
            )
            claim = await self.session.aexecute(
                self._claim_email, [profile.email, profile.id]
            )
            if not claim.was_applied:
                winner = await self.get_profile(claim[0].profile_id)
                if winner is not None:
                    return winner
                # Lookup row won by a concurrent sign-in whose profile row is
                # not written yet; write it under the winning id.
                profile.id = claim[0].profile_id

            await self.session.aexecute(
                self._insert_profile,
                [
                    profile.id,
                    profile.email,
                    profile.full_name,
                    profile.avatar_url,
                    profile.role.value,
                    profile.created_at,
                    profile.updated_at,
                ],
            )
        except DatabaseError:
            raise
        except Exception as e:
            logger.exception("database_error_upsert_profile", error=str(e))
            raise DatabaseError("Failed to save profile", original_error=e) from e

        logger.info("profile_created", profile_id=str(profile.id))
        return profile
