# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Lesson file service layer.

Business logic for:
- Upload permission (admins, or the creator of a community course's lesson)
- Storing sources and compiled components, with cleanup on failure
- Listing files per lesson and deletion
"""

from collections import defaultdict
from collections.abc import Iterable
from typing import TYPE_CHECKING
from uuid import UUID

from src.auth.permissions import Capability, has_capability
from src.core.errors import AppError
from src.core.logging import get_logger
from src.lesson_files.compiler import CompileError
from src.lesson_files.models import (
    UNSUPPORTED_FILE_TYPE_MESSAGE,
    LessonFile,
    LessonFileType,
    file_type_for,
)
from src.lessons.models import CourseType
from src.storage.service import FileTooLargeError, StorageError


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from src.auth.models import Profile
    from src.courses.service import CourseService
    from src.lesson_files.compiler import SvelteCompiler
    from src.lessons.models import Lesson
    from src.lessons.service import LessonService
    from src.storage.service import FirebaseStorageService


logger = get_logger(__name__)


# ==============================================================================
# Exceptions
# ==============================================================================


class LessonFileError(AppError):
    """Base lesson file error."""

    def __init__(self, message: str, code: str = "lesson_file_error"):
        super().__init__(message, code)


class UnsupportedFileTypeError(LessonFileError):
    def __init__(self):
        super().__init__(UNSUPPORTED_FILE_TYPE_MESSAGE, "unsupported_file_type")


class LessonFileLessonNotFoundError(LessonFileError):
    def __init__(self):
        super().__init__("Lesson not found", "lesson_not_found")


class LessonFileNotFoundError(LessonFileError):
    def __init__(self):
        super().__init__("File not found", "file_not_found")


class LessonFileForbiddenError(LessonFileError):
    def __init__(self):
        super().__init__("Forbidden", "forbidden")


class ComponentCompileError(LessonFileError):
    def __init__(self, detail: str):
        super().__init__(f"Compile error: {detail}", "compile_error")


class LessonFileTooLargeError(LessonFileError):
    def __init__(self, message: str):
        super().__init__(message, "file_too_large")


class LessonFileStorageError(LessonFileError):
    """Storage or database failure; the message is safe to show."""

    def __init__(self, message: str):
        super().__init__(message, "storage_failed")


# ==============================================================================
# Lesson File Service
# ==============================================================================


class LessonFileService:
    """Lesson assets in object storage, indexed in Cassandra."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        storage: "FirebaseStorageService",
        compiler: "SvelteCompiler",
        lesson_service: "LessonService",
        course_service: "CourseService",
    ):
        self.session = session
        self.keyspace = keyspace
        self.storage = storage
        self.compiler = compiler
        self.lessons = lesson_service
        self.courses = course_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._insert_file = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lesson_files
            (id, lesson_id, file_name, file_type, storage_path, compiled_path,
             tab_order, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_file = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lesson_files WHERE id = ?"
        )
        self._list_by_lesson = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lesson_files WHERE lesson_id = ?"
        )
        self._delete_file = self.session.prepare(
            f"DELETE FROM {self.keyspace}.lesson_files WHERE id = ?"
        )

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get_file(self, file_id: UUID) -> LessonFile | None:
        """Get lesson file by id."""
        result = await self.session.aexecute(self._get_file, [file_id])
        if not result:
            return None
        return LessonFile.from_row(result[0])

    async def list_for_lessons(
        self,
        lesson_ids: Iterable[UUID],
    ) -> dict[UUID, list[LessonFile]]:
        """Files of each lesson ordered by tab order; lessons without files are omitted."""
        files_map: dict[UUID, list[LessonFile]] = defaultdict(list)
        for lesson_id in dict.fromkeys(lesson_ids):
            result = await self.session.aexecute(self._list_by_lesson, [lesson_id])
            files_map[lesson_id].extend(LessonFile.from_row(row) for row in result)
        return {
            lesson_id: sorted(files, key=lambda f: (f.tab_order, f.created_at))
            for lesson_id, files in files_map.items()
            if files
        }

    def preview_url(self, lesson_file: LessonFile) -> str | None:
        """Public URL of the compiled component, if there is one."""
        if lesson_file.file_type != LessonFileType.SVELTE or not lesson_file.compiled_path:
            return None
        return self.storage.public_url(lesson_file.compiled_path)

    # ==========================================================================
    # Permissions
    # ==========================================================================

    async def can_manage(self, lesson: "Lesson", profile: "Profile") -> bool:
        """Admins manage any lesson's files; creators manage their own course's."""
        if has_capability(profile.role, Capability.MANAGE_ANY_LESSON_FILE):
            return True
        if lesson.course_type != CourseType.CUSTOM:
            return False
        course = await self.courses.get_custom_course(lesson.course_id)
        return course is not None and course.is_creator(profile.id)

    async def _require_manageable_lesson(
        self, lesson_id: UUID, profile: "Profile"
    ) -> "Lesson":
        lesson = await self.lessons.get_lesson(lesson_id)
        if lesson is None:
            raise LessonFileLessonNotFoundError
        if not await self.can_manage(lesson, profile):
            raise LessonFileForbiddenError
        return lesson

    # ==========================================================================
    # Upload / Delete
    # ==========================================================================

    async def upload(
        self,
        profile: "Profile",
        lesson_id: UUID,
        file_name: str,
        content: bytes,
        content_type: str | None = None,
        tab_order: int = 0,
    ) -> LessonFile:
        """Store a lesson file; svelte sources are compiled and stored too.

        Raises:
            UnsupportedFileTypeError: Extension not allowed
            LessonFileLessonNotFoundError: Lesson does not exist
            LessonFileForbiddenError: Caller may not manage the lesson
            ComponentCompileError: Svelte source failed to compile
            LessonFileStorageError: Storage or database failure
        """
        file_type = file_type_for(file_name)
        if file_type is None:
            raise UnsupportedFileTypeError

        await self._require_manageable_lesson(lesson_id, profile)

        lesson_file = LessonFile(
            lesson_id=lesson_id,
            file_name=file_name,
            file_type=file_type,
            tab_order=tab_order,
        )

        try:
            await self.storage.upload_bytes(
                lesson_file.storage_path,
                content,
                content_type or "application/octet-stream",
            )
        except FileTooLargeError as e:
            raise LessonFileTooLargeError(e.message) from e
        except StorageError as e:
            logger.warning("lesson_file_upload_failed", error=e.message)
            raise LessonFileStorageError("Failed to upload file to storage") from e

        if file_type == LessonFileType.SVELTE:
            await self._compile_and_store(lesson_file, content)

        try:
            await self.session.aexecute(
                self._insert_file,
                [
                    lesson_file.id,
                    lesson_file.lesson_id,
                    lesson_file.file_name,
                    lesson_file.file_type.value,
                    lesson_file.storage_path,
                    lesson_file.compiled_path,
                    lesson_file.tab_order,
                    lesson_file.created_at,
                ],
            )
        except Exception as e:
            logger.exception("database_error_insert_lesson_file", error=str(e))
            await self._cleanup(lesson_file.stored_paths)
            raise LessonFileStorageError("Failed to save file record") from e

        logger.info(
            "lesson_file_uploaded",
            file_id=str(lesson_file.id),
            lesson_id=str(lesson_id),
            file_type=file_type.value,
        )
        return lesson_file

    async def _compile_and_store(self, lesson_file: LessonFile, content: bytes) -> None:
        try:
            compiled = await self.compiler.compile(
                content.decode("utf-8", errors="replace"), lesson_file.file_name
            )
        except CompileError as e:
            await self._cleanup([lesson_file.storage_path])
            raise ComponentCompileError(e.message) from e

        try:
            await self.storage.upload_bytes(
                lesson_file.compiled_target,
                compiled.encode(),
                "application/javascript",
            )
        except StorageError as e:
            logger.warning("compiled_component_upload_failed", error=e.message)
            await self._cleanup([lesson_file.storage_path])
            raise LessonFileStorageError("Failed to store compiled component") from e

        lesson_file.compiled_path = lesson_file.compiled_target

    async def _cleanup(self, paths: list[str]) -> None:
        try:
            await self.storage.delete_paths(paths)
        except StorageError as e:
            logger.warning("lesson_file_cleanup_failed", paths=paths, error=e.message)

    async def delete(self, profile: "Profile", file_id: UUID) -> None:
        """Delete a lesson file and its stored objects.

        Storage failures are logged and the row is deleted regardless.

        Raises:
            LessonFileNotFoundError: File does not exist
            LessonFileForbiddenError: Caller may not manage the lesson
            LessonFileStorageError: Row deletion failed
        """
        lesson_file = await self.get_file(file_id)
        if lesson_file is None:
            raise LessonFileNotFoundError

        lesson = await self.lessons.get_lesson(lesson_file.lesson_id)
        if lesson is None:
            if not has_capability(profile.role, Capability.MANAGE_ANY_LESSON_FILE):
                raise LessonFileForbiddenError
        elif not await self.can_manage(lesson, profile):
            raise LessonFileForbiddenError

        await self._cleanup(lesson_file.stored_paths)

        try:
            await self.session.aexecute(self._delete_file, [file_id])
        except Exception as e:
            logger.exception("database_error_delete_lesson_file", error=str(e))
            raise LessonFileStorageError("Failed to delete file record") from e

        logger.info("lesson_file_deleted", file_id=str(file_id))
