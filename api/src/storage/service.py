"""Firebase Storage service for lesson files.

Objects live under ``{lesson_files_prefix}/{lesson_id}/{file_id}/...`` in the
configured bucket and are served from their public URL. The Firebase SDK is
blocking, so calls run in a worker thread.
"""

import asyncio
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote

from src.config.settings import Settings
from src.core.logging import get_logger


if TYPE_CHECKING:
    from google.cloud.storage import Bucket


logger = get_logger(__name__)


class StorageError(Exception):
    """Base error for storage operations."""

    def __init__(self, message: str, code: str = "storage_error") -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class StorageNotConfiguredError(StorageError):
    """Error when Firebase Storage is not configured."""

    def __init__(self, message: str = "Firebase Storage is not configured") -> None:
        super().__init__(message, "storage_not_configured")


class StorageUploadError(StorageError):
    """Error during file upload."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "upload_error")


class FileTooLargeError(StorageError):
    """Error when file exceeds size limit."""

    def __init__(self, size: int, max_size: int) -> None:
        message = (
            f"File size ({size / 1024 / 1024:.2f} MB) exceeds "
            f"maximum allowed ({max_size / 1024 / 1024:.2f} MB)"
        )
        super().__init__(message, "file_too_large")


def _open_bucket(settings: Settings) -> "Bucket":
    """Initialize the Firebase Admin app (once per process) and open the bucket.

    Raises:
        StorageNotConfiguredError: If Firebase is not configured.
    """
    if not settings.firebase_configured:
        raise StorageNotConfiguredError

    # Lazy import to avoid loading Firebase SDK unless needed
    import firebase_admin  # noqa: PLC0415
    from firebase_admin import credentials, storage  # noqa: PLC0415

    creds_path = settings.firebase_credentials_path
    if creds_path and not Path(creds_path).is_absolute():
        api_root = Path(__file__).parent.parent.parent
        creds_path = str(api_root / creds_path)

    if not creds_path or not Path(creds_path).exists():
        raise StorageNotConfiguredError(
            f"Firebase credentials file not found: {creds_path}"
        )

    try:
        try:
            app = firebase_admin.get_app()
        except ValueError:
            app = firebase_admin.initialize_app(
                credentials.Certificate(creds_path),
                {
                    "storageBucket": settings.firebase_storage_bucket,
                    "projectId": settings.firebase_project_id,
                },
            )
            logger.info(
                "firebase_initialized",
                project_id=settings.firebase_project_id,
                bucket=settings.firebase_storage_bucket,
            )
        return storage.bucket(app=app)
    except Exception as e:
        logger.exception("firebase_init_failed", error=str(e))
        raise StorageNotConfiguredError(f"Failed to initialize Firebase: {e}") from e


class FirebaseStorageService:
    """Upload, delete and address lesson file objects."""

    def __init__(self, settings: Settings) -> None:
        """Initialize storage service.

        Args:
            settings: Application settings.
        """
        self.settings = settings
        self._bucket: Bucket | None = None

    @property
    def is_configured(self) -> bool:
        """Check if Firebase Storage is configured."""
        return self.settings.firebase_configured

    @property
    def max_file_size(self) -> int:
        """Maximum file size in bytes."""
        return self.settings.upload_max_file_size_mb * 1024 * 1024

    def _get_bucket(self) -> "Bucket":
        if self._bucket is None:
            self._bucket = _open_bucket(self.settings)
        return self._bucket

    def object_name(self, path: str) -> str:
        """Full object name for a lesson-file path."""
        return f"{self.settings.lesson_files_prefix}/{path}"

    def public_url(self, path: str) -> str:
        """Public URL of a stored lesson-file path."""
        bucket_name = self.settings.firebase_storage_bucket
        encoded_path = "/".join(
            quote(part, safe="") for part in self.object_name(path).split("/")
        )
        return f"https://storage.googleapis.com/{bucket_name}/{encoded_path}"

    async def upload_bytes(self, path: str, content: bytes, content_type: str) -> str:
        """Upload content at ``path`` and make it public.

        Returns:
            The public URL.

        Raises:
            StorageNotConfiguredError: If Firebase is not configured.
            FileTooLargeError: If content exceeds the size limit.
            StorageUploadError: If upload fails.
        """
        if not self.is_configured:
            raise StorageNotConfiguredError

        file_size = len(content)
        if file_size > self.max_file_size:
            raise FileTooLargeError(file_size, self.max_file_size)

        name = self.object_name(path)

        def _upload() -> None:
            blob = self._get_bucket().blob(name)
            # Paths embed a fresh file id, so content under a path never changes
            blob.cache_control = "public, max-age=31536000, immutable"
            blob.upload_from_string(content, content_type=content_type)
            blob.make_public()

        try:
            await asyncio.to_thread(_upload)
        except StorageNotConfiguredError:
            raise
        except Exception as e:
            logger.exception("upload_failed", storage_path=name, error=str(e))
            raise StorageUploadError(f"Failed to upload file: {e}") from e

        logger.info(
            "file_uploaded",
            storage_path=name,
            content_type=content_type,
            file_size=file_size,
        )
        return self.public_url(path)

    async def delete_paths(self, paths: Iterable[str]) -> None:
        """Delete stored objects; missing objects are ignored.

        Raises:
            StorageNotConfiguredError: If Firebase is not configured.
            StorageUploadError: If deletion fails.
        """
        if not self.is_configured:
            raise StorageNotConfiguredError

        names = [self.object_name(path) for path in paths]

        def _delete() -> None:
            bucket = self._get_bucket()
            for name in names:
                blob = bucket.blob(name)
                if blob.exists():
                    blob.delete()

        try:
            await asyncio.to_thread(_delete)
        except StorageNotConfiguredError:
            raise
        except Exception as e:
            logger.exception("delete_failed", storage_paths=names, error=str(e))
            raise StorageUploadError(f"Failed to delete file: {e}") from e

        logger.info("files_deleted", storage_paths=names)
