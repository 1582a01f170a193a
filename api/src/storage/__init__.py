"""Firebase Storage for lesson file objects."""

from .service import (
    FileTooLargeError,
    FirebaseStorageService,
    StorageError,
    StorageNotConfiguredError,
    StorageUploadError,
)


__all__ = [
    "FileTooLargeError",
    "FirebaseStorageService",
    "StorageError",
    "StorageNotConfiguredError",
    "StorageUploadError",
]
