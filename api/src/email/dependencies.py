"""FastAPI dependencies for the email service."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from src.email.service import EmailService


_email_service_getter: Callable[[], EmailService] | None = None


def set_email_service_getter(getter: Callable[[], EmailService]) -> None:
    """Set the email service getter function."""
    global _email_service_getter
    _email_service_getter = getter


def get_email_service() -> EmailService:
    """Get EmailService instance from app state."""
    if _email_service_getter is None:
        msg = "EmailService not configured"
        raise RuntimeError(msg)
    return _email_service_getter()


EmailServiceDep = Annotated[EmailService, Depends(get_email_service)]
