"""Email administration endpoints.

Provides endpoints for:
- Checking email delivery configuration
- Viewing delivery logs
- Reading and editing stored templates
"""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from src.auth.dependencies import CatalogAdmin
from src.config import get_settings
from src.core.logging import get_logger

from .dependencies import EmailServiceDep
from .schemas import (
    EmailLogResponse,
    EmailStatusResponse,
    EmailTemplateResponse,
    UpdateEmailTemplateRequest,
)
from .service import EmailTemplateNotFoundError


logger = get_logger(__name__)

admin_router = APIRouter(
    prefix="/v1/admin/email",
    tags=["admin", "email"],
)


@admin_router.get(
    "/status",
    response_model=EmailStatusResponse,
    summary="Get email delivery status",
)
async def get_email_status(
    _: CatalogAdmin,
    email_service: EmailServiceDep,
) -> EmailStatusResponse:
    """Report whether real delivery is enabled and which transport is active."""
    settings = get_settings()

    return EmailStatusResponse(
        enabled=settings.email_enabled,
        configured=settings.email_configured,
        transport=email_service.transport.name,
        sender_address=settings.email_sender_address
        if settings.email_configured
        else None,
    )


@admin_router.get(
    "/logs",
    response_model=list[EmailLogResponse],
    summary="List recent email attempts",
)
async def list_email_logs(
    _: CatalogAdmin,
    email_service: EmailServiceDep,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> list[EmailLogResponse]:
    logs = await email_service.list_logs(limit)
    return [EmailLogResponse(**log.to_dict()) for log in logs]


@admin_router.get(
    "/templates",
    response_model=list[EmailTemplateResponse],
    summary="List stored templates",
)
async def list_email_templates(
    _: CatalogAdmin,
    email_service: EmailServiceDep,
) -> list[EmailTemplateResponse]:
    templates = await email_service.list_templates()
    return [EmailTemplateResponse(**template.to_dict()) for template in templates]


@admin_router.get(
    "/templates/{name}",
    response_model=EmailTemplateResponse,
    summary="Get a template",
)
async def get_email_template(
    name: str,
    _: CatalogAdmin,
    email_service: EmailServiceDep,
) -> EmailTemplateResponse:
    try:
        template = await email_service.get_template(name)
    except EmailTemplateNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Template not found",
        ) from None
    return EmailTemplateResponse(**template.to_dict())


@admin_router.put(
    "/templates/{name}",
    response_model=EmailTemplateResponse,
    summary="Update a template",
)
async def update_email_template(
    name: str,
    data: UpdateEmailTemplateRequest,
    admin: CatalogAdmin,
    email_service: EmailServiceDep,
) -> EmailTemplateResponse:
    try:
        template = await email_service.update_template(
            name, data.subject, data.html_content, data.text_content
        )
    except EmailTemplateNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Template not found",
        ) from None

    logger.info("email_template_edited", template=name, admin_id=str(admin.id))
    return EmailTemplateResponse(**template.to_dict())
