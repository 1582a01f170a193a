# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Transactional email service.

Renders stored templates (created from defaults on first use), records every
attempt in ``email_logs`` and hands the message to the configured transport.
Callers treat delivery as best effort: failures are reported in the returned
SendEmailResponse and never raised.
"""

from typing import TYPE_CHECKING
from uuid import UUID

from src.core.logging import get_logger
from src.core.timeutils import utc_now
from src.email.models import EmailLog, EmailStatus, EmailTemplate
from src.email.schemas import EmailRecipient, SendEmailRequest, SendEmailResponse
from src.email.templates import (
    CODE_REDEMPTION,
    PURCHASE_CONFIRMATION,
    default_template,
    format_amount,
    format_date,
    render,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from src.entitlements.models import Purchase
    from src.kits.models import Kit

    from .transport import EmailTransport


logger = get_logger(__name__)


class EmailTemplateNotFoundError(Exception):
    """No stored template and no built-in default for the name."""


class EmailService:
    """Kit purchase and redemption confirmations."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        transport: "EmailTransport",
        courses_url: str,
    ):
        """Initialize with Cassandra session and a delivery transport.

        Args:
            session: Cassandra session with aexecute support
            keyspace: Keyspace name for queries
            transport: Delivery backend (Gmail or log-only)
            courses_url: Absolute URL of the courses page used in templates
        """
        self.session = session
        self.keyspace = keyspace
        self.transport = transport
        self.courses_url = courses_url
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_template = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.email_templates WHERE name = ?"
        )
        self._list_templates = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.email_templates"
        )
        self._insert_template = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.email_templates
            (name, subject, html_content, text_content, variables, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)
        self._update_template = self.session.prepare(f"""
            UPDATE {self.keyspace}.email_templates
            SET subject = ?, html_content = ?, text_content = ?, updated_at = ?
            WHERE name = ?
        """)
        self._insert_log = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.email_logs
            (id, user_id, template_name, to_email, subject, content, status,
             error_message, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_log_status = self.session.prepare(f"""
            UPDATE {self.keyspace}.email_logs
            SET status = ?, error_message = ?
            WHERE id = ?
        """)
        self._list_logs = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.email_logs LIMIT ?"
        )

    # ==========================================================================
    # Templates
    # ==========================================================================

    async def get_template(self, name: str) -> EmailTemplate:
        """Get a stored template, creating it from the default if missing.

        Raises:
            EmailTemplateNotFoundError: If there is no default for ``name``
        """
        result = await self.session.aexecute(self._get_template, [name])
        if result:
            return EmailTemplate.from_row(result[0])

        template = default_template(name)
        if template is None:
            raise EmailTemplateNotFoundError(name)

        await self.session.aexecute(
            self._insert_template,
            [
                template.name,
                template.subject,
                template.html_content,
                template.text_content,
                template.variables,
                template.created_at,
                None,
            ],
        )
        logger.info("email_template_created", template=name)
        return template

    async def list_templates(self) -> list[EmailTemplate]:
        """All stored templates."""
        result = await self.session.aexecute(self._list_templates)
        return sorted((EmailTemplate.from_row(row) for row in result), key=lambda t: t.name)

    async def update_template(
        self,
        name: str,
        subject: str,
        html_content: str,
        text_content: str,
    ) -> EmailTemplate:
        """Replace a template's content (creating the default row first)."""
        template = await self.get_template(name)
        now = utc_now()
        await self.session.aexecute(
            self._update_template, [subject, html_content, text_content, now, name]
        )
        template.subject = subject
        template.html_content = html_content
        template.text_content = text_content
        template.updated_at = now
        logger.info("email_template_updated", template=name)
        return template

    # ==========================================================================
    # Confirmations
    # ==========================================================================

    def _kit_variables(self, kit: "Kit", user_name: str) -> dict[str, str]:
        return {
            "kitName": kit.name,
            "kitTheme": kit.theme,
            "kitLevel": str(kit.level),
            "userName": user_name,
            "coursesUrl": self.courses_url,
        }

    async def send_purchase_confirmation(
        self,
        purchase: "Purchase",
        kit: "Kit",
        to_email: str,
        user_name: str,
    ) -> SendEmailResponse:
        """Send the purchase confirmation for a kit."""
        variables = self._kit_variables(kit, user_name)
        variables["purchaseDate"] = format_date(purchase.created_at)
        variables["amount"] = format_amount(purchase.amount)
        return await self._send_template(
            PURCHASE_CONFIRMATION, variables, to_email, user_name, purchase.user_id
        )

    async def send_code_redemption_confirmation(
        self,
        kit: "Kit",
        to_email: str,
        user_name: str,
        user_id: UUID | None = None,
    ) -> SendEmailResponse:
        """Send the confirmation after a code unlocks a kit."""
        variables = self._kit_variables(kit, user_name)
        variables["redemptionDate"] = format_date(utc_now())
        return await self._send_template(
            CODE_REDEMPTION, variables, to_email, user_name, user_id
        )

    async def _send_template(
        self,
        template_name: str,
        variables: dict[str, str],
        to_email: str,
        to_name: str | None,
        user_id: UUID | None,
    ) -> SendEmailResponse:
        try:
            template = await self.get_template(template_name)
            subject = render(template.subject, variables)
            html = render(template.html_content, variables)
            text = render(template.text_content, variables)

            log = EmailLog(
                user_id=user_id,
                template_name=template_name,
                to_email=to_email,
                subject=subject,
                content=html,
            )
            await self.session.aexecute(
                self._insert_log,
                [
                    log.id,
                    log.user_id,
                    log.template_name,
                    log.to_email,
                    log.subject,
                    log.content,
                    log.status.value,
                    None,
                    log.created_at,
                ],
            )

            response = await self.transport.send_email(
                SendEmailRequest(
                    to=[EmailRecipient(email=to_email, name=to_name or None)],
                    subject=subject,
                    body_html=html,
                    body_text=text or None,
                )
            )

            status = EmailStatus.SENT if response.success else EmailStatus.FAILED
            await self.session.aexecute(
                self._update_log_status, [status.value, response.error, log.id]
            )
        except Exception as e:
            logger.exception(
                "email_confirmation_failed",
                template=template_name,
                error=str(e),
            )
            return SendEmailResponse(success=False, error=str(e))

        logger.info(
            "email_confirmation_processed",
            template=template_name,
            log_id=str(log.id),
            status=status.value,
            transport=self.transport.name,
        )
        return response

    # ==========================================================================
    # Logs
    # ==========================================================================

    async def list_logs(self, limit: int = 100) -> list[EmailLog]:
        """Most recent logged attempts."""
        result = await self.session.aexecute(self._list_logs, [limit])
        logs = [EmailLog.from_row(row) for row in result]
        return sorted(logs, key=lambda log: log.created_at, reverse=True)
