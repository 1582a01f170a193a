"""Tests for EmailService confirmations."""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from src.email.schemas import SendEmailRequest, SendEmailResponse
from src.email.service import EmailService, EmailTemplateNotFoundError
from src.email.templates import CODE_REDEMPTION
from src.entitlements.models import PaymentMethod, Purchase
from src.kits.models import Kit


@pytest.fixture
def transport() -> Mock:
    transport = Mock()
    transport.name = "test"
    transport.send_email = AsyncMock(return_value=SendEmailResponse(success=True))
    return transport


@pytest.fixture
def service(mock_session: Mock, transport: Mock) -> EmailService:
    return EmailService(
        mock_session, "electrofun_test", transport, "https://electrofun.example/courses"
    )


@pytest.fixture
def kit() -> Kit:
    return Kit(name="Solar Kit", theme="energy", level=1, price=Decimal("29.00"))


class TestGetTemplate:
    """Tests for template lookup."""

    @pytest.mark.asyncio
    async def test_missing_template_is_seeded_from_default(
        self, service: EmailService, mock_session: Mock
    ) -> None:
        mock_session.aexecute = AsyncMock(return_value=[])

        template = await service.get_template(CODE_REDEMPTION)

        assert template.name == CODE_REDEMPTION
        # lookup + seed insert
        assert mock_session.aexecute.await_count == 2

    @pytest.mark.asyncio
    async def test_stored_template_wins(
        self, service: EmailService, mock_session: Mock
    ) -> None:
        row = SimpleNamespace(
            name=CODE_REDEMPTION,
            subject="Custom {kitName}",
            html_content="<p>{userName}</p>",
            text_content="",
            variables=["kitName", "userName"],
            created_at=None,
            updated_at=None,
        )
        mock_session.aexecute = AsyncMock(return_value=[row])

        template = await service.get_template(CODE_REDEMPTION)

        assert template.subject == "Custom {kitName}"

    @pytest.mark.asyncio
    async def test_unknown_template(
        self, service: EmailService, mock_session: Mock
    ) -> None:
        mock_session.aexecute = AsyncMock(return_value=[])
        with pytest.raises(EmailTemplateNotFoundError):
            await service.get_template("nope")


class TestConfirmations:
    """Tests for sending confirmations."""

    @pytest.mark.asyncio
    async def test_redemption_confirmation(
        self, service: EmailService, transport: Mock, kit: Kit
    ) -> None:
        response = await service.send_code_redemption_confirmation(
            kit, "ada@example.com", "Ada", uuid4()
        )

        assert response.success is True
        request: SendEmailRequest = transport.send_email.await_args.args[0]
        assert request.subject == "Kit Unlocked: Solar Kit - Welcome to Electrofun!"
        assert request.to[0].email == "ada@example.com"
        assert "Hi Ada," in request.body_text
        assert "https://electrofun.example/courses" in request.body_text

    @pytest.mark.asyncio
    async def test_free_purchase_confirmation(
        self, service: EmailService, transport: Mock, kit: Kit
    ) -> None:
        purchase = Purchase(
            user_id=uuid4(),
            kit_id=kit.id,
            payment_method=PaymentMethod.ADMIN_GRANT,
        )

        await service.send_purchase_confirmation(purchase, kit, "ada@example.com", "Ada")

        request: SendEmailRequest = transport.send_email.await_args.args[0]
        assert "- Amount: FREE" in request.body_text
        assert request.subject.startswith("Welcome to Solar Kit")

    @pytest.mark.asyncio
    async def test_transport_failure_is_reported_not_raised(
        self, service: EmailService, transport: Mock, kit: Kit
    ) -> None:
        transport.send_email = AsyncMock(side_effect=Exception("gmail down"))

        response = await service.send_code_redemption_confirmation(
            kit, "ada@example.com", "Ada"
        )

        assert response.success is False
        assert response.error == "gmail down"

    @pytest.mark.asyncio
    async def test_failed_delivery_is_logged_as_failed(
        self, service: EmailService, transport: Mock, mock_session: Mock, kit: Kit
    ) -> None:
        transport.send_email = AsyncMock(
            return_value=SendEmailResponse(success=False, error="quota")
        )

        await service.send_code_redemption_confirmation(kit, "ada@example.com", "Ada")

        status_update = mock_session.aexecute.await_args_list[-1].args[1]
        assert status_update[:2] == ["failed", "quota"]
