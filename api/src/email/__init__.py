"""Email module: templated confirmations and delivery transports."""

from .schemas import EmailRecipient, SendEmailRequest, SendEmailResponse
from .service import EmailService
from .transport import GmailTransport, LoggingTransport


__all__ = [
    "EmailRecipient",
    "EmailService",
    "GmailTransport",
    "LoggingTransport",
    "SendEmailRequest",
    "SendEmailResponse",
]
