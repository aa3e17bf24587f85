"""Channel adapters for outbound email and SMS."""

from abc import ABC, abstractmethod

import structlog

from clinic_scheduler.config import settings

logger = structlog.get_logger(__name__)


class EmailAdapter(ABC):
    """Transport for email messages."""

    @abstractmethod
    async def send_email(self, to: str, subject: str, body: str, is_html: bool = False) -> bool:
        """
        Send one email.

        Returns:
            True when the transport accepted the message

        Raises:
            ChannelDeliveryError: If the transport rejects the message
        """


class SmsAdapter(ABC):
    """Transport for SMS messages."""

    @abstractmethod
    async def send_sms(self, to: str, body: str) -> bool:
        """
        Send one SMS.

        Returns:
            True when the transport accepted the message

        Raises:
            ChannelDeliveryError: If the transport rejects the message
        """


class LogEmailAdapter(EmailAdapter):
    """Writes emails to the log instead of sending them."""

    async def send_email(self, to: str, subject: str, body: str, is_html: bool = False) -> bool:
        logger.info("email_logged", to=to, subject=subject, is_html=is_html, length=len(body))
        return True


class LogSmsAdapter(SmsAdapter):
    """Writes SMS messages to the log instead of sending them."""

    async def send_sms(self, to: str, body: str) -> bool:
        logger.info("sms_logged", to=to, length=len(body))
        return True


EMAIL_BACKENDS: dict[str, type[EmailAdapter]] = {"log": LogEmailAdapter}
SMS_BACKENDS: dict[str, type[SmsAdapter]] = {"log": LogSmsAdapter}


def get_email_adapter(backend: str | None = None) -> EmailAdapter:
    """Build the configured email adapter."""
    name = backend or settings.email_backend
    try:
        return EMAIL_BACKENDS[name]()
    except KeyError:
        raise ValueError(f"Unknown email backend: {name}") from None


def get_sms_adapter(backend: str | None = None) -> SmsAdapter:
    """Build the configured SMS adapter."""
    name = backend or settings.sms_backend
    try:
        return SMS_BACKENDS[name]()
    except KeyError:
        raise ValueError(f"Unknown SMS backend: {name}") from None
