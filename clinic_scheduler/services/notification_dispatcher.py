"""Send rendered messages over one channel and record every attempt."""

from datetime import datetime
from typing import Any
from uuid import UUID

import structlog

from clinic_scheduler.config import settings
from clinic_scheduler.core.clock import Clock, SystemClock
from clinic_scheduler.core.exceptions import ChannelDeliveryError, UnsupportedChannelError
from clinic_scheduler.repositories.ports import NotificationStore
from clinic_scheduler.schemas.notifications import (
    NotificationChannel,
    NotificationRequestCreate,
    NotificationResult,
    NotificationStatus,
    ReminderType,
)
from clinic_scheduler.services.channels import EmailAdapter, SmsAdapter

logger = structlog.get_logger(__name__)

PUSH_NOT_IMPLEMENTED = "push channel not implemented"


class NotificationDispatcher:
    """Deliver a message through a channel adapter and log the attempt."""

    def __init__(
        self,
        notifications: NotificationStore,
        email_adapter: EmailAdapter,
        sms_adapter: SmsAdapter,
        clock: Clock | None = None,
    ):
        """Initialize dispatcher with its store, adapters and time source."""
        self.notifications = notifications
        self.email_adapter = email_adapter
        self.sms_adapter = sms_adapter
        self.clock = clock or SystemClock()

    async def send(
        self,
        channel: NotificationChannel,
        email: str | None,
        phone: str | None,
        subject: str,
        body: str,
        clinic_id: UUID,
        metadata: dict[str, Any] | None = None,
        reminder_type: ReminderType = ReminderType.APPOINTMENT_REMINDER,
    ) -> NotificationResult:
        """
        Send one message and record exactly one notification request.

        Args:
            channel: Delivery channel
            email: Recipient email, required for EMAIL
            phone: Recipient phone, required for SMS
            subject: Rendered subject
            body: Rendered body
            clinic_id: Clinic the message is sent on behalf of
            metadata: Free-form context, typically appointment and reminder ids
            reminder_type: Kind of reminder being delivered

        Returns:
            Outcome of the attempt. Adapter failures are reported here,
            never raised.

        Raises:
            UnsupportedChannelError: If the channel has no route
        """
        if channel not in (
            NotificationChannel.EMAIL,
            NotificationChannel.SMS,
            NotificationChannel.PUSH,
        ):
            raise UnsupportedChannelError(channel.value)

        metadata = dict(metadata or {})
        success, error = await self._deliver(channel, email, phone, subject, body)
        sent_at: datetime | None = self.clock.now() if success else None
        status = NotificationStatus.SENT if success else NotificationStatus.FAILED

        appointment_id = metadata.get("appointment_id")
        request = await self.notifications.record(
            NotificationRequestCreate(
                clinic_id=clinic_id,
                appointment_id=UUID(str(appointment_id)) if appointment_id else None,
                type=channel,
                reminder_type=reminder_type,
                recipient_email=email,
                recipient_phone=phone,
                subject=subject,
                body=body,
                status=status,
                attempts=1,
                max_attempts=settings.notification_max_attempts,
                sent_at=sent_at,
                error_message=error,
                metadata=metadata,
            )
        )

        if success:
            logger.info(
                "notification_sent",
                channel=channel.value,
                clinic_id=str(clinic_id),
                notification_id=str(request.id),
            )
            message = "Notification sent successfully"
        else:
            logger.warning(
                "notification_failed",
                channel=channel.value,
                clinic_id=str(clinic_id),
                notification_id=str(request.id),
                error=error,
            )
            message = "Failed to send notification"

        return NotificationResult(
            success=success,
            message=message,
            notification_id=request.id,
            status=status,
            sent_at=sent_at,
            error=error,
        )

    async def _deliver(
        self,
        channel: NotificationChannel,
        email: str | None,
        phone: str | None,
        subject: str,
        body: str,
    ) -> tuple[bool, str | None]:
        if channel == NotificationChannel.PUSH:
            logger.info("push_notification_skipped", reason=PUSH_NOT_IMPLEMENTED)
            return False, PUSH_NOT_IMPLEMENTED

        try:
            if channel == NotificationChannel.EMAIL:
                if not email:
                    return False, "recipient has no email address"
                accepted = await self.email_adapter.send_email(email, subject, body, is_html=False)
            else:
                if not phone:
                    return False, "recipient has no phone number"
                accepted = await self.sms_adapter.send_sms(phone, body)
        except ChannelDeliveryError as e:
            return False, e.message
        except Exception as e:
            logger.error("channel_adapter_error", channel=channel.value, error=str(e))
            return False, str(e)

        if not accepted:
            return False, f"{channel.value.lower()} adapter rejected the message"
        return True, None
