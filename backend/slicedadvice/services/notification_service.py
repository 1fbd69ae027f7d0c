# backend/slicedadvice/services/notification_service.py
"""
Notification Service for the SlicedAdvice platform.

Sends the two booking lifecycle emails:
- expert: a customer has booked you (on create)
- customer: your booking was completed (after a successful capture)

Delivery is best effort. A failed send is logged with the booking id and
recipient and reported as ``False``; it never undoes or blocks the booking
write that triggered it.
"""

from dataclasses import dataclass, field
import logging
from typing import Any, Callable, Dict, Optional

from jinja2.exceptions import TemplateError

from ..core.constants import BRAND_NAME
from ..core.exceptions import NotificationFailedException
from ..models.booking import Booking, BookingType
from .base import BaseService
from .template_service import TemplateService

logger = logging.getLogger(__name__)

EXPERT_BOOKING_TEMPLATE = "email/booking_requested_expert.txt"
CUSTOMER_COMPLETED_TEMPLATE = "email/booking_completed_customer.txt"


@dataclass
class EmailMessage:
    recipient: str
    subject: str
    template: str
    context: Dict[str, Any] = field(default_factory=dict)


class NotificationService(BaseService):
    """
    Notification Dispatcher for booking events.

    Built once at startup with an email backend (Resend or console) and shared
    across requests. Callers pass bookings with ``expert`` and ``customer``
    loaded.
    """

    def __init__(
        self,
        email_service: Any,
        template_service: Optional[TemplateService] = None,
    ) -> None:
        super().__init__()
        self.email_service = email_service
        self.template_service = template_service or TemplateService()

    @BaseService.measure_operation("send_booking_requested_to_expert")
    def send_booking_requested_to_expert(self, booking: Booking) -> bool:
        """
        Tell the expert a customer booked them.

        Returns:
            bool: True if the email was sent, False otherwise
        """

        def build() -> EmailMessage:
            expert = booking.expert
            customer = booking.customer
            return EmailMessage(
                recipient=expert.email,
                subject=f"{BRAND_NAME}: {customer.name} has booked you for advice!",
                template=EXPERT_BOOKING_TEMPLATE,
                context={
                    "expert_name": expert.name,
                    "customer_name": customer.name,
                    "booking_type_label": BookingType(booking.booking_type).display_name,
                    "booking_id": booking.id,
                },
            )

        return self._send(booking, build)

    @BaseService.measure_operation("send_booking_completed_to_customer")
    def send_booking_completed_to_customer(self, booking: Booking) -> bool:
        """
        Tell the customer their booking was answered and paid.

        Returns:
            bool: True if the email was sent, False otherwise
        """

        def build() -> EmailMessage:
            expert = booking.expert
            customer = booking.customer
            return EmailMessage(
                recipient=customer.email,
                subject=f"{BRAND_NAME}: {expert.name} has completed your booking!",
                template=CUSTOMER_COMPLETED_TEMPLATE,
                context={
                    "expert_name": expert.name,
                    "customer_name": customer.name,
                    "booking_id": booking.id,
                },
            )

        return self._send(booking, build)

    def _send(self, booking: Booking, build: Callable[[], EmailMessage]) -> bool:
        # Recipients are lazy relationships; loading them can fail after the commit
        recipient = "<unresolved>"
        try:
            message = build()
            recipient = message.recipient
            body = self.template_service.render_template(message.template, message.context)
            self.email_service.send_email(
                to_email=recipient, subject=message.subject, text_content=body
            )
        except (NotificationFailedException, TemplateError) as e:
            self.logger.error(
                f"Failed to send booking email for booking {booking.id} to {recipient}: {str(e)}"
            )
            return False
        except Exception as e:
            self.logger.error(
                f"Unexpected error sending booking email for booking {booking.id} "
                f"to {recipient}: {str(e)}"
            )
            return False

        self.logger.info(f"Booking email '{message.template}' sent for booking {booking.id}")
        return True
