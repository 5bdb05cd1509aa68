"""
Message service for customer conversations.

Records outbound messages (typed by the operator or sent automatically by the
job lifecycle), records inbound messages, and keeps the unread flags
consistent: replying to or opening a conversation marks that customer's
inbound messages read.

Messages are append-only; the read flag is the only field ever updated.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from core.config import ConsoleConfig
from core.conversations import ConversationSummary, project_conversations
from core.event_bus import EventBus
from core.events import MessageReceived, MessageSent
from core.exceptions import ValidationError
from core.models import (
    Message, MessageCreate, MessageChannel, MessageDirection, TemplateKey,
)
from core.store import EntityStore

logger = logging.getLogger(__name__)


@dataclass
class SentMessage:
    """An outbound message plus warnings for deliveries that failed after it was stored."""
    message: Message
    warnings: list[str] = field(default_factory=list)


class MessageService:
    """Service for conversation operations."""

    def __init__(self, store: EntityStore, event_bus: EventBus, config: ConsoleConfig | None = None):
        self.store = store
        self.event_bus = event_bus
        self.config = config or ConsoleConfig()

    def send(
        self,
        customer_id: UUID,
        body: str,
        channel: MessageChannel = MessageChannel.TEXT,
        job_id: UUID | None = None,
        is_auto: bool = False,
        template_key: TemplateKey | None = None,
    ) -> Message:
        """Record an outbound message; see send_with_warnings. Delivery failures are only logged."""
        return self.send_with_warnings(
            customer_id, body, channel=channel, job_id=job_id, is_auto=is_auto, template_key=template_key,
        ).message

    def send_with_warnings(
        self,
        customer_id: UUID,
        body: str,
        channel: MessageChannel = MessageChannel.TEXT,
        job_id: UUID | None = None,
        is_auto: bool = False,
        template_key: TemplateKey | None = None,
    ) -> SentMessage:
        """
        Record an outbound message and mark the customer's conversation read.

        Delivery runs after the message is stored. A delivery handler that
        fails leaves the message in place and adds a warning instead.

        Args:
            customer_id: Recipient customer
            body: Message text
            channel: text or email
            job_id: Job the message is about, if any
            is_auto: True when sent by lifecycle automation
            template_key: Template the body was rendered from, if any

        Returns:
            SentMessage with the stored message (is_read is always True for
            outbound) and one warning per failed delivery

        Raises:
            ValidationError: If the body is blank
        """
        data = self._build(
            customer_id=customer_id,
            job_id=job_id,
            direction=MessageDirection.OUTBOUND,
            channel=channel,
            body=body,
            is_auto=is_auto,
            template_key=template_key,
        )
        message = self.store.messages.create(data.model_dump())

        logger.info(
            f"Sent {'auto ' if is_auto else ''}{data.channel.value} message {message.id} "
            f"to customer {customer_id}"
        )

        self.mark_conversation_read(customer_id)
        failures = self.event_bus.publish(MessageSent.create(message=message))

        return SentMessage(
            message=message,
            warnings=[f"Message saved, but delivery failed: {failure}" for failure in failures],
        )

    def record_inbound(
        self,
        customer_id: UUID,
        body: str,
        channel: MessageChannel = MessageChannel.TEXT,
        job_id: UUID | None = None,
    ) -> Message:
        """
        Record a message received from a customer. It starts unread.

        Raises:
            ValidationError: If the body is blank
        """
        data = self._build(
            customer_id=customer_id,
            job_id=job_id,
            direction=MessageDirection.INBOUND,
            channel=channel,
            body=body,
        )
        message = self.store.messages.create(data.model_dump())

        logger.info(f"Recorded inbound {data.channel.value} message {message.id} from customer {customer_id}")
        self.event_bus.publish(MessageReceived.create(message=message))

        return message

    def mark_conversation_read(self, customer_id: UUID) -> int:
        """
        Mark every unread inbound message from a customer as read.

        One write per message, not transactional. Safe to repeat.

        Returns:
            Number of messages marked read
        """
        unread = self.store.messages.filter({
            "customer_id": customer_id,
            "direction": MessageDirection.INBOUND,
            "is_read": False,
        })

        for message in unread:
            self.store.messages.update(message.id, {"is_read": True})

        if unread:
            logger.info(f"Marked {len(unread)} message(s) read for customer {customer_id}")

        return len(unread)

    def thread(self, customer_id: UUID) -> list[Message]:
        """
        A customer's conversation, oldest first, for display.

        The store returns newest first; the window is the most recent
        thread_limit messages.
        """
        newest_first = self.store.messages.filter(
            {"customer_id": customer_id}, sort="-created_date", limit=self.config.thread_limit
        )
        return list(reversed(newest_first))

    def list_for_job(self, job_id: UUID) -> list[Message]:
        """Messages linked to a job, oldest first."""
        return self.store.messages.filter({"job_id": job_id}, sort="created_date")

    def has_auto_message(self, job_id: UUID, template_key: TemplateKey) -> bool:
        """Whether an automatic message from this template was already sent for this job."""
        existing = self.store.messages.filter(
            {"job_id": job_id, "is_auto": True, "template_key": template_key}, limit=1
        )
        return bool(existing)

    def unread_count(self, customer_id: UUID | None = None) -> int:
        """
        Inbound messages not yet read, for one customer or across all of them.

        Saturates at config.unread_limit: past the cap, the count reads as the cap.
        """
        predicate = {"direction": MessageDirection.INBOUND, "is_read": False}
        if customer_id is not None:
            predicate["customer_id"] = customer_id

        unread = self.store.messages.filter(
            predicate,
            sort="-created_date",
            limit=self.config.unread_limit,
        )
        return len(unread)

    def conversations(self) -> list[ConversationSummary]:
        """Inbox view: one summary per customer with messages, most recent first."""
        messages = self.store.messages.list(sort="-created_date", limit=self.config.inbox_message_limit)
        customers = self.store.customers.list(sort="-created_date", limit=self.config.inbox_customer_limit)
        jobs = self.store.jobs.list(sort="-created_date", limit=self.config.inbox_job_limit)
        return project_conversations(messages, customers, jobs)

    @staticmethod
    def _build(**fields) -> MessageCreate:
        try:
            return MessageCreate(**fields)
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e
