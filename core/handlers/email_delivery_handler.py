"""
Handler for MessageSent events.

Outbound messages on the email channel are delivered through the email
gateway once they have been recorded. Text messages are left to the
operator's phone.
"""

import logging
from typing import Callable

from core.config import ConsoleConfig
from core.events import MessageSent
from core.exceptions import NotFoundError
from core.models import MessageChannel
from core.store import EntityStore

logger = logging.getLogger(__name__)


def handle_message_sent(store: EntityStore, email_client, config: ConsoleConfig) -> Callable:
    """
    Factory that returns a MessageSent handler.

    Args:
        store: EntityStore to look up the recipient
        email_client: EmailGatewayClient instance
        config: ConsoleConfig (business name for the subject line)

    Returns:
        Handler callable that emails email-channel messages
    """

    def handler(event: MessageSent):
        message = event.message
        if message.channel != MessageChannel.EMAIL:
            return

        try:
            customer = store.customers.get(message.customer_id)
        except NotFoundError:
            logger.warning(f"Message {message.id} not emailed: customer {message.customer_id} is gone")
            return

        if not customer.email:
            logger.warning(f"Message {message.id} not emailed: customer {customer.id} has no email address")
            return

        email_client.send_email(
            to=customer.email,
            subject=f"Message from {config.business_name}",
            body=message.body,
        )

    return handler
