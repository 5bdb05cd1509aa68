"""Application wiring: services, event handlers, and the FastAPI app."""

import logging

from fastapi import FastAPI

from api.actions import create_actions_router
from api.data import create_data_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from core.config import ConsoleConfig
from core.event_bus import EventBus
from core.handlers.email_delivery_handler import handle_message_sent
from core.services.customer_service import CustomerService
from core.services.dashboard_service import DashboardService
from core.services.job_service import JobService
from core.services.message_service import MessageService
from core.services.scheduling_service import SchedulingService
from core.services.settings_service import SettingsService
from core.store import EntityStore
from core.templates import TemplateEngine

logger = logging.getLogger(__name__)

# Pages the view host navigates between.
PAGES = (
    "Dashboard",
    "Inbox",
    "Calendar",
    "Jobs",
    "JobDetail",
    "Customers",
    "CustomerDetail",
    "NewCustomer",
    "Settings",
)


def build_services(
    store: EntityStore,
    config: ConsoleConfig | None = None,
    email_client=None,
) -> dict:
    """
    Construct every service over one store and subscribe the event handlers.

    Args:
        store: EntityStore backing all services
        config: ConsoleConfig; defaults apply when omitted
        email_client: EmailGatewayClient for email-channel messages. Without
            one, email-channel messages are recorded but not delivered.

    Returns:
        Services keyed by the names the routers look up
    """
    config = config or ConsoleConfig()
    event_bus = EventBus()

    settings = SettingsService(store)
    templates = TemplateEngine(settings)
    messages = MessageService(store, event_bus, config)
    jobs = JobService(store, messages, templates, settings, event_bus, config)

    if email_client is not None:
        event_bus.subscribe("MessageSent", handle_message_sent(store, email_client, config))
    else:
        logger.warning("No email gateway configured; email-channel messages will not be delivered")

    return {
        "config": config,
        "event_bus": event_bus,
        "settings": settings,
        "templates": templates,
        "message": messages,
        "job": jobs,
        "customer": CustomerService(store, jobs, messages, event_bus, config),
        "scheduling": SchedulingService(store, jobs, messages, event_bus, config),
        "dashboard": DashboardService(store, config),
    }


def create_app(services: dict) -> FastAPI:
    """FastAPI app with error handlers and the data/actions routes."""
    app = FastAPI(title="Window Cleaning Console")
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")

    return app


def create_production_app() -> FastAPI:
    """App backed by PostgreSQL and the email gateway, with secrets from Vault."""
    from clients.email_client import EmailGatewayClient
    from clients.postgres_client import PostgresClient
    from clients.vault_client import get_database_url, get_email_config

    store = EntityStore.postgres(PostgresClient(get_database_url()))
    email_client = EmailGatewayClient.from_config(get_email_config())
    return create_app(build_services(store, email_client=email_client))
