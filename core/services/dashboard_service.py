"""Dashboard service: loads the capped collections and aggregates them."""

from datetime import date

from core.config import ConsoleConfig
from core.dashboard import DashboardSnapshot, aggregate_dashboard
from core.models import MessageDirection
from core.store import EntityStore
from utils.civil_dates import today_local


class DashboardService:
    """Service for the dashboard read model."""

    def __init__(self, store: EntityStore, config: ConsoleConfig | None = None):
        self.store = store
        self.config = config or ConsoleConfig()

    def snapshot(self, today: date | None = None) -> DashboardSnapshot:
        """
        Compute the dashboard.

        Args:
            today: Civil date to compute for. Defaults to the local date.

        Returns:
            DashboardSnapshot over the most recent jobs and customers
        """
        today = today or today_local()
        limit = self.config.dashboard_limit

        jobs = self.store.jobs.list(sort="-created_date", limit=limit)
        customers = self.store.customers.list(sort="-created_date", limit=limit)
        unread = self.store.messages.filter(
            {"direction": MessageDirection.INBOUND, "is_read": False},
            sort="-created_date",
            limit=self.config.unread_limit,
        )
        markers = self.store.bad_weather_days.list()

        return aggregate_dashboard(customers, jobs, unread, markers, today)
