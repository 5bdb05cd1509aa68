"""GET /api/data — read endpoints for each console page."""

from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import success_response
from core.exceptions import NotFoundError
from core.lifecycle import allowed_targets
from core.services.scheduling_service import civil_date
from utils.civil_dates import today_local


def _dump(records) -> list[dict]:
    return [record.model_dump(mode="json") for record in records]


def create_data_router(services: dict) -> APIRouter:
    router = APIRouter()

    customer_svc = services["customer"]
    job_svc = services["job"]
    message_svc = services["message"]
    scheduling_svc = services["scheduling"]
    settings_svc = services["settings"]
    template_engine = services["templates"]
    dashboard_svc = services["dashboard"]
    config = services["config"]

    def respond(request: Request, data):
        request_id = getattr(request.state, "request_id", None)
        return success_response(data, request_id=request_id).model_dump(mode="json")

    @router.get("/data/dashboard")
    async def dashboard(request: Request):
        return respond(request, dashboard_svc.snapshot().model_dump(mode="json"))

    @router.get("/data/inbox")
    async def inbox(request: Request):
        return respond(request, _dump(message_svc.conversations()))

    @router.get("/data/unread")
    async def unread(request: Request, customer_id: UUID | None = Query(None)):
        return respond(request, {
            "unread_count": message_svc.unread_count(customer_id),
            "poll_seconds": config.unread_poll_seconds,
        })

    @router.get("/data/calendar")
    async def calendar_month(
        request: Request,
        year: int | None = Query(None),
        month: int | None = Query(None),
    ):
        today = today_local()
        grid = scheduling_svc.month_grid(year or today.year, month or today.month)
        return respond(request, _dump(grid))

    @router.get("/data/day")
    async def day(request: Request, date: str | None = Query(None)):
        selected = civil_date(date) if date else today_local()
        return respond(request, {
            "date": selected.isoformat(),
            "is_bad_weather": scheduling_svc.is_bad_weather(selected),
            "jobs": _dump(scheduling_svc.jobs_on(selected)),
        })

    @router.get("/data/jobs")
    async def jobs(
        request: Request,
        view: str = Query("all"),
        search: str | None = Query(None),
    ):
        today = today_local()
        return respond(request, {
            "jobs": _dump(job_svc.list_jobs(view=view, search=search, today=today)),
            "counts": job_svc.view_counts(today),
        })

    @router.get("/data/jobs/{job_id}")
    async def job_detail(request: Request, job_id: UUID):
        job = job_svc.get(job_id)
        try:
            customer = customer_svc.get(job.customer_id).model_dump(mode="json")
        except NotFoundError:
            customer = None

        return respond(request, {
            "job": job.model_dump(mode="json"),
            "customer": customer,
            "messages": _dump(message_svc.thread(job.customer_id)),
            "allowed_statuses": [status.value for status in allowed_targets(job.status)],
        })

    @router.get("/data/customers")
    async def customers(
        request: Request,
        filter: str = Query("all"),
        search: str | None = Query(None),
    ):
        rows = customer_svc.list_customers(customer_filter=filter, search=search)
        return respond(request, _dump(rows))

    @router.get("/data/customers/{customer_id}")
    async def customer_detail(request: Request, customer_id: UUID):
        return respond(request, customer_svc.detail(customer_id).model_dump(mode="json"))

    @router.get("/data/settings")
    async def settings(request: Request):
        stored = settings_svc.load_all()
        return respond(request, {
            "settings": stored,
            "business": settings_svc.business_settings().model_dump(mode="json"),
            "templates": {reply.key.value: reply.text for reply in template_engine.quick_replies()},
            "bad_weather_days": _dump(scheduling_svc.bad_weather_days()),
        })

    @router.get("/data/quick-replies")
    async def quick_replies(request: Request):
        replies = template_engine.quick_replies()
        return respond(request, [
            {**asdict(reply), "key": reply.key.value} for reply in replies
        ])

    return router
