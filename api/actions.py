"""POST /api/actions — unified mutation endpoint."""

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from core.models import CustomerCreate, CustomerUpdate, JobUpdate, MessageChannel


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


@dataclass
class ActionResult:
    """Handler output carrying warnings for side effects that failed."""
    data: Any
    warnings: list[str] = field(default_factory=list)


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    handlers = {
        "customer": CustomerHandler(services["customer"]),
        "job": JobHandler(services["job"]),
        "message": MessageHandler(services["message"]),
        "weather": WeatherHandler(services["scheduling"], services["job"]),
        "settings": SettingsHandler(services["settings"]),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        method = getattr(handler, f"_handle_{body.action}")
        result = method(dict(body.data))
        if not isinstance(result, ActionResult):
            result = ActionResult(data=result)

        return success_response(
            result.data,
            warnings=result.warnings,
            request_id=getattr(request.state, "request_id", None),
        ).model_dump(mode="json")

    return router


def _require(data: dict, key: str) -> Any:
    if data.get(key) in (None, ""):
        raise ValueError(f"'{key}' is required")
    return data[key]


def _id(data: dict, key: str = "id") -> UUID:
    return UUID(str(_require(data, key)))


def _optional_id(data: dict, key: str) -> UUID | None:
    return UUID(str(data[key])) if data.get(key) else None


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class CustomerHandler:
    ALLOWED_ACTIONS = {"create_lead", "update", "toggle_review", "delete"}

    def __init__(self, service):
        self.service = service

    def _handle_create_lead(self, data: dict):
        service_type = data.pop("service_type", None)
        intake = self.service.create_lead(CustomerCreate(**data), service_type=service_type)
        return ActionResult(
            data={
                "customer": intake.customer.model_dump(mode="json"),
                "job": intake.job.model_dump(mode="json"),
                "message": intake.message.model_dump(mode="json") if intake.message else None,
                "next_page": intake.next_page,
                "next_id": str(intake.job.id),
            },
            warnings=intake.warnings,
        )

    def _handle_update(self, data: dict):
        customer_id = _id(data)
        data.pop("id")
        customer = self.service.update(customer_id, CustomerUpdate(**data))
        return customer.model_dump(mode="json")

    def _handle_toggle_review(self, data: dict):
        customer = self.service.toggle_review(_id(data))
        return customer.model_dump(mode="json")

    def _handle_delete(self, data: dict):
        self.service.delete(_id(data))
        return {"deleted": True}


class JobHandler:
    ALLOWED_ACTIONS = {"create", "save", "confirm", "delete"}

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict):
        job = self.service.create_for_customer(
            _id(data, "customer_id"),
            service_type=data.get("service_type"),
            notes=data.get("notes"),
        )
        return job.model_dump(mode="json")

    def _handle_save(self, data: dict):
        job_id = _id(data)
        data.pop("id")
        result = self.service.apply(job_id, JobUpdate(**data))
        return ActionResult(
            data={
                "job": result.job.model_dump(mode="json"),
                "message": result.message.model_dump(mode="json") if result.message else None,
                "status_changed": result.transition.is_status_change,
            },
            warnings=result.warnings,
        )

    def _handle_confirm(self, data: dict):
        job = self.service.set_confirmed(_id(data), bool(data.get("confirmed", True)))
        return job.model_dump(mode="json")

    def _handle_delete(self, data: dict):
        self.service.delete(_id(data))
        return {"deleted": True}


class MessageHandler:
    ALLOWED_ACTIONS = {"send", "mark_read", "record_inbound"}

    def __init__(self, service):
        self.service = service

    def _handle_send(self, data: dict):
        sent = self.service.send_with_warnings(
            customer_id=_id(data, "customer_id"),
            body=data.get("body") or "",
            channel=MessageChannel(data.get("channel") or MessageChannel.TEXT),
            job_id=_optional_id(data, "job_id"),
        )
        return ActionResult(data=sent.message.model_dump(mode="json"), warnings=sent.warnings)

    def _handle_mark_read(self, data: dict):
        marked = self.service.mark_conversation_read(_id(data, "customer_id"))
        return {"marked": marked}

    def _handle_record_inbound(self, data: dict):
        message = self.service.record_inbound(
            customer_id=_id(data, "customer_id"),
            body=data.get("body") or "",
            channel=MessageChannel(data.get("channel") or MessageChannel.TEXT),
            job_id=_optional_id(data, "job_id"),
        )
        return message.model_dump(mode="json")


class WeatherHandler:
    ALLOWED_ACTIONS = {"mark", "clear", "bulk_reschedule", "send_reminders"}

    def __init__(self, service, job_service):
        self.service = service
        self.job_service = job_service

    def _handle_mark(self, data: dict):
        marker = self.service.mark_bad_weather(_require(data, "date"), note=data.get("note"))
        return marker.model_dump(mode="json")

    def _handle_clear(self, data: dict):
        cleared = self.service.clear_bad_weather(_require(data, "date"))
        return {"cleared": cleared}

    def _handle_bulk_reschedule(self, data: dict):
        job_ids = data.get("job_ids")
        if job_ids:
            jobs = [self.job_service.get(UUID(str(job_id))) for job_id in job_ids]
        else:
            jobs = self.service.jobs_on(_require(data, "date"))

        messages = self.service.bulk_reschedule(jobs, data.get("note"))
        return [message.model_dump(mode="json") for message in messages]

    def _handle_send_reminders(self, data: dict):
        messages = self.service.send_day_before_reminders()
        return [message.model_dump(mode="json") for message in messages]


class SettingsHandler:
    ALLOWED_ACTIONS = {"save"}

    def __init__(self, service):
        self.service = service

    def _handle_save(self, data: dict):
        settings = data.get("settings")
        if not isinstance(settings, dict):
            raise ValueError("'settings' must be an object of key -> value")
        self.service.save_all(settings)
        return self.service.load_all()
