"""
Message templates.

A template is plain text with [NAME] placeholders. Rendering replaces each
placeholder whose name is in the variable bag and leaves the rest literal,
so a template rendered with no variables comes back unchanged.

Operator overrides are stored as settings named template_<key>; anything
not overridden uses the defaults below.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping

from core.exceptions import ValidationError
from core.models import Job, TemplateKey, TEMPLATE_PREFIX
from utils.civil_dates import long_date

_PLACEHOLDER = re.compile(r"\[([A-Z_]+)\]")

DEFAULT_TEMPLATES: dict[TemplateKey, str] = {
    TemplateKey.WELCOME: (
        "Thanks for reaching out to Deseret Peak Window Cleaning! 🏔️ "
        "We'd love to help you get crystal clear windows.\n\n"
        "Could you please share:\n"
        "1. Your address\n"
        "2. Approximately how many windows or the size of your home\n"
        "3. Do you prefer mornings or afternoons? What days work best?\n\n"
        "We'll get back to you with a quote right away!"
    ),
    TemplateKey.QUOTE: (
        "Great news! Here's your quote:\n\n"
        "🪟 Service: [SERVICE_TYPE]\n"
        "💰 Price: $[PRICE]\n"
        "⏱️ Duration: Approx. [DURATION] hours\n\n"
        "Reply YES to schedule, or let me know if you have any questions!"
    ),
    TemplateKey.CONFIRMATION: (
        "You're all set! ✅\n\n"
        "📅 Date: [DATE]\n"
        "🕐 Arrival: [TIME_WINDOW]\n"
        "💰 Estimated: $[PRICE]\n\n"
        "We'll send a reminder the day before. See you then!"
    ),
    TemplateKey.REMINDER: (
        "Hi! Just a friendly reminder that we're scheduled to clean your windows tomorrow.\n\n"
        "📅 [DATE]\n"
        "🕐 [TIME_WINDOW]\n\n"
        "Please reply to confirm, or let us know if you need to reschedule. Thanks!"
    ),
    TemplateKey.RESCHEDULE: (
        "No problem! We can reschedule your appointment.\n\n"
        "What dates and times work better for you? We have availability this week and next."
    ),
    TemplateKey.REVIEW: (
        "Thanks for choosing Deseret Peak Window Cleaning! We hope your windows are sparkling! ✨\n\n"
        "If you have a moment, we'd really appreciate a Google review. "
        "It helps other homeowners find us!\n\n"
        "[REVIEW_LINK]\n\n"
        "Thank you so much!"
    ),
    TemplateKey.FOLLOWUP: (
        "Hi! We wanted to follow up on our quote. Are you still interested in getting "
        "your windows cleaned? Just reply and we'll get you on the schedule!"
    ),
}

# Variables each template consumes.
TEMPLATE_VARIABLES: dict[TemplateKey, tuple[str, ...]] = {
    TemplateKey.WELCOME: (),
    TemplateKey.QUOTE: ("SERVICE_TYPE", "PRICE", "DURATION"),
    TemplateKey.CONFIRMATION: ("DATE", "TIME_WINDOW", "PRICE"),
    TemplateKey.REMINDER: ("DATE", "TIME_WINDOW"),
    TemplateKey.RESCHEDULE: (),
    TemplateKey.REVIEW: ("REVIEW_LINK",),
    TemplateKey.FOLLOWUP: (),
}

NOT_SET = "TBD"


def template_key(value: TemplateKey | str) -> TemplateKey:
    try:
        return TemplateKey(value)
    except ValueError:
        raise ValidationError(f"Unknown template '{value}'")


def substitute(text: str, variables: Mapping[str, Any]) -> str:
    """Replace every [NAME] found in variables; leave unknown placeholders as written."""

    def replace(match: re.Match) -> str:
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return _PLACEHOLDER.sub(replace, text)


def format_price(amount: Decimal | float | int | None) -> str:
    """240 -> '240', 240.5 -> '240.50'."""
    if amount is None:
        return NOT_SET
    value = Decimal(str(amount))
    if value == value.to_integral_value():
        return str(int(value))
    return f"{value:.2f}"


def format_hours(hours: float | None, default: float = 2) -> str:
    value = hours if hours is not None else default
    return str(int(value)) if float(value).is_integer() else str(value)


def service_labels(job: Job) -> str:
    """'Inside Windows, Outside Windows', or a generic description when unset."""
    if not job.service_type:
        return "window cleaning"
    return ", ".join(service.label for service in job.service_type)


def time_window(job: Job) -> str:
    times = [t for t in (job.scheduled_start_time, job.scheduled_end_time) if t]
    return " - ".join(times) if times else NOT_SET


def quote_variables(job: Job, default_duration: float = 2) -> dict[str, str]:
    return {
        "SERVICE_TYPE": service_labels(job),
        "PRICE": format_price(job.price_estimate),
        "DURATION": format_hours(job.estimated_duration, default=default_duration),
    }


def confirmation_variables(job: Job) -> dict[str, str]:
    return {
        "DATE": long_date(job.scheduled_date) if job.scheduled_date else NOT_SET,
        "TIME_WINDOW": time_window(job),
        "PRICE": format_price(job.price_estimate),
    }


def reminder_variables(job: Job) -> dict[str, str]:
    return {
        "DATE": long_date(job.scheduled_date) if job.scheduled_date else NOT_SET,
        "TIME_WINDOW": time_window(job),
    }


def review_variables(review_link: str) -> dict[str, str]:
    return {"REVIEW_LINK": review_link}


@dataclass(frozen=True)
class QuickReply:
    """A template offered in the message composer."""
    key: TemplateKey
    label: str
    text: str


class TemplateEngine:
    """Resolves template keys against operator overrides and renders them."""

    def __init__(self, settings_service):
        self.settings = settings_service

    def template_text(self, template_key: TemplateKey | str) -> str:
        """
        Current text for a template: the operator's override, else the default.

        Raises:
            ValidationError: If the key is not a known template
        """
        return self.settings.template_text(template_key)

    def render(self, template_key: TemplateKey | str, variables: Mapping[str, Any] | None = None) -> str:
        """
        Render a template with the given substitution bag.

        Args:
            template_key: One of the TemplateKey values
            variables: Placeholder name -> value; values are stringified

        Returns:
            Final message body

        Raises:
            ValidationError: If the key is not a known template
        """
        return substitute(self.template_text(template_key), variables or {})

    def quick_replies(self) -> list[QuickReply]:
        """Every template with its current text, for the composer's quick-reply bar."""
        overrides = self.settings.load_all()
        return [
            QuickReply(
                key=key,
                label=key.value.capitalize(),
                text=overrides.get(f"{TEMPLATE_PREFIX}{key.value}") or DEFAULT_TEMPLATES[key],
            )
            for key in TemplateKey
        ]
