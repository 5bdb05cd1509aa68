"""Tests for message templates and rendering."""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from core.exceptions import ValidationError
from core.models import Job, TemplateKey
from core.templates import (
    DEFAULT_TEMPLATES, TEMPLATE_VARIABLES,
    confirmation_variables, format_hours, format_price, quote_variables, substitute,
)


def _job(**fields) -> Job:
    return Job(
        id=uuid4(),
        customer_id=uuid4(),
        customer_name="Jane Doe",
        created_date=datetime(2025, 4, 1, tzinfo=timezone.utc),
        **fields,
    )


class TestSubstitute:

    def test_replaces_known_placeholders(self):
        assert substitute("$[PRICE] for [SERVICE_TYPE]", {"PRICE": "240", "SERVICE_TYPE": "Screens"}) == (
            "$240 for Screens"
        )

    def test_unknown_placeholders_stay_literal(self):
        assert substitute("[PRICE] by [TECH]", {"PRICE": "240"}) == "240 by [TECH]"

    def test_no_variables_returns_template_unchanged(self):
        for text in DEFAULT_TEMPLATES.values():
            assert substitute(text, {}) == text

    def test_repeated_placeholder(self):
        assert substitute("[PRICE]/[PRICE]", {"PRICE": 5}) == "5/5"


class TestFormatting:

    @pytest.mark.parametrize("amount, expected", [
        (240, "240"),
        (Decimal("240.00"), "240"),
        (240.5, "240.50"),
        (Decimal("99.99"), "99.99"),
        (None, "TBD"),
    ])
    def test_format_price(self, amount, expected):
        assert format_price(amount) == expected

    def test_format_hours(self):
        assert format_hours(2.0) == "2"
        assert format_hours(1.5) == "1.5"
        assert format_hours(None, default=3) == "3"


class TestVariables:

    def test_every_default_template_uses_only_its_variables(self):
        for key, text in DEFAULT_TEMPLATES.items():
            rendered = substitute(text, {name: "x" for name in TEMPLATE_VARIABLES[key]})
            assert "[" not in rendered

    def test_quote_variables(self):
        job = _job(price_estimate=Decimal("240"), service_type=["inside_windows", "gutters"], estimated_duration=2.5)

        assert quote_variables(job) == {
            "SERVICE_TYPE": "Inside Windows, Gutters",
            "PRICE": "240",
            "DURATION": "2.5",
        }

    def test_quote_variables_defaults(self):
        variables = quote_variables(_job(), default_duration=3)

        assert variables["SERVICE_TYPE"] == "window cleaning"
        assert variables["PRICE"] == "TBD"
        assert variables["DURATION"] == "3"

    def test_confirmation_variables(self):
        job = _job(scheduled_date=date(2025, 4, 12), scheduled_start_time="09:00", price_estimate=240)

        assert confirmation_variables(job) == {
            "DATE": "Saturday, April 12",
            "TIME_WINDOW": "09:00",
            "PRICE": "240",
        }


class TestTemplateEngine:

    def test_render_default(self, template_engine):
        assert template_engine.render(TemplateKey.WELCOME).startswith("Thanks for reaching out")

    def test_override_wins(self, template_engine, settings_service):
        settings_service.save_all({"template_welcome": "Hello from the crew!"})

        assert template_engine.render("welcome") == "Hello from the crew!"

    def test_blank_override_uses_default(self, template_engine, settings_service):
        settings_service.save_all({"template_welcome": ""})

        assert template_engine.render("welcome") == DEFAULT_TEMPLATES[TemplateKey.WELCOME]

    def test_unknown_template(self, template_engine):
        with pytest.raises(ValidationError):
            template_engine.render("birthday")

    def test_quick_replies_cover_every_template(self, template_engine, settings_service):
        settings_service.save_all({"template_followup": "Still interested?"})

        replies = {reply.key: reply for reply in template_engine.quick_replies()}

        assert set(replies) == set(TemplateKey)
        assert replies[TemplateKey.FOLLOWUP].text == "Still interested?"
        assert replies[TemplateKey.QUOTE].label == "Quote"
