"""
Settings service for operator configuration and template overrides.

Saving replaces the whole set: every stored setting is deleted, then the new
mapping is written key by key, so the persisted set is exactly what the
operator last saved. The replace is not atomic; two operators saving at once
could interleave. The console assumes a single operator.
"""

import logging
from typing import Mapping

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import ValidationError
from core.models import BusinessSettings, CONFIG_KEYS, SettingType, TemplateKey, TEMPLATE_PREFIX
from core.store import EntityStore
from core.templates import DEFAULT_TEMPLATES, template_key

logger = logging.getLogger(__name__)


class SettingsService:
    """Service for loading and saving settings."""

    def __init__(self, store: EntityStore):
        self.store = store

    def load_all(self) -> dict[str, str]:
        """
        Load every stored setting as key -> value.

        If a key was stored more than once, the most recently created record wins.

        Returns:
            Mapping of setting_key to setting_value, exactly as persisted
        """
        records = self.store.settings.list(sort="created_date")
        return {record.setting_key: record.setting_value for record in records}

    def save_all(self, settings: Mapping[str, str]) -> None:
        """
        Replace all stored settings with the given mapping.

        Args:
            settings: Full key -> value mapping; template overrides are keyed
                template_<name>

        Raises:
            ValidationError: If a value is not a string or a recognized
                config value is malformed. Nothing is deleted in that case.
        """
        for key, value in settings.items():
            if not isinstance(key, str) or not key:
                raise ValidationError(f"Setting keys must be non-empty strings, got {key!r}")
            if not isinstance(value, str):
                raise ValidationError(f"Setting '{key}' must be a string value")

        self._validate_config(settings)

        existing = self.store.settings.list()
        for record in existing:
            self.store.settings.delete(record.id)

        for key, value in settings.items():
            self.store.settings.create({
                "setting_key": key,
                "setting_value": value,
                "setting_type": SettingType.for_key(key),
            })

        logger.info(f"Settings replaced: {len(existing)} removed, {len(settings)} written")

    def template_text(self, key: TemplateKey | str) -> str:
        """
        Text for a message template: the operator's override if set, else the default.

        Raises:
            ValidationError: If the key is not a known template
        """
        key = template_key(key)
        return self.load_all().get(f"{TEMPLATE_PREFIX}{key.value}") or DEFAULT_TEMPLATES[key]

    def business_settings(self) -> BusinessSettings:
        """Typed configuration with defaults for blank or missing values."""
        stored = self.load_all()
        values = {key: stored[key] for key in CONFIG_KEYS if stored.get(key)}
        try:
            return BusinessSettings(**values)
        except PydanticValidationError as e:
            logger.warning(f"Stored settings are invalid, using defaults: {e}")
            return BusinessSettings()

    @staticmethod
    def _validate_config(settings: Mapping[str, str]) -> None:
        values = {key: settings[key] for key in CONFIG_KEYS if settings.get(key)}
        try:
            BusinessSettings(**values)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid settings: {e}") from e
