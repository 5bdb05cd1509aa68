"""Core domain models."""

from core.models.customer import Customer, CustomerCreate, CustomerUpdate, CustomerType, CustomerSource
from core.models.job import Job, JobCreate, JobUpdate, JobStatus, ServiceType
from core.models.message import (
    Message, MessageCreate, MessageDirection, MessageChannel, TemplateKey,
)
from core.models.bad_weather import BadWeatherDay, BadWeatherDayCreate
from core.models.setting import (
    Setting, SettingType, BusinessSettings, CONFIG_KEYS, TEMPLATE_PREFIX,
)

__all__ = [
    # Customer
    "Customer", "CustomerCreate", "CustomerUpdate", "CustomerType", "CustomerSource",
    # Job
    "Job", "JobCreate", "JobUpdate", "JobStatus", "ServiceType",
    # Message
    "Message", "MessageCreate", "MessageDirection", "MessageChannel", "TemplateKey",
    # BadWeatherDay
    "BadWeatherDay", "BadWeatherDayCreate",
    # Setting
    "Setting", "SettingType", "BusinessSettings", "CONFIG_KEYS", "TEMPLATE_PREFIX",
]
