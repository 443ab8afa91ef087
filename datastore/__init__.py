"""Business data access for the assistant."""

from .base_provider import BusinessDataProvider
from .errors import DataStoreError, DuplicateRecordError, RecordNotFoundError
from .in_memory_provider import InMemoryDataProvider
from .models import (
    AttendanceRecord,
    ClassRecord,
    ClientRecord,
    CourseRecord,
    CreatedOrder,
    OrderRecord,
    PaymentRecord,
)
from .notifications import WebhookNotifier

__all__ = [
    "BusinessDataProvider",
    "InMemoryDataProvider",
    "WebhookNotifier",
    "DataStoreError",
    "DuplicateRecordError",
    "RecordNotFoundError",
    "AttendanceRecord",
    "ClassRecord",
    "ClientRecord",
    "CourseRecord",
    "CreatedOrder",
    "OrderRecord",
    "PaymentRecord",
]
