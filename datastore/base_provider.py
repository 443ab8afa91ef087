"""Business data provider interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import ClassRecord, ClientRecord, CreatedOrder, OrderRecord, PaymentRecord


class BusinessDataProvider(ABC):
    """
    Domain operations over clients, orders, courses, classes and payments.

    Lookups return ``None`` or an empty list when nothing matches. Write
    operations raise ``RecordNotFoundError`` / ``DuplicateRecordError`` for
    bad references. Analytics operations return plain JSON-serialisable
    structures whose exact shape is provider-defined.
    """

    # Lookups

    @abstractmethod
    async def find_clients(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        name: Optional[str] = None,
        limit: int = 10
    ) -> List[ClientRecord]:
        """Find clients by email, phone or (partial) name."""
        pass

    @abstractmethod
    async def get_order(self, order_id: str) -> Optional[OrderRecord]:
        pass

    @abstractmethod
    async def get_payment_for_order(self, order_id: str) -> Optional[PaymentRecord]:
        pass

    @abstractmethod
    async def list_pending_orders(self, limit: int = 10) -> List[OrderRecord]:
        pass

    @abstractmethod
    async def list_classes_between(self, start: datetime, end: datetime) -> List[ClassRecord]:
        """Scheduled or ongoing classes in [start, end], earliest first."""
        pass

    # Writes

    @abstractmethod
    async def create_client(self, name: str, email: str, phone: str) -> ClientRecord:
        pass

    @abstractmethod
    async def create_order(
        self,
        service_name: str,
        service_type: str = "course",
        client_email: Optional[str] = None,
        client_name: Optional[str] = None
    ) -> CreatedOrder:
        pass

    # Analytics

    @abstractmethod
    async def revenue(self, period: Optional[str] = "month") -> Dict[str, Any]:
        pass

    @abstractmethod
    async def outstanding_payments(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def service_analytics(self, period: Optional[str] = "month") -> Dict[str, Any]:
        pass

    @abstractmethod
    async def attendance_report(self, class_name: Optional[str] = None) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def client_insights(self, period: Optional[str] = "month") -> Dict[str, Any]:
        pass
