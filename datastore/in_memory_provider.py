"""In-memory business data provider with pandas-backed analytics."""

import logging
import time
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pandas as pd
import yaml
from rapidfuzz import fuzz, process

from .base_provider import BusinessDataProvider
from .errors import DuplicateRecordError, RecordNotFoundError
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

logger = logging.getLogger(__name__)

# Minimum token_sort_ratio for a misspelt service name to count as a match
SERVICE_MATCH_CUTOFF = 85


def _digits(value: str) -> str:
    return "".join(ch for ch in value if ch.isdigit())


class InMemoryDataProvider(BusinessDataProvider):
    """
    Business data held in process memory.

    Records are plain pydantic models; analytics build pandas DataFrames on
    demand so aggregation code reads the same regardless of data size.
    """

    def __init__(
        self,
        clients: Optional[List[ClientRecord]] = None,
        courses: Optional[List[CourseRecord]] = None,
        classes: Optional[List[ClassRecord]] = None,
        orders: Optional[List[OrderRecord]] = None,
        payments: Optional[List[PaymentRecord]] = None,
        attendance: Optional[List[AttendanceRecord]] = None,
        notifier: Optional[WebhookNotifier] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.clients = list(clients or [])
        self.courses = list(courses or [])
        self.classes = list(classes or [])
        self.orders = list(orders or [])
        self.payments = list(payments or [])
        self.attendance = list(attendance or [])
        self.notifier = notifier
        self._clock = clock

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_yaml(
        cls,
        data_path: str,
        notifier: Optional[WebhookNotifier] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> "InMemoryDataProvider":
        """
        Load seed data from a YAML file.

        Date fields may be given relative to the load time with
        ``days_ago`` / ``days_from_now`` (plus an optional ``time`` of day)
        so sample schedules stay current.

        Args:
            data_path: Path to the YAML seed file
            notifier: Optional webhook notifier for created records
            clock: Source of the current time

        Returns:
            Populated provider
        """
        with open(Path(data_path), "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        now = clock()

        def records(key: str, model, date_field: Optional[str] = None):
            items = []
            for entry in raw.get(key, []) or []:
                entry = dict(entry)
                if date_field:
                    entry[date_field] = cls._resolve_relative_date(entry, now, entry.get(date_field))
                items.append(model(**entry))
            return items

        provider = cls(
            clients=records("clients", ClientRecord, "created_at"),
            courses=records("courses", CourseRecord),
            classes=records("classes", ClassRecord, "date"),
            orders=records("orders", OrderRecord, "created_at"),
            payments=records("payments", PaymentRecord, "payment_date"),
            attendance=records("attendance", AttendanceRecord, "date"),
            notifier=notifier,
            clock=clock,
        )
        logger.info(
            f"Loaded business data from {data_path}: {len(provider.clients)} clients, "
            f"{len(provider.courses)} courses, {len(provider.classes)} classes, "
            f"{len(provider.orders)} orders"
        )
        return provider

    @staticmethod
    def _resolve_relative_date(entry: dict, now: datetime, default: Any) -> Any:
        days_ago = entry.pop("days_ago", None)
        days_from_now = entry.pop("days_from_now", None)
        time_of_day = entry.pop("time", None)

        if days_ago is None and days_from_now is None:
            return default if default is not None else now

        offset = timedelta(days=(days_from_now or 0) - (days_ago or 0))
        resolved = now + offset
        if time_of_day:
            hour, minute = (int(part) for part in str(time_of_day).split(":"))
            resolved = resolved.replace(hour=hour, minute=minute, second=0, microsecond=0)
        return resolved

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _frame(records: list, model) -> pd.DataFrame:
        return pd.DataFrame(
            [record.model_dump() for record in records],
            columns=list(model.model_fields.keys()),
        )

    def _period_start(self, period: Optional[str]) -> Optional[datetime]:
        now = self._clock()
        if period == "today":
            return now.replace(hour=0, minute=0, second=0, microsecond=0)
        if period == "week":
            return now - timedelta(days=7)
        if period == "month":
            return (pd.Timestamp(now) - pd.DateOffset(months=1)).to_pydatetime()
        if period == "year":
            return (pd.Timestamp(now) - pd.DateOffset(years=1)).to_pydatetime()
        return None

    def _service_names(self) -> Dict[str, str]:
        names = {course.id: course.name for course in self.courses}
        names.update({cls_.id: cls_.name for cls_ in self.classes})
        return names

    def _find_client(self, email: Optional[str], name: Optional[str]) -> Optional[ClientRecord]:
        if email:
            for client in self.clients:
                if client.email.lower() == email.lower():
                    return client
        if name:
            for client in self.clients:
                if client.name.lower() == name.lower():
                    return client
        return None

    def _find_service(self, service_name: str, service_type: str):
        """Case-insensitive substring match, then a strict fuzzy match for typos."""
        candidates = self.classes if service_type == "class" else self.courses
        needle = service_name.lower()
        for service in candidates:
            if needle in service.name.lower():
                return service

        best = process.extractOne(
            needle,
            {i: service.name.lower() for i, service in enumerate(candidates)},
            scorer=fuzz.token_sort_ratio,
            score_cutoff=SERVICE_MATCH_CUTOFF,
        )
        if best is None:
            return None
        _, score, index = best
        logger.debug(f"Fuzzy matched service '{service_name}' -> '{candidates[index].name}' ({score:.0f})")
        return candidates[index]

    def _notify(self, event: str, payload: Dict[str, Any]) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(event, payload)
        except RuntimeError as e:
            # No running loop (synchronous caller); the record is still created
            logger.warning(f"Could not schedule {event} notification: {e}")

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def find_clients(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        name: Optional[str] = None,
        limit: int = 10
    ) -> List[ClientRecord]:
        results = self.clients
        if email:
            results = [c for c in results if email.lower() in c.email.lower()]
        elif phone:
            wanted = _digits(phone)
            results = [c for c in results if wanted and wanted in _digits(c.phone)]
        elif name:
            results = [c for c in results if name.lower() in c.name.lower()]
        return results[:limit]

    async def get_order(self, order_id: str) -> Optional[OrderRecord]:
        for order in self.orders:
            if order.order_id.lower() == order_id.lower():
                return order
        return None

    async def get_payment_for_order(self, order_id: str) -> Optional[PaymentRecord]:
        for payment in self.payments:
            if payment.order_id.lower() == order_id.lower():
                return payment
        return None

    async def list_pending_orders(self, limit: int = 10) -> List[OrderRecord]:
        return [order for order in self.orders if order.status == "pending"][:limit]

    async def list_classes_between(self, start: datetime, end: datetime) -> List[ClassRecord]:
        matching = [
            cls_ for cls_ in self.classes
            if start <= cls_.date <= end and cls_.status in ("scheduled", "ongoing")
        ]
        return sorted(matching, key=lambda cls_: cls_.date)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_client(self, name: str, email: str, phone: str) -> ClientRecord:
        if self._find_client(email, None):
            raise DuplicateRecordError(f"Client already exists with email: {email}")

        client = ClientRecord(
            id=uuid.uuid4().hex,
            name=name,
            email=email,
            phone=phone,
            is_active=True,
            created_at=self._clock(),
        )
        self.clients.append(client)
        logger.info(f"Created client {client.email}")

        self._notify("client-created", {
            "clientId": client.id,
            "email": client.email,
            "name": client.name,
        })
        return client

    async def create_order(
        self,
        service_name: str,
        service_type: str = "course",
        client_email: Optional[str] = None,
        client_name: Optional[str] = None
    ) -> CreatedOrder:
        client = self._find_client(client_email, client_name)
        if client is None:
            raise RecordNotFoundError(f"Client not found: {client_email or client_name}")

        service = self._find_service(service_name, service_type)
        if service is None:
            raise RecordNotFoundError(f"{service_type} not found with name: {service_name}")

        order = OrderRecord(
            order_id=f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}",
            client_id=client.id,
            service_type=service_type,
            service_id=service.id,
            amount=service.price,
            status="pending",
            created_at=self._clock(),
        )
        self.orders.append(order)

        if service.name not in client.enrolled_services:
            client.enrolled_services.append(service.name)

        logger.info(f"Created order {order.order_id} for {client.email}")

        self._notify("order-created", {
            "orderId": order.order_id,
            "clientEmail": client.email,
            "serviceName": service.name,
            "amount": order.amount,
        })
        return CreatedOrder(order=order, client=client, service_name=service.name)

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    async def revenue(self, period: Optional[str] = "month") -> Dict[str, Any]:
        df = self._frame(self.payments, PaymentRecord)
        df = df[df["status"] == "completed"]
        start = self._period_start(period)
        if start is not None:
            df = df[pd.to_datetime(df["payment_date"]) >= start]

        return {
            "period": period or "all",
            "totalRevenue": round(float(df["amount"].sum()), 2),
            "count": int(len(df)),
        }

    async def outstanding_payments(self) -> Dict[str, Any]:
        df = self._frame(self.orders, OrderRecord)
        df = df[df["status"] == "pending"]
        return {
            "totalOutstanding": round(float(df["amount"].sum()), 2),
            "count": int(len(df)),
        }

    async def service_analytics(self, period: Optional[str] = "month") -> Dict[str, Any]:
        df = self._frame(self.orders, OrderRecord)
        start = self._period_start(period)
        if start is not None:
            df = df[pd.to_datetime(df["created_at"]) >= start]

        names = self._service_names()

        def top(service_type: str) -> List[Dict[str, Any]]:
            counts = (
                df[df["service_type"] == service_type]
                .groupby("service_id")
                .size()
                .sort_values(ascending=False)
                .head(5)
            )
            return [
                {"service": names.get(service_id, service_id), "enrollments": int(count)}
                for service_id, count in counts.items()
            ]

        return {"topCourses": top("course"), "topClasses": top("class")}

    async def attendance_report(self, class_name: Optional[str] = None) -> List[Dict[str, Any]]:
        df = self._frame(self.attendance, AttendanceRecord)
        if df.empty:
            return []

        names = {cls_.id: cls_.name for cls_ in self.classes}
        df["class_name"] = df["class_id"].map(names).fillna(df["class_id"])
        if class_name:
            df = df[df["class_name"].str.lower().str.contains(class_name.lower(), regex=False)]
            if df.empty:
                return []

        grouped = df.groupby("class_name").agg(
            totalSessions=("present", "size"),
            attendedSessions=("present", "sum"),
        )
        grouped["attendancePercentage"] = (
            grouped["attendedSessions"] / grouped["totalSessions"] * 100
        ).round(1)

        return [
            {
                "className": name,
                "totalSessions": int(row["totalSessions"]),
                "attendedSessions": int(row["attendedSessions"]),
                "attendancePercentage": float(row["attendancePercentage"]),
            }
            for name, row in grouped.iterrows()
        ]

    async def client_insights(self, period: Optional[str] = "month") -> Dict[str, Any]:
        df = self._frame(self.clients, ClientRecord)
        start = self._period_start(period)
        current_month = self._clock().month

        new_clients = df
        if start is not None:
            new_clients = df[pd.to_datetime(df["created_at"]) >= start]

        birthdays = [
            client.name for client in self.clients
            if client.date_of_birth and client.date_of_birth.month == current_month
        ]

        return {
            "activeClients": int(df["is_active"].astype(bool).sum()),
            "inactiveClients": int((~df["is_active"].astype(bool)).sum()),
            "newClients": int(len(new_clients)),
            "birthdayReminders": birthdays,
        }
