"""Maps classified intents to business data operations and renders the result."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Optional

from datastore.base_provider import BusinessDataProvider
from datastore.errors import DuplicateRecordError, RecordNotFoundError
from schemas.intents import ClassificationResult, DashboardIntent, SupportIntent
from schemas.responses import RoutedResponse
from . import extraction

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No data found for your request."

Handler = Callable[[ClassificationResult, str], Awaitable[RoutedResponse]]


def is_empty_result(value: Any) -> bool:
    """
    Whether an operation result carries nothing worth showing.

    None, empty containers and zero numbers are empty; a dict is empty when
    every value in it is empty.
    """
    if value is None:
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, dict):
        return all(is_empty_result(v) for v in value.values())
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


class IntentRouter:
    """
    Dispatches an intent to exactly one handler.

    Handlers raise freely; ``route`` turns not-found and duplicate errors
    into plain text and every other exception into ``Error: <message>``.
    """

    def __init__(
        self,
        provider: BusinessDataProvider,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.provider = provider
        self._clock = clock
        self._handlers: Dict[str, Handler] = {}

    def can_handle(self, intent: str) -> bool:
        return intent in self._handlers

    async def route(self, result: ClassificationResult, query: str) -> RoutedResponse:
        """
        Execute the operation for ``result.intent``.

        Args:
            result: Classification from tier 1 or tier 2
            query: Query after reference resolution

        Returns:
            RoutedResponse with the final text and any observed entities
        """
        handler = self._handlers.get(result.intent)
        if handler is None:
            raise ValueError(f"No handler for intent: {result.intent}")

        try:
            return await handler(result, query)
        except RecordNotFoundError as e:
            logger.info(f"{result.intent}: not found - {e}")
            return RoutedResponse(text=str(e), intent=result.intent)
        except DuplicateRecordError as e:
            logger.info(f"{result.intent}: duplicate - {e}")
            return RoutedResponse(text=str(e), intent=result.intent)
        except Exception as e:
            logger.error(f"{result.intent} handler failed: {e}")
            return RoutedResponse(text=f"Error: {e}", intent=result.intent)


class SupportIntentRouter(IntentRouter):
    """Client lookups, orders, class schedules and payments."""

    CREATE_ORDER_HELP = (
        "Please specify: 'Create an order for [Service Name] for client "
        "[Client Name/Email]'"
    )
    CREATE_CLIENT_HELP = (
        "Please provide the client's name, email and phone number, e.g. "
        "'Create client named Jane Doe with email jane@example.com and phone +15551234567'"
    )

    def __init__(
        self,
        provider: BusinessDataProvider,
        clock: Callable[[], datetime] = datetime.now
    ):
        super().__init__(provider, clock)
        self._handlers = {
            SupportIntent.SEARCH_CLIENT.value: self._search_client,
            SupportIntent.ORDER_STATUS.value: self._order_status,
            SupportIntent.CREATE_ORDER.value: self._create_order,
            SupportIntent.CREATE_CLIENT.value: self._create_client,
            SupportIntent.WEEKLY_CLASSES.value: self._weekly_classes,
            SupportIntent.PAYMENT_INFO.value: self._payment_info,
        }

    async def _search_client(self, result: ClassificationResult, query: str) -> RoutedResponse:
        data = result.extracted_data
        email = data.get("email") or data.get("clientEmail") or extraction.extract_email(query)
        phone = None if email else (data.get("phone") or extraction.extract_phone(query))
        name = None
        if not email and not phone:
            name = data.get("clientName") or data.get("name") or extraction.extract_client_name(query)

        intent = result.intent
        if not (email or phone or name):
            return RoutedResponse(
                text="Please provide an email, phone number or name to search for a client.",
                intent=intent,
            )

        clients = await self.provider.find_clients(email=email, phone=phone, name=name, limit=10)
        if not clients:
            # Remember what was searched so "that client" still resolves
            searched = {"email": email} if email else ({"name": name} if name else {})
            return RoutedResponse(
                text="No clients found matching your search.",
                intent=intent,
                extracted_data=searched,
            )

        lines = [f"Client search completed: {len(clients)} client(s) found"]
        for client in clients:
            status = "active" if client.is_active else "inactive"
            lines.append(f"- {client.name} ({client.email}, {client.phone}, {status})")
            if client.enrolled_services:
                lines.append(f"  Enrolled in: {', '.join(client.enrolled_services)}")

        first = clients[0]
        return RoutedResponse(
            text="\n".join(lines),
            intent=intent,
            extracted_data={"email": first.email, "name": first.name},
        )

    async def _order_status(self, result: ClassificationResult, query: str) -> RoutedResponse:
        order_id = result.extracted_data.get("orderId") or extraction.extract_order_id(query)
        if not order_id:
            return RoutedResponse(
                text="Please provide an order number, e.g. 'What is the status of order #ORD-1001?'",
                intent=result.intent,
            )
        return await self._describe_order(str(order_id), result.intent)

    async def _describe_order(self, order_id: str, intent: str) -> RoutedResponse:
        order = await self.provider.get_order(order_id)
        if order is None:
            return RoutedResponse(text=f"Order {order_id} not found", intent=intent)

        payment = await self.provider.get_payment_for_order(order.order_id)
        if payment:
            text = f"Order {order.order_id} is {order.status} and payment is {payment.status}"
        else:
            text = f"Order {order.order_id} is {order.status} with no payment record"

        return RoutedResponse(
            text=text,
            intent=intent,
            extracted_data={"orderId": order.order_id, "serviceType": order.service_type},
        )

    async def _create_order(self, result: ClassificationResult, query: str) -> RoutedResponse:
        parsed = extraction.extract_create_order(query)
        data = result.extracted_data

        service_name = data.get("serviceName") or data.get("service") or parsed.get("serviceName")
        service_type = data.get("serviceType") or parsed.get("serviceType") or "course"
        client_email = data.get("clientEmail") or data.get("email") or parsed.get("clientEmail")
        client_name = data.get("clientName") or data.get("name") or parsed.get("clientName")

        if not service_name or not (client_email or client_name):
            return RoutedResponse(text=self.CREATE_ORDER_HELP, intent=result.intent)

        if client_email and not extraction.is_valid_email(client_email):
            return RoutedResponse(
                text=f"'{client_email}' is not a valid email address.",
                intent=result.intent,
            )

        created = await self.provider.create_order(
            service_name=service_name,
            service_type=str(service_type).lower(),
            client_email=client_email,
            client_name=None if client_email else client_name,
        )
        order = created.order
        return RoutedResponse(
            text=(
                f"Order {order.order_id} created for {created.client.name} "
                f"({created.client.email}): {created.service_name}, "
                f"amount {order.amount:.2f}, status {order.status}"
            ),
            intent=result.intent,
            extracted_data={
                "orderId": order.order_id,
                "serviceName": created.service_name,
                "serviceType": order.service_type,
                "email": created.client.email,
                "name": created.client.name,
            },
        )

    async def _create_client(self, result: ClassificationResult, query: str) -> RoutedResponse:
        parsed = extraction.extract_create_client(query)
        data = result.extracted_data

        name = data.get("clientName") or data.get("name") or parsed.get("name")
        email = data.get("email") or data.get("clientEmail") or parsed.get("email")
        phone = data.get("phone") or parsed.get("phone")

        missing = [
            label for label, value in (("name", name), ("email", email), ("phone", phone))
            if not value
        ]
        if missing:
            return RoutedResponse(
                text=f"Missing {', '.join(missing)}. {self.CREATE_CLIENT_HELP}",
                intent=result.intent,
            )

        if not extraction.is_valid_email(email):
            return RoutedResponse(
                text=f"'{email}' is not a valid email address.",
                intent=result.intent,
            )

        if not extraction.is_valid_phone(str(phone)):
            return RoutedResponse(
                text=(
                    f"'{phone}' is not a valid phone number. Use 10-15 digits "
                    "with an optional leading '+'."
                ),
                intent=result.intent,
            )

        client = await self.provider.create_client(
            name=name,
            email=email,
            phone=extraction.normalize_phone(str(phone)),
        )
        return RoutedResponse(
            text=f"Client {client.name} created with email {client.email} and phone {client.phone}",
            intent=result.intent,
            extracted_data={"email": client.email, "name": client.name},
        )

    async def _weekly_classes(self, result: ClassificationResult, query: str) -> RoutedResponse:
        now = self._clock()
        # Week runs Sunday to Saturday
        days_since_sunday = (now.weekday() + 1) % 7
        start = (now - timedelta(days=days_since_sunday)).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        end = start + timedelta(days=7) - timedelta(microseconds=1)

        classes = await self.provider.list_classes_between(start, end)
        if not classes:
            return RoutedResponse(text="No classes scheduled this week.", intent=result.intent)

        lines = ["Weekly classes:"]
        for cls_ in classes:
            lines.append(
                f"- {cls_.date:%a %d %b %H:%M} {cls_.name}"
                f"{f' with {cls_.instructor}' if cls_.instructor else ''}"
                f" ({cls_.current_enrollment}/{cls_.max_students} enrolled)"
            )
        return RoutedResponse(text="\n".join(lines), intent=result.intent)

    async def _payment_info(self, result: ClassificationResult, query: str) -> RoutedResponse:
        order_id = result.extracted_data.get("orderId") or extraction.extract_order_id(query)
        if order_id:
            return await self._describe_order(str(order_id), result.intent)

        orders = await self.provider.list_pending_orders(limit=10)
        if not orders:
            return RoutedResponse(text="No pending payments found.", intent=result.intent)

        lines = ["Pending payments:"]
        for order in orders:
            lines.append(f"- {order.order_id}: {order.amount:.2f} ({order.service_type})")
        return RoutedResponse(text="\n".join(lines), intent=result.intent)


class DashboardIntentRouter(IntentRouter):
    """Revenue, enrollment, attendance and client analytics."""

    PERIOD_LABELS = {
        "today": "Today's",
        "week": "Weekly",
        "month": "Monthly",
        "year": "Yearly",
    }

    def __init__(
        self,
        provider: BusinessDataProvider,
        clock: Callable[[], datetime] = datetime.now
    ):
        super().__init__(provider, clock)
        self._handlers = {
            DashboardIntent.REVENUE.value: self._revenue,
            DashboardIntent.OUTSTANDING_PAYMENTS.value: self._outstanding_payments,
            DashboardIntent.ENROLLMENT.value: self._enrollment,
            DashboardIntent.ATTENDANCE.value: self._attendance,
            DashboardIntent.CLIENTS.value: self._clients,
            DashboardIntent.DASHBOARD.value: self._dashboard,
        }

    @staticmethod
    def _period(result: ClassificationResult) -> str:
        return result.extracted_data.get("period") or "month"

    # Formatters return text and raise on provider failure

    async def _revenue_text(self, period: str) -> str:
        data = await self.provider.revenue(period)
        if is_empty_result({k: v for k, v in data.items() if k != "period"}):
            return NO_DATA_MESSAGE
        label = self.PERIOD_LABELS.get(period, "Total")
        return (
            f"{label} revenue: {data.get('totalRevenue', 0):.2f} "
            f"from {data.get('count', 0)} payment(s)"
        )

    async def _outstanding_text(self) -> str:
        data = await self.provider.outstanding_payments()
        if is_empty_result(data):
            return NO_DATA_MESSAGE
        return (
            f"Outstanding payments: {data.get('totalOutstanding', 0):.2f} "
            f"across {data.get('count', 0)} pending order(s)"
        )

    async def _enrollment_text(self, period: str) -> str:
        data = await self.provider.service_analytics(period)
        if is_empty_result(data):
            return NO_DATA_MESSAGE

        lines = ["Top enrollments:"]
        for title, key in (("Courses", "topCourses"), ("Classes", "topClasses")):
            entries = data.get(key) or []
            if entries:
                lines.append(f"{title}:")
                lines.extend(f"- {e['service']}: {e['enrollments']}" for e in entries)
        return "\n".join(lines)

    async def _attendance_text(self, class_name: Optional[str] = None) -> str:
        rows = await self.provider.attendance_report(class_name)
        if is_empty_result(rows):
            return NO_DATA_MESSAGE

        lines = ["Attendance statistics:"]
        for row in rows:
            lines.append(
                f"- {row['className']}: {row['attendancePercentage']:.1f}% "
                f"({row['attendedSessions']}/{row['totalSessions']} sessions)"
            )
        return "\n".join(lines)

    async def _clients_text(self, period: str) -> str:
        data = await self.provider.client_insights(period)
        if is_empty_result(data):
            return NO_DATA_MESSAGE

        text = (
            f"Client insights: {data.get('activeClients', 0)} active, "
            f"{data.get('inactiveClients', 0)} inactive, "
            f"{data.get('newClients', 0)} new this {period}"
        )
        birthdays = data.get("birthdayReminders") or []
        if birthdays:
            text += f"\nBirthdays this month: {', '.join(birthdays)}"
        return text

    # Handlers

    async def _revenue(self, result: ClassificationResult, query: str) -> RoutedResponse:
        period = self._period(result)
        return RoutedResponse(
            text=await self._revenue_text(period),
            intent=result.intent,
            extracted_data={"period": period},
        )

    async def _outstanding_payments(self, result: ClassificationResult, query: str) -> RoutedResponse:
        return RoutedResponse(text=await self._outstanding_text(), intent=result.intent)

    async def _enrollment(self, result: ClassificationResult, query: str) -> RoutedResponse:
        period = self._period(result)
        return RoutedResponse(
            text=await self._enrollment_text(period),
            intent=result.intent,
            extracted_data={"period": period},
        )

    async def _attendance(self, result: ClassificationResult, query: str) -> RoutedResponse:
        class_name = result.extracted_data.get("className") or extraction.extract_class_name(query)
        extracted = {"className": class_name} if class_name else {}
        return RoutedResponse(
            text=await self._attendance_text(class_name),
            intent=result.intent,
            extracted_data=extracted,
        )

    async def _clients(self, result: ClassificationResult, query: str) -> RoutedResponse:
        period = self._period(result)
        return RoutedResponse(
            text=await self._clients_text(period),
            intent=result.intent,
            extracted_data={"period": period},
        )

    async def _dashboard(self, result: ClassificationResult, query: str) -> RoutedResponse:
        try:
            revenue, clients, enrollment, attendance = await asyncio.gather(
                self._revenue_text("month"),
                self._clients_text("month"),
                self._enrollment_text("month"),
                self._attendance_text(),
            )
        except Exception as e:
            logger.error(f"Dashboard summary failed: {e}")
            return RoutedResponse(
                text=f"Error generating dashboard: {e}",
                intent=result.intent,
            )

        text = "\n\n".join(["📊 Business Dashboard Summary", revenue, clients, enrollment, attendance])
        return RoutedResponse(text=text, intent=result.intent)
