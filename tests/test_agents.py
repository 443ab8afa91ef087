"""Tests for intent routing and the conversation pipeline."""

import logging
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from agents.dashboard_agent import DashboardAgent
from agents.intent_router import (
    NO_DATA_MESSAGE,
    DashboardIntentRouter,
    SupportIntentRouter,
    is_empty_result,
)
from agents.base_agent import APOLOGY_MESSAGE
from agents.support_agent import SupportAgent
from datastore.in_memory_provider import InMemoryDataProvider
from datastore.models import (
    AttendanceRecord,
    ClassRecord,
    ClientRecord,
    CourseRecord,
    OrderRecord,
    PaymentRecord,
)
from llm.base_client import BaseLLMClient, LLMResponse
from memory.session_store import SessionStore
from schemas.intents import ClassificationResult

# Wednesday
NOW = datetime(2024, 6, 12, 12, 0, 0)


class ScriptedLLMClient(BaseLLMClient):
    """Returns the same reply for every request and records the prompts."""

    def __init__(self, content: str = '{"intent": "unknown"}', error: Exception = None):
        self.content = content
        self.error = error
        self.calls = []

    async def chat(self, messages, temperature=0.1, max_tokens=1000):
        self.calls.append(messages)
        if self.error:
            raise self.error
        return LLMResponse(content=self.content)

    def get_provider_name(self) -> str:
        return "scripted"

    def get_model_name(self) -> str:
        return "scripted"


def make_provider() -> InMemoryDataProvider:
    return InMemoryDataProvider(
        clients=[
            ClientRecord(id="c1", name="John Smith", email="john@example.com",
                         phone="+15551234567", created_at=NOW - timedelta(days=100)),
            ClientRecord(id="c2", name="Lena Park", email="lena@example.com",
                         phone="+15559876543", is_active=False, created_at=NOW - timedelta(days=5)),
        ],
        courses=[CourseRecord(id="crs1", name="Pilates Core", price=180.0)],
        classes=[
            ClassRecord(id="cls1", name="Morning Flow", date=NOW + timedelta(days=1),
                        instructor="Anita Rao", max_students=12, current_enrollment=4),
            ClassRecord(id="cls2", name="Sunset Stretch", date=NOW + timedelta(days=10)),
        ],
        orders=[
            OrderRecord(order_id="ORD-1", client_id="c1", service_type="course", service_id="crs1",
                        amount=180.0, status="paid", created_at=NOW - timedelta(days=4)),
            OrderRecord(order_id="ORD-2", client_id="c2", service_type="course", service_id="crs1",
                        amount=180.0, status="pending", created_at=NOW - timedelta(days=2)),
        ],
        payments=[PaymentRecord(order_id="ORD-1", amount=180.0, payment_date=NOW - timedelta(days=3))],
        attendance=[
            AttendanceRecord(class_id="cls1", client_id="c1", date=NOW, present=True),
            AttendanceRecord(class_id="cls1", client_id="c2", date=NOW, present=False),
        ],
        clock=lambda: NOW,
    )


def support(intent: str, **extracted) -> ClassificationResult:
    return ClassificationResult(intent=intent, extracted_data=extracted)


class TestIsEmptyResult:
    """Test the empty-result rule."""

    def test_empty_values(self):
        """Test None, zeros, blanks and empty containers are empty."""
        assert is_empty_result(None)
        assert is_empty_result(0)
        assert is_empty_result("  ")
        assert is_empty_result([])
        assert is_empty_result({"total": 0, "items": []})

    def test_non_empty_values(self):
        """Test any meaningful value makes the result non-empty."""
        assert not is_empty_result({"total": 0, "items": [1]})
        assert not is_empty_result(12.5)
        assert not is_empty_result([{}])


class TestSupportIntentRouter:
    """Test support handlers and error rendering."""

    def setup_method(self):
        """Set up test fixtures."""
        self.provider = make_provider()
        self.router = SupportIntentRouter(self.provider, clock=lambda: NOW)

    @pytest.mark.asyncio
    async def test_search_client_by_email(self):
        """Test a found client is listed and remembered."""
        routed = await self.router.route(support("search_client"), "Find client john@example.com")

        assert routed.text.startswith("Client search completed: 1 client(s) found")
        assert "John Smith" in routed.text
        assert routed.extracted_data == {"email": "john@example.com", "name": "John Smith"}

    @pytest.mark.asyncio
    async def test_search_client_without_criteria(self):
        """Test a clarification is returned when nothing can be searched."""
        routed = await self.router.route(support("search_client"), "search")
        assert "Please provide an email, phone number or name" in routed.text

    @pytest.mark.asyncio
    async def test_search_client_no_results(self):
        """Test the no-results sentence."""
        routed = await self.router.route(support("search_client", email="nobody@example.com"), "find")
        assert routed.text == "No clients found matching your search."
        assert routed.extracted_data == {"email": "nobody@example.com"}

    @pytest.mark.asyncio
    async def test_search_client_no_results_keeps_searched_name(self):
        """Test a name search with no hits still reports the searched name."""
        routed = await self.router.route(support("search_client", clientName="Maria Lopez"), "find")

        assert routed.text == "No clients found matching your search."
        assert routed.extracted_data == {"name": "Maria Lopez"}

    @pytest.mark.asyncio
    async def test_order_status_paid(self):
        """Test order and payment status are reported together."""
        routed = await self.router.route(support("order_status"), "Has order #ORD-1 been paid?")

        assert routed.text == "Order ORD-1 is paid and payment is completed"
        assert routed.extracted_data["orderId"] == "ORD-1"

    @pytest.mark.asyncio
    async def test_order_status_without_payment(self):
        """Test orders with no payment record."""
        routed = await self.router.route(support("order_status", orderId="ORD-2"), "status")
        assert routed.text == "Order ORD-2 is pending with no payment record"

    @pytest.mark.asyncio
    async def test_order_status_not_found(self):
        """Test unknown order ids."""
        routed = await self.router.route(support("order_status"), "status of order #ORD-404")
        assert routed.text == "Order ORD-404 not found"

    @pytest.mark.asyncio
    async def test_create_order_success(self):
        """Test an order is created and its entities returned."""
        routed = await self.router.route(
            support("create_order"), "Create an order for Pilates Core for client john@example.com"
        )

        assert routed.text.startswith("Order ORD-")
        assert "Pilates Core" in routed.text
        assert routed.extracted_data["email"] == "john@example.com"
        assert routed.extracted_data["serviceName"] == "Pilates Core"

    @pytest.mark.asyncio
    async def test_create_order_missing_fields(self):
        """Test the usage hint when service or client is missing."""
        routed = await self.router.route(support("create_order"), "create an order")
        assert routed.text == SupportIntentRouter.CREATE_ORDER_HELP

    @pytest.mark.asyncio
    async def test_create_order_invalid_email(self):
        """Test malformed client emails are rejected before any lookup."""
        routed = await self.router.route(
            support("create_order", serviceName="Pilates Core", clientEmail="john@example"),
            "create order",
        )
        assert routed.text == "'john@example' is not a valid email address."

    @pytest.mark.asyncio
    async def test_create_client_duplicate(self):
        """Test duplicate emails are reported as plain text."""
        routed = await self.router.route(
            support("create_client", name="John Again", email="john@example.com", phone="+15551234567"),
            "create client",
        )
        assert routed.text == "Client already exists with email: john@example.com"

    @pytest.mark.asyncio
    async def test_create_client_invalid_phone(self):
        """Test short phone numbers are rejected."""
        routed = await self.router.route(
            support("create_client", name="Jane Doe", email="jane@example.com", phone="12345"),
            "create client",
        )
        assert "not a valid phone number" in routed.text

    @pytest.mark.asyncio
    async def test_create_client_missing_fields(self):
        """Test missing fields are named."""
        routed = await self.router.route(support("create_client"), "Create client named Jane Doe")
        assert routed.text.startswith("Missing email, phone.")

    @pytest.mark.asyncio
    async def test_weekly_classes(self):
        """Test only this week's classes are listed."""
        routed = await self.router.route(support("weekly_classes"), "classes this week")

        assert routed.text.startswith("Weekly classes:")
        assert "Morning Flow with Anita Rao (4/12 enrolled)" in routed.text
        assert "Sunset Stretch" not in routed.text

    @pytest.mark.asyncio
    async def test_payment_info_lists_pending(self):
        """Test pending orders are listed when no order id is given."""
        routed = await self.router.route(support("payment_info"), "show pending payments")
        assert routed.text == "Pending payments:\n- ORD-2: 180.00 (course)"

    @pytest.mark.asyncio
    async def test_unexpected_error_rendered(self):
        """Test other handler failures become an Error: message."""
        self.provider.get_order = AsyncMock(side_effect=RuntimeError("database offline"))
        routed = await self.router.route(support("order_status", orderId="ORD-1"), "status")
        assert routed.text == "Error: database offline"

    @pytest.mark.asyncio
    async def test_unhandled_intent_raises(self):
        """Test routing an intent without a handler is a programming error."""
        assert not self.router.can_handle("revenue")
        with pytest.raises(ValueError):
            await self.router.route(support("revenue"), "revenue")


class TestDashboardIntentRouter:
    """Test dashboard handlers."""

    def setup_method(self):
        """Set up test fixtures."""
        self.provider = make_provider()
        self.router = DashboardIntentRouter(self.provider, clock=lambda: NOW)

    @pytest.mark.asyncio
    async def test_revenue(self):
        """Test revenue text uses the period label."""
        routed = await self.router.route(support("revenue", period="month"), "monthly revenue")
        assert routed.text == "Monthly revenue: 180.00 from 1 payment(s)"
        assert routed.extracted_data == {"period": "month"}

    @pytest.mark.asyncio
    async def test_attendance_for_class(self):
        """Test attendance for a named class."""
        routed = await self.router.route(
            support("attendance"), "What is the attendance percentage for Morning Flow?"
        )
        assert "Morning Flow: 50.0% (1/2 sessions)" in routed.text
        assert routed.extracted_data == {"className": "Morning Flow"}

    @pytest.mark.asyncio
    async def test_empty_results_use_no_data_message(self):
        """Test empty analytics produce the no-data sentence."""
        router = DashboardIntentRouter(InMemoryDataProvider(clock=lambda: NOW), clock=lambda: NOW)

        for intent in ("revenue", "outstanding_payments", "enrollment", "attendance", "clients"):
            routed = await router.route(support(intent), "report")
            assert routed.text == NO_DATA_MESSAGE

    @pytest.mark.asyncio
    async def test_dashboard_summary(self):
        """Test the composite summary contains every section."""
        routed = await self.router.route(support("dashboard"), "dashboard")

        assert routed.text.startswith("📊 Business Dashboard Summary")
        assert "Monthly revenue: 180.00" in routed.text
        assert "Client insights: 1 active, 1 inactive" in routed.text
        assert "Top enrollments:" in routed.text
        assert "Attendance statistics:" in routed.text

    @pytest.mark.asyncio
    async def test_dashboard_summary_failure(self):
        """Test any failing section fails the whole summary."""
        self.provider.client_insights = AsyncMock(side_effect=RuntimeError("insights unavailable"))
        routed = await self.router.route(support("dashboard"), "dashboard")
        assert routed.text == "Error generating dashboard: insights unavailable"


class TestSupportAgent:
    """Test the full support pipeline with session memory."""

    def setup_method(self):
        """Set up test fixtures."""
        self.provider = make_provider()
        self.store = SessionStore(clock=lambda: NOW)

    def agent(self, llm_client) -> SupportAgent:
        return SupportAgent(llm_client, self.provider, self.store, clock=lambda: NOW)

    @pytest.mark.asyncio
    async def test_llm_classification_routes_and_remembers(self):
        """Test a tier-1 intent is executed and its entities stored."""
        agent = self.agent(ScriptedLLMClient('{"intent": "search_client"}'))

        response = await agent.handle_query("Find client john@example.com")

        assert "John Smith" in response.response
        context = self.store.get_client_context(response.session_id)
        assert context.email == "john@example.com"

    @pytest.mark.asyncio
    async def test_reference_resolved_before_classification(self):
        """Test "that client" reaches the classifier as the remembered email."""
        llm = ScriptedLLMClient('{"intent": "search_client"}')
        agent = self.agent(llm)

        first = await agent.handle_query("Find client john@example.com")
        second = await agent.handle_query("that client's orders", first.session_id)

        user_message = llm.calls[1][-1].content
        assert "john@example.com's orders" in user_message
        assert "John Smith" in second.response
        stored = self.store.get_recent_interactions(second.session_id, limit=1)[0]
        assert stored.query == "that client's orders"

    @pytest.mark.asyncio
    async def test_translated_query_logged_with_intent(self, caplog):
        """Test the English rendering from tier 1 is logged next to the intent."""
        agent = self.agent(ScriptedLLMClient(
            '{"intent": "search_client", "translated_query": "Find client john@example.com"}'
        ))

        with caplog.at_level(logging.INFO, logger="agents.base_agent"):
            await agent.handle_query("ग्राहक john@example.com खोजें")

        assert "tier 1 intent 'search_client' for 'Find client john@example.com'" in caplog.text

    @pytest.mark.asyncio
    async def test_unmatched_search_remembered_without_llm(self):
        """Test a search with no hits on keyword rules still feeds reference resolution."""
        agent = SupportAgent(None, InMemoryDataProvider(clock=lambda: NOW), self.store, clock=lambda: NOW)

        first = await agent.handle_query("Find client john@example.com")

        assert first.response == "No clients found matching your search."
        assert self.store.get_client_context(first.session_id).email == "john@example.com"
        assert agent.resolver.resolve(first.session_id, "that client's orders") == (
            "john@example.com's orders"
        )

    @pytest.mark.asyncio
    async def test_reference_resolved_on_keyword_path(self):
        """Test the follow-up is resolved before classification when tier 1 gives unknown."""
        llm = ScriptedLLMClient('{"intent": "unknown"}')
        agent = SupportAgent(llm, InMemoryDataProvider(clock=lambda: NOW), self.store, clock=lambda: NOW)

        first = await agent.handle_query("Find client john@example.com")
        second = await agent.handle_query("that client's orders", first.session_id)

        assert first.response == "No clients found matching your search."
        assert second.session_id == first.session_id
        assert "john@example.com's orders" in llm.calls[1][-1].content
        stored = self.store.get_recent_interactions(second.session_id, limit=1)[0]
        assert stored.query == "that client's orders"

    @pytest.mark.asyncio
    async def test_keyword_fallback_when_llm_fails(self):
        """Test tier 2 answers when the LLM call errors."""
        agent = self.agent(ScriptedLLMClient(error=RuntimeError("rate limited")))
        response = await agent.handle_query("Has order #ORD-1 been paid?")
        assert response.response == "Order ORD-1 is paid and payment is completed"

    @pytest.mark.asyncio
    async def test_keyword_fallback_without_llm(self):
        """Test the pipeline works with no LLM configured."""
        agent = self.agent(None)
        response = await agent.handle_query("Find client lena@example.com")
        assert "Lena Park" in response.response

    @pytest.mark.asyncio
    async def test_capability_message_when_nothing_matches(self):
        """Test the capability listing is returned and recorded."""
        agent = self.agent(None)
        response = await agent.handle_query("tell me a joke")

        assert response.response.startswith("I can help you with")
        stored = self.store.get_recent_interactions(response.session_id)[-1]
        assert stored.intent == "unknown"

    @pytest.mark.asyncio
    async def test_unknown_session_falls_back_to_default(self):
        """Test an unknown session id continues the default session."""
        agent = self.agent(None)
        response = await agent.handle_query("Find client john@example.com", "session_missing")

        assert response.session_id == self.store.current_session_id
        assert response.session_id != "session_missing"

    @pytest.mark.asyncio
    async def test_unexpected_failure_returns_apology(self):
        """Test pipeline failures are answered with an apology."""
        agent = self.agent(None)
        agent.router.route = AsyncMock(side_effect=RuntimeError("boom"))

        response = await agent.handle_query("Find client john@example.com")

        assert response.response == APOLOGY_MESSAGE
        assert response.session_id

    @pytest.mark.asyncio
    async def test_specific_query_reports_missing_service(self):
        """Test a create-order for an unknown service answers with not found."""
        agent = self.agent(None)
        text = await agent.handle_specific_queries(
            "Create order for Yoga Beginner for client john@example.com"
        )
        assert "not found" in text

    @pytest.mark.asyncio
    async def test_specific_queries_leave_memory_untouched(self):
        """Test keyword-only calls do not create or write sessions."""
        agent = self.agent(None)
        await agent.weekly_classes()
        await agent.order_status("ORD-1")

        assert self.store.list_active_session_ids() == set()

    @pytest.mark.asyncio
    async def test_create_order_shortcut(self):
        """Test the create-order shortcut places an order."""
        agent = self.agent(None)
        text = await agent.create_order("Pilates Core", "lena@example.com")
        assert text.startswith("Order ORD-")
        assert "Lena Park" in text


class TestDashboardAgent:
    """Test dashboard shortcuts end to end."""

    def setup_method(self):
        """Set up test fixtures."""
        self.agent = DashboardAgent(None, make_provider(), SessionStore(clock=lambda: NOW), clock=lambda: NOW)

    @pytest.mark.asyncio
    async def test_monthly_revenue(self):
        """Test the monthly revenue shortcut."""
        assert await self.agent.monthly_revenue() == "Monthly revenue: 180.00 from 1 payment(s)"

    @pytest.mark.asyncio
    async def test_inactive_clients(self):
        """Test the client insights shortcut."""
        text = await self.agent.inactive_clients()
        assert text.startswith("Client insights: 1 active, 1 inactive")

    @pytest.mark.asyncio
    async def test_dashboard_summary(self):
        """Test the summary shortcut."""
        text = await self.agent.dashboard_summary()
        assert text.startswith("📊 Business Dashboard Summary")

    @pytest.mark.asyncio
    async def test_hindi_revenue_query(self):
        """Test a Hindi query reaches the revenue handler."""
        response = await self.agent.handle_query("मासिक राजस्व दिखाएं")
        assert response.response == "Monthly revenue: 180.00 from 1 payment(s)"
