"""Business dashboard agent."""

from datetime import datetime
from typing import Callable, Optional

from datastore.base_provider import BusinessDataProvider
from llm.base_client import BaseLLMClient
from memory.reference_resolver import ReferenceResolver
from memory.session_store import SessionStore
from schemas.intents import AgentType
from .base_agent import ConversationEngine
from .intent_router import DashboardIntentRouter
from .keyword_router import KeywordIntentMatcher
from .llm_classifier import DashboardIntentClassifier


class DashboardAgent(ConversationEngine):
    """Revenue, outstanding payments, enrollment, attendance and client analytics."""

    AGENT_TYPE = AgentType.DASHBOARD

    def __init__(
        self,
        llm_client: Optional[BaseLLMClient],
        provider: BusinessDataProvider,
        store: SessionStore,
        resolver: Optional[ReferenceResolver] = None,
        keywords_path: Optional[str] = None,
        classifier_timeout: float = 15.0,
        temperature: float = 0.1,
        max_tokens: int = 500,
        clock: Callable[[], datetime] = datetime.now
    ):
        super().__init__(
            classifier=DashboardIntentClassifier(
                llm_client,
                timeout=classifier_timeout,
                temperature=temperature,
                max_tokens=max_tokens,
            ),
            matcher=KeywordIntentMatcher(AgentType.DASHBOARD, keywords_path),
            router=DashboardIntentRouter(provider, clock),
            store=store,
            resolver=resolver,
        )

    async def dashboard_summary(self) -> str:
        return await self.handle_specific_queries("Show dashboard summary")

    async def monthly_revenue(self) -> str:
        return await self.handle_specific_queries("How much revenue did we generate this month?")

    async def top_enrollments(self) -> str:
        return await self.handle_specific_queries("Which course has the highest enrollment?")

    async def attendance_stats(self, class_name: Optional[str] = None) -> str:
        if class_name:
            return await self.handle_specific_queries(
                f"What is the attendance percentage for {class_name}?"
            )
        return await self.handle_specific_queries("Show attendance statistics")

    async def inactive_clients(self) -> str:
        return await self.handle_specific_queries("How many inactive clients do we have?")
