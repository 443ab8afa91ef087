"""Customer support agent."""

from datetime import datetime
from typing import Callable, Optional

from datastore.base_provider import BusinessDataProvider
from llm.base_client import BaseLLMClient
from memory.reference_resolver import ReferenceResolver
from memory.session_store import SessionStore
from schemas.intents import AgentType
from .base_agent import ConversationEngine
from .intent_router import SupportIntentRouter
from .keyword_router import KeywordIntentMatcher
from .llm_classifier import SupportIntentClassifier


class SupportAgent(ConversationEngine):
    """Client searches, order status, class schedules, payments, new orders and clients."""

    AGENT_TYPE = AgentType.SUPPORT

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
            classifier=SupportIntentClassifier(
                llm_client,
                timeout=classifier_timeout,
                temperature=temperature,
                max_tokens=max_tokens,
            ),
            matcher=KeywordIntentMatcher(AgentType.SUPPORT, keywords_path),
            router=SupportIntentRouter(provider, clock),
            store=store,
            resolver=resolver,
        )

    async def weekly_classes(self) -> str:
        return await self.handle_specific_queries("What classes are available this week?")

    async def order_status(self, order_id: str) -> str:
        return await self.handle_specific_queries(f"Has order #{order_id} been paid?")

    async def create_order(self, service_name: str, client_email: str) -> str:
        return await self.handle_specific_queries(
            f"Create an order for {service_name} for client {client_email}"
        )
