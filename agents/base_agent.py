"""Conversation engine shared by the support and dashboard agents."""

import logging
from typing import Optional

from memory.reference_resolver import ReferenceResolver
from memory.session_store import SessionStore
from schemas.intents import UNKNOWN_INTENT, AgentType, ClassificationResult
from schemas.responses import QueryResponse, RoutedResponse
from .intent_router import IntentRouter
from .keyword_router import KeywordIntentMatcher
from .llm_classifier import LLMIntentClassifier

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "Sorry, something went wrong while handling your request. Please try again."


class ConversationEngine:
    """
    Runs one query through the full pipeline.

    Pipeline:
    1. Resolve references ("that client") from session memory
    2. Render session context
    3. Tier 1: LLM classification
    4. Route; fall back to tier 2 keyword rules when tier 1 cannot be acted on
    5. Record the interaction and observed entities in the session
    """

    AGENT_TYPE: AgentType = AgentType.SUPPORT

    def __init__(
        self,
        classifier: LLMIntentClassifier,
        matcher: KeywordIntentMatcher,
        router: IntentRouter,
        store: SessionStore,
        resolver: Optional[ReferenceResolver] = None
    ):
        self.classifier = classifier
        self.matcher = matcher
        self.router = router
        self.store = store
        self.resolver = resolver or ReferenceResolver(store)

    def _session_for(self, session_id: Optional[str]) -> str:
        if session_id and self.store.is_active(session_id):
            return session_id
        if session_id:
            logger.info(f"Session {session_id} is unknown or expired; using default session")
        return self.store.get_or_create_active_session()

    async def handle_query(self, query: str, session_id: Optional[str] = None) -> QueryResponse:
        """
        Answer a free-text query.

        Args:
            query: Raw user query in any supported language
            session_id: Session to continue; the default active session if omitted

        Returns:
            QueryResponse with the text and the session id used
        """
        active_session_id = self._session_for(session_id)

        try:
            resolved_query = self.resolver.resolve(active_session_id, query)
            context = self.store.get_context(active_session_id)

            classification = await self.classifier.classify(resolved_query, context)
            if classification.translated_query:
                logger.info(
                    f"{self.AGENT_TYPE.value}: tier 1 intent '{classification.intent}' "
                    f"for '{classification.translated_query}'"
                )

            if not classification.is_unknown and self.router.can_handle(classification.intent):
                routed = await self.router.route(classification, resolved_query)
            else:
                logger.info(
                    f"{self.AGENT_TYPE.value}: tier 1 gave '{classification.intent}', "
                    f"using keyword rules"
                )
                classification = ClassificationResult.unknown()
                routed = await self._route_by_keywords(resolved_query)

            extracted = {**classification.extracted_data, **routed.extracted_data}
            active_session_id = self.store.store_interaction(
                active_session_id,
                self.AGENT_TYPE,
                query,
                routed.text,
                extracted_data=extracted or None,
                intent=routed.intent,
            )
            return QueryResponse(response=routed.text, session_id=active_session_id)

        except Exception as e:
            logger.error(f"{self.AGENT_TYPE.value} agent error: {e}", exc_info=True)
            return QueryResponse(response=APOLOGY_MESSAGE, session_id=active_session_id)

    async def _route_by_keywords(self, query: str) -> RoutedResponse:
        result = self.matcher.match(query)
        if result is None:
            return RoutedResponse(text=self.matcher.fallback_message, intent=UNKNOWN_INTENT)
        return await self.router.route(result, query)

    async def handle_specific_queries(self, query: str) -> str:
        """
        Answer using the keyword rules only, without touching session memory.

        Args:
            query: Query text

        Returns:
            Response text (capability listing when no rule matches)
        """
        try:
            routed = await self._route_by_keywords(query)
            return routed.text
        except Exception as e:
            logger.error(f"{self.AGENT_TYPE.value} keyword routing error: {e}")
            return f"Error: {e}"
