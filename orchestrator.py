"""Main orchestrator for the Business Assistant."""

import logging
from typing import List, Optional

from config.settings import Settings

# Data provider
from datastore.base_provider import BusinessDataProvider
from datastore.in_memory_provider import InMemoryDataProvider
from datastore.notifications import WebhookNotifier

# LLM components
from llm.factory import create_llm_client, LLMProvider
from llm.base_client import BaseLLMClient

# Memory components
from memory.models import SessionSnapshot
from memory.reference_resolver import ReferenceResolver
from memory.session_store import SessionStore

# Agents
from agents.support_agent import SupportAgent
from agents.dashboard_agent import DashboardAgent

logger = logging.getLogger(__name__)


class BusinessAssistantOrchestrator:
    """Wires session memory, LLM client, data provider and both agents together."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        provider: Optional[BusinessDataProvider] = None,
        llm_client: Optional[BaseLLMClient] = None
    ):
        """
        Initialize orchestrator.

        Args:
            settings: Application settings
            provider: Data provider (defaults to in-memory data from settings.data_path)
            llm_client: LLM client (defaults to one built from settings)
        """
        self.settings = settings or Settings()

        # Initialize LLM client
        self.llm_client: Optional[BaseLLMClient] = llm_client
        if self.llm_client is None:
            self._init_llm_client()

        # Initialize memory
        self.store = SessionStore(
            max_interactions=self.settings.max_interactions_per_session,
            timeout_minutes=self.settings.session_timeout_minutes,
            sweep_interval_minutes=self.settings.session_sweep_interval_minutes,
        )
        self.resolver = ReferenceResolver(self.store)

        # Initialize data provider
        self.notifier = WebhookNotifier(
            base_url=self.settings.webhook_base_url,
            timeout=self.settings.webhook_timeout_seconds,
            enabled=self.settings.notifications_enabled,
        )
        self.provider = provider or self._init_provider()

        # Initialize agents
        self._init_agents()

    def _init_llm_client(self):
        """Initialize LLM client based on settings."""
        api_key = self.settings.get_llm_api_key()

        if not api_key:
            logger.warning(
                f"No API key for {self.settings.llm_provider}. "
                "LLM classification disabled, using keyword rules only."
            )
            return

        try:
            provider = LLMProvider(self.settings.llm_provider)
            self.llm_client = create_llm_client(
                provider=provider,
                api_key=api_key,
                model=self.settings.llm_model
            )
            logger.info(
                f"LLM client initialized: {self.settings.llm_provider} "
                f"({self.llm_client.get_model_name()})"
            )
        except Exception as e:
            logger.error(f"Failed to initialize LLM client: {e}")
            self.llm_client = None

    def _init_provider(self) -> BusinessDataProvider:
        logger.info(f"Using business data source: {self.settings.data_path}")
        return InMemoryDataProvider.from_yaml(self.settings.data_path, notifier=self.notifier)

    def _init_agents(self):
        """Initialize both conversational agents over the shared store."""
        agent_options = dict(
            llm_client=self.llm_client,
            provider=self.provider,
            store=self.store,
            resolver=self.resolver,
            keywords_path=self.settings.keywords_path,
            classifier_timeout=self.settings.classifier_timeout_seconds,
            temperature=self.settings.llm_temperature,
            max_tokens=self.settings.classifier_max_tokens,
        )
        self.support_agent = SupportAgent(**agent_options)
        self.dashboard_agent = DashboardAgent(**agent_options)

        mode = "LLM + keyword fallback" if self.llm_client else "keyword rules only"
        logger.info(f"Agents initialized ({mode})")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start background work (session expiry sweep)."""
        await self.store.start()

    async def shutdown(self) -> None:
        """Stop the sweep and wait for pending notifications."""
        await self.store.shutdown()
        await self.notifier.drain()

    # ------------------------------------------------------------------
    # Session management
    # ------------------------------------------------------------------

    def create_session(self) -> str:
        """Start a fresh session and make it the default."""
        return self.store.create_new_session()

    def get_session(self, session_id: str) -> Optional[SessionSnapshot]:
        """
        Describe a session.

        Returns:
            Stats, rendered context and recent interactions, or None if unknown
        """
        stats = self.store.get_session_stats(session_id)
        if stats is None:
            return None
        return SessionSnapshot(
            stats=stats,
            context=self.store.get_context(session_id),
            recent_interactions=self.store.get_recent_interactions(session_id),
        )

    def delete_session(self, session_id: str) -> bool:
        return self.store.clear_session(session_id)

    def list_sessions(self) -> List[str]:
        return sorted(self.store.list_active_session_ids())
