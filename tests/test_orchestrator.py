"""Tests for orchestrator wiring and session management."""

import pytest

from config.settings import Settings
from datastore.in_memory_provider import InMemoryDataProvider
from orchestrator import BusinessAssistantOrchestrator


def offline_settings(**overrides) -> Settings:
    """Settings with no API keys and notifications off."""
    options = dict(
        llm_provider="gemini",
        gemini_api_key="",
        openai_api_key="",
        anthropic_api_key="",
        notifications_enabled=False,
    )
    options.update(overrides)
    return Settings(**options)


class TestBusinessAssistantOrchestrator:
    """Test the orchestrator over the bundled sample data."""

    def setup_method(self):
        """Set up test fixtures."""
        self.orchestrator = BusinessAssistantOrchestrator(settings=offline_settings())

    def test_keyword_only_mode_without_api_key(self):
        """Test a missing API key leaves the agents on keyword rules."""
        assert self.orchestrator.llm_client is None
        assert isinstance(self.orchestrator.provider, InMemoryDataProvider)

    def test_agents_share_session_store(self):
        """Test both agents write to the same store."""
        assert self.orchestrator.support_agent.store is self.orchestrator.store
        assert self.orchestrator.dashboard_agent.store is self.orchestrator.store

    def test_settings_applied_to_store(self):
        """Test memory limits come from settings."""
        orchestrator = BusinessAssistantOrchestrator(
            settings=offline_settings(max_interactions_per_session=5, session_timeout_minutes=10)
        )
        assert orchestrator.store.max_interactions == 5
        assert orchestrator.store.timeout_minutes == 10

    @pytest.mark.asyncio
    async def test_query_recorded_in_session(self):
        """Test a query through an agent shows up in the session snapshot."""
        session_id = self.orchestrator.create_session()

        response = await self.orchestrator.support_agent.handle_query(
            "Find client john@example.com", session_id
        )
        snapshot = self.orchestrator.get_session(session_id)

        assert response.session_id == session_id
        assert "John Smith" in response.response
        assert snapshot.stats.total_interactions == 1
        assert snapshot.stats.has_client_context
        assert "john@example.com" in snapshot.context
        assert snapshot.recent_interactions[0].query == "Find client john@example.com"

    @pytest.mark.asyncio
    async def test_agents_share_conversation_memory(self):
        """Test a dashboard query lands in the same default session as support."""
        first = await self.orchestrator.support_agent.handle_query("Find client john@example.com")
        second = await self.orchestrator.dashboard_agent.handle_query("Show outstanding payments")

        assert first.session_id == second.session_id
        assert self.orchestrator.get_session(first.session_id).stats.total_interactions == 2

    def test_session_lifecycle(self):
        """Test create, list and delete."""
        first = self.orchestrator.create_session()
        second = self.orchestrator.create_session()

        assert self.orchestrator.list_sessions() == sorted([first, second])
        assert self.orchestrator.delete_session(first) is True
        assert self.orchestrator.delete_session(first) is False
        assert self.orchestrator.get_session(first) is None
        assert self.orchestrator.list_sessions() == [second]

    @pytest.mark.asyncio
    async def test_start_and_shutdown(self):
        """Test the background sweep starts and stops cleanly."""
        await self.orchestrator.start()
        assert self.orchestrator.store._sweep_task is not None

        await self.orchestrator.shutdown()
        assert self.orchestrator.store._sweep_task is None
