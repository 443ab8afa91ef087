"""In-process session memory store with expiry sweeping."""

import asyncio
import logging
import threading
import time
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set

from schemas.intents import AgentType
from .models import ClientContext, Interaction, ServiceContext, Session, SessionStats

logger = logging.getLogger(__name__)


def _new_id(prefix: str = "") -> str:
    return f"{prefix}{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class SessionStore:
    """
    Process-lifetime mapping from session id to conversation memory.

    A store-wide lock guards the id -> session map and the default session id.
    Each session additionally has its own lock so concurrent writes to the same
    session are serialised without blocking writes to other sessions. The
    expiry sweep takes the store lock and leaves alone any session whose lock
    is held at that moment.
    """

    def __init__(
        self,
        max_interactions: int = 20,
        timeout_minutes: int = 30,
        sweep_interval_minutes: int = 15,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the store.

        Args:
            max_interactions: Interactions kept per session (oldest dropped first)
            timeout_minutes: Idle time after which a session is inactive
            sweep_interval_minutes: How often the background sweep runs
            clock: Source of the current time
        """
        self.max_interactions = max_interactions
        self.timeout_minutes = timeout_minutes
        self.sweep_interval_minutes = sweep_interval_minutes
        self._clock = clock

        self._sessions: Dict[str, Session] = {}
        self._session_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()
        self._current_session_id: Optional[str] = None
        self._sweep_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the periodic expiry sweep on the running event loop."""
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        logger.info(
            f"Session sweep started (every {self.sweep_interval_minutes} min, "
            f"timeout {self.timeout_minutes} min)"
        )

    async def shutdown(self) -> None:
        """Stop the periodic expiry sweep."""
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        try:
            await self._sweep_task
        except asyncio.CancelledError:
            pass
        self._sweep_task = None
        logger.info("Session sweep stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_minutes * 60)
            try:
                self.sweep_expired()
            except Exception as e:
                logger.error(f"Session sweep failed: {e}")

    # ------------------------------------------------------------------
    # Session creation
    # ------------------------------------------------------------------

    @property
    def current_session_id(self) -> Optional[str]:
        """Session used for calls that do not name one."""
        return self._current_session_id

    def _install_session(self, session_id: str) -> Session:
        # Caller holds self._lock
        now = self._clock()
        session = Session(id=session_id, created_at=now, last_active_at=now)
        self._sessions[session_id] = session
        self._session_locks[session_id] = threading.Lock()
        return session

    def _is_active_locked(self, session_id: Optional[str]) -> bool:
        session = self._sessions.get(session_id) if session_id else None
        if session is None:
            return False
        return session.is_active(self._clock(), self.timeout_minutes)

    def is_active(self, session_id: str) -> bool:
        """Whether the session exists and was used within the timeout."""
        with self._lock:
            return self._is_active_locked(session_id)

    def get_or_create_active_session(self) -> str:
        """
        Return the most recently used session id if still active.

        Otherwise mint a new session and make it the default.
        """
        with self._lock:
            if self._is_active_locked(self._current_session_id):
                return self._current_session_id

            session_id = _new_id("session_")
            self._install_session(session_id)
            self._current_session_id = session_id

        logger.info(f"Created new session: {session_id}")
        return session_id

    def create_new_session(self) -> str:
        """Mint a fresh session unconditionally and make it the default."""
        with self._lock:
            session_id = _new_id("session_")
            self._install_session(session_id)
            self._current_session_id = session_id

        logger.info(f"Force created new session: {session_id}")
        return session_id

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def store_interaction(
        self,
        session_id: Optional[str],
        agent_type: AgentType,
        query: str,
        response: str,
        extracted_data: Optional[dict] = None,
        intent: Optional[str] = None,
    ) -> str:
        """
        Record one query/response exchange.

        Args:
            session_id: Target session; the default active session if omitted
            agent_type: Agent that produced the response
            query: Raw query as typed by the caller
            response: Response text
            extracted_data: Structured fields observed while answering
            intent: Intent label the query was routed as

        Returns:
            The session id the interaction was stored under
        """
        active_session_id = session_id or self.get_or_create_active_session()

        while True:
            with self._lock:
                session = self._sessions.get(active_session_id)
                if session is None:
                    session = self._install_session(active_session_id)
                    logger.info(f"Created session for unknown id: {active_session_id}")
                session_lock = self._session_locks[active_session_id]

            with session_lock:
                # The sweep may have removed the session between the two locks
                if self._sessions.get(active_session_id) is not session:
                    continue

                now = self._clock()
                interaction = Interaction(
                    id=_new_id(),
                    session_id=active_session_id,
                    timestamp=now,
                    query=query,
                    response=response,
                    extracted_data=dict(extracted_data) if extracted_data else None,
                    intent=intent,
                    agent_type=agent_type,
                )
                session.touch(now)
                session.add_interaction(interaction, self.max_interactions)
                session.apply_extracted_data(extracted_data, now)
                break

        logger.debug(
            f"Stored interaction in {active_session_id} "
            f"(intent={intent}, total={len(session.interactions)})"
        )
        return active_session_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _snapshot(self, session_id: Optional[str]) -> Optional[Session]:
        """Deep copy of a session taken under its lock."""
        if not session_id:
            return None
        with self._lock:
            session = self._sessions.get(session_id)
            session_lock = self._session_locks.get(session_id)
        if session is None:
            return None
        with session_lock:
            return session.model_copy(deep=True)

    def get_session(self, session_id: str) -> Optional[Session]:
        """Copy of the session state, or None if unknown."""
        return self._snapshot(session_id)

    def get_context(self, session_id: Optional[str] = None) -> str:
        """
        Render remembered context for inclusion in a classifier prompt.

        Args:
            session_id: Session to render; the default session if omitted

        Returns:
            Human-readable context, or an empty string if there is none
        """
        session = self._snapshot(session_id or self._current_session_id)
        if session is None:
            return ""

        lines: List[str] = []

        if session.client_context:
            client = session.client_context
            lines.append("Recent client context:")
            if client.email:
                lines.append(f"- Last searched client: {client.email}")
            if client.name:
                lines.append(f"- Client name: {client.name}")

        if session.service_context:
            service = session.service_context
            lines.append("Recent service context:")
            if service.service_name:
                lines.append(f"- Last service: {service.service_name}")
            if service.service_type:
                lines.append(f"- Service type: {service.service_type}")
            if service.order_id:
                lines.append(f"- Last order: {service.order_id}")

        recent_queries = [f"- {entry.query}" for entry in session.interactions[-3:]]
        if recent_queries:
            lines.append("")
            lines.append("Recent queries:")
            lines.extend(recent_queries)

        if not lines:
            return ""
        return "\n".join(lines) + "\n"

    def get_recent_interactions(self, session_id: str, limit: int = 5) -> List[Interaction]:
        """Most recent ``limit`` interactions, newest last."""
        session = self._snapshot(session_id)
        if session is None or limit <= 0:
            return []
        return session.interactions[-limit:]

    def get_client_context(self, session_id: Optional[str] = None) -> Optional[ClientContext]:
        session = self._snapshot(session_id or self._current_session_id)
        return session.client_context if session else None

    def get_service_context(self, session_id: Optional[str] = None) -> Optional[ServiceContext]:
        session = self._snapshot(session_id or self._current_session_id)
        return session.service_context if session else None

    def get_session_stats(self, session_id: str) -> Optional[SessionStats]:
        """Interaction count, context flags and timestamps, or None if unknown."""
        session = self._snapshot(session_id)
        return session.stats() if session else None

    def list_active_session_ids(self) -> Set[str]:
        """All tracked session ids (not filtered by activity)."""
        with self._lock:
            return set(self._sessions.keys())

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def clear_session(self, session_id: str) -> bool:
        """Remove a session; returns whether it existed."""
        with self._lock:
            existed = self._sessions.pop(session_id, None) is not None
            self._session_locks.pop(session_id, None)
            if self._current_session_id == session_id:
                self._current_session_id = None

        if existed:
            logger.info(f"Cleared session: {session_id}")
        return existed

    def sweep_expired(self) -> int:
        """
        Delete every session idle for longer than the timeout.

        Sessions that are being written to during the sweep are skipped and
        picked up by a later sweep if they are still idle.

        Returns:
            Number of sessions removed
        """
        removed = 0
        with self._lock:
            now = self._clock()
            for session_id, session in list(self._sessions.items()):
                if session.is_active(now, self.timeout_minutes):
                    continue

                session_lock = self._session_locks[session_id]
                if not session_lock.acquire(blocking=False):
                    continue
                try:
                    del self._sessions[session_id]
                    del self._session_locks[session_id]
                    if self._current_session_id == session_id:
                        self._current_session_id = None
                    removed += 1
                finally:
                    session_lock.release()

        if removed:
            logger.info(f"Swept {removed} expired session(s)")
        return removed
