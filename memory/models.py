"""Session memory data models."""

from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field

from schemas.intents import AgentType


# (context kind, context field) -> extracted_data keys, in order of preference
CONTEXT_FIELD_MAP = {
    ("client", "email"): ("email", "clientEmail"),
    ("client", "name"): ("name", "clientName"),
    ("service", "service_name"): ("serviceName", "service"),
    ("service", "service_type"): ("serviceType",),
    ("service", "order_id"): ("orderId",),
}


class ClientContext(BaseModel):
    """Last client referenced in a session."""
    email: Optional[str] = None
    name: Optional[str] = None
    last_searched_at: Optional[datetime] = None


class ServiceContext(BaseModel):
    """Last service or order referenced in a session."""
    service_name: Optional[str] = None
    service_type: Optional[str] = None
    order_id: Optional[str] = None
    last_interaction_at: Optional[datetime] = None


class Interaction(BaseModel):
    """A single query/response exchange."""
    model_config = ConfigDict(frozen=True)

    id: str
    session_id: str
    timestamp: datetime = Field(default_factory=datetime.now)
    query: str
    response: str
    extracted_data: Optional[Dict[str, Any]] = None
    intent: Optional[str] = None
    agent_type: AgentType


class SessionStats(BaseModel):
    """Summary of a session for the session-management surface."""
    session_id: str
    total_interactions: int
    has_client_context: bool
    has_service_context: bool
    created_at: datetime
    last_active_at: datetime


class Session(BaseModel):
    """Conversation memory for one session."""
    id: str
    client_context: Optional[ClientContext] = None
    service_context: Optional[ServiceContext] = None
    interactions: List[Interaction] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    last_active_at: datetime = Field(default_factory=datetime.now)

    def touch(self, now: datetime) -> None:
        """Mark the session as used at ``now`` (never moves backwards)."""
        if now > self.last_active_at:
            self.last_active_at = now

    def add_interaction(self, interaction: Interaction, max_interactions: int) -> None:
        """Append an interaction, keeping only the most recent ``max_interactions``."""
        self.interactions.append(interaction)
        if len(self.interactions) > max_interactions:
            self.interactions = self.interactions[-max_interactions:]

    def apply_extracted_data(self, extracted_data: Optional[Dict[str, Any]], now: datetime) -> None:
        """Fold extracted fields into the client/service context, last write wins."""
        if not extracted_data:
            return

        for (kind, field), keys in CONTEXT_FIELD_MAP.items():
            value = next((extracted_data[k] for k in keys if extracted_data.get(k)), None)
            if value is None:
                continue
            value = str(value)

            if kind == "client":
                if self.client_context is None:
                    self.client_context = ClientContext()
                setattr(self.client_context, field, value)
                self.client_context.last_searched_at = now
            else:
                if self.service_context is None:
                    self.service_context = ServiceContext()
                setattr(self.service_context, field, value)
                self.service_context.last_interaction_at = now

    def is_active(self, now: datetime, timeout_minutes: int) -> bool:
        """Whether the session was used within the timeout window."""
        return (now - self.last_active_at).total_seconds() < timeout_minutes * 60

    def stats(self) -> SessionStats:
        return SessionStats(
            session_id=self.id,
            total_interactions=len(self.interactions),
            has_client_context=self.client_context is not None,
            has_service_context=self.service_context is not None,
            created_at=self.created_at,
            last_active_at=self.last_active_at,
        )


class SessionSnapshot(BaseModel):
    """Session details for the session-management surface."""
    stats: SessionStats
    context: str
    recent_interactions: List[Interaction] = Field(default_factory=list)
