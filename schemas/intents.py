"""Intent and classification schemas."""

from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


UNKNOWN_INTENT = "unknown"


class AgentType(str, Enum):
    """Which conversational agent handled a query."""
    SUPPORT = "support"
    DASHBOARD = "dashboard"


class SupportIntent(str, Enum):
    """Intents understood by the customer support agent."""
    SEARCH_CLIENT = "search_client"
    ORDER_STATUS = "order_status"
    CREATE_ORDER = "create_order"
    CREATE_CLIENT = "create_client"
    WEEKLY_CLASSES = "weekly_classes"
    PAYMENT_INFO = "payment_info"
    UNKNOWN = UNKNOWN_INTENT


class DashboardIntent(str, Enum):
    """Intents understood by the business dashboard agent."""
    REVENUE = "revenue"
    OUTSTANDING_PAYMENTS = "outstanding_payments"
    ENROLLMENT = "enrollment"
    ATTENDANCE = "attendance"
    CLIENTS = "clients"
    DASHBOARD = "dashboard"
    UNKNOWN = UNKNOWN_INTENT


class ClassificationSource(str, Enum):
    """Tier that produced a classification."""
    LLM = "llm"
    KEYWORDS = "keywords"


class ClassificationResult(BaseModel):
    """Structured intent guess for a single query."""
    intent: str = UNKNOWN_INTENT
    extracted_data: Dict[str, Any] = Field(default_factory=dict)
    translated_query: Optional[str] = None
    source: ClassificationSource = ClassificationSource.LLM

    @property
    def is_unknown(self) -> bool:
        return self.intent == UNKNOWN_INTENT

    @classmethod
    def unknown(cls, source: ClassificationSource = ClassificationSource.LLM) -> "ClassificationResult":
        """Result used whenever a tier cannot produce a usable guess."""
        return cls(intent=UNKNOWN_INTENT, source=source)
