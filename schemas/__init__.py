"""Pydantic schemas for the Business Assistant."""

from .intents import (
    UNKNOWN_INTENT,
    AgentType,
    SupportIntent,
    DashboardIntent,
    ClassificationSource,
    ClassificationResult,
)
from .responses import RoutedResponse, QueryResponse

__all__ = [
    "UNKNOWN_INTENT",
    "AgentType",
    "SupportIntent",
    "DashboardIntent",
    "ClassificationSource",
    "ClassificationResult",
    "RoutedResponse",
    "QueryResponse",
]
