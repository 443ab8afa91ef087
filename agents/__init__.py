"""Agents for the Business Assistant."""

from .base_agent import ConversationEngine
from .support_agent import SupportAgent
from .dashboard_agent import DashboardAgent
from .llm_classifier import (
    LLMIntentClassifier,
    SupportIntentClassifier,
    DashboardIntentClassifier,
    extract_json_object,
)
from .keyword_router import KeywordIntentMatcher, IntentRule
from .intent_router import IntentRouter, SupportIntentRouter, DashboardIntentRouter

__all__ = [
    "ConversationEngine",
    "SupportAgent",
    "DashboardAgent",
    "LLMIntentClassifier",
    "SupportIntentClassifier",
    "DashboardIntentClassifier",
    "extract_json_object",
    "KeywordIntentMatcher",
    "IntentRule",
    "IntentRouter",
    "SupportIntentRouter",
    "DashboardIntentRouter",
]
