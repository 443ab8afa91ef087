"""LLM-based intent classification (tier 1) for the conversational agents."""

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Tuple

from llm.base_client import BaseLLMClient, Message
from schemas.intents import (
    ClassificationResult,
    ClassificationSource,
    DashboardIntent,
    SupportIntent,
)

logger = logging.getLogger(__name__)

VALID_PERIODS = ("today", "week", "month", "year")


def extract_json_object(text: str) -> Optional[str]:
    """
    Return the first top-level, brace-balanced ``{...}`` substring of ``text``.

    Braces inside JSON string literals are ignored. Returns None if no
    balanced object is found.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # Unbalanced from this brace; try the next one
        start = text.find("{", start + 1)
    return None


class LLMIntentClassifier:
    """
    Asks an LLM to label a query with one of a fixed set of intents.

    The model also extracts structured fields and translates the query to
    English. Any failure (no client, transport error, timeout, unparseable
    or out-of-vocabulary output) yields an ``unknown`` result so the caller
    can fall back to keyword matching. ``classify`` never raises.
    """

    SYSTEM_PROMPT = ""
    INTENTS: Tuple[str, ...] = ()

    def __init__(
        self,
        llm_client: Optional[BaseLLMClient],
        timeout: float = 15.0,
        temperature: float = 0.1,
        max_tokens: int = 500
    ):
        """
        Initialize classifier.

        Args:
            llm_client: LLM client, or None to always defer to the fallback
            timeout: Seconds to wait for the model before giving up
            temperature: Sampling temperature
            max_tokens: Response token limit
        """
        self.llm_client = llm_client
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

    def _build_messages(self, query: str, context: str) -> list:
        user_message = f'Query: "{query}"'
        if context:
            user_message += (
                "\n\nConversation context (use it to resolve references such as "
                f"\"that client\" or \"the order\"):\n{context}"
            )
        user_message += "\n\nRespond with JSON only."

        return [
            Message(role="system", content=self.SYSTEM_PROMPT),
            Message(role="user", content=user_message),
        ]

    async def classify(self, query: str, context: str = "") -> ClassificationResult:
        """
        Classify a query.

        Args:
            query: Query after reference resolution
            context: Rendered session context, possibly empty

        Returns:
            ClassificationResult with source LLM (intent "unknown" on failure)
        """
        if self.llm_client is None:
            return ClassificationResult.unknown()

        try:
            response = await asyncio.wait_for(
                self.llm_client.chat(
                    messages=self._build_messages(query, context),
                    temperature=self.temperature,
                    max_tokens=self.max_tokens
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Intent classification timed out after {self.timeout}s")
            return ClassificationResult.unknown()
        except Exception as e:
            logger.error(f"Intent classification error: {e}")
            return ClassificationResult.unknown()

        return self._parse(response.content or "")

    def _parse(self, content: str) -> ClassificationResult:
        raw_json = extract_json_object(content)
        if raw_json is None:
            logger.warning("LLM classifier returned no JSON object")
            return ClassificationResult.unknown()

        try:
            parsed = json.loads(raw_json)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse LLM classifier response as JSON: {e}")
            return ClassificationResult.unknown()

        if not isinstance(parsed, dict):
            return ClassificationResult.unknown()

        intent = str(parsed.get("intent") or "").strip().lower()
        if intent not in self.INTENTS:
            logger.info(f"LLM classifier returned unsupported intent: {intent!r}")
            return ClassificationResult.unknown()

        extracted = self._normalize_extracted(parsed)
        translated = parsed.get("translated_query")

        logger.info(f"LLM classifier: intent={intent}, extracted={extracted}")

        return ClassificationResult(
            intent=intent,
            extracted_data=extracted,
            translated_query=translated if isinstance(translated, str) and translated else None,
            source=ClassificationSource.LLM,
        )

    def _normalize_extracted(self, parsed: Dict[str, Any]) -> Dict[str, Any]:
        extracted = parsed.get("extracted_data")
        extracted = dict(extracted) if isinstance(extracted, dict) else {}

        # Some models put period at the top level
        period = extracted.get("period") or parsed.get("period")
        if isinstance(period, str) and period.lower() in VALID_PERIODS:
            extracted["period"] = period.lower()
        else:
            extracted.pop("period", None)

        return {key: value for key, value in extracted.items() if value not in (None, "")}


class SupportIntentClassifier(LLMIntentClassifier):
    """Tier-1 classifier for the customer support agent."""

    INTENTS = tuple(intent.value for intent in SupportIntent)

    SYSTEM_PROMPT = """You analyze customer support queries for a studio that sells courses and classes.
Queries may be in any language (English, Hindi, Bengali, etc.).

## Intents
- "search_client" - find a client by email, phone or name
- "order_status" - status of a specific order
- "create_order" - create an order for a course or class for a client
- "create_client" - register a new client (name, email, phone)
- "weekly_classes" - classes scheduled this week
- "payment_info" - whether an order was paid, or pending payments
- "unknown" - anything else

## Fields to extract (only when present)
email, phone, clientName, clientEmail, orderId, serviceName, serviceType ("course" or "class")

## Response Format
Respond with valid JSON only:
{
  "intent": "<one of the intents above>",
  "extracted_data": {"email": "..."},
  "translated_query": "<English translation of the query>"
}

## Examples
- "Find client john@example.com" -> {"intent": "search_client", "extracted_data": {"email": "john@example.com"}, "translated_query": "Find client john@example.com"}
- "ग्राहक john@example.com खोजें" -> {"intent": "search_client", "extracted_data": {"email": "john@example.com"}, "translated_query": "Find client john@example.com"}
- "অর্ডার #123 এর অবস্থা কী?" -> {"intent": "order_status", "extracted_data": {"orderId": "123"}, "translated_query": "What is the status of order #123?"}
- "योग कोर्स के लिए ऑर्डर बनाएं" -> {"intent": "create_order", "extracted_data": {"serviceName": "Yoga Course", "serviceType": "course"}, "translated_query": "Create order for Yoga Course"}
- "Add a new client Jane Doe, jane@example.com, +1 555 123 4567" -> {"intent": "create_client", "extracted_data": {"clientName": "Jane Doe", "email": "jane@example.com", "phone": "+15551234567"}, "translated_query": "Add a new client Jane Doe, jane@example.com, +1 555 123 4567"}"""


class DashboardIntentClassifier(LLMIntentClassifier):
    """Tier-1 classifier for the business dashboard agent."""

    INTENTS = tuple(intent.value for intent in DashboardIntent)

    SYSTEM_PROMPT = """You analyze business analytics queries for a studio that sells courses and classes.
Queries may be in any language (English, Hindi, Bengali, etc.).

## Intents
- "revenue" - revenue for a period
- "outstanding_payments" - unpaid / pending order amounts
- "enrollment" - most popular courses and classes
- "attendance" - attendance statistics, optionally for one class
- "clients" - active, inactive and new clients
- "dashboard" - overall business summary
- "unknown" - anything else

## Fields to extract (only when present)
period ("today", "week", "month" or "year"), className

## Response Format
Respond with valid JSON only:
{
  "intent": "<one of the intents above>",
  "extracted_data": {"period": "month"},
  "translated_query": "<English translation of the query>"
}

## Examples
- "Show me monthly revenue" -> {"intent": "revenue", "extracted_data": {"period": "month"}, "translated_query": "Show me monthly revenue"}
- "मासिक राजस्व दिखाएं" -> {"intent": "revenue", "extracted_data": {"period": "month"}, "translated_query": "Show me monthly revenue"}
- "মাসিক রাজস্ব দেখান" -> {"intent": "revenue", "extracted_data": {"period": "month"}, "translated_query": "Show me monthly revenue"}
- "उपस्थिति रिपोर्ट" -> {"intent": "attendance", "extracted_data": {}, "translated_query": "attendance report"}
- "ড্যাশবোর্ড" -> {"intent": "dashboard", "extracted_data": {}, "translated_query": "dashboard"}"""
