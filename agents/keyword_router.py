"""Deterministic multilingual keyword matcher (tier 2 intent classification)."""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern

import yaml

from config.settings import DEFAULT_KEYWORDS_PATH
from schemas.intents import AgentType, ClassificationResult, ClassificationSource

logger = logging.getLogger(__name__)

DEFAULT_PERIOD = "month"


def _flatten(keyword_sets: Dict[str, List[str]]) -> List[str]:
    """Merge language-tagged keyword lists into one lower-cased list."""
    keywords: List[str] = []
    for words in (keyword_sets or {}).values():
        for word in words or []:
            word = str(word).lower()
            if word not in keywords:
                keywords.append(word)
    return keywords


@dataclass
class IntentRule:
    """One ordered predicate over substring containment."""
    intent: str
    keywords: List[str]
    min_matches: int = 1
    requires: List[List[str]] = field(default_factory=list)
    pattern: Optional[Pattern] = None

    @classmethod
    def from_config(cls, raw: dict) -> "IntentRule":
        pattern = raw.get("pattern")
        return cls(
            intent=raw["intent"],
            keywords=_flatten(raw.get("keywords", {})),
            min_matches=int(raw.get("min_matches", 1)),
            requires=[_flatten(group) for group in raw.get("requires", [])],
            pattern=re.compile(pattern, re.IGNORECASE) if pattern else None,
        )

    def matches(self, lower_query: str) -> bool:
        hits = sum(1 for keyword in self.keywords if keyword in lower_query)
        if hits < self.min_matches:
            return False

        for group in self.requires:
            if not any(keyword in lower_query for keyword in group):
                return False

        if self.pattern is not None and not self.pattern.search(lower_query):
            return False

        return True


class KeywordIntentMatcher:
    """
    Ordered keyword rules for one agent.

    Rules come from ``config/intent_keywords.yaml``; the first rule whose
    predicate holds wins. When nothing matches the caller answers with
    ``fallback_message`` instead of routing.
    """

    def __init__(self, agent_type: AgentType, keywords_path: Optional[str] = None):
        """
        Initialize matcher.

        Args:
            agent_type: Which agent's rule table to load
            keywords_path: Path to the keyword YAML (defaults to the bundled file)
        """
        self.agent_type = agent_type
        config = self._load_config(keywords_path or DEFAULT_KEYWORDS_PATH)

        agent_config = config.get(agent_type.value, {})
        self.rules = [IntentRule.from_config(rule) for rule in agent_config.get("rules", [])]
        self.fallback_message = " ".join(str(agent_config.get("fallback_message", "")).split())
        self.periods = {
            period: _flatten(keyword_sets)
            for period, keyword_sets in (config.get("periods") or {}).items()
        }

        logger.debug(f"Loaded {len(self.rules)} keyword rules for {agent_type.value} agent")

    def _load_config(self, path) -> dict:
        """Load keyword rules from YAML."""
        with open(path, 'r', encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @property
    def intents(self) -> List[str]:
        return [rule.intent for rule in self.rules]

    def detect_period(self, query: str, default: Optional[str] = DEFAULT_PERIOD) -> Optional[str]:
        """First reporting period whose keywords occur in the query."""
        lower_query = query.lower()
        for period, keywords in self.periods.items():
            if any(keyword in lower_query for keyword in keywords):
                return period
        return default

    def match(self, query: str) -> Optional[ClassificationResult]:
        """
        Classify a query by keyword containment.

        Args:
            query: Query text in any supported language

        Returns:
            ClassificationResult from the first matching rule, or None
        """
        lower_query = query.lower()

        for rule in self.rules:
            if rule.matches(lower_query):
                extracted = {}
                if self.agent_type == AgentType.DASHBOARD:
                    extracted["period"] = self.detect_period(query)
                logger.info(f"Keyword match ({self.agent_type.value}): {rule.intent}")
                return ClassificationResult(
                    intent=rule.intent,
                    extracted_data=extracted,
                    source=ClassificationSource.KEYWORDS,
                )

        logger.info(f"No keyword rule matched for {self.agent_type.value} query")
        return None
