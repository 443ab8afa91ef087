"""Rewrites deictic references ("that client") using session memory."""

import logging
import re
from typing import Optional

from .session_store import SessionStore

logger = logging.getLogger(__name__)


class ReferenceResolver:
    """
    Best-effort syntactic rewrite of references to remembered entities.

    "email that client" becomes "email jane@example.com" when the session
    remembers that client. The rewrite is a plain case-insensitive substring
    replacement; it does not parse the sentence and may leave it ungrammatical.
    """

    TRIGGER_PHRASES = (
        "that client", "this client", "the client",
        "that order", "this order", "the order",
        "that service", "this service", "the service",
        "them", "it", "he", "she", "they",
        "same client", "same order", "same service",
    )

    CLIENT_PATTERN = re.compile(r"that client|this client|the client", re.IGNORECASE)
    ORDER_PATTERN = re.compile(r"that order|this order|the order", re.IGNORECASE)
    SERVICE_PATTERN = re.compile(r"that service|this service|the service", re.IGNORECASE)

    def __init__(self, store: SessionStore):
        self.store = store

    def needs_resolution(self, query: str) -> bool:
        """Whether the query contains any reference trigger phrase."""
        lower_query = query.lower()
        return any(phrase in lower_query for phrase in self.TRIGGER_PHRASES)

    def resolve(self, session_id: Optional[str], query: str) -> str:
        """
        Replace references in ``query`` with remembered values.

        Args:
            session_id: Session whose memory to use; the default session if omitted
            query: Raw user query

        Returns:
            The rewritten query, or the original when nothing can be resolved
        """
        if not self.needs_resolution(query):
            return query

        client = self.store.get_client_context(session_id)
        service = self.store.get_service_context(session_id)
        if client is None and service is None:
            return query

        resolved = query

        if client and client.email:
            resolved = self.CLIENT_PATTERN.sub(lambda _: client.email, resolved)

        if service and service.order_id:
            order_ref = f"order {service.order_id}"
            resolved = self.ORDER_PATTERN.sub(lambda _: order_ref, resolved)

        if service and service.service_name:
            resolved = self.SERVICE_PATTERN.sub(lambda _: service.service_name, resolved)

        if resolved != query:
            logger.info(f"Resolved references: '{query}' -> '{resolved}'")
        return resolved
