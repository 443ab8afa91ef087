"""Best-effort webhook notifications for created records."""

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Set

import requests

logger = logging.getLogger(__name__)


class WebhookNotifier:
    """
    Posts record-created events to internal webhook endpoints.

    Notifications are fire-and-forget: ``notify`` schedules the POST on a
    worker thread and returns immediately. Failures are logged together with
    the payload and never reach the caller.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        timeout: float = 5.0,
        enabled: bool = True
    ):
        """
        Initialize notifier.

        Args:
            base_url: Base URL of the service exposing the webhooks
            timeout: Request timeout in seconds
            enabled: When False, events are only logged
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.enabled = enabled
        self._pending: Set[asyncio.Task] = set()

    def _get_headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "X-Internal-API": "true",
        }

    def webhook_url(self, event: str) -> str:
        return f"{self.base_url}/api/internal/webhooks/{event}"

    def notify(self, event: str, payload: Dict[str, Any]) -> Optional[asyncio.Task]:
        """
        Schedule a webhook POST for ``event``.

        Args:
            event: Event name, e.g. "order-created"
            payload: JSON-serialisable event body

        Returns:
            The background task, or None if notifications are disabled
        """
        if not self.enabled:
            logger.info(f"Notification skipped (disabled) - Event: {event}")
            return None

        task = asyncio.get_running_loop().create_task(self._deliver(event, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deliver(self, event: str, payload: Dict[str, Any]) -> bool:
        url = self.webhook_url(event)
        try:
            logger.info(f"Making external API call to: {url}")
            response = await asyncio.to_thread(
                requests.post,
                url,
                data=json.dumps(payload, default=str),
                headers=self._get_headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            logger.info(f"External API call successful: {event} ({response.status_code})")
            return True
        except requests.RequestException as e:
            logger.warning(f"External API call failed: {e}")
            logger.info(
                f"Fallback logging - Event: {event} "
                f"{json.dumps(payload, default=str, ensure_ascii=False)}"
            )
            return False

    async def drain(self) -> None:
        """Wait for in-flight notifications to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
