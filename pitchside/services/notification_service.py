"""Text notifications for substitutions that have become due."""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT = 5  # seconds


class LoggingNotifier:
    """Default notifier: writes the message to the application log."""

    def notify(self, message: str) -> bool:
        logger.info("Notification: %s", message)
        return True


class WebhookNotifier:
    """POST ``{"message": text}`` to a webhook such as a chat bot or push relay."""

    def __init__(self, url: str, session: Optional[requests.Session] = None,
                 timeout: float = _REQUEST_TIMEOUT):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def notify(self, message: str) -> bool:
        """
        Deliver ``message``.

        Returns:
            True if the webhook accepted it; delivery failures are logged only
        """
        try:
            resp = self.session.post(self.url, json={"message": message}, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Notification to %s failed: %s", self.url, exc)
            return False
        logger.debug("Delivered notification to %s", self.url)
        return True
