import unittest
from unittest.mock import MagicMock

import requests

from pitchside.services import LoggingNotifier, WebhookNotifier


class NotificationServiceTests(unittest.TestCase):
    def test_logging_notifier(self) -> None:
        with self.assertLogs("pitchside.services.notification_service", level="INFO") as logs:
            self.assertTrue(LoggingNotifier().notify("Time to sub: A -> B"))
        self.assertIn("Time to sub: A -> B", logs.output[0])

    def test_webhook_posts_message(self) -> None:
        session = MagicMock(spec=requests.Session)
        notifier = WebhookNotifier("https://hooks.example.test/sub", session=session, timeout=3)

        self.assertTrue(notifier.notify("Time for 2 substitutions"))
        session.post.assert_called_once_with(
            "https://hooks.example.test/sub",
            json={"message": "Time for 2 substitutions"},
            timeout=3,
        )
        session.post.return_value.raise_for_status.assert_called_once()

    def test_webhook_failure_is_logged(self) -> None:
        session = MagicMock(spec=requests.Session)
        session.post.side_effect = requests.ConnectionError("unreachable")
        notifier = WebhookNotifier("https://hooks.example.test/sub", session=session)

        with self.assertLogs("pitchside.services.notification_service", level="WARNING"):
            self.assertFalse(notifier.notify("Halftime: 2 substitutions"))

    def test_webhook_http_error_is_logged(self) -> None:
        session = MagicMock(spec=requests.Session)
        session.post.return_value.raise_for_status.side_effect = requests.HTTPError("500")
        notifier = WebhookNotifier("https://hooks.example.test/sub", session=session)

        with self.assertLogs("pitchside.services.notification_service", level="WARNING"):
            self.assertFalse(notifier.notify("Time to sub: A -> B"))


if __name__ == "__main__":
    unittest.main()
