"""
Notification transports: send(title, message) to a chat webhook, Postmark
e-mail, or the log.

Transports raise NotificationError on failure; the scheduler logs it and keeps
the alert recorded as sent. Latency is bounded by the HTTP timeout.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from backend_sifa.config.settings import Settings
from backend_sifa.core.exceptions import NotificationError
from backend_sifa.sifa_logging import get_logger

logger = get_logger(__name__)

POSTMARK_API_URL = "https://api.postmarkapp.com/email"
DEFAULT_TIMEOUT_SEC = 10.0


class Notifier(ABC):
    """Channel-agnostic alert transport."""

    channel: str = "unknown"

    @abstractmethod
    def send(self, title: str, message: str) -> None:
        """Deliver one alert. Raises NotificationError on failure."""
        ...

    def close(self) -> None:
        """Release transport resources."""


class LogNotifier(Notifier):
    """Writes alerts to the log only; used when no channel is configured."""

    channel = "log"

    def send(self, title: str, message: str) -> None:
        logger.warning("alert_notification", channel=self.channel, title=title, body=message)


class _HttpNotifier(Notifier):
    def __init__(self, *, timeout_sec: float, client: httpx.Client | None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout_sec)

    def _post(self, url: str, payload: dict[str, Any], headers: dict[str, str] | None = None) -> httpx.Response:
        try:
            return self._client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise NotificationError(f"{self.channel}: request failed: {e}") from e

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class WebhookNotifier(_HttpNotifier):
    """
    POSTs {"title", "text"} as JSON. The text field carries title and body so
    Slack, Mattermost and similar incoming webhooks render it as-is.
    """

    channel = "webhook"

    def __init__(
        self,
        url: str,
        *,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(timeout_sec=timeout_sec, client=client)
        self._url = url

    def send(self, title: str, message: str) -> None:
        resp = self._post(self._url, {"title": title, "text": f"*{title}*\n{message}"})
        if resp.status_code >= 400:
            raise NotificationError(
                f"webhook returned HTTP {resp.status_code}: {resp.text[:200]}"
            )


class PostmarkNotifier(_HttpNotifier):
    """Sends a plain-text e-mail through the Postmark API."""

    channel = "postmark"

    def __init__(
        self,
        server_token: str,
        sender: str,
        recipient: str,
        *,
        message_stream: str = "outbound",
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(timeout_sec=timeout_sec, client=client)
        self._token = server_token
        self._sender = sender
        self._recipient = recipient
        self._message_stream = message_stream

    def send(self, title: str, message: str) -> None:
        payload = {
            "From": self._sender,
            "To": self._recipient,
            "Subject": title,
            "TextBody": message,
            "MessageStream": self._message_stream,
        }
        headers = {
            "Accept": "application/json",
            "X-Postmark-Server-Token": self._token,
        }
        resp = self._post(POSTMARK_API_URL, payload, headers)
        try:
            body = resp.json()
        except ValueError as e:
            raise NotificationError(f"postmark: undecodable response (HTTP {resp.status_code})") from e
        if resp.status_code != 200:
            raise NotificationError(
                f"postmark API error (code {body.get('ErrorCode')}): {body.get('Message')}"
            )
        logger.debug("postmark_email_sent", message_id=body.get("MessageID"), to=self._recipient)


def build_notifier(settings: Settings) -> Notifier:
    """Webhook if NOTIFY_WEBHOOK_URL is set, else Postmark if fully configured, else log."""
    if settings.notify_webhook_url:
        return WebhookNotifier(settings.notify_webhook_url, timeout_sec=settings.notify_timeout_sec)
    if settings.postmark_api_key and settings.alert_email_from and settings.alert_email_to:
        return PostmarkNotifier(
            settings.postmark_api_key,
            settings.alert_email_from,
            settings.alert_email_to,
            timeout_sec=settings.notify_timeout_sec,
        )
    if settings.postmark_api_key:
        logger.warning(
            "postmark_incomplete_config",
            message="POSTMARK_API_KEY set but ALERT_EMAIL_FROM / ALERT_EMAIL_TO missing; alerts go to the log",
        )
    return LogNotifier()
