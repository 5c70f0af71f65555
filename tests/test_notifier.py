"""
Tests for notification transports (alerts.notifier) and alert text
(alerts.messages). HTTP is served by httpx.MockTransport; nothing leaves the
process.
"""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import timedelta

import httpx
import pytest

from backend_sifa.alerts.messages import alert_message, alert_title, humanize_elapsed
from backend_sifa.alerts.notifier import (
    POSTMARK_API_URL,
    LogNotifier,
    PostmarkNotifier,
    WebhookNotifier,
    build_notifier,
)
from backend_sifa.core.exceptions import NotificationError
from backend_sifa.database import Target


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


# --- Webhook ---


def test_webhook_posts_title_and_text():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="ok")

    notifier = WebhookNotifier("https://hooks.example.com/abc", client=_client(handler))
    notifier.send("Alert: Target backup is overdue", "body text")

    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://hooks.example.com/abc"
    payload = json.loads(request.content)
    assert payload == {
        "title": "Alert: Target backup is overdue",
        "text": "*Alert: Target backup is overdue*\nbody text",
    }


def test_webhook_http_error_raises():
    notifier = WebhookNotifier(
        "https://hooks.example.com/abc",
        client=_client(lambda request: httpx.Response(500, text="boom")),
    )
    with pytest.raises(NotificationError, match="HTTP 500"):
        notifier.send("t", "m")


def test_webhook_transport_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    notifier = WebhookNotifier("https://hooks.example.com/abc", client=_client(handler))
    with pytest.raises(NotificationError, match="request failed"):
        notifier.send("t", "m")


# --- Postmark ---


def test_postmark_sends_email():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ErrorCode": 0, "Message": "OK", "MessageID": "m-1"})

    notifier = PostmarkNotifier("server-token", "sifa@example.com", "ops@example.com", client=_client(handler))
    notifier.send("Subject line", "Body text")

    request = seen[0]
    assert str(request.url) == POSTMARK_API_URL
    assert request.headers["X-Postmark-Server-Token"] == "server-token"
    assert json.loads(request.content) == {
        "From": "sifa@example.com",
        "To": "ops@example.com",
        "Subject": "Subject line",
        "TextBody": "Body text",
        "MessageStream": "outbound",
    }


def test_postmark_api_error_raises():
    notifier = PostmarkNotifier(
        "bad-token",
        "sifa@example.com",
        "ops@example.com",
        client=_client(
            lambda request: httpx.Response(401, json={"ErrorCode": 10, "Message": "Bad or missing API token"})
        ),
    )
    with pytest.raises(NotificationError, match=r"code 10"):
        notifier.send("t", "m")


def test_postmark_undecodable_response_raises():
    notifier = PostmarkNotifier(
        "token",
        "sifa@example.com",
        "ops@example.com",
        client=_client(lambda request: httpx.Response(502, text="<html>bad gateway</html>")),
    )
    with pytest.raises(NotificationError, match="undecodable"):
        notifier.send("t", "m")


# --- Selection ---


def test_build_notifier_selection(settings):
    assert isinstance(build_notifier(settings), LogNotifier)

    webhook = build_notifier(replace(settings, notify_webhook_url="https://hooks.example.com/x"))
    assert isinstance(webhook, WebhookNotifier)
    webhook.close()

    postmark_settings = replace(
        settings,
        postmark_api_key="k",
        alert_email_from="a@example.com",
        alert_email_to="b@example.com",
    )
    postmark = build_notifier(postmark_settings)
    assert isinstance(postmark, PostmarkNotifier)
    postmark.close()

    assert isinstance(build_notifier(replace(settings, postmark_api_key="k")), LogNotifier)


def test_log_notifier_does_not_raise():
    LogNotifier().send("title", "message")


# --- Message text ---


@pytest.mark.parametrize(
    "elapsed, expected",
    [
        (timedelta(0), "now"),
        (timedelta(seconds=1), "1 second ago"),
        (timedelta(minutes=5, seconds=30), "5 minutes ago"),
        (timedelta(hours=2), "2 hours ago"),
        (timedelta(hours=25), "1 day ago"),
        (timedelta(days=15), "2 weeks ago"),
    ],
)
def test_humanize_elapsed(elapsed, expected):
    assert humanize_elapsed(elapsed) == expected


def test_alert_text_with_mute_link():
    target = Target(id="backup", max_age=3600, alert_schedule="@hourly")
    assert alert_title(target) == "Alert: Target backup is overdue"

    message = alert_message(target, timedelta(hours=2), "https://sifa.example.com/mute/backup/abc")
    assert message.startswith("Target backup has not acted since 2 hours ago (allowed silence: 3600 seconds).")
    assert message.endswith("https://sifa.example.com/mute/backup/abc")


def test_alert_text_without_mute_link():
    target = Target(id="backup", max_age=3600, alert_schedule="@hourly")
    message = alert_message(target, timedelta(hours=2))
    assert "mute" not in message.lower()
