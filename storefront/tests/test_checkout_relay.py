from __future__ import annotations

import http.client
import io
import json
import socket
import ssl
from datetime import datetime, timezone
from urllib import error as urllib_error

import pytest

from storefront.app.community import FALLBACK_MESSAGE, TICKET_CREATED_MESSAGE, CheckoutRelay

NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
ITEMS = [{"name": "Selfbot", "duration": "Monthly", "price": "$9.99"}]
USER = {"username": "alice", "timestamp": "2024-03-01T09:30:00Z"}


class FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class RecordingOpener:
    def __init__(self, body=None, exc=None) -> None:
        self.body = body
        self.exc = exc
        self.requests = []

    def __call__(self, request, timeout=None):
        self.requests.append((request, timeout))
        if self.exc is not None:
            raise self.exc
        return FakeResponse(self.body)


def _relay(opener, bot_url="http://bot.test:3001/") -> CheckoutRelay:
    return CheckoutRelay(bot_url=bot_url, timeout=2.5, opener=opener, clock=lambda: NOW)


def test_successful_handoff_reports_ticket():
    opener = RecordingOpener(
        body=json.dumps({"success": True, "message": "Ticket created successfully", "ticketId": 7, "channelId": "99"}).encode()
    )

    outcome = _relay(opener).checkout(ITEMS, USER)

    assert outcome.ticket_created is True
    assert outcome.message == TICKET_CREATED_MESSAGE
    assert outcome.receipt.ticket_id == 7
    request, timeout = opener.requests[0]
    assert request.full_url == "http://bot.test:3001/checkout"
    assert request.get_method() == "POST"
    assert timeout == 2.5
    sent = json.loads(request.data.decode("utf-8"))
    assert sent["checkoutId"] == f"checkout_{int(NOW.timestamp() * 1000)}"
    assert sent["total"] == 1
    assert sent["user"]["username"] == "alice"


def test_timeout_falls_back_to_discord_message():
    opener = RecordingOpener(exc=socket.timeout("timed out"))

    outcome = _relay(opener).checkout(ITEMS, USER)

    assert outcome.receipt is None
    assert outcome.ticket_created is False
    assert outcome.message == FALLBACK_MESSAGE
    assert outcome.summary.total == 1


def test_unreachable_bot_falls_back():
    outcome = _relay(RecordingOpener(exc=urllib_error.URLError("connection refused"))).checkout(ITEMS, USER)

    assert outcome.message == FALLBACK_MESSAGE


@pytest.mark.parametrize(
    "failure",
    [
        http.client.BadStatusLine("GARBAGE"),
        http.client.RemoteDisconnected("Remote end closed connection without response"),
        http.client.IncompleteRead(b"{\"succ"),
        ssl.SSLError("wrong version number"),
        urllib_error.HTTPError(
            "http://bot.test:3001/checkout", 503, "Service Unavailable", {}, io.BytesIO(b"{}")
        ),
    ],
)
def test_broken_bot_responses_fall_back(failure):
    outcome = _relay(RecordingOpener(exc=failure)).checkout(ITEMS, USER)

    assert outcome.receipt is None
    assert outcome.message == FALLBACK_MESSAGE
    assert outcome.summary.checkout_id.startswith("checkout_")


def test_garbled_reply_falls_back():
    outcome = _relay(RecordingOpener(body=b"<html>oops</html>")).checkout(ITEMS, USER)

    assert outcome.receipt is None


def test_declined_ticket_keeps_receipt_but_uses_fallback_message():
    opener = RecordingOpener(body=json.dumps({"success": False, "error": "Failed to create ticket"}).encode())

    outcome = _relay(opener).checkout(ITEMS, USER)

    assert outcome.receipt is not None
    assert outcome.ticket_created is False
    assert outcome.message == FALLBACK_MESSAGE


def test_missing_bot_url_skips_delivery():
    opener = RecordingOpener(exc=AssertionError("should not be called"))

    outcome = _relay(opener, bot_url=None).checkout(ITEMS, USER)

    assert opener.requests == []
    assert outcome.message == FALLBACK_MESSAGE
