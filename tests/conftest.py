"""Shared fixtures for the Pro license webhook test suite.

- sign / make_event / checkout_session build Stripe-shaped payloads and headers
- webhook_secret configures the process-wide signing secret
- client wraps a fresh app in a TestClient
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from typing import Any

import pytest
from fastapi.testclient import TestClient

from license_webhook.config import settings

WEBHOOK_SECRET = "whsec_test_secret"


@pytest.fixture
def sign():
    """Factory for valid Stripe-Signature headers (v1 scheme)."""

    def _sign(body: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
        ts = timestamp or int(time.time())
        signed_payload = f"{ts}.".encode() + body
        sig = hmac.new(secret.encode(), signed_payload, hashlib.sha256).hexdigest()
        return f"t={ts},v1={sig}"

    return _sign


@pytest.fixture
def make_event():
    """Factory for serialized Stripe event envelopes."""

    def _make(event_type: str, obj: dict[str, Any] | None = None, event_id: str = "evt_test") -> bytes:
        return json.dumps(
            {
                "id": event_id,
                "object": "event",
                "type": event_type,
                "data": {"object": obj or {}},
            }
        ).encode()

    return _make


@pytest.fixture
def checkout_session():
    """Factory for checkout.session objects (only the fields the handler reads)."""

    def _session(email: str | None = "a@example.com") -> dict[str, Any]:
        details = {"email": email} if email is not None else None
        return {"id": "cs_test_123", "object": "checkout.session", "customer_details": details}

    return _session


@pytest.fixture
def webhook_secret(monkeypatch) -> str:
    """Configure the process-wide signing secret for the duration of a test."""
    monkeypatch.setattr(settings, "stripe_webhook_secret", WEBHOOK_SECRET)
    return WEBHOOK_SECRET


@pytest.fixture
def app():
    from license_webhook.serve import create_app

    return create_app()


@pytest.fixture
def client(app, webhook_secret):
    """TestClient with the signing secret configured."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
