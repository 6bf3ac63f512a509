"""Webhook HTTP handler: FastAPI route for Stripe checkout notifications.

The handler:
1. Reads the raw body (needed for signature verification)
2. Verifies the Stripe signature
3. Ignores every event type except checkout.session.completed
4. Marks the purchaser's profile as Pro for one year
5. Returns 200 {"received": true}

Response contract:
- 400 plain text on signature failure
- 500 {"error": ...} when the profile update fails (Stripe retries delivery)
- 405 with Allow: POST for any other method
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from license_webhook.config import settings
from license_webhook.licensing import license_expiry
from license_webhook.record_store import RecordStoreError, get_record_store
from license_webhook.verification import SIGNATURE_HEADER, VerificationError, verify

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/api/webhook"
CHECKOUT_COMPLETED = "checkout.session.completed"

_UPDATE_FAILED_MESSAGE = "Failed to update database"


def _log_webhook(event_type: str, event_id: str, status: str) -> None:
    """Audit log for webhook activity."""
    logger.info("WEBHOOK_AUDIT event=%s id=%s status=%s", event_type, event_id, status)


def _lookup(obj: Any, *path: str) -> Any:
    """Walk nested keys of a Stripe object, returning None if any step is missing."""
    for key in path:
        try:
            obj = obj[key]
        except (KeyError, TypeError):
            return None
    return obj


async def _grant_pro_license(email: str) -> None:
    expiry = license_expiry()
    await get_record_store().update_where(
        settings.profiles_table,
        "email",
        email,
        {"is_pro": True, "license_expiry": expiry.isoformat()},
    )


async def handle_webhook(request: Request) -> Response:
    """Verify a Stripe webhook and apply the Pro upgrade for completed checkouts."""
    body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)

    try:
        event = verify(
            body,
            signature,
            settings.stripe_webhook_secret,
            api_key=settings.stripe_secret_key or None,
        )
    except VerificationError as e:
        logger.warning("Webhook error: %s", e)
        _log_webhook("unknown", "unknown", "signature_failed")
        return PlainTextResponse(f"Webhook Error: {e}", status_code=400)

    event_type = _lookup(event, "type") or "unknown"
    event_id = _lookup(event, "id") or ""

    if event_type != CHECKOUT_COMPLETED:
        _log_webhook(event_type, event_id, "ignored")
        return JSONResponse({"received": True})

    session = _lookup(event, "data", "object")
    email = _lookup(session, "customer_details", "email")
    if not email:
        logger.warning("Checkout session %s has no customer email, skipping", _lookup(session, "id"))
        _log_webhook(event_type, event_id, "missing_email")
        return JSONResponse({"received": True})

    logger.info("Payment received from: %s", email)

    try:
        await _grant_pro_license(email)
    except RecordStoreError as e:
        logger.error("Failed to update profile for %s: %s", email, e)
        _log_webhook(event_type, event_id, "update_failed")
        return JSONResponse({"error": _UPDATE_FAILED_MESSAGE}, status_code=500)

    logger.info("Profile %s upgraded to Pro", email)
    _log_webhook(event_type, event_id, "updated")
    return JSONResponse({"received": True})


async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Plain-text 405 for every non-POST method on the webhook path.

    Other HTTP errors keep FastAPI's default JSON body.
    """
    if exc.status_code == 405 and request.url.path == WEBHOOK_PATH:
        return PlainTextResponse("Method Not Allowed", status_code=405, headers={"Allow": "POST"})
    return await http_exception_handler(request, exc)


def register_webhook_routes(app: FastAPI) -> None:
    """Register the webhook endpoint and its 405 handler on the FastAPI app."""

    @app.post(WEBHOOK_PATH)
    async def stripe_webhook(request: Request):
        """Receive Stripe webhooks (signature-verified)."""
        return await handle_webhook(request)

    app.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)

    logger.info("Webhook route registered: %s", WEBHOOK_PATH)
