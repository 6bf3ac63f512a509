"""Stripe webhook signature verification.

Security contract:
- Verification runs over the exact raw body bytes, before any parsing
- Missing secret or missing Stripe-Signature header -> always fails (fail-closed)
- Timestamp tolerance is the Stripe library default (300s) to limit replay
"""

from __future__ import annotations

import logging

import stripe

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "stripe-signature"


class VerificationError(Exception):
    """Raised when a webhook payload cannot be trusted."""


def verify(
    body: bytes,
    signature_header: str | None,
    secret: str,
    api_key: str | None = None,
) -> stripe.Event:
    """Verify a Stripe webhook and return the decoded event.

    Args:
        body: Raw request body bytes
        signature_header: Value of the Stripe-Signature header
        secret: Webhook signing secret (whsec_...)
        api_key: Stripe secret key attached to the returned event

    Returns:
        The verified stripe.Event

    Raises:
        VerificationError: If the signature, timestamp or payload is invalid
    """
    if not secret:
        logger.warning("STRIPE_WEBHOOK_SECRET not set, rejecting webhook")
        raise VerificationError("Webhook signing secret is not configured")
    if not signature_header:
        raise VerificationError("Missing Stripe-Signature header")

    try:
        return stripe.Webhook.construct_event(body, signature_header, secret, api_key=api_key)
    except stripe.SignatureVerificationError as e:
        raise VerificationError(str(e)) from e
    except ValueError as e:
        # Signature matched but the body is not a JSON event
        raise VerificationError(f"Invalid payload: {e}") from e
