"""
Stripe service for checkout, billing portal, and webhook verification.
"""
import json
import logging
from typing import Optional

import stripe

from mogumogu_api.core.config import (
    STRIPE_SECRET_KEY,
    STRIPE_WEBHOOK_SECRET,
    STRIPE_MONTHLY_PRICE_ID,
    STRIPE_YEARLY_PRICE_ID,
    STRIPE_TRIAL_DAYS,
)

logger = logging.getLogger(__name__)

# Initialize Stripe client
if STRIPE_SECRET_KEY:
    stripe.api_key = STRIPE_SECRET_KEY
else:
    logger.warning("STRIPE_SECRET_KEY not configured - Stripe features disabled")


def get_price_id(plan: str) -> Optional[str]:
    """Price for a billing interval; anything but "yearly" is monthly."""
    return STRIPE_YEARLY_PRICE_ID if plan == "yearly" else STRIPE_MONTHLY_PRICE_ID


def plan_from_price_id(price_id: Optional[str]) -> str:
    if price_id and price_id == STRIPE_MONTHLY_PRICE_ID:
        return "premium_monthly"
    if price_id and price_id == STRIPE_YEARLY_PRICE_ID:
        return "premium_yearly"
    return "free"


def create_customer(user_id: str, email: Optional[str]) -> str:
    """Create a Stripe customer tagged with the identity-service user id."""
    customer = stripe.Customer.create(
        email=email,
        metadata={"supabase_user_id": user_id},
    )
    logger.info(f"Created Stripe customer: user_id={user_id}, customer_id={customer.id}")
    return customer.id


def create_checkout_session(customer_id: str, user_id: str, price_id: str, origin: str) -> str:
    """
    Create a subscription checkout session with a free trial.

    Returns:
        Checkout URL
    """
    session = stripe.checkout.Session.create(
        customer=customer_id,
        mode="subscription",
        payment_method_types=["card"],
        line_items=[{"price": price_id, "quantity": 1}],
        subscription_data={
            "trial_period_days": STRIPE_TRIAL_DAYS,
            "metadata": {"supabase_user_id": user_id},
        },
        success_url=f"{origin}/?checkout=success&session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{origin}/?checkout=cancel",
        metadata={"supabase_user_id": user_id},
    )
    logger.info(f"Created checkout session: session_id={session.id}, user_id={user_id}")
    return session.url


def create_portal_session(customer_id: str, origin: str) -> str:
    """Billing portal URL for a customer."""
    session = stripe.billing_portal.Session.create(
        customer=customer_id,
        return_url=f"{origin}/?tab=settings",
    )
    logger.info(f"Created billing portal session for customer_id={customer_id}")
    return session.url


def retrieve_checkout_session(session_id: str) -> dict:
    """Checkout session with its subscription expanded, as a plain dict."""
    session = stripe.checkout.Session.retrieve(session_id, expand=["subscription"])
    return session.to_dict()


def verify_webhook(request_body: bytes, signature: Optional[str]) -> dict:
    """
    Verify and parse Stripe webhook event.

    Args:
        request_body: Raw request body bytes
        signature: Stripe-Signature header value

    Returns:
        Parsed event dictionary

    Raises:
        ValueError: If webhook verification fails
    """
    if not STRIPE_WEBHOOK_SECRET:
        raise ValueError("STRIPE_WEBHOOK_SECRET not configured")
    if not signature:
        raise ValueError("Missing Stripe-Signature header")

    try:
        stripe.Webhook.construct_event(request_body, signature, STRIPE_WEBHOOK_SECRET)
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {e}")
        raise ValueError(f"Invalid webhook payload: {e}")
    except stripe.SignatureVerificationError as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise ValueError(f"Invalid signature: {e}")

    event = json.loads(request_body)
    logger.info(f"Verified webhook event: {event.get('type')}, id={event.get('id')}")
    return event
