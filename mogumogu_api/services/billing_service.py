"""
Billing service: subscription snapshots and Stripe webhook processing.

Handles the webhook event switch, checkout verification sync and the
subscription status read used by the client.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mogumogu_api.core.timeutil import from_unix, utcnow
from mogumogu_api.db.models.subscription import Subscription
from mogumogu_api.db.models.user import User
from mogumogu_api.services.stripe_service import plan_from_price_id

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = Subscription.ACTIVE_STATUSES


def is_active_status(status: Optional[str]) -> bool:
    return status in ACTIVE_STATUSES


def _first_item(subscription_data: Dict) -> Dict:
    items = (subscription_data.get("items") or {}).get("data") or []
    return items[0] if items else {}


def _period(subscription_data: Dict, key: str) -> Optional[int]:
    # Newer API versions report billing periods on the subscription item
    return subscription_data.get(key) or _first_item(subscription_data).get(key)


def _iso(timestamp: Optional[int]) -> Optional[str]:
    value = from_unix(timestamp)
    return value.isoformat() + "Z" if value else None


def subscription_view(subscription_data: Dict) -> Dict[str, Any]:
    """Client-facing subscription fields straight from Stripe data."""
    price_id = (_first_item(subscription_data).get("price") or {}).get("id")
    return {
        "status": subscription_data.get("status"),
        "plan": plan_from_price_id(price_id),
        "trial_end": _iso(subscription_data.get("trial_end")),
        "current_period_end": _iso(_period(subscription_data, "current_period_end")),
        "cancel_at_period_end": bool(subscription_data.get("cancel_at_period_end")),
    }


def find_user(db: Session, customer_id: Optional[str], metadata: Optional[Dict] = None) -> Optional[User]:
    """
    Resolve the user behind a Stripe object.

    Looks up by customer id first (user row, then snapshot), then by the
    ``supabase_user_id`` metadata written at checkout.
    """
    if customer_id:
        user = db.query(User).filter(User.stripe_customer_id == customer_id).first()
        if user:
            return user
        snapshot = db.query(Subscription).filter(Subscription.stripe_customer_id == customer_id).first()
        if snapshot:
            return db.query(User).filter(User.id == snapshot.user_id).first()

    user_id = (metadata or {}).get("supabase_user_id")
    if user_id:
        return db.query(User).filter(User.id == user_id).first()
    return None


def get_or_create_user(db: Session, user_id: str, email: Optional[str] = None) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        user = User(id=user_id, email=email, is_premium=False)
        db.add(user)
        db.flush()
    elif email and not user.email:
        user.email = email
    return user


def _get_or_create_snapshot(db: Session, user_id: str) -> Subscription:
    snapshot = db.query(Subscription).filter(Subscription.user_id == user_id).first()
    if not snapshot:
        snapshot = Subscription(user_id=user_id, plan="free", status="inactive")
        db.add(snapshot)
    return snapshot


def sync_subscription(db: Session, user: User, subscription_data: Dict) -> Subscription:
    """
    Upsert the user's snapshot from a Stripe subscription and set the
    premium flag. Caller commits.
    """
    price_id = (_first_item(subscription_data).get("price") or {}).get("id")
    status = subscription_data.get("status")
    customer_id = subscription_data.get("customer")

    snapshot = _get_or_create_snapshot(db, user.id)
    snapshot.stripe_customer_id = customer_id
    snapshot.stripe_subscription_id = subscription_data.get("id")
    snapshot.plan = plan_from_price_id(price_id)
    snapshot.status = status
    snapshot.trial_start = from_unix(subscription_data.get("trial_start"))
    snapshot.trial_end = from_unix(subscription_data.get("trial_end"))
    snapshot.current_period_start = from_unix(_period(subscription_data, "current_period_start"))
    snapshot.current_period_end = from_unix(_period(subscription_data, "current_period_end"))
    snapshot.cancel_at_period_end = bool(subscription_data.get("cancel_at_period_end"))
    snapshot.updated_at = utcnow()

    user.is_premium = is_active_status(status)
    if customer_id:
        user.stripe_customer_id = customer_id

    logger.info(
        f"Subscription synced: user_id={user.id}, status={status}, plan={snapshot.plan}, "
        f"premium={user.is_premium}"
    )
    return snapshot


# ============================================
# Webhook event handlers
# ============================================

def handle_checkout_session_completed(event_data: Dict, db: Session) -> None:
    session_data = event_data.get("object", {})
    user_id = (session_data.get("metadata") or {}).get("supabase_user_id")
    customer_id = session_data.get("customer")
    if not user_id or not customer_id:
        logger.info("Checkout completed without user metadata, ignoring")
        return

    user = get_or_create_user(db, user_id, session_data.get("customer_email"))
    user.stripe_customer_id = customer_id
    logger.info(f"Checkout completed: user_id={user_id}, customer_id={customer_id}")


def handle_subscription_upserted(event_data: Dict, db: Session) -> None:
    """customer.subscription.created / customer.subscription.updated"""
    subscription_data = event_data.get("object", {})
    metadata = subscription_data.get("metadata") or {}
    user = find_user(db, subscription_data.get("customer"), metadata)

    if not user and metadata.get("supabase_user_id"):
        user = get_or_create_user(db, metadata["supabase_user_id"])
    if not user:
        logger.warning(f"Subscription event for unknown customer_id={subscription_data.get('customer')}, ignoring")
        return

    sync_subscription(db, user, subscription_data)


def handle_subscription_deleted(event_data: Dict, db: Session) -> None:
    """Downgrade to free; keep the customer id for reactivation."""
    subscription_data = event_data.get("object", {})
    user = find_user(db, subscription_data.get("customer"), subscription_data.get("metadata"))
    if not user:
        logger.warning(f"Subscription deleted for unknown customer_id={subscription_data.get('customer')}, ignoring")
        return

    snapshot = _get_or_create_snapshot(db, user.id)
    snapshot.plan = "free"
    snapshot.status = "canceled"
    snapshot.stripe_subscription_id = None
    snapshot.cancel_at_period_end = False
    snapshot.updated_at = utcnow()

    user.is_premium = False
    logger.info(f"User downgraded: user_id={user.id}")


def _set_status_for_invoice(event_data: Dict, db: Session, status: str) -> None:
    invoice = event_data.get("object", {})
    subscription_id = invoice.get("subscription")
    if not subscription_id:
        return

    snapshot = db.query(Subscription).filter(Subscription.stripe_subscription_id == subscription_id).first()
    if not snapshot:
        logger.info(f"Invoice for unknown subscription_id={subscription_id}, ignoring")
        return

    snapshot.status = status
    snapshot.updated_at = utcnow()
    logger.info(f"Invoice event: user_id={snapshot.user_id}, status={status}")


def handle_invoice_payment_failed(event_data: Dict, db: Session) -> None:
    _set_status_for_invoice(event_data, db, "past_due")


def handle_invoice_payment_succeeded(event_data: Dict, db: Session) -> None:
    _set_status_for_invoice(event_data, db, "active")


EVENT_HANDLERS = {
    "checkout.session.completed": handle_checkout_session_completed,
    "customer.subscription.created": handle_subscription_upserted,
    "customer.subscription.updated": handle_subscription_upserted,
    "customer.subscription.deleted": handle_subscription_deleted,
    "invoice.payment_failed": handle_invoice_payment_failed,
    "invoice.payment_succeeded": handle_invoice_payment_succeeded,
}


def handle_event(event: Dict, db: Session) -> bool:
    """
    Dispatch one verified webhook event.

    Write failures are logged and rolled back; the event is still
    acknowledged. Malformed event data is handled the same way.

    Returns:
        True when a handler ran and committed
    """
    event_type = event.get("type")
    handler = EVENT_HANDLERS.get(event_type)
    if not handler:
        logger.debug(f"Ignoring webhook event type: {event_type}")
        return False

    try:
        handler(event.get("data") or {}, db)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Webhook handler failed for {event_type} id={event.get('id')}: {e}")
        return False


# ============================================
# Client-facing reads and checkout verification
# ============================================

def get_subscription_status(db: Session, user_id: str) -> Dict[str, Any]:
    """``{isPremium, subscription}`` from the snapshot, falling back to the user flag."""
    try:
        snapshot = db.query(Subscription).filter(Subscription.user_id == user_id).first()
        if snapshot:
            return {"isPremium": snapshot.is_active, "subscription": snapshot.to_dict()}

        user = db.query(User).filter(User.id == user_id).first()
        return {"isPremium": bool(user and user.is_premium), "subscription": None}
    except SQLAlchemyError as e:
        logger.error(f"Subscription status lookup failed for user_id={user_id}: {e}")
        db.rollback()
        return {"isPremium": False, "subscription": None}


def apply_checkout_session(db: Session, session_data: Dict) -> Dict[str, Any]:
    """
    Sync a retrieved checkout session and report premium state.

    The response is built from Stripe data; the database write is best effort.
    """
    if session_data.get("status") != "complete":
        return {"isPremium": False, "reason": "session_not_complete"}

    subscription_data = session_data.get("subscription")
    if not isinstance(subscription_data, dict):
        return {"isPremium": False, "reason": "no_subscription"}

    user_id = (subscription_data.get("metadata") or {}).get("supabase_user_id") \
        or (session_data.get("metadata") or {}).get("supabase_user_id")
    if not user_id:
        return {"isPremium": False, "reason": "no_user_id"}

    try:
        user = get_or_create_user(db, user_id, session_data.get("customer_email"))
        sync_subscription(db, user, subscription_data)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Checkout sync failed for user_id={user_id}: {e}")

    return {
        "isPremium": is_active_status(subscription_data.get("status")),
        "subscription": subscription_view(subscription_data),
    }
