"""
Subscription status, checkout and billing portal endpoints.
"""
import logging
import stripe
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from mogumogu_api.core.auth_dependency import Identity, get_current_identity
from mogumogu_api.core.config import APP_URL
from mogumogu_api.core.errors import InvalidInput, InternalError, UpstreamError
from mogumogu_api.db.models.subscription import Subscription
from mogumogu_api.db.session import get_db
from mogumogu_api.schemas.billing import CheckoutRequest, VerifyCheckoutRequest
from mogumogu_api.services import billing_service, stripe_service

logger = logging.getLogger(__name__)

# Stripe error text stays in the log, never in the response
PAYMENT_ERROR_MESSAGE = "Payment service error"

router = APIRouter(prefix="/api", tags=["Billing"])


def _origin(request: Request) -> str:
    origin = request.headers.get("origin") or request.headers.get("referer") or APP_URL
    return origin.rstrip("/")


# ✅ SUBSCRIPTION STATUS
@router.post("/check-subscription")
def check_subscription(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return billing_service.get_subscription_status(db, identity.user_id)


# ✅ CHECKOUT (7-day trial)
@router.post("/create-checkout-session")
def create_checkout_session(
    payload: CheckoutRequest,
    request: Request,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    price_id = stripe_service.get_price_id(payload.plan)
    if not price_id:
        raise InternalError("Price ID not configured")

    user = billing_service.get_or_create_user(db, identity.user_id, identity.email)
    try:
        if not user.stripe_customer_id:
            user.stripe_customer_id = stripe_service.create_customer(identity.user_id, identity.email)
            db.commit()
        url = stripe_service.create_checkout_session(
            user.stripe_customer_id, identity.user_id, price_id, _origin(request),
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe error creating checkout session: {e}")
        raise InternalError(PAYMENT_ERROR_MESSAGE)

    return {"url": url}


# ✅ BILLING PORTAL
@router.post("/create-portal-session")
def create_portal_session(
    request: Request,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    snapshot = db.query(Subscription).filter(Subscription.user_id == identity.user_id).first()
    customer_id = snapshot.stripe_customer_id if snapshot else None
    if not customer_id:
        user = billing_service.find_user(db, None, {"supabase_user_id": identity.user_id})
        customer_id = user.stripe_customer_id if user else None
    if not customer_id:
        raise InvalidInput("No Stripe customer found")

    try:
        url = stripe_service.create_portal_session(customer_id, _origin(request))
    except stripe.StripeError as e:
        logger.error(f"Stripe error creating portal session: {e}")
        raise InternalError(PAYMENT_ERROR_MESSAGE)

    return {"url": url}


# ✅ POST-CHECKOUT VERIFICATION
@router.post("/verify-checkout")
def verify_checkout(payload: VerifyCheckoutRequest, db: Session = Depends(get_db)):
    """Confirm a completed checkout and sync premium state without waiting for the webhook."""
    if not payload.sessionId:
        raise InvalidInput("sessionId is required")

    try:
        session_data = stripe_service.retrieve_checkout_session(payload.sessionId)
    except stripe.StripeError as e:
        raise UpstreamError("Could not verify checkout session", upstream_status=e.http_status, upstream_body=str(e))

    return billing_service.apply_checkout_session(db, session_data)
