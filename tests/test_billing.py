"""
Integration tests for subscription status, checkout, portal and checkout verification.
Stripe API calls are replaced with monkeypatched service functions.
"""
import stripe

from mogumogu_api.db.models.subscription import Subscription
from mogumogu_api.db.models.user import User
from mogumogu_api.services import stripe_service


def test_check_subscription_requires_auth(client):
    response = client.post("/api/check-subscription")
    assert response.status_code == 401


def test_check_subscription_no_rows(client, auth_headers):
    response = client.post("/api/check-subscription", headers=auth_headers())
    assert response.status_code == 200
    assert response.json() == {"isPremium": False, "subscription": None}


def test_check_subscription_trialing(client, db, auth_headers):
    db.add(User(id="user-1", is_premium=True))
    db.add(Subscription(user_id="user-1", plan="premium_monthly", status="trialing"))
    db.commit()

    response = client.post("/api/check-subscription", headers=auth_headers())

    body = response.json()
    assert body["isPremium"] is True
    assert body["subscription"]["status"] == "trialing"
    assert body["subscription"]["plan"] == "premium_monthly"
    assert body["subscription"]["cancel_at_period_end"] is False


def test_check_subscription_canceled(client, db, auth_headers):
    db.add(User(id="user-1", is_premium=False))
    db.add(Subscription(user_id="user-1", plan="free", status="canceled"))
    db.commit()

    response = client.post("/api/check-subscription", headers=auth_headers())
    assert response.json()["isPremium"] is False


def test_create_checkout_session_creates_customer_once(client, db, auth_headers, monkeypatch):
    created = []

    def fake_create_customer(user_id, email):
        created.append((user_id, email))
        return "cus_new"

    def fake_checkout(customer_id, user_id, price_id, origin):
        return f"https://checkout.example/{customer_id}/{price_id}?from={origin}"

    monkeypatch.setattr(stripe_service, "create_customer", fake_create_customer)
    monkeypatch.setattr(stripe_service, "create_checkout_session", fake_checkout)

    headers = {**auth_headers(), "Origin": "https://web.example.com"}
    first = client.post("/api/create-checkout-session", json={"plan": "yearly"}, headers=headers)
    second = client.post("/api/create-checkout-session", json={}, headers=headers)

    assert first.status_code == 200
    assert first.json()["url"] == "https://checkout.example/cus_new/price_yearly?from=https://web.example.com"
    assert second.json()["url"].startswith("https://checkout.example/cus_new/price_monthly")
    assert created == [("user-1", "mama@example.com")]

    db.expire_all()
    assert db.query(User).filter(User.id == "user-1").first().stripe_customer_id == "cus_new"


def test_create_checkout_session_missing_price(client, auth_headers, monkeypatch):
    monkeypatch.setattr(stripe_service, "STRIPE_YEARLY_PRICE_ID", None)

    response = client.post("/api/create-checkout-session", json={"plan": "yearly"}, headers=auth_headers())

    assert response.status_code == 500
    assert response.json() == {"error": "Price ID not configured"}


def test_create_checkout_session_invalid_plan(client, auth_headers):
    response = client.post("/api/create-checkout-session", json={"plan": "weekly"}, headers=auth_headers())
    assert response.status_code == 400


def test_create_checkout_session_stripe_failure(client, db, auth_headers, monkeypatch):
    db.add(User(id="user-1", stripe_customer_id="cus_1"))
    db.commit()

    def failing_checkout(*args):
        raise stripe.InvalidRequestError("No such price: 'price_secret_internal'", param="price")

    monkeypatch.setattr(stripe_service, "create_checkout_session", failing_checkout)

    response = client.post("/api/create-checkout-session", json={"plan": "monthly"}, headers=auth_headers())
    assert response.status_code == 500
    assert response.json() == {"error": "Payment service error"}


def test_portal_stripe_failure_is_opaque(client, db, auth_headers, monkeypatch):
    db.add(User(id="user-1", stripe_customer_id="cus_1"))
    db.commit()

    def failing_portal(customer_id, origin):
        raise stripe.InvalidRequestError("No such customer: 'cus_1'", param="customer")

    monkeypatch.setattr(stripe_service, "create_portal_session", failing_portal)

    response = client.post("/api/create-portal-session", headers=auth_headers())
    assert response.status_code == 500
    assert response.json() == {"error": "Payment service error"}


def test_portal_without_customer(client, auth_headers):
    response = client.post("/api/create-portal-session", headers=auth_headers())
    assert response.status_code == 400
    assert response.json() == {"error": "No Stripe customer found"}


def test_portal_with_customer(client, db, auth_headers, monkeypatch):
    db.add(User(id="user-1"))
    db.add(Subscription(user_id="user-1", stripe_customer_id="cus_9", status="active"))
    db.commit()
    monkeypatch.setattr(
        stripe_service, "create_portal_session",
        lambda customer_id, origin: f"https://billing.example/{customer_id}",
    )

    response = client.post("/api/create-portal-session", headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {"url": "https://billing.example/cus_9"}


def test_verify_checkout_requires_session_id(client):
    response = client.post("/api/verify-checkout", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "sessionId is required"}


def test_verify_checkout_incomplete_session(client, monkeypatch):
    monkeypatch.setattr(stripe_service, "retrieve_checkout_session", lambda session_id: {"status": "open"})

    response = client.post("/api/verify-checkout", json={"sessionId": "cs_1"})

    assert response.status_code == 200
    assert response.json() == {"isPremium": False, "reason": "session_not_complete"}


def test_verify_checkout_complete_session_syncs_user(client, db, monkeypatch):
    session_data = {
        "id": "cs_1",
        "status": "complete",
        "customer": "cus_5",
        "customer_email": "mama@example.com",
        "metadata": {"supabase_user_id": "user-5"},
        "subscription": {
            "id": "sub_5",
            "customer": "cus_5",
            "status": "trialing",
            "trial_end": 1767830400,
            "metadata": {"supabase_user_id": "user-5"},
            "items": {"data": [{"price": {"id": "price_monthly"}, "current_period_end": 1767830400}]},
        },
    }
    monkeypatch.setattr(stripe_service, "retrieve_checkout_session", lambda session_id: session_data)

    response = client.post("/api/verify-checkout", json={"sessionId": "cs_1"})

    assert response.status_code == 200
    body = response.json()
    assert body["isPremium"] is True
    assert body["subscription"]["plan"] == "premium_monthly"
    assert body["subscription"]["trial_end"] == "2026-01-08T00:00:00Z"

    db.expire_all()
    user = db.query(User).filter(User.id == "user-5").first()
    assert user.is_premium is True
    assert user.stripe_customer_id == "cus_5"


def test_verify_checkout_without_user_metadata(client, monkeypatch):
    monkeypatch.setattr(
        stripe_service, "retrieve_checkout_session",
        lambda session_id: {"status": "complete", "subscription": {"id": "sub_1", "status": "active"}},
    )

    response = client.post("/api/verify-checkout", json={"sessionId": "cs_1"})
    assert response.json() == {"isPremium": False, "reason": "no_user_id"}
