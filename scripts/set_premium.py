"""
Script to grant or revoke premium for a user without going through Stripe.
Run: python -m scripts.set_premium <user_id> [--off] [--email you@example.com]
"""
import argparse
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.exc import SQLAlchemyError

from mogumogu_api.db.session import SessionLocal
from mogumogu_api.db.models.subscription import Subscription
from mogumogu_api.services.billing_service import get_or_create_user
from mogumogu_api.core.timeutil import utcnow
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def set_premium(user_id: str, premium: bool = True, email: str = None) -> bool:
    """Create the user row if needed, then set the premium flag and snapshot status."""
    db = SessionLocal()
    try:
        user = get_or_create_user(db, user_id, email)
        user.is_premium = premium

        subscription = db.query(Subscription).filter(Subscription.user_id == user.id).first()
        if not subscription:
            logger.info(f"Creating subscription snapshot for user {user.id}")
            subscription = Subscription(user_id=user.id)
            db.add(subscription)

        subscription.plan = "premium_monthly" if premium else "free"
        subscription.status = "active" if premium else "canceled"
        subscription.cancel_at_period_end = False
        subscription.updated_at = utcnow()

        db.commit()
        logger.info(f"User {user_id} premium={premium}")
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating user: {e}", exc_info=True)
        return False
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Grant or revoke premium for a user")
    parser.add_argument("user_id", help="Identity-service user id")
    parser.add_argument("--off", action="store_true", help="Revoke premium instead of granting it")
    parser.add_argument("--email", default=None)
    args = parser.parse_args()

    success = set_premium(args.user_id, premium=not args.off, email=args.email)

    if success:
        state = "free" if args.off else "premium"
        print(f"\n[SUCCESS] User {args.user_id} is now {state}")
    else:
        print(f"\n[ERROR] Failed to update user {args.user_id}")
        sys.exit(1)
