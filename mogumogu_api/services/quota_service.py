"""
Quota service for daily free-tier limits.

Handles the premium lookup, per-day usage counting and usage recording.
Enforcement is check-then-insert: two concurrent requests that both pass
the check may each record an event, so a free user can end the day at
most one event over the limit.
"""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mogumogu_api.core.errors import QuotaExceeded
from mogumogu_api.core.plan_limits import get_free_limit
from mogumogu_api.core.timeutil import quota_window_start
from mogumogu_api.db.models.usage import UsageEvent
from mogumogu_api.db.models.user import User

logger = logging.getLogger(__name__)

INPUT_EXCERPT_MAX = 500
OUTPUT_EXCERPT_MAX = 2000


def get_is_premium(db: Session, user_id: str) -> bool:
    """
    Read the caller's premium flag.

    A missing user row or a failed lookup both mean "not premium".
    """
    try:
        user = db.query(User).filter(User.id == user_id).first()
    except SQLAlchemyError as e:
        logger.warning(f"Premium lookup failed for user_id={user_id}, treating as free: {e}")
        db.rollback()
        return False
    return bool(user and user.is_premium)


def count_today_usage(db: Session, user_id: str, feature: str) -> int:
    """Count the user's usage events for a feature since the start of today."""
    window_start = quota_window_start()
    count = db.query(func.count(UsageEvent.id)).filter(
        UsageEvent.user_id == user_id,
        UsageEvent.feature == feature,
        UsageEvent.created_at >= window_start,
    ).scalar()
    return int(count or 0)


def enforce_daily_quota(db: Session, user_id: str, feature: str, is_premium: bool) -> Optional[int]:
    """
    Admit or reject one call of a metered feature.

    Args:
        db: Database session
        user_id: Identity-service user id
        feature: Feature name from plan_limits
        is_premium: Caller's tier

    Returns:
        Today's usage count before this call, or None for premium callers

    Raises:
        QuotaExceeded: When a free caller already used the whole daily limit
    """
    if is_premium:
        return None

    limit = get_free_limit(feature)
    used = count_today_usage(db, user_id, feature)
    if used >= limit:
        logger.info(f"Quota exceeded: user_id={user_id}, feature={feature}, used={used}/{limit}")
        raise QuotaExceeded(feature=feature, limit=limit, used=used)
    return used


def record_usage(
    db: Session,
    user_id: str,
    feature: str,
    input_excerpt: Optional[str] = None,
    output_excerpt: Optional[str] = None,
) -> UsageEvent:
    """Insert one usage event and commit it."""
    event = UsageEvent(
        user_id=user_id,
        feature=feature,
        input_excerpt=(input_excerpt or "")[:INPUT_EXCERPT_MAX],
        output_excerpt=(output_excerpt or "")[:OUTPUT_EXCERPT_MAX],
    )
    db.add(event)
    db.commit()
    db.refresh(event)

    logger.info(f"Usage recorded: user_id={user_id}, feature={feature}, event_id={event.id}")
    return event
