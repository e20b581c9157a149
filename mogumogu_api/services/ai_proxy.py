"""
Shared lifecycle of the metered AI endpoints.

Every metered feature runs the same steps: premium lookup, daily quota
gate, one completion call, parse, usage record, response with counters.
Authentication and payload validation happen before this module is
reached (route dependencies and pydantic models).
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from mogumogu_api.core.auth_dependency import Identity
from mogumogu_api.core.plan_limits import limit_for
from mogumogu_api.llm.provider import LLMProvider
from mogumogu_api.services.completion import CompletionSettings, invoke_completion
from mogumogu_api.services import quota_service

logger = logging.getLogger(__name__)

Usage = Dict[str, Optional[int]]


def build_usage(db: Session, user_id: str, feature: str, is_premium: bool) -> Usage:
    """Counters returned to the client after a call: ``{used, limit}``."""
    return {
        "used": quota_service.count_today_usage(db, user_id, feature),
        "limit": limit_for(feature, is_premium),
    }


def run_ai_feature(
    db: Session,
    llm: LLMProvider,
    identity: Identity,
    feature: str,
    settings: CompletionSettings,
    messages: List[Dict[str, str]],
    parse: Callable[[str], Any],
    input_excerpt: str,
    is_premium: Optional[bool] = None,
) -> Tuple[Any, Usage]:
    """
    Run one metered AI call for an authenticated caller.

    Args:
        db: Database session
        llm: Completion provider
        identity: Authenticated caller
        feature: Feature name used for quota accounting
        settings: Model and sampling parameters
        messages: Prompt messages
        parse: Turns the raw completion text into the response payload
        input_excerpt: Caller input stored with the usage event
        is_premium: Pre-fetched tier; looked up when omitted

    Returns:
        (payload, usage) where usage is ``{"used": int, "limit": int | None}``

    Raises:
        QuotaExceeded, UpstreamError, EmptyCompletion, MalformedCompletion
    """
    if is_premium is None:
        is_premium = quota_service.get_is_premium(db, identity.user_id)

    quota_service.enforce_daily_quota(db, identity.user_id, feature, is_premium)

    raw_text = invoke_completion(llm, messages, settings)
    payload = parse(raw_text)

    quota_service.record_usage(
        db,
        user_id=identity.user_id,
        feature=feature,
        input_excerpt=input_excerpt,
        output_excerpt=raw_text,
    )

    usage = build_usage(db, identity.user_id, feature, is_premium)
    logger.info(
        f"AI feature served: user_id={identity.user_id}, feature={feature}, "
        f"premium={is_premium}, used={usage['used']}"
    )
    return payload, usage
