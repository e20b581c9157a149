"""
Free-tier daily limits for AI features.

Single source of truth for feature names and their per-day free quota.
Premium users are unlimited.
"""
from typing import Dict, List, Optional

from mogumogu_api.core.config import (
    FREE_CONSULTATIONS_PER_DAY,
    FREE_RECIPE_GENERATIONS_PER_DAY,
    FREE_RECIPE_SEARCHES_PER_DAY,
)

AI_CONSULTATION = "ai_consultation"
RECIPE_GENERATION = "recipe_generation"
RECIPE_SEARCH = "recipe_search"

SUPPORTED_FEATURES: List[str] = [
    AI_CONSULTATION,
    RECIPE_GENERATION,
    RECIPE_SEARCH,
]

FREE_DAILY_LIMITS: Dict[str, int] = {
    AI_CONSULTATION: FREE_CONSULTATIONS_PER_DAY,
    RECIPE_GENERATION: FREE_RECIPE_GENERATIONS_PER_DAY,
    RECIPE_SEARCH: FREE_RECIPE_SEARCHES_PER_DAY,
}


def get_free_limit(feature: str) -> int:
    """
    Get the free-tier daily limit for a feature.

    Raises:
        KeyError: For an unknown feature name
    """
    return FREE_DAILY_LIMITS[feature]


def limit_for(feature: str, is_premium: bool) -> Optional[int]:
    """Limit shown to the client: None for premium (unlimited)."""
    return None if is_premium else get_free_limit(feature)
