"""
Metered AI endpoints: consultation, recipe generation, recipe search.
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mogumogu_api.api.deps import get_llm_provider
from mogumogu_api.core.auth_dependency import Identity, get_current_identity
from mogumogu_api.core.errors import QuotaExceeded
from mogumogu_api.core.plan_limits import AI_CONSULTATION, RECIPE_GENERATION, RECIPE_SEARCH
from mogumogu_api.db.session import get_db
from mogumogu_api.llm.provider import LLMProvider
from mogumogu_api.schemas.ai import ConsultationRequest, GenerateRecipeRequest, SearchRecipeRequest
from mogumogu_api.services import quota_service, recipe_cache
from mogumogu_api.services.ai_proxy import run_ai_feature
from mogumogu_api.services.completion import (
    CONSULTATION_COMPLETION,
    RECIPE_GENERATION_COMPLETION,
    RECIPE_SEARCH_COMPLETION,
)
from mogumogu_api.services.completion_parser import parse_recipe_list
from mogumogu_api.services.prompt_builder import (
    LIST_SEPARATOR,
    build_consultation_messages,
    build_recipe_generation_prompt,
    build_recipe_search_prompt,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["AI"])


def _consultation_reply(text: str) -> str:
    return text.strip()


@router.post("/ai-consultation")
def ai_consultation(
    payload: ConsultationRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    llm: LLMProvider = Depends(get_llm_provider),
):
    """
    Answer a weaning or parenting question.

    Returns ``{reply, usage}``; free users get a few consultations per day.
    """
    messages = build_consultation_messages(
        payload.message, payload.baby_month, payload.allergens, payload.history,
    )
    reply, usage = run_ai_feature(
        db, llm, identity,
        feature=AI_CONSULTATION,
        settings=CONSULTATION_COMPLETION,
        messages=messages,
        parse=_consultation_reply,
        input_excerpt=payload.message.strip(),
    )
    return {"reply": reply, "usage": usage}


@router.post("/generate-recipe")
def generate_recipe(
    payload: GenerateRecipeRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    llm: LLMProvider = Depends(get_llm_provider),
):
    """Generate original recipes for the baby's month. Returns ``{recipes, usage}``."""
    system_prompt, user_message = build_recipe_generation_prompt(
        payload.baby_month, payload.allergens, payload.preference, payload.meal_type, payload.count,
    )
    recipes, usage = run_ai_feature(
        db, llm, identity,
        feature=RECIPE_GENERATION,
        settings=RECIPE_GENERATION_COMPLETION,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
        parse=parse_recipe_list,
        input_excerpt=user_message,
    )
    return {"recipes": recipes, "usage": usage}


@router.post("/search-recipe")
def search_recipe(
    payload: SearchRecipeRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    llm: LLMProvider = Depends(get_llm_provider),
):
    """
    Recipes using the given ingredients.

    Cached recipes are served first and do not count against the quota.
    Only the shortfall is generated; generated recipes are cached.
    """
    cached = recipe_cache.search_cache(
        db, payload.ingredients, payload.baby_month, payload.exclude_titles, payload.count,
    )
    if len(cached) >= payload.count:
        return {"recipes": cached[:payload.count], "from_cache": True, "has_more": True}

    is_premium = quota_service.get_is_premium(db, identity.user_id)
    system_prompt, user_message = build_recipe_search_prompt(
        payload.ingredients,
        payload.baby_month,
        payload.allergens,
        payload.count - len(cached),
        payload.exclude_titles + [r["title"] for r in cached],
    )

    def parse(text):
        return [recipe_cache.normalize_recipe(r, payload.baby_month) for r in parse_recipe_list(text)]

    try:
        generated, usage = run_ai_feature(
            db, llm, identity,
            feature=RECIPE_SEARCH,
            settings=RECIPE_SEARCH_COMPLETION,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            parse=parse,
            input_excerpt=LIST_SEPARATOR.join(payload.ingredients),
            is_premium=is_premium,
        )
    except QuotaExceeded as e:
        if not cached:
            raise
        return {
            "recipes": cached,
            "from_cache": True,
            "has_more": False,
            "usage": {"used": e.used, "limit": e.limit},
        }

    recipe_cache.cache_recipes(db, generated, payload.baby_month)

    return {
        "recipes": cached + generated,
        "usage": usage,
        "from_cache": False,
        "has_more": True,
    }
