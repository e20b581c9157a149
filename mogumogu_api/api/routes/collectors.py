"""
Operator-triggered collection jobs (run from cron).
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mogumogu_api.api.deps import get_llm_provider, get_rakuten_client, get_youtube_client
from mogumogu_api.clients.rakuten_client import RakutenRecipeClient
from mogumogu_api.clients.youtube_client import YouTubeClient
from mogumogu_api.db.session import get_db
from mogumogu_api.llm.provider import LLMProvider
from mogumogu_api.services import blog_service, recipe_cache
from mogumogu_api.services.completion import RECIPE_SEARCH_COMPLETION, invoke_completion
from mogumogu_api.services.completion_parser import parse_recipe_list
from mogumogu_api.services.prompt_builder import build_recipe_search_prompt
from mogumogu_api.services.rakuten_collector import collect_rakuten_recipes
from mogumogu_api.services.video_collector import cleanup_videos, collect_videos

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Collectors"])


@router.get("/collect-videos")
def collect_videos_job(
    refresh: bool = False,
    db: Session = Depends(get_db),
    client: YouTubeClient = Depends(get_youtube_client),
):
    return collect_videos(db, client, refresh=refresh)


@router.get("/cleanup-videos")
def cleanup_videos_job(
    db: Session = Depends(get_db),
    client: YouTubeClient = Depends(get_youtube_client),
):
    return cleanup_videos(db, client)


@router.get("/collect-rakuten-recipes")
def collect_rakuten_recipes_job(
    refresh: bool = False,
    db: Session = Depends(get_db),
    client: RakutenRecipeClient = Depends(get_rakuten_client),
):
    return collect_rakuten_recipes(db, client, refresh=refresh)


@router.get("/search-recipe/batch")
def warm_recipe_cache(
    db: Session = Depends(get_db),
    llm: LLMProvider = Depends(get_llm_provider),
):
    """Generate a few recipes for random inputs and cache them (no quota)."""
    ingredients, month = recipe_cache.pick_batch_inputs()
    system_prompt, user_message = build_recipe_search_prompt(
        ingredients, month, [], recipe_cache.BATCH_RECIPE_COUNT, [],
    )
    raw_text = invoke_completion(
        llm,
        [{"role": "system", "content": system_prompt}, {"role": "user", "content": user_message}],
        RECIPE_SEARCH_COMPLETION,
    )
    recipes = [recipe_cache.normalize_recipe(r, month) for r in parse_recipe_list(raw_text)]
    cached = recipe_cache.cache_recipes(db, recipes, month)

    return {"success": True, "cached": cached, "ingredients": ingredients, "month": month}


@router.post("/blog-generate")
def blog_generate(
    db: Session = Depends(get_db),
    llm: LLMProvider = Depends(get_llm_provider),
):
    return blog_service.generate_next_article(db, llm)
