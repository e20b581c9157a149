"""
Community feed seeding from the recipe ranking API.
"""
import logging
import random
import time
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from mogumogu_api.clients.rakuten_client import RakutenRecipeClient
from mogumogu_api.core.config import RAKUTEN_PAGE_DELAY_SECONDS
from mogumogu_api.core.errors import InternalError
from mogumogu_api.db.models.share_post import SharePost

logger = logging.getLogger(__name__)

SOURCE_NAME = "楽天レシピ"
ENOUGH_ROWS = 16

CATEGORIES = [
    {"id": "41-554", "name": "離乳食初期（5～6ヶ月）", "stage": "初期"},
    {"id": "41-555", "name": "離乳食中期（7～8ヶ月）", "stage": "中期"},
    {"id": "41-556", "name": "離乳食後期（9～11ヶ月）", "stage": "後期"},
    {"id": "41-557", "name": "離乳食完了期（12ヶ月以降）", "stage": "完了期"},
    {"id": "41-558", "name": "幼児食(1歳半頃～2歳頃)", "stage": "完了期"},
    {"id": "41-559", "name": "幼児食(3歳頃～6歳頃)", "stage": "完了期"},
]


def convert_to_post(recipe: dict, stage: str, rng: Optional[random.Random] = None) -> SharePost:
    """Map one ranking entry onto a feed post."""
    rng = rng or random.Random()
    materials = recipe.get("recipeMaterial") or []
    title = recipe.get("recipeTitle") or ""
    body = recipe.get("recipeDescription") or title
    ingredients = "、".join(materials[:5])

    return SharePost(
        post_type="recipe",
        title=title,
        content=f"【材料】{ingredients}\n\n{body}" if ingredients else body,
        image_url=recipe.get("foodImageUrl") or recipe.get("mediumImageUrl") or recipe.get("smallImageUrl"),
        source_name=SOURCE_NAME,
        source_url=recipe.get("recipeUrl"),
        baby_stage=stage,
        tags=[stage, SOURCE_NAME, *materials[:2]],
        # Seed counts so the feed does not start at zero
        likes_count=rng.randint(50, 349),
        comments_count=rng.randint(5, 44),
    )


def upsert_post(db: Session, post: SharePost) -> bool:
    """
    Insert a post, or refresh the stored copy with the same recipe URL.

    Seeded like/comment counts of an existing row are kept. Returns True
    when a new row was added.
    """
    existing = None
    if post.source_url:
        existing = db.query(SharePost).filter(SharePost.source_url == post.source_url).first()

    if existing is None:
        db.add(post)
        return True

    for field in ("title", "content", "image_url", "baby_stage", "tags"):
        setattr(existing, field, getattr(post, field))
    return False


def collect_rakuten_recipes(
    db: Session,
    client: RakutenRecipeClient,
    refresh: bool = False,
    rng: Optional[random.Random] = None,
    delay: float = RAKUTEN_PAGE_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict:
    """
    Fetch every weaning category and upsert the results as feed posts.

    Posts are keyed by recipe URL, so a re-run without ``refresh`` updates
    rows in place instead of duplicating them.

    Raises:
        InternalError: Nothing could be fetched from any category
    """
    if refresh:
        db.query(SharePost).filter(SharePost.source_name == SOURCE_NAME).delete(synchronize_session=False)
        db.commit()
    else:
        existing = db.query(SharePost).filter(SharePost.source_name == SOURCE_NAME).count()
        if existing >= ENOUGH_ROWS:
            logger.info(f"Recipe feed already seeded ({existing} rows), skipping")
            return {"skipped": True, "count": existing}

    posts = []
    seen_urls = set()
    for index, category in enumerate(CATEGORIES):
        if index and delay:
            sleep(delay)
        logger.info(f"Fetching recipe category: {category['name']}")
        for recipe in client.category_ranking(category["id"]):
            url = recipe.get("recipeUrl")
            # The same recipe can rank in neighbouring categories
            if url and url in seen_urls:
                continue
            if url:
                seen_urls.add(url)
            posts.append(convert_to_post(recipe, category["stage"], rng))

    if not posts:
        raise InternalError("No recipes could be fetched. Check RAKUTEN_APP_ID.")

    created = sum(1 for post in posts if upsert_post(db, post))
    db.commit()
    logger.info(f"Recipe feed seeded: {len(posts)} posts ({created} new)")

    return {
        "success": True,
        "count": len(posts),
        "created": created,
        "categories": [c["name"] for c in CATEGORIES],
    }
