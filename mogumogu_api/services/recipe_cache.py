"""
Cache of AI-generated recipes for ingredient search.

Search results are normalized to a fixed shape, stored with the month
range of their weaning stage, and served back for later searches that
share an ingredient.
"""
import logging
import random
import re
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mogumogu_api.db.models.cached_recipe import CachedRecipe

logger = logging.getLogger(__name__)

DEFAULT_EMOJI = "🍽️"
DEFAULT_STAGE = "モグモグ期"
EMPTY_NUTRITION = {"kcal": 0, "protein": 0, "iron": 0, "vitA": "−", "vitC": "−"}

STAGE_MAP = {
    5: "ゴックン期", 6: "ゴックン期",
    7: "モグモグ期", 8: "モグモグ期",
    9: "カミカミ期", 10: "カミカミ期", 11: "カミカミ期",
    12: "パクパク期", 13: "パクパク期", 14: "パクパク期", 15: "パクパク期",
    16: "パクパク期", 17: "パクパク期", 18: "パクパク期",
}

MONTH_FOR_STAGE = {
    "ゴックン期": (5, 6),
    "モグモグ期": (7, 8),
    "カミカミ期": (9, 11),
    "パクパク期": (12, 18),
}

EMOJI_MAP = {
    "にんじん": "🥕", "かぼちゃ": "🎃", "豆腐": "🫧", "バナナ": "🍌", "しらす": "🐟",
    "さつまいも": "🍠", "ほうれん草": "🥬", "トマト": "🍅", "りんご": "🍎", "おかゆ": "🍚",
    "うどん": "🍜", "鮭": "🐟", "ヨーグルト": "🥛", "卵": "🥚", "パン": "🍞",
    "ブロッコリー": "🥦", "じゃがいも": "🥔", "コーン": "🌽", "チーズ": "🧀", "鶏": "🍗",
    "ひき肉": "🥩", "白身魚": "🐟", "納豆": "🫘", "オートミール": "🥣", "アボカド": "🥑",
}

DIFFICULTY_LABELS = {"簡単": 1, "普通": 2, "やや手間": 3}

# Quantities and units trailing an ingredient name: "にんじん 30g" -> "にんじん"
_QUANTITY = re.compile(r"[\d\s０-９.]+[gｇ個本枚切片適量少々大さじ小ml]*", re.IGNORECASE)

# Cache warm-up pool
BATCH_INGREDIENTS = [
    "にんじん", "かぼちゃ", "さつまいも", "ほうれん草", "ブロッコリー",
    "バナナ", "りんご", "豆腐", "しらす", "鶏ささみ", "うどん",
    "トマト", "じゃがいも", "大根", "キャベツ", "たまねぎ", "鮭",
    "ヨーグルト", "オートミール", "納豆", "ツナ", "コーン", "枝豆",
    "卵", "パン", "白身魚", "ひき肉", "チーズ", "きゅうり", "アボカド",
]
BATCH_MONTHS = [5, 6, 7, 8, 9, 10, 12, 15, 18]
BATCH_RECIPE_COUNT = 5


def ingredient_name(entry: Any) -> str:
    return _QUANTITY.sub("", str(entry or "")).strip()


def stage_for_month(baby_month: int) -> str:
    return STAGE_MAP.get(baby_month, DEFAULT_STAGE)


def _coerce_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    match = re.match(r"\s*(\d+)", str(value or ""))
    return int(match.group(1)) if match else default


def _coerce_difficulty(value: Any) -> int:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return min(max(int(value), 1), 3)
    return DIFFICULTY_LABELS.get(value, 1)


def normalize_recipe(raw: Any, baby_month: int) -> Dict[str, Any]:
    """
    Coerce one untrusted recipe object into the search response shape.

    Missing fields get defaults derived from the baby's month.
    """
    recipe = raw if isinstance(raw, dict) else {}
    title = recipe.get("title") or "離乳食レシピ"
    ingredients = recipe.get("ingredients") if isinstance(recipe.get("ingredients"), list) else []

    emoji = recipe.get("emoji")
    if not emoji:
        first = ingredient_name(ingredients[0]) if ingredients else ""
        emoji = EMOJI_MAP.get(first)
    if not emoji:
        emoji = next((e for name, e in EMOJI_MAP.items() if name in title), DEFAULT_EMOJI)

    stage = recipe.get("stage")
    if stage not in MONTH_FOR_STAGE:
        stage = stage_for_month(baby_month)

    nutrition = recipe.get("nutrition")
    if not (isinstance(nutrition, dict) and "kcal" in nutrition):
        nutrition = dict(EMPTY_NUTRITION)

    return {
        "id": recipe.get("id") or f"ai_{uuid.uuid4().hex[:12]}",
        "title": title,
        "emoji": emoji,
        "stage": stage,
        "time": _coerce_int(recipe.get("time", recipe.get("cooking_time")), 15),
        "difficulty": _coerce_difficulty(recipe.get("difficulty")),
        "ingredients": ingredients,
        "steps": recipe.get("steps") if isinstance(recipe.get("steps"), list) else [],
        "nutrition": nutrition,
        "tip": recipe.get("tip") or recipe.get("tips") or "",
        "tags": recipe.get("tags") if isinstance(recipe.get("tags"), list) else [],
    }


def search_cache(
    db: Session,
    ingredients: List[str],
    baby_month: int,
    exclude_titles: Optional[List[str]] = None,
    limit: int = 5,
) -> List[Dict[str, Any]]:
    """
    Find cached recipes using any of the ingredients for this month.

    Lookup failures return an empty list so search can fall through to
    generation.
    """
    exclude = set(exclude_titles or [])
    terms = [i.strip() for i in ingredients if i and i.strip()]
    if not terms:
        return []

    try:
        rows = db.query(CachedRecipe).filter(
            or_(*[CachedRecipe.ingredients_text.ilike(f"%{term}%") for term in terms]),
            CachedRecipe.baby_month_min <= baby_month,
            CachedRecipe.baby_month_max >= baby_month,
        ).order_by(CachedRecipe.created_at.desc()).limit(limit + len(exclude) + 10).all()
    except SQLAlchemyError as e:
        logger.error(f"Recipe cache search failed: {e}")
        db.rollback()
        return []

    results = []
    for row in rows:
        if row.title in exclude:
            continue
        recipe = row.to_dict()
        recipe["stage"] = recipe["stage"] or stage_for_month(baby_month)
        if not recipe["nutrition"]:
            recipe["nutrition"] = dict(EMPTY_NUTRITION)
        results.append(recipe)
        if len(results) >= limit:
            break
    return results


def cache_recipes(db: Session, recipes: List[Dict[str, Any]], baby_month: int) -> int:
    """Store normalized recipes; returns the number of rows written."""
    if not recipes:
        return 0

    month_range = (
        MONTH_FOR_STAGE.get(recipes[0].get("stage"))
        or MONTH_FOR_STAGE.get(stage_for_month(baby_month))
        or (5, 18)
    )

    for recipe in recipes:
        names = [ingredient_name(i) for i in recipe.get("ingredients", [])]
        db.add(CachedRecipe(
            title=recipe["title"],
            emoji=recipe.get("emoji") or DEFAULT_EMOJI,
            stage=recipe.get("stage"),
            time=recipe.get("time", 15),
            difficulty=recipe.get("difficulty", 1),
            ingredients=recipe.get("ingredients", []),
            ingredients_text=" ".join(n for n in names if n),
            steps=recipe.get("steps", []),
            nutrition=recipe.get("nutrition", {}),
            tip=recipe.get("tip", ""),
            tags=recipe.get("tags", []),
            baby_month_min=month_range[0],
            baby_month_max=month_range[1],
        ))

    try:
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Recipe cache insert failed: {e}")
        db.rollback()
        return 0

    logger.info(f"Cached {len(recipes)} recipes for month={baby_month}")
    return len(recipes)


def pick_batch_inputs(rng: Optional[random.Random] = None):
    """Random 1-2 ingredients and a month for the warm-up job."""
    rng = rng or random.Random()
    pool = list(BATCH_INGREDIENTS)
    rng.shuffle(pool)
    selected = pool[:rng.randint(1, 2)]
    month = rng.choice(BATCH_MONTHS)
    return selected, month
