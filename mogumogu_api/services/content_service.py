"""
Shuffled feeds for the home screen.
"""
import json
import logging
import random
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from mogumogu_api.db.models.share_post import SharePost
from mogumogu_api.db.models.video import Video

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 50
SHARE_POST_POOL = 200


def clamp_limit(limit: Optional[int]) -> int:
    if not limit or limit < 1:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


def parse_exclude(raw: Optional[str]) -> List[Any]:
    """Ids from a JSON list query parameter; anything unparseable means none."""
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.debug(f"Ignoring unparseable exclude parameter: {raw!r}")
        return []
    return parsed if isinstance(parsed, list) else []


def random_videos(
    db: Session,
    limit: Optional[int] = None,
    exclude: Optional[List[Any]] = None,
    rng: Optional[random.Random] = None,
) -> List[Dict]:
    limit = clamp_limit(limit)
    excluded = {str(x) for x in (exclude or [])}
    rng = rng or random.Random()

    rows = db.query(Video).filter(
        Video.youtube_id.isnot(None),
        Video.youtube_id != "",
    ).limit(limit + len(excluded)).all()

    videos = [v.to_dict() for v in rows if str(v.id) not in excluded]
    rng.shuffle(videos)
    return videos[:limit]


def random_share_posts(
    db: Session,
    limit: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[Dict]:
    limit = clamp_limit(limit)
    rng = rng or random.Random()

    posts = [p.to_dict() for p in db.query(SharePost).limit(SHARE_POST_POOL).all()]
    rng.shuffle(posts)
    return posts[:limit]
