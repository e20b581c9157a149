"""
Video collection and cleanup jobs.

Pulls short weaning-food videos from the video API into the ``videos``
table and prunes rows that disappeared or stopped being embeddable.
"""
import logging
import random
import re
import time
from typing import Callable, Dict, List, Optional

import httpx
from sqlalchemy.orm import Session

from mogumogu_api.clients.youtube_client import YouTubeClient
from mogumogu_api.core.config import VIDEO_PAGE_DELAY_SECONDS
from mogumogu_api.core.errors import InternalError
from mogumogu_api.core.timeutil import utcnow
from mogumogu_api.db.models.video import Video

logger = logging.getLogger(__name__)

SOURCE = "youtube"
MAX_DURATION_SECONDS = 60
KEYWORDS_PER_RUN = 2
CLEANUP_BATCH_SIZE = 50

SEARCH_KEYWORDS = [
    "離乳食 作り方 #shorts",
    "離乳食 初期 レシピ #shorts",
    "離乳食 中期 #shorts",
    "離乳食 後期 手づかみ #shorts",
    "離乳食 完了期 #shorts",
    "離乳食 冷凍ストック #shorts",
    "離乳食 簡単 時短 #shorts",
    "10倍がゆ #shorts",
    "赤ちゃん ごはん #shorts",
    "離乳食 おすすめ #shorts",
]

BABY_FOOD_KEYWORDS = [
    "離乳食", "ベビーフード", "10倍がゆ", "7倍がゆ", "5倍がゆ",
    "赤ちゃん", "ごっくん", "もぐもぐ", "かみかみ", "ぱくぱく",
    "手づかみ", "おかゆ", "野菜ペースト", "初期", "中期", "後期", "完了期",
]

_DURATION = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")

# First match wins
_STAGE_PATTERNS = [
    (re.compile(r"初期|ゴックン|5.?6.?ヶ月|ペースト"), "ゴックン期"),
    (re.compile(r"中期|モグモグ|7.?8.?ヶ月"), "モグモグ期"),
    (re.compile(r"後期|カミカミ|9.?11.?ヶ月|手づかみ"), "カミカミ期"),
    (re.compile(r"完了期|パクパク|12.?18.?ヶ月|取り分け"), "パクパク期"),
]


def parse_duration(iso8601: str) -> int:
    """ISO-8601 duration ("PT1M5S") to seconds; unparseable means 0."""
    match = _DURATION.search(iso8601 or "")
    if not match:
        return 0
    hours, minutes, seconds = (int(g or 0) for g in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def guess_stage(title: str, description: str) -> Optional[str]:
    text = f"{title} {description}"
    for pattern, stage in _STAGE_PATTERNS:
        if pattern.search(text):
            return stage
    return None


def has_baby_food_keyword(title: str, description: str) -> bool:
    text = f"{title} {description}"
    return any(keyword in text for keyword in BABY_FOOD_KEYWORDS)


def _thumbnail(snippet: dict) -> Optional[str]:
    thumbnails = snippet.get("thumbnails") or {}
    for size in ("high", "medium", "default"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return None


def collect_videos(
    db: Session,
    client: YouTubeClient,
    refresh: bool = False,
    rng: Optional[random.Random] = None,
    delay: float = VIDEO_PAGE_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict:
    """
    Run one collection pass.

    Args:
        db: Database session
        client: Video API client
        refresh: Delete previously collected rows first
        rng: Random source for keyword selection
        delay: Seconds to wait between search pages

    Returns:
        ``{collected, keywords, total_searched}``

    Raises:
        InternalError: API key missing or the detail fetch failed
    """
    if not client.configured:
        raise InternalError("YOUTUBE_API_KEY is not set")

    rng = rng or random.Random()

    if refresh:
        deleted = db.query(Video).filter(Video.source == SOURCE).delete(synchronize_session=False)
        db.commit()
        logger.info(f"Video refresh: deleted {deleted} rows")

    keywords = list(SEARCH_KEYWORDS)
    rng.shuffle(keywords)
    keywords = keywords[:KEYWORDS_PER_RUN]

    found = []
    for index, keyword in enumerate(keywords):
        if index and delay:
            sleep(delay)
        try:
            found.extend(client.search_shorts(keyword))
        except httpx.HTTPError as e:
            logger.warning(f"Video search page failed for keyword={keyword!r}, skipping: {e}")

    if not found:
        return {"collected": 0, "keywords": keywords, "total_searched": 0}

    unique_ids = list(dict.fromkeys(item.video_id for item in found))
    try:
        details = client.video_details(unique_ids)
    except httpx.HTTPError as e:
        logger.error(f"Video detail fetch failed: {e}")
        raise InternalError("Video detail fetch failed")

    now = utcnow()
    seen = set()
    collected = 0
    for item in found:
        if item.video_id in seen:
            continue
        seen.add(item.video_id)

        detail = details.get(item.video_id)
        if not detail or not detail.embeddable:
            continue
        if parse_duration(detail.duration) > MAX_DURATION_SECONDS:
            continue

        title = item.snippet.get("title") or ""
        description = item.snippet.get("description") or ""
        if not has_baby_food_keyword(title, description):
            continue

        video = db.query(Video).filter(Video.youtube_id == item.video_id).first()
        if not video:
            video = Video(youtube_id=item.video_id, source=SOURCE, likes_count=0, views_count=0, tags=[])
            db.add(video)
        video.title = title
        video.description = description
        video.channel_name = item.snippet.get("channelTitle")
        video.thumbnail_url = _thumbnail(item.snippet)
        video.baby_month_stage = guess_stage(title, description)
        video.cached_at = now
        collected += 1

    db.commit()
    logger.info(f"Video collection done: collected={collected}, searched={len(found)}, keywords={keywords}")

    return {"collected": collected, "keywords": keywords, "total_searched": len(found)}


def cleanup_videos(
    db: Session,
    client: YouTubeClient,
    delay: float = VIDEO_PAGE_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict:
    """
    Delete stored videos that are gone or no longer embeddable.

    Returns:
        ``{success, checked, removed}``
    """
    videos: List[Video] = db.query(Video).all()
    if not videos or not client.configured:
        return {"success": True, "checked": 0, "removed": 0}

    broken_ids = []
    for start in range(0, len(videos), CLEANUP_BATCH_SIZE):
        if start and delay:
            sleep(delay)
        batch = [v for v in videos[start:start + CLEANUP_BATCH_SIZE] if v.youtube_id]
        if not batch:
            continue
        try:
            details = client.video_details([v.youtube_id for v in batch], parts="status")
        except httpx.HTTPError as e:
            logger.error(f"Video status check failed: {e}")
            raise InternalError("Video status check failed")

        for video in batch:
            detail = details.get(video.youtube_id)
            if not detail or not detail.embeddable:
                broken_ids.append(video.id)

    if broken_ids:
        db.query(Video).filter(Video.id.in_(broken_ids)).delete(synchronize_session=False)
        db.commit()

    logger.info(f"Video cleanup done: checked={len(videos)}, removed={len(broken_ids)}")
    return {"success": True, "checked": len(videos), "removed": len(broken_ids)}
