import logging
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mogumogu_api.db.session import get_db
from mogumogu_api.services import content_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Content"])


@router.get("/random-videos")
def random_videos(
    limit: Optional[int] = None,
    exclude: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Shuffled videos; ``exclude`` is a JSON list of video ids."""
    videos = content_service.random_videos(db, limit, content_service.parse_exclude(exclude))
    return {"videos": videos}


@router.get("/random-share-posts")
def random_share_posts(limit: Optional[int] = None, db: Session = Depends(get_db)):
    return {"posts": content_service.random_share_posts(db, limit)}
