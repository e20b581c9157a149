"""
Public blog pages and sitemap (HTML/XML, not JSON).
"""
import logging
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import HTMLResponse, Response
from sqlalchemy.orm import Session

from mogumogu_api.api.deps import get_session_factory
from mogumogu_api.db.models.blog_post import BlogPost
from mogumogu_api.db.session import get_db
from mogumogu_api.services import blog_renderer
from mogumogu_api.services.blog_service import increment_view_count

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Blog"])

RELATED_LIMIT = 3


@router.get("/blog", response_class=HTMLResponse)
def blog_index(cat: Optional[str] = None, db: Session = Depends(get_db)):
    category = cat if cat in blog_renderer.CATEGORY_MAP else "all"

    query = db.query(BlogPost).filter(BlogPost.published.is_(True))
    if category != "all":
        query = query.filter(BlogPost.category == category)
    posts = query.order_by(BlogPost.created_at.desc()).all()

    return HTMLResponse(
        blog_renderer.render_blog_list(posts, category),
        headers={"Cache-Control": "public, s-maxage=1800, stale-while-revalidate=86400"},
    )


@router.get("/blog/{slug}", response_class=HTMLResponse)
def blog_article(
    slug: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
):
    post = db.query(BlogPost).filter(BlogPost.slug == slug, BlogPost.published.is_(True)).first()
    if not post:
        return HTMLResponse(blog_renderer.render_not_found(), status_code=404)

    background_tasks.add_task(increment_view_count, session_factory, post.id)

    related = db.query(BlogPost).filter(
        BlogPost.published.is_(True),
        BlogPost.category == post.category,
        BlogPost.slug != post.slug,
    ).order_by(BlogPost.created_at.desc()).limit(RELATED_LIMIT).all()

    return HTMLResponse(
        blog_renderer.render_blog_article(post, related),
        headers={"Cache-Control": "public, s-maxage=3600, stale-while-revalidate=86400"},
    )


@router.get("/sitemap.xml")
def sitemap(db: Session = Depends(get_db)):
    posts = db.query(BlogPost).filter(BlogPost.published.is_(True)).order_by(BlogPost.created_at.desc()).all()
    return Response(
        content=blog_renderer.render_sitemap(posts),
        media_type="application/xml",
        headers={"Cache-Control": "public, s-maxage=86400"},
    )
