"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from mogumogu_api.db.models.user import User
from mogumogu_api.db.models.subscription import Subscription
from mogumogu_api.db.models.usage import UsageEvent
from mogumogu_api.db.models.cached_recipe import CachedRecipe
from mogumogu_api.db.models.video import Video
from mogumogu_api.db.models.share_post import SharePost
from mogumogu_api.db.models.blog_post import BlogPost

__all__ = [
    "User",
    "Subscription",
    "UsageEvent",
    "CachedRecipe",
    "Video",
    "SharePost",
    "BlogPost",
]
