from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from mogumogu_api.core.timeutil import utcnow
from mogumogu_api.db.base import Base


class SharePost(Base):
    """Community feed post; recipe posts are collected from the recipe API."""
    __tablename__ = "share_posts"

    id = Column(Integer, primary_key=True, index=True)
    post_type = Column(String, default="recipe")  # recipe | tip | photo | question
    title = Column(String, nullable=False)
    content = Column(Text, default="")
    image_url = Column(String, nullable=True)
    source_name = Column(String, nullable=True, index=True)  # provenance
    source_url = Column(String, nullable=True, unique=True, index=True)  # natural key for re-collection
    baby_stage = Column(String, nullable=True)
    tags = Column(JSON, default=list)
    likes_count = Column(Integer, default=0)
    comments_count = Column(Integer, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "post_type": self.post_type,
            "title": self.title,
            "content": self.content,
            "image_url": self.image_url,
            "source_name": self.source_name,
            "source_url": self.source_url,
            "baby_stage": self.baby_stage,
            "tags": self.tags or [],
            "likes_count": self.likes_count or 0,
            "comments_count": self.comments_count or 0,
        }
