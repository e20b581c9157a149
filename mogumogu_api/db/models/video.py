from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from mogumogu_api.core.timeutil import utcnow
from mogumogu_api.db.base import Base


class Video(Base):
    """Short weaning-food video collected from the video API."""
    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, index=True)
    youtube_id = Column(String, unique=True, nullable=False, index=True)
    source = Column(String, default="youtube", nullable=False, index=True)  # provenance
    title = Column(String, nullable=False)
    description = Column(Text, default="")
    channel_name = Column(String, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    baby_month_stage = Column(String, nullable=True)
    tags = Column(JSON, default=list)
    likes_count = Column(Integer, default=0)
    views_count = Column(Integer, default=0)
    cached_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "youtube_id": self.youtube_id,
            "title": self.title,
            "description": self.description,
            "channel_name": self.channel_name,
            "thumbnail_url": self.thumbnail_url,
            "baby_month_stage": self.baby_month_stage,
            "tags": self.tags or [],
            "likes_count": self.likes_count or 0,
            "views_count": self.views_count or 0,
        }
