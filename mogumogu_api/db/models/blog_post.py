from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from mogumogu_api.core.timeutil import utcnow
from mogumogu_api.db.base import Base


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String, unique=True, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    content = Column(Text, nullable=False, default="")  # Markdown
    category = Column(String, nullable=True, index=True)  # basic | recipe | stage | food | allergy | tips | goods
    baby_stage = Column(String, nullable=True)
    published = Column(Boolean, default=True, nullable=False)
    views_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
