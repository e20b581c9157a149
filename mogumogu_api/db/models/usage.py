from sqlalchemy import Column, Integer, String, Text, DateTime, Index
from mogumogu_api.core.timeutil import utcnow
from mogumogu_api.db.base import Base


class UsageEvent(Base):
    """
    One successful AI call, used for daily free-tier quota accounting.

    Rows are inserted after each completion and never updated or deleted.
    """
    __tablename__ = "usage_events"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    feature = Column(String, nullable=False, index=True)  # "ai_consultation", "recipe_generation", "recipe_search"
    input_excerpt = Column(Text, nullable=True)
    output_excerpt = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Composite index for the per-day count
    __table_args__ = (
        Index("idx_usage_user_feature_created", "user_id", "feature", "created_at"),
    )
