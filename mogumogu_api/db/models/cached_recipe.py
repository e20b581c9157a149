from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from mogumogu_api.core.timeutil import utcnow
from mogumogu_api.db.base import Base


class CachedRecipe(Base):
    """AI-generated recipe kept for reuse by ingredient search."""
    __tablename__ = "cached_recipes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    emoji = Column(String, default="🍽️")
    stage = Column(String, nullable=True)
    time = Column(Integer, default=15)
    difficulty = Column(Integer, default=1)
    ingredients = Column(JSON, default=list)
    ingredients_text = Column(Text, default="")  # ingredient names only, for substring search
    steps = Column(JSON, default=list)
    nutrition = Column(JSON, default=dict)
    tip = Column(Text, default="")
    tags = Column(JSON, default=list)
    baby_month_min = Column(Integer, default=5, nullable=False)
    baby_month_max = Column(Integer, default=18, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "title": self.title,
            "emoji": self.emoji or "🍽️",
            "stage": self.stage,
            "time": self.time or 15,
            "difficulty": self.difficulty or 1,
            "ingredients": self.ingredients or [],
            "steps": self.steps or [],
            "nutrition": self.nutrition or {},
            "tip": self.tip or "",
            "tags": self.tags or [],
        }
