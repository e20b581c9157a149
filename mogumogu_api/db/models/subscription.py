from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from mogumogu_api.core.timeutil import utcnow
from mogumogu_api.db.base import Base


class Subscription(Base):
    """Snapshot of the user's Stripe subscription."""
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), unique=True, nullable=False)

    stripe_customer_id = Column(String, nullable=True, index=True)
    stripe_subscription_id = Column(String, nullable=True, index=True)
    plan = Column(String, default="free")  # free | premium_monthly | premium_yearly
    status = Column(String, default="inactive")  # trialing | active | past_due | canceled | ...

    trial_start = Column(DateTime, nullable=True)
    trial_end = Column(DateTime, nullable=True)
    current_period_start = Column(DateTime, nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    ACTIVE_STATUSES = ("active", "trialing")

    @property
    def is_active(self) -> bool:
        return self.status in self.ACTIVE_STATUSES

    def to_dict(self) -> dict:
        def iso(value):
            return value.isoformat() + "Z" if value else None

        return {
            "status": self.status,
            "plan": self.plan,
            "trial_end": iso(self.trial_end),
            "current_period_end": iso(self.current_period_end),
            "cancel_at_period_end": bool(self.cancel_at_period_end),
        }
