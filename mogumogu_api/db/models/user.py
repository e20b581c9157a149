from sqlalchemy import Column, String, Boolean, DateTime
from mogumogu_api.core.timeutil import utcnow
from mogumogu_api.db.base import Base


class User(Base):
    """
    Application profile for an identity-service account.

    ``id`` is the identity service's user id (the JWT ``sub``).
    """
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, index=True)
    is_premium = Column(Boolean, default=False, nullable=False)
    stripe_customer_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
