from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from compcoach.db.base import Base


class WaitlistEntry(Base):
    __tablename__ = "waitlist"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)  # Stored lower-cased
    name = Column(String, nullable=True)
    tier_interest = Column(String, default="pro", nullable=False)
    source = Column(String, default="website", nullable=False)
    status = Column(String, default="pending", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
