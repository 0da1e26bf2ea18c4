from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.sql import func
from swiftnotes.db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserProfile(Base):
    __tablename__ = "user_profiles"

    # Same id as the hosted auth provider's user record
    user_id = Column(UUID(as_uuid=False), primary_key=True, index=True)
    email = Column(String, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    writing_style = Column(Text, nullable=True)
    tier = Column(String, nullable=False, default="free", server_default="free")
    credits = Column(Integer, nullable=False, default=100, server_default="100")
    has_completed_setup = Column(Boolean, nullable=False, default=False, server_default="false")

    # Open JSON document of user settings; always stored in object form
    preferences = Column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
        server_default="{}",
    )

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
