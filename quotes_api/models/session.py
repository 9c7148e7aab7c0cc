from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Text

from quotes_api.database import Base
from quotes_api.utils.datetime_utils import utcnow


class AccessTokenEntry(Base):
    __tablename__ = "access_tokens"

    id = Column(Integer, primary_key=True)
    token = Column(Text, nullable=False, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expiry = Column(DateTime(timezone=True), nullable=False)
    is_expired = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
