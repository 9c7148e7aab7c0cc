from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String

from quotes_api.database import Base
from quotes_api.utils.datetime_utils import utcnow


class OtpEntry(Base):
    __tablename__ = "otps"

    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    code = Column(String(10), nullable=False)
    expiry = Column(DateTime(timezone=True), nullable=False)
    is_expired = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (Index("ix_otps_user_id_is_expired", "user_id", "is_expired"),)
