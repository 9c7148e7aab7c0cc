from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from quotes_api.database import Base
from quotes_api.utils.datetime_utils import utcnow


class AccountType(str, Enum):
    PERSONAL = "personal"
    BUSINESS = "business"


class UserEntry(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    phone_number = Column(String(20), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False, default="")
    profile_image_url = Column(String(500), nullable=True)
    account_type = Column(
        String(20), nullable=False, default=AccountType.PERSONAL.value
    )
    is_verified = Column(Boolean, nullable=False, default=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self):
        return f"<UserEntry(id={self.id}, phone_number={self.phone_number})>"
