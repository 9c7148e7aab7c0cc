from typing import Optional

from pydantic import Field, field_validator

from quotes_api.models.user import AccountType
from quotes_api.schemas.common import ApiModel, ApiResponse


class UserProfile(ApiModel):
    id: int
    phone_number: str
    name: Optional[str] = None
    profile_image_url: Optional[str] = None
    account_type: AccountType
    is_verified: bool
    is_deleted: bool


class ProfileUpdate(ApiModel):
    name: Optional[str] = Field(default=None, max_length=255)
    account_type: Optional[AccountType] = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if len(cleaned) < 2:
            raise ValueError("Name must be at least 2 characters")
        return cleaned


class ProfileResponse(ApiModel):
    error: bool = False
    status_code: int = 200
    user: UserProfile


class ProfileUpdateResponse(ApiResponse):
    user: UserProfile
