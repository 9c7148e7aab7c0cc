import re
from dataclasses import dataclass
from datetime import datetime

from pydantic import field_validator

from quotes_api.config import settings
from quotes_api.schemas.common import ApiModel, ApiResponse
from quotes_api.schemas.users import UserProfile

OTP_LENGTH = settings.otp_length
PHONE_PATTERN = re.compile(r"\+[1-9][0-9]{6,14}")


def validate_phone_number(value: str) -> str:
    cleaned = value.strip()
    if not PHONE_PATTERN.fullmatch(cleaned):
        raise ValueError(
            "Phone number must be in international format (e.g., +919876543210)"
        )
    return cleaned


class PhoneNumberRequest(ApiModel):
    phone_number: str

    @field_validator("phone_number")
    @classmethod
    def normalize_phone_number(cls, value: str) -> str:
        return validate_phone_number(value)


class SendOtpRequest(PhoneNumberRequest):
    pass


class ResendOtpRequest(PhoneNumberRequest):
    pass


class OtpVerifyRequest(PhoneNumberRequest):
    otp: str

    @field_validator("otp")
    @classmethod
    def validate_otp(cls, value: str) -> str:
        cleaned = value.strip()
        if len(cleaned) != OTP_LENGTH or not (cleaned.isascii() and cleaned.isdigit()):
            raise ValueError(f"OTP must be exactly {OTP_LENGTH} digits")
        return cleaned


class SendOtpResponse(ApiResponse):
    is_new_user: bool
    expires_in: int


class ResendOtpResponse(ApiResponse):
    expires_in: int


class OtpVerifyResponse(ApiResponse):
    access_token: str
    expiry: datetime
    user: UserProfile
    requires_profile_setup: bool


@dataclass(frozen=True)
class OtpIssued:
    is_new_user: bool
    expires_in: int


@dataclass(frozen=True)
class OtpVerified:
    access_token: str
    expiry: datetime
    user: UserProfile
    requires_profile_setup: bool
