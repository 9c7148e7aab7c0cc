import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw_value = os.getenv(name, default)
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    jwt_secret: str = os.getenv(
        "JWT_ACCESS_TOKEN_SECRET", os.getenv("JWT_SECRET", "")
    )
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS512")
    access_token_lifetime: str = os.getenv("JWT_ACCESS_TOKEN_LIFETIME", "7d")
    access_token_expiry_seconds: int = int(
        os.getenv("ACCESS_TOKEN_EXPIRY_SECONDS", "604800")
    )
    token_renewal_threshold_seconds: int = int(
        os.getenv("TOKEN_RENEWAL_THRESHOLD_SECONDS", "3600")
    )
    otp_length: int = int(os.getenv("OTP_LENGTH", "6"))
    otp_ttl_seconds: int = int(os.getenv("OTP_TTL_SECONDS", "300"))
    twilio_account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    twilio_auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    twilio_phone_number: str = os.getenv("TWILIO_PHONE_NUMBER", "")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    cors_origins: tuple[str, ...] = _env_list(
        "CORS_ORIGINS", "http://localhost:5173"
    )


@dataclass(frozen=True)
class AuthConfig:
    """Values the OTP and session managers are built with.

    Kept apart from ``Settings`` so the managers can be constructed in tests
    without touching the environment.
    """

    otp_ttl_seconds: int = 300
    otp_length: int = 6
    token_lifetime: str = "7d"
    token_expiry_seconds: int = 604800
    renewal_threshold_seconds: int = 3600
    signing_secret: str = ""
    signing_algorithm: str = "HS512"

    @classmethod
    def from_settings(cls, source: Settings) -> "AuthConfig":
        return cls(
            otp_ttl_seconds=source.otp_ttl_seconds,
            otp_length=source.otp_length,
            token_lifetime=source.access_token_lifetime,
            token_expiry_seconds=source.access_token_expiry_seconds,
            renewal_threshold_seconds=source.token_renewal_threshold_seconds,
            signing_secret=source.jwt_secret,
            signing_algorithm=source.jwt_algorithm,
        )


settings = Settings()
auth_config = AuthConfig.from_settings(settings)
