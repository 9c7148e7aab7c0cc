import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt

from quotes_api.errors import TokenError

_DURATION_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}
_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expiry: datetime


def parse_duration(value: str | int) -> timedelta:
    """Turn ``"7d"``, ``"12h"``, ``"30m"``, ``"45s"`` or plain seconds into a timedelta."""
    if isinstance(value, int):
        return timedelta(seconds=value)
    match = _DURATION_PATTERN.match(value)
    if match is None:
        raise TokenError(f"Invalid token lifetime: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _DURATION_UNITS[unit or "s"])


class TokenSigner:
    def __init__(self, secret: str, algorithm: str, lifetime: str | int) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._lifetime = parse_duration(lifetime)

    def sign(self, payload: dict, subject: str, now: datetime) -> str:
        if not self._secret:
            raise TokenError("JWT secret is not configured")
        expires_at = now + self._lifetime
        claims = {
            **payload,
            "sub": subject,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": secrets.token_hex(16),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)
