import logging
from datetime import datetime, timedelta
from typing import Callable

from fastapi import status
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from quotes_api.config import AuthConfig, auth_config
from quotes_api.database import session_scope
from quotes_api.errors import AccountDisabled, NotVerified, SessionExpired, Unauthenticated
from quotes_api.models.session import AccessTokenEntry
from quotes_api.models.user import UserEntry
from quotes_api.services.tokens import IssuedToken, TokenSigner
from quotes_api.utils.datetime_utils import as_utc, utcnow

LOGGER = logging.getLogger(__name__)


def extract_bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise Unauthenticated()
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthenticated()
    return token


class SessionManager:
    """Issues access tokens and checks them on every authenticated request.

    A token is valid while its row exists, is not flagged expired and its
    stored expiry lies in the future. The JWT signature is never checked
    here; the database row is the source of truth.
    """

    def __init__(
        self,
        config: AuthConfig,
        signer: TokenSigner,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._config = config
        self._signer = signer
        self._clock = clock
        self._renewal_threshold = timedelta(seconds=config.renewal_threshold_seconds)

    def mint_access_token(self, session: Session, user: UserEntry) -> IssuedToken:
        now = self._clock()
        payload = {
            "phoneNumber": user.phone_number,
            "user": {"id": user.id, "name": user.name},
        }
        token = self._signer.sign(payload, subject=user.phone_number, now=now)
        expiry = now + timedelta(seconds=self._config.token_expiry_seconds)
        session.add(
            AccessTokenEntry(
                token=token,
                user_id=user.id,
                expiry=expiry,
                is_expired=False,
            )
        )
        session.flush()
        return IssuedToken(token=token, expiry=expiry)

    def invalidate_user_tokens(self, session: Session, user_id: int) -> int:
        result = session.execute(
            update(AccessTokenEntry)
            .where(
                AccessTokenEntry.user_id == user_id,
                AccessTokenEntry.is_expired.is_(False),
            )
            .values(is_expired=True)
        )
        return result.rowcount

    def authenticate(self, authorization: str | None) -> UserEntry:
        token = extract_bearer_token(authorization)
        now = self._clock()

        with session_scope() as session:
            entry = session.execute(
                select(AccessTokenEntry).where(
                    AccessTokenEntry.token == token,
                    AccessTokenEntry.is_expired.is_(False),
                )
            ).scalar_one_or_none()
            if entry is None:
                raise Unauthenticated(
                    "Authentication token is missing or invalid. Please log in again."
                )

            expiry = as_utc(entry.expiry)
            expired = expiry <= now or entry.is_expired
            user = None
            if expired:
                entry.is_expired = True
            else:
                if expiry - now < self._renewal_threshold:
                    entry.expiry = now + self._renewal_threshold
                    LOGGER.info("Extended access token id=%s", entry.id)
                user = session.get(UserEntry, entry.user_id)

        # The expired flag has to be committed before the request is rejected.
        if expired:
            LOGGER.info("Access token id=%s expired", entry.id)
            raise SessionExpired()
        if user is None:
            raise Unauthenticated("User not found.")
        if user.is_deleted:
            raise AccountDisabled(status_code=status.HTTP_401_UNAUTHORIZED)
        if not user.is_verified:
            raise NotVerified()
        return user

    def logout(self, authorization: str | None) -> None:
        token = extract_bearer_token(authorization)
        now = self._clock()
        with session_scope() as session:
            entry = session.execute(
                select(AccessTokenEntry).where(AccessTokenEntry.token == token)
            ).scalar_one_or_none()
            if entry is None:
                raise Unauthenticated("Invalid access token")
            entry.is_expired = True
            entry.expiry = now
            LOGGER.info("Logged out user id=%s", entry.user_id)


session_manager = SessionManager(
    auth_config,
    TokenSigner(
        auth_config.signing_secret,
        auth_config.signing_algorithm,
        auth_config.token_lifetime,
    ),
)
