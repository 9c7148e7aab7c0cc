import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from quotes_api.config import AuthConfig, auth_config
from quotes_api.database import session_scope
from quotes_api.errors import AccountDisabled, InvalidOrExpiredOtp, UserNotFound
from quotes_api.models.otp import OtpEntry
from quotes_api.models.user import UserEntry
from quotes_api.schemas.otp import OtpIssued, OtpVerified
from quotes_api.services.sessions import SessionManager, session_manager
from quotes_api.services.sms import SmsSender, sms_sender
from quotes_api.services.users import UserStore, needs_profile_setup, user_store
from quotes_api.utils.datetime_utils import utcnow

LOGGER = logging.getLogger(__name__)


class OtpManager:
    """Issues and verifies one-time passcodes bound to a phone number.

    Every issue supersedes the user's previous codes, so at most one code is
    active per user. Stale codes are not swept; verification simply ignores
    any code whose expiry has passed.
    """

    def __init__(
        self,
        config: AuthConfig,
        sessions: SessionManager,
        sms: SmsSender,
        users: UserStore = user_store,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._config = config
        self._sessions = sessions
        self._sms = sms
        self._users = users
        self._clock = clock

    def issue_otp(self, phone_number: str) -> OtpIssued:
        with session_scope() as session:
            user, created = self._users.get_or_create(session, phone_number)
            _ensure_active(user)
            code = self._replace_code(session, user)

        # Delivery runs in the background; the code is already committed.
        try:
            self._sms.send_async(phone_number, code)
        except Exception:
            LOGGER.exception("Could not schedule OTP SMS to %s", phone_number)
        return OtpIssued(is_new_user=created, expires_in=self._config.otp_ttl_seconds)

    def resend_otp(self, phone_number: str) -> OtpIssued:
        with session_scope() as session:
            user = self._users.get_by_phone(session, phone_number)
            if user is None:
                raise UserNotFound()
            _ensure_active(user)
            code = self._replace_code(session, user)

        self._sms.send(phone_number, code)
        return OtpIssued(is_new_user=False, expires_in=self._config.otp_ttl_seconds)

    def verify_otp(self, phone_number: str, code: str) -> OtpVerified:
        now = self._clock()
        with session_scope() as session:
            user = self._users.get_by_phone(session, phone_number)
            if user is None:
                raise UserNotFound()
            _ensure_active(user)

            entry = session.execute(
                select(OtpEntry)
                .where(
                    OtpEntry.user_id == user.id,
                    OtpEntry.code == code,
                    OtpEntry.is_expired.is_(False),
                    OtpEntry.expiry > now,
                )
                .order_by(OtpEntry.id.desc())
                .limit(1)
            ).scalar_one_or_none()
            if entry is None:
                raise InvalidOrExpiredOtp()

            entry.is_expired = True
            if not user.is_verified:
                user.is_verified = True

            revoked = self._sessions.invalidate_user_tokens(session, user.id)
            if revoked:
                LOGGER.info("Revoked %s active session(s) for user id=%s", revoked, user.id)
            issued = self._sessions.mint_access_token(session, user)
            profile = self._users.to_profile(user)
            requires_setup = needs_profile_setup(user)

        return OtpVerified(
            access_token=issued.token,
            expiry=issued.expiry,
            user=profile,
            requires_profile_setup=requires_setup,
        )

    def generate_code(self) -> str:
        lowest = 10 ** (self._config.otp_length - 1)
        return str(lowest + secrets.randbelow(9 * lowest))

    def _replace_code(self, session: Session, user: UserEntry) -> str:
        now = self._clock()
        session.execute(
            update(OtpEntry)
            .where(OtpEntry.user_id == user.id, OtpEntry.is_expired.is_(False))
            .values(is_expired=True)
        )
        code = self.generate_code()
        session.add(
            OtpEntry(
                user_id=user.id,
                code=code,
                expiry=now + timedelta(seconds=self._config.otp_ttl_seconds),
                is_expired=False,
            )
        )
        session.flush()
        LOGGER.info("Issued OTP for user id=%s", user.id)
        return code


def _ensure_active(user: UserEntry) -> None:
    if user.is_deleted:
        raise AccountDisabled()


otp_manager = OtpManager(auth_config, session_manager, sms_sender)
