from fastapi import Depends, Header, HTTPException, Request

from quotes_api.errors import AuthError
from quotes_api.models.user import UserEntry
from quotes_api.services.otp import OtpManager, otp_manager
from quotes_api.services.sessions import SessionManager, session_manager
from quotes_api.services.users import UserStore, user_store


def get_otp_manager() -> OtpManager:
    return otp_manager


def get_session_manager() -> SessionManager:
    return session_manager


def get_user_store() -> UserStore:
    return user_store


def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
    sessions: SessionManager = Depends(get_session_manager),
) -> UserEntry:
    try:
        user = sessions.authenticate(authorization)
    except AuthError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    request.state.user = user
    return user
