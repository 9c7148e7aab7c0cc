from fastapi import APIRouter, Depends, Header, HTTPException, status

from quotes_api.dependencies import get_current_user, get_otp_manager, get_session_manager
from quotes_api.errors import AuthError, SmsSendError, TokenError
from quotes_api.models.user import UserEntry
from quotes_api.schemas.otp import (
    OtpVerifyRequest,
    OtpVerifyResponse,
    ResendOtpRequest,
    ResendOtpResponse,
    SendOtpRequest,
    SendOtpResponse,
)
from quotes_api.schemas.tokens import LogoutResponse
from quotes_api.services.otp import OtpManager
from quotes_api.services.sessions import SessionManager

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/send-otp", response_model=SendOtpResponse)
def send_otp(
    payload: SendOtpRequest, otp: OtpManager = Depends(get_otp_manager)
) -> SendOtpResponse:
    try:
        issued = otp.issue_otp(payload.phone_number)
    except AuthError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return SendOtpResponse(
        msg="OTP sent successfully",
        is_new_user=issued.is_new_user,
        expires_in=issued.expires_in,
    )


@router.post("/resend-otp", response_model=ResendOtpResponse)
def resend_otp(
    payload: ResendOtpRequest, otp: OtpManager = Depends(get_otp_manager)
) -> ResendOtpResponse:
    try:
        issued = otp.resend_otp(payload.phone_number)
    except AuthError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except SmsSendError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc
    return ResendOtpResponse(msg="OTP resent successfully", expires_in=issued.expires_in)


@router.post("/verify-otp", response_model=OtpVerifyResponse)
def verify_otp(
    payload: OtpVerifyRequest, otp: OtpManager = Depends(get_otp_manager)
) -> OtpVerifyResponse:
    try:
        verified = otp.verify_otp(payload.phone_number, payload.otp)
    except AuthError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return OtpVerifyResponse(
        msg="OTP verified successfully",
        access_token=verified.access_token,
        expiry=verified.expiry,
        user=verified.user,
        requires_profile_setup=verified.requires_profile_setup,
    )


@router.get("/logout", response_model=LogoutResponse)
def logout(
    authorization: str | None = Header(default=None),
    _: UserEntry = Depends(get_current_user),
    sessions: SessionManager = Depends(get_session_manager),
) -> LogoutResponse:
    try:
        sessions.logout(authorization)
    except AuthError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return LogoutResponse(msg="Logged out successfully")
