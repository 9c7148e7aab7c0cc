"""
Tests for OTP issuance, resend and verification
"""
import logging
from datetime import timedelta

import pytest
from sqlalchemy import select

from quotes_api.config import AuthConfig
from quotes_api.database import session_scope
from quotes_api.errors import AccountDisabled, InvalidOrExpiredOtp, SmsSendError, UserNotFound
from quotes_api.models.otp import OtpEntry
from quotes_api.models.user import UserEntry
from quotes_api.schemas.users import ProfileUpdate
from quotes_api.services.otp import OtpManager
from quotes_api.services.users import user_store
from quotes_api.utils.datetime_utils import as_utc

PHONE = "+15550001111"


def _user(phone_number=PHONE):
    with session_scope() as session:
        return session.execute(
            select(UserEntry).where(UserEntry.phone_number == phone_number)
        ).scalar_one_or_none()


def _otps(user_id):
    with session_scope() as session:
        return (
            session.execute(
                select(OtpEntry).where(OtpEntry.user_id == user_id).order_by(OtpEntry.id)
            )
            .scalars()
            .all()
        )


def _set_user_flags(phone_number=PHONE, **values):
    with session_scope() as session:
        entry = session.execute(
            select(UserEntry).where(UserEntry.phone_number == phone_number)
        ).scalar_one()
        for field, value in values.items():
            setattr(entry, field, value)


def test_issue_otp_creates_user_and_code(otp, sms, clock):
    issued = otp.issue_otp(PHONE)

    assert issued.is_new_user is True
    assert issued.expires_in == 300

    user = _user()
    assert user.name == ""
    assert user.account_type == "personal"
    assert user.is_verified is False

    records = _otps(user.id)
    assert len(records) == 1
    code = records[0].code
    assert len(code) == 6 and code.isdigit()
    assert as_utc(records[0].expiry) == clock.now + timedelta(seconds=300)
    assert sms.sent == [(PHONE, code, "async")]


def test_issue_otp_for_existing_user(otp):
    otp.issue_otp(PHONE)
    issued = otp.issue_otp(PHONE)
    assert issued.is_new_user is False


def test_issuing_twice_leaves_one_active_code(otp, sms):
    otp.issue_otp(PHONE)
    otp.issue_otp(PHONE)

    records = _otps(_user().id)
    active = [record for record in records if not record.is_expired]
    assert len(records) == 2
    assert len(active) == 1
    assert active[0].code == sms.last_code(PHONE)


def test_issue_otp_rejects_deleted_account(otp):
    otp.issue_otp(PHONE)
    _set_user_flags(is_deleted=True)

    with pytest.raises(AccountDisabled):
        otp.issue_otp(PHONE)


def test_resend_requires_existing_user(otp, sms):
    with pytest.raises(UserNotFound):
        otp.resend_otp("+15559999999")
    assert _user("+15559999999") is None
    assert sms.sent == []


def test_resend_supersedes_previous_code(otp, sms):
    otp.issue_otp(PHONE)
    first_code = sms.last_code(PHONE)

    issued = otp.resend_otp(PHONE)

    assert issued.expires_in == 300
    assert sms.sent[-1][2] == "sync"
    second_code = sms.last_code(PHONE)

    first_row, second_row = _otps(_user().id)
    assert first_row.code == first_code
    assert first_row.is_expired is True
    assert second_row.code == second_code
    assert second_row.is_expired is False
    assert otp.verify_otp(PHONE, second_code).access_token


def test_issue_otp_survives_sms_scheduling_failure(otp, sms, caplog):
    def broken_send_async(to_phone, code):
        raise RuntimeError("cannot schedule new futures after shutdown")

    sms.send_async = broken_send_async
    caplog.set_level(logging.ERROR, logger="quotes_api.services.otp")

    issued = otp.issue_otp(PHONE)

    assert issued.is_new_user is True
    records = _otps(_user().id)
    assert len(records) == 1
    assert records[0].is_expired is False
    assert "Could not schedule OTP SMS to +15550001111" in caplog.text


def test_resend_propagates_sms_failure(otp, sms):
    otp.issue_otp(PHONE)
    sms.fail = True

    with pytest.raises(SmsSendError):
        otp.resend_otp(PHONE)


def test_resend_rejects_deleted_account(otp):
    otp.issue_otp(PHONE)
    _set_user_flags(is_deleted=True)

    with pytest.raises(AccountDisabled):
        otp.resend_otp(PHONE)


def test_verify_with_wrong_code(otp):
    otp.issue_otp(PHONE)

    with pytest.raises(InvalidOrExpiredOtp):
        otp.verify_otp(PHONE, "000000")


def test_verify_succeeds_once(otp, sms):
    otp.issue_otp(PHONE)
    code = sms.last_code(PHONE)

    verified = otp.verify_otp(PHONE, code)

    assert verified.access_token
    assert verified.requires_profile_setup is True
    assert verified.user.is_verified is True
    assert verified.user.phone_number == PHONE
    assert verified.user.name is None
    assert _user().is_verified is True

    with pytest.raises(InvalidOrExpiredOtp):
        otp.verify_otp(PHONE, code)


def test_verify_after_ttl_fails(otp, sms, clock):
    otp.issue_otp(PHONE)
    code = sms.last_code(PHONE)
    clock.advance(seconds=301)

    with pytest.raises(InvalidOrExpiredOtp):
        otp.verify_otp(PHONE, code)

    record = _otps(_user().id)[0]
    assert record.is_expired is False


def test_verify_at_exact_expiry_fails(otp, sms, clock):
    otp.issue_otp(PHONE)
    code = sms.last_code(PHONE)
    clock.advance(seconds=300)

    with pytest.raises(InvalidOrExpiredOtp):
        otp.verify_otp(PHONE, code)


def test_verify_just_before_expiry_succeeds(otp, sms, clock):
    otp.issue_otp(PHONE)
    code = sms.last_code(PHONE)
    clock.advance(seconds=299)

    assert otp.verify_otp(PHONE, code).access_token


def test_verify_unknown_user(otp):
    with pytest.raises(UserNotFound):
        otp.verify_otp(PHONE, "123456")


def test_verify_rejects_deleted_account(otp, sms):
    otp.issue_otp(PHONE)
    code = sms.last_code(PHONE)
    _set_user_flags(is_deleted=True)

    with pytest.raises(AccountDisabled):
        otp.verify_otp(PHONE, code)


def test_profile_setup_flag_follows_name(otp, login):
    first = login()
    assert first.requires_profile_setup is True

    user_store.update_profile(first.user.id, ProfileUpdate(name="Ada Lovelace"))
    second = login()
    assert second.requires_profile_setup is False
    assert second.user.name == "Ada Lovelace"

    _set_user_flags(name="   ")
    third = login()
    assert third.requires_profile_setup is True


def test_generate_code_range(otp):
    for _ in range(200):
        code = otp.generate_code()
        assert len(code) == 6
        assert 100000 <= int(code) <= 999999


def test_generate_code_uses_configured_length(sessions, sms):
    manager = OtpManager(AuthConfig(otp_length=4), sessions, sms)
    for _ in range(50):
        code = manager.generate_code()
        assert len(code) == 4
        assert 1000 <= int(code) <= 9999
