from __future__ import annotations

import base64
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from quotes_api.config import settings
from quotes_api.errors import SmsSendError

LOGGER = logging.getLogger(__name__)

TWILIO_MESSAGES_ENDPOINT = (
    "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"
)


class SmsSender:
    """Delivers OTP codes through Twilio.

    ``send`` blocks until Twilio answers and raises ``SmsSendError`` on
    failure. ``send_async`` hands the same call to a worker thread and only
    logs the outcome. Without credentials both modes log the code instead of
    sending it.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        ttl_seconds: int,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._ttl_seconds = ttl_seconds
        self._executor = executor

    @property
    def configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    def send(self, to_phone: str, code: str) -> bool:
        if not self.configured:
            LOGGER.info("[DEV MODE] OTP for %s: %s", to_phone, code)
            return True

        endpoint = TWILIO_MESSAGES_ENDPOINT.format(account_sid=self._account_sid)
        payload = urlencode(
            {
                "To": to_phone,
                "From": self._from_number,
                "Body": build_body(code, self._ttl_seconds),
            }
        ).encode("utf-8")
        token = base64.b64encode(
            f"{self._account_sid}:{self._auth_token}".encode("utf-8")
        ).decode("ascii")
        request = Request(
            endpoint,
            data=payload,
            headers={
                "Authorization": f"Basic {token}",
                "Content-Type": "application/x-www-form-urlencoded",
            },
            method="POST",
        )
        try:
            with urlopen(request, timeout=10) as response:
                response.read()
        except HTTPError as exc:
            error_body = exc.read().decode("utf-8", errors="replace")
            LOGGER.error("Twilio API error to=%s response=%s", to_phone, error_body)
            raise SmsSendError("Failed to send OTP SMS") from exc
        except URLError as exc:
            raise SmsSendError("Failed to reach Twilio API") from exc

        LOGGER.info("OTP sent successfully to %s", to_phone)
        return True

    def send_async(self, to_phone: str, code: str) -> None:
        future = self._get_executor().submit(self.send, to_phone, code)
        future.add_done_callback(lambda done: _log_failure(done, to_phone))

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=2, thread_name_prefix="sms"
            )
        return self._executor


def build_body(code: str, ttl_seconds: int) -> str:
    minutes = max(1, ttl_seconds // 60)
    return f"Your verification code is: {code}. Valid for {minutes} minutes."


def _log_failure(future: Future, to_phone: str) -> None:
    exc = future.exception()
    if exc is not None:
        LOGGER.error("Background OTP SMS to %s failed: %s", to_phone, exc)


sms_sender = SmsSender(
    settings.twilio_account_sid,
    settings.twilio_auth_token,
    settings.twilio_phone_number,
    settings.otp_ttl_seconds,
)
