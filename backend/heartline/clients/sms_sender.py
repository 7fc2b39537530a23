import logging
from typing import Optional

import httpx

from heartline.core.config import Settings

logger = logging.getLogger(__name__)


class SmsDeliveryError(Exception):
    pass


class SmsSender:
    """Send text messages through the Twilio Messages REST endpoint."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        api_base: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
        enabled: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.enabled = enabled
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmsSender":
        return cls(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_phone_number,
            api_base=settings.twilio_api_base,
            timeout=settings.delivery_timeout_seconds,
            enabled=settings.send_verification_codes,
        )

    @property
    def messages_url(self) -> str:
        return f"{self.api_base}/Accounts/{self.account_sid}/Messages.json"

    async def send_sms(self, to_number: str, body: str) -> str:
        """Send one message and return the provider's message SID."""
        if not self.enabled:
            logger.info("[DEV SMS] to=%s body=%s", to_number, body)
            return "dev"

        if not (self.account_sid and self.auth_token and self.from_number):
            raise SmsDeliveryError("SMS provider credentials are not configured")

        async with httpx.AsyncClient(
            auth=(self.account_sid, self.auth_token),
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.post(
                self.messages_url,
                data={"To": to_number, "From": self.from_number, "Body": body},
            )

        if response.status_code >= 400:
            raise SmsDeliveryError(f"Twilio responded {response.status_code}: {response.text[:200]}")
        return response.json().get("sid", "")

    async def send_verification_code(self, to_number: str, code: str) -> str:
        return await self.send_sms(to_number, f"Your OTP is: {code}")
