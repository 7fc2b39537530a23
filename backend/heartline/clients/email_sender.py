import logging

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from heartline.core.config import Settings

logger = logging.getLogger(__name__)


class EmailSender:
    """Deliver verification codes over SMTP with fastapi-mail."""

    def __init__(self, config: ConnectionConfig, enabled: bool = True):
        self.config = config
        self.enabled = enabled
        self.fast_mail = FastMail(config)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailSender":
        config = ConnectionConfig(
            MAIL_USERNAME=settings.mail_username,
            MAIL_PASSWORD=settings.mail_password,
            MAIL_FROM=settings.mail_from,
            MAIL_SERVER=settings.mail_server,
            MAIL_PORT=settings.mail_port,
            MAIL_STARTTLS=settings.mail_starttls,
            MAIL_SSL_TLS=settings.mail_ssl_tls,
            USE_CREDENTIALS=bool(settings.mail_username),
            VALIDATE_CERTS=True,
        )
        return cls(config, enabled=settings.send_verification_codes)

    async def send_email(self, to_email: str, subject: str, body_text: str) -> None:
        if not self.enabled:
            logger.info("[DEV EMAIL] to=%s subject=%s body=%s", to_email, subject, body_text)
            return

        message = MessageSchema(
            subject=subject,
            recipients=[to_email],
            body=body_text,
            subtype=MessageType.plain,
        )
        await self.fast_mail.send_message(message)

    async def send_verification_code(self, to_email: str, code: str) -> None:
        await self.send_email(
            to_email=to_email,
            subject="Email Verification",
            body_text=f"Your verification code is: {code}",
        )
