#checklist/services/email.py
import logging
from functools import lru_cache
from typing import Optional

from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType

from checklist.core.settings import settings
from checklist.services.email_templates import TEMPLATE_FOLDER

logger = logging.getLogger("Checklist.Email")

def build_connection_config() -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=settings.MAIL_USERNAME,
        MAIL_PASSWORD=settings.MAIL_PASSWORD,
        MAIL_FROM=settings.MAIL_FROM,
        MAIL_FROM_NAME=settings.MAIL_FROM_NAME,
        MAIL_PORT=settings.MAIL_PORT,
        MAIL_SERVER=settings.MAIL_SERVER,
        MAIL_STARTTLS=settings.MAIL_STARTTLS,
        MAIL_SSL_TLS=settings.MAIL_SSL_TLS,
        USE_CREDENTIALS=bool(settings.MAIL_USERNAME),
        VALIDATE_CERTS=True,
        SUPPRESS_SEND=int(settings.MAIL_SUPPRESS_SEND),
        TEMPLATE_FOLDER=TEMPLATE_FOLDER,
    )

class EmailGateway:
    """
    Отправка HTML-писем через fastapi-mail. Клиент создаётся при первой отправке.
    """

    def __init__(self, config: Optional[ConnectionConfig] = None):
        self._config = config
        self._client: Optional[FastMail] = None

    @property
    def client(self) -> FastMail:
        if self._client is None:
            self._client = FastMail(self._config or build_connection_config())
        return self._client

    async def send(self, to: str, subject: str, html: str) -> None:
        message = MessageSchema(
            subject=subject,
            recipients=[to],
            body=html,
            subtype=MessageType.html,
        )
        await self.client.send_message(message)
        logger.info(f"Sent email '{subject}' to {to}")

@lru_cache()
def get_email_gateway() -> EmailGateway:
    return EmailGateway()
