"""
Notifier collaborator: in-app notifications plus structured leave emails.
"""
from html import escape
from typing import Optional, Protocol
import logging

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from pydantic import SecretStr
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from leavedesk.core.config import MailSettings, settings
from leavedesk.models.notification import Notification
from leavedesk.schemas.notification import EmailPayload

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def notify(self, recipient_id: str, message: str, title: str = "Leave Update", type: str = "info") -> None: ...

    async def send_structured_email(self, payload: EmailPayload) -> None: ...


def render_email_body(payload: EmailPayload) -> str:
    fields = payload.template_fields
    rows = "".join(
        f"<tr><td style='padding:4px 12px 4px 0;color:#64748b'>{escape(label)}</td>"
        f"<td style='padding:4px 0'>{escape(str(fields.get(key)))}</td></tr>"
        for key, label in (
            ("requester_name", "Employee"),
            ("leave_type", "Leave type"),
            ("start_date", "From"),
            ("end_date", "To"),
            ("duration_days", "Days"),
            ("reason", "Reason"),
            ("status", "Status"),
            ("comment", "Comment"),
        )
        if fields.get(key) not in (None, "")
    )
    link = ""
    if settings.portal_url and fields.get("request_id"):
        link = f"<p><a href='{escape(settings.portal_url)}/leave/{escape(str(fields['request_id']))}'>Open in the portal</a></p>"
    return (
        f"<div style='font-family:sans-serif'><h3>{escape(payload.subject)}</h3>"
        f"<table>{rows}</table>{link}"
        "<p style='color:#94a3b8;font-size:12px'>This is an automated notification. Please do not reply.</p></div>"
    )


class MailSender:
    """Sends HTML emails through SMTP (fastapi-mail). In mock mode it only logs."""

    def __init__(self, mail_settings: Optional[MailSettings] = None):
        self.settings = mail_settings or settings.mail

    def _connection(self) -> ConnectionConfig:
        return ConnectionConfig(
            MAIL_USERNAME=self.settings.mail_username,
            MAIL_PASSWORD=SecretStr(self.settings.mail_password),
            MAIL_FROM=self.settings.mail_from,
            MAIL_PORT=self.settings.mail_port,
            MAIL_SERVER=self.settings.mail_server,
            MAIL_STARTTLS=self.settings.mail_starttls,
            MAIL_SSL_TLS=not self.settings.mail_starttls,
            USE_CREDENTIALS=bool(self.settings.mail_username),
            VALIDATE_CERTS=True,
        )

    async def send(self, payload: EmailPayload) -> None:
        if self.settings.mock_email:
            logger.info(f"[MOCK EMAIL] To: {', '.join(payload.to)} | Cc: {', '.join(payload.cc) or '-'} | Subject: {payload.subject}")
            return
        message = MessageSchema(
            subject=payload.subject,
            recipients=payload.to,
            cc=payload.cc,
            body=render_email_body(payload),
            subtype=MessageType.html,
        )
        await FastMail(self._connection()).send_message(message)
        logger.info(f"[EMAIL SENT] To: {', '.join(payload.to)}")


class PortalNotifier:
    """Writes in-app notification rows and hands emails to the mail sender."""

    def __init__(self, db: Session, mailer: Optional[MailSender] = None):
        self.db = db
        self.mailer = mailer or MailSender()

    async def notify(self, recipient_id: str, message: str, title: str = "Leave Update", type: str = "info") -> None:
        self.db.add(Notification(member_id=recipient_id, title=title, message=message, type=type))
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    async def send_structured_email(self, payload: EmailPayload) -> None:
        await self.mailer.send(payload)
