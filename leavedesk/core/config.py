import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class MailSettings(BaseModel):
    mail_server: str = Field(default=os.getenv("MAIL_SERVER", "smtp.gmail.com"))
    mail_port: int = Field(default=int(os.getenv("MAIL_PORT", "587")))
    mail_username: str = Field(default=os.getenv("MAIL_USERNAME", ""))
    mail_password: str = Field(default=os.getenv("MAIL_PASSWORD", ""))
    mail_from: str = Field(default=os.getenv("MAIL_FROM", "hr@example.com"))
    mail_starttls: bool = Field(default=os.getenv("MAIL_STARTTLS", "true").lower() == "true")
    # When set, emails are only logged (no SMTP connection is made)
    mock_email: bool = Field(default=os.getenv("MOCK_EMAIL", "true").lower() == "true")

class Config(BaseModel):
    app_name: str = "Leave Desk"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = os.getenv("API_PREFIX", "/api")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./leavedesk.db")

    version: str = "1.0.0"
    build_id: str = os.getenv("BUILD_ID", "local")
    request_id_header: str = "X-Request-ID"
    actor_id_header: str = "X-Actor-Id"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

    # Leave rules
    approver_title_token: str = os.getenv("APPROVER_TITLE_TOKEN", "manager")
    medical_certificate_keyword: str = os.getenv("MEDICAL_CERTIFICATE_KEYWORD", "sick")
    medical_certificate_threshold_days: float = float(os.getenv("MEDICAL_CERTIFICATE_THRESHOLD_DAYS", "2"))

    # Notifications
    mail: MailSettings = MailSettings()
    portal_url: Optional[str] = os.getenv("PORTAL_URL")

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment == "production" and not settings.mail.mock_email:
    _critical_missing = []
    if not settings.mail.mail_username:
        _critical_missing.append("MAIL_USERNAME")
    if not settings.mail.mail_password:
        _critical_missing.append("MAIL_PASSWORD")
    if _critical_missing:
        raise RuntimeError(
            f"FATAL: The following mail settings must be set when MOCK_EMAIL is disabled: "
            f"{', '.join(_critical_missing)}. Set them as environment variables."
        )
elif settings.mail.mock_email:
    _logger.info("MOCK_EMAIL enabled: leave emails will be logged, not sent.")
