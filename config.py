import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv(override=False)


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name, default)
    if v is None:
        return None
    v = v.strip()
    return v if v else None


def _getint(name: str, default: int) -> int:
    try:
        return int(_getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


def _getbool(name: str, default: bool = False) -> bool:
    return (_getenv(name, 'true' if default else 'false') or '').lower() == 'true'


def _getlist(name: str) -> List[str]:
    raw = _getenv(name) or ''
    return [item.strip() for item in raw.split(',') if item.strip()]


class Config:
    """Application settings. This is the only place env vars are read."""

    SECRET_KEY = _getenv('SESSION_SECRET', 'dev-secret-key-change-in-production')
    ALLOWED_ORIGINS = _getenv('ALLOWED_ORIGINS', '*')
    LOG_LEVEL = (_getenv('LOG_LEVEL', 'DEBUG') or 'DEBUG').upper()

    SQLALCHEMY_DATABASE_URI = _getenv('DATABASE_URL', 'sqlite:///hireflow.db')
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_recycle": 300,
        "pool_pre_ping": True,
    }

    UPLOAD_FOLDER = _getenv('UPLOAD_FOLDER', 'uploads')
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max file size

    APP_BASE_URL = _getenv('APP_BASE_URL', 'http://localhost:5000')
    ADMIN_EMAIL = _getenv('ADMIN_EMAIL', 'admin@hireflow.local')
    ADMIN_PASSWORD = _getenv('ADMIN_PASSWORD', 'admin123')

    # Outgoing mail: Resend takes precedence over SMTP, neither means log only
    EMAIL_FROM = _getenv('EMAIL_FROM', 'HireFlow <no-reply@hireflow.local>')
    RESEND_API_KEY = _getenv('RESEND_API_KEY')
    SMTP_ENABLED = _getbool('SMTP_ENABLED')
    SMTP_SERVER = _getenv('SMTP_SERVER', 'smtp.gmail.com')
    SMTP_PORT = _getint('SMTP_PORT', 587)
    SMTP_USER = _getenv('SMTP_USER', '')
    SMTP_PASSWORD = _getenv('SMTP_PASSWORD', '')
    REPORT_RECIPIENTS = _getlist('REPORT_RECIPIENTS')

    OPENAI_API_KEY = _getenv('OPENAI_API_KEY')
    OPENAI_MODEL = _getenv('OPENAI_MODEL', 'gpt-5')

    INVITATION_EXPIRY_DAYS = _getint('INVITATION_EXPIRY_DAYS', 14)
    OFFER_EXPIRY_DAYS = _getint('OFFER_EXPIRY_DAYS', 14)
    START_BACKGROUND_SERVICES = _getbool('START_BACKGROUND_SERVICES', True)
