import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    APP_NAME: str = "East Coast Credit Union Online Banking"
    SQLALCHEMY_DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./banking_portal.db")

    # Session cookie (server-side session, signed id in the cookie)
    SESSION_SECRET: str = os.getenv("SESSION_SECRET", "change_this_secret")
    SESSION_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "eccu.session.id")
    SESSION_MAX_AGE_HOURS: int = int(os.getenv("SESSION_MAX_AGE_HOURS", "24"))
    SESSION_COOKIE_SECURE: bool = _env_bool("SESSION_COOKIE_SECURE", "false")

    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    SEED_DEMO_DATA: bool = _env_bool("SEED_DEMO_DATA", "true")

    # Brevo Email API
    BREVO_API_KEY: str = os.getenv("BREVO_API_KEY", "")
    BREVO_API_URL: str = os.getenv("BREVO_API_URL", "https://api.brevo.com/v3/smtp/email")
    EMAIL_FROM_ADDRESS: str = os.getenv("EMAIL_FROM_ADDRESS", "noreply@example.com")
    EMAIL_FROM_NAME: str = os.getenv("EMAIL_FROM_NAME", "East Coast Credit Union")
    BANK_NAME: str = os.getenv("BANK_NAME", "East Coast Credit Union")
    SUPPORT_PHONE: str = os.getenv("SUPPORT_PHONE", "1-800-226-6890")

    OTP_EXPIRE_MINUTES: int = int(os.getenv("OTP_EXPIRE_MINUTES", "10"))

settings = Settings()

def session_max_age():
    return timedelta(hours=settings.SESSION_MAX_AGE_HOURS)


def otp_expires():
    return timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
