import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

from .config import settings, session_max_age

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__truncate_error=False)

OTP_MIN = 100000
OTP_MAX = 999999


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify_password() -> None:
    """Spend the same bcrypt time as a real check when there is no user."""
    pwd_context.dummy_verify()


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def generate_otp() -> str:
    """Generate a 6-digit OTP code in [100000, 999999] from the OS CSPRNG."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def create_session_token(sid: str, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a session id for the session cookie."""
    expire = datetime.now(timezone.utc) + (expires_delta or session_max_age())
    return jwt.encode({"sid": sid, "exp": expire}, settings.SESSION_SECRET, algorithm=settings.SESSION_ALGORITHM)


def decode_session_token(token: str) -> Optional[str]:
    """Return the session id from a cookie value, or None if it is forged or expired."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=[settings.SESSION_ALGORITHM])
    except jwt.PyJWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) and sid else None
