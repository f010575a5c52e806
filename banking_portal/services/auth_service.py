# Auth Service - credential check, OTP challenges and session elevation
#
# The service never touches cookies or request objects. It receives the
# request's session snapshot and returns the snapshot the caller must persist.

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from fastapi.concurrency import run_in_threadpool

from ..core.config import otp_expires
from ..core.database import utcnow
from ..core.email import EmailDeliveryError
from ..core.errors import (
    InvalidCredentials,
    InvalidOrExpiredCode,
    NoPendingChallenge,
    NotificationDeliveryFailed,
)
from ..core.security import dummy_verify_password, generate_otp, verify_password
from ..core.session import SessionState
from ..models.user import User
from .storage import CredentialStore, Notifier, OtpLedger

logger = logging.getLogger(__name__)

LOGIN_PURPOSE = "login"
BILL_PAYMENT_PURPOSE = "bill_payment"
CHEQUE_ORDER_PURPOSE = "cheque_order"


def normalize_purpose(purpose: str) -> str:
    """Purposes are an open set of keys; only emptiness is rejected."""
    cleaned = (purpose or "").strip()
    if not cleaned:
        raise ValueError("purpose must be a non-empty string")
    return cleaned


@dataclass(frozen=True)
class LoginResult:
    session: SessionState
    requires_otp: bool = True


@dataclass(frozen=True)
class OtpChallenge:
    otp_id: int
    purpose: str
    expires_at: datetime


@dataclass(frozen=True)
class VerifyResult:
    purpose: str
    user_id: int
    session: SessionState


class AuthService:
    """Login and step-up verification over a credential store, an OTP ledger and a notifier."""

    def __init__(
        self,
        credentials: CredentialStore,
        ledger: OtpLedger,
        notifier: Notifier,
        now: Callable[[], datetime] = utcnow,
        otp_ttl: Optional[timedelta] = None,
    ):
        self.credentials = credentials
        self.ledger = ledger
        self.notifier = notifier
        self._now = now
        self.otp_ttl = otp_ttl or otp_expires()

    async def begin_login(self, session: SessionState, external_id: str, secret: str) -> LoginResult:
        """
        Check credentials and send a login code.

        Unknown, inactive and wrong-password cases all raise the same
        InvalidCredentials. On success the returned session is pending, not
        authenticated.
        """
        user = self.credentials.find_user_by_external_id(external_id)
        if user is None or not user.is_active:
            await run_in_threadpool(dummy_verify_password)
            logger.info("Login rejected")
            raise InvalidCredentials()
        if not await run_in_threadpool(verify_password, secret, user.password_hash):
            logger.info("Login rejected")
            raise InvalidCredentials()

        pending = SessionState(pending_user_id=user.id)
        try:
            await self.issue_challenge(user, LOGIN_PURPOSE)
        except NotificationDeliveryFailed as exc:
            # Credentials were valid: keep the pending state and the OTP row.
            raise NotificationDeliveryFailed(session=pending) from exc

        logger.info("Credentials accepted for user %s, awaiting OTP", user.id)
        return LoginResult(session=pending)

    async def issue_challenge(self, user: User, purpose: str) -> OtpChallenge:
        """Persist a fresh code for ``purpose`` and send it to the user's email."""
        purpose = normalize_purpose(purpose)
        code = generate_otp()
        expires_at = self._now() + self.otp_ttl
        otp_id = self.ledger.create_otp(user.id, code, purpose, expires_at)

        try:
            await self.notifier.send_otp_notification(user.email, code, user.name, purpose)
        except EmailDeliveryError as exc:
            logger.error("OTP %s (%s) for user %s could not be delivered", otp_id, purpose, user.id)
            raise NotificationDeliveryFailed() from exc

        logger.info("Issued %s OTP %s for user %s", purpose, otp_id, user.id)
        return OtpChallenge(otp_id=otp_id, purpose=purpose, expires_at=expires_at)

    def verify_otp(
        self, session: SessionState, code: str, purpose: str, otp_id: Optional[int] = None
    ) -> VerifyResult:
        """
        Consume a code for ``purpose``.

        ``login`` resolves the user from ``pending_user_id`` and promotes the
        session; any other purpose resolves it from the authenticated
        ``user_id`` and leaves the session as is. Actions pass the ``otp_id``
        of the challenge they issued so that only that code finalizes them.
        """
        purpose = normalize_purpose(purpose)
        if purpose == LOGIN_PURPOSE:
            user_id = session.pending_user_id
        else:
            user_id = session.user_id if session.is_authenticated else None
        if user_id is None:
            raise NoPendingChallenge()

        record = self.ledger.find_valid_otp(user_id, code, purpose, otp_id=otp_id)
        if record is None or self._now() >= record.expires_at:
            raise InvalidOrExpiredCode()
        if not self.ledger.mark_otp_used(record.id):
            # Another request consumed it between our read and write
            raise InvalidOrExpiredCode()

        if purpose == LOGIN_PURPOSE:
            self.credentials.update_last_login(user_id)
            logger.info("User %s authenticated", user_id)
            new_session = SessionState(user_id=user_id, is_authenticated=True)
        else:
            logger.info("User %s confirmed %s", user_id, purpose)
            new_session = session
        return VerifyResult(purpose=purpose, user_id=user_id, session=new_session)

    def end_session(self, session: SessionState) -> SessionState:
        if session.user_id is not None:
            logger.info("User %s signed out", session.user_id)
        return SessionState()
