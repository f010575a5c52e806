# Stores the auth service depends on, and their SQLAlchemy implementations.

from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..core.database import utcnow
from ..models.otp import OtpCode
from ..models.user import User


class CredentialStore(Protocol):
    def find_user_by_external_id(self, external_id: str) -> Optional[User]: ...

    def find_user_by_internal_id(self, user_id: int) -> Optional[User]: ...

    def update_last_login(self, user_id: int) -> None: ...


class OtpLedger(Protocol):
    def create_otp(self, user_id: int, code: str, purpose: str, expires_at: datetime) -> int: ...

    def find_valid_otp(
        self, user_id: int, code: str, purpose: str, otp_id: Optional[int] = None
    ) -> Optional[OtpCode]: ...

    def mark_otp_used(self, otp_id: int) -> bool: ...


class Notifier(Protocol):
    async def send_otp_notification(self, to_email: str, otp_code: str, name: str, purpose: str) -> None: ...


class SqlCredentialStore:
    def __init__(self, db: Session):
        self.db = db

    def find_user_by_external_id(self, external_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.user_id == external_id).first()

    def find_user_by_internal_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def update_last_login(self, user_id: int) -> None:
        self.db.execute(update(User).where(User.id == user_id).values(last_login=utcnow()))
        self.db.commit()


class SqlOtpLedger:
    def __init__(self, db: Session):
        self.db = db

    def create_otp(self, user_id: int, code: str, purpose: str, expires_at: datetime) -> int:
        record = OtpCode(
            user_id=user_id,
            code=code,
            purpose=purpose,
            used=False,
            expires_at=expires_at,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record.id

    def find_valid_otp(
        self, user_id: int, code: str, purpose: str, otp_id: Optional[int] = None
    ) -> Optional[OtpCode]:
        """Newest unused row for the exact (user, code, purpose). Expiry is the caller's check.

        With ``otp_id`` only that row can match.
        """
        query = self.db.query(OtpCode).filter(
            OtpCode.user_id == user_id,
            OtpCode.code == code,
            OtpCode.purpose == purpose,
            OtpCode.used == False,
        )
        if otp_id is not None:
            query = query.filter(OtpCode.id == otp_id)
        return query.order_by(OtpCode.created_at.desc(), OtpCode.id.desc()).first()

    def mark_otp_used(self, otp_id: int) -> bool:
        """Flip ``used`` only if it is still false. True iff this call did the flip."""
        result = self.db.execute(
            update(OtpCode)
            .where(OtpCode.id == otp_id, OtpCode.used == False)
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1
