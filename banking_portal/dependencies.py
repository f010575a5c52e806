from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session
from .core.database import get_db
from .core.email import EmailNotifier
from .core.session import SessionContext, get_session_context
from .models.user import User
from .services.auth_service import AuthService
from .services.storage import SqlCredentialStore, SqlOtpLedger


def get_notifier() -> EmailNotifier:
    return EmailNotifier()


def get_auth_service(db: Session = Depends(get_db), notifier: EmailNotifier = Depends(get_notifier)) -> AuthService:
    return AuthService(
        credentials=SqlCredentialStore(db),
        ledger=SqlOtpLedger(db),
        notifier=notifier,
    )


def require_auth(ctx: SessionContext = Depends(get_session_context), db: Session = Depends(get_db)) -> User:
    """Return the signed-in user, or 401 unless the session passed both login steps."""
    state = ctx.state
    if not state.is_authenticated or state.user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    user = db.get(User, state.user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user
