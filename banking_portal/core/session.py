"""Server-side browser sessions.

The cookie carries a signed session id and nothing else. The state itself
(``pending_user_id``, ``user_id``, ``is_authenticated``) lives in the
``web_sessions`` table and is handed to the auth service as an immutable
snapshot; handlers persist whatever snapshot the service returns.
"""

import json
import logging
from dataclasses import asdict, dataclass
from typing import Optional

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from .config import settings, session_max_age
from .database import get_db, utcnow
from .security import create_session_token, decode_session_token, new_session_id
from ..models.session import WebSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionState:
    pending_user_id: Optional[int] = None
    user_id: Optional[int] = None
    is_authenticated: bool = False

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "SessionState":
        data = json.loads(raw or "{}")
        return cls(
            pending_user_id=data.get("pending_user_id"),
            user_id=data.get("user_id"),
            is_authenticated=bool(data.get("is_authenticated", False)),
        )


@dataclass(frozen=True)
class SessionContext:
    """The session a request arrived with. ``sid`` is None for a fresh browser."""
    sid: Optional[str]
    state: SessionState


class SessionStore:
    def __init__(self, db: Session, now=utcnow):
        self.db = db
        self._now = now

    def load(self, sid: str) -> Optional[SessionState]:
        row = self.db.get(WebSession, sid)
        if row is None:
            return None
        if row.expires_at <= self._now():
            self.destroy(sid)
            return None
        return SessionState.from_json(row.data)

    def save(self, sid: str, state: SessionState) -> None:
        row = self.db.get(WebSession, sid)
        if row is None:
            row = WebSession(sid=sid)
            self.db.add(row)
        row.data = state.to_json()
        row.expires_at = self._now() + session_max_age()
        self.db.commit()

    def destroy(self, sid: str) -> None:
        self.db.query(WebSession).filter(WebSession.sid == sid).delete()
        self.db.commit()


def get_session_context(request: Request, db: Session = Depends(get_db)) -> SessionContext:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    sid = decode_session_token(token) if token else None
    state = SessionStore(db).load(sid) if sid else None
    if state is None:
        return SessionContext(sid=None, state=SessionState())
    return SessionContext(sid=sid, state=state)


def _set_session_cookie(response: Response, sid: str) -> None:
    max_age = session_max_age()
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_token(sid, max_age),
        max_age=int(max_age.total_seconds()),
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def commit_session(
    response: Response, db: Session, ctx: SessionContext, state: SessionState, rotate: bool = False
) -> str:
    """Persist ``state`` and (re)issue the cookie. Returns the session id used.

    ``rotate`` moves the state to a fresh id, used when a session is elevated.
    """
    store = SessionStore(db)
    sid = ctx.sid
    if sid is None or rotate:
        if sid is not None:
            store.destroy(sid)
        sid = new_session_id()
    store.save(sid, state)
    _set_session_cookie(response, sid)
    return sid


def clear_session(response: Response, db: Session, ctx: SessionContext) -> None:
    if ctx.sid is not None:
        SessionStore(db).destroy(ctx.sid)
    response.delete_cookie(settings.SESSION_COOKIE_NAME, httponly=True, samesite="lax")
