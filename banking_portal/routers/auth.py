from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from ..core.database import get_db
from ..core.errors import NotificationDeliveryFailed
from ..core.session import SessionContext, clear_session, commit_session, get_session_context
from ..dependencies import get_auth_service, require_auth
from ..schemas.auth import LoginRequest, LoginResponse, VerifyOtpRequest, VerifyOtpResponse, MessageResponse, UserResponse
from ..models.user import User
from ..services.auth_service import AuthService, LOGIN_PURPOSE

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    auth: AuthService = Depends(get_auth_service),
):
    """Step 1: check credentials and email a login code."""
    try:
        result = await auth.begin_login(ctx.state, payload.user_id, payload.password)
    except NotificationDeliveryFailed as exc:
        # The pending state survives so the user is not sent back to step 1
        failure = JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})
        if exc.session is not None:
            commit_session(failure, db, ctx, exc.session)
        return failure
    commit_session(response, db, ctx, result.session)
    return LoginResponse(requires_otp=result.requires_otp)


@router.post("/verify-otp", response_model=VerifyOtpResponse)
def verify_otp(
    payload: VerifyOtpRequest,
    response: Response,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    auth: AuthService = Depends(get_auth_service),
):
    """Step 2 of login. Action codes are confirmed by their own /confirm routes."""
    if payload.purpose.strip() != LOGIN_PURPOSE:
        raise HTTPException(status_code=400, detail="Invalid request")

    result = auth.verify_otp(ctx.state, payload.code, LOGIN_PURPOSE)
    commit_session(response, db, ctx, result.session, rotate=True)
    return VerifyOtpResponse(purpose=result.purpose)


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    auth: AuthService = Depends(get_auth_service),
):
    auth.end_session(ctx.state)
    clear_session(response, db, ctx)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(require_auth)):
    return current_user
