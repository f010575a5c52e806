import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from ..core.database import get_db, utcnow
from ..core.email import EmailDeliveryError, EmailNotifier
from ..core.errors import InvalidOrExpiredCode
from ..core.session import SessionContext, get_session_context
from ..dependencies import get_auth_service, get_notifier, require_auth
from ..models.banking import BillPayment
from ..models.user import User
from ..schemas.auth import ConfirmActionRequest
from ..schemas.banking import BillPaymentCreate, BillPaymentResponse, ChallengeResponse
from ..services.auth_service import AuthService, BILL_PAYMENT_PURPOSE
from .accounts import get_owned_account

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bill-payments", tags=["bill-payments"])


@router.get("", response_model=List[BillPaymentResponse])
def list_bill_payments(db: Session = Depends(get_db), current_user: User = Depends(require_auth)):
    return db.query(BillPayment).filter(
        BillPayment.user_id == current_user.id
    ).order_by(BillPayment.created_at.desc(), BillPayment.id.desc()).all()


@router.post("", response_model=ChallengeResponse)
async def create_bill_payment(
    payload: BillPaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_auth),
    auth: AuthService = Depends(get_auth_service),
):
    """Record a pending payment and email a bill_payment code to confirm it."""
    account = get_owned_account(db, payload.from_account_id, current_user)
    if not account.is_active:
        raise HTTPException(status_code=400, detail="Account is not active")
    if account.balance < payload.amount:
        raise HTTPException(status_code=400, detail="Insufficient funds")

    payment = BillPayment(
        user_id=current_user.id,
        from_account_id=account.id,
        payee_name=payload.payee_name,
        amount=payload.amount,
        account_number=payload.account_number,
        status="pending",
        scheduled_date=utcnow(),
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)

    challenge = await auth.issue_challenge(current_user, BILL_PAYMENT_PURPOSE)
    payment.challenge_otp_id = challenge.otp_id
    db.commit()
    return ChallengeResponse(resource_id=payment.id)


@router.post("/{payment_id}/confirm", response_model=BillPaymentResponse)
async def confirm_bill_payment(
    payment_id: int,
    payload: ConfirmActionRequest,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    current_user: User = Depends(require_auth),
    auth: AuthService = Depends(get_auth_service),
    notifier: EmailNotifier = Depends(get_notifier),
):
    payment = db.get(BillPayment, payment_id)
    if not payment or payment.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Bill payment not found")
    if payment.status != "pending":
        raise HTTPException(status_code=409, detail="Bill payment is not pending")

    if payment.challenge_otp_id is None:
        raise InvalidOrExpiredCode()
    auth.verify_otp(ctx.state, payload.code, BILL_PAYMENT_PURPOSE, otp_id=payment.challenge_otp_id)

    now = utcnow()
    payment.status = "completed"
    payment.processed_date = now
    payment.reference_number = f"BP{now:%Y%m%d}{payment.id:06d}"
    db.commit()
    db.refresh(payment)

    try:
        await notifier.send_bill_payment_confirmation(
            current_user.email, current_user.name, payment.payee_name, payment.amount, payment.reference_number
        )
    except EmailDeliveryError:
        logger.warning("Bill payment %s completed but confirmation email failed", payment.id)
    return payment
