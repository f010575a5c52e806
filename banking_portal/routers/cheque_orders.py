import logging
import secrets
from decimal import Decimal
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from ..core.database import get_db, utcnow
from ..core.email import EmailDeliveryError, EmailNotifier
from ..core.errors import InvalidOrExpiredCode
from ..core.session import SessionContext, get_session_context
from ..dependencies import get_auth_service, get_notifier, require_auth
from ..models.banking import ChequeOrder
from ..models.user import User
from ..schemas.auth import ConfirmActionRequest
from ..schemas.banking import ChequeOrderCreate, ChequeOrderResponse, ChallengeResponse
from ..services.auth_service import AuthService, CHEQUE_ORDER_PURPOSE
from .accounts import get_owned_account

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cheque-orders", tags=["cheque-orders"])

# Book price by cheque count; other counts are billed at the 100-cheque price
CHEQUE_BOOK_PRICES = {50: Decimal("25.00"), 100: Decimal("45.00"), 200: Decimal("85.00")}
DEFAULT_BOOK_PRICE = Decimal("45.00")
EXPRESS_SURCHARGE = Decimal("15.00")


def cheque_order_cost(quantity: int, delivery_method: str) -> Decimal:
    cost = CHEQUE_BOOK_PRICES.get(quantity, DEFAULT_BOOK_PRICE)
    if delivery_method.strip().lower() == "express":
        cost += EXPRESS_SURCHARGE
    return cost


def _generate_order_number(db: Session) -> str:
    year = utcnow().year
    while True:
        candidate = f"CO-{year}-{secrets.randbelow(1_000_000):06d}"
        if not db.query(ChequeOrder).filter(ChequeOrder.order_number == candidate).first():
            return candidate


@router.get("", response_model=List[ChequeOrderResponse])
def list_cheque_orders(db: Session = Depends(get_db), current_user: User = Depends(require_auth)):
    return db.query(ChequeOrder).filter(
        ChequeOrder.user_id == current_user.id
    ).order_by(ChequeOrder.order_date.desc(), ChequeOrder.id.desc()).all()


@router.post("", response_model=ChallengeResponse)
async def create_cheque_order(
    payload: ChequeOrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_auth),
    auth: AuthService = Depends(get_auth_service),
):
    """Record a pending order and email a cheque_order code to confirm it."""
    account = get_owned_account(db, payload.account_id, current_user)
    if not account.is_active:
        raise HTTPException(status_code=400, detail="Account is not active")

    order = ChequeOrder(
        user_id=current_user.id,
        account_id=account.id,
        order_number=_generate_order_number(db),
        cheque_style=payload.cheque_style,
        quantity=payload.quantity,
        starting_number=payload.starting_number,
        delivery_address=payload.delivery_address,
        delivery_method=payload.delivery_method,
        total_cost=cheque_order_cost(payload.quantity, payload.delivery_method),
        status="pending",
    )
    db.add(order)
    db.commit()
    db.refresh(order)

    challenge = await auth.issue_challenge(current_user, CHEQUE_ORDER_PURPOSE)
    order.challenge_otp_id = challenge.otp_id
    db.commit()
    return ChallengeResponse(resource_id=order.id)


@router.post("/{order_id}/confirm", response_model=ChequeOrderResponse)
async def confirm_cheque_order(
    order_id: int,
    payload: ConfirmActionRequest,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    current_user: User = Depends(require_auth),
    auth: AuthService = Depends(get_auth_service),
    notifier: EmailNotifier = Depends(get_notifier),
):
    order = db.get(ChequeOrder, order_id)
    if not order or order.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Cheque order not found")
    if order.status != "pending":
        raise HTTPException(status_code=409, detail="Cheque order is not pending")

    if order.challenge_otp_id is None:
        raise InvalidOrExpiredCode()
    auth.verify_otp(ctx.state, payload.code, CHEQUE_ORDER_PURPOSE, otp_id=order.challenge_otp_id)

    order.status = "processing"
    db.commit()
    db.refresh(order)

    try:
        await notifier.send_cheque_order_confirmation(
            current_user.email, current_user.name, order.order_number, order.quantity, order.delivery_method
        )
    except EmailDeliveryError:
        logger.warning("Cheque order %s confirmed but confirmation email failed", order.id)
    return order
