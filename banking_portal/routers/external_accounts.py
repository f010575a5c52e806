import logging
import secrets
from decimal import Decimal
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from ..core.database import get_db, utcnow
from ..core.email import EmailDeliveryError, EmailNotifier
from ..dependencies import get_notifier, require_auth
from ..models.banking import ExternalAccount
from ..models.user import User
from ..schemas.banking import (
    ExternalAccountCreate, ExternalAccountCreated, ExternalAccountResponse, ExternalAccountVerifyRequest
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/external-accounts", tags=["external-accounts"])


def generate_micro_deposit() -> Decimal:
    """A random amount in [0.01, 0.99]."""
    return Decimal(secrets.randbelow(99) + 1) / Decimal(100)


def _get_owned_external_account(db: Session, external_account_id: int, user: User) -> ExternalAccount:
    record = db.get(ExternalAccount, external_account_id)
    if not record or record.user_id != user.id:
        raise HTTPException(status_code=404, detail="External account not found")
    return record


@router.get("", response_model=List[ExternalAccountResponse])
def list_external_accounts(db: Session = Depends(get_db), current_user: User = Depends(require_auth)):
    return db.query(ExternalAccount).filter(
        ExternalAccount.user_id == current_user.id
    ).order_by(ExternalAccount.created_at.desc(), ExternalAccount.id.desc()).all()


@router.post("", response_model=ExternalAccountCreated)
async def create_external_account(
    payload: ExternalAccountCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_auth),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """Start linking: store the account as pending and email the two micro-deposits."""
    deposit_1 = generate_micro_deposit()
    deposit_2 = generate_micro_deposit()

    record = ExternalAccount(
        user_id=current_user.id,
        institution_name=payload.institution_name,
        account_type=payload.account_type,
        institution_number=payload.institution_number,
        transit_number=payload.transit_number,
        account_number=payload.account_number,
        account_nickname=payload.account_nickname,
        verification_status="pending",
        micro_deposit_1=deposit_1,
        micro_deposit_2=deposit_2,
        verification_attempts=0,
    )
    db.add(record)
    db.commit()
    db.refresh(record)

    try:
        await notifier.send_external_account_notification(
            current_user.email, current_user.name, payload.institution_name, deposit_1, deposit_2
        )
    except EmailDeliveryError:
        logger.error("External account %s created but notification failed", record.id)
        raise HTTPException(status_code=502, detail="Unable to send verification details. Please try again later.")

    return ExternalAccountCreated(external_account_id=record.id)


@router.post("/{external_account_id}/verify", response_model=ExternalAccountResponse)
def verify_external_account(
    external_account_id: int,
    payload: ExternalAccountVerifyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_auth),
):
    """Match the two deposit amounts, in either order. Every try is counted."""
    record = _get_owned_external_account(db, external_account_id, current_user)
    if record.verification_status != "pending":
        raise HTTPException(status_code=409, detail="External account is not pending verification")

    record.verification_attempts = (record.verification_attempts or 0) + 1
    expected = sorted([Decimal(record.micro_deposit_1), Decimal(record.micro_deposit_2)])
    submitted = sorted([payload.amount_1, payload.amount_2])
    if expected != submitted:
        db.commit()
        raise HTTPException(status_code=400, detail="Verification amounts do not match")

    record.verification_status = "verified"
    record.linked_date = utcnow()
    db.commit()
    db.refresh(record)
    return record
