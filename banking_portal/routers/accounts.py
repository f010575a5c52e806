from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from ..core.database import get_db
from ..dependencies import require_auth
from ..models.banking import Account, Transaction
from ..models.user import User
from ..schemas.banking import AccountResponse, TransactionResponse

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


def get_owned_account(db: Session, account_id: int, user: User) -> Account:
    """Load an account of ``user`` or 404; other users' accounts look absent."""
    account = db.get(Account, account_id)
    if not account or account.user_id != user.id:
        raise HTTPException(status_code=404, detail="Account not found")
    return account


@router.get("", response_model=List[AccountResponse])
def list_accounts(db: Session = Depends(get_db), current_user: User = Depends(require_auth)):
    return db.query(Account).filter(
        Account.user_id == current_user.id,
        Account.is_active == True,
    ).order_by(Account.account_type, Account.id).all()


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(account_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_auth)):
    return get_owned_account(db, account_id, current_user)


@router.get("/{account_id}/transactions", response_model=List[TransactionResponse])
def list_transactions(
    account_id: int,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_auth),
):
    """Newest first, optionally filtered by a description substring."""
    get_owned_account(db, account_id, current_user)

    query = db.query(Transaction).filter(Transaction.account_id == account_id)
    if search and search.strip():
        query = query.filter(Transaction.description.ilike(f"%{search.strip()}%"))
    return query.order_by(
        Transaction.transaction_date.desc(), Transaction.id.desc()
    ).offset(offset).limit(limit).all()
