# Banking schemas - Pydantic models for accounts, bill payments,
# cheque orders and external account links

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


# ==================== Accounts ====================

class AccountResponse(BaseModel):
    id: int
    account_number: str
    account_type: str
    account_name: str
    balance: Decimal
    currency: str
    is_active: bool
    interest_rate: Optional[Decimal] = None
    maturity_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TransactionResponse(BaseModel):
    id: int
    account_id: int
    transaction_type: str
    amount: Decimal
    description: str
    category: Optional[str] = None
    reference_number: Optional[str] = None
    balance_after: Decimal
    status: str
    transaction_date: datetime

    class Config:
        from_attributes = True


# ==================== Step-up challenge ====================

class ChallengeResponse(BaseModel):
    """Returned by handlers that persisted a pending action and sent a code"""
    message: str = "OTP sent for verification"
    requires_otp: bool = True
    resource_id: int


# ==================== Bill payments ====================

class BillPaymentCreate(BaseModel):
    from_account_id: int
    payee_name: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    account_number: Optional[str] = Field(None, max_length=50)


class BillPaymentResponse(BaseModel):
    id: int
    from_account_id: int
    payee_name: str
    amount: Decimal
    account_number: Optional[str] = None
    reference_number: Optional[str] = None
    status: str
    scheduled_date: Optional[datetime] = None
    processed_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ==================== Cheque orders ====================

class ChequeOrderCreate(BaseModel):
    account_id: int
    cheque_style: str = Field(..., min_length=1, max_length=50)
    quantity: int = Field(..., gt=0)
    starting_number: int = Field(..., gt=0)
    delivery_address: str = Field(..., min_length=1)
    delivery_method: str = Field(..., min_length=1, max_length=50)


class ChequeOrderResponse(BaseModel):
    id: int
    account_id: int
    order_number: str
    cheque_style: str
    quantity: int
    starting_number: int
    delivery_address: str
    delivery_method: str
    total_cost: Decimal
    status: str
    order_date: Optional[datetime] = None
    shipped_date: Optional[datetime] = None
    delivered_date: Optional[datetime] = None

    class Config:
        from_attributes = True


# ==================== External accounts ====================

class ExternalAccountCreate(BaseModel):
    institution_name: str = Field(..., min_length=1, max_length=255)
    account_type: str = Field(..., min_length=1, max_length=50)
    institution_number: str = Field(..., pattern=r"^\d{3}$")
    transit_number: str = Field(..., pattern=r"^\d{5}$")
    account_number: str = Field(..., min_length=1, max_length=50)
    account_nickname: Optional[str] = Field(None, max_length=100)


class ExternalAccountCreated(BaseModel):
    message: str = "External account linking initiated. Check your email for verification details."
    external_account_id: int


class ExternalAccountVerifyRequest(BaseModel):
    amount_1: Decimal = Field(..., gt=0, max_digits=4, decimal_places=2)
    amount_2: Decimal = Field(..., gt=0, max_digits=4, decimal_places=2)


class ExternalAccountResponse(BaseModel):
    """Micro-deposit amounts are never echoed back"""
    id: int
    institution_name: str
    account_type: str
    institution_number: str
    transit_number: str
    account_number: str
    account_nickname: Optional[str] = None
    verification_status: str
    verification_attempts: int
    linked_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
