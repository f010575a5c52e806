# Banking resources: accounts, their transactions and the user-initiated
# requests (bill payments, cheque orders, external account links).

from decimal import Decimal
from sqlalchemy import Integer, String, DateTime, Text, Boolean, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from ..core.database import Base, utcnow


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    account_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    # chequing, savings, tfsa, term_deposit
    account_type: Mapped[str] = mapped_column(String(50), nullable=False)
    account_name: Mapped[str] = mapped_column(String(100), nullable=False)
    balance: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="CAD")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    interest_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    # Term deposits only
    maturity_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    transactions: Mapped[list["Transaction"]] = relationship("Transaction", back_populates="account")


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    # debit, credit, transfer
    transaction_type: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    balance_after: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="completed")
    transaction_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    account: Mapped["Account"] = relationship("Account", back_populates="transactions")


class BillPayment(Base):
    __tablename__ = "bill_payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    from_account_id: Mapped[int] = mapped_column(Integer, ForeignKey("accounts.id"), nullable=False)
    payee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    account_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    # pending, completed, failed
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    scheduled_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    processed_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    # The code issued for this payment; only it can confirm the payment
    challenge_otp_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("otp_codes.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class ChequeOrder(Base):
    __tablename__ = "cheque_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    account_id: Mapped[int] = mapped_column(Integer, ForeignKey("accounts.id"), nullable=False)
    order_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    cheque_style: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    starting_number: Mapped[int] = mapped_column(Integer, nullable=False)
    delivery_address: Mapped[str] = mapped_column(Text, nullable=False)
    delivery_method: Mapped[str] = mapped_column(String(50), nullable=False)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    # pending, processing, shipped, delivered
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    order_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    shipped_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    delivered_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    challenge_otp_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("otp_codes.id"), nullable=True)


class ExternalAccount(Base):
    __tablename__ = "external_accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    institution_name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_type: Mapped[str] = mapped_column(String(50), nullable=False)
    institution_number: Mapped[str] = mapped_column(String(3), nullable=False)
    transit_number: Mapped[str] = mapped_column(String(5), nullable=False)
    account_number: Mapped[str] = mapped_column(String(50), nullable=False)
    account_nickname: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # pending, verified, failed
    verification_status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    micro_deposit_1: Mapped[Decimal | None] = mapped_column(Numeric(4, 2), nullable=True)
    micro_deposit_2: Mapped[Decimal | None] = mapped_column(Numeric(4, 2), nullable=True)
    verification_attempts: Mapped[int] = mapped_column(Integer, default=0)
    linked_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
