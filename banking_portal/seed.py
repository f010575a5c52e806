# Demo data for local development: two members, their accounts and a few
# chequing transactions. Safe to run repeatedly.

import logging
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Session
from .core.security import get_password_hash
from .models.banking import Account, Transaction
from .models.user import User

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "Mate@200"

DEMO_USERS = [
    {
        "user_id": "1972000",
        "email": "anncola401@gmail.com",
        "name": "Mate Smith",
        "accounts": [
            ("123456789", "chequing", "Personal Chequing", "1000809.00", None, None),
            ("123456790", "savings", "High Interest Savings", "1275432.50", "2.85", None),
            ("123456791", "tfsa", "TFSA Savings", "1158932.17", "3.25", None),
            ("123456792", "term_deposit", "12-Month GIC", "2525000.00", "4.50", datetime(2025, 12, 1)),
        ],
    },
    {
        "user_id": "197200",
        "email": "rebeccamonroe886@gmail.com",
        "name": "Martha Hodge",
        "accounts": [
            ("987654321", "chequing", "Personal Chequing", "1001832.45", None, None),
            ("987654322", "savings", "High Interest Savings", "1159876.32", "2.85", None),
        ],
    },
]

# (type, amount, description, category, reference, balance_after, date)
DEMO_TRANSACTIONS = [
    ("debit", "-45.67", "Grocery Store Purchase", "Groceries", "TXN-001", "2547.83", datetime(2025, 1, 18)),
    ("debit", "-127.50", "Halifax Power Bill Payment", "Utilities", "TXN-002", "2593.50", datetime(2025, 1, 17)),
    ("credit", "2721.00", "Salary Deposit", "Income", "TXN-003", "2721.00", datetime(2025, 1, 15)),
    ("debit", "-89.99", "Rogers Communications", "Utilities", "TXN-004", "2631.01", datetime(2025, 1, 14)),
    ("debit", "-67.23", "Halifax Water Bill", "Utilities", "TXN-005", "2698.24", datetime(2025, 1, 13)),
]


def seed_database(db: Session) -> None:
    password_hash = None
    for spec in DEMO_USERS:
        user = db.query(User).filter(User.user_id == spec["user_id"]).first()
        if user:
            continue
        password_hash = password_hash or get_password_hash(DEMO_PASSWORD)
        user = User(
            user_id=spec["user_id"],
            email=spec["email"],
            name=spec["name"],
            password_hash=password_hash,
            is_active=True,
        )
        db.add(user)
        db.flush()

        for number, account_type, name, balance, rate, maturity in spec["accounts"]:
            account = Account(
                user_id=user.id,
                account_number=number,
                account_type=account_type,
                account_name=name,
                balance=Decimal(balance),
                currency="CAD",
                interest_rate=Decimal(rate) if rate else None,
                maturity_date=maturity,
            )
            db.add(account)
            db.flush()

            if spec is DEMO_USERS[0] and account_type == "chequing":
                for tx_type, amount, description, category, ref, after, when in DEMO_TRANSACTIONS:
                    db.add(Transaction(
                        account_id=account.id,
                        transaction_type=tx_type,
                        amount=Decimal(amount),
                        description=description,
                        category=category,
                        reference_number=ref,
                        balance_after=Decimal(after),
                        status="completed",
                        transaction_date=when,
                    ))
        logger.info("Seeded demo user %s", spec["user_id"])
    db.commit()
