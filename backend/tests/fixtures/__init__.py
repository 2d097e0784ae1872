"""Test fixtures and sample data."""
import pytest
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from models import Account, LinkedConnection, Transaction, Trip, TripAssignment

USER_ID = "test-user"
OTHER_USER_ID = "other-user"


def add_transaction(
    db: Session,
    account: Account,
    txn_id: str,
    amount: str = "10.00",
    txn_date: date = date(2025, 12, 3),
    description: str = "Coffee Shop",
    currency_code: str = "USD",
    merchant_name: str | None = None,
    category: str | None = None,
    user_id: str | None = None,
) -> Transaction:
    """Insert a stored transaction directly (bypassing sync).

    This is a helper function (not a fixture) for tests that need many
    transactions with different attributes.
    """
    txn = Transaction(
        id=txn_id,
        account_id=account.id,
        user_id=user_id or account.user_id,
        amount=Decimal(amount),
        currency_code=currency_code,
        description=description,
        merchant_name=merchant_name,
        category=category,
        date=txn_date,
        pending=False,
    )
    db.add(txn)
    db.flush()
    return txn


@pytest.fixture
def connection(db: Session) -> LinkedConnection:
    """Create a linked connection with no cursor yet."""
    conn = LinkedConnection(
        user_id=USER_ID,
        item_id="item_001",
        access_token="access-sandbox-001",
        institution_id="ins_109508",
        institution_name="First Platypus Bank",
    )
    db.add(conn)
    db.commit()
    db.refresh(conn)
    return conn


@pytest.fixture
def account(db: Session, connection: LinkedConnection) -> Account:
    """Create the checking account of the test connection."""
    acc = Account(
        id="acc_checking",
        connection_id=connection.id,
        user_id=USER_ID,
        name="Plaid Checking",
        type="depository",
        subtype="checking",
        mask="0000",
        current_balance=Decimal("100.00"),
        currency_code="USD",
    )
    db.add(acc)
    db.commit()
    db.refresh(acc)
    return acc


@pytest.fixture
def credit_account(db: Session, connection: LinkedConnection) -> Account:
    """Create the credit card account of the test connection."""
    acc = Account(
        id="acc_credit",
        connection_id=connection.id,
        user_id=USER_ID,
        name="Plaid Credit Card",
        type="credit",
        subtype="credit card",
        currency_code="USD",
    )
    db.add(acc)
    db.commit()
    db.refresh(acc)
    return acc


@pytest.fixture
def trip(db: Session) -> Trip:
    """Create a trip from 2025-12-01 to 2025-12-10 with USD home currency."""
    t = Trip(
        user_id=USER_ID,
        name="Paris - Dec 2025",
        start_date=date(2025, 12, 1),
        end_date=date(2025, 12, 10),
        home_currency="USD",
    )
    db.add(t)
    db.commit()
    db.refresh(t)
    return t


@pytest.fixture
def assignment(db: Session, trip: Trip, account: Account) -> TripAssignment:
    """Create an auto assignment of a EUR restaurant transaction."""
    txn = add_transaction(
        db, account, "txn_bistro", amount="42.00",
        currency_code="EUR", description="Le Bistro", category="FOOD_AND_DRINK",
    )
    a = TripAssignment(
        trip_id=trip.id,
        transaction_id=txn.id,
        confidence=Decimal("0.80"),
        is_manual=False,
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    return a
