"""Transaction listing endpoint."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api.helpers import get_current_user_id
from database import get_db
from schemas import TransactionResponse
from services.transaction_service import TransactionService

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("", response_model=list[TransactionResponse])
def list_transactions(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    account_id: Optional[str] = None,
    search: Optional[str] = None,
    category: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=5000),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """List the principal's transactions, newest first.

    ``search`` matches description or merchant name, case-insensitively.
    """
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must be on or before end_date")

    transactions = TransactionService.list_transactions(
        db,
        user_id,
        start_date=start_date,
        end_date=end_date,
        account_id=account_id,
        search=search,
        category=category,
        limit=limit,
    )
    return [
        TransactionResponse(
            id=txn.id,
            account_id=txn.account_id,
            account_name=txn.account.name if txn.account else None,
            institution_name=(
                txn.account.connection.institution_name
                if txn.account and txn.account.connection else None
            ),
            amount=txn.amount,
            currency_code=txn.currency_code,
            description=txn.description,
            merchant_name=txn.merchant_name,
            category=txn.category,
            subcategory=txn.subcategory,
            date=txn.date,
            authorized_date=txn.authorized_date,
            pending=txn.pending,
        )
        for txn in transactions
    ]
