"""Pydantic schemas for transaction listing."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class TransactionResponse(BaseModel):
    id: str
    account_id: str
    account_name: Optional[str] = None
    institution_name: Optional[str] = None
    amount: Decimal
    currency_code: str
    description: str
    merchant_name: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    date: date
    authorized_date: Optional[date] = None
    pending: bool
