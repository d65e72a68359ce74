# app/models/purchases.py

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class ItemIn(BaseModel):
    name: str
    price: Decimal


class ItemOut(BaseModel):
    name: str
    price: str


class PurchaseCreate(BaseModel):
    """Exactly one of customer_id or customer_name; an unknown name opens a new account."""

    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    items: List[ItemIn]


class PurchaseUpdate(BaseModel):
    items: List[ItemIn]


class PurchaseOut(BaseModel):
    id: int
    customer_id: int
    items: List[ItemOut]
    purchase_total: str
    created_at: datetime
