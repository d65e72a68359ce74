# app/models/customers.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from app.models.payments import PaymentOut
from app.models.purchases import PurchaseOut


class CustomerOut(BaseModel):
    id: int
    name: str
    total_debt: str
    created_at: datetime

    class Config:
        from_attributes = True


class CustomerSearchResponse(BaseModel):
    items: List[CustomerOut]
    total: int


class CustomerListItem(BaseModel):
    id: int
    name: str
    total_debt: str
    installment_count: int
    total_paid: str
    last_payment: Optional[PaymentOut] = None
    created_at: datetime


class CustomerStatementOut(BaseModel):
    customer: CustomerOut
    purchases: List[PurchaseOut]
    payments: List[PaymentOut]
    total_purchases: str
    total_payments: str


class CustomerRename(BaseModel):
    name: str
