# app/models/payments.py

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class PaymentCreate(BaseModel):
    customer_id: int
    amount: Decimal


class PaymentUpdate(BaseModel):
    amount: Decimal


class PaymentOut(BaseModel):
    id: int
    customer_id: int
    amount_paid: str
    created_at: datetime
