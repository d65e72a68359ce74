# app/models/results.py
"""
Responses of the mutating endpoints: the post-mutation customer, plus the
record that was written.
"""

from pydantic import BaseModel

from app.models.customers import CustomerOut
from app.models.payments import PaymentOut
from app.models.purchases import PurchaseOut


class PurchaseResult(BaseModel):
    customer: CustomerOut
    purchase: PurchaseOut


class PaymentResult(BaseModel):
    customer: CustomerOut
    payment: PaymentOut


class LedgerSummaryOut(BaseModel):
    total_customers: int
    total_debt: str
    total_purchases: str
    total_payments: str
