# app/api/common.py
"""
Shared pieces of the routers: the Ledger dependency and record -> response
conversions.
"""

from app.db.engine import get_engine
from app.ledger.records import Customer, Payment, Purchase
from app.ledger.service import Ledger
from app.models.customers import CustomerOut
from app.models.payments import PaymentOut
from app.models.purchases import ItemOut, PurchaseOut


def get_ledger() -> Ledger:
    return Ledger(get_engine())


def customer_out(customer: Customer) -> CustomerOut:
    return CustomerOut(
        id=customer.id,
        name=customer.name,
        total_debt=str(customer.total_debt),
        created_at=customer.created_at,
    )


def purchase_out(purchase: Purchase) -> PurchaseOut:
    return PurchaseOut(
        id=purchase.id,
        customer_id=purchase.customer_id,
        items=[ItemOut(name=item.name, price=str(item.price)) for item in purchase.items],
        purchase_total=str(purchase.purchase_total),
        created_at=purchase.created_at,
    )


def payment_out(payment: Payment) -> PaymentOut:
    return PaymentOut(
        id=payment.id,
        customer_id=payment.customer_id,
        amount_paid=str(payment.amount_paid),
        created_at=payment.created_at,
    )
