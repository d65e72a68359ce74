# app/api/payments.py

from fastapi import APIRouter, Depends, status

from app.api.common import customer_out, get_ledger, payment_out
from app.ledger.service import Ledger
from app.models.customers import CustomerOut
from app.models.payments import PaymentCreate, PaymentUpdate
from app.models.results import PaymentResult

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/", response_model=PaymentResult, status_code=status.HTTP_201_CREATED)
def create_payment(body: PaymentCreate, ledger: Ledger = Depends(get_ledger)) -> PaymentResult:
    """
    Record a payment against a customer's debt. Overpaying is refused.
    """
    customer, payment = ledger.record_payment(body.customer_id, body.amount)
    return PaymentResult(customer=customer_out(customer), payment=payment_out(payment))


@router.put("/{payment_id}", response_model=PaymentResult)
def update_payment(
    payment_id: int,
    body: PaymentUpdate,
    ledger: Ledger = Depends(get_ledger),
) -> PaymentResult:
    customer, payment = ledger.edit_payment(payment_id, body.amount)
    return PaymentResult(customer=customer_out(customer), payment=payment_out(payment))


@router.delete("/{payment_id}", response_model=CustomerOut)
def delete_payment(payment_id: int, ledger: Ledger = Depends(get_ledger)) -> CustomerOut:
    return customer_out(ledger.delete_payment(payment_id))
