# app/api/customers.py

from typing import List

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.common import customer_out, get_ledger, payment_out, purchase_out
from app.ledger.service import Ledger
from app.models.customers import (
    CustomerListItem,
    CustomerOut,
    CustomerRename,
    CustomerSearchResponse,
    CustomerStatementOut,
)

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("/", response_model=List[CustomerListItem])
def list_customers(ledger: Ledger = Depends(get_ledger)) -> List[CustomerListItem]:
    """
    Return all customers, newest first, with their installment count and total paid.
    """
    return [
        CustomerListItem(
            id=s.customer.id,
            name=s.customer.name,
            total_debt=str(s.customer.total_debt),
            installment_count=s.installment_count,
            total_paid=str(s.total_paid),
            last_payment=payment_out(s.last_payment) if s.last_payment else None,
            created_at=s.customer.created_at,
        )
        for s in ledger.list_customers()
    ]


@router.get("/search", response_model=CustomerSearchResponse)
def search_customers(
    name: str = Query("", description="Part of the customer name (case-insensitive)"),
    ledger: Ledger = Depends(get_ledger),
) -> CustomerSearchResponse:
    """
    Case-insensitive substring search, ordered by name. A blank query returns nothing.
    """
    found = ledger.find_customers(name)
    return CustomerSearchResponse(
        items=[customer_out(c) for c in found],
        total=len(found),
    )


@router.get("/{customer_id}", response_model=CustomerStatementOut)
def get_customer(customer_id: int, ledger: Ledger = Depends(get_ledger)) -> CustomerStatementOut:
    """
    Return a customer with purchases and payments, newest first.
    """
    statement = ledger.get_statement(customer_id)
    return CustomerStatementOut(
        customer=customer_out(statement.customer),
        purchases=[purchase_out(p) for p in statement.purchases],
        payments=[payment_out(p) for p in statement.payments],
        total_purchases=str(statement.total_purchases),
        total_payments=str(statement.total_payments),
    )


@router.patch("/{customer_id}", response_model=CustomerOut)
def rename_customer(
    customer_id: int,
    body: CustomerRename,
    ledger: Ledger = Depends(get_ledger),
) -> CustomerOut:
    return customer_out(ledger.rename_customer(customer_id, body.name))


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(customer_id: int, ledger: Ledger = Depends(get_ledger)) -> Response:
    """
    Delete a customer together with all of its purchases and payments.
    """
    ledger.delete_customer(customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{customer_id}/reconcile", response_model=CustomerOut)
def reconcile_customer(customer_id: int, ledger: Ledger = Depends(get_ledger)) -> CustomerOut:
    """
    Recompute total_debt from the customer's purchases and payments.
    """
    return customer_out(ledger.reconcile_customer(customer_id))
