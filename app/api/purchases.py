# app/api/purchases.py

from fastapi import APIRouter, Depends, status

from app.api.common import customer_out, get_ledger, purchase_out
from app.core.exceptions import ValidationError
from app.ledger.service import Ledger
from app.models.customers import CustomerOut
from app.models.purchases import PurchaseCreate, PurchaseUpdate
from app.models.results import PurchaseResult

router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.post("/", response_model=PurchaseResult, status_code=status.HTTP_201_CREATED)
def create_purchase(body: PurchaseCreate, ledger: Ledger = Depends(get_ledger)) -> PurchaseResult:
    """
    Record a purchase for an existing customer (by id) or by name, opening
    a new account when no customer has that name.
    """
    if body.customer_id is not None and body.customer_name is not None:
        raise ValidationError(
            "Send customer_id or customer_name, not both",
            details={"customer_id": body.customer_id, "customer_name": body.customer_name},
        )
    if body.customer_id is not None:
        customer_ref = body.customer_id
    elif body.customer_name is not None:
        customer_ref = body.customer_name
    else:
        raise ValidationError("Either customer_id or customer_name is required")

    customer, purchase = ledger.record_purchase(
        customer_ref, [item.model_dump() for item in body.items]
    )
    return PurchaseResult(customer=customer_out(customer), purchase=purchase_out(purchase))


@router.put("/{purchase_id}", response_model=PurchaseResult)
def update_purchase(
    purchase_id: int,
    body: PurchaseUpdate,
    ledger: Ledger = Depends(get_ledger),
) -> PurchaseResult:
    customer, purchase = ledger.edit_purchase(
        purchase_id, [item.model_dump() for item in body.items]
    )
    return PurchaseResult(customer=customer_out(customer), purchase=purchase_out(purchase))


@router.delete("/{purchase_id}", response_model=CustomerOut)
def delete_purchase(purchase_id: int, ledger: Ledger = Depends(get_ledger)) -> CustomerOut:
    return customer_out(ledger.delete_purchase(purchase_id))
