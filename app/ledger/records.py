# app/ledger/records.py
"""
Immutable ledger records: items, purchases, payments and customers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from app.core.exceptions import ValidationError
from app.ledger.money import MAX_CENTS, Money, MoneyLike


@dataclass(frozen=True)
class Item:
    name: str
    price: Money

    @classmethod
    def parse(cls, name: Any, price: MoneyLike) -> "Item":
        """Build a validated item: non-blank name, price strictly positive."""
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Item name must not be empty", details={"name": name})
        amount = Money.of(price)
        if not amount.is_positive():
            raise ValidationError(
                f"Item {name.strip()!r} must have a price greater than zero",
                details={"name": name.strip(), "price": str(amount)},
            )
        return cls(name=name.strip(), price=amount)

    def to_json(self) -> dict:
        return {"name": self.name, "price": str(self.price)}


def parse_items(raw: Iterable[Any]) -> Tuple[Item, ...]:
    """
    Turn a sequence of items into validated Item records.

    Accepts Item instances, mappings with "name"/"price" keys (as stored in
    the purchases.items JSON column) or (name, price) pairs.
    """
    items: List[Item] = []
    for entry in raw or ():
        if isinstance(entry, Item):
            items.append(entry)
        elif isinstance(entry, Mapping):
            items.append(Item.parse(entry.get("name"), entry.get("price")))
        else:
            try:
                name, price = entry
            except (TypeError, ValueError):
                raise ValidationError(f"Malformed item {entry!r}")
            items.append(Item.parse(name, price))
    if not items:
        raise ValidationError("A purchase needs at least one item")
    return tuple(items)


@dataclass(frozen=True)
class Customer:
    id: int
    name: str
    total_debt: Money
    created_at: datetime
    version: int = 1


@dataclass(frozen=True)
class Purchase:
    id: int
    customer_id: int
    items: Tuple[Item, ...]
    purchase_total: Money
    created_at: datetime


@dataclass(frozen=True)
class Payment:
    id: int
    customer_id: int
    amount_paid: Money
    created_at: datetime


@dataclass(frozen=True)
class Statement:
    """A customer together with its purchases and payments, newest first."""

    customer: Customer
    purchases: List[Purchase] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)

    @property
    def total_purchases(self) -> Money:
        return Money.sum(p.purchase_total for p in self.purchases)

    @property
    def total_payments(self) -> Money:
        return Money.sum(p.amount_paid for p in self.payments)


@dataclass(frozen=True)
class CustomerSummary:
    customer: Customer
    installment_count: int
    total_paid: Money
    last_payment: Optional[Payment] = None


@dataclass(frozen=True)
class LedgerSummary:
    total_customers: int
    total_debt: Money
    total_purchases: Money
    total_payments: Money


def items_total(items: Iterable[Item]) -> Money:
    total = Money.sum(item.price for item in items)
    if total.cents > MAX_CENTS:
        raise ValidationError(
            f"Purchase total {total} exceeds the largest supported amount",
            details={"total": str(total), "max": str(Money(MAX_CENTS))},
        )
    return total
