# app/db/repository.py
"""
Persistence for customers, purchases and payments (SQLAlchemy Core).

Every function takes an open Connection so the Ledger can run several of
them inside one transaction (see unit_of_work). Database failures come out
as StorageError with the SQLAlchemy error chained as __cause__.
"""

import logging
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import wraps
from typing import Dict, Iterator, List, Optional, Sequence

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.exceptions import (
    ConcurrentModificationError,
    DuplicateCustomerError,
    StorageError,
)
from app.db.schema import customers, payments, purchases
from app.ledger.money import Money
from app.ledger.records import Customer, Item, Payment, Purchase, parse_items

logger = logging.getLogger(__name__)


def storage_call(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error("Storage failure in %s: %s", func.__name__, exc)
            raise StorageError(f"Storage operation {func.__name__} failed") from exc
    return wrapper


@contextmanager
def unit_of_work(engine: Engine) -> Iterator[Connection]:
    """
    Yield a connection inside a single transaction.

    Commits when the block exits normally, rolls back on any exception.
    Failures during begin/commit surface as StorageError.
    """
    try:
        with engine.begin() as conn:
            yield conn
    except SQLAlchemyError as exc:
        logger.error("Transaction failed: %s", exc)
        raise StorageError("Transaction failed and was rolled back") from exc


def name_key(name: str) -> str:
    return name.strip().casefold()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---- Row mapping ----

def _row_to_customer(row) -> Customer:
    return Customer(
        id=row["id"],
        name=row["name"],
        total_debt=Money(row["total_debt_cents"]),
        created_at=row["created_at"],
        version=row["version"],
    )


def _row_to_purchase(row) -> Purchase:
    return Purchase(
        id=row["id"],
        customer_id=row["customer_id"],
        items=parse_items(row["items"]),
        purchase_total=Money(row["purchase_total_cents"]),
        created_at=row["created_at"],
    )


def _row_to_payment(row) -> Payment:
    return Payment(
        id=row["id"],
        customer_id=row["customer_id"],
        amount_paid=Money(row["amount_paid_cents"]),
        created_at=row["created_at"],
    )


# ---- Customers ----

@storage_call
def get_customer_by_id(conn: Connection, customer_id: int) -> Optional[Customer]:
    stmt = select(customers).where(customers.c.id == customer_id)
    row = conn.execute(stmt).mappings().first()
    return _row_to_customer(row) if row is not None else None


@storage_call
def get_customer_by_name(conn: Connection, name: str) -> Optional[Customer]:
    """Case-insensitive exact match on the customer name."""
    stmt = select(customers).where(customers.c.name_key == name_key(name))
    row = conn.execute(stmt).mappings().first()
    return _row_to_customer(row) if row is not None else None


@storage_call
def search_customers_by_name(conn: Connection, substring: str) -> List[Customer]:
    stmt = (
        select(customers)
        .where(customers.c.name_key.contains(name_key(substring), autoescape=True))
        .order_by(customers.c.name_key, customers.c.id)
    )
    return [_row_to_customer(row) for row in conn.execute(stmt).mappings().all()]


@storage_call
def list_customers(conn: Connection) -> List[Customer]:
    """All customers, newest first."""
    stmt = select(customers).order_by(customers.c.created_at.desc(), customers.c.id.desc())
    return [_row_to_customer(row) for row in conn.execute(stmt).mappings().all()]


@storage_call
def insert_customer(conn: Connection, name: str, total_debt: Money = Money.zero()) -> Customer:
    values = {
        "name": name.strip(),
        "name_key": name_key(name),
        "total_debt_cents": total_debt.cents,
        "version": 1,
        "created_at": utcnow(),
    }
    try:
        result = conn.execute(insert(customers).values(**values))
    except IntegrityError as exc:
        raise DuplicateCustomerError(name.strip()) from exc
    return Customer(
        id=result.inserted_primary_key[0],
        name=values["name"],
        total_debt=total_debt,
        created_at=values["created_at"],
        version=1,
    )


@storage_call
def update_customer_debt(
    conn: Connection,
    customer_id: int,
    new_total: Money,
    expected_version: Optional[int] = None,
) -> Customer:
    """
    Write a new balance and bump the version counter.

    With expected_version set this is a compare-and-swap: if another writer
    got there first no row matches and ConcurrentModificationError is raised.
    """
    stmt = (
        update(customers)
        .where(customers.c.id == customer_id)
        .values(
            total_debt_cents=new_total.cents,
            version=customers.c.version + 1,
        )
    )
    if expected_version is not None:
        stmt = stmt.where(customers.c.version == expected_version)

    result = conn.execute(stmt)
    if result.rowcount != 1:
        raise ConcurrentModificationError(customer_id)
    return get_customer_by_id(conn, customer_id)


@storage_call
def rename_customer(conn: Connection, customer_id: int, new_name: str) -> Customer:
    stmt = (
        update(customers)
        .where(customers.c.id == customer_id)
        .values(
            name=new_name.strip(),
            name_key=name_key(new_name),
            version=customers.c.version + 1,
        )
    )
    try:
        conn.execute(stmt)
    except IntegrityError as exc:
        raise DuplicateCustomerError(new_name.strip()) from exc
    return get_customer_by_id(conn, customer_id)


@storage_call
def delete_customer(conn: Connection, customer_id: int) -> None:
    # children first so databases without cascading FKs stay consistent
    conn.execute(delete(payments).where(payments.c.customer_id == customer_id))
    conn.execute(delete(purchases).where(purchases.c.customer_id == customer_id))
    conn.execute(delete(customers).where(customers.c.id == customer_id))


# ---- Purchases ----

@storage_call
def insert_purchase(conn: Connection, customer_id: int, items: Sequence[Item], total: Money) -> Purchase:
    created_at = utcnow()
    result = conn.execute(
        insert(purchases).values(
            customer_id=customer_id,
            items=[item.to_json() for item in items],
            purchase_total_cents=total.cents,
            created_at=created_at,
        )
    )
    return Purchase(
        id=result.inserted_primary_key[0],
        customer_id=customer_id,
        items=tuple(items),
        purchase_total=total,
        created_at=created_at,
    )


@storage_call
def get_purchase(conn: Connection, purchase_id: int) -> Optional[Purchase]:
    stmt = select(purchases).where(purchases.c.id == purchase_id)
    row = conn.execute(stmt).mappings().first()
    return _row_to_purchase(row) if row is not None else None


@storage_call
def update_purchase(conn: Connection, purchase_id: int, items: Sequence[Item], total: Money) -> Purchase:
    conn.execute(
        update(purchases)
        .where(purchases.c.id == purchase_id)
        .values(
            items=[item.to_json() for item in items],
            purchase_total_cents=total.cents,
        )
    )
    return get_purchase(conn, purchase_id)


@storage_call
def delete_purchase(conn: Connection, purchase_id: int) -> None:
    conn.execute(delete(purchases).where(purchases.c.id == purchase_id))


@storage_call
def list_purchases_for_customer(conn: Connection, customer_id: int) -> List[Purchase]:
    """Purchases of one customer, newest first."""
    stmt = (
        select(purchases)
        .where(purchases.c.customer_id == customer_id)
        .order_by(purchases.c.created_at.desc(), purchases.c.id.desc())
    )
    return [_row_to_purchase(row) for row in conn.execute(stmt).mappings().all()]


# ---- Payments ----

@storage_call
def insert_payment(conn: Connection, customer_id: int, amount: Money) -> Payment:
    created_at = utcnow()
    result = conn.execute(
        insert(payments).values(
            customer_id=customer_id,
            amount_paid_cents=amount.cents,
            created_at=created_at,
        )
    )
    return Payment(
        id=result.inserted_primary_key[0],
        customer_id=customer_id,
        amount_paid=amount,
        created_at=created_at,
    )


@storage_call
def get_payment(conn: Connection, payment_id: int) -> Optional[Payment]:
    stmt = select(payments).where(payments.c.id == payment_id)
    row = conn.execute(stmt).mappings().first()
    return _row_to_payment(row) if row is not None else None


@storage_call
def update_payment(conn: Connection, payment_id: int, amount: Money) -> Payment:
    conn.execute(
        update(payments)
        .where(payments.c.id == payment_id)
        .values(amount_paid_cents=amount.cents)
    )
    return get_payment(conn, payment_id)


@storage_call
def delete_payment(conn: Connection, payment_id: int) -> None:
    conn.execute(delete(payments).where(payments.c.id == payment_id))


@storage_call
def list_payments_for_customer(conn: Connection, customer_id: int) -> List[Payment]:
    """Payments of one customer, newest first."""
    stmt = (
        select(payments)
        .where(payments.c.customer_id == customer_id)
        .order_by(payments.c.created_at.desc(), payments.c.id.desc())
    )
    return [_row_to_payment(row) for row in conn.execute(stmt).mappings().all()]


@storage_call
def payments_by_customer(conn: Connection) -> Dict[int, List[Payment]]:
    """Every payment grouped by customer id, newest first within each group."""
    stmt = select(payments).order_by(payments.c.created_at.desc(), payments.c.id.desc())
    grouped: Dict[int, List[Payment]] = defaultdict(list)
    for row in conn.execute(stmt).mappings().all():
        grouped[row["customer_id"]].append(_row_to_payment(row))
    return grouped


# ---- Aggregates ----

@storage_call
def balance_from_records(conn: Connection, customer_id: int) -> Money:
    """Sum of purchase totals minus sum of payments, computed from the child rows."""
    purchased = conn.execute(
        select(func.coalesce(func.sum(purchases.c.purchase_total_cents), 0))
        .where(purchases.c.customer_id == customer_id)
    ).scalar_one()
    paid = conn.execute(
        select(func.coalesce(func.sum(payments.c.amount_paid_cents), 0))
        .where(payments.c.customer_id == customer_id)
    ).scalar_one()
    return Money(int(purchased) - int(paid))


@storage_call
def totals(conn: Connection) -> dict:
    n_customers, debt = conn.execute(
        select(
            func.count(customers.c.id),
            func.coalesce(func.sum(customers.c.total_debt_cents), 0),
        )
    ).one()
    purchased = conn.execute(
        select(func.coalesce(func.sum(purchases.c.purchase_total_cents), 0))
    ).scalar_one()
    paid = conn.execute(
        select(func.coalesce(func.sum(payments.c.amount_paid_cents), 0))
    ).scalar_one()
    return {
        "n_customers": n_customers,
        "total_debt": Money(int(debt)),
        "total_purchases": Money(int(purchased)),
        "total_payments": Money(int(paid)),
    }
