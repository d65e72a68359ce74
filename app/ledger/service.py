# app/ledger/service.py
"""
The customer ledger: every operation that changes a customer's total_debt.

Invariant kept after each committed operation:

    customer.total_debt == sum(purchase_total) - sum(amount_paid)

Each mutating operation validates its input first, then performs the
balance write and the purchase/payment write in one transaction. The
balance write is a compare-and-swap on the customer's version, and the
invariant is re-checked against the child rows before commit, so a failure
at any step leaves nothing behind.
"""

import logging
from typing import Iterable, List, Optional, Tuple, Union

from sqlalchemy.engine import Connection, Engine

from app.core.config import settings
from app.core.exceptions import (
    DuplicateCustomerError,
    InconsistentStateError,
    InsufficientDebtError,
    NotFoundError,
    ValidationError,
)
from app.db import repository
from app.ledger.money import Money, MoneyLike
from app.ledger.records import (
    Customer,
    CustomerSummary,
    LedgerSummary,
    Payment,
    Purchase,
    Statement,
    items_total,
    parse_items,
)

logger = logging.getLogger(__name__)


def _positive_amount(amount: MoneyLike, what: str = "Payment amount") -> Money:
    value = Money.of(amount)
    if not value.is_positive():
        raise ValidationError(f"{what} must be greater than zero", details={"amount": str(value)})
    return value


def _customer_name(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Customer name must not be empty")
    return name.strip()


class Ledger:
    def __init__(self, engine: Engine, allow_credit_balance: Optional[bool] = None):
        self._engine = engine
        if allow_credit_balance is None:
            allow_credit_balance = settings.allow_credit_balance
        self.allow_credit_balance = allow_credit_balance

    # ---- Helpers ----

    def _require_customer(self, conn: Connection, customer_id: int) -> Customer:
        customer = repository.get_customer_by_id(conn, customer_id)
        if customer is None:
            raise NotFoundError("Customer", customer_id)
        return customer

    def _require_purchase(self, conn: Connection, purchase_id: int) -> Purchase:
        purchase = repository.get_purchase(conn, purchase_id)
        if purchase is None:
            raise NotFoundError("Purchase", purchase_id)
        return purchase

    def _require_payment(self, conn: Connection, payment_id: int) -> Payment:
        payment = repository.get_payment(conn, payment_id)
        if payment is None:
            raise NotFoundError("Payment", payment_id)
        return payment

    def _apply_delta(
        self,
        conn: Connection,
        customer: Customer,
        delta: Money,
        allow_credit: Optional[bool] = None,
    ) -> Customer:
        """Move the balance by delta, refusing to go below zero unless credit is allowed."""
        if allow_credit is None:
            allow_credit = self.allow_credit_balance
        new_total = customer.total_debt + delta
        if new_total.is_negative() and not allow_credit:
            logger.warning(
                "Rejected balance change for customer %s: %s %+.2f would go negative",
                customer.id, customer.total_debt, delta.amount,
            )
            raise InsufficientDebtError(
                balance=str(customer.total_debt),
                requested=str(-delta),
                message=(
                    f"Change of {delta.amount:+.2f} would leave customer {customer.id} "
                    f"with a negative balance ({new_total})"
                ),
            )
        return repository.update_customer_debt(
            conn, customer.id, new_total, expected_version=customer.version
        )

    def _verify(self, conn: Connection, customer: Customer) -> None:
        expected = repository.balance_from_records(conn, customer.id)
        if expected != customer.total_debt:
            logger.error(
                "Customer %s balance %s does not match records %s",
                customer.id, customer.total_debt, expected,
            )
            raise InconsistentStateError(customer.id, str(customer.total_debt), str(expected))

    # ---- Purchases ----

    def record_purchase(
        self, customer: Union[int, str], items: Iterable
    ) -> Tuple[Customer, Purchase]:
        """
        Record a sale on credit.

        `customer` is an id, or a name matched case-insensitively; an unknown
        name creates the customer with a zero balance first.
        """
        parsed = parse_items(items)
        total = items_total(parsed)
        by_id = isinstance(customer, int) and not isinstance(customer, bool)
        if not by_id:
            customer = _customer_name(customer)

        with repository.unit_of_work(self._engine) as conn:
            if by_id:
                current = self._require_customer(conn, customer)
            else:
                current = repository.get_customer_by_name(conn, customer)
                if current is None:
                    current = repository.insert_customer(conn, customer)
                    logger.info("Created customer %s (%r)", current.id, current.name)

            purchase = repository.insert_purchase(conn, current.id, parsed, total)
            updated = self._apply_delta(conn, current, total)
            self._verify(conn, updated)

        logger.info(
            "Recorded purchase %s for customer %s: %s (%d items), debt now %s",
            purchase.id, updated.id, total, len(parsed), updated.total_debt,
        )
        return updated, purchase

    def edit_purchase(self, purchase_id: int, items: Iterable) -> Tuple[Customer, Purchase]:
        parsed = parse_items(items)
        new_total = items_total(parsed)

        with repository.unit_of_work(self._engine) as conn:
            old = self._require_purchase(conn, purchase_id)
            current = self._require_customer(conn, old.customer_id)
            purchase = repository.update_purchase(conn, purchase_id, parsed, new_total)
            updated = self._apply_delta(conn, current, new_total - old.purchase_total)
            self._verify(conn, updated)

        logger.info(
            "Edited purchase %s: %s -> %s, customer %s debt now %s",
            purchase_id, old.purchase_total, new_total, updated.id, updated.total_debt,
        )
        return updated, purchase

    def delete_purchase(self, purchase_id: int) -> Customer:
        with repository.unit_of_work(self._engine) as conn:
            old = self._require_purchase(conn, purchase_id)
            current = self._require_customer(conn, old.customer_id)
            repository.delete_purchase(conn, purchase_id)
            updated = self._apply_delta(conn, current, -old.purchase_total)
            self._verify(conn, updated)

        logger.info(
            "Deleted purchase %s (%s), customer %s debt now %s",
            purchase_id, old.purchase_total, updated.id, updated.total_debt,
        )
        return updated

    # ---- Payments ----

    def record_payment(self, customer_id: int, amount: MoneyLike) -> Tuple[Customer, Payment]:
        value = _positive_amount(amount)

        with repository.unit_of_work(self._engine) as conn:
            current = self._require_customer(conn, customer_id)
            if value > current.total_debt:
                logger.warning(
                    "Rejected payment of %s for customer %s with debt %s",
                    value, customer_id, current.total_debt,
                )
                raise InsufficientDebtError(str(current.total_debt), str(value))
            payment = repository.insert_payment(conn, customer_id, value)
            # overpaying is refused above regardless of the credit setting
            updated = self._apply_delta(conn, current, -value, allow_credit=False)
            self._verify(conn, updated)

        logger.info(
            "Recorded payment %s for customer %s: %s, debt now %s",
            payment.id, customer_id, value, updated.total_debt,
        )
        return updated, payment

    def edit_payment(self, payment_id: int, amount: MoneyLike) -> Tuple[Customer, Payment]:
        value = _positive_amount(amount)

        with repository.unit_of_work(self._engine) as conn:
            old = self._require_payment(conn, payment_id)
            current = self._require_customer(conn, old.customer_id)
            payment = repository.update_payment(conn, payment_id, value)
            # a larger payment lowers the debt, a smaller one raises it
            updated = self._apply_delta(conn, current, old.amount_paid - value)
            self._verify(conn, updated)

        logger.info(
            "Edited payment %s: %s -> %s, customer %s debt now %s",
            payment_id, old.amount_paid, value, updated.id, updated.total_debt,
        )
        return updated, payment

    def delete_payment(self, payment_id: int) -> Customer:
        with repository.unit_of_work(self._engine) as conn:
            old = self._require_payment(conn, payment_id)
            current = self._require_customer(conn, old.customer_id)
            repository.delete_payment(conn, payment_id)
            updated = self._apply_delta(conn, current, old.amount_paid)
            self._verify(conn, updated)

        logger.info(
            "Deleted payment %s (%s), customer %s debt now %s",
            payment_id, old.amount_paid, updated.id, updated.total_debt,
        )
        return updated

    # ---- Customers ----

    def get_customer(self, customer_id: int) -> Customer:
        with repository.unit_of_work(self._engine) as conn:
            return self._require_customer(conn, customer_id)

    def get_statement(self, customer_id: int) -> Statement:
        with repository.unit_of_work(self._engine) as conn:
            customer = self._require_customer(conn, customer_id)
            return Statement(
                customer=customer,
                purchases=repository.list_purchases_for_customer(conn, customer_id),
                payments=repository.list_payments_for_customer(conn, customer_id),
            )

    def find_customers(self, query: str) -> List[Customer]:
        """Case-insensitive substring search over names; a blank query finds nothing."""
        if not query or not query.strip():
            return []
        with repository.unit_of_work(self._engine) as conn:
            return repository.search_customers_by_name(conn, query)

    def list_customers(self) -> List[CustomerSummary]:
        with repository.unit_of_work(self._engine) as conn:
            all_customers = repository.list_customers(conn)
            grouped = repository.payments_by_customer(conn)

        summaries = []
        for customer in all_customers:
            paid = grouped.get(customer.id, [])
            summaries.append(
                CustomerSummary(
                    customer=customer,
                    installment_count=len(paid),
                    total_paid=Money.sum(p.amount_paid for p in paid),
                    last_payment=paid[0] if paid else None,
                )
            )
        return summaries

    def rename_customer(self, customer_id: int, new_name: str) -> Customer:
        name = _customer_name(new_name)

        with repository.unit_of_work(self._engine) as conn:
            self._require_customer(conn, customer_id)
            holder = repository.get_customer_by_name(conn, name)
            if holder is not None and holder.id != customer_id:
                raise DuplicateCustomerError(name)
            updated = repository.rename_customer(conn, customer_id, name)

        logger.info("Renamed customer %s to %r", customer_id, updated.name)
        return updated

    def delete_customer(self, customer_id: int) -> None:
        with repository.unit_of_work(self._engine) as conn:
            self._require_customer(conn, customer_id)
            repository.delete_customer(conn, customer_id)

        logger.info("Deleted customer %s with its purchases and payments", customer_id)

    def reconcile_customer(self, customer_id: int) -> Customer:
        """Recompute total_debt from the purchase and payment rows and store it."""
        with repository.unit_of_work(self._engine) as conn:
            current = self._require_customer(conn, customer_id)
            expected = repository.balance_from_records(conn, customer_id)
            if expected == current.total_debt:
                return current
            updated = repository.update_customer_debt(
                conn, customer_id, expected, expected_version=current.version
            )

        logger.warning(
            "Reconciled customer %s: balance %s -> %s",
            customer_id, current.total_debt, updated.total_debt,
        )
        return updated

    # ---- Reporting ----

    def summary(self) -> LedgerSummary:
        with repository.unit_of_work(self._engine) as conn:
            stats = repository.totals(conn)
        return LedgerSummary(
            total_customers=stats["n_customers"],
            total_debt=stats["total_debt"],
            total_purchases=stats["total_purchases"],
            total_payments=stats["total_payments"],
        )
