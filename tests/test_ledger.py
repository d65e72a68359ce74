"""
Tests for the ledger balance rules.

After every committed operation a customer's total_debt must equal the sum
of its purchase totals minus the sum of its payments.
"""

from decimal import Decimal

import pytest

from app.core.exceptions import (
    DuplicateCustomerError,
    InsufficientDebtError,
    NotFoundError,
    ValidationError,
)
from app.ledger.money import Money
from app.ledger.records import Item
from support import records_balance

A_AND_B = [{"name": "A", "price": 10}, {"name": "B", "price": 5}]


def assert_balanced(ledger, engine, customer_id):
    customer = ledger.get_customer(customer_id)
    assert customer.total_debt == records_balance(engine, customer_id)
    return customer


# ---- record_purchase ----

def test_purchase_for_new_customer_opens_account(ledger):
    customer, purchase = ledger.record_purchase("Ali", A_AND_B)

    assert customer.name == "Ali"
    assert str(customer.total_debt) == "15.00"
    assert str(purchase.purchase_total) == "15.00"
    assert purchase.customer_id == customer.id
    assert purchase.items == (Item("A", Money.of(10)), Item("B", Money.of(5)))


def test_purchase_matches_existing_customer_case_insensitively(ledger):
    first, _ = ledger.record_purchase("Ali", A_AND_B)
    second, _ = ledger.record_purchase("ali", [{"name": "C", "price": "2.50"}])

    assert second.id == first.id
    assert second.name == "Ali"
    assert str(second.total_debt) == "17.50"
    assert len(ledger.find_customers("ali")) == 1


def test_purchase_by_customer_id(ledger):
    customer, _ = ledger.record_purchase("Ali", A_AND_B)
    updated, purchase = ledger.record_purchase(customer.id, [("Tea", Decimal("1.25"))])

    assert purchase.customer_id == customer.id
    assert str(updated.total_debt) == "16.25"


def test_purchase_for_unknown_customer_id(ledger):
    with pytest.raises(NotFoundError):
        ledger.record_purchase(404, A_AND_B)


@pytest.mark.parametrize(
    "items",
    [
        [],
        [{"name": "A", "price": 0}],
        [{"name": "A", "price": "-3"}],
        [{"name": "  ", "price": 4}],
        [{"name": "A", "price": 10}, {"name": "B", "price": 0}],
    ],
)
def test_purchase_rejects_bad_items(ledger, items):
    with pytest.raises(ValidationError):
        ledger.record_purchase("Ali", items)
    # nothing was written
    assert ledger.find_customers("Ali") == []


def test_purchase_rejects_blank_customer_name(ledger):
    with pytest.raises(ValidationError):
        ledger.record_purchase("   ", A_AND_B)


# ---- record_payment ----

def test_payment_reduces_debt(ledger, engine):
    customer, _ = ledger.record_purchase("Ali", A_AND_B)
    updated, payment = ledger.record_payment(customer.id, "4.50")

    assert str(payment.amount_paid) == "4.50"
    assert str(updated.total_debt) == "10.50"
    assert_balanced(ledger, engine, customer.id)


def test_payment_exceeding_debt_is_refused(ledger):
    customer, _ = ledger.record_purchase("Ali", A_AND_B)

    with pytest.raises(InsufficientDebtError):
        ledger.record_payment(customer.id, "15.01")

    statement = ledger.get_statement(customer.id)
    assert statement.payments == []
    assert str(statement.customer.total_debt) == "15.00"


def test_payment_equal_to_debt_clears_it(ledger):
    customer, _ = ledger.record_purchase("Ali", A_AND_B)
    updated, _ = ledger.record_payment(customer.id, 15)
    assert updated.total_debt == Money.zero()


@pytest.mark.parametrize("amount", [0, "-1", "0.001"])
def test_payment_must_be_positive(ledger, amount):
    customer, _ = ledger.record_purchase("Ali", A_AND_B)
    with pytest.raises(ValidationError):
        ledger.record_payment(customer.id, amount)


def test_payment_for_unknown_customer(ledger):
    with pytest.raises(NotFoundError):
        ledger.record_payment(99, 1)


def test_overpaying_refused_even_when_credit_allowed(credit_ledger):
    customer, _ = credit_ledger.record_purchase("Ali", A_AND_B)
    with pytest.raises(InsufficientDebtError):
        credit_ledger.record_payment(customer.id, 20)


# ---- edit_purchase / delete_purchase ----

def test_edit_purchase_applies_delta(ledger, engine):
    customer, purchase = ledger.record_purchase("Ali", A_AND_B)
    ledger.record_purchase("Ali", [{"name": "C", "price": 3}])

    updated, edited = ledger.edit_purchase(purchase.id, [{"name": "A", "price": 12}])

    assert str(edited.purchase_total) == "12.00"
    assert edited.items == (Item("A", Money.of(12)),)
    assert str(updated.total_debt) == "15.00"
    assert_balanced(ledger, engine, customer.id)


def test_edit_purchase_unknown(ledger):
    with pytest.raises(NotFoundError):
        ledger.edit_purchase(1, A_AND_B)


def test_edit_purchase_rejects_empty_items(ledger):
    _, purchase = ledger.record_purchase("Ali", A_AND_B)
    with pytest.raises(ValidationError):
        ledger.edit_purchase(purchase.id, [])


def test_delete_purchase_round_trip(ledger, engine):
    customer, _ = ledger.record_purchase("Ali", [{"name": "Rice", "price": 40}])
    _, purchase = ledger.record_purchase("Ali", A_AND_B)
    before = ledger.get_customer(customer.id).total_debt

    after_delete = ledger.delete_purchase(purchase.id)
    assert after_delete.total_debt == before - Money.of(15)

    restored, _ = ledger.record_purchase("Ali", A_AND_B)
    assert restored.total_debt == before
    assert_balanced(ledger, engine, customer.id)


def test_delete_purchase_unknown(ledger):
    with pytest.raises(NotFoundError):
        ledger.delete_purchase(7)


def test_deleting_paid_purchase_would_go_negative(ledger):
    customer, purchase = ledger.record_purchase("Ali", A_AND_B)
    ledger.record_payment(customer.id, 10)

    with pytest.raises(InsufficientDebtError):
        ledger.delete_purchase(purchase.id)
    assert str(ledger.get_customer(customer.id).total_debt) == "5.00"


def test_credit_balance_allowed_by_setting(credit_ledger, engine):
    customer, purchase = credit_ledger.record_purchase("Ali", A_AND_B)
    credit_ledger.record_payment(customer.id, 10)

    updated = credit_ledger.delete_purchase(purchase.id)
    assert str(updated.total_debt) == "-10.00"
    assert updated.total_debt == records_balance(engine, customer.id)


# ---- edit_payment / delete_payment ----

def test_edit_payment_smaller_amount_raises_debt(ledger, engine):
    customer, _ = ledger.record_purchase("Ali", [{"name": "A", "price": 20}])
    paid, payment = ledger.record_payment(customer.id, 20)
    assert paid.total_debt == Money.zero()

    updated, edited = ledger.edit_payment(payment.id, 5)

    assert str(edited.amount_paid) == "5.00"
    assert str(updated.total_debt) == "15.00"
    assert_balanced(ledger, engine, customer.id)


def test_edit_payment_cannot_overpay(ledger):
    customer, _ = ledger.record_purchase("Ali", [{"name": "A", "price": 20}])
    _, payment = ledger.record_payment(customer.id, 5)

    with pytest.raises(InsufficientDebtError):
        ledger.edit_payment(payment.id, 25)

    statement = ledger.get_statement(customer.id)
    assert str(statement.payments[0].amount_paid) == "5.00"
    assert str(statement.customer.total_debt) == "15.00"


def test_edit_payment_validation_and_missing(ledger):
    with pytest.raises(NotFoundError):
        ledger.edit_payment(3, 1)
    customer, _ = ledger.record_purchase("Ali", A_AND_B)
    _, payment = ledger.record_payment(customer.id, 5)
    with pytest.raises(ValidationError):
        ledger.edit_payment(payment.id, 0)


def test_delete_payment_restores_debt(ledger, engine):
    customer, _ = ledger.record_purchase("Ali", A_AND_B)
    _, payment = ledger.record_payment(customer.id, 6)

    updated = ledger.delete_payment(payment.id)

    assert str(updated.total_debt) == "15.00"
    assert ledger.get_statement(customer.id).payments == []
    assert_balanced(ledger, engine, customer.id)


def test_delete_payment_unknown(ledger):
    with pytest.raises(NotFoundError):
        ledger.delete_payment(12)


# ---- customers ----

def test_find_customers_substring_ordered_by_name(ledger):
    for name in ["Khalid", "bob", "Alice", "Ali"]:
        ledger.record_purchase(name, A_AND_B)

    found = ledger.find_customers("ALI")

    assert [c.name for c in found] == ["Ali", "Alice", "Khalid"]


def test_find_customers_blank_query_returns_nothing(ledger):
    ledger.record_purchase("Ali", A_AND_B)
    assert ledger.find_customers("") == []
    assert ledger.find_customers("   ") == []


def test_find_customers_treats_wildcards_literally(ledger):
    ledger.record_purchase("Ali", A_AND_B)
    ledger.record_purchase("100% Pure", A_AND_B)

    assert [c.name for c in ledger.find_customers("%")] == ["100% Pure"]
    assert ledger.find_customers("_") == []


def test_rename_customer_keeps_balance(ledger):
    customer, _ = ledger.record_purchase("Ali", A_AND_B)

    renamed = ledger.rename_customer(customer.id, "  Ali Hassan ")

    assert renamed.name == "Ali Hassan"
    assert renamed.total_debt == customer.total_debt
    assert ledger.record_purchase("ali hassan", A_AND_B)[0].id == customer.id


def test_rename_to_own_name_in_other_case(ledger):
    customer, _ = ledger.record_purchase("Ali", A_AND_B)
    assert ledger.rename_customer(customer.id, "ALI").name == "ALI"


def test_rename_collision_is_refused(ledger):
    ledger.record_purchase("Ali", A_AND_B)
    other, _ = ledger.record_purchase("Omar", A_AND_B)

    with pytest.raises(DuplicateCustomerError):
        ledger.rename_customer(other.id, "ali")
    assert ledger.get_customer(other.id).name == "Omar"


def test_rename_validation(ledger):
    with pytest.raises(NotFoundError):
        ledger.rename_customer(1, "Ali")
    customer, _ = ledger.record_purchase("Ali", A_AND_B)
    with pytest.raises(ValidationError):
        ledger.rename_customer(customer.id, " ")


def test_delete_customer_cascades(ledger):
    customer, purchase = ledger.record_purchase("Ali", A_AND_B)
    _, payment = ledger.record_payment(customer.id, 5)
    keep, _ = ledger.record_purchase("Omar", A_AND_B)

    ledger.delete_customer(customer.id)

    with pytest.raises(NotFoundError):
        ledger.get_customer(customer.id)
    with pytest.raises(NotFoundError):
        ledger.delete_purchase(purchase.id)
    with pytest.raises(NotFoundError):
        ledger.delete_payment(payment.id)
    assert ledger.get_customer(keep.id).name == "Omar"


def test_delete_customer_unknown(ledger):
    with pytest.raises(NotFoundError):
        ledger.delete_customer(5)


def test_statement_lists_newest_first(ledger):
    customer, first = ledger.record_purchase("Ali", A_AND_B)
    _, second = ledger.record_purchase("Ali", [{"name": "C", "price": 1}])
    _, p1 = ledger.record_payment(customer.id, 2)
    _, p2 = ledger.record_payment(customer.id, 3)

    statement = ledger.get_statement(customer.id)

    assert [p.id for p in statement.purchases] == [second.id, first.id]
    assert [p.id for p in statement.payments] == [p2.id, p1.id]
    assert str(statement.total_purchases) == "16.00"
    assert str(statement.total_payments) == "5.00"


def test_list_customers_with_payment_summary(ledger):
    ali, _ = ledger.record_purchase("Ali", A_AND_B)
    omar, _ = ledger.record_purchase("Omar", A_AND_B)
    ledger.record_payment(ali.id, 2)
    _, last = ledger.record_payment(ali.id, "3.5")

    summaries = ledger.list_customers()

    assert [s.customer.id for s in summaries] == [omar.id, ali.id]
    ali_summary = summaries[1]
    assert ali_summary.installment_count == 2
    assert str(ali_summary.total_paid) == "5.50"
    assert ali_summary.last_payment.id == last.id
    assert summaries[0].installment_count == 0
    assert summaries[0].last_payment is None


def test_summary_totals(ledger):
    ali, _ = ledger.record_purchase("Ali", A_AND_B)
    ledger.record_purchase("Omar", [{"name": "X", "price": "7.25"}])
    ledger.record_payment(ali.id, 5)

    summary = ledger.summary()

    assert summary.total_customers == 2
    assert str(summary.total_purchases) == "22.25"
    assert str(summary.total_payments) == "5.00"
    assert str(summary.total_debt) == "17.25"


def test_summary_of_empty_ledger(ledger):
    summary = ledger.summary()
    assert summary.total_customers == 0
    assert summary.total_debt == Money.zero()
