# app/db/schema.py

from sqlalchemy import (
    MetaData, Table, Column, Integer, BigInteger, String,
    DateTime, ForeignKey, CheckConstraint, JSON, Index
)

metadata = MetaData()

customers = Table(
    "customers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    # casefolded name; enforces case-insensitive uniqueness
    Column("name_key", String, nullable=False, unique=True),
    Column("total_debt_cents", BigInteger, nullable=False, default=0),
    Column("version", Integer, nullable=False, default=1),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

purchases = Table(
    "purchases",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "customer_id",
        Integer,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("items", JSON, nullable=False),
    Column("purchase_total_cents", BigInteger, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    CheckConstraint("purchase_total_cents > 0", name="ck_purchases_total_positive"),
    Index("ix_purchases_customer_id", "customer_id"),
)

payments = Table(
    "payments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "customer_id",
        Integer,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("amount_paid_cents", BigInteger, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    CheckConstraint("amount_paid_cents > 0", name="ck_payments_amount_positive"),
    Index("ix_payments_customer_id", "customer_id"),
)
