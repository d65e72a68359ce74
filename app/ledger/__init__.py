# app/ledger/__init__.py
"""
Customer debt ledger: money values, records and the balance rules
(app.ledger.service.Ledger).
"""
