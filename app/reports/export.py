# app/reports/export.py
"""
Excel export of the customer list.

One row per customer: name, outstanding debt, number of installments paid,
total paid and registration date. Amounts are two-decimal strings; the date
is the local calendar day, written out in long form for the chosen locale.
"""

import logging
from datetime import date, datetime, timezone
from io import BytesIO
from typing import Dict, Iterable, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font

from app.core.exceptions import ValidationError
from app.ledger.records import CustomerSummary

logger = logging.getLogger(__name__)

COLUMNS = ["name", "total_debt", "installments", "total_paid", "registered"]

HEADERS: Dict[str, Dict[str, str]] = {
    "en": {
        "name": "Customer name",
        "total_debt": "Total amount due",
        "installments": "Installments",
        "total_paid": "Total payments",
        "registered": "Registration date",
    },
    "ar": {
        "name": "اسم العميل",
        "total_debt": "إجمالي المبلغ المستحق",
        "installments": "عدد الأقساط",
        "total_paid": "إجمالي المدفوعات",
        "registered": "تاريخ التسجيل",
    },
}

SHEET_TITLES = {"en": "Customers", "ar": "العملاء"}

MONTHS = {
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
    "ar": [
        "يناير", "فبراير", "مارس", "أبريل", "مايو", "يونيو",
        "يوليو", "أغسطس", "سبتمبر", "أكتوبر", "نوفمبر", "ديسمبر",
    ],
}


def _check_locale(locale: str) -> str:
    if locale not in HEADERS:
        raise ValidationError(
            f"Unsupported export locale {locale!r}",
            details={"supported": sorted(HEADERS)},
        )
    return locale


def format_long_date(value: date, locale: str = "en") -> str:
    """e.g. "19 October 2026" / "19 أكتوبر 2026"."""
    locale = _check_locale(locale)
    return f"{value.day} {MONTHS[locale][value.month - 1]} {value.year}"


def local_date(value: datetime) -> date:
    """Calendar date of a stored timestamp in the server's local time zone."""
    # stored timestamps are UTC; SQLite hands them back naive
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone().date()


def export_rows(summaries: Iterable[CustomerSummary], locale: str = "en") -> List[Dict[str, object]]:
    locale = _check_locale(locale)
    rows = []
    for summary in summaries:
        customer = summary.customer
        rows.append(
            {
                "name": customer.name,
                "total_debt": str(customer.total_debt),
                "installments": summary.installment_count,
                "total_paid": str(summary.total_paid),
                "registered": format_long_date(local_date(customer.created_at), locale),
            }
        )
    return rows


def build_workbook(rows: List[Dict[str, object]], locale: str = "en") -> bytes:
    """Write export rows into a single-sheet .xlsx and return the file bytes."""
    locale = _check_locale(locale)
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLES[locale]
    if locale == "ar":
        ws.sheet_view.rightToLeft = True

    ws.append([HEADERS[locale][col] for col in COLUMNS])
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for row in rows:
        ws.append([row[col] for col in COLUMNS])

    buffer = BytesIO()
    wb.save(buffer)
    logger.info("Built customer export: %d rows (%s)", len(rows), locale)
    return buffer.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    today = today or datetime.now().date()
    return f"customers_{today:%Y-%m-%d}.xlsx"
