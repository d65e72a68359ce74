# app/api/reports.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from app.api.common import get_ledger
from app.core.config import settings
from app.ledger.service import Ledger
from app.models.results import LedgerSummaryOut
from app.reports.export import build_workbook, export_filename, export_rows

router = APIRouter(prefix="/reports", tags=["reports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/summary", response_model=LedgerSummaryOut)
def ledger_summary(ledger: Ledger = Depends(get_ledger)) -> LedgerSummaryOut:
    """
    Dashboard totals: customer count, outstanding debt, purchases and payments.
    """
    summary = ledger.summary()
    return LedgerSummaryOut(
        total_customers=summary.total_customers,
        total_debt=str(summary.total_debt),
        total_purchases=str(summary.total_purchases),
        total_payments=str(summary.total_payments),
    )


@router.get("/customers.xlsx")
def export_customers(
    locale: Optional[str] = Query(default=None, description="en | ar; defaults to LEDGER_EXPORT_LOCALE"),
    ledger: Ledger = Depends(get_ledger),
) -> Response:
    """
    Download every customer as an Excel sheet.
    """
    locale = locale or settings.export_locale
    rows = export_rows(ledger.list_customers(), locale)
    content = build_workbook(rows, locale)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )
