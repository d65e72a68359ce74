from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from app.api.customers import router as customers_router
from app.api.payments import router as payments_router
from app.api.purchases import router as purchases_router
from app.api.reports import router as reports_router
from app.core.config import settings
from app.core.exceptions import (
    AppException,
    app_exception_handler,
    generic_exception_handler,
    request_validation_handler,
)
from app.core.logging import configure_logging

configure_logging(settings.log_level)

app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
)

app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(customers_router)
app.include_router(purchases_router)
app.include_router(payments_router)
app.include_router(reports_router)
