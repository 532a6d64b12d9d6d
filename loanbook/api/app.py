"""FastAPI application entry point."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from loanbook.api.routes import calculator, loans, payments
from loanbook.config import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.app_name,
    description="Loan amortization and repayment tracking",
    version="0.1.0",
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Calculator first: its fixed paths must win over /loans/{loan_id}
app.include_router(calculator.router)
app.include_router(loans.router)
app.include_router(payments.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
