"""Pydantic schemas for API request/response models.

Field names are camelCase on the wire, as the web frontend expects.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from loanbook.models.loan import LoanStatus, LoanType, PaymentType, PrepaymentAction


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- Request schemas ----

class EmiCalculationRequest(CamelModel):
    principal: Decimal = Field(..., gt=0)
    rate: Decimal = Field(..., ge=0, description="Annual interest rate in percent")
    tenure: int = Field(..., gt=0, description="Tenure in months")
    start_date: date | None = Field(None, description="First installment date (default: today)")


class LoanCreate(CamelModel):
    name: str = Field(..., min_length=1)
    loan_type: LoanType
    lender: str = Field(..., min_length=1)
    principal_amount: Decimal = Field(..., gt=0)
    interest_rate: Decimal = Field(..., ge=0)
    tenure_months: int = Field(..., gt=0)
    disbursal_date: date
    first_emi_date: date | None = None
    loan_account_number: str | None = None
    notes: str | None = None
    tags: list[str] = []


class LoanUpdate(CamelModel):
    """Partial update. Any change to the terms triggers a full recompute."""
    name: str | None = None
    loan_type: LoanType | None = None
    lender: str | None = None
    principal_amount: Decimal | None = Field(None, gt=0)
    interest_rate: Decimal | None = Field(None, ge=0)
    tenure_months: int | None = Field(None, gt=0)
    disbursal_date: date | None = None
    first_emi_date: date | None = None
    status: LoanStatus | None = None
    loan_account_number: str | None = None
    notes: str | None = None
    tags: list[str] | None = None


class PaymentCreate(CamelModel):
    type: PaymentType
    amount: Decimal = Field(..., gt=0)
    date: date
    prepayment_action: PrepaymentAction | None = None
    notes: str | None = None
    receipt_number: str | None = None


# ---- Response schemas ----

class AmortizationRowResponse(CamelModel):
    installment_number: int
    due_date: date
    installment_amount: Decimal
    principal_component: Decimal
    interest_component: Decimal
    opening_balance: Decimal
    closing_balance: Decimal


class EmiCalculationResponse(CamelModel):
    emi: Decimal
    total_payable: Decimal
    total_interest: Decimal
    effective_annual_rate: Decimal
    schedule: list[AmortizationRowResponse]


class PaymentResponse(CamelModel):
    id: str
    type: PaymentType
    amount: Decimal
    date: date
    prepayment_action: PrepaymentAction | None = None
    notes: str | None = None
    receipt_number: str | None = None
    principal_component: Decimal
    interest_component: Decimal
    emi_number: int | None = None
    outstanding_after: Decimal | None = None
    new_emi: Decimal | None = None
    tenure_saved_months: int | None = None


class LoanResponse(CamelModel):
    id: str
    name: str
    loan_type: LoanType
    lender: str
    loan_account_number: str | None = None

    # Terms
    principal_amount: Decimal
    interest_rate: Decimal
    tenure_months: int
    disbursal_date: date
    first_emi_date: date
    emi_amount: Decimal
    total_interest_payable: Decimal

    # Derived state
    outstanding_principal: Decimal
    current_emi: Decimal
    current_tenure_months: int
    paid_emis: int
    total_paid_amount: Decimal
    total_principal_paid: Decimal
    total_interest_paid: Decimal
    total_prepaid: Decimal
    last_payment_date: date | None = None
    next_emi_date: date | None = None
    completion_pct: Decimal
    age_months: int

    status: LoanStatus
    closed_date: date | None = None
    payments: list[PaymentResponse] = []
    notes: str | None = None
    tags: list[str] = []
    created_at: datetime
    updated_at: datetime


class AmortizationResponse(CamelModel):
    schedule: list[AmortizationRowResponse]
    loan: LoanResponse


class LoanTypeBreakdownResponse(CamelModel):
    outstanding: Decimal
    emi: Decimal
    count: int


class PortfolioSummaryResponse(CamelModel):
    active_count: int
    closed_count: int
    total_outstanding: Decimal
    total_monthly_emi: Decimal
    total_borrowed: Decimal
    total_interest_paid: Decimal
    total_prepaid: Decimal
    by_type: dict[str, LoanTypeBreakdownResponse]


class MessageResponse(BaseModel):
    message: str
