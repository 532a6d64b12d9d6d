"""Errors raised by the loan engine and its storage collaborator."""


class LoanEngineError(ValueError):
    """Base class for engine failures. No partial state is produced."""


class InvalidInput(LoanEngineError):
    """Non-positive tenure, negative principal/rate/amount and similar."""


class InvalidPayment(LoanEngineError):
    """A payment event whose semantics contradict the loan or itself."""

    def __init__(self, message: str, payment_id: str | None = None):
        super().__init__(message)
        self.payment_id = payment_id


class LoanNotFound(KeyError):
    def __init__(self, loan_id: str):
        super().__init__(loan_id)
        self.loan_id = loan_id

    def __str__(self) -> str:
        return f"Loan {self.loan_id} not found"
