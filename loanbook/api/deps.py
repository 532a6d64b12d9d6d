"""FastAPI dependency injection."""

from loanbook.config import Settings, settings
from loanbook.data.store import LoanStore

_store = LoanStore()


def get_store() -> LoanStore:
    return _store


def get_settings() -> Settings:
    return settings
