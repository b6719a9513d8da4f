from .lifecycle import ExpenseStateMachine
from .store import ExpenseStore, SQLAlchemyExpenseStore, StoreError
from .expense_service import ExpenseService, NOT_CONFIGURED_MESSAGE

__all__ = [
    "ExpenseStateMachine",
    "ExpenseStore",
    "SQLAlchemyExpenseStore",
    "StoreError",
    "ExpenseService",
    "NOT_CONFIGURED_MESSAGE",
]
