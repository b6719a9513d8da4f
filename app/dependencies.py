from typing import Optional
import logging

from fastapi import Depends

from agents.expense_agent import ExpenseAgent
from agents.model_backend import ModelBackend, build_model_backend
from app import database
from app.services.expense_service import ExpenseService
from app.services.store import SQLAlchemyExpenseStore

logger = logging.getLogger(__name__)

_model_backend: Optional[ModelBackend] = None
_model_backend_loaded = False


def get_model_backend() -> Optional[ModelBackend]:
    """The model client is built once and shared by every request."""
    global _model_backend, _model_backend_loaded
    if not _model_backend_loaded:
        _model_backend = build_model_backend()
        _model_backend_loaded = True
    return _model_backend


def get_expense_service() -> ExpenseService:
    # One service per request, so the diagnostic slot is never shared
    if database.AsyncSessionLocal is None:
        return ExpenseService(store=None)
    return ExpenseService(SQLAlchemyExpenseStore(database.AsyncSessionLocal))


def get_expense_agent(
    service: ExpenseService = Depends(get_expense_service),
    backend: Optional[ModelBackend] = Depends(get_model_backend),
) -> ExpenseAgent:
    return ExpenseAgent(service, backend=backend)
