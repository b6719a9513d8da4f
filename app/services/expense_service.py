"""
Expense Lifecycle Manager

Owns the expense state machine (Draft -> Submitted -> Approved/Rejected) and
the rules gating each transition. Storage sits behind an ExpenseStore.

Reads never raise: when the store fails, the demo dataset is returned and the
failure is reported through ReadResult.diagnostic. Writes return False (or 0
for create) and never fabricate data.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Awaitable, Callable, List, Optional, TypeVar
import logging

from app.models import ExpenseStatus
from app.schemas import (
    CategoryResponse,
    ExpenseResponse,
    ReadResult,
    StatusResponse,
    UserResponse,
    to_minor_units,
)
from app.services.fallback_data import (
    fallback_categories,
    fallback_expenses,
    fallback_statuses,
    fallback_users,
)
from app.services.lifecycle import ExpenseStateMachine
from app.services.store import ExpenseStore, StoreError

T = TypeVar("T")

NOT_CONFIGURED_MESSAGE = "Database connection string not configured. Using demo data."


def matches_term(expense: ExpenseResponse, term: str) -> bool:
    needle = term.lower()
    return (
        needle in (expense.description or "").lower()
        or needle in expense.category_name.lower()
        or needle in expense.user_name.lower()
    )


class ExpenseService:

    def __init__(self, store: Optional[ExpenseStore],
                 clock: Callable[[], datetime] = datetime.utcnow):
        self.store = store
        self.clock = clock
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._last_diagnostic: Optional[str] = None
        if store is None:
            self._last_diagnostic = NOT_CONFIGURED_MESSAGE

    @property
    def last_diagnostic(self) -> Optional[str]:
        """Diagnostic left by the most recent operation on this instance."""
        return self._last_diagnostic

    @property
    def is_database_configured(self) -> bool:
        return self.store is not None

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def _read(self, operation: str, call: Callable[[], Awaitable[T]],
                    fallback: Callable[[], T]) -> ReadResult[T]:
        if self.store is None:
            self._last_diagnostic = NOT_CONFIGURED_MESSAGE
            return ReadResult(data=fallback(), diagnostic=NOT_CONFIGURED_MESSAGE)

        try:
            data = await call()
        except StoreError as e:
            self._last_diagnostic = f"Error in {operation}: {e.cause}"
            self.logger.error(f"{operation} failed, serving demo data: {e.cause}", exc_info=True)
            return ReadResult(data=fallback(), diagnostic=self._last_diagnostic)

        self._last_diagnostic = None
        return ReadResult(data=data)

    async def list_all(self) -> ReadResult[List[ExpenseResponse]]:
        return await self._read(
            "list_all",
            lambda: self.store.list_expenses(),
            fallback_expenses,
        )

    async def get_by_id(self, expense_id: int) -> ReadResult[Optional[ExpenseResponse]]:
        return await self._read(
            "get_by_id",
            lambda: self.store.get_expense(expense_id),
            lambda: next((e for e in fallback_expenses() if e.expense_id == expense_id), None),
        )

    async def list_by_user(self, user_id: int) -> ReadResult[List[ExpenseResponse]]:
        return await self._read(
            "list_by_user",
            lambda: self.store.list_expenses_by_user(user_id),
            lambda: [e for e in fallback_expenses() if e.user_id == user_id],
        )

    async def list_pending(self) -> ReadResult[List[ExpenseResponse]]:
        return await self._read(
            "list_pending",
            lambda: self.store.list_pending_expenses(),
            lambda: [e for e in fallback_expenses() if e.status == ExpenseStatus.SUBMITTED],
        )

    async def search(self, term: str) -> ReadResult[List[ExpenseResponse]]:
        return await self._read(
            "search",
            lambda: self.store.search_expenses(term),
            lambda: [e for e in fallback_expenses() if matches_term(e, term)],
        )

    async def list_categories(self) -> ReadResult[List[CategoryResponse]]:
        return await self._read("list_categories", lambda: self.store.list_categories(), fallback_categories)

    async def list_users(self) -> ReadResult[List[UserResponse]]:
        return await self._read("list_users", lambda: self.store.list_users(), fallback_users)

    async def list_statuses(self) -> ReadResult[List[StatusResponse]]:
        return await self._read("list_statuses", lambda: self.store.list_statuses(), fallback_statuses)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _fail(self, message: str) -> None:
        self._last_diagnostic = message
        self.logger.warning(message)

    async def _current_status(self, operation: str, expense_id: int) -> Optional[ExpenseStatus]:
        expense = await self.store.get_expense(expense_id)
        if expense is None:
            self.logger.warning(f"{operation}: expense {expense_id} not found")
            return None
        return expense.status

    async def _transition(self, operation: str, expense_id: int, target: ExpenseStatus,
                          write: Callable[[], Awaitable[int]]) -> bool:
        if self.store is None:
            self._fail(f"Cannot {operation} expense: database not connected. Running with demo data.")
            return False

        try:
            current = await self._current_status(operation, expense_id)
            if current is None:
                self._last_diagnostic = None
                return False
            if not ExpenseStateMachine.can_transition(current, target):
                self._last_diagnostic = None
                self.logger.warning(
                    f"Rejected {operation} of expense {expense_id}: "
                    f"cannot move from {current.value} to {target.value}"
                )
                return False
            affected = await write()
        except StoreError as e:
            self._last_diagnostic = f"Error in {operation}: {e.cause}"
            self.logger.error(f"{operation} of expense {expense_id} failed: {e.cause}", exc_info=True)
            return False

        self._last_diagnostic = None
        if affected > 0:
            self.logger.info(f"Expense {expense_id} moved to {target.value}")
        return affected > 0

    async def create(self, owner_id: int, category_id: int, amount: Decimal,
                     expense_date: date, description: Optional[str] = None,
                     receipt_file: Optional[str] = None) -> int:
        """Create a Draft expense. Returns the new id, or 0 on failure."""
        if self.store is None:
            self._fail("Cannot create expense: database not connected. Running with demo data.")
            return 0

        amount_minor = to_minor_units(amount)
        if amount_minor < 0:
            self._fail(f"Cannot create expense: amount must not be negative ({amount})")
            return 0

        try:
            expense_id = await self.store.create_expense(
                user_id=owner_id,
                category_id=category_id,
                amount_minor=amount_minor,
                expense_date=expense_date,
                description=description,
                receipt_file=receipt_file,
                created_at=self.clock(),
            )
        except StoreError as e:
            self._last_diagnostic = f"Error in create: {e.cause}"
            self.logger.error(f"Creating expense for user {owner_id} failed: {e.cause}", exc_info=True)
            return 0

        self._last_diagnostic = None
        self.logger.info(f"Created draft expense {expense_id} for user {owner_id}")
        return expense_id

    async def update(self, expense_id: int, category_id: int, amount: Decimal,
                     expense_date: date, description: Optional[str] = None,
                     receipt_file: Optional[str] = None) -> bool:
        """Edit a Draft expense in place."""
        if self.store is None:
            self._fail("Cannot update expense: database not connected. Running with demo data.")
            return False

        amount_minor = to_minor_units(amount)
        if amount_minor < 0:
            self._fail(f"Cannot update expense: amount must not be negative ({amount})")
            return False

        try:
            current = await self._current_status("update", expense_id)
            if current is None or not ExpenseStateMachine.can_edit(current):
                self._last_diagnostic = None
                if current is not None:
                    self.logger.warning(f"Rejected update of expense {expense_id}: status is {current.value}")
                return False
            affected = await self.store.update_expense(
                expense_id=expense_id,
                category_id=category_id,
                amount_minor=amount_minor,
                expense_date=expense_date,
                description=description,
                receipt_file=receipt_file,
            )
        except StoreError as e:
            self._last_diagnostic = f"Error in update: {e.cause}"
            self.logger.error(f"Updating expense {expense_id} failed: {e.cause}", exc_info=True)
            return False

        self._last_diagnostic = None
        return affected > 0

    async def submit(self, expense_id: int) -> bool:
        return await self._transition(
            "submit", expense_id, ExpenseStatus.SUBMITTED,
            lambda: self.store.submit_expense(expense_id, self.clock()),
        )

    async def approve(self, expense_id: int, reviewer_id: int) -> bool:
        return await self._transition(
            "approve", expense_id, ExpenseStatus.APPROVED,
            lambda: self.store.approve_expense(expense_id, reviewer_id, self.clock()),
        )

    async def reject(self, expense_id: int, reviewer_id: int) -> bool:
        return await self._transition(
            "reject", expense_id, ExpenseStatus.REJECTED,
            lambda: self.store.reject_expense(expense_id, reviewer_id, self.clock()),
        )

    async def delete(self, expense_id: int) -> bool:
        """Remove a Draft expense."""
        if self.store is None:
            self._fail("Cannot delete expense: database not connected. Running with demo data.")
            return False

        try:
            current = await self._current_status("delete", expense_id)
            if current is None or not ExpenseStateMachine.can_delete(current):
                self._last_diagnostic = None
                if current is not None:
                    self.logger.warning(f"Rejected delete of expense {expense_id}: status is {current.value}")
                return False
            affected = await self.store.delete_expense(expense_id)
        except StoreError as e:
            self._last_diagnostic = f"Error in delete: {e.cause}"
            self.logger.error(f"Deleting expense {expense_id} failed: {e.cause}", exc_info=True)
            return False

        self._last_diagnostic = None
        if affected > 0:
            self.logger.info(f"Deleted draft expense {expense_id}")
        return affected > 0
