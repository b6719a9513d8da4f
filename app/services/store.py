from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import select, update, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from app.models import (
    Category,
    Expense,
    ExpenseStatus,
    Status,
    User,
    UserRole,
    STATUS_IDS,
)
from app.schemas import CategoryResponse, ExpenseResponse, StatusResponse, UserResponse


class StoreError(Exception):
    """Raised when the persistence layer cannot complete an operation."""

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


class ExpenseStore(ABC):
    """Persistence port for expenses and their reference data.

    Write operations return the number of rows they changed. Status changing
    writes only touch rows still in the expected source status, so a zero
    return means the expense is missing or no longer in that status.
    """

    @abstractmethod
    async def list_expenses(self) -> List[ExpenseResponse]:
        pass

    @abstractmethod
    async def get_expense(self, expense_id: int) -> Optional[ExpenseResponse]:
        pass

    @abstractmethod
    async def list_expenses_by_user(self, user_id: int) -> List[ExpenseResponse]:
        pass

    @abstractmethod
    async def list_pending_expenses(self) -> List[ExpenseResponse]:
        pass

    @abstractmethod
    async def search_expenses(self, term: str) -> List[ExpenseResponse]:
        pass

    @abstractmethod
    async def create_expense(self, user_id: int, category_id: int, amount_minor: int,
                             expense_date: date, description: Optional[str],
                             receipt_file: Optional[str], created_at: datetime) -> int:
        pass

    @abstractmethod
    async def update_expense(self, expense_id: int, category_id: int, amount_minor: int,
                             expense_date: date, description: Optional[str],
                             receipt_file: Optional[str]) -> int:
        pass

    @abstractmethod
    async def submit_expense(self, expense_id: int, submitted_at: datetime) -> int:
        pass

    @abstractmethod
    async def approve_expense(self, expense_id: int, reviewer_id: int, reviewed_at: datetime) -> int:
        pass

    @abstractmethod
    async def reject_expense(self, expense_id: int, reviewer_id: int, reviewed_at: datetime) -> int:
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: int) -> int:
        pass

    @abstractmethod
    async def list_categories(self) -> List[CategoryResponse]:
        pass

    @abstractmethod
    async def list_users(self) -> List[UserResponse]:
        pass

    @abstractmethod
    async def list_statuses(self) -> List[StatusResponse]:
        pass


def expense_to_response(expense: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        expense_id=expense.id,
        user_id=expense.user_id,
        user_name=expense.user.name if expense.user else "",
        email=expense.user.email if expense.user else "",
        category_id=expense.category_id,
        category_name=expense.category.name if expense.category else "",
        status=ExpenseStatus.from_id(expense.status_id),
        amount_minor=expense.amount_minor,
        currency=expense.currency or "GBP",
        expense_date=expense.expense_date,
        description=expense.description,
        receipt_file=expense.receipt_file,
        submitted_at=expense.submitted_at,
        reviewed_by=expense.reviewed_by,
        reviewer_name=expense.reviewer.name if expense.reviewer else None,
        reviewed_at=expense.reviewed_at,
        created_at=expense.created_at,
    )


class SQLAlchemyExpenseStore(ExpenseStore):
    """ExpenseStore backed by an async SQLAlchemy session factory.

    A session is opened for each operation and closed before it returns.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str):
        session: AsyncSession = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception as e:
            # Driver, timeout and row mapping failures all surface as StoreError
            await session.rollback()
            raise StoreError(operation, e) from e
        finally:
            await session.close()

    def _expense_query(self):
        return select(Expense).options(
            selectinload(Expense.user),
            selectinload(Expense.reviewer),
            selectinload(Expense.category),
        )

    async def _fetch_expenses(self, operation: str, *criteria) -> List[ExpenseResponse]:
        async with self._session(operation) as session:
            query = self._expense_query()
            if criteria:
                query = query.where(*criteria)
            result = await session.execute(query.order_by(Expense.id))
            return [expense_to_response(e) for e in result.scalars().all()]

    async def list_expenses(self) -> List[ExpenseResponse]:
        return await self._fetch_expenses("list_expenses")

    async def get_expense(self, expense_id: int) -> Optional[ExpenseResponse]:
        expenses = await self._fetch_expenses("get_expense", Expense.id == expense_id)
        return expenses[0] if expenses else None

    async def list_expenses_by_user(self, user_id: int) -> List[ExpenseResponse]:
        return await self._fetch_expenses("list_expenses_by_user", Expense.user_id == user_id)

    async def list_pending_expenses(self) -> List[ExpenseResponse]:
        return await self._fetch_expenses(
            "list_pending_expenses", Expense.status_id == STATUS_IDS[ExpenseStatus.SUBMITTED]
        )

    async def search_expenses(self, term: str) -> List[ExpenseResponse]:
        # Literal substring match; % and _ in the term are not wildcards
        matching_categories = select(Category.id).where(Category.name.icontains(term, autoescape=True))
        matching_users = select(User.id).where(User.name.icontains(term, autoescape=True))
        return await self._fetch_expenses(
            "search_expenses",
            or_(
                Expense.description.icontains(term, autoescape=True),
                Expense.category_id.in_(matching_categories),
                Expense.user_id.in_(matching_users),
            ),
        )

    async def create_expense(self, user_id: int, category_id: int, amount_minor: int,
                             expense_date: date, description: Optional[str],
                             receipt_file: Optional[str], created_at: datetime) -> int:
        async with self._session("create_expense") as session:
            expense = Expense(
                user_id=user_id,
                category_id=category_id,
                status_id=STATUS_IDS[ExpenseStatus.DRAFT],
                amount_minor=amount_minor,
                currency="GBP",
                expense_date=expense_date,
                description=description,
                receipt_file=receipt_file,
                created_at=created_at,
            )
            session.add(expense)
            await session.flush()
            return expense.id

    async def _conditional_update(self, operation: str, expense_id: int,
                                  expected: ExpenseStatus, **values) -> int:
        statement = (
            update(Expense)
            .where(Expense.id == expense_id, Expense.status_id == STATUS_IDS[expected])
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with self._session(operation) as session:
            result = await session.execute(statement)
            return result.rowcount

    async def update_expense(self, expense_id: int, category_id: int, amount_minor: int,
                             expense_date: date, description: Optional[str],
                             receipt_file: Optional[str]) -> int:
        return await self._conditional_update(
            "update_expense", expense_id, ExpenseStatus.DRAFT,
            category_id=category_id,
            amount_minor=amount_minor,
            expense_date=expense_date,
            description=description,
            receipt_file=receipt_file,
        )

    async def submit_expense(self, expense_id: int, submitted_at: datetime) -> int:
        return await self._conditional_update(
            "submit_expense", expense_id, ExpenseStatus.DRAFT,
            status_id=STATUS_IDS[ExpenseStatus.SUBMITTED],
            submitted_at=submitted_at,
        )

    async def approve_expense(self, expense_id: int, reviewer_id: int, reviewed_at: datetime) -> int:
        return await self._conditional_update(
            "approve_expense", expense_id, ExpenseStatus.SUBMITTED,
            status_id=STATUS_IDS[ExpenseStatus.APPROVED],
            reviewed_by=reviewer_id,
            reviewed_at=reviewed_at,
        )

    async def reject_expense(self, expense_id: int, reviewer_id: int, reviewed_at: datetime) -> int:
        return await self._conditional_update(
            "reject_expense", expense_id, ExpenseStatus.SUBMITTED,
            status_id=STATUS_IDS[ExpenseStatus.REJECTED],
            reviewed_by=reviewer_id,
            reviewed_at=reviewed_at,
        )

    async def delete_expense(self, expense_id: int) -> int:
        statement = (
            delete(Expense)
            .where(Expense.id == expense_id, Expense.status_id == STATUS_IDS[ExpenseStatus.DRAFT])
            .execution_options(synchronize_session=False)
        )
        async with self._session("delete_expense") as session:
            result = await session.execute(statement)
            return result.rowcount

    async def list_categories(self) -> List[CategoryResponse]:
        async with self._session("list_categories") as session:
            result = await session.execute(
                select(Category).where(Category.is_active.is_(True)).order_by(Category.id)
            )
            return [
                CategoryResponse(category_id=c.id, category_name=c.name, is_active=c.is_active)
                for c in result.scalars().all()
            ]

    async def list_users(self) -> List[UserResponse]:
        async with self._session("list_users") as session:
            result = await session.execute(
                select(User)
                .options(selectinload(User.role), selectinload(User.manager))
                .order_by(User.id)
            )
            return [
                UserResponse(
                    user_id=u.id,
                    user_name=u.name,
                    email=u.email,
                    role=UserRole(u.role.name),
                    manager_id=u.manager_id,
                    manager_name=u.manager.name if u.manager else None,
                    is_active=u.is_active,
                    created_at=u.created_at,
                )
                for u in result.scalars().all()
            ]

    async def list_statuses(self) -> List[StatusResponse]:
        async with self._session("list_statuses") as session:
            result = await session.execute(select(Status).order_by(Status.id))
            return [
                StatusResponse(status_id=s.id, status_name=ExpenseStatus(s.name))
                for s in result.scalars().all()
            ]
