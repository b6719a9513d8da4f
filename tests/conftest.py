"""Pytest fixtures for expense management tests."""

from collections.abc import AsyncGenerator
from datetime import datetime
from typing import Any, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from agents.model_backend import ModelBackend
from agents.schemas import ChatMessage, ModelReply, ToolCall
from app.database import Base
from app.dependencies import get_expense_service, get_model_backend
from app.main import app, seed_reference_data
from app.services.expense_service import ExpenseService
from app.services.store import ExpenseStore, SQLAlchemyExpenseStore, StoreError

FIXED_NOW = datetime(2024, 3, 1, 9, 30)


class FixedClock:
    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FailingStore(ExpenseStore):
    """Store whose every operation fails like an unreachable database."""

    def __init__(self):
        self.calls: List[str] = []

    def _fail(self, operation: str):
        self.calls.append(operation)
        raise StoreError(operation, OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused")))

    async def list_expenses(self):
        self._fail("list_expenses")

    async def get_expense(self, expense_id):
        self._fail("get_expense")

    async def list_expenses_by_user(self, user_id):
        self._fail("list_expenses_by_user")

    async def list_pending_expenses(self):
        self._fail("list_pending_expenses")

    async def search_expenses(self, term):
        self._fail("search_expenses")

    async def create_expense(self, user_id, category_id, amount_minor, expense_date,
                             description, receipt_file, created_at):
        self._fail("create_expense")

    async def update_expense(self, expense_id, category_id, amount_minor, expense_date,
                             description, receipt_file):
        self._fail("update_expense")

    async def submit_expense(self, expense_id, submitted_at):
        self._fail("submit_expense")

    async def approve_expense(self, expense_id, reviewer_id, reviewed_at):
        self._fail("approve_expense")

    async def reject_expense(self, expense_id, reviewer_id, reviewed_at):
        self._fail("reject_expense")

    async def delete_expense(self, expense_id):
        self._fail("delete_expense")

    async def list_categories(self):
        self._fail("list_categories")

    async def list_users(self):
        self._fail("list_users")

    async def list_statuses(self):
        self._fail("list_statuses")


class ScriptedBackend(ModelBackend):
    """Model backend that plays back queued replies and records each request."""

    def __init__(self, replies: List[ModelReply], repeat_last: bool = False):
        self.replies = list(replies)
        self.repeat_last = repeat_last
        self.requests: List[List[ChatMessage]] = []
        self.bound_tools: List[List[Any]] = []

    async def complete(self, messages, tools):
        self.requests.append(list(messages))
        self.bound_tools.append(list(tools))
        if self.repeat_last and len(self.replies) == 1:
            return self.replies[0]
        return self.replies.pop(0)


class ExplodingBackend(ModelBackend):

    async def complete(self, messages, tools):
        raise ConnectionError("model endpoint unreachable")


def tool_reply(name: str, call_id: str = "call_1", **arguments) -> ModelReply:
    return ModelReply(tool_calls=[ToolCall(id=call_id, name=name, arguments=arguments)])


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """File-backed SQLite database with reference data seeded."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'expenses.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await seed_reference_data(factory)

    yield factory

    await engine.dispose()


@pytest.fixture
def store(session_factory) -> SQLAlchemyExpenseStore:
    return SQLAlchemyExpenseStore(session_factory)


@pytest.fixture
def service(store, clock) -> ExpenseService:
    return ExpenseService(store, clock=clock)


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def failing_service(failing_store, clock) -> ExpenseService:
    return ExpenseService(failing_store, clock=clock)


@pytest_asyncio.fixture
async def client(session_factory, clock) -> AsyncGenerator[AsyncClient, None]:
    """API client wired to the test database and no model backend."""
    app.dependency_overrides[get_expense_service] = (
        lambda: ExpenseService(SQLAlchemyExpenseStore(session_factory), clock=clock)
    )
    app.dependency_overrides[get_model_backend] = lambda: None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
