"""Expense operations exposed to the language model as LangChain tools."""

from typing import Any, Dict, Iterable, List, Optional
import json

from langchain_core.tools import StructuredTool

from app.schemas import ExpenseResponse
from app.services.expense_service import ExpenseService
from agents.schemas import ExpenseIdArgs, SearchExpensesArgs

from . import ToolRegistry


def _summarize(expenses: Iterable[ExpenseResponse], *fields: str) -> str:
    rows: List[Dict[str, Any]] = []
    for e in expenses:
        row = {
            "expense_id": e.expense_id,
            "date": e.formatted_date,
            "category": e.category_name,
            "amount": e.formatted_amount,
            "status": e.status.value,
            "description": e.description,
            "user_name": e.user_name,
        }
        rows.append({key: row[key] for key in fields})
    return json.dumps(rows, ensure_ascii=False)


def build_expense_tools(service: ExpenseService, reviewer_id: Optional[int] = None) -> ToolRegistry:
    """Build the six assistant tools for one conversation.

    reviewer_id is the caller-supplied identity used by the approve and
    reject tools; without it those tools refuse in text.
    """

    async def get_all_expenses() -> str:
        result = await service.list_all()
        return _summarize(result.data, "expense_id", "date", "category", "amount",
                          "status", "description", "user_name")

    async def get_pending_expenses() -> str:
        result = await service.list_pending()
        return _summarize(result.data, "expense_id", "date", "category", "amount",
                          "description", "user_name")

    async def get_categories() -> str:
        result = await service.list_categories()
        return json.dumps([c.model_dump() for c in result.data])

    async def search_expenses(searchTerm: str) -> str:
        if not searchTerm.strip():
            return "[]"
        result = await service.search(searchTerm)
        return _summarize(result.data, "expense_id", "date", "category", "amount",
                          "status", "description")

    async def review(verb: str, past_tense: str, expense_id: int) -> str:
        if expense_id <= 0:
            return "Invalid expense ID."
        if reviewer_id is None:
            return f"Cannot {verb} expense: no reviewer identity was supplied with this request."
        action = service.approve if verb == "approve" else service.reject
        success = await action(expense_id, reviewer_id)
        return f"Expense {past_tense} successfully." if success else f"Failed to {verb} expense."

    async def approve_expense(expenseId: int) -> str:
        return await review("approve", "approved", expenseId)

    async def reject_expense(expenseId: int) -> str:
        return await review("reject", "rejected", expenseId)

    return ToolRegistry([
        StructuredTool.from_function(
            coroutine=get_all_expenses,
            name="get_all_expenses",
            description="Retrieves all expenses from the database",
        ),
        StructuredTool.from_function(
            coroutine=get_pending_expenses,
            name="get_pending_expenses",
            description="Retrieves all pending expenses awaiting approval",
        ),
        StructuredTool.from_function(
            coroutine=get_categories,
            name="get_categories",
            description="Retrieves all expense categories",
        ),
        StructuredTool.from_function(
            coroutine=search_expenses,
            name="search_expenses",
            description="Searches expenses by description, category, or user name",
            args_schema=SearchExpensesArgs,
        ),
        StructuredTool.from_function(
            coroutine=approve_expense,
            name="approve_expense",
            description="Approves an expense (manager action)",
            args_schema=ExpenseIdArgs,
        ),
        StructuredTool.from_function(
            coroutine=reject_expense,
            name="reject_expense",
            description="Rejects an expense (manager action)",
            args_schema=ExpenseIdArgs,
        ),
    ])
