"""Tests for the expense chat assistant and its tools."""

import json
from datetime import date
from decimal import Decimal

import pytest

from agents.expense_agent import ExpenseAgent
from agents.schemas import ChatInput, ModelReply, ToolCall
from agents.state import EXHAUSTED_MESSAGE, MAX_ITERATIONS
from app.models import ExpenseStatus

from tests.conftest import ExplodingBackend, ScriptedBackend, tool_reply

pytestmark = pytest.mark.asyncio


async def submitted_expense(service, description="Conference hotel") -> int:
    expense_id = await service.create(
        owner_id=1, category_id=4, amount=Decimal("210.00"),
        expense_date=date(2024, 2, 12), description=description,
    )
    await service.submit(expense_id)
    return expense_id


class TestToolLoop:

    async def test_pending_question_uses_pending_tool(self, service):
        await submitted_expense(service)
        backend = ScriptedBackend([
            tool_reply("get_pending_expenses"),
            ModelReply(content="One expense is waiting: Conference hotel, £210.00."),
        ])
        agent = ExpenseAgent(service, backend=backend)

        output = await agent.execute(ChatInput(message="What expenses are pending?"))

        assert output.is_ai_enabled
        assert output.tool_calls_made == ["get_pending_expenses"]
        assert output.message.startswith("One expense is waiting")
        tool_message = backend.requests[1][-1]
        rows = json.loads(tool_message.content)
        assert rows[0]["amount"] == "£210.00"
        assert rows[0]["description"] == "Conference hotel"

    async def test_six_tools_are_bound(self, service):
        backend = ScriptedBackend([ModelReply(content="hi")])
        await ExpenseAgent(service, backend=backend).respond("hello")

        names = [tool.name for tool in backend.bound_tools[0]]
        assert names == [
            "get_all_expenses",
            "get_pending_expenses",
            "get_categories",
            "search_expenses",
            "approve_expense",
            "reject_expense",
        ]

    async def test_exhaustion_stops_calling_the_model(self, service):
        backend = ScriptedBackend([tool_reply("get_categories")], repeat_last=True)
        agent = ExpenseAgent(service, backend=backend)

        answer = await agent.respond("loop forever")

        assert answer == EXHAUSTED_MESSAGE
        assert len(backend.requests) == MAX_ITERATIONS

    async def test_tool_failure_is_reported_to_the_model(self, service):
        backend = ScriptedBackend([
            ModelReply(tool_calls=[
                ToolCall(id="bad", name="search_expenses", arguments={}),
                ToolCall(id="good", name="get_categories"),
            ]),
            ModelReply(content="Here are the categories."),
        ])
        agent = ExpenseAgent(service, backend=backend)

        answer = await agent.respond("categories please")

        assert answer == "Here are the categories."
        tool_turns = backend.requests[1][-2:]
        assert tool_turns[0].tool_call_id == "bad"
        assert tool_turns[0].content.startswith("Error executing search_expenses")
        assert "Travel" in tool_turns[1].content

    async def test_unknown_tool(self, service):
        backend = ScriptedBackend([tool_reply("delete_everything"), ModelReply(content="Sorry.")])

        await ExpenseAgent(service, backend=backend).respond("delete it all")

        assert backend.requests[1][-1].content == "Unknown function: delete_everything"

    async def test_backend_error_becomes_apology(self, service):
        output = await ExpenseAgent(service, backend=ExplodingBackend()).execute(
            ChatInput(message="show expenses")
        )

        assert output.is_ai_enabled
        assert output.message.startswith("I encountered an error processing your request:")
        assert "model endpoint unreachable" in output.message


class TestReviewTools:

    async def test_approve_with_reviewer(self, service):
        expense_id = await submitted_expense(service)
        backend = ScriptedBackend([
            tool_reply("approve_expense", expenseId=expense_id),
            ModelReply(content="Approved."),
        ])

        await ExpenseAgent(service, backend=backend).respond(f"approve {expense_id}", reviewer_id=2)

        assert backend.requests[1][-1].content == "Expense approved successfully."
        expense = (await service.get_by_id(expense_id)).data
        assert expense.status == ExpenseStatus.APPROVED
        assert expense.reviewed_by == 2

    async def test_approve_without_reviewer_is_refused(self, service):
        expense_id = await submitted_expense(service)
        backend = ScriptedBackend([
            tool_reply("approve_expense", expenseId=expense_id),
            ModelReply(content="I could not approve that."),
        ])

        await ExpenseAgent(service, backend=backend).respond(f"approve {expense_id}")

        assert "no reviewer identity" in backend.requests[1][-1].content
        assert (await service.get_by_id(expense_id)).data.status == ExpenseStatus.SUBMITTED

    async def test_reject_invalid_id(self, service):
        backend = ScriptedBackend([
            tool_reply("reject_expense", expenseId=0),
            ModelReply(content="Which expense?"),
        ])

        await ExpenseAgent(service, backend=backend).respond("reject it", reviewer_id=2)

        assert backend.requests[1][-1].content == "Invalid expense ID."

    async def test_reject_draft_fails(self, service):
        draft_id = await service.create(
            owner_id=1, category_id=2, amount=Decimal("8.00"), expense_date=date(2024, 2, 1)
        )
        backend = ScriptedBackend([
            tool_reply("reject_expense", expenseId=draft_id),
            ModelReply(content="That did not work."),
        ])

        await ExpenseAgent(service, backend=backend).respond("reject", reviewer_id=2)

        assert backend.requests[1][-1].content == "Failed to reject expense."


class TestWithoutModel:

    async def test_demo_listing_without_touching_store(self, failing_service, failing_store):
        agent = ExpenseAgent(failing_service, backend=None)

        output = await agent.execute(ChatInput(message="Show me all expenses"))

        assert not output.is_ai_enabled
        assert output.message.startswith("**Expense List** (Demo Data)")
        assert failing_store.calls == []

    async def test_blank_search_term(self, service):
        backend = ScriptedBackend([
            tool_reply("search_expenses", searchTerm="   "),
            ModelReply(content="Nothing found."),
        ])

        await ExpenseAgent(service, backend=backend).respond("search")

        assert backend.requests[1][-1].content == "[]"
