"""
Expense Assistant Agent - LangChain Powered

Answers natural-language questions about expenses. The model can call six
expense tools (list, pending, categories, search, approve, reject); results
are fed back until it produces a final answer or the iteration budget runs
out. Without a configured model the agent answers from canned demo text.
"""

from typing import List, Optional

from agents.base import Agent
from agents.fallback import demo_response
from agents.model_backend import ModelBackend
from agents.schemas import ChatInput, ChatOutput
from agents.state import (
    LoopPhase,
    LoopState,
    MAX_ITERATIONS,
    on_model_reply,
    on_tools_executed,
)
from agents.tools.expense_tools import build_expense_tools
from app.services.expense_service import ExpenseService


SYSTEM_PROMPT = """You are a helpful expense management assistant. You can help users:
- View and search expenses
- Check pending approvals
- Approve or reject expenses (as a manager)
- Get information about expense categories

When listing expenses, format them nicely with:
- Date
- Category
- Amount (in GBP)
- Status
- Description

Use the available functions to interact with the expense database.
Always be helpful and provide clear, formatted responses."""


class ExpenseAgent(Agent[ChatInput, ChatOutput]):
    """
    Tool-calling chat assistant over the expense lifecycle operations.

    Each call is a fresh conversation of one system prompt and one user
    message; nothing is remembered between calls.
    """

    def __init__(self, service: ExpenseService, backend: Optional[ModelBackend] = None,
                 max_iterations: int = MAX_ITERATIONS):
        super().__init__(
            name="expense_agent",
            description="Chat assistant that answers expense questions and performs approvals through tool calls"
        )
        self.service = service
        self.backend = backend
        self.max_iterations = max_iterations
        self.system_prompt = SYSTEM_PROMPT

        if backend is None:
            self.logger.info("Expense Agent running without a model backend; demo responses only")

    @property
    def is_configured(self) -> bool:
        return self.backend is not None

    # -------------------------------------------------------------------------
    # Agent Loop
    # -------------------------------------------------------------------------

    async def _run_agent_loop(self, user_input: str, reviewer_id: Optional[int]) -> tuple[str, List[str]]:
        """Drive the loop state machine until it is finished."""
        registry = build_expense_tools(self.service, reviewer_id)
        tools = registry.tools
        state = LoopState.start(self.system_prompt, user_input, self.max_iterations)
        calls_made: List[str] = []

        while not state.is_finished:
            if state.phase == LoopPhase.AWAITING_MODEL:
                reply = await self.backend.complete(state.messages, tools)
                state = on_model_reply(state, reply)
            else:
                outcomes = []
                for tool_call in state.pending_tool_calls:
                    calls_made.append(tool_call.name)
                    outcomes.append(await registry.execute(tool_call))
                state = on_tools_executed(state, outcomes)

        if state.phase == LoopPhase.EXHAUSTED:
            self.logger.warning(f"No final answer after {state.iteration} model calls")
        return state.answer or "", calls_made

    # -------------------------------------------------------------------------
    # Main Execute
    # -------------------------------------------------------------------------

    async def respond(self, message: str, reviewer_id: Optional[int] = None) -> str:
        output = await self.run(message=message, reviewer_id=reviewer_id)
        return output.message

    async def execute(self, input_data: ChatInput) -> ChatOutput:
        if not self.is_configured:
            return self.create_output(message=demo_response(input_data.message), is_ai_enabled=False)

        try:
            answer, calls_made = await self._run_agent_loop(
                input_data.message, input_data.reviewer_id
            )
        except Exception as e:
            self.logger.error(f"Error getting chat response: {e}", exc_info=True)
            return self.create_output(
                message=f"I encountered an error processing your request: {e}",
                is_ai_enabled=True,
            )

        return self.create_output(message=answer, is_ai_enabled=True, tool_calls_made=calls_made)

    def get_input_schema(self) -> type[ChatInput]:
        return ChatInput

    def get_output_schema(self) -> type[ChatOutput]:
        return ChatOutput
