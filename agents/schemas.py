from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCall(BaseModel):
    id: str
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    # Set when the model emitted arguments that could not be parsed
    error: Optional[str] = None


class ChatMessage(BaseModel):
    role: MessageRole
    content: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)
    tool_call_id: Optional[str] = None


class ModelReply(BaseModel):
    """One completion from the model backend: a final answer or tool requests."""
    content: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)

    @property
    def requests_tools(self) -> bool:
        return bool(self.tool_calls)


class ChatInput(BaseModel):
    message: str
    reviewer_id: Optional[int] = None


class ChatOutput(BaseModel):
    message: str
    is_ai_enabled: bool
    tool_calls_made: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Tool argument schemas
# ---------------------------------------------------------------------------

class SearchExpensesArgs(BaseModel):
    searchTerm: str = Field(..., description="The search term to find expenses")


class ExpenseIdArgs(BaseModel):
    expenseId: int = Field(..., description="The ID of the expense")
