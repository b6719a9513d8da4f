from .base import Agent
from .schemas import ChatInput, ChatOutput, ChatMessage, MessageRole, ModelReply, ToolCall
from .state import LoopPhase, LoopState, ToolOutcome, on_model_reply, on_tools_executed, MAX_ITERATIONS, EXHAUSTED_MESSAGE
from .model_backend import ModelBackend, LangChainModelBackend, build_model_backend
from .fallback import demo_response
from .expense_agent import ExpenseAgent
