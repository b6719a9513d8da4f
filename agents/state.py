"""
Conversation loop state for the tool-calling assistant.

The loop alternates between asking the model and running the tools it
requests. Transitions are pure functions returning a new LoopState, so the
iteration cap and tool handling can be exercised without a model backend.

    AWAITING_MODEL --reply without tools--> DONE
    AWAITING_MODEL --reply with tools----> EXECUTING_TOOLS
    EXECUTING_TOOLS --results, budget left--> AWAITING_MODEL
    EXECUTING_TOOLS --results, budget spent-> EXHAUSTED
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from .schemas import ChatMessage, MessageRole, ModelReply, ToolCall

MAX_ITERATIONS = 5

EXHAUSTED_MESSAGE = "I apologize, but I couldn't complete your request. Please try again."


class LoopPhase(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    EXHAUSTED = "exhausted"


TERMINAL_PHASES = frozenset({LoopPhase.DONE, LoopPhase.EXHAUSTED})


class InvalidLoopTransition(Exception):
    def __init__(self, phase: LoopPhase, event: str):
        self.phase = phase
        self.event = event
        super().__init__(f"Cannot handle '{event}' while {phase.value}")


class ToolOutcome(BaseModel):
    call_id: str
    name: str
    content: str


class LoopState(BaseModel):
    phase: LoopPhase = LoopPhase.AWAITING_MODEL
    iteration: int = 0
    max_iterations: int = MAX_ITERATIONS
    messages: List[ChatMessage] = Field(default_factory=list)
    pending_tool_calls: List[ToolCall] = Field(default_factory=list)
    answer: Optional[str] = None

    @classmethod
    def start(cls, system_prompt: str, user_message: str,
              max_iterations: int = MAX_ITERATIONS) -> "LoopState":
        return cls(
            max_iterations=max_iterations,
            messages=[
                ChatMessage(role=MessageRole.SYSTEM, content=system_prompt),
                ChatMessage(role=MessageRole.USER, content=user_message),
            ],
        )

    @property
    def is_finished(self) -> bool:
        return self.phase in TERMINAL_PHASES


def on_model_reply(state: LoopState, reply: ModelReply) -> LoopState:
    if state.phase != LoopPhase.AWAITING_MODEL:
        raise InvalidLoopTransition(state.phase, "model_reply")

    iteration = state.iteration + 1
    if not reply.requests_tools:
        return state.model_copy(update={
            "phase": LoopPhase.DONE,
            "iteration": iteration,
            "answer": reply.content,
        })

    assistant_turn = ChatMessage(
        role=MessageRole.ASSISTANT,
        content=reply.content,
        tool_calls=reply.tool_calls,
    )
    return state.model_copy(update={
        "phase": LoopPhase.EXECUTING_TOOLS,
        "iteration": iteration,
        "messages": state.messages + [assistant_turn],
        "pending_tool_calls": list(reply.tool_calls),
    })


def on_tools_executed(state: LoopState, outcomes: List[ToolOutcome]) -> LoopState:
    if state.phase != LoopPhase.EXECUTING_TOOLS:
        raise InvalidLoopTransition(state.phase, "tools_executed")

    tool_turns = [
        ChatMessage(role=MessageRole.TOOL, content=outcome.content, tool_call_id=outcome.call_id)
        for outcome in outcomes
    ]
    update = {
        "messages": state.messages + tool_turns,
        "pending_tool_calls": [],
    }
    if state.iteration >= state.max_iterations:
        update.update(phase=LoopPhase.EXHAUSTED, answer=EXHAUSTED_MESSAGE)
    else:
        update["phase"] = LoopPhase.AWAITING_MODEL
    return state.model_copy(update=update)
