import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from agents.expense_agent import ExpenseAgent
from agents.model_backend import ModelBackend
from app.dependencies import get_expense_agent, get_model_backend
from app.schemas import ChatRequest, ChatResponse, ChatStatusResponse

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = logging.getLogger(__name__)


@router.post("", response_model=ChatResponse)
async def chat(request: ChatRequest, agent: ExpenseAgent = Depends(get_expense_agent)):
    """Send a message to the expense assistant."""
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    output = await agent.run(**request.model_dump())
    if output.tool_calls_made:
        logger.info(f"Chat request used tools: {', '.join(output.tool_calls_made)}")
    return ChatResponse(message=output.message, is_ai_enabled=output.is_ai_enabled)


@router.get("/status", response_model=ChatStatusResponse)
async def chat_status(backend: Optional[ModelBackend] = Depends(get_model_backend)):
    """Whether AI chat is enabled."""
    return ChatStatusResponse(is_ai_enabled=backend is not None)
