"""
Model backend port and its LangChain/OpenAI implementation.

The assistant loop only sees ModelBackend.complete(); the concrete backend
translates the neutral ChatMessage list into LangChain messages and the
model's tool calls back into ToolCall objects.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional
import logging
import os

from azure.identity import DefaultAzureCredential, ManagedIdentityCredential, get_bearer_token_provider
from dotenv import load_dotenv
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.tools import BaseTool
from langchain_openai import AzureChatOpenAI, ChatOpenAI

from .schemas import ChatMessage, MessageRole, ModelReply, ToolCall

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_AZURE_API_VERSION = "2024-06-01"
COGNITIVE_SERVICES_SCOPE = "https://cognitiveservices.azure.com/.default"


class ModelBackend(ABC):

    @abstractmethod
    async def complete(self, messages: List[ChatMessage], tools: List[BaseTool]) -> ModelReply:
        pass


def to_langchain_messages(messages: List[ChatMessage]) -> List[BaseMessage]:
    converted: List[BaseMessage] = []
    for message in messages:
        if message.role == MessageRole.SYSTEM:
            converted.append(SystemMessage(content=message.content))
        elif message.role == MessageRole.USER:
            converted.append(HumanMessage(content=message.content))
        elif message.role == MessageRole.ASSISTANT:
            converted.append(AIMessage(
                content=message.content,
                tool_calls=[
                    {"name": call.name, "args": call.arguments, "id": call.id}
                    for call in message.tool_calls
                ],
            ))
        else:
            converted.append(ToolMessage(content=message.content, tool_call_id=message.tool_call_id))
    return converted


def _text_content(content: Any) -> str:
    if isinstance(content, str):
        return content
    # Multi-part responses arrive as a list of content blocks
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def to_tool_calls(response: AIMessage) -> List[ToolCall]:
    """Valid tool calls followed by the ones whose arguments could not be parsed."""
    calls = [
        ToolCall(id=call.get("id") or call["name"], name=call["name"], arguments=call.get("args") or {})
        for call in (getattr(response, "tool_calls", None) or [])
    ]
    for index, call in enumerate(getattr(response, "invalid_tool_calls", None) or []):
        name = call.get("name") or "unknown"
        calls.append(ToolCall(
            id=call.get("id") or f"invalid_{index}",
            name=name,
            error=call.get("error") or f"could not parse arguments: {call.get('args')}",
        ))
    return calls


class LangChainModelBackend(ModelBackend):

    def __init__(self, llm: BaseChatModel):
        self.llm = llm
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def complete(self, messages: List[ChatMessage], tools: List[BaseTool]) -> ModelReply:
        llm_with_tools = self.llm.bind_tools(tools) if tools else self.llm
        response = await llm_with_tools.ainvoke(to_langchain_messages(messages))
        return ModelReply(content=_text_content(response.content), tool_calls=to_tool_calls(response))


def _azure_token_provider():
    """Managed identity token provider for Azure OpenAI without an API key."""
    client_id = os.getenv("MANAGED_IDENTITY_CLIENT_ID")
    if client_id:
        logger.info(f"Using ManagedIdentityCredential with client ID: {client_id}")
        credential = ManagedIdentityCredential(client_id=client_id)
    else:
        logger.info("Using DefaultAzureCredential")
        credential = DefaultAzureCredential()
    return get_bearer_token_provider(credential, COGNITIVE_SERVICES_SCOPE)


def build_model_backend() -> Optional[ModelBackend]:
    """Build a backend from the environment, or None when no model is configured.

    Azure OpenAI is used when AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_DEPLOYMENT
    are both set, authenticating with AZURE_OPENAI_API_KEY or else a managed
    identity. Otherwise OPENAI_API_KEY selects the OpenAI API.
    """
    azure_endpoint = os.getenv("AZURE_OPENAI_ENDPOINT")
    azure_deployment = os.getenv("AZURE_OPENAI_DEPLOYMENT")
    openai_api_key = os.getenv("OPENAI_API_KEY")

    try:
        if azure_endpoint and azure_deployment:
            azure_api_key = os.getenv("AZURE_OPENAI_API_KEY")
            auth = {"api_key": azure_api_key} if azure_api_key else {
                "azure_ad_token_provider": _azure_token_provider()
            }
            llm = AzureChatOpenAI(
                azure_endpoint=azure_endpoint,
                azure_deployment=azure_deployment,
                api_version=os.getenv("OPENAI_API_VERSION", DEFAULT_AZURE_API_VERSION),
                temperature=0,
                **auth,
            )
            logger.info(f"Chat assistant configured with Azure OpenAI endpoint: {azure_endpoint}")
            return LangChainModelBackend(llm)

        if openai_api_key:
            llm = ChatOpenAI(
                model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
                temperature=0,
                api_key=openai_api_key,
                base_url=os.getenv("OPENAI_BASE_URL") or None,
            )
            logger.info(f"Chat assistant configured with model: {llm.model_name}")
            return LangChainModelBackend(llm)
    except Exception as e:
        logger.error(f"Failed to initialize chat model client: {e}", exc_info=True)
        return None

    logger.warning("OpenAI not configured. Chat will return demo responses.")
    return None
