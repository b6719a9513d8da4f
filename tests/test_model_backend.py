"""Tests for the LangChain model backend and its configuration."""

from typing import Any, List

import pytest
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from langchain_openai import AzureChatOpenAI, ChatOpenAI
from pydantic import Field

from agents import model_backend
from agents.expense_agent import ExpenseAgent
from agents.model_backend import (
    LangChainModelBackend,
    _text_content,
    build_model_backend,
    to_langchain_messages,
)
from agents.schemas import ChatMessage, MessageRole, ToolCall
from agents.tools.expense_tools import build_expense_tools

MODEL_ENV = [
    "AZURE_OPENAI_ENDPOINT",
    "AZURE_OPENAI_DEPLOYMENT",
    "AZURE_OPENAI_API_KEY",
    "MANAGED_IDENTITY_CLIENT_ID",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
]


class QueuedChatModel(BaseChatModel):
    """Chat model that answers from a queue and records what it was sent."""

    responses: List[AIMessage]
    received: List[List[Any]] = Field(default_factory=list)
    bound: List[List[Any]] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "queued"

    def bind_tools(self, tools, **kwargs):
        self.bound.append(list(tools))
        return self

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        self.received.append(list(messages))
        return ChatResult(generations=[ChatGeneration(message=self.responses.pop(0))])


@pytest.fixture
def clean_model_env(monkeypatch):
    for name in MODEL_ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestMessageConversion:

    def test_roles_map_to_langchain_messages(self):
        converted = to_langchain_messages([
            ChatMessage(role=MessageRole.SYSTEM, content="rules"),
            ChatMessage(role=MessageRole.USER, content="what is pending?"),
            ChatMessage(role=MessageRole.ASSISTANT, tool_calls=[
                ToolCall(id="call_1", name="search_expenses", arguments={"searchTerm": "hotel"}),
            ]),
            ChatMessage(role=MessageRole.TOOL, content="[]", tool_call_id="call_1"),
        ])

        assert [type(m) for m in converted] == [SystemMessage, HumanMessage, AIMessage, ToolMessage]
        assert converted[2].tool_calls[0]["args"] == {"searchTerm": "hotel"}
        assert converted[3].tool_call_id == "call_1"

    def test_text_content_joins_text_blocks(self):
        content = [{"type": "text", "text": "Two "}, {"type": "image_url"}, "expenses"]
        assert _text_content(content) == "Two expenses"
        assert _text_content("plain") == "plain"


class TestLangChainBackend:

    async def test_tool_calls_are_parsed_and_tools_bound(self, service):
        llm = QueuedChatModel(responses=[AIMessage(content="", tool_calls=[
            {"name": "search_expenses", "args": {"searchTerm": "taxi"}, "id": "call_7"},
        ])])
        backend = LangChainModelBackend(llm)
        registry = build_expense_tools(service)

        reply = await backend.complete([ChatMessage(role=MessageRole.USER, content="taxi?")], registry.tools)

        assert reply.tool_calls == [ToolCall(id="call_7", name="search_expenses", arguments={"searchTerm": "taxi"})]
        assert [t.name for t in llm.bound[0]][:2] == ["get_all_expenses", "get_pending_expenses"]

    async def test_unparseable_arguments_are_fed_back_and_loop_continues(self, service):
        llm = QueuedChatModel(responses=[
            AIMessage(content="", invalid_tool_calls=[{
                "name": "search_expenses",
                "args": "{bad json",
                "id": "call_9",
                "error": "Malformed arguments",
                "type": "invalid_tool_call",
            }]),
            AIMessage(content="Could you rephrase the search?"),
        ])
        agent = ExpenseAgent(service, backend=LangChainModelBackend(llm))

        answer = await agent.respond("find travel")

        assert answer == "Could you rephrase the search?"
        assert len(llm.received) == 2
        tool_message = llm.received[1][-1]
        assert isinstance(tool_message, ToolMessage)
        assert tool_message.tool_call_id == "call_9"
        assert tool_message.content == "Error executing search_expenses: Malformed arguments"


class TestBuildModelBackend:

    def test_unconfigured(self, clean_model_env):
        assert build_model_backend() is None

    def test_openai(self, clean_model_env):
        clean_model_env.setenv("OPENAI_API_KEY", "sk-test")

        backend = build_model_backend()

        assert isinstance(backend.llm, ChatOpenAI)
        assert backend.llm.model_name == "gpt-4o-mini"

    def test_azure_with_api_key(self, clean_model_env):
        clean_model_env.setenv("AZURE_OPENAI_ENDPOINT", "https://example.openai.azure.com")
        clean_model_env.setenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4o-mini")
        clean_model_env.setenv("AZURE_OPENAI_API_KEY", "azure-key")

        backend = build_model_backend()

        assert isinstance(backend.llm, AzureChatOpenAI)
        assert backend.llm.azure_ad_token_provider is None

    def test_azure_managed_identity(self, clean_model_env):
        clean_model_env.setenv("AZURE_OPENAI_ENDPOINT", "https://example.openai.azure.com")
        clean_model_env.setenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4o-mini")
        clean_model_env.setenv("MANAGED_IDENTITY_CLIENT_ID", "client-123")
        credentials = []
        scopes = []

        def token_provider():
            return "token"

        def fake_provider(credential, scope):
            scopes.append(scope)
            return token_provider

        clean_model_env.setattr(model_backend, "ManagedIdentityCredential",
                                lambda client_id: credentials.append(client_id) or object())
        clean_model_env.setattr(model_backend, "get_bearer_token_provider", fake_provider)

        backend = build_model_backend()

        assert isinstance(backend.llm, AzureChatOpenAI)
        assert backend.llm.azure_ad_token_provider is token_provider
        assert credentials == ["client-123"]
        assert scopes == ["https://cognitiveservices.azure.com/.default"]
