from typing import Dict, Iterable, List
import logging

from langchain_core.tools import BaseTool

from agents.schemas import ToolCall
from agents.state import ToolOutcome

logger = logging.getLogger(__name__)


class ToolRegistry:
    """LangChain tools offered to the model for one conversation, keyed by name."""

    def __init__(self, tools: Iterable[BaseTool] = ()):
        self._tools: Dict[str, BaseTool] = {}
        for tool in tools:
            self.register_tool(tool)

    def register_tool(self, tool: BaseTool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    @property
    def tools(self) -> List[BaseTool]:
        return list(self._tools.values())

    async def execute(self, call: ToolCall) -> ToolOutcome:
        """Run one requested tool call. Failures come back as text, never raised."""
        if call.error is not None:
            logger.warning(f"Model sent unparseable arguments for {call.name}: {call.error}")
            return ToolOutcome(call_id=call.id, name=call.name,
                               content=f"Error executing {call.name}: {call.error}")

        tool = self._tools.get(call.name)
        if tool is None:
            logger.warning(f"Model requested unknown tool: {call.name}")
            return ToolOutcome(call_id=call.id, name=call.name, content=f"Unknown function: {call.name}")

        logger.info(f"LLM calling tool: {call.name} with args: {call.arguments}")
        try:
            content = str(await tool.ainvoke(call.arguments))
        except Exception as e:
            logger.error(f"Tool execution error ({call.name}): {e}", exc_info=True)
            content = f"Error executing {call.name}: {e}"
        return ToolOutcome(call_id=call.id, name=call.name, content=content)


__all__ = [
    "ToolRegistry",
]
