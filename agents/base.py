from abc import ABC, abstractmethod
from typing import Any, Dict, TypeVar, Generic
from pydantic import BaseModel, ValidationError
import logging

TInput = TypeVar('TInput', bound=BaseModel)
TOutput = TypeVar('TOutput', bound=BaseModel)


class Agent(ABC, Generic[TInput, TOutput]):
    """
    A model-backed agent with typed input and output.

    Subclasses report whether their model backend is usable through
    is_configured and are expected to degrade to canned output when it is not.
    """

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the agent's language model backend is usable."""

    @abstractmethod
    async def execute(self, input_data: TInput) -> TOutput:
        pass

    @abstractmethod
    def get_input_schema(self) -> type[TInput]:
        pass

    @abstractmethod
    def get_output_schema(self) -> type[TOutput]:
        pass

    async def run(self, **fields: Any) -> TOutput:
        """Validate raw request fields and execute."""
        input_data = self.validate_input(fields)
        self.logger.debug(f"{self.name} executing (model configured: {self.is_configured})")
        return await self.execute(input_data)

    def validate_input(self, data: Dict[str, Any]) -> TInput:
        try:
            return self.get_input_schema()(**data)
        except ValidationError as e:
            raise ValueError(f"Invalid input for agent {self.name}: {e}")

    def create_output(self, **fields: Any) -> TOutput:
        return self.get_output_schema()(**fields)
