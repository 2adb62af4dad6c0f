from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from wordflow.domain.entity import ModelRequest, ModelResponse
from wordflow.domain.value_object import Provider

if TYPE_CHECKING:
    from wordflow.application.port import Context


class Node(ABC):
    """A single step of a flow: turns one string into another."""

    @abstractmethod
    def execute(self, ctx: "Context", text: str) -> str:
        """
        Run the step.

        :param ctx: The execution context shared by the whole run
        :type ctx: Context
        :param text: The input produced by the previous step
        :type text: str
        :returns: The output handed to the next step
        :rtype: str
        """
        ...


class ToolBase:
    """Base class for all tools. Enforces 'execute' method and registers subclasses."""

    _tools = []

    description: str = ""

    def __init_subclass__(cls, **kwargs):
        """
        Registers subclass and ensures 'execute' method is defined.

        :param kwargs: Additional keyword arguments passed to super().__init_subclass__
        :raises TypeError: If the subclass doesn't define an 'execute' method
        """
        super().__init_subclass__(**kwargs)

        if "execute" not in cls.__dict__:
            raise TypeError(f"{cls.__name__} must define a 'execute' method")

        ToolBase._tools.append(cls)

    @property
    def name(self) -> str:
        """The name directives and registries use, ``tool_name`` or the class name."""
        return getattr(self, "tool_name", type(self).__name__)

    def execute(self, ctx: "Context", text: str) -> str:
        """
        Abstract execute method to be implemented by tools.

        :param ctx: The execution context of the caller
        :type ctx: Context
        :param text: Free-text tool input
        :type text: str
        :returns: The tool output
        :rtype: str
        :raises NotImplementedError: Must be implemented by subclasses
        """
        raise NotImplementedError("Tools must implement the execute method")


class DescribedTool(ABC):
    """Optional extension for tools that document their input."""

    @abstractmethod
    def schema(self) -> str:
        """JSON schema of the expected input."""

    @abstractmethod
    def help(self) -> str:
        """Detailed usage instructions."""


class Model(ABC):
    """A text generation backend."""

    @abstractmethod
    def generate(self, ctx: "Context", request: ModelRequest) -> ModelResponse:
        """
        Generate a response for the request.

        :param ctx: The execution context of the caller
        :type ctx: Context
        :param request: Prompt and sampling parameters
        :type request: ModelRequest
        :returns: The generated response
        :rtype: ModelResponse
        """

    @property
    @abstractmethod
    def provider(self) -> Provider: ...

    @property
    @abstractmethod
    def model_name(self) -> str: ...

    @abstractmethod
    def embed(self, ctx: "Context", text: str) -> list[float]:
        """
        Compute an embedding vector for the text.

        :param ctx: The execution context of the caller
        :type ctx: Context
        :param text: The text to embed
        :type text: str
        :returns: The embedding
        :rtype: list[float]
        """
