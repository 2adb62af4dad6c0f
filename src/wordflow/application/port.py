from abc import ABC, abstractmethod
from typing import Any

from wordflow.domain.entity import ToolStats
from wordflow.domain.port import ToolBase
from wordflow.domain.value_object import Message


class Context(ABC):
    """Abstract interface for a cancellable execution context.

    Cancellation is cooperative: nodes and tools check it, nothing is
    interrupted from the outside.
    """

    @abstractmethod
    def cancelled(self) -> bool:
        """
        Whether the context was cancelled or its deadline has passed.

        :returns: True once the work should stop
        :rtype: bool
        """

    @abstractmethod
    def raise_if_cancelled(self) -> None:
        """
        Raise if the context is cancelled.

        :raises CancelledError: If :meth:`cancelled` is true
        """

    @abstractmethod
    def get_var(self, name: str) -> Any:
        """
        Get a named value carried by the context.

        :param name: The value name
        :type name: str
        :returns: The value
        :rtype: Any
        :raises KeyError: If no value with that name is set
        """


class ToolRegistry(ABC):
    """Abstract interface for looking up and running tools by name."""

    @abstractmethod
    def register(self, tool: ToolBase) -> None:
        """
        Register a tool, replacing any tool with the same name.

        :param tool: The tool instance
        :type tool: ToolBase
        """

    @abstractmethod
    def get(self, name: str) -> ToolBase:
        """
        Return the tool registered under name.

        :param name: The tool name
        :type name: str
        :returns: The tool
        :rtype: ToolBase
        :raises NotFoundError: If no tool is registered under name
        """

    @abstractmethod
    def execute(self, ctx: Context, name: str, text: str) -> str:
        """
        Run the named tool and record its statistics.

        :param ctx: The execution context
        :type ctx: Context
        :param name: The tool name
        :type name: str
        :param text: The tool input
        :type text: str
        :returns: The tool output
        :rtype: str
        :raises NotFoundError: If no tool is registered under name
        """

    @abstractmethod
    def list(self) -> tuple[str, ...]:
        """
        Names of all registered tools in registration order.

        :returns: Tool names
        :rtype: tuple[str, ...]
        """

    @abstractmethod
    def describe(self) -> str:
        """
        A human readable listing of every tool with its description.

        :returns: One block per tool
        :rtype: str
        """

    @abstractmethod
    def stats(self, name: str) -> ToolStats:
        """
        Execution statistics for a tool.

        :param name: The tool name
        :type name: str
        :returns: A snapshot of the tool's counters
        :rtype: ToolStats
        :raises NotFoundError: If no tool is registered under name
        """


class Middleware:
    """Hooks an agent runs around every model call.

    Both hooks default to identity, override either one.
    """

    def before_send(self, history: list[Message]) -> list[Message]:
        """
        Transform the history the prompt is built from.

        The agent's own history is not modified.

        :param history: A copy of the conversation history
        :type history: list[Message]
        :returns: The history to build the prompt from
        :rtype: list[Message]
        """
        return history

    def after_receive(self, text: str) -> str:
        """
        Transform generated text before the agent looks for directives.

        :param text: The generated text
        :type text: str
        :returns: The text the agent keeps
        :rtype: str
        """
        return text
