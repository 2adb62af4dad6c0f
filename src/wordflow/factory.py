from collections.abc import Iterable

from wordflow.application.agent import Agent
from wordflow.application.port import Middleware
from wordflow.application.service import load_agent_options
from wordflow.domain.port import Model, ToolBase
from wordflow.domain.value_object import AgentOptions
from wordflow.infrastructure.adapter.in_memory.tool_registry import InMemoryToolRegistry


def load_tools() -> list[type[ToolBase]]:
    """Returns a list of all defined tool classes."""
    return ToolBase._tools


def create_agent(
    model: Model,
    tools: Iterable[ToolBase | type[ToolBase]] | None = None,
    system_prompt: str | None = None,
    middleware: Iterable[Middleware] | None = None,
    options: AgentOptions | dict | None = None,
) -> Agent:
    """
    Factory function to create an Agent backed by an in-memory tool registry.

    :param model: The model the agent talks to
    :type model: Model
    :param tools: Tool instances or classes to register; classes are instantiated
    :type tools: Iterable[ToolBase | type[ToolBase]] | None
    :param system_prompt: Instruction put in front of every prompt
    :type system_prompt: str | None
    :param middleware: Hooks run around every model call
    :type middleware: Iterable[Middleware] | None
    :param options: Sampling parameters, as AgentOptions or a dictionary
    :type options: AgentOptions | dict | None
    :returns: A configured Agent
    :rtype: Agent
    :raises ConfigurationError: If the options are invalid
    """
    registry = InMemoryToolRegistry()
    for tool in tools or []:
        registry.register(tool() if isinstance(tool, type) else tool)

    return Agent(
        model=model,
        tools=registry,
        system_prompt=system_prompt,
        middleware=middleware,
        options=load_agent_options(options),
    )
