"""Conversation agent, directive resolution and the nodes built on them.

An :class:`Agent` is a single-conversation object. Its history is appended
to without locking, so give every concurrent conversation its own agent
instead of sharing one between threads.
"""

from collections.abc import Iterable

import msgspec
from loguru import logger
from msgspec import structs

from wordflow.application.port import Context, Middleware, ToolRegistry
from wordflow.domain.entity import ModelRequest, ModelResponse
from wordflow.domain.port import Model, Node, ToolBase
from wordflow.domain.service import match_directive, substitute_directives
from wordflow.domain.value_object import AgentOptions, Directive, Message, Provider, Role


class Agent:
    """Talks to a model, keeps the conversation and resolves tool directives."""

    def __init__(
        self,
        model: Model,
        tools: ToolRegistry,
        system_prompt: str | None = None,
        middleware: Iterable[Middleware] | None = None,
        options: AgentOptions | None = None,
    ):
        """
        :param model: The model every :meth:`send` goes to
        :type model: Model
        :param tools: Registry directives and :meth:`call_tool` resolve against
        :type tools: ToolRegistry
        :param system_prompt: Instruction put in front of every prompt
        :type system_prompt: str | None
        :param middleware: Hooks run in order around every model call
        :type middleware: Iterable[Middleware] | None
        :param options: Sampling parameters for every request
        :type options: AgentOptions | None
        """
        self.model = model
        self.tools = tools
        self.system_prompt = system_prompt
        self.middleware = list(middleware or [])
        self.options = options if options is not None else AgentOptions()
        self.last_response: ModelResponse | None = None
        self._history: list[Message] = []

    @property
    def history(self) -> tuple[Message, ...]:
        return tuple(self._history)

    def append_message(self, role: str, content: str) -> None:
        if isinstance(role, Role):
            role = role.value
        self._history.append(Message(role=role, content=content))

    def reset(self) -> None:
        """Clears the conversation history; tools and options are kept."""
        self._history = []
        self.last_response = None

    def build_prompt(self, history: Iterable[Message] | None = None) -> str:
        """
        Renders the system prompt and history as ``role: content`` lines.

        :param history: Turns to render, defaults to the agent's history
        :type history: Iterable[Message] | None
        :returns: The prompt text
        :rtype: str
        """
        lines = []
        if self.system_prompt:
            lines.append(f"{Role.SYSTEM.value}: {self.system_prompt}\n")
        for message in self._history if history is None else history:
            lines.append(f"{message.role}: {message.content}\n")
        return "".join(lines)

    def export_history(self) -> bytes:
        """The conversation history encoded as a JSON array."""
        return msgspec.json.encode(self._history)

    def register_tool(self, tool: ToolBase) -> None:
        self.tools.register(tool)

    def list_tools(self) -> tuple[str, ...]:
        return self.tools.list()

    def describe_tools(self) -> str:
        return self.tools.describe()

    def send(self, ctx: Context, text: str) -> str:
        """
        Sends a user message and returns the model's reply.

        If the whole reply is a single tool directive and the tool succeeds,
        the tool output is appended to the reply.

        :param ctx: The execution context
        :type ctx: Context
        :param text: The user message
        :type text: str
        :returns: The reply
        :rtype: str
        """
        self.append_message(Role.USER, text)

        history = list(self._history)
        for hook in self.middleware:
            history = hook.before_send(history)

        request = ModelRequest(
            prompt=self.build_prompt(history),
            temperature=self.options.temperature,
            max_tokens=self.options.max_tokens,
            top_p=self.options.top_p,
        )
        response = self.model.generate(ctx, request)

        reply = response.text
        for hook in self.middleware:
            reply = hook.after_receive(reply)
        self.last_response = structs.replace(response, text=reply)
        self.append_message(Role.ASSISTANT, reply)

        directive = match_directive(reply)
        if directive is not None:
            output = self._resolve(ctx, directive)
            if output is not None:
                self.append_message(Role.TOOL_RESPONSE, output)
                return f"{reply}\nTool Output: {output}"
        return reply

    def call_tool(self, ctx: Context, name: str, text: str) -> str:
        """
        Runs a registered tool and records the call and its output as turns.

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
        self.tools.get(name)
        self.append_message(Role.tool_call(name), text)
        output = self.tools.execute(ctx, name, text)
        self.append_message(Role.tool_response(name), output)
        return output

    def substitute_directives(self, ctx: Context, text: str) -> str:
        """
        Replaces every directive in text with its tool's output.

        Directives whose tool is missing, fails or returns nothing stay in
        the text as they were.

        :param ctx: The execution context
        :type ctx: Context
        :param text: Generated text
        :type text: str
        :returns: The text with resolved directives replaced
        :rtype: str
        """

        def resolve(directive: Directive) -> str | None:
            output = self._resolve(ctx, directive)
            if output is None:
                return None
            return f"Tool Output ({directive.name}): {output}"

        return substitute_directives(text, resolve)

    def _resolve(self, ctx: Context, directive: Directive) -> str | None:
        logger.info(f"detected tool command: '{directive.name}' with input: '{directive.argument}'")
        try:
            output = self.call_tool(ctx, directive.name, directive.argument)
        except Exception as e:
            logger.warning(f"failed to execute tool '{directive.name}': {e}")
            return None
        return output or None


class AgentModel(Model):
    """A model whose output has its tool directives resolved by an agent."""

    def __init__(self, agent: Agent, inner: Model):
        self.agent = agent
        self.inner = inner

    def generate(self, ctx: Context, request: ModelRequest) -> ModelResponse:
        try:
            response = self.inner.generate(ctx, request)
        except Exception as e:
            logger.error(f"agent model: error generating response: {e}")
            raise
        return structs.replace(response, text=self.agent.substitute_directives(ctx, response.text))

    @property
    def provider(self) -> Provider:
        return self.inner.provider

    @property
    def model_name(self) -> str:
        return self.inner.model_name

    def embed(self, ctx: Context, text: str) -> list[float]:
        return self.inner.embed(ctx, text)


def _with_instruction(instruction: str, text: str) -> str:
    return "\n".join(part for part in (instruction, text) if part)


class ModelNode(Node):
    """Sends the input, prefixed by a fixed instruction, to a fresh agent conversation."""

    def __init__(self, agent: Agent, message: str = ""):
        self.agent = agent
        self.message = message

    def execute(self, ctx: Context, text: str) -> str:
        self.agent.reset()
        return self.agent.send(ctx, _with_instruction(self.message, text))


class ToolNode(Node):
    """Calls one registered tool through an agent with the input as tool input."""

    def __init__(self, agent: Agent, tool_name: str, instruction: str = ""):
        self.agent = agent
        self.tool_name = tool_name
        self.instruction = instruction

    def execute(self, ctx: Context, text: str) -> str:
        self.agent.reset()
        return self.agent.call_tool(ctx, self.tool_name, _with_instruction(self.instruction, text))
