import time
from collections.abc import Callable, Iterable

import msgspec
from loguru import logger

from wordflow.application.port import Context
from wordflow.domain.exception import ConfigurationError, StepError
from wordflow.domain.port import Node
from wordflow.domain.value_object import AgentOptions


class Flow:
    """An ordered pipeline of nodes.

    Each node's output is the next node's input. A flow is configuration:
    build it once and run it as often as needed.
    """

    def __init__(self, nodes: Iterable[Node]):
        self._nodes = tuple(nodes)

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def then(self, node: Node) -> "Flow":
        """
        Returns a new flow with node appended; this flow is left as is.

        :param node: The step to add
        :type node: Node
        :returns: The extended flow
        :rtype: Flow
        """
        return Flow((*self._nodes, node))

    def run(self, ctx: Context, text: str) -> str:
        """
        Executes the nodes in order, stopping at the first failure.

        :param ctx: The execution context, checked before every step
        :type ctx: Context
        :param text: The input of the first node
        :type text: str
        :returns: The output of the last node
        :rtype: str
        :raises CancelledError: If the context is cancelled between steps
        """
        current = text
        for node in self._nodes:
            ctx.raise_if_cancelled()
            current = node.execute(ctx, current)
        return current

    def run_with_logging(
        self,
        ctx: Context,
        text: str,
        callback: Callable[[int, str], None] | None = None,
    ) -> str:
        """
        Like :meth:`run`, reporting every step's output.

        :param callback: Called with the step index and its output
        :type callback: Callable[[int, str], None] | None
        :raises StepError: Wrapping the failure of a step
        """
        if callback is None:
            return self._run_observed(ctx, text, None)
        return self._run_observed(ctx, text, lambda step, output, _duration: callback(step, output))

    def run_with_detailed_logging(
        self,
        ctx: Context,
        text: str,
        callback: Callable[[int, str, float], None] | None = None,
    ) -> str:
        """
        Like :meth:`run`, reporting every step's output and duration in seconds.

        :param callback: Called with the step index, its output and its duration
        :type callback: Callable[[int, str, float], None] | None
        :raises StepError: Wrapping the failure of a step
        """
        return self._run_observed(ctx, text, callback)

    def _run_observed(
        self,
        ctx: Context,
        text: str,
        callback: Callable[[int, str, float], None] | None,
    ) -> str:
        current = text
        for step, node in enumerate(self._nodes):
            start = time.perf_counter()
            try:
                ctx.raise_if_cancelled()
                current = node.execute(ctx, current)
            except Exception as e:
                raise StepError(step, e) from e
            duration = time.perf_counter() - start
            logger.info(f"flow step {step} ({type(node).__name__}) finished in {duration:.4f}s")
            if callback is not None:
                callback(step, current, duration)
        return current


def load_agent_options(data: dict | AgentOptions | None = None) -> AgentOptions:
    """
    Decodes and validates agent options from a Python dictionary.

    :param data: The options as a dictionary, an AgentOptions, or None for defaults
    :type data: dict | AgentOptions | None
    :returns: Validated options
    :rtype: AgentOptions
    :raises ConfigurationError: If the data does not describe valid options
    """
    if data is None:
        options = AgentOptions()
    elif isinstance(data, AgentOptions):
        options = data
    else:
        try:
            options = msgspec.convert(data, type=AgentOptions)
        except msgspec.ValidationError as e:
            raise ConfigurationError(f"invalid agent options: {e}") from e
    options.validate()
    return options
