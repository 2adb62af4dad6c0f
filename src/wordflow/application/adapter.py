import concurrent.futures
import random
import threading
import time
from collections.abc import Callable, Sequence
from typing import Any

from loguru import logger

from wordflow.application.port import Context
from wordflow.domain.exception import CancelledError, ConfigurationError, MergeInputError, RetriesExhaustedError
from wordflow.domain.port import Node


class ExecutionContext(Context):
    """Cancellation flag, optional deadline and named values for one run."""

    def __init__(self, timeout: float | None = None, values: dict[str, Any] | None = None):
        """
        :param timeout: Seconds from now after which the context counts as cancelled
        :type timeout: float | None
        :param values: Initial named values
        :type values: dict[str, Any] | None
        """
        self._cancelled = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None
        self.variables: dict[str, Any] = dict(values or {})

    def cancel(self) -> None:
        """Cancels the context; work checking it stops at its next check."""
        self._cancelled.set()

    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise CancelledError("context cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise CancelledError("context deadline exceeded")

    def remaining(self) -> float | None:
        """Seconds until the deadline, None without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def set_var(self, name: str, value: Any) -> None:
        """Sets a named value."""
        self.variables[name] = value

    def get_var(self, name: str) -> Any:
        return self.variables[name]


def background() -> ExecutionContext:
    """A context that is never cancelled and has no deadline."""
    return ExecutionContext()


class FuncNode(Node):
    """Runs a plain function as a flow step."""

    def __init__(self, process: Callable[[Context, str], str]):
        self.process = process

    def execute(self, ctx: Context, text: str) -> str:
        return self.process(ctx, text)


class ConditionalNode(Node):
    """Runs one of two branches depending on a predicate over the input.

    Without a false branch a failed predicate passes the input through.
    """

    def __init__(self, predicate: Callable[[str], bool], on_true: Node, on_false: Node | None = None):
        self.predicate = predicate
        self.on_true = on_true
        self.on_false = on_false

    def execute(self, ctx: Context, text: str) -> str:
        if self.predicate(text):
            return self.on_true.execute(ctx, text)
        if self.on_false is not None:
            return self.on_false.execute(ctx, text)
        return text


class RetryNode(Node):
    """Re-runs a wrapped node until it succeeds or attempts run out."""

    def __init__(self, node: Node, max_retries: int = 0, delay: float = 0.0):
        """
        :param node: The node to attempt
        :type node: Node
        :param max_retries: Extra attempts after the first one
        :type max_retries: int
        :param delay: Seconds to sleep between a failure and the next attempt
        :type delay: float
        :raises ConfigurationError: If max_retries or delay is negative
        """
        if max_retries < 0:
            raise ConfigurationError(f"retry node: max_retries must be >= 0, got {max_retries}")
        if delay < 0:
            raise ConfigurationError(f"retry node: delay must be >= 0, got {delay}")
        self.node = node
        self.max_retries = max_retries
        self.delay = delay

    def execute(self, ctx: Context, text: str) -> str:
        """
        Executes the wrapped node with a constant delay between attempts.

        A cancelled context stops further attempts.

        :raises RetriesExhaustedError: If no attempt succeeded
        """
        total = self.max_retries + 1
        attempts = 0
        last_error: Exception | None = None
        for attempt in range(total):
            if attempt and ctx.cancelled():
                break
            attempts += 1
            try:
                return self.node.execute(ctx, text)
            except Exception as e:
                last_error = e
                logger.warning(f"retry node: attempt {attempts}/{total} failed: {e}")
                if attempt < self.max_retries and not ctx.cancelled():
                    time.sleep(self.delay)
        raise RetriesExhaustedError(attempts, last_error) from last_error


class ParallelNode(Node):
    """Runs every child on the same input concurrently and merges the outputs."""

    def __init__(
        self,
        nodes: Sequence[Node],
        merge: Callable[[list[str]], str] | None = None,
        fail_fast: bool = False,
    ):
        """
        :param nodes: Child nodes; their order is the merge order
        :type nodes: Sequence[Node]
        :param merge: Combines the outputs, defaults to joining them with newlines
        :type merge: Callable[[list[str]], str] | None
        :param fail_fast: Raise the first child failure instead of merging what succeeded
        :type fail_fast: bool
        """
        self.nodes = tuple(nodes)
        self.merge = merge
        self.fail_fast = fail_fast

    def execute(self, ctx: Context, text: str) -> str:
        """
        Executes all children in worker threads and waits for every one of them.

        :raises ConfigurationError: If there are no children
        :raises MergeInputError: If fail_fast is off and every child failed
        """
        if not self.nodes:
            raise ConfigurationError("parallel node: no nodes provided")

        with concurrent.futures.ThreadPoolExecutor(max_workers=len(self.nodes)) as executor:
            futures = [executor.submit(node.execute, ctx, text) for node in self.nodes]
            concurrent.futures.wait(futures)

        # Keep order as in self.nodes
        errors = [future.exception() for future in futures]
        if self.fail_fast:
            for error in errors:
                if error is not None:
                    raise error
        else:
            for idx, error in enumerate(errors):
                if error is not None:
                    logger.warning(f"parallel node: node {idx} returned error: {error}")

        if all(error is not None for error in errors):
            raise MergeInputError("parallel node: no node produced an output") from errors[0]
        # Failed children keep an empty slot
        outputs = [future.result() if error is None else "" for future, error in zip(futures, errors)]
        if self.merge is not None:
            return self.merge(outputs)
        return "\n".join(outputs)


class BalancingNode(Node):
    """Sends each call to exactly one child, chosen by weight or in turn.

    Weighted random selection is used when there is one weight per child
    and the weights sum to a positive number; otherwise children are picked
    round-robin with a counter shared by all callers.
    """

    def __init__(
        self,
        nodes: Sequence[Node],
        weights: Sequence[int] | None = None,
        rng: random.Random | None = None,
    ):
        """
        :param nodes: Child nodes
        :type nodes: Sequence[Node]
        :param weights: Optional weight per child
        :type weights: Sequence[int] | None
        :param rng: Random source for weighted selection, seed it for repeatable picks
        :type rng: random.Random | None
        """
        self.nodes = tuple(nodes)
        self.weights = tuple(weights) if weights is not None else ()
        self.rng = rng if rng is not None else random.Random()
        self._counter = 0
        self._lock = threading.Lock()

    @property
    def weighted(self) -> bool:
        return len(self.weights) == len(self.nodes)

    def _round_robin(self) -> int:
        with self._lock:
            value = self._counter
            self._counter += 1
        return value % len(self.nodes)

    def _weighted_random(self, total: int) -> int:
        r = self.rng.randrange(total)
        for idx, weight in enumerate(self.weights):
            if r < weight:
                return idx
            r -= weight
        return len(self.nodes) - 1

    def select(self) -> int:
        """
        Picks the index of the child that handles the next call.

        :returns: A child index
        :rtype: int
        :raises ConfigurationError: If there are no children
        """
        if not self.nodes:
            raise ConfigurationError("balancing node: no nodes available")

        if not self.weighted:
            idx = self._round_robin()
            logger.debug(f"balancing node (round-robin) selected node at index {idx}")
            return idx

        total = sum(self.weights)
        if total <= 0:
            logger.warning(f"balancing node: total weight {total} is non-positive; falling back to round-robin")
            idx = self._round_robin()
            logger.debug(f"balancing node (fallback round-robin) selected node at index {idx}")
            return idx

        idx = self._weighted_random(total)
        logger.debug(f"balancing node (weighted) selected node at index {idx}")
        return idx

    def execute(self, ctx: Context, text: str) -> str:
        return self.nodes[self.select()].execute(ctx, text)
