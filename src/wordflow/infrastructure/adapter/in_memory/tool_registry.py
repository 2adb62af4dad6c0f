import threading
import time
from collections.abc import Iterable

from loguru import logger
from msgspec import structs

from wordflow.application.port import Context, ToolRegistry
from wordflow.domain.entity import ToolStats
from wordflow.domain.exception import NotFoundError
from wordflow.domain.port import DescribedTool, ToolBase


class InMemoryToolRegistry(ToolRegistry):
    """Keeps tools and their execution statistics in memory."""

    def __init__(self, tools: Iterable[ToolBase] | None = None):
        """
        Initializes the registry with optional tool instances.

        :param tools: Tools to register, later ones win on name clashes
        :type tools: Iterable[ToolBase] | None
        """
        self._tools: dict[str, ToolBase] = {}
        self._stats: dict[str, ToolStats] = {}
        self._lock = threading.Lock()
        for tool in tools or []:
            self.register(tool)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register(self, tool: ToolBase) -> None:
        """
        Register a tool, replacing any tool with the same name and resetting its statistics.

        :param tool: The tool instance
        :type tool: ToolBase
        """
        logger.info(f"registering tool: {tool.name}")
        with self._lock:
            # re-registering moves the name to the end of the listing
            self._tools.pop(tool.name, None)
            self._tools[tool.name] = tool
            self._stats[tool.name] = ToolStats()

    def get(self, name: str) -> ToolBase:
        """
        Returns the tool registered under name.

        :param name: The tool name
        :type name: str
        :returns: The tool
        :rtype: ToolBase
        :raises NotFoundError: If no tool is registered under name
        """
        try:
            return self._tools[name]
        except KeyError:
            raise NotFoundError("tool", name) from None

    def execute(self, ctx: Context, name: str, text: str) -> str:
        """
        Runs the named tool, timing it and counting successes and failures.

        Tool failures are re-raised unchanged.

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
        tool = self.get(name)
        start = time.perf_counter()
        try:
            output = tool.execute(ctx, text)
        except Exception as e:
            duration = time.perf_counter() - start
            self._record(name, duration, succeeded=False)
            logger.warning(f"[tool execution] tool '{name}' failed after {duration:.4f}s: {e}")
            raise
        duration = time.perf_counter() - start
        self._record(name, duration, succeeded=True)
        logger.info(f"[tool execution] tool '{name}' executed in {duration:.4f}s")
        return output

    def _record(self, name: str, duration: float, succeeded: bool) -> None:
        with self._lock:
            stats = self._stats.setdefault(name, ToolStats())
            if succeeded:
                stats.calls += 1
            else:
                stats.failures += 1
            stats.total_duration += duration
            stats.last_duration = duration

    def list(self) -> tuple[str, ...]:
        return tuple(self._tools)

    def stats(self, name: str) -> ToolStats:
        self.get(name)
        with self._lock:
            return structs.replace(self._stats[name])

    def call_count(self, name: str) -> int:
        """
        Number of successful executions of a tool.

        :param name: The tool name
        :type name: str
        :returns: The count, 0 for unknown tools
        :rtype: int
        """
        stats = self._stats.get(name)
        return stats.calls if stats is not None else 0

    def describe(self) -> str:
        blocks = []
        for name, tool in self._tools.items():
            block = f"Tool: {name}\nDescription: {tool.description}\n"
            if isinstance(tool, DescribedTool):
                block += f"Schema: {tool.schema()}\nHelp: {tool.help()}\n"
            blocks.append(block)
        return "\n".join(blocks)
