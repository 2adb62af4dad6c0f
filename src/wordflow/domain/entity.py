from typing import Any

import msgspec

from wordflow.domain.value_object import Provider, Usage


class ModelRequest(msgspec.Struct, kw_only=True):
    """A prompt plus sampling parameters sent to a model."""

    prompt: str
    max_tokens: int = 0
    temperature: float = 0.0
    top_p: float = 0.0
    context: dict[str, Any] = msgspec.field(default_factory=dict)


class ModelResponse(msgspec.Struct, kw_only=True):
    """Generated text and usage counters returned by a model."""

    text: str
    usage: Usage = msgspec.field(default_factory=Usage)
    model_name: str = ""
    provider: Provider = Provider.CUSTOM
    metadata: dict[str, Any] = msgspec.field(default_factory=dict)
    finish_reason: str | None = None


class ToolStats(msgspec.Struct):
    """Execution counters kept by a tool registry for one tool.

    ``calls`` counts successful executions only; durations cover every
    execution, failed ones included.
    """

    calls: int = 0
    failures: int = 0
    total_duration: float = 0.0
    last_duration: float | None = None

    @property
    def executions(self) -> int:
        return self.calls + self.failures

    @property
    def average_duration(self) -> float | None:
        if self.executions == 0:
            return None
        return self.total_duration / self.executions
