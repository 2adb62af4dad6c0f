from dataclasses import dataclass
from enum import Enum

import msgspec

from wordflow.domain.exception import ConfigurationError


@dataclass
class AgentOptions:
    """Sampling parameters an agent puts on every model request."""

    temperature: float = 0.7
    max_tokens: int = 150
    top_p: float = 0.9

    def validate(self) -> None:
        """
        Check the options are usable.

        :raises ConfigurationError: If any option is out of range
        """
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(f"temperature must be within [0, 2], got {self.temperature}")
        if self.max_tokens <= 0:
            raise ConfigurationError(f"max_tokens must be positive, got {self.max_tokens}")
        if not 0.0 < self.top_p <= 1.0:
            raise ConfigurationError(f"top_p must be within (0, 1], got {self.top_p}")


class Role(str, Enum):
    SYSTEM = "System"
    USER = "User"
    ASSISTANT = "Assistant"
    TOOL_RESPONSE = "Tool Response"

    @staticmethod
    def tool_call(name: str) -> str:
        return f"Tool Call ({name})"

    @staticmethod
    def tool_response(name: str) -> str:
        return f"Tool Response ({name})"


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    CUSTOM = "custom"


class SegmentKind(str, Enum):
    LITERAL = "literal"
    DIRECTIVE = "directive"


class Message(msgspec.Struct, frozen=True):
    """One conversation turn."""

    role: str
    content: str


class Usage(msgspec.Struct):
    """Token counters reported by a model."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Directive(msgspec.Struct, frozen=True):
    """A parsed ``CALL TOOL: <name> <input>`` command."""

    name: str
    argument: str
    raw: str


class Segment(msgspec.Struct, frozen=True):
    """A slice of scanned text, either literal or a directive.

    ``text`` always holds the exact source characters, so joining the
    ``text`` of every segment reproduces the scanned input.
    """

    kind: SegmentKind
    text: str
    name: str | None = None
    argument: str | None = None

    @property
    def is_directive(self) -> bool:
        return self.kind == SegmentKind.DIRECTIVE

    def to_directive(self) -> Directive:
        return Directive(name=self.name, argument=self.argument, raw=self.text)
