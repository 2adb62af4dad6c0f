class WordflowError(Exception):
    """Base class for all errors raised by wordflow."""


class ConfigurationError(WordflowError, ValueError):
    """A node or agent was configured in a way that cannot run."""


class NotFoundError(WordflowError, KeyError):
    """A tool or model name is not registered."""

    def __init__(self, kind: str, name: str):
        super().__init__(f"{kind} not found: {name}")
        self.kind = kind
        self.name = name

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class ExecutionError(WordflowError, RuntimeError):
    """A node or tool failed while running."""


class CancelledError(ExecutionError):
    """The execution context was cancelled or its deadline passed."""


class RetriesExhaustedError(ExecutionError):
    """Every attempt of a retry node failed."""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"retry node: failed after {attempts} attempts, last error: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class MergeInputError(ExecutionError):
    """A parallel node had no successful child output to merge."""


class StepError(ExecutionError):
    """Wraps a flow step failure with the index of the failing step."""

    def __init__(self, step: int, cause: BaseException):
        super().__init__(f"error at step {step}: {cause}")
        self.step = step
        self.cause = cause
