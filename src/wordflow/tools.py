"""
Built-in tools for demonstration and testing purposes.
"""

import json
import operator
import re

from wordflow.application.port import Context
from wordflow.domain.exception import ExecutionError
from wordflow.domain.port import DescribedTool, ToolBase

__all__ = [
    "CalculatorTool",
    "EchoTool",
]


class CalculatorTool(ToolBase, DescribedTool):
    """Tool that evaluates one binary arithmetic expression such as ``2+2``."""

    tool_name = "calculator"
    description = "Evaluates a basic arithmetic expression of the form 'number<op>number' with op one of + - * /."

    _expression = re.compile(r"^(-?\d+(?:\.\d+)?)([+\-*/])(-?\d+(?:\.\d+)?)$")
    _operators = {
        "+": operator.add,
        "-": operator.sub,
        "*": operator.mul,
        "/": operator.truediv,
    }

    def execute(self, ctx: Context, text: str) -> str:
        expression = "".join(text.split())
        match = self._expression.match(expression)
        if match is None:
            raise ExecutionError(f"unsupported expression format: {text}")
        left, op, right = match.groups()
        try:
            value = self._operators[op](float(left), float(right))
        except ZeroDivisionError:
            raise ExecutionError(f"division by zero: {text}") from None
        if value.is_integer():
            return str(int(value))
        return repr(value)

    def schema(self) -> str:
        return json.dumps(
            {
                "type": "string",
                "pattern": self._expression.pattern,
                "examples": ["2+2", "10 / 4"],
            }
        )

    def help(self) -> str:
        return "Pass two numbers joined by one of + - * /. Whitespace is ignored."


class EchoTool(ToolBase, DescribedTool):
    """Tool that returns its input unchanged."""

    tool_name = "echo"
    description = "Returns the input unchanged."

    def execute(self, ctx: Context, text: str) -> str:
        return text

    def schema(self) -> str:
        return json.dumps({"type": "string"})

    def help(self) -> str:
        return "Anything passed in is returned as is."
