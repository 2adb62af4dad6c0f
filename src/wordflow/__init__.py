"""
Wordflow - Text Workflow and Agent Framework

Compose model calls, tool calls and plain functions into pipelines of
string-to-string nodes, with parallel, retry, balancing and conditional
combinators, and let agents resolve tool directives in generated text.
"""

from wordflow.application.adapter import (
    BalancingNode,
    ConditionalNode,
    ExecutionContext,
    FuncNode,
    ParallelNode,
    RetryNode,
    background,
)
from wordflow.application.agent import Agent, AgentModel, ModelNode, ToolNode
from wordflow.application.port import Context, Middleware
from wordflow.application.service import Flow, load_agent_options
from wordflow.domain.entity import ModelRequest, ModelResponse, ToolStats
from wordflow.domain.exception import (
    CancelledError,
    ConfigurationError,
    ExecutionError,
    MergeInputError,
    NotFoundError,
    RetriesExhaustedError,
    StepError,
    WordflowError,
)
from wordflow.domain.port import DescribedTool, Model, Node
from wordflow.domain.port import ToolBase as ToolMixin
from wordflow.domain.value_object import AgentOptions, Message, Provider, Role, Usage
from wordflow.factory import create_agent
from wordflow.infrastructure.adapter.in_memory.model import ScriptedModel
from wordflow.infrastructure.adapter.in_memory.model_router import ModelRouter
from wordflow.infrastructure.adapter.in_memory.tool_registry import InMemoryToolRegistry

__all__ = [
    "Agent",
    "AgentModel",
    "AgentOptions",
    "BalancingNode",
    "CancelledError",
    "ConditionalNode",
    "ConfigurationError",
    "Context",
    "DescribedTool",
    "ExecutionContext",
    "ExecutionError",
    "Flow",
    "FuncNode",
    "InMemoryToolRegistry",
    "MergeInputError",
    "Message",
    "Middleware",
    "Model",
    "ModelNode",
    "ModelRequest",
    "ModelResponse",
    "ModelRouter",
    "Node",
    "NotFoundError",
    "ParallelNode",
    "Provider",
    "RetriesExhaustedError",
    "RetryNode",
    "Role",
    "ScriptedModel",
    "StepError",
    "ToolMixin",
    "ToolNode",
    "ToolStats",
    "Usage",
    "WordflowError",
    "background",
    "create_agent",
    "load_agent_options",
]
