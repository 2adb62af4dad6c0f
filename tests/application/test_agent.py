"""
Tests for the agent.

This module tests:
- Conversation history and prompt building
- send() with single-directive resolution
- Directive substitution through AgentModel
- ModelNode and ToolNode
"""

from unittest.mock import Mock

import msgspec
import pytest

from wordflow.application.agent import Agent, AgentModel, ModelNode, ToolNode
from wordflow.application.port import Middleware
from wordflow.domain.entity import ModelRequest
from wordflow.domain.exception import ExecutionError, NotFoundError
from wordflow.domain.port import ToolBase
from wordflow.domain.value_object import AgentOptions, Message, Provider
from wordflow.infrastructure.adapter.in_memory.model import ScriptedModel
from wordflow.infrastructure.adapter.in_memory.tool_registry import InMemoryToolRegistry
from wordflow.tools import CalculatorTool


class WeatherStub(ToolBase):
    tool_name = "weather"
    description = "Canned weather report"

    def execute(self, ctx, text: str) -> str:
        return "Sunny"


class BrokenTool(ToolBase):
    tool_name = "broken"

    def execute(self, ctx, text: str) -> str:
        raise ExecutionError("tool exploded")


class SilentTool(ToolBase):
    tool_name = "silent"

    def execute(self, ctx, text: str) -> str:
        return ""


def make_agent(*replies: str, **kwargs) -> Agent:
    registry = InMemoryToolRegistry([CalculatorTool(), WeatherStub(), BrokenTool(), SilentTool()])
    return Agent(ScriptedModel(replies), registry, **kwargs)


class TestHistory:
    """Test cases for conversation history."""

    def test_starts_empty(self):
        assert make_agent().history == ()

    def test_append_and_reset(self):
        agent = make_agent()
        agent.append_message("User", "hi")
        agent.append_message("Assistant", "hello")

        assert agent.history == (Message("User", "hi"), Message("Assistant", "hello"))

        agent.reset()
        assert agent.history == ()

    def test_history_is_a_copy(self):
        agent = make_agent()
        agent.append_message("User", "hi")

        snapshot = agent.history
        agent.append_message("User", "again")

        assert len(snapshot) == 1

    def test_build_prompt(self):
        agent = make_agent()
        agent.append_message("User", "hi")
        agent.append_message("Assistant", "hello")

        assert agent.build_prompt() == "User: hi\nAssistant: hello\n"

    def test_build_prompt_with_system_prompt(self):
        agent = make_agent(system_prompt="Be brief.")
        agent.append_message("User", "hi")

        assert agent.build_prompt() == "System: Be brief.\nUser: hi\n"

    def test_export_history(self):
        agent = make_agent()
        agent.append_message("User", "hi")

        assert msgspec.json.decode(agent.export_history()) == [{"role": "User", "content": "hi"}]


class TestSend:
    """Test cases for Agent.send."""

    def test_plain_reply(self, ctx):
        agent = make_agent("Hello!")

        assert agent.send(ctx, "hi") == "Hello!"
        assert agent.history == (Message("User", "hi"), Message("Assistant", "Hello!"))

    def test_request_uses_history_and_options(self, ctx):
        agent = make_agent("first", "second", options=AgentOptions(temperature=0.1, max_tokens=42, top_p=0.5))

        agent.send(ctx, "one")
        agent.send(ctx, "two")

        request = agent.model.requests[-1]
        assert request.prompt == "User: one\nAssistant: first\nUser: two\n"
        assert (request.temperature, request.max_tokens, request.top_p) == (0.1, 42, 0.5)

    def test_last_response_keeps_usage(self, ctx):
        agent = make_agent("two words")

        agent.send(ctx, "hi")

        assert agent.last_response.text == "two words"
        assert agent.last_response.usage.completion_tokens == 2

    def test_whole_reply_directive_is_resolved(self, ctx):
        agent = make_agent("CALL TOOL: calculator 2+2")

        result = agent.send(ctx, "what is 2+2?")

        assert result == "CALL TOOL: calculator 2+2\nTool Output: 4"
        assert [m.role for m in agent.history] == [
            "User",
            "Assistant",
            "Tool Call (calculator)",
            "Tool Response (calculator)",
            "Tool Response",
        ]
        assert agent.history[-1].content == "4"

    def test_directive_inside_reply_is_not_resolved_by_send(self, ctx):
        agent = make_agent("Let me check.\nCALL TOOL: calculator 2+2")

        assert agent.send(ctx, "q") == "Let me check.\nCALL TOOL: calculator 2+2"
        assert agent.tools.call_count("calculator") == 0

    def test_failing_directive_returns_reply(self, ctx):
        agent = make_agent("CALL TOOL: broken now")

        assert agent.send(ctx, "q") == "CALL TOOL: broken now"

    def test_unknown_tool_directive_returns_reply(self, ctx):
        agent = make_agent("CALL TOOL: teleport home")

        assert agent.send(ctx, "q") == "CALL TOOL: teleport home"
        assert [m.role for m in agent.history] == ["User", "Assistant"]

    def test_model_error_propagates(self, ctx):
        agent = make_agent()

        with pytest.raises(ExecutionError, match="no scripted reply left"):
            agent.send(ctx, "q")

    def test_middleware_hooks(self, ctx):
        class DropAssistantTurns(Middleware):
            def before_send(self, history):
                return [m for m in history if m.role != "Assistant"]

        class Shout(Middleware):
            def after_receive(self, text):
                return text.upper()

        agent = make_agent("first", "second", middleware=[DropAssistantTurns(), Shout()])

        assert agent.send(ctx, "one") == "FIRST"
        assert agent.send(ctx, "two") == "SECOND"
        assert agent.model.requests[-1].prompt == "User: one\nUser: two\n"
        # history itself is untouched by before_send
        assert Message("Assistant", "FIRST") in agent.history

    def test_middleware_runs_in_order(self, ctx):
        calls = []

        class Tag(Middleware):
            def __init__(self, name):
                self.name = name

            def after_receive(self, text):
                calls.append(self.name)
                return f"{text}+{self.name}"

        agent = make_agent("x", middleware=[Tag("a"), Tag("b")])

        assert agent.send(ctx, "q") == "x+a+b"
        assert calls == ["a", "b"]


class TestCallTool:
    """Test cases for Agent.call_tool."""

    def test_records_call_and_response(self, ctx):
        agent = make_agent()

        assert agent.call_tool(ctx, "calculator", "3*4") == "12"
        assert agent.history == (
            Message("Tool Call (calculator)", "3*4"),
            Message("Tool Response (calculator)", "12"),
        )

    def test_unknown_tool(self, ctx):
        agent = make_agent()

        with pytest.raises(NotFoundError, match="tool not found: nope"):
            agent.call_tool(ctx, "nope", "x")
        assert agent.history == ()

    def test_tool_failure_propagates(self, ctx):
        agent = make_agent()

        with pytest.raises(ExecutionError, match="tool exploded"):
            agent.call_tool(ctx, "broken", "x")
        assert agent.history == (Message("Tool Call (broken)", "x"),)

    def test_register_and_list_tools(self):
        agent = Agent(ScriptedModel(), InMemoryToolRegistry())
        agent.register_tool(CalculatorTool())

        assert agent.list_tools() == ("calculator",)
        assert "Tool: calculator" in agent.describe_tools()


class TestSubstituteDirectives:
    """Test cases for multi-directive substitution."""

    def test_resolves_every_directive(self, ctx):
        agent = make_agent()

        result = agent.substitute_directives(ctx, "Hello\nCALL TOOL: calculator 2+2\nCALL TOOL: weather Paris")

        assert "Tool Output (calculator): 4" in result
        assert "Tool Output (weather): Sunny" in result
        assert "CALL TOOL:" not in result
        assert result == "Hello\nTool Output (calculator): 4\nTool Output (weather): Sunny"

    def test_failing_tool_leaves_directive(self, ctx, log_messages):
        agent = make_agent()

        result = agent.substitute_directives(ctx, "CALL TOOL: broken it\nCALL TOOL: weather Paris")

        assert result == "CALL TOOL: broken it\nTool Output (weather): Sunny"
        assert any("failed to execute tool 'broken'" in m for m in log_messages)

    def test_unknown_tool_leaves_directive(self, ctx):
        agent = make_agent()

        assert agent.substitute_directives(ctx, "CALL TOOL: missing x") == "CALL TOOL: missing x"

    def test_empty_output_leaves_directive(self, ctx):
        agent = make_agent()

        assert agent.substitute_directives(ctx, "CALL TOOL: silent x") == "CALL TOOL: silent x"

    def test_successful_calls_are_recorded(self, ctx):
        agent = make_agent()

        agent.substitute_directives(ctx, "CALL TOOL: calculator 1+1\nCALL TOOL: broken z")

        assert [m.role for m in agent.history] == [
            "Tool Call (calculator)",
            "Tool Response (calculator)",
            "Tool Call (broken)",
        ]

    def test_trimmed_input_reaches_tool(self, ctx):
        agent = make_agent()

        agent.substitute_directives(ctx, "CALL TOOL: weather    Paris   ")

        assert agent.history[0] == Message("Tool Call (weather)", "Paris")


class TestAgentModel:
    """Test cases for AgentModel."""

    def test_generate_substitutes_directives(self, ctx):
        agent = make_agent()
        inner = ScriptedModel(["Hello\nCALL TOOL: calculator 2+2\nCALL TOOL: weather Paris"], name="inner")
        model = AgentModel(agent, inner)

        response = model.generate(ctx, ModelRequest(prompt="p"))

        assert response.text == "Hello\nTool Output (calculator): 4\nTool Output (weather): Sunny"
        assert response.model_name == "inner"

    def test_inner_error_propagates(self, ctx):
        inner = Mock()
        inner.generate.side_effect = ExecutionError("provider down")

        with pytest.raises(ExecutionError, match="provider down"):
            AgentModel(make_agent(), inner).generate(ctx, ModelRequest(prompt="p"))

    def test_delegates_metadata_and_embedding(self, ctx):
        inner = ScriptedModel(name="inner", provider=Provider.GEMINI)
        model = AgentModel(make_agent(), inner)

        assert model.provider == Provider.GEMINI
        assert model.model_name == "inner"
        assert model.embed(ctx, "abc") == inner.embed(ctx, "abc")


class TestModelNode:
    """Test cases for ModelNode."""

    def test_sends_instruction_and_input(self, ctx):
        agent = make_agent("summary")
        node = ModelNode(agent, message="Summarize:")

        assert node.execute(ctx, "long text") == "summary"
        assert agent.model.requests[0].prompt == "User: Summarize:\nlong text\n"

    def test_resets_conversation_each_call(self, ctx):
        agent = make_agent("a", "b")
        node = ModelNode(agent, message="Go")

        node.execute(ctx, "1")
        node.execute(ctx, "2")

        assert agent.model.requests[1].prompt == "User: Go\n2\n"

    def test_empty_input_sends_instruction_only(self, ctx):
        agent = make_agent("ok")

        ModelNode(agent, message="Ping").execute(ctx, "")

        assert agent.model.requests[0].prompt == "User: Ping\n"


class TestToolNode:
    """Test cases for ToolNode."""

    def test_calls_tool_with_input(self, ctx):
        agent = make_agent()

        assert ToolNode(agent, "calculator").execute(ctx, "5+5") == "10"

    def test_instruction_is_prepended(self, ctx):
        agent = make_agent()
        recorder = Mock(spec=ToolBase)
        recorder.name = "recorder"
        recorder.execute.return_value = "done"
        agent.register_tool(recorder)

        ToolNode(agent, "recorder", instruction="Do this:").execute(ctx, "payload")

        recorder.execute.assert_called_once_with(ctx, "Do this:\npayload")

    def test_unknown_tool_raises(self, ctx):
        with pytest.raises(NotFoundError):
            ToolNode(make_agent(), "nope").execute(ctx, "x")
