import json

import msgspec

from wordflow import (
    AgentModel,
    ExecutionContext,
    Flow,
    FuncNode,
    ModelNode,
    ModelRequest,
    ParallelNode,
    RetryNode,
    ScriptedModel,
    ToolNode,
    create_agent,
)
from wordflow.tools import CalculatorTool, EchoTool

if __name__ == "__main__":
    ctx = ExecutionContext(timeout=10, values={"question": "what is 12*7?"})

    model = ScriptedModel(
        [
            "CALL TOOL: calculator 12*7",
            "Here is the sum:\nCALL TOOL: calculator 40 + 2\nand an echo:\nCALL TOOL: echo done",
        ]
    )
    agent = create_agent(model, tools=[CalculatorTool, EchoTool], system_prompt="Answer with tools when you can.")

    attempts = []

    def flaky(ctx, text):
        attempts.append(text)
        if len(attempts) < 3:
            raise RuntimeError("Intentional failure to test retries")
        return text

    flow = Flow(
        [
            FuncNode(lambda ctx, text: ctx.get_var("question")),
            RetryNode(FuncNode(flaky), max_retries=3, delay=0.1),
            ModelNode(agent),
            ParallelNode(
                [
                    FuncNode(lambda ctx, text: text.upper()),
                    ToolNode(agent, "echo", instruction="echoed:"),
                ]
            ),
        ]
    )

    result = flow.run_with_detailed_logging(
        ctx, "", lambda step, output, duration: print(f"step {step} took {duration:.4f}s")
    )
    print("Flow result:")
    print(result)

    response = AgentModel(agent, model).generate(ctx, ModelRequest(prompt="sum please"))
    print("Substituted model output:")
    print(response.text)

    print("Tool stats:")
    print(json.dumps({name: msgspec.to_builtins(agent.tools.stats(name)) for name in agent.list_tools()}, indent=2))
