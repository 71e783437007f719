"""
Example: Replaying a streamed model response through the parser.

This example simulates a model response arriving a few characters at a
time and shows the three ways to consume it:

1. InvocationParser.parse() with live progress from peek()
2. PrintAdapter.run() with a tool executor and a result sink
3. The dict-based stream_tool_calls() function

Run it with:
    python examples/replay_stream.py
"""
import logging
import time
from pathlib import Path

from toolcall_stream_parser import InvocationParser, peek, stream_tool_calls
from toolcall_stream_parser.adapters import PrintAdapter

RESPONSE = """I'll check the directory first.

<function_calls>
<invoke name="list_dir" call_id="1">
<parameter name="path">.</parameter>
</invoke>
</function_calls>

Then read the notes:
{"type": "function_call_start", "name": "read_file", "call_id": "2"}
{"type": "description", "text": "Read the project notes"}
{"type": "parameter", "key": "path", "value": "examples/replay_stream.py"}
{"type": "parameter", "key": "max_lines", "value": 5}
{"type": "function_call_end"}
"""


def simulate_stream(text: str, step: int = 12, delay: float = 0.0):
    """Yield growing snapshots like a chat UI would deliver them."""
    for end in range(step, len(text) + step, step):
        if delay:
            time.sleep(delay)
        yield text[:end]


def run_tool(name: str, arguments: dict):
    """A tiny tool executor."""
    if name == "list_dir":
        return sorted(p.name for p in Path(arguments["path"]).iterdir())
    if name == "read_file":
        lines = Path(arguments["path"]).read_text().splitlines()
        return "\n".join(lines[:arguments.get("max_lines", 20)])
    raise KeyError(f"Unknown tool: {name}")


def example_parse_loop():
    print("=== InvocationParser.parse() ===")
    parser = InvocationParser()
    last_name = None

    for snapshot in simulate_stream(RESPONSE):
        status = peek(snapshot)
        if status.tool_name and status.tool_name != last_name:
            print(f"... {status.tool_name} is being written")
            last_name = status.tool_name

        for invocation in parser.parse("response-1", snapshot).completed:
            print(f"READY {invocation.tool_name} {invocation.arguments}")


def example_adapter():
    print("\n=== PrintAdapter.run() ===")
    results = []
    PrintAdapter(verbose=True, max_content_preview=60).run(
        simulate_stream(RESPONSE),
        buffer_id="response-2",
        executor=run_tool,
        result_sink=results.append,
    )
    print(f"\n{len(results)} results ready to send back:")
    for text in results:
        print(text.splitlines()[0])


def example_dicts():
    print("\n=== stream_tool_calls() ===")
    for update in stream_tool_calls(simulate_stream(RESPONSE)):
        invocation = update["invocation"]
        print(f"{invocation['syntax']}: {invocation['tool_name']}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    example_parse_loop()
    example_adapter()
    example_dicts()
