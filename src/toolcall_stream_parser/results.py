"""
Formatting of tool results for the result sink.

After a consumer executes a ParsedInvocation, the tool output is handed
back to the model wrapped in a <function_result> tag carrying the
invocation's call id. These helpers only format text; nothing here
executes tools.
"""
import json
from typing import Any, Literal

ResultStatus = Literal["success", "error"]

_ERROR_PREFIXES = (
    "error:",
    "failed:",
    "exception:",
    "traceback",
)


def format_tool_output(result: Any) -> str:
    """Flatten a tool result into display text.

    Handles formats:
        - None / empty values ("No result")
        - MCP-style {"content": [{"type": "text", "text": ...}, ...]}
          (text blocks joined by blank lines, other blocks as JSON)
        - Other mappings and lists (pretty-printed JSON)
        - Anything else (str())

    Args:
        result: The raw value returned by the tool executor.

    Returns:
        The result as a string.
    """
    if result is None or result == "" or result == {} or result == []:
        return "No result"

    if isinstance(result, dict) and isinstance(result.get("content"), list):
        parts = []
        for item in result["content"]:
            if isinstance(item, dict) and item.get("type") == "text":
                parts.append(item.get("text") or "")
            else:
                parts.append(json.dumps(item, indent=2, default=str))
        return "\n\n".join(parts)

    if isinstance(result, (dict, list)):
        return json.dumps(result, indent=2, default=str)

    return str(result)


def detect_tool_error(result: Any) -> tuple[bool, str | None]:
    """Detect if a tool result represents an error.

    Checks multiple indicators:
        - Mapping with isError set to True
        - Mapping with a truthy 'error' key
        - Text starting with error patterns

    Args:
        result: The raw value returned by the tool executor.

    Returns:
        Tuple of (is_error, error_message).
    """
    if isinstance(result, dict):
        if result.get("isError") is True:
            return True, format_tool_output(result)
        if result.get("error"):
            return True, str(result["error"])
        return False, None

    if isinstance(result, str):
        content_lower = result.lower().strip()
        if any(content_lower.startswith(prefix) for prefix in _ERROR_PREFIXES):
            return True, result

    return False, None


def format_function_result(
    call_id: str,
    output: Any,
    *,
    status: ResultStatus = "success",
) -> str:
    """Wrap tool output in a <function_result> tag.

    Args:
        call_id: The call id (or identity) of the invocation.
        output: Tool output; non-strings go through format_tool_output().
            For errors this is the error message.
        status: "success" or "error". Error results carry a
            status="error" attribute and an "Error: " prefix.

    Returns:
        The wrapped result text.

    Raises:
        ValueError: If status is not "success" or "error".

    Example:
        text = format_function_result("1", {"content": [{"type": "text", "text": "ok"}]})
        # '<function_result call_id="1">\\nok\\n</function_result>'
    """
    content = output if isinstance(output, str) else format_tool_output(output)

    if status == "success":
        return f'<function_result call_id="{call_id}">\n{content}\n</function_result>'
    if status == "error":
        return (
            f'<function_result call_id="{call_id}" status="error">\n'
            f"Error: {content}\n"
            f"</function_result>"
        )
    raise ValueError(f"Unsupported status: {status!r}. Must be 'success' or 'error'.")
