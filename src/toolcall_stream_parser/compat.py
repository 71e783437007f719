"""
Dict-based convenience functions.

These functions provide a plain-dict API for callers that do not want
to deal with the dataclasses, e.g. when forwarding results straight to
a JSON transport.
"""
from typing import Any, AsyncIterator, Iterable, Iterator

from .events import InvocationCandidate, ParseResult
from .parser import InvocationParser


def _candidate_to_dict(candidate: InvocationCandidate) -> dict[str, Any]:
    """Convert a candidate to the plain dict format."""
    return {
        "id": candidate.identity,
        "tool_name": candidate.tool_name,
        "arguments": candidate.arguments,
        "raw_text": candidate.raw_text,
        "format": candidate.syntax,
        "status": candidate.lifecycle,
    }


def _result_to_dicts(
    result: ParseResult, include_streaming: bool
) -> Iterator[dict[str, Any]]:
    """Convert a ParseResult to the plain dict update stream."""
    for invocation in result.completed:
        yield {
            "invocation": invocation.to_dict(),
            "status": "complete",
        }
    if include_streaming and result.streaming:
        yield {
            "candidates": [_candidate_to_dict(c) for c in result.streaming],
            "status": "streaming",
        }


def extract_tool_calls(text: str) -> list[dict[str, Any]]:
    """Extract every tool call from a piece of text, without dedup.

    Stateless: nothing is remembered between calls. Both complete and
    still-streaming calls are returned.

    Args:
        text: The text to scan.

    Returns:
        List of dicts with id, tool_name, arguments, raw_text, format
        ("xml" or "json_lines") and status ("complete" or "streaming").

    Example:
        for call in extract_tool_calls(message_text):
            if call["status"] == "complete":
                run(call["tool_name"], call["arguments"])
    """
    parser = InvocationParser()
    return [_candidate_to_dict(c) for c in parser.match(text)]


def stream_tool_calls(
    snapshots: Iterable[str],
    *,
    buffer_id: str = "default",
    parser: InvocationParser | None = None,
    include_streaming: bool = False,
) -> Iterator[dict[str, Any]]:
    """Stream dict updates from successive snapshots of one buffer.

    Args:
        snapshots: Successive full-text snapshots.
        buffer_id: The buffer the snapshots belong to.
        parser: Optional pre-configured InvocationParser.
        include_streaming: If True, also yield the still-streaming
            candidates after every snapshot that has any.

    Yields:
        Dictionaries containing:
        - {"invocation": dict, "status": "complete"} once per invocation
        - {"candidates": list, "status": "streaming"} if include_streaming

    Example:
        for update in stream_tool_calls(snapshots):
            if update["status"] == "complete":
                run(update["invocation"])
    """
    parser = parser or InvocationParser()
    for snapshot in snapshots:
        yield from _result_to_dicts(parser.parse(buffer_id, snapshot), include_streaming)


async def astream_tool_calls(
    snapshots: AsyncIterator[str],
    *,
    buffer_id: str = "default",
    parser: InvocationParser | None = None,
    include_streaming: bool = False,
) -> AsyncIterator[dict[str, Any]]:
    """Async version of stream_tool_calls()."""
    parser = parser or InvocationParser()
    async for snapshot in snapshots:
        for update in _result_to_dicts(parser.parse(buffer_id, snapshot), include_streaming):
            yield update
