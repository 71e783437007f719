"""
toolcall-stream-parser: Incremental tool-call extraction from streaming text.

This package watches a growing text buffer (a model response being
streamed token by token) and pulls out tool invocations written in
either the XML-like tagged syntax or the JSON-Lines syntax. Every
completed invocation is reported exactly once per buffer.

Basic Usage:
    from toolcall_stream_parser import InvocationParser

    parser = InvocationParser()

    for snapshot in snapshots:
        result = parser.parse("msg-1", snapshot)
        for invocation in result.completed:
            match invocation:
                case ParsedInvocation(tool_name="read_file", arguments=args):
                    read_file(**args)
                case _:
                    execute(invocation.tool_name, invocation.arguments)

Dict-Based API:
    from toolcall_stream_parser import stream_tool_calls

    for update in stream_tool_calls(snapshots):
        if update["status"] == "complete":
            execute(update["invocation"])
"""
from .parser import InvocationParser
from .events import (
    InvocationCandidate,
    ParsedInvocation,
    InvocationPeek,
    ParseResult,
    InvocationEvent,
    event_to_dict,
)
from .ledger import Ledger, LedgerEntry
from .normalize import normalize, extract_language_tag
from .classifier import classify, peek
from .extractors.base import InvocationMatcher
from .extractors.xml import XmlInvocationMatcher
from .extractors.jsonlines import JsonLinesInvocationMatcher
from .results import format_tool_output, detect_tool_error, format_function_result
from .compat import extract_tool_calls, stream_tool_calls, astream_tool_calls

__version__ = "0.1.0"

__all__ = [
    # Main parser
    "InvocationParser",
    # Event types
    "InvocationCandidate",
    "ParsedInvocation",
    "InvocationPeek",
    "ParseResult",
    "InvocationEvent",
    # Ledger
    "Ledger",
    "LedgerEntry",
    # Normalization and classification
    "normalize",
    "extract_language_tag",
    "classify",
    "peek",
    # Matchers
    "InvocationMatcher",
    "XmlInvocationMatcher",
    "JsonLinesInvocationMatcher",
    # Result formatting
    "format_tool_output",
    "detect_tool_error",
    "format_function_result",
    # Serialization
    "event_to_dict",
    # Dict-based functions
    "extract_tool_calls",
    "stream_tool_calls",
    "astream_tool_calls",
]
