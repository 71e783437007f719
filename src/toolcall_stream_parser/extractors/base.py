"""
Base protocol and shared helpers for invocation matchers.

A matcher turns one normalized snapshot into a list of
InvocationCandidate objects for a single micro-syntax. Matchers are
stateless; the same growing text is re-scanned on every call.
"""
import json
from typing import Any, Protocol, runtime_checkable

from ..events import InvocationCandidate


@runtime_checkable
class InvocationMatcher(Protocol):
    """Protocol for invocation matchers.

    Implement this protocol to teach the parser a new micro-syntax.
    Register matchers with InvocationParser.register_matcher().

    Example:
        class BracketMatcher:
            syntax = "brackets"

            def match(self, text, *, source_id=""):
                candidates = []
                for i, m in enumerate(re.finditer(r"\\[\\[(\\w+)\\]\\]", text)):
                    candidates.append(InvocationCandidate(
                        identity=synthesize_identity(source_id, self.syntax, i, m.group(1)),
                        tool_name=m.group(1),
                        arguments={},
                        raw_text=m.group(0),
                        syntax=self.syntax,
                        lifecycle="complete",
                        offset=m.start(),
                        container_closed=True,
                        block_closed=True,
                    ))
                return candidates

        parser = InvocationParser()
        parser.register_matcher(BracketMatcher())
    """

    @property
    def syntax(self) -> str:
        """The syntax name this matcher handles.

        Used as the registration key and copied onto every candidate.
        """
        ...

    def match(self, text: str, *, source_id: str = "") -> list[InvocationCandidate]:
        """Extract candidates from normalized text.

        Args:
            text: The full normalized snapshot.
            source_id: Identifier of the buffer the text came from.
                Used when an identity has to be synthesized.

        Returns:
            Candidates in document order. Must not raise on malformed
            input; unrecognised text simply yields no candidates.
        """
        ...


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unsupported JSON constant: {name}")


def coerce_value(value: str) -> Any:
    """Best-effort JSON coercion of a parameter value.

    Objects, arrays, numbers, booleans and null written as literal JSON
    come back as Python values. Anything else stays a string. NaN and
    Infinity are kept as strings since they are not JSON.

    Args:
        value: The trimmed raw parameter value.

    Returns:
        The decoded value, or the original string.
    """
    if not value:
        return value
    try:
        return json.loads(value, parse_constant=_reject_constant)
    except (json.JSONDecodeError, ValueError, RecursionError):
        return value


def synthesize_identity(
    source_id: str,
    syntax: str,
    ordinal: int,
    tool_name: str | None,
) -> str:
    """Build a fallback identity for a candidate without a call id.

    The key depends only on where the block sits in the buffer, so
    re-scanning unchanged text resolves to the same identity.

    Args:
        source_id: Identifier of the buffer.
        syntax: Syntax of the candidate.
        ordinal: Zero-based index of the block among blocks of the
            same syntax in the buffer.
        tool_name: The tool name if already known.

    Returns:
        A string of the form "source:syntax:ordinal:tool".
    """
    return f"{source_id}:{syntax}:{ordinal}:{tool_name or ''}"


def strip_partial_suffix(text: str, marker: str) -> str:
    """Remove a dangling prefix of marker from the end of text.

    While a closing tag is still streaming in, the text may end with
    "</para" or just "<". That fragment is not part of the value.

    Args:
        text: Text that may end with the beginning of marker.
        marker: The full closing marker, e.g. "</parameter>".

    Returns:
        text without the trailing fragment.
    """
    for size in range(min(len(marker) - 1, len(text)), 0, -1):
        if text.endswith(marker[:size]):
            return text[:-size]
    return text
