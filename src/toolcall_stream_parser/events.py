"""
Dataclasses for tool invocations detected in streaming model output.

These typed objects describe what the matchers found in one snapshot
(InvocationCandidate), what the ledger hands to the consumer exactly
once (ParsedInvocation), and the combined result of one parse call
(ParseResult).
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Union

Syntax = Literal["xml", "json_lines"]
Lifecycle = Literal["streaming", "complete"]

STREAMING: Lifecycle = "streaming"
COMPLETE: Lifecycle = "complete"


@dataclass
class InvocationCandidate:
    """A provisional, possibly incomplete tool invocation.

    Candidates are rebuilt from scratch on every parse call; only the
    ledger keeps state between snapshots.

    Attributes:
        identity: Stable key for this invocation across snapshots.
            The call id when the text supplies one, otherwise a
            synthesized key (see synthesize_identity()).
        tool_name: Name of the tool, or None while the opening marker
            is still incomplete.
        arguments: Parameter name to coerced value, in order of appearance.
        raw_text: The exact substring matched, for audit/display.
        syntax: Which micro-syntax produced the candidate.
        lifecycle: "streaming" until every closing marker was seen.
        call_id: The call id as written in the text, if any.
        offset: Position of the opening marker in the normalized text.
        description: Free-text description (JSON-Lines only).
        container_closed: Whether the enclosing container is closed.
            Always True for JSON-Lines, which has no container.
        block_closed: Whether the invocation's own closing marker was seen.
    """
    identity: str
    tool_name: str | None
    arguments: dict[str, Any]
    raw_text: str
    syntax: Syntax
    lifecycle: Lifecycle = STREAMING
    call_id: str | None = None
    offset: int = 0
    description: str | None = None
    container_closed: bool = False
    block_closed: bool = False

    @property
    def is_complete(self) -> bool:
        """Check if every closing marker of this candidate was seen."""
        return self.lifecycle == COMPLETE

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict for web APIs."""
        return {
            "type": "candidate",
            "identity": self.identity,
            "tool_name": self.tool_name,
            "arguments": self.arguments,
            "raw_text": self.raw_text,
            "syntax": self.syntax,
            "lifecycle": self.lifecycle,
            "call_id": self.call_id,
            "description": self.description,
        }


@dataclass(frozen=True)
class ParsedInvocation:
    """A completed tool invocation, emitted once per identity.

    Attributes:
        identity: Stable key of the invocation.
        tool_name: Name of the tool to execute.
        arguments: Parameter name to coerced value.
        raw_text: The exact substring matched.
        syntax: Which micro-syntax produced the invocation.
        call_id: The call id as written in the text, if any.
        description: Free-text description (JSON-Lines only).
        timestamp: When the invocation crossed the emit boundary.
    """
    identity: str
    tool_name: str
    arguments: dict[str, Any]
    raw_text: str
    syntax: Syntax
    call_id: str | None = None
    description: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_candidate(cls, candidate: InvocationCandidate) -> "ParsedInvocation":
        """Freeze a complete candidate into an emitted invocation."""
        return cls(
            identity=candidate.identity,
            tool_name=candidate.tool_name or "",
            arguments=dict(candidate.arguments),
            raw_text=candidate.raw_text,
            syntax=candidate.syntax,
            call_id=candidate.call_id,
            description=candidate.description,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict for web APIs."""
        return {
            "type": "invocation",
            "identity": self.identity,
            "tool_name": self.tool_name,
            "arguments": self.arguments,
            "raw_text": self.raw_text,
            "syntax": self.syntax,
            "call_id": self.call_id,
            "description": self.description,
        }


@dataclass
class InvocationPeek:
    """Light metadata about the most recent block in a snapshot.

    Computed from partial-content regexes so a UI can show progress
    before an invocation completes. Producing a peek never touches
    the ledger.
    """
    has_function_calls: bool = False
    is_complete: bool = False
    has_invoke: bool = False
    has_parameters: bool = False
    has_closing_tags: bool = False
    language_tag: str | None = None
    detected_block_type: Syntax | None = None
    partial_tag_detected: bool = False
    tool_name: str | None = None
    call_id: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict for web APIs."""
        return {
            "type": "peek",
            "has_function_calls": self.has_function_calls,
            "is_complete": self.is_complete,
            "has_invoke": self.has_invoke,
            "has_parameters": self.has_parameters,
            "has_closing_tags": self.has_closing_tags,
            "language_tag": self.language_tag,
            "detected_block_type": self.detected_block_type,
            "partial_tag_detected": self.partial_tag_detected,
            "tool_name": self.tool_name,
            "call_id": self.call_id,
            "description": self.description,
        }


@dataclass
class ParseResult:
    """Outcome of one parse call.

    Attributes:
        buffer_id: The buffer the snapshot belonged to.
        completed: Invocations that completed for the first time in this
            snapshot, in document order.
        streaming: Candidates still waiting for closing markers.
    """
    buffer_id: str
    completed: list[ParsedInvocation] = field(default_factory=list)
    streaming: list[InvocationCandidate] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict for web APIs."""
        return {
            "type": "parse_result",
            "buffer_id": self.buffer_id,
            "completed": [inv.to_dict() for inv in self.completed],
            "streaming": [c.to_dict() for c in self.streaming],
        }


def event_to_dict(event: "InvocationEvent") -> dict[str, Any]:
    """Convert any invocation object to a JSON-serializable dict.

    Args:
        event: An InvocationCandidate, ParsedInvocation, InvocationPeek
            or ParseResult.

    Returns:
        A dict with a "type" key and object-specific fields.

    Example:
        for invocation in parser.parse("msg-1", text).completed:
            await websocket.send_json(event_to_dict(invocation))
    """
    if hasattr(event, "to_dict"):
        return event.to_dict()
    return {"type": "unknown", "event": str(event)}


# Union type for everything the package produces - useful for type hints
InvocationEvent = Union[
    InvocationCandidate,
    ParsedInvocation,
    InvocationPeek,
    ParseResult,
]
