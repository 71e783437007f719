"""
Matcher for the JSON-Lines invocation syntax.

    {"type": "function_call_start", "name": "read_file", "call_id": "1"}
    {"type": "description", "text": "Read the config file"}
    {"type": "parameter", "key": "path", "value": "/tmp/test.txt"}
    {"type": "function_call_end"}

Real model output is messier than one object per line: objects come
back-to-back on a single line, or pretty-printed across several lines,
and the last line is usually still being written. Lines that fail to
parse are skipped and only feed the streaming heuristics.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Union

from ..classifier import classify_markers
from ..events import InvocationCandidate
from ..normalize import normalize
from .base import synthesize_identity

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class StartLine:
    """A function_call_start line."""
    name: str | None
    call_id: str | None = None


@dataclass(frozen=True)
class DescriptionLine:
    """A description line carrying free text for the current call."""
    text: str | None


@dataclass(frozen=True)
class ParameterLine:
    """A parameter (or function_call_arg) line."""
    key: str
    value: Any


@dataclass(frozen=True)
class EndLine:
    """A function_call_end line."""


JsonLine = Union[StartLine, DescriptionLine, ParameterLine, EndLine]

_PARTIAL_START_RE = re.compile(r'"type"\s*:\s*"function_call_start"')
_PARTIAL_NAME_RE = re.compile(r'"name"\s*:\s*"([^"]+)"')
_PARTIAL_CALL_ID_RE = re.compile(r'"call_id"\s*:\s*(\d+(?=[\s,}])|"[^"]*")')
_PARTIAL_PARAMETER_RE = re.compile(
    r'"type"\s*:\s*"(?:parameter|function_call_arg)"[^}]*?'
    r'"(?:key|name)"\s*:\s*"([^"]+)"[^}]*?'
    r'"value"\s*:\s*"((?:[^"\\]|\\.)*)'
)
_ESCAPE_RE = re.compile(r"\\(.)")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def parse_json_line(line: str) -> JsonLine | None:
    """Parse one logical line into a typed JSON line.

    Language labels and copy-button text in front of the object are
    stripped first.

    Args:
        line: One physical or reconstructed line.

    Returns:
        The typed line, or None if the line is not valid JSON or not one
        of the known line types.
    """
    cleaned = normalize(line.strip()).strip()
    if not cleaned:
        return None

    try:
        obj = json.loads(cleaned)
    except (json.JSONDecodeError, RecursionError):
        return None
    if not isinstance(obj, dict):
        return None

    match obj.get("type"):
        case "function_call_start":
            return StartLine(
                name=_optional_str(obj.get("name")) or None,
                call_id=_optional_str(obj.get("call_id")),
            )
        case "description":
            return DescriptionLine(text=_optional_str(obj.get("text")))
        case "parameter" if obj.get("key") is not None:
            value = obj.get("value")
            return ParameterLine(key=str(obj["key"]), value="" if value is None else value)
        case "function_call_arg" if obj.get("name") is not None:
            value = obj.get("value")
            return ParameterLine(key=str(obj["name"]), value="" if value is None else value)
        case "function_call_end":
            return EndLine()
        case _:
            return None


def _unescape(value: str) -> str:
    return _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(0)), value)


def recover_partial_parameter(line: str) -> tuple[str, str] | None:
    """Recover the key and partial string value of an unfinished parameter line.

    Args:
        line: A line that starts with "{" but did not parse.

    Returns:
        (key, partial_value) or None if the line is not a parameter line
        with a string value in progress.
    """
    match = _PARTIAL_PARAMETER_RE.search(line)
    if match is None:
        return None
    return match.group(1), _unescape(match.group(2))


def _is_partial_json(line: str) -> bool:
    return line.startswith("{") and not line.endswith("}")


def _is_pretty_printed(text: str) -> bool:
    """Detect objects spread over several physical lines."""
    if "\n" not in text:
        return False
    if "{\n" in text or "{ \n" in text:
        return True
    return any(line.strip() == "{" for line in text.split("\n"))


def _split_top_level(text: str, lo: int, hi: int) -> list[tuple[int, int]]:
    """Split text[lo:hi] into spans of top-level JSON objects and prose lines.

    Brace depth is tracked outside of JSON strings only. An object that
    never closes runs to hi.
    """
    spans: list[tuple[int, int]] = []

    def push(start: int, end: int) -> None:
        segment = text[start:end]
        stripped = segment.strip()
        if stripped:
            start += len(segment) - len(segment.lstrip())
            spans.append((start, start + len(stripped)))

    depth = 0
    in_string = escaped = False
    piece_start = lo
    for i in range(lo, hi):
        ch = text[i]
        if depth:
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    push(piece_start, i + 1)
                    piece_start = i + 1
        elif ch == "{":
            push(piece_start, i)
            piece_start = i
            depth = 1
        elif ch == "\n":
            push(piece_start, i)
            piece_start = i + 1
    push(piece_start, hi)
    return spans


def split_logical_lines(text: str) -> list[tuple[int, int]]:
    """Split a snapshot into spans, one per JSON object or prose line.

    Pretty-printed objects are reassembled across physical lines. In
    line-oriented text each physical line is scanned on its own, so one
    broken line cannot swallow the lines after it; back-to-back objects
    on one line are still split apart.

    Returns:
        (start, end) offsets into text, in document order.
    """
    if _is_pretty_printed(text):
        return _split_top_level(text, 0, len(text))

    spans: list[tuple[int, int]] = []
    pos = 0
    for line in text.split("\n"):
        spans.extend(_split_top_level(text, pos, pos + len(line)))
        pos += len(line) + 1
    return spans


@dataclass
class _Block:
    """Accumulates one function_call_start ... function_call_end run."""
    start: int
    end: int
    tool_name: str | None = None
    call_id: str | None = None
    description: str | None = None
    arguments: dict[str, Any] = field(default_factory=dict)
    closed: bool = False
    partial_tail: str | None = None


class JsonLinesInvocationMatcher:
    """Extracts function_call_start ... function_call_end runs.

    Starts and ends pair up by textual order: the protocol never opens a
    second call before the first one ends. A start that is followed by
    another start is left streaming.
    """

    syntax = "json_lines"

    def match(self, text: str, *, source_id: str = "") -> list[InvocationCandidate]:
        """Extract JSON-Lines invocation candidates in document order.

        Args:
            text: The normalized snapshot.
            source_id: Buffer identifier for synthesized identities.

        Returns:
            List of candidates, complete and streaming.
        """
        if not text or "{" not in text:
            return []

        blocks = self._collect_blocks(text)
        candidates: list[InvocationCandidate] = []
        for ordinal, block in enumerate(blocks):
            if not block.closed and block.partial_tail:
                recovered = recover_partial_parameter(block.partial_tail)
                if recovered and recovered[0] not in block.arguments:
                    block.arguments[recovered[0]] = recovered[1]

            identity = block.call_id or synthesize_identity(
                source_id, self.syntax, ordinal, block.tool_name
            )
            candidates.append(
                InvocationCandidate(
                    identity=identity,
                    tool_name=block.tool_name,
                    arguments=block.arguments,
                    raw_text=text[block.start:block.end],
                    syntax=self.syntax,
                    lifecycle=classify_markers(
                        tool_name=block.tool_name,
                        container_closed=True,
                        block_closed=block.closed,
                    ),
                    call_id=block.call_id,
                    offset=block.start,
                    description=block.description,
                    container_closed=True,
                    block_closed=block.closed,
                )
            )
        return candidates

    def _collect_blocks(self, text: str) -> list[_Block]:
        """Walk the logical lines and group them into blocks."""
        blocks: list[_Block] = []
        current: _Block | None = None

        for start, end in split_logical_lines(text):
            line = text[start:end]
            parsed = parse_json_line(line)

            if parsed is None:
                if not _is_partial_json(line):
                    continue
                LOGGER.debug("Skipping partial JSON line at offset %d", start)
                if current is None and _PARTIAL_START_RE.search(line):
                    current = self._block_from_partial_start(line, start, end)
                elif current is not None:
                    current.partial_tail = line
                    current.end = end
                continue

            match parsed:
                case StartLine(name=name, call_id=call_id):
                    if current is not None:
                        LOGGER.debug(
                            "function_call_start at offset %d before previous call ended",
                            start,
                        )
                        blocks.append(current)
                    current = _Block(start=start, end=end, tool_name=name, call_id=call_id)
                case DescriptionLine(text=description) if current is not None:
                    current.description = description
                    current.end = end
                case ParameterLine(key=key, value=value) if current is not None:
                    current.arguments[key] = value
                    current.end = end
                case EndLine() if current is not None:
                    current.closed = True
                    current.end = end
                    blocks.append(current)
                    current = None
                case _:
                    # Orphan line outside any call
                    pass

        if current is not None:
            blocks.append(current)
        return blocks

    @staticmethod
    def _block_from_partial_start(line: str, start: int, end: int) -> _Block:
        """Open a block from a start line that is still being written."""
        name = _PARTIAL_NAME_RE.search(line)
        call_id = _PARTIAL_CALL_ID_RE.search(line)
        return _Block(
            start=start,
            end=end,
            tool_name=name.group(1) if name else None,
            call_id=call_id.group(1).strip('"') if call_id else None,
        )


_DEFAULT_MATCHER = JsonLinesInvocationMatcher()


def match_json_lines(text: str, *, source_id: str = "") -> list[InvocationCandidate]:
    """Extract JSON-Lines invocation candidates from normalized text.

    Convenience wrapper around JsonLinesInvocationMatcher().match().
    """
    return _DEFAULT_MATCHER.match(text, source_id=source_id)
