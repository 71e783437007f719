"""
Matcher for the XML-like tagged invocation syntax.

    <function_calls>
    <invoke name="read_file" call_id="1">
    <parameter name="path">/tmp/test.txt</parameter>
    </invoke>
    </function_calls>

The grammar is intentionally loose and scanned with regexes and string
searches rather than an XML parser: parameter values may contain raw
markup, and every closing tag may still be missing while the model is
streaming.
"""
import re
from typing import Any

from ..classifier import classify_markers
from ..events import InvocationCandidate
from .base import coerce_value, strip_partial_suffix, synthesize_identity

CONTAINER_OPEN = "<function_calls>"
CONTAINER_CLOSE = "</function_calls>"
INVOKE_CLOSE = "</invoke>"
PARAMETER_CLOSE = "</parameter>"
CDATA_OPEN = "<![CDATA["
CDATA_CLOSE = "]]>"

_INVOKE_OPEN_RE = re.compile(r"<invoke\b(?P<attrs>[^>]*)(?P<end>>)?")
_PARAMETER_OPEN_RE = re.compile(r"""<parameter\s+name\s*=\s*(["'])(?P<name>[^"']*)\1[^>]*>""")
_ATTR_RE = re.compile(r"""\b(?P<key>[\w:-]+)\s*=\s*(["'])(?P<value>.*?)\2""", re.DOTALL)


def _parse_attributes(attrs: str) -> dict[str, str]:
    """Read key="value" pairs from an opening tag. Unterminated values are skipped."""
    return {m.group("key"): m.group("value") for m in _ATTR_RE.finditer(attrs)}


def unwrap_cdata(value: str) -> str:
    """Unwrap a CDATA section and trim the inner text.

    A CDATA section that is still streaming (no "]]>" yet) is unwrapped
    up to the end of the text. Values without CDATA are only trimmed.
    """
    stripped = value.strip()
    if not stripped.startswith(CDATA_OPEN):
        return stripped

    inner = stripped[len(CDATA_OPEN):]
    if inner.endswith(CDATA_CLOSE):
        inner = inner[:-len(CDATA_CLOSE)]
    else:
        inner = strip_partial_suffix(inner, CDATA_CLOSE)
    return inner.strip()


def _iter_containers(text: str):
    """Yield (body_start, body_end, closed) for each <function_calls> block."""
    pos = 0
    while True:
        start = text.find(CONTAINER_OPEN, pos)
        if start < 0:
            return
        body_start = start + len(CONTAINER_OPEN)
        end = text.find(CONTAINER_CLOSE, body_start)
        if end < 0:
            yield body_start, len(text), False
            return
        yield body_start, end, True
        pos = end + len(CONTAINER_CLOSE)


def _parse_parameters(body: str) -> dict[str, Any]:
    """Extract parameters from an invocation body, partial values included."""
    arguments: dict[str, Any] = {}
    pos = 0
    while True:
        match = _PARAMETER_OPEN_RE.search(body, pos)
        if match is None:
            break
        value_start = match.end()
        close = body.find(PARAMETER_CLOSE, value_start)
        if close < 0:
            raw_value = strip_partial_suffix(body[value_start:], PARAMETER_CLOSE)
            pos = len(body)
        else:
            raw_value = body[value_start:close]
            pos = close + len(PARAMETER_CLOSE)

        arguments[match.group("name")] = coerce_value(unwrap_cdata(raw_value))
    return arguments


class XmlInvocationMatcher:
    """Extracts <invoke> blocks from <function_calls> containers.

    A candidate is complete only when both its </invoke> and the
    enclosing </function_calls> were seen. Unclosed containers run to
    the end of the buffer, unclosed invocations to the end of their
    container (or the next <invoke>), and unclosed parameters to the end
    of their invocation.
    """

    syntax = "xml"

    def match(self, text: str, *, source_id: str = "") -> list[InvocationCandidate]:
        """Extract XML invocation candidates in document order.

        Args:
            text: The normalized snapshot.
            source_id: Buffer identifier for synthesized identities.

        Returns:
            List of candidates, complete and streaming.
        """
        if not text or CONTAINER_OPEN not in text:
            return []

        candidates: list[InvocationCandidate] = []
        for body_start, body_end, container_closed in _iter_containers(text):
            candidates.extend(
                self._match_container(
                    text, body_start, body_end, container_closed,
                    source_id=source_id,
                    ordinal_base=len(candidates),
                )
            )
        return candidates

    def _match_container(
        self,
        text: str,
        body_start: int,
        body_end: int,
        container_closed: bool,
        *,
        source_id: str,
        ordinal_base: int,
    ) -> list[InvocationCandidate]:
        """Extract every invocation inside one container body."""
        candidates: list[InvocationCandidate] = []
        opens = list(_INVOKE_OPEN_RE.finditer(text, body_start, body_end))

        for index, match in enumerate(opens):
            start = match.start()
            limit = opens[index + 1].start() if index + 1 < len(opens) else body_end

            close = text.find(INVOKE_CLOSE, start, limit)
            block_closed = close >= 0
            end = close + len(INVOKE_CLOSE) if block_closed else limit

            attributes = _parse_attributes(match.group("attrs") or "")
            # The name is only trusted once the opening tag is complete.
            tag_complete = match.group("end") is not None
            tool_name = attributes.get("name") if tag_complete else None
            call_id = attributes.get("call_id") if tag_complete else None

            arguments: dict[str, Any] = {}
            if tag_complete:
                body = text[match.end():close if block_closed else limit]
                if not block_closed:
                    body = strip_partial_suffix(body, INVOKE_CLOSE)
                arguments = _parse_parameters(body)

            identity = call_id or synthesize_identity(
                source_id, self.syntax, ordinal_base + index, tool_name
            )
            candidates.append(
                InvocationCandidate(
                    identity=identity,
                    tool_name=tool_name,
                    arguments=arguments,
                    raw_text=text[start:end],
                    syntax=self.syntax,
                    lifecycle=classify_markers(
                        tool_name=tool_name,
                        container_closed=container_closed,
                        block_closed=block_closed,
                    ),
                    call_id=call_id,
                    offset=start,
                    container_closed=container_closed,
                    block_closed=block_closed,
                )
            )
        return candidates


_DEFAULT_MATCHER = XmlInvocationMatcher()


def match_xml(text: str, *, source_id: str = "") -> list[InvocationCandidate]:
    """Extract XML invocation candidates from normalized text.

    Convenience wrapper around XmlInvocationMatcher().match().
    """
    return _DEFAULT_MATCHER.match(text, source_id=source_id)
