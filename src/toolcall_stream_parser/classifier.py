"""
Completeness classification and live peeking.

classify() decides whether a candidate is still streaming or complete.
peek() extracts light metadata (tool name, call id, block type) from a
snapshot using partial-content regexes, so a consumer can show progress
before an invocation closes. Neither function touches the ledger.
"""
import re

from .events import COMPLETE, STREAMING, InvocationCandidate, InvocationPeek, Lifecycle
from .normalize import extract_language_tag, normalize

_XML_CONTAINER_OPEN = "<function_calls>"
_XML_CONTAINER_CLOSE = "</function_calls>"
_XML_INVOKE_OPEN = "<invoke"
_XML_INVOKE_CLOSE = "</invoke>"

_XML_NAME_RE = re.compile(r'^<invoke\b[^>]*?\bname\s*=\s*"([^"]+)"')
_XML_CALL_ID_RE = re.compile(r'^<invoke\b[^>]*?\bcall_id\s*=\s*"([^"]+)"')
_XML_PARTIAL_TAG_RE = re.compile(r"<[^<>]*$")

_JSON_START_RE = re.compile(r'\{\s*"type"\s*:\s*"function_call_start"')
_JSON_END_RE = re.compile(r'"type"\s*:\s*"function_call_end"')
_JSON_PARAM_RE = re.compile(r'"type"\s*:\s*"(?:parameter|function_call_arg)"')
_JSON_NAME_RE = re.compile(r'"name"\s*:\s*"([^"]+)"')
_JSON_CALL_ID_RE = re.compile(r'"call_id"\s*:\s*(\d+(?=[\s,}])|"[^"]*")')
_JSON_DESCRIPTION_RE = re.compile(
    r'"type"\s*:\s*"description"[^}]*?"text"\s*:\s*"((?:[^"\\]|\\.)*)"'
)


def classify_markers(
    *,
    tool_name: str | None,
    container_closed: bool,
    block_closed: bool,
) -> Lifecycle:
    """Classify a block from the closing markers seen so far.

    A block is complete only when its container and its own closing
    marker were both seen and its tool name is known. A closed block
    without a name is a malformed fragment and never completes.
    """
    if tool_name and container_closed and block_closed:
        return COMPLETE
    return STREAMING


def classify(candidate: InvocationCandidate) -> Lifecycle:
    """Classify a candidate as "streaming" or "complete".

    Args:
        candidate: A candidate produced by any matcher.

    Returns:
        The lifecycle implied by the candidate's closing markers.
    """
    return classify_markers(
        tool_name=candidate.tool_name,
        container_closed=candidate.container_closed,
        block_closed=candidate.block_closed,
    )


def _peek_json(content: str, result: InvocationPeek) -> bool:
    """Fill result from JSON-Lines markers. Returns True if any were found."""
    starts = list(_JSON_START_RE.finditer(content))
    partial = any(
        line.strip().startswith("{") and not line.strip().endswith("}")
        for line in content.splitlines()
    )
    looks_like_json = '{"type"' in content or '{ "type"' in content

    if not starts and not (partial and looks_like_json):
        return False

    tail = content[starts[-1].start():] if starts else content
    result.has_function_calls = True
    result.detected_block_type = "json_lines"
    result.has_invoke = bool(starts)
    result.has_parameters = bool(_JSON_PARAM_RE.search(tail))
    result.has_closing_tags = bool(_JSON_END_RE.search(tail))
    result.is_complete = result.has_invoke and result.has_closing_tags
    result.partial_tag_detected = partial

    if starts:
        start_line = tail.split("\n", 1)[0]
        name = _JSON_NAME_RE.search(start_line)
        if name:
            result.tool_name = name.group(1)
        call_id = _JSON_CALL_ID_RE.search(start_line)
        if call_id:
            result.call_id = call_id.group(1).strip('"')

    description = _JSON_DESCRIPTION_RE.search(tail)
    if description:
        result.description = description.group(1)
    return True


def _peek_xml(content: str, result: InvocationPeek) -> bool:
    """Fill result from XML markers. Returns True if any were found."""
    container_at = content.rfind(_XML_CONTAINER_OPEN)
    invoke_at = content.rfind(_XML_INVOKE_OPEN)
    if container_at < 0 and invoke_at < 0:
        return False

    result.has_function_calls = True
    result.detected_block_type = "xml"
    result.has_invoke = invoke_at >= 0

    tail = content[max(container_at, 0):]
    result.has_parameters = "<parameter" in tail
    result.has_closing_tags = (
        container_at >= 0 and _XML_CONTAINER_CLOSE in content[container_at:]
    )

    invoke_closed = True
    if invoke_at >= 0:
        invoke_text = content[invoke_at:]
        invoke_closed = _XML_INVOKE_CLOSE in invoke_text
        name = _XML_NAME_RE.search(invoke_text)
        if name:
            result.tool_name = name.group(1)
        call_id = _XML_CALL_ID_RE.search(invoke_text)
        if call_id:
            result.call_id = call_id.group(1)

    result.is_complete = result.has_closing_tags and invoke_closed
    result.partial_tag_detected = bool(_XML_PARTIAL_TAG_RE.search(content))
    return True


def peek(text: str) -> InvocationPeek:
    """Describe the most recent invocation block in a snapshot.

    JSON-Lines markers are checked first, then the XML markers. The
    returned tool_name and call_id may be known long before the block
    completes; call_id doubles as the block's identity when present.

    Args:
        text: The raw snapshot text.

    Returns:
        An InvocationPeek; all flags are False when nothing was found.
    """
    result = InvocationPeek()
    if not text or not isinstance(text, str):
        return result

    language_tag, _ = extract_language_tag(text)
    result.language_tag = language_tag
    content = normalize(text)

    if '"type"' in content and _peek_json(content, result):
        return result
    if "<" in content:
        _peek_xml(content, result)
    return result
