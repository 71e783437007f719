"""
Main InvocationParser class for extracting tool invocations from text.

This is the primary interface for the toolcall-stream-parser package.
"""
import logging
import threading
from typing import AsyncIterator, Iterable, Iterator

from .events import InvocationCandidate, ParsedInvocation, ParseResult
from .extractors.base import InvocationMatcher
from .extractors.jsonlines import JsonLinesInvocationMatcher
from .extractors.xml import XmlInvocationMatcher
from .ledger import Ledger
from .normalize import normalize

LOGGER = logging.getLogger(__name__)

_BUILTIN_MATCHERS = {
    "xml": XmlInvocationMatcher,
    "json_lines": JsonLinesInvocationMatcher,
}


def _drop_nested(candidates: list[InvocationCandidate]) -> list[InvocationCandidate]:
    """Drop candidates whose text lies inside another candidate.

    A tool call written inside another call's argument (e.g. JSON-Lines
    in an XML CDATA value) is data, not an invocation.

    Args:
        candidates: Candidates sorted by offset, longest first on ties.
    """
    kept: list[InvocationCandidate] = []
    for candidate in candidates:
        end = candidate.offset + len(candidate.raw_text)
        outer = next(
            (k for k in kept if k.offset <= candidate.offset and end <= k.offset + len(k.raw_text)),
            None,
        )
        if outer is not None:
            LOGGER.debug(
                "Ignoring %s candidate %r nested in %r",
                candidate.syntax, candidate.identity, outer.identity,
            )
            continue
        kept.append(candidate)
    return kept


class InvocationParser:
    """Incremental tool-call extractor for growing text buffers.

    Feed it the full current text of a buffer every time the buffer
    grows. Each completed invocation is returned exactly once, no matter
    how many more snapshots of the same buffer follow.

    Example:
        parser = InvocationParser()

        for snapshot in snapshots:
            result = parser.parse("msg-1", snapshot)
            for invocation in result.completed:
                execute(invocation.tool_name, invocation.arguments)
            for candidate in result.streaming:
                show_progress(candidate.tool_name, candidate.arguments)
    """

    def __init__(
        self,
        *,
        syntaxes: Iterable[str] = ("xml", "json_lines"),
        skip_tools: list[str] | None = None,
        normalize_input: bool = True,
    ):
        """Initialize the parser.

        Args:
            syntaxes: Built-in micro-syntaxes to recognise. Any of
                "xml" and "json_lines".
            skip_tools: Tool names to drop entirely (never emitted,
                never reported as streaming).
            normalize_input: If True, strip leading code fences,
                language labels and "Copy code" text before matching.

        Raises:
            ValueError: If syntaxes is empty or names an unknown syntax.
        """
        syntaxes = self._validate_syntaxes(syntaxes)

        self._skip_tools = set(skip_tools or [])
        self._normalize_input = normalize_input
        self._matchers: dict[str, InvocationMatcher] = {}
        self._ledgers: dict[str, Ledger] = {}
        self._lock = threading.Lock()

        for syntax in syntaxes:
            self.register_matcher(_BUILTIN_MATCHERS[syntax]())

    @staticmethod
    def _validate_syntaxes(syntaxes: Iterable[str]) -> list[str]:
        """Validate the syntaxes parameter."""
        if isinstance(syntaxes, str):
            syntaxes = [syntaxes]
        result = list(syntaxes)
        if not result:
            raise ValueError("syntaxes must name at least one syntax.")
        for syntax in result:
            if syntax not in _BUILTIN_MATCHERS:
                raise ValueError(
                    f"Unsupported syntax: {syntax!r}. "
                    f"Must be one of {sorted(_BUILTIN_MATCHERS)}."
                )
        return result

    def register_matcher(self, matcher: InvocationMatcher) -> None:
        """Register a matcher for an additional micro-syntax.

        A matcher registered under an existing syntax name replaces the
        previous one.

        Args:
            matcher: An object implementing the InvocationMatcher protocol.

        Raises:
            ValueError: If the object does not implement the protocol.
        """
        if not isinstance(matcher, InvocationMatcher):
            raise ValueError(
                f"{type(matcher).__name__} does not implement InvocationMatcher."
            )
        self._matchers[matcher.syntax] = matcher

    def unregister_matcher(self, syntax: str) -> None:
        """Remove a registered matcher.

        Args:
            syntax: The syntax name to unregister.
        """
        self._matchers.pop(syntax, None)

    @property
    def syntaxes(self) -> list[str]:
        """Names of the registered syntaxes."""
        return list(self._matchers)

    def ledger(self, buffer_id: str) -> Ledger:
        """Get (or create) the ledger for a buffer."""
        with self._lock:
            ledger = self._ledgers.get(buffer_id)
            if ledger is None:
                ledger = Ledger(buffer_id)
                self._ledgers[buffer_id] = ledger
            return ledger

    def match(self, raw_snapshot: str, *, buffer_id: str = "") -> list[InvocationCandidate]:
        """Run every matcher over a snapshot without touching any ledger.

        Args:
            raw_snapshot: The full current text of the buffer.
            buffer_id: Used for synthesized identities only.

        Returns:
            All candidates, complete and streaming, ordered by the
            position of their opening marker.
        """
        if not isinstance(raw_snapshot, str):
            return []

        text = normalize(raw_snapshot) if self._normalize_input else raw_snapshot
        candidates: list[InvocationCandidate] = []

        for syntax, matcher in list(self._matchers.items()):
            try:
                candidates.extend(matcher.match(text, source_id=buffer_id))
            except Exception:
                # Graceful degradation - other matchers still run
                LOGGER.warning(
                    "Matcher %r failed on buffer %r", syntax, buffer_id, exc_info=True
                )

        candidates.sort(key=lambda c: (c.offset, -len(c.raw_text)))
        candidates = _drop_nested(candidates)
        return [c for c in candidates if c.tool_name not in self._skip_tools]

    def parse(self, buffer_id: str, raw_snapshot: str) -> ParseResult:
        """Parse one snapshot of a growing buffer.

        This is the main entry point. It is safe to call unconditionally
        on every buffer-growth notification: invocations that were
        already emitted for this buffer are never returned again.

        Args:
            buffer_id: Identifies one logical growing buffer (e.g. one
                message). Ledger state is scoped to it.
            raw_snapshot: The full current text of the buffer.

        Returns:
            ParseResult with the newly completed invocations and the
            candidates still streaming.

        Example:
            result = parser.parse("msg-1", text)
            for invocation in result.completed:
                print(invocation.tool_name, invocation.arguments)
        """
        candidates = self.match(raw_snapshot, buffer_id=buffer_id)
        ledger = self.ledger(buffer_id)
        completed, streaming = ledger.update(candidates)
        return ParseResult(
            buffer_id=buffer_id,
            completed=completed,
            streaming=streaming,
        )

    def streaming(self, buffer_id: str) -> list[InvocationCandidate]:
        """Candidates still streaming as of the last parse of a buffer.

        Read-only accessor for UI purposes.
        """
        with self._lock:
            ledger = self._ledgers.get(buffer_id)
        return ledger.streaming() if ledger is not None else []

    def iter_invocations(
        self, buffer_id: str, snapshots: Iterable[str]
    ) -> Iterator[ParsedInvocation]:
        """Parse a sequence of snapshots and yield each invocation once.

        Args:
            buffer_id: The buffer the snapshots belong to.
            snapshots: Successive full-text snapshots.

        Yields:
            ParsedInvocation objects in completion order.

        Example:
            for invocation in parser.iter_invocations("msg-1", snapshots):
                execute(invocation)
        """
        for snapshot in snapshots:
            yield from self.parse(buffer_id, snapshot).completed

    async def aiter_invocations(
        self, buffer_id: str, snapshots: AsyncIterator[str]
    ) -> AsyncIterator[ParsedInvocation]:
        """Async version of iter_invocations().

        Args:
            buffer_id: The buffer the snapshots belong to.
            snapshots: Async iterator of successive full-text snapshots.

        Yields:
            ParsedInvocation objects in completion order.
        """
        async for snapshot in snapshots:
            for invocation in self.parse(buffer_id, snapshot).completed:
                yield invocation

    def reset(self, buffer_id: str | None = None) -> None:
        """Clear ledger state.

        Call this when a buffer is reused for a new conversation.

        Args:
            buffer_id: The buffer to clear. If None, every buffer is cleared.
        """
        with self._lock:
            if buffer_id is None:
                self._ledgers.clear()
                LOGGER.debug("Reset all ledgers")
                return
            ledger = self._ledgers.pop(buffer_id, None)
        if ledger is not None:
            ledger.reset()
