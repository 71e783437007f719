"""
Base adapter class for consuming extracted tool invocations.

Provides shared state tracking, tool execution and result formatting
that can be reused by adapter implementations for different
environments.
"""
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator, Callable, Iterable

from ..events import InvocationCandidate, ParsedInvocation, ParseResult
from ..parser import InvocationParser
from ..results import detect_tool_error, format_function_result

LOGGER = logging.getLogger(__name__)

ToolExecutor = Callable[[str, dict[str, Any]], Any]
ResultSink = Callable[[str], None]


class ToolStatus(Enum):
    """Status of a tool invocation in its lifecycle."""
    STREAMING = "streaming"
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class ToolState:
    """Tracks the state of a single tool invocation."""
    id: str
    name: str | None
    args: dict[str, Any]
    status: ToolStatus = ToolStatus.STREAMING
    call_id: str | None = None
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime | None = None
    result: Any = None
    error_message: str | None = None
    function_result: str | None = None

    @property
    def duration_ms(self) -> float | None:
        """Calculate duration in milliseconds."""
        if self.end_time is None:
            return None
        delta = self.end_time - self.start_time
        return delta.total_seconds() * 1000


class BaseAdapter(ABC):
    """Base class for invocation consumers.

    Provides shared functionality for:
    - State tracking (streaming, pending, running, finished tools)
    - Executing each completed invocation exactly once
    - Formatting results for the result sink
    - Run loop over a sequence of snapshots

    Subclasses must implement:
    - render(): Display the current state

    Example:
        from toolcall_stream_parser.adapters.print import PrintAdapter

        adapter = PrintAdapter()
        adapter.run(
            snapshots,
            executor=lambda name, args: tools[name](**args),
            result_sink=chat_input.append,
        )
    """

    def __init__(
        self,
        *,
        show_tool_args: bool = True,
        max_content_preview: int = 200,
    ):
        """Initialize the adapter.

        Args:
            show_tool_args: Show tool arguments in tool displays.
            max_content_preview: Max characters for result previews.
        """
        self._show_tool_args = show_tool_args
        self._max_content_preview = max_content_preview

        # Chronological list of tool states
        self._display_items: list[ToolState] = []
        # Maps invocation identity to index in _display_items
        self._tool_indices: dict[str, int] = {}

    @property
    def tools(self) -> list[ToolState]:
        """All tracked tool states, in the order they were first seen."""
        return list(self._display_items)

    def reset(self) -> None:
        """Reset state for a new buffer."""
        self._display_items.clear()
        self._tool_indices.clear()

    def run(
        self,
        snapshots: Iterable[str],
        *,
        buffer_id: str = "default",
        parser: InvocationParser | None = None,
        executor: ToolExecutor | None = None,
        result_sink: ResultSink | None = None,
    ) -> list[ToolState]:
        """Parse snapshots, execute completed invocations and render progress.

        Args:
            snapshots: Successive full-text snapshots of one buffer.
            buffer_id: The buffer the snapshots belong to.
            parser: Optional pre-configured InvocationParser.
            executor: Called as executor(tool_name, arguments) once per
                completed invocation. If None, invocations are only
                tracked as pending.
            result_sink: Receives the formatted <function_result> text
                of every executed invocation.

        Returns:
            The final tool states.
        """
        self.reset()
        parser = parser or InvocationParser()

        for snapshot in snapshots:
            result = parser.parse(buffer_id, snapshot)
            self.update(result)
            if executor is None:
                continue
            for invocation in result.completed:
                self.execute(invocation, executor, result_sink=result_sink)

        return self.tools

    async def arun(
        self,
        snapshots: AsyncIterator[str] | Iterable[str],
        *,
        buffer_id: str = "default",
        parser: InvocationParser | None = None,
        executor: ToolExecutor | None = None,
        result_sink: ResultSink | None = None,
    ) -> list[ToolState]:
        """Async version of run().

        Accepts an async or a plain iterator of snapshots, and an
        executor that returns either a value or an awaitable.
        """
        self.reset()
        parser = parser or InvocationParser()

        async def _iterate() -> AsyncIterator[str]:
            if hasattr(snapshots, "__aiter__"):
                async for item in snapshots:
                    yield item
            else:
                for item in snapshots:
                    yield item

        async for snapshot in _iterate():
            result = parser.parse(buffer_id, snapshot)
            self.update(result)
            if executor is None:
                continue
            for invocation in result.completed:
                await self.aexecute(invocation, executor, result_sink=result_sink)

        return self.tools

    def update(self, result: ParseResult) -> None:
        """Update state with the outcome of one parse call.

        Streaming tools that no longer appear in the snapshot are
        dropped; their identity was provisional.

        Args:
            result: A ParseResult from InvocationParser.parse().
        """
        live = {c.identity for c in result.streaming}
        live.update(inv.identity for inv in result.completed)
        self._prune_streaming(live)

        for candidate in result.streaming:
            self._track_streaming(candidate)
        for invocation in result.completed:
            state = self._state_for(invocation)
            state.status = ToolStatus.PENDING
        self.render()

    def execute(
        self,
        invocation: ParsedInvocation,
        executor: ToolExecutor,
        *,
        result_sink: ResultSink | None = None,
    ) -> ToolState:
        """Execute one invocation and record the outcome.

        Exceptions raised by the executor are recorded as tool errors.

        Args:
            invocation: The completed invocation.
            executor: Called as executor(tool_name, arguments).
            result_sink: Receives the formatted <function_result> text.

        Returns:
            The updated ToolState.
        """
        state = self._start(invocation)
        try:
            output = executor(invocation.tool_name, invocation.arguments)
        except Exception as exc:
            LOGGER.debug("Tool %r raised", invocation.tool_name, exc_info=True)
            self._finish_error(state, str(exc) or type(exc).__name__)
        else:
            self._finish(state, output)
        return self._deliver(state, result_sink)

    async def aexecute(
        self,
        invocation: ParsedInvocation,
        executor: ToolExecutor,
        *,
        result_sink: ResultSink | None = None,
    ) -> ToolState:
        """Async version of execute(). The executor may be a coroutine function."""
        state = self._start(invocation)
        try:
            output = executor(invocation.tool_name, invocation.arguments)
            if inspect.isawaitable(output):
                output = await output
        except Exception as exc:
            LOGGER.debug("Tool %r raised", invocation.tool_name, exc_info=True)
            self._finish_error(state, str(exc) or type(exc).__name__)
        else:
            self._finish(state, output)
        return self._deliver(state, result_sink)

    def _prune_streaming(self, live: set[str]) -> None:
        """Forget streaming states whose identity is not in live."""
        kept = [
            state for state in self._display_items
            if state.status != ToolStatus.STREAMING or state.id in live
        ]
        if len(kept) != len(self._display_items):
            self._display_items = kept
            self._tool_indices = {state.id: i for i, state in enumerate(kept)}

    def _track_streaming(self, candidate: InvocationCandidate) -> None:
        """Create or refresh the state of a still-streaming candidate."""
        if candidate.identity in self._tool_indices:
            state = self._display_items[self._tool_indices[candidate.identity]]
            state.name = candidate.tool_name or state.name
            state.args = dict(candidate.arguments)
            return

        self._tool_indices[candidate.identity] = len(self._display_items)
        self._display_items.append(
            ToolState(
                id=candidate.identity,
                name=candidate.tool_name,
                args=dict(candidate.arguments),
                call_id=candidate.call_id,
            )
        )

    def _state_for(self, invocation: ParsedInvocation) -> ToolState:
        """Get or create the state for a completed invocation."""
        if invocation.identity in self._tool_indices:
            state = self._display_items[self._tool_indices[invocation.identity]]
        else:
            state = ToolState(id=invocation.identity, name=invocation.tool_name, args={})
            self._tool_indices[invocation.identity] = len(self._display_items)
            self._display_items.append(state)

        state.name = invocation.tool_name
        state.args = dict(invocation.arguments)
        state.call_id = invocation.call_id
        return state

    def _start(self, invocation: ParsedInvocation) -> ToolState:
        state = self._state_for(invocation)
        state.status = ToolStatus.RUNNING
        state.start_time = datetime.now()
        self.render()
        return state

    def _finish(self, state: ToolState, output: Any) -> None:
        is_error, error_message = detect_tool_error(output)
        if is_error:
            self._finish_error(state, error_message or "Unknown error")
            state.result = output
            return

        state.end_time = datetime.now()
        state.status = ToolStatus.SUCCESS
        state.result = output
        state.function_result = format_function_result(state.call_id or state.id, output)

    def _finish_error(self, state: ToolState, message: str) -> None:
        state.end_time = datetime.now()
        state.status = ToolStatus.ERROR
        state.error_message = message
        state.function_result = format_function_result(
            state.call_id or state.id, message, status="error"
        )

    def _deliver(self, state: ToolState, result_sink: ResultSink | None) -> ToolState:
        if result_sink is not None and state.function_result is not None:
            result_sink(state.function_result)
        self.render()
        return state

    # Helper methods for subclasses

    @staticmethod
    def format_duration(duration_ms: float | None) -> str:
        """Format duration for display."""
        if duration_ms is None:
            return ""
        if duration_ms < 1000:
            return f"{duration_ms:.0f}ms"
        return f"{duration_ms / 1000:.1f}s"

    @staticmethod
    def format_args(args: dict[str, Any], max_value_len: int = 30, max_total_len: int = 40) -> str:
        """Format tool arguments for display."""
        if not args:
            return ""
        parts = []
        for key, value in args.items():
            value_str = str(value)
            if len(value_str) > max_value_len:
                value_str = value_str[:max_value_len - 3] + "..."
            parts.append(f"{key}={value_str}")
        result = ", ".join(parts)
        if len(result) > max_total_len:
            result = result[:max_total_len - 3] + "..."
        return result

    # Abstract methods for subclasses to implement

    @abstractmethod
    def render(self) -> None:
        """Render the current state to the output.

        Subclasses must implement this to display the tool states in
        self._display_items.
        """
        pass
