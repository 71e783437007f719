"""
Print adapter for plain text display of tool invocation progress.

Provides simple, universal output that works in any Python environment
without dependencies on rich, IPython, or other display libraries.
"""
from .base import BaseAdapter, ToolState, ToolStatus


class PrintAdapter(BaseAdapter):
    """Plain text display of tool invocations.

    Outputs one line per status change using print(). Works universally
    in any Python environment - scripts, notebooks, REPL, etc.

    Example:
        from toolcall_stream_parser.adapters.print import PrintAdapter

        adapter = PrintAdapter()
        adapter.run(snapshots, executor=run_tool)

        # For custom snapshot processing:
        from toolcall_stream_parser import InvocationParser
        parser = InvocationParser()
        for snapshot in snapshots:
            adapter.update(parser.parse("msg-1", snapshot))
    """

    def __init__(
        self,
        *,
        show_tool_args: bool = True,
        max_content_preview: int = 200,
        verbose: bool = False,
    ):
        """Initialize the print adapter.

        Args:
            show_tool_args: Show tool arguments in tool status lines.
            max_content_preview: Max characters for result previews.
            verbose: If True, also print streaming progress and results.
        """
        super().__init__(
            show_tool_args=show_tool_args,
            max_content_preview=max_content_preview,
        )
        self._verbose = verbose
        # Last printed status per tool id (incremental output)
        self._last_rendered: dict[str, ToolStatus] = {}

    def render(self) -> None:
        """Print tools whose status changed since the last render."""
        for tool in self._display_items:
            if self._last_rendered.get(tool.id) == tool.status:
                continue
            self._last_rendered[tool.id] = tool.status
            if tool.status == ToolStatus.STREAMING and not self._verbose:
                continue
            self._print_tool(tool)

    def reset(self) -> None:
        """Reset state for a new buffer."""
        super().reset()
        self._last_rendered.clear()

    def _print_tool(self, tool: ToolState) -> None:
        """Print tool status."""
        status_str = self._get_status_str(tool.status)
        time_str = ""
        if tool.duration_ms:
            time_str = f" ({self.format_duration(tool.duration_ms)})"

        args_str = ""
        if self._show_tool_args and tool.args:
            args_str = f" {self.format_args(tool.args)}"

        print(f"{status_str} {tool.name or '?'}{args_str}{time_str}")

        if tool.status == ToolStatus.ERROR and tool.error_message:
            print(f"   Error: {tool.error_message}")
        elif tool.status == ToolStatus.SUCCESS and self._verbose:
            preview = str(tool.result)
            if len(preview) > self._max_content_preview:
                preview = preview[:self._max_content_preview] + "..."
            print(f"   -> {preview}")

    def _get_status_str(self, status: ToolStatus) -> str:
        """Get string representation of tool status."""
        status_map = {
            ToolStatus.STREAMING: "[~~~]",
            ToolStatus.PENDING: "[...]",
            ToolStatus.RUNNING: "[>>>]",
            ToolStatus.SUCCESS: "[ OK]",
            ToolStatus.ERROR: "[ERR]",
        }
        return status_map.get(status, "[???]")
