"""Tests for PrintAdapter and the shared adapter behaviour."""
import pytest

from toolcall_stream_parser import InvocationParser
from toolcall_stream_parser.adapters.base import BaseAdapter, ToolStatus
from toolcall_stream_parser.adapters.print import PrintAdapter

from .fixtures.snapshots import (
    JSON_LINES_COMPLETE,
    MIXED,
    XML_COMPLETE,
    XML_STREAMING,
    aprefixes,
    prefixes,
)


def read_file(name, arguments):
    return f"contents of {arguments['path']}"


class TestPrintAdapterInit:
    def test_default_options(self):
        adapter = PrintAdapter()
        assert adapter._show_tool_args is True
        assert adapter._max_content_preview == 200
        assert adapter._verbose is False

    def test_custom_options(self):
        adapter = PrintAdapter(
            show_tool_args=False,
            max_content_preview=100,
            verbose=True,
        )
        assert adapter._show_tool_args is False
        assert adapter._max_content_preview == 100
        assert adapter._verbose is True


class TestPrintAdapterHelpers:
    def setup_method(self):
        self.adapter = PrintAdapter()

    @pytest.mark.parametrize("status,expected", [
        (ToolStatus.STREAMING, "[~~~]"),
        (ToolStatus.PENDING, "[...]"),
        (ToolStatus.RUNNING, "[>>>]"),
        (ToolStatus.SUCCESS, "[ OK]"),
        (ToolStatus.ERROR, "[ERR]"),
    ])
    def test_get_status_str(self, status, expected):
        assert self.adapter._get_status_str(status) == expected

    def test_format_duration(self):
        assert BaseAdapter.format_duration(None) == ""
        assert BaseAdapter.format_duration(250) == "250ms"
        assert BaseAdapter.format_duration(1500) == "1.5s"

    def test_format_args(self):
        assert BaseAdapter.format_args({}) == ""
        assert BaseAdapter.format_args({"a": 1, "b": "x"}) == "a=1, b=x"
        assert BaseAdapter.format_args({"a": "y" * 100}).endswith("...")


class TestPrintAdapterRun:
    def test_tracks_without_executor(self, capsys):
        adapter = PrintAdapter()
        tools = adapter.run([XML_STREAMING, XML_COMPLETE])

        assert len(tools) == 1
        assert tools[0].status == ToolStatus.PENDING
        assert tools[0].id == "1"
        assert "[...] read_file path=/tmp/test.txt" in capsys.readouterr().out

    def test_executes_each_invocation_once(self, capsys):
        calls = []
        results = []

        def executor(name, arguments):
            calls.append((name, arguments))
            return read_file(name, arguments)

        tools = PrintAdapter().run(
            prefixes(XML_COMPLETE, 3),
            executor=executor,
            result_sink=results.append,
        )

        assert calls == [("read_file", {"path": "/tmp/test.txt"})]
        assert tools[0].status == ToolStatus.SUCCESS
        assert tools[0].result == "contents of /tmp/test.txt"
        assert results == [
            '<function_result call_id="1">\ncontents of /tmp/test.txt\n</function_result>'
        ]
        assert "[ OK] read_file" in capsys.readouterr().out

    def test_executor_exception_recorded(self, capsys):
        results = []

        def executor(name, arguments):
            raise RuntimeError("boom")

        tools = PrintAdapter().run([XML_COMPLETE], executor=executor, result_sink=results.append)

        assert tools[0].status == ToolStatus.ERROR
        assert tools[0].error_message == "boom"
        assert results == [
            '<function_result call_id="1" status="error">\nError: boom\n</function_result>'
        ]
        out = capsys.readouterr().out
        assert "[ERR] read_file" in out
        assert "Error: boom" in out

    def test_error_result_detected(self):
        tools = PrintAdapter().run(
            [XML_COMPLETE],
            executor=lambda name, arguments: {"error": "not found"},
        )
        assert tools[0].status == ToolStatus.ERROR
        assert tools[0].error_message == "not found"
        assert "status=\"error\"" in tools[0].function_result

    def test_synthesized_identity_used_without_call_id(self):
        results = []
        text = '{"type":"function_call_start","name":"t"}{"type":"function_call_end"}'
        PrintAdapter().run([text], buffer_id="m", executor=lambda n, a: "ok", result_sink=results.append)
        assert results == ['<function_result call_id="m:json_lines:0:t">\nok\n</function_result>']

    def test_mixed_order(self):
        tools = PrintAdapter().run([MIXED], executor=lambda n, a: n)
        assert [t.name for t in tools] == ["a", "b"]
        assert all(t.status == ToolStatus.SUCCESS for t in tools)

    def test_custom_parser(self):
        parser = InvocationParser(skip_tools=["read_file"])
        assert PrintAdapter().run([XML_COMPLETE], parser=parser) == []

    def test_verbose_shows_streaming(self, capsys):
        PrintAdapter(verbose=True).run([XML_STREAMING])
        assert "[~~~] read_file path=/tmp/te" in capsys.readouterr().out

    def test_quiet_hides_streaming(self, capsys):
        PrintAdapter().run([XML_STREAMING])
        assert capsys.readouterr().out == ""

    def test_hide_args(self, capsys):
        PrintAdapter(show_tool_args=False).run([XML_COMPLETE])
        out = capsys.readouterr().out
        assert "[...] read_file" in out
        assert "path=" not in out

    def test_reset_between_runs(self):
        adapter = PrintAdapter()
        adapter.run([XML_COMPLETE])
        assert len(adapter.run([JSON_LINES_COMPLETE])) == 1


class TestPrintAdapterArun:
    @pytest.mark.asyncio
    async def test_async_executor(self):
        results = []

        async def executor(name, arguments):
            return read_file(name, arguments)

        tools = await PrintAdapter().arun(
            aprefixes(XML_COMPLETE, 9),
            executor=executor,
            result_sink=results.append,
        )
        assert tools[0].status == ToolStatus.SUCCESS
        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_sync_iterable_and_executor(self):
        tools = await PrintAdapter().arun([XML_COMPLETE], executor=read_file)
        assert tools[0].result == "contents of /tmp/test.txt"

    @pytest.mark.asyncio
    async def test_async_executor_exception(self):
        async def executor(name, arguments):
            raise ValueError("bad input")

        tools = await PrintAdapter().arun([XML_COMPLETE], executor=executor)
        assert tools[0].status == ToolStatus.ERROR
        assert tools[0].error_message == "bad input"
