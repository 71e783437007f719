"""Tests for the dict-based convenience functions."""
import json

import pytest

from toolcall_stream_parser import InvocationParser
from toolcall_stream_parser.compat import (
    astream_tool_calls,
    extract_tool_calls,
    stream_tool_calls,
)

from .fixtures.snapshots import (
    MIXED,
    XML_COMPLETE,
    XML_STREAMING,
    aprefixes,
    prefixes,
)


class TestExtractToolCalls:
    def test_complete_call(self):
        calls = extract_tool_calls(XML_COMPLETE)

        assert calls == [{
            "id": "1",
            "tool_name": "read_file",
            "arguments": {"path": "/tmp/test.txt"},
            "raw_text": calls[0]["raw_text"],
            "format": "xml",
            "status": "complete",
        }]

    def test_streaming_call_included(self):
        calls = extract_tool_calls(XML_STREAMING)
        assert [c["status"] for c in calls] == ["streaming"]

    def test_stateless(self):
        assert extract_tool_calls(XML_COMPLETE) == extract_tool_calls(XML_COMPLETE)

    def test_mixed_formats(self):
        calls = extract_tool_calls(MIXED)
        assert [c["format"] for c in calls] == ["xml", "json_lines"]

    def test_json_serializable(self):
        json.dumps(extract_tool_calls(MIXED))


class TestStreamToolCalls:
    def test_completions_only(self):
        updates = list(stream_tool_calls(prefixes(XML_COMPLETE, 5)))

        assert len(updates) == 1
        assert updates[0]["status"] == "complete"
        assert updates[0]["invocation"]["tool_name"] == "read_file"

    def test_include_streaming(self):
        updates = list(stream_tool_calls([XML_STREAMING, XML_COMPLETE], include_streaming=True))

        assert [u["status"] for u in updates] == ["streaming", "complete"]
        assert updates[0]["candidates"][0]["tool_name"] == "read_file"

    def test_shared_parser(self):
        parser = InvocationParser()
        list(stream_tool_calls([XML_COMPLETE], parser=parser, buffer_id="m"))
        assert list(stream_tool_calls([XML_COMPLETE], parser=parser, buffer_id="m")) == []


class TestAstreamToolCalls:
    @pytest.mark.asyncio
    async def test_async_stream(self):
        updates = [u async for u in astream_tool_calls(aprefixes(MIXED, 11))]
        assert [u["invocation"]["tool_name"] for u in updates] == ["a", "b"]
