"""Tests for the XML-like tagged syntax matcher."""
import pytest

from toolcall_stream_parser.extractors.base import InvocationMatcher, synthesize_identity
from toolcall_stream_parser.extractors.xml import (
    XmlInvocationMatcher,
    match_xml,
    unwrap_cdata,
)

from .fixtures.snapshots import XML_CDATA, XML_COMPLETE, XML_MULTI, XML_STREAMING


class TestUnwrapCdata:
    def test_plain_value_is_trimmed(self):
        assert unwrap_cdata("  hello \n") == "hello"

    def test_cdata_unwrapped(self):
        assert unwrap_cdata("<![CDATA[a < b]]>") == "a < b"

    def test_streaming_cdata_unwrapped(self):
        assert unwrap_cdata("<![CDATA[if (a < b") == "if (a < b"

    def test_partial_cdata_close_dropped(self):
        assert unwrap_cdata("<![CDATA[x]]") == "x"


class TestXmlInvocationMatcher:
    def test_implements_protocol(self):
        assert isinstance(XmlInvocationMatcher(), InvocationMatcher)

    def test_complete_invocation(self):
        candidates = match_xml(XML_COMPLETE)

        assert len(candidates) == 1
        candidate = candidates[0]
        assert candidate.identity == "1"
        assert candidate.call_id == "1"
        assert candidate.tool_name == "read_file"
        assert candidate.arguments == {"path": "/tmp/test.txt"}
        assert candidate.syntax == "xml"
        assert candidate.lifecycle == "complete"
        assert candidate.raw_text.startswith("<invoke")
        assert candidate.raw_text.endswith("</invoke>")

    def test_streaming_invocation(self):
        candidates = match_xml(XML_STREAMING)

        assert len(candidates) == 1
        candidate = candidates[0]
        assert candidate.lifecycle == "streaming"
        assert candidate.tool_name == "read_file"
        assert candidate.arguments == {"path": "/tmp/te"}
        assert candidate.container_closed is False
        assert candidate.block_closed is False

    def test_cdata_parameter(self):
        candidates = match_xml(XML_CDATA)
        assert candidates[0].arguments == {"expr": "a < b"}

    def test_values_are_coerced(self):
        text = (
            '<function_calls><invoke name="t" call_id="1">'
            '<parameter name="n">5</parameter>'
            '<parameter name="flag">true</parameter>'
            '<parameter name="obj">{"a": [1, 2]}</parameter>'
            '<parameter name="nan">NaN</parameter>'
            "</invoke></function_calls>"
        )
        arguments = match_xml(text)[0].arguments
        assert arguments == {"n": 5, "flag": True, "obj": {"a": [1, 2]}, "nan": "NaN"}

    def test_multiple_invocations_in_one_container(self):
        candidates = match_xml(XML_MULTI, source_id="msg")

        assert [c.tool_name for c in candidates] == ["list_dir", "read_file"]
        assert candidates[0].arguments == {"path": "/tmp", "depth": 2}
        assert candidates[0].identity == synthesize_identity("msg", "xml", 0, "list_dir")
        assert candidates[1].identity == synthesize_identity("msg", "xml", 1, "read_file")
        assert all(c.lifecycle == "complete" for c in candidates)

    def test_invoke_closed_but_container_open(self):
        text = XML_COMPLETE.replace("</function_calls>", "")
        candidates = match_xml(text)
        assert candidates[0].block_closed is True
        assert candidates[0].lifecycle == "streaming"

    def test_partial_closing_tag_trimmed(self):
        text = (
            '<function_calls><invoke name="read_file" call_id="1">'
            '<parameter name="path">/tmp/test.txt</para'
        )
        assert match_xml(text)[0].arguments == {"path": "/tmp/test.txt"}

    def test_incomplete_opening_tag_has_no_name(self):
        candidates = match_xml('<function_calls><invoke name="read_fi', source_id="m")

        assert len(candidates) == 1
        assert candidates[0].tool_name is None
        assert candidates[0].call_id is None
        assert candidates[0].identity == synthesize_identity("m", "xml", 0, None)

    def test_closed_block_without_name_never_completes(self):
        text = (
            '<function_calls><invoke><parameter name="x">1</parameter>'
            "</invoke></function_calls>"
        )
        candidates = match_xml(text)
        assert candidates[0].lifecycle == "streaming"

    def test_single_quoted_attributes(self):
        text = (
            "<function_calls><invoke name='ls' call_id='q'>"
            "<parameter name='dir'>/</parameter></invoke></function_calls>"
        )
        candidate = match_xml(text)[0]
        assert candidate.tool_name == "ls"
        assert candidate.identity == "q"
        assert candidate.arguments == {"dir": "/"}

    def test_second_container_continues_ordinals(self):
        text = (
            '<function_calls><invoke name="a"></invoke></function_calls>'
            " and then "
            '<function_calls><invoke name="b"></invoke></function_calls>'
        )
        candidates = match_xml(text)
        assert [c.identity for c in candidates] == [
            synthesize_identity("", "xml", 0, "a"),
            synthesize_identity("", "xml", 1, "b"),
        ]

    def test_offsets_point_at_invoke(self):
        candidate = match_xml("Sure. " + XML_COMPLETE)[0]
        assert candidate.offset == len("Sure. <function_calls>")

    @pytest.mark.parametrize("text", ["", "no markers here", "<invoke name=\"x\">"])
    def test_no_container_no_candidates(self, text):
        assert match_xml(text) == []
