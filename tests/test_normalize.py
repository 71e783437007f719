"""Tests for fence, label and copy-button stripping."""
import pytest

from toolcall_stream_parser.normalize import extract_language_tag, normalize


class TestNormalize:
    def test_plain_text_unchanged(self):
        assert normalize("<function_calls>") == "<function_calls>"

    def test_strips_fence_with_label(self):
        assert normalize("```xml\n<function_calls>") == "<function_calls>"

    def test_strips_bare_fence(self):
        assert normalize("```\n{\"type\": 1}") == "{\"type\": 1}"

    def test_strips_fence_label_and_copy_code(self):
        assert normalize("```json Copy code\n{}") == "{}"

    def test_strips_label_glued_to_copy(self):
        assert normalize("xmlCopy code<function_calls>") == "<function_calls>"

    def test_strips_label_before_marker(self):
        assert normalize("json {\"a\": 1}") == "{\"a\": 1}"

    def test_strips_standalone_copy(self):
        assert normalize("Copy code\n<function_calls>") == "<function_calls>"

    def test_label_in_prose_untouched(self):
        assert normalize("Python is great") == "Python is great"

    def test_only_leading_noise_removed(self):
        text = "<function_calls>```xml copy"
        assert normalize(text) == text

    @pytest.mark.parametrize("value", [None, "", 42])
    def test_non_text_returns_empty(self, value):
        assert normalize(value) == ""


class TestExtractLanguageTag:
    def test_fence_tag(self):
        tag, content = extract_language_tag("```xml\n<x>")
        assert tag == "xml"
        assert content == "<x>"

    def test_tag_is_lowercased(self):
        tag, _ = extract_language_tag("```JSON\n{}")
        assert tag == "json"

    def test_longest_name_wins(self):
        tag, _ = extract_language_tag("```jsonl\n{}")
        assert tag == "jsonl"

    def test_bare_fence_has_no_tag(self):
        tag, content = extract_language_tag("```\n<x>")
        assert tag is None
        assert content == "<x>"

    def test_unknown_label_not_stripped(self):
        tag, content = extract_language_tag("```foobar\n<x>")
        assert tag is None
        assert content == "foobar\n<x>"

    def test_no_fence(self):
        assert extract_language_tag("hello") == (None, "hello")
