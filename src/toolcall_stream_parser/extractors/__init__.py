"""
Invocation matchers for the supported micro-syntaxes.

This module provides the InvocationMatcher protocol and the built-in
matchers for the XML-like tagged syntax and the JSON-Lines syntax.
"""
from .base import InvocationMatcher, coerce_value, synthesize_identity
from .jsonlines import (
    DescriptionLine,
    EndLine,
    JsonLinesInvocationMatcher,
    ParameterLine,
    StartLine,
    match_json_lines,
    parse_json_line,
)
from .xml import XmlInvocationMatcher, match_xml, unwrap_cdata

__all__ = [
    "InvocationMatcher",
    "coerce_value",
    "synthesize_identity",
    "XmlInvocationMatcher",
    "match_xml",
    "unwrap_cdata",
    "JsonLinesInvocationMatcher",
    "match_json_lines",
    "parse_json_line",
    "StartLine",
    "DescriptionLine",
    "ParameterLine",
    "EndLine",
]
