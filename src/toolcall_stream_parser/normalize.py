"""
Noise removal ahead of the invocation matchers.

Chat UIs wrap model output in code fences with language labels and add
"Copy code" buttons whose text ends up in the captured snapshot. These
helpers strip that leading noise so the matchers see clean content.
"""
import re

# Longest names first so "javascript" wins over "java" and "cpp" over "c".
KNOWN_LANGUAGES: tuple[str, ...] = (
    "javascript", "typescript", "markdown", "csharp", "kotlin", "python",
    "jsonl", "bash", "rust", "java", "scala", "swift", "shell", "json",
    "text", "perl", "yaml", "toml", "html", "ruby", "cpp", "php", "lua",
    "css", "sql", "yml", "ini", "xml", "ts", "js", "py", "sh", "md", "cs",
    "go", "rb", "c", "r",
)

_LANG = "|".join(KNOWN_LANGUAGES)
_COPY = r"copy(?:\s*code)?(?![a-z])"
_TAG_END = r"(?=\s*copy|[^a-z0-9_+#-]|$)"

# ```xml, ```json Copy code, or a bare ```
_FENCE_RE = re.compile(
    rf"^\s*```[ \t]*(?P<tag>(?:{_LANG}){_TAG_END})?(?:\s*{_COPY})?\s*",
    re.IGNORECASE,
)

# A header label without a fence is only noise when a copy button or a
# marker follows it; otherwise it is ordinary prose.
_LABEL_RE = re.compile(
    rf"^\s*(?P<tag>{_LANG})(?:\s*{_COPY}\s*|\s*(?=[<{{]))",
    re.IGNORECASE,
)

_COPY_RE = re.compile(rf"^\s*{_COPY}\s*", re.IGNORECASE)


def extract_language_tag(raw: str) -> tuple[str | None, str]:
    """Strip a leading fence or language header and report its label.

    Args:
        raw: The snapshot text.

    Returns:
        Tuple of (language_tag, remaining_text). language_tag is the
        lowercased label, or None when no allow-listed label was found.
    """
    if not raw:
        return None, ""

    match = _FENCE_RE.match(raw) or _LABEL_RE.match(raw)
    if match is None:
        return None, raw

    tag = match.group("tag")
    return (tag.lower() if tag else None), raw[match.end():]


def normalize(raw: str) -> str:
    """Remove leading fence, language label and copy affordances.

    Removes, in order, a leading fenced-code opening with an optional
    allow-listed language label and optional "copy"/"copy code" phrase,
    then any standalone leading "copy"/"copy code" phrase. Content after
    the first non-matching token is left untouched.

    Args:
        raw: The snapshot text.

    Returns:
        The cleaned text. Never raises; no match is a no-op.
    """
    if not raw or not isinstance(raw, str):
        return ""

    _, content = extract_language_tag(raw)
    return _COPY_RE.sub("", content, count=1)
