"""Payload normalization for upstream menu responses.

The menu-analysis service answers in natural language: the JSON document is
usually wrapped in a markdown code fence, sometimes surrounded by commentary,
and may carry control characters or a byte-order mark. Normalization is an
ordered list of independent rules; a new upstream quirk gets a new rule
appended to NORMALIZATION_RULES, the decoder never changes.

Rules only strip wrapping. They never guess at repairs of the document
itself, so a payload that is still invalid after normalization fails loudly.
"""

import re
import unicodedata
from collections.abc import Callable, Sequence
from dataclasses import dataclass

_BOM = "\ufeff"

# A JSON string literal, any backslash pair, or a real line break.
_NEWLINE_TOKEN_RE = re.compile(r'"(?:[^"\\]|\\.)*"|\\.|\r\n|\r|\n', re.DOTALL)
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")

# ```json ... ``` (first block); the tag may be any language name.
_FENCED_BLOCK_RE = re.compile(r"```[A-Za-z0-9_+-]*(.*?)```", re.DOTALL)
_CODE_FENCE_RE = re.compile(r"```[A-Za-z0-9_+-]*")


@dataclass(frozen=True)
class NormalizationRule:
    """A named text transformation applied to the inner payload."""

    name: str
    apply: Callable[[str], str]


def _drop_newline_token(match: re.Match[str]) -> str:
    token = match.group(0)
    if token in ("\\n", "\\r"):
        return ""
    return _LINE_BREAK_RE.sub("", token)


def strip_newline_escapes(text: str) -> str:
    """Remove real line breaks and literal ``\\n``/``\\r`` escapes.

    Literal escapes are the remains of a double-encoded payload and are only
    removed between JSON tokens. Inside a string value they are real escapes
    and kept, so ``"Beef\\nNoodle"`` still decodes with its line break. An
    escaped backslash (``\\\\n``) is never split.
    """
    return _NEWLINE_TOKEN_RE.sub(_drop_newline_token, text)


def strip_code_fences(text: str) -> str:
    """Keep the body of the first fenced block, dropping prose around it.

    Without a closed fence, stray fence markers are removed in place.
    """
    match = _FENCED_BLOCK_RE.search(text)
    if match is not None:
        return match.group(1)
    return _CODE_FENCE_RE.sub("", text)


def strip_control_characters(text: str) -> str:
    return "".join(ch for ch in text if unicodedata.category(ch) != "Cc")


def strip_byte_order_mark(text: str) -> str:
    stripped = text.lstrip()
    while stripped.startswith(_BOM):
        stripped = stripped[len(_BOM):].lstrip()
    return stripped


def strip_surrounding_commentary(text: str) -> str:
    """Keep only the outermost ``{...}`` span when prose surrounds it."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return text
    return text[start:end + 1]


def strip_surrounding_whitespace(text: str) -> str:
    return text.strip()


NORMALIZATION_RULES: tuple[NormalizationRule, ...] = (
    NormalizationRule("newline_escapes", strip_newline_escapes),
    NormalizationRule("code_fences", strip_code_fences),
    NormalizationRule("control_characters", strip_control_characters),
    NormalizationRule("byte_order_mark", strip_byte_order_mark),
    NormalizationRule("surrounding_commentary", strip_surrounding_commentary),
    NormalizationRule("surrounding_whitespace", strip_surrounding_whitespace),
)


def normalize_payload(
    text: str,
    rules: Sequence[NormalizationRule] = NORMALIZATION_RULES,
) -> str:
    """Apply ``rules`` in order and return the cleaned payload."""
    for rule in rules:
        text = rule.apply(text)
    return text
