"""Parse failures raised by the menu response parser.

Every failure carries enough detail (field name, readable path) to log or
show to the user. All of them derive from ValueError so callers treating
bad upstream data generically can keep doing so.
"""

from enum import StrEnum


class MenuParseError(ValueError):
    pass


class EnvelopeDecodeError(MenuParseError):
    def __init__(self, reason: str):
        super().__init__(f"Malformed response envelope: {reason}")
        self.reason = reason


class EncodingError(MenuParseError):
    def __init__(self, reason: str):
        super().__init__(f"Normalized payload is not valid UTF-8 text: {reason}")
        self.reason = reason


class SchemaError(MenuParseError):
    def __init__(self, field: str):
        super().__init__(f"Menu document is missing required field '{field}'")
        self.field = field


class DecodeErrorKind(StrEnum):
    """Classification of a strict-decode failure."""

    MISSING_FIELD = "missing_field"
    TYPE_MISMATCH = "type_mismatch"
    CORRUPTED = "corrupted"
    UNKNOWN = "unknown"


class DecodeError(MenuParseError):
    def __init__(
        self,
        kind: DecodeErrorKind,
        path: str,
        *,
        expected: str | None = None,
        detail: str = "",
    ):
        if kind is DecodeErrorKind.MISSING_FIELD:
            message = f"Missing required field at {path}"
        elif kind is DecodeErrorKind.TYPE_MISMATCH:
            message = f"Type mismatch at {path}: expected {expected or 'a different type'}"
        elif kind is DecodeErrorKind.CORRUPTED:
            message = f"Corrupted menu data at {path}"
        else:
            message = f"Unable to decode menu data at {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.kind = kind
        self.path = path
        self.expected = expected
        self.detail = detail

    @property
    def field(self) -> str:
        """Last path segment, e.g. ``price`` for ``categories[0].items[1].price``."""
        tail = self.path.rsplit(".", 1)[-1]
        return tail.split("[", 1)[0] or tail
