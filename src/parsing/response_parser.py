"""Menu response parser.

Turns the raw bytes returned by the menu-analysis service into a validated
Menu. The service embeds its JSON document as a string inside an envelope
object, wrapped in whatever prose and markdown the model chose to emit, so
parsing is a pipeline:

1. decode the envelope,
2. normalize the inner string (see ``src.parsing.normalize``),
3. re-encode as UTF-8,
4. structural pre-check for a ``categories`` array,
5. strict decode into the wire schema, classifying any failure,
6. build the domain Menu, deriving item ids.

Pure and stateless: safe to call from any thread.
"""

import json
import logging

from pydantic import ValidationError

from src.models.menu import (
    Category,
    Menu,
    MenuItem,
    MenuPayload,
    ResponseEnvelope,
    menu_item_id,
)
from src.parsing.errors import (
    DecodeError,
    DecodeErrorKind,
    EncodingError,
    EnvelopeDecodeError,
    SchemaError,
)
from src.parsing.normalize import normalize_payload

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 100

_MISSING_TYPES = frozenset({"missing"})

_EXPECTED_KIND: dict[str, str] = {
    "string_type": "string",
    "int_type": "integer",
    "int_parsing": "integer",
    "int_from_float": "integer",
    "float_type": "number",
    "bool_type": "boolean",
    "list_type": "array",
    "dict_type": "object",
    "model_type": "object",
    "model_attributes_type": "object",
}

_CORRUPTED_TYPES = frozenset({
    "json_invalid",
    "json_type",
    "value_error",
    "string_too_short",
    "too_short",
})


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------


def format_path(loc: tuple[int | str, ...]) -> str:
    """Render a pydantic error location as ``categories[0].items[1].price``."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path or "$"


def classify_validation_error(exc: ValidationError) -> DecodeError:
    """Map the first pydantic error onto the decode-error taxonomy."""
    errors = exc.errors()
    if not errors:
        return DecodeError(DecodeErrorKind.UNKNOWN, "$", detail=str(exc))

    first = errors[0]
    error_type = first.get("type", "")
    path = format_path(tuple(first.get("loc", ())))
    detail = first.get("msg", "")
    if len(errors) > 1:
        detail = f"{detail}; {len(errors) - 1} more error(s)"

    if error_type in _MISSING_TYPES:
        return DecodeError(DecodeErrorKind.MISSING_FIELD, path, detail=detail)
    if error_type in _EXPECTED_KIND:
        return DecodeError(
            DecodeErrorKind.TYPE_MISMATCH,
            path,
            expected=_EXPECTED_KIND[error_type],
            detail=detail,
        )
    if error_type in _CORRUPTED_TYPES:
        return DecodeError(DecodeErrorKind.CORRUPTED, path, detail=detail)
    return DecodeError(DecodeErrorKind.UNKNOWN, path, detail=detail)


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------


def decode_envelope(raw: bytes | str) -> str:
    """Return the inner ``raw_response`` string."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise EnvelopeDecodeError(str(exc)) from exc
    if not isinstance(data, dict):
        raise EnvelopeDecodeError(f"expected an object, got {type(data).__name__}")
    try:
        envelope = ResponseEnvelope.model_validate(data)
    except ValidationError as exc:
        if any(err["type"] == "string_unicode" for err in exc.errors()):
            raise EncodingError(str(exc)) from exc
        raise EnvelopeDecodeError(str(classify_validation_error(exc))) from exc
    return envelope.raw_response


def encode_payload(text: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodingError(str(exc)) from exc


def check_structure(payload: bytes) -> None:
    """Fail early with an actionable error when the top-level shape is wrong."""
    try:
        document = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise DecodeError(DecodeErrorKind.CORRUPTED, "$", detail=exc.msg) from exc
    if not isinstance(document, dict) or not isinstance(document.get("categories"), list):
        raise SchemaError("categories")


def decode_menu_payload(payload: bytes) -> MenuPayload:
    try:
        return MenuPayload.model_validate_json(payload)
    except ValidationError as exc:
        raise classify_validation_error(exc) from exc


def build_menu(payload: MenuPayload) -> Menu:
    """Convert the wire document into the domain Menu."""
    if not payload.categories:
        raise SchemaError("categories")

    categories: list[Category] = []
    for index, category in enumerate(payload.categories):
        translated = category.translated_name.strip()
        if not translated:
            raise DecodeError(
                DecodeErrorKind.MISSING_FIELD,
                f"categories[{index}].translated_name",
                detail="translated category name is empty",
            )
        items = [
            MenuItem(
                id=menu_item_id(category.original_name, item.original_name),
                original_name=item.original_name,
                translated_name=item.translated_name,
                price=item.price,
                category=translated,
            )
            for item in category.items
        ]
        categories.append(
            Category(
                original_name=category.original_name,
                translated_name=translated,
                items=items,
            )
        )
    return Menu(categories=categories)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def parse_menu_response(raw: bytes | str) -> Menu:
    """Parse an upstream response body into a Menu.

    Raises:
        EnvelopeDecodeError: The outer envelope is not well-formed.
        EncodingError: The normalized payload cannot be encoded as UTF-8.
        SchemaError: ``categories`` is absent, not an array, or empty.
        DecodeError: Strict decoding failed; ``kind`` and ``path`` say where.
    """
    inner = decode_envelope(raw)
    normalized = normalize_payload(inner)
    try:
        payload = encode_payload(normalized)
        check_structure(payload)
        menu = build_menu(decode_menu_payload(payload))
    except (EncodingError, SchemaError, DecodeError) as exc:
        logger.warning(
            "Menu response rejected: %s (payload preview: %r)",
            exc,
            normalized[:_PREVIEW_CHARS],
        )
        raise

    logger.debug(
        "Parsed menu with %d categories and %d items",
        len(menu.categories),
        len(menu.menu_items()),
    )
    return menu
