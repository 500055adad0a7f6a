"""
Tolerant decoding of clothing payloads returned by the analysis service.

The service output is model-generated and only loosely follows its schema:
fields go missing, arrays arrive as single strings and ``"null"`` shows up as
a literal string. Every field is decoded on its own through ``decode_field``,
so a bad value degrades that field to its default and never the whole record.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, TypeVar

from glasscloset.catalog.models import NULL_SENTINEL, ClothingAttributes, ClothingItem

logger = logging.getLogger(__name__)

T = TypeVar("T")

STRICT_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"
ALTERNATE_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"

STRING_FIELDS = ("garment_type", "pattern", "material", "style", "season", "occasion", "fit", "brand")
LIST_FIELDS = ("main_colors", "secondary_colors")


class FieldDecodeError(ValueError):
    """Raised by a single decode attempt that does not accept the raw value."""


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


MISSING: Any = _Missing()


def as_string_list(raw: Any) -> list[str]:
    if isinstance(raw, list) and all(isinstance(item, str) for item in raw):
        return list(raw)
    raise FieldDecodeError(f"expected an array of strings, got {type(raw).__name__}")


def as_single_string_list(raw: Any) -> list[str]:
    return [as_present_string(raw)]


def as_present_string(raw: Any) -> str:
    if raw is MISSING or raw is None:
        raise FieldDecodeError("value is absent")
    if not isinstance(raw, str):
        raise FieldDecodeError(f"expected a string, got {type(raw).__name__}")
    if raw == NULL_SENTINEL:
        raise FieldDecodeError("value is the 'null' sentinel")
    return raw


def as_identifier(raw: Any) -> str:
    value = as_present_string(raw)
    if not value.strip():
        raise FieldDecodeError("identifier is blank")
    return value


def as_timestamp_strict(raw: Any) -> datetime:
    try:
        parsed = datetime.strptime(as_present_string(raw), STRICT_TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise FieldDecodeError(str(exc)) from exc
    return parsed.astimezone(timezone.utc)


def as_timestamp_alternate(raw: Any) -> datetime:
    try:
        parsed = datetime.strptime(as_present_string(raw), ALTERNATE_TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise FieldDecodeError(str(exc)) from exc
    return parsed.replace(tzinfo=timezone.utc)


def decode_field(
    payload: Mapping[str, Any],
    key: str,
    *attempts: Callable[[Any], T],
    default: T | Callable[[], T],
) -> T:
    """Return the first successful attempt for ``payload[key]`` or the default."""

    raw = payload.get(key, MISSING)
    for attempt in attempts:
        try:
            return attempt(raw)
        except FieldDecodeError as exc:
            logger.debug("Field %r rejected by %s: %s", key, attempt.__name__, exc)
    return default() if callable(default) else default


def _new_identifier() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _optional_string(payload: Mapping[str, Any], key: str) -> str | None:
    return decode_field(payload, key, as_present_string, default=None)


def _as_mapping(payload: Any, context: str) -> Mapping[str, Any]:
    if isinstance(payload, Mapping):
        return payload
    if payload is not None:
        logger.warning("Expected a JSON object for %s, got %s; using defaults.", context, type(payload).__name__)
    return {}


class AttributeDecoder:
    """Turns untrusted JSON objects into complete attribute and item records."""

    def decode_attributes(self, payload: Any) -> ClothingAttributes:
        data = _as_mapping(payload, "attributes")
        lists = {
            name: decode_field(data, name, as_string_list, as_single_string_list, default=list)
            for name in LIST_FIELDS
        }
        strings = {name: decode_field(data, name, as_present_string, default="") for name in STRING_FIELDS}
        return ClothingAttributes(**lists, **strings)

    def decode_item(self, payload: Any) -> ClothingItem:
        data = _as_mapping(payload, "clothing item")
        return ClothingItem(
            id=decode_field(data, "id", as_identifier, default=_new_identifier),
            attributes=self.decode_attributes(data.get("attributes")),
            image_url=_optional_string(data, "image_url"),
            date_added=decode_field(
                data,
                "created_at",
                as_timestamp_strict,
                as_timestamp_alternate,
                default=_utcnow,
            ),
        )

    def decode_items(self, payloads: Iterable[Any]) -> list[ClothingItem]:
        items: list[ClothingItem] = []
        for index, payload in enumerate(payloads):
            if not isinstance(payload, Mapping):
                logger.warning("Skipping clothing item #%d: not a JSON object.", index)
                continue
            items.append(self.decode_item(payload))
        return items

    def decode_analysis(self, payload: Any) -> ClothingAttributes:
        """Decode an ``/analyze-image`` envelope, carrying the server ids onto the attributes."""

        envelope = _as_mapping(payload, "analysis envelope")
        source = envelope.get("attributes")
        if not isinstance(source, Mapping):
            source = self._attributes_from_analysis_text(envelope.get("analysis"))
        attributes = self.decode_attributes(source)
        return attributes.with_server_ids(
            _optional_string(envelope, "clothing_item_id"),
            _optional_string(envelope, "image_url"),
        )

    @staticmethod
    def _attributes_from_analysis_text(analysis: Any) -> Mapping[str, Any]:
        if not isinstance(analysis, str):
            return {}
        try:
            parsed = json.loads(analysis)
        except json.JSONDecodeError:
            logger.debug("Analysis text is not JSON; no attributes recovered from it.")
            return {}
        return parsed if isinstance(parsed, Mapping) else {}
