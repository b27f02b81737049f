"""Wire-record to canonical-record adaptation.

The analysis API is not consistent about field names: some payloads use
``url_image``/``url_shop`` with nested ``metrics``, older ones carry the
display names at the top level. Everything is folded into
:class:`RacketRecord` here and nowhere else.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

from padel_client.models import METRIC_NAMES, Attribute, RacketMetrics, RacketRecord

LOGGER = logging.getLogger(__name__)

DEFAULT_ATTRIBUTE = Attribute.POWER

_CANONICAL_ATTRIBUTES: Dict[str, Attribute] = {item.value: item for item in Attribute}

# Lower-case aliases accepted from older callers.
_ATTRIBUTE_ALIASES: Dict[str, Attribute] = {
    "maniability": Attribute.MANIABILITY,
    "weight": Attribute.WEIGHT,
    "effect": Attribute.EFFECT,
    "tolerance": Attribute.TOLERANCE,
    "power": Attribute.POWER,
    "control": Attribute.CONTROL,
}

_IMAGE_KEYS = ("url_image", "imageUrl", "image_url")
_STORE_KEYS = ("url_shop", "storeUrl", "store_url")
_BRAND_KEYS = ("brand", "marque")
_SIMILARITY_KEYS = ("similarityScore", "similarity_score")


# ---------------------------------------------------------------------------
# Attribute normalization
# ---------------------------------------------------------------------------


def normalize_category(attribute: Any) -> Attribute:
    """Resolve user input to a ranking attribute.

    Order: exact canonical name, then case-insensitive alias, then the
    input with its first letter upper-cased, then ``Power`` with a warning.
    """
    if isinstance(attribute, Attribute):
        return attribute
    text = "" if attribute is None else str(attribute)

    exact = _CANONICAL_ATTRIBUTES.get(text)
    if exact is not None:
        return exact

    alias = _ATTRIBUTE_ALIASES.get(text.lower())
    if alias is not None:
        return alias

    capitalized = _CANONICAL_ATTRIBUTES.get(text[:1].upper() + text[1:])
    if capitalized is not None:
        return capitalized

    LOGGER.warning("invalid attribute %r; defaulting to %s", attribute, DEFAULT_ATTRIBUTE.value)
    return DEFAULT_ATTRIBUTE


# ---------------------------------------------------------------------------
# Record adaptation
# ---------------------------------------------------------------------------


def _first_present(raw: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _metric_value(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0
    return 0


def _metrics(raw: Mapping[str, Any]) -> RacketMetrics:
    nested = raw.get("metrics")
    source: Mapping[str, Any] = nested if isinstance(nested, Mapping) else {}
    values: Dict[str, float] = {}
    for name in METRIC_NAMES:
        value = source.get(name)
        if value is None and not isinstance(nested, Mapping):
            # Flattened records carry metrics next to the identity fields.
            # Lower-case ``weight`` is the physical weight, not the metric.
            value = raw.get(name)
        values[name] = _metric_value(value)
    return RacketMetrics(**values)


def adapt_racket(raw: Mapping[str, Any]) -> RacketRecord:
    similarity = _first_present(raw, _SIMILARITY_KEYS)
    return RacketRecord(
        id=raw.get("id"),
        name=raw.get("name"),
        brand=_first_present(raw, _BRAND_KEYS),
        image_url=_first_present(raw, _IMAGE_KEYS),
        store_url=_first_present(raw, _STORE_KEYS),
        balance=raw.get("balance"),
        weight=raw.get("weight"),
        shape=raw.get("shape"),
        metrics=_metrics(raw),
        similarity_score=similarity,
    )


def adapt_many(raw_records: Any) -> List[RacketRecord]:
    if not isinstance(raw_records, list):
        LOGGER.warning("expected a list of rackets, got %s; returning none", type(raw_records).__name__)
        return []

    rackets: List[RacketRecord] = []
    for item in raw_records:
        if not isinstance(item, Mapping):
            LOGGER.warning("skipping racket entry of type %s", type(item).__name__)
            continue
        rackets.append(adapt_racket(item))
    return rackets


def decode_similar_items(raw_items: Any) -> List[RacketRecord]:
    """Similar-items payloads arrive as a list or as an id-keyed object.

    Objects are read in document order. Any other shape yields no rackets.
    """
    if isinstance(raw_items, list):
        return adapt_many(raw_items)
    if isinstance(raw_items, Mapping):
        return adapt_many(list(raw_items.values()))
    LOGGER.error("unexpected similar rackets format: %r", raw_items)
    return []


def rackets_from_envelope(body: Any, key: str = "rackets") -> List[RacketRecord]:
    """Read ``{"rackets": [...]}``; a bare list is accepted as well."""
    if isinstance(body, list):
        return adapt_many(body)
    if isinstance(body, Mapping):
        return adapt_many(body.get(key) or [])
    LOGGER.warning("unexpected rackets envelope: %s", type(body).__name__)
    return []
