# ─────────────────────────────────────────────────────────────────────────────
# Output Normalizer - provider output → ordered list of usable image URLs
# ─────────────────────────────────────────────────────────────────────────────
# Provider output is untyped. Each element is classified once at the
# boundary into a tagged variant, then resolved in a single dispatch:
#
#   StringUrl       "https://..."                 → itself
#   AccessorObject  object with a callable .url() → url()
#   PlainObject     {"url": ...} / object.url     → that value
#   Unrecognized    anything else                 → dropped
#
# Only non-empty strings starting with https://, http://, or data: survive.
# ─────────────────────────────────────────────────────────────────────────────

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import structlog

from editgate.exceptions import NoOutputError

logger = structlog.get_logger(__name__)

URL_PREFIXES: tuple[str, ...] = ("https://", "http://", "data:")

NO_VALID_IMAGES = "No valid images were generated"
EMPTY_OBJECTS = "Model returned empty objects - check input parameters"


@dataclass(frozen=True)
class StringUrl:
    value: str


@dataclass(frozen=True)
class AccessorObject:
    accessor: Callable[[], Any]


@dataclass(frozen=True)
class PlainObject:
    url: Any


@dataclass(frozen=True)
class Unrecognized:
    raw: Any
    empty: bool = False


OutputItem = StringUrl | AccessorObject | PlainObject | Unrecognized


def _is_empty_object(item: Any) -> bool:
    """Attribute-less instance, e.g. SimpleNamespace() from a decoded {}."""
    attrs = getattr(item, "__dict__", None)
    return attrs is not None and not attrs and not callable(item)


def classify(item: Any) -> OutputItem:
    """Tag one raw output element with the shape it exposes."""
    if isinstance(item, str):
        return StringUrl(item)
    if isinstance(item, Mapping):
        if "url" in item:
            return PlainObject(item["url"])
        return Unrecognized(item, empty=not item)
    url = getattr(item, "url", None)
    if callable(url):
        return AccessorObject(url)
    if url is not None:
        return PlainObject(url)
    return Unrecognized(item, empty=_is_empty_object(item))


def resolve(item: OutputItem) -> str | None:
    """Extract the URL candidate carried by a classified element."""
    if isinstance(item, StringUrl):
        return item.value
    if isinstance(item, AccessorObject):
        value = item.accessor()
        return None if value is None else str(value)
    if isinstance(item, PlainObject):
        return item.url if isinstance(item.url, str) else None
    return None


def is_usable_url(value: str | None) -> bool:
    return isinstance(value, str) and value.startswith(URL_PREFIXES)


def _as_sequence(output: Any) -> list[Any]:
    if output is None:
        return []
    if isinstance(output, (str, bytes, Mapping)):
        return [output]
    if isinstance(output, Sequence):
        return list(output)
    return [output]


def normalize_output(output: Any) -> list[str]:
    """Return the provider's usable image URLs in their original order.

    Raises NoOutputError when nothing usable remains, with a distinct
    message when every element was an empty object (usually a sign the
    provider rejected the input parameters silently).
    """
    raw_items = _as_sequence(output)
    classified = [classify(item) for item in raw_items]
    urls = [url for url in (resolve(item) for item in classified) if is_usable_url(url)]

    if urls:
        dropped = len(raw_items) - len(urls)
        if dropped:
            logger.warning("output_items_dropped", kept=len(urls), dropped=dropped)
        return urls  # type: ignore[return-value]

    all_empty = bool(classified) and all(
        isinstance(item, Unrecognized) and item.empty for item in classified
    )
    logger.error(
        "no_usable_output",
        items=len(raw_items),
        all_empty_objects=all_empty,
        shapes=[type(item).__name__ for item in classified],
    )
    raise NoOutputError(EMPTY_OBJECTS if all_empty else NO_VALID_IMAGES)
