# Prompt and image validation. Pure functions: each returns None when the
# input is acceptable, otherwise the human-readable reason sent back with 400.

import re
from collections.abc import Iterable

MAX_PROMPT_LENGTH = 1000
DEFAULT_MAX_FILE_SIZE_MB = 10
ALLOWED_IMAGE_TYPES: tuple[str, ...] = ("image/jpeg", "image/png", "image/webp")

# Case-insensitive whole-word matches, grouped by category for logging.
CONTENT_FILTERS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("sexual", re.compile(r"\b(nude|naked|nsfw|explicit|sexual)\b", re.IGNORECASE)),
    ("violence", re.compile(r"\b(violence|violent|kill|murder|death)\b", re.IGNORECASE)),
    ("hate", re.compile(r"\b(hate|racist|racism|discrimination)\b", re.IGNORECASE)),
    ("illegal", re.compile(r"\b(illegal|drugs|weapons)\b", re.IGNORECASE)),
)


def matched_category(
    prompt: str, extra_patterns: Iterable[tuple[str, re.Pattern[str]]] = ()
) -> str | None:
    """Name of the first content filter the prompt trips, if any."""
    for category, pattern in (*CONTENT_FILTERS, *extra_patterns):
        if pattern.search(prompt):
            return category
    return None


def validate_prompt(
    prompt: str | None,
    max_length: int = MAX_PROMPT_LENGTH,
    extra_patterns: Iterable[tuple[str, re.Pattern[str]]] = (),
) -> str | None:
    text = (prompt or "").strip()
    if not text:
        return "Prompt is required"
    if len(text) > max_length:
        return f"Prompt must be under {max_length} characters"
    if matched_category(text, extra_patterns) is not None:
        return "Prompt contains disallowed content"
    return None


def validate_image(
    data: bytes | None,
    content_type: str | None,
    max_bytes: int = DEFAULT_MAX_FILE_SIZE_MB * 1024 * 1024,
) -> str | None:
    """Check presence, size ceiling, and MIME allow-list, in that order."""
    if not data:
        return "Image file is required"
    if len(data) > max_bytes:
        return f"File must be under {max_bytes / (1024 * 1024):g} MB"
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime not in ALLOWED_IMAGE_TYPES:
        return f"File type must be one of: {', '.join(ALLOWED_IMAGE_TYPES)}"
    return None


# Model identifiers are interpolated into the provider URL path.
MODEL_ID_PATTERN = re.compile(
    r"[A-Za-z0-9][A-Za-z0-9_.-]*/[A-Za-z0-9][A-Za-z0-9_.-]*(:[0-9a-f]+)?"
)


def is_valid_model_id(model: str | None) -> bool:
    return bool(model) and MODEL_ID_PATTERN.fullmatch(model) is not None


def validate_model(model: str | None) -> str | None:
    if not is_valid_model_id(model):
        return "Model must be owner/name or owner/name:version"
    return None
