# ─────────────────────────────────────────────────────────────────────────────
# Tests - prompt and image validation
# ─────────────────────────────────────────────────────────────────────────────

import re

import pytest

from editgate.validation import (
    ALLOWED_IMAGE_TYPES,
    matched_category,
    validate_image,
    validate_model,
    validate_prompt,
)
from support import jpeg_bytes

MB = 1024 * 1024


class TestValidatePrompt:
    def test_accepts_ordinary_prompt(self):
        assert validate_prompt("make the sky blue") is None

    @pytest.mark.parametrize("prompt", ["", "   ", "\n\t", None])
    def test_empty_is_required(self, prompt):
        assert validate_prompt(prompt) == "Prompt is required"

    def test_length_is_checked_after_trimming(self):
        assert validate_prompt("  " + "a" * 1000 + "  ") is None
        assert validate_prompt("a" * 1001) == "Prompt must be under 1000 characters"

    def test_custom_max_length(self):
        assert validate_prompt("abcdef", max_length=5) == "Prompt must be under 5 characters"

    @pytest.mark.parametrize(
        "prompt,category",
        [
            ("make her NUDE", "sexual"),
            ("add some violence to the scene", "violence"),
            ("Kill the lights", "violence"),
            ("a racist poster", "hate"),
            ("add drugs on the table", "illegal"),
        ],
    )
    def test_disallowed_content(self, prompt, category):
        assert validate_prompt(prompt) == "Prompt contains disallowed content"
        assert matched_category(prompt) == category

    @pytest.mark.parametrize("prompt", ["a skilled artist", "the killer whale", "deathstar toy", "chatelaine"])
    def test_word_boundaries_avoid_false_positives(self, prompt):
        assert validate_prompt(prompt) is None
        assert matched_category(prompt) is None

    def test_extra_patterns_extend_filters(self):
        extra = [("brand", re.compile(r"\bacme\b", re.IGNORECASE))]
        assert validate_prompt("put the ACME logo on it") is None
        assert validate_prompt("put the ACME logo on it", extra_patterns=extra) == (
            "Prompt contains disallowed content"
        )


class TestValidateImage:
    @pytest.mark.parametrize("content_type", ALLOWED_IMAGE_TYPES)
    def test_accepts_allowed_types(self, content_type):
        assert validate_image(jpeg_bytes(), content_type) is None

    def test_content_type_parameters_and_case_ignored(self):
        assert validate_image(jpeg_bytes(), "IMAGE/PNG; charset=binary") is None

    @pytest.mark.parametrize("data", [None, b""])
    def test_missing_file(self, data):
        assert validate_image(data, "image/jpeg") == "Image file is required"

    def test_size_ceiling(self):
        assert validate_image(jpeg_bytes(10 * MB), "image/jpeg") is None
        assert validate_image(jpeg_bytes(10 * MB + 1), "image/jpeg") == "File must be under 10 MB"

    def test_custom_size_ceiling(self):
        assert validate_image(jpeg_bytes(3 * MB), "image/jpeg", max_bytes=2 * MB) == (
            "File must be under 2 MB"
        )

    @pytest.mark.parametrize("content_type", ["image/gif", "application/pdf", "", None])
    def test_disallowed_type(self, content_type):
        assert validate_image(jpeg_bytes(), content_type) == (
            "File type must be one of: image/jpeg, image/png, image/webp"
        )

    def test_size_checked_before_type(self):
        assert validate_image(jpeg_bytes(11 * MB), "image/gif") == "File must be under 10 MB"


class TestValidateModel:
    @pytest.mark.parametrize(
        "model",
        ["qwen/qwen-image-edit", "black-forest-labs/flux.1_dev", "owner/model:5c7d5dc6dd8b"],
    )
    def test_accepts_owner_name_and_version(self, model):
        assert validate_model(model) is None

    @pytest.mark.parametrize(
        "model",
        [
            "",
            None,
            "qwen",
            "../../account",
            "../x",
            "a/b/c",
            "a/b?x=1#",
            "a/b#frag",
            "a/b:NOT-HEX",
            "a/ b",
            "/a/b",
            "ówner/model",
        ],
    )
    def test_rejects_anything_that_could_reshape_the_url(self, model):
        assert validate_model(model) == "Model must be owner/name or owner/name:version"
