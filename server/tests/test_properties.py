# ─────────────────────────────────────────────────────────────────────────────
# Property-Based Tests - Hypothesis
# ─────────────────────────────────────────────────────────────────────────────
# Demonstrates: hypothesis for invariant testing on pure functions.
# Each test generates hundreds of random inputs and checks a rule that must
# hold for all of them.
# ─────────────────────────────────────────────────────────────────────────────

import base64

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from editgate.auth import parse_basic_credentials
from editgate.exceptions import NoOutputError
from editgate.rate_limit import FixedWindowRateLimiter
from editgate.services.normalizer import is_usable_url, normalize_output
from editgate.validation import validate_prompt

# ─── Strategies (reusable random data generators) ────────────────────────────

usable_urls = st.builds(
    lambda scheme, path: f"{scheme}{path}",
    st.sampled_from(["https://", "http://", "data:"]),
    st.text(min_size=1, max_size=40),
)
junk = st.one_of(
    st.none(),
    st.integers(),
    st.text(max_size=20).filter(lambda s: not is_usable_url(s)),
    st.dictionaries(st.sampled_from(["href", "src"]), st.text(max_size=10), max_size=2),
)
output_items = st.one_of(
    usable_urls,
    usable_urls.map(lambda u: {"url": u}),
    junk,
)

# Digits and spaces never trip a word-boundary content filter.
safe_prompts = st.text(alphabet="0123456789 ", min_size=1, max_size=1000).filter(
    lambda s: s.strip()
)

# (client index, seconds to advance) steps for the limiter state machine.
limiter_steps = st.lists(
    st.tuples(st.integers(min_value=0, max_value=3), st.floats(min_value=0, max_value=30)),
    max_size=200,
)


class TestNormalizerProperties:
    @given(items=st.lists(output_items, max_size=20))
    @settings(max_examples=200)
    def test_result_is_ordered_subset_of_usable_urls(self, items):
        expected = [
            u
            for u in ((i["url"] if isinstance(i, dict) and "url" in i else i) for i in items)
            if is_usable_url(u)
        ]
        if not expected:
            with pytest.raises(NoOutputError):
                normalize_output(items)
            return
        assert normalize_output(items) == expected

    @given(urls=st.lists(usable_urls, min_size=1, max_size=20))
    @settings(max_examples=200)
    def test_idempotent(self, urls):
        once = normalize_output(urls)
        assert normalize_output(once) == once == urls


class TestRateLimiterProperties:
    @given(steps=limiter_steps, limit=st.integers(min_value=1, max_value=5))
    @settings(max_examples=200)
    def test_never_exceeds_limit_within_a_window(self, steps, limit):
        now = [0.0]
        limiter = FixedWindowRateLimiter(limit=limit, window_seconds=60, clock=lambda: now[0])
        for client, advance in steps:
            now[0] += advance
            limiter.allow(f"c{client}")
            assert 0 < limiter.count(f"c{client}") <= limit

    @given(
        steps=st.lists(
            st.tuples(st.integers(min_value=0, max_value=3), st.integers(min_value=0, max_value=30)),
            max_size=200,
        )
    )
    @settings(max_examples=100)
    def test_retry_after_within_window(self, steps):
        now = [0.0]
        limiter = FixedWindowRateLimiter(limit=2, window_seconds=60, clock=lambda: now[0])
        for client, advance in steps:
            now[0] += advance
            limiter.allow(f"c{client}")
            assert 1 <= limiter.retry_after(f"c{client}") <= 60


class TestValidationProperties:
    @given(prompt=safe_prompts)
    @settings(max_examples=200)
    def test_safe_prompts_within_length_pass(self, prompt):
        assert validate_prompt(prompt) is None

    @given(extra=st.integers(min_value=1, max_value=500))
    @settings(max_examples=50)
    def test_anything_longer_than_limit_fails(self, extra):
        assert validate_prompt("x" * (1000 + extra)) == "Prompt must be under 1000 characters"


class TestBasicCredentialProperties:
    @given(
        username=st.text(max_size=30).filter(lambda s: ":" not in s),
        password=st.text(max_size=30),
    )
    @settings(max_examples=200)
    def test_header_round_trip(self, username, password):
        token = base64.b64encode(f"{username}:{password}".encode()).decode()
        assert parse_basic_credentials(f"Basic {token}") == (username, password)
