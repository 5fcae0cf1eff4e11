"""Unit tests for URL key generation."""
import pytest

from orgdir.core import url_key


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Gilt Group", "gilt-group"),
        ("  Gilt   Group  ", "gilt-group"),
        ("gilt_group", "gilt-group"),
        ("Café Society", "cafe-society"),
        ("api.json", "api.json"),
        ("_internal_", "internal"),
        ("A--B", "a-b"),
        ("!!!", ""),
    ],
)
def test_generate(value, expected):
    assert url_key.generate(value) == expected


@pytest.mark.parametrize(
    "value",
    ["Gilt Group", "__Weird__  Name!!", "ÄÖÜ corp", "mixed.Dots and-Dashes", "-lead-trail-"],
)
def test_generate_is_idempotent(value):
    once = url_key.generate(value)
    assert url_key.generate(once) == once
    assert url_key.is_normalized(once)


def test_generated_keys_only_use_allowed_characters():
    key = url_key.generate("Hello, World! 2024 / Q1 (draft)")
    assert key == "hello-world-2024-q1-draft"
    assert set(key) <= set("abcdefghijklmnopqrstuvwxyz0123456789.-")


def test_is_normalized_rejects_uppercase():
    assert not url_key.is_normalized("Gilt")
    assert url_key.is_normalized("gilt")
