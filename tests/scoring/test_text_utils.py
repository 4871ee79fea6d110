import pytest

from app.services.agents.text_utils import (
    collapse_whitespace,
    effective_length,
    has_url,
    strip_urls,
    truncate_text,
)


@pytest.mark.parametrize(
    "text",
    [
        "Go to https://example.com now",
        "see http://foo.bar",
        "visit www.shop",
        "deals at shop.example.com/black-friday",
        "EXAMPLE.COM has it",
    ],
)
def test_has_url_detects_schemes_www_and_bare_domains(text):
    assert has_url(text)


@pytest.mark.parametrize("text", ["", "Hello world.", "Save big. Shop now!", "Only 3.5 stars"])
def test_has_url_ignores_plain_text(text):
    assert not has_url(text)


def test_strip_urls_removes_every_url_and_collapses_whitespace():
    text = "Visit https://example.com/deal  or www.shop.com   today"
    assert strip_urls(text) == "Visit or today"
    assert not has_url(strip_urls(text))


def test_collapse_whitespace():
    assert collapse_whitespace("  a \n b\t\tc  ") == "a b c"


def test_effective_length_en_uses_word_heuristic():
    assert effective_length("one two three", "en-US") == 15


def test_effective_length_zh_counts_characters():
    assert effective_length("黑五大促开始了", "zh-CN") == 7


def test_truncate_text_en_respects_char_and_word_budget():
    text = " ".join(f"word{i}" for i in range(50))
    out = truncate_text(text, 87, "en-US")

    assert out.endswith("...")
    assert len(out) <= 87
    assert effective_length(out, "en-US") <= 87


def test_truncate_text_en_leaves_short_text_untouched():
    assert truncate_text("short text", 87, "en-US") == "short text"


def test_truncate_text_zh_cuts_characters_and_appends_ellipsis():
    out = truncate_text("好" * 100, 87, "zh-CN")
    assert out == "好" * 87 + "..."
    assert len(out) == 90


def test_truncate_text_without_room_for_ellipsis_is_empty():
    assert truncate_text("好" * 20, 0, "zh-CN") == ""
    assert truncate_text("Grab your new camera today", 1, "en-US") == ""


def test_truncate_text_negative_limit_never_slices_from_the_end():
    assert truncate_text("好" * 20, -2, "zh-CN") == ""
