"""Content reduction unit tests."""

from automator.research.reduce import (
    FALLBACK_LINES,
    clean_text,
    filter_lines_with_context,
    line_has_keyword,
    matches_price_line,
    reduce_text_for_llm,
    truncate,
)


def test_matches_price_line_symbols_and_periods():
    assert matches_price_line("Pro plan $20")
    assert matches_price_line("¥1,200 charged")
    assert matches_price_line("Billed monthly")
    assert matches_price_line("20 usd per year")
    assert not matches_price_line("Welcome back")
    assert not matches_price_line("")


def test_line_has_keyword_case_insensitive():
    assert line_has_keyword("GitHub Copilot Individual", ["copilot"])
    assert not line_has_keyword("GitHub Copilot", ["cursor"])
    assert not line_has_keyword("anything", [])
    assert not line_has_keyword("anything", None)


def test_filter_keeps_context_window_in_order():
    lines = ["header", "intro", "Cursor Pro", "renews soon", "footer", "more", "Claude $20", "end"]
    kept = filter_lines_with_context(lines, ["cursor"], context=1)
    assert kept == ["intro", "Cursor Pro", "renews soon", "more", "Claude $20", "end"]


def test_filter_overlapping_windows_do_not_duplicate():
    lines = ["a", "$1", "$2", "b"]
    assert filter_lines_with_context(lines, [], context=1) == lines


def test_filter_falls_back_to_first_lines():
    lines = [f"line {i}" for i in range(FALLBACK_LINES + 50)]
    assert filter_lines_with_context(lines, []) == lines[:FALLBACK_LINES]


def test_reduce_without_matches_returns_first_200_lines():
    text = "\n".join(f"plain line {i}" for i in range(300))
    expected = "\n".join(f"plain line {i}" for i in range(200))
    assert reduce_text_for_llm(text, [], 1_000_000) == expected


def test_reduce_without_matches_shorter_input_is_unchanged():
    text = "one\ntwo\nthree"
    assert reduce_text_for_llm(text, [], 1000) == text


def test_reduce_never_exceeds_budget():
    text = "\n".join(f"Plan {i}: $19.99/month with extras" for i in range(500))
    for budget in (0, 1, 10, 99, 1000, 5000):
        assert len(reduce_text_for_llm(text, ["plan"], budget)) <= budget


def test_reduce_never_empty_on_non_empty_input():
    assert reduce_text_for_llm("nothing relevant here", ["cursor"], 100) == "nothing relevant here"


def test_reduce_zero_budget_is_empty():
    assert reduce_text_for_llm("Cursor $20\nfooter", [], 0) == ""


def test_reduce_empty_input():
    assert reduce_text_for_llm("", ["cursor"], 100) == ""


def test_reduce_collapses_blank_lines():
    text = "intro\n\n\nCursor $20\n\n\nfooter"
    assert reduce_text_for_llm(text, [], 100) == "intro\nCursor $20\nfooter"


def test_clean_text_and_truncate():
    assert clean_text("  a \n\t b  ") == "a b"
    assert clean_text(None) == ""
    assert truncate("abcdef", 3) == "abc"
    assert truncate("abc", 10) == "abc"
    assert truncate("abc", 0) == ""
    assert truncate("abc", -5) == ""
