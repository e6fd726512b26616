import time

import pytest

from caption_overlay.balancer import (
    MAX_ARRANGEMENTS,
    MAX_EXHAUSTIVE_WORDS,
    BalanceOptions,
    balance_lines,
    count_arrangements,
    generate_arrangements,
    score_arrangement,
)
from caption_overlay.errors import ConfigError

SAMPLE = "Skincare products I'd NEVER recommend my clients from a esthetician of 7+ years"


def test_short_caption_stays_on_one_line():
    assert balance_lines("Hello  there world") == ["Hello there world"]
    assert balance_lines("one two three four five") == ["one two three four five"]


def test_empty_caption():
    assert balance_lines("   ") == []


def test_generate_arrangements_covers_all_groupings():
    arrangements = list(generate_arrangements("a b c d e f".split(), 2, 5))
    assert arrangements == [
        ["a b", "c d", "e f"],
        ["a b", "c d e f"],
        ["a b c", "d e f"],
        ["a b c d", "e f"],
    ]


def test_even_split_wins():
    assert balance_lines("aa bb cc dd ee ff") == ["aa bb cc", "dd ee ff"]


def test_score_prefers_balanced_lines():
    even = score_arrangement(["aa bb cc", "dd ee ff"], 3.5, 0.3)
    uneven = score_arrangement(["aa bb", "cc dd ee ff"], 3.5, 0.3)
    assert even > uneven


def test_score_penalises_variance_over_limit():
    lines = ["aa bb", "cc dd ee"]
    assert score_arrangement(lines, 3.5, 1.0) - score_arrangement(lines, 3.5, 0.1) == pytest.approx(20)


def test_sample_caption_is_balanced():
    lines = balance_lines(SAMPLE)
    assert " ".join(lines) == SAMPLE
    assert all(2 <= len(line.split()) <= 5 for line in lines)
    best = max(score_arrangement(a, 3.5, 0.3) for a in generate_arrangements(SAMPLE.split(), 2, 5))
    assert score_arrangement(lines, 3.5, 0.3) == best


def test_long_caption_uses_bounded_groups():
    words = [f"w{i}" for i in range(MAX_EXHAUSTIVE_WORDS + 15)]
    lines = balance_lines(" ".join(words))
    assert " ".join(lines) == " ".join(words)
    assert all(2 <= len(line.split()) <= 5 for line in lines)


def test_count_arrangements():
    assert count_arrangements(6, 2, 5) == len(list(generate_arrangements("a b c d e f".split(), 2, 5)))
    assert count_arrangements(7, 3, 3) == 0
    assert count_arrangements(20, 1, 19) == 2 ** 19 - 1
    assert count_arrangements(MAX_EXHAUSTIVE_WORDS, 2, 5) <= MAX_ARRANGEMENTS


def test_wide_word_bounds_skip_exhaustive_search():
    words = [f"w{i}" for i in range(MAX_EXHAUSTIVE_WORDS)]
    options = BalanceOptions(min_words_per_line=1, max_words_per_line=19)
    start = time.perf_counter()
    lines = balance_lines(" ".join(words), options)
    assert time.perf_counter() - start < 1.0
    assert " ".join(lines) == " ".join(words)
    assert all(1 <= len(line.split()) <= 19 for line in lines)


def test_unsatisfiable_bounds_fall_back_to_chunks():
    options = BalanceOptions(min_words_per_line=3, max_words_per_line=3)
    assert balance_lines("a b c d e f g", options) == ["a b c", "d e f", "g"]


@pytest.mark.parametrize("kwargs", [
    {"min_words_per_line": 0},
    {"min_words_per_line": 4, "max_words_per_line": 2},
    {"target_words_per_line": 0},
    {"max_char_variance": -1},
])
def test_invalid_options(kwargs):
    with pytest.raises(ConfigError):
        BalanceOptions(**kwargs)
