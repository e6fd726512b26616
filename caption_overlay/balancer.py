"""
Balanced line packing.

Splits a caption into lines of similar length, aiming for 3-4 words per
line, instead of filling each line greedily. Short captions are searched
exhaustively; long ones use a dynamic programme (see MAX_EXHAUSTIVE_WORDS and
MAX_ARRANGEMENTS).
No text measurement happens here - callers fit the result to a pixel width.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from caption_overlay.errors import ConfigError

# The exhaustive search enumerates every grouping of the words; the number of
# groupings grows exponentially with the word count and the min..max spread.
# Past either limit the dynamic programme in _dp_groups is used instead.
MAX_EXHAUSTIVE_WORDS = 20
MAX_ARRANGEMENTS = 20_000


@dataclass(frozen=True)
class BalanceOptions:
    target_words_per_line: float = 3.5
    min_words_per_line: int = 2
    max_words_per_line: int = 5
    max_char_variance: float = 0.3

    def __post_init__(self):
        if self.min_words_per_line < 1:
            raise ConfigError("min_words_per_line must be at least 1")
        if self.max_words_per_line < self.min_words_per_line:
            raise ConfigError("max_words_per_line must be >= min_words_per_line")
        if self.target_words_per_line <= 0:
            raise ConfigError("target_words_per_line must be positive")
        if self.max_char_variance < 0:
            raise ConfigError("max_char_variance must not be negative")


def generate_arrangements(words: Sequence[str], min_words: int, max_words: int) -> Iterator[List[str]]:
    """Yield every split of words into consecutive lines of min..max words."""
    current: List[str] = []

    def backtrack(start: int) -> Iterator[List[str]]:
        if start >= len(words):
            yield list(current)
            return
        for count in range(min_words, max_words + 1):
            if start + count > len(words):
                break
            current.append(" ".join(words[start:start + count]))
            yield from backtrack(start + count)
            current.pop()

    yield from backtrack(0)


def count_arrangements(word_count: int, min_words: int, max_words: int) -> int:
    """Number of ways to split word_count words into lines of min..max words."""
    ways = [1] + [0] * word_count
    for end in range(1, word_count + 1):
        ways[end] = sum(ways[end - n] for n in range(min_words, min(max_words, end) + 1))
    return ways[word_count]


def score_arrangement(lines: Sequence[str], target_words: float, max_char_variance: float) -> float:
    if not lines:
        return 0.0

    lengths = [len(line) for line in lines]
    word_counts = [len(line.split(" ")) for line in lines]

    score = 0.0

    # Character balance
    avg_length = sum(lengths) / len(lines)
    normalized_variance = (max(lengths) - min(lengths)) / avg_length
    score += max(0.0, 100 - normalized_variance * 200)
    if normalized_variance > max_char_variance:
        score -= 20

    # Average words per line close to target
    avg_words = sum(word_counts) / len(lines)
    score += max(0.0, 50 - abs(avg_words - target_words) * 20)

    # Consistent word counts
    score += max(0.0, 30 - (max(word_counts) - min(word_counts)) * 10)

    # Prefer concise captions
    score -= max(0, len(lines) - 3) * 5

    # 3-4 word lines read best
    score += sum(10 for count in word_counts if 3 <= count <= 4)

    return score


def _dp_groups(words: Sequence[str], options: BalanceOptions) -> Optional[List[str]]:
    """
    Minimise the squared deviation of each line's length from an ideal length.

    O(n * max_words_per_line). Returns None when no grouping fits the bounds.
    """
    n = len(words)
    line_count = max(1, round(n / options.target_words_per_line))
    ideal = len(" ".join(words)) / line_count

    prefix = [0]
    for word in words:
        prefix.append(prefix[-1] + len(word))

    inf = float("inf")
    best = [inf] * (n + 1)
    back = [0] * (n + 1)
    best[0] = 0.0
    for end in range(1, n + 1):
        for count in range(options.min_words_per_line, options.max_words_per_line + 1):
            start = end - count
            if start < 0 or best[start] == inf:
                continue
            length = prefix[end] - prefix[start] + count - 1
            cost = best[start] + (length - ideal) ** 2
            if cost < best[end]:
                best[end] = cost
                back[end] = start

    if best[n] == inf:
        return None

    lines = []
    end = n
    while end > 0:
        start = back[end]
        lines.append(" ".join(words[start:end]))
        end = start
    lines.reverse()
    return lines


def _chunk(words: Sequence[str], size: int) -> List[str]:
    return [" ".join(words[i:i + size]) for i in range(0, len(words), size)]


def balance_lines(text: str, options: Optional[BalanceOptions] = None) -> List[str]:
    options = options or BalanceOptions()
    words = text.split()
    if not words:
        return []

    if len(words) <= options.max_words_per_line:
        return [" ".join(words)]

    if (len(words) > MAX_EXHAUSTIVE_WORDS or count_arrangements(
            len(words), options.min_words_per_line, options.max_words_per_line) > MAX_ARRANGEMENTS):
        lines = _dp_groups(words, options)
        return lines if lines is not None else _chunk(words, options.max_words_per_line)

    best = None
    best_score = 0.0
    for arrangement in generate_arrangements(words, options.min_words_per_line, options.max_words_per_line):
        score = score_arrangement(arrangement, options.target_words_per_line, options.max_char_variance)
        if best is None or score > best_score:
            best, best_score = arrangement, score

    if best is None:
        # word count can't be split within the min/max bounds
        return _chunk(words, options.max_words_per_line)
    return best
