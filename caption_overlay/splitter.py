import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from caption_overlay.balancer import BalanceOptions, balance_lines
from caption_overlay.config import LinePolicy, StyleConfig
from caption_overlay.errors import InputError
from caption_overlay.safe_zones import max_text_width

# text -> advance width in px
Measure = Callable[[str], float]

ESCAPED_NEWLINE = "\\n"
LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


@dataclass
class LinePreview:
    line_number: int
    text: str
    word_count: int
    character_count: int


def has_break_markers(caption: str) -> bool:
    return ESCAPED_NEWLINE in caption or bool(LINE_BREAK_RE.search(caption))


def split_by_newlines(text: str) -> List[str]:
    """Split on real or escaped (backslash-n) line breaks, dropping blank lines."""
    text = text.replace(ESCAPED_NEWLINE, "\n")
    return [line for line in LINE_BREAK_RE.split(text) if line.strip()]


def normalize_whitespace(text: str) -> str:
    return " ".join(text.split())


def wrap_to_width(words: Sequence[str], measure: Measure, max_width: float) -> List[str]:
    """
    Greedy word wrap by measured width.

    A word wider than max_width on its own keeps its own line and overflows;
    words are never broken.
    """
    lines = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if not current or measure(candidate) <= max_width:
            current = candidate
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def auto_wrap(caption: str, config: StyleConfig, measure: Measure) -> List[str]:
    words = normalize_whitespace(caption).split(" ")
    limit = max_text_width(config.width, config.height, config.horizontal_padding)
    return wrap_to_width([w for w in words if w], measure, limit)


def fit_lines_to_width(lines: Sequence[str], measure: Measure, max_width: float) -> List[str]:
    """Re-wrap any line wider than max_width, leaving the others untouched."""
    fitted = []
    for line in lines:
        if measure(line) <= max_width:
            fitted.append(line)
        else:
            fitted.extend(wrap_to_width(line.split(" "), measure, max_width))
    return fitted


def balanced_wrap(
    caption: str,
    config: StyleConfig,
    measure: Measure,
    options: Optional[BalanceOptions] = None,
) -> List[str]:
    lines = balance_lines(normalize_whitespace(caption), options)
    limit = max_text_width(config.width, config.height, config.horizontal_padding)
    return fit_lines_to_width(lines, measure, limit)


def is_auto_wrapped(caption: str) -> bool:
    """True when the caption is laid out by width rather than by its own breaks."""
    return len(split_by_newlines(caption)) < 2


def split_text(
    caption: str,
    config: StyleConfig,
    measure: Optional[Measure] = None,
    options: Optional[BalanceOptions] = None,
) -> List[str]:
    """
    Break a caption into lines.

    Captions with two or more lines (real or escaped breaks) are split on them
    as-is. Anything else, including a caption whose breaks leave a single
    line, is wrapped to the safe-zone width, greedily or with the balanced
    packer depending on config.line_policy. options tunes the balanced packer
    and never changes the policy, so splitting the output joined by newlines
    gives the same lines back.
    """
    if caption is None or not caption.strip():
        raise InputError("No text provided")

    if has_break_markers(caption):
        lines = split_by_newlines(caption)
        if not lines:
            raise InputError("Caption contains no printable lines")
        if len(lines) > 1:
            return lines
        caption = lines[0]

    if measure is None:
        from caption_overlay.measure import FontMeasurer

        measure = FontMeasurer.for_config(config)
    if config.line_policy == LinePolicy.BALANCED:
        lines = balanced_wrap(caption, config, measure, options)
    else:
        lines = auto_wrap(caption, config, measure)

    if not lines:
        raise InputError("Caption contains no printable lines")
    return lines


def preview_lines(
    caption: str,
    config: StyleConfig,
    measure: Optional[Measure] = None,
    options: Optional[BalanceOptions] = None,
) -> List[LinePreview]:
    lines = split_text(caption, config, measure, options)
    return [
        LinePreview(
            line_number=i + 1,
            text=line,
            word_count=len(line.split()),
            character_count=len(line),
        )
        for i, line in enumerate(lines)
    ]
