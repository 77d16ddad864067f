"""
Text Preprocessor
=================
Pure, deterministic repair of extracted PDF text, applied before the
canonical parser. Only separators change: words are never reordered,
rewritten, invented or dropped.

Steps (in this exact order):
    1. Normalize line endings to "\\n"
    2. Replace invisible spacing characters (NBSP, ZWSP, BOM...) with a space
    3. Rejoin words hyphen-broken across a line break ("conteú-\\n do")
    4. Collapse runs of horizontal whitespace
    5. Collapse 3+ consecutive line breaks to exactly 2
    6. Per line: strip invisibles and spaces, then join lines under two
       narrow rules (trailing ";"/":" and trailing "," before a short line)

The transformation is idempotent.
"""

from __future__ import annotations

import logging
import re

from .models import PreprocessStats
from .normalizer import INVISIBLE_PATTERN, NormalizedText
from .vocabulary import ANNEX_II_PATTERN

logger = logging.getLogger(__name__)

HYPHEN_BREAK_PATTERN = re.compile(
    r"([^\W\d_])[^\S\n]*-[^\S\n]*\n[^\S\n]*([^\W\d_])"
)
HORIZONTAL_SPACE_PATTERN = re.compile(r"[^\S\n]+")
BLANK_LINES_PATTERN = re.compile(r"\n(?:[^\S\n]*\n){2,}")
NUMBERED_MARKER_PATTERN = re.compile(r"^\d+[.)]")

SHORT_LINE_MAX_WORDS = 3


def _clean_line(line: str) -> str:
    line = INVISIBLE_PATTERN.sub(" ", line)
    line = HORIZONTAL_SPACE_PATTERN.sub(" ", line)
    return line.strip()


def _word_count(line: str) -> int:
    return len(line.split())


def _looks_like_heading(line: str) -> bool:
    """All-caps words only, or a numbered list marker."""
    if NUMBERED_MARKER_PATTERN.match(line):
        return True
    has_letter = False
    for char in line:
        if char.isalpha():
            if char.islower():
                return False
            has_letter = True
        elif not char.isspace():
            return False
    return has_letter


def _should_join(current: str, following: str) -> bool:
    if not following:
        return False
    if current.endswith((";", ":")):
        return True
    if current.endswith(","):
        return (
            1 <= _word_count(following) <= SHORT_LINE_MAX_WORDS
            and not _looks_like_heading(following)
        )
    return False


def join_broken_lines(lines: list[str]) -> list[str]:
    """
    Join lines interrupted by an accidental break.

    A line ending in ";" or ":" absorbs the next line when it is not empty;
    a line ending in "," absorbs the next line only when that line holds
    1-3 words and does not look like a heading. Joins chain, so the result
    is stable under a second pass.
    """
    joined: list[str] = []
    i = 0

    while i < len(lines):
        current = lines[i]
        i += 1
        while i < len(lines) and _should_join(current, lines[i]):
            current = f"{current} {lines[i]}"
            i += 1
        joined.append(current)

    return joined


def preprocess(text: str) -> str:
    """Return the repaired text. Total for any ``str`` input."""
    if not isinstance(text, str):
        raise TypeError(f"text must be str, got {type(text).__name__}")

    # 1) Line endings
    text = text.replace("\r\n", "\n").replace("\r", "\n")

    # 2) Invisible spacing characters
    text = INVISIBLE_PATTERN.sub(" ", text)

    # 3) Hyphen-broken words: "conteú-\n do" -> "conteúdo"
    text = HYPHEN_BREAK_PATTERN.sub(r"\1\2", text)

    # 4) Horizontal whitespace
    text = HORIZONTAL_SPACE_PATTERN.sub(" ", text)

    # 5) At most one blank line in a row
    text = BLANK_LINES_PATTERN.sub("\n\n", text)

    # 6) Per-line cleanup and conservative joins
    lines = [_clean_line(line) for line in text.split("\n")]
    lines = join_broken_lines(lines)
    text = "\n".join(lines)

    # Trimming may have emptied lines that held only stray spaces
    return BLANK_LINES_PATTERN.sub("\n\n", text)


def _count_short_lines(text: str) -> int:
    return sum(
        1 for line in text.split("\n")
        if 1 <= _word_count(line) <= SHORT_LINE_MAX_WORDS
    )


def _count_annex_mentions(text: str) -> int:
    return len(ANNEX_II_PATTERN.findall(NormalizedText.build(text).text))


def preprocess_with_stats(text: str) -> tuple[str, PreprocessStats]:
    """Preprocess ``text`` and report before/after counters."""
    processed = preprocess(text)

    short_before = _count_short_lines(text)
    short_after = _count_short_lines(processed)
    removed = short_before - short_after
    noise_removed = round(removed / short_before * 100) if short_before else 0

    stats = PreprocessStats(
        original_length=len(text),
        processed_length=len(processed),
        annex_mentions_before=_count_annex_mentions(text),
        annex_mentions_after=_count_annex_mentions(processed),
        lines_before=text.count("\n") + 1,
        lines_after=processed.count("\n") + 1,
        short_lines_before=short_before,
        short_lines_after=short_after,
        noise_removed_percent=noise_removed,
    )

    logger.debug(
        f"Preprocessing: {stats.original_length} -> "
        f"{stats.processed_length} chars, "
        f"{stats.lines_before} -> {stats.lines_after} lines, "
        f"short lines {short_before} -> {short_after} "
        f"({noise_removed}% removed)"
    )

    return processed, stats
