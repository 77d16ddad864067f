"""
Pre-Validator
=============
Fail-safe structural checks on the *original* text, run before the
preprocessor touches it. Only diagnoses; never interrupts the pipeline.

Flags (all computed, no short-circuit):
    - text_insufficient: fewer than 800 characters
    - low_density:       fewer than 8 characters per line on average
    - missing_keywords:  none of "conteudo", "programatico", "disciplina"
    - broken_structure:  more than 35% of lines hold 1-3 words
    - repetitive_noise:  a short line (< 100 chars) repeated more than 3 times
"""

from __future__ import annotations

import logging
from collections import Counter

from .models import PrevalidationFlags, PrevalidationResult, PrevalidationStats
from .normalizer import contains_any, normalize

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 800
MIN_LINE_DENSITY = 8
SHORT_LINE_MAX_WORDS = 3
SHORT_LINE_PERCENT_LIMIT = 35
REPEATED_LINE_MAX_LENGTH = 100
REPEATED_LINE_LIMIT = 3

KEYWORDS = ("conteudo", "programatico", "disciplina")


def prevalidate(text: str) -> PrevalidationResult:
    """Compute the five structural risk flags of ``text``."""
    if not isinstance(text, str):
        raise TypeError(f"text must be str, got {type(text).__name__}")

    length = len(text)
    lines = text.split("\n")
    line_count = len(lines)
    density = length / line_count

    short_lines = 0
    repeated: Counter[str] = Counter()

    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        if len(stripped.split()) <= SHORT_LINE_MAX_WORDS:
            short_lines += 1
        if len(stripped) < REPEATED_LINE_MAX_LENGTH:
            repeated[stripped] += 1

    short_line_percent = short_lines / line_count * 100

    flags = PrevalidationFlags(
        text_insufficient=length < MIN_TEXT_LENGTH,
        low_density=density < MIN_LINE_DENSITY,
        missing_keywords=not contains_any(normalize(text), KEYWORDS),
        broken_structure=short_line_percent > SHORT_LINE_PERCENT_LIMIT,
        repetitive_noise=any(
            count > REPEATED_LINE_LIMIT for count in repeated.values()
        ),
    )

    stats = PrevalidationStats(
        length=length,
        line_count=line_count,
        density=density,
        short_line_count=short_lines,
        short_line_percent=short_line_percent,
    )

    active = flags.active()
    if active:
        logger.warning(f"Pre-validation flags raised: {', '.join(active)}")
    else:
        logger.debug(
            f"Pre-validation OK (length={length}, lines={line_count})"
        )

    return PrevalidationResult(flags=flags, stats=stats)
