"""
Topic Extraction
================
Turns the text of one subject section into a de-duplicated list of topics.

Per line, first match wins:
    (a) several numbered items on one line: "1. Foo 2. Bar 3) Baz"
    (b) one numbered item starting the line: "1. Foo"
    (c) free text (not a heading, not numbered): split on ";", then on
        implicit enumerations, then (long blocks) into sentences or
        comma-delimited clauses
    (d) the whole line as a single candidate

Every candidate must be 3-240 chars, must not contain boilerplate
vocabulary and must not repeat a topic already taken for the subject.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from .normalizer import normalize
from .vocabulary import HEADER_PATTERNS

logger = logging.getLogger(__name__)

MIN_TOPIC_LENGTH = 3
MAX_TOPIC_LENGTH = 240
MAX_TOPICS_PER_SUBJECT = 120
LONG_BLOCK_LENGTH = 180
MIN_SENTENCE_LENGTH = 20

UPPER = "A-ZÁÉÍÓÚÂÊÔÃÕÇ"

INLINE_ITEMS_PATTERN = re.compile(
    r"\d+\s*[.)\-–—]\s+([^0-9]+?)(?=\d+\s*[.)\-–—]|$)"
)
LEADING_ITEM_PATTERN = re.compile(r"^\d+\s*[.)\-–—]\s+(.+)")
STARTS_WITH_NUMBER_PATTERN = re.compile(r"^\d+[.)]")
SEMICOLON_SPLIT = re.compile(r";\s*")
IMPLICIT_ENUM_SPLIT = re.compile(
    r"(?=\b(?:\d{1,2}|[ivxlcdm]{1,4}|[a-z])[)\-–—.]\s+)", re.IGNORECASE
)
SENTENCE_SPLIT = re.compile(rf"(?<=[.;])\s+(?=[{UPPER}])")
CLAUSE_SPLIT = re.compile(rf",\s+(?=[{UPPER}])")
WHITESPACE = re.compile(r"\s+")
TRAILING_PUNCTUATION = re.compile(r"[;:,.]+$")
HEADING_LINE_PATTERN = re.compile(rf"^[{UPPER}\s]{{10,}}$")


def is_heading_line(line: str) -> bool:
    """
    Capitals and spaces only, at least 10 chars ("LÍNGUA PORTUGUESA").
    Punctuated all-caps lines ("HTML, CSS E JAVASCRIPT") are topics.
    """
    return bool(HEADING_LINE_PATTERN.match(line))


def contains_boilerplate(text: str) -> bool:
    folded = normalize(text)
    return any(p.search(folded) for p in HEADER_PATTERNS)


def clean_topic(text: str) -> Optional[str]:
    """Collapse whitespace, strip trailing punctuation, enforce bounds."""
    topic = WHITESPACE.sub(" ", text).strip()
    topic = TRAILING_PUNCTUATION.sub("", topic).strip()
    if not MIN_TOPIC_LENGTH <= len(topic) <= MAX_TOPIC_LENGTH:
        return None
    return topic


# ─── Free-Text Segmentation ───────────────────────────────────────────────────


def _split_semicolons(block: str) -> list[str]:
    return [p.strip() for p in SEMICOLON_SPLIT.split(block) if p.strip()]


def _split_enumerations(block: str) -> list[str]:
    return [p.strip() for p in IMPLICIT_ENUM_SPLIT.split(block) if p.strip()]


def _split_sentences(block: str) -> list[str]:
    if len(block) <= LONG_BLOCK_LENGTH:
        return []
    return [
        s.strip() for s in SENTENCE_SPLIT.split(block)
        if MIN_SENTENCE_LENGTH <= len(s.strip()) <= MAX_TOPIC_LENGTH
    ]


def _split_clauses(block: str) -> list[str]:
    if len(block) <= LONG_BLOCK_LENGTH:
        return []
    return [
        s.strip() for s in CLAUSE_SPLIT.split(block)
        if MIN_SENTENCE_LENGTH <= len(s.strip()) <= MAX_TOPIC_LENGTH
    ]


SEGMENTERS: tuple[Callable[[str], list[str]], ...] = (
    _split_semicolons,
    _split_enumerations,
    _split_sentences,
    _split_clauses,
)


def segment_free_text(text: str) -> list[str]:
    """Split a run-together block; the first segmenter yielding >1 part wins."""
    block = WHITESPACE.sub(" ", text).strip()
    if not block:
        return []
    for segmenter in SEGMENTERS:
        parts = segmenter(block)
        if len(parts) > 1:
            return parts
    return [block]


# ─── Extraction ───────────────────────────────────────────────────────────────


class TopicCollector:
    """Accumulates accepted topics for one subject."""

    def __init__(self, limit: int = MAX_TOPICS_PER_SUBJECT):
        self.limit = limit
        self.topics: list[str] = []
        self._seen: set[str] = set()

    @property
    def full(self) -> bool:
        return len(self.topics) >= self.limit

    def add(self, candidate: str) -> bool:
        """Register a candidate; returns True when it was accepted."""
        if self.full:
            return False
        topic = clean_topic(candidate)
        if topic is None or topic in self._seen:
            return False
        if contains_boilerplate(topic):
            logger.debug(f"Rejected boilerplate topic: {topic[:60]!r}")
            return False
        self.topics.append(topic)
        self._seen.add(topic)
        return True

    def add_all(self, candidates) -> bool:
        accepted = False
        for candidate in candidates:
            if self.add(candidate):
                accepted = True
        return accepted


def extract_topics(
    section_text: str,
    subject: str = "",
    limit: int = MAX_TOPICS_PER_SUBJECT,
) -> list[str]:
    """
    Extract the topics of one subject section.

    A line that only repeats the subject name is its heading and is skipped.
    """
    collector = TopicCollector(limit=limit)
    heading = normalize(subject)

    for raw_line in section_text.split("\n"):
        if collector.full:
            break

        line = raw_line.strip()
        if not line:
            continue
        if heading and normalize(TRAILING_PUNCTUATION.sub("", line)) == heading:
            continue

        # (a) Several numbered items on the same line
        inline_items = [m.group(1) for m in INLINE_ITEMS_PATTERN.finditer(line)]
        if collector.add_all(inline_items):
            continue

        # (b) A single numbered item
        leading = LEADING_ITEM_PATTERN.match(line)
        if leading:
            collector.add(leading.group(1))
            continue

        if is_heading_line(line) or STARTS_WITH_NUMBER_PATTERN.match(line):
            continue

        # (c) Free text; (d) the whole line when segmentation added nothing
        if not collector.add_all(segment_free_text(line)):
            collector.add(line)

    return collector.topics
