"""
Normalizer
==========
Accent-, case- and whitespace-insensitive folding used by every stage that
needs to *locate* text. Folded text is never shown to the user.

``NormalizedText`` keeps, for each folded character, the offset of the source
character it came from, so spans found in folded coordinates can be cut from
the original text exactly.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field

# NBSP, zero-width space / non-joiner / joiner, BOM
INVISIBLE_CHARS = "\u00a0\u200b\u200c\u200d\ufeff"
INVISIBLE_PATTERN = re.compile(f"[{INVISIBLE_CHARS}]")


def _fold_char(char: str) -> str:
    """Fold one character: NFD, drop combining marks, lowercase."""
    if char < "\x80":
        return char.lower()
    decomposed = unicodedata.normalize("NFD", char)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    lowered = stripped.lower()
    # Lowercasing can reintroduce a combining mark (e.g. "İ")
    return "".join(c for c in lowered if not unicodedata.combining(c))


def _is_space(char: str) -> bool:
    return char.isspace() or char in INVISIBLE_CHARS


@dataclass(frozen=True)
class NormalizedText:
    """Folded text plus a map from folded offsets to source offsets."""

    text: str
    source_length: int
    offsets: tuple[int, ...] = field(repr=False)

    @classmethod
    def build(cls, source: str) -> "NormalizedText":
        out: list[str] = []
        offsets: list[int] = []
        pending_space = -1

        for idx, char in enumerate(source):
            if _is_space(char):
                if pending_space == -1:
                    pending_space = idx
                continue

            folded = _fold_char(char)
            if not folded:
                continue

            if pending_space != -1:
                if out:
                    out.append(" ")
                    offsets.append(pending_space)
                pending_space = -1

            for c in folded:
                out.append(c)
                offsets.append(idx)

        return cls(
            text="".join(out),
            source_length=len(source),
            offsets=tuple(offsets),
        )

    def __len__(self) -> int:
        return len(self.text)

    def to_source(self, index: int) -> int:
        """Map a folded offset (0..len) to a source offset."""
        if index < 0:
            return 0
        if index >= len(self.offsets):
            return self.source_length
        return self.offsets[index]

    def source_span(self, start: int, end: int) -> tuple[int, int]:
        return self.to_source(start), self.to_source(end)


def normalize(text: str) -> str:
    """Strip diacritics, lowercase, collapse whitespace runs, trim."""
    return NormalizedText.build(text).text


def find_all(haystack_normalized: str, needle: str) -> list[int]:
    """Start offsets of every non-overlapping occurrence of ``needle``."""
    target = normalize(needle)
    if not target:
        return []

    indices: list[int] = []
    start = 0
    while True:
        idx = haystack_normalized.find(target, start)
        if idx == -1:
            break
        indices.append(idx)
        start = idx + len(target)
    return indices


def find_first(haystack_normalized: str, needle: str, start: int = 0) -> int:
    """Index of the first occurrence of ``needle`` (normalized), or -1."""
    target = normalize(needle)
    if not target:
        return -1
    return haystack_normalized.find(target, start)


def contains_any(haystack_normalized: str, needles) -> bool:
    return any(find_first(haystack_normalized, n) != -1 for n in needles)


def content_tokens(name_normalized: str) -> list[str]:
    """Words of at least four characters ("nocoes de informatica" -> 2)."""
    return [w for w in name_normalized.split() if len(w) > 3]
