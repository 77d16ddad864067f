"""
Canonical Parser
================
Deterministic, index-based extraction of the syllabus of an exam notice.
Does not depend on line breaks for locating structure: every search runs on
the normalized text and spans are mapped back to the processed text.

Phases (no backtracking across phases):
    A. SUBJECT_LIST      Official subjects from the weighting table
                         ("Quadro 1" / "Estrutura da Prova"), else fallback
    B. WEIGHTS           Question/point count per subject (optional)
    C. SYLLABUS_SECTION  The real "Anexo II", not its table-of-contents
                         mention; validated last-to-first
    D. SUBJECT_SECTIONS  Heading of each subject, section partition and
                         topic extraction
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .finalizer import canonical_subject_name, finalize
from .models import (
    Discipline,
    ParseDebugInfo,
    ParserResult,
    SubjectDebugInfo,
    SubjectSection,
    SubjectWeight,
    WeightMethod,
    WeightTable,
)
from .normalizer import NormalizedText, content_tokens, normalize
from .topics import MAX_TOPICS_PER_SUBJECT, extract_topics
from .vocabulary import (
    ANNEX_END_PATTERN,
    ANNEX_II_PATTERN,
    CANONICAL_SUBJECTS,
    FALLBACK_SUBJECTS,
    HEADING_CONTEXT_WORDS,
    HEADING_NORMALIZATION,
    SYLLABUS_PATTERN,
    WEIGHT_TABLE_MARKERS,
)

logger = logging.getLogger(__name__)

# ─── Windows and Thresholds ───────────────────────────────────────────────────

SUBJECT_LIST_WINDOW = 5000
WEIGHT_WINDOW = 8000
WEIGHT_CONTEXT = 200
MIN_OFFICIAL_SUBJECTS = 3
MIN_WEIGHTED_SUBJECTS = 3
MAX_WEIGHT = 200

ANNEX_VALIDATION_WINDOW = 2000
ANNEX_MARKER_WINDOW = 800
ANNEX_TOPIC_CONTEXT = 300
SYLLABUS_HEADING_WINDOW = 1500

SIGNATURE_WINDOW = 100
SIGNATURE_TOPIC_CONTEXT = 200
SNIPPET_LENGTH = 200

# ─── Patterns ─────────────────────────────────────────────────────────────────

UPPER = "A-ZÁÉÍÓÚÂÊÔÃÕÇ"

NUMBER_PATTERN = re.compile(r"\b(\d{1,3})\b")
POINTS_PATTERN = re.compile(r"pontos?")
QUESTIONS_PATTERN = re.compile(r"quest(?:ao|oes?)")
NUMBERED_TOPIC_PATTERN = re.compile(r"\d+[.)]\s+")
NUMBER_MARK_PATTERN = re.compile(r"\d+[.)]")
UPPER_HEADING_COLON = re.compile(rf"[{UPPER}][{UPPER}\s/\-]{{3,80}}:")
ANNEX_HEADING_PATTERN = re.compile(rf"([{UPPER}][{UPPER}0-9 \t/\-]{{2,80}}?):")
HEADING_TOPIC_MARK = re.compile(r"\d+\s*[\-–—.]")


class ParserPhase(Enum):
    """Phases of the canonical parse, in order."""
    SUBJECT_LIST = "SUBJECT_LIST"
    WEIGHTS = "WEIGHTS"
    SYLLABUS_SECTION = "SYLLABUS_SECTION"
    SUBJECT_SECTIONS = "SUBJECT_SECTIONS"
    FINALIZE = "FINALIZE"


@dataclass(frozen=True)
class SectionLocation:
    """Syllabus span in normalized coordinates."""
    start: int
    end: int
    validated: bool


@dataclass(frozen=True)
class HeadingMatch:
    subject: str
    start: int
    length: int


# ─── Phase A: Subject List ────────────────────────────────────────────────────


def find_weight_table_marker(normalized: str) -> int:
    """Earliest weighting-table marker, or -1."""
    indices = [normalized.find(normalize(m)) for m in WEIGHT_TABLE_MARKERS]
    found = [idx for idx in indices if idx != -1]
    return min(found) if found else -1


def _occurrences(window: str, key: str) -> list[tuple[int, int]]:
    pattern = re.compile(rf"\b{re.escape(key)}\b")
    return [(m.start(), m.end()) for m in pattern.finditer(window)]


def match_canonical_subjects(window: str) -> list[str]:
    """
    Canonical subjects named in ``window``, in document order.

    An occurrence nested inside a longer subject name ("matematica" in
    "matematica financeira") does not count.
    """
    spans = {
        name: _occurrences(window, normalize(name))
        for name in CANONICAL_SUBJECTS
    }

    first_positions: dict[str, int] = {}
    for name, occurrences in spans.items():
        for start, end in occurrences:
            nested = any(
                other != name
                and o_start <= start and end <= o_end
                and (o_end - o_start) > (end - start)
                for other, other_spans in spans.items()
                for o_start, o_end in other_spans
            )
            if not nested:
                first_positions[name] = start
                break

    return sorted(first_positions, key=first_positions.__getitem__)


def resolve_official_subjects(
    normalized: str,
    marker: int,
) -> tuple[list[str], bool]:
    """Returns (subjects, taken_from_table)."""
    if marker == -1:
        logger.info("Weighting table marker not found, using fallback subjects")
        return list(FALLBACK_SUBJECTS), False

    window = normalized[marker:marker + SUBJECT_LIST_WINDOW]
    subjects = match_canonical_subjects(window)

    if len(subjects) < MIN_OFFICIAL_SUBJECTS:
        logger.info(
            f"Weighting table lists only {len(subjects)} known subject(s), "
            f"using fallback subjects"
        )
        return list(FALLBACK_SUBJECTS), False

    return subjects, True


# ─── Phase B: Weights ─────────────────────────────────────────────────────────


def _locate_subject(window: str, subject_normalized: str) -> int:
    idx = window.find(subject_normalized)
    if idx != -1:
        return idx
    for token in content_tokens(subject_normalized):
        idx = window.find(token)
        if idx != -1:
            return idx
    return -1


def extract_weights(
    normalized: str,
    marker: int,
    subjects: list[str],
) -> WeightTable:
    """Question (or point) count per official subject."""
    if marker == -1:
        return WeightTable(warning="Weighting table not found in the text")

    window = normalized[marker:marker + WEIGHT_WINDOW]
    weights: list[SubjectWeight] = []
    method: Optional[WeightMethod] = None

    for subject in subjects:
        idx = _locate_subject(window, normalize(subject))
        if idx == -1:
            continue

        context = window[idx:idx + WEIGHT_CONTEXT]
        numbers = [
            int(n) for n in NUMBER_PATTERN.findall(context)
            if 1 <= int(n) <= MAX_WEIGHT
        ]
        if not numbers:
            continue

        has_points = bool(POINTS_PATTERN.search(context))
        has_questions = bool(QUESTIONS_PATTERN.search(context)) or not has_points

        if has_questions:
            weights.append(SubjectWeight(subject=subject, question_count=numbers[0]))
            method = method or WeightMethod.QUESTIONS
        else:
            weights.append(SubjectWeight(subject=subject, point_count=numbers[0]))
            method = method or WeightMethod.POINTS

    if len(weights) < MIN_WEIGHTED_SUBJECTS:
        return WeightTable(
            warning=(
                f"Weighting table yielded only {len(weights)} subject(s) "
                f"with a valid number (minimum: {MIN_WEIGHTED_SUBJECTS})"
            ),
        )

    table = WeightTable(
        found=True,
        method=method or WeightMethod.QUESTIONS,
        weights=weights,
    )
    logger.info(
        f"Weighting table found ({table.method.value}): "
        f"{', '.join(f'{w.subject}={w.value}' for w in weights)}"
    )
    return table


# ─── Phase C: Syllabus Section ────────────────────────────────────────────────


def _has_numbered_topics_after(window: str, subject_normalized: str) -> bool:
    idx = _locate_subject(window, subject_normalized)
    if idx == -1:
        return False
    context = window[idx:idx + ANNEX_TOPIC_CONTEXT]
    return bool(NUMBERED_TOPIC_PATTERN.search(context))


def validate_annex_occurrence(window: str, subjects_normalized: list[str]) -> bool:
    """
    Canonical checks on the first chars of an "Anexo II" occurrence:
        - the marker within the first 800 chars
        - "conteudo programatico" within the first 2000 chars
        - a subject heading followed by numbered topics within 300 chars
    """
    if not ANNEX_II_PATTERN.search(window[:ANNEX_MARKER_WINDOW]):
        logger.debug("Annex candidate rejected: marker not in first 800 chars")
        return False

    if not SYLLABUS_PATTERN.search(window[:ANNEX_VALIDATION_WINDOW]):
        logger.debug("Annex candidate rejected: no syllabus phrase")
        return False

    for subject in subjects_normalized:
        if _has_numbered_topics_after(window, subject):
            logger.debug(f"Annex candidate accepted via {subject!r}")
            return True

    logger.debug("Annex candidate rejected: no subject with numbered topics")
    return False


def find_syllabus_phrase(text: str, normalized: NormalizedText) -> int:
    """
    Last "conteudo(s) programatico(s)" occurrence, preferring (from last to
    first) one followed by an upper-case "HEADING:" within 1500 chars.
    """
    indices = [m.start() for m in SYLLABUS_PATTERN.finditer(normalized.text)]
    if not indices:
        return -1

    for idx in reversed(indices):
        source = normalized.to_source(idx)
        if UPPER_HEADING_COLON.search(text, source, source + SYLLABUS_HEADING_WINDOW):
            return idx

    return indices[-1]


def locate_syllabus_section(
    text: str,
    normalized: NormalizedText,
    subjects: list[str],
) -> Optional[SectionLocation]:
    """Find the real syllabus annex; None when nothing usable exists."""
    norm = normalized.text
    subjects_normalized = [normalize(s) for s in subjects]
    annex_indices = [m.start() for m in ANNEX_II_PATTERN.finditer(norm)]

    if not annex_indices:
        idx = find_syllabus_phrase(text, normalized)
        if idx == -1:
            logger.warning("Syllabus annex not found")
            return None
        logger.warning(
            f"No 'Anexo II' marker, using syllabus phrase at index {idx}"
        )
        return SectionLocation(start=idx, end=len(norm), validated=False)

    logger.debug(f"Found {len(annex_indices)} 'Anexo II' occurrence(s)")

    chosen = -1
    for idx in reversed(annex_indices):
        window = norm[idx:idx + ANNEX_VALIDATION_WINDOW]
        if validate_annex_occurrence(window, subjects_normalized):
            chosen = idx
            break

    validated = chosen != -1
    if validated:
        logger.info(f"Validated 'Anexo II' at index {chosen}")
    else:
        chosen = find_syllabus_phrase(text, normalized)
        if chosen != -1:
            logger.warning(
                f"No 'Anexo II' passed validation, falling back to the "
                f"syllabus phrase at index {chosen}"
            )
        else:
            chosen = annex_indices[-1]
            logger.warning(
                f"No 'Anexo II' passed validation, falling back to the "
                f"last occurrence at index {chosen}"
            )

    end_match = ANNEX_END_PATTERN.search(norm, chosen)
    end = end_match.start() if end_match else len(norm)

    return SectionLocation(start=chosen, end=end, validated=validated)


# ─── Phase C': Headings Declared Inside the Annex ─────────────────────────────


def _trim_heading(heading: str) -> str:
    parts = heading.split()
    if len(parts) > 3:
        filtered = [
            p for p in parts if normalize(p) not in HEADING_CONTEXT_WORDS
        ]
        parts = filtered if len(filtered) >= 2 else parts
    return " ".join(parts[-4:]).strip()


def detect_annex_headings(section_text: str) -> list[str]:
    """
    Upper-case "HEADING:" lines followed by numbered topics, used as the
    subject list when the notice has no weighting table.
    """
    headings: list[str] = []

    for match in ANNEX_HEADING_PATTERN.finditer(section_text):
        heading = " ".join(match.group(1).split())
        after = section_text[match.start():match.start() + SIGNATURE_TOPIC_CONTEXT]

        if not HEADING_TOPIC_MARK.search(after):
            continue
        if not 3 <= len(heading) <= 80 or heading.startswith("ANEXO"):
            continue
        if SYLLABUS_PATTERN.search(normalize(heading)):
            continue

        heading = _trim_heading(heading)
        folded = normalize(heading)
        if len(re.sub(r"[^a-z]", "", folded)) < 3:
            continue

        for pattern, canonical in HEADING_NORMALIZATION:
            if pattern.search(folded):
                heading = canonical
                break

        if heading not in headings:
            headings.append(heading)

    return headings


# ─── Phase D: Subject Sections ────────────────────────────────────────────────


def find_heading_exact(section: str, subject_normalized: str) -> Optional[int]:
    idx = section.find(subject_normalized)
    return idx if idx != -1 else None


def find_heading_by_signature(
    section: str,
    subject_normalized: str,
) -> Optional[int]:
    """
    All content words of the name within 100 chars of the first one, with a
    numbered item within 200 chars ("nocoes basicas de informatica 1. ...").
    """
    tokens = content_tokens(subject_normalized)
    if not tokens:
        return None

    first, rest = tokens[0], tokens[1:]
    start = 0
    while True:
        idx = section.find(first, start)
        if idx == -1:
            return None
        window = section[idx:idx + SIGNATURE_WINDOW]
        if all(token in window for token in rest):
            context = section[idx:idx + SIGNATURE_TOPIC_CONTEXT]
            if NUMBER_MARK_PATTERN.search(context):
                return idx
        start = idx + 1


HEADING_STRATEGIES: tuple[Callable[[str, str], Optional[int]], ...] = (
    find_heading_exact,
    find_heading_by_signature,
)


def locate_headings(section: str, subjects: list[str]) -> list[HeadingMatch]:
    """Heading of each subject, sorted by position, never overlapping."""
    matches: list[HeadingMatch] = []

    for subject in subjects:
        subject_normalized = normalize(subject)
        for strategy in HEADING_STRATEGIES:
            idx = strategy(section, subject_normalized)
            if idx is not None:
                matches.append(HeadingMatch(subject, idx, len(subject_normalized)))
                break

    matches.sort(key=lambda m: (m.start, -m.length))

    kept: list[HeadingMatch] = []
    for match in matches:
        if kept and match.start < kept[-1].start + kept[-1].length:
            logger.debug(
                f"Heading {match.subject!r} overlaps {kept[-1].subject!r}, dropped"
            )
            continue
        kept.append(match)

    logger.debug(
        "Sections (ordered): "
        + ", ".join(f"{m.subject} @ {m.start}" for m in kept)
    )
    return kept


# ─── Parser ───────────────────────────────────────────────────────────────────


class CanonicalParser:
    """
    Runs phases A-D over preprocessed text and hands the raw result to the
    finalizer.
    """

    def __init__(self, max_topics_per_subject: int = MAX_TOPICS_PER_SUBJECT):
        self.max_topics_per_subject = max_topics_per_subject
        self.phase = ParserPhase.SUBJECT_LIST

    def parse(self, text: str) -> ParserResult:
        """Parse ``text`` into disciplines and debug info; any str yields a result."""
        if not isinstance(text, str):
            raise TypeError(f"text must be str, got {type(text).__name__}")

        logger.info(f"Starting canonical parse ({len(text)} chars)")
        normalized = NormalizedText.build(text)
        norm = normalized.text

        # ── Phase A: official subjects ────────────────────────────────
        self.phase = ParserPhase.SUBJECT_LIST
        marker = find_weight_table_marker(norm)
        official, _ = resolve_official_subjects(norm, marker)
        logger.info(f"Official subjects: {official}")

        # ── Phase B: weights ──────────────────────────────────────────
        self.phase = ParserPhase.WEIGHTS
        weight_table = extract_weights(norm, marker, official)
        if not weight_table.found:
            logger.info(f"No subject weights: {weight_table.warning}")

        # ── Phase C: syllabus section ─────────────────────────────────
        self.phase = ParserPhase.SYLLABUS_SECTION
        location = locate_syllabus_section(text, normalized, official)

        if location is None:
            debug = ParseDebugInfo(
                official_subjects=official,
                weight_table=weight_table,
                per_subject=[
                    SubjectDebugInfo(
                        subject=subject,
                        found=False,
                        failure_reason="Syllabus annex not found",
                    )
                    for subject in official
                ],
            )
            return self._finalize(ParserResult(disciplines=[], debug=debug))

        section_start, section_end = normalized.source_span(
            location.start, location.end
        )
        section_text = text[section_start:section_end]

        if not weight_table.found and section_text:
            headings = detect_annex_headings(section_text)
            if len(headings) >= MIN_OFFICIAL_SUBJECTS:
                logger.info(f"Using subject headings declared in the annex: {headings}")
                official = headings

        # ── Phase D: subject sections and topics ──────────────────────
        self.phase = ParserPhase.SUBJECT_SECTIONS
        section_norm = norm[location.start:location.end]
        headings_found = locate_headings(section_norm, official)

        sections: list[SubjectSection] = []
        for i, heading in enumerate(headings_found):
            rel_end = (
                headings_found[i + 1].start
                if i + 1 < len(headings_found)
                else len(section_norm)
            )
            start, end = normalized.source_span(
                location.start + heading.start, location.start + rel_end
            )
            sections.append(SubjectSection(subject=heading.subject, start=start, end=end))

        by_subject = {s.subject: s for s in sections}
        disciplines: list[Discipline] = []
        per_subject: list[SubjectDebugInfo] = []

        for subject in official:
            section = by_subject.get(subject)
            if section is None:
                per_subject.append(SubjectDebugInfo(
                    subject=subject,
                    found=False,
                    failure_reason="Subject heading not found in the syllabus annex",
                ))
                continue

            topics = extract_topics(
                text[section.start:section.end],
                subject=subject,
                limit=self.max_topics_per_subject,
            )
            if topics:
                disciplines.append(Discipline(
                    name=canonical_subject_name(subject),
                    original_name=subject,
                    topics=topics,
                ))

            per_subject.append(SubjectDebugInfo(
                subject=subject,
                found=True,
                start=section.start,
                end=section.end,
                chars=section.length,
                topic_count=len(topics),
                failure_reason=None if topics else "No topics found in the section",
            ))

        logger.info(
            f"Detected {len(disciplines)} of {len(official)} subjects with topics"
        )

        debug = ParseDebugInfo(
            section_found=True,
            section_start=section_start,
            section_end=section_end,
            section_chars=len(section_text),
            section_snippet=section_text[:SNIPPET_LENGTH].replace("\n", " ").strip(),
            section_validated=location.validated,
            official_subjects=official,
            detected_subjects=len(disciplines),
            subject_names=[d.original_name for d in disciplines],
            per_subject=per_subject,
            sections=sections,
            weight_table=weight_table,
        )
        return self._finalize(ParserResult(disciplines=disciplines, debug=debug))

    def _finalize(self, raw: ParserResult) -> ParserResult:
        self.phase = ParserPhase.FINALIZE
        return finalize(raw)
