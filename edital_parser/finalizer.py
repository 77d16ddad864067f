"""
Finalizer
=========
Last stage of the canonical parser. Turns the raw per-heading result into
the final list of disciplines and fills in the completeness statistics.

    1. Map names through the explicit equivalence table
    2. Merge disciplines whose names normalize to the same key
    3. Clean topics (whitespace, trailing punctuation, bounds)
    4. Drop duplicate topics
    5. Emit exactly the official subjects, in official order
    6. Compute density, completeness and the confidence score
"""

from __future__ import annotations

import logging

from .models import Discipline, ParserResult
from .normalizer import normalize
from .topics import clean_topic
from .vocabulary import SUBJECT_EQUIVALENCES

logger = logging.getLogger(__name__)

SECTION_WEIGHT = 30
COMPLETENESS_WEIGHT = 40
DENSITY_WEIGHT = 30
TARGET_DENSITY = 20


def canonical_subject_name(name: str) -> str:
    """"Português" -> "Língua Portuguesa"; unknown names pass through."""
    return SUBJECT_EQUIVALENCES.get(normalize(name), name.strip())


def _merge(disciplines: list[Discipline]) -> dict[str, list[str]]:
    merged: dict[str, list[str]] = {}
    for discipline in disciplines:
        key = normalize(canonical_subject_name(discipline.name))
        merged.setdefault(key, []).extend(discipline.topics)
    return merged


def _clean_topics(topics: list[str]) -> list[str]:
    cleaned: list[str] = []
    seen: set[str] = set()
    for raw in topics:
        topic = clean_topic(raw)
        if topic is None or topic in seen:
            continue
        seen.add(topic)
        cleaned.append(topic)
    return cleaned


def confidence_score(section_found: bool, completeness: float, density: float) -> int:
    """0-100 score: section found (30), completeness (40), density (30)."""
    score = (
        SECTION_WEIGHT * int(section_found)
        + min(COMPLETENESS_WEIGHT * completeness / 100, COMPLETENESS_WEIGHT)
        + min(DENSITY_WEIGHT * density / TARGET_DENSITY, DENSITY_WEIGHT)
    )
    return round(score)


def finalize(result: ParserResult) -> ParserResult:
    """Return a new result holding one discipline per official subject."""
    debug = result.debug
    merged = _merge(result.disciplines)

    if debug.official_subjects:
        disciplines = []
        for official in debug.official_subjects:
            name = canonical_subject_name(official)
            topics = merged.get(normalize(name), [])
            disciplines.append(Discipline(
                name=name,
                original_name=official,
                topics=_clean_topics(topics),
            ))

        official_keys = {
            normalize(canonical_subject_name(s)) for s in debug.official_subjects
        }
        extra = [key for key in merged if key not in official_keys]
        if extra:
            logger.debug(f"Dropped non-official subjects: {extra}")
    else:
        disciplines = [
            Discipline(
                name=canonical_subject_name(d.name),
                original_name=d.original_name,
                topics=_clean_topics(d.topics),
            )
            for d in result.disciplines
        ]

    total_subjects = len(disciplines)
    total_topics = sum(len(d.topics) for d in disciplines)
    with_topics = sum(1 for d in disciplines if d.topics)

    density = total_topics / total_subjects if total_subjects else 0.0
    completeness = with_topics / total_subjects * 100 if total_subjects else 0.0
    score = confidence_score(debug.section_found, completeness, density)

    logger.info(
        f"Finalized {total_subjects} subjects, {total_topics} topics "
        f"(completeness {completeness:.0f}%, confidence {score})"
    )

    return ParserResult(
        disciplines=disciplines,
        debug=debug.model_copy(update={
            "total_subjects": total_subjects,
            "total_topics": total_topics,
            "density": round(density, 2),
            "completeness": round(completeness, 2),
            "confidence_score": score,
        }),
    )
