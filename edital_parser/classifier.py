"""
PDF Classifier
==============
Deterministic triage of extracted text before any preprocessing:

    - scanned:    shorter than 1000 chars and no "anexo" /
                  "conteúdo programático" anywhere
    - fragmented: 500 <= length < 2000
    - valid_text: everything else (length >= 2000 once the above fail)
"""

from __future__ import annotations

import logging

from .models import ClassificationResult, PdfCategory
from .normalizer import contains_any, normalize

logger = logging.getLogger(__name__)

SCANNED_MAX_LENGTH = 1000
FRAGMENTED_MIN_LENGTH = 500
FRAGMENTED_MAX_LENGTH = 2000

ANCHOR_KEYWORDS = ("anexo", "conteúdo programático")


def classify(text: str) -> ClassificationResult:
    """Classify raw extracted text. Pure, linear in ``len(text)``."""
    if not isinstance(text, str):
        raise TypeError(f"text must be str, got {type(text).__name__}")

    length = len(text)
    line_count = text.count("\n") + 1
    density = length / line_count

    has_anchor = contains_any(normalize(text), ANCHOR_KEYWORDS)

    probably_scanned = length < SCANNED_MAX_LENGTH and not has_anchor
    fragmented = FRAGMENTED_MIN_LENGTH <= length < FRAGMENTED_MAX_LENGTH

    if probably_scanned:
        category = PdfCategory.SCANNED
    elif fragmented:
        category = PdfCategory.FRAGMENTED
    else:
        category = PdfCategory.VALID_TEXT

    logger.debug(
        f"Classification: {category.value} "
        f"(length={length}, lines={line_count}, density={density:.2f}, "
        f"anchor={has_anchor})"
    )

    return ClassificationResult(
        category=category,
        length=length,
        line_count=line_count,
        density=density,
        contains_anchor_keyword=has_anchor,
        probably_scanned=probably_scanned,
        fragmented=fragmented,
    )
