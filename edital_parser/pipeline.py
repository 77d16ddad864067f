"""
Pipeline
========
Pure orchestration of the parsing stages for one document:

    raw text → Classifier + Pre-Validator (independent, on the raw text)
             → [scanned or extraction error: terminal result]
             → Preprocessor → Canonical Parser (+ Finalizer)
             → Diagnostic Aggregator → UX Policy Engine

No I/O. Any ``str`` input yields a result; only non-``str`` input raises.
"""

from __future__ import annotations

import logging
from typing import Optional

from .canonical_parser import CanonicalParser
from .classifier import classify
from .diagnostics import build_diagnostic
from .models import (
    ExtractionErrorResult,
    OkResult,
    PdfCategory,
    PipelineStatus,
    ProcessingReport,
    ScannedResult,
)
from .preprocessor import preprocess_with_stats
from .prevalidator import prevalidate
from .ux_policy import build_decision

logger = logging.getLogger(__name__)

SCANNED_MESSAGE = (
    "Este PDF parece estar escaneado. "
    "Utilize uma versão com texto selecionável."
)


def run_pipeline(
    raw_text: str,
    extraction_error: Optional[str] = None,
) -> ProcessingReport:
    """
    Run every stage on ``raw_text``.

    Args:
        raw_text: Full text of the notice as extracted (possibly partial).
        extraction_error: Message from the text extractor when it failed;
            classification and pre-validation still run on ``raw_text``.

    Returns:
        ProcessingReport holding the result and the UX decision (if any).
    """
    if not isinstance(raw_text, str):
        raise TypeError(f"raw_text must be str, got {type(raw_text).__name__}")

    classification = classify(raw_text)
    prevalidation = prevalidate(raw_text)

    logger.info(
        f"Classified as {classification.category.value} "
        f"({classification.length} chars, {classification.line_count} lines)"
    )

    if extraction_error is not None:
        logger.warning(f"Extraction error reported: {extraction_error}")
        diagnostic = build_diagnostic(
            raw_text,
            classification=classification,
            prevalidation=prevalidation,
            status=PipelineStatus.EXTRACTION_ERROR,
        )
        result = ExtractionErrorResult(
            raw_text=raw_text,
            diagnostic=diagnostic,
            message=extraction_error,
        )

    elif classification.category == PdfCategory.SCANNED:
        logger.warning("Text looks scanned, skipping the parser")
        diagnostic = build_diagnostic(
            raw_text,
            classification=classification,
            prevalidation=prevalidation,
            status=PipelineStatus.SCANNED,
        )
        result = ScannedResult(
            raw_text=raw_text,
            classification=classification,
            prevalidation=prevalidation,
            diagnostic=diagnostic,
            message=SCANNED_MESSAGE,
        )

    else:
        processed, preprocess_stats = preprocess_with_stats(raw_text)
        parsed = CanonicalParser().parse(processed)
        diagnostic = build_diagnostic(
            raw_text,
            classification=classification,
            prevalidation=prevalidation,
            parsed=parsed,
        )
        result = OkResult(
            raw_text=raw_text,
            processed_text=processed,
            disciplines=parsed.disciplines,
            debug=parsed.debug,
            preprocess_stats=preprocess_stats,
            classification=classification,
            prevalidation=prevalidation,
            diagnostic=diagnostic,
        )

    return ProcessingReport(result=result, decision=build_decision(diagnostic))
