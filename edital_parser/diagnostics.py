"""
Diagnostic Aggregator
=====================
Merges the flags raised along the pipeline into one read-only snapshot:

    - classification: fragmented, scanned
    - prevalidation:  the five structural flags of the untouched text
    - parser:         possible_lost_annex, broken_headings
    - text/parser statistics and the terminal status

Adds no thresholds of its own beyond the two parser flags. Never silently
drops a flag: every raised flag is logged in the report.
"""

from __future__ import annotations

import logging
from typing import Optional

from .models import (
    ClassificationFlags,
    ClassificationResult,
    Diagnostic,
    ParserFlags,
    ParserResult,
    ParserStats,
    PdfCategory,
    PipelineStatus,
    PrevalidationFlags,
    PrevalidationResult,
    TextStats,
)

logger = logging.getLogger(__name__)

LOST_ANNEX_MIN_LENGTH = 2000
BROKEN_HEADINGS_MAX_DETECTED = 1
BROKEN_HEADINGS_MIN_OFFICIAL = 3


def parser_flags(raw_length: int, parsed: Optional[ParserResult]) -> ParserFlags:
    if parsed is None:
        return ParserFlags()

    debug = parsed.debug
    return ParserFlags(
        possible_lost_annex=(
            raw_length >= LOST_ANNEX_MIN_LENGTH and not debug.section_found
        ),
        broken_headings=(
            debug.detected_subjects <= BROKEN_HEADINGS_MAX_DETECTED
            and len(debug.official_subjects) >= BROKEN_HEADINGS_MIN_OFFICIAL
        ),
    )


class DiagnosticAggregator:
    """
    Builds the Diagnostic of a pipeline run and logs a report.
    """

    def aggregate(
        self,
        raw_text: str,
        classification: Optional[ClassificationResult] = None,
        prevalidation: Optional[PrevalidationResult] = None,
        parsed: Optional[ParserResult] = None,
        status: PipelineStatus = PipelineStatus.OK,
    ) -> Diagnostic:
        """
        Args:
            raw_text: The text as extracted, before preprocessing.
            classification: Classifier output, when the classifier ran.
            prevalidation: Pre-validator output, when it ran.
            parsed: Finalized parser output; absent for scanned/error runs.
            status: Terminal status of the run.

        Returns:
            Diagnostic snapshot.
        """
        if classification is not None:
            classification_flags = ClassificationFlags(
                fragmented=classification.category == PdfCategory.FRAGMENTED,
                scanned=classification.category == PdfCategory.SCANNED,
            )
            text_stats = TextStats(
                length=len(raw_text),
                line_count=classification.line_count,
                density=classification.density,
            )
        else:
            classification_flags = ClassificationFlags()
            text_stats = TextStats(length=len(raw_text))

        parser_stats = None
        if parsed is not None:
            debug = parsed.debug
            parser_stats = ParserStats(
                section_found=debug.section_found,
                detected_subjects=debug.detected_subjects,
                official_subjects=len(debug.official_subjects),
                total_topics=debug.total_topics,
                completeness=debug.completeness,
                confidence_score=debug.confidence_score,
            )

        diagnostic = Diagnostic(
            classification=classification_flags,
            parser=parser_flags(len(raw_text), parsed),
            prevalidation=(
                prevalidation.flags if prevalidation is not None
                else PrevalidationFlags()
            ),
            text_stats=text_stats,
            parser_stats=parser_stats,
            status=status,
        )

        self._log_report(diagnostic)
        return diagnostic

    def _log_report(self, diagnostic: Diagnostic) -> None:
        logger.info("=" * 60)
        logger.info("DIAGNOSTIC REPORT")
        logger.info("=" * 60)
        logger.info(f"Status: {diagnostic.status.value}")
        logger.info(f"Text Length: {diagnostic.text_stats.length}")

        if diagnostic.text_stats.line_count is not None:
            logger.debug(
                f"Lines: {diagnostic.text_stats.line_count} "
                f"(density {diagnostic.text_stats.density:.1f})"
            )

        stats = diagnostic.parser_stats
        if stats is not None:
            logger.info(f"Section Found: {stats.section_found}")
            logger.info(
                f"Subjects Detected: {stats.detected_subjects}"
                f"/{stats.official_subjects}"
            )
            logger.info(f"Total Topics: {stats.total_topics}")
            logger.info(f"Confidence Score: {stats.confidence_score}")

        raised = [
            f"{group}.{name}"
            for group, flags in (
                ("classification", diagnostic.classification),
                ("prevalidation", diagnostic.prevalidation),
                ("parser", diagnostic.parser),
            )
            for name, value in flags.model_dump().items()
            if value
        ]
        if raised:
            logger.info("Flags Raised:")
            for flag in raised:
                logger.info(f"  • {flag}")
        else:
            logger.info("Flags Raised: none")

        logger.info("=" * 60)


def build_diagnostic(
    raw_text: str,
    classification: Optional[ClassificationResult] = None,
    prevalidation: Optional[PrevalidationResult] = None,
    parsed: Optional[ParserResult] = None,
    status: PipelineStatus = PipelineStatus.OK,
) -> Diagnostic:
    return DiagnosticAggregator().aggregate(
        raw_text,
        classification=classification,
        prevalidation=prevalidation,
        parsed=parsed,
        status=status,
    )
