"""
Edital Parser Engine
====================
Main orchestrator: reads a document (PDF or plain text), runs the parsing
pipeline and optionally writes the report to disk.

Usage:
    engine = ParserEngine(config)
    report = engine.process_file("path/to/edital.pdf")
    # report is a ProcessingReport with result + UX decision

Architecture:
    PDF → PdfTextExtractor → raw text → run_pipeline →
    ProcessingReport (JSON)
"""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from . import __version__
from .extractor import ExtractionError, PdfTextExtractor
from .models import OkResult, ProcessingReport
from .pipeline import run_pipeline

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class ParserConfig:
    """Configuration for the parser engine."""

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Output settings (nothing is written when output_dir is None)
    output_dir: Optional[str] = None
    save_processed_text: bool = False


class ParserEngine:
    """
    Main edital parsing engine.

    Orchestrates the full pipeline:
        1. Text extraction (PDF files only)
        2. Classification and pre-validation
        3. Preprocessing and canonical parsing
        4. Diagnostic and UX decision
        5. Output formatting

    Holds no per-document state; safe to share between threads.
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        decision_callback: Optional[Callable] = None,
    ):
        self.config = config or ParserConfig()
        self.decision_callback = decision_callback
        self.extractor = PdfTextExtractor()
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        package_logger = logging.getLogger("edital_parser")
        package_logger.setLevel(log_level)

        # Console handler
        if not package_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(console)

        # File handler, once per path
        if self.config.log_file and not self._has_file_handler(package_logger):
            log_dir = Path(self.config.log_file).parent
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(
                self.config.log_file, encoding="utf-8"
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(file_handler)

    def _has_file_handler(self, package_logger: logging.Logger) -> bool:
        log_path = os.path.abspath(self.config.log_file)
        return any(
            isinstance(h, logging.FileHandler) and h.baseFilename == log_path
            for h in package_logger.handlers
        )

    def process_text(
        self,
        text: str,
        source: str = "<text>",
        extraction_error: Optional[str] = None,
    ) -> ProcessingReport:
        """
        Run the pipeline on already-extracted text.

        Args:
            text: Full text of the notice.
            source: Label of the input, echoed in the report.
            extraction_error: Extractor failure message, if any.

        Returns:
            ProcessingReport with the result and the UX decision.
        """
        start_time = time.time()
        logger.info(f"Processing {source} ({len(text)} chars)")

        report = run_pipeline(text, extraction_error=extraction_error)
        report = report.model_copy(update={
            "source": source,
            "parser_version": __version__,
            "elapsed_seconds": round(time.time() - start_time, 3),
        })

        logger.info(
            f"Processing complete in {report.elapsed_seconds:.2f}s, "
            f"status={report.status.value}"
        )

        if self.decision_callback is not None:
            self.decision_callback(report.decision)

        if self.config.output_dir:
            self._save_outputs(report)

        return report

    def process_file(
        self,
        path: str,
        progress_callback: Optional[callable] = None,
    ) -> ProcessingReport:
        """
        Read ``path`` and run the pipeline on its text.

        PDF files go through the text extractor; any other file is read as
        UTF-8 text. An extraction failure becomes an extraction_error result.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        path = os.path.abspath(path)

        if not os.path.exists(path):
            raise FileNotFoundError(f"File not found: {path}")

        source = os.path.basename(path)

        if Path(path).suffix.lower() != ".pdf":
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                return self.process_text(f.read(), source=source)

        try:
            text = self.extractor.extract(path, progress_callback=progress_callback)
        except ExtractionError as e:
            logger.error(f"Extraction failed for {source}: {e}")
            return self.process_text(
                e.partial_text, source=source, extraction_error=str(e)
            )

        return self.process_text(text, source=source)

    def process_bytes(self, data: bytes, source: str = "<upload>") -> ProcessingReport:
        """Run the pipeline on an in-memory PDF."""
        try:
            text = self.extractor.extract(data)
        except ExtractionError as e:
            logger.error(f"Extraction failed for {source}: {e}")
            return self.process_text(
                e.partial_text, source=source, extraction_error=str(e)
            )
        return self.process_text(text, source=source)

    def _document_id(self, source: str) -> str:
        name = Path(source).stem or "document"
        clean_name = "".join(
            c if c.isalnum() or c in "-_" else "_"
            for c in name
        )
        return clean_name[:50]

    def _save_outputs(self, report: ProcessingReport):
        output_dir = Path(self.config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        doc_id = self._document_id(report.source)

        output_file = output_dir / f"{doc_id}_parsed.json"
        self._save_json(report.model_dump(mode="json"), output_file)

        if self.config.save_processed_text and isinstance(report.result, OkResult):
            text_file = output_dir / f"{doc_id}_processed.txt"
            try:
                text_file.write_text(report.result.processed_text, encoding="utf-8")
                logger.info(f"Saved processed text: {text_file}")
            except OSError as e:
                logger.error(f"Failed to save processed text: {e}")

    def _save_json(self, data: dict, filepath: Path):
        """Save a dict to JSON file."""
        try:
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
            logger.info(f"Saved JSON output: {filepath}")
        except Exception as e:
            logger.error(f"Failed to save JSON: {e}")
