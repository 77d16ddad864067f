"""
PDF Text Extractor
==================
Reads the plain text of every page of a PDF using PyMuPDF (fitz).
Pages are joined with a blank line; a page that fails to extract is
replaced by a placeholder so the remaining pages are still processed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"
PAGE_ERROR_PLACEHOLDER = "[Erro ao extrair página {page}]"
EMPTY_TEXT_MESSAGE = (
    "Nenhum texto foi extraído do PDF. O arquivo pode estar corrompido "
    "ou ser uma imagem escaneada."
)


class ExtractionError(RuntimeError):
    """Text extraction failed; ``partial_text`` holds whatever was read."""

    def __init__(self, message: str, partial_text: str = ""):
        super().__init__(message)
        self.partial_text = partial_text


class PdfTextExtractor:
    """
    Extracts the full text of a PDF, page by page.
    """

    def _open(self, source: Union[str, Path, bytes]) -> fitz.Document:
        try:
            if isinstance(source, bytes):
                return fitz.open(stream=source, filetype="pdf")
            return fitz.open(str(source))
        except Exception as e:
            raise ExtractionError(f"Could not open PDF: {e}") from e

    def get_metadata(self, source: Union[str, Path, bytes]) -> dict:
        """Page count plus the document's info dictionary."""
        with self._open(source) as doc:
            info = {"page_count": doc.page_count}
            info.update({k: v for k, v in (doc.metadata or {}).items() if v})
            return info

    def extract(
        self,
        source: Union[str, Path, bytes],
        progress_callback: Optional[callable] = None,
    ) -> str:
        """
        Extract the text of every page.

        Args:
            source: Path to the PDF, or its raw bytes.
            progress_callback: Optional callable(current, total).

        Returns:
            Page texts joined by a blank line.

        Raises:
            ExtractionError: The file cannot be opened or holds no text.
        """
        parts: list[str] = []

        with self._open(source) as doc:
            total_pages = doc.page_count
            logger.info(f"Extracting text from {total_pages} page(s)")

            for page_idx in range(total_pages):
                page_num = page_idx + 1
                try:
                    page_text = doc[page_idx].get_text("text")
                    if page_text.strip():
                        parts.append(page_text)
                except Exception as e:
                    logger.warning(f"Failed extracting page {page_num}: {e}")
                    parts.append(PAGE_ERROR_PLACEHOLDER.format(page=page_num))

                if progress_callback:
                    progress_callback(page_num, total_pages)

        text = PAGE_SEPARATOR.join(parts)
        if not text.strip():
            raise ExtractionError(EMPTY_TEXT_MESSAGE, partial_text=text)

        logger.info(f"Extracted {len(text)} characters")
        return text
