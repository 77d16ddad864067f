"""
Edital Syllabus Parser
======================
Deterministic recovery of the syllabus (subjects and topics) of Brazilian
public exam notices ("editais") from extracted PDF text.

Architecture:
    - Normalizer: Accent/case/whitespace folding with offset mapping
    - Classifier: Coarse triage (valid text, fragmented, scanned)
    - Pre-Validator: Structural risk flags on the untouched text
    - Preprocessor: Conservative text repair (hyphenation, joins)
    - Canonical Parser: Quadro 1 -> Anexo II -> subject sections -> topics
    - Finalizer: Name normalization, completeness, confidence score
    - Diagnostics: Consolidated flag report
    - UX Policy: Severity/mode/action decision for the UI

Version: 1.0.0
"""

__version__ = "1.0.0"
