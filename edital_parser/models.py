"""
Data Models
===========
Pydantic models for every stage of the edital pipeline.
All models are serializable to JSON for the calling application.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ─── Enums ────────────────────────────────────────────────────────────────────


class PdfCategory(str, Enum):
    """Coarse triage of the extracted text."""
    VALID_TEXT = "valid_text"
    FRAGMENTED = "fragmented"
    SCANNED = "scanned"


class PipelineStatus(str, Enum):
    """Terminal status of a pipeline run."""
    OK = "ok"
    SCANNED = "scanned"
    EXTRACTION_ERROR = "extraction_error"


class WeightMethod(str, Enum):
    """Unit of the subject weights found in the weighting table."""
    QUESTIONS = "questions"
    POINTS = "points"
    NOT_FOUND = "not_found"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class UxMode(str, Enum):
    """Interaction mode: blocking modal, confirmable modal, banner."""
    BLOCK = "block"
    CONFIRM = "confirm"
    INFO = "info"


class UxAction(str, Enum):
    UPLOAD_OTHER = "upload_other"
    RETRY = "retry"
    CONTINUE = "continue"


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


# ─── Classification / Pre-Validation ──────────────────────────────────────────


class ClassificationResult(FrozenModel):
    category: PdfCategory
    length: int = Field(ge=0)
    line_count: int = Field(ge=1)
    density: float = Field(ge=0)
    contains_anchor_keyword: bool
    probably_scanned: bool = False
    fragmented: bool = False


class PrevalidationFlags(FrozenModel):
    """Structural risk flags computed on the untouched text."""
    text_insufficient: bool = False
    low_density: bool = False
    missing_keywords: bool = False
    broken_structure: bool = False
    repetitive_noise: bool = False

    def active(self) -> list[str]:
        return [name for name, value in self.model_dump().items() if value]


class PrevalidationStats(FrozenModel):
    length: int = 0
    line_count: int = 0
    density: float = 0.0
    short_line_count: int = 0
    short_line_percent: float = 0.0


class PrevalidationResult(FrozenModel):
    flags: PrevalidationFlags
    stats: PrevalidationStats


class PreprocessStats(FrozenModel):
    """Before/after counters of the text preprocessor."""
    original_length: int = 0
    processed_length: int = 0
    annex_mentions_before: int = 0
    annex_mentions_after: int = 0
    lines_before: int = 0
    lines_after: int = 0
    short_lines_before: int = 0
    short_lines_after: int = 0
    noise_removed_percent: int = 0


# ─── Parser Models ────────────────────────────────────────────────────────────


class SubjectWeight(FrozenModel):
    """Exam weight of one subject; at most one of the counts is set."""
    subject: str
    question_count: Optional[int] = Field(default=None, ge=1, le=200)
    point_count: Optional[int] = Field(default=None, ge=1, le=200)

    @property
    def value(self) -> int:
        return self.question_count or self.point_count or 0


class WeightTable(FrozenModel):
    found: bool = False
    method: WeightMethod = WeightMethod.NOT_FOUND
    weights: list[SubjectWeight] = Field(default_factory=list)
    warning: Optional[str] = None

    def percentages(self) -> dict[str, float]:
        """Share of each subject in the total weight, in percent."""
        total = sum(w.value for w in self.weights)
        if total == 0:
            return {}
        return {
            w.subject: round(w.value / total * 100, 2)
            for w in self.weights
        }


class SubjectSection(FrozenModel):
    """Span of the processed text attributed to one subject heading."""
    subject: str
    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @property
    def length(self) -> int:
        return self.end - self.start


class Discipline(BaseModel):
    """Parser output unit: one official subject and its topics."""
    name: str
    original_name: str
    topics: list[str] = Field(default_factory=list)


class SubjectDebugInfo(BaseModel):
    subject: str
    found: bool
    start: int = -1
    end: int = -1
    chars: int = 0
    topic_count: int = 0
    failure_reason: Optional[str] = None


class ParseDebugInfo(BaseModel):
    """Diagnostics of a canonical parse; never required for correctness."""
    section_found: bool = False
    section_start: int = -1
    section_end: int = -1
    section_chars: int = 0
    section_snippet: str = ""
    section_validated: bool = False
    official_subjects: list[str] = Field(default_factory=list)
    detected_subjects: int = 0
    subject_names: list[str] = Field(default_factory=list)
    per_subject: list[SubjectDebugInfo] = Field(default_factory=list)
    sections: list[SubjectSection] = Field(default_factory=list)
    weight_table: WeightTable = Field(default_factory=WeightTable)

    # Filled in by the finalizer
    total_subjects: int = 0
    total_topics: int = 0
    density: float = 0.0
    completeness: float = 0.0
    confidence_score: int = Field(default=0, ge=0, le=100)


class ParserResult(BaseModel):
    disciplines: list[Discipline] = Field(default_factory=list)
    debug: ParseDebugInfo = Field(default_factory=ParseDebugInfo)


# ─── Diagnostic ───────────────────────────────────────────────────────────────


class ClassificationFlags(FrozenModel):
    fragmented: bool = False
    scanned: bool = False


class ParserFlags(FrozenModel):
    possible_lost_annex: bool = False
    broken_headings: bool = False


class TextStats(FrozenModel):
    length: int = 0
    line_count: Optional[int] = None
    density: Optional[float] = None


class ParserStats(FrozenModel):
    section_found: bool
    detected_subjects: int
    official_subjects: int
    total_topics: int
    completeness: float
    confidence_score: int


class Diagnostic(FrozenModel):
    """Consolidated, read-only snapshot of every flag of a run."""
    classification: ClassificationFlags = Field(
        default_factory=ClassificationFlags
    )
    parser: ParserFlags = Field(default_factory=ParserFlags)
    prevalidation: PrevalidationFlags = Field(
        default_factory=PrevalidationFlags
    )
    text_stats: TextStats = Field(default_factory=TextStats)
    parser_stats: Optional[ParserStats] = None
    status: PipelineStatus = PipelineStatus.OK


# ─── UX Decision ──────────────────────────────────────────────────────────────


class UxButton(FrozenModel):
    label: str
    action: UxAction


class UxAlert(FrozenModel):
    title: str
    message: str


class BlockDecision(FrozenModel):
    """High severity: progress is blocked until another file or a retry."""
    mode: Literal[UxMode.BLOCK] = UxMode.BLOCK
    severity: Literal[Severity.HIGH] = Severity.HIGH
    title: str
    message: str
    primary: UxButton
    secondary: UxButton
    other_alerts: list[UxAlert] = Field(default_factory=list)
    reason_key: str


class ConfirmDecision(FrozenModel):
    """Medium severity: the user must explicitly accept the risk."""
    mode: Literal[UxMode.CONFIRM] = UxMode.CONFIRM
    severity: Literal[Severity.MEDIUM] = Severity.MEDIUM
    title: str
    message: str
    primary: UxButton
    secondary: UxButton
    other_alerts: list[UxAlert] = Field(default_factory=list)
    reason_key: str


class InfoDecision(FrozenModel):
    """Low severity: dismissible banner, never blocks."""
    mode: Literal[UxMode.INFO] = UxMode.INFO
    severity: Literal[Severity.LOW] = Severity.LOW
    title: str
    message: str
    primary: UxButton
    reason_key: str


UxDecision = Annotated[
    Union[BlockDecision, ConfirmDecision, InfoDecision],
    Field(discriminator="mode"),
]


# ─── Pipeline Results ─────────────────────────────────────────────────────────


class OkResult(BaseModel):
    status: Literal[PipelineStatus.OK] = PipelineStatus.OK
    raw_text: str
    processed_text: str
    disciplines: list[Discipline] = Field(default_factory=list)
    debug: ParseDebugInfo
    preprocess_stats: PreprocessStats
    classification: ClassificationResult
    prevalidation: PrevalidationResult
    diagnostic: Diagnostic

    @property
    def weight_table(self) -> WeightTable:
        return self.debug.weight_table


class ScannedResult(BaseModel):
    status: Literal[PipelineStatus.SCANNED] = PipelineStatus.SCANNED
    raw_text: str
    classification: ClassificationResult
    prevalidation: PrevalidationResult
    diagnostic: Diagnostic
    message: str


class ExtractionErrorResult(BaseModel):
    status: Literal[PipelineStatus.EXTRACTION_ERROR] = (
        PipelineStatus.EXTRACTION_ERROR
    )
    raw_text: str
    diagnostic: Diagnostic
    message: str


PipelineResult = Annotated[
    Union[OkResult, ScannedResult, ExtractionErrorResult],
    Field(discriminator="status"),
]


class ProcessingReport(BaseModel):
    """
    Complete output of an engine run.
    This is the top-level JSON structure returned to callers.
    """
    source: str = ""
    parser_version: str = "1.0.0"
    processed_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    elapsed_seconds: float = 0.0
    result: PipelineResult
    decision: Optional[UxDecision] = None

    @computed_field
    @property
    def status(self) -> PipelineStatus:
        return self.result.status
