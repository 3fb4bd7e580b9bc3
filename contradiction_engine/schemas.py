"""
Pydantic Schemas for the Contradiction Engine
=============================================

Stable, minimal schemas for input/output.
All outputs are guaranteed valid JSON and serialise with camelCase keys
(``documentHash``, ``riskScore``, ...); snake_case names are accepted on input.

Result models are frozen. ``AnalysisResult`` and ``ComparisonResult`` are the
only thing report formatters, the CLI and the API ever see.
"""

from typing import Any, Dict, Optional, Tuple
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS
# =============================================================================

class ContradictionCategory(str, Enum):
    """
    Closed set of contradiction categories. Each category has exactly one
    statement payload type (see ``models.py``).
    """
    TEMPORAL = "temporal"
    NUMERICAL = "numerical"
    LOGICAL = "logical"
    CERTAINTY = "certainty"


class Severity(str, Enum):
    """
    Finding severity levels.

    - HIGH: incompatible facts (dates, amounts, occurrence)
    - MEDIUM: incompatible certainty registers about the same subject
    - LOW: reserved for minor discrepancies
    """
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SensitivityLevel(str, Enum):
    """How permissive entity and register recognition is."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class OutputFormat(str, Enum):
    """Report formats understood by ``report.ReportGenerator``."""
    JSON = "json"
    TEXT = "text"
    MARKDOWN = "markdown"
    HTML = "html"


class TemporalDirection(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    DURING = "during"


class CertaintyRegister(str, Enum):
    DEFINITE = "definite"
    POSSIBLE = "possible"
    UNCERTAIN = "uncertain"


class AuditStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"


# =============================================================================
# Base models
# =============================================================================

class CamelModel(BaseModel):
    """Mutable request model with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenModel(BaseModel):
    """Immutable output model with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# =============================================================================
# Output models
# =============================================================================

class VerificationVoteOutput(FrozenModel):
    """One strategy's verdict on a candidate."""
    strategy: str
    agrees: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    rationale: str


class FindingOutput(FrozenModel):
    """A candidate contradiction that passed (or bypassed) verification."""
    id: str
    type: str = Field(..., description="e.g. temporal_contradiction")
    category: ContradictionCategory
    severity: Severity
    subject: str
    statement1: str
    statement2: str
    position1: int
    position2: int
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    verified: bool
    votes: Tuple[VerificationVoteOutput, ...] = ()
    cross_document: bool = False


class SummaryOutput(FrozenModel):
    total_contradictions: int = 0
    high_severity: int = 0
    medium_severity: int = 0
    low_severity: int = 0
    risk_score: int = 0


class AuditEntryOutput(FrozenModel):
    """One pipeline stage in the hash chain."""
    sequence: int
    stage: str
    input_digest: str
    output_digest: str
    chain_digest: str
    status: AuditStatus = AuditStatus.OK
    note: Optional[str] = None


class EvidenceChainEntry(FrozenModel):
    id: str = Field(..., description="EVD-0001 style evidence id")
    finding_id: str
    type: str
    severity: Severity
    confidence: float
    verified: bool
    finding_hash: Optional[str] = None


class IntegrityOutput(FrozenModel):
    document_hash: Optional[str] = None
    hash_algorithm: str = "SHA-512"
    verified: bool = True


class ForensicSummary(FrozenModel):
    """Finding statistics alongside the chain."""
    document_characters: int = 0
    total_contradictions: int = 0
    by_severity: Dict[str, int] = Field(default_factory=dict)
    by_type: Dict[str, int] = Field(default_factory=dict)
    highest_confidence: float = 0.0
    average_confidence: float = 0.0


class ForensicData(FrozenModel):
    integrity: IntegrityOutput
    evidence_chain: Tuple[EvidenceChainEntry, ...] = ()
    audit_trail: Tuple[AuditEntryOutput, ...] = ()
    final_chain_digest: str
    forensic_grade: str
    summary: ForensicSummary = ForensicSummary()
    seal_hash: Optional[str] = None


# =============================================================================
# Text analysis models
# =============================================================================

class SentenceOutput(FrozenModel):
    text: str
    index: int
    word_count: int
    position: int = Field(..., description="Offset of the sentence in the document")


class WordCountOutput(FrozenModel):
    word: str
    count: int


class WordStatsOutput(FrozenModel):
    total: int = 0
    unique: int = 0
    top_words: Tuple[WordCountOutput, ...] = ()


class EntitiesOutput(FrozenModel):
    """Surface mentions, in document order."""
    dates: Tuple[str, ...] = ()
    amounts: Tuple[str, ...] = ()
    names: Tuple[str, ...] = ()


class TextStatisticsOutput(FrozenModel):
    character_count: int = 0
    character_count_no_spaces: int = 0
    word_count: int = 0
    unique_word_count: int = 0
    sentence_count: int = 0
    paragraph_count: int = 0
    average_word_length: float = 0.0
    average_sentence_length: float = 0.0
    lexical_diversity: float = 0.0
    readability_score: int = Field(0, ge=0, le=100, description="Flesch reading ease, clamped")


class SectionOutput(FrozenModel):
    title: str
    position: int


class StructureOutput(FrozenModel):
    has_headers: bool = False
    has_bullet_points: bool = False
    has_numbered_list: bool = False
    has_tables: bool = False
    has_quotes: bool = False
    sections: Tuple[SectionOutput, ...] = ()


class SentimentOutput(FrozenModel):
    sentiment: str = "neutral"
    score: float = Field(0.0, ge=-1.0, le=1.0)
    positive_count: int = 0
    negative_count: int = 0


class TextAnalysisOutput(FrozenModel):
    """Lexical profile of a document. Informational only; never affects findings."""
    sentences: Tuple[SentenceOutput, ...] = ()
    words: WordStatsOutput = WordStatsOutput()
    entities: EntitiesOutput = EntitiesOutput()
    statistics: TextStatisticsOutput = TextStatisticsOutput()
    structure: StructureOutput = StructureOutput()
    sentiment: SentimentOutput = SentimentOutput()


class FailureOutput(FrozenModel):
    """A recorded stage failure (the run continued without it)."""
    stage: str
    category: Optional[str] = None
    strategy: Optional[str] = None
    subject: Optional[str] = None
    message: str


class AnalysisMetadata(FrozenModel):
    engine_version: str
    sensitivity_level: SensitivityLevel
    triple_verified: bool
    forensic_hash_enabled: bool
    statements_extracted: int = 0
    candidates_generated: int = 0
    candidates_rejected: int = 0
    degraded_stages: Tuple[str, ...] = ()
    failures: Tuple[FailureOutput, ...] = ()


class AnalysisResult(FrozenModel):
    """Immutable result of ``analyze``."""
    document_hash: Optional[str] = None
    findings: Tuple[FindingOutput, ...] = ()
    summary: SummaryOutput
    forensic_data: ForensicData
    text_analysis: TextAnalysisOutput = TextAnalysisOutput()
    metadata: AnalysisMetadata


class ComparisonResult(FrozenModel):
    """Immutable result of ``compare_documents``."""
    document1_analysis: AnalysisResult
    document2_analysis: AnalysisResult
    cross_document_findings: Tuple[FindingOutput, ...] = ()
    cross_document_summary: SummaryOutput
    consistency_score: int = Field(..., ge=0, le=100)
    audit_trail: Tuple[AuditEntryOutput, ...] = ()
    failures: Tuple[FailureOutput, ...] = ()


# =============================================================================
# Request / service models
# =============================================================================

class AnalyzeTextRequest(CamelModel):
    """Request to analyze free text"""
    text: str = Field(..., description="Text to analyze")
    options: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Analysis options (sensitivityLevel, enableTripleVerification, ...)"
    )


class CompareDocumentsRequest(CamelModel):
    """Request to compare two documents"""
    text1: str
    text2: str
    options: Optional[Dict[str, Any]] = None


class ReportRequest(CamelModel):
    """Request a rendered report; ``text2`` switches to a comparison report."""
    text: str
    text2: Optional[str] = None
    options: Optional[Dict[str, Any]] = None


class HealthResponse(CamelModel):
    status: str
    version: str
    timestamp: datetime


class ErrorResponse(CamelModel):
    error: str
    detail: str
