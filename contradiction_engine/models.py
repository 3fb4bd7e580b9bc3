"""
Internal Data Models
====================

Frozen dataclasses that flow through the pipeline:

    Statement -> ContradictionCandidate -> VerificationVote -> Finding
                                                   AuditEntry (per stage)

Every category carries exactly one payload type, so the detector and the
scorer dispatch on ``ContradictionCategory`` rather than on loose string tags.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from .schemas import (
    AuditStatus,
    CertaintyRegister,
    ContradictionCategory,
    Severity,
    TemporalDirection,
)


# =============================================================================
# Category payloads
# =============================================================================

@dataclass(frozen=True)
class TemporalPayload:
    """
    Time constraint asserted by a statement.

    Anchors are either a resolved date interval (proleptic ordinals, inclusive)
    or a named anchor event ("after the meeting").
    """
    direction: TemporalDirection
    anchor_label: str
    anchor_start: Optional[int] = None
    anchor_end: Optional[int] = None
    anchor_event: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.value,
            "anchor_label": self.anchor_label,
            "anchor_start": self.anchor_start,
            "anchor_end": self.anchor_end,
            "anchor_event": self.anchor_event,
        }


@dataclass(frozen=True)
class NumericPayload:
    value: float
    unit: str
    label: Optional[str]
    raw: str

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "unit": self.unit, "label": self.label, "raw": self.raw}


@dataclass(frozen=True)
class LogicalPayload:
    negated: bool
    entity: str
    predicate: str
    scope: Optional[str] = None
    marker: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "negated": self.negated,
            "entity": self.entity,
            "predicate": self.predicate,
            "scope": self.scope,
            "marker": self.marker,
        }


@dataclass(frozen=True)
class CertaintyPayload:
    register: CertaintyRegister
    marker: str

    def to_dict(self) -> Dict[str, Any]:
        return {"register": self.register.value, "marker": self.marker}


Payload = Union[TemporalPayload, NumericPayload, LogicalPayload, CertaintyPayload]

PAYLOAD_TYPES = {
    ContradictionCategory.TEMPORAL: TemporalPayload,
    ContradictionCategory.NUMERICAL: NumericPayload,
    ContradictionCategory.LOGICAL: LogicalPayload,
    ContradictionCategory.CERTAINTY: CertaintyPayload,
}

CATEGORY_SEVERITY = {
    ContradictionCategory.TEMPORAL: Severity.HIGH,
    ContradictionCategory.NUMERICAL: Severity.HIGH,
    ContradictionCategory.LOGICAL: Severity.HIGH,
    ContradictionCategory.CERTAINTY: Severity.MEDIUM,
}

FINDING_TYPES = {
    ContradictionCategory.TEMPORAL: "temporal_contradiction",
    ContradictionCategory.NUMERICAL: "numerical_contradiction",
    ContradictionCategory.LOGICAL: "logical_contradiction",
    ContradictionCategory.CERTAINTY: "certainty_contradiction",
}


# =============================================================================
# Pipeline records
# =============================================================================

@dataclass(frozen=True)
class Statement:
    """An atomic claim extracted from one sentence-like unit."""
    id: str
    text: str
    start: int
    end: int
    unit_index: int
    category: ContradictionCategory
    subject: str
    payload: Payload

    def __post_init__(self):
        expected = PAYLOAD_TYPES[self.category]
        if not isinstance(self.payload, expected):
            raise TypeError(
                f"{self.category.value} statement needs {expected.__name__}, "
                f"got {type(self.payload).__name__}"
            )

    @property
    def bucket_key(self) -> Tuple[ContradictionCategory, str]:
        return (self.category, self.subject)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "start": self.start,
            "end": self.end,
            "unit_index": self.unit_index,
            "category": self.category.value,
            "subject": self.subject,
            "payload": self.payload.to_dict(),
        }


@dataclass(frozen=True)
class ContradictionCandidate:
    """Two statements sharing a subject key that conflict under one category."""
    id: str
    category: ContradictionCategory
    subject: str
    statement1: Statement
    statement2: Statement
    descriptor: str
    cross_document: bool = False

    @property
    def severity(self) -> Severity:
        return CATEGORY_SEVERITY[self.category]

    @property
    def pair_key(self) -> Tuple[Any, ...]:
        """Dedup key: unordered pair within a document, ordered (A, B) across documents."""
        if self.cross_document:
            ids = (self.statement1.id, self.statement2.id)
        else:
            ids = tuple(sorted((self.statement1.id, self.statement2.id)))
        return (self.category, ids, self.cross_document)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category.value,
            "subject": self.subject,
            "statement1": self.statement1.id,
            "statement2": self.statement2.id,
            "descriptor": self.descriptor,
            "cross_document": self.cross_document,
        }


@dataclass(frozen=True)
class VerificationVote:
    strategy_id: str
    agrees: bool
    confidence: float
    rationale: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy_id,
            "agrees": self.agrees,
            "confidence": self.confidence,
            "rationale": self.rationale,
        }


@dataclass(frozen=True)
class Finding:
    candidate: ContradictionCandidate
    votes: Tuple[VerificationVote, ...]
    confidence: float
    verified: bool

    @property
    def severity(self) -> Severity:
        return self.candidate.severity

    @property
    def agreeing_votes(self) -> int:
        return sum(1 for vote in self.votes if vote.agrees)


@dataclass(frozen=True)
class AuditEntry:
    sequence: int
    stage: str
    input_digest: str
    output_digest: str
    chain_digest: str
    status: AuditStatus = AuditStatus.OK
    note: Optional[str] = None
