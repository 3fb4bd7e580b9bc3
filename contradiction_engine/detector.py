"""
Contradiction Detector - Rule-based detection over statement buckets
=====================================================================

Detection Categories:
1. TEMPORAL - Time constraints on the same event cannot all hold
2. NUMERICAL - Same quantity label and unit, different value
3. LOGICAL - Same entity and predicate, opposite polarity, overlapping scope
4. CERTAINTY - Same subject stated as definite and as possible/uncertain

Approach:
- Statements are bucketed by (category, subject key); only pairs inside one
  bucket are compared
- Candidate generation is over-inclusive; false positives are the
  verifier's job
- A rule that raises is recorded as a StageFailure for its bucket only
"""

import logging
from dataclasses import dataclass, field
from itertools import combinations
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .errors import StageFailure
from .models import (
    CertaintyPayload,
    ContradictionCandidate,
    LogicalPayload,
    NumericPayload,
    Statement,
    TemporalPayload,
)
from .schemas import CertaintyRegister, ContradictionCategory, TemporalDirection

logger = logging.getLogger(__name__)

UNBOUNDED = float('inf')

# (statement1, statement2, numeric_tolerance) -> descriptor if they conflict
ConflictRule = Callable[[Statement, Statement, float], Optional[str]]

BucketKey = Tuple[ContradictionCategory, str]


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class DetectionResult:
    """Result from detection"""
    candidates: List[ContradictionCandidate]
    failures: List[StageFailure] = field(default_factory=list)
    buckets_examined: int = 0
    pairs_compared: int = 0


# =============================================================================
# Category Rules
# =============================================================================

def temporal_interval(payload: TemporalPayload) -> Optional[Tuple[float, float]]:
    """Day-ordinal interval (inclusive) allowed by a date-anchored constraint."""
    if payload.anchor_start is None or payload.anchor_end is None:
        return None
    if payload.direction == TemporalDirection.BEFORE:
        return (-UNBOUNDED, payload.anchor_start - 1)
    if payload.direction == TemporalDirection.AFTER:
        return (payload.anchor_end + 1, UNBOUNDED)
    return (payload.anchor_start, payload.anchor_end)


def temporal_conflict(s1: Statement, s2: Statement, tolerance: float = 0.0) -> Optional[str]:
    p1: TemporalPayload = s1.payload
    p2: TemporalPayload = s2.payload

    if p1.anchor_event or p2.anchor_event:
        if p1.anchor_event and p1.anchor_event == p2.anchor_event and p1.direction != p2.direction:
            return (
                f"'{s1.subject}' is placed {p1.direction.value} and {p2.direction.value} "
                f"the {p1.anchor_event}"
            )
        return None

    interval1 = temporal_interval(p1)
    interval2 = temporal_interval(p2)
    if interval1 is None or interval2 is None:
        return None

    if max(interval1[0], interval2[0]) > min(interval1[1], interval2[1]):
        return (
            f"'{s1.subject}' is placed {p1.direction.value} {p1.anchor_label} and "
            f"{p2.direction.value} {p2.anchor_label}; both cannot hold"
        )
    return None


def numerical_conflict(s1: Statement, s2: Statement, tolerance: float = 0.0) -> Optional[str]:
    p1: NumericPayload = s1.payload
    p2: NumericPayload = s2.payload

    if p1.unit != p2.unit or p1.label != p2.label:
        return None

    difference = abs(p1.value - p2.value)
    if difference > tolerance * max(abs(p1.value), abs(p2.value)):
        return f"{p1.label} ({p1.unit}) stated as {p1.raw} and {p2.raw}"
    return None


def logical_conflict(s1: Statement, s2: Statement, tolerance: float = 0.0) -> Optional[str]:
    p1: LogicalPayload = s1.payload
    p2: LogicalPayload = s2.payload

    if p1.negated == p2.negated:
        return None
    if p1.entity != p2.entity or p1.predicate != p2.predicate:
        return None
    # Unknown scope overlaps everything
    if p1.scope and p2.scope and p1.scope != p2.scope:
        return None

    negative = p1 if p1.negated else p2
    scope = f" ({p1.scope or p2.scope})" if (p1.scope or p2.scope) else ""
    return (
        f"{p1.entity} {p1.predicate}{scope} is both asserted and "
        f"negated ('{negative.marker or 'not'}')"
    )


def certainty_conflict(s1: Statement, s2: Statement, tolerance: float = 0.0) -> Optional[str]:
    p1: CertaintyPayload = s1.payload
    p2: CertaintyPayload = s2.payload

    registers = {p1.register, p2.register}
    if CertaintyRegister.DEFINITE in registers and len(registers) == 2:
        return (
            f"'{s1.subject}' is described as {p1.register.value} ('{p1.marker}') "
            f"and {p2.register.value} ('{p2.marker}')"
        )
    return None


RULES: Dict[ContradictionCategory, ConflictRule] = {
    ContradictionCategory.TEMPORAL: temporal_conflict,
    ContradictionCategory.NUMERICAL: numerical_conflict,
    ContradictionCategory.LOGICAL: logical_conflict,
    ContradictionCategory.CERTAINTY: certainty_conflict,
}


def apply_rule(s1: Statement, s2: Statement, tolerance: float = 0.0) -> Optional[str]:
    """Apply the category rule for a pair of same-category statements."""
    if s1.category != s2.category:
        return None
    return RULES[s1.category](s1, s2, tolerance)


# =============================================================================
# Detector
# =============================================================================

class ContradictionDetector:
    """
    Rule-based contradiction detector.

    Holds only the numeric tolerance; safe to share between threads.
    """

    def __init__(self, numeric_tolerance: float = 0.0, rules: Optional[Dict[ContradictionCategory, ConflictRule]] = None):
        self.numeric_tolerance = numeric_tolerance
        self.rules = dict(RULES if rules is None else rules)

    def detect(self, statements: Sequence[Statement]) -> DetectionResult:
        """
        Detect contradictions between statements of one document.

        Args:
            statements: Statements in extraction order

        Returns:
            DetectionResult with candidates and any bucket failures
        """
        buckets = self._bucket(statements)
        pairs = {
            key: list(combinations(sorted(members, key=self._position), 2))
            for key, members in buckets.items()
        }
        result = self._compare(pairs, cross_document=False, id_prefix="cand")

        logger.info(
            f"Detection: {len(statements)} statements, {result.buckets_examined} buckets, "
            f"{result.pairs_compared} pairs compared, {len(result.candidates)} candidates"
        )
        return result

    def detect_cross(
        self,
        statements_a: Sequence[Statement],
        statements_b: Sequence[Statement],
    ) -> DetectionResult:
        """
        Detect contradictions between two documents.

        Only (statement from A, statement from B) pairs sharing a bucket key
        are compared; statement1 always comes from A.
        """
        buckets_a = self._bucket(statements_a)
        buckets_b = self._bucket(statements_b)
        pairs = {
            key: [(a, b) for a in members for b in buckets_b[key]]
            for key, members in buckets_a.items()
            if key in buckets_b
        }
        result = self._compare(pairs, cross_document=True, id_prefix="xcand")

        logger.info(
            f"Cross detection: {result.buckets_examined} shared buckets, "
            f"{result.pairs_compared} pairs compared, {len(result.candidates)} candidates"
        )
        return result

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @staticmethod
    def _position(statement: Statement) -> Tuple[int, str]:
        return (statement.start, statement.id)

    @staticmethod
    def _bucket(statements: Sequence[Statement]) -> Dict[BucketKey, List[Statement]]:
        """Group statements by (category, subject key), keeping first-seen order"""
        buckets: Dict[BucketKey, List[Statement]] = {}
        for statement in statements:
            buckets.setdefault(statement.bucket_key, []).append(statement)
        return buckets

    def _compare(
        self,
        pairs_by_bucket: Dict[BucketKey, List[Tuple[Statement, Statement]]],
        cross_document: bool,
        id_prefix: str,
    ) -> DetectionResult:
        result = DetectionResult(candidates=[])
        seen = set()

        for (category, subject), pairs in pairs_by_bucket.items():
            result.buckets_examined += 1
            rule = self.rules[category]

            try:
                conflicts = [(s1, s2, rule(s1, s2, self.numeric_tolerance)) for s1, s2 in pairs]
            except Exception as e:
                failure = StageFailure(
                    stage="cross_detection" if cross_document else "detection",
                    message=f"{type(e).__name__}: {e}",
                    category=category.value,
                    subject=subject,
                )
                logger.warning(f"Detection rule failed for {category.value}/{subject}: {failure.message}")
                result.failures.append(failure)
                continue

            result.pairs_compared += len(pairs)
            for s1, s2, descriptor in conflicts:
                if descriptor is None:
                    continue
                candidate = ContradictionCandidate(
                    id=f"{id_prefix}_{len(result.candidates) + 1:04d}",
                    category=category,
                    subject=subject,
                    statement1=s1,
                    statement2=s2,
                    descriptor=descriptor,
                    cross_document=cross_document,
                )
                if candidate.pair_key in seen:
                    continue
                seen.add(candidate.pair_key)
                result.candidates.append(candidate)

        return result


# =============================================================================
# Convenience Functions
# =============================================================================

def detect_contradictions(statements: Sequence[Statement], numeric_tolerance: float = 0.0) -> DetectionResult:
    """
    Convenience function to detect contradictions.

    Args:
        statements: List of statements
        numeric_tolerance: Relative tolerance for numeric conflicts

    Returns:
        DetectionResult
    """
    return ContradictionDetector(numeric_tolerance).detect(statements)
