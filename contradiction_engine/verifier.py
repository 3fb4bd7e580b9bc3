"""
Verification Coordinator - Majority vote over independent strategies
====================================================================

Every candidate is checked by three stateless strategies:

1. reverse_order      - re-parses both texts, later first, and re-applies the rule
2. subject_alignment  - re-derives subject alignment from the raw texts
3. strict_lexical     - re-extracts both texts with the narrowest lexicon

A candidate becomes a Finding when at least two strategies agree. Its
confidence is the mean confidence of the agreeing votes.

Strategies run concurrently in a fixed-size thread pool; votes are sorted by
strategy id before being recorded, so completion order never leaks into
results.

Usage:
    coordinator = VerificationCoordinator(config)
    outcome = coordinator.verify(candidates)
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from .config import AnalysisConfig
from .detector import apply_rule
from .errors import StageFailure
from .extractor import STOPWORDS, get_extractor, singularize, tokenize
from .models import ContradictionCandidate, Finding, Statement, VerificationVote
from .schemas import ContradictionCategory, SensitivityLevel

logger = logging.getLogger(__name__)

REQUIRED_AGREEMENT = 2
REDUCED_ASSURANCE_CONFIDENCE = 0.4


@dataclass
class VerificationStats:
    """Statistics from one verification run"""
    evaluated: int = 0
    promoted: int = 0  # Candidates accepted as findings
    rejected: int = 0  # Fewer than two agreeing votes
    strategy_failures: int = 0


@dataclass
class VerificationOutcome:
    findings: List[Finding]
    stats: VerificationStats
    failures: List[StageFailure] = field(default_factory=list)


# =============================================================================
# Strategies
# =============================================================================

class VerificationStrategy(ABC):
    """One independent check. Implementations must not hold mutable state."""

    strategy_id: str = ""

    @abstractmethod
    def evaluate(self, candidate: ContradictionCandidate) -> VerificationVote:
        ...


def reparse(extractor, statement: Statement, tag: str) -> List[Statement]:
    """Re-extract a statement's unit, keeping statements of the same category."""
    return [
        Statement(
            id=f"{tag}_{i}",
            text=statement.text,
            start=statement.start,
            end=statement.end,
            unit_index=statement.unit_index,
            category=draft.category,
            subject=draft.subject,
            payload=draft.payload,
        )
        for i, draft in enumerate(extractor.extract_unit(statement.text))
        if draft.category == statement.category
    ]


class ReverseOrderStrategy(VerificationStrategy):
    """
    Conflict must hold when both texts are parsed again, later one first.

    Payloads are rebuilt from the raw unit texts rather than taken from the
    candidate, and the rule is applied with the statements swapped.
    """

    strategy_id = "reverse_order"

    CONFIDENCE = {
        ContradictionCategory.TEMPORAL: 0.9,
        ContradictionCategory.NUMERICAL: 0.9,
        ContradictionCategory.LOGICAL: 0.8,
        ContradictionCategory.CERTAINTY: 0.7,
    }

    def __init__(
        self,
        numeric_tolerance: float = 0.0,
        sensitivity: SensitivityLevel = SensitivityLevel.MEDIUM,
    ):
        self.numeric_tolerance = numeric_tolerance
        self.extractor = get_extractor(SensitivityLevel(sensitivity))

    def evaluate(self, candidate: ContradictionCandidate) -> VerificationVote:
        later = [
            s for s in reparse(self.extractor, candidate.statement2, "reverse2")
            if s.subject == candidate.subject
        ]
        earlier = [
            s for s in reparse(self.extractor, candidate.statement1, "reverse1")
            if s.subject == candidate.subject
        ]

        for s2 in later:
            for s1 in earlier:
                descriptor = apply_rule(s2, s1, self.numeric_tolerance)
                if descriptor:
                    return VerificationVote(
                        strategy_id=self.strategy_id,
                        agrees=True,
                        confidence=self.CONFIDENCE[candidate.category],
                        rationale=f"Conflict holds in reverse order: {descriptor}",
                    )

        return VerificationVote(
            strategy_id=self.strategy_id,
            agrees=False,
            confidence=0.0,
            rationale=(
                "No conflict when the statements are re-read in reverse order"
                if later and earlier else f"Texts no longer state '{candidate.subject}'"
            ),
        )


class SubjectAlignmentStrategy(VerificationStrategy):
    """Both raw texts must actually talk about the same subject."""

    strategy_id = "subject_alignment"

    MIN_OVERLAP = 0.15

    @staticmethod
    def meaningful_words(text: str) -> Set[str]:
        """Content words (3+ letters, no stopwords), singularized"""
        return {
            singularize(token.norm)
            for token in tokenize(text)
            if token.is_word and len(token.norm) >= 3 and token.norm not in STOPWORDS
        }

    def overlap(self, text1: str, text2: str) -> float:
        """Shared content words relative to the shorter statement (0-1)"""
        words1 = self.meaningful_words(text1)
        words2 = self.meaningful_words(text2)
        if not words1 or not words2:
            return 0.0
        return len(words1 & words2) / min(len(words1), len(words2))

    def evaluate(self, candidate: ContradictionCandidate) -> VerificationVote:
        text1 = candidate.statement1.text
        text2 = candidate.statement2.text
        overlap = self.overlap(text1, text2)

        entity = candidate.subject.split(':', 1)[0]
        head = singularize(entity.split()[-1]) if entity.split() else entity
        words1 = self.meaningful_words(text1)
        words2 = self.meaningful_words(text2)
        head_shared = head in words1 and head in words2

        if overlap >= self.MIN_OVERLAP and head_shared:
            return VerificationVote(
                strategy_id=self.strategy_id,
                agrees=True,
                confidence=round(0.5 + 0.5 * overlap, 4),
                rationale=f"Both statements concern '{head}' (word overlap {overlap:.2f})",
            )
        reason = (
            f"Subject '{head}' not named in both statements" if not head_shared
            else f"Word overlap {overlap:.2f} below {self.MIN_OVERLAP}"
        )
        return VerificationVote(
            strategy_id=self.strategy_id,
            agrees=False,
            confidence=0.0,
            rationale=reason,
        )


class StrictLexicalStrategy(VerificationStrategy):
    """Conflict must survive re-extraction with the narrowest lexicon."""

    strategy_id = "strict_lexical"

    CONFIDENCE = 0.75

    def __init__(self, numeric_tolerance: float = 0.0):
        self.numeric_tolerance = numeric_tolerance
        self.extractor = get_extractor(SensitivityLevel.LOW)

    def evaluate(self, candidate: ContradictionCandidate) -> VerificationVote:
        strict1 = reparse(self.extractor, candidate.statement1, "strict1")
        strict2 = reparse(self.extractor, candidate.statement2, "strict2")

        for s1 in strict1:
            for s2 in strict2:
                if s1.subject != s2.subject:
                    continue
                descriptor = apply_rule(s1, s2, self.numeric_tolerance)
                if descriptor:
                    return VerificationVote(
                        strategy_id=self.strategy_id,
                        agrees=True,
                        confidence=self.CONFIDENCE,
                        rationale=f"Strict patterns confirm: {descriptor}",
                    )

        return VerificationVote(
            strategy_id=self.strategy_id,
            agrees=False,
            confidence=0.0,
            rationale=(
                "Strict patterns found no conflicting statements"
                if strict1 and strict2 else "Strict patterns do not match both statements"
            ),
        )


def default_strategies(config: AnalysisConfig) -> List[VerificationStrategy]:
    return [
        ReverseOrderStrategy(config.numeric_tolerance, config.sensitivity_level),
        SubjectAlignmentStrategy(),
        StrictLexicalStrategy(config.numeric_tolerance),
    ]


# =============================================================================
# Coordinator
# =============================================================================

class VerificationCoordinator:
    """Run all strategies per candidate and apply the 2-of-3 gate."""

    def __init__(
        self,
        config: AnalysisConfig,
        strategies: Optional[Sequence[VerificationStrategy]] = None,
        stage: str = "verification",
    ):
        self.config = config
        self.strategies = list(strategies) if strategies is not None else default_strategies(config)
        self.stage = stage

    def verify(self, candidates: Sequence[ContradictionCandidate]) -> VerificationOutcome:
        """
        Verify candidates.

        Returns:
            VerificationOutcome with findings in candidate order
        """
        stats = VerificationStats(evaluated=len(candidates))

        if not self.config.enable_triple_verification:
            # Reduced-assurance mode: no gate, fixed low confidence
            findings = [
                Finding(candidate=c, votes=(), confidence=REDUCED_ASSURANCE_CONFIDENCE, verified=False)
                for c in candidates
            ]
            stats.promoted = len(findings)
            logger.info(f"Verification skipped: {len(findings)} candidates accepted unverified")
            return VerificationOutcome(findings=findings, stats=stats)

        failures: List[StageFailure] = []
        findings: List[Finding] = []

        with ThreadPoolExecutor(max_workers=self.config.verification_workers) as pool:
            jobs = [
                [(strategy, pool.submit(strategy.evaluate, candidate)) for strategy in self.strategies]
                for candidate in candidates
            ]

            for candidate, candidate_jobs in zip(candidates, jobs):
                votes = []
                for strategy, future in candidate_jobs:
                    try:
                        votes.append(future.result())
                    except Exception as e:
                        failure = StageFailure(
                            stage=self.stage,
                            message=f"{type(e).__name__}: {e}",
                            category=candidate.category.value,
                            strategy=strategy.strategy_id,
                            subject=candidate.subject,
                        )
                        logger.warning(
                            f"Strategy {strategy.strategy_id} failed on {candidate.id}: {failure.message}"
                        )
                        failures.append(failure)
                        stats.strategy_failures += 1
                        votes.append(VerificationVote(
                            strategy_id=strategy.strategy_id,
                            agrees=False,
                            confidence=0.0,
                            rationale=f"Strategy failed: {type(e).__name__}",
                        ))

                votes.sort(key=lambda v: v.strategy_id)
                finding = self._decide(candidate, tuple(votes))
                if finding:
                    findings.append(finding)
                    stats.promoted += 1
                else:
                    stats.rejected += 1

        logger.info(
            f"Verification: {stats.promoted} accepted, {stats.rejected} rejected "
            f"of {stats.evaluated} candidates"
        )
        return VerificationOutcome(findings=findings, stats=stats, failures=failures)

    @staticmethod
    def _decide(candidate: ContradictionCandidate, votes: tuple) -> Optional[Finding]:
        agreeing = [v for v in votes if v.agrees]
        logger.debug(
            f"{candidate.id} ({candidate.category.value}): "
            + ", ".join(f"{v.strategy_id}={'yes' if v.agrees else 'no'}" for v in votes)
        )
        if len(agreeing) < REQUIRED_AGREEMENT:
            return None
        confidence = round(sum(v.confidence for v in agreeing) / len(agreeing), 4)
        return Finding(candidate=candidate, votes=votes, confidence=confidence, verified=True)
