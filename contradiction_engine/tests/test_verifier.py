"""
Tests for Verification Coordinator
==================================

Tests:
1. Each strategy's verdict on real candidates
2. 2-of-3 gate and confidence aggregation
3. Deterministic vote order under concurrency
4. Strategy failures and reduced-assurance mode
"""

import pytest
import time
from dataclasses import replace
from pathlib import Path

# Add parent to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from contradiction_engine.config import AnalysisConfig
from contradiction_engine.detector import detect_contradictions
from contradiction_engine.extractor import extract_statements
from contradiction_engine.models import ContradictionCandidate, VerificationVote
from contradiction_engine.verifier import (
    REDUCED_ASSURANCE_CONFIDENCE,
    ReverseOrderStrategy,
    StrictLexicalStrategy,
    SubjectAlignmentStrategy,
    VerificationCoordinator,
    VerificationStrategy,
)


TEMPORAL_TEXT = (
    "The meeting occurred before January 15, 2024. "
    "The agreement was signed after January 15, 2024. "
    "John confirmed the meeting happened after January 20, 2024."
)

SIGNING_TEXT = "The contract was signed on March 3, 2024. The contract was signed on March 10, 2024."


def candidates_for(text):
    return detect_contradictions(extract_statements(text)).candidates


class FixedVote(VerificationStrategy):
    """Test strategy returning a fixed verdict after an optional delay"""

    def __init__(self, strategy_id, agrees, confidence=0.8, delay=0.0):
        self.strategy_id = strategy_id
        self.agrees = agrees
        self.confidence = confidence
        self.delay = delay

    def evaluate(self, candidate):
        time.sleep(self.delay)
        return VerificationVote(self.strategy_id, self.agrees, self.confidence, "fixed")


class Broken(VerificationStrategy):
    strategy_id = "broken"

    def evaluate(self, candidate):
        raise RuntimeError("strategy crashed")


@pytest.fixture
def temporal_candidate():
    candidates = candidates_for(TEMPORAL_TEXT)
    assert len(candidates) == 1
    return candidates[0]


# =============================================================================
# Strategies
# =============================================================================

class TestStrategies:

    def test_reverse_order_agrees(self, temporal_candidate):
        vote = ReverseOrderStrategy().evaluate(temporal_candidate)
        assert vote.agrees is True
        assert vote.confidence == 0.9

    def test_reverse_order_reads_the_texts_not_the_payloads(self, temporal_candidate):
        # Payloads still conflict, but the second text no longer says so
        reworded = replace(temporal_candidate.statement2, text="The weather was fine that week.")
        candidate = replace(temporal_candidate, statement2=reworded)

        vote = ReverseOrderStrategy().evaluate(candidate)
        assert vote.agrees is False
        assert vote.confidence == 0.0
        assert temporal_candidate.subject in vote.rationale

    def test_reverse_order_uses_configured_sensitivity(self):
        # "on <date>" needs medium sensitivity to be parsed again
        candidate = candidates_for(SIGNING_TEXT)[0]
        assert ReverseOrderStrategy(sensitivity="medium").evaluate(candidate).agrees is True
        assert ReverseOrderStrategy(sensitivity="low").evaluate(candidate).agrees is False

    def test_subject_alignment_agrees(self, temporal_candidate):
        vote = SubjectAlignmentStrategy().evaluate(temporal_candidate)
        assert vote.agrees is True
        assert 0.5 < vote.confidence <= 1.0

    def test_subject_alignment_rejects_unrelated_texts(self, temporal_candidate):
        unrelated = ContradictionCandidate(
            id="cand_x",
            category=temporal_candidate.category,
            subject=temporal_candidate.subject,
            statement1=temporal_candidate.statement1,
            statement2=extract_statements("The invoice was paid on March 3, 2024.")[0],
            descriptor="test",
        )
        vote = SubjectAlignmentStrategy().evaluate(unrelated)
        assert vote.agrees is False
        assert vote.confidence == 0.0

    def test_strict_lexical_agrees_on_core_patterns(self, temporal_candidate):
        vote = StrictLexicalStrategy().evaluate(temporal_candidate)
        assert vote.agrees is True
        assert vote.confidence == 0.75

    def test_strict_lexical_rejects_wider_patterns(self):
        # "on <date>" is only recognised above low sensitivity
        candidate = candidates_for(SIGNING_TEXT)[0]
        assert StrictLexicalStrategy().evaluate(candidate).agrees is False

    def test_strategies_are_stateless(self, temporal_candidate):
        strategy = SubjectAlignmentStrategy()
        assert strategy.evaluate(temporal_candidate) == strategy.evaluate(temporal_candidate)


# =============================================================================
# Coordinator
# =============================================================================

class TestCoordinator:

    def test_default_strategies_vote_three_times(self, temporal_candidate):
        outcome = VerificationCoordinator(AnalysisConfig()).verify([temporal_candidate])

        assert len(outcome.findings) == 1
        finding = outcome.findings[0]
        assert finding.verified is True
        assert [v.strategy_id for v in finding.votes] == [
            "reverse_order", "strict_lexical", "subject_alignment"
        ]
        assert finding.agreeing_votes == 3

    def test_two_of_three_accepts(self, temporal_candidate):
        strategies = [FixedVote("a", True, 0.9), FixedVote("b", True, 0.6), FixedVote("c", False, 0.0)]
        outcome = VerificationCoordinator(AnalysisConfig(), strategies).verify([temporal_candidate])

        assert len(outcome.findings) == 1
        assert outcome.findings[0].confidence == 0.75

    def test_one_of_three_rejects(self, temporal_candidate):
        strategies = [FixedVote("a", True), FixedVote("b", False), FixedVote("c", False)]
        outcome = VerificationCoordinator(AnalysisConfig(), strategies).verify([temporal_candidate])

        assert outcome.findings == []
        assert outcome.stats.rejected == 1

    def test_partial_agreement_on_wider_patterns(self):
        candidate = candidates_for(SIGNING_TEXT)[0]
        outcome = VerificationCoordinator(AnalysisConfig()).verify([candidate])

        finding = outcome.findings[0]
        assert finding.agreeing_votes == 2
        assert finding.confidence == pytest.approx((0.9 + 1.0) / 2)

    def test_votes_sorted_regardless_of_completion(self, temporal_candidate):
        strategies = [
            FixedVote("c", True, delay=0.0),
            FixedVote("a", True, delay=0.05),
            FixedVote("b", True, delay=0.02),
        ]
        outcome = VerificationCoordinator(AnalysisConfig(), strategies).verify([temporal_candidate])
        assert [v.strategy_id for v in outcome.findings[0].votes] == ["a", "b", "c"]

    def test_failed_strategy_recorded(self, temporal_candidate):
        strategies = [FixedVote("a", True), Broken(), FixedVote("c", True)]
        outcome = VerificationCoordinator(AnalysisConfig(), strategies).verify([temporal_candidate])

        assert len(outcome.findings) == 1
        broken_vote = [v for v in outcome.findings[0].votes if v.strategy_id == "broken"][0]
        assert broken_vote.agrees is False
        assert broken_vote.confidence == 0.0

        assert len(outcome.failures) == 1
        assert outcome.failures[0].strategy == "broken"
        assert outcome.failures[0].stage == "verification"

    def test_failure_never_fabricates_finding(self, temporal_candidate):
        strategies = [FixedVote("a", True), Broken(), FixedVote("c", False)]
        outcome = VerificationCoordinator(AnalysisConfig(), strategies).verify([temporal_candidate])
        assert outcome.findings == []

    def test_reduced_assurance_mode(self, temporal_candidate):
        config = AnalysisConfig(enable_triple_verification=False)
        outcome = VerificationCoordinator(config).verify([temporal_candidate])

        finding = outcome.findings[0]
        assert finding.verified is False
        assert finding.votes == ()
        assert finding.confidence == REDUCED_ASSURANCE_CONFIDENCE

    def test_single_worker_pool(self, temporal_candidate):
        config = AnalysisConfig(verification_workers=1)
        outcome = VerificationCoordinator(config).verify([temporal_candidate] * 3)
        assert len(outcome.findings) == 3
