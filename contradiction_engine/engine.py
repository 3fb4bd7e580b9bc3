"""
Contradiction Engine - Analysis pipeline and document comparator
================================================================

    text -> sanitize -> extract -> detect -> verify -> score
                           |          |        |         |
                           +----------+--------+---------+--> audit chain

``analyze`` returns an immutable ``AnalysisResult``; ``compare_documents``
runs two pipelines concurrently and adds cross-document findings with their
own audit chain. Each result also carries a lexical text profile, which sits
outside the chain.

Input and configuration errors are raised before any audit entry exists.
Stage failures degrade the affected audit entry and the run continues.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from .analyzer import analyze_text
from .config import AnalysisConfig, ConfigInput, build_config
from .detector import ContradictionDetector
from .errors import InputError, StageFailure
from .extractor import get_extractor
from .forensic import (
    AuditTrail,
    build_forensic_data,
    digest_payload,
    digest_text,
    findings_payload,
    summary_payload,
)
from .ingest import decode_text
from .models import FINDING_TYPES, Finding, Statement
from .sanitize import sanitize_input
from .schemas import (
    AnalysisMetadata,
    AnalysisResult,
    AuditStatus,
    ComparisonResult,
    FailureOutput,
    FindingOutput,
    VerificationVoteOutput,
)
from .scorer import consistency_score, summarize
from .verifier import VerificationCoordinator

logger = logging.getLogger(__name__)

ENGINE_VERSION = "1.0.0"
MAX_TEXT_CHARS = 500_000

STAGE_EXTRACTION = "extraction"
STAGE_DETECTION = "detection"
STAGE_VERIFICATION = "verification"
STAGE_SCORING = "scoring"
STAGE_CROSS_DETECTION = "cross_detection"
STAGE_CROSS_VERIFICATION = "cross_verification"
STAGE_CROSS_SCORING = "cross_scoring"

TextInput = Union[str, bytes]


@dataclass(frozen=True)
class PipelineRun:
    """One document's result plus the statements the comparator pairs on."""
    result: AnalysisResult
    statements: Tuple[Statement, ...]
    document_digest: str


def stage_status(failures: Sequence[StageFailure]) -> Tuple[AuditStatus, Optional[str]]:
    if not failures:
        return AuditStatus.OK, None
    parts = [
        f"{f.strategy or f.category or 'stage'}@{f.subject or '-'}"
        for f in failures
    ]
    return AuditStatus.DEGRADED, f"{len(failures)} failure(s): " + ", ".join(parts)


def failure_outputs(failures: Sequence[StageFailure]) -> Tuple[FailureOutput, ...]:
    return tuple(FailureOutput(**f.to_dict()) for f in failures)


def finding_outputs(findings: Sequence[Finding], id_prefix: str = "finding") -> Tuple[FindingOutput, ...]:
    outputs = []
    for i, finding in enumerate(findings, start=1):
        candidate = finding.candidate
        outputs.append(FindingOutput(
            id=f"{id_prefix}_{i:04d}",
            type=FINDING_TYPES[candidate.category],
            category=candidate.category,
            severity=candidate.severity,
            subject=candidate.subject,
            statement1=candidate.statement1.text,
            statement2=candidate.statement2.text,
            position1=candidate.statement1.start,
            position2=candidate.statement2.start,
            description=candidate.descriptor,
            confidence=finding.confidence,
            verified=finding.verified,
            votes=tuple(VerificationVoteOutput(**vote.to_dict()) for vote in finding.votes),
            cross_document=candidate.cross_document,
        ))
    return tuple(outputs)


class ContradictionEngine:
    """
    Analysis pipeline bound to one validated configuration.

    Holds no per-run state; one instance may serve concurrent calls.
    """

    def __init__(self, config: ConfigInput = None, max_text_chars: int = MAX_TEXT_CHARS):
        self.config: AnalysisConfig = build_config(config)
        self.max_text_chars = max_text_chars

    # =========================================================================
    # Public API
    # =========================================================================

    def analyze(self, text: TextInput) -> AnalysisResult:
        """
        Analyze one document.

        Args:
            text: Document text (str, or bytes decoded with encoding detection)

        Returns:
            AnalysisResult

        Raises:
            InputError: empty, oversized, non-text or undecodable input
        """
        return self._run(self._coerce_text(text)).result

    def compare_documents(self, text_a: TextInput, text_b: TextInput) -> ComparisonResult:
        """
        Analyze two documents and the contradictions between them.

        ``document1_analysis`` and ``document2_analysis`` are identical to
        ``analyze(text_a)`` and ``analyze(text_b)``.
        """
        text_a = self._coerce_text(text_a)
        text_b = self._coerce_text(text_b)

        with ThreadPoolExecutor(max_workers=2) as pool:
            future_a = pool.submit(self._run, text_a)
            future_b = pool.submit(self._run, text_b)
            run_a = future_a.result()
            run_b = future_b.result()

        start = time.perf_counter()
        trail = AuditTrail()

        binding_digest = digest_payload({
            "document1": run_a.document_digest,
            "document2": run_b.document_digest,
        })

        detection = ContradictionDetector(self.config.numeric_tolerance).detect_cross(
            run_a.statements, run_b.statements
        )
        detection_digest = digest_payload({
            "candidates": [c.to_dict() for c in detection.candidates],
            "failures": [f.to_dict() for f in detection.failures],
        })
        trail.append(STAGE_CROSS_DETECTION, binding_digest, detection_digest, *stage_status(detection.failures))

        outcome = VerificationCoordinator(self.config, stage=STAGE_CROSS_VERIFICATION).verify(detection.candidates)
        findings = finding_outputs(outcome.findings, id_prefix="xfinding")
        verification_digest = digest_payload(findings_payload(findings))
        trail.append(STAGE_CROSS_VERIFICATION, detection_digest, verification_digest, *stage_status(outcome.failures))

        summary = summarize(findings)
        trail.append(STAGE_CROSS_SCORING, verification_digest, digest_payload(summary_payload(summary)))

        logger.info(
            f"Comparison complete: {len(findings)} cross-document findings, "
            f"consistency {consistency_score(findings)} in {(time.perf_counter() - start) * 1000:.1f}ms"
        )

        return ComparisonResult(
            document1_analysis=run_a.result,
            document2_analysis=run_b.result,
            cross_document_findings=findings,
            cross_document_summary=summary,
            consistency_score=consistency_score(findings),
            audit_trail=trail.to_output(),
            failures=failure_outputs(detection.failures + outcome.failures),
        )

    # =========================================================================
    # Pipeline
    # =========================================================================

    def _coerce_text(self, text: TextInput) -> str:
        if isinstance(text, (bytes, bytearray)):
            text = decode_text(bytes(text))
        if not isinstance(text, str):
            raise InputError(f"Expected text or bytes, got {type(text).__name__}")
        if not text.strip():
            raise InputError("Text is empty")
        if len(text) > self.max_text_chars:
            raise InputError(
                f"Text is {len(text)} characters, limit is {self.max_text_chars}"
            )
        return text

    def _run(self, text: str) -> PipelineRun:
        cfg = self.config
        start = time.perf_counter()
        trail = AuditTrail()
        failures: List[StageFailure] = []
        degraded: List[str] = []

        document_digest = digest_text(text)

        # 1. Extraction (on sanitized text; offsets still point into the raw text)
        sanitized = sanitize_input(text)
        statements = tuple(get_extractor(cfg.sensitivity_level).extract(sanitized))
        extraction_digest = digest_payload([s.to_dict() for s in statements])
        trail.append(STAGE_EXTRACTION, document_digest, extraction_digest)

        # 2. Detection
        detection = ContradictionDetector(cfg.numeric_tolerance).detect(statements)
        detection_digest = digest_payload({
            "candidates": [c.to_dict() for c in detection.candidates],
            "failures": [f.to_dict() for f in detection.failures],
        })
        status, note = stage_status(detection.failures)
        trail.append(STAGE_DETECTION, extraction_digest, detection_digest, status, note)
        if detection.failures:
            degraded.append(STAGE_DETECTION)
            failures.extend(detection.failures)

        # 3. Verification
        outcome = VerificationCoordinator(cfg).verify(detection.candidates)
        findings = finding_outputs(outcome.findings)
        verification_digest = digest_payload(findings_payload(findings))
        status, note = stage_status(outcome.failures)
        trail.append(STAGE_VERIFICATION, detection_digest, verification_digest, status, note)
        if outcome.failures:
            degraded.append(STAGE_VERIFICATION)
            failures.extend(outcome.failures)

        # 4. Scoring
        summary = summarize(findings)
        trail.append(STAGE_SCORING, verification_digest, digest_payload(summary_payload(summary)))

        document_hash = document_digest if cfg.generate_forensic_hash else None

        result = AnalysisResult(
            document_hash=document_hash,
            findings=findings,
            summary=summary,
            forensic_data=build_forensic_data(document_hash, findings, summary, trail, len(text)),
            text_analysis=analyze_text(sanitized),
            metadata=AnalysisMetadata(
                engine_version=ENGINE_VERSION,
                sensitivity_level=cfg.sensitivity_level,
                triple_verified=cfg.enable_triple_verification,
                forensic_hash_enabled=cfg.generate_forensic_hash,
                statements_extracted=len(statements),
                candidates_generated=len(detection.candidates),
                candidates_rejected=outcome.stats.rejected,
                degraded_stages=tuple(degraded),
                failures=failure_outputs(failures),
            ),
        )

        logger.info(
            f"Analysis complete: {len(statements)} statements, "
            f"{len(detection.candidates)} candidates, {len(findings)} findings, "
            f"risk {summary.risk_score} in {(time.perf_counter() - start) * 1000:.1f}ms"
        )
        return PipelineRun(result=result, statements=statements, document_digest=document_digest)


# =============================================================================
# Convenience Functions
# =============================================================================

def analyze(text: TextInput, config: ConfigInput = None) -> AnalysisResult:
    """
    Analyze a document for contradictions.

    Args:
        text: Document text
        config: AnalysisConfig or options mapping (camelCase or snake_case)

    Returns:
        AnalysisResult
    """
    return ContradictionEngine(config).analyze(text)


def compare_documents(text_a: TextInput, text_b: TextInput, config: ConfigInput = None) -> ComparisonResult:
    """Compare two documents; see ``ContradictionEngine.compare_documents``."""
    return ContradictionEngine(config).compare_documents(text_a, text_b)
