"""
Forensic Anchor - SHA-512 hash chain over pipeline stages
=========================================================

- Document digest: SHA-512 of the raw UTF-8 text
- Stage digests: SHA-512 of canonical JSON (sorted keys, compact separators)
- Chain digest:  SHA-512(previous chain digest || input digest || output digest)
  starting from a genesis value of 128 zeros

Recomputing the chain from the stored digests reproduces the final chain
digest; ``verify_result`` additionally recomputes the verification and scoring
output digests from the findings and summary carried in the result, so a
Finding edited after the fact breaks verification.

The anchor only observes; it never mutates statements, candidates or findings.
"""

import hashlib
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import AuditEntry
from .schemas import (
    AnalysisResult,
    AuditEntryOutput,
    AuditStatus,
    ComparisonResult,
    EvidenceChainEntry,
    FindingOutput,
    ForensicData,
    ForensicSummary,
    IntegrityOutput,
    Severity,
    SummaryOutput,
)
from .scorer import forensic_grade

logger = logging.getLogger(__name__)

HASH_ALGORITHM = "SHA-512"
GENESIS_DIGEST = "0" * 128
SEAL_TYPE = "CONTRADICTION_ENGINE_SEAL"


# =============================================================================
# Digests
# =============================================================================

def digest_text(text: str) -> str:
    return hashlib.sha512(text.encode("utf-8")).hexdigest()


def canonical_json(payload: Any) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def digest_payload(payload: Any) -> str:
    return digest_text(canonical_json(payload))


def chain_digest(previous: str, input_digest: str, output_digest: str) -> str:
    return digest_text(previous + input_digest + output_digest)


def findings_payload(findings: Iterable[FindingOutput]) -> List[dict]:
    return [f.model_dump(mode="json") for f in findings]


def summary_payload(summary: SummaryOutput) -> dict:
    return summary.model_dump(mode="json")


# =============================================================================
# Audit trail
# =============================================================================

class AuditTrail:
    """
    Append-only, single-writer audit trail.

    Entries are appended in stage order once a stage's results have been
    collected, never from worker threads.
    """

    def __init__(self):
        self._entries: List[AuditEntry] = []

    @property
    def head(self) -> str:
        return self._entries[-1].chain_digest if self._entries else GENESIS_DIGEST

    @property
    def entries(self) -> List[AuditEntry]:
        return list(self._entries)

    def append(
        self,
        stage: str,
        input_digest: str,
        output_digest: str,
        status: AuditStatus = AuditStatus.OK,
        note: Optional[str] = None,
    ) -> AuditEntry:
        entry = AuditEntry(
            sequence=len(self._entries) + 1,
            stage=stage,
            input_digest=input_digest,
            output_digest=output_digest,
            chain_digest=chain_digest(self.head, input_digest, output_digest),
            status=status,
            note=note,
        )
        self._entries.append(entry)
        if status == AuditStatus.DEGRADED:
            logger.warning(f"Audit stage {stage} degraded: {note}")
        return entry

    def to_output(self) -> tuple:
        return tuple(
            AuditEntryOutput(
                sequence=e.sequence,
                stage=e.stage,
                input_digest=e.input_digest,
                output_digest=e.output_digest,
                chain_digest=e.chain_digest,
                status=e.status,
                note=e.note,
            )
            for e in self._entries
        )


def verify_chain(entries: Sequence) -> bool:
    """
    Recompute chain digests from the stored input/output digests.

    Accepts ``AuditEntry`` or ``AuditEntryOutput`` sequences.
    """
    previous = GENESIS_DIGEST
    for expected_sequence, entry in enumerate(entries, start=1):
        if entry.sequence != expected_sequence:
            return False
        if chain_digest(previous, entry.input_digest, entry.output_digest) != entry.chain_digest:
            return False
        previous = entry.chain_digest
    return True


def _stage(entries: Sequence[AuditEntryOutput], name: str) -> Optional[AuditEntryOutput]:
    for entry in entries:
        if entry.stage == name:
            return entry
    return None


def _verify_stored_outputs(
    entries: Sequence[AuditEntryOutput],
    findings: Sequence[FindingOutput],
    summary: SummaryOutput,
    verification_stage: str,
    scoring_stage: str,
) -> bool:
    verification = _stage(entries, verification_stage)
    scoring = _stage(entries, scoring_stage)
    if verification is None or scoring is None:
        return False
    if verification.output_digest != digest_payload(findings_payload(findings)):
        return False
    if scoring.output_digest != digest_payload(summary_payload(summary)):
        return False
    return verify_chain(entries)


def verify_result(result: AnalysisResult) -> bool:
    """Check that findings, summary and audit chain of a result still agree."""
    forensic = result.forensic_data
    entries = forensic.audit_trail
    if not entries or entries[-1].chain_digest != forensic.final_chain_digest:
        return False
    return _verify_stored_outputs(entries, result.findings, result.summary, "verification", "scoring")


def verify_comparison(result: ComparisonResult) -> bool:
    """Check both document analyses and the cross-document chain."""
    if not (verify_result(result.document1_analysis) and verify_result(result.document2_analysis)):
        return False
    return _verify_stored_outputs(
        result.audit_trail,
        result.cross_document_findings,
        result.cross_document_summary,
        "cross_verification",
        "cross_scoring",
    )


# =============================================================================
# Evidence chain and seal
# =============================================================================

def finding_hash(finding: FindingOutput) -> str:
    return digest_payload({
        "type": finding.type,
        "statement1": finding.statement1,
        "statement2": finding.statement2,
    })


def build_evidence_chain(findings: Sequence[FindingOutput], with_hashes: bool = True) -> tuple:
    return tuple(
        EvidenceChainEntry(
            id=f"EVD-{i:04d}",
            finding_id=finding.id,
            type=finding.type,
            severity=finding.severity,
            confidence=finding.confidence,
            verified=finding.verified,
            finding_hash=finding_hash(finding) if with_hashes else None,
        )
        for i, finding in enumerate(findings, start=1)
    )


def seal_hash(
    document_hash: str,
    findings: Sequence[FindingOutput],
    risk_score: int,
    final_chain_digest: str,
) -> str:
    """Deterministic seal binding the document, the findings and the chain"""
    return digest_payload({
        "type": SEAL_TYPE,
        "algorithm": HASH_ALGORITHM,
        "documentHash": document_hash,
        "findingsHash": digest_payload(findings_payload(findings)),
        "riskScore": risk_score,
        "finalChainDigest": final_chain_digest,
    })


def forensic_summary(findings: Sequence[FindingOutput], document_characters: int) -> ForensicSummary:
    """Counts by severity and finding type, plus confidence extremes."""
    by_severity = {severity.value: 0 for severity in Severity}
    by_type: Dict[str, int] = {}
    for finding in findings:
        by_severity[finding.severity.value] += 1
        by_type[finding.type] = by_type.get(finding.type, 0) + 1

    confidences = [finding.confidence for finding in findings]
    return ForensicSummary(
        document_characters=document_characters,
        total_contradictions=len(findings),
        by_severity=by_severity,
        by_type=by_type,
        highest_confidence=max(confidences) if confidences else 0.0,
        average_confidence=round(sum(confidences) / len(confidences), 4) if confidences else 0.0,
    )


def build_forensic_data(
    document_hash: Optional[str],
    findings: Sequence[FindingOutput],
    summary: SummaryOutput,
    trail: AuditTrail,
    document_characters: int = 0,
) -> ForensicData:
    """
    Assemble forensic data for an analysis.

    With ``document_hash=None`` (hashing disabled) evidence hashes and the
    seal are omitted; the audit trail and the finding summary are always
    present.
    """
    hashing = document_hash is not None
    audit_trail = trail.to_output()
    final = trail.head

    return ForensicData(
        integrity=IntegrityOutput(
            document_hash=document_hash,
            hash_algorithm=HASH_ALGORITHM,
            verified=verify_chain(audit_trail),
        ),
        evidence_chain=build_evidence_chain(findings, with_hashes=hashing),
        audit_trail=audit_trail,
        final_chain_digest=final,
        forensic_grade=forensic_grade(summary),
        summary=forensic_summary(findings, document_characters),
        seal_hash=seal_hash(document_hash, findings, summary.risk_score, final) if hashing else None,
    )
