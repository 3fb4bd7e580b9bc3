"""
Tests for Forensic Anchor
=========================

Tests:
1. Digests and canonical JSON
2. Audit trail chaining and chain verification
3. Tamper detection on results
4. Evidence chain and seal
"""

import pytest
import hashlib
import json
from pathlib import Path

# Add parent to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from contradiction_engine.engine import analyze
from contradiction_engine.forensic import (
    GENESIS_DIGEST,
    AuditTrail,
    build_evidence_chain,
    canonical_json,
    chain_digest,
    digest_payload,
    digest_text,
    forensic_summary,
    verify_chain,
    verify_result,
)
from contradiction_engine.schemas import AuditStatus


@pytest.fixture
def documents():
    fixture_path = Path(__file__).parent / "fixtures" / "sample_documents.json"
    with open(fixture_path, 'r', encoding='utf-8') as f:
        return json.load(f)


@pytest.fixture
def temporal_result(documents):
    return analyze(documents["temporal"]["text"])


# =============================================================================
# Digests
# =============================================================================

class TestDigests:

    def test_sha512_hex(self):
        digest = digest_text("hello")
        assert len(digest) == 128
        assert digest == hashlib.sha512(b"hello").hexdigest()

    def test_unicode_is_utf8(self):
        assert digest_text("café") == hashlib.sha512("café".encode("utf-8")).hexdigest()

    def test_canonical_json_ignores_key_order(self):
        assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'
        assert digest_payload({"b": 1, "a": 2}) == digest_payload({"a": 2, "b": 1})

    def test_canonical_json_keeps_non_ascii(self):
        assert canonical_json({"name": "José"}) == '{"name":"José"}'


# =============================================================================
# Audit trail
# =============================================================================

class TestAuditTrail:

    def test_starts_at_genesis(self):
        trail = AuditTrail()
        assert trail.head == GENESIS_DIGEST
        assert GENESIS_DIGEST == "0" * 128

    def test_each_entry_chains_previous(self):
        trail = AuditTrail()
        first = trail.append("extraction", "a" * 128, "b" * 128)
        second = trail.append("detection", "b" * 128, "c" * 128)

        assert first.sequence == 1
        assert second.sequence == 2
        assert first.chain_digest == chain_digest(GENESIS_DIGEST, "a" * 128, "b" * 128)
        assert second.chain_digest == chain_digest(first.chain_digest, "b" * 128, "c" * 128)
        assert trail.head == second.chain_digest

    def test_degraded_entry_keeps_note(self):
        trail = AuditTrail()
        entry = trail.append("verification", "a", "b", AuditStatus.DEGRADED, "1 failure(s)")
        assert trail.to_output()[0].status == AuditStatus.DEGRADED
        assert entry.note == "1 failure(s)"

    def test_verify_chain(self):
        trail = AuditTrail()
        for stage in ("extraction", "detection", "verification", "scoring"):
            trail.append(stage, digest_text(stage), digest_text(stage + "-out"))

        assert verify_chain(trail.entries)
        assert verify_chain(trail.to_output())

    def test_verify_chain_detects_edit(self):
        trail = AuditTrail()
        trail.append("extraction", "a", "b")
        trail.append("detection", "b", "c")
        entries = list(trail.to_output())
        entries[0] = entries[0].model_copy(update={"output_digest": "x"})

        assert not verify_chain(entries)

    def test_verify_chain_detects_reordering(self):
        trail = AuditTrail()
        trail.append("extraction", "a", "b")
        trail.append("detection", "b", "c")
        assert not verify_chain(list(reversed(trail.to_output())))


# =============================================================================
# Results
# =============================================================================

class TestResultIntegrity:

    def test_fresh_result_verifies(self, temporal_result):
        assert verify_result(temporal_result)
        assert temporal_result.forensic_data.integrity.verified is True

    def test_final_digest_is_last_entry(self, temporal_result):
        forensic = temporal_result.forensic_data
        assert forensic.final_chain_digest == forensic.audit_trail[-1].chain_digest

    def test_document_hash_is_raw_text_digest(self, documents, temporal_result):
        assert temporal_result.document_hash == digest_text(documents["temporal"]["text"])
        assert temporal_result.forensic_data.audit_trail[0].input_digest == temporal_result.document_hash

    def test_edited_finding_breaks_verification(self, temporal_result):
        finding = temporal_result.findings[0]
        tampered = temporal_result.model_copy(update={
            "findings": (finding.model_copy(update={"confidence": 0.1}),)
        })
        assert not verify_result(tampered)

    def test_edited_summary_breaks_verification(self, temporal_result):
        summary = temporal_result.summary.model_copy(update={"risk_score": 0})
        assert not verify_result(temporal_result.model_copy(update={"summary": summary}))


# =============================================================================
# Evidence chain and seal
# =============================================================================

class TestEvidenceChain:

    def test_evidence_ids_and_hashes(self, temporal_result):
        chain = temporal_result.forensic_data.evidence_chain

        assert [e.id for e in chain] == ["EVD-0001"]
        assert chain[0].finding_id == temporal_result.findings[0].id
        assert len(chain[0].finding_hash) == 128

    def test_without_hashes(self, temporal_result):
        chain = build_evidence_chain(temporal_result.findings, with_hashes=False)
        assert chain[0].finding_hash is None

    def test_seal_is_deterministic(self, documents):
        text = documents["temporal"]["text"]
        first = analyze(text).forensic_data.seal_hash
        second = analyze(text).forensic_data.seal_hash

        assert first == second
        assert len(first) == 128

    def test_seal_changes_with_document(self, documents):
        first = analyze(documents["temporal"]["text"]).forensic_data.seal_hash
        second = analyze(documents["temporal"]["text"] + " ").forensic_data.seal_hash
        assert first != second

    def test_hashing_disabled(self, documents):
        result = analyze(documents["temporal"]["text"], {"generateForensicHash": False})
        forensic = result.forensic_data

        assert result.document_hash is None
        assert forensic.integrity.document_hash is None
        assert forensic.seal_hash is None
        assert all(e.finding_hash is None for e in forensic.evidence_chain)
        # The audit chain is always built
        assert len(forensic.audit_trail) == 4
        assert verify_result(result)


class TestForensicSummary:

    def test_counts_by_severity_and_type(self, documents, temporal_result):
        summary = temporal_result.forensic_data.summary
        confidence = temporal_result.findings[0].confidence

        assert summary.document_characters == len(documents["temporal"]["text"])
        assert summary.total_contradictions == 1
        assert summary.by_severity == {"high": 1, "medium": 0, "low": 0}
        assert summary.by_type == {"temporal_contradiction": 1}
        assert summary.highest_confidence == confidence
        assert summary.average_confidence == round(confidence, 4)

    def test_average_over_findings(self, documents):
        result = analyze(documents["certainty"]["text"])
        confidences = [f.confidence for f in result.findings]
        summary = forensic_summary(result.findings, 10)

        assert summary.by_type == {"certainty_contradiction": len(confidences)}
        assert summary.by_severity["medium"] == len(confidences)
        assert summary.highest_confidence == max(confidences)
        assert summary.average_confidence == round(sum(confidences) / len(confidences), 4)
        assert summary.document_characters == 10

    def test_no_findings(self, documents):
        summary = analyze(documents["clean"]["text"]).forensic_data.summary

        assert summary.total_contradictions == 0
        assert summary.by_type == {}
        assert summary.highest_confidence == 0.0
        assert summary.average_confidence == 0.0

    def test_serialized_camel_case(self, temporal_result):
        data = json.loads(temporal_result.model_dump_json(by_alias=True))
        summary = data["forensicData"]["summary"]

        assert summary["byType"] == {"temporal_contradiction": 1}
        assert "highestConfidence" in summary
        assert "averageConfidence" in summary
        assert "documentCharacters" in summary
