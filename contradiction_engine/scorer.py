"""
Risk Scorer
===========

Pure functions from accepted findings to counts and scores.

    riskScore        = min(100, 30*high + 15*medium + 5*low)
    consistencyScore = 100 - riskScore   (over cross-document findings)
"""

from typing import Dict, Iterable

from .schemas import Severity, SummaryOutput

SEVERITY_WEIGHTS: Dict[Severity, int] = {
    Severity.HIGH: 30,
    Severity.MEDIUM: 15,
    Severity.LOW: 5,
}

MAX_SCORE = 100


def severity_counts(findings: Iterable) -> Dict[Severity, int]:
    """Count findings (anything with a ``severity``) per severity level"""
    counts = {severity: 0 for severity in Severity}
    for finding in findings:
        counts[Severity(finding.severity)] += 1
    return counts


def weighted_penalty(counts: Dict[Severity, int]) -> int:
    return min(MAX_SCORE, sum(SEVERITY_WEIGHTS[s] * n for s, n in counts.items()))


def risk_score(findings: Iterable) -> int:
    return weighted_penalty(severity_counts(findings))


def consistency_score(findings: Iterable) -> int:
    """100 for fully consistent documents, 0 at or beyond the penalty cap"""
    return MAX_SCORE - weighted_penalty(severity_counts(findings))


def summarize(findings: Iterable) -> SummaryOutput:
    findings = list(findings)
    counts = severity_counts(findings)
    return SummaryOutput(
        total_contradictions=len(findings),
        high_severity=counts[Severity.HIGH],
        medium_severity=counts[Severity.MEDIUM],
        low_severity=counts[Severity.LOW],
        risk_score=weighted_penalty(counts),
    )


def forensic_grade(summary: SummaryOutput) -> str:
    """
    Letter grade for a document's evidentiary consistency.

    A: no findings; F: three or more high-severity findings.
    """
    if summary.total_contradictions == 0:
        return "A"
    if summary.high_severity >= 3:
        return "F"
    if summary.high_severity >= 2:
        return "D"
    if summary.high_severity >= 1:
        return "C"
    if summary.medium_severity >= 3:
        return "C"
    if summary.medium_severity >= 1:
        return "B"
    return "B+"
