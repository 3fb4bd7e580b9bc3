"""
Report Generator
================

Maps an ``AnalysisResult`` or ``ComparisonResult`` to json, text, markdown or
html. Pure formatting: nothing here recomputes findings, scores or digests.

Text reports carry the markers ``sanitize.py`` looks for, so a report pasted
back into the engine is masked instead of analyzed.
"""

import html
from typing import List, Union

from .config import build_config
from .errors import ConfigError
from .schemas import (
    AnalysisResult,
    ComparisonResult,
    FindingOutput,
    OutputFormat,
    SummaryOutput,
    TextAnalysisOutput,
)

Result = Union[AnalysisResult, ComparisonResult]

RULE = "═" * 60
THIN_RULE = "─" * 60

SEVERITY_COLORS = {
    "high": "#dc3545",
    "medium": "#ffc107",
    "low": "#28a745",
}


def _percent(value: float) -> str:
    return f"{value * 100:.1f}%"


def _votes(finding: FindingOutput) -> str:
    if not finding.votes:
        return "not verified (reduced assurance)"
    return ", ".join(f"{v.strategy}={'yes' if v.agrees else 'no'}" for v in finding.votes)


class ReportGenerator:
    """Render results in one output format."""

    def __init__(self, output_format: Union[OutputFormat, str] = OutputFormat.JSON):
        try:
            self.output_format = OutputFormat(output_format)
        except ValueError as e:
            raise ConfigError(f"Unknown output format: {output_format!r}") from e

    @classmethod
    def from_options(cls, options=None) -> "ReportGenerator":
        return cls(build_config(options).output_format)

    def generate(self, result: Result) -> str:
        renderers = {
            OutputFormat.JSON: self.generate_json,
            OutputFormat.TEXT: self.generate_text,
            OutputFormat.MARKDOWN: self.generate_markdown,
            OutputFormat.HTML: self.generate_html,
        }
        return renderers[self.output_format](result)

    # =========================================================================
    # JSON
    # =========================================================================

    def generate_json(self, result: Result) -> str:
        return result.model_dump_json(by_alias=True, indent=2)

    # =========================================================================
    # Text
    # =========================================================================

    def generate_text(self, result: Result) -> str:
        if isinstance(result, ComparisonResult):
            return self._comparison_text(result)

        lines = [RULE, "CONTRADICTION ENGINE REPORT", RULE]
        lines.append(f"Document Hash: {result.document_hash or 'Not generated'}")
        lines.append(
            f"Engine Version: {result.metadata.engine_version} | "
            f"Sensitivity: {result.metadata.sensitivity_level.value} | "
            f"Triple Verification: {'on' if result.metadata.triple_verified else 'off'}"
        )
        lines.append("")
        lines.extend(self._summary_text(result.summary))
        lines.extend(self._findings_text(result.findings))
        lines.extend(self._profile_text(result.text_analysis))

        forensic = result.forensic_data
        lines.extend([THIN_RULE, "FORENSIC AUDIT TRAIL", THIN_RULE])
        lines.append(f"Forensic Grade: {forensic.forensic_grade}")
        lines.append(f"Average Confidence: {_percent(forensic.summary.average_confidence)}")
        lines.append(f"Chain Digest: {forensic.final_chain_digest}")
        for entry in forensic.audit_trail:
            lines.append(f"  {entry.sequence}. {entry.stage} [{entry.status.value}] {entry.chain_digest[:16]}")
        for evidence in forensic.evidence_chain:
            lines.append(f"  {evidence.id} {evidence.finding_id} {evidence.type} {evidence.severity.value}")
        if forensic.seal_hash:
            lines.append(f"  Seal: {forensic.seal_hash}")
        lines.append("")

        lines.extend([RULE, "END OF REPORT", RULE])
        return "\n".join(lines)

    def _summary_text(self, summary: SummaryOutput, title: str = "SUMMARY") -> List[str]:
        return [
            THIN_RULE,
            title,
            THIN_RULE,
            f"Total Contradictions: {summary.total_contradictions}",
            f"  - High Severity: {summary.high_severity}",
            f"  - Medium Severity: {summary.medium_severity}",
            f"  - Low Severity: {summary.low_severity}",
            f"Risk Score: {summary.risk_score}/100",
            "",
        ]

    def _profile_text(self, analysis: TextAnalysisOutput) -> List[str]:
        stats = analysis.statistics
        return [
            THIN_RULE,
            "TEXT PROFILE",
            THIN_RULE,
            f"Sentences: {stats.sentence_count} | Words: {stats.word_count} | Unique Words: {stats.unique_word_count}",
            f"Readability: {stats.readability_score}/100 | Sentiment: {analysis.sentiment.sentiment}",
            f"Dates: {len(analysis.entities.dates)} | Amounts: {len(analysis.entities.amounts)} | "
            f"Names: {len(analysis.entities.names)} | Sections: {len(analysis.structure.sections)}",
            "",
        ]

    def _findings_text(self, findings, title: str = "FINDINGS") -> List[str]:
        if not findings:
            return []
        lines = [THIN_RULE, title, THIN_RULE]
        for index, finding in enumerate(findings, start=1):
            lines.append(f"[{finding.severity.value.upper()}] #{index} {finding.type}")
            lines.append(f"    Subject: {finding.subject}")
            lines.append(f"    Confidence: {_percent(finding.confidence)}")
            lines.append(f"    Description: {finding.description}")
            lines.append(f"    Statement 1: \"{finding.statement1}\"")
            lines.append(f"    Statement 2: \"{finding.statement2}\"")
            lines.append(f"    Votes: {_votes(finding)}")
        lines.append("")
        return lines

    def _comparison_text(self, result: ComparisonResult) -> str:
        lines = [RULE, "CONTRADICTION ENGINE REPORT", "CROSS-DOCUMENT COMPARISON", RULE]
        lines.append(f"Consistency Score: {result.consistency_score}/100")
        lines.append("")
        lines.extend(self._summary_text(result.document1_analysis.summary, "DOCUMENT 1"))
        lines.extend(self._summary_text(result.document2_analysis.summary, "DOCUMENT 2"))
        lines.extend(self._summary_text(result.cross_document_summary, "CROSS-DOCUMENT"))
        lines.extend(self._findings_text(result.cross_document_findings, "CROSS-DOCUMENT FINDINGS"))
        if result.audit_trail:
            lines.append(f"Chain Digest: {result.audit_trail[-1].chain_digest}")
            lines.append("")
        lines.extend([RULE, "END OF REPORT", RULE])
        return "\n".join(lines)

    # =========================================================================
    # Markdown
    # =========================================================================

    def generate_markdown(self, result: Result) -> str:
        if isinstance(result, ComparisonResult):
            lines = ["# Contradiction Engine: Cross-Document Comparison", ""]
            lines.append(f"**Consistency Score:** {result.consistency_score}/100")
            lines.append("")
            lines.append("| Document | Contradictions | Risk Score |")
            lines.append("|----------|----------------|------------|")
            lines.append(
                f"| Document 1 | {result.document1_analysis.summary.total_contradictions} "
                f"| {result.document1_analysis.summary.risk_score} |"
            )
            lines.append(
                f"| Document 2 | {result.document2_analysis.summary.total_contradictions} "
                f"| {result.document2_analysis.summary.risk_score} |"
            )
            lines.append("")
            lines.extend(self._findings_markdown(result.cross_document_findings, "Cross-Document Findings"))
            return "\n".join(lines)

        lines = ["# Contradiction Engine Report", "", "## Overview", ""]
        lines.append("| Metric | Value |")
        lines.append("|--------|-------|")
        lines.append(f"| Engine Version | {result.metadata.engine_version} |")
        lines.append(f"| Sensitivity | {result.metadata.sensitivity_level.value} |")
        lines.append(f"| Document Hash | `{result.document_hash or 'N/A'}` |")
        lines.append("")

        summary = result.summary
        lines.extend(["## Summary", ""])
        lines.append(f"- **Total Contradictions:** {summary.total_contradictions}")
        lines.append(f"  - High Severity: {summary.high_severity}")
        lines.append(f"  - Medium Severity: {summary.medium_severity}")
        lines.append(f"  - Low Severity: {summary.low_severity}")
        lines.append(f"- **Risk Score:** {summary.risk_score}/100")
        lines.append("")

        lines.extend(self._findings_markdown(result.findings, "Findings"))

        forensic = result.forensic_data
        lines.extend(["## Forensic Data", ""])
        lines.append(f"- **Forensic Grade:** {forensic.forensic_grade}")
        lines.append(f"- **Average Confidence:** {_percent(forensic.summary.average_confidence)}")
        lines.append(f"- **Final Chain Digest:** `{forensic.final_chain_digest}`")
        if forensic.seal_hash:
            lines.append(f"- **Seal:** `{forensic.seal_hash}`")
        lines.append("")
        lines.append("| # | Stage | Status | Chain Digest |")
        lines.append("|---|-------|--------|--------------|")
        for entry in forensic.audit_trail:
            lines.append(f"| {entry.sequence} | {entry.stage} | {entry.status.value} | `{entry.chain_digest[:16]}` |")
        lines.append("")
        lines.append("---")
        lines.append(f"*Contradiction Engine v{result.metadata.engine_version}*")
        return "\n".join(lines)

    def _findings_markdown(self, findings, title: str) -> List[str]:
        if not findings:
            return []
        lines = [f"## {title}", ""]
        for index, finding in enumerate(findings, start=1):
            lines.append(f"### {index}. {finding.type.replace('_', ' ').upper()}")
            lines.append("")
            lines.append(
                f"**Severity:** {finding.severity.value} | "
                f"**Confidence:** {_percent(finding.confidence)}"
            )
            lines.append("")
            lines.append(f"> {finding.description}")
            lines.append("")
            lines.append("**Statement 1:**")
            lines.append(f"> {finding.statement1}")
            lines.append("")
            lines.append("**Statement 2:**")
            lines.append(f"> {finding.statement2}")
            lines.append("")
            if finding.verified:
                lines.append(f"*Triple verified: {_votes(finding)}*")
                lines.append("")
        return lines

    # =========================================================================
    # HTML
    # =========================================================================

    def generate_html(self, result: Result) -> str:
        if isinstance(result, ComparisonResult):
            title = "Cross-Document Comparison"
            stats = [
                ("Consistency Score", f"{result.consistency_score}/100"),
                ("Cross Findings", str(result.cross_document_summary.total_contradictions)),
                ("Document 1 Risk", f"{result.document1_analysis.summary.risk_score}/100"),
                ("Document 2 Risk", f"{result.document2_analysis.summary.risk_score}/100"),
            ]
            findings = result.cross_document_findings
            footer = ""
        else:
            title = "Contradiction Report"
            stats = [
                ("Contradictions", str(result.summary.total_contradictions)),
                ("High Severity", str(result.summary.high_severity)),
                ("Risk Score", f"{result.summary.risk_score}/100"),
                ("Forensic Grade", result.forensic_data.forensic_grade),
            ]
            findings = result.findings
            footer = f"Final chain digest: {result.forensic_data.final_chain_digest}"

        cards = "\n".join(
            f'    <div class="stat-card"><div class="stat-value">{html.escape(value)}</div>'
            f'<div class="stat-label">{html.escape(label)}</div></div>'
            for label, value in stats
        )
        items = "\n".join(self._finding_html(f) for f in findings) or "    <p>No contradictions found.</p>"

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>{html.escape(title)}</title>
  <style>
    body {{ font-family: sans-serif; max-width: 900px; margin: 0 auto; padding: 20px; background: #f5f5f5; }}
    .summary {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); gap: 15px; }}
    .stat-card {{ background: white; padding: 20px; border-radius: 8px; text-align: center; }}
    .stat-value {{ font-size: 2em; font-weight: bold; }}
    .finding {{ border-left: 4px solid; padding: 15px; margin: 15px 0; background: white; }}
    .statement {{ font-style: italic; margin: 5px 0; }}
    .footer {{ color: #666; font-size: 0.8em; word-break: break-all; }}
  </style>
</head>
<body>
  <h1>{html.escape(title)}</h1>
  <div class="summary">
{cards}
  </div>
  <div class="findings">
{items}
  </div>
  <p class="footer">{html.escape(footer)}</p>
</body>
</html>
"""

    def _finding_html(self, finding: FindingOutput) -> str:
        color = SEVERITY_COLORS[finding.severity.value]
        return (
            f'    <div class="finding" style="border-color: {color}">\n'
            f'      <strong>{html.escape(finding.type)}</strong> '
            f'({html.escape(finding.severity.value)}, {_percent(finding.confidence)})\n'
            f'      <p>{html.escape(finding.description)}</p>\n'
            f'      <p class="statement">{html.escape(finding.statement1)}</p>\n'
            f'      <p class="statement">{html.escape(finding.statement2)}</p>\n'
            f'    </div>'
        )


def generate_report(result: Result, output_format: Union[OutputFormat, str] = OutputFormat.JSON) -> str:
    """Convenience function to render a result."""
    return ReportGenerator(output_format).generate(result)
