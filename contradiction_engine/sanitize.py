"""
Input Sanitizer - Mask control characters and report artifacts
===============================================================

Prevents self-contamination where the engine analyzes its own report
output as if it were a source document.

Everything is masked with spaces instead of removed, so character offsets
of extracted statements still point into the caller's raw text.

Usage:
    from contradiction_engine.sanitize import sanitize_input
    clean_text = sanitize_input(raw_input)
"""

import re
from typing import List, Set

# =============================================================================
# System Markers - Indicate report output (not source text)
# =============================================================================

SYSTEM_MARKERS: Set[str] = {
    # Report headers
    "CONTRADICTION ENGINE REPORT",
    "CROSS-DOCUMENT COMPARISON",
    "FORENSIC AUDIT TRAIL",
    "TEXT PROFILE",
    # Report fields
    "Document Hash:",
    "Risk Score:",
    "Consistency Score:",
    "Chain Digest:",
    "Forensic Grade:",
    # JSON keys of serialized results
    "documentHash",
    "riskScore",
    "auditTrail",
    "chainDigest",
    "evidenceChain",
    "forensicData",
    "textAnalysis",
}

# Patterns for report rows (compiled for efficiency)
REPORT_LINE_PATTERNS: List[re.Pattern] = [
    re.compile(r'^\s*EVD-\d{4}\b'),           # Evidence chain rows
    re.compile(r'^\s*\[(?:HIGH|MEDIUM|LOW)\]'),  # Finding rows
    re.compile(r'^\s*#\d+\s+\w+_contradiction'),
    re.compile(r'^\s*[═─]{10,}\s*$'),          # Rules
    re.compile(r'^\s*(?:Statement [12]|Confidence|Severity|Subject|Description|Votes):\s*'),
]

CONTROL_CHARS = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]')


def mask_control_chars(text: str) -> str:
    """Replace control characters (except tab/newline/CR) with spaces."""
    return CONTROL_CHARS.sub(' ', text)


def _blank(line: str) -> str:
    return ' ' * len(line)


def sanitize_input(text: str) -> str:
    """
    Mask report/meta sections and control characters in input text.

    The returned string always has the same length as the input.

    Args:
        text: Raw input text that may contain previous report output

    Returns:
        Text with report sections and control characters replaced by spaces
    """
    if not text:
        return ""

    text = mask_control_chars(text)

    lines = text.split('\n')
    cleaned_lines = []
    skip_section = False

    for line in lines:
        # Entering a report section
        if any(marker in line for marker in SYSTEM_MARKERS):
            skip_section = True
            cleaned_lines.append(_blank(line))
            continue

        # Report rows outside of a marked section
        if any(pattern.match(line) for pattern in REPORT_LINE_PATTERNS):
            cleaned_lines.append(_blank(line))
            continue

        # Empty line ends a report section
        if not line.strip():
            skip_section = False
            cleaned_lines.append(line)
            continue

        if skip_section:
            cleaned_lines.append(_blank(line))
            continue

        cleaned_lines.append(line)

    return '\n'.join(cleaned_lines)


def contains_system_text(text: str) -> bool:
    """Check whether text carries engine report markers."""
    if not text:
        return False
    if any(marker in text for marker in SYSTEM_MARKERS):
        return True
    return any(pattern.match(line) for line in text.split('\n') for pattern in REPORT_LINE_PATTERNS)
