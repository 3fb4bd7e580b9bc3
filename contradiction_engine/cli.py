#!/usr/bin/env python3
"""
Command-line interface for the Contradiction Engine.

Usage:
    contradiction-engine --file document.txt
    contradiction-engine --text "Sample text to analyze"
    contradiction-engine --file doc.txt --format markdown --output report.md
    contradiction-engine --file doc1.txt --compare doc2.txt

Exit codes: 0 success, 1 input error, 2 configuration error.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import build_config, get_settings
from .engine import ContradictionEngine
from .errors import ConfigError, InputError
from .ingest import read_document
from .report import ReportGenerator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contradiction-engine",
        description="Detect contradictions in a document, or between two documents.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--file", "-f", help="Analyze a text file")
    source.add_argument("--text", "-t", help="Analyze text directly")
    parser.add_argument("--output", "-o", help="Write the report to this file")
    parser.add_argument("--format", dest="output_format", help="Output format: json, text, markdown, html")
    parser.add_argument("--sensitivity", help="Detection sensitivity: low, medium, high")
    parser.add_argument("--tolerance", type=float, help="Relative tolerance for numeric conflicts")
    parser.add_argument("--no-verify", action="store_true", help="Disable triple verification")
    parser.add_argument("--no-hash", action="store_true", help="Omit document hash, evidence hashes and seal")
    parser.add_argument("--compare", metavar="FILE", help="Compare with another document")
    parser.add_argument("--log-level", default=None, help="Logging level (default from settings)")
    return parser


def _options(args: argparse.Namespace) -> dict:
    options = {}
    if args.output_format:
        options["output_format"] = args.output_format
    if args.sensitivity:
        options["sensitivity_level"] = args.sensitivity
    if args.tolerance is not None:
        options["numeric_tolerance"] = args.tolerance
    if args.no_verify:
        options["enable_triple_verification"] = False
    if args.no_hash:
        options["generate_forensic_hash"] = False
    return options


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = build_config(_options(args), base=settings.default_analysis_config())
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        if args.file:
            text = read_document(args.file)
        elif args.text is not None:
            text = args.text
        else:
            raise InputError("No input provided. Use --file or --text.")

        engine = ContradictionEngine(config, max_text_chars=settings.max_text_chars)
        if args.compare:
            result = engine.compare_documents(text, read_document(args.compare))
            total = result.cross_document_summary.total_contradictions
            score_line = f"Consistency Score: {result.consistency_score}/100"
        else:
            result = engine.analyze(text)
            total = result.summary.total_contradictions
            score_line = f"Risk Score: {result.summary.risk_score}/100"
    except InputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    report = ReportGenerator(config.output_format).generate(result)

    if args.output:
        try:
            Path(args.output).write_text(report, encoding="utf-8")
        except OSError as e:
            print(f"Error: Cannot write report to {args.output}: {e}", file=sys.stderr)
            return EXIT_INPUT_ERROR
        print(f"Report saved to: {args.output}", file=sys.stderr)
    else:
        print(report)

    print(f"Contradictions Found: {total} | {score_line}", file=sys.stderr)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
