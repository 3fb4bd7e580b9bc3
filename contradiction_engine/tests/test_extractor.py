"""
Tests for Statement Extractor
=============================

Tests:
1. Unit splitting and character offsets
2. Temporal, numerical, logical and certainty statements
3. Sensitivity widens lexicons
4. Extraction never raises
"""

import pytest
import json
import time
from pathlib import Path

# Add parent to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from contradiction_engine.extractor import StatementExtractor, extract_statements, split_units
from contradiction_engine.models import LogicalPayload, Statement, TemporalPayload
from contradiction_engine.schemas import (
    CertaintyRegister,
    ContradictionCategory,
    SensitivityLevel,
    TemporalDirection,
)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def documents():
    fixture_path = Path(__file__).parent / "fixtures" / "sample_documents.json"
    with open(fixture_path, 'r', encoding='utf-8') as f:
        return json.load(f)


@pytest.fixture
def extractor():
    """Create extractor instance"""
    return StatementExtractor(SensitivityLevel.MEDIUM)


def by_category(statements, category):
    return [s for s in statements if s.category == category]


# =============================================================================
# Units
# =============================================================================

class TestSplitUnits:

    def test_offsets_point_into_text(self):
        text = "First one. Second two!\n\nThird"
        units = split_units(text)

        assert [u[2] for u in units] == ["First one.", "Second two!", "Third"]
        for start, end, unit in units:
            assert text[start:end] == unit

    def test_blank_line_ends_unit(self):
        units = split_units("Heading without period\n\nBody sentence.")
        assert [u[2] for u in units] == ["Heading without period", "Body sentence."]

    def test_decimal_does_not_split(self):
        units = split_units("The fee was $1.5 million. Done.")
        assert units[0][2] == "The fee was $1.5 million."

    def test_whitespace_only(self):
        assert split_units("   \n\n  ") == []


# =============================================================================
# Temporal
# =============================================================================

class TestTemporalExtraction:

    def test_scenario_statements(self, extractor, documents):
        statements = extractor.extract(documents["temporal"]["text"])
        temporal = by_category(statements, ContradictionCategory.TEMPORAL)

        assert [s.subject for s in temporal] == [
            "meeting:occurrence", "agreement:signing", "meeting:occurrence"
        ]
        assert [s.payload.direction for s in temporal] == [
            TemporalDirection.BEFORE, TemporalDirection.AFTER, TemporalDirection.AFTER
        ]
        assert [s.payload.anchor_label for s in temporal] == [
            "2024-01-15", "2024-01-15", "2024-01-20"
        ]

    @pytest.mark.parametrize("phrase,label", [
        ("January 15, 2024", "2024-01-15"),
        ("15 January 2024", "2024-01-15"),
        ("2024-01-15", "2024-01-15"),
        ("1/15/2024", "2024-01-15"),
        ("January 2024", "2024-01"),
        ("2024", "2024"),
    ])
    def test_date_forms(self, extractor, phrase, label):
        statements = extractor.extract(f"The hearing was held before {phrase}.")
        temporal = by_category(statements, ContradictionCategory.TEMPORAL)

        assert len(temporal) == 1
        assert temporal[0].subject == "hearing:occurrence"
        assert temporal[0].payload.anchor_label == label

    def test_month_interval_bounds(self, extractor):
        statements = extractor.extract("The payment was sent in February 2024.")
        payload = by_category(statements, ContradictionCategory.TEMPORAL)[0].payload

        assert payload.direction == TemporalDirection.DURING
        assert payload.anchor_end - payload.anchor_start == 28  # leap year

    def test_anchor_event(self, extractor):
        statements = extractor.extract("The contract was signed after the meeting.")
        temporal = by_category(statements, ContradictionCategory.TEMPORAL)

        assert len(temporal) == 1
        assert temporal[0].payload.anchor_event == "meeting"
        assert temporal[0].subject == "contract:signing"

    def test_invalid_date_ignored(self, extractor):
        statements = extractor.extract("The meeting occurred before February 30, 2024.")
        assert by_category(statements, ContradictionCategory.TEMPORAL) == []


# =============================================================================
# Numerical
# =============================================================================

class TestNumericalExtraction:

    def test_scenario_statements(self, extractor, documents):
        statements = extractor.extract(documents["numerical"]["text"])
        numerical = by_category(statements, ContradictionCategory.NUMERICAL)

        assert [(s.subject, s.payload.value) for s in numerical] == [
            ("payment amount:usd", 50000.0),
            ("payment amount:usd", 75000.0),
            ("invoice:usd", 50000.0),
        ]

    def test_dates_are_not_quantities(self, extractor):
        statements = extractor.extract("The fee was due on January 15, 2024.")
        assert by_category(statements, ContradictionCategory.NUMERICAL) == []

    def test_multiplier_and_percent(self, extractor):
        statements = extractor.extract("The loan was $1.5 million. The interest rate is 4.5%.")
        numerical = by_category(statements, ContradictionCategory.NUMERICAL)

        assert numerical[0].subject == "loan:usd"
        assert numerical[0].payload.value == pytest.approx(1_500_000)
        assert numerical[1].subject == "interest rate:percent"
        assert numerical[1].payload.value == pytest.approx(4.5)

    @pytest.mark.parametrize("level", ["low", "medium", "high"])
    def test_label_key_is_stable_across_levels(self, documents, level):
        statements = extract_statements(documents["numerical"]["text"], level)
        numerical = by_category(statements, ContradictionCategory.NUMERICAL)

        assert [s.subject for s in numerical][:2] == ["payment amount:usd"] * 2

    def test_standalone_label_heads_alone(self):
        statements = extract_statements("The total was $900. The total fee was $40.", "high")
        numerical = by_category(statements, ContradictionCategory.NUMERICAL)

        assert [s.subject for s in numerical] == ["total:usd", "fee:usd"]

    def test_unlabeled_amount_needs_high_sensitivity(self):
        text = "He handed over $300 in cash."
        assert by_category(extract_statements(text, "medium"), ContradictionCategory.NUMERICAL) == []

        high = by_category(extract_statements(text, "high"), ContradictionCategory.NUMERICAL)
        assert high[0].subject == "amount:usd"


# =============================================================================
# Logical
# =============================================================================

class TestLogicalExtraction:

    def test_presence_polarity(self, extractor, documents):
        statements = extractor.extract(documents["logical"]["text"])
        logical = by_category(statements, ContradictionCategory.LOGICAL)

        assert [s.subject for s in logical] == ["john:presence"] * 3
        assert [s.payload.negated for s in logical] == [False, True, False]
        assert [s.payload.scope for s in logical] == ["meeting"] * 3

    def test_passive_theme_is_subject(self, extractor):
        statements = extractor.extract("The agreement was never signed.")
        payload = by_category(statements, ContradictionCategory.LOGICAL)[0].payload

        assert isinstance(payload, LogicalPayload)
        assert payload.entity == "agreement"
        assert payload.predicate == "signing"
        assert payload.negated is True
        assert payload.marker == "never"

    def test_contraction_negation(self, extractor):
        statements = extractor.extract("Maria didn't attend the hearing.")
        payload = by_category(statements, ContradictionCategory.LOGICAL)[0].payload

        assert payload.entity == "maria"
        assert payload.negated is True

    def test_pronoun_subject_skipped(self, extractor):
        statements = extractor.extract("He was present at the meeting.")
        assert by_category(statements, ContradictionCategory.LOGICAL) == []


# =============================================================================
# Certainty
# =============================================================================

class TestCertaintyExtraction:

    def test_scenario_registers(self, extractor, documents):
        statements = extractor.extract(documents["certainty"]["text"])
        certainty = by_category(statements, ContradictionCategory.CERTAINTY)

        assert [s.subject for s in certainty] == ["defendant"] * 3
        assert [s.payload.register for s in certainty] == [
            CertaintyRegister.DEFINITE,
            CertaintyRegister.POSSIBLE,
            CertaintyRegister.UNCERTAIN,
        ]

    def test_uncertain_takes_precedence(self, extractor):
        statements = extractor.extract("The witness is unsure and maybe confused.")
        payload = by_category(statements, ContradictionCategory.CERTAINTY)[0].payload
        assert payload.register == CertaintyRegister.UNCERTAIN

    def test_month_may_is_not_a_hedge(self, extractor):
        statements = extractor.extract("The witness testified on May 5, 2024.")
        assert by_category(statements, ContradictionCategory.CERTAINTY) == []


# =============================================================================
# Sensitivity
# =============================================================================

class TestSensitivity:

    def test_direction_marker_tiers(self):
        text = "Payment was received by March 1, 2024."
        assert by_category(extract_statements(text, "low"), ContradictionCategory.TEMPORAL) == []

        medium = by_category(extract_statements(text, "medium"), ContradictionCategory.TEMPORAL)
        assert medium[0].payload.direction == TemporalDirection.BEFORE

    def test_determiner_negation_tier(self):
        text = "No payment was received."
        low = by_category(extract_statements(text, "low"), ContradictionCategory.LOGICAL)
        medium = by_category(extract_statements(text, "medium"), ContradictionCategory.LOGICAL)

        assert low[0].payload.negated is False
        assert medium[0].payload.negated is True

    def test_higher_sensitivity_never_yields_fewer(self, documents):
        for key in ("temporal", "numerical", "logical", "certainty", "clean"):
            text = documents[key]["text"]
            counts = [len(extract_statements(text, level)) for level in ("low", "medium", "high")]
            assert counts == sorted(counts), key


# =============================================================================
# General
# =============================================================================

class TestExtractorGeneral:

    def test_ids_and_offsets(self, extractor, documents):
        text = documents["temporal"]["text"]
        statements = extractor.extract(text)

        assert [s.id for s in statements] == [f"stmt_{i:04d}" for i in range(1, len(statements) + 1)]
        for statement in statements:
            assert text[statement.start:statement.end] == statement.text

    def test_clean_document_has_no_statements(self, extractor, documents):
        assert extractor.extract(documents["clean"]["text"]) == []

    @pytest.mark.parametrize("text", ["", "   ", "$$$ ... 99/99/9999 !!!", "...", "\x00\x01"])
    def test_never_raises(self, extractor, text):
        assert isinstance(extractor.extract(text), list)

    def test_long_unit_extracts_in_bounded_time(self):
        chunk = "the payment of $1 was made after the meeting on March 3, 2024 and John attended 3 meetings at 5% "
        text = chunk * (495_000 // len(chunk))

        started = time.perf_counter()
        statements = extract_statements(text, "high")
        elapsed = time.perf_counter() - started

        assert len(split_units(text)) == 1
        assert {s.category for s in statements} >= {
            ContradictionCategory.TEMPORAL,
            ContradictionCategory.NUMERICAL,
        }
        # One statement per subject and anchor, however often it repeats
        assert len(statements) < 20
        assert elapsed < 30.0

    def test_payload_must_match_category(self):
        with pytest.raises(TypeError):
            Statement(
                id="stmt_0001",
                text="x",
                start=0,
                end=1,
                unit_index=0,
                category=ContradictionCategory.NUMERICAL,
                subject="x",
                payload=TemporalPayload(direction=TemporalDirection.BEFORE, anchor_label="2024"),
            )
