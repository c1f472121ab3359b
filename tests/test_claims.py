"""
Tests for the Claim Detector — offsets, confidence, compliance, suggestions.
"""

import pytest

from mlrclear.claims import (
    EMAIL_NOTE,
    INDICATION_PLACEHOLDER,
    calculate_confidence,
    check_brand_compliance,
    detect_claims,
    scan_claims,
)
from mlrclear.errors import AnalysisCancelled
from mlrclear.models import BrandRules, ClaimType, ComplianceStatus, PatternSeverity, ValidationContext
from mlrclear.patterns import Pattern, PatternLibrary, compile_rules, default_library

EXAMPLE = "This treatment is clinically proven and superior to all alternatives."


@pytest.fixture
def ctx():
    return ValidationContext(brand_id="ofev")


def _pattern(index):
    return default_library.list_patterns()[index]


class TestDetection:
    def test_example_claims(self, ctx):
        claims = detect_claims(EXAMPLE, ctx)
        assert [(c.claim_type, c.text) for c in claims] == [
            (ClaimType.CLINICAL, "clinically proven"),
            (ClaimType.COMPARATIVE, "superior"),
        ]

    def test_ids_and_offsets(self, ctx):
        claims = detect_claims(EXAMPLE, ctx)
        assert [c.id for c in claims] == ["claim_0_18", "claim_1_40"]
        for c in claims:
            assert EXAMPLE[c.start_offset:c.end_offset] == c.text
            assert c.id == f"claim_{c.pattern_index}_{c.start_offset}"

    def test_every_occurrence_found(self, ctx):
        text = "Better sleep. Better days."
        claims = detect_claims(text, ctx)
        assert [c.start_offset for c in claims] == [0, 14]

    def test_detection_order_is_pattern_then_offset(self, ctx):
        text = "Superior results, clinically proven."
        claims = detect_claims(text, ctx)
        assert [c.pattern_index for c in claims] == [0, 1]

    def test_surrounding_context_window(self, ctx):
        text = "x" * 80 + " superior " + "y" * 80
        claim = detect_claims(text, ctx)[0]
        assert len(claim.surrounding_context) == 50 + len("superior") + 50
        assert "superior" in claim.surrounding_context

    def test_context_clipped_at_document_edges(self, ctx):
        claim = detect_claims("superior", ctx)[0]
        assert claim.surrounding_context == "superior"

    def test_empty_and_whitespace_content(self, ctx):
        assert detect_claims("", ctx) == []
        assert detect_claims("   \n\t", ctx) == []

    def test_evidence_and_reason_from_pattern(self, ctx):
        claim = detect_claims("It is superior.", ctx)[0]
        assert claim.reason == _pattern(1).reason
        assert claim.required_evidence == _pattern(1).required_evidence
        assert claim.category == "Comparative"

    def test_not_overridden_by_default(self, ctx):
        claim = detect_claims("It is superior.", ctx)[0]
        assert claim.is_overridden is False
        assert claim.override_reason is None

    def test_segments_scanned_independently(self, ctx):
        document = "The best" + "Treatment for adults."
        claims = detect_claims(document, ctx, segments=[(0, 8), (8, len(document))])
        assert [(c.id, c.text) for c in claims] == [("claim_5_4", "best")]

    def test_segment_offsets_are_absolute(self, ctx):
        document = "Try" + "Superior relief."
        claims = detect_claims(document, ctx, segments=[(0, 3), (3, len(document))])
        assert [c.id for c in claims] == ["claim_1_3"]
        assert document[claims[0].start_offset:claims[0].end_offset] == "Superior"


class TestConfidence:
    def test_warning_base(self):
        assert calculate_confidence("clinically proven", _pattern(0)) == 0.7

    def test_error_boost(self):
        assert calculate_confidence("first-line", _pattern(4)) == 0.9

    def test_comparative_boost_capped_at_one(self):
        assert calculate_confidence("superior", _pattern(1)) == 1.0

    def test_short_match_penalty(self):
        assert calculate_confidence("#1", _pattern(5)) == 0.7

    def test_always_within_bounds(self, ctx):
        text = "best #1 only better superior 50% reduction well-tolerated cure"
        for claim in detect_claims(text, ctx):
            assert 0.3 <= claim.confidence <= 1.0


class TestBrandCompliance:
    def test_forbidden_is_violation(self):
        rules = BrandRules(forbidden_terms=("cure",))
        assert check_brand_compliance("cure", _pattern(6), rules) == ComplianceStatus.VIOLATION

    def test_forbidden_is_case_insensitive(self):
        rules = BrandRules(forbidden_terms=("CURE",))
        assert check_brand_compliance("cure", _pattern(6), rules) == ComplianceStatus.VIOLATION

    def test_caution_is_warning(self):
        rules = BrandRules(caution_terms=("proven",))
        status = check_brand_compliance("clinically proven", _pattern(0), rules)
        assert status == ComplianceStatus.WARNING

    def test_forbidden_beats_caution(self):
        rules = BrandRules(forbidden_terms=("superior",), caution_terms=("superior",))
        status = check_brand_compliance("superior", _pattern(1), rules)
        assert status == ComplianceStatus.VIOLATION

    def test_error_severity_is_warning(self):
        status = check_brand_compliance("superior", _pattern(1), BrandRules())
        assert status == ComplianceStatus.WARNING

    def test_otherwise_compliant(self):
        status = check_brand_compliance("clinically proven", _pattern(0), BrandRules())
        assert status == ComplianceStatus.COMPLIANT

    def test_forbidden_outcome_word_detected(self, ctx):
        rules = BrandRules(forbidden_terms=("cure",))
        claims = detect_claims("may cure your condition", ctx, brand_rules=rules)
        assert len(claims) == 1
        assert claims[0].text == "cure"
        assert claims[0].compliance_status == ComplianceStatus.VIOLATION


class TestSuggestions:
    def test_templated_by_type(self, ctx):
        claim = detect_claims("Clinically proven.", ctx)[0]
        assert "In clinical studies" in claim.suggestion

    def test_email_note_on_error_severity(self):
        ctx = ValidationContext(brand_id="ofev", asset_type="Email")
        claim = detect_claims("It is superior.", ctx)[0]
        assert claim.suggestion.endswith(EMAIL_NOTE)

    def test_no_email_note_on_warning_severity(self):
        ctx = ValidationContext(brand_id="ofev", asset_type="Email")
        claim = detect_claims("Clinically proven.", ctx)[0]
        assert EMAIL_NOTE not in claim.suggestion

    def test_indication_uses_approved_text(self, ctx):
        claims = detect_claims(
            "Indicated for adults.", ctx,
            approved_indication="indicated for the treatment of IPF",
        )
        assert "indicated for the treatment of IPF" in claims[0].suggestion

    def test_indication_placeholder(self, ctx):
        claim = detect_claims("Indicated for adults.", ctx)[0]
        assert INDICATION_PLACEHOLDER in claim.suggestion

    def test_region_note_for_indication(self):
        ctx = ValidationContext(brand_id="ofev", region="EU")
        claim = detect_claims("Indicated for adults.", ctx)[0]
        assert "local regulatory approval for EU" in claim.suggestion


class _ExplodingMatcher:
    pattern = "boom"

    def finditer(self, content):
        raise RuntimeError("regex engine failure")


class TestScanFailures:
    def _library(self):
        good = _pattern(1)
        bad = Pattern(
            matcher=_ExplodingMatcher(),
            claim_type=ClaimType.CLINICAL,
            severity=PatternSeverity.WARNING,
            reason="",
            required_evidence=(),
            category="Efficacy",
        )
        return PatternLibrary((bad, good), version="test")

    def test_failing_pattern_is_skipped(self, ctx):
        claims, failed = scan_claims("It is superior.", ctx, library=self._library())
        assert failed == [0]
        assert [c.id for c in claims] == ["claim_1_6"]

    def test_failing_pattern_skipped_in_thread_pool(self, ctx):
        claims, failed = scan_claims(
            "It is superior.", ctx, library=self._library(), workers=4,
        )
        assert failed == [0]
        assert len(claims) == 1

    def test_zero_width_matches_ignored(self, ctx):
        library = compile_rules(
            [{"regex": r"\b", "claim_type": "clinical", "severity": "info"}], "t",
        )
        claims, failed = scan_claims("some words", ctx, library=library)
        assert claims == []
        assert failed == []


class TestConcurrency:
    def test_thread_pool_matches_sequential(self, ctx):
        text = (
            "Clinically proven, superior and well-tolerated. 40% reduction in flares. "
            "Indicated for adults. The #1 choice that may cure symptoms. Better than ever."
        )
        sequential, _ = scan_claims(text, ctx, workers=1)
        pooled, _ = scan_claims(text, ctx, workers=4)
        assert [c.id for c in pooled] == [c.id for c in sequential]

    def test_cancellation_propagates(self, ctx):
        def cancel():
            raise AnalysisCancelled("stop")

        with pytest.raises(AnalysisCancelled):
            scan_claims(EXAMPLE, ctx, cancel_check=cancel)

    def test_cancellation_propagates_from_pool(self, ctx):
        def cancel():
            raise AnalysisCancelled("stop")

        with pytest.raises(AnalysisCancelled):
            scan_claims(EXAMPLE, ctx, cancel_check=cancel, workers=4)
