"""
Tests for the analysis orchestrator — end-to-end runs, degraded mode,
cancellation and reviewer overrides.
"""

import asyncio
import threading

import pytest

from mlrclear.engine import ComplianceEngine, analyze_content, apply_overrides, validate_context
from mlrclear.errors import AnalysisCancelled, CollaboratorError, InvalidContextError, UnknownClaimError
from mlrclear.models import (
    BrandRules,
    ClaimType,
    ComplianceStatus,
    Impact,
    IssueCategory,
    IssueSeverity,
    Likelihood,
    PatternSeverity,
    RiskFactor,
    RiskLevel,
    ValidationContext,
)
from mlrclear.providers import BrandRuleProvider, GuidelineProvider
from mlrclear.providers.static import StaticBrandRuleProvider, StaticGuidelineProvider
from mlrclear.sections import ContentAsset
from mlrclear.serialize import result_to_dict

EXAMPLE = "This treatment is clinically proven and superior to all alternatives."
CTX = ValidationContext(brand_id="ofev")


class FailingRules(BrandRuleProvider):
    async def fetch_guidelines(self, brand_id):
        raise CollaboratorError("rules service unavailable")

    async def fetch_approved_indication(self, brand_id):
        raise CollaboratorError("rules service unavailable")


class SlowGuidelines(GuidelineProvider):
    async def fetch_brand_guidelines(self, brand_id):
        await asyncio.sleep(1)


def _engine(**kwargs):
    kwargs.setdefault("rule_provider", StaticBrandRuleProvider())
    kwargs.setdefault("guideline_provider", StaticGuidelineProvider())
    return ComplianceEngine(**kwargs)


def _forbidding(term):
    return _engine(rule_provider=StaticBrandRuleProvider(rules={"ofev": BrandRules(forbidden_terms=(term,))}))


# ============================================================
# EXAMPLES
# ============================================================

class TestExamples:
    def test_claims_and_risk(self):
        result = analyze_content(EXAMPLE, CTX)
        by_type = {c.claim_type: c for c in result.claims}
        assert by_type[ClaimType.CLINICAL].text == "clinically proven"
        assert by_type[ClaimType.CLINICAL].severity == PatternSeverity.WARNING
        assert by_type[ClaimType.COMPARATIVE].text == "superior"
        assert by_type[ClaimType.COMPARATIVE].severity == PatternSeverity.ERROR
        assert by_type[ClaimType.CLINICAL].compliance_status == ComplianceStatus.COMPLIANT
        assert by_type[ClaimType.COMPARATIVE].compliance_status == ComplianceStatus.WARNING
        assert result.risk_profile.overall_risk in (RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL)

    def test_summary_counts(self):
        result = analyze_content(EXAMPLE, CTX)
        assert (result.summary.valid, result.summary.warnings, result.summary.failures) == (0, 1, 5)

    def test_highlights_ranked(self):
        result = analyze_content(EXAMPLE, CTX)
        ids = [h.id for h in result.highlights]
        assert len(ids) == len(result.claims) + len(result.issues)
        assert ids[-2:] == ["claim_1_40", "claim_0_18"]

    def test_empty_content(self):
        for content in ("", "   \n"):
            result = analyze_content(content, CTX)
            assert result.claims == []
            assert result.issues == []
            assert (result.summary.valid, result.summary.warnings, result.summary.failures) == (0, 0, 0)
            assert result.risk_profile.overall_risk == RiskLevel.LOW
            assert result.brand_scores is None

    def test_disclaimer_without_safety(self):
        result = analyze_content(ContentAsset(disclaimer="z" * 250), CTX)
        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.category == IssueCategory.REGULATORY
        assert issue.severity == IssueSeverity.CRITICAL
        assert issue.id == "disclaimer_regulatory_0"

    def test_forbidden_term_is_violation(self):
        result = _forbidding("cure").analyze("may cure your condition", CTX)
        cure = [c for c in result.claims if c.text.lower() == "cure"]
        assert cure
        assert all(c.compliance_status == ComplianceStatus.VIOLATION for c in cure)
        assert result.risk_profile.overall_risk == RiskLevel.CRITICAL


# ============================================================
# CONTRACT
# ============================================================

class TestContract:
    def test_deterministic(self):
        first = result_to_dict(analyze_content(EXAMPLE, CTX))
        second = result_to_dict(analyze_content(EXAMPLE, CTX))
        assert first == second

    def test_offsets_index_document(self):
        asset = ContentAsset(headline="Hey there", body=EXAMPLE, cta_text="Best choice")
        result = analyze_content(asset, CTX)
        document = asset.document
        for claim in result.claims:
            assert document[claim.start_offset:claim.end_offset] == claim.text
        for issue in result.issues:
            assert 0 <= issue.start_offset <= issue.end_offset <= len(document)

    def test_dict_content(self):
        result = analyze_content({"primary_content": {"headline": "Hey", "ctaText": "Best deal"}}, CTX)
        assert [s.id for s in result.sections] == ["headline", "cta"]

    def test_claim_at_field_boundary(self):
        asset = ContentAsset(headline="The best", body="Treatment for adults.")
        result = analyze_content(asset, CTX)
        best = [c for c in result.claims if c.text.lower() == "best"]
        assert [c.id for c in best] == ["claim_5_4"]
        assert asset.document[best[0].start_offset:best[0].end_offset] == "best"

    def test_claims_never_span_fields(self):
        asset = ContentAsset(headline="Clinically", body=" proven relief.")
        result = analyze_content(asset, CTX)
        assert not [c for c in result.claims if c.text.lower() == "clinically proven"]

    def test_inputs_not_mutated(self):
        asset = ContentAsset(body=EXAMPLE)
        context = {"brandId": "ofev", "targetMarkets": ["EU"]}
        analyze_content(asset, context)
        assert asset == ContentAsset(body=EXAMPLE)
        assert context == {"brandId": "ofev", "targetMarkets": ["EU"]}

    def test_library_version_recorded(self):
        engine = _engine()
        assert engine.analyze(EXAMPLE, CTX).library_version == engine.library.version

    def test_extra_risk_factors(self):
        extra = RiskFactor(
            category="Timeline Risk",
            description="Launch in two weeks",
            impact=Impact.CRITICAL,
            likelihood=Likelihood.HIGH,
            mitigation="Escalate review",
        )
        result = analyze_content("Plain text.", CTX, extra_risk_factors=[extra])
        assert result.risk_profile.overall_risk == RiskLevel.CRITICAL
        assert "Escalate review" in result.risk_profile.mitigation_strategies

    def test_market_flags(self):
        context = ValidationContext(brand_id="ofev", target_markets=("EU",))
        result = analyze_content("FDA approved therapy.", context)
        assert [f.market for f in result.market_flags] == ["US", "EU"]

    def test_serialized_keys(self):
        data = result_to_dict(analyze_content(EXAMPLE, CTX))
        assert {"claims", "issues", "riskProfile", "summary", "highlights", "degraded"} <= set(data)
        assert data["claims"][0]["complianceStatus"] in ("warning", "violation")
        assert data["riskProfile"]["overallRisk"] == "medium"
        assert data["offsetUnit"] == "codepoint"


class TestContextValidation:
    def test_blank_brand_id(self):
        with pytest.raises(InvalidContextError):
            analyze_content(EXAMPLE, ValidationContext(brand_id="  "))

    def test_dict_without_brand_id(self):
        with pytest.raises(InvalidContextError):
            analyze_content(EXAMPLE, {"region": "US"})

    def test_wrong_type(self):
        with pytest.raises(InvalidContextError):
            validate_context("ofev")

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            validate_context({})

    def test_dict_accepted(self):
        context = validate_context({"brandId": "ofev", "assetType": "Email"})
        assert context.brand_id == "ofev"
        assert context.asset_type == "Email"


# ============================================================
# COLLABORATORS
# ============================================================

class TestDegradedMode:
    def test_failing_rule_provider(self):
        result = _engine(rule_provider=FailingRules()).analyze(EXAMPLE, CTX)
        assert result.degraded is True
        assert any("brand rules lookup failed" in r for r in result.degraded_reasons)
        assert any("approved indication lookup failed" in r for r in result.degraded_reasons)
        assert len(result.claims) >= 2

    def test_slow_guideline_provider(self):
        engine = _engine(guideline_provider=SlowGuidelines(), provider_timeout=0.05)
        result = engine.analyze(EXAMPLE, CTX)
        assert result.degraded is True
        assert any("timed out" in r for r in result.degraded_reasons)

    def test_healthy_providers_not_degraded(self):
        result = _engine().analyze(EXAMPLE, CTX)
        assert result.degraded is False
        assert result.degraded_reasons == []

    def test_inline_guidelines_override_provider(self):
        context = ValidationContext(
            brand_id="ofev", brand_guidelines={"prohibited_terms": ["treatment"]},
        )
        result = _engine().analyze(EXAMPLE, context)
        assert any(
            i.category == IssueCategory.MESSAGING and i.specific_text == "treatment"
            for i in result.issues
        )

    def test_approved_indication_used(self):
        rules = StaticBrandRuleProvider(indications={"ofev": "idiopathic pulmonary fibrosis"})
        result = _engine(rule_provider=rules).analyze("Indicated for adults.", CTX)
        indication = [c for c in result.claims if c.claim_type == ClaimType.INDICATION]
        assert indication
        assert "idiopathic pulmonary fibrosis" in indication[0].suggestion


class TestCancellation:
    def test_preset_event(self):
        event = threading.Event()
        event.set()
        with pytest.raises(AnalysisCancelled):
            analyze_content(EXAMPLE, CTX, cancel_event=event)

    def test_expired_deadline(self):
        with pytest.raises(AnalysisCancelled):
            _engine().analyze(EXAMPLE, CTX, timeout=-1)


class TestAsync:
    @pytest.mark.asyncio
    async def test_matches_sync(self):
        engine = _engine()
        result = await engine.analyze_async(EXAMPLE, CTX)
        direct = engine.run(EXAMPLE, CTX, await engine.resolve(CTX))
        assert result_to_dict(result) == result_to_dict(direct)

    @pytest.mark.asyncio
    async def test_invalid_context(self):
        with pytest.raises(InvalidContextError):
            await _engine().analyze_async(EXAMPLE, {"brandId": ""})


# ============================================================
# OVERRIDES
# ============================================================

class TestOverrides:
    def test_override_updates_summary(self):
        result = analyze_content(EXAMPLE, CTX)
        apply_overrides(result, {"claim_1_40": "Head-to-head data on file"}, CTX)
        claim = next(c for c in result.claims if c.id == "claim_1_40")
        assert claim.is_overridden is True
        assert claim.override_reason == "Head-to-head data on file"
        assert (result.summary.valid, result.summary.warnings, result.summary.failures) == (1, 1, 4)
        assert "claim_1_40" not in [h.id for h in result.highlights]

    def test_claim_order_unchanged(self):
        result = analyze_content(EXAMPLE, CTX)
        before = [c.id for c in result.claims]
        apply_overrides(result, {"claim_0_18": "Approved"}, CTX)
        assert [c.id for c in result.claims] == before

    def test_unknown_claim(self):
        result = analyze_content(EXAMPLE, CTX)
        with pytest.raises(UnknownClaimError) as exc:
            apply_overrides(result, {"claim_9_9": "x", "claim_0_18": "y"}, CTX)
        assert "claim_9_9" in str(exc.value)
        assert all(not c.is_overridden for c in result.claims)

    def test_overrides_lower_risk(self):
        result = _forbidding("cure").analyze("may cure your condition", CTX)
        overrides = {c.id: "Approved by MLR committee" for c in result.claims}
        apply_overrides(result, overrides, CTX)
        assert result.risk_profile.overall_risk == RiskLevel.LOW
