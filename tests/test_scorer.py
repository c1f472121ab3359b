"""
Tests for brand consistency scores and market flags.
"""

from mlrclear.analyzer import analyze_sections
from mlrclear.markets import EU_FDA_FLAG, JP_PMDA_FLAG, flag_markets
from mlrclear.models import BrandGuidelines, BrandStatus, ValidationContext
from mlrclear.scorer import calculate_brand_scores
from mlrclear.sections import ContentAsset, parse_sections


def _issues(asset, guidelines=BrandGuidelines()):
    return analyze_sections(parse_sections(asset), guidelines)


class TestBrandScores:
    def test_clean_content(self):
        scores = calculate_brand_scores([])
        assert (scores.overall, scores.messaging, scores.tone, scores.regulatory) == (100, 100, 100, 100)
        assert scores.status == BrandStatus.COMPLIANT
        assert "No critical regulatory issues detected" in scores.strengths
        assert scores.recommendations == []

    def test_critical_issue_is_non_compliant(self):
        scores = calculate_brand_scores(_issues(ContentAsset(body="Guaranteed results.")))
        assert scores.status == BrandStatus.NON_COMPLIANT
        assert scores.overall == 80
        assert scores.regulatory == 75
        assert "Address critical issues before proceeding" in scores.recommendations

    def test_tone_penalty(self):
        scores = calculate_brand_scores(_issues(ContentAsset(body="Hey, wow, cool.")))
        assert scores.tone == 70
        assert scores.overall == 100
        assert scores.status == BrandStatus.COMPLIANT

    def test_high_issues_need_review(self):
        guidelines = BrandGuidelines(prohibited_terms=("relief",))
        asset = ContentAsset(body="Relief, relief, relief, relief.")
        scores = calculate_brand_scores(_issues(asset, guidelines))
        assert scores.overall == 60
        assert scores.messaging == 40
        assert scores.status == BrandStatus.NEEDS_REVIEW
        assert "Review and incorporate key brand messages" in scores.recommendations

    def test_scores_floor_at_zero(self):
        scores = calculate_brand_scores(
            _issues(ContentAsset(body="Proven to work, guaranteed, best, #1, most effective."))
        )
        assert scores.overall == 0
        assert scores.regulatory == 0
        assert "Consider major content revision to align with brand guidelines" in scores.recommendations


class TestMarketFlags:
    def test_region_checked(self):
        flags = flag_markets("We guarantee results.", ValidationContext(brand_id="b"))
        assert [f.market for f in flags] == ["US"]
        assert len(flags[0].cultural_risks) == 1
        assert "guarantee" in flags[0].cultural_risks[0]

    def test_target_markets_deduplicated(self):
        ctx = ValidationContext(brand_id="b", region="US", target_markets=("eu", "US", "JP"))
        assert [f.market for f in flag_markets("Text", ctx)] == ["US", "EU", "JP"]

    def test_eu_fda_reference(self):
        flags = flag_markets("FDA approved therapy", ValidationContext(brand_id="b", region="EU"))
        assert flags[0].regulatory_flags == (EU_FDA_FLAG,)

    def test_jp_pmda_reminder(self):
        ctx = ValidationContext(brand_id="b", region="JP")
        assert flag_markets("Therapy", ctx)[0].regulatory_flags == (JP_PMDA_FLAG,)
        assert flag_markets("PMDA approved therapy", ctx)[0].regulatory_flags == ()

    def test_unknown_market_has_no_flags(self):
        flags = flag_markets("Anything", ValidationContext(brand_id="b", region="BR"))
        assert flags[0].cultural_risks == ()
        assert flags[0].regulatory_flags == ()

    def test_empty_content(self):
        assert flag_markets("  ", ValidationContext(brand_id="b")) == []
