"""
Shared data model for the analysis core.

Every entity here is created fresh per analyze_content() call. All are
value objects except DetectedClaim, whose override fields record a
human reviewer's decision after the fact.

Offsets are Python str indices (Unicode code points), start inclusive,
end exclusive. Use mlrclear.ranker.to_utf16_offset to convert for
consumers that index strings in UTF-16 code units.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


# ============================================================
# ENUMS
# ============================================================

class ClaimType(str, Enum):
    CLINICAL = "clinical"
    COMPARATIVE = "comparative"
    SAFETY = "safety"
    STATISTICAL = "statistical"
    INDICATION = "indication"
    SUPERLATIVE = "superlative"


class PatternSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ComplianceStatus(str, Enum):
    COMPLIANT = "compliant"
    WARNING = "warning"
    VIOLATION = "violation"


class SectionType(str, Enum):
    HEADLINE = "headline"
    BODY = "body"
    CTA = "cta"
    DISCLAIMER = "disclaimer"


class IssueCategory(str, Enum):
    MESSAGING = "messaging"
    REGULATORY = "regulatory"
    TONE = "tone"
    CLAIMS = "claims"


class IssueSeverity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RegulatoryRisk(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Impact(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Likelihood(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class BrandStatus(str, Enum):
    COMPLIANT = "compliant"
    NEEDS_REVIEW = "needs_review"
    NON_COMPLIANT = "non_compliant"


# ============================================================
# INPUTS
# ============================================================

@dataclass(frozen=True)
class ValidationContext:
    """Who the content is for. Supplied once per analysis call."""
    brand_id: str
    therapeutic_area: str = ""
    asset_type: str = ""         # e.g. "Email", "Banner", "Detail Aid"
    target_audience: str = ""    # e.g. "HCP", "Patient"
    region: str = "US"
    brand_guidelines: Optional[dict[str, Any]] = None
    target_markets: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ValidationContext":
        """Build from a camelCase or snake_case mapping."""
        def pick(*keys, default=""):
            for k in keys:
                if data.get(k) is not None:
                    return data[k]
            return default

        return cls(
            brand_id=pick("brand_id", "brandId"),
            therapeutic_area=pick("therapeutic_area", "therapeuticArea"),
            asset_type=pick("asset_type", "assetType"),
            target_audience=pick("target_audience", "targetAudience"),
            region=pick("region", default="US"),
            brand_guidelines=pick("brand_guidelines", "brandGuidelines", default=None),
            target_markets=tuple(pick("target_markets", "targetMarkets", default=())),
        )


@dataclass(frozen=True)
class BrandRules:
    """Brand compliance vocabulary from the BrandRuleProvider."""
    forbidden_terms: tuple[str, ...] = ()
    caution_terms: tuple[str, ...] = ()
    approved_language: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BrandRules":
        return cls(
            forbidden_terms=tuple(data.get("forbiddenTerms") or data.get("forbidden_terms") or ()),
            caution_terms=tuple(data.get("cautionTerms") or data.get("caution_terms") or ()),
            approved_language=tuple(
                data.get("approvedLanguage") or data.get("approved_language") or ()
            ),
        )


@dataclass(frozen=True)
class BrandGuidelines:
    """Messaging and tone guidelines from the GuidelineProvider."""
    key_messages: tuple[str, ...] = ()
    prohibited_terms: tuple[str, ...] = ()
    primary_tone: str = "professional"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BrandGuidelines":
        """Accepts the flat shape or the nested messaging_framework shape."""
        framework = data.get("messaging_framework") or {}
        tone = data.get("tone_of_voice") or {}
        return cls(
            key_messages=tuple(
                data.get("key_messages") or data.get("keyMessages")
                or framework.get("key_messages") or ()
            ),
            prohibited_terms=tuple(
                data.get("prohibited_terms") or data.get("prohibitedTerms")
                or framework.get("prohibited_terms") or ()
            ),
            primary_tone=(
                data.get("primary_tone") or data.get("primaryTone")
                or tone.get("primary_tone") or "professional"
            ),
        )


@dataclass(frozen=True)
class BrandVision:
    vision: str = ""
    unique_value_proposition: str = ""


# ============================================================
# FINDINGS
# ============================================================

@dataclass(frozen=True)
class ContentSection:
    """A semantic slice of the source document."""
    id: str
    section_type: SectionType
    text: str
    start_offset: int
    end_offset: int


@dataclass
class DetectedClaim:
    """A regulated phrase located in the content.

    Only is_overridden / override_reason may change after creation,
    and only through override().
    """
    id: str                      # "claim_{pattern_index}_{start_offset}"
    text: str
    pattern_index: int
    claim_type: ClaimType
    severity: PatternSeverity
    reason: str
    required_evidence: tuple[str, ...]
    category: str
    start_offset: int
    end_offset: int
    surrounding_context: str
    suggestion: str
    confidence: float
    compliance_status: ComplianceStatus
    is_overridden: bool = False
    override_reason: Optional[str] = None

    def override(self, reason: str) -> None:
        """Record a reviewer's decision to accept this claim as-is."""
        self.is_overridden = True
        self.override_reason = reason


@dataclass(frozen=True)
class ContentIssue:
    """A section-scoped brand or regulatory finding."""
    id: str
    category: IssueCategory
    severity: IssueSeverity
    description: str
    suggestion: str
    section: ContentSection
    specific_text: str
    suggested_replacement: str
    confidence_score: float
    regulatory_risk: RegulatoryRisk
    start_offset: int            # absolute; section range for absence rules
    end_offset: int


# ============================================================
# AGGREGATES
# ============================================================

@dataclass(frozen=True)
class RiskFactor:
    category: str
    description: str
    impact: Impact
    likelihood: Likelihood
    mitigation: str


@dataclass
class RiskProfile:
    overall_risk: RiskLevel
    risk_factors: list[RiskFactor]
    mitigation_strategies: list[str]
    estimated_approval_probability: float
    expected_turnaround_hours: int
    risk_score: int = 0
    breakdown: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Summary:
    valid: int = 0
    warnings: int = 0
    failures: int = 0


@dataclass(frozen=True)
class Highlight:
    id: str
    start: int
    end: int
    type: str                    # "claim" or the issue category
    severity: str
    message: str


@dataclass
class BrandScores:
    overall: int
    messaging: int
    tone: int
    regulatory: int
    status: BrandStatus
    strengths: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class MarketFlags:
    market: str
    cultural_risks: tuple[str, ...] = ()
    regulatory_flags: tuple[str, ...] = ()


@dataclass
class AnalysisResult:
    """Top-level output of analyze_content()."""
    claims: list[DetectedClaim]
    issues: list[ContentIssue]
    risk_profile: RiskProfile
    summary: Summary
    highlights: list[Highlight]
    sections: list[ContentSection] = field(default_factory=list)
    brand_scores: Optional[BrandScores] = None
    market_flags: list[MarketFlags] = field(default_factory=list)
    degraded: bool = False
    degraded_reasons: list[str] = field(default_factory=list)
    library_version: str = ""
    offset_unit: str = "codepoint"
