"""
API Schemas — Request and Response Models

Pydantic models for the MLRClear API. Field names are snake_case in
Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class CamelModel(BaseModel):
    model_config = _CAMEL


# ============================================================
# REQUESTS
# ============================================================

class ContentAssetModel(CamelModel):
    headline: str = ""
    body: str = ""
    cta_text: str = ""
    disclaimer: str = ""


class ValidationContextModel(CamelModel):
    brand_id: str = Field(..., min_length=1, description="Brand the content belongs to.")
    therapeutic_area: str = ""
    asset_type: str = Field("", description='Channel, e.g. "Email", "Banner".')
    target_audience: str = Field("", description='e.g. "HCP", "Patient".')
    region: str = "US"
    brand_guidelines: Optional[dict] = None
    target_markets: list[str] = Field(default_factory=list)


class AnalyzeRequest(CamelModel):
    """POST /analyze request body."""
    content: Union[str, ContentAssetModel] = Field(
        ..., description="Raw text, or a structured asset (headline/body/ctaText/disclaimer).",
    )
    context: ValidationContextModel
    timeout: Optional[float] = Field(None, gt=0, le=300,
                                     description="Seconds before the analysis is cancelled.")

    model_config = {**_CAMEL, "json_schema_extra": {"examples": [
        {
            "content": "This treatment is clinically proven and superior to all alternatives.",
            "context": {"brandId": "ofev", "assetType": "Email", "region": "US"},
        },
    ]}}


class OverrideModel(CamelModel):
    claim_id: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1)


class SummaryRequest(AnalyzeRequest):
    """POST /summary request body: an analysis plus reviewer overrides."""
    overrides: list[OverrideModel] = Field(default_factory=list)


# ============================================================
# RESPONSES
# ============================================================

class ClaimResponse(CamelModel):
    id: str
    text: str
    pattern_index: int
    claim_type: str
    severity: str
    reason: str
    required_evidence: list[str]
    category: str
    start_offset: int
    end_offset: int
    surrounding_context: str
    suggestion: str
    confidence: float
    compliance_status: str
    is_overridden: bool = False
    override_reason: Optional[str] = None


class IssueResponse(CamelModel):
    id: str
    category: str
    severity: str
    description: str
    suggestion: str
    section: str
    specific_text: str
    suggested_replacement: str
    confidence_score: float
    regulatory_risk: str
    start_offset: int
    end_offset: int


class RiskFactorResponse(CamelModel):
    category: str
    description: str
    impact: str
    likelihood: str
    mitigation: str


class RiskProfileResponse(CamelModel):
    overall_risk: str
    risk_factors: list[RiskFactorResponse]
    mitigation_strategies: list[str]
    estimated_approval_probability: float
    expected_turnaround_hours: int
    risk_score: int = 0
    breakdown: dict = Field(default_factory=dict)


class SummaryResponse(CamelModel):
    valid: int
    warnings: int
    failures: int


class HighlightResponse(CamelModel):
    id: str
    start: int
    end: int
    type: str
    severity: str
    message: str


class SectionResponse(CamelModel):
    id: str
    section_type: str
    text: str
    start_offset: int
    end_offset: int


class BrandScoresResponse(CamelModel):
    overall: int
    messaging: int
    tone: int
    regulatory: int
    status: str
    strengths: list[str]
    recommendations: list[str]


class MarketFlagsResponse(CamelModel):
    market: str
    cultural_risks: list[str]
    regulatory_flags: list[str]


class AnalysisResponse(CamelModel):
    """POST /analyze and POST /summary response body."""
    claims: list[ClaimResponse]
    issues: list[IssueResponse]
    risk_profile: RiskProfileResponse
    summary: SummaryResponse
    highlights: list[HighlightResponse]
    sections: list[SectionResponse] = Field(default_factory=list)
    brand_scores: Optional[BrandScoresResponse] = None
    market_flags: list[MarketFlagsResponse] = Field(default_factory=list)
    degraded: bool = False
    degraded_reasons: list[str] = Field(default_factory=list)
    library_version: str
    offset_unit: str = "codepoint"


class PatternResponse(CamelModel):
    index: int
    regex: str
    claim_type: str
    severity: str
    reason: str
    required_evidence: list[str]
    category: str


class PatternsResponse(CamelModel):
    library_version: str
    total: int
    patterns: list[PatternResponse]


# ============================================================
# HEALTH
# ============================================================

class HealthResponse(CamelModel):
    status: str
    version: str
    library_version: str
    patterns: int
