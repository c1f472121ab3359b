"""
Wire format — AnalysisResult to the camelCase JSON contract.

Offsets are Python str indices (Unicode code points), start inclusive,
end exclusive; the payload says so in "offsetUnit".
"""

from __future__ import annotations

from typing import Any

from mlrclear.models import (
    AnalysisResult,
    BrandScores,
    ContentIssue,
    ContentSection,
    DetectedClaim,
    Highlight,
    MarketFlags,
    RiskFactor,
    RiskProfile,
    Summary,
)


def claim_to_dict(claim: DetectedClaim) -> dict[str, Any]:
    return {
        "id": claim.id,
        "text": claim.text,
        "patternIndex": claim.pattern_index,
        "claimType": claim.claim_type.value,
        "severity": claim.severity.value,
        "reason": claim.reason,
        "requiredEvidence": list(claim.required_evidence),
        "category": claim.category,
        "startOffset": claim.start_offset,
        "endOffset": claim.end_offset,
        "surroundingContext": claim.surrounding_context,
        "suggestion": claim.suggestion,
        "confidence": claim.confidence,
        "complianceStatus": claim.compliance_status.value,
        "isOverridden": claim.is_overridden,
        "overrideReason": claim.override_reason,
    }


def section_to_dict(section: ContentSection) -> dict[str, Any]:
    return {
        "id": section.id,
        "sectionType": section.section_type.value,
        "text": section.text,
        "startOffset": section.start_offset,
        "endOffset": section.end_offset,
    }


def issue_to_dict(issue: ContentIssue) -> dict[str, Any]:
    return {
        "id": issue.id,
        "category": issue.category.value,
        "severity": issue.severity.value,
        "description": issue.description,
        "suggestion": issue.suggestion,
        "section": issue.section.id,
        "specificText": issue.specific_text,
        "suggestedReplacement": issue.suggested_replacement,
        "confidenceScore": issue.confidence_score,
        "regulatoryRisk": issue.regulatory_risk.value,
        "startOffset": issue.start_offset,
        "endOffset": issue.end_offset,
    }


def risk_factor_to_dict(factor: RiskFactor) -> dict[str, Any]:
    return {
        "category": factor.category,
        "description": factor.description,
        "impact": factor.impact.value,
        "likelihood": factor.likelihood.value,
        "mitigation": factor.mitigation,
    }


def risk_profile_to_dict(profile: RiskProfile) -> dict[str, Any]:
    return {
        "overallRisk": profile.overall_risk.value,
        "riskFactors": [risk_factor_to_dict(f) for f in profile.risk_factors],
        "mitigationStrategies": list(profile.mitigation_strategies),
        "estimatedApprovalProbability": profile.estimated_approval_probability,
        "expectedTurnaroundHours": profile.expected_turnaround_hours,
        "riskScore": profile.risk_score,
        "breakdown": profile.breakdown,
    }


def summary_to_dict(summary: Summary) -> dict[str, int]:
    return {"valid": summary.valid, "warnings": summary.warnings, "failures": summary.failures}


def highlight_to_dict(h: Highlight) -> dict[str, Any]:
    return {
        "id": h.id, "start": h.start, "end": h.end,
        "type": h.type, "severity": h.severity, "message": h.message,
    }


def brand_scores_to_dict(scores: BrandScores) -> dict[str, Any]:
    return {
        "overall": scores.overall,
        "messaging": scores.messaging,
        "tone": scores.tone,
        "regulatory": scores.regulatory,
        "status": scores.status.value,
        "strengths": list(scores.strengths),
        "recommendations": list(scores.recommendations),
    }


def market_flags_to_dict(flags: MarketFlags) -> dict[str, Any]:
    return {
        "market": flags.market,
        "culturalRisks": list(flags.cultural_risks),
        "regulatoryFlags": list(flags.regulatory_flags),
    }


def result_to_dict(result: AnalysisResult) -> dict[str, Any]:
    """The full JSON contract for one analysis."""
    return {
        "claims": [claim_to_dict(c) for c in result.claims],
        "issues": [issue_to_dict(i) for i in result.issues],
        "riskProfile": risk_profile_to_dict(result.risk_profile),
        "summary": summary_to_dict(result.summary),
        "highlights": [highlight_to_dict(h) for h in result.highlights],
        "sections": [section_to_dict(s) for s in result.sections],
        "brandScores": (
            brand_scores_to_dict(result.brand_scores) if result.brand_scores else None
        ),
        "marketFlags": [market_flags_to_dict(m) for m in result.market_flags],
        "degraded": result.degraded,
        "degradedReasons": list(result.degraded_reasons),
        "libraryVersion": result.library_version,
        "offsetUnit": result.offset_unit,
    }
