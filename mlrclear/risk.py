"""
Risk Aggregator

Turns heterogeneous findings into one explainable RiskProfile.
Separated from the detectors for single-responsibility.

Two steps:
  1. derive_risk_factors() names each exposure the findings and the
     validation context reveal (content, evidence, brand, channel, ...).
  2. aggregate() scores those factors with fixed weight tables.

Scoring:
  risk_score     = Σ impact_weight × likelihood_weight
                   impact: low=1 medium=2 high=3 critical=4
                   likelihood: low=1 medium=2 high=3
  overall_risk   = critical if any factor is critical impact,
                   else high if score > 15, medium if score > 8, else low
  approval       = clamp(0.75 − Σ impact_penalty, 0.10, 0.95)
                   penalty: low=0.02 medium=0.05 high=0.10 critical=0.20
  turnaround (h) = round(48 × (1 + 0.2 × n_factors) × (1.5 if critical else 1))

No statistics, no learned weights: every number in the profile traces
back to a named factor through the breakdown.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

from mlrclear.models import (
    ClaimType,
    ComplianceStatus,
    ContentIssue,
    DetectedClaim,
    Impact,
    IssueCategory,
    IssueSeverity,
    Likelihood,
    PatternSeverity,
    RiskFactor,
    RiskLevel,
    RiskProfile,
    ValidationContext,
)

IMPACT_WEIGHT = {Impact.LOW: 1, Impact.MEDIUM: 2, Impact.HIGH: 3, Impact.CRITICAL: 4}
LIKELIHOOD_WEIGHT = {Likelihood.LOW: 1, Likelihood.MEDIUM: 2, Likelihood.HIGH: 3}
IMPACT_PENALTY = {
    Impact.LOW: 0.02, Impact.MEDIUM: 0.05, Impact.HIGH: 0.10, Impact.CRITICAL: 0.20,
}

BASE_APPROVAL = 0.75
MIN_APPROVAL = 0.10
MAX_APPROVAL = 0.95
BASE_TURNAROUND_HOURS = 48
PER_FACTOR_COMPLEXITY = 0.2
CRITICAL_MULTIPLIER = 1.5
HIGH_THRESHOLD = 15
MEDIUM_THRESHOLD = 8

CONSUMER_AUDIENCES = ("patient", "consumer", "caregiver", "dtc")

MISSING_SAFETY_DESCRIPTION = "Missing required safety information"


def _likelihood(count: int) -> Likelihood:
    if count >= 3:
        return Likelihood.HIGH
    if count == 2:
        return Likelihood.MEDIUM
    return Likelihood.LOW


# ============================================================
# FACTOR DERIVATION
# ============================================================

def derive_risk_factors(
    claims: list[DetectedClaim],
    issues: list[ContentIssue],
    context: Optional[ValidationContext] = None,
) -> list[RiskFactor]:
    """
    Name the exposures present in the findings. Overridden claims are a
    reviewer's accepted risk and do not contribute.

    Factor order is fixed, so identical findings give identical profiles.
    """
    active = [c for c in claims if not c.is_overridden]
    factors: list[RiskFactor] = []

    def of_type(*types: ClaimType) -> list[DetectedClaim]:
        return [c for c in active if c.claim_type in types]

    comparative = of_type(ClaimType.COMPARATIVE, ClaimType.SUPERLATIVE)
    if comparative:
        factors.append(RiskFactor(
            category="Content Risk",
            description="Presence of comparative or superlative claims",
            impact=Impact.HIGH,
            likelihood=_likelihood(len(comparative)),
            mitigation="Provide robust clinical evidence or modify language",
        ))

    evidence = of_type(ClaimType.CLINICAL, ClaimType.STATISTICAL)
    if evidence:
        factors.append(RiskFactor(
            category="Evidence Risk",
            description="Efficacy or statistical claims require substantiation",
            impact=Impact.MEDIUM,
            likelihood=_likelihood(len(evidence)),
            mitigation="Attach peer-reviewed references for every efficacy and statistical claim",
        ))

    safety = of_type(ClaimType.SAFETY)
    if safety:
        factors.append(RiskFactor(
            category="Fair Balance Risk",
            description="Safety claims without proportionate risk information",
            impact=Impact.MEDIUM,
            likelihood=_likelihood(len(safety)),
            mitigation="Include appropriate risk information alongside benefit claims",
        ))

    indication = of_type(ClaimType.INDICATION)
    if indication:
        off_market = context is not None and context.region != "US"
        factors.append(RiskFactor(
            category="Regulatory Risk",
            description="Indication language may diverge from approved labeling",
            impact=Impact.HIGH,
            likelihood=Likelihood.HIGH if off_market else _likelihood(len(indication)),
            mitigation="Ensure all claims align with FDA-approved labeling",
        ))

    violations = [c for c in active if c.compliance_status == ComplianceStatus.VIOLATION]
    if violations:
        factors.append(RiskFactor(
            category="Brand Risk",
            description="Content uses terms the brand forbids",
            impact=Impact.CRITICAL,
            likelihood=Likelihood.HIGH,
            mitigation="Replace forbidden terms with approved brand language",
        ))

    missing_safety = [i for i in issues if i.description == MISSING_SAFETY_DESCRIPTION]
    if missing_safety:
        factors.append(RiskFactor(
            category="Safety Disclosure Risk",
            description="Required safety information is missing",
            impact=Impact.CRITICAL,
            likelihood=Likelihood.HIGH,
            mitigation="Add Important Safety Information and a prescribing information reference",
        ))

    unsubstantiated = [
        i for i in issues
        if i.severity == IssueSeverity.CRITICAL
        and i.category in (IssueCategory.REGULATORY, IssueCategory.CLAIMS)
        and i.description != MISSING_SAFETY_DESCRIPTION
    ]
    if unsubstantiated:
        factors.append(RiskFactor(
            category="Claims Risk",
            description="Unsubstantiated or outcome-specific medical claims",
            impact=Impact.HIGH,
            likelihood=_likelihood(len(unsubstantiated)),
            mitigation="Support each claim with clinical data or soften the language",
        ))

    messaging = [i for i in issues if i.category == IssueCategory.MESSAGING]
    if messaging:
        prohibited = any(i.severity == IssueSeverity.HIGH for i in messaging)
        factors.append(RiskFactor(
            category="Messaging Risk",
            description="Content diverges from the brand messaging framework",
            impact=Impact.MEDIUM if prohibited else Impact.LOW,
            likelihood=_likelihood(len(messaging)),
            mitigation="Review and incorporate key brand messages",
        ))

    tone = [i for i in issues if i.category == IssueCategory.TONE]
    if tone:
        factors.append(RiskFactor(
            category="Tone Risk",
            description="Informal language inconsistent with brand tone",
            impact=Impact.LOW,
            likelihood=_likelihood(len(tone)),
            mitigation="Use more professional language",
        ))

    if context is not None:
        factors.extend(_context_factors(active, context))

    return factors


def _context_factors(active: list[DetectedClaim], context: ValidationContext) -> list[RiskFactor]:
    factors: list[RiskFactor] = []

    if context.asset_type == "Email" and any(c.severity == PatternSeverity.ERROR for c in active):
        factors.append(RiskFactor(
            category="Channel Risk",
            description="High-risk claims in an email communication",
            impact=Impact.MEDIUM,
            likelihood=Likelihood.HIGH,
            mitigation="Remove or significantly modify high-risk claims for email",
        ))

    audience = (context.target_audience or "").lower()
    efficacy = [
        c for c in active
        if c.claim_type in (ClaimType.CLINICAL, ClaimType.COMPARATIVE, ClaimType.STATISTICAL)
    ]
    if efficacy and any(a in audience for a in CONSUMER_AUDIENCES):
        factors.append(RiskFactor(
            category="Audience Risk",
            description="Efficacy claims directed at a consumer audience",
            impact=Impact.MEDIUM,
            likelihood=Likelihood.MEDIUM,
            mitigation="Use consumer-appropriate language and fair balance for patient materials",
        ))

    if active and context.region and context.region != "US":
        factors.append(RiskFactor(
            category="Market Risk",
            description=f"Claims must be re-validated against {context.region} regulations",
            impact=Impact.LOW,
            likelihood=Likelihood.MEDIUM,
            mitigation=f"Confirm claim wording with local regulatory approval for {context.region}",
        ))

    return factors


# ============================================================
# AGGREGATION
# ============================================================

def calculate_risk_score(risk_factors: Iterable[RiskFactor]) -> int:
    return sum(IMPACT_WEIGHT[f.impact] * LIKELIHOOD_WEIGHT[f.likelihood] for f in risk_factors)


def calculate_overall_risk(risk_factors: list[RiskFactor]) -> RiskLevel:
    if any(f.impact == Impact.CRITICAL for f in risk_factors):
        return RiskLevel.CRITICAL
    score = calculate_risk_score(risk_factors)
    if score > HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if score > MEDIUM_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def estimate_approval_probability(risk_factors: list[RiskFactor]) -> float:
    penalty = sum(IMPACT_PENALTY[f.impact] for f in risk_factors)
    return round(max(MIN_APPROVAL, min(MAX_APPROVAL, BASE_APPROVAL - penalty)), 4)


def estimate_turnaround_hours(risk_factors: list[RiskFactor]) -> int:
    complexity = 1 + PER_FACTOR_COMPLEXITY * len(risk_factors)
    multiplier = (
        CRITICAL_MULTIPLIER if any(f.impact == Impact.CRITICAL for f in risk_factors) else 1.0
    )
    # half-up rounding
    return int(math.floor(BASE_TURNAROUND_HOURS * complexity * multiplier + 0.5))


def aggregate(
    claims: list[DetectedClaim],
    issues: list[ContentIssue],
    risk_factors: list[RiskFactor],
) -> RiskProfile:
    """
    Combine risk factors into a RiskProfile.

    Returns a profile whose breakdown shows the contribution of every
    factor, so reviewers can see why a score is what it is.
    """
    breakdown: dict = {
        "factors": [
            {
                "category": f.category,
                "impact": f.impact.value,
                "likelihood": f.likelihood.value,
                "score": IMPACT_WEIGHT[f.impact] * LIKELIHOOD_WEIGHT[f.likelihood],
                "approval_penalty": -IMPACT_PENALTY[f.impact],
            }
            for f in risk_factors
        ],
        "findings": {
            "claims": sum(1 for c in claims if not c.is_overridden),
            "overridden_claims": sum(1 for c in claims if c.is_overridden),
            "issues": len(issues),
        },
        "base_approval": BASE_APPROVAL,
        "base_turnaround_hours": BASE_TURNAROUND_HOURS,
    }

    mitigations: list[str] = []
    for f in risk_factors:
        if f.mitigation and f.mitigation not in mitigations:
            mitigations.append(f.mitigation)

    score = calculate_risk_score(risk_factors)
    breakdown["risk_score"] = score

    return RiskProfile(
        overall_risk=calculate_overall_risk(risk_factors),
        risk_factors=list(risk_factors),
        mitigation_strategies=mitigations,
        estimated_approval_probability=estimate_approval_probability(risk_factors),
        expected_turnaround_hours=estimate_turnaround_hours(risk_factors),
        risk_score=score,
        breakdown=breakdown,
    )


def assess_risk(
    claims: list[DetectedClaim],
    issues: list[ContentIssue],
    context: Optional[ValidationContext] = None,
    extra_factors: Iterable[RiskFactor] = (),
) -> RiskProfile:
    """Derive factors from the findings, append caller-supplied ones, aggregate."""
    factors = derive_risk_factors(claims, issues, context) + list(extra_factors)
    return aggregate(claims, issues, factors)
