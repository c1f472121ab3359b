"""
Ranker — presentation order, summary counts, highlights.

Findings (DetectedClaims and ContentIssues) share one ordering:

  1. severity tier, descending
       3: error / critical
       2: warning / high / medium
       1: info / low
  2. compliance rank, descending
       claims: violation=3, warning=2, compliant=1
       issues: regulatory risk critical/high=3, medium/low=2, none=1
  3. confidence, descending

The sort is stable: full ties keep detection order.
"""

from __future__ import annotations

from typing import Iterable, Union

from mlrclear.models import (
    ComplianceStatus,
    ContentIssue,
    DetectedClaim,
    Highlight,
    IssueSeverity,
    PatternSeverity,
    RegulatoryRisk,
    Summary,
)

Finding = Union[DetectedClaim, ContentIssue]

SEVERITY_TIER = {
    PatternSeverity.ERROR: 3,
    PatternSeverity.WARNING: 2,
    PatternSeverity.INFO: 1,
    IssueSeverity.CRITICAL: 3,
    IssueSeverity.HIGH: 2,
    IssueSeverity.MEDIUM: 2,
    IssueSeverity.LOW: 1,
}

COMPLIANCE_RANK = {
    ComplianceStatus.VIOLATION: 3,
    ComplianceStatus.WARNING: 2,
    ComplianceStatus.COMPLIANT: 1,
}

RISK_RANK = {
    RegulatoryRisk.CRITICAL: 3,
    RegulatoryRisk.HIGH: 3,
    RegulatoryRisk.MEDIUM: 2,
    RegulatoryRisk.LOW: 2,
    RegulatoryRisk.NONE: 1,
}


def severity_tier(finding: Finding) -> int:
    return SEVERITY_TIER[finding.severity]


def compliance_rank(finding: Finding) -> int:
    if isinstance(finding, DetectedClaim):
        return COMPLIANCE_RANK[finding.compliance_status]
    return RISK_RANK[finding.regulatory_risk]


def confidence_of(finding: Finding) -> float:
    if isinstance(finding, DetectedClaim):
        return finding.confidence
    return finding.confidence_score


def _rank_key(finding: Finding) -> tuple[int, int, float]:
    return (-severity_tier(finding), -compliance_rank(finding), -confidence_of(finding))


def rank_findings(findings: Iterable[Finding]) -> list[Finding]:
    """Stable sort: severity, then compliance risk, then confidence."""
    return sorted(findings, key=_rank_key)


def rank_claims(claims: Iterable[DetectedClaim]) -> list[DetectedClaim]:
    return sorted(claims, key=_rank_key)


def summarize(
    claims: Iterable[DetectedClaim],
    issues: Iterable[ContentIssue] = (),
) -> Summary:
    """
    Count findings by severity tier.

    Overridden claims are a reviewer's accepted decision: they count as
    valid regardless of severity.
    """
    valid = warnings = failures = 0
    for finding in list(claims) + list(issues):
        tier = 1 if getattr(finding, "is_overridden", False) else severity_tier(finding)
        if tier == 3:
            failures += 1
        elif tier == 2:
            warnings += 1
        else:
            valid += 1
    return Summary(valid=valid, warnings=warnings, failures=failures)


def build_highlights(findings: Iterable[Finding]) -> list[Highlight]:
    """One highlight per finding, in the given order. Overridden claims are skipped."""
    highlights: list[Highlight] = []
    for f in findings:
        if isinstance(f, DetectedClaim):
            if f.is_overridden:
                continue
            highlights.append(Highlight(
                id=f.id, start=f.start_offset, end=f.end_offset,
                type="claim", severity=f.severity.value, message=f.reason,
            ))
        else:
            highlights.append(Highlight(
                id=f.id, start=f.start_offset, end=f.end_offset,
                type=f.category.value, severity=f.severity.value, message=f.description,
            ))
    return highlights


def to_utf16_offset(text: str, index: int) -> int:
    """Convert a code-point index into text to a UTF-16 code-unit index."""
    prefix = text[:index]
    return len(prefix) + sum(1 for ch in prefix if ord(ch) > 0xFFFF)


def utf16_highlights(text: str, highlights: Iterable[Highlight]) -> list[Highlight]:
    """Highlights re-expressed in UTF-16 offsets (JavaScript string indexing)."""
    return [
        Highlight(
            id=h.id,
            start=to_utf16_offset(text, h.start),
            end=to_utf16_offset(text, h.end),
            type=h.type,
            severity=h.severity,
            message=h.message,
        )
        for h in highlights
    ]
