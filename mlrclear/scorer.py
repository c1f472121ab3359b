"""
Brand Consistency Scorer

Computes 0-100 brand scores from the section analyzer's issues.
Separated from risk.py: the risk profile gates review, these scores
grade how closely the copy follows the brand's guidelines.

Scoring (each floored at 0):
  overall     = 100 − 20 × critical − 10 × high
  messaging   = 100 − 15 × messaging issues
  regulatory  = 100 − 25 × (regulatory + claims issues)
  tone        = 100 − 10 × tone issues

Status:
  non_compliant  any critical issue
  needs_review   overall < 70
  compliant      otherwise
"""

from __future__ import annotations

from typing import Iterable

from mlrclear.models import BrandScores, BrandStatus, ContentIssue, IssueCategory, IssueSeverity

REVIEW_THRESHOLD = 70
REVISION_THRESHOLD = 60


def _floor(score: int) -> int:
    return max(0, score)


def calculate_brand_scores(issues: Iterable[ContentIssue]) -> BrandScores:
    issues = list(issues)

    def count(category: IssueCategory) -> int:
        return sum(1 for i in issues if i.category == category)

    critical = sum(1 for i in issues if i.severity == IssueSeverity.CRITICAL)
    high = sum(1 for i in issues if i.severity == IssueSeverity.HIGH)

    overall = _floor(100 - critical * 20 - high * 10)
    messaging = _floor(100 - count(IssueCategory.MESSAGING) * 15)
    regulatory = _floor(
        100 - (count(IssueCategory.REGULATORY) + count(IssueCategory.CLAIMS)) * 25
    )
    tone = _floor(100 - count(IssueCategory.TONE) * 10)

    if critical > 0:
        status = BrandStatus.NON_COMPLIANT
    elif overall < REVIEW_THRESHOLD:
        status = BrandStatus.NEEDS_REVIEW
    else:
        status = BrandStatus.COMPLIANT

    strengths: list[str] = []
    if critical == 0:
        strengths.append("No critical regulatory issues detected")
    if count(IssueCategory.MESSAGING) == 0:
        strengths.append("Aligned with brand messaging framework")
    if count(IssueCategory.TONE) == 0:
        strengths.append("Tone consistent with brand voice")

    recommendations: list[str] = []
    if critical > 0:
        recommendations.append("Address critical issues before proceeding")
    if count(IssueCategory.MESSAGING) > 0:
        recommendations.append("Review and incorporate key brand messages")
    if overall < REVISION_THRESHOLD:
        recommendations.append("Consider major content revision to align with brand guidelines")

    return BrandScores(
        overall=overall,
        messaging=messaging,
        tone=tone,
        regulatory=regulatory,
        status=status,
        strengths=strengths,
        recommendations=recommendations,
    )
