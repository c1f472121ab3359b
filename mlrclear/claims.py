"""
Claim Detector

Scans raw content against the pattern library and produces offset-located
DetectedClaims with a confidence score, a brand compliance status, and a
remediation suggestion.

Each pattern is an independent, read-only scan. Scans may run on a
thread pool; every unit returns its own list and the lists are merged
once, in pattern-index order, so output order never depends on
scheduling.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Sequence

from mlrclear.config import settings
from mlrclear.errors import AnalysisCancelled
from mlrclear.models import (
    BrandRules,
    ClaimType,
    ComplianceStatus,
    DetectedClaim,
    PatternSeverity,
    ValidationContext,
)
from mlrclear.patterns import Pattern, PatternLibrary, default_library

logger = logging.getLogger(__name__)

INDICATION_PLACEHOLDER = "[Insert FDA-approved indication from prescribing information]"

SUGGESTIONS: dict[ClaimType, str] = {
    ClaimType.CLINICAL: (
        'Replace with: "In clinical studies, [product] demonstrated '
        '[specific outcome] [reference required]"'
    ),
    ClaimType.COMPARATIVE: (
        'Consider: "In Study X, [product] showed [specific results vs '
        'comparator] (p=X.XX) [reference]"'
    ),
    ClaimType.SAFETY: (
        'Add fair balance: "The most common adverse reactions (≥X%) '
        'include... [see full prescribing information]"'
    ),
    ClaimType.STATISTICAL: (
        'Specify: "In a study of N patients, [product] achieved X% [endpoint] '
        'vs Y% placebo (95% CI: X-Y, p<0.05) [ref]"'
    ),
    ClaimType.SUPERLATIVE: (
        'Remove the superlative or substantiate it: "[product] is '
        '[specific, supported attribute] [reference]"'
    ),
}

EMAIL_NOTE = (
    "NOTE: Email communications have strict claim requirements. "
    "Consider removing or significantly modifying this claim."
)

CancelCheck = Callable[[], None]


# ============================================================
# PER-MATCH SCORING
# ============================================================

def calculate_confidence(claim_text: str, pattern: Pattern) -> float:
    """
    Confidence that the match is a real regulated claim.

    Base 0.7; +0.2 for error-severity rules; +0.1 when the text carries
    a comparative ("superior", "better"); -0.2 for very short matches.
    Clamped to [0.3, 1.0].
    """
    confidence = 0.7
    if pattern.severity == PatternSeverity.ERROR:
        confidence += 0.2
    lowered = claim_text.lower()
    if "superior" in lowered or "better" in lowered:
        confidence += 0.1
    if len(claim_text) < 5:
        confidence -= 0.2
    return round(min(1.0, max(0.3, confidence)), 3)


def check_brand_compliance(
    claim_text: str, pattern: Pattern, brand_rules: BrandRules,
) -> ComplianceStatus:
    """Forbidden term > caution term > error-severity rule > compliant."""
    lowered = claim_text.lower()
    if any(term.lower() in lowered for term in brand_rules.forbidden_terms if term):
        return ComplianceStatus.VIOLATION
    if any(term.lower() in lowered for term in brand_rules.caution_terms if term):
        return ComplianceStatus.WARNING
    if pattern.severity == PatternSeverity.ERROR:
        return ComplianceStatus.WARNING
    return ComplianceStatus.COMPLIANT


def build_suggestion(
    pattern: Pattern,
    context: ValidationContext,
    approved_indication: Optional[str] = None,
) -> str:
    """Remediation text templated by claim type, with channel/market notes."""
    if pattern.claim_type == ClaimType.INDICATION:
        base = f'Use FDA-approved language: "{approved_indication or INDICATION_PLACEHOLDER}"'
    else:
        base = SUGGESTIONS.get(
            pattern.claim_type, "Review claim for substantiation and compliance",
        )

    if context.asset_type == "Email" and pattern.severity == PatternSeverity.ERROR:
        return f"{base}\n\n{EMAIL_NOTE}"

    if context.region != "US" and pattern.claim_type == ClaimType.INDICATION:
        return (
            f"{base}\n\nIMPORTANT: Verify indication wording matches local "
            f"regulatory approval for {context.region}"
        )

    return base


# ============================================================
# SCANNING
# ============================================================

def _scan_pattern(
    index: int,
    pattern: Pattern,
    content: str,
    context: ValidationContext,
    brand_rules: BrandRules,
    approved_indication: Optional[str],
    window: int,
    cancel_check: Optional[CancelCheck],
    offset: int = 0,
) -> list[DetectedClaim]:
    claims: list[DetectedClaim] = []
    suggestion = build_suggestion(pattern, context, approved_indication)

    for match in pattern.finditer(content):
        if cancel_check:
            cancel_check()
        start, end = match.start(), match.end()
        if start == end:
            continue  # zero-width match carries no claim text
        text = match.group(0)
        claims.append(DetectedClaim(
            id=f"claim_{index}_{offset + start}",
            text=text,
            pattern_index=index,
            claim_type=pattern.claim_type,
            severity=pattern.severity,
            reason=pattern.reason,
            required_evidence=pattern.required_evidence,
            category=pattern.category,
            start_offset=offset + start,
            end_offset=offset + end,
            surrounding_context=content[max(0, start - window):min(len(content), end + window)],
            suggestion=suggestion,
            confidence=calculate_confidence(text, pattern),
            compliance_status=check_brand_compliance(text, pattern, brand_rules),
        ))
    return claims


def scan_claims(
    content: str,
    context: ValidationContext,
    brand_rules: Optional[BrandRules] = None,
    library: Optional[PatternLibrary] = None,
    approved_indication: Optional[str] = None,
    workers: Optional[int] = None,
    cancel_check: Optional[CancelCheck] = None,
    context_window: Optional[int] = None,
    segments: Optional[Sequence[tuple[int, int]]] = None,
) -> tuple[list[DetectedClaim], list[int]]:
    """
    Scan content with every pattern in the library.

    segments are (start, end) ranges of content scanned independently,
    e.g. the fields of a structured asset, so a match never spans two
    fields and field edges count as word boundaries. Offsets stay
    absolute. Default: the whole content.

    Returns:
        (claims, failed_pattern_indices). Claims are in detection order:
        pattern index, then offset. A pattern whose scan raises is logged
        and listed in failed_pattern_indices; it never aborts the pass.

    Raises:
        AnalysisCancelled: cancel_check signalled cancellation.
    """
    if not content or not content.strip():
        return [], []

    library = library or default_library
    brand_rules = brand_rules or BrandRules()
    window = settings.CONTEXT_WINDOW if context_window is None else context_window
    workers = settings.SCAN_WORKERS if workers is None else workers
    patterns = library.list_patterns()
    spans = list(segments) if segments is not None else [(0, len(content))]

    def _safe_scan(index: int) -> Optional[list[DetectedClaim]]:
        if cancel_check:
            cancel_check()
        try:
            found: list[DetectedClaim] = []
            for start, end in spans:
                found.extend(_scan_pattern(
                    index, patterns[index], content[start:end], context, brand_rules,
                    approved_indication, window, cancel_check, offset=start,
                ))
            return found
        except AnalysisCancelled:
            raise
        except Exception as e:
            logger.warning(
                "Pattern scan failed — skipping pattern %d", index,
                extra={"pattern_index": index, "error": str(e),
                       "error_type": type(e).__name__},
                exc_info=True,
            )
            return None

    indices = range(len(patterns))
    if workers > 1 and len(patterns) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            per_pattern = list(pool.map(_safe_scan, indices))
    else:
        per_pattern = [_safe_scan(i) for i in indices]

    claims: list[DetectedClaim] = []
    failed: list[int] = []
    for index, found in zip(indices, per_pattern):
        if found is None:
            failed.append(index)
        else:
            claims.extend(found)
    return claims, failed


def detect_claims(
    content: str,
    context: ValidationContext,
    brand_rules: Optional[BrandRules] = None,
    library: Optional[PatternLibrary] = None,
    approved_indication: Optional[str] = None,
    **kwargs,
) -> list[DetectedClaim]:
    """Detected claims in detection order. See scan_claims()."""
    claims, _ = scan_claims(
        content, context, brand_rules, library, approved_indication, **kwargs,
    )
    return claims
