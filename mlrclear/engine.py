"""
Engine — Analysis Orchestrator

Coordinates one analysis run:

  1. resolve:  fetch brand rules, approved indication, guidelines and
               vision from the collaborator providers, concurrently,
               each under a timeout. Any failure substitutes the
               documented default and records a degraded reason.
  2. run:      the synchronous, CPU-bound core (section parser, claim
               detector, section analyzer, risk aggregator, ranker,
               brand scorer, market flags). No I/O.

Entry points:
  - analyze_content(content, context):  sync, uses the default engine
  - ComplianceEngine.analyze_async():   for callers already in an event loop

Cancellation: a threading.Event and/or a timeout. Checked between
pattern matches and section checks; on cancellation AnalysisCancelled
is raised and partial results are discarded.

The engine holds no per-call state. Inputs are never mutated.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Iterable, Optional, Union

from mlrclear.analyzer import run_section_checks
from mlrclear.claims import INDICATION_PLACEHOLDER, scan_claims
from mlrclear.config import settings
from mlrclear.errors import AnalysisCancelled, InvalidContextError, UnknownClaimError
from mlrclear.markets import flag_markets
from mlrclear.models import (
    AnalysisResult,
    BrandGuidelines,
    BrandRules,
    BrandVision,
    RiskFactor,
    Summary,
    ValidationContext,
)
from mlrclear.patterns import PatternLibrary, default_library
from mlrclear.providers import BrandRuleProvider, GuidelineProvider
from mlrclear.providers.factory import get_providers
from mlrclear.ranker import build_highlights, rank_claims, rank_findings, summarize
from mlrclear.risk import assess_risk
from mlrclear.scorer import calculate_brand_scores
from mlrclear.sections import ContentAsset, as_asset, parse_sections

logger = logging.getLogger(__name__)

Content = Union[str, ContentAsset, dict]
ContextLike = Union[ValidationContext, dict]


@dataclass(frozen=True)
class ResolvedBrand:
    """Collaborator data for one brand, resolved before the core runs."""
    rules: BrandRules
    guidelines: BrandGuidelines
    vision: BrandVision
    approved_indication: str
    degraded_reasons: tuple[str, ...] = ()


def validate_context(context: ContextLike) -> ValidationContext:
    """Coerce a mapping to ValidationContext and require a brand_id."""
    if isinstance(context, dict):
        context = ValidationContext.from_dict(context)
    if not isinstance(context, ValidationContext):
        raise InvalidContextError(
            f"Expected ValidationContext or dict, got {type(context).__name__}"
        )
    if not isinstance(context.brand_id, str) or not context.brand_id.strip():
        raise InvalidContextError("ValidationContext.brand_id is required")
    return context


def _cancel_check(cancel_event: Optional[threading.Event], deadline: Optional[float]):
    def check() -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise AnalysisCancelled("Analysis cancelled")
        if deadline is not None and time.monotonic() > deadline:
            raise AnalysisCancelled("Analysis deadline exceeded")
    return check


class ComplianceEngine:
    """Runs the analysis core against one pattern library and one set of providers."""

    def __init__(
        self,
        library: Optional[PatternLibrary] = None,
        rule_provider: Optional[BrandRuleProvider] = None,
        guideline_provider: Optional[GuidelineProvider] = None,
        provider_timeout: Optional[float] = None,
        workers: Optional[int] = None,
    ):
        if rule_provider is None or guideline_provider is None:
            default_rules, default_guidelines = get_providers()
            rule_provider = rule_provider or default_rules
            guideline_provider = guideline_provider or default_guidelines

        self.library = library or default_library
        self.rule_provider = rule_provider
        self.guideline_provider = guideline_provider
        self.provider_timeout = (
            settings.PROVIDER_TIMEOUT if provider_timeout is None else provider_timeout
        )
        self.workers = settings.SCAN_WORKERS if workers is None else workers

    # ------------------------------------------------------------
    # Collaborator resolution
    # ------------------------------------------------------------

    async def _fetch(
        self, what: str, call: Awaitable[Any], default: Any, brand_id: str,
    ) -> tuple[Any, Optional[str]]:
        try:
            return await asyncio.wait_for(call, timeout=self.provider_timeout), None
        except asyncio.TimeoutError:
            reason = f"{what} lookup timed out after {self.provider_timeout}s"
        except Exception as e:
            reason = f"{what} lookup failed: {e}"
            logger.warning(
                f"Collaborator failure — using default {what}",
                extra={"brand_id": brand_id, "error": str(e), "error_type": type(e).__name__},
            )
        return default, reason

    async def resolve(self, context: ValidationContext) -> ResolvedBrand:
        """
        Fetch everything the core needs for this brand.

        Never raises for provider failures: each lookup falls back to its
        default (empty rules, placeholder indication, default guidelines)
        and adds a degraded reason.
        """
        brand_id = context.brand_id

        if context.brand_guidelines is not None:
            guidelines_call = _guidelines_from_context(context.brand_guidelines)
        else:
            guidelines_call = self.guideline_provider.fetch_brand_guidelines(brand_id)

        results = await asyncio.gather(
            self._fetch("brand rules", self.rule_provider.fetch_guidelines(brand_id),
                        BrandRules(), brand_id),
            self._fetch("approved indication",
                        self.rule_provider.fetch_approved_indication(brand_id),
                        "", brand_id),
            self._fetch("brand guidelines", guidelines_call, BrandGuidelines(), brand_id),
            self._fetch("brand vision", self.guideline_provider.fetch_brand_vision(brand_id),
                        BrandVision(), brand_id),
        )
        (rules, _), (indication, _), (guidelines, _), (vision, _) = results

        return ResolvedBrand(
            rules=rules,
            guidelines=guidelines,
            vision=vision,
            approved_indication=indication or "",
            degraded_reasons=tuple(reason for _, reason in results if reason),
        )

    # ------------------------------------------------------------
    # Core
    # ------------------------------------------------------------

    def run(
        self,
        content: Content,
        context: ValidationContext,
        resolved: ResolvedBrand,
        cancel_event: Optional[threading.Event] = None,
        deadline: Optional[float] = None,
        extra_risk_factors: Iterable[RiskFactor] = (),
    ) -> AnalysisResult:
        """
        The synchronous core. No I/O.

        Raises:
            AnalysisCancelled: cancel_event was set or deadline passed.
        """
        start = time.time()
        check = _cancel_check(cancel_event, deadline)
        check()

        asset = as_asset(content)
        document = asset.document
        extra_risk_factors = list(extra_risk_factors)
        degraded_reasons = list(resolved.degraded_reasons)

        if not document.strip():
            return AnalysisResult(
                claims=[],
                issues=[],
                risk_profile=assess_risk([], [], context, extra_risk_factors),
                summary=Summary(),
                highlights=[],
                degraded=bool(degraded_reasons),
                degraded_reasons=degraded_reasons,
                library_version=self.library.version,
            )

        sections = parse_sections(asset)
        claims, failed_patterns = scan_claims(
            document,
            context,
            brand_rules=resolved.rules,
            library=self.library,
            approved_indication=resolved.approved_indication or INDICATION_PLACEHOLDER,
            workers=self.workers,
            cancel_check=check,
            segments=[(s.start_offset, s.end_offset) for s in sections],
        )
        issues, failed_checks = run_section_checks(
            sections, resolved.guidelines, context, cancel_check=check,
        )
        check()

        degraded_reasons.extend(f"pattern {i} scan failed" for i in failed_patterns)
        degraded_reasons.extend(f"section check {name} failed" for name in failed_checks)

        risk_profile = assess_risk(claims, issues, context, extra_risk_factors)
        result = AnalysisResult(
            claims=rank_claims(claims),
            issues=issues,
            risk_profile=risk_profile,
            summary=summarize(claims, issues),
            highlights=build_highlights(rank_findings([*claims, *issues])),
            sections=sections,
            brand_scores=calculate_brand_scores(issues),
            market_flags=flag_markets(document, context),
            degraded=bool(degraded_reasons),
            degraded_reasons=degraded_reasons,
            library_version=self.library.version,
        )

        duration = int((time.time() - start) * 1000)
        logger.info(
            f"Analysis complete: risk={risk_profile.overall_risk.value}",
            extra={
                "brand_id": context.brand_id,
                "claims_count": len(claims),
                "issues_count": len(issues),
                "overall_risk": risk_profile.overall_risk.value,
                "library_version": self.library.version,
                "duration_ms": duration,
            },
        )
        return result

    # ------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------

    async def analyze_async(
        self,
        content: Content,
        context: ContextLike,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
        extra_risk_factors: Iterable[RiskFactor] = (),
    ) -> AnalysisResult:
        """
        Resolve collaborators, then run the core in a worker thread.

        Cancelling the awaiting task also stops the worker at its next
        cancellation check.
        """
        context = validate_context(context)
        deadline = time.monotonic() + timeout if timeout is not None else None
        event = cancel_event or threading.Event()

        resolved = await self.resolve(context)
        try:
            return await asyncio.to_thread(
                self.run, content, context, resolved, event, deadline, extra_risk_factors,
            )
        except asyncio.CancelledError:
            event.set()
            raise

    def analyze(
        self,
        content: Content,
        context: ContextLike,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
        extra_risk_factors: Iterable[RiskFactor] = (),
    ) -> AnalysisResult:
        """
        Synchronous entry point. Must not be called from a running event
        loop; use analyze_async there.

        Raises:
            InvalidContextError: missing or blank brand_id.
            AnalysisCancelled: cancelled or timed out.
        """
        context = validate_context(context)
        deadline = time.monotonic() + timeout if timeout is not None else None
        resolved = asyncio.run(self.resolve(context))
        return self.run(content, context, resolved, cancel_event, deadline, extra_risk_factors)


async def _guidelines_from_context(data: dict) -> BrandGuidelines:
    return BrandGuidelines.from_dict(data)


# Shared across the application
engine = ComplianceEngine()


def analyze_content(
    content: Content,
    context: ContextLike,
    cancel_event: Optional[threading.Event] = None,
    timeout: Optional[float] = None,
    extra_risk_factors: Iterable[RiskFactor] = (),
) -> AnalysisResult:
    """Analyze promotional content with the default engine. See ComplianceEngine.analyze()."""
    return engine.analyze(content, context, cancel_event, timeout, extra_risk_factors)


def apply_overrides(
    result: AnalysisResult,
    overrides: dict[str, str],
    context: ContextLike,
    extra_risk_factors: Iterable[RiskFactor] = (),
) -> AnalysisResult:
    """
    Record reviewer overrides (claim id -> reason) on a result's claims,
    then recompute what depends on them: summary, highlights and risk.

    Claim order, ids and issues are unchanged.

    Raises:
        UnknownClaimError: an override names a claim not in the result.
    """
    context = validate_context(context)
    by_id = {c.id: c for c in result.claims}
    unknown = [claim_id for claim_id in overrides if claim_id not in by_id]
    if unknown:
        raise UnknownClaimError(f"Unknown claim ids: {', '.join(sorted(unknown))}")

    for claim_id, reason in overrides.items():
        by_id[claim_id].override(reason)

    result.summary = summarize(result.claims, result.issues)
    result.highlights = build_highlights(rank_findings([*result.claims, *result.issues]))
    result.risk_profile = assess_risk(
        result.claims, result.issues, context, extra_risk_factors,
    )
    return result
