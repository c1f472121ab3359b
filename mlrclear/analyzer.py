"""
Section Analyzer

Four independent checks run over every ContentSection:

  - messaging:  prohibited brand terms; missing key messages
  - regulatory: unsubstantiated claim vocabulary; missing safety
                disclosure; specific medical-outcome claims
  - tone:       casual/informal vocabulary under a professional tone
  - claims:     medical-outcome claims needing substantiation

Each check is a pure function (section, guidelines, context) ->
list[ContentIssue]. The analyzer output is section order, then check
order, with no de-duplication: a phrase flagged by two checks yields
two issues, each with its own remediation.

Vocabulary words match as whole words, case-insensitive.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from mlrclear.models import (
    BrandGuidelines,
    ContentIssue,
    ContentSection,
    IssueCategory,
    IssueSeverity,
    RegulatoryRisk,
    SectionType,
    ValidationContext,
)

logger = logging.getLogger(__name__)

Check = Callable[[ContentSection, BrandGuidelines, Optional[ValidationContext]], list[ContentIssue]]


# ============================================================
# VOCABULARY
# ============================================================

UNSUBSTANTIATED_TERMS: tuple[str, ...] = (
    "proven", "guaranteed", "best", "most effective", "clinically proven", "#1",
)

SAFETY_DISCLOSURE_PHRASES: tuple[str, ...] = (
    "important safety information", "contraindications", "side effects",
)

CASUAL_WORDS: tuple[str, ...] = ("hey", "wow", "awesome", "cool", "amazing")
INFORMAL_WORDS: tuple[str, ...] = ("gonna", "wanna", "kinda", "sorta")

MEDICAL_CLAIM_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"reduces? (?P<outcome>\w+) by (\d+)%", re.IGNORECASE),
    re.compile(r"improves? (?P<outcome>\w+) in (\d+) weeks?", re.IGNORECASE),
    re.compile(r"proven to", re.IGNORECASE),
    re.compile(r"clinically (demonstrated|shown|proven)", re.IGNORECASE),
)

TERM_REPLACEMENTS = {
    "cure": "treatment option",
    "guarantee": "designed to help",
    "best": "effective",
    "proven": "studied",
}

SOFTER_CLAIMS = {
    "proven": "studied in clinical trials",
    "guaranteed": "designed to help",
    "best": "an effective option",
    "most effective": "a proven treatment option",
    "clinically proven": "backed by clinical data",
}

PROFESSIONAL_ALTERNATIVES = {
    "hey": "hello",
    "wow": "notably",
    "awesome": "excellent",
    "cool": "beneficial",
    "gonna": "going to",
    "wanna": "want to",
    "kinda": "somewhat",
    "sorta": "rather",
}

SAFETY_REFERENCE = "Please see Important Safety Information."


def _whole_word(term: str) -> re.Pattern:
    # \b fails on terms that start or end with punctuation ("#1")
    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", re.IGNORECASE)


class _IssueFactory:
    """Numbers issues per (section, check) so ids are deterministic."""

    def __init__(self, section: ContentSection, check: str):
        self.section = section
        self.check = check
        self.issues: list[ContentIssue] = []

    def add(
        self,
        category: IssueCategory,
        severity: IssueSeverity,
        description: str,
        suggestion: str,
        specific_text: str,
        suggested_replacement: str,
        confidence: float,
        risk: RegulatoryRisk,
        span: Optional[tuple[int, int]] = None,
    ) -> None:
        base = self.section.start_offset
        start, end = (base + span[0], base + span[1]) if span else (
            self.section.start_offset, self.section.end_offset,
        )
        self.issues.append(ContentIssue(
            id=f"{self.section.id}_{self.check}_{len(self.issues)}",
            category=category,
            severity=severity,
            description=description,
            suggestion=suggestion,
            section=self.section,
            specific_text=specific_text,
            suggested_replacement=suggested_replacement,
            confidence_score=confidence,
            regulatory_risk=risk,
            start_offset=start,
            end_offset=end,
        ))


# ============================================================
# CHECKS
# ============================================================

def check_messaging(
    section: ContentSection,
    guidelines: BrandGuidelines,
    context: Optional[ValidationContext] = None,
) -> list[ContentIssue]:
    """Prohibited terms (every occurrence); absent key messages in headline/body."""
    out = _IssueFactory(section, "messaging")
    key_messages = guidelines.key_messages

    for term in guidelines.prohibited_terms:
        if not term:
            continue
        for match in _whole_word(term).finditer(section.text):
            out.add(
                IssueCategory.MESSAGING, IssueSeverity.HIGH,
                f'Prohibited term "{term}" found',
                f'Remove or replace "{term}" with approved terminology',
                match.group(0),
                TERM_REPLACEMENTS.get(term.lower())
                or (key_messages[0] if key_messages else "approved alternative"),
                0.95, RegulatoryRisk.MEDIUM,
                span=match.span(),
            )

    # Absence rule: fires on what is missing, not on what matched
    if section.section_type in (SectionType.HEADLINE, SectionType.BODY) and key_messages:
        lowered = section.text.lower()
        if not any(msg.lower() in lowered for msg in key_messages if msg):
            excerpt = section.text if len(section.text) <= 50 else section.text[:50] + "..."
            out.add(
                IssueCategory.MESSAGING, IssueSeverity.MEDIUM,
                f"No key brand messages found in {section.section_type.value}",
                f"Consider incorporating: {key_messages[0]}",
                excerpt,
                f"{section.text} {key_messages[0]}",
                0.8, RegulatoryRisk.NONE,
            )

    return out.issues


def _medical_claims(out: _IssueFactory, section: ContentSection, category: IssueCategory) -> None:
    for pattern in MEDICAL_CLAIM_PATTERNS:
        for match in pattern.finditer(section.text):
            outcome = match.groupdict().get("outcome") or "condition"
            out.add(
                category, IssueSeverity.CRITICAL,
                f'Medical claim requires substantiation: "{match.group(0)}"',
                "Add clinical reference or modify to be less specific",
                match.group(0),
                f"May help with {outcome} (see clinical data)",
                0.9, RegulatoryRisk.CRITICAL,
                span=match.span(),
            )


def check_regulatory(
    section: ContentSection,
    guidelines: BrandGuidelines,
    context: Optional[ValidationContext] = None,
) -> list[ContentIssue]:
    """Unsubstantiated vocabulary, missing safety disclosure, medical-outcome claims."""
    out = _IssueFactory(section, "regulatory")
    lowered = section.text.lower()

    # One issue per term present, located at its first occurrence
    for term in UNSUBSTANTIATED_TERMS:
        match = _whole_word(term).search(section.text)
        if match:
            out.add(
                IssueCategory.REGULATORY, IssueSeverity.CRITICAL,
                f'Unsubstantiated claim "{term}" requires evidence',
                "Add supporting data or modify claim to be more factual",
                match.group(0),
                SOFTER_CLAIMS.get(term, "clinically studied"),
                0.9, RegulatoryRisk.CRITICAL,
                span=match.span(),
            )

    needs_disclosure = (
        section.section_type == SectionType.DISCLAIMER
        or (section.section_type == SectionType.BODY and len(section.text) > 200)
    )
    if needs_disclosure and not any(p in lowered for p in SAFETY_DISCLOSURE_PHRASES):
        out.add(
            IssueCategory.REGULATORY, IssueSeverity.CRITICAL,
            "Missing required safety information",
            'Add "Please see Important Safety Information" reference',
            "Missing safety disclaimer",
            f"{section.text}\n\n{SAFETY_REFERENCE}",
            0.95, RegulatoryRisk.CRITICAL,
        )

    _medical_claims(out, section, IssueCategory.REGULATORY)
    return out.issues


def check_tone(
    section: ContentSection,
    guidelines: BrandGuidelines,
    context: Optional[ValidationContext] = None,
) -> list[ContentIssue]:
    """Casual vocabulary, only when the brand's primary tone is professional."""
    out = _IssueFactory(section, "tone")
    if (guidelines.primary_tone or "professional").lower() != "professional":
        return out.issues

    for word in CASUAL_WORDS + INFORMAL_WORDS:
        match = _whole_word(word).search(section.text)
        if match:
            out.add(
                IssueCategory.TONE, IssueSeverity.MEDIUM,
                f'Informal language "{word}" inconsistent with professional tone',
                "Use more professional language",
                match.group(0),
                PROFESSIONAL_ALTERNATIVES.get(word, word),
                0.7, RegulatoryRisk.NONE,
                span=match.span(),
            )
    return out.issues


def check_claims(
    section: ContentSection,
    guidelines: BrandGuidelines,
    context: Optional[ValidationContext] = None,
) -> list[ContentIssue]:
    """Medical-outcome claims, regardless of section type."""
    out = _IssueFactory(section, "claims")
    _medical_claims(out, section, IssueCategory.CLAIMS)
    return out.issues


CHECKS: tuple[tuple[str, Check], ...] = (
    ("messaging", check_messaging),
    ("regulatory", check_regulatory),
    ("tone", check_tone),
    ("claims", check_claims),
)


# ============================================================
# SECTION ANALYSIS
# ============================================================

def run_section_checks(
    sections: list[ContentSection],
    guidelines: Optional[BrandGuidelines] = None,
    context: Optional[ValidationContext] = None,
    cancel_check: Optional[Callable[[], None]] = None,
) -> tuple[list[ContentIssue], list[str]]:
    """
    Run every check over every section.

    Returns:
        (issues, failed_checks) where failed_checks names each
        "<section_id>:<check>" that raised. A failing check is logged and
        contributes no issues; the rest still run.
    """
    guidelines = guidelines or BrandGuidelines()
    issues: list[ContentIssue] = []
    failed: list[str] = []

    for section in sections:
        for name, check in CHECKS:
            if cancel_check:
                cancel_check()
            try:
                issues.extend(check(section, guidelines, context))
            except Exception as e:
                logger.warning(
                    "Section check %s failed on %s", name, section.id,
                    extra={"error": str(e), "error_type": type(e).__name__},
                    exc_info=True,
                )
                failed.append(f"{section.id}:{name}")

    return issues, failed


def analyze_sections(
    sections: list[ContentSection],
    guidelines: Optional[BrandGuidelines] = None,
    context: Optional[ValidationContext] = None,
) -> list[ContentIssue]:
    """Concatenated issues: section order, then check order."""
    issues, _ = run_section_checks(sections, guidelines, context)
    return issues
