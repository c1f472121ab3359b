"""
Pattern Library — Versioned Claim Rules

This module defines which promotional phrases are regulated claims.

The library:
  1. Holds the built-in claim rules (regex + regulatory metadata)
  2. Optionally loads a replacement rule set from a JSON file
  3. Compiles every rule once, at load, and refuses to start otherwise
  4. Exposes the compiled patterns read-only

There is no runtime mutation API. A changed rule set is a new library
version, never an in-place edit, so concurrent scans never observe a
half-updated library.

Compiled Python patterns carry no scan state: every finditer() call
creates its own iterator, so one compiled pattern is safely shared by
any number of concurrent scans.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional

from mlrclear.errors import PatternLibraryError
from mlrclear.models import ClaimType, PatternSeverity

LIBRARY_VERSION = "1.0.0"


@dataclass(frozen=True)
class Pattern:
    """A compiled claim rule. Identity is its index in the library."""
    matcher: re.Pattern
    claim_type: ClaimType
    severity: PatternSeverity
    reason: str
    required_evidence: tuple[str, ...]
    category: str

    def finditer(self, content: str) -> Iterator[re.Match]:
        """Fresh, independent scan over content."""
        return self.matcher.finditer(content)


# ============================================================
# BUILT-IN RULES
# ============================================================

DEFAULT_RULES: list[dict[str, Any]] = [
    # Clinical efficacy
    {
        "regex": (
            r"clinically proven|proven efficacy|demonstrated efficacy|"
            r"studies show|clinical studies demonstrate|clinical evidence shows"
        ),
        "claim_type": "clinical",
        "severity": "warning",
        "reason": "Clinical efficacy claims require Level 1 evidence with peer-reviewed citations",
        "required_evidence": ["RCT", "Meta-analysis", "Systematic review"],
        "category": "Efficacy",
    },
    # Comparative (high risk)
    {
        "regex": (
            r"\b(?:superior|better|outperforms|more effective than|"
            r"significantly better|greater efficacy than)\b"
        ),
        "claim_type": "comparative",
        "severity": "error",
        "reason": (
            "Comparative claims require head-to-head clinical data and "
            "regulatory approval for comparative language"
        ),
        "required_evidence": ["Head-to-head trials", "Network meta-analysis", "Regulatory approval"],
        "category": "Comparative",
    },
    # Safety
    {
        "regex": (
            r"well-tolerated|minimal side effects|safe and effective|"
            r"no significant adverse|excellent safety profile|favorable tolerability"
        ),
        "claim_type": "safety",
        "severity": "warning",
        "reason": "Safety claims must be balanced with complete safety information and fair balance",
        "required_evidence": ["Safety data", "Adverse event profile", "Fair balance statement"],
        "category": "Safety",
    },
    # Statistical
    {
        "regex": (
            r"\d+%\s*(?:improvement|reduction|increase|decrease|response rate)|"
            r"statistically significant|significant improvement|substantial benefit"
        ),
        "claim_type": "statistical",
        "severity": "warning",
        "reason": "Statistical claims require specific study references, confidence intervals, and p-values",
        "required_evidence": ["Primary endpoint data", "Statistical analysis", "Study reference"],
        "category": "Statistics",
    },
    # Indication
    {
        "regex": r"\b(?:first-line|second-line|indicated for|approved for|treatment of choice)\b",
        "claim_type": "indication",
        "severity": "error",
        "reason": "Indication claims must match FDA-approved labeling exactly",
        "required_evidence": ["FDA-approved labeling", "Prescribing information"],
        "category": "Indication",
    },
    # Superlative (high risk)
    {
        "regex": (
            r"(?<!\w)(?:best|only|most effective|leading|#1|first and only|"
            r"unique|revolutionary)(?!\w)"
        ),
        "claim_type": "superlative",
        "severity": "error",
        "reason": "Superlative claims require substantiation or should be avoided in promotional materials",
        "required_evidence": ["Market data", "Regulatory approval", "Comparative studies"],
        "category": "Superlative",
    },
    # Absolute outcome
    {
        "regex": r"\b(?:cures?|cured|heals?|eliminates?|eradicates?)\b",
        "claim_type": "clinical",
        "severity": "error",
        "reason": "Absolute outcome claims overstate efficacy and are not permitted in promotional materials",
        "required_evidence": ["FDA-approved labeling", "Long-term outcome data"],
        "category": "Outcome",
    },
]


_FLAG_LETTERS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}


def _parse_flags(value: Optional[str]) -> int:
    if value is None:
        return re.IGNORECASE
    flags = 0
    for letter in value:
        if letter not in _FLAG_LETTERS:
            raise ValueError(f"unknown regex flag {letter!r}")
        flags |= _FLAG_LETTERS[letter]
    return flags


def _compile_rule(index: int, rule: dict[str, Any]) -> Pattern:
    """Compile one rule definition. Raises PatternLibraryError on any defect."""
    try:
        matcher = re.compile(rule["regex"], _parse_flags(rule.get("flags")))
        claim_type = ClaimType(rule.get("claim_type") or rule.get("claimType"))
        severity = PatternSeverity(rule["severity"])
    except re.error as e:
        raise PatternLibraryError(
            f"Pattern {index} failed to compile: {e}", pattern_index=index,
        ) from e
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise PatternLibraryError(
            f"Pattern {index} is malformed: {e}", pattern_index=index,
        ) from e

    evidence = rule.get("required_evidence", rule.get("requiredEvidence", []))
    return Pattern(
        matcher=matcher,
        claim_type=claim_type,
        severity=severity,
        reason=rule.get("reason", ""),
        required_evidence=tuple(evidence),
        category=rule.get("category", claim_type.value.title()),
    )


# ============================================================
# THE LIBRARY
# ============================================================

class PatternLibrary:
    """
    Immutable, versioned collection of compiled claim patterns.

    Build through compile_rules() or load_library(). Both compile every
    rule up front, so a library object that exists is a library that
    works.
    """

    def __init__(self, patterns: tuple[Pattern, ...], version: str):
        self._patterns = tuple(patterns)
        self._version = version

    @property
    def version(self) -> str:
        return self._version

    def list_patterns(self) -> tuple[Pattern, ...]:
        return self._patterns

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self) -> Iterator[Pattern]:
        return iter(self._patterns)

    def describe(self) -> list[dict]:
        """Public view of the rules. Used by GET /patterns."""
        return [
            {
                "index": i,
                "regex": p.matcher.pattern,
                "claim_type": p.claim_type.value,
                "severity": p.severity.value,
                "reason": p.reason,
                "required_evidence": list(p.required_evidence),
                "category": p.category,
            }
            for i, p in enumerate(self._patterns)
        ]


def compile_rules(rules: list[dict[str, Any]], version: str) -> PatternLibrary:
    """Compile rule definitions into a library, failing on the first bad rule."""
    return PatternLibrary(
        tuple(_compile_rule(i, rule) for i, rule in enumerate(rules)),
        version=version,
    )


def load_library(path: Optional[str] = None) -> PatternLibrary:
    """
    Load the pattern library.

    Args:
        path: JSON file of the form {"version": "...", "patterns": [...]}.
            None or "" loads the built-in rules.

    Raises:
        PatternLibraryError: the file is unreadable, malformed, or any
            regex fails to compile.
    """
    if not path:
        return compile_rules(DEFAULT_RULES, LIBRARY_VERSION)

    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise PatternLibraryError(f"Cannot read pattern library {path}: {e}") from e

    if not isinstance(raw, dict) or not isinstance(raw.get("patterns"), list):
        raise PatternLibraryError(
            f"Pattern library {path} must be an object with a 'patterns' list"
        )
    return compile_rules(raw["patterns"], str(raw.get("version", "custom")))
