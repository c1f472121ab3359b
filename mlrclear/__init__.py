"""
MLRClear — Medical/Legal/Regulatory Compliance Analysis

Deterministic claim detection and risk scoring for pharmaceutical
promotional content, used to gate MLR review.

Public API:
  - analyze_content:   Analyze content with the default engine (sync)
  - ComplianceEngine:  Engine with its own pattern library and providers
  - apply_overrides:   Record reviewer overrides and recompute summary/risk
  - result_to_dict:    AnalysisResult to the camelCase JSON contract
  - default_library:   The active, versioned claim pattern library
  - to_utf16_offset:   Convert code-point offsets for UTF-16 consumers

Usage:
    from mlrclear import analyze_content, ValidationContext
    result = analyze_content("Clinically proven relief.", ValidationContext(brand_id="ofev"))
"""

__version__ = "1.0.0"

from mlrclear.errors import (
    MLRClearError,
    PatternLibraryError,
    InvalidContextError,
    CollaboratorError,
    AnalysisCancelled,
    UnknownClaimError,
)
from mlrclear.models import (
    AnalysisResult,
    BrandGuidelines,
    BrandRules,
    ContentIssue,
    DetectedClaim,
    RiskFactor,
    RiskProfile,
    ValidationContext,
)
from mlrclear.patterns import PatternLibrary, default_library, load_library
from mlrclear.sections import ContentAsset
from mlrclear.ranker import to_utf16_offset
from mlrclear.engine import ComplianceEngine, analyze_content, apply_overrides, engine
from mlrclear.serialize import result_to_dict

__all__ = [
    "MLRClearError",
    "PatternLibraryError",
    "InvalidContextError",
    "CollaboratorError",
    "AnalysisCancelled",
    "UnknownClaimError",
    "AnalysisResult",
    "BrandGuidelines",
    "BrandRules",
    "ContentIssue",
    "DetectedClaim",
    "RiskFactor",
    "RiskProfile",
    "ValidationContext",
    "PatternLibrary",
    "default_library",
    "load_library",
    "ContentAsset",
    "to_utf16_offset",
    "ComplianceEngine",
    "analyze_content",
    "apply_overrides",
    "engine",
    "result_to_dict",
]
