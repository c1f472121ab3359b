"""
Collaborator Providers — Abstract Interfaces

Brand rules and brand guidelines come from outside the analysis core
(a rules service, a CMS, a directory of JSON files). Every lookup goes
through one of these interfaces so backends can be swapped by changing
MLRCLEAR_BRAND_RULES_DIR or wiring a different provider into the engine.

Adapters raise CollaboratorError on failure. The engine always recovers
from it with defaults and marks the result degraded.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from mlrclear.models import BrandGuidelines, BrandRules, BrandVision


class BrandRuleProvider(ABC):
    """Abstract source of brand compliance vocabulary."""

    @abstractmethod
    async def fetch_guidelines(self, brand_id: str) -> BrandRules:
        """Forbidden, caution and approved terms for a brand."""
        ...

    @abstractmethod
    async def fetch_approved_indication(self, brand_id: str) -> str:
        """The brand's approved indication statement, verbatim."""
        ...


class GuidelineProvider(ABC):
    """Abstract source of messaging and tone guidelines."""

    @abstractmethod
    async def fetch_brand_guidelines(self, brand_id: str) -> BrandGuidelines:
        ...

    async def fetch_brand_vision(self, brand_id: str) -> BrandVision:
        """Optional. Backends without a vision statement return the default."""
        return BrandVision()


__all__ = ["BrandRuleProvider", "GuidelineProvider"]
