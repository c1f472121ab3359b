"""
Static Providers — in-memory brand data.

Used as the default when no rules directory is configured, and as the
test double for the engine.
"""

from __future__ import annotations

from typing import Optional

from mlrclear.models import BrandGuidelines, BrandRules, BrandVision
from mlrclear.providers import BrandRuleProvider, GuidelineProvider


class StaticBrandRuleProvider(BrandRuleProvider):
    """Brand rules held in a dict keyed by brand_id. Unknown brands get empty rules."""

    def __init__(
        self,
        rules: Optional[dict[str, BrandRules]] = None,
        indications: Optional[dict[str, str]] = None,
    ):
        self._rules = dict(rules or {})
        self._indications = dict(indications or {})

    async def fetch_guidelines(self, brand_id: str) -> BrandRules:
        return self._rules.get(brand_id, BrandRules())

    async def fetch_approved_indication(self, brand_id: str) -> str:
        return self._indications.get(brand_id, "")


class StaticGuidelineProvider(GuidelineProvider):
    """Guidelines held in a dict keyed by brand_id. Unknown brands get defaults."""

    def __init__(
        self,
        guidelines: Optional[dict[str, BrandGuidelines]] = None,
        visions: Optional[dict[str, BrandVision]] = None,
    ):
        self._guidelines = dict(guidelines or {})
        self._visions = dict(visions or {})

    async def fetch_brand_guidelines(self, brand_id: str) -> BrandGuidelines:
        return self._guidelines.get(brand_id, BrandGuidelines())

    async def fetch_brand_vision(self, brand_id: str) -> BrandVision:
        return self._visions.get(brand_id, BrandVision())
