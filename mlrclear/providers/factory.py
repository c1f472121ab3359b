"""
Provider factory — returns the configured collaborator providers.
"""

from __future__ import annotations

from typing import Optional

from mlrclear.config import settings
from mlrclear.providers import BrandRuleProvider, GuidelineProvider


def get_providers(
    rules_dir: Optional[str] = None,
) -> tuple[BrandRuleProvider, GuidelineProvider]:
    """
    Factory — (brand rule provider, guideline provider).

    With a rules directory (argument or MLRCLEAR_BRAND_RULES_DIR), both
    are one cached JsonFileProvider. Without one, in-memory providers
    with no brand data.
    """
    rules_dir = rules_dir or settings.BRAND_RULES_DIR
    if rules_dir:
        from mlrclear.cache import CachingBrandRuleProvider, CachingGuidelineProvider, ProviderCache
        from mlrclear.providers.file import JsonFileProvider

        source = JsonFileProvider(rules_dir)
        cache = ProviderCache()
        return CachingBrandRuleProvider(source, cache), CachingGuidelineProvider(source, cache)

    from mlrclear.providers.static import StaticBrandRuleProvider, StaticGuidelineProvider
    return StaticBrandRuleProvider(), StaticGuidelineProvider()
