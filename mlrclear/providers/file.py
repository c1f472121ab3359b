"""
JSON File Provider — brand data from a directory.

One file per brand, <brand_id>.json:

    {
      "forbiddenTerms": ["cure"],
      "cautionTerms": ["breakthrough"],
      "approvedLanguage": ["..."],
      "approvedIndication": "indicated for the treatment of ...",
      "guidelines": {
        "messaging_framework": {"key_messages": [...], "prohibited_terms": [...]},
        "tone_of_voice": {"primary_tone": "professional"}
      },
      "vision": {"vision": "...", "unique_value_proposition": "..."}
    }

Implements both provider interfaces. Files are re-read on every call;
wrap with the caching providers to avoid repeated disk reads.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Union

from mlrclear.errors import CollaboratorError
from mlrclear.models import BrandGuidelines, BrandRules, BrandVision
from mlrclear.providers import BrandRuleProvider, GuidelineProvider

# brand ids become file names
_SAFE_BRAND_ID = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileProvider(BrandRuleProvider, GuidelineProvider):
    """Reads <directory>/<brand_id>.json for every lookup."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _load(self, brand_id: str) -> dict[str, Any]:
        if not _SAFE_BRAND_ID.match(brand_id) or brand_id.startswith("."):
            raise CollaboratorError(f"Invalid brand id for file lookup: {brand_id!r}")

        path = self.directory / f"{brand_id}.json"
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise CollaboratorError(f"No brand file for {brand_id!r} in {self.directory}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise CollaboratorError(f"Could not read brand file {path}: {e}") from e

        if not isinstance(data, dict):
            raise CollaboratorError(f"Brand file {path} must contain a JSON object")
        return data

    async def fetch_guidelines(self, brand_id: str) -> BrandRules:
        return BrandRules.from_dict(self._load(brand_id))

    async def fetch_approved_indication(self, brand_id: str) -> str:
        return self._load(brand_id).get("approvedIndication") or ""

    async def fetch_brand_guidelines(self, brand_id: str) -> BrandGuidelines:
        return BrandGuidelines.from_dict(self._load(brand_id).get("guidelines") or {})

    async def fetch_brand_vision(self, brand_id: str) -> BrandVision:
        vision = self._load(brand_id).get("vision") or {}
        return BrandVision(
            vision=vision.get("vision", ""),
            unique_value_proposition=vision.get("unique_value_proposition", ""),
        )
