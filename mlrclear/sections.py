"""
Section Parser

Splits a structured content asset into ordered, non-overlapping
ContentSections with offsets into the asset's document string.

Fields are walked in declaration order (headline, body, CTA,
disclaimer), not visual layout order. An asset whose layout puts the
CTA above the body still gets body offsets before CTA offsets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from mlrclear.models import ContentSection, SectionType


# Declaration order. Offsets accumulate in exactly this order.
SECTION_FIELDS: tuple[tuple[str, SectionType], ...] = (
    ("headline", SectionType.HEADLINE),
    ("body", SectionType.BODY),
    ("cta_text", SectionType.CTA),
    ("disclaimer", SectionType.DISCLAIMER),
)


@dataclass(frozen=True)
class ContentAsset:
    """Structured promotional content."""
    headline: str = ""
    body: str = ""
    cta_text: str = ""
    disclaimer: str = ""

    @property
    def document(self) -> str:
        """The text every offset indexes into: non-empty fields, concatenated."""
        return "".join(getattr(self, name) or "" for name, _ in SECTION_FIELDS)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentAsset":
        """Accepts a primary_content mapping (cta_text or ctaText)."""
        content = data.get("primary_content", data)
        return cls(
            headline=content.get("headline") or "",
            body=content.get("body") or "",
            cta_text=content.get("cta_text") or content.get("ctaText") or "",
            disclaimer=content.get("disclaimer") or "",
        )


def as_asset(content: Union[str, ContentAsset, dict]) -> ContentAsset:
    """Raw text is a body-only asset."""
    if isinstance(content, ContentAsset):
        return content
    if isinstance(content, dict):
        return ContentAsset.from_dict(content)
    return ContentAsset(body=content or "")


def parse_sections(asset: ContentAsset) -> list[ContentSection]:
    """Emit one section per non-empty field, offsets in declaration order."""
    sections: list[ContentSection] = []
    offset = 0
    for name, section_type in SECTION_FIELDS:
        text = getattr(asset, name) or ""
        if not text:
            continue
        sections.append(ContentSection(
            id=section_type.value,
            section_type=section_type,
            text=text,
            start_offset=offset,
            end_offset=offset + len(text),
        ))
        offset += len(text)
    return sections
