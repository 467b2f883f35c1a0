"""
styles.py
Marker styles for location records.

Resolution order:
  1. exact category code (CategoryStyle member)
  2. group fallback (bts-chronicle, mj-chronicle)
  3. DEFAULT

Icon names are Font Awesome 6 solid names; the map composer renders them as
"fa-solid fa-<icon>" inside each marker's DivIcon.
"""

from enum import Enum
from typing import NamedTuple, Optional


class Style(NamedTuple):
    color: str
    icon: str


class CategoryStyle(Enum):
    # Calamity
    WILDFIRE = Style("#ef4444", "fire")
    FLOOD = Style("#3b82f6", "droplet")
    FLOOD_MUDSLIDE = Style("#3b82f6", "droplet")
    WINTER_STORM = Style("#06b6d4", "snowflake")
    # History
    DYNASTY_FOUNDING = Style("#f59e0b", "clock-rotate-left")
    CAPITAL_RELOCATION = Style("#8b5cf6", "location-arrow")
    CULTURE_WRITING_SYSTEM = Style("#10b981", "globe")
    WAR_IMJIN = Style("#b91c1c", "crosshairs")
    COUP = Style("#4b5563", "shield-halved")
    FOREIGN_INVASION = Style("#b91c1c", "crosshairs")
    FOREIGN_INTERVENTION = Style("#b91c1c", "crosshairs")
    PEASANT_REVOLT = Style("#d97706", "triangle-exclamation")
    ASSASSINATION_PALACE = Style("#7c3aed", "triangle-exclamation")

    @classmethod
    def lookup(cls, code: Optional[str]) -> Optional["CategoryStyle"]:
        # __members__ keeps aliases (FLOOD_MUDSLIDE shares FLOOD's value)
        if not code:
            return None
        return cls.__members__.get(code)


class GroupStyle(Enum):
    BTS = Style("#a855f7", "music")
    MJ = Style("#ec4899", "music")


GROUP_FALLBACKS = {
    "bts-chronicle": GroupStyle.BTS,
    "mj-chronicle": GroupStyle.MJ,
}

DEFAULT_STYLE = Style("#6366f1", "location-dot")


def resolve_style(category_code: Optional[str] = None, group_id: Optional[str] = None) -> Style:
    """Return the marker style for a category code, falling back to the group, then the default."""
    member = CategoryStyle.lookup(category_code)
    if member is not None:
        return member.value
    fallback = GROUP_FALLBACKS.get(group_id) if group_id else None
    if fallback is not None:
        return fallback.value
    return DEFAULT_STYLE


def record_style(record, group_id: Optional[str] = None) -> Style:
    return resolve_style(getattr(record, "category_code", None), group_id)
