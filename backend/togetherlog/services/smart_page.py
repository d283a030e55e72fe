"""
TogetherLog Backend - Smart Page Rules Engine
==============================================

What:  Deterministic classifier mapping an entry's attributes to a page
       layout, a color theme and up to three decorative "sprinkle" icons.
How:   Three independent rule sets evaluated in order:
       1. Layout:  direct mapping from photo count
       2. Theme:   prioritized tag groups, then a dominant-color fallback
       3. Sprinkles: tag → icon table walked in tag order, plus a "sun" addendum
Who:   Called by WorkerService.compute_smart_page; persistence is the caller's job.

Contract:
    compute_smart_page() is a pure function: no I/O, no clock, no randomness.
    Identical inputs always yield identical outputs, and degenerate inputs
    (zero photos, unknown tags, missing colors) produce the defaults
    single_full / neutral / [] instead of raising.

Tag ordering:
    Theme selection only asks "is any tag of group N present?" so it is
    order-independent. Sprinkle selection keeps the first icons encountered,
    so it depends on the order the tag names were supplied in. Both rules
    read the same order-preserving, de-duplicated tuple of names.
"""

from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple


class LayoutType(str, Enum):
    single_full = "single_full"
    grid_2x2 = "grid_2x2"
    grid_2x3 = "grid_2x3"
    grid_3x2 = "grid_3x2"
    collage_4 = "collage_4"


class ColorTheme(str, Enum):
    warm_red = "warm_red"
    soft_rose = "soft_rose"
    earth_green = "earth_green"
    ocean_blue = "ocean_blue"
    deep_purple = "deep_purple"
    neutral = "neutral"
    warm_earth = "warm_earth"


class SprinkleIcon(str, Enum):
    heart = "heart"
    mountain = "mountain"
    tree = "tree"
    beach = "beach"
    wave = "wave"
    sun = "sun"
    star = "star"
    airplane = "airplane"
    camera = "camera"
    utensils = "utensils"
    gift = "gift"
    balloon = "balloon"


# ══════════════════════════════════════════════════════════════════════════
# Rule Tables
# ══════════════════════════════════════════════════════════════════════════

# Evaluated top to bottom; the first group with any tag present wins.
THEME_PRIORITY: Tuple[Tuple[frozenset, ColorTheme], ...] = (
    (frozenset({"Romantic Moments", "In Love", "Anniversary"}), ColorTheme.warm_red),
    (frozenset({"Nature & Hiking", "Adventure / Sports"}), ColorTheme.earth_green),
    (frozenset({"Lake / Beach"}), ColorTheme.ocean_blue),
    (frozenset({"Nightlife"}), ColorTheme.deep_purple),
    (frozenset({"Food & Restaurant", "Home & Everyday Life"}), ColorTheme.warm_earth),
    (frozenset({"Travel", "Roadtrip", "City & Sightseeing"}), ColorTheme.soft_rose),
)

TAG_SPRINKLES: Mapping[str, SprinkleIcon] = {
    "Romantic Moments": SprinkleIcon.heart,
    "In Love": SprinkleIcon.heart,
    "Anniversary": SprinkleIcon.heart,
    "Nature & Hiking": SprinkleIcon.mountain,
    "Lake / Beach": SprinkleIcon.beach,
    "Travel": SprinkleIcon.airplane,
    "Roadtrip": SprinkleIcon.airplane,
    "Food & Restaurant": SprinkleIcon.utensils,
    "Surprise / Gift": SprinkleIcon.gift,
    "Birthday": SprinkleIcon.balloon,
    "Happy": SprinkleIcon.star,
    "Adventure / Sports": SprinkleIcon.mountain,
}

MAX_TAG_SPRINKLES = 3

# Tags that add a sun icon after the tag loop, regardless of the cap
SUN_TAGS = frozenset({"Lake / Beach", "Nature & Hiking"})


# ══════════════════════════════════════════════════════════════════════════
# Inputs & Outputs
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DominantColor:
    """One entry of a photo's palette: hex string, RGB triple, area percentage."""

    hex: str
    rgb: Tuple[Any, ...]
    percentage: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DominantColor":
        rgb = data.get("rgb")
        return cls(
            hex=str(data.get("hex", "")),
            rgb=tuple(rgb) if isinstance(rgb, (list, tuple)) else (),
            percentage=data.get("percentage") or 0.0,
        )


@dataclass(frozen=True)
class PhotoColors:
    """The part of a photo the engine looks at: its ordered palette, if any."""

    dominant_colors: Optional[Tuple[DominantColor, ...]] = None

    @classmethod
    def from_raw(cls, raw: Optional[Sequence[Mapping[str, Any]]]) -> "PhotoColors":
        if not raw:
            return cls(dominant_colors=None)
        return cls(
            dominant_colors=tuple(
                DominantColor.from_dict(item) for item in raw if isinstance(item, Mapping)
            )
        )


@dataclass(frozen=True)
class SmartPage:
    layout_type: LayoutType
    color_theme: ColorTheme
    sprinkles: List[SprinkleIcon] = field(default_factory=list)

    def sprinkle_values(self) -> List[str]:
        return [icon.value for icon in self.sprinkles]


# ══════════════════════════════════════════════════════════════════════════
# Rules
# ══════════════════════════════════════════════════════════════════════════

def normalize_tag_names(tag_names: Iterable[str]) -> Tuple[str, ...]:
    """De-duplicate tag names, keeping the first occurrence's position."""
    return tuple(dict.fromkeys(tag_names))


def compute_layout_type(photo_count: int) -> LayoutType:
    """
    Layout by photo count.

        0, 1  → single_full (text-only / hero)
        2-4   → grid_2x2
        5+    → grid_3x2 (callers cap the displayed photos at 6)
    """
    if photo_count <= 1:
        return LayoutType.single_full
    if photo_count <= 4:
        return LayoutType.grid_2x2
    return LayoutType.grid_3x2


def _dominant_rgb(photos: Sequence[PhotoColors]) -> Optional[Tuple[Real, Real, Real]]:
    """RGB of the first photo's largest color, or None if unusable."""
    if not photos:
        return None
    colors = photos[0].dominant_colors
    if not colors:
        return None
    rgb = colors[0].rgb
    if len(rgb) != 3:
        return None
    if not all(isinstance(c, Real) and not isinstance(c, bool) for c in rgb):
        return None
    return rgb[0], rgb[1], rgb[2]


def compute_color_theme(tag_names: Sequence[str], photos: Sequence[PhotoColors]) -> ColorTheme:
    present = frozenset(tag_names)
    for group, theme in THEME_PRIORITY:
        if present & group:
            return theme

    rgb = _dominant_rgb(photos)
    if rgb is None:
        return ColorTheme.neutral

    r, g, b = rgb
    if r > g and r > b:
        return ColorTheme.warm_red
    if g > r and g > b:
        return ColorTheme.earth_green
    if b > r and b > g:
        return ColorTheme.ocean_blue
    # No strict maximum (ties)
    return ColorTheme.neutral


def compute_sprinkles(tag_names: Sequence[str]) -> List[SprinkleIcon]:
    sprinkles: List[SprinkleIcon] = []
    for name in tag_names:
        icon = TAG_SPRINKLES.get(name)
        if icon is not None and icon not in sprinkles:
            sprinkles.append(icon)
            if len(sprinkles) >= MAX_TAG_SPRINKLES:
                break

    # Not capped: may produce a fourth icon
    if SUN_TAGS.intersection(tag_names) and SprinkleIcon.sun not in sprinkles:
        sprinkles.append(SprinkleIcon.sun)

    return sprinkles


def compute_smart_page(
    photo_count: int,
    tag_names: Iterable[str],
    photos: Sequence[PhotoColors] = (),
) -> SmartPage:
    """
    Compute the Smart Page presentation for one entry.

    Args:
        photo_count: Number of photos attached to the entry (negative treated as 0)
        tag_names:   Tag names in entry order; duplicates are collapsed
        photos:      Photos in display order; only photos[0]'s palette is read

    Returns:
        SmartPage(layout_type, color_theme, sprinkles)
    """
    names = normalize_tag_names(tag_names)
    return SmartPage(
        layout_type=compute_layout_type(max(photo_count, 0)),
        color_theme=compute_color_theme(names, photos),
        sprinkles=compute_sprinkles(names),
    )
