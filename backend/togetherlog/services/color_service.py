"""
TogetherLog Backend - Dominant Color Service
=============================================

What:  Supplies the dominant-color palette stored on a photo.
How:   Returns a fixed placeholder palette. Image bytes are never read:
       pixel analysis is out of scope for this service, and the palette
       only has to have the stored shape the Smart Page engine expects.

Palette format (ordered by descending percentage, sum <= 100):
    [{"hex": "#8B7355", "rgb": [139, 115, 85], "percentage": 35}, ...]
"""

import copy
from typing import Any, Dict, List

PLACEHOLDER_NOTE = "Placeholder colors. Real color extraction requires additional setup."

PLACEHOLDER_PALETTE: List[Dict[str, Any]] = [
    {"hex": "#8B7355", "rgb": [139, 115, 85], "percentage": 35},
    {"hex": "#A0826D", "rgb": [160, 130, 109], "percentage": 25},
    {"hex": "#6B5D52", "rgb": [107, 93, 82], "percentage": 20},
    {"hex": "#D4C4B0", "rgb": [212, 196, 176], "percentage": 12},
    {"hex": "#4A3F35", "rgb": [74, 63, 53], "percentage": 8},
]


class ColorService:

    def extract_dominant_colors(self) -> List[Dict[str, Any]]:
        """Palette for one photo; a fresh copy so callers may mutate it."""
        return copy.deepcopy(PLACEHOLDER_PALETTE)


color_service = ColorService()
