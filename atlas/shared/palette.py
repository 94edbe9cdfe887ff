from dataclasses import dataclass, field
from typing import Dict, Optional

@dataclass
class AtlasPalette:
    """
    Defines the colours used to paint the map and the timeline.
    Swapping this object recolours the whole atlas.
    """
    # Map fill per region label (free text; unknown labels use 'default_color')
    region_colors: Dict[str, str] = field(default_factory=lambda: {
        "North America": "#2563EB",   # Royal blue
        "South America": "#9333EA",   # Vivid purple
        "Europe": "#059669",          # Emerald green
        "Asia": "#D97706",            # Amber
        "Africa": "#DB2777",          # Hot pink
        "Oceania": "#0891B2",         # Cyan
        "Europe/Asia": "#4F46E5",     # Indigo
    })

    # Timeline accent per party family (matches 'party_color' in event data)
    party_colors: Dict[str, str] = field(default_factory=lambda: {
        "Democratic": "#3B82F6",
        "Republican": "#EF4444",
        "Conservative": "#1E40AF",
        "Labour": "#DC2626",
        "Liberal": "#FB923C",
        "Single-Party": "#6B7280",
        "Various": "#6B7280",
    })

    default_color: str = "#CCCCCC"

    def region_color(self, region: Optional[str]) -> str:
        if not region:
            return self.default_color
        return self.region_colors.get(region, self.default_color)

    def party_color(self, party_key: Optional[str]) -> str:
        if not party_key:
            return self.default_color
        return self.party_colors.get(party_key, self.default_color)

# Pre-defined default palette instance
ATLAS_PALETTE = AtlasPalette()
