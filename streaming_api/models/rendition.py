"""
Rendition Data Models
Static catalog of HLS quality levels
"""

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class RenditionSpec:
    """One quality level of the adaptive-bitrate ladder"""
    height: int
    target_width: int
    video_bitrate: str
    max_rate: str
    buf_size: str
    profile_tier: int

    @property
    def name(self) -> str:
        """File name stem shared by the playlist and its segments, e.g. ``720p``"""
        return f"{self.height}p"


# Ordered by ascending height
RENDITION_CATALOG: Tuple[RenditionSpec, ...] = (
    RenditionSpec(144, 256, "200k", "214k", "300k", 0),
    RenditionSpec(240, 426, "400k", "428k", "600k", 0),
    RenditionSpec(360, 640, "800k", "856k", "1200k", 0),
    RenditionSpec(480, 842, "1400k", "1498k", "2100k", 1),
    RenditionSpec(720, 1280, "2800k", "2996k", "4200k", 2),
    RenditionSpec(1080, 1920, "5000k", "5350k", "7500k", 3),
)

CATALOG_BY_HEIGHT: Dict[int, RenditionSpec] = {spec.height: spec for spec in RENDITION_CATALOG}

# H.264 (profile, level) per tier; the three lowest rungs share tier 0
PROFILE_TIERS: Dict[int, Tuple[str, str]] = {
    0: ("main", "3.0"),
    1: ("main", "3.1"),
    2: ("high", "4.0"),
    3: ("high", "4.1"),
}
