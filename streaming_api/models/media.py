"""
Media Data Models
Probe results and encode progress reporting
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MediaInfo:
    """Subset of ffprobe output the pipeline relies on"""
    duration: float = 0.0
    width: int = 0
    height: int = 0
    has_video: bool = False
    format_name: Optional[str] = None


@dataclass(frozen=True)
class ProgressSample:
    """A single progress observation from a running encode"""
    elapsed: float
    total: float

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        percent = int(round(round(self.elapsed / self.total, 2) * 100))
        return max(0, min(100, percent))


@dataclass(frozen=True)
class CompletionReport:
    """Outcome of a finished encode"""
    success: bool
    wall_clock_duration: float
    last_progress: Optional[ProgressSample] = None
