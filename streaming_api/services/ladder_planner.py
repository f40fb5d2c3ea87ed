"""
Rendition Ladder Planner
Chooses which catalog renditions to produce for a source
"""

from typing import List

from ..models.rendition import RENDITION_CATALOG, RenditionSpec


def plan(source_height: int) -> List[RenditionSpec]:
    """
    Return every catalog rendition not taller than the source, ascending.

    A source height of 0 means the probe found no video stream; like any
    height below the smallest rung it yields an empty ladder.
    """
    return [spec for spec in RENDITION_CATALOG if spec.height <= source_height]
