"""Models package initialization"""
from .job import Job, Workspace, new_job_id
from .media import MediaInfo, ProgressSample, CompletionReport
from .rendition import RenditionSpec, RENDITION_CATALOG, CATALOG_BY_HEIGHT, PROFILE_TIERS

__all__ = [
    "Job",
    "Workspace",
    "new_job_id",
    "MediaInfo",
    "ProgressSample",
    "CompletionReport",
    "RenditionSpec",
    "RENDITION_CATALOG",
    "CATALOG_BY_HEIGHT",
    "PROFILE_TIERS",
]
