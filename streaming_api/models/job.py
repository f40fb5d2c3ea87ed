"""
Job Data Models
Represents a single upload-to-HLS transcode
"""

from pydantic import BaseModel, Field
from typing import List
from pathlib import Path
import uuid

from .rendition import RenditionSpec


def new_job_id() -> str:
    """128-bit random id rendered as 32 lowercase hex characters"""
    return uuid.uuid4().hex


class Workspace(BaseModel):
    """Isolated directory pair owned by one job"""
    job_id: str
    input_dir: Path
    output_dir: Path


class Job(BaseModel):
    """Transcode job; only lives for the duration of the upload request"""
    id: str = Field(default_factory=new_job_id)
    input_path: Path
    output_dir: Path
    source_height: int = 0
    ladder: List[RenditionSpec] = Field(default_factory=list)

    @property
    def manifests(self) -> List[str]:
        """Playlist file names this job produces"""
        return [f"{spec.name}.m3u8" for spec in self.ladder]
