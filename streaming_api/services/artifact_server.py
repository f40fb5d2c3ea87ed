"""
Manifest/Segment Server
Read-only lookup of HLS artifacts produced by a job
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .workspace import WorkspaceManager, get_workspace_manager

MEDIA_TYPES = {
    ".m3u8": "application/x-mpegURL",
    ".ts": "video/MP2T",
}
DEFAULT_MEDIA_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class Artifact:
    path: Path
    media_type: str


class ArtifactServer:
    """Resolves (job id, file name) to a servable file.

    There is no readiness signal: a playlist fetched while its job is still
    encoding is returned as it currently is on disk.
    """

    def __init__(self, workspaces: WorkspaceManager):
        self.workspaces = workspaces

    def serve(self, job_id: str, file_name: str) -> Artifact:
        path = self.workspaces.resolve_artifact(job_id, file_name)
        media_type = MEDIA_TYPES.get(path.suffix.lower(), DEFAULT_MEDIA_TYPE)
        return Artifact(path=path, media_type=media_type)


_artifact_server: Optional[ArtifactServer] = None


def get_artifact_server() -> ArtifactServer:
    """Return singleton artifact server."""
    global _artifact_server
    if _artifact_server is None:
        _artifact_server = ArtifactServer(get_workspace_manager())
    return _artifact_server
