"""
Job Workspace Manager
Per-job input/output directories under a shared base path
"""

import asyncio
import os
import re
import shutil
import time
from pathlib import Path
from typing import Dict, Optional

import psutil

from ..config import get_settings
from ..models.job import Workspace, new_job_id
from ..utils.exceptions import NotFoundError, UploadTooLargeError, WorkspaceError
from ..utils.logger import get_logger

logger = get_logger()

INPUT_AREA = "input"
OUTPUT_AREA = "output"

_JOB_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")
_CHUNK_SIZE = 1024 * 1024


def _safe_filename(filename: Optional[str]) -> str:
    if not filename:
        return "uploaded_video.mp4"
    name = Path(filename.replace("\\", "/")).name
    if name in ("", ".", ".."):
        return "uploaded_video.mp4"
    return name


def _write_chunk(output_file, chunk: bytes) -> None:
    output_file.write(chunk)


class WorkspaceManager:
    """
    Allocates and resolves job directories.

    Layout::

        <base>/input/<job_id>/<uploaded file>
        <base>/output/<job_id>/<height>p.m3u8, <height>p_000.ts, ...

    Every job writes only inside its own pair of directories, so jobs never
    need to coordinate with each other.
    """

    def __init__(self, base_dir: str, max_upload_size_mb: int = 2048):
        self.base_dir = Path(base_dir).resolve()
        self.input_root = self.base_dir / INPUT_AREA
        self.output_root = self.base_dir / OUTPUT_AREA
        self.max_upload_size_mb = max_upload_size_mb

    def create_workspace(self) -> Workspace:
        """Create a fresh, empty directory pair for a new job."""
        job_id = new_job_id()
        input_dir = self.input_root / job_id
        output_dir = self.output_root / job_id

        try:
            self.input_root.mkdir(parents=True, exist_ok=True)
            self.output_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WorkspaceError(f"Cannot prepare base directory: {exc}", path=str(self.base_dir)) from exc

        # exist_ok=False: an id collision must never merge two jobs
        try:
            input_dir.mkdir()
        except FileExistsError as exc:
            raise WorkspaceError(f"Workspace already exists for job {job_id}", path=str(input_dir)) from exc
        except OSError as exc:
            raise WorkspaceError(f"Cannot create input directory: {exc}", path=str(input_dir)) from exc

        try:
            output_dir.mkdir()
        except OSError as exc:
            input_dir.rmdir()
            if isinstance(exc, FileExistsError):
                raise WorkspaceError(
                    f"Workspace already exists for job {job_id}", path=str(output_dir)
                ) from exc
            raise WorkspaceError(f"Cannot create output directory: {exc}", path=str(output_dir)) from exc

        logger.debug(f"Workspace created: {job_id}")
        return Workspace(job_id=job_id, input_dir=input_dir, output_dir=output_dir)

    async def persist_upload(self, workspace: Workspace, filename: Optional[str], upload) -> Path:
        """
        Stream an uploaded file into the job's input directory.

        Args:
            workspace: Workspace returned by ``create_workspace``
            filename: Client supplied file name (reduced to a bare name)
            upload: Object exposing ``async read(size) -> bytes``

        Returns:
            Absolute path of the persisted file
        """
        file_path = workspace.input_dir / _safe_filename(filename)
        max_upload_bytes = self.max_upload_size_mb * 1024 * 1024
        bytes_written = 0
        loop = asyncio.get_running_loop()

        try:
            with open(file_path, "wb") as output_file:
                while True:
                    chunk = await upload.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    bytes_written += len(chunk)
                    if bytes_written > max_upload_bytes:
                        raise UploadTooLargeError(self.max_upload_size_mb)
                    await loop.run_in_executor(None, _write_chunk, output_file, chunk)
        except UploadTooLargeError:
            file_path.unlink(missing_ok=True)
            raise
        except ValueError as exc:
            # open() rejects names with an embedded NUL; nothing was created
            raise WorkspaceError(f"Invalid upload file name: {exc}", path=str(workspace.input_dir)) from exc
        except OSError as exc:
            file_path.unlink(missing_ok=True)
            raise WorkspaceError(f"Failed to persist upload: {exc}", path=str(file_path)) from exc

        logger.info(f"{workspace.job_id}: stored {file_path.name} ({bytes_written} bytes)")
        return file_path

    def resolve_artifact(self, job_id: str, file_name: str) -> Path:
        """
        Map an untrusted (job id, file name) pair to a file in the job's output directory.

        Raises:
            NotFoundError: for malformed ids, unknown jobs, missing files and
                any name that would leave the output directory
        """
        if not isinstance(job_id, str) or not _JOB_ID_PATTERN.match(job_id):
            raise NotFoundError()
        if (
            not file_name
            or file_name in (".", "..")
            or "/" in file_name
            or "\\" in file_name
            or "\x00" in file_name
        ):
            raise NotFoundError()

        output_dir = self.output_root / job_id
        if not output_dir.is_dir():
            raise NotFoundError()

        root = output_dir.resolve()
        candidate = (root / file_name).resolve()
        # Catches symlinks pointing elsewhere as well
        if candidate.parent != root or not candidate.is_file():
            raise NotFoundError()
        return candidate

    def purge_stale(self, max_age_hours: float) -> int:
        """
        Delete job directory pairs not modified within ``max_age_hours``.

        Returns:
            Number of job ids purged
        """
        cutoff = time.time() - max_age_hours * 3600
        latest: Dict[str, float] = {}

        for area in (self.input_root, self.output_root):
            if not area.is_dir():
                continue
            for entry in area.iterdir():
                if not entry.is_dir() or not _JOB_ID_PATTERN.match(entry.name):
                    continue
                mtime = entry.stat().st_mtime
                latest[entry.name] = max(mtime, latest.get(entry.name, mtime))

        # A job goes only when both of its directories are past the cut-off
        stale = [job_id for job_id, mtime in latest.items() if mtime < cutoff]
        for job_id in stale:
            for area in (self.input_root, self.output_root):
                shutil.rmtree(area / job_id, ignore_errors=True)

        if stale:
            logger.info(f"Purged {len(stale)} stale job workspaces older than {max_age_hours}h")
        return len(stale)

    def disk_free_gb(self) -> float:
        """Free space on the volume holding the base directory"""
        target = self.base_dir if self.base_dir.exists() else Path(os.getcwd())
        return psutil.disk_usage(str(target)).free / (1024 ** 3)


_workspace_manager: Optional[WorkspaceManager] = None


def get_workspace_manager() -> WorkspaceManager:
    """Return singleton workspace manager configured from settings."""
    global _workspace_manager
    if _workspace_manager is None:
        settings = get_settings()
        _workspace_manager = WorkspaceManager(
            settings.base_dir,
            max_upload_size_mb=settings.max_upload_size_mb,
        )
    return _workspace_manager
