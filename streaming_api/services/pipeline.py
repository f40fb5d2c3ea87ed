"""
Transcode Pipeline
Upload -> workspace -> probe -> ladder -> command -> encode, for one job
"""

import asyncio
import functools
from typing import Optional

from ..models.job import Job
from ..utils.logger import get_logger
from .command_builder import EncodeCommandBuilder
from .encode_supervisor import EncodeSupervisor, ProgressCallback, get_encode_supervisor
from .ladder_planner import plan
from .workspace import WorkspaceManager, get_workspace_manager

logger = get_logger()


class TranscodePipeline:
    """Runs every stage of a job in order; jobs share nothing but the base directory."""

    def __init__(
        self,
        workspaces: WorkspaceManager,
        supervisor: EncodeSupervisor,
        builder: Optional[EncodeCommandBuilder] = None
    ):
        self.workspaces = workspaces
        self.supervisor = supervisor
        self.builder = builder or EncodeCommandBuilder()

    async def submit(
        self,
        filename: Optional[str],
        upload,
        on_progress: Optional[ProgressCallback] = None
    ) -> Job:
        """
        Process one upload end to end. Returns only after the encode has finished.

        Args:
            filename: Client supplied file name
            upload: Object exposing ``async read(size) -> bytes``
            on_progress: Receives every ``ProgressSample``; runs on a worker thread

        Raises:
            WorkspaceError, UploadTooLargeError, ProbeError, EncodeError
        """
        workspace = self.workspaces.create_workspace()
        input_path = await self.workspaces.persist_upload(workspace, filename, upload)

        # Probe and encode block for the lifetime of a child process
        loop = asyncio.get_running_loop()
        media = await loop.run_in_executor(None, self.supervisor.probe, input_path)

        ladder = plan(media.height)
        job = Job(
            id=workspace.job_id,
            input_path=input_path,
            output_dir=workspace.output_dir,
            source_height=media.height,
            ladder=ladder,
        )
        logger.info(
            f"{job.id}: source height {media.height}, ladder {[spec.height for spec in ladder]}"
        )

        invocation = self.builder.build(input_path, workspace.output_dir, ladder)
        report = await loop.run_in_executor(
            None,
            functools.partial(
                self.supervisor.run,
                invocation,
                on_progress,
                media.duration,
                job.id,
            ),
        )

        logger.info(
            f"{job.id}: completed {len(ladder)} renditions in {report.wall_clock_duration:.2f}s"
        )
        return job


_pipeline: Optional[TranscodePipeline] = None


def get_pipeline() -> TranscodePipeline:
    """Return singleton pipeline wired from the configured services."""
    global _pipeline
    if _pipeline is None:
        _pipeline = TranscodePipeline(get_workspace_manager(), get_encode_supervisor())
    return _pipeline
