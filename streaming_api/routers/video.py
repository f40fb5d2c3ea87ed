"""
Video Router
Upload endpoint running the transcode pipeline, and HLS artifact streaming.
"""

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse

from ..services.artifact_server import ArtifactServer, get_artifact_server
from ..services.pipeline import TranscodePipeline, get_pipeline
from ..utils.logger import get_logger

router = APIRouter(prefix="/api/video", tags=["video"])
logger = get_logger()


@router.post("/upload", response_model=str)
async def upload_video(
    file: UploadFile = File(...),
    pipeline: TranscodePipeline = Depends(get_pipeline),
):
    """Transcode an uploaded video to HLS. Responds with the job id once encoding has finished."""
    logger.info(f"Upload received: {file.filename} ({file.content_type})")
    try:
        job = await pipeline.submit(file.filename, file)
    finally:
        await file.close()
    return job.id


@router.get("/streaming/{job_id}/{file_name:path}")
async def stream_artifact(
    job_id: str,
    file_name: str,
    server: ArtifactServer = Depends(get_artifact_server),
):
    """Serve a playlist or segment of a job. Nested paths never resolve."""
    artifact = server.serve(job_id, file_name)
    return FileResponse(str(artifact.path), media_type=artifact.media_type)
