"""
Custom Exceptions for the streaming service
Structured error handling with recovery hints
"""

from typing import Optional, Dict, Any


class StreamingError(Exception):
    """Base exception for all streaming pipeline errors"""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        recoverable: bool = False,
        recovery_hint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.recovery_hint = recovery_hint
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to JSON-serializable dict"""
        return {
            "error": self.code,
            "message": self.message,
            "recoverable": self.recoverable,
            "recovery_hint": self.recovery_hint,
            "details": self.details
        }


# ============================================================================
# Workspace Errors
# ============================================================================

class WorkspaceError(StreamingError):
    """Job directories could not be provisioned"""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            code="WORKSPACE_ERROR",
            recoverable=False,
            recovery_hint="Check that the base directory exists, is writable and has free space.",
            details={"path": path, **kwargs}
        )


class UploadTooLargeError(StreamingError):
    """Uploaded file exceeds the configured limit"""

    def __init__(self, max_size_mb: int):
        super().__init__(
            message=f"File exceeds max upload size ({max_size_mb}MB)",
            code="UPLOAD_TOO_LARGE",
            recoverable=True,
            recovery_hint="Upload a smaller file or raise MAX_UPLOAD_SIZE_MB.",
            details={"max_size_mb": max_size_mb},
            status_code=413
        )


class NotFoundError(StreamingError):
    """Artifact lookup miss.

    Unknown job ids, unknown file names and traversal attempts all raise this
    with the same message so callers cannot tell them apart.
    """

    def __init__(self):
        super().__init__(
            message="Not found",
            code="NOT_FOUND",
            recoverable=False,
            status_code=404
        )


# ============================================================================
# Media Processing Errors
# ============================================================================

class ProbeError(StreamingError):
    """Source media could not be probed"""

    def __init__(self, message: str, path: Optional[str] = None, stderr: Optional[str] = None):
        super().__init__(
            message=message,
            code="PROBE_ERROR",
            recoverable=True,
            recovery_hint="Ensure the upload is a readable video file in a supported container.",
            details={"path": path, "stderr": stderr[-500:] if stderr else None},
            status_code=422
        )


class EncodeError(StreamingError):
    """FFmpeg exited abnormally or could not be started"""

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        output_tail: Optional[str] = None,
        last_progress: Optional[Any] = None,
        code: str = "ENCODE_ERROR",
        status_code: int = 500
    ):
        super().__init__(
            message=message,
            code=code,
            recoverable=True,
            recovery_hint="Ensure FFmpeg is installed and the source file isn't corrupted.",
            details={
                "returncode": returncode,
                "output_tail": output_tail[-500:] if output_tail else None,
                "last_percent": getattr(last_progress, "percent", None),
            },
            status_code=status_code
        )
        self.returncode = returncode
        self.last_progress = last_progress


class EncodeTimeoutError(EncodeError):
    """FFmpeg ran longer than the configured timeout"""

    def __init__(self, timeout_seconds: float, last_progress: Optional[Any] = None,
                 output_tail: Optional[str] = None):
        super().__init__(
            message=f"Encode timed out after {timeout_seconds:g}s",
            output_tail=output_tail,
            last_progress=last_progress,
            code="ENCODE_TIMEOUT",
            status_code=504
        )
        self.timeout_seconds = timeout_seconds


class EncodeCancelledError(EncodeError):
    """FFmpeg was terminated through the cancellation hook"""

    def __init__(self, job_id: str, last_progress: Optional[Any] = None):
        super().__init__(
            message=f"Encode was cancelled: {job_id}",
            last_progress=last_progress,
            code="ENCODE_CANCELLED"
        )
        self.job_id = job_id
