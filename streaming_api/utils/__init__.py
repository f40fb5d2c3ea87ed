"""Utils package initialization"""
from .logger import setup_logger, get_logger
from .exceptions import (
    StreamingError,
    WorkspaceError,
    UploadTooLargeError,
    NotFoundError,
    ProbeError,
    EncodeError,
    EncodeTimeoutError,
    EncodeCancelledError
)
from .retry import retry_sync

__all__ = [
    "setup_logger",
    "get_logger",
    "StreamingError",
    "WorkspaceError",
    "UploadTooLargeError",
    "NotFoundError",
    "ProbeError",
    "EncodeError",
    "EncodeTimeoutError",
    "EncodeCancelledError",
    "retry_sync"
]
