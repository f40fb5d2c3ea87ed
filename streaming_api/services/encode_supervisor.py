"""
Encode Supervisor
Runs FFprobe/FFmpeg for a job, tracks progress and classifies the outcome
"""

import json
import re
import subprocess
import threading
import time
from collections import deque
from pathlib import Path
from typing import Any, Callable, Deque, Dict, Optional, Set

from ..config import get_settings
from ..models.media import CompletionReport, MediaInfo, ProgressSample
from ..utils.exceptions import (
    EncodeCancelledError,
    EncodeError,
    EncodeTimeoutError,
    ProbeError,
)
from ..utils.logger import get_logger
from ..utils.retry import retry_sync
from .command_builder import EncodeInvocation

logger = get_logger()

ProgressCallback = Callable[[ProgressSample], None]

# key=value lines written by "-progress pipe:1"
_PROGRESS_LINE = re.compile(r"^[a-z0-9_]+=\S*$")


def _parse_out_time(value: str) -> Optional[float]:
    """out_time_us and out_time_ms are both reported in microseconds"""
    try:
        return max(0, int(value)) / 1_000_000
    except ValueError:
        return None


def _probe_label(path) -> str:
    # Uploads live at <input>/<job_id>/<name>
    path = Path(path)
    return f"{path.parent.name}: probe {path.name}"


class EncodeSupervisor:
    """
    Owns every external process a job starts.

    Each job gets its own FFmpeg process; nothing is shared between jobs
    apart from the registry used by the cancellation hook.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        timeout_seconds: float = 0,
        probe_timeout_seconds: float = 30,
        probe_max_retries: int = 2
    ):
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path
        self.timeout_seconds = timeout_seconds
        self.probe_timeout_seconds = probe_timeout_seconds
        self.probe_max_retries = probe_max_retries
        self._active: Dict[str, subprocess.Popen] = {}
        self._cancelled: Set[str] = set()
        self._lock = threading.Lock()

    def check_available(self) -> bool:
        """Verify FFmpeg can be executed"""
        try:
            result = subprocess.run(
                [self.ffmpeg_path, "-version"],
                capture_output=True,
                text=True
            )
        except OSError:
            return False
        return result.returncode == 0

    # ------------------------------------------------------------------
    # Probe
    # ------------------------------------------------------------------

    def probe(self, path: Path) -> MediaInfo:
        """
        Read duration and video dimensions of a source file.

        Raises:
            ProbeError: if the file cannot be read as media at all. A file
                without a video stream is not an error; its height is 0.
        """
        run_ffprobe = retry_sync(
            max_retries=self.probe_max_retries,
            describe=_probe_label
        )(self._run_ffprobe)

        try:
            data = run_ffprobe(path)
        except subprocess.TimeoutExpired as exc:
            raise ProbeError(f"ffprobe timed out after {exc.timeout}s", path=str(path)) from exc

        info = self._parse_probe(data, path)
        logger.info(
            f"Probed {Path(path).name}: {info.width}x{info.height}, "
            f"{info.duration:.2f}s, format={info.format_name}"
        )
        return info

    def _run_ffprobe(self, path: Path) -> Dict[str, Any]:
        cmd = [
            self.ffprobe_path,
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.probe_timeout_seconds
            )
        except OSError as exc:
            raise ProbeError(f"Failed to run ffprobe: {exc}", path=str(path)) from exc

        if result.returncode != 0:
            raise ProbeError(
                f"ffprobe failed with exit code {result.returncode}",
                path=str(path),
                stderr=result.stderr
            )
        try:
            return json.loads(result.stdout or "{}")
        except json.JSONDecodeError as exc:
            raise ProbeError("ffprobe returned invalid JSON", path=str(path), stderr=result.stderr) from exc

    @staticmethod
    def _parse_probe(data: Dict[str, Any], path: Path) -> MediaInfo:
        fmt = data.get("format")
        if not fmt:
            raise ProbeError("No media container detected", path=str(path))

        try:
            duration = float(fmt.get("duration") or 0)
        except (TypeError, ValueError):
            duration = 0.0

        video = next(
            (
                stream for stream in data.get("streams", [])
                if stream.get("codec_type") == "video"
                and not stream.get("disposition", {}).get("attached_pic")
            ),
            None
        )
        if video is None:
            return MediaInfo(duration=duration, format_name=fmt.get("format_name"))

        return MediaInfo(
            duration=duration,
            width=int(video.get("width") or 0),
            height=int(video.get("height") or 0),
            has_video=True,
            format_name=fmt.get("format_name")
        )

    # ------------------------------------------------------------------
    # Encode
    # ------------------------------------------------------------------

    def run(
        self,
        invocation: EncodeInvocation,
        on_progress: Optional[ProgressCallback] = None,
        total_duration: float = 0.0,
        job_id: Optional[str] = None
    ) -> CompletionReport:
        """
        Run FFmpeg to completion. Blocks for the whole encode.

        Args:
            invocation: Arguments from ``EncodeCommandBuilder.build``
            on_progress: Called on this thread for every progress sample
            total_duration: Source duration in seconds; 0 suppresses samples
            job_id: Key for logging and ``cancel``

        Raises:
            EncodeError: non-zero exit or FFmpeg could not be started
            EncodeTimeoutError: the configured timeout elapsed
            EncodeCancelledError: ``cancel`` was called for this job
        """
        job_id = job_id or invocation.output_dir.name
        started = time.monotonic()

        if not invocation.ladder:
            logger.info(f"{job_id}: empty ladder, nothing to encode")
            return CompletionReport(success=True, wall_clock_duration=0.0)

        logger.info(f"{job_id}: ffmpeg {invocation}")

        try:
            process = subprocess.Popen(
                invocation.command(self.ffmpeg_path),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                # Merged so a single reader drains everything FFmpeg writes
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                bufsize=1
            )
        except OSError as exc:
            raise EncodeError(f"Failed to start FFmpeg: {exc}") from exc

        with self._lock:
            self._active[job_id] = process

        timed_out = threading.Event()
        timer: Optional[threading.Timer] = None
        if self.timeout_seconds and self.timeout_seconds > 0:
            def _kill_on_timeout():
                timed_out.set()
                process.kill()

            timer = threading.Timer(self.timeout_seconds, _kill_on_timeout)
            timer.daemon = True
            timer.start()

        output_tail: Deque[str] = deque(maxlen=200)
        last_sample: Optional[ProgressSample] = None
        elapsed = 0.0

        try:
            for line in process.stdout:
                line = line.strip()
                if not line:
                    continue
                if not _PROGRESS_LINE.match(line):
                    output_tail.append(line)
                    continue

                key, _, value = line.partition("=")
                if key in ("out_time_us", "out_time_ms"):
                    parsed = _parse_out_time(value)
                    if parsed is not None:
                        elapsed = parsed
                elif key == "progress" and total_duration > 0:
                    last_sample = ProgressSample(elapsed=elapsed, total=total_duration)
                    logger.info(
                        f"{job_id}: [{elapsed:.2f}s / {total_duration:.2f}s] {last_sample.percent}%"
                    )
                    if on_progress:
                        on_progress(last_sample)

            process.wait()
        except BaseException:
            process.kill()
            process.wait()
            raise
        finally:
            if timer:
                timer.cancel()
            with self._lock:
                self._active.pop(job_id, None)
                cancelled = job_id in self._cancelled
                self._cancelled.discard(job_id)

        tail_text = "\n".join(output_tail)

        if cancelled and process.returncode != 0:
            logger.warning(f"{job_id}: encode cancelled")
            raise EncodeCancelledError(job_id, last_progress=last_sample)

        if timed_out.is_set() and process.returncode != 0:
            logger.error(f"{job_id}: encode timed out after {self.timeout_seconds}s")
            raise EncodeTimeoutError(self.timeout_seconds, last_progress=last_sample, output_tail=tail_text)

        if process.returncode != 0:
            logger.error(f"{job_id}: FFmpeg failed (code {process.returncode}): {tail_text[-1000:]}")
            raise EncodeError(
                f"FFmpeg exited with code {process.returncode}",
                returncode=process.returncode,
                output_tail=tail_text,
                last_progress=last_sample
            )

        wall_clock = time.monotonic() - started
        logger.info(
            f"{job_id}: [{total_duration:.2f}s / {total_duration:.2f}s] 100% in {wall_clock:.2f}s"
        )
        return CompletionReport(
            success=True,
            wall_clock_duration=wall_clock,
            last_progress=last_sample
        )

    # ------------------------------------------------------------------
    # Cancellation hook
    # ------------------------------------------------------------------

    def cancel(self, job_id: str) -> bool:
        """Terminate the FFmpeg process of a running job. Returns False if none is running."""
        with self._lock:
            process = self._active.get(job_id)
            if process is None:
                return False
            self._cancelled.add(job_id)
        process.terminate()
        return True

    def cancel_all(self) -> int:
        """Terminate every running encode; used at shutdown"""
        with self._lock:
            job_ids = list(self._active)
        return sum(1 for job_id in job_ids if self.cancel(job_id))

    @property
    def active_jobs(self) -> int:
        with self._lock:
            return len(self._active)


_encode_supervisor: Optional[EncodeSupervisor] = None


def get_encode_supervisor() -> EncodeSupervisor:
    """Return singleton supervisor configured from settings."""
    global _encode_supervisor
    if _encode_supervisor is None:
        settings = get_settings()
        _encode_supervisor = EncodeSupervisor(
            ffmpeg_path=settings.ffmpeg_path,
            ffprobe_path=settings.ffprobe_path,
            timeout_seconds=settings.encode_timeout_seconds,
            probe_timeout_seconds=settings.probe_timeout_seconds,
            probe_max_retries=settings.probe_max_retries,
        )
    return _encode_supervisor
