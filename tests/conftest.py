"""Shared fixtures: stub encoder executables and wired-up services."""

import io
import stat
import sys
from pathlib import Path

import pytest

from streaming_api.services.encode_supervisor import EncodeSupervisor
from streaming_api.services.pipeline import TranscodePipeline
from streaming_api.services.workspace import WorkspaceManager


# Emits "-progress pipe:1" style output and writes one segment per playlist
STUB_FFMPEG = '''
import os
import sys
import time

args = sys.argv[1:]
if "-version" in args:
    print("ffmpeg version stub")
    sys.exit(0)

delay = float(os.environ.get("STUB_FFMPEG_SLEEP", "0"))
for out_time in ("N/A", "500000", "1000000", "2000000"):
    print("frame=1")
    print("out_time_us=" + out_time)
    print("speed=1x")
    print("progress=continue")
    sys.stdout.flush()
    time.sleep(delay)

code = int(os.environ.get("STUB_FFMPEG_EXIT", "0"))
if code:
    print("Conversion failed!")
    sys.exit(code)

playlists = [a for a in args if a.endswith(".m3u8")]
patterns = [args[i + 1] for i, a in enumerate(args) if a == "-hls_segment_filename"]
for playlist, pattern in zip(playlists, patterns):
    segment = pattern.replace("%03d", "000")
    with open(segment, "wb") as fh:
        fh.write(bytes([0x47]) * 188)
    with open(playlist, "w") as fh:
        fh.write(
            "#EXTM3U\\n#EXT-X-PLAYLIST-TYPE:VOD\\n#EXTINF:1.000000,\\n"
            + os.path.basename(segment)
            + "\\n#EXT-X-ENDLIST\\n"
        )
print("progress=end")
'''

# Reads "STUB:<width>:<height>:<duration>" files; anything else is corrupt
STUB_FFPROBE = '''
import json
import sys

path = sys.argv[-1]
with open(path, "rb") as fh:
    data = fh.read()
if not data.startswith(b"STUB:"):
    sys.stderr.write(path + ": Invalid data found when processing input\\n")
    sys.exit(1)

_, width, height, duration = data.decode().strip().split(":")
streams = [{"codec_type": "audio", "codec_name": "aac"}]
if int(height):
    streams.insert(0, {"codec_type": "video", "width": int(width), "height": int(height)})
print(json.dumps({"format": {"format_name": "stub", "duration": duration}, "streams": streams}))
'''


def _write_executable(path: Path, body: str) -> str:
    path.write_text(f"#!{sys.executable}\n{body}")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


def stub_source(width: int, height: int, duration: float = 2.0) -> bytes:
    return f"STUB:{width}:{height}:{duration}".encode()


class FakeUpload:
    """Minimal stand-in for UploadFile.read"""

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


@pytest.fixture
def stub_bin(tmp_path):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return {
        "ffmpeg": _write_executable(bin_dir / "ffmpeg", STUB_FFMPEG),
        "ffprobe": _write_executable(bin_dir / "ffprobe", STUB_FFPROBE),
    }


@pytest.fixture
def workspaces(tmp_path):
    return WorkspaceManager(str(tmp_path / "data"), max_upload_size_mb=1)


@pytest.fixture
def supervisor(stub_bin):
    return EncodeSupervisor(
        ffmpeg_path=stub_bin["ffmpeg"],
        ffprobe_path=stub_bin["ffprobe"],
        timeout_seconds=30,
        probe_timeout_seconds=10,
        probe_max_retries=0,
    )


@pytest.fixture
def pipeline(workspaces, supervisor):
    return TranscodePipeline(workspaces, supervisor)


@pytest.fixture
def make_upload():
    """Factory for upload readers; ``make_upload(w, h)`` builds a stub media file"""
    def _make(width=None, height=None, duration=2.0, data=None):
        if data is None:
            data = stub_source(width, height, duration)
        return FakeUpload(data)
    return _make
