"""
Encode Command Builder
Single-pass FFmpeg invocation producing every HLS rendition of a job
"""

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from ..models.rendition import PROFILE_TIERS, RenditionSpec


@dataclass
class EncodeConfig:
    """Settings shared by every rendition of every job"""
    video_codec: str = "h264"
    audio_codec: str = "aac"
    audio_sample_rate: int = 48000
    audio_bitrate: str = "0k"
    crf: int = 19
    # Fixed GOP with scene-cut disabled keeps segment boundaries aligned across renditions
    gop_size: int = 60
    scene_cut_threshold: int = 0
    segment_seconds: int = 1
    playlist_type: str = "vod"


@dataclass
class EncodeInvocation:
    """Arguments for one FFmpeg run, without the executable itself"""
    input_path: Path
    output_dir: Path
    ladder: List[RenditionSpec]
    args: List[str] = field(default_factory=list)

    def command(self, executable: str) -> List[str]:
        return [executable, *self.args]

    @property
    def manifests(self) -> List[Path]:
        return [self.output_dir / f"{spec.name}.m3u8" for spec in self.ladder]

    def __str__(self) -> str:
        return shlex.join(self.args)


class EncodeCommandBuilder:
    """Builds FFmpeg arguments; performs no I/O"""

    def __init__(self, config: Optional[EncodeConfig] = None):
        self.config = config or EncodeConfig()

    def build(
        self,
        input_path: Path,
        output_dir: Path,
        ladder: Sequence[RenditionSpec]
    ) -> EncodeInvocation:
        """
        Build one invocation that reads the input once and writes one HLS
        playlist per rendition into ``output_dir``.

        An empty ladder yields an invocation with no outputs.
        """
        input_path = Path(input_path)
        output_dir = Path(output_dir)

        args = [
            "-hide_banner",
            "-loglevel", "warning",
            "-y",
            "-i", str(input_path),
            # Machine-readable key=value progress on stdout
            "-progress", "pipe:1",
            "-nostats",
        ]
        for spec in ladder:
            args.extend(self._rendition_args(spec, output_dir))

        return EncodeInvocation(
            input_path=input_path,
            output_dir=output_dir,
            ladder=list(ladder),
            args=args,
        )

    def _rendition_args(self, spec: RenditionSpec, output_dir: Path) -> List[str]:
        cfg = self.config
        profile, level = PROFILE_TIERS[spec.profile_tier]
        return [
            "-c:a", cfg.audio_codec,
            "-ar", str(cfg.audio_sample_rate),
            "-c:v", cfg.video_codec,
            "-profile:v", profile,
            "-level", level,
            "-crf", str(cfg.crf),
            "-sc_threshold", str(cfg.scene_cut_threshold),
            "-g", str(cfg.gop_size),
            "-keyint_min", str(cfg.gop_size),
            "-hls_time", str(cfg.segment_seconds),
            "-hls_playlist_type", cfg.playlist_type,
            "-vf", f"scale=w={spec.target_width}:h=-2",
            "-b:v", spec.video_bitrate,
            "-maxrate", spec.max_rate,
            "-bufsize", spec.buf_size,
            "-b:a", cfg.audio_bitrate,
            "-f", "hls",
            "-hls_segment_filename", str(output_dir / f"{spec.name}_%03d.ts"),
            str(output_dir / f"{spec.name}.m3u8"),
        ]
