"""
Turn an uploaded video into an HLS stream + thumbnail under
<uploads>/processed/<video_id>/:
    <video_id>-stream.m3u8   playlist referencing segment-N.ts
    <video_id>-thumb.jpg     thumbnail
PlaceholderTranscoder writes a fixed 3-segment playlist; FfmpegTranscoder does
the real conversion with the same file names.
"""
import json
import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from app.config import Settings

logger = logging.getLogger(__name__)

SEGMENT_SECONDS = 10
PLACEHOLDER_SEGMENTS = 3
PLACEHOLDER_DURATION = 120
PLACEHOLDER_METADATA = {"resolution": "1920x1080", "format": "mp4", "bitrate": 5000}
PLACEHOLDER_THUMBNAIL = b"dummy-thumbnail"


class TranscodeError(Exception):
    pass


@dataclass
class TranscodeResult:
    stream_path: Path
    thumbnail_path: Path
    duration: float
    metadata: dict[str, Any] = field(default_factory=dict)


def stream_filename(video_id: str) -> str:
    return f"{video_id}-stream.m3u8"


def thumbnail_filename(video_id: str) -> str:
    return f"{video_id}-thumb.jpg"


def placeholder_playlist(segments: int = PLACEHOLDER_SEGMENTS, seconds: int = SEGMENT_SECONDS) -> str:
    lines = [
        "#EXTM3U",
        "#EXT-X-VERSION:3",
        f"#EXT-X-TARGETDURATION:{seconds}",
        "#EXT-X-MEDIA-SEQUENCE:0",
    ]
    for i in range(segments):
        lines.append(f"#EXTINF:{float(seconds)},")
        lines.append(f"segment-{i}.ts")
    lines.append("#EXT-X-ENDLIST")
    return "\n".join(lines)


class Transcoder(ABC):
    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def transcode(self, video_id: str, source_path: Path, output_dir: Path) -> TranscodeResult:
        """Write the stream playlist and thumbnail into output_dir. Raises TranscodeError."""
        ...


class PlaceholderTranscoder(Transcoder):
    @property
    def name(self) -> str:
        return "placeholder"

    def transcode(self, video_id: str, source_path: Path, output_dir: Path) -> TranscodeResult:
        output_dir.mkdir(parents=True, exist_ok=True)
        stream_path = output_dir / stream_filename(video_id)
        thumbnail_path = output_dir / thumbnail_filename(video_id)
        stream_path.write_text(placeholder_playlist())
        thumbnail_path.write_bytes(PLACEHOLDER_THUMBNAIL)
        return TranscodeResult(
            stream_path=stream_path,
            thumbnail_path=thumbnail_path,
            duration=PLACEHOLDER_DURATION,
            metadata=dict(PLACEHOLDER_METADATA),
        )


class FfmpegTranscoder(Transcoder):
    """HLS via the ffmpeg CLI; ffprobe for duration/resolution/codec/bitrate."""

    def __init__(self, ffmpeg: str = "ffmpeg", ffprobe: str = "ffprobe", timeout: int = 3600):
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "ffmpeg"

    def _run(self, cmd: list[str]) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(cmd, check=True, capture_output=True, timeout=self.timeout)
        except subprocess.CalledProcessError as e:
            raise TranscodeError(f"{cmd[0]} failed: {e.stderr and e.stderr.decode(errors='replace') or e}") from e
        except subprocess.TimeoutExpired as e:
            raise TranscodeError(f"{cmd[0]} timed out after {self.timeout}s") from e
        except FileNotFoundError as e:
            raise TranscodeError(f"{cmd[0]} not found; install FFmpeg to enable transcoding") from e

    def probe(self, source_path: Path) -> tuple[float, dict[str, Any]]:
        out = self._run([
            self.ffprobe, "-v", "error",
            "-print_format", "json",
            "-show_format", "-show_streams",
            str(source_path),
        ]).stdout
        info = json.loads(out or b"{}")
        fmt = info.get("format", {})
        video_stream = next((s for s in info.get("streams", []) if s.get("codec_type") == "video"), {})
        duration = float(fmt.get("duration") or 0.0)
        metadata = {
            "resolution": f"{video_stream.get('width')}x{video_stream.get('height')}" if video_stream else None,
            "format": (fmt.get("format_name") or "").split(",")[0] or None,
            "codec": video_stream.get("codec_name"),
            "bitrate": int(fmt["bit_rate"]) // 1000 if fmt.get("bit_rate") else None,
        }
        return duration, metadata

    def transcode(self, video_id: str, source_path: Path, output_dir: Path) -> TranscodeResult:
        if not source_path.is_file():
            raise TranscodeError(f"Source file not found: {source_path}")
        output_dir.mkdir(parents=True, exist_ok=True)
        stream_path = output_dir / stream_filename(video_id)
        thumbnail_path = output_dir / thumbnail_filename(video_id)

        self._run([
            self.ffmpeg, "-y",
            "-i", str(source_path),
            "-profile:v", "baseline",
            "-level", "3.0",
            "-start_number", "0",
            "-hls_time", str(SEGMENT_SECONDS),
            "-hls_list_size", "0",
            "-hls_segment_filename", str(output_dir / "segment-%d.ts"),
            "-f", "hls",
            str(stream_path),
        ])
        self._run([
            self.ffmpeg, "-y",
            "-ss", "1",
            "-i", str(source_path),
            "-frames:v", "1",
            str(thumbnail_path),
        ])
        duration, metadata = self.probe(source_path)
        logger.info("HLS conversion completed for %s (%.1fs)", video_id, duration)
        return TranscodeResult(
            stream_path=stream_path,
            thumbnail_path=thumbnail_path,
            duration=duration,
            metadata=metadata,
        )


def get_transcoder(settings: Settings) -> Transcoder:
    provider = (settings.transcoder_provider or "placeholder").lower()
    if provider == "ffmpeg":
        return FfmpegTranscoder(timeout=settings.ffmpeg_timeout_seconds)
    if provider == "placeholder":
        return PlaceholderTranscoder()
    raise ValueError(f"Unknown transcoder provider: {settings.transcoder_provider}")
