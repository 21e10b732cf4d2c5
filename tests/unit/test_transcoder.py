"""Unit tests for the transcoder implementations."""
import pytest

from app.config import Settings
from app.services.transcoder import (
    FfmpegTranscoder,
    PlaceholderTranscoder,
    TranscodeError,
    get_transcoder,
    placeholder_playlist,
    stream_filename,
    thumbnail_filename,
)


def test_output_names():
    assert stream_filename("abc") == "abc-stream.m3u8"
    assert thumbnail_filename("abc") == "abc-thumb.jpg"


def test_placeholder_playlist():
    lines = placeholder_playlist().splitlines()
    assert lines[:4] == ["#EXTM3U", "#EXT-X-VERSION:3", "#EXT-X-TARGETDURATION:10", "#EXT-X-MEDIA-SEQUENCE:0"]
    assert lines[4:10] == [
        "#EXTINF:10.0,", "segment-0.ts",
        "#EXTINF:10.0,", "segment-1.ts",
        "#EXTINF:10.0,", "segment-2.ts",
    ]
    assert lines[-1] == "#EXT-X-ENDLIST"


def test_placeholder_transcoder_writes_outputs(tmp_path):
    out = tmp_path / "processed" / "vid"
    result = PlaceholderTranscoder().transcode("vid", tmp_path / "vid.mp4", out)

    assert result.stream_path == out / "vid-stream.m3u8"
    assert result.stream_path.read_text() == placeholder_playlist()
    assert result.thumbnail_path.read_bytes() == b"dummy-thumbnail"
    assert result.duration == 120
    assert result.metadata == {"resolution": "1920x1080", "format": "mp4", "bitrate": 5000}


def test_ffmpeg_transcoder_missing_source(tmp_path):
    with pytest.raises(TranscodeError):
        FfmpegTranscoder().transcode("vid", tmp_path / "missing.mp4", tmp_path / "out")


def test_ffmpeg_transcoder_missing_binary(tmp_path):
    source = tmp_path / "vid.mp4"
    source.write_bytes(b"\x00")
    transcoder = FfmpegTranscoder(ffmpeg=str(tmp_path / "no-ffmpeg"), ffprobe=str(tmp_path / "no-ffprobe"))
    with pytest.raises(TranscodeError, match="not found"):
        transcoder.transcode("vid", source, tmp_path / "out")


def test_get_transcoder():
    assert isinstance(get_transcoder(Settings(transcoder_provider="placeholder")), PlaceholderTranscoder)
    assert isinstance(get_transcoder(Settings(transcoder_provider="FFMPEG")), FfmpegTranscoder)
    with pytest.raises(ValueError):
        get_transcoder(Settings(transcoder_provider="cloud"))
