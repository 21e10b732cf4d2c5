"""Upload storage helpers: uploads root layout, allow-list checks and chunked save."""
import logging
import shutil
import uuid
from pathlib import Path
from fastapi import UploadFile
from app.config import get_settings
from app.errors import UploadRejected

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MB

# Extension -> content types accepted for it
ALLOWED_VIDEO_TYPES: dict[str, frozenset[str]] = {
    ".mp4": frozenset({"video/mp4"}),
    ".avi": frozenset({"video/x-msvideo", "video/avi", "video/msvideo"}),
    ".mov": frozenset({"video/quicktime"}),
    ".wmv": frozenset({"video/x-ms-wmv"}),
    ".flv": frozenset({"video/x-flv"}),
    ".mkv": frozenset({"video/x-matroska"}),
}


def uploads_root() -> Path:
    settings = get_settings()
    if settings.upload_dir:
        return Path(settings.upload_dir)
    return Path(__file__).resolve().parent.parent.parent / "uploads"


def video_upload_dir() -> Path:
    return uploads_root() / "videos"


def processed_dir(video_id: str) -> Path:
    return uploads_root() / "processed" / video_id


def relative_to_root(path: Path) -> str:
    """Store paths relative to the uploads root so the root can move."""
    return path.resolve().relative_to(uploads_root().resolve()).as_posix()


def is_allowed_video(filename: str | None, content_type: str | None) -> bool:
    ext = Path(filename or "").suffix.lower()
    ct = (content_type or "").split(";")[0].strip().lower()
    return ct in ALLOWED_VIDEO_TYPES.get(ext, ())


def save_video_upload(file: UploadFile) -> tuple[str, Path, int]:
    """
    Stream the upload to <uploads>/videos/<id><ext>.
    Returns (video_id, path, size). Raises UploadRejected for a disallowed type or
    a file over the size ceiling (the partial file is removed).
    """
    if not is_allowed_video(file.filename, file.content_type):
        raise UploadRejected()
    max_size = get_settings().max_upload_size_bytes
    video_upload_dir().mkdir(parents=True, exist_ok=True)
    video_id = str(uuid.uuid4())
    ext = Path(file.filename or "").suffix.lower()
    path = video_upload_dir() / f"{video_id}{ext}"
    size = 0
    with path.open("wb") as f:
        while chunk := file.file.read(CHUNK_SIZE):
            size += len(chunk)
            if size > max_size:
                break
            f.write(chunk)
    if size > max_size:
        path.unlink(missing_ok=True)
        logger.info("Rejected upload %s: larger than %s bytes", file.filename, max_size)
        raise UploadRejected()
    return video_id, path, size


def remove_video_files(video_id: str, file_path: str | None) -> None:
    """Delete the original upload and the processed output directory, if present."""
    root = uploads_root()
    if file_path:
        (root / file_path).unlink(missing_ok=True)
    out = processed_dir(video_id)
    if out.is_dir():
        shutil.rmtree(out)
