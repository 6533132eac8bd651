"""Media file storage partitioned by content kind.

Files land in ``<root>/audio``, ``<root>/artwork`` or ``<root>/images`` and
are served back under ``/uploads/<partition>/<filename>``.
"""

import logging
import re
import secrets
import time
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

import aiofiles
from fastapi import UploadFile

from core.exceptions import NotFoundError, UploadRejectedError

logger = logging.getLogger(__name__)

PARTITIONS = ("audio", "images", "artwork")
CHUNK_SIZE = 1024 * 1024

AUDIO_TYPES = {"audio/mpeg", "audio/wav", "audio/mp3", "audio/flac", "audio/aac"}
IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}
ARTWORK_TYPES = {"image/jpeg", "image/png", "image/webp"}

# Form field -> (allowed MIME types, partition)
FIELD_RULES = {
    "audio": (AUDIO_TYPES, "audio"),
    "artwork": (ARTWORK_TYPES, "artwork"),
    "profileImage": (ARTWORK_TYPES, "artwork"),
}

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")


@dataclass
class StoredFile:
    filename: str
    original_name: str
    url: str
    size: int
    mimetype: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["originalName"] = data.pop("original_name")
        return data


def classify(field: str, content_type: str | None) -> str:
    """Check a file's MIME type against its field's allow-list and pick its partition.

    Raises:
        UploadRejectedError: the type is not allowed for this field
    """
    mimetype = content_type or ""
    if field in FIELD_RULES:
        allowed, partition = FIELD_RULES[field]
    elif mimetype.startswith("image/"):
        allowed, partition = IMAGE_TYPES, "images"
    elif mimetype.startswith("audio/"):
        allowed, partition = AUDIO_TYPES, "audio"
    else:
        allowed, partition = set(), "images"

    if mimetype not in allowed:
        raise UploadRejectedError(f"Invalid file type: {mimetype or 'unknown'}")
    return partition


def generate_filename(original_name: str) -> str:
    """``<sanitized stem>_<epoch ms>-<random>.<ext>``, unique in practice."""
    path = Path(original_name or "file")
    stem = _UNSAFE_CHARS.sub("_", path.stem) or "file"
    ext = path.suffix if re.fullmatch(r"\.[A-Za-z0-9]{1,10}", path.suffix) else ""
    return f"{stem}_{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"


class UploadStorage:
    """Validates and writes uploaded media under a root directory."""

    def __init__(self, root: Path, max_file_size: int, max_files: int):
        self.root = Path(root)
        self.max_file_size = max_file_size
        self.max_files = max_files

    def ensure_dirs(self) -> None:
        for partition in PARTITIONS:
            (self.root / partition).mkdir(parents=True, exist_ok=True)

    @property
    def max_size_label(self) -> str:
        return f"{self.max_file_size // (1024 * 1024)}MB"

    async def save_all(self, files: list[tuple[str, UploadFile]]) -> list[StoredFile]:
        """Validate every (field, file) pair, then write them in order.

        All types and the file count are checked before anything is written;
        if any write fails, every file written by this call is removed.
        """
        if len(files) > self.max_files:
            raise UploadRejectedError(
                f"Too many files. Maximum is {self.max_files} files per request."
            )
        partitions = [classify(field, upload.content_type) for field, upload in files]

        self.ensure_dirs()
        stored: list[StoredFile] = []
        try:
            for (_, upload), partition in zip(files, partitions, strict=True):
                stored.append(await self._write(upload, partition))
        except Exception:
            logger.warning(f"Upload batch failed, removing {len(stored)} written file(s)")
            for item in stored:
                self._path_for(item).unlink(missing_ok=True)
            raise
        return stored

    async def _write(self, upload: UploadFile, partition: str) -> StoredFile:
        filename = generate_filename(upload.filename or "file")
        target = self.root / partition / filename
        size = 0
        try:
            async with aiofiles.open(target, "wb") as out_file:
                while chunk := await upload.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > self.max_file_size:
                        break
                    await out_file.write(chunk)
        except Exception:
            target.unlink(missing_ok=True)
            raise

        if size > self.max_file_size:
            target.unlink(missing_ok=True)
            raise UploadRejectedError(f"File too large. Maximum size is {self.max_size_label}.")

        logger.info(f"Stored upload {target} ({size} bytes)")
        return StoredFile(
            filename=filename,
            original_name=upload.filename or filename,
            url=f"/uploads/{partition}/{filename}",
            size=size,
            mimetype=upload.content_type or "application/octet-stream",
        )

    def _path_for(self, item: StoredFile) -> Path:
        return self.root / item.url.removeprefix("/uploads/")

    def delete(self, filename: str) -> None:
        """Remove the first partition file matching ``filename``.

        Raises:
            UploadRejectedError: the name contains a path component
            NotFoundError: no partition holds the file
        """
        if not filename or Path(filename).name != filename or filename in (".", ".."):
            raise UploadRejectedError("Invalid filename")

        for partition in PARTITIONS:
            path = self.root / partition / filename
            if path.is_file():
                path.unlink()
                logger.info(f"Deleted upload {path}")
                return
        raise NotFoundError("File not found")

    def list_files(self, kind: str = "all") -> dict[str, list[dict]]:
        """Files per partition with url, size and timestamps."""
        listing: dict[str, list[dict]] = {partition: [] for partition in PARTITIONS}
        for partition in PARTITIONS:
            if kind not in ("all", partition):
                continue
            directory = self.root / partition
            if not directory.is_dir():
                continue
            for path in sorted(directory.iterdir()):
                if not path.is_file():
                    continue
                stat = path.stat()
                listing[partition].append(
                    {
                        "filename": path.name,
                        "url": f"/uploads/{partition}/{path.name}",
                        "size": stat.st_size,
                        "createdAt": datetime.fromtimestamp(stat.st_ctime, UTC).isoformat(),
                        "modifiedAt": datetime.fromtimestamp(stat.st_mtime, UTC).isoformat(),
                    }
                )
        return listing
