"""Local image store.

Writes uploaded image files under one directory with generated unique
names and removes them again. Filesystem calls run in a worker thread so
request handlers never block the event loop.
"""

import asyncio
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

import structlog

from catalog_api.domain.exceptions import FileSystemError, ValidationError

logger = structlog.get_logger()

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class IncomingImage:
    """An uploaded file as received from the client."""

    filename: str
    content: bytes


@dataclass
class RemovalReport:
    """Per-file outcome of a best-effort removal.

    Attributes:
        removed: Files deleted from disk.
        missing: Files that were already absent.
        failed: Files that could not be deleted, with the OS error.
    """

    removed: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    failed: list[dict[str, str]] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        """Human-readable lines for every file left behind."""
        return [
            f"Could not delete image {item['filename']}: {item['error']}"
            for item in self.failed
        ]


class ImageStore:
    """Image files on the local filesystem.

    Example usage:
        store = ImageStore("images", [".png", ".jpg"])
        names = await store.save_all([IncomingImage("a.png", data)])
        report = await store.remove_all(names)
    """

    def __init__(
        self,
        directory: str | Path,
        allowed_extensions: list[str] | None = None,
        url_path: str = "/images",
    ) -> None:
        """Initialize the store.

        Args:
            directory: Directory holding image files.
            allowed_extensions: Accepted lower-case suffixes. ``None`` allows any.
            url_path: Public path segment images are served under.
        """
        self.directory = Path(directory)
        self.allowed_extensions = (
            {ext.lower() for ext in allowed_extensions}
            if allowed_extensions is not None
            else None
        )
        self.url_path = "/" + url_path.strip("/")

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def generate_name(self, original: str) -> str:
        """Build a unique stored name that keeps the original basename."""
        base = _UNSAFE_CHARS.sub("_", Path(original).name).strip("._") or "image"
        millis = int(time.time() * 1000)
        return f"{millis}-{uuid4().hex[:8]}-{base}"

    def path_for(self, filename: str) -> Path:
        """Resolve a stored filename inside the store directory."""
        name = Path(filename).name
        if not name or name != filename:
            raise ValueError(f"Not a stored image name: {filename!r}")
        return self.directory / name

    def url_for(self, filename: str, base_url: str) -> str:
        """Public URL for a stored filename, e.g. ``http://host/images/x.png``."""
        return f"{base_url.rstrip('/')}{self.url_path}/{filename}"

    def validate(self, images: list[IncomingImage]) -> None:
        """Reject files whose suffix is not allowed.

        Raises:
            ValidationError: One error entry per rejected file.
        """
        if self.allowed_extensions is None:
            return
        errors = [
            {
                "field": "images",
                "message": f"Unsupported image type: {image.filename}",
            }
            for image in images
            if Path(image.filename).suffix.lower() not in self.allowed_extensions
        ]
        if errors:
            raise ValidationError("Unsupported image type", errors=errors)

    async def save_all(self, images: list[IncomingImage]) -> list[str]:
        """Write every image, all or nothing.

        Returns:
            Stored filenames in upload order.

        Raises:
            FileSystemError: If any write fails. Files already written by
                this call are removed first.
        """
        self.validate(images)
        await asyncio.to_thread(self.ensure_directory)

        written: list[str] = []
        for image in images:
            name = self.generate_name(image.filename)
            try:
                await asyncio.to_thread(self.path_for(name).write_bytes, image.content)
            except OSError as e:
                logger.error(
                    "Image write failed",
                    filename=name,
                    error=str(e),
                )
                await self.remove_all(written)
                raise FileSystemError(
                    "Could not store uploaded image",
                    details={"filename": image.filename},
                ) from e
            written.append(name)

        logger.info("Images stored", count=len(written), filenames=written)
        return written

    async def remove(
        self, filename: str, report: RemovalReport | None = None
    ) -> RemovalReport:
        """Delete one file, recording the outcome instead of raising."""
        report = report if report is not None else RemovalReport()
        try:
            path = self.path_for(filename)
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            report.missing.append(filename)
            logger.info("Image already absent", filename=filename)
        except (OSError, ValueError) as e:
            report.failed.append({"filename": filename, "error": str(e)})
            logger.warning("Image removal failed", filename=filename, error=str(e))
        else:
            report.removed.append(filename)
        return report

    async def remove_all(self, filenames: list[str]) -> RemovalReport:
        """Delete several files, best-effort."""
        report = RemovalReport()
        for filename in filenames:
            await self.remove(filename, report)
        return report
