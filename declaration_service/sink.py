"""
Artifact sink - deliver rendered PDFs and decoded images.

Artifacts are either streamed back as an attachment or persisted under the
upload root with a timestamp-prefixed name. Persisted files are written to a
temporary file first and hard-linked into place, so a failed write never
leaves a truncated file under its final name and an existing artifact is
never overwritten.
"""

import asyncio
import logging
import os
import re
import tempfile
import time
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from fastapi import Response

from .errors import SinkWriteError
from .images import DecodedImage

logger = logging.getLogger(__name__)

MAX_NAME_ATTEMPTS = 100


def sanitize_for_path(text: str) -> str:
    """
    Sanitize text for use as a filename component.

    Replaces everything except word characters, dots and hyphens with
    underscores and strips leading dots, so the result can never name a
    parent directory or a hidden file.

    Example:
        >>> sanitize_for_path("../Director 7/sig.png")
        "_Director_7_sig.png"
    """
    cleaned = re.sub(r"[^\w.-]", "_", text).lstrip(".")
    return cleaned or "artifact"


@dataclass(frozen=True)
class StoredArtifact:
    """A persisted artifact and where it can be fetched from."""

    filename: str
    path: Path
    url: str
    size: int


class ArtifactSink:
    """
    Streams or persists artifacts under a single upload root.

    Args:
        upload_root: Directory holding every persisted artifact
        url_prefix: Public URL prefix the upload root is served under
    """

    def __init__(self, upload_root: Union[str, Path], url_prefix: str = "/uploads"):
        self.upload_root = Path(upload_root)
        self.url_prefix = url_prefix.rstrip("/")

    def ensure_storage_root(self) -> Path:
        """Create the upload root if absent. Safe to call repeatedly."""
        try:
            self.upload_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SinkWriteError(f"Cannot create upload directory {self.upload_root}: {e}")
        return self.upload_root

    @staticmethod
    def attachment_response(pdf_bytes: bytes, filename: str = "declaration.pdf") -> Response:
        """Binary PDF download response with an exact Content-Length."""
        return Response(
            content=pdf_bytes,
            media_type="application/pdf",
            headers={
                "Content-Disposition": f'attachment; filename="{filename}"',
                "Content-Length": str(len(pdf_bytes)),
            },
        )

    def _link_unique(self, tmp_path: str, name: str) -> Path:
        stem, dot, suffix = name.partition(".")
        for attempt in range(MAX_NAME_ATTEMPTS):
            candidate = name if attempt == 0 else f"{stem}-{attempt}{dot}{suffix}"
            target = self.upload_root / candidate
            try:
                # os.link refuses to replace an existing file
                os.link(tmp_path, target)
                return target
            except FileExistsError:
                continue
        raise SinkWriteError(f"Could not find a free filename for {name}")

    def write(self, data: bytes, discriminator: str) -> StoredArtifact:
        """
        Persist bytes as `<epoch-ms>-<discriminator>`.

        Args:
            data: Artifact bytes
            discriminator: Original filename, director id or fixed suffix,
                including the extension

        Returns:
            StoredArtifact describing the new file

        Raises:
            SinkWriteError: the directory or file could not be written
        """
        self.ensure_storage_root()
        name = f"{time.time_ns() // 1_000_000}-{sanitize_for_path(discriminator)}"

        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.upload_root, prefix=".tmp-", suffix=".part")
        except OSError as e:
            logger.error(f"Failed to open temp file in {self.upload_root}: {e}")
            raise SinkWriteError(f"Failed to save {name}: {e}")

        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            target = self._link_unique(tmp_path, name)
        except OSError as e:
            logger.error(f"Failed to save {name}: {e}")
            raise SinkWriteError(f"Failed to save {name}: {e}")
        finally:
            with suppress(FileNotFoundError):
                os.unlink(tmp_path)

        logger.info(f"Saved artifact {target.name} ({len(data)} bytes)")
        return StoredArtifact(
            filename=target.name,
            path=target,
            url=f"{self.url_prefix}/{target.name}",
            size=len(data),
        )

    async def persist(self, data: bytes, discriminator: str) -> StoredArtifact:
        """write() on the default executor, keeping the event loop free."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.write, data, discriminator)

    async def persist_image(self, image: DecodedImage, name: str) -> StoredArtifact:
        """Persist a decoded image as `<epoch-ms>-<name>.<ext>`."""
        return await self.persist(image.data, f"{name}.{image.extension}")
