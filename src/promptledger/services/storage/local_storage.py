"""Local filesystem storage for uploaded images."""

import asyncio
from pathlib import Path, PurePosixPath

from promptledger.services.exceptions import StorageError


class LocalImageStorage:
    """Stores uploaded images under a root directory and maps them to public URLs.

    Stored paths are relative, POSIX-style strings such as
    ``uploads/images/photo_Ab3dE5gH7j.jpg``. Existing files are never
    overwritten, so a stored path always refers to exactly one upload.
    """

    def __init__(
        self,
        root: str | Path,
        directory: str = "uploads/images",
        url_prefix: str = "/storage",
    ):
        """Initialize storage.

        Args:
            root: Filesystem directory that holds all stored files
            directory: Subdirectory (relative to root) for uploaded images
            url_prefix: Public URL prefix under which root is served
        """
        self.root = Path(root).resolve()
        self.directory = directory.strip("/")
        self.url_prefix = url_prefix.rstrip("/")

    def _resolve(self, path: str) -> Path:
        """Map a stored path to an absolute filesystem path inside root."""
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts:
            raise StorageError(f"Invalid storage path: {path}")
        resolved = (self.root / relative).resolve()
        if not resolved.is_relative_to(self.root):
            raise StorageError(f"Storage path escapes root: {path}")
        return resolved

    async def store(self, content: bytes, filename: str) -> str:
        """Write ``content`` to ``<directory>/<filename>``.

        Args:
            content: Raw file bytes
            filename: Safe filename (no directory separators)

        Returns:
            Stored path relative to the storage root

        Raises:
            StorageError: If the filename is unsafe, the file already exists,
                or the write fails
        """
        if not filename or "/" in filename or "\\" in filename or filename in (".", ".."):
            raise StorageError(f"Invalid storage filename: {filename!r}")

        path = f"{self.directory}/{filename}" if self.directory else filename
        target = self._resolve(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "xb") as fh:
                fh.write(content)

        try:
            await asyncio.to_thread(_write)
        except FileExistsError as e:
            raise StorageError(f"Refusing to overwrite existing file: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

        return path

    async def read(self, path: str) -> bytes:
        """Read a previously stored file.

        Raises:
            StorageError: If the path is invalid or the file cannot be read
        """
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def url(self, path: str) -> str:
        """Return the public URL for a stored path."""
        return f"{self.url_prefix}/{path}"
