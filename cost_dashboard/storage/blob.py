"""
Blob storage primitive.

Provides whole-file read/write access to a single JSON document on disk.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a backing blob cannot be read or written."""
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class FileBlobStore:
    """A single file treated as an opaque text blob.

    Writes replace the whole file. The new content is written to a
    temporary sibling and moved over the target, so a failed write
    leaves the previous content in place.
    """

    def __init__(self, path: str):
        """Initialize the blob store.

        Args:
            path: Path to the backing file
        """
        self.path = Path(path)

    def exists(self) -> bool:
        """Return True if the backing file exists."""
        return self.path.is_file()

    def read_text(self) -> str:
        """Read the whole blob.

        Returns:
            The file content decoded as UTF-8

        Raises:
            StorageError: If the file is missing or unreadable
        """
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return f.read()
        except OSError as e:
            raise StorageError(f"Cannot read {self.path}: {e}", str(self.path)) from e

    def write_text(self, text: str) -> None:
        """Replace the whole blob with new content.

        Args:
            text: Content to write

        Raises:
            StorageError: If the file cannot be written
        """
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                dir=str(self.path.parent)
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(text)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}", str(self.path)) from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.remove(tmp_name)
        logger.debug("Wrote %d bytes to %s", len(text), self.path)
