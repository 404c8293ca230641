"""
Record store.

Loads the flat billing/usage record collection from a JSON blob.
"""

import json
import logging
from typing import Any, Dict, List

from .blob import FileBlobStore, StorageError

logger = logging.getLogger(__name__)


class RecordStore:
    """Read-only access to the record collection.

    Records are returned as plain dictionaries so that unknown fields
    pass through untouched.
    """

    def __init__(self, blob: FileBlobStore):
        self.blob = blob

    def load_records(self) -> List[Dict[str, Any]]:
        """Load every record from the backing blob.

        Returns:
            List of records in file order

        Raises:
            StorageError: If the blob is missing, unreadable, or is not a
                JSON array of objects
        """
        path = str(self.blob.path)
        if not self.blob.exists():
            raise StorageError(f"Record file not found: {path}", path)

        try:
            data = json.loads(self.blob.read_text())
        except json.JSONDecodeError as e:
            raise StorageError(f"Invalid JSON in record file {path}: {e}", path) from e

        if not isinstance(data, list):
            raise StorageError(f"Record file {path} must contain a JSON array", path)

        for i, record in enumerate(data):
            if not isinstance(record, dict):
                raise StorageError(f"Record at index {i} in {path} is not an object", path)

        logger.debug("Loaded %d records from %s", len(data), path)
        return data


def load_records(path: str) -> List[Dict[str, Any]]:
    """Load records from a JSON file.

    Args:
        path: Path to the record file

    Returns:
        List of records in file order
    """
    return RecordStore(FileBlobStore(path)).load_records()
