"""
Dashboard document store.

Persists every user's dashboard in a single shared JSON document.
"""

import json
import logging
from typing import Any, Dict

from .blob import FileBlobStore, StorageError
from .models import DashboardState

logger = logging.getLogger(__name__)


class DocumentStore:
    """Whole-document access to the dashboard JSON file.

    The document maps user id to ``{"dashboardOrder": [...], "charts": {...}}``.
    Every write replaces the whole document.
    """

    def __init__(self, blob: FileBlobStore):
        """Initialize the store with its backing blob.

        Args:
            blob: Blob holding the dashboard document
        """
        self.blob = blob

    def read_document(self) -> Dict[str, Any]:
        """Read the whole dashboard document.

        Returns:
            Mapping of user id to dashboard data, or an empty mapping if
            the document does not exist yet

        Raises:
            StorageError: If the blob is unreadable or not a JSON object
        """
        if not self.blob.exists():
            return {}

        path = str(self.blob.path)
        text = self.blob.read_text()
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageError(f"Invalid JSON in dashboard document {path}: {e}", path) from e

        if not isinstance(document, dict):
            raise StorageError(f"Dashboard document {path} must contain a JSON object", path)

        for user_id, entry in document.items():
            if not isinstance(entry, dict):
                raise StorageError(f"Dashboard of user {user_id!r} in {path} is not an object", path)
            if not isinstance(entry.get("dashboardOrder") or [], list):
                raise StorageError(f"'dashboardOrder' of user {user_id!r} in {path} is not an array", path)
            if not isinstance(entry.get("charts") or {}, dict):
                raise StorageError(f"'charts' of user {user_id!r} in {path} is not an object", path)
        return document

    def write_document(self, document: Dict[str, Any]) -> None:
        """Write the whole dashboard document.

        Output is pretty-printed with keys in insertion order, so reading
        and writing back an unchanged document gives the same bytes.

        Args:
            document: Mapping of user id to dashboard data

        Raises:
            StorageError: If the blob cannot be written
        """
        text = json.dumps(document, indent=2, ensure_ascii=False) + "\n"
        self.blob.write_text(text)
        logger.debug("Saved dashboard document with %d users", len(document))

    def read_dashboard(self, user_id: str) -> DashboardState:
        """Read one user's dashboard, or an empty one if the user is unknown."""
        entry = self.read_document().get(user_id)
        if entry is None:
            return DashboardState.empty()
        return DashboardState.from_dict(entry)

    def write_dashboard(self, user_id: str, state: DashboardState) -> None:
        """Replace one user's dashboard and write the whole document back."""
        document = self.read_document()
        document[user_id] = state.to_dict()
        self.write_document(document)


def get_document_store(path: str) -> DocumentStore:
    """Create a document store backed by a file.

    Args:
        path: Path to the dashboard JSON file

    Returns:
        DocumentStore over a FileBlobStore
    """
    return DocumentStore(FileBlobStore(path))
