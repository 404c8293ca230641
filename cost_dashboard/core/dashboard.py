"""
Dashboard service.

Read-modify-write operations on per-user dashboards stored in the shared
dashboard document.

Behavior notes:
1. Missing users and chart ids are never errors; they resolve to empty
   state or no-ops
2. Every mutation rewrites the whole document
3. Mutations through one service instance are serialized by a lock;
   writers in other processes are not
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from cost_dashboard.storage.documents import DocumentStore
from cost_dashboard.storage.models import DashboardState

logger = logging.getLogger(__name__)

# Layout fields copied from an update payload
LAYOUT_FIELDS = ("x", "y", "width", "height")


class DashboardService:
    """Manages chart layouts and configurations for each user.

    The layout order (``dashboardOrder``) and the chart map (``charts``)
    are not forced to stay in sync: a chart can be updated without a
    layout entry and vice versa.
    """

    def __init__(self, store: DocumentStore):
        """Initialize the service.

        Args:
            store: Document store holding every user's dashboard
        """
        self.store = store
        self._lock = threading.RLock()

    def get_dashboard(self, user_id: str) -> DashboardState:
        """Get a user's dashboard.

        Args:
            user_id: User identifier

        Returns:
            The user's dashboard, or an empty one if the user has none.
            The empty default is not persisted.
        """
        return self.store.read_dashboard(user_id)

    def get_chart(self, user_id: str, chart_id: str) -> Optional[Any]:
        """Get one chart configuration, or None if it does not exist."""
        return self.get_dashboard(user_id).charts.get(chart_id)

    def list_users(self) -> List[str]:
        """List user ids that have a stored dashboard, in document order."""
        return list(self.store.read_document().keys())

    def add_chart(
        self,
        user_id: str,
        layout: Dict[str, Any],
        chart_config: Any
    ) -> DashboardState:
        """Append a chart to a user's dashboard.

        The layout is appended to the display order and the configuration
        is stored (or replaced) under the layout's id. A user without a
        dashboard gets an empty one first.

        Args:
            user_id: User identifier
            layout: Layout entry; must contain a string ``id``
            chart_config: Opaque chart configuration

        Returns:
            The user's dashboard after the change

        Raises:
            ValueError: If the layout has no id or the id is not a string
            StorageError: If the document cannot be read or written
        """
        chart_id = layout.get("id")
        if chart_id is None:
            raise ValueError("layout must contain an 'id'")
        if not isinstance(chart_id, str):
            raise ValueError(f"layout 'id' must be a string, got {chart_id!r}")

        with self._lock:
            document = self.store.read_document()
            state = self._user_state(document, user_id)

            state.dashboard_order.append(layout)
            state.charts[chart_id] = chart_config

            document[user_id] = state.to_dict()
            self.store.write_document(document)

        logger.info("Added chart %s to dashboard of user %s", chart_id, user_id)
        return state

    def delete_chart(self, user_id: str, chart_id: str) -> DashboardState:
        """Remove a chart and every layout entry with its id.

        Deleting an unknown chart is a no-op, but the document is still
        written back.

        Args:
            user_id: User identifier
            chart_id: Chart to remove

        Returns:
            The user's dashboard after the change
        """
        with self._lock:
            document = self.store.read_document()
            state = self._user_state(document, user_id)

            removed = state.charts.pop(chart_id, None) is not None
            before = len(state.dashboard_order)
            state.dashboard_order = [
                entry for entry in state.dashboard_order
                if entry.get("id") != chart_id
            ]

            document[user_id] = state.to_dict()
            self.store.write_document(document)

        logger.info(
            "Deleted chart %s from dashboard of user %s (config removed: %s, layouts removed: %d)",
            chart_id, user_id, removed, before - len(state.dashboard_order)
        )
        return state

    def update_chart(
        self,
        user_id: str,
        chart_id: str,
        layout_update: Dict[str, Any],
        chart_config: Any
    ) -> DashboardState:
        """Update a chart's configuration and layout.

        The configuration is replaced only if the chart already exists.
        Every layout entry with the chart's id gets its x, y, width and
        height from ``layout_update``; other layout fields are kept. The
        document is written back even if nothing matched.

        Args:
            user_id: User identifier
            chart_id: Chart to update
            layout_update: Source of the new x, y, width and height
            chart_config: New chart configuration

        Returns:
            The user's dashboard after the change
        """
        with self._lock:
            document = self.store.read_document()
            state = self._user_state(document, user_id)

            if chart_id in state.charts:
                state.charts[chart_id] = chart_config

            matched = 0
            for entry in state.dashboard_order:
                if entry.get("id") == chart_id:
                    for name in LAYOUT_FIELDS:
                        entry[name] = layout_update.get(name)
                    matched += 1

            document[user_id] = state.to_dict()
            self.store.write_document(document)

        logger.info("Updated chart %s on dashboard of user %s (%d layouts)", chart_id, user_id, matched)
        return state

    @staticmethod
    def _user_state(document: Dict[str, Any], user_id: str) -> DashboardState:
        entry = document.get(user_id)
        if entry is None:
            return DashboardState.empty()
        return DashboardState.from_dict(entry)
