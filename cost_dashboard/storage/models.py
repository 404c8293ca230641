"""
Data models for storage layer.

Defines aggregation results and per-user dashboard state.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class TimeBucketTotal:
    """Summed consumption for one time bucket of a group."""
    time_period: str
    total_consumption: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timePeriod": self.time_period,
            "totalConsumption": self.total_consumption
        }


@dataclass(frozen=True)
class AggregationGroup:
    """Aggregated consumption for one dimension key.

    Time buckets are kept in the order they were first seen. The budget
    is only meaningful when ``has_budget`` is set, which happens for the
    FinancialDomain dimension; it may still be None there.
    """
    key: str
    aggregated_values: List[TimeBucketTotal]
    budget: Any = None
    has_budget: bool = False

    @property
    def total(self) -> float:
        """Sum of consumption across all time buckets."""
        return sum(v.total_consumption for v in self.aggregated_values)

    def to_dict(self) -> Dict[str, Any]:
        """Render the group in its wire format."""
        result: Dict[str, Any] = {"key": self.key}
        if self.has_budget:
            result["budget"] = self.budget
        result["aggregatedValues"] = [v.to_dict() for v in self.aggregated_values]
        return result


@dataclass
class DashboardState:
    """A user's dashboard: ordered layout entries plus chart configurations.

    Layout entries and chart configurations are opaque JSON objects and
    keep any fields this package does not know about.
    """
    dashboard_order: List[Dict[str, Any]] = field(default_factory=list)
    charts: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "DashboardState":
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DashboardState":
        """Build state from its persisted form.

        Missing substructures default to empty ones.
        """
        order = data.get("dashboardOrder")
        charts = data.get("charts")
        return cls(
            dashboard_order=list(order) if order is not None else [],
            charts=dict(charts) if charts is not None else {}
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dashboardOrder": self.dashboard_order,
            "charts": self.charts
        }
