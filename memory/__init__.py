"""Persistence for planning results."""

from .models import LatestPlan, PlanMetadata, PlanningResult
from .plan_store import PlanStore

__all__ = [
    "LatestPlan",
    "PlanMetadata",
    "PlanningResult",
    "PlanStore",
]
