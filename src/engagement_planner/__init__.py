"""Engagement Planner - engagement plans with guarded step editing and derived stats."""

from .editor import PlanEditor, SyncStatus
from .plans import Plan, PlanStats, PlanStore, Step, StepRole, StepStatus, compute_plan_stats

__all__ = [
	"Plan",
	"Step",
	"StepRole",
	"StepStatus",
	"PlanStats",
	"PlanStore",
	"PlanEditor",
	"SyncStatus",
	"compute_plan_stats",
]
