"""Plans module - Engagement plan models, editing rules, stats and storage."""

from .editing import (
	InvalidInsertIndexError,
	InvalidPatchError,
	LockedStepError,
	PlanEditError,
	StepNotFoundError,
	add_step_before_end,
	conclude_engagement,
	insert_step_at,
	move_step,
	remove_step,
	update_plan,
	update_step,
)
from .factory import new_blank_plan, new_example_plan, new_step
from .models import Plan, Step, StepRole, StepStatus
from .stats import PlanStats, compute_plan_stats
from .store import PlanExistsError, PlanNotFoundError, PlanStore

__all__ = [
	"Plan",
	"Step",
	"StepRole",
	"StepStatus",
	"PlanStats",
	"compute_plan_stats",
	"new_step",
	"new_blank_plan",
	"new_example_plan",
	"insert_step_at",
	"add_step_before_end",
	"remove_step",
	"move_step",
	"update_step",
	"update_plan",
	"conclude_engagement",
	"PlanEditError",
	"StepNotFoundError",
	"LockedStepError",
	"InvalidInsertIndexError",
	"InvalidPatchError",
	"PlanStore",
	"PlanNotFoundError",
	"PlanExistsError",
]
