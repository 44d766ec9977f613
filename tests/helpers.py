"""Shared test fixtures and helpers for engagement-planner tests."""

import sqlite3
from typing import Optional, Sequence

from engagement_planner.plans.models import Plan, Step, StepRole, StepStatus
from engagement_planner.plans.store import PlanStore


def make_plan(
	progresses: Sequence[int] = (0, 30, 60, 100),
	plan_id: str = "plan-test",
	title: str = "Acme onboarding",
	start_date: str = "2026-03-01",
	end_date: str = "2026-03-15",
	statuses: Optional[Sequence[StepStatus]] = None,
	dates: Optional[Sequence[str]] = None,
	titles: Optional[Sequence[str]] = None,
) -> Plan:
	"""
	Create a plan whose steps have the given progress values.

	The first step is the initial step and the last one the end step.
	Step ids are s0, s1, ... in order.
	"""
	count = len(progresses)
	steps = []
	for i, progress in enumerate(progresses):
		if i == 0:
			role = StepRole.INITIAL
		elif i == count - 1:
			role = StepRole.END
		else:
			role = StepRole.INTERMEDIATE
		steps.append(Step(
			id=f"s{i}",
			role=role,
			action_title=titles[i] if titles else f"Step {i}",
			date=dates[i] if dates else "",
			progress=progress,
			success_probability=100 if role == StepRole.END else 70,
			status=statuses[i] if statuses else StepStatus.PLANNED,
		))
	return Plan(id=plan_id, title=title, start_date=start_date, end_date=end_date, steps=steps)


def step_ids(plan: Plan) -> list[str]:
	return [s.id for s in plan.steps]


def assert_boundaries(plan: Plan) -> None:
	"""The first step is initial and the last is end."""
	assert plan.steps[0].role == StepRole.INITIAL
	assert plan.steps[-1].role == StepRole.END


class FlakyPlanStore(PlanStore):
	"""PlanStore whose writes (or reads) fail while the flags are set."""

	def __init__(self, db_path: str, fail_writes: bool = False, fail_reads: bool = False):
		super().__init__(db_path)
		self.fail_writes = fail_writes
		self.fail_reads = fail_reads
		self.saved: list[Plan] = []

	async def list_plans(self) -> list[Plan]:
		if self.fail_reads:
			raise sqlite3.OperationalError("unable to open database file")
		return await super().list_plans()

	async def save_plan(self, plan: Plan) -> str:
		if self.fail_writes:
			raise sqlite3.OperationalError("disk I/O error")
		self.saved.append(plan)
		return await super().save_plan(plan)
