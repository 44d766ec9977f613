"""
Plan Stats - Derived statistics and advisory checks for a plan snapshot.

Everything here is a pure function of the plan passed in, so it is safe
to recompute on every render.
"""

from dataclasses import dataclass, field

from .models import Plan, StepRole, StepStatus

MAX_VISIBLE_FLAGS = 5
PROBABILITY_PENALTY_PER_STEP = 10

FLAG_START_AFTER_END = "Plan start date is after end date."
FLAG_PROGRESS_DECREASES = "Progress decreases between steps. Consider increasing left → right."
FLAG_INITIAL_PROGRESS = "Initial Step progress should be 0."
FLAG_END_PROGRESS = "End Step progress should be 100."


def clamp(value: float, low: float = 0, high: float = 100) -> float:
	return max(low, min(high, value))


@dataclass
class PlanStats:
	"""Derived view of a plan."""
	current_progress: int
	heuristic_probability: int
	displayed_probability: int
	remaining_planned: int
	flags: list[str] = field(default_factory=list)

	@property
	def visible_flags(self) -> list[str]:
		return self.flags[:MAX_VISIBLE_FLAGS]

	def to_dict(self) -> dict:
		return {
			"currentProgress": self.current_progress,
			"heuristicProbability": self.heuristic_probability,
			"displayedProbability": self.displayed_probability,
			"remainingPlanned": self.remaining_planned,
			"flags": list(self.flags),
		}


def _collect_flags(plan: Plan) -> list[str]:
	flags = []
	if plan.start_date and plan.end_date and plan.start_date > plan.end_date:
		flags.append(FLAG_START_AFTER_END)

	for step in plan.steps:
		if not step.date:
			continue
		if plan.start_date and step.date < plan.start_date:
			flags.append(f'"{step.display_title}" is before plan start.')
		if plan.end_date and step.date > plan.end_date:
			flags.append(f'"{step.display_title}" is after plan end.')

	progresses = [s.progress for s in plan.steps]
	if any(progresses[i] < progresses[i - 1] for i in range(1, len(progresses))):
		flags.append(FLAG_PROGRESS_DECREASES)

	initial = plan.get_initial_step()
	if initial is not None and initial.progress != 0:
		flags.append(FLAG_INITIAL_PROGRESS)
	end = plan.get_end_step()
	if end is not None and end.progress != 100:
		flags.append(FLAG_END_PROGRESS)
	return flags


def compute_plan_stats(plan: Plan) -> PlanStats:
	"""
	Compute progress, success probability and checks for a plan.

	Current progress is the highest progress among concluded steps, not
	the last one. Every planned step other than the end step lowers the
	heuristic probability by 10 points, and the end step's own estimate
	caps the displayed value.
	"""
	concluded = [s for s in plan.steps if s.status == StepStatus.CONCLUDED]
	current_progress = max((s.progress for s in concluded), default=0)

	remaining_planned = len([
		s for s in plan.steps
		if s.status == StepStatus.PLANNED and s.role != StepRole.END
	])
	heuristic = int(clamp(100 - remaining_planned * PROBABILITY_PENALTY_PER_STEP))

	end = plan.get_end_step()
	end_probability = end.success_probability if end is not None else 100
	displayed = int(clamp(min(end_probability, heuristic)))

	return PlanStats(
		current_progress=current_progress,
		heuristic_probability=heuristic,
		displayed_probability=displayed,
		remaining_planned=remaining_planned,
		flags=_collect_flags(plan),
	)
