"""
Step editing operations.

Each operation takes a plan and returns a new Plan; the input is never
modified. The initial and end steps keep their positions: they can't be
removed or moved, and their locked fields snap back after every update.
"""

import math

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from .factory import new_step
from .models import Plan, Step, StepRole, StepStatus
from .stats import clamp

MOVE_LEFT = -1
MOVE_RIGHT = 1
PROBABILITY_DECAY_PER_STEP = 8

PLAN_PATCH_FIELDS = frozenset({"title", "start_date", "end_date"})
IMMUTABLE_STEP_FIELDS = frozenset({"id", "role"})


class PlanEditError(ValueError):
	"""Raised when an edit is not allowed on a plan."""
	pass


class StepNotFoundError(PlanEditError):
	"""Raised when a plan has no step with the given id."""
	pass


class LockedStepError(PlanEditError):
	"""Raised when an edit targets the initial or end step."""
	pass


class InvalidInsertIndexError(PlanEditError):
	"""Raised when an insertion point is outside the plan's interior."""
	pass


class InvalidPatchError(PlanEditError):
	"""Raised when a field patch is malformed or out of range."""
	pass


def _alias_map(model: type) -> dict[str, str]:
	"""Map both attribute names and wire aliases to attribute names."""
	mapping = {}
	for name, info in model.model_fields.items():
		mapping[name] = name
		mapping[info.alias or to_camel(name)] = name
	return mapping


_STEP_FIELDS = _alias_map(Step)
_PLAN_FIELDS = _alias_map(Plan)


def _normalize_patch(patch: dict, fields: dict[str, str]) -> dict:
	normalized = {}
	for key, value in patch.items():
		if key not in fields:
			raise InvalidPatchError(f"Unknown field: {key}")
		normalized[fields[key]] = value
	return normalized


def _require_index(plan: Plan, step_id: str) -> int:
	index = plan.index_of(step_id)
	if index == -1:
		raise StepNotFoundError(f"Step not found: {step_id}")
	return index


def _with_steps(plan: Plan, steps: list[Step]) -> Plan:
	try:
		return Plan.model_validate({**plan.model_dump(exclude={"steps"}), "steps": steps})
	except ValidationError as e:
		raise PlanEditError(str(e)) from e


def insert_step_at(plan: Plan, index: int) -> Plan:
	"""
	Insert a new intermediate step at ``index``.

	Only interior positions are accepted (``0 < index < len(steps)``).
	The new step's progress is the midpoint of its neighbours, and its
	success probability drops by 8 points for every intermediate step the
	plan already has.
	"""
	count = len(plan.steps)
	if not 0 < index < count:
		raise InvalidInsertIndexError(
			f"Insert index {index} outside interior range 1..{count - 1}"
		)

	left = plan.steps[index - 1].progress if index - 1 >= 0 else 0
	right = plan.steps[index].progress if index < count else 100
	# Round half up so 22.5 becomes 23
	midpoint = int(clamp(math.floor((left + right) / 2 + 0.5)))
	probability = int(clamp(100 - (count - 2) * PROBABILITY_DECAY_PER_STEP))

	steps = list(plan.steps)
	steps.insert(index, new_step(progress=midpoint, success_probability=probability))
	return _with_steps(plan, steps)


def add_step_before_end(plan: Plan) -> Plan:
	"""Append an intermediate step just before the end step."""
	return insert_step_at(plan, len(plan.steps) - 1)


def remove_step(plan: Plan, step_id: str) -> Plan:
	"""Remove an intermediate step. The initial and end steps are refused."""
	index = _require_index(plan, step_id)
	step = plan.steps[index]
	if step.is_boundary:
		raise LockedStepError(f"Cannot remove the {step.role.value} step")

	steps = [s for s in plan.steps if s.id != step_id]
	return _with_steps(plan, steps)


def move_step(plan: Plan, step_id: str, direction: int) -> Plan:
	"""
	Swap an intermediate step with its left (-1) or right (+1) neighbour.

	Boundary steps never move, and a move that would land on index 0 or
	the last index leaves the plan unchanged.
	"""
	if direction not in (MOVE_LEFT, MOVE_RIGHT):
		raise PlanEditError(f"Direction must be -1 or 1, got {direction}")

	index = _require_index(plan, step_id)
	if plan.steps[index].is_boundary:
		return plan

	target = index + direction
	if target < 1 or target > len(plan.steps) - 2:
		return plan

	steps = list(plan.steps)
	steps[index], steps[target] = steps[target], steps[index]
	return _with_steps(plan, steps)


def update_step(plan: Plan, step_id: str, patch: dict) -> Plan:
	"""
	Apply a partial update to one step.

	Keys may be attribute names or camelCase wire names. Locked fields are
	forced back after the merge: initial progress stays 0, end progress
	and end success probability stay 100.
	"""
	index = _require_index(plan, step_id)
	step = plan.steps[index]
	fields = _normalize_patch(patch, _STEP_FIELDS)

	for name in IMMUTABLE_STEP_FIELDS & fields.keys():
		if fields[name] != getattr(step, name):
			raise InvalidPatchError(f"Step {name} cannot be changed")
		del fields[name]

	if step.role == StepRole.INITIAL and "progress" in fields:
		fields["progress"] = 0
	if step.role == StepRole.END:
		if "progress" in fields:
			fields["progress"] = 100
		if "success_probability" in fields:
			fields["success_probability"] = 100

	try:
		updated = Step.model_validate({**step.model_dump(), **fields})
	except ValidationError as e:
		raise InvalidPatchError(str(e)) from e

	steps = list(plan.steps)
	steps[index] = updated
	return _with_steps(plan, steps)


def update_plan(plan: Plan, patch: dict) -> Plan:
	"""Merge top-level fields (title, start date, end date) into a plan."""
	fields = _normalize_patch(patch, _PLAN_FIELDS)
	rejected = fields.keys() - PLAN_PATCH_FIELDS
	if rejected:
		raise InvalidPatchError(f"Plan fields not editable: {', '.join(sorted(rejected))}")

	try:
		return Plan.model_validate({**plan.model_dump(exclude={"steps"}), **fields, "steps": plan.steps})
	except ValidationError as e:
		raise InvalidPatchError(str(e)) from e


def conclude_engagement(plan: Plan) -> Plan:
	"""Mark the end step as concluded, keeping any review already written."""
	end = plan.get_end_step()
	if end is None:
		raise PlanEditError("Plan has no end step")
	return update_step(plan, end.id, {"status": StepStatus.CONCLUDED, "review": end.review})
