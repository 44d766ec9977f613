"""
Plan Models - Pydantic schemas for engagement plans.

A plan is a titled, dated sequence of steps. The first step is always the
initial step and the last one the end step; any number of intermediate
steps sit between them.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

ISO_DATE_PATTERN = r"^(\d{4}-\d{2}-\d{2})?$"


class StepRole(str, Enum):
	"""Fixed position/semantics of a step within its plan."""
	INITIAL = "initial"
	INTERMEDIATE = "intermediate"
	END = "end"


class StepStatus(str, Enum):
	"""Status of a step."""
	PLANNED = "Planned"
	CONCLUDED = "Concluded"


class _CamelModel(BaseModel):
	"""Base model serialized with camelCase keys on the wire."""
	model_config = ConfigDict(
		alias_generator=to_camel,
		populate_by_name=True,
	)

	def to_wire(self) -> dict:
		"""Dump to the JSON shape used by the REST API."""
		return self.model_dump(mode="json", by_alias=True)


class Step(_CamelModel):
	"""A single action within a plan."""
	id: str = Field(description="Unique step identifier")
	role: StepRole = Field(default=StepRole.INTERMEDIATE, alias="type")
	action_title: str = Field(default="")
	action_description: str = Field(default="")
	date: str = Field(default="", pattern=ISO_DATE_PATTERN, description="YYYY-MM-DD or empty")
	progress: int = Field(default=50, ge=0, le=100)
	success_probability: int = Field(default=80, ge=0, le=100)
	status: StepStatus = Field(default=StepStatus.PLANNED)
	review: str = Field(default="", description="Only meaningful once concluded")

	@property
	def is_boundary(self) -> bool:
		return self.role != StepRole.INTERMEDIATE

	@property
	def display_title(self) -> str:
		return self.action_title or "(Untitled step)"


class Plan(_CamelModel):
	"""
	An engagement plan.

	Dates are ISO strings and compare lexicographically. The steps list
	always starts with the initial step and ends with the end step.
	"""
	id: str = Field(description="Unique plan identifier")
	title: str = Field(default="")
	start_date: str = Field(default="", pattern=ISO_DATE_PATTERN)
	end_date: str = Field(default="", pattern=ISO_DATE_PATTERN)
	steps: list[Step] = Field(min_length=2)

	@model_validator(mode="after")
	def _check_boundary_steps(self) -> "Plan":
		roles = [s.role for s in self.steps]
		if roles[0] != StepRole.INITIAL:
			raise ValueError("first step must have role 'initial'")
		if roles[-1] != StepRole.END:
			raise ValueError("last step must have role 'end'")
		if roles.count(StepRole.INITIAL) != 1 or roles.count(StepRole.END) != 1:
			raise ValueError("a plan has exactly one 'initial' and one 'end' step")
		ids = [s.id for s in self.steps]
		if len(set(ids)) != len(ids):
			raise ValueError("step ids must be unique within a plan")
		return self

	def get_initial_step(self) -> Step | None:
		return next((s for s in self.steps if s.role == StepRole.INITIAL), None)

	def get_end_step(self) -> Step | None:
		return next((s for s in self.steps if s.role == StepRole.END), None)

	def index_of(self, step_id: str) -> int:
		"""Position of a step, or -1 when the plan has no such step."""
		for i, step in enumerate(self.steps):
			if step.id == step_id:
				return i
		return -1
