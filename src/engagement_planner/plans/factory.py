"""Constructors for fresh plans and steps."""

import uuid
from datetime import date, timedelta
from typing import Optional

from .models import Plan, Step, StepRole, StepStatus

PLAN_DURATION_DAYS = 14
BLANK_PLAN_TITLE = "New Engagement Plan"


def new_id(prefix: str = "id") -> str:
	"""Generate an opaque identifier such as ``step_3f2a9c1d0b7e``."""
	return f"{prefix}_{uuid.uuid4().hex[:12]}"


def new_step(**overrides) -> Step:
	"""
	Create an intermediate step with default values.

	Any Step field (by attribute name or wire alias) can be overridden.
	A fresh id is generated unless one is supplied.
	"""
	data = {
		"id": new_id("step"),
		"role": StepRole.INTERMEDIATE,
		"action_title": "",
		"action_description": "",
		"date": "",
		"progress": 50,
		"success_probability": 80,
		"status": StepStatus.PLANNED,
		"review": "",
	}
	data.update(overrides)
	return Step.model_validate(data)


def _plan_dates(today: Optional[date]) -> tuple[date, date]:
	start = today or date.today()
	return start, start + timedelta(days=PLAN_DURATION_DAYS)


def new_blank_plan(title: str = BLANK_PLAN_TITLE, today: Optional[date] = None) -> Plan:
	"""Create a two-step plan running from today to two weeks out."""
	start, end = _plan_dates(today)
	return Plan(
		id=new_id("plan"),
		title=title,
		start_date=start.isoformat(),
		end_date=end.isoformat(),
		steps=[
			new_step(
				role=StepRole.INITIAL,
				date=start.isoformat(),
				progress=0,
				success_probability=50,
			),
			new_step(
				role=StepRole.END,
				date=end.isoformat(),
				progress=100,
				success_probability=100,
			),
		],
	)


def new_example_plan(today: Optional[date] = None) -> Plan:
	"""Create the illustrative plan used to seed an empty store."""
	start, end = _plan_dates(today)

	def day(offset: int) -> str:
		return (start + timedelta(days=offset)).isoformat()

	return Plan(
		id=new_id("plan"),
		title="Example Engagement Plan",
		start_date=start.isoformat(),
		end_date=end.isoformat(),
		steps=[
			new_step(
				role=StepRole.INITIAL,
				action_title="Kickoff call",
				action_description=(
					"Hold a kickoff call led by Account Lead with client sponsor to align objectives, "
					"stakeholders, and cadence. Outcome: shared understanding + confirm next actions."
				),
				date=start.isoformat(),
				progress=0,
				success_probability=60,
			),
			new_step(
				action_title="Stakeholder mapping",
				action_description=(
					"Delivery Lead maps stakeholders and decision makers; validate with client sponsor. "
					"Outcome: clear ownership and escalation paths."
				),
				date=day(2),
				progress=20,
				success_probability=70,
			),
			new_step(
				action_title="Requirements workshop",
				action_description=(
					"Facilitate workshop with client SMEs; document requirements and constraints. "
					"Outcome: reduce ambiguity; increase probability via aligned scope."
				),
				date=day(5),
				progress=45,
				success_probability=75,
			),
			new_step(
				action_title="Prototype + review",
				action_description=(
					"Build prototype; review with sponsor; capture changes. "
					"Outcome: validate approach; increase probability via early feedback."
				),
				date=day(9),
				progress=70,
				success_probability=85,
			),
			new_step(
				role=StepRole.END,
				action_title="Engagement concluded",
				action_description=(
					"Final state achieved: success criteria met, handover completed, "
					"and closeout report signed off."
				),
				date=end.isoformat(),
				progress=100,
				success_probability=100,
			),
		],
	)
