"""JSON API endpoints for plans."""

from __future__ import annotations

import logging

from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse

from ..plans.models import Plan
from ..plans.stats import compute_plan_stats
from ..plans.store import PlanExistsError, PlanNotFoundError, PlanStore
from .templates import INDEX_HTML

logger = logging.getLogger(__name__)


def get_store(request: Request) -> PlanStore:
	"""Get the PlanStore from app state."""
	return request.app.state.store


def _error(message: str, status_code: int, details: list | None = None) -> JSONResponse:
	body: dict = {"error": message}
	if details is not None:
		body["details"] = details
	return JSONResponse(body, status_code=status_code)


def _not_found(plan_id: str) -> JSONResponse:
	return _error(f"Plan not found: {plan_id}", 404)


async def _parse_plan(request: Request) -> Plan | JSONResponse:
	"""Validate the request body as a full Plan, or build a 400 response."""
	try:
		body = await request.json()
	except ValueError:
		# JSONDecodeError and UnicodeDecodeError
		return _error("Request body is not valid JSON", 400)

	try:
		return Plan.model_validate(body)
	except ValidationError as e:
		details = [
			{"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
			for err in e.errors()
		]
		logger.warning(f"Rejected plan body with {len(details)} validation error(s)")
		return _error("Invalid plan", 400, details)


async def index(request: Request) -> HTMLResponse:
	"""Serve the plan overview page."""
	return HTMLResponse(INDEX_HTML)


async def api_list_plans(request: Request) -> JSONResponse:
	"""All plans with embedded steps, newest first."""
	plans = await get_store(request).list_plans()
	return JSONResponse([p.to_wire() for p in plans])


async def api_get_plan(request: Request) -> JSONResponse:
	"""A single plan, or 404."""
	plan_id = request.path_params["id"]
	plan = await get_store(request).get_plan(plan_id)
	if plan is None:
		return _not_found(plan_id)
	return JSONResponse(plan.to_wire())


async def api_plan_stats(request: Request) -> JSONResponse:
	"""Derived progress, probability and checks for a stored plan."""
	plan_id = request.path_params["id"]
	plan = await get_store(request).get_plan(plan_id)
	if plan is None:
		return _not_found(plan_id)
	return JSONResponse(compute_plan_stats(plan).to_dict())


async def api_create_plan(request: Request) -> JSONResponse:
	"""Create a plan from a full plan body; the caller chooses the id."""
	parsed = await _parse_plan(request)
	if isinstance(parsed, JSONResponse):
		return parsed

	try:
		plan_id = await get_store(request).create_plan(parsed)
	except PlanExistsError as e:
		return _error(str(e), 409)
	return JSONResponse({"success": True, "id": plan_id})


async def api_replace_plan(request: Request) -> JSONResponse:
	"""Overwrite a plan and all of its steps."""
	plan_id = request.path_params["id"]
	parsed = await _parse_plan(request)
	if isinstance(parsed, JSONResponse):
		return parsed
	if parsed.id != plan_id:
		return _error(f"Body id {parsed.id} does not match path id {plan_id}", 400)

	try:
		await get_store(request).replace_plan(plan_id, parsed)
	except PlanNotFoundError:
		return _not_found(plan_id)
	except PlanExistsError as e:
		return _error(str(e), 409)
	return JSONResponse({"success": True})


async def api_delete_plan(request: Request) -> JSONResponse:
	"""Delete a plan and its steps."""
	plan_id = request.path_params["id"]
	await get_store(request).delete_plan(plan_id)
	return JSONResponse({"success": True})
