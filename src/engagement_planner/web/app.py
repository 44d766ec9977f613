"""Starlette app with route assembly."""

from __future__ import annotations

import contextlib
import logging

from starlette.applications import Starlette
from starlette.routing import Route

from ..plans.store import PlanStore
from .api import (
	api_create_plan,
	api_delete_plan,
	api_get_plan,
	api_list_plans,
	api_plan_stats,
	api_replace_plan,
	index,
)

logger = logging.getLogger(__name__)


def build_app(db_path: str = "") -> Starlette:
	"""Build and return the Starlette ASGI app."""
	if not db_path:
		from ..config import get_config
		db_path = str(get_config().db_path)

	store = PlanStore(db_path)

	@contextlib.asynccontextmanager
	async def lifespan(app: Starlette):
		await store.init()
		try:
			yield
		finally:
			await store.close()
			logger.info("Plan store closed")

	routes = [
		Route("/", index),
		Route("/api/plans", api_list_plans, methods=["GET"]),
		Route("/api/plans", api_create_plan, methods=["POST"]),
		Route("/api/plans/{id}", api_get_plan, methods=["GET"]),
		Route("/api/plans/{id}", api_replace_plan, methods=["PUT"]),
		Route("/api/plans/{id}", api_delete_plan, methods=["DELETE"]),
		Route("/api/plans/{id}/stats", api_plan_stats, methods=["GET"]),
	]

	app = Starlette(routes=routes, lifespan=lifespan)
	app.state.store = store
	return app
