"""CLI for engagement-planner: serve, list, show, new, delete, seed and doctor commands."""

import argparse
import asyncio
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import Awaitable, Callable, TypeVar

from rich.console import Console

from .config import load_config
from .editor import PlanEditor, SyncState, SyncStatus
from .logging_config import get_logger, setup_logging
from .plans.factory import new_blank_plan
from .plans.models import Plan
from .plans.store import PlanStore
from .visualizer import render_plan_progress, render_plan_summary, render_plan_table

logger = get_logger("cli")

T = TypeVar("T")


def _db_path(args: argparse.Namespace) -> str:
	db = getattr(args, "db", None)
	return db or str(load_config().db_path)


def _run_with_store(args: argparse.Namespace, fn: Callable[[PlanStore], Awaitable[T]]) -> T:
	"""Open the plan store, run ``fn`` against it and close it again."""

	async def runner() -> T:
		store = PlanStore(_db_path(args))
		await store.init()
		try:
			return await fn(store)
		finally:
			await store.close()

	return asyncio.run(runner())


def _filter_plans(plans: list[Plan], query: str) -> list[Plan]:
	query = (query or "").strip().lower()
	if not query:
		return plans
	return [p for p in plans if query in p.title.lower()]


def cmd_serve(args: argparse.Namespace) -> None:
	"""Run the web server."""
	from .web import run_web_server

	config = load_config()
	run_web_server(
		host=args.host or config.host,
		port=args.port or config.port,
		db_path=_db_path(args),
		open_browser=args.open,
	)


def cmd_list(args: argparse.Namespace) -> None:
	"""List plans with headline stats."""
	plans = _run_with_store(args, lambda store: store.list_plans())
	render_plan_table(_filter_plans(plans, getattr(args, "query", "")), console=Console())


def cmd_show(args: argparse.Namespace) -> None:
	"""Show one plan as a step tree, or as a summary panel."""
	plan = _run_with_store(args, lambda store: store.get_plan(args.plan_id))
	if plan is None:
		print(f"No plan '{args.plan_id}' found.")
		sys.exit(1)

	console = Console()
	if getattr(args, "summary", False):
		render_plan_summary(plan, console=console)
	else:
		render_plan_progress(plan, console=console)


def cmd_new(args: argparse.Namespace) -> None:
	"""Create a blank plan."""
	title = getattr(args, "title", None)
	plan = new_blank_plan(title) if title else new_blank_plan()
	_run_with_store(args, lambda store: store.create_plan(plan))
	print(f"Created plan {plan.id}: {plan.title}")


def cmd_delete(args: argparse.Namespace) -> None:
	"""Delete a plan and its steps."""
	deleted = _run_with_store(args, lambda store: store.delete_plan(args.plan_id))
	if not deleted:
		print(f"No plan '{args.plan_id}' found.")
		sys.exit(1)
	print(f"Deleted plan {args.plan_id}")


def cmd_seed(args: argparse.Namespace) -> None:
	"""Seed the example plan when the store is empty."""

	async def seed(store: PlanStore) -> tuple[int, Plan, SyncState]:
		before = await store.count_plans()
		editor = PlanEditor(store)
		await editor.load()
		await editor.flush()
		plan = editor.plans[0]
		return before, plan, editor.sync[plan.id]

	before, plan, state = _run_with_store(args, seed)
	if before:
		print(f"Store already has {before} plan(s); nothing seeded.")
		return
	if state.status != SyncStatus.SYNCED:
		logger.error(f"Seeding example plan {plan.id} failed: {state.last_error}")
		print(f"[FAIL] Could not seed example plan: {state.last_error}")
		sys.exit(1)
	print(f"Seeded example plan {plan.id}")


def cmd_doctor(args: argparse.Namespace) -> None:
	"""Print configuration and check the plan database."""
	config = load_config()
	try:
		version = pkg_version("engagement-planner")
	except PackageNotFoundError:
		version = "unknown"

	print(f"engagement-planner {version}")
	print(f"Config dir: {config.config_dir}")
	print(f"Data dir:   {config.data_dir}")
	print(f"Database:   {_db_path(args)}")
	print(f"Logs:       {config.log_dir}")

	try:
		count = _run_with_store(args, lambda store: store.count_plans())
	except Exception as e:
		logger.error(f"Plan database check failed: {e}")
		print(f"[FAIL] Plan database: {e}")
		sys.exit(1)
	print(f"[OK] Plan database ({count} plan(s))")


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="engagement-planner",
		description="Track engagement plans: steps, progress and success probability",
	)
	parser.add_argument("--db", type=str, default=None, help="Plan database path (default: from config)")
	parser.add_argument("--log-level", type=str, default=None, help="DEBUG, INFO, WARNING or ERROR")
	subparsers = parser.add_subparsers(dest="command")

	# serve
	serve_parser = subparsers.add_parser("serve", help="Run the web server")
	serve_parser.add_argument("--host", type=str, default=None, help="Bind address")
	serve_parser.add_argument("--port", type=int, default=None, help="Server port")
	serve_parser.add_argument("--open", action="store_true", help="Open a browser window")
	serve_parser.set_defaults(func=cmd_serve)

	# list
	list_parser = subparsers.add_parser("list", help="List plans")
	list_parser.add_argument("--query", type=str, default="", help="Filter by title substring")
	list_parser.set_defaults(func=cmd_list)

	# show
	show_parser = subparsers.add_parser("show", help="Show a plan")
	show_parser.add_argument("plan_id", help="Plan ID")
	show_parser.add_argument("--summary", action="store_true", help="Show stats panel instead of tree")
	show_parser.set_defaults(func=cmd_show)

	# new
	new_parser = subparsers.add_parser("new", help="Create a blank plan")
	new_parser.add_argument("--title", type=str, default=None, help="Plan title")
	new_parser.set_defaults(func=cmd_new)

	# delete
	delete_parser = subparsers.add_parser("delete", help="Delete a plan")
	delete_parser.add_argument("plan_id", help="Plan ID")
	delete_parser.set_defaults(func=cmd_delete)

	# seed
	seed_parser = subparsers.add_parser("seed", help="Insert the example plan into an empty store")
	seed_parser.set_defaults(func=cmd_seed)

	# doctor
	doctor_parser = subparsers.add_parser("doctor", help="Health check")
	doctor_parser.set_defaults(func=cmd_doctor)

	return parser


def main() -> None:
	"""CLI entry point."""
	parser = build_parser()
	args = parser.parse_args()

	if not args.command:
		parser.print_help()
		sys.exit(1)

	config = load_config()
	setup_logging(level=args.log_level or config.log_level, log_dir=config.log_dir)
	args.func(args)
