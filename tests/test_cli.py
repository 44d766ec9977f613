"""Tests for the command-line interface."""

import argparse
import asyncio
from pathlib import Path

import pytest

from engagement_planner.cli import (
	build_parser,
	cmd_delete,
	cmd_doctor,
	cmd_list,
	cmd_new,
	cmd_seed,
	cmd_show,
)
from engagement_planner.plans.store import PlanStore

from .helpers import FlakyPlanStore, make_plan


def _args(tmp_path: Path, **kwargs) -> argparse.Namespace:
	return argparse.Namespace(db=str(tmp_path / "plans.db"), **kwargs)


def _store_plans(db_path: str, *plans) -> None:
	async def run():
		store = PlanStore(db_path)
		await store.init()
		try:
			for plan in plans:
				await store.create_plan(plan)
		finally:
			await store.close()

	asyncio.run(run())


def _count(db_path: str) -> int:
	async def run():
		store = PlanStore(db_path)
		try:
			return await store.count_plans()
		finally:
			await store.close()

	return asyncio.run(run())


class TestParser:

	def test_subcommands(self):
		parser = build_parser()
		args = parser.parse_args(["--db", "x.db", "show", "plan-1", "--summary"])
		assert args.db == "x.db"
		assert args.plan_id == "plan-1"
		assert args.summary
		assert args.func is cmd_show

	def test_serve_options(self):
		args = build_parser().parse_args(["serve", "--port", "9000", "--open"])
		assert args.port == 9000
		assert args.open
		assert args.host is None

	def test_no_command(self):
		args = build_parser().parse_args([])
		assert args.command is None


class TestPlanCommands:

	def test_new_then_list(self, tmp_path: Path, capsys):
		cmd_new(_args(tmp_path, title="Acme"))
		out = capsys.readouterr().out
		assert "Created plan plan_" in out
		assert out.strip().endswith(": Acme")

		cmd_list(_args(tmp_path, query=""))
		out = capsys.readouterr().out
		assert "Engagement Plans" in out
		assert "Acme" in out

	def test_list_empty(self, tmp_path: Path, capsys):
		cmd_list(_args(tmp_path, query=""))
		assert "No plans found." in capsys.readouterr().out

	def test_list_query_filters(self, tmp_path: Path, capsys):
		cmd_new(_args(tmp_path, title="Acme"))
		capsys.readouterr()
		cmd_list(_args(tmp_path, query="globex"))
		assert "No plans found." in capsys.readouterr().out

	def test_show_tree_and_summary(self, tmp_path: Path, capsys):
		db = str(tmp_path / "plans.db")
		_store_plans(db, make_plan(title="Acme"))

		cmd_show(_args(tmp_path, plan_id="plan-test", summary=False))
		out = capsys.readouterr().out
		assert "Initial Step" in out
		assert "End Step" in out

		cmd_show(_args(tmp_path, plan_id="plan-test", summary=True))
		out = capsys.readouterr().out
		assert "Plan: plan-test" in out
		assert "70%" in out

	def test_show_missing(self, tmp_path: Path, capsys):
		with pytest.raises(SystemExit) as exc:
			cmd_show(_args(tmp_path, plan_id="missing", summary=False))
		assert exc.value.code == 1
		assert "No plan 'missing' found." in capsys.readouterr().out

	def test_delete(self, tmp_path: Path, capsys):
		db = str(tmp_path / "plans.db")
		_store_plans(db, make_plan())

		cmd_delete(_args(tmp_path, plan_id="plan-test"))
		assert "Deleted plan plan-test" in capsys.readouterr().out
		assert _count(db) == 0

		with pytest.raises(SystemExit):
			cmd_delete(_args(tmp_path, plan_id="plan-test"))


class TestSeed:

	def test_seeds_empty_store(self, tmp_path: Path, capsys):
		cmd_seed(_args(tmp_path))
		assert "Seeded example plan" in capsys.readouterr().out
		assert _count(str(tmp_path / "plans.db")) == 1

	def test_leaves_existing_plans_alone(self, tmp_path: Path, capsys):
		_store_plans(str(tmp_path / "plans.db"), make_plan())
		cmd_seed(_args(tmp_path))
		assert "Store already has 1 plan(s); nothing seeded." in capsys.readouterr().out
		assert _count(str(tmp_path / "plans.db")) == 1

	def test_reports_failed_write(self, tmp_path: Path, capsys, monkeypatch):
		monkeypatch.setattr(
			"engagement_planner.cli.PlanStore",
			lambda path: FlakyPlanStore(path, fail_writes=True),
		)
		with pytest.raises(SystemExit) as exc:
			cmd_seed(_args(tmp_path))

		assert exc.value.code == 1
		out = capsys.readouterr().out
		assert "[FAIL] Could not seed example plan: disk I/O error" in out
		assert "Seeded example plan" not in out
		assert _count(str(tmp_path / "plans.db")) == 0


def test_doctor(tmp_path: Path, capsys, monkeypatch):
	monkeypatch.setenv("ENGAGEMENT_PLANNER_DATA_DIR", str(tmp_path / "data"))
	monkeypatch.setenv("ENGAGEMENT_PLANNER_CONFIG_DIR", str(tmp_path / "config"))

	cmd_doctor(_args(tmp_path))
	out = capsys.readouterr().out
	assert "engagement-planner" in out
	assert "[OK] Plan database (0 plan(s))" in out
