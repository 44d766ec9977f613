"""
Plan Store - SQLite-backed plan storage.

Features:
- CRUD operations for plans and their ordered steps
- Full step rewrite on every update (delete then reinsert, one transaction)
- Cascade delete of steps with their plan
- Last write wins; there is no version token
- One connection, one statement group at a time (store-wide lock)
"""

import asyncio
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

import aiosqlite

from .models import Plan, Step

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS plans (
	id TEXT PRIMARY KEY,
	title TEXT NOT NULL,
	start_date TEXT NOT NULL,
	end_date TEXT NOT NULL,
	created_at TEXT NOT NULL,
	updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS steps (
	id TEXT PRIMARY KEY,
	plan_id TEXT NOT NULL,
	type TEXT NOT NULL CHECK(type IN ('initial', 'intermediate', 'end')),
	action_title TEXT NOT NULL,
	action_description TEXT,
	date TEXT,
	progress INTEGER DEFAULT 0 CHECK(progress >= 0 AND progress <= 100),
	success_probability INTEGER DEFAULT 50 CHECK(success_probability >= 0 AND success_probability <= 100),
	status TEXT DEFAULT 'Planned' CHECK(status IN ('Planned', 'Concluded')),
	review TEXT,
	step_order INTEGER NOT NULL,
	created_at TEXT NOT NULL,
	updated_at TEXT NOT NULL,
	FOREIGN KEY (plan_id) REFERENCES plans(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_steps_plan_id ON steps(plan_id);
CREATE INDEX IF NOT EXISTS idx_steps_order ON steps(plan_id, step_order);
CREATE INDEX IF NOT EXISTS idx_plans_dates ON plans(start_date, end_date);
"""


class PlanNotFoundError(Exception):
	"""Raised when a plan is not found."""
	pass


class PlanExistsError(Exception):
	"""Raised when creating a plan whose id is already taken."""
	pass


def _step_from_row(row: aiosqlite.Row) -> Step:
	return Step(
		id=row["id"],
		role=row["type"],
		action_title=row["action_title"] or "",
		action_description=row["action_description"] or "",
		date=row["date"] or "",
		progress=row["progress"],
		success_probability=row["success_probability"],
		status=row["status"],
		review=row["review"] or "",
	)


class PlanStore:
	"""
	SQLite-backed plan storage.

	Usage:
		store = PlanStore("data/plans.db")
		await store.init()

		# Create a plan
		plan_id = await store.create_plan(plan)

		# Overwrite it (plan row updated, steps rewritten)
		await store.replace_plan(plan_id, edited)

		# Create-or-replace, as the editor does
		await store.save_plan(plan)
	"""

	def __init__(self, db_path: str):
		"""Initialize the plan store."""
		self.db_path = Path(db_path)
		self.db_path.parent.mkdir(parents=True, exist_ok=True)
		self._db: Optional[aiosqlite.Connection] = None
		# Transactions share the connection, so only one may be open
		self._lock = asyncio.Lock()

	async def init(self):
		"""Open the connection and create the schema."""
		self._db = await aiosqlite.connect(str(self.db_path))
		self._db.row_factory = aiosqlite.Row
		await self._db.execute("PRAGMA foreign_keys = ON")
		await self._db.executescript(SCHEMA)
		await self._db.commit()
		logger.info(f"Plan store initialized: {self.db_path}")

	async def close(self):
		"""Close the database connection."""
		if self._db:
			await self._db.close()
			self._db = None

	async def _conn(self) -> aiosqlite.Connection:
		if not self._db:
			await self.init()
		return self._db

	async def _load_steps(self, plan_id: str) -> list[Step]:
		db = await self._conn()
		async with db.execute(
			"SELECT * FROM steps WHERE plan_id = ? ORDER BY step_order ASC",
			(plan_id,)
		) as cursor:
			rows = await cursor.fetchall()
		return [_step_from_row(row) for row in rows]

	async def _plan_from_row(self, row: aiosqlite.Row) -> Plan:
		return Plan(
			id=row["id"],
			title=row["title"],
			start_date=row["start_date"],
			end_date=row["end_date"],
			steps=await self._load_steps(row["id"]),
		)

	async def _insert_steps(self, plan: Plan, now: str):
		await self._db.executemany(
			"""
			INSERT INTO steps (
				id, plan_id, type, action_title, action_description,
				date, progress, success_probability, status, review,
				step_order, created_at, updated_at
			) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
			""",
			[
				(
					step.id,
					plan.id,
					step.role.value,
					step.action_title,
					step.action_description,
					step.date,
					step.progress,
					step.success_probability,
					step.status.value,
					step.review,
					order,
					now,
					now,
				)
				for order, step in enumerate(plan.steps)
			]
		)

	async def list_plans(self) -> list[Plan]:
		"""
		List all plans with their steps.

		Returns:
			Plans, newest created first
		"""
		async with self._lock:
			db = await self._conn()
			async with db.execute(
				"SELECT * FROM plans ORDER BY created_at DESC, rowid DESC"
			) as cursor:
				rows = await cursor.fetchall()

			return [await self._plan_from_row(row) for row in rows]

	async def get_plan(self, plan_id: str) -> Optional[Plan]:
		"""
		Get a plan by ID.

		Returns:
			Plan object or None if not found
		"""
		async with self._lock:
			db = await self._conn()
			async with db.execute("SELECT * FROM plans WHERE id = ?", (plan_id,)) as cursor:
				row = await cursor.fetchone()

			if not row:
				return None

			return await self._plan_from_row(row)

	async def exists(self, plan_id: str) -> bool:
		async with self._lock:
			return await self._exists(plan_id)

	async def _exists(self, plan_id: str) -> bool:
		db = await self._conn()
		async with db.execute("SELECT 1 FROM plans WHERE id = ?", (plan_id,)) as cursor:
			return await cursor.fetchone() is not None

	async def create_plan(self, plan: Plan) -> str:
		"""
		Create a new plan with its steps.

		Args:
			plan: Plan object to create (the id is chosen by the caller)

		Returns:
			Plan ID

		Raises:
			PlanExistsError: If a plan with the same id already exists
		"""
		async with self._lock:
			await self._create(plan)
		return plan.id

	async def _create(self, plan: Plan):
		db = await self._conn()
		now = datetime.now().isoformat()

		try:
			await db.execute(
				"""
				INSERT INTO plans (id, title, start_date, end_date, created_at, updated_at)
				VALUES (?, ?, ?, ?, ?, ?)
				""",
				(plan.id, plan.title, plan.start_date, plan.end_date, now, now)
			)
			await self._insert_steps(plan, now)
			await db.commit()
		except sqlite3.IntegrityError as e:
			await db.rollback()
			raise PlanExistsError(f"Plan or step id already exists: {plan.id}") from e

		logger.info(f"Created plan {plan.id} with {len(plan.steps)} steps")

	async def replace_plan(self, plan_id: str, plan: Plan):
		"""
		Overwrite a plan: update its row, then delete and reinsert all steps.

		Args:
			plan_id: Plan ID to overwrite
			plan: Full plan contents

		Raises:
			PlanNotFoundError: If plan not found
			PlanExistsError: If a step id belongs to another plan
			ValueError: If the plan's id differs from plan_id
		"""
		if plan.id != plan_id:
			raise ValueError(f"Plan id mismatch: {plan.id} != {plan_id}")

		async with self._lock:
			await self._replace(plan)

	async def _replace(self, plan: Plan):
		db = await self._conn()
		now = datetime.now().isoformat()

		try:
			cursor = await db.execute(
				"""
				UPDATE plans SET title = ?, start_date = ?, end_date = ?, updated_at = ?
				WHERE id = ?
				""",
				(plan.title, plan.start_date, plan.end_date, now, plan.id)
			)
			if cursor.rowcount == 0:
				raise PlanNotFoundError(f"Plan not found: {plan.id}")

			await db.execute("DELETE FROM steps WHERE plan_id = ?", (plan.id,))
			await self._insert_steps(plan, now)
			await db.commit()
		except sqlite3.IntegrityError as e:
			await db.rollback()
			raise PlanExistsError(f"Step id already used by another plan: {plan.id}") from e
		except Exception:
			await db.rollback()
			raise

		logger.info(f"Replaced plan {plan.id} ({len(plan.steps)} steps)")

	async def save_plan(self, plan: Plan) -> str:
		"""Replace the plan if it exists, otherwise create it."""
		async with self._lock:
			if await self._exists(plan.id):
				await self._replace(plan)
			else:
				await self._create(plan)
		return plan.id

	async def delete_plan(self, plan_id: str) -> bool:
		"""
		Delete a plan; its steps go with it.

		Returns:
			True if a plan was deleted
		"""
		async with self._lock:
			db = await self._conn()
			cursor = await db.execute("DELETE FROM plans WHERE id = ?", (plan_id,))
			await db.commit()
		deleted = cursor.rowcount > 0
		logger.info(f"Deleted plan {plan_id}" if deleted else f"Delete skipped, no plan {plan_id}")
		return deleted

	async def count_plans(self) -> int:
		async with self._lock:
			db = await self._conn()
			async with db.execute("SELECT COUNT(*) FROM plans") as cursor:
				row = await cursor.fetchone()
		return row[0]
