"""
Plan Editor - In-memory working copy of all plans for one editing session.

Responsibilities:
- Hold the plan collection, the active plan and the sidebar search query
- Apply step/plan edits locally and notify subscribers right away
- Persist every edited plan in the background, one write at a time per plan
- Track per-plan sync status so failed writes can be retried

Writes are optimistic: the in-memory plan is the visible truth even when
the store rejects or never receives the write.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .plans import editing
from .plans.editing import PlanEditError
from .plans.factory import new_blank_plan, new_example_plan
from .plans.models import Plan
from .plans.stats import PlanStats, compute_plan_stats
from .plans.store import PlanStore

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class SyncStatus(str, Enum):
	"""Durability of a plan's latest in-memory state."""
	SYNCED = "synced"
	PENDING = "pending"
	FAILED = "failed"


@dataclass
class SyncState:
	"""Sync bookkeeping for one plan."""
	status: SyncStatus = SyncStatus.SYNCED
	generation: int = 0
	last_error: Optional[str] = None


class PlanEditor:
	"""
	Observable editing session over a PlanStore.

	Mutating methods are synchronous and must be called from a running
	event loop; they schedule the write and return the new plan (or None
	when the edit was rejected). Use ``flush()`` to wait for writes.
	"""

	def __init__(self, store: PlanStore):
		self.store = store
		self.plans: list[Plan] = []
		self.active_plan_id: Optional[str] = None
		self.sidebar_query = ""
		self.sync: dict[str, SyncState] = {}
		self._listeners: list[Listener] = []
		self._pending: set[asyncio.Task] = set()
		self._locks: dict[str, asyncio.Lock] = {}

	# -- subscriptions --

	def subscribe(self, listener: Listener) -> Callable[[], None]:
		"""Register a change listener. Returns a function that unregisters it."""
		self._listeners.append(listener)

		def unsubscribe() -> None:
			if listener in self._listeners:
				self._listeners.remove(listener)

		return unsubscribe

	def notify(self) -> None:
		for listener in list(self._listeners):
			try:
				listener()
			except Exception:
				logger.exception("Plan editor listener failed")

	# -- loading --

	async def load(self) -> None:
		"""
		Load all plans from the store.

		An empty store is seeded with the example plan. If the store can't
		be read, the example plan is kept in memory only and marked failed.
		"""
		try:
			plans = await self.store.list_plans()
		except Exception as e:
			logger.error(f"Failed to load plans: {e}")
			example = new_example_plan()
			self.plans = [example]
			self.sync[example.id] = SyncState(status=SyncStatus.FAILED, last_error=str(e))
		else:
			if not plans:
				example = new_example_plan()
				plans = [example]
				self._enqueue_save(example)
				await self.flush()
			self.plans = plans
			for plan in plans:
				self.sync.setdefault(plan.id, SyncState())

		self.active_plan_id = self.plans[0].id if self.plans else None
		self.notify()

	# -- queries --

	def get_plan(self, plan_id: str) -> Optional[Plan]:
		return next((p for p in self.plans if p.id == plan_id), None)

	def get_active_plan(self) -> Optional[Plan]:
		"""The active plan, falling back to the first plan."""
		plan = self.get_plan(self.active_plan_id) if self.active_plan_id else None
		if plan is None and self.plans:
			return self.plans[0]
		return plan

	def get_filtered_plans(self) -> list[Plan]:
		"""Plans whose title contains the sidebar query, case-insensitively."""
		query = self.sidebar_query.strip().lower()
		if not query:
			return list(self.plans)
		return [p for p in self.plans if query in p.title.lower()]

	def active_stats(self) -> Optional[PlanStats]:
		plan = self.get_active_plan()
		return compute_plan_stats(plan) if plan else None

	def sync_status(self, plan_id: str) -> Optional[SyncStatus]:
		state = self.sync.get(plan_id)
		return state.status if state else None

	# -- selection --

	def set_active_plan_id(self, plan_id: Optional[str]) -> None:
		self.active_plan_id = plan_id
		self.notify()

	def set_sidebar_query(self, query: str) -> None:
		self.sidebar_query = query
		self.notify()

	# -- collection edits --

	def create_plan(self, title: Optional[str] = None) -> Plan:
		"""Create a blank plan, put it first and make it active."""
		plan = new_blank_plan(title) if title else new_blank_plan()
		self.plans = [plan, *self.plans]
		self.active_plan_id = plan.id
		self._enqueue_save(plan)
		self.notify()
		return plan

	def delete_plan(self, plan_id: str) -> bool:
		"""Drop a plan from memory and the store."""
		if self.get_plan(plan_id) is None:
			return False

		self.plans = [p for p in self.plans if p.id != plan_id]
		self.sync.pop(plan_id, None)
		if self.active_plan_id == plan_id:
			self.active_plan_id = self.plans[0].id if self.plans else None
		self._spawn(self._delete(plan_id))
		self.notify()
		return True

	# -- active plan edits --

	def update_active_plan(self, patch: dict) -> Optional[Plan]:
		return self._apply(lambda plan: editing.update_plan(plan, patch))

	def update_step(self, step_id: str, patch: dict) -> Optional[Plan]:
		return self._apply(lambda plan: editing.update_step(plan, step_id, patch))

	def insert_step_at(self, index: int) -> Optional[Plan]:
		return self._apply(lambda plan: editing.insert_step_at(plan, index))

	def add_step_before_end(self) -> Optional[Plan]:
		return self._apply(editing.add_step_before_end)

	def remove_step(self, step_id: str) -> Optional[Plan]:
		return self._apply(lambda plan: editing.remove_step(plan, step_id))

	def move_step(self, step_id: str, direction: int) -> Optional[Plan]:
		return self._apply(lambda plan: editing.move_step(plan, step_id, direction))

	def conclude_engagement(self) -> Optional[Plan]:
		return self._apply(editing.conclude_engagement)

	def _apply(self, edit: Callable[[Plan], Plan]) -> Optional[Plan]:
		plan = self.get_active_plan()
		if plan is None:
			return None

		try:
			updated = edit(plan)
		except PlanEditError as e:
			logger.warning(f"Edit rejected on plan {plan.id}: {e}")
			return None

		if updated is plan:
			return plan

		self.plans = [updated if p.id == plan.id else p for p in self.plans]
		self._enqueue_save(updated)
		self.notify()
		return updated

	# -- persistence --

	def retry_failed(self) -> int:
		"""Re-queue the current state of every plan whose last write failed."""
		failed = [p for p in self.plans if self.sync_status(p.id) == SyncStatus.FAILED]
		for plan in failed:
			self._enqueue_save(plan)
		return len(failed)

	async def flush(self) -> None:
		"""Wait until every scheduled write has finished."""
		while self._pending:
			await asyncio.gather(*list(self._pending), return_exceptions=True)

	def _enqueue_save(self, plan: Plan) -> None:
		state = self.sync.setdefault(plan.id, SyncState())
		state.generation += 1
		state.status = SyncStatus.PENDING
		self._spawn(self._save(plan, state.generation))

	def _spawn(self, coro) -> None:
		task = asyncio.get_running_loop().create_task(coro)
		self._pending.add(task)
		task.add_done_callback(self._pending.discard)

	def _lock_for(self, plan_id: str) -> asyncio.Lock:
		return self._locks.setdefault(plan_id, asyncio.Lock())

	async def _save(self, plan: Plan, generation: int) -> None:
		async with self._lock_for(plan.id):
			try:
				await self.store.save_plan(plan)
			except Exception as e:
				logger.error(f"Failed to save plan {plan.id}: {e}")
				state = self.sync.get(plan.id)
				if state is not None:
					state.status = SyncStatus.FAILED
					state.last_error = str(e)
				return

		state = self.sync.get(plan.id)
		if state is not None and state.generation == generation:
			state.status = SyncStatus.SYNCED
			state.last_error = None

	async def _delete(self, plan_id: str) -> None:
		async with self._lock_for(plan_id):
			try:
				await self.store.delete_plan(plan_id)
			except Exception as e:
				logger.error(f"Failed to delete plan {plan_id}: {e}")
		self._locks.pop(plan_id, None)
