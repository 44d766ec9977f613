"""Tests for the REST API and overview page."""

from pathlib import Path

import pytest
from starlette.testclient import TestClient

from engagement_planner.plans.editing import insert_step_at, update_step
from engagement_planner.web.app import build_app

from .helpers import make_plan, step_ids


@pytest.fixture
def client(tmp_path: Path):
	app = build_app(db_path=str(tmp_path / "plans.db"))
	with TestClient(app) as client:
		yield client


def _create(client: TestClient, **kwargs) -> dict:
	body = make_plan(**kwargs).to_wire()
	resp = client.post("/api/plans", json=body)
	assert resp.status_code == 200
	return body


class TestIndex:

	def test_index_page(self, client: TestClient):
		resp = client.get("/")
		assert resp.status_code == 200
		assert "text/html" in resp.headers["content-type"]
		assert "Engagement Plan Monitor" in resp.text


class TestListAndGet:

	def test_list_empty(self, client: TestClient):
		resp = client.get("/api/plans")
		assert resp.status_code == 200
		assert resp.json() == []

	def test_create_then_get(self, client: TestClient):
		body = make_plan().to_wire()
		resp = client.post("/api/plans", json=body)
		assert resp.json() == {"success": True, "id": "plan-test"}

		resp = client.get("/api/plans/plan-test")
		assert resp.status_code == 200
		assert resp.json() == body

	def test_wire_format(self, client: TestClient):
		_create(client)
		plan = client.get("/api/plans").json()[0]
		assert plan["startDate"] == "2026-03-01"
		assert plan["endDate"] == "2026-03-15"
		step = plan["steps"][0]
		assert step["type"] == "initial"
		assert set(step) == {
			"id", "type", "actionTitle", "actionDescription", "date",
			"progress", "successProbability", "status", "review",
		}

	def test_list_newest_first(self, client: TestClient):
		first = make_plan(plan_id="first").to_wire()
		second = make_plan(plan_id="second").to_wire()
		for step in second["steps"]:
			step["id"] = f"second-{step['id']}"
		client.post("/api/plans", json=first)
		client.post("/api/plans", json=second)

		assert [p["id"] for p in client.get("/api/plans").json()] == ["second", "first"]

	def test_get_missing(self, client: TestClient):
		resp = client.get("/api/plans/missing")
		assert resp.status_code == 404
		assert "error" in resp.json()


class TestCreateValidation:

	def test_duplicate_id_conflicts(self, client: TestClient):
		_create(client)
		resp = client.post("/api/plans", json=make_plan().to_wire())
		assert resp.status_code == 409

	def test_malformed_json(self, client: TestClient):
		resp = client.post(
			"/api/plans",
			content=b"{not json",
			headers={"content-type": "application/json"},
		)
		assert resp.status_code == 400
		assert resp.json()["error"] == "Request body is not valid JSON"

	def test_body_not_utf8(self, client: TestClient):
		resp = client.post(
			"/api/plans",
			content=b'{"id": "\xff\xfe"}',
			headers={"content-type": "application/json"},
		)
		assert resp.status_code == 400
		assert resp.json()["error"] == "Request body is not valid JSON"

	def test_put_body_not_utf8(self, client: TestClient):
		_create(client)
		resp = client.put("/api/plans/plan-test", content=b"\xff\xfe\xfd")
		assert resp.status_code == 400

	def test_missing_end_step(self, client: TestClient):
		body = make_plan().to_wire()
		body["steps"][-1]["type"] = "intermediate"
		resp = client.post("/api/plans", json=body)
		assert resp.status_code == 400
		assert resp.json()["error"] == "Invalid plan"
		assert resp.json()["details"]
		assert client.get("/api/plans").json() == []

	def test_out_of_range_progress(self, client: TestClient):
		body = make_plan().to_wire()
		body["steps"][1]["progress"] = 140
		resp = client.post("/api/plans", json=body)
		assert resp.status_code == 400
		locs = [d["loc"] for d in resp.json()["details"]]
		assert ["steps", "1", "progress"] in locs

	def test_unknown_status(self, client: TestClient):
		body = make_plan().to_wire()
		body["steps"][1]["status"] = "Done"
		assert client.post("/api/plans", json=body).status_code == 400


class TestReplace:

	def test_put_rewrites_steps(self, client: TestClient):
		_create(client)
		edited = insert_step_at(make_plan(), 2)
		edited = update_step(edited, "s1", {"status": "Concluded", "review": "Done"})

		resp = client.put("/api/plans/plan-test", json=edited.to_wire())
		assert resp.status_code == 200
		assert resp.json() == {"success": True}

		stored = client.get("/api/plans/plan-test").json()
		assert stored == edited.to_wire()
		assert [s["id"] for s in stored["steps"]] == step_ids(edited)

	def test_put_missing_plan(self, client: TestClient):
		resp = client.put("/api/plans/plan-test", json=make_plan().to_wire())
		assert resp.status_code == 404

	def test_put_id_mismatch(self, client: TestClient):
		_create(client)
		resp = client.put("/api/plans/plan-test", json=make_plan(plan_id="other").to_wire())
		assert resp.status_code == 400

	def test_put_invalid_body(self, client: TestClient):
		_create(client)
		body = make_plan().to_wire()
		body["steps"] = body["steps"][:1]
		assert client.put("/api/plans/plan-test", json=body).status_code == 400


class TestDelete:

	def test_delete(self, client: TestClient):
		_create(client)
		resp = client.delete("/api/plans/plan-test")
		assert resp.json() == {"success": True}
		assert client.get("/api/plans/plan-test").status_code == 404

	def test_delete_missing_still_succeeds(self, client: TestClient):
		resp = client.delete("/api/plans/missing")
		assert resp.status_code == 200
		assert resp.json() == {"success": True}


class TestStats:

	def test_stats_for_stored_plan(self, client: TestClient):
		_create(client, progresses=(0, 40, 30, 100))
		resp = client.get("/api/plans/plan-test/stats")
		assert resp.status_code == 200
		assert resp.json() == {
			"currentProgress": 0,
			"heuristicProbability": 70,
			"displayedProbability": 70,
			"remainingPlanned": 3,
			"flags": ["Progress decreases between steps. Consider increasing left → right."],
		}

	def test_stats_missing_plan(self, client: TestClient):
		assert client.get("/api/plans/missing/stats").status_code == 404


def test_data_persists_across_app_restarts(tmp_path: Path):
	db_path = str(tmp_path / "plans.db")
	with TestClient(build_app(db_path=db_path)) as client:
		_create(client)
	with TestClient(build_app(db_path=db_path)) as client:
		assert client.get("/api/plans/plan-test").status_code == 200
