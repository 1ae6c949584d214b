"""
Integration tests: workflow API over an in-memory store.
"""

import pytest

from app import create_app
from repositories import AnswerStore


@pytest.fixture
def api_store():
    store = AnswerStore()
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def client(api_store):
    return create_app(store=api_store).test_client()


class TestNavigation:
    def test_enter_and_advance(self, client, api_store):
        resp = client.post("/api/workflow/enter", json={"situation": "Dumping"})
        state = resp.get_json()
        assert state["situation"] == "Dumping"
        assert state["question"]["id"] == "dump-thoughts-text"

        resp = client.post("/api/workflow/advance", json={
            "question_id": "dump-thoughts-text",
            "answer": ["slow builds", "flaky tests"],
        })
        data = resp.get_json()
        assert data["outcome"]["next_question_id"] == "dump-ready"
        assert data["complete"] is False

        resp = client.post("/api/workflow/advance", json={"question_id": "dump-ready", "answer": True})
        assert resp.get_json()["state"]["situation"] == "WhatToDo"
        assert api_store.answers.count() == 3

    def test_back(self, client):
        client.post("/api/workflow/enter", json={"situation": "Designing"})
        client.post("/api/workflow/advance", json={"question_id": "design-approach-text", "answer": "Cache"})

        data = client.post("/api/workflow/back").get_json()
        assert data["question_id"] == "design-approach-text"
        assert data["state"]["can_go_back"] is False

    def test_bad_requests(self, client):
        assert client.post("/api/workflow/enter", json={}).status_code == 400
        assert client.post("/api/workflow/enter", json={"situation": "Sleeping"}).status_code == 400
        assert client.post("/api/workflow/advance", json={"question_id": "x"}).status_code == 400

    def test_flows(self, client):
        flows = client.get("/api/flows").get_json()
        assert "Verifying" in flows


class TestAnswers:
    def test_save_and_list(self, client):
        resp = client.post("/api/answers", json={
            "question_id": "intent-summary-text",
            "situation": "DefiningIntent",
            "answer": "Reduce churn",
        })
        answer_id = resp.get_json()["id"]

        assert client.get(f"/api/answers/{answer_id}").get_json()["value"] == "Reduce churn"
        listed = client.get("/api/answers?situation=DefiningIntent").get_json()
        assert [a["id"] for a in listed] == [answer_id]

    def test_missing_fields(self, client):
        assert client.post("/api/answers", json={"situation": "Dumping"}).status_code == 400
        assert client.get("/api/answers").status_code == 400
        assert client.get("/api/answers/999").status_code == 404


class TestCycles:
    def test_lifecycle(self, client):
        cycle = client.post("/api/cycles").get_json()
        assert client.get("/api/cycles/current").get_json()["cycle"]["id"] == cycle["id"]

        completed = client.post(f"/api/cycles/{cycle['id']}/complete").get_json()
        assert completed["status"] == "completed"
        assert client.get("/api/cycles/previous").get_json()["previous"]["cycle"]["id"] == cycle["id"]

    def test_missing_cycle(self, client):
        assert client.post("/api/cycles/999/complete").status_code == 404
        assert client.get("/api/cycles/999/markdown").status_code == 404

    def test_markdown(self, client, api_store):
        cycle = api_store.cycles.create()
        api_store.save_answer("dump-thoughts-text", "Dumping", "slow builds")

        resp = client.get(f"/api/cycles/{cycle.id}/markdown")

        assert resp.mimetype == "text/markdown"
        assert "slow builds" in resp.get_data(as_text=True)

    def test_picks(self, client, api_store):
        api_store.cycles.create()
        answer_id = api_store.save_answer("feedback-text", "CollectingFeedback", "Export please")
        target = api_store.cycles.create()

        pick_id = client.post("/api/picks", json={"answer_id": answer_id}).get_json()["id"]

        picks = client.get(f"/api/cycles/{target.id}/picks").get_json()
        assert [p["id"] for p in picks] == [pick_id]
        assert client.delete(f"/api/picks/{pick_id}").status_code == 200
        assert client.delete(f"/api/picks/{pick_id}").status_code == 404


class TestContext:
    def test_context_and_prompt(self, client, api_store):
        api_store.save_answer("intent-summary-text", "DefiningIntent", "Reduce churn")

        context = client.get("/api/context?situation=SelectingProblem").get_json()
        assert context["intent"] == "Reduce churn"

        resp = client.post("/api/prompt", json={
            "situation": "SelectingProblem",
            "template": "Intent: {{intent}} / {{extra}}",
            "inputs": {"extra": "bounded"},
        })
        assert resp.get_json()["prompt"] == "Intent: Reduce churn / bounded"

    def test_bad_integer(self, client):
        assert client.get("/api/context?situation=Designing&cycle_id=abc").status_code == 400

    def test_lineage_and_state(self, client, api_store):
        api_store.save_answer("intent-summary-text", "DefiningIntent", "Reduce churn")

        assert client.get("/api/lineage").get_json()["has_intent"] is True
        assert client.get("/api/state").get_json()["current"] == "DefiningIntent"

    def test_guard_counter(self, client, api_store):
        api_store.counters.increment("Verifying", "Implementing")
        assert client.get("/api/counters/guard").get_json()["count"] == 1

        client.post("/api/counters/guard/reset")
        assert client.get("/api/counters/guard").get_json()["count"] == 0


class TestSnapshotsAndStore:
    def test_snapshot_restore(self, client, api_store):
        api_store.save_answer("design-approach-text", "Designing", "Cache")
        snapshot_id = client.post("/api/snapshots", json={"situation": "Designing"}).get_json()["id"]
        api_store.save_answer("design-approach-text", "Designing", "Replaced")

        resp = client.post(f"/api/snapshots/{snapshot_id}/restore")

        assert resp.get_json()["situation"] == "Designing"
        assert api_store.answers.count() == 1
        assert client.get("/api/workflow/state").get_json()["situation"] == "Designing"

    def test_snapshot_not_found(self, client):
        assert client.post("/api/snapshots/999/restore").status_code == 404
        assert client.get("/api/snapshots/999").status_code == 404

    def test_export_import_clear(self, client, api_store):
        api_store.save_answer("dump-thoughts-text", "Dumping", "kept")
        blob = client.get("/api/store/export").data

        client.post("/api/store/clear")
        assert api_store.answers.count() == 0

        resp = client.post("/api/store/import", data=blob, content_type="application/octet-stream")
        assert resp.get_json()["status"] == "imported"
        assert api_store.answers.count() == 1

    def test_import_garbage(self, client):
        resp = client.post("/api/store/import", data=b"garbage", content_type="application/octet-stream")
        assert resp.status_code == 400

    def test_info(self, client):
        info = client.get("/api/store/info").get_json()
        assert info["mode"] == "memory"
        assert info["counts"]["question_answers"] == 0
