from fastapi.testclient import TestClient

from taco_api.main import app


client = TestClient(app)

BLUEPRINT = {
    "formName": "Support Call",
    "fields": [
        {"type": "text", "id": "caseId", "label": "Case ID"},
        {"type": "checkbox", "id": "issues", "label": "Issues", "options": [{"value": "Billing"}, {"value": "Outage"}]},
    ],
}


def _blueprint_id() -> str:
    r = client.post("/api/blueprints", json=BLUEPRINT)
    assert r.status_code == 200, r.text
    return r.json()["id"]


def _commit(bid: str, values: dict, timestamp: str):
    return client.post(f"/api/blueprints/{bid}/logs", json={"values": values, "timestamp": timestamp})


def test_commit_and_list():
    bid = _blueprint_id()
    r = _commit(bid, {"caseId": "123", "issues": ["Outage"]}, "2024-03-05T14:07:09.123+00:00")
    assert r.status_code == 200, r.text
    entry = r.json()
    assert entry["full_output"] == "Case ID: 123\nIssues: Outage"
    assert entry["data"] == {"caseId": "123", "issues": ["Outage"]}
    assert entry["timestamp"] == "2024-03-05T14:07:09.123Z"
    assert entry["title"] == "Case: 123"

    _commit(bid, {"caseId": "456"}, "2024-03-05T15:00:00+00:00")
    r = client.get(f"/api/blueprints/{bid}/logs")
    assert [e["data"]["caseId"] for e in r.json()] == ["456", "123"]

    r = client.get(f"/api/blueprints/{bid}/logs", params={"q": "outage"})
    assert [e["data"]["caseId"] for e in r.json()] == ["123"]


def test_commit_rejects_invalid_option():
    bid = _blueprint_id()
    r = _commit(bid, {"issues": ["Refund"]}, "2024-03-05T14:00:00+00:00")
    assert r.status_code == 422
    assert r.json()["detail"] == '"Refund" is not a valid option.'
    assert client.get(f"/api/blueprints/{bid}/logs").json() == []


def test_commit_for_missing_blueprint():
    r = _commit("missing", {"caseId": "1"}, "2024-03-05T14:00:00+00:00")
    assert r.status_code == 404


def test_cases_today():
    bid = _blueprint_id()
    _commit(bid, {"caseId": "1"}, "2024-03-04T23:59:59+00:00")
    _commit(bid, {"caseId": "2"}, "2024-03-05T08:00:00+00:00")
    _commit(bid, {"caseId": "3"}, "2024-03-05T09:00:00+00:00")
    r = client.get(f"/api/blueprints/{bid}/logs/today", params={"now": "2024-03-05T12:00:00+00:00"})
    assert r.status_code == 200
    assert r.json()["count"] == 2


def test_delete_log():
    bid = _blueprint_id()
    log_id = _commit(bid, {"caseId": "1"}, "2024-03-05T08:00:00+00:00").json()["id"]
    assert client.delete(f"/api/blueprints/{bid}/logs/{log_id}").status_code == 409
    assert client.delete(f"/api/blueprints/{bid}/logs/nope", params={"confirm": "true"}).status_code == 404
    r = client.delete(f"/api/blueprints/{bid}/logs/{log_id}", params={"confirm": "true"})
    assert r.status_code == 200
    assert client.get(f"/api/blueprints/{bid}/logs").json() == []


def test_export_csv():
    bid = _blueprint_id()
    assert client.get(f"/api/blueprints/{bid}/logs/export.csv").status_code == 422

    _commit(bid, {"caseId": "123"}, "2024-03-05T14:07:09.123+00:00")
    r = client.get(f"/api/blueprints/{bid}/logs/export.csv")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "taco_log_history_" in r.headers["content-disposition"]
    lines = r.text.split("\n")
    assert lines[0] == "Timestamp,Case ID,Issues,Full Output"
    assert lines[1] == '"2024-03-05T14:07:09.123Z","123","","Case ID: 123'
