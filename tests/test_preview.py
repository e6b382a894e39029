from fastapi.testclient import TestClient

from taco_api.main import app


client = TestClient(app)

FIELDS = [
    {"type": "text", "id": "a", "label": "Name"},
    {"type": "static-text", "id": "b", "label": "Read this", "hoverInfo": "*Note*"},
    {"type": "text", "id": "c", "label": "Case"},
]


def test_preview_output_and_template():
    r = client.post("/api/preview", json={"fields": FIELDS, "values": {"a": "Ann"}})
    assert r.status_code == 200
    body = r.json()
    assert body["template"] == "Name: {{a}}\nCase: {{c}}"
    assert body["output"] == "Name: Ann\nCase: N/A"
    assert len(body["nodes"]) == 3
    assert body["nodes"][0]["children"][1]["attrs"]["id"] == "preview-a"


def test_preview_export_mode():
    r = client.post("/api/preview", json={"fields": FIELDS, "mode": "export"})
    assert r.json()["nodes"][0]["children"][1]["attrs"]["id"] == "a"


def test_field_draft_commit():
    r = client.post(
        "/api/preview/fields",
        json={"type": "searchable-dropdown", "label": " Product Line ", "bulk_options": "A\n\nB", "isMultiSelect": True},
    )
    assert r.status_code == 200
    field = r.json()["field"]
    assert field["id"] == "productLine"
    assert field["label"] == "Product Line"
    assert field["placeholder"] == "Select Product Line..."
    assert field["isMultiSelect"] is True
    assert [o["value"] for o in field["options"]] == ["A", "B"]
    assert r.json()["template"] == "Product Line: {{productLine}}"


def test_field_draft_rejects_duplicate_and_blank_label():
    r = client.post("/api/preview/fields", json={"type": "text", "label": "A", "fields": FIELDS})
    assert r.status_code == 422
    r = client.post("/api/preview/fields", json={"type": "text", "label": "  "})
    assert r.status_code == 422


def test_field_draft_edit_in_place():
    r = client.post("/api/preview/fields", json={"type": "text", "label": "Name", "fields": FIELDS, "index": 0})
    assert r.status_code == 200
    assert r.json()["field"]["id"] == "name"
    assert r.json()["template"] == "Name: {{name}}\nCase: {{c}}"


def test_field_draft_unknown_type():
    r = client.post("/api/preview/fields", json={"type": "rating", "label": "Stars"})
    assert r.status_code == 422
