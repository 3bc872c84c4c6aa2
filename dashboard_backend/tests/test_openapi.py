import json

from src.api.generate_openapi import generate_openapi


def test_generate_openapi_writes_schema_with_tags(tmp_path):
    out = tmp_path / "interfaces" / "openapi.json"
    path = generate_openapi(str(out))
    assert path == str(out)
    schema = json.loads(out.read_text(encoding="utf-8"))
    assert schema["info"]["title"] == "Dashboard Backend"
    assert {t["name"] for t in schema["tags"]} >= {"health", "goals", "events", "drag", "session"}
    assert "/api/v1/goals/{goal_id}/counter" in schema["paths"]
    assert "/api/v1/drag/drop/todo" in schema["paths"]
