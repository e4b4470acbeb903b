import json
from uuid import uuid4

from fastapi.testclient import TestClient


def _unique(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:8]}"


def test_status(client: TestClient) -> None:
    response = client.get("/api/v1/status")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["database"] == "ok"


def test_builder_default_and_artifacts(client: TestClient) -> None:
    default = client.get("/api/v1/builder/default").json()["data"]
    assert default["tableName"] == "users"
    assert default["features"]["multiDelete"] is True

    response = client.post("/api/v1/builder/artifacts", json=default)
    artifacts = response.json()["data"]

    assert response.status_code == 200
    assert artifacts["types"].startswith("export interface UsersRow {")
    assert artifacts["sql"].count("union all") == 3


def test_builder_rejects_invalid_configs(client: TestClient) -> None:
    empty = client.post(
        "/api/v1/builder/artifacts", json={"tableName": "users", "columns": []}
    )
    unknown_kind = client.post(
        "/api/v1/builder/validate",
        json={"tableName": "users", "columns": [{"key": "a", "name": "A", "kind": "money"}]},
    )

    assert empty.status_code == 400
    assert "no columns" in empty.json()["message"]
    assert unknown_kind.status_code == 400
    assert unknown_kind.json()["message"] == "Validation Error"


def test_builder_preview(client: TestClient) -> None:
    config = client.get("/api/v1/builder/default").json()["data"]
    response = client.post(
        "/api/v1/builder/preview",
        json={
            "config": config,
            "rows": [{"name": "Jane"}, {"name": "Bob"}],
            "query": {"filterText": "ja"},
        },
    )
    preview = response.json()["data"]

    assert response.status_code == 200
    assert preview["total"] == 1
    assert preview["rows"] == [{"name": "Jane"}]
    assert preview["columns"][0]["id"] == "select"


def test_builder_new_row(client: TestClient) -> None:
    config = client.get("/api/v1/builder/default").json()["data"]

    response = client.post("/api/v1/builder/rows/new", json=config)

    assert response.json()["data"] == {"name": "", "age": 0, "gender": "", "email": ""}


def test_table_editing_flow(client: TestClient) -> None:
    name = _unique("crm")
    table = client.post("/api/v1/tables", json={"name": name}).json()["data"]

    column = client.post(
        f"/api/v1/tables/{table['id']}/columns", json={"key": "name", "name": "Name"}
    ).json()["data"]
    row = client.post(f"/api/v1/tables/{table['id']}/rows", json={}).json()["data"]
    client.post(f"/api/v1/tables/{table['id']}/rows", json={})

    response = client.put(
        f"/api/v1/tables/{table['id']}/cells",
        json={"row_id": row["id"], "column_id": column["id"], "value": "Jane"},
    )
    assert response.status_code == 200

    grid = client.get(f"/api/v1/tables/{table['id']}/grid").json()["data"]
    assert [c["key"] for c in grid["columns"]] == ["name"]
    assert [r["values"] for r in grid["rows"]] == [{"name": "Jane"}, {}]

    renamed = client.patch(
        f"/api/v1/tables/{table['id']}/columns/{column['id']}", json={"name": "Full name"}
    )
    assert renamed.status_code == 200
    grid = client.get(f"/api/v1/tables/{table['id']}/grid", params={"limit": 1}).json()["data"]
    assert grid["columns"][0]["header"] == "Full name"
    assert len(grid["rows"]) == 1

    assert client.delete(f"/api/v1/tables/{table['id']}/rows/{row['id']}").status_code == 200
    assert client.delete(f"/api/v1/tables/{table['id']}").status_code == 200
    assert client.get(f"/api/v1/tables/{table['id']}/grid").status_code == 404


def test_tables_listing_and_errors(client: TestClient) -> None:
    name = _unique("listed")
    client.post("/api/v1/tables", json={"name": name})

    listed = client.get("/api/v1/tables").json()["data"]
    duplicate = client.post("/api/v1/tables", json={"name": name})
    blank = client.post("/api/v1/tables", json={"name": "  "})

    assert name in [table["name"] for table in listed]
    assert duplicate.status_code == 502
    assert blank.status_code == 400
    assert client.get(f"/api/v1/tables/{uuid4()}/grid").status_code == 404
    assert client.get("/api/v1/tables/not-a-uuid/grid").status_code == 400


def test_import_and_export(client: TestClient) -> None:
    payload = {"name": _unique("legacy"), "columns": ["a", "b"], "rows": [{"a": 1, "b": "x"}]}

    imported = client.post("/api/v1/tables/import/legacy", content=json.dumps(payload))
    table = imported.json()["data"]
    assert imported.status_code == 201

    legacy = client.get(f"/api/v1/tables/{table['id']}/export/legacy").json()["data"]
    assert legacy["columns"] == ["a", "b"]
    assert legacy["rows"] == [{"a": 1, "b": "x"}]

    bundle = client.get(f"/api/v1/tables/{table['id']}/export").json()["data"]
    copy_name = _unique("copy")
    copied = client.post(
        "/api/v1/tables/import", params={"name": copy_name}, content=json.dumps(bundle)
    ).json()["data"]
    assert copied["name"] == copy_name

    copied_legacy = client.get(f"/api/v1/tables/{copied['id']}/export/legacy").json()["data"]
    assert copied_legacy["rows"] == legacy["rows"]


def test_import_rejects_malformed_json(client: TestClient) -> None:
    response = client.post("/api/v1/tables/import/legacy", content="{oops")

    assert response.status_code == 400
    assert response.json()["message"].startswith("Malformed JSON")


def test_sync_and_local_cache(client: TestClient) -> None:
    name = _unique("synced")
    payload = {"name": name, "columns": ["a"], "rows": [{"a": "1"}]}

    assert client.post("/api/v1/tables/sync/push", json=payload).status_code == 200
    pulled = client.get("/api/v1/tables/sync/pull", params={"name": name}).json()["data"]
    assert pulled["rows"] == payload["rows"]
    assert pulled["updated_at"]
    assert client.get("/api/v1/tables/sync/pull", params={"name": _unique("none")}).status_code == 404

    assert client.put("/api/v1/tables/local", json=payload).status_code == 200
    assert client.get("/api/v1/tables/local").json()["data"]["name"] == name


def test_edits_are_scoped_to_the_table_in_the_path(client: TestClient) -> None:
    first = client.post("/api/v1/tables", json={"name": _unique("first")}).json()["data"]
    second = client.post("/api/v1/tables", json={"name": _unique("second")}).json()["data"]
    column = client.post(
        f"/api/v1/tables/{first['id']}/columns", json={"key": "name"}
    ).json()["data"]
    row = client.post(f"/api/v1/tables/{first['id']}/rows", json={}).json()["data"]

    cell = client.put(
        f"/api/v1/tables/{second['id']}/cells",
        json={"row_id": row["id"], "column_id": column["id"], "value": "leak"},
    )
    deleted = client.delete(f"/api/v1/tables/{second['id']}/rows/{row['id']}")
    renamed = client.patch(
        f"/api/v1/tables/{second['id']}/columns/{column['id']}", json={"name": "Other"}
    )
    duplicate = client.post(
        f"/api/v1/tables/{first['id']}/columns", json={"key": "name"}
    )

    assert cell.status_code == 400
    assert deleted.status_code == 404
    assert renamed.status_code == 404
    assert duplicate.status_code == 400

    grid = client.get(f"/api/v1/tables/{first['id']}/grid").json()["data"]
    assert grid["columns"][0]["header"] == "name"
    assert [r["values"] for r in grid["rows"]] == [{}]
