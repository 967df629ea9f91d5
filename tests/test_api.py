import pytest
from fastapi.testclient import TestClient

from API.mql import get_query_executor, get_sample_fetcher, get_text_backend
from catalog.templates import get_template
from main import app


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _use(backend=None, executor=None, fetcher=None):
    if backend is not None:
        app.dependency_overrides[get_text_backend] = lambda: backend
    if executor is not None:
        app.dependency_overrides[get_query_executor] = lambda: executor
    if fetcher is not None:
        app.dependency_overrides[get_sample_fetcher] = lambda: fetcher


def test_demo_endpoint_returns_results(client, make_backend, recording_executor):
    _use(backend=make_backend(compilation='{"yearsOfExperience": {"$gt": 30}}'), executor=recording_executor)

    res = client.post("/generate-demo-mql", json={"query": "find users over 30"})

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["results"] == [{"_id": "1", "name": "Ada"}]
    assert body["schema"] == get_template("Candidate/Resume Database").schema
    assert '"$gt": 30' in body["mql_query"]
    assert body["error"] is None
    assert res.headers["X-Request-ID"]


def test_custom_endpoint_returns_null_results(client, make_backend, recording_executor):
    _use(backend=make_backend(compilation='[{"$group": {"_id": "$status"}}]'), executor=recording_executor)
    schema = get_template("Order Management").schema

    res = client.post("/generate-custom-mql", json={"query": "group orders by status", "schema": schema})

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["results"] is None
    assert body["schema"] == schema
    assert recording_executor.calls == []


def test_custom_endpoint_accepts_field_tree(client, make_backend):
    _use(backend=make_backend(compilation='{"title": "x"}'))

    res = client.post("/generate-custom-mql", json={
        "query": "posts titled x",
        "fields": [{"name": "title", "type": "String", "required": True}],
    })

    assert res.status_code == 200
    assert res.json()["schema"] == '{\n  "title": "String (Required)"\n}'


def test_custom_endpoint_without_schema_is_client_error(client, make_backend):
    backend = make_backend()
    _use(backend=backend)

    res = client.post("/generate-custom-mql", json={"query": "find users", "schema": ""})

    assert res.status_code == 400
    assert res.json()["success"] is False
    assert res.json()["error"] == "Schema is required for custom queries"
    assert res.json()["error_kind"] == "precondition"
    assert backend.calls == []


def test_missing_query_is_client_error(client, make_backend):
    _use(backend=make_backend())

    res = client.post("/generate-demo-mql", json={})

    assert res.status_code == 400
    assert res.json()["error"] == "Query is required"


def test_parse_failure_is_server_error(client, make_backend, recording_executor):
    _use(backend=make_backend(compilation="I cannot determine a query for this request."), executor=recording_executor)

    res = client.post("/generate-demo-mql", json={"query": "??"})

    assert res.status_code == 500
    body = res.json()
    assert body["error_kind"] == "parse"
    assert "Traceback" not in body["error"]


def test_sample_data(client):
    _use(fetcher=lambda limit: [{"_id": str(i)} for i in range(limit)])

    for path in ("/sample-data", "/generate-demo-mql"):
        res = client.get(path)
        assert res.status_code == 200
        assert res.json() == {"success": True, "data": [{"_id": str(i)} for i in range(5)], "error": None}


def test_sample_data_failure(client):
    def broken(limit):
        raise RuntimeError("connection refused")

    _use(fetcher=broken)

    res = client.get("/sample-data")

    assert res.status_code == 500
    assert res.json()["error"] == "Failed to fetch sample data"


def test_schema_templates(client):
    res = client.get("/schema-templates")

    assert res.status_code == 200
    names = [t["name"] for t in res.json()]
    assert "Candidate/Resume Database" in names
    assert all({"name", "description", "schema", "sample_query"} <= set(t) for t in res.json())


def test_normalize_schema(client):
    res = client.post("/schema/normalize", json={"fields": [
        {"name": "tags", "type": "Array", "description": "Labels"},
        {"name": "", "type": "String"},
    ]})

    assert res.status_code == 200
    assert res.json() == {"schema": '{\n  "tags": "Array - Labels"\n}'}


def test_health(client, monkeypatch):
    monkeypatch.setattr("API.mql.db_healthcheck", lambda: {"ok": True, "server_version": "7.0.4"})

    assert client.get("/health").json() == {"ok": True, "server_version": "7.0.4"}


def test_config_hides_secrets(client):
    body = client.get("/config").json()

    assert body["demo_template"] == "Candidate/Resume Database"
    assert not any("key" in k.lower() or "uri" in k.lower() for k in body)


def test_metrics_exposed(client, make_backend):
    _use(backend=make_backend())
    client.post("/generate-custom-mql", json={"query": "q", "schema": '{"a": "Number"}'})

    res = client.get("/metrics")

    assert res.status_code == 200
    assert "mql_translations_total" in res.text
    assert "mql_requests_total" in res.text
