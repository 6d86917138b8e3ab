"""
Backend API Tests — FastAPI TestClient against an in-memory store.

Run:  python backend/test_api.py
"""

from __future__ import annotations

import os
import sys
import tempfile

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

import run_turn
from backend.config import Settings, build_store
from backend.main import app, get_store
from nation_kernel.founding import found_nation
from nation_runtime.record_store import MemoryRecordStore, StoreListError
from nation_runtime.sqlite_repository import SqliteNationRepository


class _BrokenListStore(MemoryRecordStore):
    def list(self):
        raise StoreListError("store offline")


def _client(store) -> TestClient:
    app.dependency_overrides[get_store] = lambda: store
    return TestClient(app)


def _found(client, name, government_type="Democracy", **extra):
    body = {"name": name, "capital": f"{name} City", "government_type": government_type}
    body.update(extra)
    return client.post("/nations", json=body)


# ══════════════════════════════════════════════════════════════
# Endpoints
# ══════════════════════════════════════════════════════════════

def test_health():
    resp = _client(MemoryRecordStore()).get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_found_and_read_nation():
    client = _client(MemoryRecordStore())
    resp = _found(client, "Nova Terra", "Monarchy", founder="octocat", motto="Onward")
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["id"] == "nova_terra"
    assert body["stats"] == {"population": 1_000_000, "gdp": 1_000_000_000, "hdi": 0.5}
    assert body["founder"] == "octocat"

    resp = client.get("/nations/nova_terra")
    assert resp.status_code == 200
    assert resp.json() == body
    assert client.get("/nations").json() == {"nations": ["nova_terra"]}


def test_found_duplicate_conflicts():
    client = _client(MemoryRecordStore())
    assert _found(client, "Nova Terra").status_code == 201
    assert _found(client, "nova   terra!").status_code == 409


def test_found_requires_capital():
    client = _client(MemoryRecordStore())
    resp = client.post("/nations", json={"name": "X", "capital": " ", "government_type": "Democracy"})
    assert resp.status_code == 400


def test_missing_nation_is_404():
    assert _client(MemoryRecordStore()).get("/nations/lemuria").status_code == 404


def test_malformed_nation_is_422():
    store = MemoryRecordStore()
    store.put_raw("broken", {"id": "broken", "stats": {"population": -5, "gdp": 1, "hdi": 0.5}})
    assert _client(store).get("/nations/broken").status_code == 422


def test_turn_endpoint_advances_world():
    store = MemoryRecordStore()
    client = _client(store)
    _found(client, "Alpha")
    _found(client, "Beta", "Dictatorship")

    resp = client.post("/turn")
    assert resp.status_code == 200, resp.text
    summary = resp.json()
    assert summary["processed"] == 2
    assert summary["skipped"] == 0
    assert summary["failed"] == []
    assert client.get("/nations/alpha").json()["stats"]["population"] > 1_000_000

    resp = client.post("/turn", json={"max_workers": 1})
    assert resp.json()["processed"] == 2


def test_turn_rejects_out_of_range_limits():
    client = _client(MemoryRecordStore())
    for body in (
        {"max_workers": -1},
        {"max_workers": 0},
        {"timeout_seconds": 0},
        {"timeout_seconds": -2.5},
    ):
        resp = client.post("/turn", json=body)
        assert resp.status_code == 422, (body, resp.status_code)


def test_turn_honours_explicit_limits():
    store = MemoryRecordStore()
    client = _client(store)
    _found(client, "Alpha")
    resp = client.post("/turn", json={"max_workers": 1, "timeout_seconds": 30})
    assert resp.status_code == 200, resp.text
    assert resp.json()["processed"] == 1


def test_turn_reports_malformed_record():
    store = MemoryRecordStore()
    client = _client(store)
    _found(client, "Alpha")
    store.put_raw("broken", {"id": "broken", "stats": {"population": 0, "gdp": 1, "hdi": 0.5}})
    summary = client.post("/turn").json()
    assert summary["processed"] == 1
    assert [f["id"] for f in summary["failed"]] == ["broken"]


def test_aborted_turn_is_503():
    resp = _client(_BrokenListStore()).post("/turn")
    assert resp.status_code == 503
    assert resp.json()["aborted"] is True
    assert resp.json()["processed"] == 0


def test_ranking_orders_by_hdi():
    store = MemoryRecordStore()
    client = _client(store)
    _found(client, "Alpha", "Democracy")
    _found(client, "Beta", "Dictatorship")
    client.post("/turn")
    ranking = client.get("/ranking").json()["ranking"]
    assert [row["id"] for row in ranking] == ["alpha", "beta"]
    assert [row["rank"] for row in ranking] == [1, 2]


def test_metrics():
    store = MemoryRecordStore()
    client = _client(store)
    _found(client, "Alpha")
    _found(client, "Beta")
    metrics = client.get("/metrics").json()
    assert metrics["nation_count"] == 2
    assert metrics["total_population"] == 2_000_000
    assert _client(_BrokenListStore()).get("/metrics").status_code == 503


# ══════════════════════════════════════════════════════════════
# Settings
# ══════════════════════════════════════════════════════════════

def test_settings_from_env():
    settings = Settings.from_env({
        "NATION_STORE": "GitHub",
        "GITHUB_REPO": "gitnations/world",
        "TURN_MAX_WORKERS": "3",
        "TURN_TIMEOUT_SECONDS": "2.5",
        "LOG_LEVEL": "debug",
    })
    assert settings.nation_store == "github"
    assert settings.turn_max_workers == 3
    assert settings.turn_timeout_seconds == 2.5
    assert settings.log_level == "DEBUG"
    assert Settings.from_env({}).turn_timeout_seconds is None


def test_settings_rejects_unknown_store():
    try:
        Settings.from_env({"NATION_STORE": "redis"})
    except ValueError:
        return
    raise AssertionError("expected ValueError")


def test_build_sqlite_store():
    with tempfile.TemporaryDirectory() as tmp:
        store = build_store(Settings(sqlite_path=os.path.join(tmp, "n.db")))
        try:
            assert isinstance(store, SqliteNationRepository)
            assert store.list() == set()
        finally:
            store.close()


def test_postgres_store_requires_url():
    try:
        build_store(Settings(nation_store="postgres"))
    except ValueError:
        return
    raise AssertionError("expected ValueError")


# ══════════════════════════════════════════════════════════════
# Cron entry point
# ══════════════════════════════════════════════════════════════

def _main_with_env(overrides, argv=()):
    saved = {key: os.environ.get(key) for key in overrides}
    os.environ.update(overrides)
    try:
        return run_turn.main(list(argv))
    finally:
        for key, value in saved.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value


def test_cli_unknown_store_exits_1():
    assert _main_with_env({"NATION_STORE": "redis"}) == 1


def test_cli_postgres_without_url_exits_1():
    assert _main_with_env({"NATION_STORE": "postgres", "DATABASE_URL": ""}) == 1


def test_cli_runs_turn_on_sqlite():
    with tempfile.TemporaryDirectory() as tmp:
        db_path = os.path.join(tmp, "n.db")
        seed = SqliteNationRepository(db_path)
        seed.write("alpha", found_nation("Alpha", "Alpha City", "Democracy"))
        seed.close()
        code = _main_with_env(
            {"NATION_STORE": "sqlite", "SQLITE_PATH": db_path}, ["--workers", "2"],
        )
        assert code == 0
        reopened = SqliteNationRepository(db_path)
        try:
            assert reopened.read("alpha").stats.population > 1_000_000
        finally:
            reopened.close()


# ══════════════════════════════════════════════════════════════
# Runner
# ══════════════════════════════════════════════════════════════

_pass = 0
_fail = 0


def _test(fn):
    global _pass, _fail
    try:
        fn()
        print(f"  [PASS] {fn.__name__}")
        _pass += 1
    except Exception as exc:
        print(f"  [FAIL] {fn.__name__}: {exc}")
        _fail += 1


def main() -> None:
    tests = [v for k, v in sorted(globals().items()) if k.startswith("test_") and callable(v)]
    print(f"\nRunning {len(tests)} tests...\n")
    for fn in tests:
        _test(fn)
    print(f"\n{'='*60}")
    print(f"  {_pass} passed, {_fail} failed out of {_pass + _fail}")
    print(f"{'='*60}")
    if _fail > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
