"""
GitHub Nation Repository Tests

A fake contents API stands in for the network (injected `urlopen`).

Covers:
  - Listing filters nation files
  - Base64 read (line-wrapped, as the API returns it)
  - 404 → None on read, failure on write, list failure for a missing repo
  - Sha bookkeeping on update, sha lookup for unseen files, creation
  - Retry on 5xx and network errors, give-up after max attempts, no retry on 401
  - Full turn through the contents API

Run:  python -m nation_runtime.test_github_repository
"""

from __future__ import annotations

import base64
import json
import os
import sys
import urllib.error
from urllib.parse import urlsplit

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nation_kernel.codec import decode_blob, encode_record
from nation_kernel.founding import found_nation
from nation_kernel.growth import advance
from nation_kernel.invariants import MalformedRecordError

from nation_runtime.github_repository import GitHubNationRepository
from nation_runtime.record_store import StoreListError, StoreReadError, StoreWriteError
from nation_runtime.turn import run_global_turn


# ══════════════════════════════════════════════════════════════
# Fake contents API
# ══════════════════════════════════════════════════════════════

_REPO_PATH = "/repos/gitnations/world"
_PREFIX = _REPO_PATH + "/contents/"


class _FakeResponse:
    def __init__(self, payload, status=200):
        self._body = json.dumps(payload).encode("utf-8")
        self.status = status

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeContentsAPI:
    """In-memory stand-in for the GitHub contents endpoints."""

    def __init__(self):
        self.files = {}          # path -> (text, sha)
        self.calls = []          # (method, path)
        self.fail_next = []      # queued HTTP status codes or exceptions to raise
        self.repo_exists = True
        self.reject_puts = None  # HTTP status every PUT answers with
        self._sha_counter = 0

    def put_file(self, path, text):
        self.files[path] = (text, self._next_sha())

    def _next_sha(self):
        self._sha_counter += 1
        return f"sha{self._sha_counter}"

    def _error(self, req, code):
        return urllib.error.HTTPError(req.full_url, code, f"status {code}", None, None)

    def __call__(self, req, timeout=None):
        method = req.get_method()
        full_path = urlsplit(req.full_url).path
        path = full_path[len(_PREFIX):]
        self.calls.append((method, path))

        if self.fail_next:
            failure = self.fail_next.pop(0)
            if isinstance(failure, int):
                raise self._error(req, failure)
            raise failure

        if not self.repo_exists:
            raise self._error(req, 404)

        if method == "GET" and full_path == _REPO_PATH:
            return _FakeResponse({"full_name": "gitnations/world"})

        if method == "GET" and path == "nations":
            if not any(p.startswith("nations/") for p in self.files):
                raise self._error(req, 404)
            entries = [
                {"name": p.split("/", 1)[1], "type": "file"}
                for p in sorted(self.files) if p.startswith("nations/")
            ]
            entries.append({"name": "archive", "type": "dir"})
            return _FakeResponse(entries)

        if method == "GET":
            if path not in self.files:
                raise self._error(req, 404)
            text, sha = self.files[path]
            b64 = base64.b64encode(text.encode("utf-8")).decode("ascii")
            wrapped = "\n".join(b64[i:i + 60] for i in range(0, len(b64), 60)) + "\n"
            return _FakeResponse({"content": wrapped, "encoding": "base64", "sha": sha})

        if method == "PUT":
            if self.reject_puts is not None:
                raise self._error(req, self.reject_puts)
            body = json.loads(req.data.decode("utf-8"))
            existing = self.files.get(path)
            if existing is not None and body.get("sha") != existing[1]:
                raise self._error(req, 409)
            text = base64.b64decode(body["content"]).decode("utf-8")
            sha = self._next_sha()
            self.files[path] = (text, sha)
            return _FakeResponse({"content": {"sha": sha}}, status=201 if existing is None else 200)

        raise self._error(req, 405)


def _seeded_api():
    api = FakeContentsAPI()
    for record in (
        found_nation("Brasil", "Brasilia", "Democracia"),
        found_nation("Atlantis", "Poseidonia", "Monarchy"),
    ):
        api.put_file(f"nations/{record.id}.json", encode_record(record))
    api.put_file("nations/README.md", "# nations")
    return api


def _repo(api, **kwargs):
    return GitHubNationRepository(
        "gitnations/world", token="t0ken", urlopen=api, backoff_seconds=0, **kwargs,
    )


def _expect(exc_type, fn):
    try:
        fn()
    except exc_type as exc:
        return exc
    raise AssertionError(f"expected {exc_type.__name__}")


# ══════════════════════════════════════════════════════════════
# Tests
# ══════════════════════════════════════════════════════════════

def test_list_only_json_files():
    assert _repo(_seeded_api()).list() == {"brasil", "atlantis"}


def test_list_missing_directory_is_empty():
    assert _repo(FakeContentsAPI()).list() == set()


def test_read_decodes_wrapped_base64():
    record = _repo(_seeded_api()).read("brasil")
    assert record.name == "Brasil"
    assert record.government_type == "Democracia"
    assert record.stats.population == 1_000_000


def test_read_missing_returns_none():
    assert _repo(_seeded_api()).read("lemuria") is None


def test_write_after_read_updates_with_sha():
    api = _seeded_api()
    repo = _repo(api)
    record = repo.read("atlantis")
    repo.write("atlantis", advance(record))
    stored_text, _ = api.files["nations/atlantis.json"]
    assert json.loads(stored_text) == advance(record).to_dict()
    # A second write reuses the sha returned by the first.
    repo.write("atlantis", advance(advance(record)))
    assert ("PUT", "nations/atlantis.json") in api.calls


def test_write_unseen_file_looks_up_sha():
    api = _seeded_api()
    record = _repo(api).read("brasil")
    fresh = _repo(api)
    fresh.write("brasil", advance(record))
    assert [c for c in api.calls if c[0] == "PUT"] == [("PUT", "nations/brasil.json")]


def test_write_new_nation_creates_file():
    api = _seeded_api()
    record = found_nation("Lemuria", "Mu", "Monarchy")
    _repo(api).write(record.id, record)
    text, _ = api.files["nations/lemuria.json"]
    assert json.loads(text)["id"] == "lemuria"


def test_retry_on_server_error():
    api = _seeded_api()
    api.fail_next = [503, 502]
    record = _repo(api).read("brasil")
    assert record is not None
    assert api.calls.count(("GET", "nations/brasil.json")) == 3


def test_gives_up_after_max_attempts():
    api = _seeded_api()
    api.fail_next = [500, 500, 500]
    exc = _expect(StoreReadError, lambda: _repo(api).read("brasil"))
    assert exc.nation_id == "brasil"
    assert len(api.calls) == 3


def test_no_retry_on_unauthorized():
    api = _seeded_api()
    api.fail_next = [401]
    _expect(StoreListError, lambda: _repo(api).list())
    assert len(api.calls) == 1


def test_sha_conflict_is_write_failure():
    api = _seeded_api()
    repo = _repo(api)
    record = repo.read("brasil")
    api.put_file("nations/brasil.json", encode_record(record))  # someone else committed
    _expect(StoreWriteError, lambda: repo.write("brasil", advance(record)))


def test_write_not_found_is_write_failure():
    api = _seeded_api()
    repo = _repo(api)
    record = repo.read("brasil")
    api.reject_puts = 404
    exc = _expect(StoreWriteError, lambda: repo.write("brasil", advance(record)))
    assert exc.nation_id == "brasil"
    assert "404" in str(exc)


def test_turn_with_rejected_puts_reports_every_nation():
    api = _seeded_api()
    before = dict(api.files)
    api.reject_puts = 404
    summary = run_global_turn(_repo(api), max_workers=2)
    assert summary.processed == 0
    assert [f.id for f in summary.failed] == ["atlantis", "brasil"]
    assert api.files == before


def test_list_unreachable_repo_is_list_failure():
    api = _seeded_api()
    api.repo_exists = False
    _expect(StoreListError, lambda: _repo(api).list())


def test_turn_against_unreachable_repo_aborts():
    api = FakeContentsAPI()
    api.repo_exists = False
    summary = run_global_turn(_repo(api))
    assert summary.aborted
    assert not summary.ok
    assert "not found" in summary.abort_reason


def test_retry_on_read_timeout():
    api = _seeded_api()
    api.fail_next = [TimeoutError("The read operation timed out")]
    record = _repo(api).read("brasil")
    assert record is not None
    assert api.calls.count(("GET", "nations/brasil.json")) == 2


def test_dropped_connections_become_read_failure():
    api = _seeded_api()
    api.fail_next = [ConnectionResetError("reset by peer")] * 3
    exc = _expect(StoreReadError, lambda: _repo(api).read("brasil"))
    assert "network error" in str(exc)
    assert len(api.calls) == 3


def test_read_directory_path_is_malformed():
    def listing_everywhere(req, timeout=None):
        return _FakeResponse([{"name": "inner.json", "type": "file"}])

    exc = _expect(MalformedRecordError, lambda: _repo(listing_everywhere).read("brasil"))
    assert exc.nation_id == "brasil"


def test_authorization_header_sent():
    seen = []
    api = _seeded_api()

    def spy(req, timeout=None):
        seen.append(req.get_header("Authorization"))
        return api(req, timeout)

    _repo(spy).list()
    assert seen == ["token t0ken"]


def test_full_turn_through_contents_api():
    api = _seeded_api()
    repo = _repo(api)
    originals = {nid: repo.read(nid) for nid in repo.list()}

    summary = run_global_turn(repo, max_workers=2)
    assert summary.processed == 2
    assert summary.failed == ()
    for nid, original in originals.items():
        text, _ = api.files[f"nations/{nid}.json"]
        stored = decode_blob(base64.b64encode(text.encode("utf-8")).decode("ascii"))
        assert stored == advance(original)


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
