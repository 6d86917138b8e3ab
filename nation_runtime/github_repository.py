# file: nation_runtime/github_repository.py
"""
GitHub Nation Repository — nation files in a Git repository.

Each nation lives at `<directory>/<id>.json` and is read and written
through the GitHub contents API, which carries file bodies as base64.

    list   GET  /repos/<repo>/contents/<directory>?ref=<branch>
    read   GET  /repos/<repo>/contents/<directory>/<id>.json?ref=<branch>
    write  PUT  /repos/<repo>/contents/<directory>/<id>.json

A PUT that updates an existing file must quote the blob sha it replaces;
shas seen on read are remembered per nation for that purpose.

Retry policy (this adapter only): HTTP 429/5xx and network errors are
retried up to _MAX_RETRIES attempts with exponential backoff. A 404 on
a GET is absence, not an error; a 404 on a PUT is a failed write. A
missing nations directory lists as empty only while the repository
itself is reachable.
"""

from __future__ import annotations

import json
import logging
import threading
import time
import urllib.error
import urllib.request
from typing import Any, Callable, Dict, Optional, Set, Tuple
from urllib.parse import quote

from nation_kernel.codec import decode_blob, encode_blob
from nation_kernel.domain_types import NationRecord
from nation_kernel.invariants import MalformedRecordError

from .record_store import StoreListError, StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com/repos/"

_MAX_RETRIES: int = 3
_RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


class _TransportError(Exception):
    """Request failed after exhausting retries, or with a non-retryable status."""

    def __init__(self, status: int, detail: str) -> None:
        self.status = status
        self.detail = detail
        super().__init__(f"HTTP {status}: {detail}" if status else detail)


class GitHubNationRepository:
    """
    Record store over the GitHub contents API.

    `urlopen` is injectable so tests can stand in for the network.
    """

    def __init__(
        self,
        repo: str,
        token: str = "",
        branch: str = "main",
        directory: str = "nations",
        api_url: str = GITHUB_API_URL,
        urlopen: Optional[Callable[..., Any]] = None,
        max_retries: int = _MAX_RETRIES,
        backoff_seconds: float = 0.5,
        timeout_seconds: float = 15.0,
    ) -> None:
        if not repo:
            raise ValueError("GitHub repository (owner/name) is required")
        self._repo = repo.strip("/")
        self._token = token
        self._branch = branch
        self._directory = directory.strip("/")
        self._api_url = api_url.rstrip("/") + "/"
        self._urlopen = urlopen or urllib.request.urlopen
        self._max_retries = max(1, max_retries)
        self._backoff = backoff_seconds
        self._timeout = timeout_seconds
        self._shas: Dict[str, str] = {}
        self._sha_lock = threading.Lock()

    # ------------------------------------------------------------------
    # RecordStore
    # ------------------------------------------------------------------

    def list(self) -> Set[str]:
        try:
            status, entries = self._request("GET", self._dir_url())
        except _TransportError as exc:
            raise StoreListError(f"Failed to list nations: {exc}") from exc
        if status == 404:
            self._check_repo_reachable()
            # No directory yet: no nations founded.
            return set()
        if not isinstance(entries, list):
            raise StoreListError(
                f"Unexpected listing payload: {type(entries).__name__}"
            )
        return {
            entry["name"][: -len(".json")]
            for entry in entries
            if entry.get("type") == "file" and entry.get("name", "").endswith(".json")
        }

    def read(self, nation_id: str) -> Optional[NationRecord]:
        try:
            status, data = self._request("GET", self._file_url(nation_id, ref=True))
        except _TransportError as exc:
            raise StoreReadError(
                f"Failed to read {nation_id!r}: {exc}", nation_id,
            ) from exc
        if status == 404:
            self._forget_sha(nation_id)
            return None
        if not isinstance(data, dict):
            raise MalformedRecordError(
                "record", f"expected a file, got {type(data).__name__}", nation_id,
            )
        record = decode_blob(data.get("content", ""))
        self._remember_sha(nation_id, data.get("sha", ""))
        return record

    def write(self, nation_id: str, record: NationRecord) -> None:
        body: Dict[str, Any] = {
            "message": f"Turn: automatic statistics update for {nation_id}",
            "content": encode_blob(record),
            "branch": self._branch,
        }
        try:
            sha = self._known_sha(nation_id)
            if sha:
                body["sha"] = sha
            _, data = self._request("PUT", self._file_url(nation_id), body)
        except _TransportError as exc:
            raise StoreWriteError(
                f"Failed to write {nation_id!r}: {exc}", nation_id,
            ) from exc
        new_sha = ""
        if isinstance(data, dict):
            new_sha = (data.get("content") or {}).get("sha", "")
        self._remember_sha(nation_id, new_sha)

    def _check_repo_reachable(self) -> None:
        """Raise StoreListError when the repository itself answers 404."""
        try:
            status, _ = self._request("GET", f"{self._api_url}{self._repo}")
        except _TransportError as exc:
            raise StoreListError(f"Failed to list nations: {exc}") from exc
        if status == 404:
            raise StoreListError(
                f"Repository {self._repo!r} not found or not accessible"
            )

    # ------------------------------------------------------------------
    # Blob sha bookkeeping
    # ------------------------------------------------------------------

    def _known_sha(self, nation_id: str) -> str:
        """Sha of the current blob, fetched when this instance never read it."""
        with self._sha_lock:
            sha = self._shas.get(nation_id, "")
        if sha:
            return sha
        status, data = self._request("GET", self._file_url(nation_id, ref=True))
        if status == 404 or not isinstance(data, dict):
            return ""
        sha = data.get("sha", "")
        self._remember_sha(nation_id, sha)
        return sha

    def _remember_sha(self, nation_id: str, sha: str) -> None:
        if sha:
            with self._sha_lock:
                self._shas[nation_id] = sha

    def _forget_sha(self, nation_id: str) -> None:
        with self._sha_lock:
            self._shas.pop(nation_id, None)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _dir_url(self) -> str:
        return (
            f"{self._api_url}{self._repo}/contents/{quote(self._directory)}"
            f"?ref={quote(self._branch)}"
        )

    def _file_url(self, nation_id: str, ref: bool = False) -> str:
        url = (
            f"{self._api_url}{self._repo}/contents/"
            f"{quote(self._directory)}/{quote(nation_id)}.json"
        )
        if ref:
            url += f"?ref={quote(self._branch)}"
        return url

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "Content-Type": "application/json",
            "User-Agent": "nation-turn-engine",
        }
        if self._token:
            headers["Authorization"] = f"token {self._token}"
        return headers

    def _request(
        self, method: str, url: str, body: Optional[dict] = None,
    ) -> Tuple[int, Any]:
        """
        Perform one API call with retries.

        Returns (status, parsed JSON). A 404 on GET is returned, not raised.
        Raises _TransportError for everything else that is not 2xx.
        """
        data = json.dumps(body).encode("utf-8") if body is not None else None
        last_error: Optional[_TransportError] = None

        for attempt in range(self._max_retries):
            req = urllib.request.Request(
                url, data=data, headers=self._headers(), method=method,
            )
            try:
                with self._urlopen(req, timeout=self._timeout) as resp:
                    raw = resp.read()
                    status = getattr(resp, "status", 200)
                return status, json.loads(raw.decode("utf-8")) if raw else None
            except urllib.error.HTTPError as exc:
                if exc.code == 404 and method == "GET":
                    return 404, None
                last_error = _TransportError(exc.code, str(exc.reason))
                if exc.code not in _RETRY_STATUSES:
                    raise last_error from exc
            except urllib.error.URLError as exc:
                last_error = _TransportError(0, f"network error: {exc.reason}")
            except OSError as exc:
                # Read timeouts and dropped connections surface here.
                last_error = _TransportError(0, f"network error: {exc!r}")
            except json.JSONDecodeError as exc:
                raise _TransportError(0, f"invalid JSON response: {exc}") from exc

            if attempt < self._max_retries - 1:
                delay = self._backoff * (2 ** attempt)
                logger.warning(
                    "%s %s failed (%s); retry %d/%d in %.2fs",
                    method, url, last_error, attempt + 1,
                    self._max_retries - 1, delay,
                )
                if delay > 0:
                    time.sleep(delay)

        raise last_error or _TransportError(0, f"{method} {url}: no attempt made")
