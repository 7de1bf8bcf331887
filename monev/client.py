"""
HTTP client for the Monev PDB API.

Usage:
    client = MonevClient("http://127.0.0.1:5000/api")
    data = client.get_app_data()
    client.add_submission(form)

Reads degrade to the last snapshot saved on disk when the server cannot be
reached. Writes never fall back and are never retried: a ``TransportError``
(network failure, non-JSON body) or ``ApiError`` (JSON error from the server)
goes straight to the caller.
"""
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import requests

import config
from monev.errors import ApiError, TransportError

logger = logging.getLogger(__name__)

EMPTY_APP_DATA: Dict[str, list] = {
    "lecturers": [],
    "subjects": [],
    "categories": [],
    "submissions": [],
}


def _read_json(path: str) -> Optional[Any]:
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, ValueError) as exc:
        logger.warning(f"Ignoring unreadable cache file {path}: {exc}")
        return None


def _write_json(path: str, payload: Any) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp_path = path + ".tmp"
    with open(tmp_path, "w", encoding="utf-8") as fh:
        json.dump(payload, fh, ensure_ascii=False)
    os.replace(tmp_path, path)


class FallbackCache:
    """Last successfully fetched ``get_app_data`` snapshot."""

    def __init__(self, path: str):
        self.path = path

    def save(self, data: Dict[str, Any]) -> None:
        try:
            _write_json(self.path, data)
        except OSError as exc:
            logger.warning(f"Could not write fallback cache: {exc}")

    def load(self) -> Optional[Dict[str, Any]]:
        return _read_json(self.path)


class DraftCache:
    """
    The lecturer's in-progress form, kept across restarts.

    Drafts older than ``max_age_hours`` are discarded on load. ``clear`` is
    called after a successful submit or a logout.
    """

    def __init__(
        self,
        path: str,
        max_age_hours: float = config.DRAFT_MAX_AGE_HOURS,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.path = path
        self.max_age = timedelta(hours=max_age_hours)
        self.clock = clock

    def save(self, form: Dict[str, Any]) -> None:
        _write_json(self.path, {"saved_at": self.clock().isoformat(), "form": form})

    def load(self) -> Optional[Dict[str, Any]]:
        payload = _read_json(self.path)
        if not isinstance(payload, dict) or "form" not in payload:
            return None
        try:
            saved_at = datetime.fromisoformat(payload["saved_at"])
        except (KeyError, TypeError, ValueError):
            self.clear()
            return None
        if self.clock() - saved_at > self.max_age:
            logger.info("Discarding expired form draft")
            self.clear()
            return None
        return payload["form"]

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


class MonevClient:
    def __init__(
        self,
        base_url: str = f"http://127.0.0.1:{config.PORT}/api",
        cache_dir: str = config.CACHE_DIR,
        timeout: float = config.REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.fallback = FallbackCache(os.path.join(cache_dir, config.FALLBACK_CACHE_FILE))
        self.draft = DraftCache(os.path.join(cache_dir, config.DRAFT_CACHE_FILE))

    def _request(self, action: str, method: str = "GET", body: Any = None, **params: Any) -> Any:
        query = {"action": action}
        query.update({k: v for k, v in params.items() if v is not None})
        try:
            resp = self.session.request(
                method, self.base_url, params=query, json=body, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

        content_type = resp.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            preview = resp.text[:100]
            logger.error(f"API returned non-JSON response for {action}: {preview}")
            raise TransportError(f"Server Error: {preview}...")
        try:
            data = resp.json()
        except ValueError as exc:
            raise TransportError(f"Malformed JSON from server: {exc}") from exc

        if not resp.ok:
            message = data.get("error") if isinstance(data, dict) else None
            raise ApiError(
                f"API Error: {message or f'{resp.status_code} {resp.reason}'}",
                status_code=resp.status_code,
            )
        return data

    def get_app_data(self) -> Dict[str, list]:
        try:
            data = self._request("get_app_data")
        except (TransportError, ApiError) as exc:
            logger.warning(f"Failed to fetch from API, using fallback data: {exc}")
            cached = self.fallback.load()
            return cached if isinstance(cached, dict) else {k: [] for k in EMPTY_APP_DATA}

        snapshot = {key: data.get(key) or [] for key in EMPTY_APP_DATA}
        self.fallback.save(snapshot)
        return snapshot

    def add_submission(self, form: Dict[str, Any]) -> str:
        data = self._request("add_submission", "POST", form)
        self.draft.clear()
        return data["id"]

    def delete_submission(self, submission_id: str) -> bool:
        return self._request("delete_submission", "POST", {"id": submission_id}).get("success", False)

    def update_lecturers(self, lecturers: List[Dict[str, Any]]) -> bool:
        return self._request("update_lecturers", "POST", lecturers).get("success", False)

    def update_categories(self, categories: List[Dict[str, Any]]) -> bool:
        return self._request("update_categories", "POST", categories).get("success", False)

    def update_subjects(self, subjects: List[Dict[str, Any]]) -> bool:
        return self._request("update_subjects", "POST", subjects).get("success", False)

    def verify_nip(
        self,
        nip: str,
        subject: Optional[str] = None,
        class_code: Optional[str] = None,
        semester: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self._request(
            "verify_nip", nip=nip, subject=subject, classCode=class_code, semester=semester
        )

    def get_revision(self) -> int:
        return int(self._request("get_revision").get("revision", 0))
