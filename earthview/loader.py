"""
loader.py
Group list and group detail sources.

A DataSource points either at a web root (http/https, fetched with requests)
or at a local directory holding the same files:

  <base>/data/group.json     -> list of group descriptors
  <base>/<group.dataPath>    -> list of location records for one group

Blocking reads run in a worker thread so callers can await them from an
event loop without stalling it.
"""

import asyncio
import json
import os
from typing import Any, List, Optional

import requests

from .config import DEFAULT_GROUP_LIST_PATH, REQUEST_TIMEOUT, USER_AGENT
from .logging_setup import get_logger
from .models import GroupDescriptor, LocationRecord

logger = get_logger(__name__)


class LoadError(Exception):
    """A group list or group detail could not be loaded."""

    def __init__(self, message: str, path: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.path = path
        self.status = status


class DataSource:
    def __init__(
        self,
        base: str,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
        group_list_path: str = DEFAULT_GROUP_LIST_PATH,
    ):
        self.base = base or "."
        self.remote = self.base.startswith(("http://", "https://"))
        self.timeout = timeout
        self.group_list_path = group_list_path
        self.session = session
        if self.remote and self.session is None:
            self.session = requests.Session()

    def url_for(self, path: str) -> str:
        rel = str(path or "").lstrip("/")
        if self.remote:
            return self.base.rstrip("/") + "/" + rel
        return os.path.join(self.base, *rel.split("/"))

    # ----------------------------
    # Blocking reads
    # ----------------------------

    def _read_remote(self, path: str) -> str:
        url = self.url_for(path)
        try:
            resp = self.session.get(url, headers={"User-Agent": USER_AGENT}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise LoadError(f"Request failed: {exc}", path=path) from exc
        if not resp.ok:
            raise LoadError(f"HTTP error! status: {resp.status_code}", path=path, status=resp.status_code)
        return resp.text

    def _read_local(self, path: str) -> str:
        full = self.url_for(path)
        try:
            with open(full, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as exc:
            raise LoadError(f"Cannot read {full}: {exc}", path=path) from exc

    def read_text(self, path: str) -> str:
        if self.remote:
            return self._read_remote(path)
        return self._read_local(path)

    async def fetch_text(self, path: str) -> str:
        return await asyncio.to_thread(self.read_text, path)

    # ----------------------------
    # Public API
    # ----------------------------

    async def fetch_groups(self) -> List[GroupDescriptor]:
        """Group list; any failure yields an empty list."""
        try:
            text = await self.fetch_text(self.group_list_path)
            payload = json.loads(text)
        except LoadError as exc:
            logger.error("group list load failed", path=exc.path, status=exc.status, error=str(exc))
            return []
        except ValueError as exc:
            logger.error("group list is not valid JSON", path=self.group_list_path, error=str(exc))
            return []
        if not isinstance(payload, list):
            logger.error("group list is not a JSON array", path=self.group_list_path)
            return []

        groups: List[GroupDescriptor] = []
        for entry in payload:
            try:
                groups.append(GroupDescriptor.from_dict(entry))
            except ValueError as exc:
                logger.warning("skipping group entry", error=str(exc))
        return groups

    async def fetch_locations(self, data_path: str) -> List[LocationRecord]:
        """
        Location records for one group.

        Raises LoadError on a failed request, an empty body, malformed JSON or
        a body that is not an array. An empty array is a valid, empty group.
        """
        text = await self.fetch_text(data_path)
        if not text or not text.strip():
            raise LoadError("Empty response", path=data_path)
        try:
            payload: Any = json.loads(text)
        except ValueError as exc:
            raise LoadError(f"Malformed JSON: {exc}", path=data_path) from exc
        if not isinstance(payload, list):
            raise LoadError("Location data is not a JSON array", path=data_path)

        records: List[LocationRecord] = []
        for idx, entry in enumerate(payload):
            try:
                records.append(LocationRecord.from_dict(entry))
            except ValueError as exc:
                logger.warning("skipping location record", path=data_path, index=idx, error=str(exc))
        return records
