"""Thin asynchronous client for the Gerrit REST API."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..config.settings import Settings

XSSI_PREFIX = ")]}'"

QUERY_OPTIONS = ("DETAILED_ACCOUNTS", "CURRENT_REVISION")
DETAIL_OPTIONS = (
    "CURRENT_REVISION",
    "CURRENT_COMMIT",
    "CURRENT_FILES",
    "DETAILED_ACCOUNTS",
    "DETAILED_LABELS",
)


class GerritError(Exception):
    """The Gerrit server could not be reached or returned an unusable answer."""


@dataclass
class ChangeInfo:
    number: int
    change_id: str
    status: str
    subject: str
    owner: str = ""
    current_revision: Optional[str] = None
    commit_message: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ChangeInfo":
        owner = data.get("owner") or {}
        current = data.get("current_revision")
        message = None
        if current:
            revision = (data.get("revisions") or {}).get(current) or {}
            message = (revision.get("commit") or {}).get("message")
        return cls(
            number=int(data.get("_number", 0)),
            change_id=str(data.get("change_id", "")),
            status=str(data.get("status", "")),
            subject=str(data.get("subject", "")),
            owner=str(owner.get("name") or owner.get("username") or ""),
            current_revision=current,
            commit_message=message,
        )


def decode_body(text: str) -> Any:
    """Strip Gerrit's XSSI guard line and parse the JSON body."""
    if text.startswith(XSSI_PREFIX):
        text = text[len(XSSI_PREFIX) :]
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise GerritError(f"unexpected response from server: {exc}") from exc


def parse_change(data: Any) -> ChangeInfo:
    try:
        return ChangeInfo.from_json(data)
    except (AttributeError, TypeError, ValueError) as exc:
        raise GerritError(f"unexpected response from server: {exc}") from exc


class GerritClient:
    def __init__(
        self,
        settings: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        base_url = (settings.gerrit_url or "").rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{base_url}/a",
            auth=httpx.BasicAuth(settings.gerrit_user or "", settings.gerrit_password or ""),
            verify=settings.ssl_verify,
            timeout=settings.timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def query(self, terms: List[str]) -> List[ChangeInfo]:
        params: List[tuple[str, str]] = []
        if terms:
            params.append(("q", " ".join(terms)))
        params.extend(("o", option) for option in QUERY_OPTIONS)
        data = await self._get("/changes/", params)
        if not isinstance(data, list):
            raise GerritError("unexpected response from server: expected a list of changes")
        # several q= parameters answer with one list per query
        if data and all(isinstance(item, list) for item in data):
            data = [change for group in data for change in group]
        return [parse_change(item) for item in data]

    async def get(self, change_id: str) -> ChangeInfo:
        params = [("o", option) for option in DETAIL_OPTIONS]
        data = await self._get(f"/changes/{change_id}", params)
        if not isinstance(data, dict):
            raise GerritError("unexpected response from server: expected a change")
        return parse_change(data)

    async def _get(self, path: str, params: List[tuple[str, str]]) -> Any:
        try:
            response = await self._client.get(path, params=params)
        except httpx.TimeoutException as exc:
            raise GerritError(f"request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise GerritError(f"request failed: {exc}") from exc
        if response.status_code == 404:
            raise GerritError("not found")
        if response.is_error:
            raise GerritError(f"HTTP {response.status_code}: {response.text.strip()}")
        return decode_body(response.text)
