"""
WikiTree API client.

Provides access to the WikiTree database via the public API.
Reference: https://github.com/wikitree/wikitree-api

Actions used:
- clientLogin / login - authenticate (cookies are kept on the client)
- getRelatives - profiles with parents/children/siblings/spouses embedded
- getAncestors - flat list of ancestors to a given depth
- getWatchlist - the logged-in user's watchlist
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import httpx
import yaml
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from wikitree_lifelines.core.models import Relation

logger = logging.getLogger(__name__)

DEFAULT_RESOURCE_FILE = Path.home() / ".wikitreerc"

WATCHLIST_FIELDS = "Id,Name,FirstName,BirthDate,DeathDate,Touched"


@dataclass
class WikiTreeConfig:
    """Configuration for WikiTree API access."""
    base_url: str = "https://api.wikitree.com/api.php"
    email: str | None = None
    password: str | None = None
    app_id: str = "wikitree-lifelines"
    timeout: float = 30.0

    @classmethod
    def from_resource(cls, path: str | Path | None = None) -> WikiTreeConfig:
        """
        Load settings from a YAML resource file (default ~/.wikitreerc).

        WIKITREE_EMAIL and WIKITREE_PASSWORD override the file. A missing
        file gives the defaults (anonymous access).
        """
        path = Path(path) if path else DEFAULT_RESOURCE_FILE
        data: dict[str, Any] = {}
        if path.exists():
            logger.info("Reading credentials from resource file %s", path)
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError(f"Resource file {path} must hold a mapping")

        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        config = cls(**known)
        config.email = os.environ.get("WIKITREE_EMAIL", config.email)
        config.password = os.environ.get("WIKITREE_PASSWORD", config.password)
        return config


class WikiTreeError(Exception):
    """Error from the WikiTree API."""
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"WikiTree API error {status_code}: {message}")


class WikiTreeClient:
    """
    Asynchronous client for the WikiTree API.

    Implements the relative and ancestor fetchers used by
    RelativeGraphCrawler and AncestorTreeBuilder.
    """

    def __init__(
        self,
        config: WikiTreeConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or WikiTreeConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.user_id: int | None = None
        self.username: str | None = None

    async def __aenter__(self) -> WikiTreeClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def connect(self) -> None:
        """Open the HTTP session and log in if credentials are configured."""
        self._client = httpx.AsyncClient(
            timeout=self.config.timeout,
            headers={"Accept": "application/json"},
            transport=self._transport,
        )
        if self.config.email and self.config.password:
            await self.login()

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _call(self, action: str, params: dict[str, Any]) -> Any:
        """POST one API action and return the decoded JSON."""
        if not self._client:
            raise RuntimeError("Client not connected")

        data = {"action": action, "appId": self.config.app_id, "format": "json"}
        data.update({k: v for k, v in params.items() if v is not None})
        response = await self._client.post(self.config.base_url, data=data)

        if response.status_code != 200:
            raise WikiTreeError(response.status_code, response.text)
        return response.json()

    async def login(self) -> dict[str, Any]:
        """
        Log in with the configured email and password.

        Unsuccessful logins leave the session anonymous.
        """
        data = await self._call(
            "login",
            {"email": self.config.email, "password": self.config.password},
        )
        login = data.get("login", {}) if isinstance(data, dict) else {}
        self.username = login.get("username")
        self.user_id = login.get("userid")
        if self.username:
            logger.info("Logged in to WikiTree as %s", self.username)
        else:
            logger.warning("WikiTree login failed; continuing anonymously")
        return data

    async def fetch_relatives(
        self, ids: Iterable[str], relations: Iterable[Relation]
    ) -> list[dict[str, Any]]:
        """
        Profiles for ids with the requested relatives embedded.

        Unlisted profiles have no Name; the item's user_name is used.
        """
        relations = set(relations)
        data = await self._call("getRelatives", {
            "keys": ",".join(str(i) for i in ids),
            "getParents": int(Relation.PARENTS in relations),
            "getChildren": int(Relation.CHILDREN in relations),
            "getSiblings": int(Relation.SIBLINGS in relations),
            "getSpouses": int(Relation.SPOUSES in relations),
        })
        persons = []
        for item in _first(data).get("items") or []:
            person = item.get("person")
            if not person:
                continue
            person.setdefault("Id", item.get("user_id"))
            if not person.get("Name"):
                person["Name"] = item.get("user_name")
            persons.append(person)
        return persons

    async def fetch_ancestors(self, key: str, depth: int) -> list[dict[str, Any]]:
        """Flat ancestor list of key, the profile itself first."""
        data = await self._call("getAncestors", {"key": key, "depth": depth})
        return list(_first(data).get("ancestors") or [])

    async def fetch_watchlist(self, fields: str = WATCHLIST_FIELDS) -> list[dict[str, Any]]:
        """The logged-in user's watchlist."""
        data = await self._call("getWatchlist", {"getSpace": 0, "fields": fields})
        return list(_first(data).get("watchlist") or [])


def _first(data: Any) -> dict[str, Any]:
    """WikiTree wraps results in a one-element list."""
    if isinstance(data, list):
        data = data[0] if data else {}
    if not isinstance(data, dict):
        raise WikiTreeError(200, f"Unexpected response: {data!r}")
    status = data.get("status")
    if isinstance(status, str) and status and not any(
        key in data for key in ("items", "ancestors", "watchlist")
    ):
        raise WikiTreeError(200, status)
    return data
