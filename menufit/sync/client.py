# -*- coding: utf-8 -*-
"""HTTP client for the auth and /sync endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from ..config import settings
from .domains import SyncDomain, decode_wire, encode_wire
from .errors import AuthError, SyncTransportError
from .models import AuthResult, ServerEntry

logger = logging.getLogger(__name__)


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("error")
        if detail:
            return str(detail)
    return f"Request failed ({resp.status_code})"


class SyncApiClient:
    """Thin async wrapper over the server API.

    One instance per session; close it with `aclose()` or use it as an async
    context manager. Pass `transport` to talk to an in-process app in tests.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.http_timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "SyncApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            resp = await self._client.request(method, path, json=body, headers=headers)
        except httpx.RequestError as exc:
            raise SyncTransportError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code in (401, 403):
            raise AuthError(_error_detail(resp), status_code=resp.status_code)
        if resp.status_code >= 400:
            raise SyncTransportError(_error_detail(resp), status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError as exc:
            raise SyncTransportError(f"{method} {path} returned invalid JSON", status_code=resp.status_code) from exc
        if not isinstance(data, dict):
            raise SyncTransportError(f"{method} {path} returned {type(data).__name__}, expected object")
        return data

    async def _authenticate(self, path: str, email: str, password: str) -> AuthResult:
        data = await self._request("POST", path, body={"email": email, "password": password})
        user = data.get("user") or {}
        token = data.get("token")
        if not token or not user.get("id"):
            raise SyncTransportError(f"POST {path} returned no token")
        return AuthResult(token=str(token), user_id=str(user["id"]), email=str(user.get("email") or email))

    async def login(self, email: str, password: str) -> AuthResult:
        return await self._authenticate("/auth/login", email, password)

    async def signup(self, email: str, password: str) -> AuthResult:
        return await self._authenticate("/auth/signup", email, password)

    async def fetch(self, domain: SyncDomain, token: str) -> List[ServerEntry]:
        data = await self._request("GET", domain.path, token=token)
        entries = decode_wire(domain, data.get(domain.envelope, []))
        logger.debug("Fetched %d %s entries", len(entries), domain.value)
        return entries

    async def push(self, domain: SyncDomain, entries: Iterable[ServerEntry], token: str) -> Dict[str, Any]:
        items = encode_wire(domain, entries)
        data = await self._request("POST", domain.path, token=token, body={domain.envelope: items})
        logger.debug("Pushed %d %s entries", len(items), domain.value)
        return data

    async def fetch_menu_template(self, token: str) -> Dict[str, List[dict]]:
        """Foods assigned to the user per category; a category left empty falls back to the catalog."""
        data = await self._request("GET", "/sync/menu-template", token=token)
        template = data.get("template")
        template = template if isinstance(template, dict) else {}
        return {
            category: [food for food in template.get(category) or [] if isinstance(food, dict)]
            for category in ("protein", "carbs", "fat")
        }

    async def fetch_allowances(self, token: str) -> Dict[str, int]:
        data = await self._request("GET", "/sync/allowances", token=token)
        allowances = data.get("allowances")
        if not isinstance(allowances, dict):
            raise SyncTransportError("GET /sync/allowances returned no allowances")
        try:
            return {key: int(value) for key, value in allowances.items()}
        except (TypeError, ValueError) as exc:
            raise SyncTransportError(f"GET /sync/allowances returned a non-numeric limit: {exc}") from exc
