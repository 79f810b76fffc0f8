"""
═══════════════════════════════════════════════════════════════════════════════
Vrai — Remote Data Service client (hosted database, auth, storage, functions)
═══════════════════════════════════════════════════════════════════════════════

Thin ``httpx`` wrapper around the hosted platform's documented endpoints:

    • REST      /rest/v1/<table>            — table CRUD
    • Auth      /auth/v1/...                — token verification, sign-up, sign-in
    • Storage   /storage/v1/object/...      — bucket objects and public URLs
    • Functions /functions/v1/<name>        — serverless functions

The platform is treated as an opaque request/response contract. HTTP
failures surface as ``RemoteServiceError`` with the upstream message.

The in-memory counterpart with the same public methods lives in
``vrai.memory_store``.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from vrai.exceptions import AuthenticationError, ConflictError, RemoteServiceError

logger = logging.getLogger(__name__)


def _format_filter(value: Any) -> str:
    """Renders one ``column=value`` filter in the REST query dialect."""
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    if isinstance(value, (list, tuple, set)):
        items = ",".join(f'"{v}"' for v in value)
        return f"in.({items})"
    return f"eq.{value}"


def _error_message(response: httpx.Response) -> str:
    """Extracts the upstream error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return str(body)


class SupabaseClient:
    """
    Client of the hosted backend-as-a-service platform.

    Created once at application start (see ``vrai.context``) and passed to
    repositories and services explicitly.
    """

    backend_name = "supabase"

    def __init__(
        self,
        url: str,
        service_key: str,
        *,
        anon_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._service_key = service_key
        self._anon_key = anon_key or service_key
        self._timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    # ═══════════════════════════════════════════════════════════════════════
    # Lifecycle
    # ═══════════════════════════════════════════════════════════════════════

    async def connect(self) -> None:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self._url,
                timeout=self._timeout,
                transport=self._transport,
                headers={
                    "apikey": self._service_key,
                    "Authorization": f"Bearer {self._service_key}",
                },
            )
            logger.info("Remote data service client created for %s", self._url)

    async def close(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            logger.info("Remote data service client closed")

    async def ping(self) -> bool:
        """Checks that the platform answers (health check)."""
        try:
            response = await self._client.get("/rest/v1/")
            return response.status_code < 500
        except httpx.HTTPError as e:
            logger.error(f"Remote data service health check failed: {e}")
            return False

    @property
    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            raise RemoteServiceError("Remote data service client is not connected")
        return self._http

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise RemoteServiceError(f"Remote call {method} {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise RemoteServiceError(f"Remote call {method} {path} failed: {exc}") from exc
        if response.status_code >= 400:
            message = _error_message(response)
            logger.error("Remote call %s %s -> %s: %s", method, path, response.status_code, message)
            raise RemoteServiceError(message, details={"status": response.status_code})
        return response

    # ═══════════════════════════════════════════════════════════════════════
    # Tables
    # ═══════════════════════════════════════════════════════════════════════

    async def select(
        self,
        table: str,
        *,
        filters: dict[str, Any] | None = None,
        order: str | None = None,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[dict]:
        """
        Reads rows of ``table``.

        ``filters`` maps column → value (list = IN, None = IS NULL);
        ``order`` uses the REST syntax, e.g. ``updated_at.desc``.
        """
        params: dict[str, Any] = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = _format_filter(value)
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        response = await self._request("GET", f"/rest/v1/{table}", params=params)
        return response.json()

    async def insert(self, table: str, row: dict[str, Any]) -> dict:
        response = await self._request(
            "POST",
            f"/rest/v1/{table}",
            json=row,
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        return rows[0] if rows else {}

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        *,
        filters: dict[str, Any],
    ) -> list[dict]:
        params = {column: _format_filter(value) for column, value in filters.items()}
        response = await self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=params,
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    async def upsert(
        self,
        table: str,
        row: dict[str, Any],
        *,
        on_conflict: str = "id",
    ) -> dict:
        response = await self._request(
            "POST",
            f"/rest/v1/{table}",
            params={"on_conflict": on_conflict},
            json=row,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        rows = response.json()
        return rows[0] if rows else {}

    # ═══════════════════════════════════════════════════════════════════════
    # Auth
    # ═══════════════════════════════════════════════════════════════════════

    async def get_user(self, token: str) -> dict:
        """Verifies a user access token and returns the auth identity."""
        try:
            response = await self._client.get(
                "/auth/v1/user",
                headers={"apikey": self._anon_key, "Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            raise RemoteServiceError(f"Token verification failed: {exc}") from exc
        if response.status_code in (401, 403):
            raise AuthenticationError("Unauthorized: Invalid token")
        if response.status_code >= 400:
            raise RemoteServiceError(_error_message(response))
        return response.json()

    async def sign_up(self, email: str, password: str, metadata: dict[str, Any] | None = None) -> dict:
        """Creates a confirmed account through the admin endpoint."""
        try:
            response = await self._request(
                "POST",
                "/auth/v1/admin/users",
                json={
                    "email": email,
                    "password": password,
                    "email_confirm": True,
                    "user_metadata": metadata or {},
                },
            )
        except RemoteServiceError as exc:
            if "already" in exc.message.lower():
                raise ConflictError("User already exists with this email", details={"field": "email"}) from exc
            raise
        return response.json()

    async def sign_in(self, email: str, password: str) -> dict:
        """Password grant; returns ``{access_token, user, ...}``."""
        try:
            response = await self._client.post(
                "/auth/v1/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
                headers={"apikey": self._anon_key, "Authorization": f"Bearer {self._anon_key}"},
            )
        except httpx.HTTPError as exc:
            raise RemoteServiceError(f"Sign-in failed: {exc}") from exc
        if response.status_code in (400, 401):
            raise AuthenticationError("Invalid email or password")
        if response.status_code >= 400:
            raise RemoteServiceError(_error_message(response))
        return response.json()

    # ═══════════════════════════════════════════════════════════════════════
    # Storage
    # ═══════════════════════════════════════════════════════════════════════

    async def upload_object(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str,
        *,
        upsert: bool = False,
    ) -> str:
        await self._request(
            "POST",
            f"/storage/v1/object/{bucket}/{quote(path)}",
            content=content,
            headers={
                "Content-Type": content_type,
                "Cache-Control": "3600",
                "x-upsert": "true" if upsert else "false",
            },
        )
        return path

    async def list_objects(self, bucket: str, prefix: str) -> list[dict]:
        """Lists objects directly under ``prefix`` (folders have ``id`` = None)."""
        response = await self._request(
            "POST",
            f"/storage/v1/object/list/{bucket}",
            json={
                "prefix": prefix,
                "limit": 1000,
                "offset": 0,
                "sortBy": {"column": "name", "order": "asc"},
            },
        )
        return response.json()

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self._url}/storage/v1/object/public/{bucket}/{quote(path)}"

    # ═══════════════════════════════════════════════════════════════════════
    # Serverless functions
    # ═══════════════════════════════════════════════════════════════════════

    async def invoke_function(
        self,
        name: str,
        payload: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> dict:
        """Calls a serverless function; ``timeout`` is a hard abort timer."""
        response = await self._request(
            "POST",
            f"/functions/v1/{name}",
            json=payload,
            timeout=timeout if timeout is not None else self._timeout,
        )
        return response.json()


__all__ = ["SupabaseClient"]
