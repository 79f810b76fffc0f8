"""
═══════════════════════════════════════════════════════════════════════════════
Vrai — In-memory backend (stand-in for the Remote Data Service)
═══════════════════════════════════════════════════════════════════════════════

Implements the public contract of ``vrai.remote.SupabaseClient`` in process
memory: tables, accounts (bcrypt hashes + HS256 access tokens), storage
objects and serverless functions.

Selected by ``vrai.context.create_context()`` for local development, demos,
tests, and whenever the hosted platform is unreachable at startup.
All data is lost on restart.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable
from uuid import uuid4

import bcrypt
from jose import JWTError, jwt

from vrai.exceptions import AuthenticationError, ConflictError, RemoteServiceError

logger = logging.getLogger(__name__)

FunctionHandler = Callable[["MemoryDataService", dict[str, Any]], Awaitable[dict]]

_now = lambda: datetime.now(timezone.utc)  # noqa: E731


def _matches(row: dict, filters: dict[str, Any] | None) -> bool:
    for column, expected in (filters or {}).items():
        actual = row.get(column)
        if isinstance(expected, (list, tuple, set)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


def _sort_rows(rows: list[dict], order: str) -> list[dict]:
    """Applies a REST-style ``column.asc|desc[.nullsfirst|nullslast]`` order."""
    parts = order.split(".")
    column = parts[0]
    descending = "desc" in parts[1:]
    nulls_first = "nullsfirst" in parts[1:] or ("nullslast" not in parts[1:] and descending)

    present = [r for r in rows if r.get(column) is not None]
    missing = [r for r in rows if r.get(column) is None]
    present.sort(key=lambda r: r[column], reverse=descending)
    return missing + present if nulls_first else present + missing


class MemoryDataService:
    """In-process implementation of the Remote Data Service contract."""

    backend_name = "memory"

    def __init__(
        self,
        *,
        jwt_secret: str = "CHANGE_ME_IN_PRODUCTION",
        jwt_algorithm: str = "HS256",
        token_ttl_minutes: int = 60,
        public_base_url: str = "http://localhost:3000",
    ) -> None:
        self._tables: dict[str, list[dict]] = {}
        self._accounts: dict[str, dict] = {}
        self._objects: dict[str, dict[str, tuple[bytes, str]]] = {}
        self._functions: dict[str, FunctionHandler] = {}
        self._jwt_secret = jwt_secret
        self._jwt_algorithm = jwt_algorithm
        self._token_ttl = timedelta(minutes=token_ttl_minutes)
        self._public_base_url = public_base_url.rstrip("/")

    # ═══════════════════════════════════════════════════════════════════════
    # Lifecycle
    # ═══════════════════════════════════════════════════════════════════════

    async def connect(self) -> None:
        logger.warning(
            "🧠 Vrai memory store ACTIVATED — all data is in-memory (lost on restart)."
        )

    async def close(self) -> None:
        return None

    async def ping(self) -> bool:
        return True

    # ═══════════════════════════════════════════════════════════════════════
    # Tables
    # ═══════════════════════════════════════════════════════════════════════

    def _table(self, table: str) -> list[dict]:
        return self._tables.setdefault(table, [])

    async def select(
        self,
        table: str,
        *,
        filters: dict[str, Any] | None = None,
        order: str | None = None,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[dict]:
        rows = [r for r in self._table(table) if _matches(r, filters)]
        if order:
            rows = _sort_rows(rows, order)
        if limit is not None:
            rows = rows[:limit]
        if columns != "*":
            wanted = [c.strip() for c in columns.split(",")]
            rows = [{c: r.get(c) for c in wanted} for r in rows]
        return copy.deepcopy(rows)

    async def insert(self, table: str, row: dict[str, Any]) -> dict:
        now = _now().isoformat()
        record = {"id": str(uuid4()), "created_at": now, "updated_at": now}
        record.update(copy.deepcopy(row))
        self._table(table).append(record)
        logger.debug("Memory store: inserted into %s id=%s", table, record["id"])
        return copy.deepcopy(record)

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        *,
        filters: dict[str, Any],
    ) -> list[dict]:
        updated = []
        for row in self._table(table):
            if _matches(row, filters):
                row.update(copy.deepcopy(values))
                if "updated_at" in row and "updated_at" not in values:
                    row["updated_at"] = _now().isoformat()
                updated.append(copy.deepcopy(row))
        return updated

    async def upsert(
        self,
        table: str,
        row: dict[str, Any],
        *,
        on_conflict: str = "id",
    ) -> dict:
        key = row.get(on_conflict)
        if key is not None:
            existing = await self.update(table, row, filters={on_conflict: key})
            if existing:
                return existing[0]
        return await self.insert(table, row)

    # ═══════════════════════════════════════════════════════════════════════
    # Auth
    # ═══════════════════════════════════════════════════════════════════════

    def _issue_token(self, account: dict) -> str:
        payload = {
            "sub": account["id"],
            "email": account["email"],
            "exp": _now() + self._token_ttl,
            "role": "authenticated",
        }
        return jwt.encode(payload, self._jwt_secret, algorithm=self._jwt_algorithm)

    @staticmethod
    def _public_user(account: dict) -> dict:
        return {
            "id": account["id"],
            "email": account["email"],
            "user_metadata": dict(account.get("user_metadata") or {}),
            "created_at": account["created_at"],
        }

    async def get_user(self, token: str) -> dict:
        try:
            payload = jwt.decode(token, self._jwt_secret, algorithms=[self._jwt_algorithm])
        except JWTError as exc:
            raise AuthenticationError("Unauthorized: Invalid token") from exc
        account = self._accounts.get(payload.get("email", ""))
        if account is None or account["id"] != payload.get("sub"):
            raise AuthenticationError("Unauthorized: Invalid token")
        return self._public_user(account)

    async def sign_up(self, email: str, password: str, metadata: dict[str, Any] | None = None) -> dict:
        if email in self._accounts:
            raise ConflictError("User already exists with this email", details={"field": "email"})
        account = {
            "id": str(uuid4()),
            "email": email,
            "password_hash": bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8"),
            "user_metadata": dict(metadata or {}),
            "created_at": _now().isoformat(),
        }
        self._accounts[email] = account
        logger.info("Memory store: created account <%s>", email)
        return self._public_user(account)

    async def sign_in(self, email: str, password: str) -> dict:
        account = self._accounts.get(email)
        if account is None or not bcrypt.checkpw(
            password.encode("utf-8"), account["password_hash"].encode("utf-8")
        ):
            raise AuthenticationError("Invalid email or password")
        return {
            "access_token": self._issue_token(account),
            "token_type": "bearer",
            "expires_in": int(self._token_ttl.total_seconds()),
            "user": self._public_user(account),
        }

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
        objects = self._objects.setdefault(bucket, {})
        if path in objects and not upsert:
            raise RemoteServiceError("The resource already exists", details={"status": 409})
        objects[path] = (content, content_type)
        return path

    async def list_objects(self, bucket: str, prefix: str) -> list[dict]:
        prefix = prefix.strip("/")
        entries: dict[str, dict] = {}
        for path in self._objects.get(bucket, {}):
            head, _, name = path.rpartition("/")
            if head == prefix:
                entries[name] = {"name": name, "id": path}
            elif head.startswith(f"{prefix}/") or (not prefix and head):
                folder = head[len(prefix):].strip("/").split("/")[0]
                entries.setdefault(folder, {"name": folder, "id": None})
        return [entries[name] for name in sorted(entries)]

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self._public_base_url}/storage/v1/object/public/{bucket}/{path}"

    def read_object(self, bucket: str, path: str) -> tuple[bytes, str] | None:
        return self._objects.get(bucket, {}).get(path)

    # ═══════════════════════════════════════════════════════════════════════
    # Serverless functions
    # ═══════════════════════════════════════════════════════════════════════

    def register_function(self, name: str, handler: FunctionHandler) -> None:
        self._functions[name] = handler

    async def invoke_function(
        self,
        name: str,
        payload: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> dict:
        handler = self._functions.get(name)
        if handler is None:
            raise RemoteServiceError(f"Function not found: {name}", details={"status": 404})
        return await handler(self, payload)


# ═══════════════════════════════════════════════════════════════════════════════
# Report generator stand-in
# ═══════════════════════════════════════════════════════════════════════════════

def _render_report_text(payload: dict[str, Any]) -> bytes:
    lines = [
        "Vrai Company",
        f"Customer Name: {payload.get('fullName') or 'Customer'}",
        f"Submission ID: {payload.get('submissionId')}",
        f"Model: {payload.get('model')}",
        f"Date: {payload.get('updatedAt')}",
        "Images:",
        *[f"  {url}" for url in payload.get("images") or []],
    ]
    return "\n".join(lines).encode("utf-8")


def make_report_function(bucket: str) -> FunctionHandler:
    """
    Builds a stand-in for the hosted PDF generation function.

    Stores ``<submissionId>.pdf`` in ``bucket`` and writes the public URL back
    to the request whose human-readable ID matches (case-insensitive).
    """

    async def generate_report(store: MemoryDataService, payload: dict[str, Any]) -> dict:
        submission_id = str(payload.get("submissionId") or "")
        if not submission_id:
            raise RemoteServiceError("Failed to generate report")
        file_name = f"{submission_id}.pdf"
        await store.upload_object(
            bucket, file_name, _render_report_text(payload), "application/pdf", upsert=True
        )
        url = store.public_url(bucket, file_name)
        for row in store._table("authentication_requests"):
            if str(row.get("human_readable_id") or "").lower() == submission_id.lower():
                row["report_url"] = url
                row["updated_at"] = _now().isoformat()
        return {"status": "success", "url": url}

    return generate_report


__all__ = ["MemoryDataService", "make_report_function"]
