from __future__ import annotations

from typing import Any

import httpx

_http: httpx.AsyncClient | None = None


class SupabaseRestError(Exception):
    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: str | None = None,
        hint: str | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.hint = hint
        self.details = details

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409 or self.code == "23505"


def get_http() -> httpx.AsyncClient:
    global _http
    if _http is None:
        _http = httpx.AsyncClient(timeout=httpx.Timeout(30.0))
    return _http


async def close_http() -> None:
    global _http
    if _http is not None:
        await _http.aclose()
        _http = None


def _str_or_none(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return value if isinstance(value, str) else None


def error_from_response(resp: httpx.Response) -> SupabaseRestError:
    code = message = hint = None
    details: Any | None = None
    try:
        payload = resp.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        code = _str_or_none(payload, "code")
        message = _str_or_none(payload, "message")
        hint = _str_or_none(payload, "hint")
        details = payload.get("details")
    elif isinstance(payload, str):
        message = payload

    if not message:
        message = resp.text.strip() or None

    return SupabaseRestError(
        status_code=resp.status_code,
        code=code,
        message=message or f"Supabase request failed ({resp.status_code})",
        hint=hint,
        details=details,
    )


def _as_rows(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, list):
        return [r for r in data if isinstance(r, dict)]
    if isinstance(data, dict):
        return [data]
    return []


class SupabaseRest:
    """Minimal PostgREST client; every call is authorised with one server key."""

    def __init__(self, supabase_url: str, api_key: str):
        self._rest_base = supabase_url.rstrip("/") + "/rest/v1"
        self._api_key = api_key

    def _headers(self, *, prefer: str | None = None) -> dict[str, str]:
        h = {
            "apikey": self._api_key,
            "authorization": f"Bearer {self._api_key}",
            "accept": "application/json",
        }
        if prefer:
            h["prefer"] = prefer
        return h

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        prefer: str | None = None,
    ) -> list[dict[str, Any]]:
        resp = await get_http().request(
            method,
            f"{self._rest_base}/{table}",
            headers=self._headers(prefer=prefer),
            params=params,
            json=json,
        )
        if resp.status_code >= 400:
            raise error_from_response(resp)
        if not resp.content:
            return []
        return _as_rows(resp.json())

    async def select(self, table: str, *, params: dict[str, Any]) -> list[dict[str, Any]]:
        return await self._request("GET", table, params=params)

    async def insert_one(self, table: str, *, row: dict[str, Any]) -> dict[str, Any]:
        rows = await self._request(
            "POST", table, json=row, prefer="return=representation"
        )
        return rows[0] if rows else {}

    async def upsert_one(
        self,
        table: str,
        *,
        row: dict[str, Any],
        on_conflict: str,
        ignore_duplicates: bool = False,
    ) -> dict[str, Any]:
        resolution = "ignore-duplicates" if ignore_duplicates else "merge-duplicates"
        rows = await self._request(
            "POST",
            table,
            params={"on_conflict": on_conflict},
            json=row,
            prefer=f"resolution={resolution},return=representation",
        )
        return rows[0] if rows else {}

    async def patch(
        self, table: str, *, params: dict[str, Any], payload: dict[str, Any]
    ) -> list[dict[str, Any]]:
        return await self._request(
            "PATCH", table, params=params, json=payload, prefer="return=representation"
        )

    async def delete(self, table: str, *, params: dict[str, Any]) -> list[dict[str, Any]]:
        return await self._request(
            "DELETE", table, params=params, prefer="return=representation"
        )
