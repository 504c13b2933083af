"""Query transports: plugin HTTP endpoint or direct PostgreSQL connection"""
from __future__ import annotations

import asyncio
import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence

import aiohttp
import asyncpg

from sqlquery.core.errors import Misconfigured, NoResultSet, RequestFailed
from sqlquery.core.settings_store import ConnectionSettings, SettingsStore
from sqlquery.smart_logger import SmartLogger


class QueryTransport(Protocol):
    """Anything that can run SQL text with positional parameters."""

    async def run(self, database: str, query: str, params: Sequence[Any] = ()) -> Any:
        ...


class PluginClient:
    """POST JSON to the query plugin and decode the JSON reply."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        base_url: str,
        path_prefix: str = "/api/plugins/postgresql",
        timeout_seconds: float = 30.0,
    ):
        self._session = session
        self.base_url = base_url.rstrip("/")
        self.path_prefix = "/" + path_prefix.strip("/") if path_prefix.strip("/") else ""
        self.timeout_seconds = timeout_seconds

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{self.path_prefix}/{path.lstrip('/')}"

    async def post_json(self, path: str, body: Dict[str, Any]) -> Any:
        """
        Returns the decoded body, which is always a JSON object or array.

        Raises:
            RequestFailed: connection error, timeout or non-2xx status.
            NoResultSet: body absent, not JSON, or not an object/array.
        """
        url = self.url_for(path)
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        try:
            async with self._session.post(url, json=body, timeout=timeout) as resp:
                if not 200 <= resp.status < 300:
                    SmartLogger.log(
                        "WARNING",
                        "transport.http.status",
                        category="transport.http",
                        params={"path": path, "status": resp.status},
                    )
                    raise RequestFailed(status=resp.status)
                try:
                    data = await resp.json(content_type=None)
                except ValueError:
                    data = None
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            SmartLogger.log(
                "WARNING",
                "transport.http.error",
                category="transport.http",
                params={"path": path, "error": repr(exc)},
            )
            raise RequestFailed() from exc

        if data is None or not isinstance(data, (dict, list)):
            raise NoResultSet()
        return data


class HttpQueryTransport:
    """Sends ``{query, args}`` to ``<prefix>/<database>_sql_query``."""

    def __init__(self, client: PluginClient):
        self.client = client

    async def run(self, database: str, query: str, params: Sequence[Any] = ()) -> Any:
        return await self.client.post_json(
            f"{database}_sql_query",
            {"query": query, "args": list(params)},
        )


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


class DirectQueryTransport:
    """
    Runs queries over a short-lived asyncpg connection built from the
    persisted connection settings. The logical ``database`` name is ignored;
    the connection goes to ``settings.database``. The connection is always
    closed, whatever the outcome.
    """

    def __init__(self, store: SettingsStore[ConnectionSettings], *, timeout_seconds: float = 30.0):
        self.store = store
        self.timeout_seconds = timeout_seconds

    def _connect_kwargs(self) -> Dict[str, Any]:
        conn_settings = self.store.get()
        missing = conn_settings.missing_required()
        if missing:
            raise Misconfigured(f"Connection settings not configured: {', '.join(missing)}")

        port: Optional[int] = None
        if conn_settings.port.strip():
            try:
                port = int(conn_settings.port)
            except ValueError:
                raise Misconfigured(f"Invalid port: {conn_settings.port!r}")

        return {
            "host": conn_settings.host,
            "port": port,
            "user": conn_settings.user,
            "password": conn_settings.password or None,
            "database": conn_settings.database,
        }

    async def run(self, database: str, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        kwargs = self._connect_kwargs()
        try:
            conn = await asyncio.wait_for(asyncpg.connect(**kwargs), timeout=self.timeout_seconds)
        except (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            SmartLogger.log(
                "WARNING",
                "transport.direct.connect_error",
                category="transport.direct",
                params={"host": kwargs["host"], "error": repr(exc)},
            )
            raise RequestFailed() from exc

        try:
            rows = await asyncio.wait_for(conn.fetch(query, *params), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise RequestFailed(
                f"Failed to get query: timeout after {self.timeout_seconds} seconds"
            ) from exc
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            raise RequestFailed(f"Failed to get query: {exc}") from exc
        finally:
            await conn.close()

        return [{key: _jsonable(value) for key, value in dict(row).items()} for row in rows]
