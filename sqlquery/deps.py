"""Service wiring and FastAPI dependencies"""
from __future__ import annotations

from typing import Dict, Optional

import aiohttp

from sqlquery.config import settings
from sqlquery.core.blob_storage import BlobUrlClient
from sqlquery.core.location_cache import LocationKeyCache
from sqlquery.core.settings_store import (
    SQLQUERY_EXTENSION_KEY,
    WEATHER_EXTENSION_KEY,
    ConnectionSettings,
    SettingsStore,
    WeatherSettings,
)
from sqlquery.core.sql_catalog import SqlCatalogService
from sqlquery.core.sql_guard import SQLGuard
from sqlquery.core.transport import DirectQueryTransport, HttpQueryTransport, PluginClient, QueryTransport
from sqlquery.core.weather import WeatherClient
from sqlquery.tools import (
    SlashCommandRegistry,
    ToolRegistry,
    ToolServices,
    register_function_tools,
    register_slash_commands,
)


class ServiceContainer:
    """Everything a request needs: registries and the settings stores."""

    def __init__(
        self,
        tools: ToolRegistry,
        commands: SlashCommandRegistry,
        stores: Dict[str, SettingsStore],
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.tools = tools
        self.commands = commands
        self.stores = stores
        self.session = session

    @classmethod
    def from_services(
        cls,
        services: ToolServices,
        stores: Dict[str, SettingsStore],
        session: Optional[aiohttp.ClientSession] = None,
    ) -> "ServiceContainer":
        tools = ToolRegistry()
        register_function_tools(tools, services)
        commands = SlashCommandRegistry()
        register_slash_commands(commands, services)
        return cls(tools, commands, stores, session)

    async def close(self) -> None:
        for store in self.stores.values():
            await store.flush()
        if self.session is not None and not self.session.closed:
            await self.session.close()


def build_container(session: aiohttp.ClientSession) -> ServiceContainer:
    connection_store = SettingsStore(
        settings.extension_settings_path,
        SQLQUERY_EXTENSION_KEY,
        ConnectionSettings,
        debounce_seconds=settings.settings_save_debounce_seconds,
    )
    weather_store = SettingsStore(
        settings.extension_settings_path,
        WEATHER_EXTENSION_KEY,
        WeatherSettings,
        debounce_seconds=settings.settings_save_debounce_seconds,
    )
    connection_store.load()
    weather_store.load()

    plugin = PluginClient(
        session,
        base_url=settings.plugin_base_url,
        path_prefix=settings.plugin_path_prefix,
        timeout_seconds=settings.query_timeout_seconds,
    )
    transport: QueryTransport
    if settings.transport_mode == "direct":
        transport = DirectQueryTransport(connection_store, timeout_seconds=settings.query_timeout_seconds)
    else:
        transport = HttpQueryTransport(plugin)

    services = ToolServices(
        catalog=SqlCatalogService(
            transport,
            query_database=settings.query_database,
            logging_database=settings.logging_database,
            row_limit=settings.lineage_row_limit,
            relation_mode=settings.lineage_relation_mode,
            default_source_filter=settings.lineage_source_filter,
            guard=SQLGuard(read_only=settings.raw_sql_read_only),
        ),
        blobs=BlobUrlClient(plugin),
        weather=WeatherClient(
            session,
            weather_store,
            base_url=settings.weather_base_url,
            cache=LocationKeyCache(
                max_size=settings.location_cache_max_size,
                ttl_seconds=settings.location_cache_ttl_seconds,
            ),
            timeout_seconds=settings.query_timeout_seconds,
        ),
    )
    return ServiceContainer.from_services(
        services,
        {SQLQUERY_EXTENSION_KEY: connection_store, WEATHER_EXTENSION_KEY: weather_store},
        session,
    )


# Global instance, set during application lifespan
container: Optional[ServiceContainer] = None


def get_services() -> ServiceContainer:
    """FastAPI dependency for the service container"""
    if container is None:
        raise RuntimeError("Services are not started")
    return container
