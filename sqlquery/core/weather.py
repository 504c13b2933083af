"""Weather provider client (location search + current conditions)"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from sqlquery.core.errors import Misconfigured, MissingArgument, NoResultSet, RequestFailed
from sqlquery.core.location_cache import LocationKeyCache
from sqlquery.core.settings_store import SettingsStore, WeatherSettings
from sqlquery.smart_logger import SmartLogger


class WeatherClient:
    def __init__(
        self,
        session: aiohttp.ClientSession,
        store: SettingsStore[WeatherSettings],
        *,
        base_url: str = "http://dataservice.accuweather.com",
        cache: Optional[LocationKeyCache] = None,
        timeout_seconds: float = 30.0,
    ):
        self._session = session
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.cache = cache or LocationKeyCache()
        self.timeout_seconds = timeout_seconds

    def _api_key(self) -> str:
        api_key = self.store.get().apiKey.strip()
        if not api_key:
            raise Misconfigured("Weather apiKey is not configured")
        return api_key

    async def _get_json(self, path: str, params: Dict[str, str]) -> Any:
        url = f"{self.base_url}{path}"
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        try:
            async with self._session.get(url, params=params, timeout=timeout) as resp:
                if not 200 <= resp.status < 300:
                    raise RequestFailed("Failed to get weather data", status=resp.status)
                try:
                    data = await resp.json(content_type=None)
                except ValueError:
                    data = None
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            SmartLogger.log(
                "WARNING",
                "weather.http.error",
                category="weather.http",
                params={"path": path, "error": repr(exc)},
            )
            raise RequestFailed("Failed to get weather data") from exc
        if data is None or not isinstance(data, (dict, list)):
            raise NoResultSet()
        return data

    async def resolve_location_key(self, location: str) -> str:
        """Provider key for ``location``; repeated names are served from the cache."""
        if not (location or "").strip():
            raise MissingArgument("location is required")

        cached = self.cache.get(location)
        if cached is not None:
            return cached

        data = await self._get_json(
            "/locations/v1/cities/search",
            {"apikey": self._api_key(), "q": location},
        )
        if not isinstance(data, list) or not data or not isinstance(data[0], dict) or "Key" not in data[0]:
            raise NoResultSet(f"No location found for {location!r}")

        key = str(data[0]["Key"])
        self.cache.put(location, key)
        SmartLogger.log(
            "DEBUG",
            "weather.location.resolved",
            category="weather.location",
            params={"location": location, "key": key},
        )
        return key

    async def current_conditions(self, location: Optional[str] = None) -> Dict[str, Any]:
        weather_settings = self.store.get()
        location = (location or "").strip() or weather_settings.preferredLocation.strip()
        if not location:
            raise MissingArgument("location is required when no preferredLocation is set")

        key = await self.resolve_location_key(location)
        data = await self._get_json(f"/currentconditions/v1/{key}", {"apikey": self._api_key()})
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            raise NoResultSet()

        conditions = data[0]
        system = "Imperial" if weather_settings.units.strip().lower() == "imperial" else "Metric"
        temperature = (conditions.get("Temperature") or {}).get(system) or {}
        return {
            "location": location,
            "location_key": key,
            "text": conditions.get("WeatherText"),
            "temperature": temperature.get("Value"),
            "unit": temperature.get("Unit"),
            "observed_at": conditions.get("LocalObservationDateTime"),
        }


def format_conditions(conditions: Dict[str, Any]) -> str:
    return (
        f"{conditions['location']}: {conditions.get('text') or 'Unknown'}, "
        f"{conditions.get('temperature')} {conditions.get('unit') or ''}".rstrip()
    )
