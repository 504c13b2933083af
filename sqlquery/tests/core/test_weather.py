# python -m pytest sqlquery/tests/core/test_weather.py -v

import time

import aiohttp
import pytest
from aiohttp import test_utils, web

from sqlquery.core.errors import Misconfigured, MissingArgument, NoResultSet
from sqlquery.core.location_cache import LocationKeyCache
from sqlquery.core.settings_store import WEATHER_EXTENSION_KEY, SettingsStore, WeatherSettings
from sqlquery.core.weather import WeatherClient, format_conditions


class TestLocationKeyCache:
    def test_get_put(self):
        cache = LocationKeyCache(max_size=4)
        assert cache.get("Dublin") is None
        cache.put("Dublin", "207931")
        assert cache.get("Dublin") == "207931"
        stats = cache.get_stats()
        assert stats["total_hits"] == 1
        assert stats["total_misses"] == 1

    def test_keys_are_raw_strings(self):
        cache = LocationKeyCache()
        cache.put("Dublin", "1")
        assert cache.get("dublin") is None
        assert cache.get(" Dublin") is None

    def test_lru_eviction(self):
        cache = LocationKeyCache(max_size=2)
        cache.put("a", "1")
        cache.put("b", "2")
        cache.get("a")
        cache.put("c", "3")
        assert cache.get("b") is None
        assert cache.get("a") == "1"
        assert cache.get("c") == "3"
        assert len(cache) == 2

    def test_ttl_expiry(self, monkeypatch):
        cache = LocationKeyCache(ttl_seconds=10)
        cache.put("a", "1")
        now = time.time()
        monkeypatch.setattr(time, "time", lambda: now + 11)
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_clear(self):
        cache = LocationKeyCache()
        cache.put("a", "1")
        assert cache.clear() == 1
        assert len(cache) == 0

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            LocationKeyCache(max_size=0)


def _weather_app(counter):
    async def search(request):
        counter["search"] += 1
        assert request.query["apikey"] == "secret"
        if request.query["q"] == "Nowhere":
            return web.json_response([])
        return web.json_response([{"Key": "207931", "LocalizedName": request.query["q"]}])

    async def conditions(request):
        counter["conditions"] += 1
        return web.json_response([{
            "WeatherText": "Light rain",
            "LocalObservationDateTime": "2024-01-02T10:00:00+00:00",
            "Temperature": {
                "Metric": {"Value": 8.0, "Unit": "C"},
                "Imperial": {"Value": 46.0, "Unit": "F"},
            },
        }])

    app = web.Application()
    app.router.add_get("/locations/v1/cities/search", search)
    app.router.add_get("/currentconditions/v1/{key}", conditions)
    return app


def _store(tmp_path, **values):
    store = SettingsStore(str(tmp_path / "s.json"), WEATHER_EXTENSION_KEY, WeatherSettings)
    store.load()
    for key, value in values.items():
        setattr(store.get(), key, value)
    return store


class TestWeatherClient:
    @pytest.mark.asyncio
    async def test_second_resolution_served_from_cache(self, tmp_path):
        counter = {"search": 0, "conditions": 0}
        async with test_utils.TestServer(_weather_app(counter)) as server:
            async with aiohttp.ClientSession() as session:
                client = WeatherClient(
                    session, _store(tmp_path, apiKey="secret"), base_url=str(server.make_url("/"))
                )
                first = await client.resolve_location_key("Dublin")
                second = await client.resolve_location_key("Dublin")

        assert first == second == "207931"
        assert counter["search"] == 1

    @pytest.mark.asyncio
    async def test_current_conditions_uses_preferred_location_and_units(self, tmp_path):
        counter = {"search": 0, "conditions": 0}
        store = _store(tmp_path, apiKey="secret", preferredLocation="Galway", units="imperial")
        async with test_utils.TestServer(_weather_app(counter)) as server:
            async with aiohttp.ClientSession() as session:
                client = WeatherClient(session, store, base_url=str(server.make_url("/")))
                conditions = await client.current_conditions()

        assert conditions["location"] == "Galway"
        assert conditions["temperature"] == 46.0
        assert conditions["unit"] == "F"
        assert format_conditions(conditions) == "Galway: Light rain, 46.0 F"

    @pytest.mark.asyncio
    async def test_metric_is_default(self, tmp_path):
        counter = {"search": 0, "conditions": 0}
        async with test_utils.TestServer(_weather_app(counter)) as server:
            async with aiohttp.ClientSession() as session:
                client = WeatherClient(session, _store(tmp_path, apiKey="secret"), base_url=str(server.make_url("/")))
                conditions = await client.current_conditions("Cork")

        assert conditions["unit"] == "C"

    @pytest.mark.asyncio
    async def test_unknown_location(self, tmp_path):
        counter = {"search": 0, "conditions": 0}
        async with test_utils.TestServer(_weather_app(counter)) as server:
            async with aiohttp.ClientSession() as session:
                client = WeatherClient(session, _store(tmp_path, apiKey="secret"), base_url=str(server.make_url("/")))
                with pytest.raises(NoResultSet):
                    await client.resolve_location_key("Nowhere")
        assert len(client.cache) == 0

    @pytest.mark.asyncio
    async def test_missing_api_key(self, tmp_path):
        client = WeatherClient(None, _store(tmp_path), base_url="http://unused")
        with pytest.raises(Misconfigured):
            await client.resolve_location_key("Dublin")

    @pytest.mark.asyncio
    async def test_no_location_anywhere(self, tmp_path):
        client = WeatherClient(None, _store(tmp_path, apiKey="secret"), base_url="http://unused")
        with pytest.raises(MissingArgument):
            await client.current_conditions()
