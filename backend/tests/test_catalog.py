"""
Tests for the catalog reader, the schedule cache and record normalization.
"""

from datetime import datetime, timezone

import pytest
from redis.exceptions import RedisError

from cinema_booking.services import cache_service, catalog_service
from cinema_booking.services.interfaces.records import normalize_taken, parse_daytime, seat_key, unique_keys
from conftest import FILM_ID, SESSION_ID


@pytest.mark.asyncio
async def test_list_schedule_shape(catalog):
    data = await catalog.list_schedule(FILM_ID)
    assert data["total"] == 3
    first = data["items"][0]
    assert set(first) == {"id", "daytime", "hall", "rows", "seats", "price", "taken"}
    assert first["id"] == SESSION_ID
    assert first["daytime"] == "2025-12-05T10:30:00+00:00"


@pytest.mark.asyncio
async def test_list_schedule_sorts_taken_seats(catalog, store):
    await store.reserve_seats(FILM_ID, SESSION_ID, ["10:2", "2:10", "2:9"])
    data = await catalog.list_schedule(FILM_ID)
    assert data["items"][0]["taken"] == ["2:9", "2:10", "10:2"]


@pytest.mark.asyncio
async def test_list_schedule_served_from_cache(catalog, store, monkeypatch):
    cached = {"total": 0, "items": []}
    stored = []

    async def fake_get(film_id):
        return cached

    async def fake_set(film_id, data):
        stored.append(film_id)

    async def fail_listing(film_id):
        raise AssertionError("store must not be read on a cache hit")

    monkeypatch.setattr(catalog_service, "get_cached_schedule", fake_get)
    monkeypatch.setattr(catalog_service, "set_cached_schedule", fake_set)
    monkeypatch.setattr(store, "list_screenings_for_film", fail_listing)

    assert await catalog.list_schedule(FILM_ID) is cached
    assert stored == []


@pytest.mark.asyncio
async def test_list_schedule_populates_cache_on_miss(catalog, monkeypatch):
    stored = {}

    async def fake_get(film_id):
        return None

    async def fake_set(film_id, data):
        stored[film_id] = data

    monkeypatch.setattr(catalog_service, "get_cached_schedule", fake_get)
    monkeypatch.setattr(catalog_service, "set_cached_schedule", fake_set)

    data = await catalog.list_schedule(FILM_ID)
    assert stored == {FILM_ID: data}


@pytest.mark.asyncio
async def test_cache_disabled_is_a_miss():
    assert await cache_service.get_redis() is None
    assert await cache_service.get_cached_schedule(FILM_ID) is None
    await cache_service.set_cached_schedule(FILM_ID, {"total": 0, "items": []})
    await cache_service.invalidate_schedule(FILM_ID)
    assert await cache_service.get_cache_stats() == {"status": "disabled"}


def test_schedule_cache_key():
    assert cache_service.make_schedule_key("f1") == "schedule:film=f1"


@pytest.mark.parametrize(
    "raw, expected",
    [
        (["1:1", "1:2"], {"1:1", "1:2"}),
        ('["1:1", "2:2"]', {"1:1", "2:2"}),
        ("", set()),
        ("not json", set()),
        ('{"1:1": true}', set()),
        (None, set()),
    ],
)
def test_normalize_taken(raw, expected):
    assert normalize_taken(raw) == frozenset(expected)


def test_parse_daytime():
    assert parse_daytime("2023-05-29T10:30:00.001Z") == datetime(2023, 5, 29, 10, 30, 0, 1000, tzinfo=timezone.utc)
    assert parse_daytime(datetime(2025, 1, 1, 12, 0)).tzinfo == timezone.utc


def test_seat_keys():
    assert seat_key(2, 7) == "2:7"
    assert unique_keys(["1:1", "1:2", "1:1"]) == ["1:1", "1:2"]


class _BrokenRedis:
    async def get(self, key):
        raise RedisError("connection reset")

    async def set(self, key, value, ex=None):
        raise RedisError("connection reset")

    async def delete(self, key):
        raise RedisError("connection reset")


@pytest.mark.asyncio
async def test_cache_errors_degrade_to_store(catalog, monkeypatch):
    """A failing Redis never fails the listing or the invalidation."""

    async def broken_client():
        return _BrokenRedis()

    monkeypatch.setattr(cache_service, "get_redis", broken_client)

    assert await cache_service.get_cached_schedule(FILM_ID) is None
    await cache_service.invalidate_schedule(FILM_ID)

    data = await catalog.list_schedule(FILM_ID)
    assert data["total"] == 3
