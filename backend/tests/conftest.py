"""
Pytest fixtures for screening stores, services and the HTTP client.

Every store-level fixture is parametrized over both backends so the same
tests hold the relational store (SQLite via aiosqlite) and the document
store (mongomock-motor) to one contract.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import PyMongoError
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from cinema_booking.api.deps import get_screening_store
from cinema_booking.db.base import Base
from cinema_booking.db.session import create_session_factory
from cinema_booking.main import app
from cinema_booking.models import Film, Screening
from cinema_booking.services.catalog_service import CatalogReader
from cinema_booking.services.interfaces.screening_store import ScreeningStore
from cinema_booking.services.order_service import OrderAssembler
from cinema_booking.services.stores.document_store import MongoScreeningStore
from cinema_booking.services.stores.relational_store import SqlScreeningStore

FILM_ID = "d290f1ee-6c54-4b01-90e6-d701748f0851"
OTHER_FILM_ID = "51b4bc85-646d-47fc-b988-3e7051a9fe9e"

SESSION_ID = "95ab4a20-9555-4a06-bfac-184b8c53fe70"
EVENING_SESSION_ID = "4be19f0b-2f48-4d31-9bd6-1f3a5c0e2d7a"
PARTLY_TAKEN_SESSION_ID = "7f3d1c2e-8e4b-4b5a-a2c1-0f9e8d7c6b5a"
OTHER_FILM_SESSION_ID = "c6a2f0de-92b1-4c8e-9e3a-5d4b3a2c1f00"

FILMS = [
    {
        "id": FILM_ID,
        "title": "Архитекторы общества",
        "director": "Итан Райт",
        "rating": 2.9,
        "tags": ["Документальный"],
        "image": "/images/bg1s.jpg",
        "cover": "/images/bg1c.jpg",
    },
    {
        "id": OTHER_FILM_ID,
        "title": "Недостижимая утопия",
        "director": "Харрисон Рид",
        "rating": 9.0,
        "tags": ["Рекомендуемые"],
    },
]

# Listed out of daytime order on purpose
SCREENINGS = [
    {
        "id": EVENING_SESSION_ID,
        "film_id": FILM_ID,
        "daytime": datetime(2025, 12, 5, 19, 0, tzinfo=timezone.utc),
        "hall": "2",
        "rows": 5,
        "seats": 10,
        "price": 500,
        "taken": [],
    },
    {
        "id": SESSION_ID,
        "film_id": FILM_ID,
        "daytime": datetime(2025, 12, 5, 10, 30, tzinfo=timezone.utc),
        "hall": "1",
        "rows": 5,
        "seats": 10,
        "price": 350,
        "taken": [],
    },
    {
        "id": PARTLY_TAKEN_SESSION_ID,
        "film_id": FILM_ID,
        "daytime": datetime(2025, 12, 6, 12, 0, tzinfo=timezone.utc),
        "hall": "3",
        "rows": 5,
        "seats": 10,
        "price": 350,
        "taken": ["2:3"],
    },
    {
        "id": OTHER_FILM_SESSION_ID,
        "film_id": OTHER_FILM_ID,
        "daytime": datetime(2025, 12, 7, 18, 0, tzinfo=timezone.utc),
        "hall": "1",
        "rows": 3,
        "seats": 4,
        "price": 400,
        "taken": [],
    },
]


async def _relational_store(tmp_path) -> SqlScreeningStore:
    # File database so concurrent callers get separate connections
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'booking.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        session.add_all(Film(**film) for film in FILMS)
        session.add_all(Screening(**screening) for screening in SCREENINGS)
        await session.commit()

    return SqlScreeningStore(engine, session_factory)


async def _document_store() -> MongoScreeningStore:
    database = AsyncMongoMockClient()["afisha_test"]
    await database["films"].insert_many([dict(film) for film in FILMS])
    await database["screenings"].insert_many(
        [
            {
                "id": s["id"],
                "filmId": s["film_id"],
                "daytime": s["daytime"],
                "hall": s["hall"],
                "rows": s["rows"],
                "seats": s["seats"],
                "price": s["price"],
                "taken": list(s["taken"]),
            }
            for s in SCREENINGS
        ]
    )
    return MongoScreeningStore(database)


@pytest_asyncio.fixture(params=["relational", "document"])
async def store(request, tmp_path) -> AsyncGenerator[ScreeningStore, None]:
    """A seeded screening store, once per backend."""
    if request.param == "relational":
        screening_store = await _relational_store(tmp_path)
    else:
        screening_store = await _document_store()
    yield screening_store
    await screening_store.close()


@pytest_asyncio.fixture
async def catalog(store: ScreeningStore) -> CatalogReader:
    return CatalogReader(store)


@pytest_asyncio.fixture
async def assembler(catalog: CatalogReader, store: ScreeningStore) -> OrderAssembler:
    return OrderAssembler(catalog, store)


@pytest_asyncio.fixture
async def client(store: ScreeningStore) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the store dependency with the seeded store."""
    app.dependency_overrides[get_screening_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def ticket(film=FILM_ID, session=SESSION_ID, row=1, seat=1, price=350, daytime="2025-12-05T10:30:00Z"):
    return {"film": film, "session": session, "daytime": daytime, "row": row, "seat": seat, "price": price}


class _UnreachableCollection:
    async def update_one(self, *args, **kwargs):
        raise PyMongoError("server selection timeout")

    async def find_one(self, *args, **kwargs):
        raise PyMongoError("server selection timeout")


async def break_screening_storage(store: ScreeningStore) -> None:
    """Make every later screening read or write fail inside the driver."""
    if isinstance(store, SqlScreeningStore):
        async with store._engine.begin() as conn:
            await conn.execute(text("DROP TABLE screenings"))
    else:
        store._screenings = _UnreachableCollection()
