"""
Screening store factory.
Builds the configured storage backend once at startup.
"""

from pymongo import AsyncMongoClient

from cinema_booking.core.config import Settings
from cinema_booking.core.logging import get_logger
from cinema_booking.db.session import create_engine
from cinema_booking.services.interfaces.screening_store import ScreeningStore
from cinema_booking.services.stores.document_store import MongoScreeningStore
from cinema_booking.services.stores.relational_store import SqlScreeningStore

logger = get_logger(__name__)


def build_screening_store(settings: Settings) -> ScreeningStore:
    """
    Build the screening store selected by settings.STORAGE_BACKEND.

    - relational: SQLAlchemy async engine on DATABASE_URL (PostgreSQL or SQLite)
    - document: MongoDB database MONGO_DATABASE on MONGO_URL
    """
    if settings.STORAGE_BACKEND == "document":
        client = AsyncMongoClient(settings.MONGO_URL, tz_aware=True)
        store = MongoScreeningStore(client[settings.MONGO_DATABASE], client=client)
    else:
        store = SqlScreeningStore(create_engine(settings))

    logger.info("screening_store_selected", backend=store.backend_name)
    return store
