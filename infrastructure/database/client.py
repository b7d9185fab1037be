# infrastructure/database/client.py
import logging

from pymongo import MongoClient
from pymongo.database import Database

from app.config.settings import settings

logger = logging.getLogger(__name__)

_client = None


def get_db() -> Database:
    """Get a MongoDB database client instance.

    The underlying MongoClient is created once and reused; it keeps its own connection pool.
    """
    global _client
    try:
        if _client is None:
            _client = MongoClient(settings.MONGO_URI, tz_aware=True)
        db = _client[settings.MONGO_DB]
        logger.info(f"Connected to MongoDB database: {settings.MONGO_DB}")
        return db
    except Exception as e:
        logger.error(f"Failed to connect to MongoDB: {str(e)}", exc_info=True)
        raise
