import logging
from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure

from ..config import settings

log = logging.getLogger(__name__)

# One client per process; pymongo pools connections internally.
db_client: MongoClient | None = None
db: Database | None = None

def connect_to_db(uri: Optional[str] = None, db_name: Optional[str] = None) -> Database:
    """Open the shared client and select the game database.

    Datetimes come back timezone-aware (UTC) so session durations can be
    computed directly against the game clock.
    """
    global db_client, db
    if db is not None:
        return db

    uri = uri or settings.MONGO_URI
    db_name = db_name or settings.MONGO_DB_NAME
    log.info(f"Connecting to MongoDB at {settings.MONGO_HOST}:{settings.MONGO_PORT} (database '{db_name}')...")
    client = MongoClient(uri, serverSelectionTimeoutMS=5000, tz_aware=True)
    try:
        client.admin.command('ping')
    except ConnectionFailure as e:
        log.error(f"Could not connect to MongoDB: {e}")
        client.close()
        raise ConnectionFailure("Failed to connect to MongoDB") from e

    db_client = client
    db = client[db_name]
    log.info(f"Successfully connected to MongoDB database: {db_name}")
    return db

def get_db() -> Database:
    """Returns the database instance, connecting if necessary."""
    return connect_to_db()

def close_db_connection():
    global db_client, db
    if db_client:
        log.info("Closing MongoDB connection.")
        db_client.close()
    db_client = None
    db = None
