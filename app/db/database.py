import logging
from typing import Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, PyMongoError

from app.core.config import settings

logger = logging.getLogger(__name__)

JOURNAL_COLLECTION = "journals"
OVERTHINKING_COLLECTION = "overthinkings"
MISTAKE_COLLECTION = "mistakes"
USER_COLLECTION = "users"

client: Optional[MongoClient] = None
db: Optional[Database] = None


def connect_database() -> None:
    global client, db
    try:
        client = MongoClient(settings.MONGODB_URI)
        client.admin.command("ping")
        if settings.DB_NAME:
            db = client[settings.DB_NAME]
        else:
            db = client.get_default_database(default=settings.DEFAULT_DB_NAME)
        logger.info("MongoDB connected: %s/%s", client.address, db.name)
        ensure_indexes(db)
    except ConnectionFailure as e:
        logger.error("Could not connect to MongoDB: %s", e)
        db = None
    except PyMongoError as e:
        logger.error("Unexpected MongoDB error: %s", e)
        db = None


def close_database() -> None:
    global client, db
    if client is not None:
        client.close()
    client = None
    db = None


def ensure_indexes(database: Database) -> None:
    for name in (JOURNAL_COLLECTION, OVERTHINKING_COLLECTION, MISTAKE_COLLECTION):
        collection = database[name]
        collection.create_index([("userId", ASCENDING), ("date", DESCENDING)])
        collection.create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])
    for name in (OVERTHINKING_COLLECTION, MISTAKE_COLLECTION):
        database[name].create_index([("userId", ASCENDING), ("category", ASCENDING)])
    database[USER_COLLECTION].create_index("firebaseUid", unique=True)


def get_database() -> Database:
    if db is None:
        raise ConnectionFailure("Database is not initialized. Check the MongoDB connection.")
    return db


def get_journal_collection() -> Collection:
    return get_database()[JOURNAL_COLLECTION]


def get_overthinking_collection() -> Collection:
    return get_database()[OVERTHINKING_COLLECTION]


def get_mistake_collection() -> Collection:
    return get_database()[MISTAKE_COLLECTION]


def get_user_collection() -> Collection:
    return get_database()[USER_COLLECTION]
