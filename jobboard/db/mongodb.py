"""
MongoDB Connection Utility

MongoDB stores every durable entity of the job board:
- users: identity, credentials, skills, resume reference
- jobs: postings owned by recruiters
- applications: one per (user, job) pair
- admin_invites / admin_logs: elevation grants and the audit trail
- pending_registrations: transient OTP entries (TTL-evicted)
"""
import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection

from jobboard.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the job board database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    """
    Get a specific collection.
    Use the COLLECTIONS constants below for names.
    """
    db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        # ping command checks connection
        get_mongo_db().command('ping')
        return True
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "jobs": "jobs",
    "applications": "applications",
    "admin_invites": "admin_invites",
    "admin_logs": "admin_logs",
    "pending_registrations": "pending_registrations",
}


def init_mongo_indexes():
    """
    Create indexes. Call this once during app startup.

    The unique indexes are what actually enforce one user per email,
    one application per (user, job) and one invite per token - the
    application-side checks only produce friendlier errors.
    """
    db = get_mongo_db()

    db[COLLECTIONS["users"]].create_index("email", unique=True)
    db[COLLECTIONS["users"]].create_index("role")

    db[COLLECTIONS["jobs"]].create_index("recruiter_id")
    db[COLLECTIONS["jobs"]].create_index([("is_active", ASCENDING), ("posted_at", DESCENDING)])

    db[COLLECTIONS["applications"]].create_index([
        ("user_id", ASCENDING),
        ("job_id", ASCENDING)
    ], unique=True)
    db[COLLECTIONS["applications"]].create_index("job_id")

    db[COLLECTIONS["admin_invites"]].create_index("token", unique=True)
    db[COLLECTIONS["admin_logs"]].create_index([("actor_id", ASCENDING), ("timestamp", DESCENDING)])

    # One pending registration per email; the TTL monitor sweeps expired ones
    db[COLLECTIONS["pending_registrations"]].create_index("email", unique=True)
    db[COLLECTIONS["pending_registrations"]].create_index("expires_at", expireAfterSeconds=0)

    logger.info("MongoDB indexes created successfully")
