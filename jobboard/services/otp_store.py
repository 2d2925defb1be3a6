"""
Pending registrations - the transient OTP table.

Keyed by email, one document per key. A registration lives here until its
code is verified; only then does a row appear in `users`. Writes are per-key
upserts (last write wins), reads treat an expired entry as absent and drop it,
and Mongo's TTL monitor sweeps whatever nobody reads again.

Only a hash of the code is stored.
"""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Optional

from pymongo.collection import Collection

from jobboard.db.mongodb import get_collection, COLLECTIONS
from jobboard.services.mongo_service import utcnow


def generate_otp() -> str:
    """Six digit numeric code, 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


def hash_otp(email: str, code: str) -> str:
    return hashlib.sha256(f"{email}:{code}".encode()).hexdigest()


class OtpStore:

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["pending_registrations"])

    def put(self, email: str, code: str, ttl: timedelta, name: str, role: str, password_hash: str) -> datetime:
        """Store (or overwrite) the pending entry for email. Returns its expiry."""
        now = utcnow()
        expires_at = now + ttl
        self.collection.update_one(
            {"email": email},
            {"$set": {
                "email": email,
                "code_hash": hash_otp(email, code),
                "name": name,
                "role": role,
                "password_hash": password_hash,
                "expires_at": expires_at,
                "created_at": now,
            }},
            upsert=True
        )
        return expires_at

    def get(self, email: str, now: Optional[datetime] = None) -> Optional[dict]:
        """Live entry for email, or None. Expired entries are deleted on the way."""
        entry = self.collection.find_one({"email": email})
        if entry is None:
            return None
        if (now or utcnow()) > entry["expires_at"]:
            self.collection.delete_one({"_id": entry["_id"]})
            return None
        return entry

    @staticmethod
    def matches(entry: dict, email: str, code: str) -> bool:
        return hmac.compare_digest(entry["code_hash"], hash_otp(email, code))

    def discard(self, email: str) -> None:
        self.collection.delete_one({"email": email})
