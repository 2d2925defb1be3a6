"""
MongoDB Service - CRUD operations for document collections.

Collections in this database:
1. users          - identity, credentials, skills, resume reference
2. jobs           - postings owned by a recruiter
3. applications   - one per (user, job) pair, unique index enforced
4. admin_invites  - single-use elevation tokens
5. admin_logs     - append-only audit trail of privileged actions

Every write that has to be atomic is a single-document operation here
(find_one_and_update with a guarding filter, or insert against a unique
index). Callers never read-modify-write across two round trips when a
race would corrupt state.
"""

from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Type

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection

from jobboard.core.errors import NotFoundError
from jobboard.db.mongodb import get_collection, COLLECTIONS


# ============================================================
# HELPERS
# ============================================================

def utcnow() -> datetime:
    """Naive UTC timestamp - pymongo hands back naive datetimes by default."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def serialize_doc(doc: dict) -> dict:
    """Convert MongoDB document to JSON-serializable dict (_id becomes id)."""
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key == "_id":
            out["id"] = str(value)
        elif isinstance(value, ObjectId):
            out[key] = str(value)
        elif isinstance(value, list):
            out[key] = [str(v) if isinstance(v, ObjectId) else v for v in value]
        else:
            out[key] = value
    return out


def to_object_id(value: Any, not_found: Type[NotFoundError] = NotFoundError) -> ObjectId:
    """Parse an id from a path/body. Malformed ids can't exist, so they are 404s."""
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(str(value)):
        raise not_found()
    return ObjectId(str(value))


# ============================================================
# USERS COLLECTION (Identity Store)
# ============================================================

class UserStore:
    """
    User documents:
    {
        "name", "email", "password", "role", "is_verified",
        "skills": [...], "resume_ref": "filename" | None,
        "login_history": [datetime, ...],
        "reset_password_token": sha256 | None,
        "reset_password_expires": datetime | None,
        "created_at"
    }
    """

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["users"])

    def insert(self, name: str, email: str, password_hash: str, role: str, is_verified: bool = True) -> ObjectId:
        """Insert a user. DuplicateKeyError propagates when the email is taken."""
        doc = {
            "name": name,
            "email": email,
            "password": password_hash,
            "role": role,
            "is_verified": is_verified,
            "skills": [],
            "resume_ref": None,
            "login_history": [],
            "reset_password_token": None,
            "reset_password_expires": None,
            "created_at": utcnow(),
        }
        result = self.collection.insert_one(doc)
        return result.inserted_id

    def get_by_id(self, user_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one({"_id": user_id})

    def get_by_email(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": email})

    def find(self, query: dict = None) -> List[dict]:
        return list(self.collection.find(query or {}, {"password": 0}).sort("created_at", DESCENDING))

    def count(self, query: dict = None) -> int:
        return self.collection.count_documents(query or {})

    def append_login(self, user_id: ObjectId, at: datetime) -> None:
        self.collection.update_one({"_id": user_id}, {"$push": {"login_history": at}})

    def login_timestamps(self, since: datetime, until: datetime) -> List[datetime]:
        """Every login recorded in [since, until], across all users."""
        out = []
        cursor = self.collection.find({}, {"login_history": 1})
        for doc in cursor:
            out.extend(ts for ts in doc.get("login_history") or [] if since <= ts <= until)
        return out

    def set_reset_token(self, user_id: ObjectId, token_hash: Optional[str], expires: Optional[datetime]) -> None:
        self.collection.update_one(
            {"_id": user_id},
            {"$set": {"reset_password_token": token_hash, "reset_password_expires": expires}}
        )

    def consume_reset_token(self, token_hash: str, now: datetime, new_password_hash: str) -> Optional[dict]:
        """Swap the password and null the token in one step. None if no live token matched."""
        return self.collection.find_one_and_update(
            {"reset_password_token": token_hash, "reset_password_expires": {"$gt": now}},
            {"$set": {
                "password": new_password_hash,
                "reset_password_token": None,
                "reset_password_expires": None,
            }},
            return_document=ReturnDocument.AFTER
        )

    def replace_resume(self, user_id: ObjectId, resume_ref: str, skills: List[str]) -> Optional[dict]:
        """Set resume + skills together. Returns the document as it was BEFORE."""
        return self.collection.find_one_and_update(
            {"_id": user_id},
            {"$set": {"resume_ref": resume_ref, "skills": skills}},
            return_document=ReturnDocument.BEFORE
        )

    def set_role(self, user_id: ObjectId, role: str) -> Optional[dict]:
        """Returns the document as it was BEFORE the change."""
        return self.collection.find_one_and_update(
            {"_id": user_id},
            {"$set": {"role": role}},
            return_document=ReturnDocument.BEFORE
        )

    def delete(self, user_id: ObjectId) -> bool:
        result = self.collection.delete_one({"_id": user_id})
        return result.deleted_count > 0


# ============================================================
# JOBS COLLECTION (Job Catalog)
# ============================================================

class JobStore:

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["jobs"])

    def insert(self, doc: dict) -> ObjectId:
        result = self.collection.insert_one(doc)
        return result.inserted_id

    def get(self, job_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one({"_id": job_id})

    def find(self, query: dict = None) -> List[dict]:
        """Newest postings first."""
        return list(self.collection.find(query or {}).sort("posted_at", DESCENDING))

    def count(self, query: dict = None) -> int:
        return self.collection.count_documents(query or {})

    def update(self, job_id: ObjectId, fields: dict) -> Optional[dict]:
        return self.collection.find_one_and_update(
            {"_id": job_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER
        )

    def set_active(self, job_id: ObjectId, expected: bool, value: bool) -> Optional[dict]:
        """Flip is_active only if nobody flipped it since we read it."""
        return self.collection.find_one_and_update(
            {"_id": job_id, "is_active": expected},
            {"$set": {"is_active": value}},
            return_document=ReturnDocument.AFTER
        )

    def delete(self, job_id: ObjectId) -> bool:
        result = self.collection.delete_one({"_id": job_id})
        return result.deleted_count > 0

    def delete_by_recruiter(self, recruiter_id: ObjectId) -> int:
        result = self.collection.delete_many({"recruiter_id": recruiter_id})
        return result.deleted_count

    def detach_recruiter(self, recruiter_id: ObjectId) -> int:
        """Demoted recruiter: jobs stay, ownership reference is nulled."""
        result = self.collection.update_many(
            {"recruiter_id": recruiter_id},
            {"$set": {"recruiter_id": None}}
        )
        return result.modified_count


# ============================================================
# APPLICATIONS COLLECTION (Lifecycle Engine)
# ============================================================

class ApplicationStore:

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["applications"])

    def insert(self, doc: dict) -> ObjectId:
        """DuplicateKeyError propagates on a second (user_id, job_id)."""
        result = self.collection.insert_one(doc)
        return result.inserted_id

    def get(self, app_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one({"_id": app_id})

    def get_for_pair(self, user_id: ObjectId, job_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one({"user_id": user_id, "job_id": job_id})

    def find(self, query: dict = None) -> List[dict]:
        return list(self.collection.find(query or {}).sort("applied_at", DESCENDING))

    def count(self, query: dict = None) -> int:
        return self.collection.count_documents(query or {})

    def transition(self, app_id: ObjectId, from_status: str, fields: dict) -> Optional[dict]:
        """Compare-and-set on status. None if the status moved underneath us."""
        return self.collection.find_one_and_update(
            {"_id": app_id, "status": from_status},
            {"$set": fields},
            return_document=ReturnDocument.AFTER
        )

    def references_resume(self, resume_ref: str) -> bool:
        return self.collection.find_one({"resume_snapshot_ref": resume_ref}, {"_id": 1}) is not None

    def delete(self, app_id: ObjectId) -> bool:
        result = self.collection.delete_one({"_id": app_id})
        return result.deleted_count > 0


# ============================================================
# ADMIN INVITES COLLECTION
# ============================================================

class AdminInviteStore:

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["admin_invites"])

    def insert(self, email: str, token: str, expires_at: datetime, created_by: ObjectId) -> ObjectId:
        doc = {
            "email": email,
            "token": token,
            "created_by": created_by,
            "expires_at": expires_at,
            "used": False,
            "used_by": None,
            "used_at": None,
            "created_at": utcnow(),
        }
        result = self.collection.insert_one(doc)
        return result.inserted_id

    def claim(self, token: str, email: str, user_id: ObjectId, now: datetime) -> Optional[dict]:
        """
        Check token, email, expiry and used flag and mark the invite used,
        all in one document operation. Of two concurrent callers exactly one
        gets the document back.
        """
        return self.collection.find_one_and_update(
            {"token": token, "email": email, "used": False, "expires_at": {"$gt": now}},
            {"$set": {"used": True, "used_by": user_id, "used_at": now}},
            return_document=ReturnDocument.AFTER
        )

    def release(self, invite_id: ObjectId) -> None:
        """Undo a claim whose elevation write failed."""
        self.collection.update_one(
            {"_id": invite_id},
            {"$set": {"used": False, "used_by": None, "used_at": None}}
        )


# ============================================================
# ADMIN LOGS COLLECTION (append-only)
# ============================================================

class AdminLogStore:
    """Entries are never updated or deleted."""

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["admin_logs"])

    def insert(self, actor_id: ObjectId, action: str, target_id: Optional[ObjectId] = None,
               metadata: Optional[Dict[str, Any]] = None) -> ObjectId:
        doc = {
            "actor_id": actor_id,
            "action": action,
            "target_id": target_id,
            "metadata": metadata or {},
            "timestamp": utcnow(),
        }
        result = self.collection.insert_one(doc)
        return result.inserted_id

    def find(self, query: dict = None, skip: int = 0, limit: int = 0) -> List[dict]:
        cursor = self.collection.find(query or {}).sort("timestamp", DESCENDING).skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    def count(self, query: dict = None) -> int:
        return self.collection.count_documents(query or {})
