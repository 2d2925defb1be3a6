"""
Admin audit trail.

Privileged mutations call log_admin_action BEFORE they touch anything. The
write is synchronous and its errors propagate, so an action that could not
be logged is not performed.
"""

import logging
from typing import Any, Dict, Optional

from bson import ObjectId

from jobboard.services.mongo_service import AdminLogStore

logger = logging.getLogger(__name__)

DELETE_USER = "DELETE_USER"
CHANGE_ROLE = "CHANGE_ROLE"
DELETE_JOB = "DELETE_JOB"
SEND_INVITE = "SEND_INVITE"
ACCEPT_INVITE = "ACCEPT_INVITE"


def log_admin_action(actor_id: ObjectId, action: str, target_id: Optional[ObjectId] = None,
                     metadata: Optional[Dict[str, Any]] = None) -> ObjectId:
    log_id = AdminLogStore().insert(actor_id, action, target_id, metadata)
    logger.info("admin action %s by %s target=%s", action, actor_id, target_id)
    return log_id
