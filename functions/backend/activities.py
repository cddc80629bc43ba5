"""
Activity feed shown on the admin dashboard.
"""

from __future__ import annotations

import logging
from typing import Optional

from backend.db import DbClient
from shared.firebase_constants import ACTIVITIES_COLLECTION
from shared.types import Activity, ActivityType, from_document, to_document

logger = logging.getLogger(__name__)


class ActivityLog:
    def __init__(self, db: DbClient):
        self.db = db

    def record(
        self,
        activity_type: ActivityType,
        description: str,
        actor_id: str,
        board_id: Optional[str] = None,
    ) -> Activity:
        activity = Activity(
            type=activity_type,
            description=description,
            actor_id=actor_id,
            board_id=board_id,
        )
        self.db.set_document(ACTIVITIES_COLLECTION, activity.id, to_document(activity))
        logger.info("Recorded activity %s for %s", activity_type.value, actor_id)
        return activity

    def recent(self, limit: int = 20) -> list[Activity]:
        docs = self.db.query_documents(
            ACTIVITIES_COLLECTION, order_by="createdAt", descending=True, limit=limit
        )
        return [from_document(Activity, doc) for doc in docs]
