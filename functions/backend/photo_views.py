"""
Tracks which photos teachers have looked at.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from backend.db import DbClient
from shared.firebase_constants import PHOTO_VIEWS_COLLECTION, PHOTOS_COLLECTION
from shared.types import (
    PhotoDisplayStatus,
    PhotoViewRecord,
    PhotoViewStatus,
    TeacherViewStats,
    from_document,
    to_document,
    utc_now,
)
from shared.validation import validate_not_empty, validate_photo_view_record

logger = logging.getLogger(__name__)


def summarize_views(photo_id: str, records: list[PhotoViewRecord]) -> PhotoViewStatus:
    """Builds a PhotoViewStatus from records sorted newest first."""
    if not records:
        return PhotoViewStatus(photo_id=photo_id)
    return PhotoViewStatus(
        photo_id=photo_id,
        total_views=len(records),
        unique_viewers=len({record.teacher_id for record in records}),
        last_viewed_at=records[0].viewed_at,
        last_viewed_by=records[0].teacher_id,
        is_viewed=True,
        view_records=records,
    )


class PhotoViewTrackingService:
    def __init__(self, db: DbClient):
        self.db = db

    def track_photo_view(
        self,
        photo_id: str,
        teacher_id: str,
        board_id: str,
        session_duration: Optional[float] = None,
        device_info: Optional[str] = None,
    ) -> PhotoViewRecord:
        record = PhotoViewRecord(
            photo_id=photo_id,
            teacher_id=teacher_id,
            board_id=board_id,
            session_duration=session_duration,
            device_info=device_info,
        )
        validate_photo_view_record(record)
        self.db.set_document(PHOTO_VIEWS_COLLECTION, record.id, to_document(record))
        logger.info("Teacher %s viewed photo %s", teacher_id, photo_id)
        return record

    def _records(self, filters: dict) -> list[PhotoViewRecord]:
        docs = self.db.query_documents(
            PHOTO_VIEWS_COLLECTION, filters=filters, order_by="viewedAt", descending=True
        )
        return [from_document(PhotoViewRecord, doc) for doc in docs]

    def get_photo_view_status(self, photo_id: str) -> Optional[PhotoViewStatus]:
        validate_not_empty(photo_id)
        return summarize_views(photo_id, self._records({"photoId": photo_id}))

    def get_photo_view_statuses(
        self, photo_ids: Iterable[str]
    ) -> dict[str, PhotoViewStatus]:
        photo_ids = list(dict.fromkeys(photo_ids))
        if not photo_ids:
            return {}
        by_photo: dict[str, list[PhotoViewRecord]] = {pid: [] for pid in photo_ids}
        for record in self._records({"photoId": photo_ids}):
            by_photo[record.photo_id].append(record)
        return {pid: summarize_views(pid, records) for pid, records in by_photo.items()}

    def get_board_photo_view_statuses(self, board_id: str) -> dict[str, PhotoViewStatus]:
        validate_not_empty(board_id)
        photo_ids = [
            doc["id"]
            for doc in self.db.query_documents(
                PHOTOS_COLLECTION, filters={"boardId": board_id}
            )
        ]
        return self.get_photo_view_statuses(photo_ids)

    def get_teacher_view_stats(
        self, teacher_id: str, now: Optional[datetime] = None
    ) -> TeacherViewStats:
        """
        Summarises a teacher's viewing activity.

        "Today" is the current UTC calendar day. The average view time only
        counts records with a positive session duration.
        """
        validate_not_empty(teacher_id)
        now = now or utc_now()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        now = now.astimezone(timezone.utc)
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        day_end = day_start + timedelta(days=1)

        records = self._records({"teacherId": teacher_id})
        durations = [
            record.session_duration
            for record in records
            if record.session_duration is not None and record.session_duration > 0
        ]
        boards_activity: dict[str, int] = {}
        for record in records:
            boards_activity[record.board_id] = boards_activity.get(record.board_id, 0) + 1

        return TeacherViewStats(
            teacher_id=teacher_id,
            total_photos_viewed=len({record.photo_id for record in records}),
            today_photos_viewed=len(
                {
                    record.photo_id
                    for record in records
                    if day_start <= record.viewed_at < day_end
                }
            ),
            average_view_time=sum(durations) / len(durations) if durations else 0.0,
            last_active_date=records[0].viewed_at if records else None,
            boards_activity=boards_activity,
        )

    def mark_photos_as_viewed(
        self, photo_ids: Iterable[str], teacher_id: str, board_id: str
    ) -> list[PhotoViewRecord]:
        return [
            self.track_photo_view(photo_id, teacher_id, board_id)
            for photo_id in photo_ids
        ]

    @staticmethod
    def display_status(status: PhotoViewStatus) -> PhotoDisplayStatus:
        return status.display_status
