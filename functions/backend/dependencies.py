"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from fastapi import Depends

from backend.activities import ActivityLog
from backend.boards import BoardService
from backend.config import get_settings
from backend.db import DbClient, InMemoryDbClient, PostgresDbClient
from backend.photo_views import PhotoViewTrackingService
from backend.photos import PhotoService
from backend.storage import InMemoryStorageClient, S3StorageClient, StorageClient
from backend.students import StudentService
from backend.users import EmailAccessPolicy, UserService

_db_client: DbClient | None = None
_storage_client: StorageClient | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = PostgresDbClient(settings.database_url)
    return _db_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.storage_bucket:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.storage_bucket,
            region=settings.storage_region or "",
            endpoint=settings.storage_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
        )
    return _storage_client


def get_activity_log(db: DbClient = Depends(get_db_client)) -> ActivityLog:
    return ActivityLog(db)


def get_access_policy() -> EmailAccessPolicy:
    settings = get_settings()
    return EmailAccessPolicy(
        admin_email=settings.admin_email,
        teacher_email=settings.teacher_email,
        allowed_domain=settings.allowed_domain,
    )


def get_board_service(db: DbClient = Depends(get_db_client)) -> BoardService:
    return BoardService(db)


def get_student_service(
    db: DbClient = Depends(get_db_client),
    boards: BoardService = Depends(get_board_service),
    activities: ActivityLog = Depends(get_activity_log),
) -> StudentService:
    return StudentService(db, boards, activities)


def get_photo_service(
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    boards: BoardService = Depends(get_board_service),
    students: StudentService = Depends(get_student_service),
) -> PhotoService:
    settings = get_settings()
    return PhotoService(
        db,
        storage,
        boards,
        students,
        max_bytes=settings.max_photo_bytes,
        max_dimension=settings.max_photo_dimension,
        jpeg_quality=settings.photo_jpeg_quality,
    )


def get_photo_view_service(
    db: DbClient = Depends(get_db_client),
) -> PhotoViewTrackingService:
    return PhotoViewTrackingService(db)


def get_user_service(
    db: DbClient = Depends(get_db_client),
    policy: EmailAccessPolicy = Depends(get_access_policy),
    activities: ActivityLog = Depends(get_activity_log),
) -> UserService:
    return UserService(db, policy, activities)
