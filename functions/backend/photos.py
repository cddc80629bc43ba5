"""
Photo uploads, listing, deletion and moderation.
"""

from __future__ import annotations

import logging

from backend.boards import BoardService
from backend.db import DbClient
from backend.images import compress_image
from backend.storage import StorageClient
from backend.students import StudentService
from shared.errors import WallyError, WallyErrorKind
from shared.firebase_constants import PHOTOS_COLLECTION
from shared.types import Photo, from_document, new_id, to_document
from shared.validation import validate_not_empty, validate_photo

logger = logging.getLogger(__name__)


def photo_storage_path(board_id: str, photo_id: str) -> str:
    return f"boards/{board_id}/photos/{photo_id}.jpg"


class PhotoService:
    def __init__(
        self,
        db: DbClient,
        storage: StorageClient,
        boards: BoardService,
        students: StudentService,
        max_bytes: int = 5 * 1024 * 1024,
        max_dimension: int = 1024,
        jpeg_quality: int = 80,
    ):
        self.db = db
        self.storage = storage
        self.boards = boards
        self.students = students
        self.max_bytes = max_bytes
        self.max_dimension = max_dimension
        self.jpeg_quality = jpeg_quality

    def upload_photo(
        self, image_bytes: bytes, student_id: str, board_id: str, title: str = ""
    ) -> Photo:
        """
        Compresses an image, stores it and saves its metadata.

        Args:
            image_bytes: The raw image as uploaded by the client.
            student_id: Document ID of the uploading student.
            board_id: The board the student is posting to.
            title: Optional caption.

        Returns:
            The saved Photo.
        """
        validate_not_empty(student_id)
        validate_not_empty(board_id)
        if not image_bytes:
            raise WallyError(WallyErrorKind.PHOTO_UPLOAD_FAILED, "Empty upload")
        if len(image_bytes) > self.max_bytes:
            raise WallyError(
                WallyErrorKind.PHOTO_UPLOAD_FAILED, "Photo exceeds the upload limit"
            )

        board = self.boards.get_board(board_id)
        if not board.is_active:
            raise WallyError(WallyErrorKind.BOARD_NOT_ACTIVE)
        student = self.students.require_student(student_id)
        if student.board_id != board_id:
            raise WallyError(WallyErrorKind.STUDENT_NOT_IN_BOARD)

        data = compress_image(
            image_bytes,
            max_dimension=self.max_dimension,
            quality=self.jpeg_quality,
            max_bytes=self.max_bytes,
        )

        photo_id = new_id()
        path = photo_storage_path(board_id, photo_id)
        photo = Photo(
            id=photo_id,
            student_id=student_id,
            board_id=board_id,
            title=(title or "").strip(),
            image_url=self.storage.public_url(path),
            storage_path=path,
            is_visible=True,
        )
        validate_photo(photo)

        self.storage.upload_bytes(path, data, content_type="image/jpeg")
        try:
            self.db.set_document(PHOTOS_COLLECTION, photo.id, to_document(photo))
        except Exception:
            logger.exception("Saving photo %s failed, removing %s", photo.id, path)
            self.storage.delete(path)
            raise
        logger.info(
            "Uploaded photo %s (%d bytes) to board %s", photo.id, len(data), board_id
        )
        return photo

    def get_photo(self, photo_id: str) -> Photo:
        validate_not_empty(photo_id)
        doc = self.db.get_document(PHOTOS_COLLECTION, photo_id)
        if doc is None:
            raise WallyError(WallyErrorKind.PHOTO_NOT_FOUND)
        return from_document(Photo, doc)

    def delete_photo(self, photo_id: str, student_id: str) -> None:
        """Deletes a photo. Only the student who uploaded it may do so."""
        photo = self.get_photo(photo_id)
        if photo.student_id != student_id:
            raise WallyError(WallyErrorKind.INSUFFICIENT_PERMISSIONS)
        if photo.storage_path:
            self.storage.delete(photo.storage_path)
        self.db.delete_document(PHOTOS_COLLECTION, photo.id)
        logger.info("Deleted photo %s", photo.id)

    def _list(self, filters: dict | None = None) -> list[Photo]:
        docs = self.db.query_documents(
            PHOTOS_COLLECTION, filters=filters, order_by="uploadedAt", descending=True
        )
        return [from_document(Photo, doc) for doc in docs]

    def get_photos_for_board(self, board_id: str) -> list[Photo]:
        validate_not_empty(board_id)
        return self._list({"boardId": board_id})

    def get_photos_for_student(self, student_id: str, board_id: str) -> list[Photo]:
        validate_not_empty(student_id)
        validate_not_empty(board_id)
        return self._list({"studentId": student_id, "boardId": board_id})

    def get_all_photos(self) -> list[Photo]:
        return self._list()

    def update_photo_visibility(
        self, photo_id: str, is_visible: bool, actor_id: str
    ) -> Photo:
        """
        Shows or hides a photo on its board.

        The uploader may change their own photo. The board's admin and teacher
        may moderate any photo on it.
        """
        photo = self.get_photo(photo_id)
        allowed = {photo.student_id}
        try:
            board = self.boards.get_board(photo.board_id)
            allowed.update(filter(None, (board.admin_id, board.teacher_id)))
        except WallyError as e:
            if e.kind != WallyErrorKind.BOARD_NOT_FOUND:
                raise
        if actor_id not in allowed:
            raise WallyError(WallyErrorKind.INSUFFICIENT_PERMISSIONS)

        self.db.update_document(PHOTOS_COLLECTION, photo.id, {"isVisible": is_visible})
        photo.is_visible = is_visible
        return photo
