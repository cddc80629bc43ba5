"""
Student membership of boards and student accounts.

A student document belongs to at most one board at a time. Registered
students that have not joined a board yet carry an empty boardId.
"""

from __future__ import annotations

import logging
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from backend.activities import ActivityLog
from backend.boards import BoardService
from backend.db import DbClient
from shared import constants
from shared.errors import WallyError, WallyErrorKind
from shared.firebase_constants import (
    BOARDS_COLLECTION,
    PHOTOS_COLLECTION,
    STUDENTS_COLLECTION,
)
from shared.types import (
    ActivityType,
    Photo,
    Student,
    StudentParticipation,
    from_document,
    to_document,
)
from shared.validation import validate_student

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


class StudentService:
    def __init__(self, db: DbClient, boards: BoardService, activities: ActivityLog):
        self.db = db
        self.boards = boards
        self.activities = activities

    def _save(self, student: Student) -> None:
        self.db.set_document(STUDENTS_COLLECTION, student.id, to_document(student))

    def _validate_board_is_joinable(self, board_id: str) -> None:
        board = self.boards.get_board(board_id)
        if not board.is_active:
            raise WallyError(WallyErrorKind.BOARD_NOT_ACTIVE)

    def _validate_student_id_unique(
        self, student_id: str, board_id: str, exclude_id: Optional[str] = None
    ) -> None:
        docs = self.db.query_documents(
            STUDENTS_COLLECTION, filters={"boardId": board_id, "studentId": student_id}
        )
        if any(doc.get("id") != exclude_id for doc in docs):
            raise WallyError(WallyErrorKind.DUPLICATE_STUDENT_ID)

    def _check_password_length(self, password: Optional[str]) -> str:
        password = _clean(password)
        if len(password) < constants.MIN_PASSWORD_LENGTH:
            raise WallyError(WallyErrorKind.WEAK_PASSWORD)
        return password

    def join_board(self, name: str, student_id: str, board_id: str) -> Student:
        return self._join(name, student_id, board_id, password_hash=None)

    def join_board_with_password(
        self, name: str, student_id: str, password: str, board_id: str
    ) -> Student:
        password = self._check_password_length(password)
        return self._join(
            name, student_id, board_id, password_hash=generate_password_hash(password)
        )

    def _join(
        self,
        name: str,
        student_id: str,
        board_id: str,
        password_hash: Optional[str],
    ) -> Student:
        student = Student(
            name=_clean(name),
            student_id=_clean(student_id),
            board_id=_clean(board_id),
            password_hash=password_hash,
        )
        validate_student(student)
        if not student.board_id:
            raise WallyError(WallyErrorKind.INVALID_INPUT)

        self._validate_board_is_joinable(student.board_id)
        self._validate_student_id_unique(student.student_id, student.board_id)

        self._save(student)
        logger.info("Student %s joined board %s", student.id, student.board_id)
        self.activities.record(
            ActivityType.STUDENT_JOINED_BOARD,
            f"{student.name} joined the board",
            actor_id=student.id,
            board_id=student.board_id,
        )
        return student

    def update_student_info(self, student: Student) -> Student:
        """Updates the name and student id. Board membership is left as stored."""
        doc = self.db.get_document(STUDENTS_COLLECTION, student.id)
        if doc is None:
            raise WallyError(WallyErrorKind.STUDENT_NOT_FOUND)
        stored = from_document(Student, doc)
        stored.name = _clean(student.name)
        stored.student_id = _clean(student.student_id)
        validate_student(stored)
        if stored.board_id:
            self._validate_student_id_unique(
                stored.student_id, stored.board_id, exclude_id=stored.id
            )
        self._save(stored)
        return stored

    def get_students_for_board(self, board_id: str) -> list[Student]:
        if not _clean(board_id):
            raise WallyError(WallyErrorKind.INVALID_INPUT)
        docs = self.db.query_documents(
            STUDENTS_COLLECTION, filters={"boardId": board_id}, order_by="joinedAt"
        )
        return [from_document(Student, doc) for doc in docs]

    def get_student(self, student_doc_id: str) -> Optional[Student]:
        if not _clean(student_doc_id):
            raise WallyError(WallyErrorKind.INVALID_INPUT)
        doc = self.db.get_document(STUDENTS_COLLECTION, student_doc_id)
        return from_document(Student, doc) if doc else None

    def require_student(self, student_doc_id: str) -> Student:
        student = self.get_student(student_doc_id)
        if student is None:
            raise WallyError(WallyErrorKind.STUDENT_NOT_FOUND)
        return student

    def delete_student(self, student_doc_id: str) -> None:
        if not _clean(student_doc_id):
            raise WallyError(WallyErrorKind.INVALID_INPUT)
        if not self.db.delete_document(STUDENTS_COLLECTION, student_doc_id):
            raise WallyError(WallyErrorKind.STUDENT_NOT_FOUND)

    def get_all_students(self) -> list[Student]:
        docs = self.db.query_documents(
            STUDENTS_COLLECTION, order_by="joinedAt", descending=True
        )
        return [from_document(Student, doc) for doc in docs]

    def get_student_participations(self, student_id: str) -> list[StudentParticipation]:
        """
        Lists every board joined under a student ID, newest first.

        Student records without a board, or whose board has been deleted, are
        skipped.
        """
        student_id = _clean(student_id)
        if not student_id:
            raise WallyError(WallyErrorKind.INVALID_INPUT)

        participations = []
        docs = self.db.query_documents(
            STUDENTS_COLLECTION, filters={"studentId": student_id}
        )
        for doc in docs:
            student = from_document(Student, doc)
            if not student.board_id:
                continue
            board_doc = self.db.get_document(BOARDS_COLLECTION, student.board_id)
            if board_doc is None:
                logger.warning(
                    "Board %s for student %s is missing", student.board_id, student.id
                )
                continue

            photos = [
                from_document(Photo, photo_doc)
                for photo_doc in self.db.query_documents(
                    PHOTOS_COLLECTION,
                    filters={"studentId": student.id, "boardId": student.board_id},
                )
            ]
            participations.append(
                StudentParticipation(
                    id=student.id,
                    board_id=student.board_id,
                    board_title=board_doc.get("title", ""),
                    student_name=student.name,
                    student_id=student.student_id,
                    joined_at=student.joined_at,
                    photo_count=len(photos),
                    last_activity=max(
                        (photo.uploaded_at for photo in photos), default=None
                    ),
                    is_active=bool(board_doc.get("isActive", False)),
                )
            )

        participations.sort(key=lambda p: p.joined_at, reverse=True)
        return participations

    def add_student_to_board(self, student_doc_id: str, board_id: str) -> Student:
        if not _clean(student_doc_id) or not _clean(board_id):
            raise WallyError(WallyErrorKind.INVALID_INPUT)
        student = self.require_student(student_doc_id)
        self._validate_board_is_joinable(board_id)
        if student.board_id == board_id:
            raise WallyError(WallyErrorKind.DUPLICATE_STUDENT_ID)
        if student.board_id:
            logger.info(
                "Moving student %s from board %s to %s",
                student.id,
                student.board_id,
                board_id,
            )
        self.db.update_document(STUDENTS_COLLECTION, student.id, {"boardId": board_id})
        student.board_id = board_id
        return student

    def remove_student_from_board(self, student_doc_id: str, board_id: str) -> Student:
        if not _clean(student_doc_id) or not _clean(board_id):
            raise WallyError(WallyErrorKind.INVALID_INPUT)
        student = self.require_student(student_doc_id)
        if student.board_id != board_id:
            raise WallyError(WallyErrorKind.STUDENT_NOT_IN_BOARD)
        self.db.update_document(STUDENTS_COLLECTION, student.id, {"boardId": ""})
        student.board_id = ""
        return student

    def register_student(self, name: str, student_id: str, password: str) -> Student:
        password = self._check_password_length(password)
        student = Student(
            name=_clean(name),
            student_id=_clean(student_id),
            board_id="",
            password_hash=generate_password_hash(password),
        )
        validate_student(student)

        if self.db.query_documents(
            STUDENTS_COLLECTION, filters={"studentId": student.student_id}, limit=1
        ):
            raise WallyError(WallyErrorKind.DUPLICATE_STUDENT_ID)

        self._save(student)
        self.activities.record(
            ActivityType.STUDENT_REGISTERED,
            f"{student.name} registered",
            actor_id=student.id,
        )
        return student

    def login_student(self, name: str, student_id: str, password: str) -> Student:
        name, student_id = _clean(name), _clean(student_id)
        if not name or not student_id or not password:
            raise WallyError(WallyErrorKind.INVALID_INPUT)

        docs = self.db.query_documents(
            STUDENTS_COLLECTION, filters={"name": name, "studentId": student_id}
        )
        student = next(
            (
                candidate
                for candidate in (from_document(Student, doc) for doc in docs)
                if candidate.password_hash
                and check_password_hash(candidate.password_hash, password.strip())
            ),
            None,
        )
        if student is None:
            raise WallyError(WallyErrorKind.AUTHENTICATION_FAILED)

        self.activities.record(
            ActivityType.STUDENT_LOGGED_IN,
            f"{student.name} logged in",
            actor_id=student.id,
            board_id=student.board_id or None,
        )
        return student
