"""
Board management: creation, lookup by QR code, deactivation and stats.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from backend.db import DbClient
from shared.errors import WallyError, WallyErrorKind
from shared.firebase_constants import (
    BOARDS_COLLECTION,
    PHOTOS_COLLECTION,
    STUDENTS_COLLECTION,
)
from shared.types import Board, BoardSettings, BoardWithStats, new_id, to_document
from shared.validation import validate_board

logger = logging.getLogger(__name__)


class BoardService:
    def __init__(self, db: DbClient, clock: Callable[[], float] = time.time):
        self.db = db
        self.clock = clock

    def create_board(
        self,
        title: str,
        admin_id: str,
        teacher_id: Optional[str] = None,
        settings: Optional[BoardSettings] = None,
    ) -> Board:
        board_id = new_id()
        board = Board(
            id=board_id,
            title=(title or "").strip(),
            admin_id=admin_id,
            teacher_id=teacher_id,
            qr_code=self.generate_qr_code(board_id),
            settings=settings or BoardSettings(),
        )
        validate_board(board)
        self.db.set_document(BOARDS_COLLECTION, board.id, to_document(board))
        logger.info("Created board %s for admin %s", board.id, admin_id)
        return board

    def update_board(self, board: Board) -> Board:
        validate_board(board)
        if self.db.get_document(BOARDS_COLLECTION, board.id) is None:
            raise WallyError(WallyErrorKind.BOARD_NOT_FOUND)
        self.db.set_document(BOARDS_COLLECTION, board.id, to_document(board))
        return board

    def get_board(self, board_id: str) -> Board:
        if not board_id or not board_id.strip():
            raise WallyError(WallyErrorKind.INVALID_INPUT)
        doc = self.db.get_document(BOARDS_COLLECTION, board_id)
        if doc is None:
            raise WallyError(WallyErrorKind.BOARD_NOT_FOUND)
        return Board.from_document(doc)

    def get_board_by_qr_code(self, qr_code: str) -> Optional[Board]:
        """Returns the active board with this QR code, if there is one."""
        if not qr_code or not qr_code.strip():
            raise WallyError(WallyErrorKind.INVALID_QR_CODE)
        docs = self.db.query_documents(
            BOARDS_COLLECTION,
            filters={"qrCode": qr_code.strip(), "isActive": True},
            limit=1,
        )
        return Board.from_document(docs[0]) if docs else None

    def get_admin_boards(self, admin_id: str) -> list[Board]:
        if not admin_id:
            raise WallyError(WallyErrorKind.INVALID_INPUT)
        docs = self.db.query_documents(
            BOARDS_COLLECTION,
            filters={"adminId": admin_id},
            order_by="createdAt",
            descending=True,
        )
        return [Board.from_document(doc) for doc in docs]

    def get_boards_for_teacher(self, teacher_id: str) -> list[Board]:
        # Teachers own the boards they create, so they are stored as admin.
        return self.get_admin_boards(teacher_id)

    def get_all_boards(self) -> list[Board]:
        docs = self.db.query_documents(
            BOARDS_COLLECTION, order_by="createdAt", descending=True
        )
        return [Board.from_document(doc) for doc in docs]

    def delete_board(self, board_id: str) -> None:
        if not board_id:
            raise WallyError(WallyErrorKind.INVALID_INPUT)
        if not self.db.delete_document(BOARDS_COLLECTION, board_id):
            raise WallyError(WallyErrorKind.BOARD_NOT_FOUND)
        logger.info("Deleted board %s", board_id)

    def deactivate_board(self, board_id: str) -> Board:
        if not board_id:
            raise WallyError(WallyErrorKind.INVALID_INPUT)
        if not self.db.update_document(
            BOARDS_COLLECTION, board_id, {"isActive": False}
        ):
            raise WallyError(WallyErrorKind.BOARD_NOT_FOUND)
        return self.get_board(board_id)

    def generate_qr_code(self, board_id: str) -> str:
        return f"{board_id}_{int(self.clock())}"

    def regenerate_qr_code(self, board_id: str) -> Board:
        if not board_id:
            raise WallyError(WallyErrorKind.INVALID_INPUT)
        qr_code = self.generate_qr_code(board_id)
        if not self.db.update_document(BOARDS_COLLECTION, board_id, {"qrCode": qr_code}):
            raise WallyError(WallyErrorKind.BOARD_NOT_FOUND)
        return self.get_board(board_id)

    def calculate_student_count(self, board_id: str) -> int:
        return len(
            self.db.query_documents(STUDENTS_COLLECTION, filters={"boardId": board_id})
        )

    def calculate_photo_count(self, board_id: str) -> int:
        return len(
            self.db.query_documents(PHOTOS_COLLECTION, filters={"boardId": board_id})
        )

    def get_boards_with_stats_for_teacher(self, teacher_id: str) -> list[BoardWithStats]:
        return [
            BoardWithStats(
                board=board,
                student_count=self.calculate_student_count(board.id),
                photo_count=self.calculate_photo_count(board.id),
            )
            for board in self.get_boards_for_teacher(teacher_id)
        ]
