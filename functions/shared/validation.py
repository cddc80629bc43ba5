# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import re
from typing import Optional
from urllib.parse import urlparse

from shared import constants
from shared.errors import WallyError, WallyErrorKind
from shared.types import Board, Photo, PhotoViewRecord, Student, User

EMAIL_PATTERN = re.compile(r"^[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
PERSON_NAME_PATTERN = re.compile(r"^[가-힣a-zA-Z\s]+$")
STUDENT_ID_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+$")

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp", "heic", "heif")
STORAGE_HOSTS = ("firebasestorage.googleapis.com", "storage.googleapis.com")


def validate_not_empty(
    value: Optional[str], kind: WallyErrorKind = WallyErrorKind.INVALID_INPUT
) -> None:
    if value is None or not value.strip():
        raise WallyError(kind)


def validate_length(
    value: str,
    min_length: int = 0,
    max_length: Optional[int] = None,
    kind: WallyErrorKind = WallyErrorKind.INVALID_INPUT,
) -> None:
    if len(value) < min_length:
        raise WallyError(kind)
    if max_length is not None and len(value) > max_length:
        raise WallyError(kind)


def validate_pattern(
    value: str,
    pattern: re.Pattern,
    kind: WallyErrorKind = WallyErrorKind.INVALID_INPUT,
) -> None:
    if not pattern.fullmatch(value):
        raise WallyError(kind)


def validate_email(email: Optional[str]) -> None:
    validate_not_empty(email, WallyErrorKind.INVALID_EMAIL)
    validate_length(email, 0, constants.MAX_EMAIL_LENGTH, WallyErrorKind.INVALID_EMAIL)
    validate_pattern(email, EMAIL_PATTERN, WallyErrorKind.INVALID_EMAIL)


def validate_board(board: Board) -> None:
    kind = WallyErrorKind.INVALID_BOARD_TITLE
    validate_not_empty(board.title, kind)
    validate_length(board.title, 1, constants.BOARD_TITLE_MAX_LENGTH, kind)
    validate_not_empty(board.admin_id)
    validate_not_empty(board.qr_code)
    validate_not_empty(board.id)


def validate_student(student: Student) -> None:
    name_kind = WallyErrorKind.INVALID_STUDENT_NAME
    validate_not_empty(student.name, name_kind)
    validate_length(student.name, 1, constants.STUDENT_NAME_MAX_LENGTH, name_kind)
    validate_pattern(student.name.strip(), PERSON_NAME_PATTERN, name_kind)

    id_kind = WallyErrorKind.INVALID_STUDENT_ID
    validate_not_empty(student.student_id, id_kind)
    validate_length(student.student_id, 1, constants.STUDENT_ID_MAX_LENGTH, id_kind)
    validate_pattern(student.student_id, STUDENT_ID_PATTERN, id_kind)

    validate_not_empty(student.id)


def validate_image_url(image_url: Optional[str]) -> None:
    """
    An image URL is optional, but when present it must point at an image
    file or at a known storage host.
    """
    if image_url is None:
        return
    kind = WallyErrorKind.INVALID_IMAGE_URL
    validate_not_empty(image_url, kind)

    parsed = urlparse(image_url)
    if not parsed.scheme or not parsed.netloc:
        raise WallyError(kind)

    lowered = image_url.lower()
    has_image_extension = any(lowered.endswith(f".{ext}") for ext in IMAGE_EXTENSIONS)
    is_storage_url = any(host in image_url for host in STORAGE_HOSTS)
    if not (has_image_extension or is_storage_url):
        raise WallyError(kind)


def validate_photo(photo: Photo) -> None:
    validate_not_empty(photo.student_id)
    validate_not_empty(photo.board_id)
    validate_image_url(photo.image_url)
    validate_not_empty(photo.id)


def validate_user(user: User) -> None:
    kind = WallyErrorKind.INVALID_USERNAME
    validate_not_empty(user.username, kind)
    validate_length(user.username, 1, constants.USERNAME_MAX_LENGTH, kind)
    if user.email:
        validate_pattern(user.email, EMAIL_PATTERN, WallyErrorKind.INVALID_EMAIL)
    validate_not_empty(user.id)


def validate_photo_view_record(record: PhotoViewRecord) -> None:
    validate_not_empty(record.photo_id)
    validate_not_empty(record.teacher_id)
    validate_not_empty(record.board_id)
    if (
        record.session_duration is not None
        and not 0 <= record.session_duration <= constants.MAX_VIEW_SESSION_SECONDS
    ):
        raise WallyError(WallyErrorKind.INVALID_INPUT)
