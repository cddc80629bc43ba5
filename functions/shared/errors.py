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

from enum import Enum
from typing import Optional


class WallyErrorKind(str, Enum):
    """Error kinds surfaced to Wally clients.

    Each member carries its user-facing description, a recovery suggestion
    and the HTTP status the backend answers with.
    """

    def __new__(cls, value, status, description, recovery):
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.status = status
        obj.description = description
        obj.recovery = recovery
        return obj

    AUTHENTICATION_FAILED = (
        "authentication_failed",
        401,
        "Sign-in failed. Check that the email is allowed and the password is correct.",
        "Use an allowed email address or domain and try again.",
    )
    SIGN_UP_FAILED = (
        "sign_up_failed",
        403,
        "Sign-up failed. Only allowed emails can create an account.",
        "Sign up with an allowed email address or domain.",
    )
    EMAIL_ALREADY_IN_USE = (
        "email_already_in_use",
        409,
        "This email is already in use.",
        "Use a different email address or sign in instead.",
    )
    WEAK_PASSWORD = (
        "weak_password",
        422,
        "The password is too weak.",
        "Use a password of at least 6 characters.",
    )
    INVALID_QR_CODE = (
        "invalid_qr_code",
        422,
        "The QR code is not valid.",
        "Scan the QR code again or ask your teacher.",
    )
    NETWORK_ERROR = (
        "network_error",
        503,
        "A network error occurred.",
        "Check the connection and try again.",
    )
    PHOTO_UPLOAD_FAILED = (
        "photo_upload_failed",
        422,
        "The photo could not be uploaded.",
        "Check the photo size and try uploading again.",
    )
    PHOTO_NOT_FOUND = (
        "photo_not_found",
        404,
        "The photo could not be found.",
        "The photo may have been deleted. Refresh and try again.",
    )
    INSUFFICIENT_PERMISSIONS = (
        "insufficient_permissions",
        403,
        "You do not have permission to do this.",
        "Ask an administrator for access.",
    )
    UNAUTHORIZED = (
        "unauthorized",
        403,
        "You are not authorized to do this.",
        "Contact an administrator.",
    )
    BOARD_NOT_FOUND = (
        "board_not_found",
        404,
        "The board could not be found.",
        "Check the QR code or ask your teacher.",
    )
    BOARD_NOT_ACTIVE = (
        "board_not_active",
        409,
        "The board is not active.",
        "Ask the board owner to reactivate it.",
    )
    STUDENT_REGISTRATION_FAILED = (
        "student_registration_failed",
        422,
        "Student registration failed.",
        "Check the name and student ID and try again.",
    )
    STUDENT_NOT_FOUND = (
        "student_not_found",
        404,
        "The student could not be found.",
        "Check the student details or ask your teacher.",
    )
    USER_NOT_FOUND = (
        "user_not_found",
        404,
        "The user could not be found.",
        "Check the account or sign up again.",
    )
    STUDENT_UPDATE_FAILED = (
        "student_update_failed",
        500,
        "The student could not be updated.",
        "Try again later.",
    )
    DUPLICATE_STUDENT_ID = (
        "duplicate_student_id",
        409,
        "This student ID is already registered.",
        "Use a different student ID or ask your teacher.",
    )
    STUDENT_NOT_IN_BOARD = (
        "student_not_in_board",
        404,
        "The student has not joined this board.",
        "Join the board first.",
    )
    DATA_CORRUPTION = (
        "data_corruption",
        500,
        "Stored data is corrupted.",
        "Contact an administrator.",
    )
    INVALID_INPUT = (
        "invalid_input",
        422,
        "The submitted information is not valid.",
        "Fill in all required fields correctly.",
    )
    UNKNOWN_ERROR = (
        "unknown_error",
        500,
        "An unknown error occurred.",
        "Try again later or contact an administrator.",
    )
    CONFIGURATION_ERROR = (
        "configuration_error",
        503,
        "The service is not configured correctly.",
        "Set ADMIN_EMAIL or TEACHER_EMAIL for the service.",
    )
    INVALID_USERNAME = (
        "invalid_username",
        422,
        "The username is not valid.",
        "Use between 1 and 50 characters.",
    )
    INVALID_EMAIL = (
        "invalid_email",
        422,
        "The email address is not valid.",
        "Enter an address like user@example.com.",
    )
    INVALID_BOARD_TITLE = (
        "invalid_board_title",
        422,
        "The board title is not valid.",
        "Use between 1 and 100 characters.",
    )
    INVALID_STUDENT_NAME = (
        "invalid_student_name",
        422,
        "The student name is not valid.",
        "Use 1 to 50 Korean or Latin letters.",
    )
    INVALID_STUDENT_ID = (
        "invalid_student_id",
        422,
        "The student ID is not valid.",
        "Use letters, digits, dots, underscores or hyphens.",
    )
    INVALID_IMAGE_URL = (
        "invalid_image_url",
        422,
        "The image URL is not valid.",
        "Provide a valid image URL.",
    )


class WallyError(Exception):
    """Domain error raised by Wally services."""

    def __init__(self, kind: WallyErrorKind, message: Optional[str] = None):
        self.kind = kind
        self.message = message or kind.description
        super().__init__(self.message)

    @property
    def status(self) -> int:
        return self.kind.status

    @property
    def recovery(self) -> str:
        return self.kind.recovery

    @property
    def full_message(self) -> str:
        return f"{self.message}\n\n{self.recovery}"

    def to_dict(self) -> dict:
        return {
            "code": self.kind.value,
            "message": self.message,
            "recovery": self.recovery,
        }

    def __repr__(self) -> str:
        return f"WallyError({self.kind.name}, {self.message!r})"
