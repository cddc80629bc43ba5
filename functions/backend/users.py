"""
Teacher and administrator accounts, the email access policy and the admin
dashboard.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from backend.activities import ActivityLog
from backend.db import DbClient
from shared import constants
from shared.errors import WallyError, WallyErrorKind
from shared.firebase_constants import (
    BOARDS_COLLECTION,
    PHOTOS_COLLECTION,
    STUDENTS_COLLECTION,
    USERS_COLLECTION,
)
from shared.types import (
    Activity,
    ActivityType,
    User,
    UserRole,
    from_document,
    to_document,
)
from shared.validation import validate_email, validate_not_empty, validate_user

logger = logging.getLogger(__name__)

LOGIN_ACTIVITY_TYPES = {
    UserRole.ADMINISTRATOR: ActivityType.ADMIN_LOGGED_IN,
    UserRole.TEACHER: ActivityType.TEACHER_LOGGED_IN,
    UserRole.STUDENT: ActivityType.STUDENT_LOGGED_IN,
}


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class EmailAccessPolicy:
    """
    Decides which email addresses may sign up and sign in.

    An address is allowed when it equals the configured admin or teacher
    email, or ends with "@" followed by the allowed domain.
    """

    def __init__(self, admin_email: str, teacher_email: str, allowed_domain: str):
        self.admin_email = normalize_email(admin_email)
        self.teacher_email = normalize_email(teacher_email)
        self.allowed_domain = normalize_email(allowed_domain)

    def is_admin_email(self, email: str) -> bool:
        return bool(self.admin_email) and normalize_email(email) == self.admin_email

    def check(self, email: str, is_login: bool) -> None:
        if not self.admin_email and not self.teacher_email:
            raise WallyError(WallyErrorKind.CONFIGURATION_ERROR)

        email = normalize_email(email)
        allowed_emails = {e for e in (self.admin_email, self.teacher_email) if e}
        if email in allowed_emails:
            return
        if self.allowed_domain and email.endswith(f"@{self.allowed_domain}"):
            return

        logger.warning(
            "Email %s is not allowed to %s", email, "log in" if is_login else "sign up"
        )
        if is_login:
            raise WallyError(WallyErrorKind.AUTHENTICATION_FAILED)
        raise WallyError(WallyErrorKind.SIGN_UP_FAILED)


@dataclass
class DashboardStats:
    users_by_role: dict = field(default_factory=dict)
    total_users: int = 0
    total_boards: int = 0
    active_boards: int = 0
    total_students: int = 0
    total_photos: int = 0


class UserService:
    def __init__(self, db: DbClient, policy: EmailAccessPolicy, activities: ActivityLog):
        self.db = db
        self.policy = policy
        self.activities = activities

    def _find_by_email(self, email: str) -> Optional[User]:
        docs = self.db.query_documents(USERS_COLLECTION, filters={"email": email}, limit=1)
        return from_document(User, docs[0]) if docs else None

    def _role_for(self, email: str) -> UserRole:
        if self.policy.is_admin_email(email):
            return UserRole.ADMINISTRATOR
        role = UserRole.detect_role(email)
        if role == UserRole.ADMINISTRATOR:
            return UserRole.TEACHER
        return role

    def sign_up(self, username: str, email: str, password: str) -> User:
        email = normalize_email(email)
        validate_email(email)
        if len(password or "") < constants.MIN_PASSWORD_LENGTH:
            raise WallyError(WallyErrorKind.WEAK_PASSWORD)
        self.policy.check(email, is_login=False)

        if self._find_by_email(email) is not None:
            raise WallyError(WallyErrorKind.EMAIL_ALREADY_IN_USE)

        user = User(
            role=self._role_for(email),
            username=(username or "").strip(),
            email=email,
            password_hash=generate_password_hash(password),
        )
        validate_user(user)
        self.db.set_document(USERS_COLLECTION, user.id, to_document(user))
        logger.info("Signed up %s as %s", email, user.role.value)
        self.activities.record(
            ActivityType.USER_SIGNED_UP, f"{user.username} signed up", actor_id=user.id
        )
        return user

    def login(self, email: str, password: str) -> User:
        email = normalize_email(email)
        validate_email(email)
        validate_not_empty(password, WallyErrorKind.AUTHENTICATION_FAILED)
        self.policy.check(email, is_login=True)

        user = self._find_by_email(email)
        if (
            user is None
            or not user.password_hash
            or not check_password_hash(user.password_hash, password)
        ):
            raise WallyError(WallyErrorKind.AUTHENTICATION_FAILED)

        self.activities.record(
            LOGIN_ACTIVITY_TYPES[user.role],
            f"{user.username} logged in",
            actor_id=user.id,
        )
        return user

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        validate_not_empty(user_id)
        doc = self.db.get_document(USERS_COLLECTION, user_id)
        return from_document(User, doc) if doc else None

    def get_all_users(self) -> list[User]:
        docs = self.db.query_documents(USERS_COLLECTION, order_by="username")
        return [from_document(User, doc) for doc in docs]

    def get_dashboard_stats(self) -> DashboardStats:
        users = self.get_all_users()
        users_by_role = {role.value: 0 for role in UserRole}
        for user in users:
            users_by_role[user.role.value] += 1
        boards = self.db.query_documents(BOARDS_COLLECTION)
        return DashboardStats(
            users_by_role=users_by_role,
            total_users=len(users),
            total_boards=len(boards),
            active_boards=sum(1 for board in boards if board.get("isActive")),
            total_students=len(self.db.query_documents(STUDENTS_COLLECTION)),
            total_photos=len(self.db.query_documents(PHOTOS_COLLECTION)),
        )

    def get_recent_activities(self, limit: int = 20) -> list[Activity]:
        return self.activities.recent(limit)
