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

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from dacite import Config, from_dict

from shared.json_utils import convert_keys

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def _parse_datetime(value: Any) -> datetime:
    """Accepts ISO-8601 strings and (Firestore) datetime values."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    return value


def to_document(obj: Any) -> dict:
    """Serializes a dataclass into a camelCase, JSON-safe document."""
    return convert_keys(_serialize(asdict(obj)), "snake_to_camel")


def from_document(data_class: Type[T], data: dict) -> T:
    """Builds a dataclass from a camelCase document."""
    return from_dict(
        data_class=data_class,
        data=convert_keys(data, "camel_to_snake"),
        config=Config(
            check_types=False,
            cast=[Enum],
            type_hooks={datetime: _parse_datetime},
        ),
    )


class UserRole(str, Enum):
    ADMINISTRATOR = "admin"
    TEACHER = "teacher"
    STUDENT = "student"

    @property
    def can_create_boards(self) -> bool:
        return self in (UserRole.ADMINISTRATOR, UserRole.TEACHER)

    @property
    def can_manage_all_boards(self) -> bool:
        return self == UserRole.ADMINISTRATOR

    @property
    def can_moderate_content(self) -> bool:
        return self in (UserRole.ADMINISTRATOR, UserRole.TEACHER)

    @classmethod
    def detect_role(cls, email: str) -> "UserRole":
        """Guesses a role from keywords in an email address."""
        lowered = email.lower()
        if "admin" in lowered:
            return cls.ADMINISTRATOR
        if "student" in lowered or "std" in lowered:
            return cls.STUDENT
        return cls.TEACHER


class BackgroundImage(str, Enum):
    PASTEL_PINK = "pastelPink"
    PASTEL_BLUE = "pastelBlue"
    PASTEL_GREEN = "pastelGreen"
    PASTEL_YELLOW = "pastelYellow"
    PASTEL_PURPLE = "pastelPurple"
    PASTEL_ORANGE = "pastelOrange"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class FontFamily(str, Enum):
    SYSTEM_DEFAULT = "system"
    NANUM_GOTHIC = "nanum"
    APPLE_SD_GOTHIC = "apple"


class NewPostPosition(str, Enum):
    TOP_LEFT = "topLeft"
    TOP_RIGHT = "topRight"
    CENTER = "center"


def _enum_or_default(enum_class, value, default):
    try:
        return enum_class(value)
    except ValueError:
        return default


@dataclass
class BoardSettings:
    background_image: BackgroundImage = BackgroundImage.PASTEL_BLUE
    theme: Theme = Theme.LIGHT
    font_family: FontFamily = FontFamily.SYSTEM_DEFAULT
    new_post_position: NewPostPosition = NewPostPosition.TOP_LEFT

    @classmethod
    def from_document(cls, data: Optional[dict]) -> "BoardSettings":
        """Reads stored settings, falling back to defaults for unknown values."""
        data = data or {}
        return cls(
            background_image=_enum_or_default(
                BackgroundImage,
                data.get("backgroundImage"),
                BackgroundImage.PASTEL_BLUE,
            ),
            theme=_enum_or_default(Theme, data.get("theme"), Theme.LIGHT),
            font_family=_enum_or_default(
                FontFamily, data.get("fontFamily"), FontFamily.SYSTEM_DEFAULT
            ),
            new_post_position=_enum_or_default(
                NewPostPosition,
                data.get("newPostPosition"),
                NewPostPosition.TOP_LEFT,
            ),
        )


@dataclass
class Board:
    """A teacher-created wall that students join and post photos to."""

    title: str
    admin_id: str
    id: str = field(default_factory=new_id)
    teacher_id: Optional[str] = None
    qr_code: str = field(default_factory=new_id)
    settings: BoardSettings = field(default_factory=BoardSettings)
    created_at: datetime = field(default_factory=utc_now)
    is_active: bool = True

    @classmethod
    def from_document(cls, data: dict) -> "Board":
        settings = BoardSettings.from_document(data.get("settings"))
        board = from_document(cls, {k: v for k, v in data.items() if k != "settings"})
        board.settings = settings
        return board


@dataclass
class BoardWithStats:
    board: Board
    student_count: int
    photo_count: int
    teacher_name: Optional[str] = None


@dataclass
class Student:
    name: str
    student_id: str
    board_id: str
    id: str = field(default_factory=new_id)
    joined_at: datetime = field(default_factory=utc_now)
    password_hash: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class StudentParticipation:
    id: str
    board_id: str
    board_title: str
    student_name: str
    student_id: str
    joined_at: datetime
    photo_count: int = 0
    last_activity: Optional[datetime] = None
    is_active: bool = True


@dataclass
class Photo:
    student_id: str
    board_id: str
    id: str = field(default_factory=new_id)
    title: str = ""
    image_url: Optional[str] = None
    storage_path: Optional[str] = None
    uploaded_at: datetime = field(default_factory=utc_now)
    is_visible: bool = True


@dataclass
class User:
    role: UserRole
    username: str
    id: str = field(default_factory=new_id)
    email: Optional[str] = None
    # Board IDs owned by administrators and teachers.
    boards: List[str] = field(default_factory=list)
    password_hash: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.username


@dataclass
class PhotoViewRecord:
    photo_id: str
    teacher_id: str
    board_id: str
    id: str = field(default_factory=new_id)
    viewed_at: datetime = field(default_factory=utc_now)
    session_duration: Optional[float] = None
    device_info: Optional[str] = None


class PhotoDisplayStatus(str, Enum):
    UNVIEWED = "unviewed"
    VIEWED = "viewed"


@dataclass
class PhotoViewStatus:
    photo_id: str
    total_views: int = 0
    unique_viewers: int = 0
    last_viewed_at: Optional[datetime] = None
    last_viewed_by: Optional[str] = None
    is_viewed: bool = False
    view_records: List[PhotoViewRecord] = field(default_factory=list)

    @property
    def display_status(self) -> PhotoDisplayStatus:
        if self.is_viewed:
            return PhotoDisplayStatus.VIEWED
        return PhotoDisplayStatus.UNVIEWED


@dataclass
class TeacherViewStats:
    teacher_id: str
    total_photos_viewed: int = 0
    today_photos_viewed: int = 0
    average_view_time: float = 0.0
    last_active_date: Optional[datetime] = None
    # board_id -> view count
    boards_activity: Dict[str, int] = field(default_factory=dict)


class ActivityType(str, Enum):
    STUDENT_JOINED_BOARD = "student_joined_board"
    STUDENT_REGISTERED = "student_registered"
    STUDENT_LOGGED_IN = "student_logged_in"
    USER_SIGNED_UP = "user_signed_up"
    ADMIN_LOGGED_IN = "admin_logged_in"
    TEACHER_LOGGED_IN = "teacher_logged_in"


@dataclass
class Activity:
    type: ActivityType
    description: str
    actor_id: str
    id: str = field(default_factory=new_id)
    board_id: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
