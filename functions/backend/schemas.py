"""
Pydantic schemas for the Wally FastAPI backend.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.types import (
    ActivityType,
    BackgroundImage,
    FontFamily,
    NewPostPosition,
    PhotoDisplayStatus,
    Theme,
    UserRole,
)


class ResponseModel(BaseModel):
    """Base for responses built from service dataclasses."""

    model_config = ConfigDict(from_attributes=True)


class BoardSettingsSchema(ResponseModel):
    background_image: BackgroundImage = BackgroundImage.PASTEL_BLUE
    theme: Theme = Theme.LIGHT
    font_family: FontFamily = FontFamily.SYSTEM_DEFAULT
    new_post_position: NewPostPosition = NewPostPosition.TOP_LEFT


class CreateBoardRequest(BaseModel):
    title: str
    admin_id: str
    teacher_id: Optional[str] = None
    settings: Optional[BoardSettingsSchema] = None


class UpdateBoardRequest(BaseModel):
    title: Optional[str] = None
    teacher_id: Optional[str] = None
    settings: Optional[BoardSettingsSchema] = None
    is_active: Optional[bool] = None


class BoardResponse(ResponseModel):
    id: str
    title: str
    admin_id: str
    teacher_id: Optional[str] = None
    qr_code: str
    settings: BoardSettingsSchema
    created_at: datetime
    is_active: bool


class BoardWithStatsResponse(ResponseModel):
    board: BoardResponse
    student_count: int
    photo_count: int
    teacher_name: Optional[str] = None


class JoinBoardRequest(BaseModel):
    name: str
    student_id: str
    password: Optional[str] = None


class UpdateStudentRequest(BaseModel):
    name: Optional[str] = None
    student_id: Optional[str] = None


class StudentCredentialsRequest(BaseModel):
    name: str
    student_id: str
    password: str


class StudentResponse(ResponseModel):
    id: str
    name: str
    student_id: str
    board_id: str
    joined_at: datetime
    created_at: datetime


class StudentParticipationResponse(ResponseModel):
    id: str
    board_id: str
    board_title: str
    student_name: str
    student_id: str
    joined_at: datetime
    photo_count: int
    last_activity: Optional[datetime] = None
    is_active: bool


class PhotoResponse(ResponseModel):
    id: str
    student_id: str
    board_id: str
    title: str
    image_url: Optional[str] = None
    uploaded_at: datetime
    is_visible: bool


class PhotoVisibilityRequest(BaseModel):
    is_visible: bool
    actor_id: str


class TrackViewRequest(BaseModel):
    teacher_id: str
    board_id: str
    session_duration: Optional[float] = None
    device_info: Optional[str] = None


class MarkViewedRequest(BaseModel):
    teacher_id: str
    photo_ids: List[str]


class PhotoViewRecordResponse(ResponseModel):
    id: str
    photo_id: str
    teacher_id: str
    board_id: str
    viewed_at: datetime
    session_duration: Optional[float] = None
    device_info: Optional[str] = None


class PhotoViewStatusResponse(ResponseModel):
    photo_id: str
    total_views: int
    unique_viewers: int
    last_viewed_at: Optional[datetime] = None
    last_viewed_by: Optional[str] = None
    is_viewed: bool
    display_status: PhotoDisplayStatus
    view_records: List[PhotoViewRecordResponse] = Field(default_factory=list)


class TeacherViewStatsResponse(ResponseModel):
    teacher_id: str
    total_photos_viewed: int
    today_photos_viewed: int
    average_view_time: float
    last_active_date: Optional[datetime] = None
    boards_activity: Dict[str, int]


class SignUpRequest(BaseModel):
    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(ResponseModel):
    id: str
    username: str
    email: Optional[str] = None
    role: UserRole
    boards: List[str]


class DashboardStatsResponse(ResponseModel):
    users_by_role: Dict[str, int]
    total_users: int
    total_boards: int
    active_boards: int
    total_students: int
    total_photos: int


class ActivityResponse(ResponseModel):
    id: str
    type: ActivityType
    description: str
    actor_id: str
    board_id: Optional[str] = None
    created_at: datetime


class ConfigResponse(BaseModel):
    allowed_domain: str
    config_version: str


class StatusResponse(BaseModel):
    status: str
