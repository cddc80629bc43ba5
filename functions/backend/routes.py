"""
HTTP routes for the Wally backend API.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from backend.config import get_settings
from backend.dependencies import (
    get_board_service,
    get_photo_service,
    get_photo_view_service,
    get_student_service,
    get_user_service,
)
from backend.boards import BoardService
from backend.photo_views import PhotoViewTrackingService
from backend.photos import PhotoService
from backend.schemas import (
    ActivityResponse,
    BoardResponse,
    BoardWithStatsResponse,
    ConfigResponse,
    CreateBoardRequest,
    DashboardStatsResponse,
    JoinBoardRequest,
    LoginRequest,
    MarkViewedRequest,
    PhotoResponse,
    PhotoViewRecordResponse,
    PhotoViewStatusResponse,
    PhotoVisibilityRequest,
    SignUpRequest,
    StatusResponse,
    StudentCredentialsRequest,
    StudentParticipationResponse,
    StudentResponse,
    TeacherViewStatsResponse,
    TrackViewRequest,
    UpdateBoardRequest,
    UpdateStudentRequest,
    UserResponse,
)
from backend.students import StudentService
from backend.users import UserService
from shared.errors import WallyError, WallyErrorKind
from shared.types import BoardSettings

router = APIRouter()


def _board_settings(schema) -> BoardSettings | None:
    if schema is None:
        return None
    return BoardSettings(**schema.model_dump())


# Boards


@router.post("/boards", response_model=BoardResponse, status_code=201)
def create_board(
    payload: CreateBoardRequest,
    boards: BoardService = Depends(get_board_service),
):
    board = boards.create_board(
        title=payload.title,
        admin_id=payload.admin_id,
        teacher_id=payload.teacher_id,
        settings=_board_settings(payload.settings),
    )
    return BoardResponse.model_validate(board)


@router.get("/boards", response_model=list[BoardResponse])
def list_boards(
    admin_id: str | None = Query(default=None),
    teacher_id: str | None = Query(default=None),
    boards: BoardService = Depends(get_board_service),
):
    if admin_id:
        result = boards.get_admin_boards(admin_id)
    elif teacher_id:
        result = boards.get_boards_for_teacher(teacher_id)
    else:
        result = boards.get_all_boards()
    return [BoardResponse.model_validate(board) for board in result]


@router.get("/boards/by-qr/{qr_code}", response_model=BoardResponse)
def get_board_by_qr_code(
    qr_code: str, boards: BoardService = Depends(get_board_service)
):
    board = boards.get_board_by_qr_code(qr_code)
    if board is None:
        raise WallyError(WallyErrorKind.BOARD_NOT_FOUND)
    return BoardResponse.model_validate(board)


@router.get("/boards/{board_id}", response_model=BoardResponse)
def get_board(board_id: str, boards: BoardService = Depends(get_board_service)):
    return BoardResponse.model_validate(boards.get_board(board_id))


@router.patch("/boards/{board_id}", response_model=BoardResponse)
def update_board(
    board_id: str,
    payload: UpdateBoardRequest,
    boards: BoardService = Depends(get_board_service),
):
    board = boards.get_board(board_id)
    if payload.title is not None:
        board.title = payload.title.strip()
    if payload.teacher_id is not None:
        board.teacher_id = payload.teacher_id
    if payload.settings is not None:
        board.settings = _board_settings(payload.settings)
    if payload.is_active is not None:
        board.is_active = payload.is_active
    return BoardResponse.model_validate(boards.update_board(board))


@router.delete("/boards/{board_id}", response_model=StatusResponse)
def delete_board(board_id: str, boards: BoardService = Depends(get_board_service)):
    boards.delete_board(board_id)
    return StatusResponse(status="deleted")


@router.post("/boards/{board_id}/qr-code", response_model=BoardResponse)
def regenerate_qr_code(
    board_id: str, boards: BoardService = Depends(get_board_service)
):
    return BoardResponse.model_validate(boards.regenerate_qr_code(board_id))


@router.post("/boards/{board_id}/deactivate", response_model=BoardResponse)
def deactivate_board(board_id: str, boards: BoardService = Depends(get_board_service)):
    return BoardResponse.model_validate(boards.deactivate_board(board_id))


@router.get("/teachers/{teacher_id}/boards", response_model=list[BoardWithStatsResponse])
def get_teacher_boards(
    teacher_id: str, boards: BoardService = Depends(get_board_service)
):
    return [
        BoardWithStatsResponse.model_validate(item)
        for item in boards.get_boards_with_stats_for_teacher(teacher_id)
    ]


# Students


@router.post(
    "/boards/{board_id}/students", response_model=StudentResponse, status_code=201
)
def join_board(
    board_id: str,
    payload: JoinBoardRequest,
    students: StudentService = Depends(get_student_service),
):
    if payload.password is not None:
        student = students.join_board_with_password(
            payload.name, payload.student_id, payload.password, board_id
        )
    else:
        student = students.join_board(payload.name, payload.student_id, board_id)
    return StudentResponse.model_validate(student)


@router.get("/boards/{board_id}/students", response_model=list[StudentResponse])
def get_board_students(
    board_id: str, students: StudentService = Depends(get_student_service)
):
    return [
        StudentResponse.model_validate(student)
        for student in students.get_students_for_board(board_id)
    ]


@router.post("/students/register", response_model=StudentResponse, status_code=201)
def register_student(
    payload: StudentCredentialsRequest,
    students: StudentService = Depends(get_student_service),
):
    student = students.register_student(
        payload.name, payload.student_id, payload.password
    )
    return StudentResponse.model_validate(student)


@router.post("/students/login", response_model=StudentResponse)
def login_student(
    payload: StudentCredentialsRequest,
    students: StudentService = Depends(get_student_service),
):
    student = students.login_student(payload.name, payload.student_id, payload.password)
    return StudentResponse.model_validate(student)


@router.get("/students", response_model=list[StudentResponse])
def list_students(students: StudentService = Depends(get_student_service)):
    return [StudentResponse.model_validate(s) for s in students.get_all_students()]


@router.get("/students/{student_doc_id}", response_model=StudentResponse)
def get_student(
    student_doc_id: str, students: StudentService = Depends(get_student_service)
):
    return StudentResponse.model_validate(students.require_student(student_doc_id))


@router.patch("/students/{student_doc_id}", response_model=StudentResponse)
def update_student(
    student_doc_id: str,
    payload: UpdateStudentRequest,
    students: StudentService = Depends(get_student_service),
):
    student = students.require_student(student_doc_id)
    if payload.name is not None:
        student.name = payload.name.strip()
    if payload.student_id is not None:
        student.student_id = payload.student_id.strip()
    return StudentResponse.model_validate(students.update_student_info(student))


@router.delete("/students/{student_doc_id}", response_model=StatusResponse)
def delete_student(
    student_doc_id: str, students: StudentService = Depends(get_student_service)
):
    students.delete_student(student_doc_id)
    return StatusResponse(status="deleted")


@router.get(
    "/students/{student_id}/participations",
    response_model=list[StudentParticipationResponse],
)
def get_participations(
    student_id: str, students: StudentService = Depends(get_student_service)
):
    return [
        StudentParticipationResponse.model_validate(p)
        for p in students.get_student_participations(student_id)
    ]


@router.post(
    "/students/{student_doc_id}/boards/{board_id}", response_model=StudentResponse
)
def add_student_to_board(
    student_doc_id: str,
    board_id: str,
    students: StudentService = Depends(get_student_service),
):
    student = students.add_student_to_board(student_doc_id, board_id)
    return StudentResponse.model_validate(student)


@router.delete(
    "/students/{student_doc_id}/boards/{board_id}", response_model=StudentResponse
)
def remove_student_from_board(
    student_doc_id: str,
    board_id: str,
    students: StudentService = Depends(get_student_service),
):
    student = students.remove_student_from_board(student_doc_id, board_id)
    return StudentResponse.model_validate(student)


# Photos


@router.post("/boards/{board_id}/photos", response_model=PhotoResponse, status_code=201)
def upload_photo(
    board_id: str,
    student_id: str = Form(...),
    title: str = Form(""),
    file: UploadFile = File(...),
    photos: PhotoService = Depends(get_photo_service),
):
    """
    Upload a photo to a board as multipart form data.
    """
    image_bytes = file.file.read()
    photo = photos.upload_photo(image_bytes, student_id, board_id, title)
    return PhotoResponse.model_validate(photo)


@router.get("/boards/{board_id}/photos", response_model=list[PhotoResponse])
def get_board_photos(board_id: str, photos: PhotoService = Depends(get_photo_service)):
    return [PhotoResponse.model_validate(p) for p in photos.get_photos_for_board(board_id)]


@router.get(
    "/boards/{board_id}/students/{student_id}/photos",
    response_model=list[PhotoResponse],
)
def get_student_photos(
    board_id: str,
    student_id: str,
    photos: PhotoService = Depends(get_photo_service),
):
    return [
        PhotoResponse.model_validate(p)
        for p in photos.get_photos_for_student(student_id, board_id)
    ]


@router.get("/photos", response_model=list[PhotoResponse])
def list_photos(photos: PhotoService = Depends(get_photo_service)):
    return [PhotoResponse.model_validate(p) for p in photos.get_all_photos()]


@router.patch("/photos/{photo_id}/visibility", response_model=PhotoResponse)
def update_photo_visibility(
    photo_id: str,
    payload: PhotoVisibilityRequest,
    photos: PhotoService = Depends(get_photo_service),
):
    photo = photos.update_photo_visibility(
        photo_id, payload.is_visible, payload.actor_id
    )
    return PhotoResponse.model_validate(photo)


@router.delete("/photos/{photo_id}", response_model=StatusResponse)
def delete_photo(
    photo_id: str,
    student_id: str = Query(...),
    photos: PhotoService = Depends(get_photo_service),
):
    photos.delete_photo(photo_id, student_id)
    return StatusResponse(status="deleted")


# Photo views


@router.post(
    "/photos/{photo_id}/views", response_model=PhotoViewRecordResponse, status_code=201
)
def track_photo_view(
    photo_id: str,
    payload: TrackViewRequest,
    views: PhotoViewTrackingService = Depends(get_photo_view_service),
):
    record = views.track_photo_view(
        photo_id,
        payload.teacher_id,
        payload.board_id,
        session_duration=payload.session_duration,
        device_info=payload.device_info,
    )
    return PhotoViewRecordResponse.model_validate(record)


@router.get("/photos/{photo_id}/views", response_model=PhotoViewStatusResponse)
def get_photo_view_status(
    photo_id: str,
    views: PhotoViewTrackingService = Depends(get_photo_view_service),
):
    return PhotoViewStatusResponse.model_validate(views.get_photo_view_status(photo_id))


@router.get(
    "/boards/{board_id}/views", response_model=dict[str, PhotoViewStatusResponse]
)
def get_board_view_statuses(
    board_id: str,
    views: PhotoViewTrackingService = Depends(get_photo_view_service),
):
    statuses = views.get_board_photo_view_statuses(board_id)
    return {
        photo_id: PhotoViewStatusResponse.model_validate(status)
        for photo_id, status in statuses.items()
    }


@router.post(
    "/boards/{board_id}/views",
    response_model=list[PhotoViewRecordResponse],
    status_code=201,
)
def mark_photos_as_viewed(
    board_id: str,
    payload: MarkViewedRequest,
    views: PhotoViewTrackingService = Depends(get_photo_view_service),
):
    records = views.mark_photos_as_viewed(
        payload.photo_ids, payload.teacher_id, board_id
    )
    return [PhotoViewRecordResponse.model_validate(record) for record in records]


@router.get("/teachers/{teacher_id}/view-stats", response_model=TeacherViewStatsResponse)
def get_teacher_view_stats(
    teacher_id: str,
    views: PhotoViewTrackingService = Depends(get_photo_view_service),
):
    return TeacherViewStatsResponse.model_validate(
        views.get_teacher_view_stats(teacher_id)
    )


# Users and admin


@router.post("/users", response_model=UserResponse, status_code=201)
def sign_up(payload: SignUpRequest, users: UserService = Depends(get_user_service)):
    user = users.sign_up(payload.username, payload.email, payload.password)
    return UserResponse.model_validate(user)


@router.post("/users/login", response_model=UserResponse)
def login(payload: LoginRequest, users: UserService = Depends(get_user_service)):
    return UserResponse.model_validate(users.login(payload.email, payload.password))


@router.get("/users", response_model=list[UserResponse])
def list_users(users: UserService = Depends(get_user_service)):
    return [UserResponse.model_validate(user) for user in users.get_all_users()]


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: str, users: UserService = Depends(get_user_service)):
    user = users.get_user_by_id(user_id)
    if user is None:
        raise WallyError(WallyErrorKind.USER_NOT_FOUND)
    return UserResponse.model_validate(user)


@router.get("/admin/dashboard", response_model=DashboardStatsResponse)
def get_dashboard(users: UserService = Depends(get_user_service)):
    return DashboardStatsResponse.model_validate(users.get_dashboard_stats())


@router.get("/admin/activities", response_model=list[ActivityResponse])
def get_activities(
    limit: int = Query(default=20, ge=1, le=100),
    users: UserService = Depends(get_user_service),
):
    return [
        ActivityResponse.model_validate(activity)
        for activity in users.get_recent_activities(limit)
    ]


@router.get("/config", response_model=ConfigResponse)
def get_config():
    settings = get_settings()
    return ConfigResponse(
        allowed_domain=settings.allowed_domain,
        config_version=settings.config_version,
    )
