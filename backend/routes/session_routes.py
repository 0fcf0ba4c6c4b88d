import logging
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.core import config
from backend.database import get_db
from backend.models.session import (
    MAX_SESSION_DURATION_MINUTES,
    MIN_SESSION_DURATION_MINUTES,
    SESSION_STATUSES,
)
from backend.models.user import User
from backend.schemas import PaginationResponse, SessionResponse
from backend.services import scheduling

router = APIRouter(tags=['sessions'])

logger = logging.getLogger(__name__)

SessionTypeLiteral = Literal['in-person', 'online', 'hybrid']


def _strip_text(value):
    return value.strip() if isinstance(value, str) else value


def _strip_optional(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


def _validate_meeting_link(value: str | None) -> str | None:
    value = _strip_optional(value)
    if value is not None and not value.startswith(('http://', 'https://')):
        raise ValueError('Meeting link must be a valid URL.')
    return value


class CreateSessionRequest(BaseModel):
    student: int
    skill: int
    title: str = Field(min_length=5, max_length=100)
    description: str = Field(min_length=10, max_length=500)
    scheduled_date: datetime
    duration: int = Field(ge=MIN_SESSION_DURATION_MINUTES, le=MAX_SESSION_DURATION_MINUTES)
    session_type: SessionTypeLiteral = 'online'
    location: str | None = Field(default=None, max_length=200)
    meeting_link: str | None = None

    @field_validator('title', 'description', mode='before')
    @classmethod
    def strip_text(cls, value):
        return _strip_text(value)

    @field_validator('location')
    @classmethod
    def normalize_location(cls, value: str | None) -> str | None:
        return _strip_optional(value)

    @field_validator('meeting_link')
    @classmethod
    def validate_meeting_link(cls, value: str | None) -> str | None:
        return _validate_meeting_link(value)


class UpdateSessionRequest(BaseModel):
    title: str | None = Field(default=None, min_length=5, max_length=100)
    description: str | None = Field(default=None, min_length=10, max_length=500)
    scheduled_date: datetime | None = None
    duration: int | None = Field(default=None, ge=MIN_SESSION_DURATION_MINUTES, le=MAX_SESSION_DURATION_MINUTES)
    session_type: SessionTypeLiteral | None = None
    location: str | None = Field(default=None, max_length=200)
    meeting_link: str | None = None

    @field_validator('title', 'description', mode='before')
    @classmethod
    def strip_text(cls, value):
        return _strip_text(value)

    @field_validator('location')
    @classmethod
    def normalize_location(cls, value: str | None) -> str | None:
        return _strip_optional(value)

    @field_validator('meeting_link')
    @classmethod
    def validate_meeting_link(cls, value: str | None) -> str | None:
        return _validate_meeting_link(value)


class CancelSessionRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class CompleteSessionRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=1000)
    rating: int | None = Field(default=None, ge=1, le=5)


class SessionPaginationResponse(PaginationResponse):
    total_sessions: int


class SessionListResponse(BaseModel):
    sessions: list[SessionResponse]
    pagination: SessionPaginationResponse


class AverageRatingsResponse(BaseModel):
    as_teacher: float
    as_student: float


class SessionStatsResponse(BaseModel):
    total_sessions: int
    completed_sessions: int
    pending_sessions: int
    confirmed_sessions: int
    status_counts: dict[str, int]
    average_ratings: AverageRatingsResponse


def database_unavailable(db: Session) -> HTTPException:
    db.rollback()
    logger.exception('Database error while handling a session request')
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail='Database unavailable. Verify DATABASE_URL and database credentials.',
    )


@router.post('', response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    data: CreateSessionRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return scheduling.create_session(
            db,
            current_user,
            student_id=data.student,
            skill_id=data.skill,
            title=data.title,
            description=data.description,
            scheduled_date=data.scheduled_date,
            duration=data.duration,
            session_type=data.session_type,
            location=data.location,
            meeting_link=data.meeting_link,
            background_tasks=background_tasks,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc


@router.get('', response_model=SessionListResponse)
def list_sessions(
    session_status: str | None = Query(default=None, alias='status'),
    role: Literal['teacher', 'student'] | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=config.DEFAULT_PAGE_LIMIT, ge=1, le=config.MAX_PAGE_LIMIT),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if session_status is not None and session_status not in SESSION_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Invalid session status.',
        )

    try:
        return scheduling.list_user_sessions(
            db,
            current_user,
            status=session_status,
            role=role,
            page=page,
            limit=limit,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc


@router.get('/stats', response_model=SessionStatsResponse)
def session_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return scheduling.get_session_stats(db, current_user)
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc


@router.get('/{session_id}', response_model=SessionResponse)
def get_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return scheduling.get_session(db, session_id, current_user)
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc


@router.put('/{session_id}', response_model=SessionResponse)
def update_session(
    session_id: int,
    data: UpdateSessionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return scheduling.update_session(db, session_id, current_user, data.model_dump(exclude_unset=True))
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc


@router.patch('/{session_id}/confirm', response_model=SessionResponse)
def confirm_session(
    session_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return scheduling.confirm_session(db, session_id, current_user, background_tasks=background_tasks)
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc


@router.patch('/{session_id}/cancel', response_model=SessionResponse)
def cancel_session(
    session_id: int,
    data: CancelSessionRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    reason = _strip_optional(data.reason) if data else None

    try:
        return scheduling.cancel_session(db, session_id, current_user, reason=reason)
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc


@router.patch('/{session_id}/complete', response_model=SessionResponse)
def complete_session(
    session_id: int,
    data: CompleteSessionRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = data or CompleteSessionRequest()

    try:
        return scheduling.complete_session(
            db,
            session_id,
            current_user,
            notes=_strip_optional(data.notes),
            rating=data.rating,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc


@router.delete('/{session_id}', status_code=status.HTTP_200_OK)
def delete_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        scheduling.delete_session(db, session_id, current_user)
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc

    return None
