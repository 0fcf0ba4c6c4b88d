import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.core.errors import ForbiddenError
from backend.database import get_db
from backend.models.user import AVAILABILITY_MODES, FACULTY_STATUSES, User
from backend.schemas import UserProfileResponse
from backend.services.availability import validate_weekly_availability

router = APIRouter(tags=['users'])

logger = logging.getLogger(__name__)


class UpdateWeeklyAvailabilityRequest(BaseModel):
    weekly_availability: Any


class UpdateCurrentStatusRequest(BaseModel):
    current_status: str

    @field_validator('current_status')
    @classmethod
    def validate_current_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in FACULTY_STATUSES:
            raise ValueError('Invalid status. Must be: free, busy, in-class, or unavailable')
        return normalized


class FacultyListResponse(BaseModel):
    faculty: list[UserProfileResponse]


def require_faculty(user: User, action: str) -> None:
    if user.role != 'faculty':
        raise ForbiddenError(f'Only faculty members can update their {action}')


def database_unavailable(db: Session) -> HTTPException:
    db.rollback()
    logger.exception('Database error while updating faculty availability')
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail='Database unavailable. Verify DATABASE_URL and database credentials.',
    )


@router.put('/me/availability', response_model=UserProfileResponse)
def update_weekly_availability(
    data: UpdateWeeklyAvailabilityRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_faculty(current_user, 'availability')
    weekly_availability = validate_weekly_availability(data.weekly_availability)

    try:
        current_user.weekly_availability = weekly_availability
        db.commit()
        db.refresh(current_user)
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc

    logger.info('Faculty %s updated weekly availability (%d days)', current_user.id, len(weekly_availability))
    return current_user


@router.patch('/me/status', response_model=UserProfileResponse)
def update_current_status(
    data: UpdateCurrentStatusRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_faculty(current_user, 'status')

    try:
        current_user.current_status = data.current_status
        db.commit()
        db.refresh(current_user)
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc

    return current_user


@router.get('/faculty', response_model=FacultyListResponse)
def list_faculty(
    faculty_status: str | None = Query(default=None, alias='status'),
    mode: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        query = db.query(User).filter(User.role == 'faculty')
        if faculty_status in FACULTY_STATUSES:
            query = query.filter(User.current_status == faculty_status)
        if mode in AVAILABILITY_MODES:
            query = query.filter(User.availability_mode == mode)

        return {'faculty': query.order_by(User.full_name.asc(), User.id.asc()).all()}
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc
