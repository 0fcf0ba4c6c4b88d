import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from backend.routes.user_routes import (
    UpdateCurrentStatusRequest,
    UpdateWeeklyAvailabilityRequest,
    list_faculty,
    update_current_status,
    update_weekly_availability,
)
from backend.schemas import UserProfileResponse


def test_update_weekly_availability_stores_validated_schedule(db, make_user) -> None:
    faculty = make_user('Prof Ada', role='faculty')
    data = UpdateWeeklyAvailabilityRequest(
        weekly_availability=[{'day': 'monday', 'timeSlots': [{'startTime': '09:00', 'endTime': '11:00'}]}],
    )

    updated = update_weekly_availability(data=data, current_user=faculty, db=db)

    assert updated.weekly_availability == [{'day': 'monday', 'timeSlots': [{'start': '09:00', 'end': '11:00'}]}]
    assert UserProfileResponse.model_validate(updated).weekly_availability[0].day == 'monday'


def test_update_weekly_availability_rejects_students(db, make_user) -> None:
    student = make_user('Student')
    data = UpdateWeeklyAvailabilityRequest(weekly_availability=[])

    with pytest.raises(HTTPException) as exception_info:
        update_weekly_availability(data=data, current_user=student, db=db)

    assert exception_info.value.status_code == 403
    assert exception_info.value.detail == 'Only faculty members can update their availability'


def test_update_weekly_availability_rejects_invalid_schedule(db, make_user) -> None:
    faculty = make_user('Prof Ada', role='faculty')
    data = UpdateWeeklyAvailabilityRequest(
        weekly_availability=[{'day': 'monday', 'timeSlots': [{'start': '11:00', 'end': '09:00'}]}],
    )

    with pytest.raises(HTTPException) as exception_info:
        update_weekly_availability(data=data, current_user=faculty, db=db)

    assert exception_info.value.status_code == 400
    db.refresh(faculty)
    assert faculty.weekly_availability == []


def test_update_current_status_request_validates_status() -> None:
    assert UpdateCurrentStatusRequest(current_status=' In-Class ').current_status == 'in-class'

    with pytest.raises(ValidationError):
        UpdateCurrentStatusRequest(current_status='sleeping')


def test_update_current_status_for_faculty_only(db, make_user) -> None:
    faculty = make_user('Prof Ada', role='faculty')
    student = make_user('Student')
    data = UpdateCurrentStatusRequest(current_status='free')

    assert update_current_status(data=data, current_user=faculty, db=db).current_status == 'free'
    with pytest.raises(HTTPException) as exception_info:
        update_current_status(data=data, current_user=student, db=db)

    assert exception_info.value.status_code == 403


def test_list_faculty_filters_by_status_and_mode(db, make_user) -> None:
    viewer = make_user('Viewer')
    make_user('Prof Zed', role='faculty', current_status='free', availability_mode='online')
    make_user('Prof Ada', role='faculty', current_status='free', availability_mode='on-campus')
    make_user('Prof Bo', role='faculty', current_status='busy', availability_mode='online')

    everyone = list_faculty(faculty_status=None, mode=None, current_user=viewer, db=db)
    free = list_faculty(faculty_status='free', mode=None, current_user=viewer, db=db)
    free_online = list_faculty(faculty_status='free', mode='online', current_user=viewer, db=db)
    ignored_filter = list_faculty(faculty_status='asleep', mode='teleport', current_user=viewer, db=db)

    assert [user.full_name for user in everyone['faculty']] == ['Prof Ada', 'Prof Bo', 'Prof Zed']
    assert [user.full_name for user in free['faculty']] == ['Prof Ada', 'Prof Zed']
    assert [user.full_name for user in free_online['faculty']] == ['Prof Zed']
    assert len(ignored_filter['faculty']) == 3
