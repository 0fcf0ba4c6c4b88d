"""Response models shared by the matching, session and user routes."""

from datetime import datetime

from pydantic import BaseModel


class SkillSummaryResponse(BaseModel):
    id: int
    name: str
    category: str
    description: str | None = None

    class Config:
        from_attributes = True


class UserSummaryResponse(BaseModel):
    id: int
    full_name: str
    email: str
    role: str

    class Config:
        from_attributes = True


class TimeSlot(BaseModel):
    start: str
    end: str


class DayAvailability(BaseModel):
    day: str
    timeSlots: list[TimeSlot]


class UserProfileResponse(UserSummaryResponse):
    is_available: bool
    availability_mode: str
    availability_location: str
    current_status: str
    weekly_availability: list[DayAvailability]
    skills_offered: list[SkillSummaryResponse]
    skills_seeking: list[SkillSummaryResponse]


class PaginationResponse(BaseModel):
    current_page: int
    total_pages: int
    has_next: bool
    has_prev: bool


class SessionResponse(BaseModel):
    id: int
    teacher: UserSummaryResponse
    student: UserSummaryResponse
    skill: SkillSummaryResponse
    title: str
    description: str
    scheduled_date: datetime
    duration: int
    session_type: str
    location: str | None = None
    meeting_link: str | None = None
    status: str
    start_time: datetime | None = None
    end_time: datetime | None = None
    actual_duration: int | None = None
    teacher_notes: str | None = None
    student_notes: str | None = None
    teacher_rating: int | None = None
    student_rating: int | None = None
    teacher_feedback: str | None = None
    student_feedback: str | None = None
    cancelled_by: int | None = None
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
