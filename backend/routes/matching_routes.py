import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.core import config
from backend.database import get_db
from backend.models.user import User
from backend.schemas import PaginationResponse, SkillSummaryResponse, UserSummaryResponse
from backend.services import matching

router = APIRouter(tags=['matching'])

logger = logging.getLogger(__name__)


class MatchResponse(BaseModel):
    user: UserSummaryResponse
    match_type: str
    compatibility_score: int
    common_skills: list[SkillSummaryResponse] | None = None
    skills_i_can_teach: list[SkillSummaryResponse] | None = None
    skills_i_want_to_learn: list[SkillSummaryResponse] | None = None


class UserSkillsResponse(BaseModel):
    offered: list[SkillSummaryResponse]
    seeking: list[SkillSummaryResponse]


class MatchListResponse(BaseModel):
    matches: list[MatchResponse]
    total_matches: int
    pagination: PaginationResponse
    user_skills: UserSkillsResponse


class PartnerResponse(BaseModel):
    user: UserSummaryResponse
    match_type: str
    skill: SkillSummaryResponse


class PartnerListResponse(BaseModel):
    skill: SkillSummaryResponse
    partners: list[PartnerResponse]
    total_partners: int
    pagination: PaginationResponse


class MatchingStatsResponse(BaseModel):
    user_stats: dict[str, int]
    matching_opportunities: dict[str, int]
    skill_categories: dict[str, dict[str, int]]


def database_unavailable(db: Session) -> HTTPException:
    db.rollback()
    logger.exception('Database error while matching users')
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail='Database unavailable. Verify DATABASE_URL and database credentials.',
    )


@router.get('/matches', response_model=MatchListResponse)
def find_matches(
    category: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=config.DEFAULT_PAGE_LIMIT, ge=1, le=config.MAX_PAGE_LIMIT),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return matching.find_skill_matches(db, current_user.id, category=category, page=page, limit=limit)
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc


@router.get('/skills/{skill_id}/partners', response_model=PartnerListResponse)
def find_partners(
    skill_id: int,
    match_type: Literal['teachers', 'learners', 'all'] = Query(default='all', alias='matchType'),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=config.DEFAULT_PAGE_LIMIT, ge=1, le=config.MAX_PAGE_LIMIT),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return matching.find_skill_partners(
            db,
            current_user.id,
            skill_id,
            match_type=match_type,
            page=page,
            limit=limit,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc


@router.get('/stats', response_model=MatchingStatsResponse)
def matching_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return matching.get_matching_stats(db, current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable(db) from exc
