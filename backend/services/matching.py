"""Discovery and ranking of skill-exchange partners."""

import logging
import math
from collections import Counter
from typing import Any

from sqlalchemy.orm import Session

from backend.core.errors import NotFoundError
from backend.models.skill import Skill
from backend.models.user import User
from backend.services.compatibility import (
    LEARNING,
    MUTUAL,
    TEACHING,
    SkillProfile,
    calculate_compatibility_score,
)

logger = logging.getLogger(__name__)

TEACHING_OPPORTUNITY = 'teaching_opportunity'
LEARNING_OPPORTUNITY = 'learning_opportunity'
MUTUAL_EXCHANGE = 'mutual_exchange'


def build_pagination(page: int, limit: int, total: int, page_size: int) -> dict[str, Any]:
    skip = (page - 1) * limit
    return {
        'current_page': page,
        'total_pages': math.ceil(total / limit),
        'has_next': skip + page_size < total,
        'has_prev': page > 1,
    }


def paginate(items: list, page: int, limit: int) -> tuple[list, dict[str, Any]]:
    skip = (page - 1) * limit
    page_items = items[skip:skip + limit]
    return page_items, build_pagination(page, limit, len(items), len(page_items))


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError('User not found', {'user_id': user_id})
    return user


def teaching_candidates_query(db: Session, user: User):
    """Users who seek something ``user`` offers."""
    return db.query(User).filter(
        User.id != user.id,
        User.skills_seeking.any(Skill.id.in_(sorted(user.offered_skill_ids))),
    )


def learning_candidates_query(db: Session, user: User):
    """Users who offer something ``user`` seeks."""
    return db.query(User).filter(
        User.id != user.id,
        User.skills_offered.any(Skill.id.in_(sorted(user.seeking_skill_ids))),
    )


def mutual_candidates_query(db: Session, user: User):
    return db.query(User).filter(
        User.id != user.id,
        User.skills_offered.any(Skill.id.in_(sorted(user.seeking_skill_ids))),
        User.skills_seeking.any(Skill.id.in_(sorted(user.offered_skill_ids))),
    )


def _skills_in(skills: list[Skill], skill_ids: frozenset[int]) -> list[Skill]:
    return [skill for skill in skills if skill.id in skill_ids]


def _relevant_skills(match: dict[str, Any]) -> list[Skill]:
    if match['match_type'] == MUTUAL_EXCHANGE:
        return match['skills_i_can_teach']
    return match['common_skills']


def collect_matches(db: Session, user: User) -> list[dict[str, Any]]:
    """Build every teaching, learning and mutual match for ``user``, unsorted.

    A candidate shows up once per bucket it qualifies for.
    """
    me = SkillProfile.from_user(user)
    matches: list[dict[str, Any]] = []

    for candidate in teaching_candidates_query(db, user).order_by(User.id).all():
        other = SkillProfile.from_user(candidate)
        matches.append({
            'user': candidate,
            'match_type': TEACHING_OPPORTUNITY,
            'common_skills': _skills_in(candidate.skills_seeking, me.offered),
            'compatibility_score': calculate_compatibility_score(me, other, TEACHING),
        })

    for candidate in learning_candidates_query(db, user).order_by(User.id).all():
        other = SkillProfile.from_user(candidate)
        matches.append({
            'user': candidate,
            'match_type': LEARNING_OPPORTUNITY,
            'common_skills': _skills_in(candidate.skills_offered, me.seeking),
            'compatibility_score': calculate_compatibility_score(me, other, LEARNING),
        })

    for candidate in mutual_candidates_query(db, user).order_by(User.id).all():
        other = SkillProfile.from_user(candidate)
        matches.append({
            'user': candidate,
            'match_type': MUTUAL_EXCHANGE,
            'skills_i_can_teach': _skills_in(candidate.skills_seeking, me.offered),
            'skills_i_want_to_learn': _skills_in(candidate.skills_offered, me.seeking),
            'compatibility_score': calculate_compatibility_score(me, other, MUTUAL),
        })

    return matches


def find_skill_matches(
    db: Session,
    user_id: int,
    category: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    user = get_user_or_404(db, user_id)
    matches = collect_matches(db, user)

    if category:
        matches = [
            match for match in matches
            if any(skill.category == category for skill in _relevant_skills(match))
        ]

    # list.sort is stable, so ties keep bucket order.
    matches.sort(key=lambda match: match['compatibility_score'], reverse=True)

    page_matches, pagination = paginate(matches, page, limit)
    logger.debug('Found %d matches for user %s (category=%s)', len(matches), user_id, category)

    return {
        'matches': page_matches,
        'total_matches': len(matches),
        'pagination': pagination,
        'user_skills': {
            'offered': list(user.skills_offered),
            'seeking': list(user.skills_seeking),
        },
    }


def find_skill_partners(
    db: Session,
    user_id: int,
    skill_id: int,
    match_type: str = 'all',
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    skill = db.query(Skill).filter(Skill.id == skill_id).first()
    if skill is None:
        raise NotFoundError('Skill not found', {'skill_id': skill_id})

    partners: list[dict[str, Any]] = []

    if match_type in ('teachers', 'all'):
        teachers = db.query(User).filter(
            User.id != user_id,
            User.skills_offered.any(Skill.id == skill_id),
        ).order_by(User.id).all()
        partners.extend({'user': teacher, 'match_type': 'teacher', 'skill': skill} for teacher in teachers)

    if match_type in ('learners', 'all'):
        learners = db.query(User).filter(
            User.id != user_id,
            User.skills_seeking.any(Skill.id == skill_id),
        ).order_by(User.id).all()
        partners.extend({'user': learner, 'match_type': 'learner', 'skill': skill} for learner in learners)

    page_partners, pagination = paginate(partners, page, limit)

    return {
        'skill': skill,
        'partners': page_partners,
        'total_partners': len(partners),
        'pagination': pagination,
    }


def get_matching_stats(db: Session, user_id: int) -> dict[str, Any]:
    user = get_user_or_404(db, user_id)

    teaching_count = teaching_candidates_query(db, user).count()
    learning_count = learning_candidates_query(db, user).count()
    mutual_count = mutual_candidates_query(db, user).count()

    return {
        'user_stats': {
            'offered_skills': len(user.skills_offered),
            'seeking_skills': len(user.skills_seeking),
        },
        'matching_opportunities': {
            'teaching_opportunities': teaching_count,
            'learning_opportunities': learning_count,
            'mutual_exchanges': mutual_count,
            'total_opportunities': teaching_count + learning_count + mutual_count,
        },
        'skill_categories': {
            'offered': dict(Counter(skill.category for skill in user.skills_offered)),
            'seeking': dict(Counter(skill.category for skill in user.skills_seeking)),
        },
    }
