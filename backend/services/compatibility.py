"""Compatibility scoring between two users' skill profiles."""

import math
from collections.abc import Iterable
from dataclasses import dataclass

TEACHING = 'teaching'
LEARNING = 'learning'
MUTUAL = 'mutual'
DIRECTIONS = (TEACHING, LEARNING, MUTUAL)

SINGLE_DIRECTION_WEIGHT = 20
MUTUAL_WEIGHT = 25
SAME_ROLE_BONUS = 10
MAX_DIVERSITY_BONUS = 15


@dataclass(frozen=True)
class SkillProfile:
    role: str
    offered: frozenset[int]
    seeking: frozenset[int]

    @classmethod
    def build(cls, role: str, offered: Iterable[int], seeking: Iterable[int]) -> 'SkillProfile':
        return cls(role=role, offered=frozenset(offered), seeking=frozenset(seeking))

    @classmethod
    def from_user(cls, user) -> 'SkillProfile':
        return cls.build(user.role, user.offered_skill_ids, user.seeking_skill_ids)


def teach_overlap(me: SkillProfile, other: SkillProfile) -> frozenset[int]:
    """Skills ``other`` seeks that ``me`` offers."""
    return other.seeking & me.offered


def learn_overlap(me: SkillProfile, other: SkillProfile) -> frozenset[int]:
    """Skills ``me`` seeks that ``other`` offers."""
    return me.seeking & other.offered


def diversity_bonus(me: SkillProfile, other: SkillProfile) -> float:
    total_skills = len(me.offered | me.seeking | other.offered | other.seeking)
    if total_skills == 0:
        return 0
    return min(MAX_DIVERSITY_BONUS, (total_skills / 4) * 2)


def calculate_compatibility_score(me: SkillProfile, other: SkillProfile, direction: str) -> int:
    """Score how well ``other`` fits ``me`` for the given exchange direction.

    The overlap term depends on the direction; the same-role bonus and the
    diversity bonus are added once regardless of direction. Halves round up.
    """
    if direction == TEACHING:
        score = SINGLE_DIRECTION_WEIGHT * len(teach_overlap(me, other))
    elif direction == LEARNING:
        score = SINGLE_DIRECTION_WEIGHT * len(learn_overlap(me, other))
    elif direction == MUTUAL:
        score = MUTUAL_WEIGHT * (len(teach_overlap(me, other)) + len(learn_overlap(me, other)))
    else:
        raise ValueError(f'Unknown match direction: {direction}')

    if me.role == other.role:
        score += SAME_ROLE_BONUS

    score += diversity_bonus(me, other)

    return math.floor(score + 0.5)
