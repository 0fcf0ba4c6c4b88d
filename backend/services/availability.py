"""Validation of faculty weekly availability."""

import logging
import re
from typing import Any

from backend.core.errors import ValidationError

logger = logging.getLogger(__name__)

WEEKDAYS = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')
TIME_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$')


def to_minutes(value: str) -> int:
    hours, minutes = value.split(':')
    return int(hours) * 60 + int(minutes)


def _slot_bounds(slot: Any) -> tuple[Any, Any]:
    if not isinstance(slot, dict):
        raise ValidationError('Each time slot must have start and end')
    start = slot.get('start', slot.get('startTime'))
    end = slot.get('end', slot.get('endTime'))
    if not start or not end:
        raise ValidationError('Each time slot must have start and end')
    return start, end


def validate_weekly_availability(entries: Any) -> list[dict[str, Any]]:
    """Check a weekly schedule and return it in canonical form.

    Duplicate days and overlapping slots within a day are accepted.
    """
    if not isinstance(entries, list):
        raise ValidationError('Weekly availability must be a list')

    normalized: list[dict[str, Any]] = []
    seen_days: set[str] = set()

    for entry in entries:
        day = entry.get('day') if isinstance(entry, dict) else None
        if day not in WEEKDAYS:
            raise ValidationError(f'Invalid day: {day}', {'day': day})

        time_slots = entry.get('timeSlots', entry.get('time_slots'))
        if not isinstance(time_slots, list):
            raise ValidationError('timeSlots must be a list', {'day': day})

        slots: list[dict[str, str]] = []
        for slot in time_slots:
            start, end = _slot_bounds(slot)
            if not isinstance(start, str) or not isinstance(end, str):
                raise ValidationError('Time format must be HH:MM (24-hour format)', {'day': day})
            if not TIME_PATTERN.match(start) or not TIME_PATTERN.match(end):
                raise ValidationError('Time format must be HH:MM (24-hour format)', {'day': day})
            if to_minutes(start) >= to_minutes(end):
                raise ValidationError('start must be before end', {'day': day, 'start': start, 'end': end})
            slots.append({'start': start, 'end': end})

        if day in seen_days:
            logger.debug('Weekly availability lists %s more than once', day)
        seen_days.add(day)

        normalized.append({'day': day, 'timeSlots': slots})

    return normalized
