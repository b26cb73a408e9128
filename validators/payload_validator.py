"""
Payload validator

Checks create/update/transition payloads before they are submitted.
Required fields come from the resource registry; per-field rules are
declared here per resource. All violations are collected and raised
together as one ``ValidationException``.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from adapters.resource_client import ResourceSpec
from exceptions import ValidationException

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}')
TIME_PATTERN = re.compile(r'^([0-1][0-9]|2[0-3]):[0-5][0-9]$')
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MAX_AMOUNT = 10_000_000


@dataclass(frozen=True)
class FieldRule:
    """One check on a single field; ``condition`` returns True when valid"""
    field: str
    condition: Callable[[Any], bool]
    error_message: str


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip()) or value == []


def min_length(field: str, size: int, message: str) -> FieldRule:
    return FieldRule(field, lambda v: isinstance(v, str) and len(v.strip()) >= size, message)


def max_length(field: str, size: int, message: str) -> FieldRule:
    return FieldRule(field, lambda v: isinstance(v, str) and len(v) <= size, message)


def positive_amount(field: str, label: str = "Amount") -> List[FieldRule]:
    def _number(v: Any) -> Optional[float]:
        if isinstance(v, bool):
            return None
        try:
            return float(v)
        except (TypeError, ValueError):
            return None

    return [
        FieldRule(field, lambda v: (_number(v) or 0) > 0, f"{label} must be greater than 0"),
        FieldRule(field, lambda v: (_number(v) or 0) < MAX_AMOUNT, f"{label} must be less than 10,000,000"),
    ]


def matches(field: str, pattern, message: str) -> FieldRule:
    return FieldRule(field, lambda v: isinstance(v, str) and bool(pattern.match(v)), message)


def _parse_date(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return None
    try:
        return datetime.fromisoformat(value[:10])
    except ValueError:
        return None


FIELD_RULES: Dict[str, List[FieldRule]] = {
    'employees': [
        min_length('firstName', 2, 'First name must be at least 2 characters'),
        min_length('lastName', 2, 'Last name must be at least 2 characters'),
        matches('email', EMAIL_PATTERN, 'Please enter a valid email address'),
    ],
    'departments': [
        min_length('name', 2, 'Department name must be at least 2 characters'),
    ],
    'salaries': positive_amount('amount'),
    'bonuses': positive_amount('amount'),
    'benefits': [
        min_length('name', 3, 'Name must be at least 3 characters'),
        max_length('name', 200, 'Name cannot exceed 200 characters'),
    ],
    'leave-requests': [
        min_length('reason', 10, 'Reason must be at least 10 characters'),
        max_length('reason', 500, 'Reason cannot exceed 500 characters'),
    ],
    'my-leave-requests': [
        min_length('reason', 10, 'Reason must be at least 10 characters'),
        max_length('reason', 500, 'Reason cannot exceed 500 characters'),
    ],
    'leave-types': [
        min_length('name', 2, 'Leave type name must be at least 2 characters'),
    ],
    'job-postings': [
        min_length('title', 5, 'Job title must be at least 5 characters'),
        max_length('title', 200, 'Job title cannot exceed 200 characters'),
    ],
    'applications': [
        matches('email', EMAIL_PATTERN, 'Please enter a valid email address'),
    ],
    'attendance': [
        matches('date', re.compile(r'^\d{4}-\d{2}-\d{2}$'), 'Date must be in YYYY-MM-DD format'),
        matches('checkInTime', TIME_PATTERN, 'Time must be in HH:MM format'),
        matches('checkOutTime', TIME_PATTERN, 'Time must be in HH:MM format'),
    ],
}

# (start field, end field, message) pairs
DATE_ORDER_RULES: Dict[str, List[Tuple[str, str, str]]] = {
    'leave-requests': [('startDate', 'endDate', 'End date must be on or after start date')],
    'my-leave-requests': [('startDate', 'endDate', 'End date must be on or after start date')],
    'salaries': [('effectiveDate', 'endDate', 'End date must be on or after effective date')],
    'onboarding': [('startDate', 'targetCompletionDate', 'Target completion date must be on or after start date')],
}

TRANSITION_RULES: Dict[Tuple[str, str], List[FieldRule]] = {
    ('leave-requests', 'reject'): [
        min_length('reason', 10, 'Rejection reason must be at least 10 characters'),
        max_length('reason', 200, 'Rejection reason cannot exceed 200 characters'),
    ],
    ('leave-requests', 'approve'): [
        max_length('comments', 200, 'Comments cannot exceed 200 characters'),
    ],
    ('users', 'roles'): [
        FieldRule('roles', lambda v: isinstance(v, list) and len(v) > 0, 'At least one role is required'),
    ],
}

TRANSITION_REQUIRED: Dict[Tuple[str, str], Tuple[str, ...]] = {
    ('leave-requests', 'reject'): ('reason',),
    ('users', 'roles'): ('roles',),
    ('users', 'status'): ('status',),
    ('onboarding-tasks', 'status'): ('status',),
}


class PayloadValidator:
    """Validate payloads for one resource family"""

    def __init__(self, spec: ResourceSpec):
        self.spec = spec

    def validate_create(self, payload: Any) -> Dict[str, Any]:
        return self._validate(payload, self.spec.required_fields,
                              FIELD_RULES.get(self.spec.key, []))

    def validate_update(self, payload: Any) -> Dict[str, Any]:
        return self._validate(payload, (), FIELD_RULES.get(self.spec.key, []))

    def validate_transition(self, action: str, payload: Any) -> Optional[Dict[str, Any]]:
        key = (self.spec.key, action)
        required = TRANSITION_REQUIRED.get(key, ())
        rules = TRANSITION_RULES.get(key, [])
        if payload is None and not required:
            return None
        return self._validate(payload, required, rules, check_dates=False)

    def _validate(self, payload: Any, required: Tuple[str, ...], rules: List[FieldRule],
                  check_dates: bool = True) -> Dict[str, Any]:
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValidationException(self.spec.key, {'payload': 'Payload must be a JSON object'})

        errors: Dict[str, str] = {}

        for name in required:
            if _blank(payload.get(name)):
                errors[name] = f"{_humanize(name)} is required"

        for rule in rules:
            if rule.field in errors or rule.field not in payload:
                continue
            value = payload.get(rule.field)
            if _blank(value):
                # optional fields may be sent empty
                continue
            if not rule.condition(value):
                errors[rule.field] = rule.error_message

        if check_dates:
            for start_field, end_field, message in DATE_ORDER_RULES.get(self.spec.key, []):
                if end_field in errors:
                    continue
                start = _parse_date(payload.get(start_field))
                end = _parse_date(payload.get(end_field))
                if start and end and end < start:
                    errors[end_field] = message

        if errors:
            logger.info(f"Rejected {self.spec.key} payload: {sorted(errors)}")
            raise ValidationException(self.spec.key, errors)

        return dict(payload)


def _humanize(field: str) -> str:
    words = re.sub(r'(?<!^)(?=[A-Z])', ' ', field).replace('_', ' ').split()
    if words and words[-1].lower() == 'id':
        words = words[:-1]
    text = ' '.join(words).lower()
    return text[:1].upper() + text[1:]
