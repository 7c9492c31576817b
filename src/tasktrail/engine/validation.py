"""
Task input validation.

Rules are declared once as a typed schema and shared by the create and update
paths. On update every field becomes optional (partial patch), but type and
enum constraints still apply to the fields that are present.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from tasktrail.engine.errors import ValidationError
from tasktrail.models import TITLE_MAX_LENGTH, TaskStatus


@dataclass(frozen=True)
class FieldRule:
    """Constraints for a single input field."""

    name: str
    required: bool = False
    nullable: bool = False
    max_length: Optional[int] = None
    choices: Optional[type[Enum]] = None
    default: Any = None


TASK_RULES: tuple[FieldRule, ...] = (
    FieldRule("title", required=True, max_length=TITLE_MAX_LENGTH),
    FieldRule("description", nullable=True),
    FieldRule("status", required=True, choices=TaskStatus, default=TaskStatus.PENDING),
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check(rule: FieldRule, value: Any) -> tuple[Any, Optional[str]]:
    """Check one present value. Returns (normalized value, error message)."""
    if value is None:
        if rule.nullable:
            return None, None
        return None, f"The {rule.name} field must not be null."

    if rule.choices is not None:
        raw = value.value if isinstance(value, rule.choices) else value
        allowed = [member.value for member in rule.choices]
        if raw not in allowed:
            return None, f"The {rule.name} must be one of: {', '.join(allowed)}."
        return rule.choices(raw), None

    if not isinstance(value, str):
        return None, f"The {rule.name} must be a string."
    if rule.max_length is not None and len(value) > rule.max_length:
        return None, f"The {rule.name} may not be greater than {rule.max_length} characters."
    return value, None


def validate(
    data: Mapping[str, Any],
    rules: tuple[FieldRule, ...],
    is_update: bool = False,
) -> dict[str, Any]:
    """
    Validate ``data`` against ``rules``.

    Unknown keys are dropped. Validation is all-or-nothing: if any present
    field violates its rule, ValidationError is raised with one message per
    offending field and nothing is returned.
    """
    validated: dict[str, Any] = {}
    errors: dict[str, str] = {}

    for rule in rules:
        present = rule.name in data
        value = data.get(rule.name)

        if not is_update and rule.required and _is_blank(value):
            if not present and rule.default is not None:
                # Absent defaulted fields take their default on create
                validated[rule.name] = rule.default
                continue
            errors[rule.name] = f"The {rule.name} field is required."
            continue

        if not present:
            continue

        if is_update and rule.required and isinstance(value, str) and not value.strip():
            errors[rule.name] = f"The {rule.name} field must not be empty."
            continue

        normalized, error = _check(rule, value)
        if error:
            errors[rule.name] = error
        else:
            validated[rule.name] = normalized

    if errors:
        raise ValidationError(errors)
    return validated


def validate_task_data(data: Mapping[str, Any], is_update: bool = False) -> dict[str, Any]:
    """Validate task input for create (all rules) or update (partial patch)."""
    return validate(data, TASK_RULES, is_update=is_update)


def validate_status_filter(status: Optional[str]) -> Optional[TaskStatus]:
    """Validate the optional status filter used when listing tasks."""
    if _is_blank(status):
        return None
    if status not in TaskStatus.values():
        raise ValidationError(
            {"status": f"The status must be one of: {', '.join(TaskStatus.values())}."}
        )
    return TaskStatus(status)
