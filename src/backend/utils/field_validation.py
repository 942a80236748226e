"""Validation utilities for signer input.

Submitted field values are checked against descriptors supplied at call
time, so one function serves every document regardless of its field set.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from pydantic import EmailStr, TypeAdapter, ValidationError

from core.constants import FIELD_TYPE_DATE, FIELD_TYPE_EMAIL, MAX_FIELD_VALUE_LENGTH
from models.error_models import ErrorDetail

# RFC 5322 addresses via email-validator, internationalized local parts included
_email_adapter: TypeAdapter[str] = TypeAdapter(EmailStr)


@dataclass(frozen=True)
class FieldDescriptor:
    """What the validator needs to know about one fillable field."""

    id: str
    name: str
    type: str = "text"
    required: bool = True


def _validated_email(value: str) -> str | None:
    try:
        return _email_adapter.validate_python(value.strip())
    except ValidationError:
        return None


def is_valid_email(value: str) -> bool:
    return _validated_email(value) is not None


def normalize_email(value: str | None) -> str | None:
    """Normalize a contact email: blank becomes None, anything else must be valid.

    Raises:
        ValueError: If a non-blank value is not a valid address
    """
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        return None
    email = _validated_email(stripped)
    if email is None:
        raise ValueError(f"Invalid email address: {stripped!r}")
    return email


def _is_iso_date(value: str) -> bool:
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True


def validate_field_values(
    values: dict[str, str | None],
    descriptors: list[FieldDescriptor],
) -> list[ErrorDetail]:
    """Validate submitted values against field descriptors.

    Args:
        values: Map of field id to submitted value
        descriptors: Fields being submitted; ids absent from this list are ignored

    Returns:
        One ErrorDetail per failing field, empty when everything passes
    """
    issues: list[ErrorDetail] = []

    for descriptor in descriptors:
        if descriptor.id not in values:
            continue
        raw = values[descriptor.id]
        value = raw.strip() if raw is not None else ""

        if not value:
            if descriptor.required:
                issues.append(
                    ErrorDetail(
                        field=descriptor.id,
                        message=f"{descriptor.name} is required",
                        code="required",
                    )
                )
            continue

        if raw is not None and len(raw) > MAX_FIELD_VALUE_LENGTH:
            issues.append(
                ErrorDetail(
                    field=descriptor.id,
                    message=f"{descriptor.name} must be at most {MAX_FIELD_VALUE_LENGTH} characters",
                    code="too_long",
                )
            )
            continue

        if descriptor.type == FIELD_TYPE_EMAIL and not is_valid_email(value):
            issues.append(
                ErrorDetail(
                    field=descriptor.id,
                    message=f"{descriptor.name} must be a valid email address",
                    code="invalid_email",
                )
            )
        elif descriptor.type == FIELD_TYPE_DATE and not _is_iso_date(value):
            issues.append(
                ErrorDetail(
                    field=descriptor.id,
                    message=f"{descriptor.name} must be a date in YYYY-MM-DD format",
                    code="invalid_date",
                )
            )

    return issues
