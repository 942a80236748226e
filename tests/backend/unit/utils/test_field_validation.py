"""Tests for signer input validation."""

from __future__ import annotations

import pytest

from utils.field_validation import (
    FieldDescriptor,
    is_valid_email,
    normalize_email,
    validate_field_values,
)


class TestEmail:
    @pytest.mark.parametrize(
        "value",
        [
            "a@b.co",
            "first.last+tag@example.com",
            "  padded@example.org  ",
            "o'brien@example.com",
            "josé@example.com",
        ],
    )
    def test_valid(self, value: str) -> None:
        assert is_valid_email(value)

    @pytest.mark.parametrize(
        "value",
        ["", "plain", "a@b", "@example.com", "a b@example.com", "a@example..com", ".a@-example.com"],
    )
    def test_invalid(self, value: str) -> None:
        assert not is_valid_email(value)

    def test_normalize_blank_is_none(self) -> None:
        assert normalize_email(None) is None
        assert normalize_email("") is None
        assert normalize_email("   ") is None

    def test_normalize_strips(self) -> None:
        assert normalize_email("  alice@example.com ") == "alice@example.com"

    def test_normalize_lowercases_domain(self) -> None:
        assert normalize_email("Alice@Example.COM") == "Alice@example.com"

    def test_normalize_rejects_invalid(self) -> None:
        with pytest.raises(ValueError, match="Invalid email address"):
            normalize_email("alice at example")


class TestValidateFieldValues:
    def test_all_valid(self) -> None:
        descriptors = [
            FieldDescriptor(id="1", name="Name"),
            FieldDescriptor(id="2", name="Email", type="email"),
            FieldDescriptor(id="3", name="Start", type="date"),
        ]
        values = {"1": "Alice", "2": "alice@example.com", "3": "2026-03-01"}

        assert validate_field_values(values, descriptors) == []

    def test_required_blank_and_none(self) -> None:
        descriptors = [FieldDescriptor(id="1", name="Name"), FieldDescriptor(id="2", name="Title")]

        issues = validate_field_values({"1": "   ", "2": None}, descriptors)

        assert [(i.field, i.code) for i in issues] == [("1", "required"), ("2", "required")]
        assert issues[0].message == "Name is required"

    def test_optional_blank_passes(self) -> None:
        descriptors = [FieldDescriptor(id="1", name="Email", type="email", required=False)]

        assert validate_field_values({"1": ""}, descriptors) == []

    def test_bad_email_and_date(self) -> None:
        descriptors = [
            FieldDescriptor(id="1", name="Email", type="email"),
            FieldDescriptor(id="2", name="Start", type="date"),
        ]

        issues = validate_field_values({"1": "nope", "2": "03/01/2026"}, descriptors)

        assert [(i.field, i.code) for i in issues] == [("1", "invalid_email"), ("2", "invalid_date")]

    def test_too_long(self) -> None:
        descriptors = [FieldDescriptor(id="1", name="Notes")]

        issues = validate_field_values({"1": "x" * 10_001}, descriptors)

        assert [i.code for i in issues] == ["too_long"]

    def test_unsubmitted_descriptors_are_skipped(self) -> None:
        descriptors = [FieldDescriptor(id="1", name="Name"), FieldDescriptor(id="2", name="Other")]

        assert validate_field_values({"1": "Alice"}, descriptors) == []

    def test_unknown_ids_are_ignored(self) -> None:
        assert validate_field_values({"ghost": ""}, [FieldDescriptor(id="1", name="Name")]) == []
