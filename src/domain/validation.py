"""
Validation engine - Per-field rules and step schemas.

Validation is a pure function over a schema and a mapping of raw string
values. It never mutates its input and performs no I/O.

Rule semantics
==============

    required / min-length(n)   len(value.strip()) >= n
    email-shape                value looks like local@domain.tld
    numeric-year               4 ASCII digits after trimming, within MIN_YEAR..MAX_YEAR
    URL-shape (optional)       "" is valid, otherwise absolute URL with scheme and host
    enum-membership            value is in the field's allowed set

Rules for one field run in declaration order and the first failure is
reported, so every invalid field maps to exactly one ErrorKind.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urlsplit

from .ports import ErrorKind

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s.]+$")
URL_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*$")
YEAR_PATTERN = re.compile(r"^[0-9]{4}$")

MIN_YEAR = 1800
MAX_YEAR = 2100

COUNTRIES = frozenset({"us", "ca", "uk", "au", "de", "fr", "jp"})
BUSINESS_TYPES = frozenset({"startup", "small_business", "corporation", "partnership", "nonprofit"})


@dataclass(frozen=True)
class FieldRule:
    """
    A single validation predicate attached to one field.

    `kind` doubles as the ErrorKind produced on failure.
    """

    field: str
    kind: ErrorKind
    min_length: int = 0
    allowed: frozenset[str] = frozenset()

    def check(self, value: str) -> bool:
        """Return True if value satisfies this rule."""
        trimmed = value.strip()

        if self.kind in (ErrorKind.REQUIRED, ErrorKind.MIN_LENGTH):
            return len(trimmed) >= self.min_length
        if self.kind is ErrorKind.EMAIL_SHAPE:
            return EMAIL_PATTERN.match(trimmed) is not None
        if self.kind is ErrorKind.NUMERIC_YEAR:
            return _is_plausible_year(trimmed)
        if self.kind is ErrorKind.URL_SHAPE:
            return value == "" or _is_absolute_url(trimmed)
        if self.kind is ErrorKind.ENUM_MEMBERSHIP:
            return value in self.allowed
        raise ValueError(f"Unknown rule kind: {self.kind}")


def _is_plausible_year(value: str) -> bool:
    if YEAR_PATTERN.match(value) is None:
        return False
    return MIN_YEAR <= int(value) <= MAX_YEAR


def _is_absolute_url(value: str) -> bool:
    if not value or any(c.isspace() for c in value):
        return False
    parts = urlsplit(value)
    return bool(URL_SCHEME_PATTERN.match(parts.scheme)) and bool(parts.netloc)


def required(name: str) -> FieldRule:
    return FieldRule(name, ErrorKind.REQUIRED, min_length=1)


def min_length(name: str, n: int) -> FieldRule:
    return FieldRule(name, ErrorKind.MIN_LENGTH, min_length=n)


def email_shape(name: str) -> FieldRule:
    return FieldRule(name, ErrorKind.EMAIL_SHAPE)


def numeric_year(name: str) -> FieldRule:
    return FieldRule(name, ErrorKind.NUMERIC_YEAR)


def optional_url(name: str) -> FieldRule:
    return FieldRule(name, ErrorKind.URL_SHAPE)


def one_of(name: str, allowed: frozenset[str]) -> FieldRule:
    return FieldRule(name, ErrorKind.ENUM_MEMBERSHIP, allowed=allowed)


@dataclass(frozen=True)
class StepSchema:
    """Ordered field rules for one step."""

    name: str
    rules: tuple[FieldRule, ...] = ()

    @property
    def fields(self) -> tuple[str, ...]:
        """Field names in declaration order, without duplicates."""
        return tuple(dict.fromkeys(rule.field for rule in self.rules))

    def blank(self) -> dict[str, str]:
        """Return an empty data bucket holding every field of this schema."""
        return {name: "" for name in self.fields}


def validate(schema: StepSchema, data: Mapping[str, str]) -> dict[str, ErrorKind]:
    """
    Validate data against a step schema.

    Args:
        schema: Rules to apply
        data: Raw field values; missing fields are treated as empty strings

    Returns:
        Mapping of field name to ErrorKind for every failing field.
        An empty mapping means the data is fully valid.
    """
    errors: dict[str, ErrorKind] = {}
    for rule in schema.rules:
        if rule.field in errors:
            continue
        if not rule.check(data.get(rule.field, "")):
            errors[rule.field] = rule.kind
    return errors


PERSONAL_INFO_SCHEMA = StepSchema(
    "personal_info",
    (
        min_length("firstName", 2),
        min_length("lastName", 2),
        email_shape("email"),
        min_length("phone", 10),
        required("country"),
        one_of("country", COUNTRIES),
    ),
)

BUSINESS_INFO_SCHEMA = StepSchema(
    "business_info",
    (
        min_length("businessName", 2),
        required("businessType"),
        one_of("businessType", BUSINESS_TYPES),
        required("registrationNumber"),
        numeric_year("foundedYear"),
        optional_url("website"),
    ),
)

LOGIN_SCHEMA = StepSchema(
    "login",
    (
        email_shape("identifier"),
        required("secret"),
    ),
)
