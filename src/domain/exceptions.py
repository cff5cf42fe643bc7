"""
Domain exceptions - Semantic error types for onboarding.

This module defines domain-specific exceptions that communicate
rule violations without leaking presentation or infrastructure details.
"""

from collections.abc import Iterable, Mapping

from .ports import DocumentKind, ErrorKind


class OnboardingError(Exception):
    """Base class for onboarding domain errors."""

    pass


class ValidationFailed(OnboardingError):
    """One or more fields failed their rules; recoverable by user correction."""

    def __init__(self, errors: Mapping[str, ErrorKind]) -> None:
        super().__init__(", ".join(f"{field}={kind.value}" for field, kind in errors.items()))
        self.errors = dict(errors)


class SubmissionBusyError(OnboardingError):
    """A submit-intent arrived while the guard was not idle."""

    pass


class SubmissionFailed(OnboardingError):
    """The external operation reported failure."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class IllegalTransition(OnboardingError):
    """A caller attempted an operation the state machine does not permit."""

    pass


class MissingDocuments(IllegalTransition):
    """Final submission attempted without every mandatory document slot filled."""

    def __init__(self, missing: Iterable[DocumentKind]) -> None:
        self.missing = tuple(missing)
        super().__init__("missing documents: " + ", ".join(kind.value for kind in self.missing))
