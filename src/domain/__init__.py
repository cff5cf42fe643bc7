"""
Domain layer - Pure onboarding logic with zero framework imports.

This package contains the validation engine, the registration wizard state
machine, the submission guard and the authentication host. It defines its
own port interfaces for the identity service and document storage, keeping
the domain decoupled from HTTP and storage concerns.
"""

from .exceptions import (
    IllegalTransition,
    MissingDocuments,
    OnboardingError,
    SubmissionBusyError,
    SubmissionFailed,
    ValidationFailed,
)
from .host import AuthHostController, LoginPayload
from .ports import (
    AuthMode,
    DocumentKind,
    DocumentStorage,
    ErrorKind,
    IdentityService,
    Role,
    WizardStep,
)
from .submission import SubmissionGuard, SubmissionOutcome, SubmissionStatus
from .validation import FieldRule, StepSchema, validate
from .wizard import RegistrationPayload, RegistrationSession, WizardController, transition

__all__ = [
    "AuthHostController",
    "AuthMode",
    "DocumentKind",
    "DocumentStorage",
    "ErrorKind",
    "FieldRule",
    "IdentityService",
    "IllegalTransition",
    "LoginPayload",
    "MissingDocuments",
    "OnboardingError",
    "RegistrationPayload",
    "RegistrationSession",
    "Role",
    "StepSchema",
    "SubmissionBusyError",
    "SubmissionFailed",
    "SubmissionGuard",
    "SubmissionOutcome",
    "SubmissionStatus",
    "ValidationFailed",
    "WizardController",
    "WizardStep",
    "transition",
]
