"""
Port interfaces - Protocol definitions for collaborator abstraction.

This module defines the shared enumerations of the onboarding domain and
the interfaces (ports) the domain requires from the identity service and
document storage. Adapters implement these protocols.
"""

from enum import Enum
from typing import Any, Protocol


class Role(str, Enum):
    """Platform role chosen at the first registration step."""

    INVESTOR = "investor"
    BUSINESS = "business"


class WizardStep(str, Enum):
    """
    Registration steps in flow order.

    Flow per role (skip rule):
    - Business: ROLE_SELECT -> PERSONAL_INFO -> BUSINESS_INFO -> DOCUMENT_UPLOAD -> COMPLETE
    - Investor: ROLE_SELECT -> PERSONAL_INFO -> DOCUMENT_UPLOAD -> COMPLETE

    COMPLETE is terminal for a session.
    """

    ROLE_SELECT = "role_select"
    PERSONAL_INFO = "personal_info"
    BUSINESS_INFO = "business_info"
    DOCUMENT_UPLOAD = "document_upload"
    COMPLETE = "complete"


class AuthMode(str, Enum):
    """Which sub-flow of the authentication surface is visible."""

    LOGIN = "login"
    REGISTER = "register"


class ErrorKind(str, Enum):
    """Kind of field rule violation. Rendered text is up to the presentation shell."""

    REQUIRED = "required"
    MIN_LENGTH = "min_length"
    EMAIL_SHAPE = "email_shape"
    NUMERIC_YEAR = "numeric_year"
    URL_SHAPE = "url_shape"
    ENUM_MEMBERSHIP = "enum_membership"


class DocumentKind(str, Enum):
    """Document slots of the upload step."""

    IDENTITY = "identity"
    BUSINESS_REGISTRATION = "business_registration"
    ADDITIONAL = "additional"


class IdentityService(Protocol):
    """Port interface for the identity/account service."""

    async def register_account(self, payload: Any) -> None:
        """
        Finalize a registration.

        Args:
            payload: RegistrationPayload assembled by the wizard

        Raises:
            SubmissionFailed: If the service rejects the registration
        """
        ...

    async def authenticate(self, payload: Any) -> None:
        """
        Authenticate a returning user.

        Args:
            payload: LoginPayload with identifier, secret and remember-me flag

        Raises:
            SubmissionFailed: If the credentials are rejected
        """
        ...


class DocumentStorage(Protocol):
    """Port interface for document storage."""

    def store(self, surface_id: str, kind: DocumentKind, filename: str, content: bytes) -> None:
        """
        Store an uploaded document for one registration attempt.

        Args:
            surface_id: Authentication surface owning the registration attempt
            kind: Document slot the file fills
            filename: Original file name
            content: Raw file bytes
        """
        ...

    def discard(self, surface_id: str, kind: DocumentKind | None = None) -> None:
        """
        Drop stored documents for a surface.

        Args:
            surface_id: Authentication surface owning the documents
            kind: Slot to drop, or None for every slot of the surface
        """
        ...
