"""
In-memory identity service adapter - Implements IdentityService protocol.

This module provides a process-local stand-in for the platform's account
service. It keeps registered profiles and login credentials in dictionaries
and simulates the network round-trip with a configurable delay.

Credentials are stored as bcrypt hashes. Authentication always runs one
bcrypt comparison, against a dummy hash when the identifier is unknown, so
response time does not reveal whether an account exists.
"""

import asyncio
import logging

import bcrypt

from src.domain.exceptions import SubmissionFailed
from src.domain.host import LoginPayload
from src.domain.wizard import RegistrationPayload

logger = logging.getLogger(__name__)

_DUMMY_SECRET = b"dummy_secret_for_timing_safety"

LOGIN_REJECTED = "Invalid credentials"
REGISTRATION_REJECTED = "Registration failed"


class InMemoryIdentityService:
    """
    Implements IdentityService protocol with process-local dictionaries.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, latency: float = 0.0, bcrypt_cost: int = 10) -> None:
        """
        Initialize an empty identity service.

        Args:
            latency: Seconds each call waits before answering
            bcrypt_cost: bcrypt work factor for enrolled credentials
        """
        self.latency = latency
        self.bcrypt_cost = bcrypt_cost
        self._credentials: dict[str, bytes] = {}
        self._profiles: dict[str, RegistrationPayload] = {}
        # Unknown identifiers are checked against this, at the same cost as real hashes
        self._dummy_hash = bcrypt.hashpw(_DUMMY_SECRET, bcrypt.gensalt(bcrypt_cost))

    def enroll(self, identifier: str, secret: str) -> None:
        """Store login credentials for an identifier."""
        key = self._normalize(identifier)
        self._credentials[key] = bcrypt.hashpw(secret.encode(), bcrypt.gensalt(self.bcrypt_cost))
        logger.info("[IDENTITY] Enrolled credentials for %s", key)

    def profile(self, email: str) -> RegistrationPayload | None:
        """Return the registration stored for an email, if any."""
        return self._profiles.get(self._normalize(email))

    async def register_account(self, payload: RegistrationPayload) -> None:
        """
        Record a finished registration.

        Raises:
            SubmissionFailed: If the email is already registered
        """
        await self._round_trip()
        email = self._normalize(payload.personal_info.get("email", ""))

        if email in self._profiles or email in self._credentials:
            logger.info("[IDENTITY] Registration rejected: %s already registered", email)
            raise SubmissionFailed(REGISTRATION_REJECTED)

        self._profiles[email] = payload
        logger.info("[IDENTITY] Registered %s account for %s", payload.role.value, email)

    async def authenticate(self, payload: LoginPayload) -> None:
        """
        Check login credentials.

        Raises:
            SubmissionFailed: If the identifier is unknown or the secret is wrong
        """
        await self._round_trip()
        key = self._normalize(payload.identifier)
        stored = self._credentials.get(key)

        matched = bcrypt.checkpw(payload.secret.encode(), stored or self._dummy_hash)
        if stored is None or not matched:
            logger.info("[IDENTITY] Login rejected for %s", key)
            raise SubmissionFailed(LOGIN_REJECTED)

        logger.info("[IDENTITY] Login accepted for %s (remember_me=%s)", key, payload.remember_me)

    async def _round_trip(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    def _normalize(self, identifier: str) -> str:
        return identifier.strip().lower()
