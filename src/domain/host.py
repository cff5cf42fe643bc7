"""
Authentication host - Owns one authentication surface.

The host composes the login flow (validation + its own submission guard)
with a WizardController for registration, and decides which of the two is
visible. Every surface owns its own controller tree; nothing is shared
between surfaces.

Outcome routing:
- Login succeeded        -> on_login_success(), then the surface closes
- Registration completed -> on_register_success(), mode switches to LOGIN,
                            the surface stays open
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .exceptions import IllegalTransition, SubmissionFailed, ValidationFailed
from .ports import AuthMode, ErrorKind, IdentityService
from .submission import SubmissionGuard
from .validation import LOGIN_SCHEMA, validate
from .wizard import RegistrationPayload, WizardController

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


def _noop() -> None:
    pass


@dataclass(frozen=True)
class LoginPayload:
    """Credentials of a returning user."""

    identifier: str
    secret: str
    remember_me: bool = False

    def as_dict(self) -> dict[str, object]:
        return {"identifier": self.identifier, "secret": self.secret, "rememberMe": self.remember_me}

    def __repr__(self) -> str:
        return f"LoginPayload(identifier={self.identifier!r}, remember_me={self.remember_me})"


class AuthHostController:
    """Entry point the presentation shell drives for one authentication surface."""

    def __init__(
        self,
        identity: IdentityService,
        mode: AuthMode = AuthMode.LOGIN,
        on_login_success: Callback = _noop,
        on_register_success: Callback = _noop,
        on_close: Callback = _noop,
        on_forgot_password: Callback = _noop,
        submission_timeout: float | None = None,
    ) -> None:
        """
        Open a surface in the given mode.

        Args:
            identity: Identity service used for login and registration
            mode: Initially visible sub-flow
            on_login_success: Fired once per successful login
            on_register_success: Fired once per completed registration
            on_close: Fired once when the surface closes
            on_forgot_password: Fired per password-reset request
            submission_timeout: Seconds before a pending submission fails
        """
        self.identity = identity
        self.submission_timeout = submission_timeout
        self._on_login_success = on_login_success
        self._on_register_success = on_register_success
        self._on_close = on_close
        self._on_forgot_password = on_forgot_password

        self._open = True
        self._mode = mode
        self.login_guard = self._new_login_guard()
        self.login_errors: dict[str, ErrorKind] = {}
        self.wizard = self._new_wizard()

    @property
    def active_mode(self) -> AuthMode:
        return self._mode

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def pending(self) -> bool:
        """True while either sub-flow has a submission in flight."""
        return self.login_guard.pending or self.wizard.pending

    def set_mode(self, mode: AuthMode) -> None:
        """
        Switch the visible sub-flow.

        Switching away resets the transient state of the mode being entered:
        a fresh registration session, or a fresh login guard and errors.
        Selecting the current mode does nothing.

        Raises:
            IllegalTransition: If the surface is closed
        """
        self._require_open()
        if mode is self._mode:
            return

        if mode is AuthMode.REGISTER:
            self.wizard = self._new_wizard()
        else:
            self.login_guard = self._new_login_guard()
            self.login_errors = {}
        self._mode = mode
        logger.debug("Surface switched to %s", mode.value)

    async def login(self, identifier: str, secret: str, remember_me: bool = False) -> None:
        """
        Authenticate a returning user.

        Raises:
            ValidationFailed: If the credentials are malformed
            SubmissionBusyError: If a login is already pending
            SubmissionFailed: If the identity service rejects the credentials
            IllegalTransition: If the surface is closed or not in LOGIN mode
        """
        self._require_open()
        self._require_mode(AuthMode.LOGIN)

        errors = validate(LOGIN_SCHEMA, {"identifier": identifier, "secret": secret})
        self.login_errors = errors
        if errors:
            raise ValidationFailed(errors)

        payload = LoginPayload(identifier=identifier, secret=secret, remember_me=remember_me)
        guard = self.login_guard
        await guard.submit(payload, self.identity.authenticate)
        outcome = guard.acknowledge()

        if not outcome.succeeded:
            raise SubmissionFailed(outcome.reason or "")
        if not self._open:
            logger.info("Login succeeded after surface closed, outcome dropped")
            return

        logger.info("Login succeeded")
        self._on_login_success()
        self.close()

    async def register(self) -> RegistrationPayload:
        """
        Finalize the registration wizard against the identity service.

        Raises:
            IllegalTransition: If the surface is closed, not in REGISTER mode,
                or the wizard is not ready to submit
            SubmissionBusyError: If a registration is already pending
            SubmissionFailed: If the identity service rejects the registration
        """
        self._require_open()
        self._require_mode(AuthMode.REGISTER)
        return await self.wizard.submit(self.identity.register_account)

    def request_password_reset(self) -> None:
        self._require_open()
        self._on_forgot_password()

    def close(self) -> None:
        """Close the surface. Closing twice fires on_close only once."""
        if not self._open:
            return
        self._open = False
        logger.debug("Surface closed")
        self._on_close()

    def _handle_registration_complete(self, payload: RegistrationPayload) -> None:
        if not self._open:
            # Closed while the submission was pending; the session is discarded.
            logger.info("Registration completed after surface closed, outcome dropped")
            return
        self._on_register_success()
        # A completed wizard is terminal; login state starts fresh.
        self.login_guard = self._new_login_guard()
        self.login_errors = {}
        self._mode = AuthMode.LOGIN

    def _new_wizard(self) -> WizardController:
        return WizardController(
            on_complete=self._handle_registration_complete,
            guard=SubmissionGuard("registration", timeout=self.submission_timeout),
        )

    def _new_login_guard(self) -> SubmissionGuard:
        return SubmissionGuard("login", timeout=self.submission_timeout)

    def _require_open(self) -> None:
        if not self._open:
            raise IllegalTransition("authentication surface is closed")

    def _require_mode(self, mode: AuthMode) -> None:
        if self._mode is not mode:
            raise IllegalTransition(f"surface is in {self._mode.value} mode, expected {mode.value}")
