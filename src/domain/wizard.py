"""
Registration wizard - Role-conditional multi-step state machine.

Step Flow
=========

    ROLE_SELECT -> PERSONAL_INFO -> BUSINESS_INFO -> DOCUMENT_UPLOAD -> COMPLETE
                                    (Business only)

Skip rule: BUSINESS_INFO is absent from the flow when role is Investor, both
going forward and going back. The flow for each role is an ordered tuple of
steps; NEXT and BACK move one position along it, so back navigation always
mirrors the forward path.

Events per step:
    ROLE_SELECT      NEXT (unconditional)
    PERSONAL_INFO    NEXT (validated), BACK
    BUSINESS_INFO    NEXT (validated), BACK
    DOCUMENT_UPLOAD  COMPLETE (after a successful submission), BACK
    COMPLETE         none (terminal)

Data buckets are retained verbatim across navigation. Re-selecting the role
does not clear any bucket; the role only decides which buckets are consulted.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import (
    IllegalTransition,
    MissingDocuments,
    SubmissionFailed,
    ValidationFailed,
)
from .ports import DocumentKind, ErrorKind, Role, WizardStep
from .submission import SubmissionGuard
from .validation import BUSINESS_INFO_SCHEMA, PERSONAL_INFO_SCHEMA, StepSchema, validate

logger = logging.getLogger(__name__)


class WizardEvent(str, Enum):
    NEXT = "next"
    BACK = "back"
    COMPLETE = "complete"


FLOWS: dict[Role, tuple[WizardStep, ...]] = {
    Role.BUSINESS: (
        WizardStep.ROLE_SELECT,
        WizardStep.PERSONAL_INFO,
        WizardStep.BUSINESS_INFO,
        WizardStep.DOCUMENT_UPLOAD,
        WizardStep.COMPLETE,
    ),
    Role.INVESTOR: (
        WizardStep.ROLE_SELECT,
        WizardStep.PERSONAL_INFO,
        WizardStep.DOCUMENT_UPLOAD,
        WizardStep.COMPLETE,
    ),
}

_ALLOWED_EVENTS: dict[WizardStep, frozenset[WizardEvent]] = {
    WizardStep.ROLE_SELECT: frozenset({WizardEvent.NEXT}),
    WizardStep.PERSONAL_INFO: frozenset({WizardEvent.NEXT, WizardEvent.BACK}),
    WizardStep.BUSINESS_INFO: frozenset({WizardEvent.NEXT, WizardEvent.BACK}),
    WizardStep.DOCUMENT_UPLOAD: frozenset({WizardEvent.COMPLETE, WizardEvent.BACK}),
    WizardStep.COMPLETE: frozenset(),
}

STEP_SCHEMAS: dict[WizardStep, StepSchema] = {
    WizardStep.PERSONAL_INFO: PERSONAL_INFO_SCHEMA,
    WizardStep.BUSINESS_INFO: BUSINESS_INFO_SCHEMA,
}

REQUIRED_DOCUMENTS: dict[Role, tuple[DocumentKind, ...]] = {
    Role.INVESTOR: (DocumentKind.IDENTITY,),
    Role.BUSINESS: (DocumentKind.IDENTITY, DocumentKind.BUSINESS_REGISTRATION),
}


def transition(step: WizardStep, event: WizardEvent, role: Role) -> WizardStep:
    """
    Pure transition function of the wizard.

    Validation gates are not checked here; the controller applies them
    before asking for the next step.

    Raises:
        IllegalTransition: If the event is not defined for the step, or the
            step is not part of the role's flow
    """
    flow = FLOWS[role]
    if event not in _ALLOWED_EVENTS[step] or step not in flow:
        raise IllegalTransition(f"{event.value} is not allowed from {step.value} for {role.value}")

    index = flow.index(step)
    if event is WizardEvent.BACK:
        return flow[index - 1]
    return flow[index + 1]


def documents_for(role: Role) -> tuple[DocumentKind, ...]:
    """Document slots shown to a role, mandatory ones first."""
    return REQUIRED_DOCUMENTS[role] + (DocumentKind.ADDITIONAL,)


@dataclass(frozen=True)
class RegistrationPayload:
    """Finished registration handed to the identity service."""

    role: Role
    personal_info: dict[str, str]
    business_info: dict[str, str] | None
    document_state: dict[str, bool]

    def as_dict(self) -> dict[str, Any]:
        """External shape: {role, personalInfo, businessInfo?, documentState}."""
        data: dict[str, Any] = {
            "role": self.role.value,
            "personalInfo": dict(self.personal_info),
        }
        if self.business_info is not None:
            data["businessInfo"] = dict(self.business_info)
        data["documentState"] = dict(self.document_state)
        return data


@dataclass
class RegistrationSession:
    """Mutable state of one registration attempt."""

    role: Role = Role.INVESTOR
    current_step: WizardStep = WizardStep.ROLE_SELECT
    personal_info: dict[str, str] = field(default_factory=PERSONAL_INFO_SCHEMA.blank)
    business_info: dict[str, str] = field(default_factory=BUSINESS_INFO_SCHEMA.blank)
    document_state: dict[DocumentKind, bool] = field(
        default_factory=lambda: {kind: False for kind in DocumentKind}
    )
    field_errors: dict[str, ErrorKind] = field(default_factory=dict)

    def bucket(self, step: WizardStep) -> dict[str, str]:
        if step is WizardStep.PERSONAL_INFO:
            return self.personal_info
        if step is WizardStep.BUSINESS_INFO:
            return self.business_info
        raise IllegalTransition(f"{step.value} has no form data")

    def missing_documents(self) -> list[DocumentKind]:
        return [kind for kind in REQUIRED_DOCUMENTS[self.role] if not self.document_state[kind]]

    def build_payload(self) -> RegistrationPayload:
        business = self.role is Role.BUSINESS
        document_state = {
            "identityProvided": self.document_state[DocumentKind.IDENTITY],
            "additionalProvided": self.document_state[DocumentKind.ADDITIONAL],
        }
        if business:
            document_state["businessRegistrationProvided"] = self.document_state[
                DocumentKind.BUSINESS_REGISTRATION
            ]
        return RegistrationPayload(
            role=self.role,
            personal_info=dict(self.personal_info),
            business_info=dict(self.business_info) if business else None,
            document_state=document_state,
        )


class WizardController:
    """
    Drives one RegistrationSession through the step flow.

    While `pending` is True the host must not invoke navigation; this is a
    calling convention, not a lock.
    """

    def __init__(
        self,
        on_complete: Callable[[RegistrationPayload], None] | None = None,
        guard: SubmissionGuard | None = None,
    ) -> None:
        self.session = RegistrationSession()
        self.guard = guard or SubmissionGuard("registration")
        self._on_complete = on_complete

    @property
    def current_step(self) -> WizardStep:
        return self.session.current_step

    @property
    def role(self) -> Role:
        return self.session.role

    @property
    def field_errors(self) -> dict[str, ErrorKind]:
        return self.session.field_errors

    @property
    def pending(self) -> bool:
        return self.guard.pending

    @property
    def steps(self) -> tuple[WizardStep, ...]:
        """Steps of the flow for the currently selected role."""
        return FLOWS[self.session.role]

    def select_role(self, role: Role) -> None:
        """
        Choose the platform role.

        Raises:
            IllegalTransition: If the wizard is not at ROLE_SELECT
        """
        self._require_step(WizardStep.ROLE_SELECT)
        self.session.role = role

    def update(self, data: Mapping[str, str]) -> None:
        """
        Store raw field values in the current step's bucket.

        Raises:
            IllegalTransition: If the current step has no form, or a field
                does not belong to it
        """
        bucket = self.session.bucket(self.current_step)
        unknown = sorted(set(data) - set(bucket))
        if unknown:
            raise IllegalTransition(f"unknown fields for {self.current_step.value}: {', '.join(unknown)}")
        bucket.update(data)

    def next(self, data: Mapping[str, str] | None = None) -> WizardStep:
        """
        Advance to the following step.

        Args:
            data: Optional field values merged into the current bucket first

        Returns:
            The new current step

        Raises:
            ValidationFailed: If the current step's data is invalid; the
                step is unchanged and field_errors holds the full mapping
            IllegalTransition: If NEXT is not allowed from the current step
        """
        step = self.current_step
        target = transition(step, WizardEvent.NEXT, self.role)

        if data:
            self.update(data)

        schema = STEP_SCHEMAS.get(step)
        if schema is not None:
            errors = validate(schema, self.session.bucket(step))
            self.session.field_errors = errors
            if errors:
                raise ValidationFailed(errors)

        self._move_to(target)
        return target

    def back(self) -> WizardStep:
        """
        Return to the previous step of the role's flow; data is retained.

        Raises:
            IllegalTransition: If BACK is not allowed from the current step
        """
        target = transition(self.current_step, WizardEvent.BACK, self.role)
        self._move_to(target)
        return target

    def set_document(self, kind: DocumentKind, provided: bool = True) -> None:
        """
        Mark a document slot as filled or empty.

        Raises:
            IllegalTransition: Outside DOCUMENT_UPLOAD, or for a slot the
                current role does not have
        """
        self._require_step(WizardStep.DOCUMENT_UPLOAD)
        if kind not in documents_for(self.role):
            raise IllegalTransition(f"{kind.value} is not collected for {self.role.value}")
        self.session.document_state[kind] = provided

    async def submit(self, operation: Callable[[RegistrationPayload], Awaitable[Any]]) -> RegistrationPayload:
        """
        Finalize the registration through the submission guard.

        Args:
            operation: External registration call; raises SubmissionFailed
                to reject

        Returns:
            The payload that was accepted

        Raises:
            MissingDocuments: If a mandatory slot is empty (guard untouched)
            SubmissionBusyError: If a submission is already pending
            SubmissionFailed: If the operation rejected the payload; the
                wizard stays at DOCUMENT_UPLOAD with all data intact
        """
        self._require_step(WizardStep.DOCUMENT_UPLOAD)
        missing = self.session.missing_documents()
        if missing:
            raise MissingDocuments(missing)

        payload = self.session.build_payload()
        await self.guard.submit(payload, operation)
        outcome = self.guard.acknowledge()

        if not outcome.succeeded:
            logger.info("Registration rejected: %s", outcome.reason)
            raise SubmissionFailed(outcome.reason or "")

        self._move_to(transition(self.current_step, WizardEvent.COMPLETE, self.role))
        logger.info("Registration complete for role %s", self.role.value)
        if self._on_complete is not None:
            self._on_complete(payload)
        return payload

    def _require_step(self, step: WizardStep) -> None:
        if self.current_step is not step:
            raise IllegalTransition(f"expected {step.value}, wizard is at {self.current_step.value}")

    def _move_to(self, step: WizardStep) -> None:
        self.session.field_errors = {}
        self.session.current_step = step
