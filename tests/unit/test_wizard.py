"""
Unit tests for the registration wizard.

Tests verify:
- The pure transition function and the skip rule
- Validation gates on PERSONAL_INFO and BUSINESS_INFO
- Data retention across forward/back navigation
- Document slot rules and final submission routing
"""

import asyncio
import copy
from unittest.mock import AsyncMock, Mock

import pytest

from src.domain.exceptions import (
    IllegalTransition,
    MissingDocuments,
    SubmissionBusyError,
    SubmissionFailed,
    ValidationFailed,
)
from src.domain.ports import DocumentKind, ErrorKind, Role, WizardStep
from src.domain.submission import SubmissionStatus
from src.domain.wizard import (
    RegistrationPayload,
    WizardController,
    WizardEvent,
    documents_for,
    transition,
)
from tests.helpers import GatedOperation


def wizard_at_documents(
    role: Role, personal_info: dict[str, str], business_info: dict[str, str] | None = None
) -> WizardController:
    wizard = WizardController()
    wizard.select_role(role)
    wizard.next()
    wizard.next(personal_info)
    if role is Role.BUSINESS:
        wizard.next(business_info)
    assert wizard.current_step is WizardStep.DOCUMENT_UPLOAD
    return wizard


class TestTransitionFunction:
    """Tests for transition(step, event, role)."""

    @pytest.mark.parametrize("role", list(Role))
    def test_role_select_next_goes_to_personal_info(self, role: Role) -> None:
        assert transition(WizardStep.ROLE_SELECT, WizardEvent.NEXT, role) is WizardStep.PERSONAL_INFO

    def test_investor_skips_business_info(self) -> None:
        """Skip rule: PERSONAL_INFO -> DOCUMENT_UPLOAD for investors."""
        result = transition(WizardStep.PERSONAL_INFO, WizardEvent.NEXT, Role.INVESTOR)
        assert result is WizardStep.DOCUMENT_UPLOAD

    def test_business_visits_business_info(self) -> None:
        result = transition(WizardStep.PERSONAL_INFO, WizardEvent.NEXT, Role.BUSINESS)
        assert result is WizardStep.BUSINESS_INFO

    def test_back_from_documents_mirrors_skip(self) -> None:
        """Back navigation never lands on a step that was skipped."""
        assert (
            transition(WizardStep.DOCUMENT_UPLOAD, WizardEvent.BACK, Role.INVESTOR)
            is WizardStep.PERSONAL_INFO
        )
        assert (
            transition(WizardStep.DOCUMENT_UPLOAD, WizardEvent.BACK, Role.BUSINESS)
            is WizardStep.BUSINESS_INFO
        )

    def test_complete_only_from_document_upload(self) -> None:
        assert (
            transition(WizardStep.DOCUMENT_UPLOAD, WizardEvent.COMPLETE, Role.INVESTOR)
            is WizardStep.COMPLETE
        )
        with pytest.raises(IllegalTransition):
            transition(WizardStep.PERSONAL_INFO, WizardEvent.COMPLETE, Role.INVESTOR)

    @pytest.mark.parametrize(
        ("step", "event"),
        [
            (WizardStep.ROLE_SELECT, WizardEvent.BACK),
            (WizardStep.DOCUMENT_UPLOAD, WizardEvent.NEXT),
            (WizardStep.COMPLETE, WizardEvent.NEXT),
            (WizardStep.COMPLETE, WizardEvent.BACK),
            (WizardStep.COMPLETE, WizardEvent.COMPLETE),
        ],
    )
    def test_undefined_events_are_illegal(self, step: WizardStep, event: WizardEvent) -> None:
        with pytest.raises(IllegalTransition):
            transition(step, event, Role.BUSINESS)

    def test_business_info_is_not_in_investor_flow(self) -> None:
        with pytest.raises(IllegalTransition):
            transition(WizardStep.BUSINESS_INFO, WizardEvent.NEXT, Role.INVESTOR)


class TestRoleSelection:
    """Tests for the ROLE_SELECT step."""

    def test_defaults(self) -> None:
        """A new wizard starts at ROLE_SELECT as an investor."""
        wizard = WizardController()
        assert wizard.current_step is WizardStep.ROLE_SELECT
        assert wizard.role is Role.INVESTOR
        assert wizard.field_errors == {}
        assert not wizard.pending

    def test_next_is_unconditional(self) -> None:
        wizard = WizardController()
        assert wizard.next() is WizardStep.PERSONAL_INFO

    def test_role_frozen_after_first_step(self) -> None:
        wizard = WizardController()
        wizard.select_role(Role.BUSINESS)
        wizard.next()
        with pytest.raises(IllegalTransition):
            wizard.select_role(Role.INVESTOR)
        assert wizard.role is Role.BUSINESS

    def test_role_selectable_again_after_returning(self) -> None:
        wizard = WizardController()
        wizard.next()
        wizard.back()
        wizard.select_role(Role.BUSINESS)
        assert wizard.role is Role.BUSINESS

    def test_steps_follow_role(self) -> None:
        wizard = WizardController()
        assert WizardStep.BUSINESS_INFO not in wizard.steps
        wizard.select_role(Role.BUSINESS)
        assert WizardStep.BUSINESS_INFO in wizard.steps


class TestPersonalInfoStep:
    """Tests for PERSONAL_INFO validation and branching."""

    def test_investor_advances_to_documents(self, personal_info: dict[str, str]) -> None:
        """Valid personal info as investor lands directly on DOCUMENT_UPLOAD."""
        wizard = WizardController()
        wizard.next()
        assert wizard.next(personal_info) is WizardStep.DOCUMENT_UPLOAD
        assert wizard.session.business_info == {
            "businessName": "",
            "businessType": "",
            "registrationNumber": "",
            "foundedYear": "",
            "website": "",
        }

    def test_business_advances_to_business_info(self, personal_info: dict[str, str]) -> None:
        wizard = WizardController()
        wizard.select_role(Role.BUSINESS)
        wizard.next()
        assert wizard.next(personal_info) is WizardStep.BUSINESS_INFO

    def test_short_last_name_blocks_advance(self, personal_info: dict[str, str]) -> None:
        """lastName "X" fails min-length(2) only; the step is unchanged."""
        personal_info["lastName"] = "X"
        wizard = WizardController()
        wizard.next()

        with pytest.raises(ValidationFailed) as exc_info:
            wizard.next(personal_info)

        assert exc_info.value.errors == {"lastName": ErrorKind.MIN_LENGTH}
        assert wizard.field_errors == {"lastName": ErrorKind.MIN_LENGTH}
        assert wizard.current_step is WizardStep.PERSONAL_INFO

    def test_errors_are_replaced_on_each_attempt(self, personal_info: dict[str, str]) -> None:
        wizard = WizardController()
        wizard.next()
        with pytest.raises(ValidationFailed):
            wizard.next({"firstName": "A"})
        assert "firstName" in wizard.field_errors

        with pytest.raises(ValidationFailed):
            wizard.next({**personal_info, "phone": "123"})
        assert wizard.field_errors == {"phone": ErrorKind.MIN_LENGTH}

    def test_errors_cleared_on_success(self, personal_info: dict[str, str]) -> None:
        wizard = WizardController()
        wizard.next()
        with pytest.raises(ValidationFailed):
            wizard.next({"firstName": "A"})
        wizard.next(personal_info)
        assert wizard.field_errors == {}

    def test_update_keeps_raw_values(self) -> None:
        wizard = WizardController()
        wizard.next()
        wizard.update({"firstName": "  Al  "})
        assert wizard.session.personal_info["firstName"] == "  Al  "

    def test_unknown_field_rejected(self) -> None:
        wizard = WizardController()
        wizard.next()
        with pytest.raises(IllegalTransition):
            wizard.update({"nickname": "al"})
        assert "nickname" not in wizard.session.personal_info

    def test_update_outside_form_step_rejected(self) -> None:
        wizard = WizardController()
        with pytest.raises(IllegalTransition):
            wizard.update({"firstName": "Al"})


class TestBusinessInfoStep:
    """Tests for BUSINESS_INFO validation."""

    @pytest.fixture
    def wizard(self, personal_info: dict[str, str]) -> WizardController:
        wizard = WizardController()
        wizard.select_role(Role.BUSINESS)
        wizard.next()
        wizard.next(personal_info)
        return wizard

    def test_empty_website_is_valid(self, wizard: WizardController, business_info: dict[str, str]) -> None:
        business_info["website"] = ""
        assert wizard.next(business_info) is WizardStep.DOCUMENT_UPLOAD

    def test_bad_website_reports_url_shape_only(
        self, wizard: WizardController, business_info: dict[str, str]
    ) -> None:
        business_info["website"] = "not-a-url"
        with pytest.raises(ValidationFailed) as exc_info:
            wizard.next(business_info)
        assert exc_info.value.errors == {"website": ErrorKind.URL_SHAPE}
        assert wizard.current_step is WizardStep.BUSINESS_INFO

    def test_back_returns_to_personal_info_with_data(
        self, wizard: WizardController, business_info: dict[str, str]
    ) -> None:
        wizard.update(business_info)
        assert wizard.back() is WizardStep.PERSONAL_INFO
        assert wizard.session.business_info == business_info


class TestNavigationRetention:
    """Round-trip navigation leaves data untouched."""

    @pytest.mark.parametrize("role", list(Role))
    def test_forward_back_round_trip(
        self, role: Role, personal_info: dict[str, str], business_info: dict[str, str]
    ) -> None:
        wizard = WizardController()
        wizard.select_role(role)
        wizard.next()
        wizard.update(personal_info)
        if role is Role.BUSINESS:
            wizard.next()
            wizard.update(business_info)

        before_step = wizard.current_step
        before = copy.deepcopy(
            (wizard.session.personal_info, wizard.session.business_info, wizard.session.document_state)
        )

        wizard.next()
        wizard.back()

        assert wizard.current_step is before_step
        after = (wizard.session.personal_info, wizard.session.business_info, wizard.session.document_state)
        assert after == before

    def test_back_from_documents_investor(self, personal_info: dict[str, str]) -> None:
        wizard = wizard_at_documents(Role.INVESTOR, personal_info)
        assert wizard.back() is WizardStep.PERSONAL_INFO

    def test_back_from_documents_business(
        self, personal_info: dict[str, str], business_info: dict[str, str]
    ) -> None:
        wizard = wizard_at_documents(Role.BUSINESS, personal_info, business_info)
        assert wizard.back() is WizardStep.BUSINESS_INFO

    def test_back_clears_field_errors(self, personal_info: dict[str, str]) -> None:
        wizard = WizardController()
        wizard.next()
        with pytest.raises(ValidationFailed):
            wizard.next({"firstName": "A"})
        wizard.back()
        assert wizard.field_errors == {}

    def test_role_change_retains_business_data(
        self, personal_info: dict[str, str], business_info: dict[str, str]
    ) -> None:
        """Switching Business -> Investor keeps BusinessInfo but stops consulting it."""
        wizard = WizardController()
        wizard.select_role(Role.BUSINESS)
        wizard.next()
        wizard.next(personal_info)
        wizard.update(business_info)
        wizard.back()
        wizard.back()

        wizard.select_role(Role.INVESTOR)
        wizard.next()
        assert wizard.next() is WizardStep.DOCUMENT_UPLOAD
        assert wizard.session.business_info == business_info


class TestDocumentSlots:
    """Tests for document slot handling."""

    def test_slots_per_role(self) -> None:
        assert documents_for(Role.INVESTOR) == (DocumentKind.IDENTITY, DocumentKind.ADDITIONAL)
        assert documents_for(Role.BUSINESS) == (
            DocumentKind.IDENTITY,
            DocumentKind.BUSINESS_REGISTRATION,
            DocumentKind.ADDITIONAL,
        )

    def test_set_document_outside_upload_step(self) -> None:
        wizard = WizardController()
        with pytest.raises(IllegalTransition):
            wizard.set_document(DocumentKind.IDENTITY)

    def test_investor_has_no_business_registration_slot(self, personal_info: dict[str, str]) -> None:
        wizard = wizard_at_documents(Role.INVESTOR, personal_info)
        with pytest.raises(IllegalTransition):
            wizard.set_document(DocumentKind.BUSINESS_REGISTRATION)

    def test_toggle_slot(self, personal_info: dict[str, str]) -> None:
        wizard = wizard_at_documents(Role.INVESTOR, personal_info)
        wizard.set_document(DocumentKind.IDENTITY)
        assert wizard.session.document_state[DocumentKind.IDENTITY]
        wizard.set_document(DocumentKind.IDENTITY, provided=False)
        assert not wizard.session.document_state[DocumentKind.IDENTITY]


class TestSubmit:
    """Tests for final submission."""

    @pytest.mark.asyncio
    async def test_missing_identity_rejected_before_guard(self, personal_info: dict[str, str]) -> None:
        """Submitting without the identity document never reaches the operation."""
        wizard = wizard_at_documents(Role.INVESTOR, personal_info)
        operation = AsyncMock()

        with pytest.raises(MissingDocuments) as exc_info:
            await wizard.submit(operation)

        assert exc_info.value.missing == (DocumentKind.IDENTITY,)
        assert isinstance(exc_info.value, IllegalTransition)
        operation.assert_not_called()
        assert wizard.guard.status is SubmissionStatus.IDLE
        assert wizard.current_step is WizardStep.DOCUMENT_UPLOAD

    @pytest.mark.asyncio
    async def test_business_needs_registration_document(
        self, personal_info: dict[str, str], business_info: dict[str, str]
    ) -> None:
        wizard = wizard_at_documents(Role.BUSINESS, personal_info, business_info)
        wizard.set_document(DocumentKind.IDENTITY)
        operation = AsyncMock()

        with pytest.raises(MissingDocuments) as exc_info:
            await wizard.submit(operation)

        assert exc_info.value.missing == (DocumentKind.BUSINESS_REGISTRATION,)
        operation.assert_not_called()

    @pytest.mark.asyncio
    async def test_investor_payload(self, personal_info: dict[str, str]) -> None:
        wizard = wizard_at_documents(Role.INVESTOR, personal_info)
        wizard.set_document(DocumentKind.IDENTITY)
        operation = AsyncMock()

        payload = await wizard.submit(operation)

        operation.assert_awaited_once_with(payload)
        assert payload.as_dict() == {
            "role": "investor",
            "personalInfo": personal_info,
            "documentState": {"identityProvided": True, "additionalProvided": False},
        }
        assert wizard.current_step is WizardStep.COMPLETE

    @pytest.mark.asyncio
    async def test_business_payload(
        self, personal_info: dict[str, str], business_info: dict[str, str]
    ) -> None:
        wizard = wizard_at_documents(Role.BUSINESS, personal_info, business_info)
        wizard.set_document(DocumentKind.IDENTITY)
        wizard.set_document(DocumentKind.BUSINESS_REGISTRATION)
        wizard.set_document(DocumentKind.ADDITIONAL)

        payload = await wizard.submit(AsyncMock())

        assert payload.as_dict() == {
            "role": "business",
            "personalInfo": personal_info,
            "businessInfo": business_info,
            "documentState": {
                "identityProvided": True,
                "additionalProvided": True,
                "businessRegistrationProvided": True,
            },
        }

    @pytest.mark.asyncio
    async def test_success_fires_on_complete_once(self, personal_info: dict[str, str]) -> None:
        on_complete = Mock()
        wizard = WizardController(on_complete=on_complete)
        wizard.next()
        wizard.next(personal_info)
        wizard.set_document(DocumentKind.IDENTITY)

        payload = await wizard.submit(AsyncMock())

        on_complete.assert_called_once_with(payload)
        assert isinstance(payload, RegistrationPayload)

    @pytest.mark.asyncio
    async def test_failure_keeps_step_and_data(self, personal_info: dict[str, str]) -> None:
        on_complete = Mock()
        wizard = WizardController(on_complete=on_complete)
        wizard.next()
        wizard.next(personal_info)
        wizard.set_document(DocumentKind.IDENTITY)
        operation = AsyncMock(side_effect=SubmissionFailed("Registration failed"))

        with pytest.raises(SubmissionFailed) as exc_info:
            await wizard.submit(operation)

        assert exc_info.value.reason == "Registration failed"
        assert wizard.current_step is WizardStep.DOCUMENT_UPLOAD
        assert wizard.session.personal_info == personal_info
        assert wizard.guard.status is SubmissionStatus.IDLE
        on_complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, personal_info: dict[str, str]) -> None:
        wizard = wizard_at_documents(Role.INVESTOR, personal_info)
        wizard.set_document(DocumentKind.IDENTITY)
        operation = AsyncMock(side_effect=[SubmissionFailed("temporarily unavailable"), None])

        with pytest.raises(SubmissionFailed):
            await wizard.submit(operation)
        await wizard.submit(operation)

        assert operation.await_count == 2
        assert wizard.current_step is WizardStep.COMPLETE

    @pytest.mark.asyncio
    async def test_complete_is_terminal(self, personal_info: dict[str, str]) -> None:
        wizard = wizard_at_documents(Role.INVESTOR, personal_info)
        wizard.set_document(DocumentKind.IDENTITY)
        await wizard.submit(AsyncMock())

        with pytest.raises(IllegalTransition):
            wizard.back()
        with pytest.raises(IllegalTransition):
            wizard.next()
        with pytest.raises(IllegalTransition):
            await wizard.submit(AsyncMock())

    @pytest.mark.asyncio
    async def test_pending_while_in_flight(
        self, personal_info: dict[str, str], gated_operation: GatedOperation
    ) -> None:
        wizard = wizard_at_documents(Role.INVESTOR, personal_info)
        wizard.set_document(DocumentKind.IDENTITY)

        task = asyncio.create_task(wizard.submit(gated_operation))
        await gated_operation.started.wait()
        assert wizard.pending

        with pytest.raises(SubmissionBusyError):
            await wizard.submit(gated_operation)

        gated_operation.release()
        await task
        assert not wizard.pending
        assert len(gated_operation.calls) == 1
