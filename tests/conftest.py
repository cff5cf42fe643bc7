"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- Valid form data for each wizard step
- A controllable asynchronous operation for submission tests
"""

import pytest

from tests.helpers import GatedOperation


@pytest.fixture
def gated_operation() -> GatedOperation:
    """Operation that stays pending until the test releases it."""
    return GatedOperation()


@pytest.fixture
def personal_info() -> dict[str, str]:
    """Personal info that satisfies every rule of the step."""
    return {
        "firstName": "Al",
        "lastName": "Xi",
        "email": "a@b.com",
        "phone": "5551234567",
        "country": "us",
    }


@pytest.fixture
def business_info() -> dict[str, str]:
    """Business info that satisfies every rule of the step."""
    return {
        "businessName": "Acme Ventures",
        "businessType": "startup",
        "registrationNumber": "RC-10293",
        "foundedYear": "2019",
        "website": "https://acme.example.com",
    }
