"""Shared test fixtures for the talks app."""

import pytest
from model_bakery import baker

from talks.models import Talk
from users.models import CustomUser


@pytest.fixture()
def speaker() -> CustomUser:
    """Return a speaker who submits talks."""
    return baker.make(
        CustomUser,
        email="speaker@example.com",
        first_name="Ada",
        last_name="Lovelace",
        company="Analytical Engines",
    )


@pytest.fixture()
def reviewer() -> CustomUser:
    """Return a staff user who reviews talks."""
    return baker.make(CustomUser, email="reviewer@example.com", is_staff=True)


@pytest.fixture()
def other_reviewer() -> CustomUser:
    """Return a second reviewer whose ratings must not leak to the first."""
    return baker.make(CustomUser, email="other-reviewer@example.com", is_staff=True)


@pytest.fixture()
def talk(speaker: CustomUser) -> Talk:
    """Return a submitted talk."""
    return baker.make(
        Talk,
        title="One talk to rule them all",
        description="A talk about everything",
        category=Talk.Category.API,
        user=speaker,
    )
