"""Shared fixtures for duo-split tests."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from duo_split.config import Settings
from duo_split.db import Database
from duo_split.models import MemberProfile, Profiles
from duo_split.service import LedgerService


@pytest.fixture
def now():
    """A fixed materialization/settlement time."""
    return datetime(2026, 3, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def even_profiles():
    """Partners with equal incomes."""
    return Profiles(
        a=MemberProfile(name="Sam", income=Decimal("5000")),
        b=MemberProfile(name="Alex", income=Decimal("5000")),
    )


@pytest.fixture
def income_profiles():
    """Partners earning 60% / 40% of the household income."""
    return Profiles(
        a=MemberProfile(name="Sam", income=Decimal("6000")),
        b=MemberProfile(name="Alex", income=Decimal("4000")),
    )


@pytest.fixture
def zero_income_profiles():
    """Partners with no recorded income."""
    return Profiles(
        a=MemberProfile(name="Sam", income=Decimal("0")),
        b=MemberProfile(name="Alex", income=Decimal("0")),
    )


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a temporary database."""
    return Settings(database_path=tmp_path / "test.db")


@pytest.fixture
def db(settings):
    """Create a temporary database."""
    database = Database(settings.database_path)
    yield database
    database.close()


@pytest.fixture
def service(settings, db):
    """Create a LedgerService instance."""
    return LedgerService(settings, db)
