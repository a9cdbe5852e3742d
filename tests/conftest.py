"""Shared pytest fixtures for pennywise tests."""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from pennywise.database.factories import create_sqlite_database
from pennywise.domain.account import AccountService
from pennywise.domain.alerts import AlertService
from pennywise.domain.category import CategoryService
from pennywise.domain.recurring import RecurringPaymentService
from pennywise.domain.savings import SavingsService
from pennywise.domain.transaction import TransactionService

USER_ID = "local"
OTHER_USER_ID = "mallory"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()
    db.ensure_user(USER_ID)
    db.ensure_user(OTHER_USER_ID)

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def user_id(temp_db):
    return USER_ID


@pytest.fixture
def other_user_id(temp_db):
    return OTHER_USER_ID


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def alert_service(temp_db):
    """Create an AlertService with a temporary database."""
    return AlertService(temp_db)


@pytest.fixture
def transaction_service(temp_db, alert_service):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db, alert_service=alert_service)


@pytest.fixture
def recurring_service(temp_db, transaction_service):
    """Create a RecurringPaymentService with a temporary database."""
    return RecurringPaymentService(temp_db, transaction_service)


@pytest.fixture
def savings_service(temp_db):
    """Create a SavingsService with a temporary database."""
    return SavingsService(temp_db)


@pytest.fixture
def sample_account(account_service, user_id):
    """Create a sample checking account for testing."""
    return account_service.create_account(user_id, name="Test Account", account_type="checking")


@pytest.fixture
def credit_card(account_service, user_id):
    """Create a credit card with a 1,000.00 limit."""
    return account_service.create_account(
        user_id, name="Visa", account_type="credit_card", credit_limit=Decimal("1000.00")
    )


@pytest.fixture
def sample_categories(category_service, user_id):
    """Seed the default categories and return their IDs by name."""
    category_service.init_default_categories(user_id)
    return {c.name: c.id for c in category_service.list_categories(user_id)}


@pytest.fixture
def monthly_history(transaction_service, sample_account, user_id):
    """Six monthly NETFLIX.COM charges, January to June 2024."""
    start = date(2024, 1, 15)
    transactions = []
    for month in range(6):
        transactions.append(
            transaction_service.create_transaction(
                user_id=user_id,
                account_id=sample_account.id,
                amount=Decimal("-15.99"),
                description="NETFLIX.COM AUTOPAY",
                transaction_date=start.replace(month=month + 1),
            )
        )
    return transactions


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def api_client(temp_db):
    """HTTP client for an app that shares the temporary database."""
    from fastapi.testclient import TestClient

    from pennywise.api.app import create_app
    from pennywise.config import Settings

    settings = Settings(database_url=f"sqlite:///{temp_db.database_path}")
    app = create_app(settings, database=temp_db)
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"X-User-Id": USER_ID}
