"""FastAPI dependencies: settings, per-request database and current user."""

from typing import Iterator

from fastapi import Depends, Request

from pennywise.api.errors import Unauthorized
from pennywise.config import Settings
from pennywise.database.base import Database
from pennywise.domain.alerts import AlertService
from pennywise.domain.transaction import TransactionService
from pennywise.domain.user import UserService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Iterator[Database]:
    """One database session per request, closed when the response is done."""
    db = request.app.state.database_factory()
    db.connect()
    try:
        yield db
    finally:
        db.disconnect()


def get_current_user(
    request: Request,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> str:
    """Return the user ID forwarded by the identity provider.

    The user row is provisioned on first use. A missing header is rejected
    before anything is written.
    """
    user_id = (request.headers.get(settings.user_id_header) or "").strip()
    if not user_id:
        raise Unauthorized()
    UserService(db).ensure_user(user_id)
    return user_id


def build_alert_service(db: Database, settings: Settings) -> AlertService:
    return AlertService(
        db,
        min_interval_minutes=settings.alert_min_interval_minutes,
        max_alerts_per_day=settings.alert_max_per_day,
    )


def build_transaction_service(db: Database, settings: Settings) -> TransactionService:
    return TransactionService(db, alert_service=build_alert_service(db, settings))
