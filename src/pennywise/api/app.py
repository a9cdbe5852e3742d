"""FastAPI application factory."""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import pennywise
from pennywise.api.errors import register_error_handlers
from pennywise.api.routers import (
    accounts,
    alerts,
    analytics,
    categories,
    notifications,
    recurring_payments,
    savings_goals,
    transactions,
    users,
)
from pennywise.config import Settings, configure_logging
from pennywise.database.models import create_session_factory
from pennywise.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)

ROUTERS = (
    (users.router, "/users"),
    (accounts.router, "/accounts"),
    (categories.router, "/categories"),
    (transactions.router, "/transactions"),
    (recurring_payments.router, "/recurring-payments"),
    (savings_goals.router, "/savings-goals"),
    (alerts.router, "/alerts"),
    (notifications.router, "/notifications"),
    (analytics.router, "/analytics"),
)


def create_app(
    settings: Optional[Settings] = None, database: Optional[SQLAlchemyDatabase] = None
) -> FastAPI:
    """Build the API application.

    Args:
        settings: Application settings (read from the environment if None)
        database: Database whose engine every request shares; if None, one is
            created from the configured database URL

    Returns:
        The configured FastAPI application
    """
    settings = settings or Settings()
    configure_logging(settings.log_level)

    if database is not None:
        session_factory = database.session_factory
    else:
        session_factory = create_session_factory(settings.resolved_database_url())

    app = FastAPI(title="pennywise", version=pennywise.__version__)
    app.state.settings = settings
    app.state.database_factory = lambda: SQLAlchemyDatabase(session_factory=session_factory)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    for router, prefix in ROUTERS:
        app.include_router(router, prefix=f"{settings.api_prefix}{prefix}")

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "version": pennywise.__version__}

    logger.info("API ready under %s", settings.api_prefix)
    return app
