"""Notification routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from pennywise.api.dependencies import get_current_user, get_db
from pennywise.api.schemas import (
    NotificationCenterOut,
    NotificationPreferenceOut,
    NotificationPreferenceUpdate,
    PaymentAlertOut,
)
from pennywise.database.base import Database
from pennywise.domain.entities import AlertStatus, Priority
from pennywise.domain.notifications import NotificationService

router = APIRouter(tags=["notifications"])


def get_service(db: Database = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


@router.get("/center", response_model=NotificationCenterOut)
def notification_center(
    status: Optional[AlertStatus] = Query(None),
    priority: Optional[Priority] = Query(None),
    alert_type: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: str = Depends(get_current_user),
    service: NotificationService = Depends(get_service),
):
    page_of_alerts = service.notification_center(
        user_id, status=status, priority=priority, alert_type=alert_type, page=page, limit=limit
    )
    return NotificationCenterOut.model_validate(page_of_alerts)


@router.get("/pending", response_model=list[PaymentAlertOut])
def pending_payment_alerts(
    user_id: str = Depends(get_current_user),
    service: NotificationService = Depends(get_service),
):
    return [PaymentAlertOut.model_validate(a) for a in service.pending_payment_alerts(user_id)]


@router.post("/process")
def process_notifications(
    user_id: str = Depends(get_current_user),
    service: NotificationService = Depends(get_service),
) -> dict:
    """Send due-soon reminders and overdue alerts for recurring payments."""
    return service.process_user_notifications(user_id)


@router.get("/preferences", response_model=list[NotificationPreferenceOut])
def get_preferences(
    alert_type: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user),
    service: NotificationService = Depends(get_service),
):
    preferences = service.get_preferences(user_id, alert_type=alert_type)
    return [NotificationPreferenceOut.model_validate(p) for p in preferences]


@router.put("/preferences", response_model=NotificationPreferenceOut)
def update_preferences(
    payload: NotificationPreferenceUpdate,
    user_id: str = Depends(get_current_user),
    service: NotificationService = Depends(get_service),
):
    fields = payload.model_dump(exclude_none=True, exclude={"alert_type"})
    preference = service.update_preferences(user_id, payload.alert_type, **fields)
    return NotificationPreferenceOut.model_validate(preference)
