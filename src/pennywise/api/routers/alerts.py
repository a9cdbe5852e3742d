"""Alert routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from pennywise.api.dependencies import build_alert_service, get_current_user, get_db, get_settings
from pennywise.api.schemas import AlertOut, AlertSettingOut, AlertSettingUpsert, SnoozeRequest
from pennywise.config import Settings
from pennywise.database.base import Database
from pennywise.domain.alerts import AlertService
from pennywise.domain.entities import AlertStatus, AlertType, Priority

router = APIRouter(tags=["alerts"])


def get_service(
    db: Database = Depends(get_db), settings: Settings = Depends(get_settings)
) -> AlertService:
    return build_alert_service(db, settings)


@router.get("", response_model=list[AlertOut])
def list_alerts(
    status: Optional[AlertStatus] = Query(None),
    alert_type: Optional[AlertType] = Query(None),
    priority: Optional[Priority] = Query(None),
    account_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user),
    service: AlertService = Depends(get_service),
):
    alerts = service.list_alerts(
        user_id,
        status=status,
        alert_type=alert_type,
        account_id=account_id,
        priority=priority,
        limit=limit,
        offset=offset,
    )
    return [AlertOut.model_validate(a) for a in alerts]


@router.post("/check", response_model=list[AlertOut])
def check_alerts(
    user_id: str = Depends(get_current_user), service: AlertService = Depends(get_service)
):
    """Evaluate every account now and return the alerts raised."""
    return [AlertOut.model_validate(a) for a in service.process_user_alerts(user_id)]


@router.get("/settings", response_model=list[AlertSettingOut])
def get_settings_for_user(
    account_id: Optional[int] = Query(None),
    user_id: str = Depends(get_current_user),
    service: AlertService = Depends(get_service),
):
    settings = service.get_settings(user_id, account_id=account_id)
    return [AlertSettingOut.model_validate(s) for s in settings]


@router.put("/settings", response_model=AlertSettingOut)
def upsert_settings(
    payload: AlertSettingUpsert,
    user_id: str = Depends(get_current_user),
    service: AlertService = Depends(get_service),
):
    setting = service.upsert_settings(
        user_id,
        account_id=payload.account_id,
        alert_type=payload.alert_type,
        threshold_percentage=payload.threshold_percentage,
        threshold_amount=payload.threshold_amount,
        is_enabled=payload.is_enabled,
    )
    return AlertSettingOut.model_validate(setting)


@router.post("/{alert_id}/acknowledge", response_model=AlertOut)
def acknowledge(
    alert_id: int,
    user_id: str = Depends(get_current_user),
    service: AlertService = Depends(get_service),
):
    return AlertOut.model_validate(service.acknowledge(alert_id, user_id))


@router.post("/{alert_id}/snooze", response_model=AlertOut)
def snooze(
    alert_id: int,
    payload: SnoozeRequest,
    user_id: str = Depends(get_current_user),
    service: AlertService = Depends(get_service),
):
    return AlertOut.model_validate(service.snooze(alert_id, user_id, payload.minutes))


@router.post("/{alert_id}/dismiss", response_model=AlertOut)
def dismiss(
    alert_id: int,
    user_id: str = Depends(get_current_user),
    service: AlertService = Depends(get_service),
):
    return AlertOut.model_validate(service.dismiss(alert_id, user_id))
