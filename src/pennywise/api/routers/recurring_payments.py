"""Recurring payment routes: tracking, detection and budget analysis."""

import dataclasses
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from pennywise.api.dependencies import (
    build_transaction_service,
    get_current_user,
    get_db,
    get_settings,
)
from pennywise.api.schemas import (
    BudgetImpactOut,
    ConfirmPatternRequest,
    DetectionOut,
    DetectRequest,
    MissedPaymentOut,
    ProcessingOut,
    RecordPaymentRequest,
    RecurringPaymentCreate,
    RecurringPaymentOut,
    RecurringPaymentUpdate,
    SpendingProjectionOut,
    TransactionOut,
)
from pennywise.config import Settings
from pennywise.database.base import Database
from pennywise.domain.budget import BudgetImpactService
from pennywise.domain.entities import PaymentFrequency, PaymentStatus
from pennywise.domain.recurring import RecurringPaymentService

router = APIRouter(tags=["recurring-payments"])


def get_service(
    db: Database = Depends(get_db), settings: Settings = Depends(get_settings)
) -> RecurringPaymentService:
    return RecurringPaymentService(db, transaction_service=build_transaction_service(db, settings))


def get_budget_service(
    db: Database = Depends(get_db), settings: Settings = Depends(get_settings)
) -> BudgetImpactService:
    return BudgetImpactService(db, default_budget_share=settings.default_budget_share)


@router.get("", response_model=list[RecurringPaymentOut])
def list_payments(
    status: Optional[PaymentStatus] = Query(None),
    account_id: Optional[int] = Query(None),
    frequency: Optional[PaymentFrequency] = Query(None),
    is_active: Optional[bool] = Query(True),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user),
    service: RecurringPaymentService = Depends(get_service),
):
    payments = service.list_recurring_payments(
        user_id,
        status=status,
        account_id=account_id,
        frequency=frequency,
        is_active=is_active,
        limit=limit,
        offset=offset,
    )
    return [RecurringPaymentOut.model_validate(p) for p in payments]


@router.post("", response_model=RecurringPaymentOut, status_code=201)
def create_payment(
    payload: RecurringPaymentCreate,
    user_id: str = Depends(get_current_user),
    service: RecurringPaymentService = Depends(get_service),
):
    payment = service.create_recurring_payment(
        user_id=user_id,
        account_id=payload.account_id,
        name=payload.name,
        amount=payload.amount,
        frequency=payload.frequency,
        next_due_date=payload.next_due_date,
        category_id=payload.category_id,
        merchant_pattern=payload.merchant_pattern,
    )
    return RecurringPaymentOut.model_validate(payment)


@router.post("/detect", response_model=list[DetectionOut])
def detect_patterns(
    payload: Optional[DetectRequest] = None,
    user_id: str = Depends(get_current_user),
    service: RecurringPaymentService = Depends(get_service),
    settings: Settings = Depends(get_settings),
):
    """Detect recurring charges; body fields override the configured defaults."""
    payload = payload or DetectRequest()
    overrides = payload.model_dump(exclude_none=True, exclude={"account_id"})
    config = dataclasses.replace(settings.detection_config(), **overrides)
    detections = service.detect_patterns(user_id, account_id=payload.account_id, config=config)
    return [DetectionOut.model_validate(d) for d in detections]


@router.get("/analysis", response_model=BudgetImpactOut)
def budget_analysis(
    total_budget: Optional[Decimal] = Query(None, ge=0),
    user_id: str = Depends(get_current_user),
    service: BudgetImpactService = Depends(get_budget_service),
):
    return BudgetImpactOut.model_validate(service.analyze(user_id, total_budget=total_budget))


@router.get("/projections", response_model=list[SpendingProjectionOut])
def spending_projections(
    months: int = Query(12, ge=1, le=36),
    total_budget: Optional[Decimal] = Query(None, ge=0),
    user_id: str = Depends(get_current_user),
    service: BudgetImpactService = Depends(get_budget_service),
):
    projections = service.spending_projections(user_id, months=months, total_budget=total_budget)
    return [SpendingProjectionOut.model_validate(p) for p in projections]


@router.get("/missed", response_model=list[MissedPaymentOut])
def missed_payments(
    grace_period_days: int = Query(3, ge=0, le=30),
    user_id: str = Depends(get_current_user),
    service: RecurringPaymentService = Depends(get_service),
):
    missed = service.detect_missed_payments(user_id, grace_period_days=grace_period_days)
    return [MissedPaymentOut.model_validate(m) for m in missed]


@router.post("/process", response_model=ProcessingOut)
def process_due_payments(
    user_id: str = Depends(get_current_user),
    service: RecurringPaymentService = Depends(get_service),
):
    """Post the expense of every payment that has come due."""
    result = service.process_due_payments(user_id)
    return ProcessingOut(
        created_transactions=[TransactionOut.model_validate(t) for t in result.created_transactions],
        updated_payments=[RecurringPaymentOut.model_validate(p) for p in result.updated_payments],
        errors=result.errors,
    )


@router.post("/{pattern_id}/confirm", response_model=RecurringPaymentOut, status_code=201)
def confirm_pattern(
    pattern_id: str,
    payload: ConfirmPatternRequest,
    user_id: str = Depends(get_current_user),
    service: RecurringPaymentService = Depends(get_service),
):
    """Track a detected pattern the user confirmed."""
    payment = service.confirm_pattern(
        user_id,
        pattern_id=pattern_id,
        account_id=payload.account_id,
        name=payload.name,
        amount=payload.amount,
        frequency=payload.frequency,
        next_due_date=payload.next_due_date,
        category_id=payload.category_id,
    )
    return RecurringPaymentOut.model_validate(payment)


@router.get("/{payment_id}", response_model=RecurringPaymentOut)
def get_payment(
    payment_id: int,
    user_id: str = Depends(get_current_user),
    service: RecurringPaymentService = Depends(get_service),
):
    return RecurringPaymentOut.model_validate(service.get_recurring_payment(payment_id, user_id))


@router.patch("/{payment_id}", response_model=RecurringPaymentOut)
def update_payment(
    payment_id: int,
    payload: RecurringPaymentUpdate,
    user_id: str = Depends(get_current_user),
    service: RecurringPaymentService = Depends(get_service),
):
    payment = service.update_recurring_payment(
        payment_id,
        user_id,
        name=payload.name,
        amount=payload.amount,
        frequency=payload.frequency,
        next_due_date=payload.next_due_date,
        category_id=payload.category_id,
        is_active=payload.is_active,
        status=payload.status,
    )
    return RecurringPaymentOut.model_validate(payment)


@router.delete("/{payment_id}", status_code=204)
def delete_payment(
    payment_id: int,
    user_id: str = Depends(get_current_user),
    service: RecurringPaymentService = Depends(get_service),
):
    service.delete_recurring_payment(payment_id, user_id)
    return Response(status_code=204)


@router.post("/{payment_id}/pay", response_model=RecurringPaymentOut)
def record_payment(
    payment_id: int,
    payload: Optional[RecordPaymentRequest] = None,
    user_id: str = Depends(get_current_user),
    service: RecurringPaymentService = Depends(get_service),
):
    payment = service.record_payment(payment_id, user_id, paid_on=payload.paid_on if payload else None)
    return RecurringPaymentOut.model_validate(payment)
