"""Transaction routes. Every write reconciles the affected account balances."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from pennywise.api.dependencies import (
    build_transaction_service,
    get_current_user,
    get_db,
    get_settings,
)
from pennywise.api.schemas import TransactionCreate, TransactionOut, TransactionUpdate
from pennywise.config import Settings
from pennywise.database.base import Database
from pennywise.domain.transaction import TransactionService

router = APIRouter(tags=["transactions"])


def get_service(
    db: Database = Depends(get_db), settings: Settings = Depends(get_settings)
) -> TransactionService:
    return build_transaction_service(db, settings)


@router.get("", response_model=list[TransactionOut])
def list_transactions(
    account_id: Optional[int] = Query(None),
    category_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user),
    service: TransactionService = Depends(get_service),
):
    transactions = service.list_transactions(
        user_id,
        account_id=account_id,
        category_id=category_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return [TransactionOut.model_validate(t) for t in transactions]


@router.post("", response_model=TransactionOut, status_code=201)
def create_transaction(
    payload: TransactionCreate,
    user_id: str = Depends(get_current_user),
    service: TransactionService = Depends(get_service),
):
    transaction = service.create_transaction(
        user_id=user_id,
        account_id=payload.account_id,
        amount=payload.amount,
        description=payload.description,
        transaction_date=payload.transaction_date,
        category_id=payload.category_id,
        recurring_payment_id=payload.recurring_payment_id,
    )
    return TransactionOut.model_validate(transaction)


@router.get("/{transaction_id}", response_model=TransactionOut)
def get_transaction(
    transaction_id: int,
    user_id: str = Depends(get_current_user),
    service: TransactionService = Depends(get_service),
):
    return TransactionOut.model_validate(service.get_transaction(transaction_id, user_id))


@router.patch("/{transaction_id}", response_model=TransactionOut)
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    user_id: str = Depends(get_current_user),
    service: TransactionService = Depends(get_service),
):
    transaction = service.update_transaction(
        transaction_id,
        user_id,
        account_id=payload.account_id,
        amount=payload.amount,
        description=payload.description,
        transaction_date=payload.transaction_date,
        category_id=payload.category_id,
        clear_category=payload.clear_category,
    )
    return TransactionOut.model_validate(transaction)


@router.delete("/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: int,
    user_id: str = Depends(get_current_user),
    service: TransactionService = Depends(get_service),
):
    service.delete_transaction(transaction_id, user_id)
    return Response(status_code=204)
