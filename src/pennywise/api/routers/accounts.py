"""Account routes."""

from fastapi import APIRouter, Depends, Query, Response

from pennywise.api.dependencies import build_alert_service, get_current_user, get_db, get_settings
from pennywise.api.schemas import (
    AccountCreate,
    AccountOut,
    AccountUpdate,
    BalanceOut,
    UtilizationOut,
)
from pennywise.config import Settings
from pennywise.database.base import Database
from pennywise.domain.account import AccountService

router = APIRouter(tags=["accounts"])


@router.get("", response_model=list[AccountOut])
def list_accounts(
    include_inactive: bool = Query(False),
    user_id: str = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    accounts = AccountService(db).list_accounts(user_id, include_inactive=include_inactive)
    return [AccountOut.model_validate(a) for a in accounts]


@router.post("", response_model=AccountOut, status_code=201)
def create_account(
    payload: AccountCreate, user_id: str = Depends(get_current_user), db: Database = Depends(get_db)
):
    account = AccountService(db).create_account(
        user_id,
        name=payload.name,
        account_type=payload.account_type,
        credit_limit=payload.credit_limit,
    )
    return AccountOut.model_validate(account)


@router.get("/utilization", response_model=list[UtilizationOut])
def credit_utilization(
    user_id: str = Depends(get_current_user),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Utilization of each credit card, highest first."""
    rows = build_alert_service(db, settings).utilization_summary(user_id)
    return [UtilizationOut.model_validate(row) for row in rows]


@router.get("/{account_id}", response_model=AccountOut)
def get_account(
    account_id: int, user_id: str = Depends(get_current_user), db: Database = Depends(get_db)
):
    return AccountOut.model_validate(AccountService(db).get_account(account_id, user_id))


@router.patch("/{account_id}", response_model=AccountOut)
def update_account(
    account_id: int,
    payload: AccountUpdate,
    user_id: str = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    account = AccountService(db).update_account(
        account_id,
        user_id,
        name=payload.name,
        account_type=payload.account_type,
        credit_limit=payload.credit_limit,
        is_active=payload.is_active,
        clear_credit_limit=payload.clear_credit_limit,
    )
    return AccountOut.model_validate(account)


@router.delete("/{account_id}", status_code=204)
def delete_account(
    account_id: int, user_id: str = Depends(get_current_user), db: Database = Depends(get_db)
):
    AccountService(db).delete_account(account_id, user_id)
    return Response(status_code=204)


@router.get("/{account_id}/balance", response_model=BalanceOut)
def get_balance(
    account_id: int, user_id: str = Depends(get_current_user), db: Database = Depends(get_db)
):
    balance = AccountService(db).get_balance(account_id, user_id)
    return BalanceOut(account_id=account_id, balance=balance)


@router.post("/{account_id}/balance", response_model=BalanceOut)
def reconcile_balance(
    account_id: int, user_id: str = Depends(get_current_user), db: Database = Depends(get_db)
):
    """Recompute the balance from the account's transactions."""
    balance = AccountService(db).reconcile(account_id, user_id)
    return BalanceOut(account_id=account_id, balance=balance)
