"""Analytics routes. Ranges default to the current month."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from pennywise.api.dependencies import get_current_user, get_db
from pennywise.api.schemas import (
    CashFlowPeriodOut,
    CategorySpendingOut,
    DashboardOut,
    NetWorthOut,
    NetWorthPointOut,
    OverviewOut,
    PeriodComparisonOut,
)
from pennywise.database.base import Database
from pennywise.domain.analytics import AnalyticsService, GroupBy
from pennywise.utils.date_parser import get_date_range

router = APIRouter(tags=["analytics"])


class DateRange:
    def __init__(
        self,
        start_date: Optional[date] = Query(None),
        end_date: Optional[date] = Query(None),
    ):
        default_start, default_end = get_date_range("this-month")
        self.start = start_date or default_start
        self.end = end_date or default_end


def get_service(db: Database = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


@router.get("/net-worth", response_model=NetWorthOut)
def net_worth(
    as_of: Optional[date] = Query(None),
    user_id: str = Depends(get_current_user),
    service: AnalyticsService = Depends(get_service),
):
    return NetWorthOut.model_validate(service.net_worth(user_id, as_of=as_of))


@router.get("/overview", response_model=OverviewOut)
def overview(
    period: DateRange = Depends(),
    account_id: Optional[int] = Query(None),
    user_id: str = Depends(get_current_user),
    service: AnalyticsService = Depends(get_service),
):
    result = service.overview(user_id, period.start, period.end, account_id=account_id)
    return OverviewOut.model_validate(result)


@router.get("/cash-flow", response_model=list[CashFlowPeriodOut])
def cash_flow(
    period: DateRange = Depends(),
    group_by: Optional[GroupBy] = Query(None),
    account_id: Optional[int] = Query(None),
    user_id: str = Depends(get_current_user),
    service: AnalyticsService = Depends(get_service),
):
    rows = service.cash_flow(
        user_id, period.start, period.end, group_by=group_by, account_id=account_id
    )
    return [CashFlowPeriodOut.model_validate(row) for row in rows]


@router.get("/spending", response_model=list[CategorySpendingOut])
def spending_breakdown(
    period: DateRange = Depends(),
    account_id: Optional[int] = Query(None),
    user_id: str = Depends(get_current_user),
    service: AnalyticsService = Depends(get_service),
):
    rows = service.spending_breakdown(user_id, period.start, period.end, account_id=account_id)
    return [CategorySpendingOut.model_validate(row) for row in rows]


@router.get("/net-worth/history", response_model=list[NetWorthPointOut])
def net_worth_history(
    period: DateRange = Depends(),
    group_by: Optional[GroupBy] = Query(None),
    user_id: str = Depends(get_current_user),
    service: AnalyticsService = Depends(get_service),
):
    rows = service.net_worth_history(user_id, period.start, period.end, group_by=group_by)
    return [NetWorthPointOut.model_validate(row) for row in rows]


@router.get("/comparisons", response_model=list[PeriodComparisonOut])
def period_comparisons(
    period: DateRange = Depends(),
    account_id: Optional[int] = Query(None),
    user_id: str = Depends(get_current_user),
    service: AnalyticsService = Depends(get_service),
):
    rows = service.period_comparisons(user_id, period.start, period.end, account_id=account_id)
    return [PeriodComparisonOut.model_validate(row) for row in rows]


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(
    period: DateRange = Depends(),
    group_by: Optional[GroupBy] = Query(None),
    user_id: str = Depends(get_current_user),
    service: AnalyticsService = Depends(get_service),
):
    return DashboardOut.model_validate(
        service.dashboard(user_id, period.start, period.end, group_by=group_by)
    )
