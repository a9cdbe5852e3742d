"""Ledger analytics: net worth, cash flow and spending breakdowns.

Everything is derived from signed transaction amounts. Credits count as
income and debits as expenses, whatever category they carry.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Sequence

from dateutil.relativedelta import relativedelta

from pennywise.database.base import Database
from pennywise.domain.entities import Transaction
from pennywise.domain.errors import NotFoundError, ValidationError, account_not_found
from pennywise.domain.ledger import compute_balance
from pennywise.utils.amount_parser import to_money

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
TREND_THRESHOLD = Decimal("5")
ZERO = Decimal("0.00")
TENTH = Decimal("0.1")


class GroupBy(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class NetWorth:
    as_of: date
    total_assets: Decimal
    total_liabilities: Decimal
    net_worth: Decimal


@dataclass(frozen=True)
class Overview:
    start_date: date
    end_date: date
    total_income: Decimal
    total_expenses: Decimal
    net_cash_flow: Decimal
    savings_rate: float
    total_assets: Decimal
    total_liabilities: Decimal
    net_worth: Decimal
    transaction_count: int
    account_count: int
    average_transaction: Decimal


@dataclass(frozen=True)
class CashFlowPeriod:
    label: str
    start_date: date
    end_date: date
    income: Decimal
    expenses: Decimal
    net_flow: Decimal


@dataclass(frozen=True)
class CategorySpending:
    category_id: Optional[int]
    category_name: str
    amount: Decimal
    percentage: float
    transaction_count: int


@dataclass(frozen=True)
class NetWorthPoint:
    label: str
    as_of: date
    net_worth: Decimal


@dataclass(frozen=True)
class PeriodComparison:
    metric: str
    current: Decimal
    previous: Decimal
    change: Decimal
    change_percentage: float
    trend: Trend


@dataclass(frozen=True)
class Dashboard:
    overview: Overview
    cash_flow: tuple[CashFlowPeriod, ...]
    spending: tuple[CategorySpending, ...]
    net_worth_history: tuple[NetWorthPoint, ...]
    comparisons: tuple[PeriodComparison, ...]


def _display_percentage(value: Decimal) -> float:
    return float(value.quantize(TENTH, rounding=ROUND_HALF_UP))


def percentage_change(current: Decimal, previous: Decimal) -> Decimal:
    """Change from ``previous`` to ``current`` in percent of ``abs(previous)``.

    From zero, any increase counts as 100% and anything else as 0%.
    """
    if previous == 0:
        return Decimal("100") if current > 0 else Decimal("0")
    return (current - previous) / abs(previous) * 100


def trend_for(current: Decimal, previous: Decimal) -> Trend:
    """UP or DOWN once the change reaches 5%, otherwise STABLE."""
    change = percentage_change(current, previous)
    if abs(change) < TREND_THRESHOLD:
        return Trend.STABLE
    return Trend.UP if change > 0 else Trend.DOWN


def optimal_grouping(start: date, end: date) -> GroupBy:
    """Daily up to a month, weekly up to a quarter, monthly beyond."""
    days = (end - start).days
    if days <= 31:
        return GroupBy.DAY
    if days <= 90:
        return GroupBy.WEEK
    return GroupBy.MONTH


def date_intervals(start: date, end: date, group_by: GroupBy | str) -> list[tuple[str, date, date]]:
    """Split ``[start, end]`` into labelled intervals.

    Weeks start on Monday and months on the 1st; the first and last
    intervals are clipped to the range.
    """
    group_by = GroupBy(group_by)
    intervals = []
    cursor = start
    while cursor <= end:
        if group_by == GroupBy.DAY:
            interval_end = cursor
            label = cursor.isoformat()
        elif group_by == GroupBy.WEEK:
            week_start = cursor - timedelta(days=cursor.weekday())
            interval_end = week_start + timedelta(days=6)
            label = week_start.isoformat()
        else:
            interval_end = cursor.replace(day=1) + relativedelta(months=1) - timedelta(days=1)
            label = cursor.strftime("%Y-%m")
        interval_end = min(interval_end, end)
        intervals.append((label, cursor, interval_end))
        cursor = interval_end + timedelta(days=1)
    return intervals


def split_income_expenses(transactions: Sequence[Transaction]) -> tuple[Decimal, Decimal]:
    """Return (income, expenses), both non-negative."""
    income = sum((t.amount for t in transactions if t.amount > 0), Decimal("0"))
    expenses = sum((-t.amount for t in transactions if t.amount < 0), Decimal("0"))
    return to_money(income), to_money(expenses)


def _validate_range(start: date, end: date) -> None:
    if start > end:
        raise ValidationError("Start date must be on or before end date")


def _parse_group_by(value: Optional[str | GroupBy], start: date, end: date) -> GroupBy:
    if value is None:
        return optimal_grouping(start, end)
    try:
        return GroupBy(value)
    except ValueError:
        raise ValidationError(
            f"Invalid grouping '{value}'. Use one of: {', '.join(g.value for g in GroupBy)}"
        )


class AnalyticsService:
    """Service for read-only reports over a user's ledger."""

    def __init__(self, db: Database):
        """Initialize analytics service.

        Args:
            db: Database instance
        """
        self.db = db

    def _transactions(
        self, user_id: str, start: Optional[date], end: date, account_id: Optional[int] = None
    ) -> list[Transaction]:
        if account_id is not None and self.db.get_account(account_id, user_id) is None:
            raise NotFoundError(account_not_found(account_id))
        return self.db.list_transactions(
            user_id, account_id=account_id, start_date=start, end_date=end
        )

    def net_worth(self, user_id: str, as_of: Optional[date] = None) -> NetWorth:
        """Assets, liabilities and net worth over the user's active accounts.

        Each balance is rebuilt from the transactions dated up to ``as_of``
        (today by default). Negative balances, such as credit card debt,
        are liabilities; net worth is the sum of all signed balances.
        """
        as_of = as_of or date.today()
        accounts = self.db.list_accounts(user_id)
        by_account: dict[int, list[Decimal]] = defaultdict(list)
        for transaction in self.db.list_transactions(user_id, end_date=as_of):
            by_account[transaction.account_id].append(transaction.amount)

        assets = liabilities = Decimal("0")
        for account in accounts:
            balance = compute_balance(by_account.get(account.id, ()))
            if balance >= 0:
                assets += balance
            else:
                liabilities += -balance
        return NetWorth(
            as_of=as_of,
            total_assets=to_money(assets),
            total_liabilities=to_money(liabilities),
            net_worth=to_money(assets - liabilities),
        )

    def overview(
        self, user_id: str, start: date, end: date, account_id: Optional[int] = None
    ) -> Overview:
        """Income, expenses and balance sheet for a date range.

        Raises:
            ValidationError: If ``start`` is after ``end``
            NotFoundError: If ``account_id`` is not one of the user's accounts
        """
        _validate_range(start, end)
        transactions = self._transactions(user_id, start, end, account_id)
        income, expenses = split_income_expenses(transactions)
        net = income - expenses
        savings_rate = _display_percentage(net / income * 100) if income else 0.0
        worth = self.net_worth(user_id, as_of=end)

        count = len(transactions)
        average = ZERO
        if count:
            average = to_money(sum((abs(t.amount) for t in transactions), Decimal("0")) / count)

        return Overview(
            start_date=start,
            end_date=end,
            total_income=income,
            total_expenses=expenses,
            net_cash_flow=net,
            savings_rate=savings_rate,
            total_assets=worth.total_assets,
            total_liabilities=worth.total_liabilities,
            net_worth=worth.net_worth,
            transaction_count=count,
            account_count=len(self.db.list_accounts(user_id)),
            average_transaction=average,
        )

    def cash_flow(
        self,
        user_id: str,
        start: date,
        end: date,
        group_by: Optional[str | GroupBy] = None,
        account_id: Optional[int] = None,
    ) -> list[CashFlowPeriod]:
        """Income, expenses and net flow per interval, oldest first.

        Every interval in the range is reported, including empty ones.
        ``group_by`` defaults to :func:`optimal_grouping`.
        """
        _validate_range(start, end)
        grouping = _parse_group_by(group_by, start, end)
        transactions = self._transactions(user_id, start, end, account_id)

        periods = []
        for label, interval_start, interval_end in date_intervals(start, end, grouping):
            in_interval = [
                t for t in transactions if interval_start <= t.transaction_date <= interval_end
            ]
            income, expenses = split_income_expenses(in_interval)
            periods.append(
                CashFlowPeriod(
                    label=label,
                    start_date=interval_start,
                    end_date=interval_end,
                    income=income,
                    expenses=expenses,
                    net_flow=income - expenses,
                )
            )
        return periods

    def spending_breakdown(
        self, user_id: str, start: date, end: date, account_id: Optional[int] = None
    ) -> list[CategorySpending]:
        """Expenses per category, largest first.

        Uncategorized expenses are grouped under "Uncategorized".
        """
        _validate_range(start, end)
        names = {c.id: c.name for c in self.db.list_categories(user_id)}
        totals: dict[Optional[int], Decimal] = defaultdict(Decimal)
        counts: dict[Optional[int], int] = defaultdict(int)
        for transaction in self._transactions(user_id, start, end, account_id):
            if transaction.amount >= 0:
                continue
            totals[transaction.category_id] += -transaction.amount
            counts[transaction.category_id] += 1

        grand_total = sum(totals.values(), Decimal("0"))
        rows = [
            CategorySpending(
                category_id=category_id,
                category_name=names.get(category_id, UNCATEGORIZED),
                amount=to_money(amount),
                percentage=_display_percentage(amount / grand_total * 100),
                transaction_count=counts[category_id],
            )
            for category_id, amount in totals.items()
        ]
        rows.sort(key=lambda row: (-row.amount, row.category_name))
        return rows

    def net_worth_history(
        self, user_id: str, start: date, end: date, group_by: Optional[str | GroupBy] = None
    ) -> list[NetWorthPoint]:
        """Net worth at the end of each interval, oldest first."""
        _validate_range(start, end)
        grouping = _parse_group_by(group_by, start, end)
        return [
            NetWorthPoint(
                label=label,
                as_of=interval_end,
                net_worth=self.net_worth(user_id, as_of=interval_end).net_worth,
            )
            for label, _, interval_end in date_intervals(start, end, grouping)
        ]

    def period_comparisons(
        self, user_id: str, start: date, end: date, account_id: Optional[int] = None
    ) -> list[PeriodComparison]:
        """Compare the range with the equally long period right before it."""
        _validate_range(start, end)
        length = end - start
        previous_end = start - timedelta(days=1)
        previous_start = previous_end - length

        current = self.overview(user_id, start, end, account_id)
        previous = self.overview(user_id, previous_start, previous_end, account_id)
        metrics = (
            ("income", current.total_income, previous.total_income),
            ("expenses", current.total_expenses, previous.total_expenses),
            ("net_cash_flow", current.net_cash_flow, previous.net_cash_flow),
            ("net_worth", current.net_worth, previous.net_worth),
        )
        return [
            PeriodComparison(
                metric=metric,
                current=now,
                previous=before,
                change=now - before,
                change_percentage=_display_percentage(percentage_change(now, before)),
                trend=trend_for(now, before),
            )
            for metric, now, before in metrics
        ]

    def dashboard(
        self, user_id: str, start: date, end: date, group_by: Optional[str | GroupBy] = None
    ) -> Dashboard:
        """Every report for one range in a single call."""
        logger.debug("Building dashboard for %s from %s to %s", user_id, start, end)
        return Dashboard(
            overview=self.overview(user_id, start, end),
            cash_flow=tuple(self.cash_flow(user_id, start, end, group_by)),
            spending=tuple(self.spending_breakdown(user_id, start, end)),
            net_worth_history=tuple(self.net_worth_history(user_id, start, end, group_by)),
            comparisons=tuple(self.period_comparisons(user_id, start, end)),
        )
