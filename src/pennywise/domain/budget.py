"""Budget impact of recurring payments.

All money is summed as two-place Decimals. Percentages keep full precision
for comparisons; the one-decimal ``percentage`` fields exist only for display.
"""

import math
import re
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from dateutil.relativedelta import relativedelta

from pennywise.database.base import Database
from pennywise.domain.entities import PaymentFrequency, RecurringPayment
from pennywise.domain.errors import ValidationError
from pennywise.domain.recurring import extract_merchant_pattern, levenshtein_distance
from pennywise.utils.amount_parser import to_money
from pennywise.utils.date_parser import month_bounds

WEEKS_PER_MONTH = Decimal("4.33")
BUDGET_SHARE_OF_INCOME = Decimal("0.8")
VARIABLE_SPENDING_FACTOR = Decimal("1.5")
DEFAULT_CATEGORY_BUDGET_SHARE = Decimal("40")
DUPLICATE_MAX_DISTANCE = 2
DUPLICATE_AMOUNT_TOLERANCE = Decimal("0.2")
EXPENSIVE_SHARE = 0.2
UNCATEGORIZED = "Uncategorized"
TENTH = Decimal("0.1")


def to_monthly_amount(amount: Decimal, frequency: PaymentFrequency | str) -> Decimal:
    """Normalize a payment amount to its monthly equivalent, rounded to cents."""
    frequency = PaymentFrequency(frequency)
    if frequency == PaymentFrequency.WEEKLY:
        monthly = amount * WEEKS_PER_MONTH
    elif frequency == PaymentFrequency.QUARTERLY:
        monthly = amount / 3
    elif frequency == PaymentFrequency.YEARLY:
        monthly = amount / 12
    else:
        monthly = amount
    return to_money(monthly)


def _display_percentage(value: Decimal) -> float:
    return float(value.quantize(TENTH, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CategoryBreakdown:
    category_id: Optional[int]
    category_name: str
    monthly_amount: Decimal
    quarterly_amount: Decimal
    yearly_amount: Decimal
    payment_count: int
    share: Decimal
    percentage: float


@dataclass(frozen=True)
class FrequencyBreakdown:
    count: int
    total_amount: Decimal


@dataclass(frozen=True)
class BudgetAllocation:
    total_budget: Decimal
    recurring_allocation: Decimal
    available_spending: Decimal
    utilization_percentage: float


@dataclass(frozen=True)
class Projections:
    next_month: Decimal
    next_3_months: Decimal
    next_6_months: Decimal
    next_12_months: Decimal


@dataclass(frozen=True)
class Trends:
    new_payments_this_month: int
    cancelled_payments_this_month: int


@dataclass(frozen=True)
class OptimizationSuggestion:
    type: str
    suggestion: str
    potential_savings: Decimal
    priority: str
    payment_id: Optional[int] = None
    payment_name: Optional[str] = None
    related_payment_id: Optional[int] = None
    category_id: Optional[int] = None


@dataclass(frozen=True)
class BudgetImpact:
    total_monthly: Decimal
    total_quarterly: Decimal
    total_yearly: Decimal
    category_breakdown: list[CategoryBreakdown]
    frequency_breakdown: dict[str, FrequencyBreakdown]
    projections: Projections
    allocation: BudgetAllocation
    trends: Trends
    suggestions: list[OptimizationSuggestion] = field(default_factory=list)


@dataclass(frozen=True)
class SpendingProjection:
    month: str
    month_start: date
    recurring_amount: Decimal
    estimated_total: Decimal
    budget_remaining: Decimal
    is_over_budget: bool


def _merchant_key(payment: RecurringPayment) -> str:
    pattern = payment.merchant_pattern or extract_merchant_pattern(payment.name)
    return re.sub(r"[^a-z0-9]", "", pattern.lower())


def _looks_duplicate(first: RecurringPayment, second: RecurringPayment) -> bool:
    key_a, key_b = _merchant_key(first), _merchant_key(second)
    if not key_a or not key_b:
        return False
    similar = levenshtein_distance(key_a, key_b) <= DUPLICATE_MAX_DISTANCE or (
        min(len(key_a), len(key_b)) >= 3 and (key_a in key_b or key_b in key_a)
    )
    if not similar:
        return False
    monthly_a = to_monthly_amount(first.amount, first.frequency)
    monthly_b = to_monthly_amount(second.amount, second.frequency)
    return abs(monthly_a - monthly_b) <= max(monthly_a, monthly_b) * DUPLICATE_AMOUNT_TOLERANCE


def find_duplicate_suggestions(payments: list[RecurringPayment]) -> list[OptimizationSuggestion]:
    """Flag later payments that look like a copy of an earlier one."""
    ordered = sorted(payments, key=lambda p: p.id)
    suggestions = []
    flagged = set()
    for i, original in enumerate(ordered):
        if original.id in flagged:
            continue
        for candidate in ordered[i + 1:]:
            if candidate.id in flagged or not _looks_duplicate(original, candidate):
                continue
            flagged.add(candidate.id)
            suggestions.append(
                OptimizationSuggestion(
                    type="duplicate",
                    payment_id=candidate.id,
                    payment_name=candidate.name,
                    related_payment_id=original.id,
                    suggestion=(
                        "Potential duplicate payment detected. Consider canceling if this "
                        f"is the same service as {original.name}."
                    ),
                    potential_savings=to_monthly_amount(candidate.amount, candidate.frequency),
                    priority="medium",
                )
            )
    return suggestions


def find_expensive_suggestions(payments: list[RecurringPayment]) -> list[OptimizationSuggestion]:
    """Top 20% of payments by monthly amount (at least one when any exist)."""
    ranked = sorted(
        payments, key=lambda p: (to_monthly_amount(p.amount, p.frequency), -p.id), reverse=True
    )
    count = math.ceil(len(ranked) * EXPENSIVE_SHARE)
    suggestions = []
    for payment in ranked[:count]:
        monthly = to_monthly_amount(payment.amount, payment.frequency)
        suggestions.append(
            OptimizationSuggestion(
                type="expensive",
                payment_id=payment.id,
                payment_name=payment.name,
                suggestion=(
                    "This is one of your most expensive recurring payments. "
                    f"Consider reviewing if you're getting value for {monthly} a month."
                ),
                potential_savings=to_money(monthly * Decimal("0.1")),
                priority="low",
            )
        )
    return suggestions


class BudgetImpactService:
    """Service that measures how recurring payments load the budget."""

    def __init__(self, db: Database, default_budget_share: Decimal = DEFAULT_CATEGORY_BUDGET_SHARE):
        """Initialize budget impact service.

        Args:
            db: Database instance
            default_budget_share: Maximum share (percent) of recurring spend a
                category may take before it is flagged
        """
        self.db = db
        self.default_budget_share = Decimal(default_budget_share)

    def monthly_income(self, user_id: str, today: Optional[date] = None) -> Decimal:
        """Sum of positive transaction amounts in the month containing ``today``."""
        start, end = month_bounds(today or date.today())
        transactions = self.db.list_transactions(user_id, start_date=start, end_date=end)
        return sum((t.amount for t in transactions if t.amount > 0), Decimal("0.00"))

    def budget_allocation(
        self,
        user_id: str,
        monthly_recurring: Decimal,
        total_budget: Optional[Decimal] = None,
        today: Optional[date] = None,
    ) -> BudgetAllocation:
        """Compare recurring spend with the budget (80% of this month's income by default)."""
        if total_budget is None:
            total_budget = to_money(self.monthly_income(user_id, today) * BUDGET_SHARE_OF_INCOME)
        elif total_budget < 0:
            raise ValidationError("Total budget cannot be negative")

        utilization = (
            _display_percentage(monthly_recurring / total_budget * 100) if total_budget > 0 else 0.0
        )
        return BudgetAllocation(
            total_budget=to_money(total_budget),
            recurring_allocation=monthly_recurring,
            available_spending=max(to_money(total_budget - monthly_recurring), Decimal("0.00")),
            utilization_percentage=utilization,
        )

    def analyze(
        self,
        user_id: str,
        budget_shares: Optional[dict[Optional[int], Decimal]] = None,
        total_budget: Optional[Decimal] = None,
        today: Optional[date] = None,
    ) -> BudgetImpact:
        """Full budget impact analysis over the user's active recurring payments.

        Args:
            user_id: Owner of the payments
            budget_shares: Maximum share (percent of recurring spend) per
                category ID; categories not listed use the default share
            total_budget: Monthly budget; defaults to 80% of this month's income
            today: Reference date (defaults to today)
        """
        today = today or date.today()
        budget_shares = budget_shares or {}
        payments = self.db.list_recurring_payments(user_id)
        categories = {c.id: c.name for c in self.db.list_categories(user_id)}

        monthly_by_payment = {p.id: to_monthly_amount(p.amount, p.frequency) for p in payments}
        total_monthly = sum(monthly_by_payment.values(), Decimal("0.00"))

        per_category: dict[Optional[int], list[RecurringPayment]] = defaultdict(list)
        for payment in payments:
            per_category[payment.category_id].append(payment)

        breakdown = []
        for category_id, members in per_category.items():
            monthly = sum((monthly_by_payment[p.id] for p in members), Decimal("0.00"))
            share = monthly / total_monthly * 100 if total_monthly > 0 else Decimal("0")
            breakdown.append(
                CategoryBreakdown(
                    category_id=category_id,
                    category_name=categories.get(category_id, UNCATEGORIZED),
                    monthly_amount=monthly,
                    quarterly_amount=monthly * 3,
                    yearly_amount=monthly * 12,
                    payment_count=len(members),
                    share=share,
                    percentage=_display_percentage(share),
                )
            )
        breakdown.sort(key=lambda row: row.monthly_amount, reverse=True)

        frequency_breakdown = {}
        for frequency in PaymentFrequency:
            members = [p for p in payments if p.frequency == frequency]
            frequency_breakdown[frequency.value] = FrequencyBreakdown(
                count=len(members), total_amount=sum((p.amount for p in members), Decimal("0.00"))
            )

        suggestions = find_duplicate_suggestions(payments)
        for row in breakdown:
            limit = Decimal(budget_shares.get(row.category_id, self.default_budget_share))
            if row.share > limit:
                allowed = to_money(total_monthly * limit / 100)
                suggestions.append(
                    OptimizationSuggestion(
                        type="category_overspend",
                        category_id=row.category_id,
                        suggestion=(
                            f"{row.category_name} takes {row.percentage}% of your recurring "
                            f"spending, above its {limit}% budget share."
                        ),
                        potential_savings=row.monthly_amount - allowed,
                        priority="high",
                    )
                )
        suggestions.extend(find_expensive_suggestions(payments))

        return BudgetImpact(
            total_monthly=total_monthly,
            total_quarterly=total_monthly * 3,
            total_yearly=total_monthly * 12,
            category_breakdown=breakdown,
            frequency_breakdown=frequency_breakdown,
            projections=Projections(
                next_month=total_monthly,
                next_3_months=total_monthly * 3,
                next_6_months=total_monthly * 6,
                next_12_months=total_monthly * 12,
            ),
            allocation=self.budget_allocation(user_id, total_monthly, total_budget, today),
            trends=self._trends(user_id, today),
            suggestions=suggestions,
        )

    def _trends(self, user_id: str, today: date) -> Trends:
        since = datetime.combine(today - timedelta(days=30), time.min)
        everything = self.db.list_recurring_payments(user_id, is_active=None)
        return Trends(
            new_payments_this_month=sum(1 for p in everything if p.created_at >= since),
            cancelled_payments_this_month=sum(
                1 for p in everything if not p.is_active and p.updated_at >= since
            ),
        )

    def spending_projections(
        self,
        user_id: str,
        months: int = 12,
        today: Optional[date] = None,
        total_budget: Optional[Decimal] = None,
    ) -> list[SpendingProjection]:
        """Month-by-month outlook; total spending is estimated as recurring x 1.5."""
        if not 1 <= months <= 36:
            raise ValidationError("months must be between 1 and 36")
        today = today or date.today()

        payments = self.db.list_recurring_payments(user_id)
        recurring = sum(
            (to_monthly_amount(p.amount, p.frequency) for p in payments), Decimal("0.00")
        )
        allocation = self.budget_allocation(user_id, recurring, total_budget, today)
        estimated = to_money(recurring * VARIABLE_SPENDING_FACTOR)
        remaining = allocation.total_budget - estimated

        projections = []
        for offset in range(months):
            month_start = today.replace(day=1) + relativedelta(months=offset)
            projections.append(
                SpendingProjection(
                    month=month_start.strftime("%b %Y"),
                    month_start=month_start,
                    recurring_amount=recurring,
                    estimated_total=estimated,
                    budget_remaining=remaining,
                    is_over_budget=remaining < 0,
                )
            )
        return projections
