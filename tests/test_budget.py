"""Tests for the budget impact of recurring payments."""

from datetime import date
from decimal import Decimal

import pytest

from pennywise.domain.budget import (
    BudgetImpactService,
    find_duplicate_suggestions,
    find_expensive_suggestions,
    to_monthly_amount,
)
from pennywise.domain.errors import ValidationError


@pytest.fixture
def budget_service(temp_db):
    return BudgetImpactService(temp_db)


@pytest.fixture
def payments(recurring_service, sample_account, sample_categories, user_id):
    """Rent, a weekly gym and two Netflix subscriptions that look like duplicates."""

    def create(name, amount, frequency, category=None):
        return recurring_service.create_recurring_payment(
            user_id=user_id,
            account_id=sample_account.id,
            name=name,
            amount=Decimal(amount),
            frequency=frequency,
            next_due_date=date(2024, 4, 1),
            category_id=sample_categories[category] if category else None,
        )

    return {
        "netflix": create("Netflix", "15.99", "monthly", "Subscriptions"),
        "netflix_com": create("NETFLIX.COM", "17.99", "monthly", "Subscriptions"),
        "rent": create("Rent", "1200.00", "monthly", "Rent"),
        "gym": create("Gym", "10.00", "weekly"),
    }


def test_to_monthly_amount():
    assert to_monthly_amount(Decimal("10.00"), "weekly") == Decimal("43.30")
    assert to_monthly_amount(Decimal("15.99"), "monthly") == Decimal("15.99")
    assert to_monthly_amount(Decimal("300.00"), "quarterly") == Decimal("100.00")
    assert to_monthly_amount(Decimal("100.00"), "yearly") == Decimal("8.33")


def test_totals_and_breakdown(budget_service, payments, sample_categories, user_id):
    impact = budget_service.analyze(user_id, total_budget=Decimal("2000.00"))

    assert impact.total_monthly == Decimal("1277.28")
    assert impact.total_quarterly == Decimal("3831.84")
    assert impact.total_yearly == Decimal("15327.36")
    assert impact.projections.next_6_months == Decimal("7663.68")

    by_name = {row.category_name: row for row in impact.category_breakdown}
    assert by_name["Rent"].monthly_amount == Decimal("1200.00")
    assert by_name["Subscriptions"].payment_count == 2
    assert by_name["Uncategorized"].monthly_amount == Decimal("43.30")
    assert impact.category_breakdown[0].category_name == "Rent"
    assert by_name["Rent"].percentage == 93.9

    assert impact.frequency_breakdown["weekly"].count == 1
    assert impact.frequency_breakdown["weekly"].total_amount == Decimal("10.00")
    assert impact.frequency_breakdown["yearly"].count == 0


def test_allocation_against_explicit_budget(budget_service, payments, user_id):
    allocation = budget_service.analyze(user_id, total_budget=Decimal("2000.00")).allocation

    assert allocation.total_budget == Decimal("2000.00")
    assert allocation.recurring_allocation == Decimal("1277.28")
    assert allocation.available_spending == Decimal("722.72")
    assert allocation.utilization_percentage == 63.9


def test_allocation_defaults_to_share_of_income(
    budget_service, transaction_service, sample_account, user_id
):
    transaction_service.create_transaction(
        user_id=user_id,
        account_id=sample_account.id,
        amount=Decimal("3000.00"),
        description="Salary",
        transaction_date=date(2024, 3, 1),
    )

    allocation = budget_service.budget_allocation(
        user_id, Decimal("600.00"), today=date(2024, 3, 20)
    )

    assert allocation.total_budget == Decimal("2400.00")
    assert allocation.available_spending == Decimal("1800.00")
    assert allocation.utilization_percentage == 25.0


def test_utilization_rounds_half_up(budget_service, user_id):
    allocation = budget_service.budget_allocation(
        user_id, Decimal("49.00"), total_budget=Decimal("400.00")
    )
    # 12.25% displays as 12.3, the same half-up rule money uses.
    assert allocation.utilization_percentage == 12.3


def test_negative_budget_rejected(budget_service, user_id):
    with pytest.raises(ValidationError):
        budget_service.budget_allocation(user_id, Decimal("10.00"), total_budget=Decimal("-1"))


def test_suggestions(budget_service, payments, sample_categories, user_id):
    impact = budget_service.analyze(user_id, total_budget=Decimal("2000.00"))
    by_type = {}
    for suggestion in impact.suggestions:
        by_type.setdefault(suggestion.type, []).append(suggestion)

    [duplicate] = by_type["duplicate"]
    assert duplicate.payment_id == payments["netflix_com"].id
    assert duplicate.related_payment_id == payments["netflix"].id
    assert duplicate.potential_savings == Decimal("17.99")
    assert duplicate.priority == "medium"

    [overspend] = by_type["category_overspend"]
    assert overspend.category_id == sample_categories["Rent"]
    assert overspend.potential_savings == Decimal("689.09")
    assert overspend.priority == "high"

    [expensive] = by_type["expensive"]
    assert expensive.payment_id == payments["rent"].id
    assert expensive.potential_savings == Decimal("120.00")
    assert expensive.priority == "low"


def test_category_share_override(budget_service, payments, sample_categories, user_id):
    impact = budget_service.analyze(
        user_id,
        budget_shares={sample_categories["Rent"]: Decimal("95")},
        total_budget=Decimal("2000.00"),
    )
    assert not [s for s in impact.suggestions if s.type == "category_overspend"]


def test_trends_count_new_and_cancelled(budget_service, recurring_service, payments, user_id):
    recurring_service.cancel_recurring_payment(payments["gym"].id, user_id)

    trends = budget_service.analyze(user_id, total_budget=Decimal("2000.00")).trends

    assert trends.new_payments_this_month == 4
    assert trends.cancelled_payments_this_month == 1


def test_empty_analysis(budget_service, user_id):
    impact = budget_service.analyze(user_id, total_budget=Decimal("0"))

    assert impact.total_monthly == Decimal("0.00")
    assert impact.category_breakdown == []
    assert impact.suggestions == []
    assert impact.allocation.utilization_percentage == 0.0


def test_duplicate_needs_similar_amounts(budget_service, recurring_service, sample_account, user_id):
    first = recurring_service.create_recurring_payment(
        user_id, sample_account.id, "Spotify", Decimal("9.99"), "monthly", date(2024, 4, 1)
    )
    second = recurring_service.create_recurring_payment(
        user_id, sample_account.id, "Spotify Family", Decimal("19.99"), "monthly", date(2024, 4, 1)
    )
    assert find_duplicate_suggestions([first, second]) == []


def test_expensive_keeps_at_least_one(budget_service, recurring_service, sample_account, user_id):
    only = recurring_service.create_recurring_payment(
        user_id, sample_account.id, "Phone", Decimal("50.00"), "monthly", date(2024, 4, 1)
    )
    [suggestion] = find_expensive_suggestions([only])
    assert suggestion.payment_id == only.id
    assert find_expensive_suggestions([]) == []


def test_spending_projections(budget_service, payments, user_id):
    projections = budget_service.spending_projections(
        user_id, months=3, today=date(2024, 11, 10), total_budget=Decimal("2000.00")
    )

    assert [p.month for p in projections] == ["Nov 2024", "Dec 2024", "Jan 2025"]
    assert projections[0].recurring_amount == Decimal("1277.28")
    assert projections[0].estimated_total == Decimal("1915.92")
    assert projections[0].budget_remaining == Decimal("84.08")
    assert not projections[0].is_over_budget


def test_projection_months_bounds(budget_service, user_id):
    with pytest.raises(ValidationError):
        budget_service.spending_projections(user_id, months=0)
    with pytest.raises(ValidationError):
        budget_service.spending_projections(user_id, months=37)
