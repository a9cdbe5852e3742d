"""Tests for savings goals and milestones."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from pennywise.domain.entities import GoalStatus, SavingsGoal
from pennywise.domain.errors import NotFoundError, ValidationError
from pennywise.domain.savings import calculate_goal_progress

START = date(2024, 1, 1)
DEADLINE = date(2024, 12, 31)


@pytest.fixture
def savings_account(account_service, user_id):
    return account_service.create_account(user_id, name="Savings", account_type="savings")


@pytest.fixture
def goal(savings_service, savings_account, user_id):
    return savings_service.create_goal(
        user_id,
        account_id=savings_account.id,
        name="Emergency Fund",
        target_amount=Decimal("1000.00"),
        target_date=DEADLINE,
        priority=8,
        today=START,
    )


def test_create_goal_with_milestones(goal):
    assert goal.current_amount == Decimal("0.00")
    assert goal.status == GoalStatus.ACTIVE
    assert [m.percentage for m in goal.milestones] == [25, 50, 75, 100]
    assert [m.target_amount for m in goal.milestones] == [
        Decimal("250.00"),
        Decimal("500.00"),
        Decimal("750.00"),
        Decimal("1000.00"),
    ]
    assert not any(m.is_achieved for m in goal.milestones)


def test_create_goal_validation(savings_service, savings_account, user_id):
    with pytest.raises(ValidationError):
        savings_service.create_goal(
            user_id, savings_account.id, "Trip", Decimal("500"), date(2023, 12, 31), today=START
        )
    with pytest.raises(ValidationError):
        savings_service.create_goal(
            user_id, savings_account.id, "Trip", Decimal("0"), DEADLINE, today=START
        )
    with pytest.raises(ValidationError):
        savings_service.create_goal(
            user_id, savings_account.id, "Trip", Decimal("500"), DEADLINE, priority=11, today=START
        )
    with pytest.raises(ValidationError):
        savings_service.create_goal(
            user_id, savings_account.id, "x" * 101, Decimal("500"), DEADLINE, today=START
        )


def test_create_goal_on_foreign_account(savings_service, savings_account, other_user_id):
    with pytest.raises(NotFoundError):
        savings_service.create_goal(
            other_user_id, savings_account.id, "Mine now", Decimal("500"), DEADLINE, today=START
        )


def test_contributions_reach_milestones_and_complete(savings_service, goal, user_id):
    first = savings_service.contribute(goal.id, user_id, Decimal("300.00"))
    assert first.previous_amount == Decimal("0.00")
    assert first.new_amount == Decimal("300.00")
    assert first.achieved_milestones == [25]
    assert not first.completed

    second = savings_service.contribute(goal.id, user_id, Decimal("800.00"))
    assert second.achieved_milestones == [50, 75, 100]
    assert second.completed
    assert second.goal.status == GoalStatus.COMPLETED
    assert second.goal.current_amount == Decimal("1100.00")
    # Progress is not capped at 100%.
    assert second.goal.progress_percentage == pytest.approx(110.0)
    assert second.goal.remaining_amount == Decimal("0.00")


def test_contribution_must_be_positive(savings_service, goal, user_id):
    with pytest.raises(ValidationError):
        savings_service.contribute(goal.id, user_id, Decimal("-5.00"))


def test_cannot_contribute_to_cancelled_goal(savings_service, goal, user_id):
    savings_service.update_goal(goal.id, user_id, status="cancelled")
    with pytest.raises(ValidationError):
        savings_service.contribute(goal.id, user_id, Decimal("5.00"))


def test_foreign_goal_is_not_found(savings_service, goal, other_user_id):
    with pytest.raises(NotFoundError):
        savings_service.get_goal(goal.id, other_user_id)
    with pytest.raises(NotFoundError):
        savings_service.contribute(goal.id, other_user_id, Decimal("5.00"))


def test_paused_goal_completes_when_funded(savings_service, goal, user_id):
    savings_service.update_goal(goal.id, user_id, status="paused")

    partial = savings_service.contribute(goal.id, user_id, Decimal("400.00"))
    assert partial.goal.status == GoalStatus.PAUSED

    result = savings_service.contribute(goal.id, user_id, Decimal("600.00"))
    assert result.completed
    assert result.goal.status == GoalStatus.COMPLETED


def test_lowering_target_completes_paused_goal(savings_service, goal, user_id):
    savings_service.contribute(goal.id, user_id, Decimal("600.00"))
    savings_service.update_goal(goal.id, user_id, status="paused")

    updated = savings_service.update_goal(goal.id, user_id, target_amount=Decimal("600.00"))

    assert updated.status == GoalStatus.COMPLETED


def test_lowering_target_completes_goal(savings_service, goal, user_id):
    savings_service.contribute(goal.id, user_id, Decimal("600.00"))

    updated = savings_service.update_goal(goal.id, user_id, target_amount=Decimal("500.00"))

    assert updated.status == GoalStatus.COMPLETED
    assert [m.target_amount for m in updated.milestones] == [
        Decimal("125.00"),
        Decimal("250.00"),
        Decimal("375.00"),
        Decimal("500.00"),
    ]
    assert all(m.is_achieved for m in updated.milestones)


def test_raising_target_reopens_completed_goal(savings_service, goal, user_id):
    savings_service.contribute(goal.id, user_id, Decimal("1000.00"))

    updated = savings_service.update_goal(goal.id, user_id, target_amount=Decimal("2000.00"))

    assert updated.status == GoalStatus.ACTIVE
    assert updated.milestones[-1].target_amount == Decimal("2000.00")


def test_goal_progress():
    goal = SavingsGoal(
        id=1,
        user_id="u",
        account_id=1,
        name="Car",
        description=None,
        target_amount=Decimal("1000.00"),
        current_amount=Decimal("250.00"),
        target_date=DEADLINE,
        priority=5,
        status=GoalStatus.ACTIVE,
        created_at=datetime(2024, 1, 1),
    )

    progress = calculate_goal_progress(goal, today=date(2024, 12, 21))
    assert progress.progress_percentage == 25.0
    assert progress.remaining_amount == Decimal("750.00")
    assert progress.days_remaining == 10
    assert progress.required_daily_savings == Decimal("75.00")

    overdue = calculate_goal_progress(goal, today=date(2025, 1, 10))
    assert overdue.days_remaining == -10
    assert overdue.required_daily_savings == Decimal("750.00")


def test_list_goals_by_status(savings_service, goal, savings_account, user_id):
    other = savings_service.create_goal(
        user_id, savings_account.id, "Holiday", Decimal("400.00"), DEADLINE, priority=2, today=START
    )
    savings_service.update_goal(other.id, user_id, status="paused")

    assert [p.goal.name for p in savings_service.list_goals(user_id)] == ["Emergency Fund", "Holiday"]
    paused = savings_service.list_goals(user_id, status="paused")
    assert [p.goal.id for p in paused] == [other.id]


def test_goal_analytics(savings_service, goal, savings_account, user_id):
    savings_service.create_goal(
        user_id, savings_account.id, "House", Decimal("3000.00"), DEADLINE, today=START
    )
    savings_service.contribute(goal.id, user_id, Decimal("500.00"))

    analytics = savings_service.goal_analytics(user_id)

    assert analytics.total_goals == 2
    assert analytics.active_goals == 2
    assert analytics.total_target_amount == Decimal("4000.00")
    assert analytics.total_current_amount == Decimal("500.00")
    assert analytics.average_progress == 12.5
    assert [m.percentage for m in analytics.upcoming_milestones] == [25, 50, 75, 75, 100]


def test_delete_goal(savings_service, goal, user_id):
    savings_service.delete_goal(goal.id, user_id)
    with pytest.raises(NotFoundError):
        savings_service.get_goal(goal.id, user_id)
