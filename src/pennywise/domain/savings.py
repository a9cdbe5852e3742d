"""Savings goal domain service."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from pennywise.database.base import Database
from pennywise.domain.entities import GoalMilestone, GoalStatus, SavingsGoal
from pennywise.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    goal_not_found,
)
from pennywise.utils.amount_parser import to_money
from pennywise.utils.date_parser import utcnow

logger = logging.getLogger(__name__)

MILESTONE_PERCENTAGES = (25, 50, 75, 100)


@dataclass(frozen=True)
class GoalProgress:
    """A goal together with its derived progress figures."""

    goal: SavingsGoal
    progress_percentage: float
    remaining_amount: Decimal
    days_remaining: int
    required_daily_savings: Decimal


@dataclass(frozen=True)
class ContributionResult:
    goal: SavingsGoal
    previous_amount: Decimal
    new_amount: Decimal
    achieved_milestones: list[int] = field(default_factory=list)
    completed: bool = False


@dataclass(frozen=True)
class GoalAnalytics:
    total_goals: int
    active_goals: int
    paused_goals: int
    completed_goals: int
    cancelled_goals: int
    total_target_amount: Decimal
    total_current_amount: Decimal
    average_progress: float
    upcoming_milestones: list[GoalMilestone] = field(default_factory=list)


def calculate_goal_progress(goal: SavingsGoal, today: Optional[date] = None) -> GoalProgress:
    """Derive progress, days remaining and the daily saving still required.

    ``days_remaining`` is negative once the target date has passed; the
    required daily saving then spreads the remainder over a single day.
    """
    today = today or date.today()
    days_remaining = (goal.target_date - today).days
    remaining = goal.remaining_amount
    return GoalProgress(
        goal=goal,
        progress_percentage=round(goal.progress_percentage, 2),
        remaining_amount=remaining,
        days_remaining=days_remaining,
        required_daily_savings=to_money(remaining / max(days_remaining, 1)),
    )


def _positive_money(value, label: str) -> Decimal:
    try:
        amount = to_money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid {label} '{value}'")
    if amount <= 0:
        raise ValidationError(f"{label.capitalize()} must be positive")
    return amount


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not 1 <= len(name) <= 100:
        raise ValidationError("Goal name must be between 1 and 100 characters")
    return name


def _validate_priority(priority: int) -> int:
    if not 1 <= priority <= 10:
        raise ValidationError("Priority must be between 1 and 10")
    return priority


class SavingsService:
    """Service for savings goals and their milestones."""

    def __init__(self, db: Database):
        """Initialize savings service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_goal(self, goal_id: int, user_id: str) -> SavingsGoal:
        goal = self.db.get_savings_goal(goal_id, user_id)
        if goal is None:
            raise NotFoundError(goal_not_found(goal_id))
        return goal

    def create_goal(
        self,
        user_id: str,
        account_id: int,
        name: str,
        target_amount: Decimal,
        target_date: date,
        priority: int = 5,
        description: Optional[str] = None,
        today: Optional[date] = None,
    ) -> SavingsGoal:
        """Create a goal starting at zero, with 25/50/75/100% milestones.

        Args:
            user_id: Owner of the goal
            account_id: Account the savings accumulate in (must be the user's)
            name: Goal name (1-100 characters)
            target_amount: Positive target amount
            target_date: Date to reach the target by (not in the past)
            priority: 1 (lowest) to 10 (highest)
            description: Optional free text
            today: Reference date for the target date check

        Returns:
            The created goal

        Raises:
            ValidationError: If any field is invalid
            NotFoundError: If the account is missing or foreign
        """
        name = _validate_name(name)
        target_amount = _positive_money(target_amount, "target amount")
        _validate_priority(priority)
        if target_date < (today or date.today()):
            raise ValidationError("Target date cannot be in the past")

        with self.db.atomic():
            if self.db.get_account(account_id, user_id) is None:
                raise NotFoundError(account_not_found(account_id))
            goal_id = self.db.create_savings_goal(
                user_id=user_id,
                account_id=account_id,
                name=name,
                target_amount=target_amount,
                target_date=target_date,
                priority=priority,
                description=description,
                milestone_percentages=MILESTONE_PERCENTAGES,
            )
        logger.info("Created savings goal %s for user %s", goal_id, user_id)
        return self.db.get_savings_goal(goal_id)

    def get_goal(self, goal_id: int, user_id: str) -> SavingsGoal:
        """Get one of the user's goals.

        Raises:
            NotFoundError: If the goal is missing or foreign
        """
        return self._require_goal(goal_id, user_id)

    def list_goals(
        self, user_id: str, status: Optional[str] = None, today: Optional[date] = None
    ) -> list[GoalProgress]:
        """List goals, highest priority first, with progress figures."""
        goals = self.db.list_savings_goals(user_id)
        if status is not None:
            goals = [g for g in goals if g.status == GoalStatus(status)]
        return [calculate_goal_progress(goal, today) for goal in goals]

    def _achieve_milestones(
        self, goal: SavingsGoal, amount: Decimal, now: datetime
    ) -> list[int]:
        achieved = []
        for milestone in goal.milestones:
            if not milestone.is_achieved and amount >= milestone.target_amount:
                self.db.update_milestone(
                    milestone.id, is_achieved=True, achieved_amount=amount, achieved_at=now
                )
                achieved.append(milestone.percentage)
        return achieved

    def contribute(
        self, goal_id: int, user_id: str, amount: Decimal, now: Optional[datetime] = None
    ) -> ContributionResult:
        """Add a positive contribution to a goal.

        Milestones whose target is reached are marked achieved. An active or
        paused goal whose current amount reaches the target becomes completed.

        Raises:
            ValidationError: If the amount is not positive or the goal is cancelled
            NotFoundError: If the goal is missing or foreign
        """
        amount = _positive_money(amount, "contribution amount")
        now = now or utcnow()

        with self.db.atomic():
            goal = self._require_goal(goal_id, user_id)
            if goal.status == GoalStatus.CANCELLED:
                raise ValidationError("Cannot contribute to a cancelled goal")

            previous = goal.current_amount
            new_amount = previous + amount
            changes = {"current_amount": new_amount}
            completed = (
                goal.status in (GoalStatus.ACTIVE, GoalStatus.PAUSED)
                and new_amount >= goal.target_amount
            )
            if completed:
                changes["status"] = GoalStatus.COMPLETED
            self.db.update_savings_goal(goal_id, **changes)
            achieved = self._achieve_milestones(goal, new_amount, now)

        for percentage in achieved:
            logger.info("Goal %s reached its %s%% milestone", goal_id, percentage)
        return ContributionResult(
            goal=self.db.get_savings_goal(goal_id),
            previous_amount=previous,
            new_amount=new_amount,
            achieved_milestones=achieved,
            completed=completed,
        )

    def update_goal(
        self,
        goal_id: int,
        user_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        target_amount: Optional[Decimal] = None,
        target_date: Optional[date] = None,
        priority: Optional[int] = None,
        status: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SavingsGoal:
        """Update goal fields.

        A new target recomputes the milestone targets and re-evaluates
        completion: an active or paused goal already at the new target
        completes, and a completed goal below it becomes active again.

        Raises:
            ValidationError: If a field is invalid
            NotFoundError: If the goal is missing or foreign
        """
        changes = {}
        if name is not None:
            changes["name"] = _validate_name(name)
        if description is not None:
            changes["description"] = description
        if target_amount is not None:
            changes["target_amount"] = _positive_money(target_amount, "target amount")
        if target_date is not None:
            changes["target_date"] = target_date
        if priority is not None:
            changes["priority"] = _validate_priority(priority)
        if status is not None:
            try:
                changes["status"] = GoalStatus(status)
            except ValueError:
                raise ValidationError(f"Invalid goal status '{status}'")

        with self.db.atomic():
            goal = self._require_goal(goal_id, user_id)
            new_target = changes.get("target_amount", goal.target_amount)
            new_status = changes.get("status", goal.status)
            funded = goal.current_amount >= new_target
            if new_status in (GoalStatus.ACTIVE, GoalStatus.PAUSED) and funded:
                new_status = GoalStatus.COMPLETED
            elif new_status == GoalStatus.COMPLETED and goal.current_amount < new_target:
                new_status = GoalStatus.ACTIVE
            if new_status != goal.status:
                changes["status"] = new_status

            if changes:
                self.db.update_savings_goal(goal_id, **changes)
            if "target_amount" in changes:
                for milestone in goal.milestones:
                    self.db.update_milestone(
                        milestone.id,
                        target_amount=to_money(new_target * milestone.percentage / 100),
                    )
                self._achieve_milestones(
                    self.db.get_savings_goal(goal_id), goal.current_amount, now or utcnow()
                )

        return self.db.get_savings_goal(goal_id)

    def delete_goal(self, goal_id: int, user_id: str) -> None:
        """Delete a goal and its milestones.

        Raises:
            NotFoundError: If the goal is missing or foreign
        """
        with self.db.atomic():
            self._require_goal(goal_id, user_id)
            self.db.delete_savings_goal(goal_id)

    def goal_analytics(self, user_id: str) -> GoalAnalytics:
        """Counts by status, totals and overall progress."""
        goals = self.db.list_savings_goals(user_id)

        def count(status: GoalStatus) -> int:
            return sum(1 for g in goals if g.status == status)

        total_target = sum((g.target_amount for g in goals), Decimal("0.00"))
        total_current = sum((g.current_amount for g in goals), Decimal("0.00"))
        average = float(round(total_current / total_target * 100, 2)) if total_target > 0 else 0.0

        upcoming = sorted(
            (
                m
                for g in goals
                if g.status == GoalStatus.ACTIVE
                for m in g.milestones
                if not m.is_achieved
            ),
            key=lambda m: (m.percentage, m.target_amount),
        )[:5]

        return GoalAnalytics(
            total_goals=len(goals),
            active_goals=count(GoalStatus.ACTIVE),
            paused_goals=count(GoalStatus.PAUSED),
            completed_goals=count(GoalStatus.COMPLETED),
            cancelled_goals=count(GoalStatus.CANCELLED),
            total_target_amount=total_target,
            total_current_amount=total_current,
            average_progress=average,
            upcoming_milestones=upcoming,
        )
