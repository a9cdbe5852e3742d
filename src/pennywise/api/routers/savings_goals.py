"""Savings goal routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from pennywise.api.dependencies import get_current_user, get_db
from pennywise.api.schemas import (
    ContributionOut,
    ContributionRequest,
    GoalAnalyticsOut,
    GoalProgressOut,
    SavingsGoalCreate,
    SavingsGoalOut,
    SavingsGoalUpdate,
)
from pennywise.database.base import Database
from pennywise.domain.entities import GoalStatus
from pennywise.domain.savings import GoalProgress, SavingsService

router = APIRouter(tags=["savings-goals"])


def get_service(db: Database = Depends(get_db)) -> SavingsService:
    return SavingsService(db)


def _progress_out(progress: GoalProgress) -> GoalProgressOut:
    goal = SavingsGoalOut.model_validate(progress.goal).model_dump()
    goal["progress_percentage"] = progress.progress_percentage
    return GoalProgressOut(
        **goal,
        days_remaining=progress.days_remaining,
        required_daily_savings=progress.required_daily_savings,
    )


@router.get("", response_model=list[GoalProgressOut])
def list_goals(
    status: Optional[GoalStatus] = Query(None),
    user_id: str = Depends(get_current_user),
    service: SavingsService = Depends(get_service),
):
    return [_progress_out(p) for p in service.list_goals(user_id, status=status)]


@router.post("", response_model=SavingsGoalOut, status_code=201)
def create_goal(
    payload: SavingsGoalCreate,
    user_id: str = Depends(get_current_user),
    service: SavingsService = Depends(get_service),
):
    goal = service.create_goal(
        user_id,
        account_id=payload.account_id,
        name=payload.name,
        target_amount=payload.target_amount,
        target_date=payload.target_date,
        priority=payload.priority,
        description=payload.description,
    )
    return SavingsGoalOut.model_validate(goal)


@router.get("/analytics", response_model=GoalAnalyticsOut)
def goal_analytics(
    user_id: str = Depends(get_current_user), service: SavingsService = Depends(get_service)
):
    return GoalAnalyticsOut.model_validate(service.goal_analytics(user_id))


@router.get("/{goal_id}", response_model=SavingsGoalOut)
def get_goal(
    goal_id: int,
    user_id: str = Depends(get_current_user),
    service: SavingsService = Depends(get_service),
):
    return SavingsGoalOut.model_validate(service.get_goal(goal_id, user_id))


@router.patch("/{goal_id}", response_model=SavingsGoalOut)
def update_goal(
    goal_id: int,
    payload: SavingsGoalUpdate,
    user_id: str = Depends(get_current_user),
    service: SavingsService = Depends(get_service),
):
    goal = service.update_goal(
        goal_id,
        user_id,
        name=payload.name,
        description=payload.description,
        target_amount=payload.target_amount,
        target_date=payload.target_date,
        priority=payload.priority,
        status=payload.status,
    )
    return SavingsGoalOut.model_validate(goal)


@router.delete("/{goal_id}", status_code=204)
def delete_goal(
    goal_id: int,
    user_id: str = Depends(get_current_user),
    service: SavingsService = Depends(get_service),
):
    service.delete_goal(goal_id, user_id)
    return Response(status_code=204)


@router.post("/{goal_id}/progress", response_model=ContributionOut)
def contribute(
    goal_id: int,
    payload: ContributionRequest,
    user_id: str = Depends(get_current_user),
    service: SavingsService = Depends(get_service),
):
    """Record a contribution towards the goal."""
    result = service.contribute(goal_id, user_id, payload.amount)
    return ContributionOut(
        goal=SavingsGoalOut.model_validate(result.goal),
        previous_amount=result.previous_amount,
        new_amount=result.new_amount,
        achieved_milestones=result.achieved_milestones,
        completed=result.completed,
    )
