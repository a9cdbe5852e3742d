"""Request and response models for the HTTP API."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from pennywise.domain.analytics import Trend
from pennywise.domain.entities import (
    AccountType,
    AlertStatus,
    AlertType,
    CategoryType,
    GoalStatus,
    PaymentFrequency,
    PaymentStatus,
    Priority,
)


class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Users
class PreferencesOut(OrmModel):
    currency: str
    credit_card_threshold: int
    low_balance_threshold: Decimal
    email_enabled: bool
    push_enabled: bool
    sms_enabled: bool
    timezone: str


class PreferencesUpdate(BaseModel):
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    credit_card_threshold: Optional[int] = Field(None, gt=0, le=100)
    low_balance_threshold: Optional[Decimal] = Field(None, ge=0)
    email_enabled: Optional[bool] = None
    push_enabled: Optional[bool] = None
    sms_enabled: Optional[bool] = None
    timezone: Optional[str] = Field(None, min_length=1, max_length=64)


class UserOut(OrmModel):
    id: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    preferences: PreferencesOut


# Accounts
class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    account_type: AccountType = AccountType.CHECKING
    credit_limit: Optional[Decimal] = Field(None, gt=0)


class AccountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    account_type: Optional[AccountType] = None
    credit_limit: Optional[Decimal] = Field(None, gt=0)
    is_active: Optional[bool] = None
    clear_credit_limit: bool = False


class AccountOut(OrmModel):
    id: int
    name: str
    account_type: AccountType
    balance: Decimal
    credit_limit: Optional[Decimal]
    is_active: bool
    created_at: datetime


class BalanceOut(BaseModel):
    account_id: int
    balance: Decimal


class UtilizationOut(OrmModel):
    account_id: int
    account_name: str
    current_balance: Decimal
    credit_limit: Decimal
    utilization_amount: Decimal
    utilization_percentage: Decimal


# Categories
class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category_type: CategoryType = CategoryType.EXPENSE
    parent_id: Optional[int] = None


class CategoryOut(OrmModel):
    id: int
    name: str
    category_type: CategoryType
    parent_id: Optional[int]
    created_at: datetime


# Transactions
class TransactionCreate(BaseModel):
    account_id: int
    amount: Decimal
    description: str = Field("", max_length=500)
    transaction_date: date
    category_id: Optional[int] = None
    recurring_payment_id: Optional[int] = None


class TransactionUpdate(BaseModel):
    account_id: Optional[int] = None
    amount: Optional[Decimal] = None
    description: Optional[str] = Field(None, max_length=500)
    transaction_date: Optional[date] = None
    category_id: Optional[int] = None
    clear_category: bool = False


class TransactionOut(OrmModel):
    id: int
    account_id: int
    category_id: Optional[int]
    amount: Decimal
    description: str
    transaction_date: date
    recurring_payment_id: Optional[int]
    created_at: datetime


# Recurring payments
class RecurringPaymentCreate(BaseModel):
    account_id: int
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0)
    frequency: PaymentFrequency
    next_due_date: date
    category_id: Optional[int] = None
    merchant_pattern: Optional[str] = Field(None, max_length=100)


class RecurringPaymentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[Decimal] = Field(None, gt=0)
    frequency: Optional[PaymentFrequency] = None
    next_due_date: Optional[date] = None
    category_id: Optional[int] = None
    is_active: Optional[bool] = None
    status: Optional[PaymentStatus] = None


class RecurringPaymentOut(OrmModel):
    id: int
    account_id: int
    category_id: Optional[int]
    name: str
    merchant_pattern: str
    amount: Decimal
    frequency: PaymentFrequency
    next_due_date: date
    confidence: float
    status: PaymentStatus
    is_active: bool
    last_processed: Optional[date]
    created_at: datetime
    updated_at: datetime


class ConfirmPatternRequest(BaseModel):
    account_id: int
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0)
    frequency: PaymentFrequency
    next_due_date: date
    category_id: Optional[int] = None


class DetectRequest(BaseModel):
    account_id: Optional[int] = None
    min_occurrences: Optional[int] = Field(None, ge=2, le=12)
    amount_tolerance_percent: Optional[float] = Field(None, ge=0, le=50)
    date_variance_days: Optional[int] = Field(None, ge=0, le=7)
    lookback_months: Optional[int] = Field(None, ge=1, le=24)
    confidence_threshold: Optional[float] = Field(None, ge=0.1, le=1.0)


class PaymentWindowOut(OrmModel):
    predicted_date: date
    earliest: date
    latest: date


class PatternOut(OrmModel):
    id: str
    account_id: int
    merchant_pattern: str
    amounts: list[Decimal]
    dates: list[date]
    frequency: PaymentFrequency
    confidence: float
    average_amount: Decimal
    amount_consistency: float
    date_regularity: float
    last_occurrence: date
    next_expected_date: date
    category_id: Optional[int]
    typical_amount: Optional[Decimal] = None
    payment_window: Optional[PaymentWindowOut] = None


class DetectionOut(OrmModel):
    pattern: PatternOut
    suggested_name: str
    suggested_category_id: Optional[int]
    existing_payment_id: Optional[int]
    is_new_pattern: bool
    risk_score: float


class RecordPaymentRequest(BaseModel):
    paid_on: Optional[date] = None


class MissedPaymentOut(OrmModel):
    recurring_payment_id: int
    payment_name: str
    expected_amount: Decimal
    expected_date: date
    days_overdue: int
    account_id: int
    account_name: str
    last_payment_date: Optional[date]
    missed_consecutive_payments: int


class ProcessingOut(BaseModel):
    created_transactions: list[TransactionOut]
    updated_payments: list[RecurringPaymentOut]
    errors: list[dict[str, Any]]


class CategoryBreakdownOut(OrmModel):
    category_id: Optional[int]
    category_name: str
    monthly_amount: Decimal
    quarterly_amount: Decimal
    yearly_amount: Decimal
    payment_count: int
    percentage: float


class FrequencyBreakdownOut(OrmModel):
    count: int
    total_amount: Decimal


class ProjectionsOut(OrmModel):
    next_month: Decimal
    next_3_months: Decimal
    next_6_months: Decimal
    next_12_months: Decimal


class AllocationOut(OrmModel):
    total_budget: Decimal
    recurring_allocation: Decimal
    available_spending: Decimal
    utilization_percentage: float


class TrendsOut(OrmModel):
    new_payments_this_month: int
    cancelled_payments_this_month: int


class SuggestionOut(OrmModel):
    type: str
    suggestion: str
    potential_savings: Decimal
    priority: str
    payment_id: Optional[int]
    payment_name: Optional[str]
    related_payment_id: Optional[int]
    category_id: Optional[int]


class BudgetImpactOut(OrmModel):
    total_monthly: Decimal
    total_quarterly: Decimal
    total_yearly: Decimal
    category_breakdown: list[CategoryBreakdownOut]
    frequency_breakdown: dict[str, FrequencyBreakdownOut]
    projections: ProjectionsOut
    allocation: AllocationOut
    trends: TrendsOut
    suggestions: list[SuggestionOut]


class SpendingProjectionOut(OrmModel):
    month: str
    month_start: date
    recurring_amount: Decimal
    estimated_total: Decimal
    budget_remaining: Decimal
    is_over_budget: bool


# Savings goals
class SavingsGoalCreate(BaseModel):
    account_id: int
    name: str = Field(..., min_length=1, max_length=100)
    target_amount: Decimal = Field(..., gt=0)
    target_date: date
    priority: int = Field(5, ge=1, le=10)
    description: Optional[str] = Field(None, max_length=500)


class SavingsGoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    target_amount: Optional[Decimal] = Field(None, gt=0)
    target_date: Optional[date] = None
    priority: Optional[int] = Field(None, ge=1, le=10)
    status: Optional[GoalStatus] = None


class ContributionRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)


class MilestoneOut(OrmModel):
    id: int
    percentage: int
    target_amount: Decimal
    is_achieved: bool
    achieved_amount: Optional[Decimal]
    achieved_at: Optional[datetime]


class SavingsGoalOut(OrmModel):
    id: int
    account_id: int
    name: str
    description: Optional[str]
    target_amount: Decimal
    current_amount: Decimal
    target_date: date
    priority: int
    status: GoalStatus
    created_at: datetime
    progress_percentage: float
    remaining_amount: Decimal
    milestones: list[MilestoneOut]


class GoalProgressOut(SavingsGoalOut):
    days_remaining: int
    required_daily_savings: Decimal


class ContributionOut(BaseModel):
    goal: SavingsGoalOut
    previous_amount: Decimal
    new_amount: Decimal
    achieved_milestones: list[int]
    completed: bool


class GoalAnalyticsOut(OrmModel):
    total_goals: int
    active_goals: int
    paused_goals: int
    completed_goals: int
    cancelled_goals: int
    total_target_amount: Decimal
    total_current_amount: Decimal
    average_progress: float
    upcoming_milestones: list[MilestoneOut]


# Alerts
class AlertOut(OrmModel):
    id: int
    account_id: int
    alert_type: AlertType
    message: str
    current_value: Decimal
    threshold_value: Decimal
    priority: Priority
    status: AlertStatus
    triggered_at: datetime
    acknowledged_at: Optional[datetime]
    snooze_until: Optional[datetime]


class SnoozeRequest(BaseModel):
    minutes: int = Field(..., gt=0, le=7 * 24 * 60)


class AlertSettingUpsert(BaseModel):
    account_id: int
    alert_type: AlertType = AlertType.CREDIT_UTILIZATION
    threshold_percentage: Optional[Decimal] = Field(None, gt=0, le=100)
    threshold_amount: Optional[Decimal] = Field(None, gt=0)
    is_enabled: bool = True


class AlertSettingOut(OrmModel):
    id: int
    account_id: int
    alert_type: AlertType
    threshold_percentage: Optional[Decimal]
    threshold_amount: Optional[Decimal]
    is_enabled: bool


# Notifications
class PaymentAlertOut(OrmModel):
    type: str
    payment_id: int
    payment_name: str
    amount: Decimal
    due_date: date
    priority: Priority
    message: str
    days_until_due: Optional[int]
    days_overdue: Optional[int]


class NotificationSummaryOut(OrmModel):
    total: int
    unread: int
    high: int
    medium: int
    low: int


class NotificationCenterOut(OrmModel):
    alerts: list[AlertOut]
    summary: NotificationSummaryOut
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class NotificationPreferenceUpdate(BaseModel):
    alert_type: str = Field(..., min_length=1, max_length=50)
    email_enabled: Optional[bool] = None
    push_enabled: Optional[bool] = None
    in_app_enabled: Optional[bool] = None
    sms_enabled: Optional[bool] = None
    quiet_hours_start: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    quiet_hours_end: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    emergency_override: Optional[bool] = None


class NotificationPreferenceOut(OrmModel):
    id: int
    alert_type: str
    email_enabled: bool
    push_enabled: bool
    in_app_enabled: bool
    sms_enabled: bool
    quiet_hours_start: Optional[str]
    quiet_hours_end: Optional[str]
    emergency_override: bool


# Analytics
class NetWorthOut(OrmModel):
    as_of: date
    total_assets: Decimal
    total_liabilities: Decimal
    net_worth: Decimal


class OverviewOut(OrmModel):
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


class CashFlowPeriodOut(OrmModel):
    label: str
    start_date: date
    end_date: date
    income: Decimal
    expenses: Decimal
    net_flow: Decimal


class CategorySpendingOut(OrmModel):
    category_id: Optional[int]
    category_name: str
    amount: Decimal
    percentage: float
    transaction_count: int


class NetWorthPointOut(OrmModel):
    label: str
    as_of: date
    net_worth: Decimal


class PeriodComparisonOut(OrmModel):
    metric: str
    current: Decimal
    previous: Decimal
    change: Decimal
    change_percentage: float
    trend: Trend


class DashboardOut(OrmModel):
    overview: OverviewOut
    cash_flow: list[CashFlowPeriodOut]
    spending: list[CategorySpendingOut]
    net_worth_history: list[NetWorthPointOut]
    comparisons: list[PeriodComparisonOut]
