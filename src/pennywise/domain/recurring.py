"""Recurring payment detection and management.

Detection groups a user's expense history by (account, merchant pattern),
infers a frequency from the spacing of the dates and scores how confident it
is that the group is a real recurring charge.
"""

import logging
import math
import re
import statistics
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from pennywise.database.base import Database
from pennywise.domain.entities import (
    CategoryType,
    PaymentFrequency,
    PaymentStatus,
    RecurringPayment,
    Transaction,
)
from pennywise.domain.errors import (
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
    account_not_found,
    category_not_found,
    recurring_payment_not_found,
)
from pennywise.domain.transaction import TransactionService
from pennywise.utils.amount_parser import to_money

logger = logging.getLogger(__name__)

FREQUENCY_DELTAS = {
    PaymentFrequency.WEEKLY: relativedelta(weeks=1),
    PaymentFrequency.MONTHLY: relativedelta(months=1),
    PaymentFrequency.QUARTERLY: relativedelta(months=3),
    PaymentFrequency.YEARLY: relativedelta(years=1),
}

# Expected interval in days and how many multiples of the date variance it tolerates.
FREQUENCY_BUCKETS = {
    PaymentFrequency.WEEKLY: (7, 1),
    PaymentFrequency.MONTHLY: (30, 2),
    PaymentFrequency.QUARTERLY: (91, 3),
    PaymentFrequency.YEARLY: (365, 7),
}

_PROCESSING_WORDS = re.compile(r"\b(?:auto\s+pay|autopay|auto|payment|recurring|subscription|bill)\b")
_CARD_FRAGMENT = re.compile(r"\b\d{4}[*x]\d+\b")
_SHORT_DATE = re.compile(r"\b\d{2}/\d{2}\b")
_SPECIAL_CHARS = re.compile(r"[#*]+")
_PUNCTUATION = re.compile(r"[^\w\s]")


@dataclass(frozen=True)
class DetectionConfig:
    """Tuning knobs for pattern detection."""

    min_occurrences: int = 3
    amount_tolerance_percent: float = 5
    date_variance_days: int = 3
    lookback_months: int = 12
    confidence_threshold: float = 0.7

    def __post_init__(self):
        if self.min_occurrences < 2:
            raise ValidationError("min_occurrences must be at least 2")
        if not 0 <= self.amount_tolerance_percent <= 50:
            raise ValidationError("amount_tolerance_percent must be between 0 and 50")
        if not 0 <= self.date_variance_days <= 7:
            raise ValidationError("date_variance_days must be between 0 and 7")
        if not 1 <= self.lookback_months <= 24:
            raise ValidationError("lookback_months must be between 1 and 24")
        if not 0.1 <= self.confidence_threshold <= 1.0:
            raise ValidationError("confidence_threshold must be between 0.1 and 1.0")


@dataclass(frozen=True)
class TransactionPattern:
    """A group of transactions that look like one recurring charge."""

    id: str
    account_id: int
    merchant_pattern: str
    amounts: tuple[Decimal, ...]
    dates: tuple[date, ...]
    frequency: PaymentFrequency
    confidence: float
    average_amount: Decimal
    amount_consistency: float
    date_regularity: float
    last_occurrence: date
    next_expected_date: date
    category_id: Optional[int] = None
    typical_amount: Optional[Decimal] = None
    payment_window: Optional["PaymentWindow"] = None


@dataclass(frozen=True)
class RecurringPaymentDetection:
    pattern: TransactionPattern
    suggested_name: str
    suggested_category_id: Optional[int]
    existing_payment_id: Optional[int]
    is_new_pattern: bool
    risk_score: float


@dataclass(frozen=True)
class IntervalStatistics:
    mean: float
    median: float
    variance: float
    standard_deviation: float


@dataclass(frozen=True)
class AmountCluster:
    amount: Decimal
    occurrences: int
    tolerance: Decimal


@dataclass(frozen=True)
class PaymentWindow:
    predicted_date: date
    earliest: date
    latest: date


@dataclass(frozen=True)
class MissedPayment:
    recurring_payment_id: int
    payment_name: str
    expected_amount: Decimal
    expected_date: date
    days_overdue: int
    account_id: int
    account_name: str
    last_payment_date: Optional[date]
    missed_consecutive_payments: int


@dataclass
class ProcessingResult:
    """Outcome of processing due payments. Failures are collected per payment."""

    created_transactions: list[Transaction] = field(default_factory=list)
    updated_payments: list[RecurringPayment] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)


def extract_merchant_pattern(description: str) -> str:
    """Reduce a transaction description to a merchant key.

    Drops payment-processing words, card fragments such as ``1234*5678``,
    short dates such as ``01/15``, punctuation and trailing numeric tokens,
    then keeps the first three words longer than two characters.

    >>> extract_merchant_pattern("NETFLIX.COM AUTOPAY 01/15")
    'netflix com'
    """
    text = (description or "").lower()
    text = _PROCESSING_WORDS.sub(" ", text)
    text = _CARD_FRAGMENT.sub(" ", text)
    text = _SHORT_DATE.sub(" ", text)
    text = _SPECIAL_CHARS.sub(" ", text)
    text = _PUNCTUATION.sub(" ", text)

    tokens = text.split()
    while tokens and tokens[-1].isdigit():
        tokens.pop()
    cleaned = " ".join(tokens)

    words = [word for word in tokens if len(word) > 2]
    if not words:
        return cleaned[:20].strip()
    return " ".join(words[:3])


def normalize_transaction_description(description: str) -> str:
    """Normalize a description with placeholders for card numbers, dates and amounts."""
    text = (description or "").lower()
    text = re.sub(r"\b\d{4}[*x-]\d+\b", "CARD", text)
    text = re.sub(r"\b\d{2}/\d{2}(?:/\d{2,4})?\b", "DATE", text)
    text = re.sub(r"\b\d+\.\d{2}\b", "AMOUNT", text)
    text = _PUNCTUATION.sub(" ", text)
    return " ".join(text.split())


def calculate_interval_statistics(intervals: Sequence[float]) -> IntervalStatistics:
    """Mean, median and population variance of day intervals."""
    if not intervals:
        return IntervalStatistics(mean=0.0, median=0.0, variance=0.0, standard_deviation=0.0)
    mean = statistics.fmean(intervals)
    variance = statistics.pvariance(intervals, mu=mean)
    return IntervalStatistics(
        mean=mean,
        median=float(statistics.median(intervals)),
        variance=variance,
        standard_deviation=math.sqrt(variance),
    )


def calculate_amount_consistency(
    amounts: Sequence[Decimal], reference: Decimal, tolerance_percent: float
) -> float:
    """Share of amounts within ``tolerance_percent`` of ``reference``.

    Detection passes the median amount, which a single outlier cannot move.
    """
    if not amounts:
        return 0.0
    tolerance = abs(reference) * Decimal(str(tolerance_percent)) / 100
    consistent = sum(1 for amount in amounts if abs(amount - reference) <= tolerance)
    return consistent / len(amounts)


def calculate_amount_regularity(amounts: Sequence[Decimal]) -> float:
    """Inverse coefficient of variation, ``max(0, 1 - stddev / mean)``."""
    if not amounts:
        return 0.0
    values = [float(amount) for amount in amounts]
    mean = statistics.fmean(values)
    if mean == 0:
        return 0.0
    cv = statistics.pstdev(values, mu=mean) / abs(mean)
    return max(0.0, 1.0 - cv)


def _interval_share(intervals: Sequence[int], frequency: PaymentFrequency, variance_days: int) -> float:
    expected, multiple = FREQUENCY_BUCKETS[frequency]
    tolerance = variance_days * multiple
    matching = sum(1 for interval in intervals if abs(interval - expected) <= tolerance)
    return matching / len(intervals)


def analyze_frequency_pattern(
    dates: Iterable[date], date_variance_days: int = 3
) -> tuple[PaymentFrequency, float]:
    """Infer the payment frequency of a date series.

    The median interval is matched against the canonical buckets; the
    regularity is the share of intervals inside the chosen bucket. When the
    median fits no bucket, the bucket holding the largest share wins.

    Returns:
        Tuple of (frequency, regularity in [0, 1]). Fewer than two dates
        give (monthly, 0.0).
    """
    ordered = sorted(dates)
    if len(ordered) < 2:
        return PaymentFrequency.MONTHLY, 0.0

    intervals = [(later - earlier).days for earlier, later in zip(ordered, ordered[1:])]
    median = statistics.median(intervals)

    for frequency, (expected, multiple) in FREQUENCY_BUCKETS.items():
        if abs(median - expected) <= date_variance_days * multiple:
            return frequency, _interval_share(intervals, frequency, date_variance_days)

    best, best_share = PaymentFrequency.MONTHLY, 0.0
    for frequency in FREQUENCY_BUCKETS:
        share = _interval_share(intervals, frequency, date_variance_days)
        if share > best_share:
            best, best_share = frequency, share
    return best, best_share


def calculate_pattern_confidence(
    amount_consistency: float,
    date_regularity: float,
    occurrences: int,
    time_span_days: int,
    min_occurrences: int = 3,
) -> float:
    """Weighted confidence that a group is a real recurring payment.

    ``0.6 * mean(consistency, regularity) + 0.25 * occurrence boost + 0.15 *
    history boost``, clamped to [0, 1]. Non-decreasing in each input.
    """
    base = (amount_consistency + date_regularity) / 2
    occurrence_boost = min(occurrences / (2 * max(min_occurrences, 1)), 1.0)
    span_boost = min(max(time_span_days, 0) / 365, 1.0)
    confidence = base * 0.6 + occurrence_boost * 0.25 + span_boost * 0.15
    return max(0.0, min(1.0, confidence))


def predict_next_payment_date(last_date: date, frequency: PaymentFrequency | str) -> date:
    """Advance a date by one period. Month ends clamp (Jan 31 -> Feb 28)."""
    return last_date + FREQUENCY_DELTAS[PaymentFrequency(frequency)]


def predict_payment_window(
    last_date: date, frequency: PaymentFrequency | str, historical_variance: float = 0
) -> PaymentWindow:
    """Predicted next date with an earliest/latest window of at least one day."""
    predicted = predict_next_payment_date(last_date, frequency)
    spread = timedelta(days=max(1, round(historical_variance)))
    return PaymentWindow(predicted_date=predicted, earliest=predicted - spread, latest=predicted + spread)


def score_merchant_similarity(first: str, second: str) -> float:
    """1.0 for equal patterns, 0.8 when one contains the other, else word overlap.

    Both sides are normalized first, so card numbers, dates and amounts
    embedded in a description do not count against a match.
    """
    a = normalize_transaction_description(first)
    b = normalize_transaction_description(second)
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    if a in b or b in a:
        return 0.8

    words_a, words_b = a.split(), b.split()
    matching = sum(1 for wa in words_a if any(wa in wb or wb in wa for wb in words_b))
    return matching / max(len(words_a), len(words_b))


def levenshtein_distance(first: str, second: str) -> int:
    """Edit distance between two strings."""
    if len(first) < len(second):
        first, second = second, first
    previous = list(range(len(second) + 1))
    for i, ca in enumerate(first, start=1):
        current = [i]
        for j, cb in enumerate(second, start=1):
            current.append(
                min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + (ca != cb))
            )
        previous = current
    return previous[-1]


def cluster_similar_amounts(
    amounts: Sequence[Decimal], tolerance_percent: float = 5
) -> list[AmountCluster]:
    """Group amounts within ``tolerance_percent`` of a seed amount, largest cluster first."""
    clusters = []
    remaining = list(amounts)
    while remaining:
        seed = remaining.pop(0)
        tolerance = abs(seed) * Decimal(str(tolerance_percent)) / 100
        members = [seed] + [a for a in remaining if abs(a - seed) <= tolerance]
        remaining = [a for a in remaining if abs(a - seed) > tolerance]
        clusters.append(
            AmountCluster(
                amount=to_money(sum(members, Decimal("0")) / len(members)),
                occurrences=len(members),
                tolerance=tolerance,
            )
        )
    return sorted(clusters, key=lambda c: c.occurrences, reverse=True)


def generate_payment_name(pattern: TransactionPattern) -> str:
    """Suggested display name, e.g. ``Netflix Com (Monthly)``."""
    merchant = " ".join(word[:1].upper() + word[1:] for word in pattern.merchant_pattern.split())
    return f"{merchant} ({pattern.frequency.value.capitalize()})"


def calculate_risk_score(pattern: TransactionPattern, today: Optional[date] = None) -> float:
    """Risk in [0, 1] that a detected pattern is wrong or temporary."""
    today = today or date.today()
    risk = (1 - pattern.confidence) * 0.4
    if pattern.average_amount >= 10000:
        risk += 0.3
    elif pattern.average_amount >= 5000:
        risk += 0.15
    if len(pattern.amounts) < 5:
        risk += 0.2
    if (today - pattern.dates[0]).days < 90:
        risk += 0.1
    return min(risk, 1.0)


def analyze_transaction_group(
    account_id: int,
    merchant_pattern: str,
    transactions: Sequence[Transaction],
    config: DetectionConfig,
) -> TransactionPattern:
    """Score one (account, merchant) group of expense transactions."""
    ordered = sorted(transactions, key=lambda t: (t.transaction_date, t.id))
    amounts = tuple(abs(t.amount) for t in ordered)
    dates = tuple(t.transaction_date for t in ordered)

    average = sum(amounts, Decimal("0")) / len(amounts)
    median = statistics.median(amounts)
    # An outlier zeroes the variation score but leaves the median share intact.
    amount_consistency = (
        calculate_amount_consistency(amounts, median, config.amount_tolerance_percent)
        + calculate_amount_regularity(amounts)
    ) / 2
    frequency, regularity = analyze_frequency_pattern(dates, config.date_variance_days)
    intervals = [(later - earlier).days for earlier, later in zip(dates, dates[1:])]
    window = predict_payment_window(
        dates[-1], frequency, calculate_interval_statistics(intervals).standard_deviation
    )
    clusters = cluster_similar_amounts(amounts, config.amount_tolerance_percent)
    confidence = calculate_pattern_confidence(
        amount_consistency=amount_consistency,
        date_regularity=regularity,
        occurrences=len(ordered),
        time_span_days=(dates[-1] - dates[0]).days,
        min_occurrences=config.min_occurrences,
    )

    categories = Counter(t.category_id for t in ordered if t.category_id is not None)
    category_id = categories.most_common(1)[0][0] if categories else None

    return TransactionPattern(
        id=f"{account_id}:{merchant_pattern}",
        account_id=account_id,
        merchant_pattern=merchant_pattern,
        amounts=amounts,
        dates=dates,
        frequency=frequency,
        confidence=round(confidence, 4),
        average_amount=to_money(average),
        amount_consistency=round(amount_consistency, 4),
        date_regularity=round(regularity, 4),
        last_occurrence=dates[-1],
        next_expected_date=window.predicted_date,
        category_id=category_id,
        typical_amount=clusters[0].amount,
        payment_window=window,
    )


def find_matching_payment(
    pattern: TransactionPattern, payments: Iterable[RecurringPayment]
) -> Optional[RecurringPayment]:
    """Existing payment on the same account, within 10% of the amount, with a similar merchant."""
    for payment in payments:
        if payment.account_id != pattern.account_id:
            continue
        amount = pattern.typical_amount or pattern.average_amount
        if abs(amount - payment.amount) > payment.amount * Decimal("0.1"):
            continue
        merchant = payment.merchant_pattern or extract_merchant_pattern(payment.name)
        if score_merchant_similarity(pattern.merchant_pattern, merchant) >= 0.5:
            return payment
    return None


def _parse_frequency(value: str | PaymentFrequency) -> PaymentFrequency:
    try:
        return PaymentFrequency(value)
    except ValueError:
        choices = ", ".join(f.value for f in PaymentFrequency)
        raise ValidationError(f"Invalid frequency '{value}'. Choose from: {choices}")


def _positive_amount(amount) -> Decimal:
    try:
        value = to_money(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid amount '{amount}'")
    if value <= 0:
        raise ValidationError("Amount must be positive")
    return value


class RecurringPaymentService:
    """Service for detecting and managing recurring payments."""

    def __init__(self, db: Database, transaction_service: Optional[TransactionService] = None):
        """Initialize recurring payment service.

        Args:
            db: Database instance
            transaction_service: Used to post due payments so balances
                reconcile (defaults to one over the same database)
        """
        self.db = db
        self.transactions = transaction_service or TransactionService(db)

    def _require_payment(self, payment_id: int, user_id: str) -> RecurringPayment:
        payment = self.db.get_recurring_payment(payment_id, user_id)
        if payment is None:
            raise NotFoundError(recurring_payment_not_found(payment_id))
        return payment

    def _require_account(self, account_id: int, user_id: str) -> None:
        if self.db.get_account(account_id, user_id) is None:
            raise NotFoundError(account_not_found(account_id))

    def _require_category(self, category_id: int, user_id: str) -> None:
        if self.db.get_category(category_id, user_id) is None:
            raise NotFoundError(category_not_found(category_id))

    # Detection
    def detect_patterns(
        self,
        user_id: str,
        account_id: Optional[int] = None,
        config: Optional[DetectionConfig] = None,
        today: Optional[date] = None,
    ) -> list[RecurringPaymentDetection]:
        """Find recurring charges in the user's expense history.

        Args:
            user_id: Owner of the transactions
            account_id: Restrict detection to one account
            config: Detection settings (defaults to DetectionConfig())
            today: End of the lookback window (defaults to today)

        Returns:
            Detections above the confidence threshold, most confident first.
            Groups with fewer than ``min_occurrences`` transactions are never
            reported.
        """
        config = config or DetectionConfig()
        today = today or date.today()
        if account_id is not None:
            self._require_account(account_id, user_id)

        income_categories = {
            c.id for c in self.db.list_categories(user_id, category_type=CategoryType.INCOME)
        }
        history = self.db.list_transactions(
            user_id,
            account_id=account_id,
            start_date=today - timedelta(days=config.lookback_months * 30),
            end_date=today,
            expenses_only=True,
        )

        groups: dict[tuple[int, str], list[Transaction]] = defaultdict(list)
        for txn in history:
            if txn.category_id in income_categories:
                continue
            merchant = extract_merchant_pattern(txn.description)
            if merchant:
                groups[(txn.account_id, merchant)].append(txn)

        existing = self.db.list_recurring_payments(user_id)
        detections = []
        for (group_account_id, merchant), txns in groups.items():
            if len(txns) < config.min_occurrences:
                continue
            pattern = analyze_transaction_group(group_account_id, merchant, txns, config)
            if pattern.confidence < config.confidence_threshold:
                logger.debug(
                    "Pattern %s below threshold (%.2f)", pattern.id, pattern.confidence
                )
                continue
            match = find_matching_payment(pattern, existing)
            detections.append(
                RecurringPaymentDetection(
                    pattern=pattern,
                    suggested_name=generate_payment_name(pattern),
                    suggested_category_id=pattern.category_id,
                    existing_payment_id=match.id if match else None,
                    is_new_pattern=match is None,
                    risk_score=round(calculate_risk_score(pattern, today), 4),
                )
            )

        logger.info("Detected %d recurring patterns for user %s", len(detections), user_id)
        return sorted(detections, key=lambda d: d.pattern.confidence, reverse=True)

    def create_from_pattern(
        self,
        user_id: str,
        pattern: TransactionPattern,
        name: Optional[str] = None,
        amount: Optional[Decimal] = None,
        frequency: Optional[str | PaymentFrequency] = None,
        next_due_date: Optional[date] = None,
        category_id: Optional[int] = None,
    ) -> RecurringPayment:
        """Turn a detected pattern into a tracked payment; keyword args override it."""
        return self.create_recurring_payment(
            user_id=user_id,
            account_id=pattern.account_id,
            name=name or generate_payment_name(pattern),
            amount=amount if amount is not None else pattern.typical_amount or pattern.average_amount,
            frequency=frequency or pattern.frequency,
            next_due_date=next_due_date or pattern.next_expected_date,
            category_id=category_id if category_id is not None else pattern.category_id,
            merchant_pattern=pattern.merchant_pattern,
            confidence=pattern.confidence,
        )

    def confirm_pattern(
        self,
        user_id: str,
        pattern_id: str,
        account_id: int,
        name: str,
        amount: Decimal,
        frequency: str | PaymentFrequency,
        next_due_date: date,
        category_id: Optional[int] = None,
    ) -> RecurringPayment:
        """Create a payment the user confirmed from a detection.

        Raises:
            ConflictError: If an active payment with the same name exists
        """
        name = (name or "").strip()
        for payment in self.db.list_recurring_payments(user_id):
            if payment.name == name:
                raise ConflictError("Recurring payment with this name already exists")

        _, _, merchant = pattern_id.partition(":")
        return self.create_recurring_payment(
            user_id=user_id,
            account_id=account_id,
            name=name,
            amount=amount,
            frequency=frequency,
            next_due_date=next_due_date,
            category_id=category_id,
            merchant_pattern=merchant or None,
            confidence=1.0,
        )

    # CRUD
    def create_recurring_payment(
        self,
        user_id: str,
        account_id: int,
        name: str,
        amount: Decimal,
        frequency: str | PaymentFrequency,
        next_due_date: date,
        category_id: Optional[int] = None,
        merchant_pattern: Optional[str] = None,
        confidence: float = 1.0,
    ) -> RecurringPayment:
        """Create a recurring payment.

        Raises:
            ValidationError: If the name, amount, frequency or confidence is invalid
            NotFoundError: If the account or category is missing or foreign
        """
        name = (name or "").strip()
        if not name or len(name) > 100:
            raise ValidationError("Payment name must be 1-100 characters")
        amount = _positive_amount(amount)
        frequency = _parse_frequency(frequency)
        if not 0 <= confidence <= 1:
            raise ValidationError("Confidence must be between 0 and 1")

        self._require_account(account_id, user_id)
        if category_id is not None:
            self._require_category(category_id, user_id)

        payment_id = self.db.create_recurring_payment(
            user_id=user_id,
            account_id=account_id,
            name=name,
            amount=amount,
            frequency=frequency,
            next_due_date=next_due_date,
            category_id=category_id,
            merchant_pattern=merchant_pattern or extract_merchant_pattern(name),
            confidence=confidence,
        )
        return self.db.get_recurring_payment(payment_id)

    def get_recurring_payment(self, payment_id: int, user_id: str) -> RecurringPayment:
        """Get one of the user's recurring payments.

        Raises:
            NotFoundError: If the payment is missing or foreign
        """
        return self._require_payment(payment_id, user_id)

    def list_recurring_payments(
        self,
        user_id: str,
        status: Optional[str] = None,
        account_id: Optional[int] = None,
        frequency: Optional[str] = None,
        is_active: Optional[bool] = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[RecurringPayment]:
        """List payments ordered by next due date."""
        if status is not None:
            try:
                status = PaymentStatus(status)
            except ValueError:
                raise ValidationError(f"Invalid status '{status}'")
        if frequency is not None:
            frequency = _parse_frequency(frequency)
        payments = self.db.list_recurring_payments(
            user_id, status=status, account_id=account_id, frequency=frequency, is_active=is_active
        )
        end = offset + limit if limit is not None else None
        return payments[offset:end]

    def update_recurring_payment(
        self,
        payment_id: int,
        user_id: str,
        name: Optional[str] = None,
        amount: Optional[Decimal] = None,
        frequency: Optional[str | PaymentFrequency] = None,
        next_due_date: Optional[date] = None,
        category_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        status: Optional[str | PaymentStatus] = None,
    ) -> RecurringPayment:
        """Update payment fields.

        Changing only the frequency re-derives ``next_due_date`` by applying
        the new frequency to the current due date.

        Raises:
            NotFoundError: If the payment or category is missing or foreign
            ValidationError: If a field is invalid
        """
        current = self._require_payment(payment_id, user_id)

        changes = {}
        if name is not None:
            name = name.strip()
            if not name or len(name) > 100:
                raise ValidationError("Payment name must be 1-100 characters")
            changes["name"] = name
        if amount is not None:
            changes["amount"] = _positive_amount(amount)
        if frequency is not None:
            changes["frequency"] = _parse_frequency(frequency)
            if next_due_date is None:
                changes["next_due_date"] = predict_next_payment_date(
                    current.next_due_date, changes["frequency"]
                )
        if next_due_date is not None:
            changes["next_due_date"] = next_due_date
        if category_id is not None:
            self._require_category(category_id, user_id)
            changes["category_id"] = category_id
        if is_active is not None:
            changes["is_active"] = is_active
        if status is not None:
            try:
                changes["status"] = PaymentStatus(status)
            except ValueError:
                raise ValidationError(f"Invalid status '{status}'")

        if changes:
            self.db.update_recurring_payment(payment_id, **changes)
        return self.db.get_recurring_payment(payment_id)

    def cancel_recurring_payment(self, payment_id: int, user_id: str) -> RecurringPayment:
        """Deactivate a payment without deleting its history."""
        return self.update_recurring_payment(
            payment_id, user_id, is_active=False, status=PaymentStatus.CANCELLED
        )

    def delete_recurring_payment(self, payment_id: int, user_id: str) -> None:
        """Delete a payment; linked transactions are kept and unlinked."""
        self._require_payment(payment_id, user_id)
        self.db.delete_recurring_payment(payment_id)

    # Payment cycle
    def record_payment(
        self, payment_id: int, user_id: str, paid_on: Optional[date] = None
    ) -> RecurringPayment:
        """Mark the current cycle paid and move the due date past ``paid_on``.

        Raises:
            NotFoundError: If the payment is missing or foreign
            ValidationError: If the payment is cancelled
        """
        paid_on = paid_on or date.today()
        payment = self._require_payment(payment_id, user_id)
        if payment.status == PaymentStatus.CANCELLED or not payment.is_active:
            raise ValidationError("Cannot record a payment for a cancelled recurring payment")

        next_due = predict_next_payment_date(payment.next_due_date, payment.frequency)
        while next_due <= paid_on:
            next_due = predict_next_payment_date(next_due, payment.frequency)

        self.db.update_recurring_payment(
            payment_id, status=PaymentStatus.PAID, last_processed=paid_on, next_due_date=next_due
        )
        return self.db.get_recurring_payment(payment_id)

    def detect_missed_payments(
        self, user_id: str, grace_period_days: int = 3, today: Optional[date] = None
    ) -> list[MissedPayment]:
        """Active payments whose due date passed more than the grace period ago."""
        today = today or date.today()
        cutoff = today - timedelta(days=grace_period_days)
        accounts = {a.id: a for a in self.db.list_accounts(user_id, include_inactive=True)}

        missed = []
        for payment in self.db.list_recurring_payments(user_id):
            if payment.status == PaymentStatus.CANCELLED or payment.next_due_date > cutoff:
                continue
            cycles = 1
            following = predict_next_payment_date(payment.next_due_date, payment.frequency)
            while following <= cutoff:
                cycles += 1
                following = predict_next_payment_date(following, payment.frequency)

            account = accounts.get(payment.account_id)
            missed.append(
                MissedPayment(
                    recurring_payment_id=payment.id,
                    payment_name=payment.name,
                    expected_amount=payment.amount,
                    expected_date=payment.next_due_date,
                    days_overdue=(today - payment.next_due_date).days,
                    account_id=payment.account_id,
                    account_name=account.name if account else "",
                    last_payment_date=payment.last_processed,
                    missed_consecutive_payments=cycles,
                )
            )
        return sorted(missed, key=lambda m: m.days_overdue, reverse=True)

    def process_due_payments(self, user_id: str, today: Optional[date] = None) -> ProcessingResult:
        """Post an expense for every due cycle of every active payment.

        Each payment is processed in its own unit of work; a failing payment
        is rolled back and reported in ``errors`` without stopping the rest.
        """
        today = today or date.today()
        result = ProcessingResult()

        for payment in self.db.list_recurring_payments(user_id):
            if payment.status == PaymentStatus.CANCELLED or payment.next_due_date > today:
                continue
            try:
                created = []
                with self.db.atomic():
                    due = payment.next_due_date
                    while due <= today:
                        created.append(
                            self.transactions.create_transaction(
                                user_id=user_id,
                                account_id=payment.account_id,
                                amount=-payment.amount,
                                description=f"Recurring: {payment.name}",
                                transaction_date=due,
                                category_id=payment.category_id,
                                recurring_payment_id=payment.id,
                            )
                        )
                        due = predict_next_payment_date(due, payment.frequency)
                    self.db.update_recurring_payment(
                        payment.id,
                        status=PaymentStatus.PAID,
                        last_processed=today,
                        next_due_date=due,
                    )
            except DomainError as exc:
                logger.warning("Recurring payment %s failed: %s", payment.id, exc)
                result.errors.append({"payment_id": payment.id, "error": str(exc)})
                continue
            result.created_transactions.extend(created)
            result.updated_payments.append(self.db.get_recurring_payment(payment.id))

        logger.info(
            "Processed %d due payments for user %s (%d errors)",
            len(result.updated_payments),
            user_id,
            len(result.errors),
        )
        return result
