"""
Policy engine.

Pure functions that turn a provider's policy configuration plus timing facts
into money amounts and permissions. No database, no clock: callers pass
"now"-derived values in.

Client penalties are always scoped to the deposit. Provider fault (provider
cancellation, provider no-show) is always a full refund of everything
collected; that rule is fixed and not configurable.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from .errors import InvalidPolicyConfig

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
MAX_LATE_MINUTES = 60

CLIENT = "client"
PROVIDER = "provider"
PARTIES = (CLIENT, PROVIDER)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value) -> Decimal:
    """Round to the currency's minor unit, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percentage_of(amount, percentage) -> Decimal:
    return round_money(to_decimal(amount) * to_decimal(percentage) / HUNDRED)


@dataclass(frozen=True)
class PolicyConfig:
    """
    Provider policy configuration.

    Defaults are the platform defaults applied when a provider has never
    saved policies.
    """
    cancellation_window_hours: int = 24
    cancellation_fee_percentage: Decimal = Decimal("50")
    late_grace_period_minutes: int = 15
    late_cancellation_after_minutes: int = 15
    no_show_fee_percentage: Decimal = Decimal("100")
    reschedule_allowed: bool = True
    reschedule_window_hours: int = 24
    max_reschedules: int = 2

    def __post_init__(self):
        validate_policy(self)

    @classmethod
    def from_row(cls, row) -> "PolicyConfig":
        """Build from a ProviderPolicies row (or anything with the same attributes)."""
        values = {}
        for f in fields(cls):
            value = getattr(row, f.name, None)
            if value is not None:
                values[f.name] = value
        return cls(**values)


@dataclass(frozen=True)
class FeeOutcome:
    fee: Decimal
    refund: Decimal


def validate_policy(policy: PolicyConfig) -> None:
    for name in ("cancellation_fee_percentage", "no_show_fee_percentage"):
        value = to_decimal(getattr(policy, name))
        if value < 0 or value > HUNDRED:
            raise InvalidPolicyConfig(f"{name} must be between 0 and 100, got {value}")

    for name in (
        "cancellation_window_hours",
        "reschedule_window_hours",
        "max_reschedules",
    ):
        value = getattr(policy, name)
        if value < 0:
            raise InvalidPolicyConfig(f"{name} must not be negative, got {value}")

    for name in ("late_grace_period_minutes", "late_cancellation_after_minutes"):
        value = getattr(policy, name)
        if value < 0 or value > MAX_LATE_MINUTES:
            raise InvalidPolicyConfig(
                f"{name} must be between 0 and {MAX_LATE_MINUTES}, got {value}"
            )


def _check_party(party: str) -> None:
    if party not in PARTIES:
        raise ValueError(f"party must be one of {PARTIES}, got {party!r}")


# ── Timing ───────────────────────────────────────────────────────────────


def hours_until(now: datetime, appointment_at: datetime) -> Decimal:
    """
    Hours from now until the appointment (negative once it has started).

    Both values must be timezone-aware so the difference is an absolute
    duration, independent of daylight-saving shifts.
    """
    seconds = (appointment_at - now).total_seconds()
    return to_decimal(seconds) / Decimal(3600)


# ── Cancellation ─────────────────────────────────────────────────────────


def cancellation_fee(
    policy: PolicyConfig,
    initiator: str,
    hours_until_appointment,
    deposit_amount,
) -> FeeOutcome:
    """
    Fee and refund for a cancellation.

    Provider cancellations are always free. Client cancellations are free at
    or beyond the cancellation window; inside it the fee is a percentage of
    the deposit.
    """
    _check_party(initiator)
    deposit = round_money(deposit_amount)

    if initiator == PROVIDER:
        return FeeOutcome(fee=round_money(0), refund=deposit)

    if to_decimal(hours_until_appointment) >= policy.cancellation_window_hours:
        fee = round_money(0)
    else:
        fee = percentage_of(deposit, policy.cancellation_fee_percentage)

    return FeeOutcome(fee=fee, refund=deposit - fee)


# ── No-show ──────────────────────────────────────────────────────────────


def no_show_fee(
    policy: PolicyConfig,
    reported_party: str,
    deposit_amount,
    balance_paid=0,
) -> FeeOutcome:
    """
    Fee and refund for a no-show.

    reported_party is who failed to show up. A client no-show forfeits
    no_show_fee_percentage of the deposit; the balance is handled separately
    by the caller. A provider no-show refunds deposit and balance in full.
    """
    _check_party(reported_party)
    deposit = round_money(deposit_amount)

    if reported_party == PROVIDER:
        return FeeOutcome(fee=round_money(0), refund=deposit + round_money(balance_paid))

    fee = percentage_of(deposit, policy.no_show_fee_percentage)
    return FeeOutcome(fee=fee, refund=deposit - fee)


# ── Reschedule ───────────────────────────────────────────────────────────


def is_reschedule_allowed(
    policy: PolicyConfig,
    hours_until_appointment,
    current_reschedule_count: int,
) -> bool:
    return (
        policy.reschedule_allowed
        and current_reschedule_count < policy.max_reschedules
        and to_decimal(hours_until_appointment) >= policy.reschedule_window_hours
    )


def is_late_arrival(policy: PolicyConfig, minutes_late) -> bool:
    """True once the client is past the grace period."""
    return to_decimal(minutes_late) > policy.late_grace_period_minutes


def is_no_show_overdue(policy: PolicyConfig, minutes_overdue) -> bool:
    """
    True once a confirmed appointment nobody closed has been overdue for longer
    than both the grace period and late_cancellation_after_minutes.

    minutes_overdue counts from the scheduled end, the earliest point at which
    the provider could have completed it.
    """
    return (
        is_late_arrival(policy, minutes_overdue)
        and to_decimal(minutes_overdue) > policy.late_cancellation_after_minutes
    )


# ── Booking amounts ──────────────────────────────────────────────────────


def calculate_deposit(price, deposit_type: str, deposit_amount) -> Decimal:
    """
    Deposit collected at booking time.

    PERCENTAGE deposits are a share of the price; FIXED deposits are taken
    as-is, capped at the price.
    """
    price = round_money(price)
    if deposit_type == "PERCENTAGE":
        deposit = percentage_of(price, deposit_amount)
    elif deposit_type == "FIXED":
        deposit = round_money(deposit_amount)
    else:
        raise ValueError(f"Unknown deposit type: {deposit_type}")

    if deposit < 0:
        raise InvalidPolicyConfig("Deposit must not be negative")
    return min(deposit, price)


def calculate_service_fee(price, base, percentage, cap) -> Decimal:
    """Platform fee: base + percentage of price, never above cap."""
    calculated = to_decimal(base) + to_decimal(price) * to_decimal(percentage) / HUNDRED
    return round_money(min(calculated, to_decimal(cap)))
