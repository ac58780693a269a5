"""
Stay billing calculations.

Supports per-person and flat-rate pricing by day or by week. Method names
arrive in several spellings (kebab-case, snake_case, "night" for "day"),
all normalized before use.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

PER_PERSON_PER_DAY = "per-person-per-day"
PER_PERSON_PER_WEEK = "per-person-per-week"
FLAT_RATE_PER_DAY = "flat-rate-per-day"
FLAT_RATE_PER_WEEK = "flat-rate-per-week"
BILLING_METHODS = (PER_PERSON_PER_DAY, PER_PERSON_PER_WEEK, FLAT_RATE_PER_DAY, FLAT_RATE_PER_WEEK)


class BillingError(ValueError):
    """Raised for an unknown or unusable billing configuration"""


@dataclass
class BillingConfig:
    method: Optional[str]
    amount: float
    tax_rate: Optional[float] = None
    cleaning_fee: Optional[float] = None
    pet_fee: Optional[float] = None
    damage_deposit: Optional[float] = None


@dataclass
class StayDetails:
    guests: int
    nights: int
    weeks: Optional[int] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None


@dataclass
class BillingBreakdown:
    base_amount: float
    cleaning_fee: float
    pet_fee: float
    damage_deposit: float
    subtotal: float
    tax: float
    total: float
    details: str
    day_breakdown: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "base_amount": round(self.base_amount, 2),
            "cleaning_fee": round(self.cleaning_fee, 2),
            "pet_fee": round(self.pet_fee, 2),
            "damage_deposit": round(self.damage_deposit, 2),
            "subtotal": round(self.subtotal, 2),
            "tax": round(self.tax, 2),
            "total": round(self.total, 2),
            "details": self.details,
            "day_breakdown": self.day_breakdown,
        }


def normalize_method(method: Optional[str]) -> Optional[str]:
    if not method:
        return None
    return method.lower().replace("_", "-").replace("night", "day")


def _weeks(stay: StayDetails) -> int:
    return stay.weeks or math.ceil(stay.nights / 7)


def _money(value: float) -> str:
    return f"${value:,.2f}".replace(".00", "")


def calculate_base_amount(config: BillingConfig, stay: StayDetails) -> float:
    method = normalize_method(config.method)
    if method == PER_PERSON_PER_DAY:
        return stay.guests * stay.nights * config.amount
    if method == PER_PERSON_PER_WEEK:
        return stay.guests * _weeks(stay) * config.amount
    if method == FLAT_RATE_PER_DAY:
        return stay.nights * config.amount
    if method == FLAT_RATE_PER_WEEK:
        return _weeks(stay) * config.amount
    raise BillingError(f"Unknown billing method: {config.method}")


def _details(config: BillingConfig, stay: StayDetails, base_amount: float) -> str:
    method = normalize_method(config.method)
    rate = _money(config.amount)
    total = _money(base_amount)
    if method == PER_PERSON_PER_DAY:
        return f"{stay.guests} guests × {stay.nights} nights × {rate}/person/day = {total}"
    if method == PER_PERSON_PER_WEEK:
        return f"{stay.guests} guests × {_weeks(stay)} weeks × {rate}/person/week = {total}"
    if method == FLAT_RATE_PER_DAY:
        return f"{stay.nights} nights × {rate}/day = {total}"
    if method == FLAT_RATE_PER_WEEK:
        return f"{_weeks(stay)} weeks × {rate}/week = {total}"
    return f"Base amount = {total}"


def _with_fees(config: BillingConfig, base_amount: float, details: str) -> BillingBreakdown:
    cleaning_fee = config.cleaning_fee or 0
    pet_fee = config.pet_fee or 0
    damage_deposit = config.damage_deposit or 0

    subtotal = base_amount + cleaning_fee + pet_fee
    tax = subtotal * config.tax_rate / 100 if config.tax_rate else 0
    total = subtotal + tax + damage_deposit

    return BillingBreakdown(
        base_amount=base_amount,
        cleaning_fee=cleaning_fee,
        pet_fee=pet_fee,
        damage_deposit=damage_deposit,
        subtotal=subtotal,
        tax=tax,
        total=total,
        details=details,
    )


def calculate_stay_billing(config: BillingConfig, stay: StayDetails) -> BillingBreakdown:
    """Base charge for the stay plus fees, tax on the subtotal, and the deposit"""
    base_amount = calculate_base_amount(config, stay)
    return _with_fees(config, base_amount, _details(config, stay, base_amount))


def calculate_from_daily_occupancy(
    config: BillingConfig,
    daily_occupancy: dict[str, int],
    start_date: date,
    end_date: date,
) -> BillingBreakdown:
    """
    Bill from actual guest counts per day ({"2025-07-04": 4, ...}).

    Weekly rates are pro-rated to a seventh per day; flat rates are only
    charged on days with guests. Without occupancy data the stay is billed
    by nights with no guests.
    """
    if not daily_occupancy:
        nights = (end_date - start_date).days
        return calculate_stay_billing(
            config,
            StayDetails(guests=0, nights=nights, check_in_date=start_date, check_out_date=end_date),
        )

    method = normalize_method(config.method)
    base_amount = 0.0
    day_breakdown = []
    for day_key in sorted(daily_occupancy):
        guests = daily_occupancy[day_key] or 0
        if method == PER_PERSON_PER_DAY:
            cost = guests * config.amount
        elif method == PER_PERSON_PER_WEEK:
            cost = guests * config.amount / 7
        elif method == FLAT_RATE_PER_DAY:
            cost = config.amount if guests > 0 else 0
        elif method == FLAT_RATE_PER_WEEK:
            cost = config.amount / 7 if guests > 0 else 0
        else:
            cost = 0
        base_amount += cost
        day_breakdown.append({"date": day_key, "guests": guests, "cost": round(cost, 2)})

    breakdown = _with_fees(
        config, base_amount, f"Calculated from {len(day_breakdown)} days of actual occupancy"
    )
    breakdown.day_breakdown = day_breakdown
    return breakdown


def validate_billing_config(config: BillingConfig) -> dict:
    errors = []
    if not config.method:
        errors.append("Billing method is required")
    elif normalize_method(config.method) not in BILLING_METHODS:
        errors.append(f"Unknown billing method: {config.method}")
    if not config.amount or config.amount <= 0:
        errors.append("Billing amount must be greater than 0")
    if config.tax_rate and (config.tax_rate < 0 or config.tax_rate > 100):
        errors.append("Tax rate must be between 0 and 100")
    return {"is_valid": not errors, "errors": errors}


def config_from_settings(settings, include_pet_fee: bool = False) -> Optional[BillingConfig]:
    """Billing config from an organization's reservation settings, or None if not set up"""
    if not settings or not settings.financial_method or not settings.nightly_rate:
        return None
    return BillingConfig(
        method=settings.financial_method,
        amount=settings.nightly_rate,
        tax_rate=settings.tax_rate,
        cleaning_fee=settings.cleaning_fee,
        pet_fee=settings.pet_fee if include_pet_fee else None,
        damage_deposit=settings.damage_deposit,
    )
