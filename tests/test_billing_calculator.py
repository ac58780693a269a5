from datetime import date

import pytest

from app.domain.financial.billing_calculator import (
    BillingConfig,
    BillingError,
    StayDetails,
    calculate_from_daily_occupancy,
    calculate_stay_billing,
    normalize_method,
    validate_billing_config,
)


def test_method_spellings_normalize():
    assert normalize_method("per_person_per_night") == "per-person-per-day"
    assert normalize_method("Flat-Rate-Per-Week") == "flat-rate-per-week"
    assert normalize_method(None) is None


@pytest.mark.parametrize(
    "method, expected",
    [
        ("per-person-per-day", 4 * 3 * 25),
        ("flat-rate-per-day", 3 * 25),
        ("per-person-per-week", 4 * 1 * 25),
        ("flat-rate-per-week", 1 * 25),
    ],
)
def test_base_amount_by_method(method, expected):
    breakdown = calculate_stay_billing(BillingConfig(method=method, amount=25), StayDetails(guests=4, nights=3))
    assert breakdown.base_amount == expected
    assert breakdown.total == expected


def test_weeks_round_up():
    breakdown = calculate_stay_billing(
        BillingConfig(method="flat-rate-per-week", amount=700), StayDetails(guests=2, nights=8)
    )
    assert breakdown.base_amount == 1400
    assert "2 weeks" in breakdown.details


def test_fees_tax_and_deposit():
    config = BillingConfig(
        method="flat-rate-per-day", amount=100, tax_rate=10, cleaning_fee=50, pet_fee=25, damage_deposit=200
    )
    breakdown = calculate_stay_billing(config, StayDetails(guests=2, nights=2))
    assert breakdown.subtotal == 275
    assert breakdown.tax == pytest.approx(27.5)
    # The deposit is not taxed
    assert breakdown.total == pytest.approx(502.5)
    assert breakdown.to_dict()["total"] == 502.5


def test_unknown_method_raises():
    with pytest.raises(BillingError):
        calculate_stay_billing(BillingConfig(method="per-bedroom", amount=10), StayDetails(guests=1, nights=1))


def test_daily_occupancy_per_person():
    config = BillingConfig(method="per-person-per-day", amount=10)
    breakdown = calculate_from_daily_occupancy(
        config, {"2025-07-02": 3, "2025-07-01": 2}, date(2025, 7, 1), date(2025, 7, 3)
    )
    assert breakdown.base_amount == 50
    assert [d["date"] for d in breakdown.day_breakdown] == ["2025-07-01", "2025-07-02"]


def test_daily_occupancy_flat_rate_skips_empty_days():
    config = BillingConfig(method="flat-rate-per-week", amount=70)
    breakdown = calculate_from_daily_occupancy(
        config, {"2025-07-01": 2, "2025-07-02": 0, "2025-07-03": 1}, date(2025, 7, 1), date(2025, 7, 4)
    )
    assert breakdown.base_amount == pytest.approx(20)


def test_validate_config_errors():
    result = validate_billing_config(BillingConfig(method="nope", amount=0, tax_rate=150))
    assert not result["is_valid"]
    assert len(result["errors"]) == 3
    assert validate_billing_config(BillingConfig(method="flat_rate_per_night", amount=5))["is_valid"]
