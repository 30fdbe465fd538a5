import pytest

from mealzone.config.settings import EtaSettings, FeeSettings, get_settings
from mealzone.delivery.fees import FeeEstimator, delivery_fee, eta_minutes


@pytest.mark.parametrize(
    ("distance", "fee"),
    [(None, 50), (0, 30), (1.5, 30), (2.0, 30), (2.01, 50), (4.9, 50), (5.0, 50), (5.5, 70), (10, 70)],
)
def test_delivery_fee_bands(distance, fee):
    assert delivery_fee(distance) == fee


def test_delivery_fee_uses_configured_bands():
    fees = FeeSettings(unknown_fee=99, tier1_max=1, tier1_fee=10, tier2_max=3, tier2_fee=20, tier3_fee=40)
    assert delivery_fee(None, fees=fees) == 99
    assert delivery_fee(1.5, fees=fees) == 20
    assert delivery_fee(3.5, fees=fees) == 40


def test_fee_settings_reject_inverted_bands():
    with pytest.raises(ValueError, match="tier2_max"):
        FeeSettings(tier1_max=5, tier2_max=2)


def test_eta_unknown_distance():
    assert eta_minutes(None) is None


def test_eta_minimum_floor():
    assert eta_minutes(0) == 5
    assert eta_minutes(1.0) == 5


def test_eta_rounds_up():
    assert eta_minutes(25) == 60
    assert eta_minutes(3.2) == 8
    assert eta_minutes(2.5) == 6
    assert eta_minutes(25, eta=EtaSettings(average_speed_kmph=50)) == 30


def test_negative_distance_rejected():
    with pytest.raises(ValueError):
        delivery_fee(-1)
    with pytest.raises(ValueError):
        eta_minutes(-0.1)


def test_estimator_matches_packaged_defaults():
    delivery = get_settings().delivery
    estimator = FeeEstimator(fees=delivery.fees, eta=delivery.eta)
    assert estimator.delivery_fee(3.2) == 50
    assert estimator.eta_minutes(3.2) == 8
