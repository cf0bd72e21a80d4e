import pytest

from issuerelay.domain.models.config import RetryPolicyConfig
from issuerelay.infrastructure.resilience.backoff import BackoffPolicy


def test_default_schedule():
    policy = BackoffPolicy(RetryPolicyConfig())
    assert [policy.delay(n) for n in range(1, 8)] == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0]


def test_custom_multiplier_and_cap():
    policy = BackoffPolicy(RetryPolicyConfig(base_delay=0.5, max_delay=5.0, backoff_multiplier=3.0))
    assert policy.delay(1) == pytest.approx(0.5)
    assert policy.delay(2) == pytest.approx(1.5)
    assert policy.delay(3) == pytest.approx(4.5)
    assert policy.delay(4) == 5.0


def test_delay_is_non_decreasing_and_bounded():
    config = RetryPolicyConfig(base_delay=0.2, max_delay=7.0, backoff_multiplier=1.7)
    policy = BackoffPolicy(config)
    delays = [policy.delay(n) for n in range(1, 40)]
    assert delays == sorted(delays)
    assert all(0 <= d <= config.max_delay for d in delays)


def test_unit_multiplier_gives_constant_delay():
    policy = BackoffPolicy(RetryPolicyConfig(base_delay=2.0, backoff_multiplier=1.0))
    assert {policy.delay(n) for n in range(1, 10)} == {2.0}


def test_huge_attempt_number_is_capped():
    policy = BackoffPolicy(RetryPolicyConfig(backoff_multiplier=10.0))
    assert policy.delay(10_000) == 30.0


@pytest.mark.parametrize("attempt_number", [0, -1])
def test_rejects_attempt_numbers_below_one(attempt_number):
    with pytest.raises(ValueError):
        BackoffPolicy().delay(attempt_number)
