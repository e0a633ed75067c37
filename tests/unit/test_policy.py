"""Tests for (s, C, S) policies and the cash-threshold cache."""

import numpy as np
import pytest

from cashsdp.policy import CashThresholdCache, ThresholdPolicy, ThresholdPolicyRow


class TestCashThresholdCache:
    def test_put_and_get(self):
        cache = CashThresholdCache()
        cache.put(2, 0, 12)
        assert cache.get(2, 0.0, default=0.0) == 12.0
        assert cache[(2, 0.0)] == 12.0

    def test_get_default(self):
        cache = CashThresholdCache()
        cache.put(2, 0.0, 12.0)
        assert cache.get(2, 1.0, default=7.5) == 7.5
        assert cache.get(3, 0.0, default=-1.0) == -1.0

    def test_write_once(self):
        cache = CashThresholdCache()
        cache.put(2, 3.0, 12.0)
        with pytest.raises(KeyError, match="already set"):
            cache.put(2, 3.0, 14.0)
        assert cache.get(2, 3.0, default=0.0) == 12.0

    def test_contains(self):
        cache = CashThresholdCache()
        cache.put(4, 1.0, 11.0)
        assert (4, 1) in cache
        assert (4, 2.0) not in cache
        assert "4" not in cache

    def test_iteration_sorted(self):
        cache = CashThresholdCache()
        cache.put(3, 0.0, 10.0)
        cache.put(2, 5.0, 11.0)
        cache.put(2, 1.0, 12.0)
        assert list(cache) == [(2, 1.0), (2, 5.0), (3, 0.0)]
        assert len(cache) == 3

    def test_for_period(self):
        cache = CashThresholdCache()
        cache.put(2, 5.0, 11.0)
        cache.put(2, 1.0, 12.0)
        cache.put(3, 0.0, 10.0)
        assert cache.for_period(2) == {1.0: 12.0, 5.0: 11.0}
        assert cache.for_period(7) == {}

    def test_to_array(self):
        cache = CashThresholdCache()
        assert cache.to_array().shape == (0, 3)
        cache.put(2, 1.0, 12.0)
        np.testing.assert_array_equal(cache.to_array(), [[2.0, 1.0, 12.0]])


class TestThresholdPolicy:
    @pytest.fixture
    def policy(self) -> ThresholdPolicy:
        return ThresholdPolicy.from_rows([(0, 20, 6), (5, 8, 10), (4, 12, 9)])

    def test_from_rows_numbers_periods(self, policy):
        assert policy[1] == ThresholdPolicyRow(1, 0.0, 20.0, 6.0)
        assert [r.period for r in policy] == [1, 2, 3]
        assert len(policy) == 3

    @pytest.mark.parametrize("period", [0, 4, -1])
    def test_period_out_of_range(self, policy, period):
        with pytest.raises(KeyError, match="outside"):
            policy[period]

    def test_to_array(self, policy):
        np.testing.assert_array_equal(
            policy.to_array(), [[0, 20, 6], [5, 8, 10], [4, 12, 9]]
        )

    def test_repr(self, policy):
        assert repr(policy) == "ThresholdPolicy([(0, 20, 6), (5, 8, 10), (4, 12, 9)])"

    def test_orders_up_to_S(self, policy):
        q = policy.order_quantity(
            2, 1.0, 50.0, affordable=40.0, max_order_quantity=150.0
        )
        assert q == 9.0

    def test_order_limited_by_cash(self, policy):
        q = policy.order_quantity(2, 1.0, 15.0, affordable=5.0, max_order_quantity=150.0)
        assert q == 5.0

    def test_order_limited_by_cap(self, policy):
        q = policy.order_quantity(2, 1.0, 50.0, affordable=40.0, max_order_quantity=3.0)
        assert q == 3.0

    def test_no_order_at_or_above_s(self, policy):
        assert policy.order_quantity(
            2, 5.0, 50.0, affordable=40.0, max_order_quantity=150.0
        ) == 0.0

    def test_no_order_at_or_below_C(self, policy):
        assert policy.order_quantity(
            2, 1.0, 8.0, affordable=40.0, max_order_quantity=150.0
        ) == 0.0

    def test_cache_threshold_overrides_C(self, policy):
        cache = CashThresholdCache()
        cache.put(2, 1.0, 60.0)
        kwargs = dict(affordable=40.0, max_order_quantity=150.0)
        assert policy.order_quantity(2, 1.0, 50.0, cache=cache, **kwargs) == 0.0
        # inventory without a cached entry falls back to C
        assert policy.order_quantity(2, 0.0, 50.0, cache=cache, **kwargs) == 10.0
