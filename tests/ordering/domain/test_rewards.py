"""Tests for the rewards resolver (wallet credit and loyalty points)."""

from decimal import Decimal

import pytest
from ordering.checkout.rewards import POINT_VALUE, REDEEM_UNIT, resolve_rewards
from protean.exceptions import ValidationError


class TestWalletAndPoints:
    def test_wallet_then_points(self):
        result = resolve_rewards(
            order_total=Decimal("21.60"),
            wallet_balance=Decimal("5.00"),
            points_balance=25,
            requested_wallet=Decimal("5.00"),
            requested_points=25,
        )
        assert result.wallet_applied == Decimal("5.00")
        assert result.remaining == Decimal("16.60")
        assert result.points_to_redeem == 20
        assert result.points_value == Decimal("2.00")
        assert result.points_discount == Decimal("2.00")
        assert result.points_debited == 20
        assert result.payable_total == Decimal("14.60")

    def test_nothing_requested(self):
        result = resolve_rewards(Decimal("21.60"), Decimal("50.00"), 100)
        assert result.wallet_applied == Decimal("0.00")
        assert result.points_to_redeem == 0
        assert result.points_discount == Decimal("0.00")
        assert result.payable_total == Decimal("21.60")
        assert result.max_points_redeemable == 100

    def test_redeem_unit_and_point_value(self):
        assert REDEEM_UNIT == 10
        assert POINT_VALUE == Decimal("0.10")


class TestWalletClamping:
    def test_request_above_balance_is_clamped(self):
        result = resolve_rewards(Decimal("21.60"), Decimal("5.00"), 0, requested_wallet=Decimal("50.00"))
        assert result.wallet_applied == Decimal("5.00")
        assert result.payable_total == Decimal("16.60")

    def test_request_above_total_is_clamped(self):
        result = resolve_rewards(Decimal("21.60"), Decimal("100.00"), 0, requested_wallet=Decimal("100.00"))
        assert result.wallet_applied == Decimal("21.60")
        assert result.payable_total == Decimal("0.00")

    def test_negative_request_applies_nothing(self):
        result = resolve_rewards(Decimal("21.60"), Decimal("5.00"), 0, requested_wallet=Decimal("-3.00"))
        assert result.wallet_applied == Decimal("0.00")


class TestPointsRedemption:
    def test_points_floor_to_whole_units(self):
        result = resolve_rewards(Decimal("50.00"), Decimal("0"), 39, requested_points=39)
        assert result.points_to_redeem == 30
        assert result.points_discount == Decimal("3.00")

    def test_points_request_above_balance_is_clamped(self):
        result = resolve_rewards(Decimal("50.00"), Decimal("0"), 20, requested_points=500)
        assert result.points_to_redeem == 20

    def test_negative_points_request_redeems_nothing(self):
        result = resolve_rewards(Decimal("50.00"), Decimal("0"), 20, requested_points=-10)
        assert result.points_to_redeem == 0

    def test_points_capped_by_remainder_after_wallet(self):
        result = resolve_rewards(
            Decimal("5.00"),
            Decimal("3.00"),
            100,
            requested_wallet=Decimal("3.00"),
            requested_points=100,
        )
        assert result.remaining == Decimal("2.00")
        assert result.points_to_redeem == 100
        assert result.points_discount == Decimal("2.00")
        assert result.payable_total == Decimal("0.00")

    def test_only_units_covering_the_discount_are_debited(self):
        result = resolve_rewards(Decimal("2.50"), Decimal("0"), 100, requested_points=100)
        assert result.points_discount == Decimal("2.50")
        assert result.points_debited == 30

    def test_max_points_redeemable_is_advisory_cap(self):
        result = resolve_rewards(Decimal("16.60"), Decimal("0"), 500)
        assert result.max_points_redeemable == 160

    def test_max_points_redeemable_capped_by_balance(self):
        result = resolve_rewards(Decimal("16.60"), Decimal("0"), 45)
        assert result.max_points_redeemable == 40


class TestResolverGuarantees:
    CASES = [
        (Decimal("21.60"), Decimal("5.00"), 25, Decimal("5.00"), 25),
        (Decimal("0.00"), Decimal("10.00"), 100, Decimal("10.00"), 100),
        (Decimal("0.99"), Decimal("0.50"), 7, Decimal("1.00"), 7),
        (Decimal("100.00"), Decimal("0.00"), 1000, None, 1000),
        (Decimal("13.37"), Decimal("13.36"), 19, Decimal("13.36"), 19),
        (Decimal("45.10"), Decimal("2.00"), 99, Decimal("-5.00"), 55),
    ]

    def test_parts_sum_to_order_total(self):
        for total, wallet, points, req_wallet, req_points in self.CASES:
            r = resolve_rewards(total, wallet, points, req_wallet, req_points)
            assert r.wallet_applied + r.points_discount + r.payable_total == total
            assert r.points_to_redeem % REDEEM_UNIT == 0
            assert r.points_debited % REDEEM_UNIT == 0
            assert 0 <= r.points_debited <= r.points_to_redeem <= points
            assert r.payable_total >= 0

    def test_same_inputs_same_result(self):
        for case in self.CASES:
            assert resolve_rewards(*case) == resolve_rewards(*case)


class TestResolverRejectsInvalidInput:
    def test_negative_total(self):
        with pytest.raises(ValidationError):
            resolve_rewards(Decimal("-1.00"), Decimal("0"), 0)

    def test_negative_wallet_balance(self):
        with pytest.raises(ValidationError):
            resolve_rewards(Decimal("1.00"), Decimal("-1.00"), 0)

    def test_negative_points_balance(self):
        with pytest.raises(ValidationError):
            resolve_rewards(Decimal("1.00"), Decimal("0"), -10)
