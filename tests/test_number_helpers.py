# tests/test_number_helpers.py
"""Tests for arithmetic, comparison and cast helpers."""
from decimal import Decimal
import ipaddress

import pytest

from helperbars.core.coercion import JSONNumber
from helperbars.core.durations import HOUR, ApproxDuration
from helperbars.core.templating.helpers import numbers
from helperbars.exceptions import CoercionError


class TestMultiply:
    """multiply reads bad operands as zero."""

    @pytest.mark.parametrize("v", [4, 4.0, "4", JSONNumber("4"), Decimal("4")])
    @pytest.mark.parametrize("w", [2, "2.5", JSONNumber("-3")])
    def test_same_result_for_every_representation(self, v, w):
        assert numbers.multiply(v, w) == numbers.multiply(4, float(str(w)))

    def test_invalid_operand_is_zero(self):
        assert numbers.multiply("abc", 5) == 0.0
        assert numbers.multiply(None, 5) == 0.0

    def test_in_template(self, render):
        assert render("{{multiply price qty}}", {"price": JSONNumber("2.5"), "qty": 4}) == "10"
        assert render("{{multiply a num}}", {"a": 0.5, "num": JSONNumber("20")}) == "10"
        assert render("{{multiply a b}}", {"a": "1.25", "b": 2}) == "2.5"


class TestGe:
    """ge raises on operands it cannot read."""

    def test_compares(self):
        assert numbers.ge("10", JSONNumber("9.5")) is True
        assert numbers.ge(1, 2) is False

    def test_invalid_operand_raises(self):
        with pytest.raises(CoercionError, match='x-value of comparison "ge"'):
            numbers.ge("ten", 1)
        with pytest.raises(CoercionError, match='y-value of comparison "ge"'):
            numbers.ge(1, [])

    def test_in_template(self, render):
        source = "{{#if (ge total 100)}}big{{else}}small{{/if}}"
        assert render(source, {"total": JSONNumber("150")}) == "big"
        assert render(source, {"total": "99"}) == "small"


class TestAddAndCasts:
    def test_add(self, render):
        assert render("{{add 5 6}}") == "11"
        assert render("{{addInt64 100 big}}", {"big": JSONNumber("3600000000000")}) == "3600000000100"

    def test_int_casts(self):
        assert numbers.cast_int("42.9") == 42
        assert numbers.cast_int("nope") == 0
        assert numbers.cast_int(ApproxDuration(HOUR)) == HOUR
        assert numbers.cast_int(JSONNumber("7")) == 7

    def test_float_cast_and_atoi(self):
        assert numbers.cast_float("1.25") == 1.25
        assert numbers.cast_float({}) == 0.0
        assert numbers.atoi("12") == 12
        assert numbers.atoi("12a") == 0
        assert numbers.atoi("٣٤") == 0

    def test_float_cast_renders_shortest_form(self, render):
        assert render('{{float64 "3"}} {{float64 "0.00001"}} {{float64 n}}', {"n": JSONNumber("1e21")}) == "3 1e-05 1e+21"

    def test_random(self):
        assert 0.0 <= numbers.random_float() < 1.0
        for _ in range(50):
            assert 3 <= numbers.random_int(3, 5) <= 5


class TestDurationsAndAmounts:
    def test_pretty_duration(self, render):
        assert render("{{#with (toApproxBigDuration 3600000000000)}}{{pretty}}{{/with}}") == "1h0m0s"

    def test_duration_seconds_feed_add(self, render):
        source = '{{#with (toApproxBigDuration "1 day")}}{{add 1617838340 (int64 seconds)}}{{/with}}'
        assert render(source) == "1617924740"

    def test_amount_accessors(self, render):
        assert render("{{#with (toAmount n)}}{{to_string}}{{/with}}", {"n": 23.45435}) == "23.45"
        assert render("{{#with (toAmount n)}}{{dollars}}{{/with}}", {"n": 23.99}) == "23"

    def test_invalid_amount_fails(self):
        with pytest.raises(CoercionError):
            numbers.HELPERS["toAmount"]("twelve")


class TestParseCIDR:
    def test_masks_host_bits(self, render):
        source = '{{parseCIDR "2601:201:4381:8a0:5c43:dc49:a3d6:8f3b/64"}}'
        assert render(source) == "2601:201:4381:8a0::/64"

    def test_ipv4(self):
        assert numbers.parse_cidr("10.1.2.3/8") == ipaddress.ip_network("10.0.0.0/8")

    @pytest.mark.parametrize("cidr", ["10.1.2.3", "10.1.2.3/33", "garbage/8"])
    def test_malformed(self, cidr):
        with pytest.raises(CoercionError):
            numbers.parse_cidr(cidr)
