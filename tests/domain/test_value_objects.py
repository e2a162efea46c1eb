"""Unit tests for domain value objects."""

from decimal import Decimal

import pytest

from fulfillment.domain.exceptions import ValidationError
from fulfillment.domain.model.value_objects import Money, Quantity


# ââ Money ââââââââââââââââââââââââââââââââââââââââââââââââââââââââââââââââââââ


class TestMoney:

    def test_creation(self):
        m = Money(Decimal("10.50"))
        assert m.amount == Decimal("10.50")
        assert m.currency == "USD"

    def test_of_factory_from_string(self):
        m = Money.of("25.99")
        assert m.amount == Decimal("25.99")

    def test_of_factory_from_int(self):
        m = Money.of(10)
        assert m.amount == Decimal("10")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            Money(Decimal("-1"))

    def test_addition(self):
        result = Money.of("10") + Money.of("5.50")
        assert result == Money.of("15.50")

    def test_subtraction(self):
        result = Money.of("10") - Money.of("3")
        assert result == Money.of("7")

    def test_subtraction_going_negative_rejected(self):
        with pytest.raises(ValidationError, match="negative amount"):
            Money.of("5") - Money.of("10")

    def test_multiplication_by_int(self):
        result = Money.of("7.50") * 3
        assert result == Money.of("22.50")

    def test_currency_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="Cannot combine"):
            Money(Decimal("10"), "USD") + Money(Decimal("5"), "EUR")

    def test_str_formatting(self):
        assert str(Money.of("15")) == "$15.00"
        assert str(Money.of("9.5")) == "$9.50"

    def test_comparison_operators(self):
        assert Money.of("5") < Money.of("10")
        assert Money.of("10") > Money.of("5")
        assert Money.of("10") >= Money.of("10")
        assert Money.of("10") <= Money.of("10")

    def test_of_rejects_garbage(self):
        with pytest.raises(ValidationError, match="Invalid money amount"):
            Money.of("ten dollars")

    def test_percentage_rounds_half_up_to_cents(self):
        assert Money.of("100.00").percentage(Decimal("0.029")) == Money.of("2.90")
        assert Money.of("0.50").percentage(Decimal("0.025")) == Money.of("0.01")

    def test_zero(self):
        assert Money.zero().is_zero
        assert Money.zero("EUR").currency == "EUR"

    def test_divided_by_rounds_to_cents(self):
        assert Money.of("10.00").divided_by(3) == Money.of("3.33")
        assert Money.of("0.05").divided_by(2) == Money.of("0.03")

    def test_divided_by_zero_rejected(self):
        with pytest.raises(ValidationError, match="zero or fewer"):
            Money.of("10").divided_by(0)


class TestMoneyCurrency:

    def test_of_carries_currency(self):
        m = Money.of("12.5", "EUR")
        assert m.currency == "EUR"
        assert m != Money.of("12.5")

    def test_zero_adds_only_in_its_own_currency(self):
        assert Money.zero("GBP") + Money.of("4", "GBP") == Money.of("4", "GBP")
        with pytest.raises(ValidationError, match="Cannot combine GBP with USD"):
            Money.zero("GBP") + Money.of("4")

    def test_comparison_across_currencies_rejected(self):
        with pytest.raises(ValidationError, match="Cannot combine"):
            Money.of("1", "EUR") < Money.of("2")

    def test_operations_keep_currency(self):
        price = Money.of("2.50", "EUR")
        assert (price * 4).currency == "EUR"
        assert price.percentage(Decimal("0.1")) == Money.of("0.25", "EUR")
        assert Money.of("9", "EUR").divided_by(2) == Money.of("4.50", "EUR")

    def test_known_currencies_print_with_symbol(self):
        assert str(Money.of("3", "EUR")) == "€3.00"
        assert str(Money.of("3", "GBP")) == "£3.00"

    def test_other_currencies_print_with_code(self):
        assert str(Money.of("1500", "JPY")) == "1500.00 JPY"

    def test_total_of_nothing_is_zero_in_requested_currency(self):
        assert Money.total([], "EUR") == Money.zero("EUR")

    def test_total_sums_amounts(self):
        amounts = [Money.of("1.10", "EUR"), Money.of("2.20", "EUR")]
        assert Money.total(amounts, "EUR") == Money.of("3.30", "EUR")

    def test_total_rejects_mixed_currencies(self):
        with pytest.raises(ValidationError, match="Cannot combine"):
            Money.total([Money.of("1", "EUR"), Money.of("1")], "EUR")


# ââ Quantity âââââââââââââââââââââââââââââââââââââââââââââââââââââââââââââââââ


class TestQuantity:

    def test_valid_quantity(self):
        q = Quantity(5)
        assert q.value == 5

    def test_zero_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(0)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(-3)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            Quantity(True)

    def test_str(self):
        assert str(Quantity(7)) == "7"
