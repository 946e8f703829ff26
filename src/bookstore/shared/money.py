"""Money value object: exact amounts in minor units with a currency."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Integer, String

from bookstore.domain import bookstore

DEFAULT_CURRENCY = "JPY"

# Width of the persisted unit_price_amount column (signed 64-bit)
MAX_AMOUNT = 2**63 - 1

VALID_CURRENCIES = frozenset(
    {
        "JPY",
        "USD",
        "EUR",
        "GBP",
        "CNY",
        "KRW",
        "TWD",
        "HKD",
        "SGD",
        "AUD",
        "CAD",
        "CHF",
    }
)


@bookstore.value_object
class Money:
    """A non-negative amount of money, counted in the currency's minor unit.

    Arithmetic never mixes currencies and never silently exceeds the
    storable range; both cases raise ``ValidationError``.
    """

    amount: Integer(required=True, min_value=0)
    currency: String(max_length=3, default=DEFAULT_CURRENCY)

    @invariant.post
    def currency_must_be_valid_iso_4217(self):
        if self.currency not in VALID_CURRENCIES:
            raise ValidationError({"currency": [f"Unsupported currency: {self.currency}"]})

    @invariant.post
    def amount_must_fit_storage(self):
        if self.amount is not None and self.amount > MAX_AMOUNT:
            raise ValidationError({"amount": [f"Amount exceeds the maximum of {MAX_AMOUNT}"]})

    @classmethod
    def zero(cls, currency=DEFAULT_CURRENCY):
        return cls(amount=0, currency=currency)

    def _assert_same_currency(self, other):
        if self.currency != other.currency:
            raise ValidationError({"currency": [f"Currency mismatch: {self.currency} and {other.currency}"]})

    def add(self, other):
        self._assert_same_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def subtract(self, other):
        self._assert_same_currency(other)
        if other.amount > self.amount:
            raise ValidationError({"amount": ["Result of subtraction cannot be negative"]})
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def multiply(self, factor):
        if isinstance(factor, bool) or not isinstance(factor, int) or factor < 0:
            raise ValidationError({"factor": ["Money can only be multiplied by a non-negative integer"]})
        return Money(amount=self.amount * factor, currency=self.currency)

    def is_at_least(self, amount):
        return self.amount >= amount

    def __str__(self):
        return f"{self.amount} {self.currency}"
