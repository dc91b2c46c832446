"""
Money value object for handling monetary amounts with currency.

This value object ensures type safety and provides clear semantics
for monetary operations in the domain.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """
    Immutable value object representing a monetary amount with currency.

    Attributes:
        amount: The monetary amount as Decimal, kept exactly as received
        currency: Currency code (e.g., "USD")

    Example:
        >>> price = Money.from_string("29.99")
        >>> price.divide(2).to_shopify()
        '15.00'
    """

    amount: Decimal
    currency: str = "USD"

    def __post_init__(self) -> None:
        """Validate money object after initialization."""
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))

        if not self.amount.is_finite():
            raise ValueError(f"Money amount must be finite: {self.amount}")

        if self.amount < 0:
            raise ValueError(f"Money amount cannot be negative: {self.amount}")

        if not self.currency or len(self.currency) != 3:
            raise ValueError(f"Invalid currency code: {self.currency}")

    def divide(self, parts: int) -> "Money":
        """
        Divide the amount evenly into ``parts`` shares.

        The exact quotient is rounded to cents once (half up). Shares are
        rounded independently, so ``parts`` shares may not add back up to the
        original amount (up to one cent per share).
        """
        if isinstance(parts, bool) or not isinstance(parts, int) or parts <= 0:
            raise ValueError(f"Cannot divide Money into {parts} parts")

        share = (self.amount / Decimal(parts)).quantize(CENT, rounding=ROUND_HALF_UP)
        return Money(amount=share, currency=self.currency)

    def to_shopify(self) -> str:
        """Decimal string as the Shopify REST API expects it ("14.99")."""
        return str(self.amount.quantize(CENT, rounding=ROUND_HALF_UP))

    def __str__(self) -> str:
        """String representation of Money."""
        return f"{self.currency} {self.to_shopify()}"

    @classmethod
    def from_string(cls, amount: str, currency: str = "USD") -> "Money":
        """Create Money from string representation."""
        try:
            return cls(amount=Decimal(str(amount).strip()), currency=currency)
        except InvalidOperation as e:
            raise ValueError(f"Invalid money amount: {amount!r}") from e
