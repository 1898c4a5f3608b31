"""Value Object Money - representa un valor monetario con su moneda."""

from dataclasses import dataclass
from decimal import Decimal

# Monedas sin decimales en Stripe (el monto se envía tal cual)
ZERO_DECIMAL_CURRENCIES = frozenset({"JPY", "KRW", "VND"})


@dataclass(frozen=True)
class Money:
    """
    Value Object inmutable que representa un monto monetario.

    Attributes:
        amount: Monto decimal.
        currency_code: Código ISO 4217 de la moneda (ej: JPY, USD).
    """

    amount: Decimal
    currency_code: str

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))
        object.__setattr__(self, "currency_code", self.currency_code.upper())

        if len(self.currency_code) != 3:
            raise ValueError(f"currency_code must have 3 characters: {self.currency_code}")

        if self.amount < 0:
            raise ValueError(f"amount cannot be negative: {self.amount}")

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            raise TypeError(f"Cannot subtract {type(other)} from Money")
        if self.currency_code != other.currency_code:
            raise ValueError(
                f"Cannot subtract amounts in different currencies: "
                f"{self.currency_code} vs {other.currency_code}"
            )
        return Money(amount=self.amount - other.amount, currency_code=self.currency_code)

    def is_zero(self) -> bool:
        return self.amount == Decimal("0")

    def __str__(self) -> str:
        if self.is_zero_decimal:
            return f"{self.amount:.0f} {self.currency_code}"
        return f"{self.amount:.2f} {self.currency_code}"

    @property
    def is_zero_decimal(self) -> bool:
        return self.currency_code in ZERO_DECIMAL_CURRENCIES

    @classmethod
    def zero(cls, currency_code: str = "JPY") -> "Money":
        """Crea un Money con valor cero."""
        return cls(amount=Decimal("0"), currency_code=currency_code)

    @classmethod
    def from_minor_units(cls, units: int, currency_code: str) -> "Money":
        """Crea un Money desde la unidad mínima de Stripe."""
        if currency_code.upper() in ZERO_DECIMAL_CURRENCIES:
            return cls(amount=Decimal(units), currency_code=currency_code)
        return cls(amount=Decimal(units) / 100, currency_code=currency_code)

    def to_minor_units(self) -> int:
        """Convierte a la unidad mínima de Stripe (yenes enteros, centavos, ...)."""
        if self.is_zero_decimal:
            return int(self.amount)
        return int(self.amount * 100)
