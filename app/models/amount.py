from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation, localcontext
from typing import Annotated, Any, Iterable

from pydantic import AfterValidator
from pydantic_core import core_schema

from app.services.errors import InvalidAmount

TWO_PLACES = Decimal("0.01")
# Largest amount a user may enter; totals built from such amounts still fit
# ARITHMETIC_CONTEXT with room to spare.
MAX_AMOUNT = Decimal("999999999999.99")
ARITHMETIC_CONTEXT = Context(prec=60, rounding=ROUND_HALF_UP)


class Amount:
    """
    Money amount fixed to two decimal places.

    Values are always quantized with ROUND_HALF_UP on construction, so sums of
    many ledger rows never drift. Convert to float only for reporting.
    """

    __slots__ = ("value",)

    def __init__(self, value: Decimal | int | str) -> None:
        if not isinstance(value, Decimal):
            if isinstance(value, (bool, float)):
                raise TypeError(f"Amount needs Decimal, int or str, got {type(value).__name__}")
            try:
                value = Decimal(str(value))
            except (InvalidOperation, ValueError) as e:
                raise InvalidAmount(f"Invalid amount: {value!r}") from e
        if not value.is_finite():
            raise InvalidAmount(f"Invalid amount: {value!r}")
        try:
            with localcontext(ARITHMETIC_CONTEXT):
                quantized = value.quantize(TWO_PLACES)
        except InvalidOperation as e:
            raise InvalidAmount(f"Amount out of range: {value!r}") from e
        object.__setattr__(self, "value", quantized)

    def __setattr__(self, name, value):
        raise AttributeError("Amount is immutable")

    def __reduce__(self):
        return (Amount, (str(self),))

    @classmethod
    def parse(cls, text: Any, *, positive: bool = False) -> Amount:
        """
        Parse an amount.

        ``positive`` is for amounts a user enters: it rejects zero, negative
        values and anything above ``MAX_AMOUNT``. Derived totals may be
        negative or larger and are parsed without it.
        """
        if isinstance(text, Amount):
            amount = text
        elif isinstance(text, bool) or text is None:
            raise InvalidAmount(f"Invalid amount: {text!r}")
        else:
            raw = repr(text) if isinstance(text, float) else str(text).strip()
            try:
                amount = cls(Decimal(raw))
            except InvalidOperation as e:
                raise InvalidAmount(f"Invalid amount: {text!r}") from e
        if positive:
            require_positive(amount)
        return amount

    @classmethod
    def zero(cls) -> Amount:
        return cls(Decimal("0"))

    @classmethod
    def total(cls, amounts: Iterable[Amount]) -> Amount:
        result = cls.zero()
        for amount in amounts:
            result = result + amount
        return result

    @property
    def is_negative(self) -> bool:
        return self.value < 0

    def __add__(self, other: Amount) -> Amount:
        if not isinstance(other, Amount):
            return NotImplemented
        with localcontext(ARITHMETIC_CONTEXT):
            return Amount(self.value + other.value)

    def __sub__(self, other: Amount) -> Amount:
        if not isinstance(other, Amount):
            return NotImplemented
        with localcontext(ARITHMETIC_CONTEXT):
            return Amount(self.value - other.value)

    def __mul__(self, factor: int) -> Amount:
        if isinstance(factor, bool) or not isinstance(factor, int):
            return NotImplemented
        with localcontext(ARITHMETIC_CONTEXT):
            return Amount(self.value * factor)

    def __rmul__(self, factor: int) -> Amount:
        return self.__mul__(factor)

    def __neg__(self) -> Amount:
        return Amount(-self.value)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __lt__(self, other: Amount) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: Amount) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other: Amount) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other: Amount) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.value >= other.value

    def __float__(self) -> float:
        return float(self.value)

    def __str__(self) -> str:
        return format(self.value, "f")

    def __repr__(self) -> str:
        return f"Amount('{self}')"

    # pydantic integration: accept str/int/float/Decimal, keep Amount in python
    # mode and dump as "1234.50" in JSON
    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls.parse,
            serialization=core_schema.plain_serializer_function_ser_schema(str, when_used="json"),
        )

    @classmethod
    def __get_pydantic_json_schema__(cls, schema, handler) -> dict:
        return {"type": "string", "format": "decimal", "examples": ["1000.00"]}


def require_positive(amount: Amount) -> Amount:
    if amount.value <= 0:
        raise InvalidAmount(f"Amount must be greater than zero, got {amount}")
    if amount.value > MAX_AMOUNT:
        raise InvalidAmount(f"Amount exceeds the maximum of {MAX_AMOUNT}, got {amount}")
    return amount


PositiveAmount = Annotated[Amount, AfterValidator(require_positive)]
