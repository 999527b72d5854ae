"""Invoice line item models.

Money is Decimal throughout. A line's ``amount`` is rounded to cents once,
when the line is built; totals sum those rounded amounts exactly.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Decimal from a Decimal, int, float or numeric string. Floats go through str() to avoid binary noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value: Decimal) -> Decimal:
    """Round half-up to cents."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_amount(price: Decimal, quantity: int, discount: Decimal) -> Decimal:
    """Discounted line amount: round2(price * quantity * (1 - discount/100))."""
    return round2(to_decimal(price) * quantity * (1 - to_decimal(discount) / HUNDRED))


class LineItem(BaseModel):
    """One row of an invoice: a quantity of a priced, optionally discounted product."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)
    quantity: int = Field(1, ge=1)
    price: Decimal = Field(..., ge=0)
    discount: Decimal = Field(Decimal("0"), ge=0, le=100)
    amount: Decimal = Field(..., ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def fill_missing_amount(cls, data):
        """Compute amount from price, quantity and discount when the payload omits it."""
        if not isinstance(data, dict) or data.get("amount") is not None or data.get("price") is None:
            return data
        try:
            amount = line_amount(
                to_decimal(data["price"]),
                int(data.get("quantity") or 1),
                to_decimal(data.get("discount") or 0),
            )
        except (InvalidOperation, ValueError, TypeError):
            # Malformed numbers are reported by the field validators
            return data
        return {**data, "amount": amount}

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @classmethod
    def build(
        cls,
        name: str,
        price: Decimal,
        quantity: int = 1,
        discount: Decimal = Decimal("0"),
        description: str | None = None,
        item_id: str | None = None,
    ) -> "LineItem":
        """Build a line with its amount computed from price, quantity and discount."""
        return cls(
            id=item_id or uuid4().hex,
            name=name,
            description=description,
            quantity=quantity,
            price=to_decimal(price),
            discount=to_decimal(discount),
            amount=line_amount(price, quantity, discount),
        )

    @classmethod
    def from_product(cls, product, quantity: int = 1) -> "LineItem":
        """Line for a catalog product. Price and discount are copied at selection time."""
        return cls.build(
            name=product.name,
            description=product.description or None,
            price=product.price,
            discount=product.discount,
            quantity=quantity,
        )

    def with_quantity(self, quantity: int) -> "LineItem":
        """Same line at a new quantity, amount recomputed."""
        return LineItem.build(
            name=self.name,
            description=self.description,
            price=self.price,
            discount=self.discount,
            quantity=quantity,
            item_id=self.id,
        )

    @property
    def display_unit_price(self) -> Decimal:
        """
        Unit price shown on the document, derived back from the stored amount.

        ``amount / quantity / (1 - discount/100)`` keeps the printed price
        reconciled with the printed amount. At a 100% discount the formula
        divides by zero, so the stored unit price is shown instead.
        """
        factor = 1 - self.discount / HUNDRED
        if factor <= 0:
            return round2(self.price)
        return round2(self.amount / self.quantity / factor)

    def recomputed(self) -> "LineItem":
        """This line with ``amount`` re-derived, so the stored amount always honours the formula."""
        expected = line_amount(self.price, self.quantity, self.discount)
        if expected == self.amount:
            return self
        return self.model_copy(update={"amount": expected})
