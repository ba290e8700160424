"""
Checkout drafts — the typed shape of a checkout request.

Pydantic checks the shape and reports every violation in one pass;
``validate_checkout`` turns those into a single shop ``ValidationError``:

    match validate_checkout(user_id, {"customerName": "", "items": []}):
        case Ok(request): ...
        case Error(e): e.details   # one entry per violation
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Annotated, Any

import pydantic
from kungfu import Ok, Error, Result
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

from shopflow.db import MAX_DB_INT
from shopflow.domain import CheckoutLine, CheckoutRequest, PaymentMethod
from shopflow.errors import ValidationError

Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Quantity = Annotated[StrictInt, Field(gt=0, le=MAX_DB_INT)]


class _Draft(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ItemDraft(_Draft):
    product_id: StrictInt
    quantity: Quantity
    size: Text
    color: Text


class CheckoutDraft(_Draft):
    """A checkout request as the client sends it (camelCase on the wire)."""

    customer_name: Text
    customer_phone: Text
    to_address: Text
    payment_method: PaymentMethod
    items: list[ItemDraft] = Field(min_length=1)
    note: str | None = None
    is_return: StrictBool = False

    @field_validator("payment_method", mode="before")
    @classmethod
    def accept_legacy_alias(cls, raw: Any) -> Any:
        return PaymentMethod.parse(raw) or raw

    def to_request(self, user_id: str) -> CheckoutRequest:
        """Lines for the same variation are merged so stock is checked once per variation."""
        merged: dict[tuple[int, str, str], int] = {}
        for item in self.items:
            key = (item.product_id, item.size, item.color)
            merged[key] = merged.get(key, 0) + item.quantity

        return CheckoutRequest(
            user_id=user_id,
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            to_address=self.to_address,
            payment_method=self.payment_method,
            lines=tuple(
                CheckoutLine(product_id=product_id, quantity=quantity, size=size, color=color)
                for (product_id, size, color), quantity in merged.items()
            ),
            note=self.note or "",
            is_return=self.is_return,
        )


def describe_errors(errors: Sequence[Mapping[str, Any]]) -> list[str]:
    """``items.0.quantity: Input should be greater than 0`` per pydantic error."""
    problems = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] == "body":
            loc = loc[1:]
        message = error.get("msg", "invalid")
        problems.append(f"{'.'.join(loc)}: {message}" if loc else message)
    return problems


def validate_checkout(user_id: str, payload: object) -> Result[CheckoutRequest, ValidationError]:
    if isinstance(payload, CheckoutDraft):
        return Ok(payload.to_request(user_id))
    try:
        draft = CheckoutDraft.model_validate(payload)
    except pydantic.ValidationError as e:
        return Error(ValidationError(*describe_errors(e.errors())))
    return Ok(draft.to_request(user_id))


__all__ = ("ItemDraft", "CheckoutDraft", "describe_errors", "validate_checkout")
