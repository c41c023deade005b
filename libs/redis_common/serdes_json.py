from __future__ import annotations

import json
from typing import Union

from pydantic import ValidationError

from .models import Order


def serialize_order(order: Order) -> str:
    """
    Converts an Order to its JSON value for Redis, keyed by field alias.
    """
    try:
        return order.model_dump_json(by_alias=True)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Order {order.order_id} could not be encoded: {e}") from e


def deserialize_order(raw: Union[str, bytes, bytearray]) -> Order:
    """
    Converts a stored Redis value back into an Order.
    """
    try:
        data = json.loads(raw)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid JSON order payload: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Expected JSON object (dict), got: {type(data).__name__}")

    try:
        return Order.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Order validation failed: {e}") from e
