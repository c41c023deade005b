from enum import Enum
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from libs.redis_common.models import LineItem


class OrderStatusUpdate(str, Enum):
    SHIPPED = "shipped"
    COMPLETED = "completed"


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: int = Field(..., alias="orderId", gt=0)
    customer_id: UUID = Field(..., alias="customerId")
    line_items: List[LineItem] = Field(..., alias="lineItems")


class UpdateOrderRequest(BaseModel):
    status: OrderStatusUpdate
