from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class LineItem(BaseModel):
    item_id: UUID = Field(..., alias="itemId")
    quantity: int = Field(..., ge=0)
    price: int = Field(..., ge=0)

    model_config = ConfigDict(populate_by_name=True)


class Order(BaseModel):
    order_id: int = Field(..., alias="orderId", gt=0)
    customer_id: UUID = Field(..., alias="customerId")
    line_items: List[LineItem] = Field(default_factory=list, alias="lineItems")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    shipped_at: Optional[datetime] = Field(None, alias="shippedAt")
    completed_at: Optional[datetime] = Field(None, alias="completedAt")

    model_config = ConfigDict(populate_by_name=True)
