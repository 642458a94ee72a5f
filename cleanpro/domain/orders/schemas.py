"""Order schemas - cart checkout"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import Order


class OrderItem(BaseModel):
    Product_ID: int
    Quantity: int = 1

    @field_validator("Quantity")
    @classmethod
    def check_quantity(cls, v):
        if v < 1:
            raise ValueError("Quantity must be at least 1")
        return v


class OrderCreate(BaseModel):
    items: list[OrderItem]

    @field_validator("items")
    @classmethod
    def check_items(cls, v):
        if not v:
            raise ValueError("Your cart is empty")
        return v


class OrderOut(BaseModel):
    ID: int
    Customer_ID: int
    Product_ID: int
    Product_Name: Optional[str] = None
    Quantity: int
    Unit_Price: float
    Total: float
    Date: str
    Status: str
    Created_At: Optional[datetime] = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderOut":
        return cls(
            ID=order.id,
            Customer_ID=order.customer_id,
            Product_ID=order.product_id,
            Product_Name=order.product.name if order.product else None,
            Quantity=order.quantity,
            Unit_Price=float(order.unit_price),
            Total=float(order.total),
            Date=order.date.isoformat(),
            Status=order.status,
            Created_At=order.created_at,
        )
