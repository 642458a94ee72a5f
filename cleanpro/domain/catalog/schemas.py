"""Catalog schemas - services and products"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import Product, Service
from ...storage import media_url


def _required_name(v):
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Name is required")
    return v


class ServiceCreate(BaseModel):
    Name: str
    Description: Optional[str] = None
    Duration: int = 60
    Category: Optional[str] = None
    Is_Available: bool = True

    @field_validator("Name")
    @classmethod
    def check_name(cls, v):
        return _required_name(v)

    @field_validator("Duration")
    @classmethod
    def check_duration(cls, v):
        if v <= 0:
            raise ValueError("Duration must be a positive number of minutes")
        return v


class ServiceUpdate(BaseModel):
    Name: Optional[str] = None
    Description: Optional[str] = None
    Duration: Optional[int] = None
    Category: Optional[str] = None
    Is_Available: Optional[bool] = None

    @field_validator("Name")
    @classmethod
    def check_name(cls, v):
        return _required_name(v)

    @field_validator("Duration")
    @classmethod
    def check_duration(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Duration must be a positive number of minutes")
        return v


class ProductCreate(BaseModel):
    Name: str
    Description: Optional[str] = None
    Price: float
    Stock_Quantity: int = 0
    Category: Optional[str] = None
    Is_Available: bool = True

    @field_validator("Name")
    @classmethod
    def check_name(cls, v):
        return _required_name(v)

    @field_validator("Price")
    @classmethod
    def check_price(cls, v):
        if v < 0:
            raise ValueError("Price cannot be negative")
        return v

    @field_validator("Stock_Quantity")
    @classmethod
    def check_stock(cls, v):
        if v < 0:
            raise ValueError("Stock quantity cannot be negative")
        return v


class ProductUpdate(BaseModel):
    Name: Optional[str] = None
    Description: Optional[str] = None
    Price: Optional[float] = None
    Stock_Quantity: Optional[int] = None
    Category: Optional[str] = None
    Is_Available: Optional[bool] = None

    @field_validator("Name")
    @classmethod
    def check_name(cls, v):
        return _required_name(v)

    @field_validator("Price")
    @classmethod
    def check_price(cls, v):
        if v is not None and v < 0:
            raise ValueError("Price cannot be negative")
        return v

    @field_validator("Stock_Quantity")
    @classmethod
    def check_stock(cls, v):
        if v is not None and v < 0:
            raise ValueError("Stock quantity cannot be negative")
        return v


class AvailabilityUpdate(BaseModel):
    Is_Available: bool


class ServiceOut(BaseModel):
    ID: int
    Name: str
    Description: Optional[str] = None
    Duration: int
    Category: Optional[str] = None
    Is_Available: bool
    Image_URL: Optional[str] = None
    Created_At: Optional[datetime] = None

    @classmethod
    def from_service(cls, service: Service) -> "ServiceOut":
        return cls(
            ID=service.id,
            Name=service.name,
            Description=service.description,
            Duration=service.duration,
            Category=service.category,
            Is_Available=service.is_available,
            Image_URL=media_url(service.image_key),
            Created_At=service.created_at,
        )


class ProductOut(BaseModel):
    ID: int
    Name: str
    Description: Optional[str] = None
    Price: float
    Stock_Quantity: int
    Category: Optional[str] = None
    Is_Available: bool
    Image_URL: Optional[str] = None
    Created_At: Optional[datetime] = None

    @classmethod
    def from_product(cls, product: Product) -> "ProductOut":
        return cls(
            ID=product.id,
            Name=product.name,
            Description=product.description,
            Price=float(product.price),
            Stock_Quantity=product.stock_quantity,
            Category=product.category,
            Is_Available=product.is_available,
            Image_URL=media_url(product.image_key),
            Created_At=product.created_at,
        )
