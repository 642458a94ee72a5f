"""Booking domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import Booking, Payment, Quotation
from .policy import QUOTATION_STATUSES


class BookingCreate(BaseModel):
    """Booking request as submitted by the booking form.

    Presence of the required fields is checked by BookingService in a fixed order,
    so everything is optional at the schema level.
    """

    Customer_ID: Optional[int] = None
    Service_ID: Optional[int] = None
    Date: Optional[str] = None
    Time: Optional[str] = None
    Special_Instructions: Optional[str] = None
    Duration: Optional[int] = None
    Address_Street: Optional[str] = None
    Address_City: Optional[str] = None
    Address_State: Optional[str] = None
    Address_Postal_Code: Optional[str] = None
    Property_Type: Optional[str] = None
    Property_Size: Optional[str] = None
    Cleaning_Frequency: Optional[str] = None

    @field_validator("Property_Size", mode="before")
    @classmethod
    def coerce_property_size(cls, v):
        # The form sends square footage as a number
        if isinstance(v, (int, float)):
            return str(v)
        return v


class BookingPrecheck(BaseModel):
    """Pre-submit check payload (same fields as the form, plus the contact email)"""

    Service_ID: Optional[int] = None
    Date: Optional[str] = None
    Time: Optional[str] = None
    Address_Street: Optional[str] = None
    Address_City: Optional[str] = None
    Address_State: Optional[str] = None
    Address_Postal_Code: Optional[str] = None
    Email: Optional[str] = None


class BookingStatusUpdate(BaseModel):
    Status: str


class QuoteCreate(BaseModel):
    Amount: float
    Notes: Optional[str] = None

    @field_validator("Amount")
    @classmethod
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError("Amount must be greater than 0")
        return v


class QuotationStatusUpdate(BaseModel):
    Status: str

    @field_validator("Status")
    @classmethod
    def validate_status(cls, v):
        if v not in QUOTATION_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(QUOTATION_STATUSES)}")
        return v


class PaymentCreate(BaseModel):
    Amount: float
    Method: str = "cash"
    Date: Optional[str] = None
    Status: str = "completed"

    @field_validator("Amount")
    @classmethod
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError("Amount must be greater than 0")
        return v

    @field_validator("Method")
    @classmethod
    def validate_method(cls, v):
        if v not in ("cash", "card", "bank_transfer"):
            raise ValueError("Method must be one of: cash, card, bank_transfer")
        return v

    @field_validator("Status")
    @classmethod
    def validate_status(cls, v):
        if v not in ("pending", "completed", "refunded"):
            raise ValueError("Status must be one of: pending, completed, refunded")
        return v


class CustomerSummary(BaseModel):
    ID: int
    Full_Name: str
    Email: str
    Phone: Optional[str] = None


class ServiceSummary(BaseModel):
    ID: int
    Name: str
    Duration: Optional[int] = None
    Category: Optional[str] = None


def _customer_summary(customer) -> Optional[CustomerSummary]:
    if not customer:
        return None
    return CustomerSummary(ID=customer.id, Full_Name=customer.full_name, Email=customer.email, Phone=customer.phone)


def _service_summary(service) -> Optional[ServiceSummary]:
    if not service:
        return None
    return ServiceSummary(ID=service.id, Name=service.name, Duration=service.duration, Category=service.category)


class BookingResponse(BaseModel):
    """Booking with its customer and service summaries"""

    ID: int
    Customer_ID: int
    Service_ID: int
    Date: str
    Time: str
    Duration: Optional[int] = None
    Address: str
    Special_Instructions: Optional[str] = None
    Property_Type: Optional[str] = None
    Property_Size: Optional[str] = None
    Cleaning_Frequency: Optional[str] = None
    Status: str
    Quoted_Amount: Optional[float] = None
    Status_Updated_At: Optional[datetime] = None
    Created_At: Optional[datetime] = None
    Customer: Optional[CustomerSummary] = None
    Service: Optional[ServiceSummary] = None

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(
            ID=booking.id,
            Customer_ID=booking.customer_id,
            Service_ID=booking.service_id,
            Date=booking.date.isoformat(),
            Time=booking.time,
            Duration=booking.duration,
            Address=booking.address,
            Special_Instructions=booking.special_instructions,
            Property_Type=booking.property_type,
            Property_Size=booking.property_size,
            Cleaning_Frequency=booking.cleaning_frequency,
            Status=booking.status,
            Quoted_Amount=float(booking.quoted_amount) if booking.quoted_amount is not None else None,
            Status_Updated_At=booking.status_updated_at,
            Created_At=booking.created_at,
            Customer=_customer_summary(booking.customer),
            Service=_service_summary(booking.service),
        )


class PaymentResponse(BaseModel):
    ID: int
    Booking_ID: int
    Date: str
    Amount: float
    Method: str
    Status: str
    Created_At: Optional[datetime] = None

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            ID=payment.id,
            Booking_ID=payment.booking_id,
            Date=payment.date.isoformat(),
            Amount=float(payment.amount),
            Method=payment.method,
            Status=payment.status,
            Created_At=payment.created_at,
        )


class QuotationResponse(BaseModel):
    ID: int
    Booking_ID: int
    Customer_ID: int
    Service_ID: int
    Date: str
    Amount: float
    Status: str
    Notes: Optional[str] = None
    Created_At: Optional[datetime] = None
    Customer: Optional[CustomerSummary] = None
    Service: Optional[ServiceSummary] = None

    @classmethod
    def from_quotation(cls, quotation: Quotation) -> "QuotationResponse":
        return cls(
            ID=quotation.id,
            Booking_ID=quotation.booking_id,
            Customer_ID=quotation.customer_id,
            Service_ID=quotation.service_id,
            Date=quotation.date.isoformat(),
            Amount=float(quotation.amount),
            Status=quotation.status,
            Notes=quotation.notes,
            Created_At=quotation.created_at,
            Customer=_customer_summary(quotation.customer),
            Service=_service_summary(quotation.service),
        )
