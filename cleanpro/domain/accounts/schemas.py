"""Account schemas - customers, admins and authentication payloads"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import Admin, Booking, Customer
from ...shared.validators import validate_email, validate_full_name, validate_phone

CUSTOMER_MIN_PASSWORD_LENGTH = 6
ADMIN_MIN_PASSWORD_LENGTH = 8


class RegisterRequest(BaseModel):
    Full_Name: str
    Email: str
    Password: str
    Phone: Optional[str] = None
    Address: Optional[str] = None

    @field_validator("Full_Name")
    @classmethod
    def check_name(cls, v):
        return validate_full_name(v)

    @field_validator("Email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("Phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("Password")
    @classmethod
    def check_password(cls, v):
        if len(v) < CUSTOMER_MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {CUSTOMER_MIN_PASSWORD_LENGTH} characters long")
        return v


class LoginRequest(BaseModel):
    Email: str
    Password: str

    @field_validator("Email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword: str


class ForgotPasswordRequest(BaseModel):
    Email: str

    @field_validator("Email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class ResetPasswordRequest(BaseModel):
    token: str
    newPassword: str


class CustomerProfileUpdate(BaseModel):
    Full_Name: Optional[str] = None
    Phone: Optional[str] = None
    Address: Optional[str] = None

    @field_validator("Full_Name")
    @classmethod
    def check_name(cls, v):
        return validate_full_name(v)

    @field_validator("Phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class AdminCustomerUpdate(BaseModel):
    """Back-office edit of a customer record"""

    Full_Name: Optional[str] = None
    Email: Optional[str] = None
    Phone: Optional[str] = None
    Address: Optional[str] = None
    Is_Active: Optional[bool] = None

    @field_validator("Full_Name")
    @classmethod
    def check_name(cls, v):
        return validate_full_name(v)

    @field_validator("Email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("Phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class AdminCreate(BaseModel):
    Name: str
    Email: str
    Phone: Optional[str] = None
    Role: str = "sub_admin"

    @field_validator("Name")
    @classmethod
    def check_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("Email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("Phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("Role")
    @classmethod
    def check_role(cls, v):
        if v not in ("main_admin", "sub_admin"):
            raise ValueError("Role must be main_admin or sub_admin")
        return v


class AdminUpdate(BaseModel):
    Name: Optional[str] = None
    Phone: Optional[str] = None
    Role: Optional[str] = None
    Is_Active: Optional[bool] = None

    @field_validator("Phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("Role")
    @classmethod
    def check_role(cls, v):
        if v is not None and v not in ("main_admin", "sub_admin"):
            raise ValueError("Role must be main_admin or sub_admin")
        return v


class AdminProfileUpdate(BaseModel):
    Name: Optional[str] = None
    Phone: Optional[str] = None

    @field_validator("Phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class FirstLoginRequest(BaseModel):
    Email: str
    OTP: str
    NewPassword: str

    @field_validator("Email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()

    @field_validator("OTP")
    @classmethod
    def check_otp(cls, v):
        v = v.strip()
        if not (len(v) == 6 and v.isdigit()):
            raise ValueError("OTP must be a 6-digit code")
        return v


class CustomerOut(BaseModel):
    ID: int
    Full_Name: str
    Email: str
    Phone: Optional[str] = None
    Address: Optional[str] = None
    Is_Active: bool = True
    Created_At: Optional[datetime] = None

    @classmethod
    def from_customer(cls, customer: Customer) -> "CustomerOut":
        return cls(
            ID=customer.id,
            Full_Name=customer.full_name,
            Email=customer.email,
            Phone=customer.phone,
            Address=customer.address,
            Is_Active=customer.is_active,
            Created_At=customer.created_at,
        )


class CustomerBookingOut(BaseModel):
    ID: int
    Service_ID: int
    Service_Name: Optional[str] = None
    Date: str
    Time: str
    Status: str
    Quoted_Amount: Optional[float] = None

    @classmethod
    def from_booking(cls, booking: Booking) -> "CustomerBookingOut":
        return cls(
            ID=booking.id,
            Service_ID=booking.service_id,
            Service_Name=booking.service.name if booking.service else None,
            Date=booking.date.isoformat(),
            Time=booking.time,
            Status=booking.status,
            Quoted_Amount=float(booking.quoted_amount) if booking.quoted_amount is not None else None,
        )


class AdminOut(BaseModel):
    ID: int
    Name: str
    Email: str
    Phone: Optional[str] = None
    Role: str
    First_Login: bool
    Is_Active: bool
    Last_Login: Optional[datetime] = None
    Created_At: Optional[datetime] = None

    @classmethod
    def from_admin(cls, admin: Admin) -> "AdminOut":
        return cls(
            ID=admin.id,
            Name=admin.name,
            Email=admin.email,
            Phone=admin.phone,
            Role=admin.role,
            First_Login=admin.first_login,
            Is_Active=admin.is_active,
            Last_Login=admin.last_login,
            Created_At=admin.created_at,
        )
