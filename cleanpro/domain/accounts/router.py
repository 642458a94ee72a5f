"""Account routers - /api/auth, /api/customer and /api/admin account endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_customer, get_current_principal, require_main_admin
from ...database import get_db
from ...models import Admin, Customer
from ...rate_limiter import (
    first_login_rate_limiter,
    login_rate_limiter,
    password_reset_rate_limiter,
    register_rate_limiter,
)
from .schemas import (
    AdminCreate,
    AdminCustomerUpdate,
    AdminOut,
    AdminProfileUpdate,
    AdminUpdate,
    ChangePasswordRequest,
    CustomerBookingOut,
    CustomerOut,
    CustomerProfileUpdate,
    FirstLoginRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from .service import AccountService

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/api/auth", tags=["Auth"])
customer_router = APIRouter(prefix="/api/customer", tags=["Customer"])
admin_router = APIRouter(prefix="/api/admin", tags=["Admin Accounts"])

__all__ = ["auth_router", "customer_router", "admin_router"]


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    """Dependency injection for AccountService"""
    return AccountService(db)


# ============================================================================
# AUTH
# ============================================================================


@auth_router.post("/register", status_code=201, dependencies=[Depends(register_rate_limiter)])
async def register(data: RegisterRequest, service: AccountService = Depends(get_account_service)):
    return service.register(data)


@auth_router.post("/login", dependencies=[Depends(login_rate_limiter)])
async def login(data: LoginRequest, service: AccountService = Depends(get_account_service)):
    """Log in as a customer or an admin"""
    return service.login(data)


@auth_router.get("/verify")
async def verify_token(
    principal=Depends(get_current_principal),
    service: AccountService = Depends(get_account_service),
):
    role, account = principal
    return {"valid": True, **service.describe(role, account)}


@auth_router.get("/profile")
async def get_profile(
    principal=Depends(get_current_principal),
    service: AccountService = Depends(get_account_service),
):
    role, account = principal
    return service.describe(role, account)


@auth_router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    principal=Depends(get_current_principal),
    service: AccountService = Depends(get_account_service),
):
    role, account = principal
    return service.change_password(role, account, data)


@auth_router.post("/logout")
async def logout(principal=Depends(get_current_principal)):
    # Tokens are stateless; the client discards its copy
    role, account = principal
    logger.info(f"👋 {role} {account.id} logged out")
    return {"success": True, "message": "Logged out successfully."}


@auth_router.post("/forgot-password", dependencies=[Depends(password_reset_rate_limiter)])
async def forgot_password(data: ForgotPasswordRequest, service: AccountService = Depends(get_account_service)):
    return await service.forgot_password(data.Email)


@auth_router.post("/reset-password")
async def reset_password(data: ResetPasswordRequest, service: AccountService = Depends(get_account_service)):
    return service.reset_password(data)


# ============================================================================
# CUSTOMER PROFILE
# ============================================================================


@customer_router.get("/profile")
async def get_customer_profile(current_customer: Customer = Depends(get_current_customer)):
    return {"success": True, "customer": CustomerOut.from_customer(current_customer).model_dump(mode="json")}


@customer_router.put("/profile")
async def update_customer_profile(
    data: CustomerProfileUpdate,
    current_customer: Customer = Depends(get_current_customer),
    service: AccountService = Depends(get_account_service),
):
    customer = service.update_customer_profile(current_customer, data)
    return {
        "success": True,
        "message": "Profile updated successfully.",
        "customer": CustomerOut.from_customer(customer).model_dump(mode="json"),
    }


# ============================================================================
# ADMIN FIRST LOGIN & PROFILE
# ============================================================================


@admin_router.post("/first-login", dependencies=[Depends(first_login_rate_limiter)])
async def first_login(data: FirstLoginRequest, service: AccountService = Depends(get_account_service)):
    """Set the initial password with the emailed one-time code"""
    return service.complete_first_login(data)


@admin_router.get("/password-status")
async def password_status(
    current_admin: Admin = Depends(get_current_admin),
    service: AccountService = Depends(get_account_service),
):
    return service.password_status(current_admin)


@admin_router.post("/reset-password")
async def admin_reset_password(
    data: ChangePasswordRequest,
    current_admin: Admin = Depends(get_current_admin),
    service: AccountService = Depends(get_account_service),
):
    return service.change_password("admin", current_admin, data)


@admin_router.get("/profile")
async def get_admin_profile(current_admin: Admin = Depends(get_current_admin)):
    return {"success": True, "admin": AdminOut.from_admin(current_admin).model_dump(mode="json")}


@admin_router.put("/profile")
async def update_admin_profile(
    data: AdminProfileUpdate,
    current_admin: Admin = Depends(get_current_admin),
    service: AccountService = Depends(get_account_service),
):
    admin = service.update_admin_profile(current_admin, data)
    return {
        "success": True,
        "message": "Profile updated successfully",
        "admin": AdminOut.from_admin(admin).model_dump(mode="json"),
    }


# ============================================================================
# ADMIN MANAGEMENT
# ============================================================================


@admin_router.post("/admins", status_code=201)
async def create_admin(
    data: AdminCreate,
    current_admin: Admin = Depends(require_main_admin),
    service: AccountService = Depends(get_account_service),
):
    """Create an admin and email them a one-time setup code"""
    return await service.create_admin(data, current_admin)


@admin_router.get("/admins")
async def list_admins(
    _admin: Admin = Depends(get_current_admin),
    service: AccountService = Depends(get_account_service),
):
    admins = service.get_admins()
    return {"success": True, "admins": [AdminOut.from_admin(a).model_dump(mode="json") for a in admins]}


@admin_router.get("/admins/{admin_id}")
async def get_admin(
    admin_id: int,
    _admin: Admin = Depends(get_current_admin),
    service: AccountService = Depends(get_account_service),
):
    return {"success": True, "admin": AdminOut.from_admin(service.get_admin(admin_id)).model_dump(mode="json")}


@admin_router.put("/admins/{admin_id}")
async def update_admin(
    admin_id: int,
    data: AdminUpdate,
    current_admin: Admin = Depends(require_main_admin),
    service: AccountService = Depends(get_account_service),
):
    admin = service.update_admin(admin_id, data, current_admin)
    return {
        "success": True,
        "message": "Admin updated successfully",
        "admin": AdminOut.from_admin(admin).model_dump(mode="json"),
    }


@admin_router.delete("/admins/{admin_id}")
async def delete_admin(
    admin_id: int,
    current_admin: Admin = Depends(require_main_admin),
    service: AccountService = Depends(get_account_service),
):
    return service.delete_admin(admin_id, current_admin)


@admin_router.post("/admins/{admin_id}/resend-otp")
async def resend_otp(
    admin_id: int,
    _admin: Admin = Depends(require_main_admin),
    service: AccountService = Depends(get_account_service),
):
    return await service.resend_otp(admin_id)


# ============================================================================
# CUSTOMER MANAGEMENT
# ============================================================================


@admin_router.get("/customers")
async def list_customers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    _admin: Admin = Depends(get_current_admin),
    service: AccountService = Depends(get_account_service),
):
    """Customers, newest first, searchable by name, email or phone"""
    result = service.list_customers(page, limit, search)
    return {
        "success": True,
        "customers": [CustomerOut.from_customer(c).model_dump(mode="json") for c in result["customers"]],
        "pagination": result["pagination"],
    }


@admin_router.get("/customers/{customer_id}")
async def get_customer(
    customer_id: int,
    _admin: Admin = Depends(get_current_admin),
    service: AccountService = Depends(get_account_service),
):
    details = service.get_customer_details(customer_id)
    return {
        "success": True,
        "customer": CustomerOut.from_customer(details["customer"]).model_dump(mode="json"),
        "bookings": [CustomerBookingOut.from_booking(b).model_dump(mode="json") for b in details["bookings"]],
    }


@admin_router.put("/customers/{customer_id}")
async def update_customer(
    customer_id: int,
    data: AdminCustomerUpdate,
    _admin: Admin = Depends(get_current_admin),
    service: AccountService = Depends(get_account_service),
):
    customer = service.update_customer(customer_id, data)
    return {
        "success": True,
        "message": "Customer updated successfully",
        "customer": CustomerOut.from_customer(customer).model_dump(mode="json"),
    }
