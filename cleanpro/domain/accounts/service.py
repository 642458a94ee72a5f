"""Account service - registration, login, password flows and admin provisioning"""

import logging
import math
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ... import email_service
from ...config import ADMIN_OTP_TTL_SECONDS, FRONTEND_URL, LOCKOUT_MINUTES, MAX_LOGIN_ATTEMPTS
from ...models import Admin, Customer
from ...otp_store import OTPStore, get_otp_store
from ...security_utils import (
    check_password_strength,
    create_admin_token,
    create_customer_token,
    generate_otp,
    generate_password_reset_token,
    hash_password,
    mask_email,
    verify_password,
    verify_password_reset_token,
)
from ...shared.clock import utcnow
from .repository import Account, AccountRepository
from .schemas import (
    ADMIN_MIN_PASSWORD_LENGTH,
    CUSTOMER_MIN_PASSWORD_LENGTH,
    AdminCreate,
    AdminCustomerUpdate,
    AdminOut,
    AdminProfileUpdate,
    AdminUpdate,
    ChangePasswordRequest,
    CustomerOut,
    CustomerProfileUpdate,
    FirstLoginRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."
FORGOT_PASSWORD_RESPONSE = {
    "success": True,
    "message": "If an account exists for this email, a password reset link has been sent.",
}


def _check_new_password(password: str, role: str) -> None:
    """Customers need 6+ characters; admins need 8+ and a passing strength check"""
    if role == "admin":
        if len(password) < ADMIN_MIN_PASSWORD_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Password must be at least {ADMIN_MIN_PASSWORD_LENGTH} characters long.",
            )
        strength = check_password_strength(password)
        if not strength["is_valid"]:
            raise HTTPException(
                status_code=400,
                detail="Password is too weak: " + ", ".join(strength["feedback"]) + ".",
            )
    elif len(password) < CUSTOMER_MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"New password must be at least {CUSTOMER_MIN_PASSWORD_LENGTH} characters long.",
        )


class AccountService:
    """Service layer for customer and admin accounts"""

    def __init__(self, db: Session, otp_store: Optional[OTPStore] = None):
        self.db = db
        self.repo = AccountRepository()
        self.otp_store = otp_store or get_otp_store()

    # ========================================================================
    # AUTHENTICATION
    # ========================================================================

    def register(self, data: RegisterRequest) -> dict:
        if self.repo.get_customer_by_email(self.db, data.Email) or self.repo.get_admin_by_email(
            self.db, data.Email
        ):
            raise HTTPException(status_code=409, detail="An account with this email already exists.")

        try:
            customer = self.repo.create_customer(
                self.db,
                full_name=data.Full_Name,
                email=data.Email,
                password_hash=hash_password(data.Password),
                phone=data.Phone,
                address=(data.Address or "").strip() or None,
            )
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="An account with this email already exists.")

        logger.info(f"✅ Customer registered: {customer.id} ({mask_email(customer.email)})")
        return {
            "success": True,
            "message": "Registered successfully.",
            "token": create_customer_token(customer),
            "role": "customer",
            "user": CustomerOut.from_customer(customer).model_dump(mode="json"),
        }

    def _ensure_not_locked(self, account: Account) -> None:
        if account.locked_until and account.locked_until > utcnow():
            minutes = max(1, int((account.locked_until - utcnow()).total_seconds() // 60) + 1)
            raise HTTPException(
                status_code=423,
                detail=f"Account temporarily locked after too many failed attempts. Try again in {minutes} minutes.",
            )

    def _fail_login(self, account: Account) -> None:
        locked = self.repo.record_failed_login(self.db, account, MAX_LOGIN_ATTEMPTS, LOCKOUT_MINUTES)
        if locked:
            logger.warning(f"🔒 Account {mask_email(account.email)} locked for {LOCKOUT_MINUTES} minutes")
            raise HTTPException(
                status_code=423,
                detail=f"Too many failed attempts. Account locked for {LOCKOUT_MINUTES} minutes.",
            )
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

    def login(self, data: LoginRequest) -> dict:
        """One login for both account types; the customer table is checked first"""
        customer = self.repo.get_customer_by_email(self.db, data.Email)
        if customer:
            self._ensure_not_locked(customer)
            if not verify_password(data.Password, customer.password_hash):
                self._fail_login(customer)
            if not customer.is_active:
                raise HTTPException(status_code=403, detail="This account has been deactivated.")

            self.repo.record_successful_login(self.db, customer)
            logger.info(f"✅ Customer login: {customer.id}")
            return {
                "success": True,
                "message": "Login successful",
                "token": create_customer_token(customer),
                "role": "customer",
                "user": CustomerOut.from_customer(customer).model_dump(mode="json"),
            }

        admin = self.repo.get_admin_by_email(self.db, data.Email)
        if not admin:
            raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

        self._ensure_not_locked(admin)
        if not admin.is_active:
            raise HTTPException(status_code=403, detail="This account has been deactivated.")

        if admin.first_login:
            logger.info(f"🔄 First-login setup pending for admin {admin.id}")
            return {
                "success": True,
                "message": "Password setup required. Use the one-time code sent to your email.",
                "requiresPasswordReset": True,
                "role": "admin",
                "user": {"Email": admin.email, "Name": admin.name},
            }

        if not verify_password(data.Password, admin.password_hash):
            self._fail_login(admin)

        self.repo.record_successful_login(self.db, admin)
        logger.info(f"✅ Admin login: {admin.id} ({admin.role})")
        return {
            "success": True,
            "message": "Login successful",
            "token": create_admin_token(admin),
            "role": "admin",
            "user": AdminOut.from_admin(admin).model_dump(mode="json"),
        }

    def describe(self, role: str, account: Account) -> dict:
        user = (
            AdminOut.from_admin(account).model_dump(mode="json")
            if role == "admin"
            else CustomerOut.from_customer(account).model_dump(mode="json")
        )
        return {"success": True, "role": role, "user": user}

    def change_password(self, role: str, account: Account, data: ChangePasswordRequest) -> dict:
        if not data.currentPassword or not data.newPassword:
            raise HTTPException(status_code=400, detail="Current password and new password are required.")
        if not verify_password(data.currentPassword, account.password_hash):
            raise HTTPException(status_code=400, detail="Current password is incorrect.")
        _check_new_password(data.newPassword, role)

        self.repo.update_account(self.db, account, password_hash=hash_password(data.newPassword))
        logger.info(f"✅ Password changed for {role} {account.id}")
        return {"success": True, "message": "Password changed successfully."}

    async def forgot_password(self, email: str) -> dict:
        """Email a reset link. The response never reveals whether the email is registered."""
        account: Optional[Account] = self.repo.get_customer_by_email(self.db, email)
        account_type = "customer"
        if not account:
            account = self.repo.get_admin_by_email(self.db, email)
            account_type = "admin"

        if not account or not account.is_active or (account_type == "admin" and account.first_login):
            logger.info(f"📥 Password reset requested for unknown or ineligible email {mask_email(email)}")
            return FORGOT_PASSWORD_RESPONSE

        token = generate_password_reset_token(account.email, account_type)
        reset_link = f"{FRONTEND_URL}/reset-password?token={token}"
        name = account.full_name if account_type == "customer" else account.name
        try:
            await email_service.send_password_reset_email(account.email, name, reset_link)
        except email_service.EmailDeliveryError as e:
            logger.error(f"❌ Could not send password reset email to {mask_email(account.email)}: {e}")

        return FORGOT_PASSWORD_RESPONSE

    def reset_password(self, data: ResetPasswordRequest) -> dict:
        payload = verify_password_reset_token(data.token)
        if not payload:
            raise HTTPException(status_code=400, detail="Invalid or expired reset link. Please request a new one.")

        account_type = payload.get("type")
        if account_type == "admin":
            account = self.repo.get_admin_by_email(self.db, payload.get("email", ""))
        else:
            account = self.repo.get_customer_by_email(self.db, payload.get("email", ""))
        if not account:
            raise HTTPException(status_code=400, detail="Invalid or expired reset link. Please request a new one.")

        _check_new_password(data.newPassword, "admin" if account_type == "admin" else "customer")
        self.repo.update_account(
            self.db,
            account,
            password_hash=hash_password(data.newPassword),
            login_attempts=0,
            locked_until=None,
        )
        logger.info(f"✅ Password reset completed for {account_type} {account.id}")
        return {"success": True, "message": "Password has been reset. You can now log in."}

    # ========================================================================
    # CUSTOMER PROFILE
    # ========================================================================

    def update_customer_profile(self, customer: Customer, data: CustomerProfileUpdate) -> Customer:
        updates = {}
        if data.Full_Name is not None:
            updates["full_name"] = data.Full_Name
        if data.Phone is not None:
            updates["phone"] = data.Phone
        if data.Address is not None:
            updates["address"] = data.Address.strip() or None
        return self.repo.update_account(self.db, customer, **updates)

    # ========================================================================
    # CUSTOMER MANAGEMENT (back office)
    # ========================================================================

    def list_customers(self, page: int = 1, limit: int = 10, search: Optional[str] = None) -> dict:
        customers, total = self.repo.search_customers(self.db, page, limit, search)
        return {
            "customers": customers,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit) if total else 0,
            },
        }

    def get_customer(self, customer_id: int) -> Customer:
        customer = self.repo.get_customer_by_id(self.db, customer_id)
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found.")
        return customer

    def get_customer_details(self, customer_id: int) -> dict:
        """Customer with its ten most recent bookings"""
        customer = self.get_customer(customer_id)
        return {"customer": customer, "bookings": self.repo.get_recent_bookings(self.db, customer.id)}

    def update_customer(self, customer_id: int, data: AdminCustomerUpdate) -> Customer:
        customer = self.get_customer(customer_id)

        updates = {}
        if data.Email is not None and data.Email != customer.email:
            taken = self.repo.get_customer_by_email(self.db, data.Email) or self.repo.get_admin_by_email(
                self.db, data.Email
            )
            if taken:
                raise HTTPException(status_code=409, detail="Email is already in use by another account.")
            updates["email"] = data.Email
        if data.Full_Name is not None:
            updates["full_name"] = data.Full_Name
        if data.Phone is not None:
            updates["phone"] = data.Phone
        if data.Address is not None:
            updates["address"] = data.Address.strip() or None
        if data.Is_Active is not None:
            updates["is_active"] = data.Is_Active

        try:
            customer = self.repo.update_account(self.db, customer, **updates)
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="Email is already in use by another account.")
        logger.info(f"✅ Customer {customer.id} updated by back office ({', '.join(sorted(updates)) or 'no changes'})")
        return customer

    # ========================================================================
    # ADMIN PROVISIONING (one-time code bootstrap)
    # ========================================================================

    async def _issue_otp(self, admin: Admin) -> bool:
        """Store a fresh code for ``admin`` and email it. Returns whether the email went out."""
        otp = generate_otp()
        self.otp_store.save(admin.id, otp, ADMIN_OTP_TTL_SECONDS)
        try:
            await email_service.send_admin_invitation_email(admin.email, admin.name, otp, admin.role)
            return True
        except email_service.EmailDeliveryError as e:
            logger.warning(f"⚠️ Setup code for admin {admin.id} not emailed: {e}")
            return False

    async def create_admin(self, data: AdminCreate, created_by: Admin) -> dict:
        if self.repo.get_admin_by_email(self.db, data.Email) or self.repo.get_customer_by_email(
            self.db, data.Email
        ):
            raise HTTPException(status_code=409, detail="An account with this email already exists.")

        try:
            admin = self.repo.create_admin(
                self.db,
                name=data.Name,
                email=data.Email,
                phone=data.Phone,
                role=data.Role,
                first_login=True,
                password_hash=None,
                created_by=created_by.id,
            )
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="An account with this email already exists.")

        email_sent = await self._issue_otp(admin)
        logger.info(f"✅ Admin {admin.id} ({admin.role}) created by admin {created_by.id}")
        role_label = "Main admin" if admin.role == "main_admin" else "Sub-admin"
        return {
            "success": True,
            "message": f"{role_label} created successfully",
            "admin": AdminOut.from_admin(admin).model_dump(mode="json"),
            "emailSent": email_sent,
            "instructions": "A one-time setup code has been emailed to the new admin."
            if email_sent
            else "The setup email could not be sent. Use resend-otp once email delivery is working.",
        }

    async def resend_otp(self, admin_id: int) -> dict:
        admin = self.get_admin(admin_id)
        if not admin.first_login:
            raise HTTPException(status_code=400, detail="This admin has already set a password.")

        email_sent = await self._issue_otp(admin)
        return {
            "success": True,
            "message": "A new setup code has been issued." if email_sent else "A new setup code was created but could not be emailed.",
            "emailSent": email_sent,
        }

    def complete_first_login(self, data: FirstLoginRequest) -> dict:
        admin = self.repo.get_admin_by_email(self.db, data.Email)
        if not admin or not admin.first_login:
            raise HTTPException(status_code=400, detail="Admin not found or password already set.")
        if not admin.is_active:
            raise HTTPException(status_code=403, detail="This account has been deactivated.")

        # Validate the password first so a weak choice does not burn the code
        _check_new_password(data.NewPassword, "admin")

        if not self.otp_store.verify(admin.id, data.OTP):
            logger.warning(f"⚠️ Invalid or expired setup code for admin {admin.id}")
            raise HTTPException(status_code=400, detail="Invalid or expired one-time code.")

        admin = self.repo.update_account(
            self.db,
            admin,
            password_hash=hash_password(data.NewPassword),
            first_login=False,
            login_attempts=0,
            locked_until=None,
            last_login=utcnow(),
        )
        logger.info(f"✅ Admin {admin.id} completed first-login setup")
        return {
            "success": True,
            "message": "Password set successfully!",
            "token": create_admin_token(admin),
            "role": "admin",
            "user": AdminOut.from_admin(admin).model_dump(mode="json"),
        }

    def password_status(self, admin: Admin) -> dict:
        return {
            "success": True,
            "firstLogin": admin.first_login,
            "hasPassword": bool(admin.password_hash),
            "setupCodePending": admin.first_login and self.otp_store.exists(admin.id),
        }

    # ========================================================================
    # ADMIN MANAGEMENT
    # ========================================================================

    def get_admins(self) -> list[Admin]:
        return self.repo.get_admins(self.db)

    def get_admin(self, admin_id: int) -> Admin:
        admin = self.repo.get_admin_by_id(self.db, admin_id)
        if not admin:
            raise HTTPException(status_code=404, detail="Admin not found")
        return admin

    def update_admin(self, admin_id: int, data: AdminUpdate, acting_admin: Admin) -> Admin:
        admin = self.get_admin(admin_id)
        if admin.id == acting_admin.id and (data.Role not in (None, admin.role) or data.Is_Active is False):
            raise HTTPException(status_code=400, detail="You cannot change your own role or deactivate yourself.")

        updates = {}
        if data.Name is not None:
            updates["name"] = data.Name.strip()
        if data.Phone is not None:
            updates["phone"] = data.Phone
        if data.Role is not None:
            updates["role"] = data.Role
        if data.Is_Active is not None:
            updates["is_active"] = data.Is_Active
        return self.repo.update_account(self.db, admin, **updates)

    def update_admin_profile(self, admin: Admin, data: AdminProfileUpdate) -> Admin:
        updates = {}
        if data.Name is not None and data.Name.strip():
            updates["name"] = data.Name.strip()
        if data.Phone is not None:
            updates["phone"] = data.Phone
        return self.repo.update_account(self.db, admin, **updates)

    def delete_admin(self, admin_id: int, acting_admin: Admin) -> dict:
        admin = self.get_admin(admin_id)
        if admin.id == acting_admin.id:
            raise HTTPException(status_code=400, detail="You cannot delete your own account.")

        self.otp_store.delete(admin.id)
        self.repo.delete_admin(self.db, admin)
        logger.info(f"🗑️ Admin {admin_id} deleted by admin {acting_admin.id}")
        return {"success": True, "message": "Admin deleted successfully"}
