import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import Admin, Customer
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as 401 by the dependencies below
security = HTTPBearer(auto_error=False)


def _decode_credentials(credentials: Optional[HTTPAuthorizationCredentials]) -> dict:
    if not credentials:
        logger.warning("⚠️ No credentials provided")
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise HTTPException(status_code=401, detail="Invalid token format. Expected a valid JWT token.")

    payload = verify_jwt_token(token)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token. Please log in again.")
    return payload


def _subject_id(payload: dict) -> int:
    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token claims")


async def get_current_customer(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Customer:
    """Get the logged-in customer from a customer JWT"""
    payload = _decode_credentials(credentials)
    if payload.get("role") != "customer":
        raise HTTPException(status_code=403, detail="Customer account required.")

    customer = db.query(Customer).filter(Customer.id == _subject_id(payload)).first()
    if not customer or not customer.is_active:
        logger.warning(f"⚠️ Token for missing or inactive customer {payload.get('sub')}")
        raise HTTPException(status_code=401, detail="Account not found or deactivated.")

    logger.debug(f"✅ Customer authenticated: {customer.id}")
    return customer


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Admin:
    """Get the logged-in admin from an admin JWT"""
    payload = _decode_credentials(credentials)
    if payload.get("role") != "admin":
        logger.warning(f"⚠️ Non-admin token used on admin route (sub={payload.get('sub')})")
        raise HTTPException(status_code=403, detail="Admin access required.")

    admin = db.query(Admin).filter(Admin.id == _subject_id(payload)).first()
    if not admin or not admin.is_active:
        raise HTTPException(status_code=401, detail="Admin account not found or deactivated.")
    if admin.first_login:
        raise HTTPException(status_code=403, detail="Please complete your first-login password setup.")

    logger.debug(f"✅ Admin authenticated: {admin.id} ({admin.role})")
    return admin


async def require_main_admin(admin: Admin = Depends(get_current_admin)) -> Admin:
    """Only the main admin may manage other admins"""
    if admin.role != "main_admin":
        logger.warning(f"⚠️ Sub-admin {admin.id} attempted a main-admin action")
        raise HTTPException(status_code=403, detail="Only the main admin can perform this action.")
    return admin


async def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[dict]:
    """
    Decode the bearer token when one is sent; anonymous callers get None.
    An invalid token is still rejected with 401.
    """
    if not credentials:
        return None
    payload = _decode_credentials(credentials)
    return {"id": _subject_id(payload), "role": payload.get("role"), "email": payload.get("email")}


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
):
    """Customer or admin, whichever the token belongs to. Returns (role, account)."""
    payload = _decode_credentials(credentials)
    role = payload.get("role")
    model = Admin if role == "admin" else Customer if role == "customer" else None
    if model is None:
        raise HTTPException(status_code=401, detail="Invalid token claims")

    account = db.query(model).filter(model.id == _subject_id(payload)).first()
    if not account or not account.is_active:
        raise HTTPException(status_code=401, detail="Account not found or deactivated.")
    return role, account
