"""Booking router - FastAPI endpoints for booking requests and back-office booking management"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_customer, get_optional_principal
from ...database import get_db
from ...models import Admin, Customer
from .schemas import (
    BookingCreate,
    BookingPrecheck,
    BookingResponse,
    BookingStatusUpdate,
    PaymentCreate,
    PaymentResponse,
    QuotationResponse,
    QuotationStatusUpdate,
    QuoteCreate,
)
from .service import NEXT_STEPS, BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])
admin_router = APIRouter(prefix="/api/admin", tags=["Admin Bookings"])

__all__ = ["router", "admin_router"]


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


# ============================================================================
# BOOKING REQUESTS
# ============================================================================


@router.post("", status_code=201)
async def create_booking(
    data: BookingCreate,
    principal: Optional[dict] = Depends(get_optional_principal),
    service: BookingService = Depends(get_booking_service),
):
    """Submit a booking / quotation request (customer token, or admin token on behalf of Customer_ID)"""
    booking = service.create_booking(data, principal)
    return {
        "success": True,
        "message": "Booking request submitted successfully! We will contact you with a quotation soon.",
        "booking": BookingResponse.from_booking(booking).model_dump(mode="json"),
        "nextSteps": NEXT_STEPS,
    }


@router.post("/precheck")
async def precheck_booking(
    data: BookingPrecheck,
    service: BookingService = Depends(get_booking_service),
):
    """Run the booking form's pre-submit checks without creating anything"""
    return service.precheck(data)


@router.get("/policy")
async def get_booking_policy(service: BookingService = Depends(get_booking_service)):
    """Date/time rules the booking form should apply"""
    return service.get_policy()


@router.get("/check-availability")
async def check_availability(
    Service_ID: int = Query(...),
    Date: str = Query(...),
    Customer_ID: Optional[int] = Query(None),
    principal: Optional[dict] = Depends(get_optional_principal),
    service: BookingService = Depends(get_booking_service),
):
    """Check whether a service can be booked on a date (and whether the caller already has it).

    Customer_ID is only honoured for admins; customers are always checked as
    themselves and anonymous callers get no duplicate check.
    """
    customer_id = None
    if principal and principal["role"] == "admin":
        customer_id = Customer_ID
    elif principal and principal["role"] == "customer":
        customer_id = principal["id"]
    return service.check_availability(customer_id, Service_ID, Date)


# ============================================================================
# CUSTOMER BOOKINGS
# ============================================================================


@router.get("")
async def get_my_bookings(
    current_customer: Customer = Depends(get_current_customer),
    service: BookingService = Depends(get_booking_service),
):
    """Get the logged-in customer's bookings"""
    bookings = service.get_customer_bookings(current_customer.id)
    return {
        "success": True,
        "bookings": [BookingResponse.from_booking(b).model_dump(mode="json") for b in bookings],
    }


@router.get("/{booking_id}")
async def get_my_booking(
    booking_id: int,
    current_customer: Customer = Depends(get_current_customer),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_customer_booking(booking_id, current_customer.id)
    return {"success": True, "booking": BookingResponse.from_booking(booking).model_dump(mode="json")}


@router.post("/{booking_id}/cancel")
async def cancel_my_booking(
    booking_id: int,
    current_customer: Customer = Depends(get_current_customer),
    service: BookingService = Depends(get_booking_service),
):
    """Cancel a booking that has not started yet"""
    booking = service.cancel_customer_booking(booking_id, current_customer.id)
    return {
        "success": True,
        "message": "Booking cancelled.",
        "booking": BookingResponse.from_booking(booking).model_dump(mode="json"),
    }


# ============================================================================
# BACK OFFICE
# ============================================================================


@admin_router.get("/bookings")
async def list_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    _admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    """All bookings, newest first, with pagination, status filter and customer/service search"""
    result = service.list_bookings(page, limit, status, search)
    return {
        "success": True,
        "bookings": [BookingResponse.from_booking(b).model_dump(mode="json") for b in result["bookings"]],
        "pagination": result["pagination"],
    }


@admin_router.get("/bookings/{booking_id}")
async def get_booking(
    booking_id: int,
    _admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_booking(booking_id)
    return {"success": True, "booking": BookingResponse.from_booking(booking).model_dump(mode="json")}


@admin_router.put("/bookings/{booking_id}/status")
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    _admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.update_status(booking_id, data.Status)
    return {
        "success": True,
        "message": f"Booking status updated to {booking.status}.",
        "booking": BookingResponse.from_booking(booking).model_dump(mode="json"),
    }


@admin_router.post("/bookings/{booking_id}/quote", status_code=201)
async def create_quote(
    booking_id: int,
    data: QuoteCreate,
    current_admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Price a booking request"""
    quotation = service.create_quote(booking_id, data, current_admin.id)
    return {
        "success": True,
        "message": "Quotation created successfully.",
        "quotation": QuotationResponse.from_quotation(quotation).model_dump(mode="json"),
    }


@admin_router.post("/bookings/{booking_id}/payments", status_code=201)
async def add_payment(
    booking_id: int,
    data: PaymentCreate,
    _admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    payment = service.add_payment(booking_id, data)
    return {
        "success": True,
        "message": "Payment recorded successfully.",
        "payment": PaymentResponse.from_payment(payment).model_dump(mode="json"),
    }


@admin_router.get("/payments")
async def list_payments(
    booking_id: Optional[int] = Query(None),
    _admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    payments = service.get_payments(booking_id)
    return {
        "success": True,
        "payments": [PaymentResponse.from_payment(p).model_dump(mode="json") for p in payments],
    }


@admin_router.delete("/bookings/{booking_id}")
async def delete_booking(
    booking_id: int,
    _admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    return service.delete_booking(booking_id)


@admin_router.get("/dashboard/stats")
async def dashboard_stats(
    _admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    return {"success": True, "stats": service.dashboard_stats()}


@admin_router.get("/dashboard/analytics")
async def dashboard_analytics(
    period: str = Query("daily"),
    _admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings and quoted revenue grouped by day, ISO week or month"""
    return {"success": True, "analytics": service.booking_analytics(period), "period": period}


# ============================================================================
# QUOTATIONS
# ============================================================================


@admin_router.get("/quotations")
async def list_quotations(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    _admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    result = service.list_quotations(page, limit, status, search)
    return {
        "success": True,
        "quotations": [QuotationResponse.from_quotation(q).model_dump(mode="json") for q in result["quotations"]],
        "pagination": result["pagination"],
    }


@admin_router.get("/quotations/stats")
async def quotation_stats(
    _admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    return {"success": True, "stats": service.quotation_stats()}


@admin_router.get("/quotations/{quotation_id}")
async def get_quotation(
    quotation_id: int,
    _admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    quotation = service.get_quotation(quotation_id)
    return {"success": True, "quotation": QuotationResponse.from_quotation(quotation).model_dump(mode="json")}


@admin_router.put("/quotations/{quotation_id}/status")
async def update_quotation_status(
    quotation_id: int,
    data: QuotationStatusUpdate,
    _admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    quotation = service.update_quotation_status(quotation_id, data)
    return {
        "success": True,
        "message": f"Quotation status updated to {quotation.status}.",
        "quotation": QuotationResponse.from_quotation(quotation).model_dump(mode="json"),
    }
