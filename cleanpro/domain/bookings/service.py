"""Booking service - Business logic for booking requests and back-office booking management"""

import logging
import math
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ... import config
from ...models import Booking
from ...shared.clock import utcnow
from . import policy
from .exceptions import (
    BookingStorageError,
    CustomerNotFound,
    DuplicateBooking,
    IncompleteAddress,
    InvalidDate,
    InvalidDuration,
    InvalidReference,
    InvalidTime,
    MissingField,
    PastDate,
    SameDayCutoff,
    ServiceNotFound,
    ServiceUnavailable,
    StorageValidationError,
    TimeAlreadyPassed,
    Unauthenticated,
)
from .repository import BookingRepository
from .schemas import BookingCreate, BookingPrecheck, PaymentCreate, QuotationStatusUpdate, QuoteCreate

logger = logging.getLogger(__name__)

NEXT_STEPS = [
    "Our team will review your request and prepare a quotation.",
    "You will receive a confirmation once your booking is approved.",
    "You can track the status of your booking from your profile.",
]


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _constraint_kind(exc: IntegrityError) -> str:
    """Classify an IntegrityError as unique, foreign_key, not_null or other"""
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode == "23505":
        return "unique"
    if pgcode == "23503":
        return "foreign_key"
    if pgcode in ("23502", "23514"):
        return "not_null"

    text = str(exc.orig).lower()
    if "unique" in text:
        return "unique"
    if "foreign key" in text:
        return "foreign_key"
    if "not null" in text or "check constraint" in text:
        return "not_null"
    return "other"


def _field_messages(exc: Exception) -> list[str]:
    """Per-field messages for storage-level validation failures, without internals"""
    text = str(getattr(exc, "orig", exc))
    # SQLite: "NOT NULL constraint failed: bookings.address"
    if "constraint failed:" in text:
        columns = text.split("constraint failed:", 1)[1].split(",")
        return [f"{column.strip().split('.')[-1]} is invalid or missing" for column in columns if column.strip()]
    # PostgreSQL: 'null value in column "address" ...'
    if 'column "' in text:
        column = text.split('column "', 1)[1].split('"', 1)[0]
        return [f"{column} is invalid or missing"]
    return ["One or more fields have invalid values"]


class BookingService:
    """Service layer for booking business logic"""

    def __init__(
        self,
        db: Session,
        enforce_same_day_cutoff: Optional[bool] = None,
        same_day_cutoff: Optional[str] = None,
        default_time: Optional[str] = None,
    ):
        self.db = db
        self.repo = BookingRepository()
        self.enforce_same_day_cutoff = (
            config.BOOKING_ENFORCE_SAME_DAY_CUTOFF if enforce_same_day_cutoff is None else enforce_same_day_cutoff
        )
        self.same_day_cutoff = same_day_cutoff or config.BOOKING_SAME_DAY_CUTOFF
        self.default_time = default_time or config.BOOKING_DEFAULT_TIME

    # ========================================================================
    # BOOKING REQUESTS
    # ========================================================================

    def create_booking(
        self,
        data: BookingCreate,
        principal: Optional[dict],
        now: Optional[datetime] = None,
    ) -> Booking:
        """Validate and persist a booking request.

        Checks run in a fixed order and stop at the first failure; nothing is
        written unless every check passes. ``principal`` is the decoded bearer
        token (``{"id", "role"}``) or None for an anonymous caller. Customers
        book for themselves (a missing Customer_ID is taken from the token);
        admins book on behalf of the Customer_ID they send.
        """
        # 1. Identity
        customer_id = self._resolve_customer_id(data.Customer_ID, principal)

        # 2. Required fields
        if data.Service_ID is None or _is_blank(data.Date):
            raise MissingField()

        # 3. Address completeness
        address_parts = [data.Address_Street, data.Address_City, data.Address_State, data.Address_Postal_Code]
        if any(_is_blank(part) for part in address_parts):
            raise IncompleteAddress()

        # 4. Date parse
        try:
            date_iso = policy.normalize_date(data.Date)
        except ValueError:
            raise InvalidDate()

        # 5. Date range
        if policy.is_past_date(date_iso, policy.today_iso(now)):
            raise PastDate()

        try:
            time_str = policy.parse_time(data.Time, default=self.default_time)
        except ValueError:
            raise InvalidTime()
        if data.Duration is not None and data.Duration <= 0:
            raise InvalidDuration()

        if self.enforce_same_day_cutoff:
            local_now = (now.astimezone() if now and now.tzinfo else now) or datetime.now()
            if policy.same_day_cutoff_violation(date_iso, local_now, self.same_day_cutoff):
                raise SameDayCutoff(policy.SAME_DAY_CUTOFF_MESSAGE.format(cutoff=self.same_day_cutoff))
            if not _is_blank(data.Time) and policy.time_already_passed(date_iso, time_str, local_now):
                raise TimeAlreadyPassed()

        # 6-8. References
        customer = self.repo.find_customer_by_id(self.db, customer_id)
        if not customer:
            raise CustomerNotFound()

        service = self.repo.find_service_by_id(self.db, data.Service_ID)
        if not service:
            raise ServiceNotFound()
        if not service.is_available:
            raise ServiceUnavailable()

        # 9. Duplicate suppression
        booking_date = date.fromisoformat(date_iso)
        existing = self.repo.find_bookings_matching(
            self.db, customer.id, service.id, booking_date, policy.TERMINAL_EXCLUDED_STATUSES
        )
        if existing:
            logger.info(
                f"⚠️ Duplicate booking request: customer={customer.id} service={service.id} date={date_iso}"
            )
            raise DuplicateBooking()

        # 10. Persist
        booking_data = {
            "customer_id": customer.id,
            "service_id": service.id,
            "date": booking_date,
            "time": time_str,
            "duration": data.Duration if data.Duration is not None else service.duration,
            "address": policy.compose_address(*address_parts),
            "special_instructions": policy.clean_optional(data.Special_Instructions),
            "property_type": policy.clean_optional(data.Property_Type),
            "property_size": policy.clean_optional(data.Property_Size),
            "cleaning_frequency": policy.clean_optional(data.Cleaning_Frequency),
            "status": "requested",
        }
        booking = self._insert(booking_data)
        logger.info(f"✅ Booking {booking.id} created for customer {customer.id} ({service.name} on {date_iso})")

        # 11. Re-fetch with customer and service
        return self.repo.get_booking(self.db, booking.id)

    @staticmethod
    def _resolve_customer_id(body_customer_id: Optional[int], principal: Optional[dict]) -> int:
        """The customer a booking is for, given who is asking"""
        if principal is None:
            logger.warning("⚠️ Anonymous booking request rejected")
            raise Unauthenticated()

        if principal.get("role") == "customer":
            if body_customer_id is not None and body_customer_id != principal["id"]:
                logger.warning(f"⚠️ Customer {principal['id']} tried to book for customer {body_customer_id}")
                raise Unauthenticated("You can only create bookings for your own account.")
            return principal["id"]

        if principal.get("role") == "admin" and body_customer_id is not None:
            return body_customer_id
        raise Unauthenticated()

    def _insert(self, booking_data: dict) -> Booking:
        """Insert and translate storage failures into booking errors"""
        try:
            return self.repo.insert_booking(self.db, **booking_data)
        except IntegrityError as e:
            self.db.rollback()
            kind = _constraint_kind(e)
            logger.warning(f"⚠️ Booking insert rejected by database ({kind})")
            if kind == "unique":
                # Lost a race with a concurrent request for the same slot
                raise DuplicateBooking("A booking for this service on this date already exists.")
            if kind == "foreign_key":
                raise InvalidReference()
            if kind == "not_null":
                raise StorageValidationError(errors=_field_messages(e))
            raise BookingStorageError()
        except DataError as e:
            self.db.rollback()
            logger.warning("⚠️ Booking insert rejected: invalid field data")
            raise StorageValidationError(errors=_field_messages(e))
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("❌ Unexpected database error while creating booking")
            raise BookingStorageError()

    def precheck(self, data: BookingPrecheck, now: Optional[datetime] = None) -> dict:
        """Pre-submit checks for the booking form; never touches the database"""
        errors = policy.precheck_errors(
            service_id=data.Service_ID,
            date_value=data.Date,
            time_value=data.Time,
            street=data.Address_Street,
            city=data.Address_City,
            state=data.Address_State,
            postal_code=data.Address_Postal_Code,
            email=data.Email,
            now=now,
            cutoff=self.same_day_cutoff,
        )
        return {"valid": not errors, "errors": errors}

    def get_policy(self) -> dict:
        return {
            "defaultTime": self.default_time,
            "sameDayCutoff": self.same_day_cutoff,
            "sameDayCutoffEnforced": self.enforce_same_day_cutoff,
            "today": policy.today_iso(),
            "excludedStatuses": sorted(policy.TERMINAL_EXCLUDED_STATUSES),
            "statuses": list(policy.BOOKING_STATUSES),
            "transitions": {status: sorted(targets) for status, targets in policy.BOOKING_TRANSITIONS.items()},
        }

    def check_availability(self, customer_id: Optional[int], service_id: int, date_value: str) -> dict:
        """Read-only version of the booking checks used while the form is being filled in"""
        try:
            date_iso = policy.normalize_date(date_value)
        except ValueError:
            raise InvalidDate()

        if policy.is_past_date(date_iso):
            return {"available": False, "reason": "past_date", "message": PastDate.message}

        service = self.repo.find_service_by_id(self.db, service_id)
        if not service:
            raise ServiceNotFound()
        if not service.is_available:
            return {"available": False, "reason": "service_unavailable", "message": ServiceUnavailable.message}

        if customer_id is not None:
            existing = self.repo.find_bookings_matching(
                self.db, customer_id, service_id, date.fromisoformat(date_iso), policy.TERMINAL_EXCLUDED_STATUSES
            )
            if existing:
                return {
                    "available": False,
                    "reason": "duplicate",
                    "message": DuplicateBooking.message,
                    "existingBookingId": existing[0].id,
                }

        return {"available": True, "reason": None, "message": "This date is available."}

    # ========================================================================
    # CUSTOMER BOOKINGS
    # ========================================================================

    def get_customer_bookings(self, customer_id: int) -> list[Booking]:
        return self.repo.get_customer_bookings(self.db, customer_id)

    def get_customer_booking(self, booking_id: int, customer_id: int) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking or booking.customer_id != customer_id:
            raise HTTPException(status_code=404, detail="Booking not found.")
        return booking

    def cancel_customer_booking(self, booking_id: int, customer_id: int) -> Booking:
        booking = self.get_customer_booking(booking_id, customer_id)
        if booking.status not in policy.CUSTOMER_CANCELLABLE_STATUSES:
            raise HTTPException(
                status_code=400,
                detail=f"Bookings with status '{booking.status}' can no longer be cancelled.",
            )
        logger.info(f"📥 Customer {customer_id} cancelled booking {booking.id}")
        return self.repo.update_booking(
            self.db, booking, status="cancelled", status_updated_at=utcnow()
        )

    # ========================================================================
    # BACK OFFICE
    # ========================================================================

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found.")
        return booking

    def list_bookings(
        self, page: int = 1, limit: int = 10, status: Optional[str] = None, search: Optional[str] = None
    ) -> dict:
        if status and status not in policy.BOOKING_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid status filter: {status}")

        bookings, total = self.repo.search_bookings(self.db, page, limit, status, search)
        return {
            "bookings": bookings,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit) if total else 0,
            },
        }

    def update_status(self, booking_id: int, new_status: str) -> Booking:
        booking = self.get_booking(booking_id)

        if new_status not in policy.BOOKING_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid status: {new_status}")
        if not policy.can_transition(booking.status, new_status):
            raise HTTPException(
                status_code=400,
                detail=f"Cannot change booking status from '{booking.status}' to '{new_status}'.",
            )

        logger.info(f"📥 Booking {booking.id} status {booking.status} -> {new_status}")
        return self.repo.update_booking(
            self.db, booking, status=new_status, status_updated_at=utcnow()
        )

    def create_quote(self, booking_id: int, data: QuoteCreate, admin_id: Optional[int] = None):
        booking = self.get_booking(booking_id)
        if booking.status in policy.TERMINAL_EXCLUDED_STATUSES or booking.status == "completed":
            raise HTTPException(status_code=400, detail=f"Cannot quote a {booking.status} booking.")

        quotation = self.repo.create_quotation(
            self.db,
            booking,
            amount=data.Amount,
            notes=policy.clean_optional(data.Notes),
            created_by=admin_id,
        )
        logger.info(f"✅ Quotation {quotation.id} ({data.Amount:.2f}) created for booking {booking.id}")
        return quotation

    def add_payment(self, booking_id: int, data: PaymentCreate):
        booking = self.get_booking(booking_id)
        try:
            payment_date = date.fromisoformat(policy.normalize_date(data.Date)) if data.Date else date.today()
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid payment date. Please use YYYY-MM-DD.")

        payment = self.repo.create_payment(
            self.db,
            booking.id,
            date=payment_date,
            amount=data.Amount,
            method=data.Method,
            status=data.Status,
        )
        logger.info(f"✅ Payment {payment.id} recorded for booking {booking.id}")
        return payment

    def get_payments(self, booking_id: Optional[int] = None):
        return self.repo.get_payments(self.db, booking_id)

    def delete_booking(self, booking_id: int) -> dict:
        booking = self.get_booking(booking_id)
        self.repo.delete_booking(self.db, booking)
        logger.info(f"🗑️ Booking {booking_id} deleted")
        return {"success": True, "message": "Booking deleted successfully."}

    def dashboard_stats(self) -> dict:
        by_status = self.repo.count_by_status(self.db)
        return {
            "totalBookings": sum(by_status.values()),
            "bookingsByStatus": {status: by_status.get(status, 0) for status in policy.BOOKING_STATUSES},
            "pendingBookings": by_status.get("requested", 0),
            "todayBookings": self.repo.count_on_date(self.db, date.today()),
            "totalRevenue": self.repo.completed_revenue(self.db),
            "totalCustomers": self.repo.count_customers(self.db),
            "totalServices": self.repo.count_services(self.db),
        }

    def booking_analytics(self, period: str = "daily") -> list[dict]:
        """Booking count and quoted amount per day, ISO week or month; cancelled bookings are left out"""
        if period not in policy.ANALYTICS_PERIODS:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid period: {period}. Use one of: {', '.join(policy.ANALYTICS_PERIODS)}",
            )

        buckets: dict[str, dict] = {}
        for booking_date, quoted_amount in self.repo.booking_dates_and_quotes(self.db, {"cancelled"}):
            key = policy.analytics_period_key(booking_date, period)
            bucket = buckets.setdefault(key, {"period": key, "bookings": 0, "revenue": 0.0})
            bucket["bookings"] += 1
            if quoted_amount is not None:
                bucket["revenue"] += float(quoted_amount)
        return list(buckets.values())

    # ========================================================================
    # QUOTATIONS
    # ========================================================================

    def list_quotations(
        self, page: int = 1, limit: int = 10, status: Optional[str] = None, search: Optional[str] = None
    ) -> dict:
        if status and status not in policy.QUOTATION_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid status filter: {status}")

        quotations, total = self.repo.search_quotations(self.db, page, limit, status, search)
        return {
            "quotations": quotations,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit) if total else 0,
            },
        }

    def get_quotation(self, quotation_id: int):
        quotation = self.repo.get_quotation(self.db, quotation_id)
        if not quotation:
            raise HTTPException(status_code=404, detail="Quotation not found.")
        return quotation

    def update_quotation_status(self, quotation_id: int, data: QuotationStatusUpdate):
        quotation = self.get_quotation(quotation_id)
        logger.info(f"📥 Quotation {quotation.id} status {quotation.status} -> {data.Status}")
        return self.repo.update_quotation(self.db, quotation, status=data.Status)

    def quotation_stats(self) -> dict:
        by_status = self.repo.count_quotations_by_status(self.db)
        return {
            "totalQuotations": sum(by_status.values()),
            "pendingQuotations": by_status.get("pending", 0),
            "byStatus": {status: by_status.get(status, 0) for status in policy.QUOTATION_STATUSES},
        }
