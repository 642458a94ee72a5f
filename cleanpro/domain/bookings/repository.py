"""Booking repository - Database operations for bookings, quotations and payments"""

from datetime import date
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Customer, Payment, Quotation, Service


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def find_customer_by_id(db: Session, customer_id: int) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.id == customer_id).first()

    @staticmethod
    def find_service_by_id(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def find_bookings_matching(
        db: Session, customer_id: int, service_id: int, booking_date: date, excluded_statuses
    ) -> list[Booking]:
        """Bookings for the same customer, service and day whose status is not excluded"""
        return (
            db.query(Booking)
            .filter(
                Booking.customer_id == customer_id,
                Booking.service_id == service_id,
                Booking.date == booking_date,
                Booking.status.notin_(list(excluded_statuses)),
            )
            .all()
        )

    @staticmethod
    def insert_booking(db: Session, **booking_data) -> Booking:
        """Insert a booking. Constraint violations propagate as IntegrityError."""
        booking = Booking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        """Get a booking joined with its customer and service"""
        return (
            db.query(Booking)
            .options(joinedload(Booking.customer), joinedload(Booking.service))
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def get_customer_bookings(db: Session, customer_id: int) -> list[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.service), joinedload(Booking.customer))
            .filter(Booking.customer_id == customer_id)
            .order_by(Booking.date.desc(), Booking.id.desc())
            .all()
        )

    @staticmethod
    def search_bookings(
        db: Session,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Booking], int]:
        """Paginated booking search for the back office. Returns (bookings, total)."""
        query = (
            db.query(Booking)
            .join(Customer, Booking.customer_id == Customer.id)
            .join(Service, Booking.service_id == Service.id)
        )

        if status:
            query = query.filter(Booking.status == status)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Customer.full_name.ilike(pattern),
                    Customer.email.ilike(pattern),
                    Service.name.ilike(pattern),
                )
            )

        total = query.count()
        bookings = (
            query.options(joinedload(Booking.customer), joinedload(Booking.service))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return bookings, total

    @staticmethod
    def update_booking(db: Session, booking: Booking, **updates) -> Booking:
        for key, value in updates.items():
            if hasattr(booking, key):
                setattr(booking, key, value)

        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def delete_booking(db: Session, booking: Booking) -> None:
        db.delete(booking)
        db.commit()

    @staticmethod
    def create_quotation(db: Session, booking: Booking, **quotation_data) -> Quotation:
        """Create a quotation and copy its amount onto the booking in one commit"""
        quotation = Quotation(
            booking_id=booking.id,
            customer_id=booking.customer_id,
            service_id=booking.service_id,
            date=booking.date,
            **quotation_data,
        )
        db.add(quotation)
        booking.quoted_amount = quotation.amount
        db.commit()
        db.refresh(quotation)
        return quotation

    @staticmethod
    def create_payment(db: Session, booking_id: int, **payment_data) -> Payment:
        payment = Payment(booking_id=booking_id, **payment_data)
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment

    @staticmethod
    def get_payments(db: Session, booking_id: Optional[int] = None) -> list[Payment]:
        query = db.query(Payment)
        if booking_id is not None:
            query = query.filter(Payment.booking_id == booking_id)
        return query.order_by(Payment.date.desc(), Payment.id.desc()).all()

    @staticmethod
    def count_by_status(db: Session) -> dict[str, int]:
        rows = db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
        return {status: count for status, count in rows}

    @staticmethod
    def count_on_date(db: Session, booking_date: date) -> int:
        return db.query(func.count(Booking.id)).filter(Booking.date == booking_date).scalar() or 0

    @staticmethod
    def completed_revenue(db: Session) -> float:
        total = db.query(func.sum(Payment.amount)).filter(Payment.status == "completed").scalar()
        return float(total or 0)

    @staticmethod
    def count_customers(db: Session) -> int:
        return db.query(func.count(Customer.id)).scalar() or 0

    @staticmethod
    def count_services(db: Session) -> int:
        return db.query(func.count(Service.id)).scalar() or 0

    @staticmethod
    def search_quotations(
        db: Session,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Quotation], int]:
        """Paginated quotation search on customer or service name. Returns (quotations, total)."""
        query = (
            db.query(Quotation)
            .join(Customer, Quotation.customer_id == Customer.id)
            .join(Service, Quotation.service_id == Service.id)
        )

        if status:
            query = query.filter(Quotation.status == status)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Customer.full_name.ilike(pattern), Service.name.ilike(pattern)))

        total = query.count()
        quotations = (
            query.options(joinedload(Quotation.customer), joinedload(Quotation.service))
            .order_by(Quotation.date.desc(), Quotation.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return quotations, total

    @staticmethod
    def get_quotation(db: Session, quotation_id: int) -> Optional[Quotation]:
        return (
            db.query(Quotation)
            .options(joinedload(Quotation.customer), joinedload(Quotation.service))
            .filter(Quotation.id == quotation_id)
            .first()
        )

    @staticmethod
    def update_quotation(db: Session, quotation: Quotation, **updates) -> Quotation:
        for key, value in updates.items():
            setattr(quotation, key, value)

        db.commit()
        db.refresh(quotation)
        return quotation

    @staticmethod
    def count_quotations_by_status(db: Session) -> dict[str, int]:
        rows = db.query(Quotation.status, func.count(Quotation.id)).group_by(Quotation.status).all()
        return {status: count for status, count in rows}

    @staticmethod
    def booking_dates_and_quotes(db: Session, excluded_statuses) -> list[tuple[date, Optional[float]]]:
        """(date, quoted_amount) of every booking whose status is not excluded, oldest first"""
        return (
            db.query(Booking.date, Booking.quoted_amount)
            .filter(Booking.status.notin_(list(excluded_statuses)))
            .order_by(Booking.date)
            .all()
        )
