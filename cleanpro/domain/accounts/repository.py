"""Account repository - Database operations for customers and admins"""

from datetime import timedelta
from typing import Optional, Union

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import Admin, Booking, Customer
from ...shared.clock import utcnow

Account = Union[Customer, Admin]


class AccountRepository:
    """Repository for customer and admin database operations"""

    @staticmethod
    def get_customer_by_email(db: Session, email: str) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.email == email).first()

    @staticmethod
    def get_customer_by_id(db: Session, customer_id: int) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.id == customer_id).first()

    @staticmethod
    def create_customer(db: Session, **customer_data) -> Customer:
        customer = Customer(**customer_data)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def search_customers(
        db: Session,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
    ) -> tuple[list[Customer], int]:
        """Paginated customer search on name, email or phone, newest first. Returns (customers, total)."""
        query = db.query(Customer)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(Customer.full_name.ilike(pattern), Customer.email.ilike(pattern), Customer.phone.ilike(pattern))
            )

        total = query.count()
        customers = (
            query.order_by(Customer.created_at.desc(), Customer.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return customers, total

    @staticmethod
    def get_recent_bookings(db: Session, customer_id: int, limit: int = 10) -> list[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.service))
            .filter(Booking.customer_id == customer_id)
            .order_by(Booking.date.desc(), Booking.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_admin_by_email(db: Session, email: str) -> Optional[Admin]:
        return db.query(Admin).filter(Admin.email == email).first()

    @staticmethod
    def get_admin_by_id(db: Session, admin_id: int) -> Optional[Admin]:
        return db.query(Admin).filter(Admin.id == admin_id).first()

    @staticmethod
    def get_admins(db: Session) -> list[Admin]:
        return db.query(Admin).order_by(Admin.created_at.desc(), Admin.id.desc()).all()

    @staticmethod
    def create_admin(db: Session, **admin_data) -> Admin:
        admin = Admin(**admin_data)
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin

    @staticmethod
    def delete_admin(db: Session, admin: Admin) -> None:
        db.delete(admin)
        db.commit()

    @staticmethod
    def update_account(db: Session, account: Account, **updates) -> Account:
        """Update a customer or admin with the provided fields"""
        for key, value in updates.items():
            if hasattr(account, key):
                setattr(account, key, value)

        db.commit()
        db.refresh(account)
        return account

    @staticmethod
    def record_failed_login(db: Session, account: Account, max_attempts: int, lockout_minutes: int) -> bool:
        """Count a failed login; locks the account once max_attempts is reached. Returns True if locked."""
        account.login_attempts = (account.login_attempts or 0) + 1
        locked = account.login_attempts >= max_attempts
        if locked:
            account.locked_until = utcnow() + timedelta(minutes=lockout_minutes)
            account.login_attempts = 0
        db.commit()
        return locked

    @staticmethod
    def record_successful_login(db: Session, account: Account) -> None:
        account.login_attempts = 0
        account.locked_until = None
        account.last_login = utcnow()
        db.commit()
