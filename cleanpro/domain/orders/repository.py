"""Order repository - Database operations for orders"""

from sqlalchemy.orm import Session, joinedload

from ...models import Order, Product


class OrderRepository:
    """Repository for order database operations"""

    @staticmethod
    def get_products_for_update(db: Session, product_ids: list[int]) -> dict[int, Product]:
        """Lock the products being purchased (row locks on PostgreSQL)"""
        products = db.query(Product).filter(Product.id.in_(product_ids)).with_for_update().all()
        return {p.id: p for p in products}

    @staticmethod
    def add_order(db: Session, **order_data) -> Order:
        """Stage an order in the current transaction; the caller commits"""
        order = Order(**order_data)
        db.add(order)
        return order

    @staticmethod
    def get_customer_orders(db: Session, customer_id: int) -> list[Order]:
        return (
            db.query(Order)
            .options(joinedload(Order.product))
            .filter(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )

    @staticmethod
    def get_all_orders(db: Session) -> list[Order]:
        return (
            db.query(Order)
            .options(joinedload(Order.product), joinedload(Order.customer))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )
