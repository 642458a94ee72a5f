"""Order service - cart checkout with stock control"""

import logging
from collections import OrderedDict
from datetime import date
from decimal import Decimal

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Customer, Order
from .repository import OrderRepository
from .schemas import OrderCreate

logger = logging.getLogger(__name__)


class OrderService:
    """Service layer for orders"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepository()

    def checkout(self, customer: Customer, data: OrderCreate) -> list[Order]:
        """Place one order per cart line.

        Every product is checked before anything changes; stock is then
        decremented and the orders are written in a single commit.
        """
        quantities: "OrderedDict[int, int]" = OrderedDict()
        for item in data.items:
            quantities[item.Product_ID] = quantities.get(item.Product_ID, 0) + item.Quantity

        products = self.repo.get_products_for_update(self.db, list(quantities))
        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            if not product:
                self.db.rollback()
                raise HTTPException(status_code=404, detail=f"Product {product_id} not found.")
            if not product.is_available:
                self.db.rollback()
                raise HTTPException(status_code=400, detail=f"{product.name} is currently unavailable.")
            if product.stock_quantity < quantity:
                self.db.rollback()
                raise HTTPException(
                    status_code=400,
                    detail=f"Only {product.stock_quantity} of {product.name} left in stock.",
                )

        today = date.today()
        orders = []
        try:
            for product_id, quantity in quantities.items():
                product = products[product_id]
                product.stock_quantity -= quantity
                if product.stock_quantity == 0:
                    product.is_available = False
                product.popularity = (product.popularity or 0) + quantity

                unit_price = Decimal(str(product.price))
                orders.append(
                    self.repo.add_order(
                        self.db,
                        customer_id=customer.id,
                        product_id=product.id,
                        quantity=quantity,
                        unit_price=unit_price,
                        total=unit_price * quantity,
                        date=today,
                        status="placed",
                    )
                )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"❌ Checkout failed for customer {customer.id}")
            raise HTTPException(status_code=500, detail="Unable to place your order right now. Please try again later.")

        for order in orders:
            self.db.refresh(order)
        logger.info(f"✅ Customer {customer.id} placed {len(orders)} order(s)")
        return orders

    def get_customer_orders(self, customer: Customer) -> list[Order]:
        return self.repo.get_customer_orders(self.db, customer.id)

    def get_all_orders(self) -> list[Order]:
        return self.repo.get_all_orders(self.db)
