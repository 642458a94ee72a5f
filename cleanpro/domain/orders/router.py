"""Order routers - customer checkout and order history, admin order list"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_customer
from ...database import get_db
from ...models import Admin, Customer
from .schemas import OrderCreate, OrderOut
from .service import OrderService

router = APIRouter(prefix="/api/orders", tags=["Orders"])
admin_router = APIRouter(prefix="/api/admin", tags=["Admin Orders"])

__all__ = ["router", "admin_router"]


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    """Dependency injection for OrderService"""
    return OrderService(db)


@router.post("", status_code=201)
async def checkout(
    data: OrderCreate,
    current_customer: Customer = Depends(get_current_customer),
    service: OrderService = Depends(get_order_service),
):
    """Place the cart as orders"""
    orders = service.checkout(current_customer, data)
    return {
        "success": True,
        "message": "Order placed successfully",
        "orders": [OrderOut.from_order(o).model_dump(mode="json") for o in orders],
        "total": round(sum(float(o.total) for o in orders), 2),
    }


@router.get("")
async def my_orders(
    current_customer: Customer = Depends(get_current_customer),
    service: OrderService = Depends(get_order_service),
):
    orders = service.get_customer_orders(current_customer)
    return {"success": True, "orders": [OrderOut.from_order(o).model_dump(mode="json") for o in orders]}


@admin_router.get("/orders")
async def all_orders(
    _admin: Admin = Depends(get_current_admin),
    service: OrderService = Depends(get_order_service),
):
    orders = service.get_all_orders()
    return {"success": True, "orders": [OrderOut.from_order(o).model_dump(mode="json") for o in orders]}
