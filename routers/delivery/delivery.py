from fastapi import APIRouter, Depends, HTTPException, status, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db
from models import Order
from routers.auth.auth import get_current_user
from routers.orders.helpers import order_helpers
from routers.orders.schemas import OrderResponse
from dependencies.rbac import require_delivery_management
from utils.notifications import notify_order_status
from .schemas import CourierAssign
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/delivery", tags=["Delivery"])


@router.get("/admin/paid-orders", response_model=List[OrderResponse])
async def list_deliverable_orders(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_delivery_management)
):
    """Orders with a payment method that are not cancelled, newest first"""
    result = await db.execute(
        select(Order)
        .where(Order.payment_method.is_not(None), Order.status != "cancelled")
        .order_by(Order.created_at.desc())
    )
    return [order_helpers.to_response(order) for order in result.scalars().all()]


@router.put("/admin/assign/{order_id}", response_model=OrderResponse)
async def assign_courier(
    order_id: str,
    assignment: CourierAssign,
    background_tasks: BackgroundTasks,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_delivery_management)
):
    """Hand the order to a courier; this marks it delivered"""
    try:
        order = await order_helpers.get_order_or_404(db, order_id)
        order.courier = assignment.method
        order = await order_helpers.apply_status_change(
            db, order, "delivered", "admin", f"Assigned to {assignment.method}"
        )

        logger.info(f"Order {order.order_number} assigned to {assignment.method}")
        background_tasks.add_task(notify_order_status, order_helpers.notification_payload(order))
        return order_helpers.to_response(order)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to assign courier for order {order_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to assign delivery"
        )
