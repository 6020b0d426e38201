from fastapi import HTTPException, status, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from models import Order, Product, Stock
from dependencies.rbac import is_admin
from utils.response_helpers import parse_uuid, safe_model_validate
from utils.uploads import upload_helpers, SLIP_TYPES
from datetime import datetime, timezone
from typing import Optional
import uuid
import logging

from .schemas import OrderResponse

logger = logging.getLogger(__name__)


class OrderHelpers:
    """Order numbering, status transitions and slip uploads shared by the order routers"""

    async def next_order_number(self, db: AsyncSession) -> str:
        count = (await db.execute(select(func.count(Order.id)))).scalar() or 0
        return f"ORD-{datetime.now(timezone.utc):%Y%m%d}-{count + 1}"

    def history_entry(self, new_status: str, note: Optional[str], updated_by: str) -> dict:
        return {
            "status": new_status,
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "note": note or f"Status changed to {new_status}",
            "updated_by": updated_by,
        }

    async def get_order_or_404(self, db: AsyncSession, order_id: str) -> Order:
        result = await db.execute(select(Order).where(Order.id == parse_uuid(order_id, "order")))
        order = result.scalar_one_or_none()
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found"
            )
        return order

    def ensure_access(self, order: Order, current_user: dict):
        """Owner or admin only"""
        if is_admin(current_user):
            return
        if order.user_id is None or str(order.user_id) != current_user["id"]:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to access this order"
            )

    async def adjust_stock(self, db: AsyncSession, order: Order, direction: int):
        """
        Move stock for every order line, one commit per line.
        direction -1 takes stock out (clamped at 0), +1 puts it back.
        """
        for item in order.items or []:
            quantity = int(item.get("quantity") or 0)
            try:
                product_id = uuid.UUID(str(item.get("product_id")))
            except ValueError:
                logger.warning(f"Order {order.id} has a line with an invalid product id: {item.get('product_id')}")
                continue

            product = await db.get(Product, product_id)
            if not product:
                logger.warning(f"Product {product_id} from order {order.id} no longer exists")
                continue
            stock = await db.get(Stock, product.stock_id)
            if not stock:
                logger.warning(f"Stock for product {product_id} from order {order.id} no longer exists")
                continue

            if direction < 0:
                stock.quantity = max(0, stock.quantity - quantity)
            else:
                stock.quantity = stock.quantity + quantity
            await db.commit()
            logger.info(f"Stock {stock.id} now {stock.quantity} after order {order.order_number} ({'-' if direction < 0 else '+'}{quantity})")

    async def apply_status_change(
        self,
        db: AsyncSession,
        order: Order,
        new_status: str,
        updated_by: str,
        note: Optional[str] = None
    ) -> Order:
        """
        Write a status, append one history entry and apply stock side effects.
        Any status may follow any other; confirming and cancelling move stock every time.
        """
        order.status = new_status
        order.history = [*(order.history or []), self.history_entry(new_status, note, updated_by)]
        await db.commit()

        if new_status == "confirmed":
            await self.adjust_stock(db, order, -1)
        elif new_status == "cancelled":
            await self.adjust_stock(db, order, +1)

        return order

    async def upload_slip(
        self,
        db: AsyncSession,
        order: Order,
        slip: Optional[UploadFile],
        current_user: dict
    ) -> Order:
        """Attach a bank-transfer slip and move the order to transfer_pending"""
        self.ensure_access(order, current_user)

        if order.payment_method != "bank":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Slip upload is only available for bank transfer orders"
            )
        if slip is None or not slip.filename:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No file uploaded"
            )

        filename, url = await upload_helpers.save_file(slip, "slips", SLIP_TYPES)
        order.payment_slip = {"filename": filename, "url": url}

        logger.info(f"Slip uploaded for order {order.order_number}")
        return await self.apply_status_change(db, order, "transfer_pending", "customer", "Bank slip uploaded")

    def to_response(self, order: Order) -> OrderResponse:
        return safe_model_validate(OrderResponse, order)

    def notification_payload(self, order: Order) -> dict:
        return {
            "order_number": order.order_number,
            "status": order.status,
            "items": list(order.items or []),
            "subtotal": order.subtotal,
            "delivery_charge": order.delivery_charge,
            "total": order.total,
            "payment_method": order.payment_method,
            "customer": dict(order.customer or {}),
        }


order_helpers = OrderHelpers()
