from fastapi import APIRouter, Depends, HTTPException, status, Query, UploadFile, File, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db, DELIVERY_CHARGE
from models import Order, User
from routers.auth.auth import get_current_user
from routers.cart.helpers import get_cart, normalize_items, items_total
from routers.orders.helpers import order_helpers
from routers.orders.schemas import SlipUploadResponse
from utils.response_helpers import parse_uuid
from utils.notifications import notify_order_placed
from .schemas import PlaceOrder, CheckoutSummary, PlaceOrderResponse, DeliveryMethod
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])


def delivery_charge_for(delivery_method: str) -> float:
    return 0.0 if delivery_method == "store" else DELIVERY_CHARGE


def order_lines(cart_items: list) -> list:
    return [
        {
            "product_id": item["product_id"],
            "name": item["name"],
            "price": item["price"],
            "quantity": item["quantity"],
            "image": item["image"],
        }
        for item in normalize_items(cart_items)
    ]


def build_address(user: User, delivery_method: str, alt_line1: Optional[str]) -> dict:
    if delivery_method == "home":
        line1 = user.address or "Not provided"
    elif delivery_method == "different":
        line1 = alt_line1 or "Not provided"
    else:
        line1 = "Store Pickup"

    return {
        "line1": line1,
        "city": user.city or "Unknown",
        "postal_code": user.postal_code or "00000",
        "country": user.country or "Sri Lanka",
    }


@router.get("/summary", response_model=CheckoutSummary)
async def checkout_summary(
    delivery_method: DeliveryMethod = Query("home"),
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Price breakdown of the caller's cart; an empty cart is all zeros"""
    cart = await get_cart(db, parse_uuid(current_user["id"], "user"))
    if not cart or not cart.items:
        return CheckoutSummary(items=[], subtotal=0, delivery_charge=0, total=0)

    items = order_lines(cart.items)
    subtotal = items_total(items)
    delivery_charge = delivery_charge_for(delivery_method)
    return CheckoutSummary(
        items=items,
        subtotal=subtotal,
        delivery_charge=delivery_charge,
        total=subtotal + delivery_charge
    )


@router.post("/place", response_model=PlaceOrderResponse, status_code=status.HTTP_201_CREATED)
async def place_order(
    order_data: PlaceOrder,
    background_tasks: BackgroundTasks,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Turn the caller's cart into a pending order and empty the cart.

    Customer and address details are copied from the profile so later profile
    edits do not change past orders.
    """
    try:
        user_id = parse_uuid(current_user["id"], "user")
        cart = await get_cart(db, user_id)
        if not cart or not cart.items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cart is empty"
            )

        if not order_data.payment_method:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Payment method is required"
            )

        user = await db.get(User, user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )

        items = order_lines(cart.items)
        subtotal = items_total(items)
        delivery_charge = delivery_charge_for(order_data.delivery_method)
        alt_line1 = order_data.address.line1 if order_data.address else None

        order = Order(
            order_number=await order_helpers.next_order_number(db),
            user_id=user.id,
            items=items,
            subtotal=subtotal,
            delivery_charge=delivery_charge,
            total=subtotal + delivery_charge,
            customer={
                "username": user.username,
                "email": user.email,
                "phone": user.phone or "",
            },
            address=build_address(user, order_data.delivery_method, alt_line1),
            delivery_method=order_data.delivery_method,
            notes=order_data.notes or "",
            payment_method=order_data.payment_method,
            payment_status="unpaid",
            status="pending",
            history=[order_helpers.history_entry("pending", "Order placed", "customer")],
        )
        db.add(order)
        cart.items = []
        await db.commit()
        await db.refresh(order)

        logger.info(f"Order {order.order_number} placed by {user.id} ({order.payment_method}, total {order.total})")
        background_tasks.add_task(notify_order_placed, order_helpers.notification_payload(order))

        return PlaceOrderResponse(
            message="Order placed successfully",
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            subtotal=order.subtotal,
            delivery_charge=order.delivery_charge,
            total=order.total
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to place order: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to place order"
        )


@router.post("/upload-slip/{order_id}", response_model=SlipUploadResponse)
async def upload_slip(
    order_id: str,
    slip: Optional[UploadFile] = File(None),
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        order = await order_helpers.get_order_or_404(db, order_id)
        order = await order_helpers.upload_slip(db, order, slip, current_user)

        return SlipUploadResponse(
            message="Slip uploaded successfully",
            slip=order.payment_slip,
            status=order.status
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to upload slip for order {order_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upload slip"
        )
