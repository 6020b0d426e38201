from fastapi import APIRouter, Depends, HTTPException, status, Query, UploadFile, File, BackgroundTasks
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db
from models import Order
from routers.auth.auth import get_current_user
from dependencies.rbac import require_order_management
from utils.response_helpers import parse_uuid, convert_uuids_to_strings
from utils.notifications import notify_order_status
from utils.pdf import generate_invoice_pdf
from .schemas import OrderResponse, OrderStatusUpdate, OrderStatus, SlipUploadResponse
from .helpers import order_helpers
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.get("/admin", response_model=List[OrderResponse])
async def list_slip_orders(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_management)
):
    """Orders waiting on bank-slip review, newest first"""
    result = await db.execute(
        select(Order)
        .where(Order.payment_slip.is_not(None))
        .order_by(Order.created_at.desc())
    )
    # JSON null and SQL NULL both count as "no slip"
    orders = [order for order in result.scalars().all() if order.payment_slip]
    return [order_helpers.to_response(order) for order in orders]


@router.get("/admin/all", response_model=List[OrderResponse])
async def list_all_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_management)
):
    query = select(Order)
    if status_filter:
        query = query.where(Order.status == status_filter)

    offset = (page - 1) * limit
    result = await db.execute(query.order_by(Order.created_at.desc()).offset(offset).limit(limit))
    return [order_helpers.to_response(order) for order in result.scalars().all()]


@router.get("/admin/{order_id}", response_model=OrderResponse)
async def get_order_admin(
    order_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_management)
):
    order = await order_helpers.get_order_or_404(db, order_id)
    return order_helpers.to_response(order)


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    status_update: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_management)
):
    try:
        order = await order_helpers.get_order_or_404(db, order_id)
        order = await order_helpers.apply_status_change(
            db, order, status_update.status, "admin", status_update.note
        )

        logger.info(f"Order {order.order_number} set to {order.status} by {current_user['id']}")
        background_tasks.add_task(notify_order_status, order_helpers.notification_payload(order))
        return order_helpers.to_response(order)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update order status {order_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update order status"
        )


@router.get("/user", response_model=List[OrderResponse])
async def list_my_orders(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Order)
        .where(Order.user_id == parse_uuid(current_user["id"], "user"))
        .order_by(Order.created_at.desc())
    )
    return [order_helpers.to_response(order) for order in result.scalars().all()]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    order = await order_helpers.get_order_or_404(db, order_id)
    order_helpers.ensure_access(order, current_user)
    return order_helpers.to_response(order)


@router.get("/{order_id}/invoice")
async def download_invoice(
    order_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    order = await order_helpers.get_order_or_404(db, order_id)
    order_helpers.ensure_access(order, current_user)

    try:
        order_data = convert_uuids_to_strings(order)
        content = generate_invoice_pdf(order_data)
    except Exception as e:
        logger.error(f"Failed to render invoice for {order.order_number}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate invoice"
        )

    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="invoice_{order.order_number}.pdf"'}
    )


@router.post("/{order_id}/upload-slip", response_model=SlipUploadResponse)
async def upload_order_slip(
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
