from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from config import get_db
from models import Admin, User, Product, Stock, Order, SupplierOffer
from routers.auth.auth import get_current_admin
from routers.auth.helpers import auth_helpers
from routers.auth.schemas import AdminResponse
from routers.stock.schemas import StockResponse
from routers.finance.helpers import finance_totals
from dependencies.rbac import require_admin, require_super_admin
from utils.response_helpers import safe_model_validate, safe_model_validate_list, admin_to_dict, stock_to_dict, parse_uuid
from .schemas import AdminCreate, AdminStatusUpdate, AdminMessageResponse, DashboardResponse, FinanceTotals
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.post("/admins", response_model=AdminMessageResponse, status_code=status.HTTP_201_CREATED)
async def create_admin(
    admin_data: AdminCreate,
    current_user = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_super_admin)
):
    """Create a back-office account (super admins only)"""
    try:
        existing = await db.execute(
            select(Admin).where(or_(Admin.email == admin_data.email, Admin.username == admin_data.username))
        )
        if existing.scalars().first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Admin with this email or username already exists"
            )

        admin = Admin(
            username=admin_data.username,
            email=admin_data.email,
            password_hash=auth_helpers.hash_password(admin_data.password),
            role=admin_data.role,
        )
        db.add(admin)
        await db.commit()
        await db.refresh(admin)

        logger.info(f"Admin {current_user['id']} created admin {admin.id} ({admin.role})")
        return AdminMessageResponse(
            message="Admin created successfully",
            admin=safe_model_validate(AdminResponse, admin_to_dict(admin))
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create admin: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create admin"
        )


@router.get("/admins", response_model=List[AdminResponse])
async def list_admins(
    current_user = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_admin)
):
    result = await db.execute(select(Admin).order_by(Admin.created_at.desc()))
    admins = [admin_to_dict(admin) for admin in result.scalars().all()]
    return safe_model_validate_list(AdminResponse, admins)


@router.patch("/admins/{admin_id}/status", response_model=AdminMessageResponse)
async def update_admin_status(
    admin_id: str,
    status_data: AdminStatusUpdate,
    current_user = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_super_admin)
):
    try:
        admin_uuid = parse_uuid(admin_id, "admin")
        if str(admin_uuid) == current_user["id"] and status_data.status == "disabled":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot disable your own account"
            )

        result = await db.execute(select(Admin).where(Admin.id == admin_uuid))
        admin = result.scalar_one_or_none()
        if not admin:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Admin not found"
            )

        admin.status = status_data.status
        await db.commit()
        await db.refresh(admin)

        logger.info(f"Admin {current_user['id']} set admin {admin.id} to {admin.status}")
        return AdminMessageResponse(
            message=f"Admin {admin.status}",
            admin=safe_model_validate(AdminResponse, admin_to_dict(admin))
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update admin status: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update admin status"
        )


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    current_user = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_admin)
):
    """
    Store-wide counters for the admin home page.
    Revenue is the sum of order totals excluding cancelled orders.
    """
    try:
        role_counts = dict((await db.execute(
            select(User.role, func.count(User.id)).group_by(User.role)
        )).all())
        product_count = (await db.execute(select(func.count(Product.id)))).scalar() or 0

        orders_by_status = dict((await db.execute(
            select(Order.status, func.count(Order.id)).group_by(Order.status)
        )).all())
        revenue = (await db.execute(
            select(func.coalesce(func.sum(Order.total), 0.0)).where(Order.status != "cancelled")
        )).scalar() or 0.0

        low_stock_result = await db.execute(
            select(Stock).where(Stock.quantity <= Stock.reorder_level).order_by(Stock.quantity.asc())
        )
        low_stock = [stock_to_dict(item) for item in low_stock_result.scalars().all()]

        pending_offers = (await db.execute(
            select(func.count(SupplierOffer.id)).where(SupplierOffer.status == "Pending")
        )).scalar() or 0

        finance = await finance_totals(db)

        return DashboardResponse(
            buyers=role_counts.get("buyer", 0),
            suppliers=role_counts.get("supplier", 0),
            products=product_count,
            orders_by_status=orders_by_status,
            total_orders=sum(orders_by_status.values()),
            revenue=float(revenue),
            low_stock_count=len(low_stock),
            low_stock=safe_model_validate_list(StockResponse, low_stock),
            pending_offers=pending_offers,
            finance=FinanceTotals(**finance)
        )

    except Exception as e:
        logger.error(f"Failed to build dashboard: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load dashboard"
        )
