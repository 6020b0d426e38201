from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from config import get_db
from models import Stock, Product, User
from routers.auth.auth import get_current_user
from dependencies.rbac import require_stock_access
from utils.response_helpers import safe_model_validate, safe_model_validate_list, stock_to_dict, parse_uuid
from .schemas import StockCreate, StockUpdate, StockResponse, StockMessageResponse
from typing import List
import uuid
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stock", tags=["Stock"])


async def resolve_supplier(db: AsyncSession, supplier_id: str) -> uuid.UUID:
    """The referenced account must exist and be a supplier"""
    supplier_uuid = parse_uuid(supplier_id, "supplier")
    result = await db.execute(
        select(User).where(User.id == supplier_uuid, User.role == "supplier")
    )
    if not result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid supplier selected"
        )
    return supplier_uuid


async def get_stock_or_404(db: AsyncSession, stock_id: str) -> Stock:
    result = await db.execute(select(Stock).where(Stock.id == parse_uuid(stock_id, "stock")))
    stock = result.scalar_one_or_none()
    if not stock:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Stock not found"
        )
    return stock


@router.get("/", response_model=List[StockResponse])
async def list_stock(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_stock_access)
):
    result = await db.execute(select(Stock).order_by(Stock.date_added.desc()))
    return safe_model_validate_list(StockResponse, [stock_to_dict(s) for s in result.scalars().all()])


@router.get("/low-stock", response_model=List[StockResponse])
async def list_low_stock(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_stock_access)
):
    """Items at or below their reorder level, lowest quantity first"""
    result = await db.execute(
        select(Stock)
        .where(Stock.quantity <= Stock.reorder_level)
        .order_by(Stock.quantity.asc())
    )
    return safe_model_validate_list(StockResponse, [stock_to_dict(s) for s in result.scalars().all()])


@router.get("/{stock_id}", response_model=StockResponse)
async def get_stock(
    stock_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_stock_access)
):
    stock = await get_stock_or_404(db, stock_id)
    return safe_model_validate(StockResponse, stock_to_dict(stock))


@router.post("/", response_model=StockMessageResponse, status_code=status.HTTP_201_CREATED)
async def create_stock(
    stock_data: StockCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_stock_access)
):
    try:
        supplier_uuid = await resolve_supplier(db, stock_data.supplier_id)

        stock = Stock(
            name=stock_data.name.strip(),
            category=stock_data.category,
            quantity=stock_data.quantity,
            reorder_level=stock_data.reorder_level,
            unit_price=stock_data.unit_price,
            supplier_id=supplier_uuid,
        )
        db.add(stock)
        await db.commit()
        await db.refresh(stock)

        logger.info(f"Stock {stock.id} added by {current_user['id']}")
        return StockMessageResponse(
            message="Stock added successfully!",
            stock=safe_model_validate(StockResponse, stock_to_dict(stock))
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to add stock: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add stock"
        )


@router.put("/{stock_id}", response_model=StockMessageResponse)
async def update_stock(
    stock_id: str,
    stock_update: StockUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_stock_access)
):
    try:
        stock = await get_stock_or_404(db, stock_id)
        update_data = stock_update.model_dump(exclude_unset=True)

        if update_data.get("supplier_id") is not None:
            update_data["supplier_id"] = await resolve_supplier(db, update_data["supplier_id"])

        for field, value in update_data.items():
            if value is not None:
                setattr(stock, field, value)

        await db.commit()
        await db.refresh(stock)

        return StockMessageResponse(
            message="Stock updated successfully!",
            stock=safe_model_validate(StockResponse, stock_to_dict(stock))
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update stock {stock_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update stock"
        )


@router.delete("/{stock_id}")
async def delete_stock(
    stock_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_stock_access)
):
    try:
        stock = await get_stock_or_404(db, stock_id)

        # Products cannot outlive their stock record
        await db.execute(delete(Product).where(Product.stock_id == stock.id))
        await db.delete(stock)
        await db.commit()

        logger.info(f"Stock {stock_id} deleted by {current_user['id']}")
        return {"message": "Stock deleted successfully!"}

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to delete stock {stock_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete stock"
        )
