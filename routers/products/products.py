from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db
from models import Product, Stock
from routers.auth.auth import get_current_user
from dependencies.rbac import require_product_management
from utils.response_helpers import safe_model_validate, safe_model_validate_list, product_to_dict, parse_uuid
from utils.uploads import upload_helpers, IMAGE_TYPES
from .schemas import ProductResponse, ProductMessageResponse
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["Products"])


async def get_stock_for_product(db: AsyncSession, stock_id: str) -> Stock:
    stock = await db.get(Stock, parse_uuid(stock_id, "stock"))
    if not stock:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid stock selected"
        )
    return stock


async def get_product_or_404(db: AsyncSession, product_id: str) -> Product:
    result = await db.execute(select(Product).where(Product.id == parse_uuid(product_id, "product")))
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )
    return product


@router.get("/", response_model=List[ProductResponse])
async def list_products(db: AsyncSession = Depends(get_db)):
    """Public catalogue, newest first, each product with its stock summary"""
    result = await db.execute(select(Product).order_by(Product.created_at.desc()))
    products = [product_to_dict(p) for p in result.scalars().all()]
    return safe_model_validate_list(ProductResponse, products)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    db: AsyncSession = Depends(get_db)
):
    product = await get_product_or_404(db, product_id)
    return safe_model_validate(ProductResponse, product_to_dict(product))


@router.post("/", response_model=ProductMessageResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    stock_id: str = Form(...),
    description: str = Form(..., min_length=1),
    price: float = Form(..., ge=0),
    image: Optional[UploadFile] = File(None),
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_product_management)
):
    image_url = None
    try:
        if image is None or not image.filename:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product image is required"
            )

        stock = await get_stock_for_product(db, stock_id)
        _, image_url = await upload_helpers.save_file(image, "products", IMAGE_TYPES)

        product = Product(
            stock_id=stock.id,
            category=stock.category,
            description=description,
            price=price,
            image=image_url,
        )
        db.add(product)
        await db.commit()
        # the row now owns the file
        image_url = None

        logger.info(f"Product {product.id} created from stock {stock.id}")
        return ProductMessageResponse(
            message="Product added successfully",
            product=safe_model_validate(ProductResponse, product_to_dict(product, stock))
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        if image_url:
            upload_helpers.delete_file(image_url)
        logger.error(f"Failed to create product: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create product"
        )


@router.put("/{product_id}", response_model=ProductMessageResponse)
async def update_product(
    product_id: str,
    stock_id: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[float] = Form(None, ge=0),
    image: Optional[UploadFile] = File(None),
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_product_management)
):
    new_image = None
    try:
        product = await get_product_or_404(db, product_id)
        previous_image = None

        if stock_id:
            stock = await get_stock_for_product(db, stock_id)
            product.stock_id = stock.id
            product.category = stock.category
        else:
            stock = await db.get(Stock, product.stock_id)

        if description:
            product.description = description
        if price is not None:
            product.price = price
        if image is not None and image.filename:
            previous_image = product.image
            _, new_image = await upload_helpers.save_file(image, "products", IMAGE_TYPES)
            product.image = new_image

        await db.commit()
        new_image = None
        if previous_image:
            upload_helpers.delete_file(previous_image)

        return ProductMessageResponse(
            message="Product updated",
            product=safe_model_validate(ProductResponse, product_to_dict(product, stock))
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        if new_image:
            upload_helpers.delete_file(new_image)
        logger.error(f"Failed to update product {product_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update product"
        )


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_product_management)
):
    try:
        product = await get_product_or_404(db, product_id)
        await db.delete(product)
        await db.commit()
        upload_helpers.delete_file(product.image)

        logger.info(f"Product {product_id} deleted by {current_user['id']}")
        return {"message": "Product deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to delete product {product_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete product"
        )
