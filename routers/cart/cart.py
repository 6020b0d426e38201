from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db
from routers.auth.auth import get_current_user
from routers.products.products import get_product_or_404
from utils.response_helpers import parse_uuid
from utils.uploads import upload_helpers
from utils.pdf import generate_quotation_pdf
from .schemas import CartItemAdd, CartItemUpdate, CartResponse, CartMessageResponse, QuotationResponse
from .helpers import get_cart, get_or_create_cart, normalize_items, items_total, find_item
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["Cart"])


def cart_response(items: list) -> CartResponse:
    items = normalize_items(items)
    return CartResponse(items=items, total_price=items_total(items))


@router.get("/", response_model=CartResponse)
async def view_cart(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """The caller's cart; the total is recalculated on every read"""
    cart = await get_cart(db, parse_uuid(current_user["id"], "user"))
    return cart_response(cart.items if cart else [])


@router.post("/add", response_model=CartMessageResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    item_data: CartItemAdd,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Add a product line, merging with an existing line. Stock is only checked, never reserved."""
    try:
        product = await get_product_or_404(db, item_data.product_id)
        available = product.stock.quantity if product.stock else 0

        cart = await get_or_create_cart(db, parse_uuid(current_user["id"], "user"))
        items = normalize_items(cart.items)
        product_key = str(product.id)

        existing = find_item(items, product_key)
        in_cart = existing["quantity"] if existing else 0
        if item_data.quantity + in_cart > available:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Only {available} available"
            )

        if existing:
            existing["quantity"] += item_data.quantity
        else:
            items.append({
                "product_id": product_key,
                "name": product.stock.name if product.stock else "Unnamed Product",
                "category": product.category,
                "price": product.price,
                "image": product.image,
                "quantity": item_data.quantity,
            })

        cart.items = items
        await db.commit()

        return CartMessageResponse(message="Item added", cart=cart_response(items))

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to add item to cart: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add item to cart"
        )


@router.put("/update/{product_id}", response_model=CartMessageResponse)
async def update_quantity(
    product_id: str,
    item_update: CartItemUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        product = await get_product_or_404(db, product_id)
        available = product.stock.quantity if product.stock else 0

        if item_update.quantity < 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Quantity must be at least 1"
            )
        if item_update.quantity > available:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Only {available} available"
            )

        cart = await get_cart(db, parse_uuid(current_user["id"], "user"))
        if not cart:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cart not found"
            )

        items = normalize_items(cart.items)
        item = find_item(items, str(product.id))
        if not item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Item not in cart"
            )

        item["quantity"] = item_update.quantity
        cart.items = items
        await db.commit()

        return CartMessageResponse(message="Quantity updated", cart=cart_response(items))

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update cart quantity: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update quantity"
        )


@router.delete("/remove/{product_id}", response_model=CartMessageResponse)
async def remove_item(
    product_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        product_key = str(parse_uuid(product_id, "product"))
        cart = await get_cart(db, parse_uuid(current_user["id"], "user"))
        if not cart:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cart not found"
            )

        items = normalize_items(cart.items)
        remaining = [item for item in items if item["product_id"] != product_key]
        if len(remaining) == len(items):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Item not in cart"
            )

        cart.items = remaining
        await db.commit()

        return CartMessageResponse(message="Item removed", cart=cart_response(remaining))

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to remove cart item: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to remove item"
        )


@router.delete("/clear", response_model=CartMessageResponse)
async def clear_cart(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        cart = await get_cart(db, parse_uuid(current_user["id"], "user"))
        if not cart:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cart not found"
            )

        cart.items = []
        await db.commit()

        return CartMessageResponse(message="Cart cleared", cart=cart_response([]))

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to clear cart: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to clear cart"
        )


@router.get("/quotation", response_model=QuotationResponse)
async def generate_quotation(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Write a PDF quotation of the cart under uploads/quotations"""
    cart = await get_cart(db, parse_uuid(current_user["id"], "user"))
    if not cart or not cart.items:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cart is empty"
        )

    try:
        now = datetime.now(timezone.utc)
        filename = f"quotation_{int(now.timestamp() * 1000)}.pdf"
        content = generate_quotation_pdf(normalize_items(cart.items), now)
        with open(upload_helpers.path_for("quotations", filename), "wb") as out:
            out.write(content)

        return QuotationResponse(
            message="Quotation generated",
            pdf=upload_helpers.url_for("quotations", filename)
        )

    except Exception as e:
        logger.error(f"Failed to generate quotation: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate quotation"
        )
