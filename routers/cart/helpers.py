from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models import Cart
from typing import Optional, List
import uuid


async def get_cart(db: AsyncSession, user_id: uuid.UUID) -> Optional[Cart]:
    result = await db.execute(select(Cart).where(Cart.user_id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_cart(db: AsyncSession, user_id: uuid.UUID) -> Cart:
    cart = await get_cart(db, user_id)
    if cart is None:
        cart = Cart(user_id=user_id, items=[])
        db.add(cart)
    return cart


def normalize_items(items: Optional[List[dict]]) -> List[dict]:
    """Fill display defaults for cart lines"""
    return [
        {
            "product_id": item.get("product_id"),
            "name": item.get("name") or "Unnamed Product",
            "category": item.get("category") or "General",
            "price": float(item.get("price") or 0),
            "image": item.get("image") or "",
            "quantity": int(item.get("quantity") or 1),
        }
        for item in (items or [])
    ]


def items_total(items: List[dict]) -> float:
    return sum(float(item["price"]) * int(item["quantity"]) for item in items)


def find_item(items: List[dict], product_id: str) -> Optional[dict]:
    return next((item for item in items if item.get("product_id") == product_id), None)
