from sqlalchemy import (
    String,
    Text,
    DateTime,
    CheckConstraint,
    ForeignKey,
    Float,
    Integer,
    JSON,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship, declarative_base
from typing import Optional
from datetime import datetime, timezone
import uuid

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (sqlite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Marketplace account for buyers and suppliers.
    Accounts created through Google sign-in have no password and may lack address fields.
    """
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255))

    role: Mapped[str] = mapped_column(String(20), default="buyer", nullable=False, index=True)  # "buyer", "supplier"

    # Supplier specific
    company: Mapped[Optional[str]] = mapped_column(String(100))
    phone: Mapped[Optional[str]] = mapped_column(String(20))

    # Location
    address: Mapped[Optional[str]] = mapped_column(String(255))
    city: Mapped[Optional[str]] = mapped_column(String(100))
    country: Mapped[Optional[str]] = mapped_column(String(100))
    postal_code: Mapped[Optional[str]] = mapped_column(String(20))

    google_id: Mapped[Optional[str]] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, onupdate=utcnow, nullable=False)


class Admin(Base):
    """
    Back-office account, separate from marketplace users
    """
    __tablename__ = "admins"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="super_admin", nullable=False)  # "admin", "super_admin"
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)  # "active", "disabled"

    created_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, onupdate=utcnow, nullable=False)


class Stock(Base):
    """
    Inventory record; products draw their name and available quantity from here
    """
    __tablename__ = "stock"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="stock_quantity_non_negative_check"),
        CheckConstraint("reorder_level >= 0", name="stock_reorder_level_non_negative_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)  # "Laptop", "Smartphone", "Tablet", "Accessories", "Other"
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reorder_level: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    supplier_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL")
    )

    date_added: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, onupdate=utcnow, nullable=False)


class Product(Base):
    """
    Sellable listing backed by a stock record
    """
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="product_price_non_negative_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    stock_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("stock.id", ondelete="CASCADE"),
        nullable=False
    )
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    image: Mapped[str] = mapped_column(String(500), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, onupdate=utcnow, nullable=False)

    stock: Mapped["Stock"] = relationship("Stock", lazy="joined")


class Cart(Base):
    """
    One cart per user. Items are denormalized copies of product data:
    [{"product_id", "name", "category", "price", "image", "quantity"}]
    """
    __tablename__ = "carts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )
    items: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, onupdate=utcnow, nullable=False)


class Order(Base):
    """
    Snapshot of a cart at checkout time plus customer/address copies.
    The item list never changes after creation; status changes are logged in history.
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("subtotal >= 0", name="order_subtotal_non_negative_check"),
        CheckConstraint("delivery_charge >= 0", name="order_delivery_charge_non_negative_check"),
        CheckConstraint("total >= 0", name="order_total_non_negative_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_number: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    items: Mapped[list] = mapped_column(JSONType, nullable=False)
    subtotal: Mapped[float] = mapped_column(Float, nullable=False)
    delivery_charge: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total: Mapped[float] = mapped_column(Float, nullable=False)

    customer: Mapped[dict] = mapped_column(JSONType, nullable=False)  # {"username", "email", "phone"}
    address: Mapped[dict] = mapped_column(JSONType, nullable=False)  # {"line1", "city", "postal_code", "country"}

    delivery_method: Mapped[str] = mapped_column(String(20), default="home", nullable=False)  # "home", "different", "store"
    courier: Mapped[Optional[str]] = mapped_column(String(20))  # "Uber", "PickMe"
    notes: Mapped[Optional[str]] = mapped_column(Text)

    payment_method: Mapped[str] = mapped_column(String(30), nullable=False)  # "online", "bank", "cash_on_delivery"
    payment_status: Mapped[str] = mapped_column(String(20), default="unpaid", nullable=False)  # "unpaid", "paid"
    payment_intent_id: Mapped[Optional[str]] = mapped_column(String(100))
    payment_slip: Mapped[Optional[dict]] = mapped_column(JSONType)  # {"filename", "url"}

    status: Mapped[str] = mapped_column(String(30), default="pending", nullable=False, index=True)
    history: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, onupdate=utcnow, nullable=False)


class ReorderRequest(Base):
    """
    Internal restocking request that suppliers can reply to
    """
    __tablename__ = "reorder_requests"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="reorder_quantity_positive_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)  # "Laptops", "Mobile Phones", "Televisions", "Accessories", "Other"
    priority: Mapped[str] = mapped_column(String(20), default="Normal", nullable=False)  # "Low", "Normal", "High"
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    replies: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, onupdate=utcnow, nullable=False)


class SupplierOffer(Base):
    """
    Supplier proposal to fulfil inventory, approved or rejected by an admin
    """
    __tablename__ = "supplier_offers"
    __table_args__ = (
        CheckConstraint("price_per_unit >= 0", name="offer_price_non_negative_check"),
        CheckConstraint("quantity_offered >= 1", name="offer_quantity_positive_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    supplier_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price_per_unit: Mapped[float] = mapped_column(Float, nullable=False)
    quantity_offered: Mapped[int] = mapped_column(Integer, nullable=False)
    delivery_date: Mapped[Optional[datetime]] = mapped_column(DateTime(True))

    status: Mapped[str] = mapped_column(String(20), default="Pending", nullable=False)  # "Pending", "Approved", "Rejected"
    decision_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("admins.id", ondelete="SET NULL")
    )
    decision_at: Mapped[Optional[datetime]] = mapped_column(DateTime(True))

    created_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, onupdate=utcnow, nullable=False)

    supplier: Mapped["User"] = relationship("User", lazy="joined")


class Feedback(Base):
    """
    Customer testimonial
    """
    __tablename__ = "feedback"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="feedback_rating_range_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL")
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, onupdate=utcnow, nullable=False)


class Finance(Base):
    """
    Income/expense ledger line
    """
    __tablename__ = "finance"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="finance_amount_non_negative_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # "Income", "Expense"
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(True), default=utcnow, nullable=False)
