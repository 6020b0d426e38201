from typing import Iterable
from datetime import datetime

from fpdf import FPDF
from fpdf.enums import XPos, YPos

STORE_NAME = "ReBuy Marketplace"


def _text(value) -> str:
    # Core fonts only cover latin-1
    return str(value).encode("latin-1", "replace").decode("latin-1")


def _money(amount) -> str:
    return f"Rs. {float(amount):,.2f}"


def _header(pdf: FPDF, title: str):
    pdf.add_page()
    pdf.set_font("Helvetica", "B", size=18)
    pdf.cell(0, 12, STORE_NAME, align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", size=12)
    pdf.cell(0, 8, _text(title), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)


def _items_table(pdf: FPDF, items: Iterable[dict]) -> float:
    pdf.set_font("Helvetica", "B", size=10)
    pdf.cell(10, 8, "#", border=1)
    pdf.cell(90, 8, "Item", border=1)
    pdf.cell(20, 8, "Qty", border=1)
    pdf.cell(35, 8, "Unit price", border=1)
    pdf.cell(35, 8, "Amount", border=1, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    pdf.set_font("Helvetica", size=10)
    total = 0.0
    for index, item in enumerate(items, start=1):
        quantity = int(item.get("quantity", 0))
        price = float(item.get("price", 0))
        amount = price * quantity
        total += amount
        pdf.cell(10, 8, str(index), border=1)
        pdf.cell(90, 8, _text(item.get("name") or "Unnamed Product")[:50], border=1)
        pdf.cell(20, 8, str(quantity), border=1)
        pdf.cell(35, 8, _money(price), border=1)
        pdf.cell(35, 8, _money(amount), border=1, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    return total


def generate_quotation_pdf(items: Iterable[dict], generated_at: datetime) -> bytes:
    """Render a price quotation for the given cart lines"""
    pdf = FPDF()
    _header(pdf, f"Quotation - {generated_at.strftime('%Y-%m-%d %H:%M')}")
    total = _items_table(pdf, items)
    pdf.ln(4)
    pdf.set_font("Helvetica", "B", size=14)
    pdf.cell(0, 10, f"Total: {_money(total)}", align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    return bytes(pdf.output())


def generate_invoice_pdf(order: dict) -> bytes:
    """
    Render an invoice for an order dict.

    Uses the order's stored subtotal, delivery charge and total rather than
    recomputing them from the items.
    """
    pdf = FPDF()
    _header(pdf, f"Invoice {order['order_number']}")

    customer = order.get("customer") or {}
    address = order.get("address") or {}
    pdf.set_font("Helvetica", size=10)
    lines = [
        f"Date: {order['created_at']:%Y-%m-%d}" if isinstance(order.get("created_at"), datetime) else None,
        f"Customer: {customer.get('username', '')} <{customer.get('email', '')}>",
        f"Phone: {customer.get('phone')}" if customer.get("phone") else None,
        f"Address: {address.get('line1', '')}, {address.get('city', '')} {address.get('postal_code', '')}, {address.get('country', '')}",
        f"Delivery: {order.get('delivery_method', 'home')}",
        f"Payment: {order.get('payment_method', '').replace('_', ' ')} ({order.get('payment_status', 'unpaid')})",
        f"Status: {order.get('status', '')}",
    ]
    for line in lines:
        if line:
            pdf.cell(0, 6, _text(line), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    _items_table(pdf, order.get("items") or [])
    pdf.ln(4)
    pdf.cell(0, 7, f"Subtotal: {_money(order['subtotal'])}", align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.cell(0, 7, f"Delivery charge: {_money(order['delivery_charge'])}", align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", "B", size=12)
    pdf.cell(0, 9, f"Total: {_money(order['total'])}", align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    return bytes(pdf.output())
