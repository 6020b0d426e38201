import html
import os
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException
import logging

logger = logging.getLogger(__name__)

# --- SMTP ---
SMTP_SERVER = os.getenv("SMTP_SERVER")
SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
EMAIL_SENDER = os.getenv("EMAIL_SENDER")

# --- Twilio ---
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")


def to_e164(phone: str) -> str:
    """Local Sri Lankan mobile numbers (07XXXXXXXX) become +947XXXXXXXX"""
    digits = phone.strip().replace(" ", "").replace("-", "")
    if digits.startswith("+"):
        return digits
    if digits.startswith("0"):
        return "+94" + digits[1:]
    if digits.startswith("94"):
        return "+" + digits
    return "+94" + digits


def send_email(to_email: str, subject: str, body_html: str) -> bool:
    """Send an HTML email; False when SMTP is not configured or delivery fails"""
    if not (SMTP_SERVER and SMTP_USER and SMTP_PASSWORD and EMAIL_SENDER):
        logger.error(f"SMTP is not configured, skipping email to {to_email}")
        return False

    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = f"ReBuy.lk <{EMAIL_SENDER}>"
    message["To"] = to_email
    message.attach(MIMEText(body_html, "html"))

    try:
        with smtplib.SMTP(SMTP_SERVER, SMTP_PORT, timeout=15) as server:
            server.starttls()
            server.login(SMTP_USER, SMTP_PASSWORD)
            server.send_message(message)
        logger.info(f"Email '{subject}' sent to {to_email}")
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Email to {to_email} failed: {e}")
        return False


def send_sms(to_phone_number: str, body: str) -> bool:
    """Send an SMS through Twilio; False when Twilio is not configured or sending fails"""
    if not (TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER):
        logger.error(f"Twilio is not configured, skipping SMS to {to_phone_number}")
        return False

    recipient = to_e164(to_phone_number)
    try:
        client = Client(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN)
        message = client.messages.create(body=body, from_=TWILIO_PHONE_NUMBER, to=recipient)
        logger.info(f"SMS sent to {recipient} (sid {message.sid})")
        return True
    except TwilioRestException as e:
        logger.error(f"SMS to {recipient} failed: {e.msg}")
        return False
    except Exception as e:
        logger.error(f"SMS to {recipient} failed: {str(e)}")
        return False


def notify_order_placed(order: dict):
    """Email (and SMS when a phone is on file) after checkout"""
    customer = order.get("customer") or {}
    if customer.get("email"):
        subject, body = get_order_placed_email(order)
        send_email(customer["email"], subject, body)
    if customer.get("phone"):
        send_sms(customer["phone"], get_order_status_sms(order))


def notify_order_status(order: dict):
    customer = order.get("customer") or {}
    if customer.get("email"):
        subject, body = get_order_status_email(order)
        send_email(customer["email"], subject, body)
    if customer.get("phone"):
        send_sms(customer["phone"], get_order_status_sms(order))


def notify_offer_decision(supplier_email: str, offer: dict):
    subject, body = get_offer_decision_email(offer)
    send_email(supplier_email, subject, body)


# Email Templates
def _items_rows(items: list) -> str:
    return "".join(
        f"<tr><td>{html.escape(str(item.get('name', 'Item')))}</td><td>{item.get('quantity', 0)}</td>"
        f"<td>Rs. {float(item.get('price', 0)):,.2f}</td></tr>"
        for item in items
    )


def get_order_placed_email(order: dict) -> tuple[str, str]:
    """Generate order confirmation email template"""
    subject = f"Order Placed - {order['order_number']}"

    body = f"""
    <html>
    <body>
        <h2>Thank you for your order!</h2>
        <p>Hello {html.escape(order.get('customer', {}).get('username') or '')},</p>
        <p>We have received your order <strong>{order['order_number']}</strong>.</p>

        <div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px;">
            <h3>Order Details:</h3>
            <table>
                <tr><th>Item</th><th>Qty</th><th>Price</th></tr>
                {_items_rows(order.get('items', []))}
            </table>
            <p><strong>Subtotal:</strong> Rs. {order['subtotal']:,.2f}</p>
            <p><strong>Delivery:</strong> Rs. {order['delivery_charge']:,.2f}</p>
            <p><strong>Total:</strong> Rs. {order['total']:,.2f}</p>
            <p><strong>Payment Method:</strong> {order['payment_method'].replace('_', ' ').title()}</p>
        </div>

        <p>Best regards,<br>ReBuy.lk Team</p>
    </body>
    </html>
    """

    return subject, body


def get_order_status_email(order: dict) -> tuple[str, str]:
    """Generate order status update email template"""
    subject = f"Order {order['order_number']} is now {order['status'].replace('_', ' ')}"

    body = f"""
    <html>
    <body>
        <h2>Order Update</h2>
        <p>Your order <strong>{order['order_number']}</strong> status changed to
        <strong>{order['status'].replace('_', ' ').title()}</strong>.</p>
        <p>Best regards,<br>ReBuy.lk Team</p>
    </body>
    </html>
    """

    return subject, body


def get_offer_decision_email(offer: dict) -> tuple[str, str]:
    """Generate supplier offer decision email template"""
    subject = f"Your offer \"{offer['title']}\" was {offer['status'].lower()}"

    body = f"""
    <html>
    <body>
        <h2>Offer {offer['status']}</h2>
        <p>Hello,</p>
        <p>Your offer <strong>{html.escape(offer['title'])}</strong> for {offer['quantity_offered']} units
        at Rs. {float(offer['price_per_unit']):,.2f} per unit has been {offer['status'].lower()}.</p>
        <p>Best regards,<br>ReBuy.lk Team</p>
    </body>
    </html>
    """

    return subject, body


# SMS Templates
def get_order_status_sms(order: dict) -> str:
    return f"ReBuy.lk: Order {order['order_number']} is {order['status'].replace('_', ' ')}. Total Rs. {order['total']:,.2f}"
