from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db, STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET
from models import Order
from routers.auth.auth import get_current_user
from routers.orders.helpers import order_helpers
from .schemas import PaymentIntentCreate, PaymentIntentResponse, PaymentStatusUpdate, PaymentStatusResponse
import stripe
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stripe", tags=["Payments"])

# Initialize Stripe client
stripe.api_key = STRIPE_SECRET_KEY


async def mark_order_paid(db: AsyncSession, order: Order, payment_intent_id: str = None) -> Order:
    """Record a successful card payment and confirm the order"""
    if order.payment_status == "paid" and order.status == "confirmed":
        logger.info(f"Order {order.order_number} already paid and confirmed")
        return order

    order.payment_status = "paid"
    if payment_intent_id:
        order.payment_intent_id = payment_intent_id
    return await order_helpers.apply_status_change(
        db, order, "confirmed", "payment_gateway", "Card payment received"
    )


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    payment_data: PaymentIntentCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a Stripe PaymentIntent for an order.
    The amount defaults to the order total and is sent in the currency's lowest unit.
    """
    try:
        order = await order_helpers.get_order_or_404(db, payment_data.order_id)
        order_helpers.ensure_access(order, current_user)

        amount = payment_data.amount if payment_data.amount is not None else order.total
        try:
            intent = stripe.PaymentIntent.create(
                amount=int(round(amount * 100)),
                currency=payment_data.currency.lower(),
                metadata={"order_id": str(order.id)},
                payment_method_types=["card"],
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe PaymentIntent creation failed for {order.order_number}: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Stripe PaymentIntent creation failed"
            )

        order.payment_intent_id = intent["id"]
        await db.commit()

        logger.info(f"PaymentIntent {intent['id']} created for order {order.order_number}")
        return PaymentIntentResponse(
            client_secret=intent["client_secret"],
            payment_intent_id=intent["id"]
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error creating payment intent: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create payment intent"
        )


@router.post("/update-payment-status", response_model=PaymentStatusResponse)
async def update_payment_status(
    status_data: PaymentStatusUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Called by the client after card confirmation; the intent must have succeeded"""
    try:
        order = await order_helpers.get_order_or_404(db, status_data.order_id)
        order_helpers.ensure_access(order, current_user)

        if order.payment_method != "online":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Order is not paid online"
            )

        intent_id = status_data.payment_intent_id or order.payment_intent_id
        if not intent_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No payment intent for this order"
            )

        try:
            intent = stripe.PaymentIntent.retrieve(intent_id)
        except stripe.StripeError as e:
            logger.error(f"Stripe PaymentIntent retrieval failed for {intent_id}: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Could not verify payment with Stripe"
            )
        if intent["status"] != "succeeded":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Payment not completed (status: {intent['status']})"
            )

        # an intent only pays for the order it was created for
        metadata = intent.get("metadata") or {}
        if metadata.get("order_id") != str(order.id):
            logger.warning(f"PaymentIntent {intent_id} does not belong to order {order.order_number}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Payment intent does not match this order"
            )

        order = await mark_order_paid(db, order, intent_id)

        return PaymentStatusResponse(
            message="Payment status updated",
            order_id=str(order.id),
            payment_status=order.payment_status,
            status=order.status
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error updating payment status: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update payment status"
        )


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """Stripe event receiver, verified with the Stripe-Signature header"""
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = stripe.Webhook.construct_event(payload, signature, STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning(f"Rejected Stripe webhook: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid Stripe signature"
        )

    if event["type"] != "payment_intent.succeeded":
        logger.info(f"Ignoring Stripe event {event['type']}")
        return {"received": True}

    try:
        intent = event["data"]["object"]
        try:
            order_id = intent["metadata"]["order_id"]
        except KeyError:
            logger.warning(f"PaymentIntent {intent['id']} has no order_id metadata")
            return {"received": True}

        order = await order_helpers.get_order_or_404(db, order_id)
        await mark_order_paid(db, order, intent["id"])

        logger.info(f"Order {order.order_number} confirmed by Stripe webhook")
        return {"received": True}

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error handling Stripe webhook: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process webhook"
        )
