from fastapi import APIRouter, Depends, HTTPException, status, Query, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db
from models import SupplierOffer
from routers.auth.auth import get_current_user
from dependencies.rbac import require_supplier, require_offer_review, require_offer_decision
from utils.response_helpers import safe_model_validate, safe_model_validate_list, offer_to_dict, parse_uuid, loaded_relationship
from utils.notifications import notify_offer_decision
from .schemas import OfferCreate, OfferUpdate, OfferResponse, OfferMessageResponse, OfferListResponse, OfferStatus
from datetime import datetime, timezone
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/offer", tags=["Supplier Offers"])


async def get_offer_or_404(db: AsyncSession, offer_id: str) -> SupplierOffer:
    result = await db.execute(select(SupplierOffer).where(SupplierOffer.id == parse_uuid(offer_id, "offer")))
    offer = result.scalar_one_or_none()
    if not offer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Offer not found"
        )
    return offer


def ensure_editable(offer: SupplierOffer, current_user: dict, action: str):
    """Only the owning supplier may touch an offer, and only while it is pending"""
    if str(offer.supplier_id) != current_user["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed"
        )
    if offer.status != "Pending":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot {action} non-pending offer"
        )


@router.post("/", response_model=OfferMessageResponse, status_code=status.HTTP_201_CREATED)
async def create_offer(
    offer_data: OfferCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_supplier)
):
    try:
        offer = SupplierOffer(
            supplier_id=parse_uuid(current_user["id"], "user"),
            status="Pending",
            **offer_data.model_dump(),
        )
        db.add(offer)
        await db.commit()
        await db.refresh(offer)

        logger.info(f"Supplier {current_user['id']} created offer {offer.id}")
        return OfferMessageResponse(
            message="Offer created successfully",
            offer=safe_model_validate(OfferResponse, offer_to_dict(offer))
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create offer: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error creating offer"
        )


@router.put("/{offer_id}", response_model=OfferMessageResponse)
async def update_offer(
    offer_id: str,
    offer_update: OfferUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_supplier)
):
    try:
        offer = await get_offer_or_404(db, offer_id)
        ensure_editable(offer, current_user, "edit")

        for field, value in offer_update.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(offer, field, value)

        await db.commit()

        return OfferMessageResponse(
            message="Offer updated successfully",
            offer=safe_model_validate(OfferResponse, offer_to_dict(offer))
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update offer {offer_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error updating offer"
        )


@router.delete("/{offer_id}")
async def delete_offer(
    offer_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_supplier)
):
    try:
        offer = await get_offer_or_404(db, offer_id)
        ensure_editable(offer, current_user, "delete")

        await db.delete(offer)
        await db.commit()

        return {"message": "Offer deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to delete offer {offer_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error deleting offer"
        )


@router.get("/my-offers", response_model=List[OfferResponse])
async def list_my_offers(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_supplier)
):
    result = await db.execute(
        select(SupplierOffer)
        .where(SupplierOffer.supplier_id == parse_uuid(current_user["id"], "user"))
        .order_by(SupplierOffer.created_at.desc())
    )
    return safe_model_validate_list(OfferResponse, [offer_to_dict(o) for o in result.scalars().all()])


@router.get("/", response_model=OfferListResponse)
async def list_offers(
    status_filter: Optional[OfferStatus] = Query(None, alias="status"),
    supplier_id: Optional[str] = Query(None),
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_offer_review)
):
    """All offers for review, newest first"""
    query = select(SupplierOffer)
    if status_filter:
        query = query.where(SupplierOffer.status == status_filter)
    if supplier_id:
        query = query.where(SupplierOffer.supplier_id == parse_uuid(supplier_id, "supplier"))

    result = await db.execute(query.order_by(SupplierOffer.created_at.desc()))
    offers = [offer_to_dict(o) for o in result.scalars().all()]
    return OfferListResponse(offers=safe_model_validate_list(OfferResponse, offers))


async def decide_offer(
    db: AsyncSession,
    offer_id: str,
    decision: str,
    current_user: dict,
    background_tasks: BackgroundTasks
) -> SupplierOffer:
    offer = await get_offer_or_404(db, offer_id)
    offer.status = decision
    offer.decision_by = parse_uuid(current_user["id"], "admin")
    offer.decision_at = datetime.now(timezone.utc)
    await db.commit()

    logger.info(f"Offer {offer.id} {decision.lower()} by admin {current_user['id']}")
    supplier = loaded_relationship(offer, "supplier")
    if supplier is not None and supplier.email:
        background_tasks.add_task(notify_offer_decision, supplier.email, offer_to_dict(offer))
    return offer


@router.patch("/{offer_id}/approve", response_model=OfferMessageResponse)
async def approve_offer(
    offer_id: str,
    background_tasks: BackgroundTasks,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_offer_decision)
):
    try:
        offer = await decide_offer(db, offer_id, "Approved", current_user, background_tasks)
        return OfferMessageResponse(
            message="Offer approved",
            offer=safe_model_validate(OfferResponse, offer_to_dict(offer))
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to approve offer {offer_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error approving offer"
        )


@router.patch("/{offer_id}/reject", response_model=OfferMessageResponse)
async def reject_offer(
    offer_id: str,
    background_tasks: BackgroundTasks,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_offer_decision)
):
    try:
        offer = await decide_offer(db, offer_id, "Rejected", current_user, background_tasks)
        return OfferMessageResponse(
            message="Offer rejected",
            offer=safe_model_validate(OfferResponse, offer_to_dict(offer))
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to reject offer {offer_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error rejecting offer"
        )
