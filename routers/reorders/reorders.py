from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db
from models import ReorderRequest, User
from routers.auth.auth import get_current_user
from dependencies.rbac import require_reorder_management, require_reorder_reply
from utils.response_helpers import safe_model_validate, safe_model_validate_list, parse_uuid
from .schemas import ReorderCreate, ReorderUpdate, ReplyCreate, ReorderResponse, ReorderMessageResponse
from datetime import datetime, timezone
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reorders", tags=["Reorder Requests"])


async def get_request_or_404(db: AsyncSession, request_id: str) -> ReorderRequest:
    result = await db.execute(
        select(ReorderRequest).where(ReorderRequest.id == parse_uuid(request_id, "reorder request"))
    )
    reorder = result.scalar_one_or_none()
    if not reorder:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reorder request not found"
        )
    return reorder


@router.post("/", response_model=ReorderMessageResponse, status_code=status.HTTP_201_CREATED)
async def create_reorder_request(
    request_data: ReorderCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_reorder_management)
):
    try:
        reorder = ReorderRequest(**request_data.model_dump(), replies=[])
        db.add(reorder)
        await db.commit()
        await db.refresh(reorder)

        logger.info(f"Reorder request {reorder.id} created ({reorder.priority})")
        return ReorderMessageResponse(
            message="Reorder request created successfully",
            request=safe_model_validate(ReorderResponse, reorder)
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create reorder request: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create reorder request"
        )


@router.get("/", response_model=List[ReorderResponse])
async def list_reorder_requests(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(ReorderRequest).order_by(ReorderRequest.created_at.desc()))
    return safe_model_validate_list(ReorderResponse, result.scalars().all())


@router.get("/{request_id}", response_model=ReorderResponse)
async def get_reorder_request(
    request_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    reorder = await get_request_or_404(db, request_id)
    return safe_model_validate(ReorderResponse, reorder)


@router.put("/{request_id}", response_model=ReorderMessageResponse)
async def update_reorder_request(
    request_id: str,
    request_update: ReorderUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_reorder_management)
):
    try:
        reorder = await get_request_or_404(db, request_id)

        for field, value in request_update.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(reorder, field, value)

        await db.commit()
        await db.refresh(reorder)

        return ReorderMessageResponse(
            message="Reorder request updated successfully",
            request=safe_model_validate(ReorderResponse, reorder)
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update reorder request {request_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update reorder request"
        )


@router.delete("/{request_id}")
async def delete_reorder_request(
    request_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_reorder_management)
):
    try:
        reorder = await get_request_or_404(db, request_id)
        await db.delete(reorder)
        await db.commit()

        return {"message": "Reorder request deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to delete reorder request {request_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete reorder request"
        )


@router.post("/{request_id}/replies", response_model=ReorderMessageResponse, status_code=status.HTTP_201_CREATED)
async def reply_to_reorder_request(
    request_id: str,
    reply_data: ReplyCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_reorder_reply)
):
    """Supplier response to a restocking request"""
    try:
        reorder = await get_request_or_404(db, request_id)

        supplier = await db.get(User, parse_uuid(current_user["id"], "user"))
        if not supplier:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )

        reply = {
            "supplier_id": str(supplier.id),
            "supplier_name": supplier.company or supplier.username,
            "reply": reply_data.reply,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        reorder.replies = [*(reorder.replies or []), reply]
        await db.commit()
        await db.refresh(reorder)

        logger.info(f"Supplier {supplier.id} replied to reorder request {reorder.id}")
        return ReorderMessageResponse(
            message="Reply added",
            request=safe_model_validate(ReorderResponse, reorder)
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to reply to reorder request {request_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add reply"
        )
