from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db
from models import Feedback
from routers.auth.auth import get_current_user
from dependencies.rbac import is_admin
from utils.response_helpers import safe_model_validate, safe_model_validate_list, parse_uuid
from .schemas import FeedbackCreate, FeedbackUpdate, FeedbackResponse
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/feedback", tags=["Feedback"])


async def get_owned_feedback(db: AsyncSession, feedback_id: str, current_user: dict) -> Feedback:
    """Load a feedback entry the caller may modify: their own, or any for admins"""
    result = await db.execute(select(Feedback).where(Feedback.id == parse_uuid(feedback_id, "feedback")))
    feedback = result.scalar_one_or_none()
    if not feedback:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Feedback not found"
        )

    if not is_admin(current_user) and str(feedback.user_id) != current_user["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to modify this feedback"
        )
    return feedback


@router.post("/", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
async def add_feedback(
    feedback_data: FeedbackCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        owner_id = None if is_admin(current_user) else parse_uuid(current_user["id"], "user")
        feedback = Feedback(user_id=owner_id, **feedback_data.model_dump())
        db.add(feedback)
        await db.commit()
        await db.refresh(feedback)

        return safe_model_validate(FeedbackResponse, feedback)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to add feedback: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add feedback"
        )


@router.get("/", response_model=List[FeedbackResponse])
async def list_feedback(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Feedback).order_by(Feedback.created_at.desc()))
    return safe_model_validate_list(FeedbackResponse, result.scalars().all())


@router.put("/{feedback_id}", response_model=FeedbackResponse)
async def update_feedback(
    feedback_id: str,
    feedback_update: FeedbackUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        feedback = await get_owned_feedback(db, feedback_id, current_user)

        for field, value in feedback_update.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(feedback, field, value)

        await db.commit()
        await db.refresh(feedback)

        return safe_model_validate(FeedbackResponse, feedback)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update feedback {feedback_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update feedback"
        )


@router.delete("/{feedback_id}")
async def delete_feedback(
    feedback_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        feedback = await get_owned_feedback(db, feedback_id, current_user)
        await db.delete(feedback)
        await db.commit()

        logger.info(f"Feedback {feedback_id} deleted by {current_user['id']}")
        return {"message": "Feedback deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to delete feedback {feedback_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete feedback"
        )
