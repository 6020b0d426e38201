from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db
from models import Finance
from routers.auth.auth import get_current_user
from dependencies.rbac import require_finance_access
from utils.response_helpers import safe_model_validate, safe_model_validate_list, parse_uuid
from .schemas import FinanceCreate, FinanceResponse, FinanceMessageResponse, FinanceSummary
from .helpers import finance_totals
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/finance", tags=["Finance"])


@router.post("/", response_model=FinanceMessageResponse, status_code=status.HTTP_201_CREATED)
async def add_entry(
    entry_data: FinanceCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_finance_access)
):
    try:
        data = entry_data.model_dump(exclude_none=True)
        entry = Finance(**data)
        db.add(entry)
        await db.commit()
        await db.refresh(entry)

        logger.info(f"{entry.type} of {entry.amount} recorded by {current_user['id']}")
        return FinanceMessageResponse(
            message="Entry added",
            entry=safe_model_validate(FinanceResponse, entry)
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to add finance entry: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add entry"
        )


@router.get("/", response_model=List[FinanceResponse])
async def list_entries(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_finance_access)
):
    result = await db.execute(select(Finance).order_by(Finance.date.desc()))
    return safe_model_validate_list(FinanceResponse, result.scalars().all())


@router.get("/summary", response_model=FinanceSummary)
async def get_summary(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_finance_access)
):
    return FinanceSummary(**await finance_totals(db))


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_finance_access)
):
    try:
        entry = await db.get(Finance, parse_uuid(entry_id, "entry"))
        if not entry:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Entry not found"
            )

        await db.delete(entry)
        await db.commit()

        return {"message": "Entry deleted"}

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to delete finance entry {entry_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete entry"
        )
