from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from models import Finance


async def finance_totals(db: AsyncSession) -> dict:
    """Income, expense and balance over the whole ledger"""
    rows = (await db.execute(
        select(Finance.type, func.coalesce(func.sum(Finance.amount), 0.0)).group_by(Finance.type)
    )).all()
    sums = {entry_type: float(total) for entry_type, total in rows}
    income = sums.get("Income", 0.0)
    expense = sums.get("Expense", 0.0)
    return {"income": income, "expense": expense, "balance": income - expense}
