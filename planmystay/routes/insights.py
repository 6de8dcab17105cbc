"""
Insights routes — GET /api/insights/summary, GET /api/insights/mine (gated, JSON)
"""
from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from planmystay import store
from planmystay.auth import Identity, require_auth
from planmystay.database import get_db

router = APIRouter(tags=["insights"])


@router.get("/summary")
async def summary(db: AsyncSession = Depends(get_db)) -> dict:
    data = await store.get_insights_summary(db)
    data["generated_at"] = datetime.now(timezone.utc).isoformat()
    return data


@router.get("/mine")
async def mine(
    db: AsyncSession = Depends(get_db),
    user: Identity = Depends(require_auth),
) -> dict:
    data = await store.get_owner_insights(db, user.id)
    data["username"] = user.username
    return data
