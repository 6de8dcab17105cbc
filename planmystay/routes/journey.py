"""
Journey API routes — GET /api/journey, GET /api/journey/{slug} (ungated, JSON)
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from planmystay import store
from planmystay.database import get_db
from planmystay.models.journey import JourneyStageORM

router = APIRouter(tags=["journey"])


def _stage_dict(stage: JourneyStageORM) -> dict:
    return {
        "slug": stage.slug,
        "position": stage.position,
        "title": stage.title,
        "description": stage.description,
        "tips": stage.tips,
    }


@router.get("")
async def list_stages(db: AsyncSession = Depends(get_db)) -> dict:
    stages = await store.list_journey_stages(db)
    return {"stages": [_stage_dict(s) for s in stages], "count": len(stages)}


@router.get("/{slug}")
async def get_stage(slug: str, db: AsyncSession = Depends(get_db)) -> dict:
    stage = await store.get_journey_stage(db, slug)
    if stage is None:
        raise HTTPException(status_code=404, detail=f"Journey stage '{slug}' not found")
    return _stage_dict(stage)
