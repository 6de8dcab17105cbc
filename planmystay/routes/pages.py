"""
Inline pages and demo endpoints (ungated):

  GET  /                   home
  GET  /journey            journey page (data comes from /api/journey)
  GET  /seed-journey       reseed journey stages — only when enable_demo_routes
  POST /api/predict-price  comparables-based nightly price estimate
  GET  /favicon.ico        served from the public directory
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from planmystay.database import get_db
from planmystay.journey_data import seed_journey_data
from planmystay.pricing import predict_price
from planmystay.schemas import ErrorResponse, PricePrediction, PricePredictionRequest
from planmystay.templating import render

router = APIRouter(tags=["pages"])
logger = logging.getLogger(__name__)


@router.get("/")
async def home(request: Request):
    return render(request, "home.html")


@router.get("/journey")
async def journey_page(request: Request):
    return render(request, "journey/index.html")


@router.get("/seed-journey")
async def seed_journey(request: Request, db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """Testing aid: replaces the stored journey stages with the built-in seed."""
    if not request.app.state.settings.enable_demo_routes:
        raise HTTPException(status_code=404)
    try:
        count = await seed_journey_data(db)
    except SQLAlchemyError as exc:
        logger.error("Error seeding journey data: %s", exc, exc_info=True)
        await db.rollback()
        return JSONResponse({"success": False, "error": str(exc)}, status_code=500)
    logger.info("Journey data seeded count=%d", count)
    return JSONResponse({"success": True, "message": "Journey data seeded successfully", "count": count})


@router.post(
    "/api/predict-price",
    response_model=PricePrediction,
    responses={422: {"model": ErrorResponse}},
)
async def predict_price_endpoint(
    payload: PricePredictionRequest,
    db: AsyncSession = Depends(get_db),
) -> PricePrediction:
    return await predict_price(db, payload)


@router.get("/favicon.ico", include_in_schema=False)
async def favicon(request: Request) -> Response:
    path = request.app.state.settings.public_dir / "favicon.ico"
    if path.is_file():
        return FileResponse(path)
    return Response(status_code=204)
