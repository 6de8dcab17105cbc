"""
pricing.py — nightly price prediction from comparable listings.

Basis, most specific first:
  1. listings in the same location (and country, when given)
  2. listings in the same country
  3. BASE_NIGHTLY_RATE when nothing comparable exists

The median comparable price is scaled for guests, bedrooms and amenities.
Confidence grows with the number of comparables.
"""
import logging
from statistics import median

from sqlalchemy.ext.asyncio import AsyncSession

from planmystay import store
from planmystay.schemas import PricePrediction, PricePredictionRequest

logger = logging.getLogger(__name__)

BASE_NIGHTLY_RATE = 2500
BASELINE_GUESTS = 2
GUEST_FACTOR = 0.08       # per guest above the baseline
BEDROOM_FACTOR = 0.15     # per bedroom above the first
AMENITY_FACTOR = 0.02     # per listed amenity
MAX_AMENITY_UPLIFT = 0.20
RANGE_SPREAD = {"low": 0.25, "medium": 0.15, "high": 0.10}


def _confidence(comparables: int) -> str:
    if comparables >= 10:
        return "high"
    if comparables >= 3:
        return "medium"
    return "low"


def _multiplier(request: PricePredictionRequest) -> float:
    extra_guests = max(request.guests - BASELINE_GUESTS, 0)
    extra_bedrooms = max(request.bedrooms - 1, 0)
    amenities = len({a.strip().lower() for a in request.amenities if a.strip()})
    return (
        1.0
        + GUEST_FACTOR * extra_guests
        + BEDROOM_FACTOR * extra_bedrooms
        + min(AMENITY_FACTOR * amenities, MAX_AMENITY_UPLIFT)
    )


async def predict_price(db: AsyncSession, request: PricePredictionRequest) -> PricePrediction:
    prices: list[int] = []
    basis = "base rate"
    if request.location:
        prices = await store.get_listing_prices(db, country=request.country, location=request.location)
        basis = f"listings in {request.location}"
    if not prices and request.country:
        prices = await store.get_listing_prices(db, country=request.country)
        basis = f"listings in {request.country}"
    if not prices:
        basis = "base rate"

    anchor = median(prices) if prices else BASE_NIGHTLY_RATE
    predicted = round(anchor * _multiplier(request))
    confidence = _confidence(len(prices))
    spread = RANGE_SPREAD[confidence]

    logger.info(
        "Price prediction comparables=%d confidence=%s predicted=%d",
        len(prices),
        confidence,
        predicted,
    )
    return PricePrediction(
        predicted_price=predicted,
        low=round(predicted * (1 - spread)),
        high=round(predicted * (1 + spread)),
        comparables=len(prices),
        confidence=confidence,
        basis=basis,
    )
